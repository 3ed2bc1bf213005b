"""Tabset commands exposed to the host UI.

Each command prompts the user, then calls into :class:`TabManager`. A
dismissed prompt ends the command before anything is mutated or persisted.
Commands run one at a time under a shared lock, so an activation cannot
interleave with a rename or delete.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from typing import AsyncIterator, Awaitable, Callable, Dict

from ..core.errors import InvalidOperation, InvariantViolation
from ..core.events import DocumentOpenFailed, TabsetsRecovered
from ..core.manager import TabManager
from .models import TABSET_COMMANDS, PickItem, UserPrompter

__all__ = ["TabsetCommands", "CommandCallback"]

LOGGER = logging.getLogger(__name__)

CommandCallback = Callable[[], Awaitable[None]]


class TabsetCommands:
    """Zero-argument coroutines implementing switch/new/delete/rename/reset."""

    def __init__(self, manager: TabManager, prompter: UserPrompter) -> None:
        self._manager = manager
        self._prompter = prompter
        self._lock = asyncio.Lock()
        manager.bus.subscribe(DocumentOpenFailed, self._on_document_open_failed)
        manager.bus.subscribe(TabsetsRecovered, self._on_tabsets_recovered)
        if manager.last_recovery is not None:
            self._on_tabsets_recovered(manager.last_recovery)

    @property
    def busy(self) -> bool:
        return self._lock.locked()

    def command_map(self) -> Dict[str, CommandCallback]:
        return {
            "tabset.switch": self.switch,
            "tabset.new": self.new,
            "tabset.delete": self.delete,
            "tabset.rename": self.rename,
            "tabset.reset": self.reset,
            "tabset.menu": self.menu,
        }

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------
    async def switch(self) -> None:
        async with self._guard("switch"):
            manager = self._manager
            manager.find_active()
            items = [PickItem(tabset.name, tabset.describe(), tabset) for tabset in manager.list_inactive()]
            if not items:
                self._prompter.show_warning("There are no other tabsets to switch to")
                return
            selected = await self._prompter.pick_one(items, title="Switch tabset")
            if selected is None or selected.value is None:
                return
            await manager.activate(selected.value)

    async def new(self) -> None:
        async with self._guard("new"):
            manager = self._manager
            manager.find_active()
            name = await self._prompter.ask_text("Name", default=str(len(manager.tabsets)))
            if not name:
                return
            tabset = manager.create(name)
            await manager.activate(tabset)

    async def delete(self) -> None:
        async with self._guard("delete"):
            manager = self._manager
            if len(manager.tabsets) <= 1:
                self._prompter.show_error("Cannot delete only tabset")
                return
            items = [PickItem(tabset.name, tabset.describe(), tabset) for tabset in manager.list_inactive()]
            selected = await self._prompter.pick_many(items, title="Delete tabsets")
            if not selected:
                return
            manager.delete([item.value for item in selected if item.value is not None])

    async def rename(self) -> None:
        async with self._guard("rename"):
            manager = self._manager
            active = manager.find_active()
            name = await self._prompter.ask_text("Name", default=active.name)
            if not name:
                return
            manager.rename(active, name)

    async def reset(self) -> None:
        async with self._guard("reset"):
            confirmed = await self._prompter.confirm("Are you sure you want to reset all state?")
            if not confirmed:
                return
            self._manager.reset()

    async def menu(self) -> None:
        """Offer every other command in one picker (status-bar click)."""

        items = [PickItem(command.label, command.description, command.command_id) for command in TABSET_COMMANDS]
        selected = await self._prompter.pick_one(items, title="Tabsets")
        if selected is None or selected.value is None:
            return
        await self.command_map()[selected.value]()

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    @contextlib.asynccontextmanager
    async def _guard(self, name: str) -> AsyncIterator[None]:
        async with self._lock:
            LOGGER.debug("Command %s started", name)
            try:
                yield
            except (InvalidOperation, InvariantViolation) as exc:
                self._report(name, exc)

    def _report(self, name: str, exc: Exception) -> None:
        if isinstance(exc, InvariantViolation):
            LOGGER.error("Command %s hit an invariant violation: %s", name, exc)
        else:
            LOGGER.info("Command %s refused: %s", name, exc)
        self._prompter.show_error(str(exc))

    def _on_document_open_failed(self, event: DocumentOpenFailed) -> None:
        self._prompter.show_warning(event.reason or f"Unable to open {event.location}")

    def _on_tabsets_recovered(self, event: TabsetsRecovered) -> None:
        message = f"Saved tabsets could not be read and were reset ({event.reason})."
        if event.backup_key:
            message += f" The unreadable data was kept under '{event.backup_key}'."
        if event.backup_path:
            message += f" A copy of the damaged file was saved as {event.backup_path}."
        self._prompter.show_warning(message)

