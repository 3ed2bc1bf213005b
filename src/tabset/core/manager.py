"""Tabset manager: owns every tabset, persists them, and switches between them."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable, Sequence

from . import codec
from .closing import DEFAULT_CLOSE_TIMEOUT, capture_and_close
from .errors import AdapterFailure, FormatError, InvalidOperation, InvariantViolation
from .events import DocumentOpenFailed, EventBus, TabsetActivated, TabsetsChanged, TabsetsRecovered
from .models import DEFAULT_TABSET_NAME, Tab, TabSet
from .surface import DamageReportingStore, EditorSurface, KeyValueStore

__all__ = ["TabManager", "ActivationResult", "DEFAULT_STORAGE_KEY"]

LOGGER = logging.getLogger(__name__)

DEFAULT_STORAGE_KEY = "tabs"


@dataclass(slots=True)
class ActivationResult:
    """Outcome of a completed :meth:`TabManager.activate` call."""

    previous: TabSet
    current: TabSet
    captured: list[Tab] = field(default_factory=list)
    failures: list[AdapterFailure] = field(default_factory=list)


class TabManager:
    """Single source of truth for the tabset list.

    The list is kept in creation order, which is also the order menus show.
    Outside :meth:`activate`, exactly one tabset is active and the list is
    never empty. Every mutating method persists before returning.
    """

    def __init__(
        self,
        store: KeyValueStore,
        surface: EditorSurface,
        *,
        bus: EventBus | None = None,
        storage_key: str = DEFAULT_STORAGE_KEY,
        close_timeout: float = DEFAULT_CLOSE_TIMEOUT,
        max_stalled_closes: int = 3,
    ) -> None:
        self._store = store
        self._surface = surface
        self._bus = bus or EventBus()
        self._storage_key = storage_key
        self._close_timeout = close_timeout
        self._max_stalled_closes = max_stalled_closes
        self._tabsets: list[TabSet] = []
        self._last_recovery: TabsetsRecovered | None = None
        self._activating = False
        self.load()

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------
    @property
    def bus(self) -> EventBus:
        return self._bus

    @property
    def store(self) -> KeyValueStore:
        return self._store

    @property
    def storage_key(self) -> str:
        return self._storage_key

    @property
    def last_recovery(self) -> TabsetsRecovered | None:
        """Details of the most recent corrupt-store recovery, if any."""

        return self._last_recovery

    @property
    def tabsets(self) -> tuple[TabSet, ...]:
        return tuple(self._tabsets)

    @property
    def activating(self) -> bool:
        """``True`` while :meth:`activate` is closing or reopening documents."""

        return self._activating

    # ------------------------------------------------------------------
    # Loading and persistence
    # ------------------------------------------------------------------
    def load(self, store: KeyValueStore | None = None) -> Sequence[TabSet]:
        """Read tabsets from ``store`` (or the bound store), seeding when empty.

        Corrupt payloads are copied to ``<key>.corrupt`` and replaced by a
        fresh seed; a :class:`TabsetsRecovered` event tells observers so. The
        same event reports a store that had to discard its whole backing file.
        """

        if store is not None:
            self._store = store
        raw = self._store.get(self._storage_key, "[]")
        recovered: TabsetsRecovered | None = None
        if isinstance(self._store, DamageReportingStore):
            damage = self._store.take_damage()
            if damage is not None:
                recovered = TabsetsRecovered(reason=damage.reason, backup_path=damage.backup_path)
        try:
            tabsets = codec.loads_tabsets(raw)
        except FormatError as exc:
            backup_key = f"{self._storage_key}.corrupt"
            LOGGER.warning(
                "Stored tabsets are unreadable (%s); raw payload kept under %r, starting fresh",
                exc,
                backup_key,
            )
            self._store.set(backup_key, raw)
            tabsets = []
            recovered = TabsetsRecovered(reason=str(exc), backup_key=backup_key)

        repaired = _repair_active_flags(tabsets)
        if not tabsets:
            seed = TabSet.new(DEFAULT_TABSET_NAME)
            seed.active = True
            tabsets.append(seed)

        self._tabsets = tabsets
        LOGGER.debug("Loaded %d tabset(s); active=%s", len(tabsets), self.find_active().name)
        if repaired:
            self.persist()
        self._last_recovery = recovered
        if recovered is not None:
            self._bus.publish(recovered)
        return self.tabsets

    def persist(self) -> None:
        """Write the full list to the store and notify status observers."""

        self._store.set(self._storage_key, codec.dumps_tabsets(self._tabsets))
        active_name = next((tabset.name for tabset in self._tabsets if tabset.active), None)
        LOGGER.debug("Persisted %d tabset(s); active=%s", len(self._tabsets), active_name)
        self._bus.publish(TabsetsChanged(active_name=active_name, tabset_count=len(self._tabsets)))

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------
    def find_active(self) -> TabSet:
        for tabset in self._tabsets:
            if tabset.active:
                return tabset
        raise InvariantViolation()

    def list_inactive(self) -> list[TabSet]:
        return [tabset for tabset in self._tabsets if not tabset.active]

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------
    def create(self, name: str) -> TabSet:
        """Append a new inactive tabset; callers usually activate it next."""

        try:
            tabset = TabSet.new(name)
        except ValueError as exc:
            raise InvalidOperation(str(exc)) from exc
        self._tabsets.append(tabset)
        self.persist()
        return tabset

    def rename(self, tabset: TabSet, name: str) -> None:
        self._require_owned(tabset)
        if not name or not name.strip():
            raise InvalidOperation("Tabset name must not be empty")
        LOGGER.debug("Renaming tabset %r to %r", tabset.name, name)
        tabset.name = name
        self.persist()

    def delete(self, tabsets: Iterable[TabSet]) -> None:
        """Remove ``tabsets``; refuses the active one and refuses to empty the list."""

        targets = list(tabsets)
        if not targets:
            return
        for target in targets:
            self._require_owned(target)
            if target.active:
                raise InvalidOperation("Active tabset cannot be deleted")
        remaining = [tabset for tabset in self._tabsets if not any(tabset is target for target in targets)]
        if not remaining:
            raise InvalidOperation("Cannot delete only tabset")
        LOGGER.info("Deleting tabset(s): %s", ", ".join(target.name for target in targets))
        self._tabsets = remaining
        self.persist()

    def reset(self) -> None:
        """Discard every tabset, then reseed from the (now empty) store."""

        LOGGER.info("Resetting all tabset state")
        self._tabsets = []
        self.persist()
        self.load()
        self.persist()

    async def activate(self, target: TabSet) -> ActivationResult:
        """Switch from the active tabset to ``target``.

        Open documents are captured and closed first. The snapshot then
        replaces the outgoing tabset's tabs, and the flags flip. The list is
        persisted before ``target``'s documents are reopened, so an
        interrupted reopen never loses the committed switch. A document that
        fails to reopen produces a :class:`DocumentOpenFailed` event and does
        not stop the others.
        """

        self._require_owned(target)
        previous = self.find_active()
        LOGGER.info("Switching tabset %r -> %r", previous.name, target.name)

        self._activating = True
        try:
            snapshot = await capture_and_close(
                self._surface,
                timeout=self._close_timeout,
                max_stalled_closes=self._max_stalled_closes,
            )

            previous.tabs = list(snapshot)
            previous.active = False
            target.active = True
            self.persist()

            failures = await self._reopen(target.tabs)
        finally:
            self._activating = False
        self._bus.publish(
            TabsetActivated(
                previous=previous.name,
                current=target.name,
                captured=len(snapshot),
                failed=len(failures),
            )
        )
        return ActivationResult(previous=previous, current=target, captured=list(snapshot), failures=failures)

    # ------------------------------------------------------------------
    # Host session helpers
    # ------------------------------------------------------------------
    def snapshot_active(self) -> TabSet:
        """Record the open documents into the active tabset without closing them.

        Used when the host window shuts down, so the next start can restore
        the same documents.

        Refused while an activation is in flight: the open documents are then
        only part of either tabset.
        """

        if self._activating:
            raise InvalidOperation("Cannot snapshot while a tabset switch is in progress")
        active = self.find_active()
        active.tabs = [
            Tab.capture(self._surface.capture_state(handle)) for handle in self._surface.list_open_documents()
        ]
        self.persist()
        return active

    async def restore_active(self) -> list[AdapterFailure]:
        """Reopen the active tabset's documents in a freshly started host."""

        active = self.find_active()
        LOGGER.debug("Restoring %d document(s) of tabset %r", len(active.tabs), active.name)
        return await self._reopen(active.tabs)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    async def _reopen(self, tabs: Sequence[Tab]) -> list[AdapterFailure]:
        failures: list[AdapterFailure] = []
        for tab in list(tabs):
            try:
                await self._surface.open_document(
                    tab.location,
                    line=tab.cursor.line,
                    character=tab.cursor.character,
                    layout_slot=tab.layout_slot,
                )
            except AdapterFailure as exc:
                LOGGER.warning("Unable to reopen %s: %s", tab.location, exc)
                failures.append(exc)
                self._bus.publish(DocumentOpenFailed(location=tab.location, reason=str(exc)))
        return failures

    def _require_owned(self, tabset: TabSet) -> None:
        if not any(candidate is tabset for candidate in self._tabsets):
            raise InvalidOperation(f"Tabset {tabset.name!r} is not managed here")


def _repair_active_flags(tabsets: list[TabSet]) -> bool:
    """Force exactly one active tabset; returns ``True`` when anything changed."""

    if not tabsets:
        return False
    active = [tabset for tabset in tabsets if tabset.active]
    if len(active) == 1:
        return False
    if not active:
        LOGGER.warning("No stored tabset is active; promoting %r", tabsets[0].name)
        tabsets[0].active = True
        return True
    LOGGER.warning(
        "%d stored tabsets are active; keeping %r and clearing the rest",
        len(active),
        active[0].name,
    )
    for extra in active[1:]:
        extra.active = False
    return True
