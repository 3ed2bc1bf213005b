"""UI-facing data structures shared by headless and Qt front ends."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Generic, Optional, Protocol, Sequence, TypeVar

__all__ = ["PickItem", "CommandSpec", "UserPrompter", "TABSET_COMMANDS"]

T = TypeVar("T")


@dataclass(slots=True)
class PickItem(Generic[T]):
    """One entry of a picker menu."""

    label: str
    description: str = ""
    value: Optional[T] = None


@dataclass(frozen=True, slots=True)
class CommandSpec:
    """Describes a command the host UI can bind to a menu or shortcut."""

    command_id: str
    label: str
    description: str
    shortcut: str | None = None


TABSET_COMMANDS: tuple[CommandSpec, ...] = (
    CommandSpec("tabset.switch", "Switch", "Switch to a different tabset", "Ctrl+Alt+S"),
    CommandSpec("tabset.new", "New", "Create a new tabset", "Ctrl+Alt+N"),
    CommandSpec("tabset.delete", "Delete", "Select other tabsets to delete"),
    CommandSpec("tabset.rename", "Rename", "Rename the current tabset"),
    CommandSpec("tabset.reset", "Reset", "Reset all state"),
)


class UserPrompter(Protocol):
    """Prompts used by tabset commands.

    Every prompt returns ``None`` (or ``False`` for confirmations) when the
    user dismisses it.
    """

    async def pick_one(self, items: Sequence[PickItem[Any]], *, title: str) -> PickItem[Any] | None:
        ...

    async def pick_many(self, items: Sequence[PickItem[Any]], *, title: str) -> list[PickItem[Any]] | None:
        ...

    async def ask_text(self, prompt: str, *, default: str = "") -> str | None:
        ...

    async def confirm(self, message: str, *, accept: str = "Yes", reject: str = "No") -> bool:
        ...

    def show_warning(self, message: str) -> None:
        ...

    def show_error(self, message: str) -> None:
        ...
