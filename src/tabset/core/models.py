"""Dataclasses describing tabs, tabsets, and captured document state."""

from __future__ import annotations

from dataclasses import dataclass, field

__all__ = ["CursorPosition", "DocumentSnapshot", "Tab", "TabSet", "DEFAULT_TABSET_NAME"]

DEFAULT_TABSET_NAME = "0"


@dataclass(frozen=True, slots=True)
class CursorPosition:
    """Zero-based caret location inside a document."""

    line: int = 0
    character: int = 0

    def __post_init__(self) -> None:
        if self.line < 0 or self.character < 0:
            raise ValueError(f"Cursor position must be non-negative, got ({self.line}, {self.character})")


@dataclass(frozen=True, slots=True)
class DocumentSnapshot:
    """State reported by an editor surface for one open document."""

    location: str
    line: int = 0
    character: int = 0
    layout_slot: int | None = None


@dataclass(frozen=True, slots=True)
class Tab:
    """Reference to one document, its caret, and the column it was shown in."""

    location: str
    cursor: CursorPosition = field(default_factory=CursorPosition)
    layout_slot: int | None = None

    def __post_init__(self) -> None:
        if self.layout_slot is not None and self.layout_slot < 1:
            raise ValueError(f"Layout slot must be positive, got {self.layout_slot}")

    @classmethod
    def capture(cls, snapshot: DocumentSnapshot) -> "Tab":
        """Build a tab from the state of a currently open document."""

        return cls(
            location=snapshot.location,
            cursor=CursorPosition(max(0, snapshot.line), max(0, snapshot.character)),
            layout_slot=snapshot.layout_slot if snapshot.layout_slot and snapshot.layout_slot > 0 else None,
        )

    def serialize(self) -> str:
        from . import codec

        return codec.dumps_tab(self)

    @classmethod
    def deserialize(cls, text: str) -> "Tab":
        from . import codec

        return codec.loads_tab(text)


@dataclass(slots=True)
class TabSet:
    """Named working context holding the tabs to reopen, in order."""

    name: str
    active: bool = False
    tabs: list[Tab] = field(default_factory=list)

    @classmethod
    def new(cls, name: str) -> "TabSet":
        """Return an empty, inactive tabset."""

        if not name or not name.strip():
            raise ValueError("Tabset name must not be empty")
        return cls(name=name)

    def describe(self) -> str:
        count = len(self.tabs)
        return f"{count} tab" if count == 1 else f"{count} tabs"

    def serialize(self) -> str:
        from . import codec

        return codec.dumps_tabset(self)

    @classmethod
    def deserialize(cls, text: str) -> "TabSet":
        from . import codec

        return codec.loads_tabset(text)
