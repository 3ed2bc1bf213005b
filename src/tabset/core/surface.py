"""Capabilities the tabset core consumes from its host editor and store."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Optional, Protocol, Sequence, runtime_checkable

from .models import DocumentSnapshot

__all__ = ["DocumentHandle", "ActiveChangeListener", "Disposer", "EditorSurface", "KeyValueStore", "StoreDamage", "DamageReportingStore"]

DocumentHandle = Any
ActiveChangeListener = Callable[[Optional[DocumentHandle]], None]
Disposer = Callable[[], None]


@runtime_checkable
class EditorSurface(Protocol):
    """Editor operations used by the activation protocol.

    Closing is asynchronous: :meth:`close_active_document` only *requests*
    a close, and the host signals completion through the listeners registered
    with :meth:`on_active_document_changed`. Hosts may fire ``None`` while
    several documents close in a row before settling on the next document.
    """

    def list_open_documents(self) -> Sequence[DocumentHandle]:
        """Visible documents, in display order."""
        ...

    def active_document(self) -> DocumentHandle | None:
        ...

    def capture_state(self, handle: DocumentHandle) -> DocumentSnapshot:
        ...

    async def close_active_document(self) -> None:
        ...

    def on_active_document_changed(self, listener: ActiveChangeListener) -> Disposer:
        """Register ``listener`` and return a callable that removes it."""
        ...

    async def open_document(
        self,
        location: str,
        *,
        line: int | None = None,
        character: int | None = None,
        layout_slot: int | None = None,
    ) -> None:
        """Open ``location``; raises :class:`~tabset.core.errors.AdapterFailure` on failure."""
        ...


@runtime_checkable
class KeyValueStore(Protocol):
    """Single-slot string storage that survives restarts."""

    def get(self, key: str, default: str) -> str:
        ...

    def set(self, key: str, value: str) -> None:
        ...


@dataclass(frozen=True, slots=True)
class StoreDamage:
    """Unreadable backing data a store discarded while loading."""

    reason: str
    backup_path: str | None = None


@runtime_checkable
class DamageReportingStore(KeyValueStore, Protocol):
    """Store that can tell whether its backing data had to be discarded."""

    def take_damage(self) -> StoreDamage | None:
        """Return the damage found since the last call, then forget it."""
        ...
