"""Headless model of the documents open in an editor window."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Dict, Iterable, Iterator, List, Optional, Protocol
from urllib.parse import unquote, urlparse

__all__ = [
    "OpenDocument",
    "DocumentWorkspace",
    "ActiveDocumentListener",
    "DocumentListener",
    "DocumentLoader",
    "resolve_location",
    "read_location",
]

DocumentLoader = Callable[[str], str]
DocumentListener = Callable[["OpenDocument"], None]


class ActiveDocumentListener(Protocol):
    """Callback signature fired whenever the active document changes."""

    def __call__(self, document: Optional["OpenDocument"]) -> None:  # pragma: no cover - protocol
        ...


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _generate_document_id() -> str:
    return uuid.uuid4().hex


def resolve_location(location: str) -> Path | None:
    """Map a location string (plain path or ``file://`` URI) to a filesystem path."""

    if not location:
        return None
    parsed = urlparse(location)
    if parsed.scheme == "file":
        return Path(unquote(parsed.path)).expanduser()
    if parsed.scheme and len(parsed.scheme) > 1:
        # Non-file URI schemes have no filesystem backing.
        return None
    return Path(location).expanduser()


def read_location(location: str) -> str:
    """Default loader: read the text behind ``location`` from disk."""

    path = resolve_location(location)
    if path is None:
        raise FileNotFoundError(f"Location {location!r} does not refer to a local file")
    return path.read_text(encoding="utf-8")


@dataclass(slots=True)
class OpenDocument:
    """One document currently shown by the editor."""

    id: str
    location: str
    text: str = ""
    line: int = 0
    character: int = 0
    layout_slot: int | None = None
    opened_at: datetime = field(default_factory=_utcnow)

    @property
    def title(self) -> str:
        path = resolve_location(self.location)
        if path is not None and path.name:
            return path.name
        return self.location


class DocumentWorkspace:
    """Tracks open documents, their order, and which one has focus."""

    def __init__(self, *, loader: DocumentLoader | None = None) -> None:
        self._loader = loader or read_location
        self._documents: Dict[str, OpenDocument] = {}
        self._order: List[str] = []
        self._active_id: str | None = None
        self._active_listeners: List[ActiveDocumentListener] = []
        self._opened_listeners: List[DocumentListener] = []
        self._closed_listeners: List[DocumentListener] = []

    # ------------------------------------------------------------------
    # Document lifecycle
    # ------------------------------------------------------------------
    def open_document(
        self,
        location: str,
        *,
        line: int = 0,
        character: int = 0,
        layout_slot: int | None = None,
        make_active: bool = True,
    ) -> OpenDocument:
        """Open ``location`` (or focus it when already open) and return it.

        Loader errors propagate unchanged; nothing is registered in that case.
        """

        existing = self.find_by_location(location)
        if existing is not None:
            existing.line, existing.character = max(0, line), max(0, character)
            if make_active:
                self.set_active(existing.id)
            return existing

        text = self._loader(location)
        document = OpenDocument(
            id=_generate_document_id(),
            location=location,
            text=text,
            line=max(0, line),
            character=max(0, character),
            layout_slot=layout_slot,
        )
        self._documents[document.id] = document
        self._order.append(document.id)
        for listener in list(self._opened_listeners):
            listener(document)
        if make_active or self._active_id is None:
            self.set_active(document.id)
        return document

    def close_document(self, document_id: str) -> OpenDocument:
        """Close and return the specified document."""

        if document_id not in self._documents:
            raise KeyError(f"Unknown document_id: {document_id}")
        document = self._documents.pop(document_id)
        index = self._order.index(document_id)
        self._order.pop(index)
        for listener in list(self._closed_listeners):
            listener(document)

        if self._active_id == document_id:
            if self._order:
                fallback_index = index if index < len(self._order) else len(self._order) - 1
                self._active_id = self._order[fallback_index]
            else:
                self._active_id = None
            self._notify_active_listeners()
        return document

    def close_active(self) -> OpenDocument | None:
        if self._active_id is None:
            return None
        return self.close_document(self._active_id)

    def set_active(self, document_id: str) -> OpenDocument:
        if document_id not in self._documents:
            raise KeyError(f"Unknown document_id: {document_id}")
        if self._active_id != document_id:
            self._active_id = document_id
            self._notify_active_listeners()
        return self._documents[document_id]

    def move_cursor(self, document_id: str, line: int, character: int) -> None:
        document = self.get_document(document_id)
        document.line = max(0, line)
        document.character = max(0, character)

    # ------------------------------------------------------------------
    # Listeners
    # ------------------------------------------------------------------
    def add_active_listener(self, listener: ActiveDocumentListener) -> None:
        self._active_listeners.append(listener)

    def remove_active_listener(self, listener: ActiveDocumentListener) -> None:
        try:
            self._active_listeners.remove(listener)
        except ValueError:  # pragma: no cover - defensive
            pass

    def add_opened_listener(self, listener: DocumentListener) -> None:
        self._opened_listeners.append(listener)

    def add_closed_listener(self, listener: DocumentListener) -> None:
        self._closed_listeners.append(listener)

    def _notify_active_listeners(self) -> None:
        document = self.active_document
        for listener in list(self._active_listeners):
            listener(document)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------
    @property
    def active_id(self) -> str | None:
        return self._active_id

    @property
    def active_document(self) -> OpenDocument | None:
        if self._active_id is None:
            return None
        return self._documents.get(self._active_id)

    def iter_documents(self) -> Iterator[OpenDocument]:
        for document_id in self._order:
            yield self._documents[document_id]

    def document_ids(self) -> Iterable[str]:
        return tuple(self._order)

    def document_count(self) -> int:
        return len(self._order)

    def get_document(self, document_id: str) -> OpenDocument:
        document = self._documents.get(document_id)
        if document is None:
            raise KeyError(f"Unknown document_id: {document_id}")
        return document

    def find_by_location(self, location: str) -> OpenDocument | None:
        for document in self.iter_documents():
            if document.location == location:
                return document
        return None
