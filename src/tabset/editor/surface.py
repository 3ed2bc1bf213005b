"""Editor surface backed by a :class:`DocumentWorkspace`."""

from __future__ import annotations

import asyncio
import logging
from typing import List, Optional, Sequence

from ..core.errors import AdapterFailure
from ..core.models import DocumentSnapshot
from ..core.surface import ActiveChangeListener, Disposer
from .workspace import DocumentWorkspace, OpenDocument

__all__ = ["WorkspaceEditorSurface"]

LOGGER = logging.getLogger(__name__)


class WorkspaceEditorSurface:
    """Adapts a :class:`DocumentWorkspace` to the ``EditorSurface`` protocol.

    Close requests complete on a later event-loop iteration (after
    ``close_delay`` seconds), the way a real editor closes tabs. Before the
    workspace reports the next active document, a transient ``None`` is
    broadcast, which is what multi-close sequences look like in practice.
    Setting ``emit_notifications`` to ``False`` models a host that never
    reports active-document changes at all.
    """

    def __init__(
        self,
        workspace: DocumentWorkspace,
        *,
        close_delay: float = 0.0,
        emit_notifications: bool = True,
        transient_nulls: bool = True,
    ) -> None:
        self._workspace = workspace
        self._close_delay = max(0.0, close_delay)
        self._emit_notifications = emit_notifications
        self._transient_nulls = transient_nulls
        self._listeners: List[ActiveChangeListener] = []
        self._pending_closes: set[str] = set()
        workspace.add_active_listener(self._forward_active_change)

    @property
    def workspace(self) -> DocumentWorkspace:
        return self._workspace

    # ------------------------------------------------------------------
    # EditorSurface protocol
    # ------------------------------------------------------------------
    def list_open_documents(self) -> Sequence[OpenDocument]:
        return tuple(self._workspace.iter_documents())

    def active_document(self) -> OpenDocument | None:
        return self._workspace.active_document

    def capture_state(self, handle: OpenDocument) -> DocumentSnapshot:
        return DocumentSnapshot(
            location=handle.location,
            line=handle.line,
            character=handle.character,
            layout_slot=handle.layout_slot,
        )

    async def close_active_document(self) -> None:
        document = self._workspace.active_document
        if document is None:
            document = next(self._workspace.iter_documents(), None)
        if document is None or document.id in self._pending_closes:
            return
        self._pending_closes.add(document.id)
        loop = asyncio.get_running_loop()
        loop.call_later(self._close_delay, self._complete_close, document.id)

    def on_active_document_changed(self, listener: ActiveChangeListener) -> Disposer:
        self._listeners.append(listener)

        def dispose() -> None:
            try:
                self._listeners.remove(listener)
            except ValueError:
                pass

        return dispose

    async def open_document(
        self,
        location: str,
        *,
        line: int | None = None,
        character: int | None = None,
        layout_slot: int | None = None,
    ) -> None:
        try:
            self._workspace.open_document(
                location,
                line=line or 0,
                character=character or 0,
                layout_slot=layout_slot,
            )
        except (OSError, UnicodeDecodeError) as exc:
            raise AdapterFailure(f"Unable to open {location}: {exc}", location=location) from exc

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _complete_close(self, document_id: str) -> None:
        self._pending_closes.discard(document_id)
        if document_id not in self._workspace.document_ids():
            return
        was_active = self._workspace.active_id == document_id
        if was_active and self._transient_nulls and self._workspace.document_count() > 1:
            self._emit(None)
        self._workspace.close_document(document_id)
        LOGGER.debug("Closed document %s", document_id)

    def _forward_active_change(self, document: Optional[OpenDocument]) -> None:
        self._emit(document)

    def _emit(self, document: Optional[OpenDocument]) -> None:
        if not self._emit_notifications:
            return
        for listener in list(self._listeners):
            listener(document)
