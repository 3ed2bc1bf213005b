"""Qt widget that shows a :class:`DocumentWorkspace` as tab columns.

Each layout slot gets its own ``QTabWidget`` inside a horizontal splitter.
The workspace stays the source of truth: this widget mirrors opens, closes
and focus changes, and writes caret moves back into the workspace so that
captured tabs see the real cursor.
"""

from __future__ import annotations

import logging
from typing import Dict, Optional

from PySide6.QtCore import Qt
from PySide6.QtGui import QTextCursor
from PySide6.QtWidgets import QPlainTextEdit, QSplitter, QTabWidget, QVBoxLayout, QWidget

from .workspace import DocumentWorkspace, OpenDocument

__all__ = ["TabbedEditorWidget", "DEFAULT_LAYOUT_SLOT"]

LOGGER = logging.getLogger(__name__)

DEFAULT_LAYOUT_SLOT = 1
_DOCUMENT_ID_PROPERTY = "tabsetDocumentId"


class TabbedEditorWidget(QWidget):
    """Container widget that wraps a :class:`DocumentWorkspace` with UI tabs."""

    def __init__(self, workspace: DocumentWorkspace, parent: QWidget | None = None) -> None:
        super().__init__(parent)
        self._workspace = workspace
        self._columns: Dict[int, QTabWidget] = {}
        self._editors: Dict[str, QPlainTextEdit] = {}
        self._block_qt_signal = False

        self._splitter = QSplitter(Qt.Orientation.Horizontal, self)
        layout = QVBoxLayout(self)
        layout.setContentsMargins(0, 0, 0, 0)
        layout.addWidget(self._splitter)
        self._column(DEFAULT_LAYOUT_SLOT)

        workspace.add_opened_listener(self._on_document_opened)
        workspace.add_closed_listener(self._on_document_closed)
        workspace.add_active_listener(self._on_active_changed)
        for document in workspace.iter_documents():
            self._on_document_opened(document)
        self._on_active_changed(workspace.active_document)

    @property
    def workspace(self) -> DocumentWorkspace:
        return self._workspace

    # ------------------------------------------------------------------
    # Workspace listeners
    # ------------------------------------------------------------------
    def _on_document_opened(self, document: OpenDocument) -> None:
        slot = document.layout_slot or DEFAULT_LAYOUT_SLOT
        document.layout_slot = slot
        editor = QPlainTextEdit()
        editor.setPlainText(document.text)
        editor.setProperty(_DOCUMENT_ID_PROPERTY, document.id)
        _place_cursor(editor, document.line, document.character)
        editor.cursorPositionChanged.connect(
            lambda document_id=document.id, widget=editor: self._sync_cursor(document_id, widget)
        )
        self._editors[document.id] = editor

        column = self._column(slot)
        self._block_qt_signal = True
        try:
            index = column.addTab(editor, document.title)
            column.setTabToolTip(index, document.location)
        finally:
            self._block_qt_signal = False

    def _on_document_closed(self, document: OpenDocument) -> None:
        editor = self._editors.pop(document.id, None)
        if editor is None:
            return
        slot = document.layout_slot or DEFAULT_LAYOUT_SLOT
        column = self._columns.get(slot)
        self._block_qt_signal = True
        try:
            if column is not None:
                index = column.indexOf(editor)
                if index >= 0:
                    column.removeTab(index)
                if column.count() == 0 and slot != DEFAULT_LAYOUT_SLOT:
                    self._columns.pop(slot)
                    column.deleteLater()
        finally:
            self._block_qt_signal = False
        editor.deleteLater()

    def _on_active_changed(self, document: Optional[OpenDocument]) -> None:
        if document is None:
            return
        editor = self._editors.get(document.id)
        if editor is None:
            return
        column = self._columns.get(document.layout_slot or DEFAULT_LAYOUT_SLOT)
        if column is None:
            return
        index = column.indexOf(editor)
        if index >= 0 and column.currentIndex() != index:
            self._block_qt_signal = True
            try:
                column.setCurrentIndex(index)
            finally:
                self._block_qt_signal = False
        editor.setFocus()

    # ------------------------------------------------------------------
    # Qt signal handlers
    # ------------------------------------------------------------------
    def _handle_qt_tab_changed(self, slot: int, index: int) -> None:
        if self._block_qt_signal:
            return
        document_id = self._document_id_at(slot, index)
        if document_id is not None and document_id in self._workspace.document_ids():
            self._workspace.set_active(document_id)

    def _handle_qt_tab_close_requested(self, slot: int, index: int) -> None:
        document_id = self._document_id_at(slot, index)
        if document_id is not None and document_id in self._workspace.document_ids():
            self._workspace.close_document(document_id)

    def _sync_cursor(self, document_id: str, editor: QPlainTextEdit) -> None:
        if document_id not in self._workspace.document_ids():
            return
        cursor = editor.textCursor()
        self._workspace.move_cursor(document_id, cursor.blockNumber(), cursor.positionInBlock())

    # ------------------------------------------------------------------
    # Utilities
    # ------------------------------------------------------------------
    def _column(self, slot: int) -> QTabWidget:
        column = self._columns.get(slot)
        if column is not None:
            return column
        column = QTabWidget(self._splitter)
        column.setTabsClosable(True)
        column.setMovable(True)
        column.setDocumentMode(True)
        column.currentChanged.connect(lambda index, slot=slot: self._handle_qt_tab_changed(slot, index))
        column.tabCloseRequested.connect(lambda index, slot=slot: self._handle_qt_tab_close_requested(slot, index))
        insert_at = sum(1 for existing in self._columns if existing < slot)
        self._splitter.insertWidget(insert_at, column)
        self._columns[slot] = column
        LOGGER.debug("Created editor column for layout slot %d", slot)
        return column

    def _document_id_at(self, slot: int, index: int) -> str | None:
        column = self._columns.get(slot)
        if column is None or index < 0:
            return None
        widget = column.widget(index)
        if widget is None:
            return None
        value = widget.property(_DOCUMENT_ID_PROPERTY)
        return str(value) if value else None


def _place_cursor(editor: QPlainTextEdit, line: int, character: int) -> None:
    block = editor.document().findBlockByNumber(max(0, line))
    if not block.isValid():
        block = editor.document().lastBlock()
    cursor = QTextCursor(block)
    offset = min(max(0, character), max(0, block.length() - 1))
    cursor.movePosition(QTextCursor.MoveOperation.Right, QTextCursor.MoveMode.MoveAnchor, offset)
    editor.setTextCursor(cursor)
