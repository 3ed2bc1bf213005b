"""Tests for the TabbedEditorWidget wrapper."""

from __future__ import annotations

import pytest

from tabset.editor.tabbed_editor import DEFAULT_LAYOUT_SLOT, TabbedEditorWidget

from tests.helpers import make_workspace

pytestmark = pytest.mark.usefixtures("qtbot")

FILES = {"file:///a.py": "first\nsecond line\n", "file:///b.py": "b", "file:///c.py": "c"}


def _tab_titles(widget: TabbedEditorWidget, slot: int) -> list[str]:
    column = widget._columns[slot]
    return [column.tabText(index) for index in range(column.count())]


def test_documents_open_in_their_layout_slot() -> None:
    workspace = make_workspace(FILES)
    widget = TabbedEditorWidget(workspace)

    workspace.open_document("file:///a.py")
    second = workspace.open_document("file:///b.py", layout_slot=2)

    assert _tab_titles(widget, DEFAULT_LAYOUT_SLOT) == ["a.py"]
    assert _tab_titles(widget, 2) == ["b.py"]
    assert workspace.get_document(workspace.document_ids()[0]).layout_slot == DEFAULT_LAYOUT_SLOT
    assert second.layout_slot == 2


def test_existing_documents_are_mirrored_on_creation() -> None:
    workspace = make_workspace(FILES)
    workspace.open_document("file:///a.py")
    workspace.open_document("file:///b.py")

    widget = TabbedEditorWidget(workspace)

    assert _tab_titles(widget, DEFAULT_LAYOUT_SLOT) == ["a.py", "b.py"]
    assert widget._columns[DEFAULT_LAYOUT_SLOT].currentIndex() == 1


def test_cursor_is_placed_and_synced_back() -> None:
    workspace = make_workspace(FILES)
    widget = TabbedEditorWidget(workspace)
    document = workspace.open_document("file:///a.py", line=1, character=3)
    editor = widget._editors[document.id]

    cursor = editor.textCursor()
    assert (cursor.blockNumber(), cursor.positionInBlock()) == (1, 3)

    cursor.setPosition(2)
    editor.setTextCursor(cursor)

    assert (document.line, document.character) == (0, 2)


def test_qt_tab_change_updates_workspace() -> None:
    workspace = make_workspace(FILES)
    widget = TabbedEditorWidget(workspace)
    first = workspace.open_document("file:///a.py")
    workspace.open_document("file:///b.py")

    widget._columns[DEFAULT_LAYOUT_SLOT].setCurrentIndex(0)

    assert workspace.active_id == first.id


def test_closing_documents_removes_tabs_and_empty_columns() -> None:
    workspace = make_workspace(FILES)
    widget = TabbedEditorWidget(workspace)
    workspace.open_document("file:///a.py")
    side = workspace.open_document("file:///c.py", layout_slot=3)

    workspace.close_document(side.id)

    assert 3 not in widget._columns
    assert _tab_titles(widget, DEFAULT_LAYOUT_SLOT) == ["a.py"]


def test_tab_close_button_closes_document() -> None:
    workspace = make_workspace(FILES)
    widget = TabbedEditorWidget(workspace)
    workspace.open_document("file:///a.py")

    widget._columns[DEFAULT_LAYOUT_SLOT].tabCloseRequested.emit(0)

    assert workspace.document_count() == 0
    assert widget._columns[DEFAULT_LAYOUT_SLOT].count() == 0
