"""Qt implementation of the :class:`~tabset.ui.models.UserPrompter` protocol."""

from __future__ import annotations

import asyncio
from typing import Any, Sequence

from PySide6.QtWidgets import (
    QAbstractItemView,
    QDialog,
    QDialogButtonBox,
    QInputDialog,
    QLineEdit,
    QListWidget,
    QListWidgetItem,
    QMessageBox,
    QVBoxLayout,
    QWidget,
)

from .models import PickItem

__all__ = ["QtPrompter"]

_ACCEPTED = QDialog.DialogCode.Accepted.value


class _PickerDialog(QDialog):
    """List picker that keeps duplicate labels distinguishable by row."""

    def __init__(
        self,
        items: Sequence[PickItem[Any]],
        *,
        title: str,
        multiple: bool,
        parent: QWidget | None = None,
    ) -> None:
        super().__init__(parent)
        self.setWindowTitle(title)
        self.setModal(True)
        self._list = QListWidget(self)
        mode = (
            QAbstractItemView.SelectionMode.MultiSelection
            if multiple
            else QAbstractItemView.SelectionMode.SingleSelection
        )
        self._list.setSelectionMode(mode)
        for item in items:
            text = f"{item.label}    {item.description}" if item.description else item.label
            QListWidgetItem(text, self._list)
        if items and not multiple:
            self._list.setCurrentRow(0)
        self._list.itemDoubleClicked.connect(lambda _item: self.accept())

        buttons = QDialogButtonBox(
            QDialogButtonBox.StandardButton.Ok | QDialogButtonBox.StandardButton.Cancel, parent=self
        )
        buttons.accepted.connect(self.accept)
        buttons.rejected.connect(self.reject)

        layout = QVBoxLayout(self)
        layout.addWidget(self._list)
        layout.addWidget(buttons)

    def selected_rows(self) -> list[int]:
        return sorted(index.row() for index in self._list.selectedIndexes())


class QtPrompter:
    """Window-modal dialogs for prompts; warnings and errors are shown without blocking.

    Prompts are opened with ``open()`` and awaited through their ``finished``
    signal, so no nested event loop runs inside the asyncio tasks that ask.
    """

    def __init__(self, parent: QWidget | None = None) -> None:
        self._parent = parent
        self._open_messages: list[QMessageBox] = []
        self._current_dialog: QDialog | None = None

    async def pick_one(self, items: Sequence[PickItem[Any]], *, title: str) -> PickItem[Any] | None:
        rows = await self._run_picker(items, title=title, multiple=False)
        if not rows:
            return None
        return items[rows[0]]

    async def pick_many(self, items: Sequence[PickItem[Any]], *, title: str) -> list[PickItem[Any]] | None:
        rows = await self._run_picker(items, title=title, multiple=True)
        if rows is None:
            return None
        return [items[row] for row in rows]

    async def ask_text(self, prompt: str, *, default: str = "") -> str | None:
        dialog = QInputDialog(self._parent)
        dialog.setWindowTitle("Tabset")
        dialog.setLabelText(prompt)
        dialog.setTextEchoMode(QLineEdit.EchoMode.Normal)
        dialog.setTextValue(default)
        if await self._finished(dialog) != _ACCEPTED:
            return None
        return dialog.textValue().strip() or None

    async def confirm(self, message: str, *, accept: str = "Yes", reject: str = "No") -> bool:
        box = QMessageBox(QMessageBox.Icon.Warning, "Tabset", message, parent=self._parent)
        accept_button = box.addButton(accept, QMessageBox.ButtonRole.AcceptRole)
        box.addButton(reject, QMessageBox.ButtonRole.RejectRole)
        await self._finished(box)
        return box.clickedButton() is accept_button

    def show_warning(self, message: str) -> None:
        self._show_message(QMessageBox.Icon.Warning, message)

    def show_error(self, message: str) -> None:
        self._show_message(QMessageBox.Icon.Critical, message)

    async def _run_picker(self, items: Sequence[PickItem[Any]], *, title: str, multiple: bool) -> list[int] | None:
        dialog = _PickerDialog(items, title=title, multiple=multiple, parent=self._parent)
        if await self._finished(dialog) != _ACCEPTED:
            return None
        return dialog.selected_rows()

    async def _finished(self, dialog: QDialog) -> int:
        """Show ``dialog`` and wait for its ``finished`` result code."""

        future: asyncio.Future[int] = asyncio.get_running_loop().create_future()

        def _on_finished(result: int) -> None:
            if not future.done():
                future.set_result(result)

        dialog.finished.connect(_on_finished)
        self._current_dialog = dialog
        dialog.open()
        try:
            return await future
        finally:
            self._current_dialog = None
            if dialog.isVisible():
                dialog.reject()
            dialog.deleteLater()

    def _show_message(self, icon: QMessageBox.Icon, message: str) -> None:
        box = QMessageBox(icon, "Tabset", message, parent=self._parent)
        box.setStandardButtons(QMessageBox.StandardButton.Ok)
        box.finished.connect(lambda _result, widget=box: self._forget_message(widget))
        self._open_messages.append(box)
        box.open()

    def _forget_message(self, box: QMessageBox) -> None:
        if box in self._open_messages:
            self._open_messages.remove(box)
        box.deleteLater()
