"""Main window hosting the tabbed editor and the tabset commands."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Coroutine, Optional

from PySide6.QtCore import QByteArray
from PySide6.QtGui import QAction, QCloseEvent, QKeySequence
from PySide6.QtWidgets import QApplication, QFileDialog, QMainWindow, QPushButton

from ..core.errors import InvalidOperation
from ..core.manager import TabManager
from ..editor.surface import WorkspaceEditorSurface
from ..editor.tabbed_editor import TabbedEditorWidget
from ..editor.workspace import DocumentWorkspace
from ..services.settings import Settings, SettingsStore
from .commands import TabsetCommands
from .models import TABSET_COMMANDS
from .qt_prompter import QtPrompter
from .status import StatusIndicator

__all__ = ["TabsetWindow", "WindowContext", "WINDOW_APP_NAME"]

_LOGGER = logging.getLogger(__name__)

WINDOW_APP_NAME = "Tabset"
_RECENT_FILES_LIMIT = 10


@dataclass(slots=True)
class WindowContext:
    """Everything the window needs, built by :func:`tabset.app.main`."""

    settings: Settings
    workspace: DocumentWorkspace
    surface: WorkspaceEditorSurface
    manager: TabManager
    status: StatusIndicator
    settings_store: Optional[SettingsStore] = None


class TabsetWindow(QMainWindow):
    """Editor window with a "Tabsets" menu and a status-bar indicator."""

    def __init__(self, context: WindowContext) -> None:
        super().__init__()
        self._context = context
        self._pending_tasks: set[asyncio.Future[Any]] = set()
        self._prompter = QtPrompter(self)
        self._commands = TabsetCommands(context.manager, self._prompter)
        self._actions: dict[str, QAction] = {}

        self.setWindowTitle(WINDOW_APP_NAME)
        self._editor = TabbedEditorWidget(context.workspace, self)
        self.setCentralWidget(self._editor)

        self._status_button = QPushButton(self)
        self._status_button.setFlat(True)
        self._status_button.clicked.connect(lambda: self._run_command("tabset.menu"))
        self.statusBar().addPermanentWidget(self._status_button)
        context.status.add_listener(self._update_status)
        self._update_status(context.status.text, context.status.tooltip)

        self._build_menus()
        self._restore_geometry(context.settings.window_geometry)

    @property
    def commands(self) -> TabsetCommands:
        return self._commands

    @property
    def editor(self) -> TabbedEditorWidget:
        return self._editor

    # ------------------------------------------------------------------
    # Menus
    # ------------------------------------------------------------------
    def _build_menus(self) -> None:
        menu_bar = self.menuBar()

        file_menu = menu_bar.addMenu("&File")
        open_action = QAction("&Open…", self)
        open_action.setShortcut(QKeySequence.StandardKey.Open)
        open_action.triggered.connect(self._open_file_dialog)
        file_menu.addAction(open_action)
        file_menu.addSeparator()
        quit_action = QAction("&Quit", self)
        quit_action.setShortcut(QKeySequence.StandardKey.Quit)
        quit_action.triggered.connect(self.close)
        file_menu.addAction(quit_action)

        tabset_menu = menu_bar.addMenu("&Tabsets")
        for command in TABSET_COMMANDS:
            action = QAction(command.label, self)
            action.setStatusTip(command.description)
            if command.shortcut:
                action.setShortcut(QKeySequence(command.shortcut))
            action.triggered.connect(lambda _checked=False, command_id=command.command_id: self._run_command(command_id))
            tabset_menu.addAction(action)
            self._actions[command.command_id] = action

    # ------------------------------------------------------------------
    # Command dispatch
    # ------------------------------------------------------------------
    def _run_command(self, command_id: str) -> None:
        if self._commands.busy:
            _LOGGER.debug("Ignoring %s while another tabset command is running", command_id)
            return
        callback = self._commands.command_map().get(command_id)
        if callback is None:
            _LOGGER.warning("Unknown tabset command: %s", command_id)
            return
        self._schedule(callback())

    def _schedule(self, coro: Coroutine[Any, Any, Any]) -> None:
        task = asyncio.ensure_future(coro)
        self._pending_tasks.add(task)
        task.add_done_callback(self._on_task_done)

    def _on_task_done(self, task: asyncio.Future[Any]) -> None:
        self._pending_tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            _LOGGER.error("Tabset command failed", exc_info=exc)
            self._prompter.show_error(str(exc) or exc.__class__.__name__)

    def _open_file_dialog(self) -> None:
        path, _filter = QFileDialog.getOpenFileName(self, "Open file")
        if not path:
            return
        self._schedule(self._context.surface.open_document(Path(path).as_uri()))
        recent = [entry for entry in self._context.settings.recent_files if entry != path]
        self._context.settings.recent_files = [path, *recent][:_RECENT_FILES_LIMIT]

    def _update_status(self, text: str, tooltip: str) -> None:
        self._status_button.setText(text)
        self._status_button.setToolTip(tooltip)

    # ------------------------------------------------------------------
    # Window lifecycle
    # ------------------------------------------------------------------
    def _restore_geometry(self, encoded: str | None) -> None:
        if not encoded:
            return
        try:
            self.restoreGeometry(QByteArray.fromBase64(encoded.encode("ascii")))
        except (UnicodeEncodeError, ValueError) as exc:
            _LOGGER.debug("Ignoring stored window geometry: %s", exc)

    def closeEvent(self, event: QCloseEvent) -> None:  # noqa: N802 - Qt API
        try:
            self._context.manager.snapshot_active()
        except InvalidOperation as exc:
            _LOGGER.warning("Keeping the stored tabsets unchanged: %s", exc)
        settings = self._context.settings
        settings.window_geometry = bytes(self.saveGeometry().toBase64().data()).decode("ascii")
        store = self._context.settings_store
        if store is not None:
            try:
                store.save(settings)
            except OSError as exc:
                _LOGGER.warning("Failed to save settings: %s", exc)
        super().closeEvent(event)
        app = QApplication.instance()
        if app is not None:
            app.quit()
