"""Application entry point: CLI parsing, settings, and the Qt session."""

from __future__ import annotations

import argparse
import asyncio
import contextlib
import json
import logging
import os
import sys
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Sequence, TextIO, cast

from .core import codec
from .core.errors import FormatError
from .core.events import EventBus
from .core.manager import TabManager
from .editor.surface import WorkspaceEditorSurface
from .editor.workspace import DocumentWorkspace
from .services.settings import ENV_FIELDS, Settings, SettingsStore, env_name, parse_flag, parse_setting
from .services.storage import JsonFileStore, default_state_path
from .ui.status import StatusIndicator
from .utils import logging as logging_utils

_LOGGER = logging.getLogger(__name__)
_APP_ENV_VARS = ("TABSET_DEBUG", "TABSET_LOG_DIR", "TABSET_SETTINGS_PATH")


@dataclass(slots=True)
class QtRuntime:
    """Container returned by :func:`create_qapp`."""

    app: Any
    loop: asyncio.AbstractEventLoop


def configure_logging(debug: bool = False, *, force: bool = False) -> None:
    level = logging.DEBUG if debug else logging.INFO
    path = logging_utils.setup_logging(level, force=force)
    _LOGGER.debug("Logging to %s (level=%s)", path, logging.getLevelName(level))
    _install_qt_message_handler()


def load_settings(
    path: Optional[Path] = None,
    *,
    store: SettingsStore | None = None,
    overrides: Mapping[str, Any] | None = None,
) -> Settings:
    """Load persisted settings or fall back to defaults."""

    active_store = store or SettingsStore(path)
    try:
        return active_store.load(overrides=overrides)
    except OSError as exc:
        _LOGGER.warning("Failed to load settings from %s: %s", active_store.path, exc)
        return Settings()


def build_state_store(settings: Settings, workspace_root: Path | str) -> JsonFileStore:
    """Return the store holding the tabsets of ``workspace_root``."""

    if settings.state_path:
        path = Path(settings.state_path).expanduser()
    else:
        path = default_state_path(workspace_root)
    _LOGGER.debug("Tabset state for %s lives in %s", workspace_root, path)
    return JsonFileStore(path)


def create_qapp(settings: Settings) -> QtRuntime:
    """Create a QApplication whose event loop also runs asyncio (qasync)."""

    try:  # Local import keeps the CLI inspection paths free of Qt.
        from PySide6.QtWidgets import QApplication
        from qasync import QEventLoop
    except ImportError as exc:  # pragma: no cover - depends on desktop stack
        raise RuntimeError("PySide6 and qasync must be installed to launch the Tabset UI.") from exc

    app = cast(Any, QApplication.instance() or QApplication(sys.argv))
    app.setApplicationName("Tabset")

    loop = QEventLoop(app)
    asyncio.set_event_loop(loop)
    app.aboutToQuit.connect(loop.stop)
    _LOGGER.debug("Qt runtime ready (close timeout=%.3fs)", settings.close_timeout)
    return QtRuntime(app=app, loop=loop)


def main(argv: Sequence[str] | None = None) -> None:
    """Entry point invoked by the `tabset` console script."""

    args, passthrough = _parse_cli_args(argv)
    sys.argv = [sys.argv[0] if sys.argv else "tabset", *passthrough]

    debug = _env_flag("TABSET_DEBUG")
    configure_logging(debug)

    settings_path = args.settings_path or os.environ.get("TABSET_SETTINGS_PATH")
    settings_store = SettingsStore(Path(settings_path).expanduser() if settings_path else None)
    try:
        cli_overrides = _parse_overrides(args.overrides)
    except ValueError as exc:
        print(f"Invalid --set override: {exc}", file=sys.stderr)
        raise SystemExit(2) from exc

    settings = load_settings(store=settings_store, overrides=cli_overrides)
    workspace_root = Path(args.workspace or os.getcwd())

    if args.dump_settings:
        _dump_settings(settings, settings_store, overrides=cli_overrides)
        return
    if args.list_tabsets:
        code = _list_tabsets(build_state_store(settings, workspace_root), settings.storage_key)
        if code:
            raise SystemExit(code)
        return

    if settings.debug_logging and not debug:
        configure_logging(True, force=True)
    _run_editor(settings, settings_store, workspace_root)


def _run_editor(settings: Settings, settings_store: SettingsStore, workspace_root: Path) -> None:
    runtime = create_qapp(settings)
    from .ui.main_window import TabsetWindow, WindowContext

    workspace = DocumentWorkspace()
    surface = WorkspaceEditorSurface(workspace)
    bus = EventBus()
    journal = logging_utils.ActivityJournal(bus)
    status = StatusIndicator(bus)
    manager = TabManager(
        build_state_store(settings, workspace_root),
        surface,
        bus=bus,
        storage_key=settings.storage_key,
        close_timeout=settings.close_timeout,
        max_stalled_closes=settings.max_stalled_closes,
    )
    active = manager.find_active()
    journal.track(active.name)
    status.update(active.name, len(manager.tabsets))
    _LOGGER.info("Workspace %s opened with %d tabset(s)", workspace_root, len(manager.tabsets))

    window = TabsetWindow(
        WindowContext(
            settings=settings,
            workspace=workspace,
            surface=surface,
            manager=manager,
            status=status,
            settings_store=settings_store,
        )
    )
    window.show()

    loop = runtime.loop
    restore = loop.create_task(manager.restore_active())
    try:
        loop.run_forever()
    except KeyboardInterrupt:  # pragma: no cover - manual shutdown path
        _LOGGER.info("Shutdown requested by user.")
    finally:
        if not restore.done():
            restore.cancel()
        _drain_event_loop(loop)
        loop.close()


def _env_flag(name: str, *, default: bool = False) -> bool:
    value = os.environ.get(name)
    if value is None:
        return default
    try:
        return parse_flag(value)
    except ValueError:
        _LOGGER.warning("Ignoring %s=%r; expected a boolean", name, value)
        return default


def _drain_event_loop(loop: asyncio.AbstractEventLoop) -> None:
    """Cancel outstanding tasks and shutdown async machinery before closing."""

    if loop.is_closed():
        return

    async def _cleanup() -> None:
        current_task = None
        with contextlib.suppress(RuntimeError):
            current_task = asyncio.current_task(loop=loop)

        tasks = [task for task in asyncio.all_tasks(loop) if not task.done() and task is not current_task]
        if tasks:
            _LOGGER.debug("Canceling %s pending asyncio task(s) before shutdown.", len(tasks))
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)

        with contextlib.suppress(RuntimeError, NotImplementedError):
            await loop.shutdown_asyncgens()

    try:
        loop.run_until_complete(_cleanup())
    except RuntimeError as exc:  # pragma: no cover - loop already stopping
        _LOGGER.debug("Unable to drain asyncio loop: %s", exc)


def _install_qt_message_handler() -> None:
    """Route Qt's own warnings into the ``PySide6`` logger."""

    try:
        from PySide6.QtCore import QtMsgType, qInstallMessageHandler
    except ImportError:  # pragma: no cover - Qt libraries missing on this host
        return

    levels = {
        QtMsgType.QtDebugMsg: logging.DEBUG,
        QtMsgType.QtInfoMsg: logging.INFO,
        QtMsgType.QtWarningMsg: logging.WARNING,
        QtMsgType.QtCriticalMsg: logging.ERROR,
        QtMsgType.QtFatalMsg: logging.CRITICAL,
    }

    def _handler(mode, _context, message):  # type: ignore[no-untyped-def]
        logging.getLogger("PySide6").log(levels.get(mode, logging.INFO), message)

    qInstallMessageHandler(_handler)


def _parse_cli_args(argv: Sequence[str] | None) -> tuple[argparse.Namespace, list[str]]:
    parser = argparse.ArgumentParser(
        prog="tabset",
        description="Launch the Tabset editor or inspect its saved state.",
    )
    inspect = parser.add_mutually_exclusive_group()
    inspect.add_argument(
        "--dump-settings",
        action="store_true",
        help="Print the effective settings and exit.",
    )
    inspect.add_argument(
        "--list-tabsets",
        action="store_true",
        help="Print the saved tabsets of the workspace and exit.",
    )
    parser.add_argument(
        "--workspace",
        metavar="DIR",
        help="Workspace root whose tabsets are used (defaults to the current directory).",
    )
    parser.add_argument(
        "--settings-path",
        metavar="PATH",
        help="Use PATH instead of ~/.tabset/settings.json.",
    )
    parser.add_argument(
        "--set",
        dest="overrides",
        metavar="KEY=VALUE",
        action="append",
        default=[],
        help="Override one setting for this run (repeatable), e.g. close_timeout_ms=500.",
    )
    return parser.parse_known_args(argv)


def _parse_overrides(items: Sequence[str]) -> Dict[str, Any]:
    """Turn ``KEY=VALUE`` entries into typed setting values."""

    overrides: Dict[str, Any] = {}
    for entry in items:
        key, separator, raw_value = entry.partition("=")
        if not separator:
            raise ValueError(f"Override '{entry}' must use KEY=VALUE syntax.")
        overrides[key.strip()] = parse_setting(key.strip(), raw_value)
    return overrides


def _dump_settings(
    settings: Settings,
    store: SettingsStore,
    *,
    overrides: Mapping[str, Any],
    stream: TextIO | None = None,
) -> None:
    destination = stream or sys.stdout
    output = {
        "settings": asdict(settings),
        "meta": {
            "path": str(store.path),
            "cli_overrides": sorted(overrides),
            "environment_variables": _active_env_overrides(),
        },
    }
    json.dump(output, destination, indent=2)
    destination.write("\n")


def _list_tabsets(store: JsonFileStore, storage_key: str, *, stream: TextIO | None = None) -> int:
    """Print one line per saved tabset; the active one is starred."""

    destination = stream or sys.stdout
    raw = store.get(storage_key, "[]")
    damage = store.take_damage()
    if damage is not None:
        print(f"Saved tabsets in {store.path} are unreadable: {damage.reason}", file=sys.stderr)
        return 1
    try:
        tabsets = codec.loads_tabsets(raw)
    except FormatError as exc:
        print(f"Saved tabsets in {store.path} are unreadable: {exc}", file=sys.stderr)
        return 1
    if not tabsets:
        destination.write("No saved tabsets.\n")
        return 0
    for tabset in tabsets:
        marker = "*" if tabset.active else " "
        destination.write(f"{marker} {tabset.name} ({tabset.describe()})\n")
    return 0


def _active_env_overrides() -> list[str]:
    names = [env_name(field_name) for field_name in ENV_FIELDS] + list(_APP_ENV_VARS)
    return sorted(name for name in names if name in os.environ)
