"""Logging setup for the tabset application.

Every line carries the name of the active tabset, which is kept current by an
:class:`ActivityJournal` subscribed to the manager's event bus. The journal
also writes switches, reopen failures, and store recoveries to the
``tabset.activity`` logger, so the log reads as a history of the session.
"""

from __future__ import annotations

import logging
import logging.handlers
import os
from pathlib import Path

from ..core.events import DocumentOpenFailed, EventBus, TabsetActivated, TabsetsChanged, TabsetsRecovered

__all__ = ["ActivityJournal", "ACTIVITY_LOGGER", "LOG_FILE_NAME", "setup_logging", "get_log_path"]

ACTIVITY_LOGGER = "tabset.activity"
LOG_FILE_NAME = "tabset.log"
_DEFAULT_LOG_DIR = Path.home() / ".tabset" / "logs"
_LOG_FORMAT = "%(asctime)s %(levelname)-7s [%(tabset)s] %(name)s: %(message)s"
_QUIET_LOGGERS: tuple[str, ...] = ("asyncio", "qasync")
_NO_TABSET = "-"
_LOG_PATH: Path | None = None


class ActiveTabsetFilter(logging.Filter):
    """Stamps records with the active tabset name for ``%(tabset)s``."""

    def __init__(self) -> None:
        super().__init__()
        self.tabset = _NO_TABSET

    def filter(self, record: logging.LogRecord) -> bool:
        record.tabset = self.tabset
        return True


_ACTIVE_TABSET = ActiveTabsetFilter()


def setup_logging(
    level: int = logging.INFO,
    *,
    log_dir: Path | str | None = None,
    console: bool = True,
    force: bool = False,
) -> Path:
    """Send records to ``tabset.log`` (rotated) and optionally to stderr.

    The directory comes from ``log_dir``, then ``TABSET_LOG_DIR``, then
    ``~/.tabset/logs``. Later calls are no-ops unless ``force`` is set.
    """

    global _LOG_PATH
    if _LOG_PATH is not None and not force:
        return _LOG_PATH

    directory = Path(log_dir or os.environ.get("TABSET_LOG_DIR") or _DEFAULT_LOG_DIR).expanduser()
    directory.mkdir(parents=True, exist_ok=True)
    log_path = directory / LOG_FILE_NAME

    handlers: list[logging.Handler] = [
        logging.handlers.RotatingFileHandler(log_path, maxBytes=512_000, backupCount=2, encoding="utf-8")
    ]
    if console:
        handlers.append(logging.StreamHandler())
    formatter = logging.Formatter(_LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")
    for handler in handlers:
        handler.setFormatter(formatter)
        handler.addFilter(_ACTIVE_TABSET)

    logging.basicConfig(level=level, handlers=handlers, force=True)
    logging.captureWarnings(True)
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))

    _LOG_PATH = log_path
    return log_path


def get_log_path() -> Path | None:
    return _LOG_PATH


class ActivityJournal:
    """Logs tabset activity published on ``bus``.

    The bus holds bound methods weakly, so the caller keeps the journal alive
    for as long as entries should be written.
    """

    def __init__(self, bus: EventBus, *, active_name: str | None = None) -> None:
        self._logger = logging.getLogger(ACTIVITY_LOGGER)
        bus.subscribe(TabsetsChanged, self._on_changed)
        bus.subscribe(TabsetActivated, self._on_activated)
        bus.subscribe(DocumentOpenFailed, self._on_open_failed)
        bus.subscribe(TabsetsRecovered, self._on_recovered)
        if active_name is not None:
            self.track(active_name)

    def track(self, active_name: str | None) -> None:
        """Set the tabset name stamped on subsequent records."""

        _ACTIVE_TABSET.tabset = active_name or _NO_TABSET

    def _on_changed(self, event: TabsetsChanged) -> None:
        # Reset publishes an empty list before reseeding; keep the last name.
        if event.active_name is not None:
            self.track(event.active_name)

    def _on_activated(self, event: TabsetActivated) -> None:
        self._logger.info(
            "Switched from %r to %r: %d document(s) captured, %d failed to reopen",
            event.previous,
            event.current,
            event.captured,
            event.failed,
        )

    def _on_open_failed(self, event: DocumentOpenFailed) -> None:
        self._logger.warning("Could not reopen %s: %s", event.location, event.reason)

    def _on_recovered(self, event: TabsetsRecovered) -> None:
        self._logger.warning(
            "Stored tabsets were replaced by a fresh list (%s); raw data kept under %r",
            event.reason,
            event.backup_key or event.backup_path,
        )
