"""Shared pytest fixtures."""

from __future__ import annotations

import os

import pytest

from tabset.core.events import EventBus
from tabset.core.manager import TabManager
from tabset.editor.surface import WorkspaceEditorSurface

from tests.helpers import FAST_TIMEOUT, FILES, RecordingStore, make_surface

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")


@pytest.fixture
def store() -> RecordingStore:
    return RecordingStore()


@pytest.fixture
def surface() -> WorkspaceEditorSurface:
    return make_surface(FILES)


@pytest.fixture
def bus() -> EventBus:
    return EventBus()


@pytest.fixture
def manager(store: RecordingStore, surface: WorkspaceEditorSurface, bus: EventBus) -> TabManager:
    return TabManager(store, surface, bus=bus, close_timeout=FAST_TIMEOUT)


@pytest.fixture(autouse=True)
def _isolate_home(tmp_path_factory: pytest.TempPathFactory, monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep logs written by the app helpers out of the real home directory."""

    monkeypatch.setenv("TABSET_LOG_DIR", str(tmp_path_factory.mktemp("logs")))
    for name in (
        "TABSET_STATE_PATH",
        "TABSET_STORAGE_KEY",
        "TABSET_DEBUG_LOGGING",
        "TABSET_CLOSE_TIMEOUT_MS",
        "TABSET_MAX_STALLED_CLOSES",
        "TABSET_SETTINGS_PATH",
        "TABSET_DEBUG",
    ):
        monkeypatch.delenv(name, raising=False)
