"""Service layer helpers (settings, state stores)."""

from .settings import Settings, SettingsStore
from .storage import JsonFileStore, MemoryStore, default_state_path

__all__ = [
    "Settings",
    "SettingsStore",
    "JsonFileStore",
    "MemoryStore",
    "default_state_path",
]
