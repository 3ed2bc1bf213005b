"""Key-value stores that hold the serialized tabset list."""

from __future__ import annotations

import hashlib
import json
import logging
from pathlib import Path
from typing import Dict, Mapping

from ..core.surface import StoreDamage

__all__ = ["JsonFileStore", "MemoryStore", "default_state_path", "STATE_DIR"]

LOGGER = logging.getLogger(__name__)
STATE_DIR = Path.home() / ".tabset" / "workspaces"


def default_state_path(workspace_root: Path | str, *, state_dir: Path | None = None) -> Path:
    """Return the per-workspace state file for ``workspace_root``.

    Each editor workspace gets its own slot so unrelated projects never see
    each other's tabsets.
    """

    resolved = str(Path(workspace_root).expanduser().resolve())
    digest = hashlib.sha1(resolved.encode("utf-8")).hexdigest()[:16]
    return (state_dir or STATE_DIR) / f"{digest}.json"


class MemoryStore:
    """In-process store; contents vanish with the process."""

    def __init__(self, initial: Mapping[str, str] | None = None) -> None:
        self._values: Dict[str, str] = dict(initial or {})

    def get(self, key: str, default: str) -> str:
        return self._values.get(key, default)

    def set(self, key: str, value: str) -> None:
        self._values[key] = value

    def snapshot(self) -> dict[str, str]:
        return dict(self._values)


class JsonFileStore:
    """Store persisting string values in one JSON object on disk.

    Writes go through a temporary file followed by an atomic replace, so a
    crash mid-write leaves the previous contents intact. A file that cannot
    be parsed is copied aside, read as empty, and reported once through
    :meth:`take_damage`.
    """

    def __init__(self, path: Path | str) -> None:
        self._path = Path(path).expanduser()
        self._values: Dict[str, str] | None = None
        self._damage: StoreDamage | None = None

    @property
    def path(self) -> Path:
        return self._path

    def get(self, key: str, default: str) -> str:
        value = self._load().get(key)
        return value if isinstance(value, str) else default

    def set(self, key: str, value: str) -> None:
        values = self._load()
        values[key] = value
        self._write(values)
        LOGGER.debug("Stored %d bytes under %r in %s", len(value), key, self._path)

    def take_damage(self) -> StoreDamage | None:
        self._load()
        damage, self._damage = self._damage, None
        return damage

    def _load(self) -> Dict[str, str]:
        if self._values is None:
            self._values = self._read_payload()
        return self._values

    def _read_payload(self) -> Dict[str, str]:
        if not self._path.exists():
            return {}
        try:
            text = self._path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return {}
        try:
            payload = json.loads(text)
        except json.JSONDecodeError as exc:
            return self._discard(text, f"State file is not valid JSON: {exc}")
        if not isinstance(payload, dict):
            return self._discard(text, "State file does not contain a JSON object")
        return {key: value for key, value in payload.items() if isinstance(value, str)}

    def _discard(self, text: str, reason: str) -> Dict[str, str]:
        backup = self._path.with_suffix(".corrupt")
        LOGGER.warning("%s (%s); preserving it as %s", reason, self._path, backup)
        backup.write_text(text, encoding="utf-8")
        self._damage = StoreDamage(reason=reason, backup_path=str(backup))
        return {}

    def _write(self, values: Mapping[str, str]) -> None:
        body = json.dumps(dict(values), indent=2, sort_keys=True)
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self._path.with_suffix(".tmp")
        tmp_path.write_text(body, encoding="utf-8")
        tmp_path.replace(self._path)
