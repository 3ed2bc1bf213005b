"""Settings dataclass and persistence helpers.

Every field can be given as text, either on the command line
(``--set close_timeout_ms=350``) or, for the fields listed in
:data:`ENV_FIELDS`, through a ``TABSET_<FIELD>`` environment variable.
:func:`parse_setting` turns that text into the field's value.
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import asdict, dataclass, field, fields, replace
from pathlib import Path
from typing import Any, Callable, Dict, Mapping

__all__ = [
    "Settings",
    "SettingsStore",
    "DEFAULT_SETTINGS_PATH",
    "ENV_PREFIX",
    "ENV_FIELDS",
    "env_name",
    "parse_flag",
    "parse_setting",
]

LOGGER = logging.getLogger(__name__)

DEFAULT_SETTINGS_PATH = Path.home() / ".tabset" / "settings.json"
ENV_PREFIX = "TABSET_"
ENV_FIELDS: tuple[str, ...] = (
    "close_timeout_ms",
    "max_stalled_closes",
    "storage_key",
    "state_path",
    "debug_logging",
)
_SETTINGS_VERSION = 1
_TRUE_VALUES = frozenset({"1", "true", "yes", "on", "debug"})
_FALSE_VALUES = frozenset({"0", "false", "no", "off", "disabled"})
_NONE_VALUES = frozenset({"", "none", "null"})


@dataclass(slots=True)
class Settings:
    """User-configurable settings persisted between sessions."""

    close_timeout_ms: int = 200
    max_stalled_closes: int = 3
    storage_key: str = "tabs"
    state_path: str | None = None
    debug_logging: bool = False
    window_geometry: str | None = None
    recent_files: list[str] = field(default_factory=list)

    @property
    def close_timeout(self) -> float:
        """Close-confirmation timeout in seconds, never below 1ms."""

        return max(1, self.close_timeout_ms) / 1000.0


def env_name(field_name: str) -> str:
    return f"{ENV_PREFIX}{field_name.upper()}"


def parse_flag(raw: str) -> bool:
    lowered = raw.strip().lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    raise ValueError(f"Cannot coerce '{raw}' to a boolean.")


def _parse_count(raw: str) -> int:
    value = int(raw, 10)
    if value < 0:
        raise ValueError(f"Expected a non-negative integer, got {value}.")
    return value


def _parse_key(raw: str) -> str:
    if not raw:
        raise ValueError("Storage key must not be empty.")
    return raw


def _parse_optional(raw: str) -> str | None:
    return None if raw.lower() in _NONE_VALUES else raw


def _parse_paths(raw: str) -> list[str]:
    try:
        value = json.loads(raw or "[]")
    except json.JSONDecodeError as exc:
        raise ValueError("Path lists must be JSON arrays of strings.") from exc
    if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
        raise ValueError("Path lists must be JSON arrays of strings.")
    return value


_PARSERS: Mapping[str, Callable[[str], Any]] = {
    "close_timeout_ms": _parse_count,
    "max_stalled_closes": _parse_count,
    "storage_key": _parse_key,
    "state_path": _parse_optional,
    "debug_logging": parse_flag,
    "window_geometry": _parse_optional,
    "recent_files": _parse_paths,
}

# Types a value read from the settings file must have to be accepted.
_STORED_TYPES: Mapping[str, tuple[type, ...]] = {
    "close_timeout_ms": (int,),
    "max_stalled_closes": (int,),
    "storage_key": (str,),
    "state_path": (str, type(None)),
    "debug_logging": (bool,),
    "window_geometry": (str, type(None)),
    "recent_files": (list,),
}


def parse_setting(name: str, raw: str) -> Any:
    """Convert the text form of setting ``name``; raises ``ValueError`` when invalid."""

    parser = _PARSERS.get(name)
    if parser is None:
        raise ValueError(f"Unknown setting '{name}'.")
    return parser(raw.strip())


class SettingsStore:
    """Persistence adapter for :class:`Settings`."""

    def __init__(self, path: Path | None = None) -> None:
        self._path = path or DEFAULT_SETTINGS_PATH

    @property
    def path(self) -> Path:
        return self._path

    def load(self, *, overrides: Mapping[str, Any] | None = None) -> Settings:
        """Read the file, then apply ``overrides`` and finally the environment."""

        payload = self._read_payload()
        settings = replace(Settings(), **_accepted_values(payload, self._path))
        if payload and payload.get("version") != _SETTINGS_VERSION:
            LOGGER.info("Upgrading settings file %s to version %d", self._path, _SETTINGS_VERSION)
            self.save(settings)

        if overrides:
            known = {key: value for key, value in overrides.items() if key in _PARSERS}
            if known:
                LOGGER.debug("Applying command-line settings: %s", sorted(known))
                settings = replace(settings, **known)
        return self._apply_environment(settings)

    def save(self, settings: Settings) -> Path:
        """Persist settings to disk with atomic file writes."""

        data = asdict(settings)
        data["version"] = _SETTINGS_VERSION
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self._path.with_suffix(".tmp")
        tmp_path.write_text(json.dumps(data, indent=2, sort_keys=True), encoding="utf-8")
        tmp_path.replace(self._path)
        LOGGER.debug("Settings saved to %s", self._path)
        return self._path

    def _read_payload(self) -> Dict[str, Any]:
        try:
            payload = json.loads(self._path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return {}
        except json.JSONDecodeError as exc:
            LOGGER.warning("Settings file %s is not valid JSON: %s", self._path, exc)
            return {}
        if not isinstance(payload, dict):
            LOGGER.warning("Settings file %s does not contain an object; using defaults", self._path)
            return {}
        return payload

    def _apply_environment(self, settings: Settings) -> Settings:
        values: Dict[str, Any] = {}
        for name in ENV_FIELDS:
            raw = os.environ.get(env_name(name))
            if raw is None:
                continue
            try:
                values[name] = parse_setting(name, raw)
            except ValueError as exc:
                LOGGER.warning("Ignoring %s=%r: %s", env_name(name), raw, exc)
        if values:
            LOGGER.debug("Applying environment settings: %s", sorted(values))
            settings = replace(settings, **values)
        return settings


def _accepted_values(payload: Mapping[str, Any], path: Path) -> Dict[str, Any]:
    accepted: Dict[str, Any] = {}
    for item in fields(Settings):
        if item.name not in payload:
            continue
        value = payload[item.name]
        expected = _STORED_TYPES[item.name]
        # bool is an int subclass; only boolean fields take booleans.
        if not isinstance(value, expected) or (isinstance(value, bool) and bool not in expected):
            LOGGER.warning("Ignoring %s=%r in %s", item.name, payload[item.name], path)
            continue
        accepted[item.name] = value
    return accepted
