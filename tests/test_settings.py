"""Tests for settings persistence and overrides."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from tabset.services.settings import Settings, SettingsStore, parse_setting


def test_missing_file_yields_defaults(tmp_path: Path) -> None:
    settings = SettingsStore(tmp_path / "settings.json").load()

    assert settings == Settings()
    assert settings.close_timeout == pytest.approx(0.2)


def test_save_and_load_round_trip(tmp_path: Path) -> None:
    store = SettingsStore(tmp_path / "nested" / "settings.json")
    original = Settings(close_timeout_ms=500, storage_key="custom", recent_files=["/tmp/a.py"])

    path = store.save(original)

    assert path.exists()
    assert json.loads(path.read_text(encoding="utf-8"))["version"] == 1
    assert store.load() == original


def test_unknown_keys_are_ignored(tmp_path: Path) -> None:
    path = tmp_path / "settings.json"
    path.write_text(json.dumps({"version": 1, "storage_key": "x", "theme": "dark"}), encoding="utf-8")

    assert SettingsStore(path).load().storage_key == "x"


def test_invalid_json_falls_back_to_defaults(tmp_path: Path) -> None:
    path = tmp_path / "settings.json"
    path.write_text("{oops", encoding="utf-8")

    assert SettingsStore(path).load() == Settings()


def test_legacy_payload_is_migrated(tmp_path: Path) -> None:
    path = tmp_path / "settings.json"
    path.write_text(json.dumps({"max_stalled_closes": 5}), encoding="utf-8")

    settings = SettingsStore(path).load()

    assert settings.max_stalled_closes == 5
    assert json.loads(path.read_text(encoding="utf-8"))["version"] == 1


def test_runtime_overrides_apply(tmp_path: Path) -> None:
    settings = SettingsStore(tmp_path / "settings.json").load(overrides={"close_timeout_ms": 50, "bogus": 1})

    assert settings.close_timeout_ms == 50


def test_environment_overrides(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("TABSET_STORAGE_KEY", "from-env")
    monkeypatch.setenv("TABSET_DEBUG_LOGGING", "yes")
    monkeypatch.setenv("TABSET_CLOSE_TIMEOUT_MS", "75")
    monkeypatch.setenv("TABSET_MAX_STALLED_CLOSES", "not-a-number")

    settings = SettingsStore(tmp_path / "settings.json").load(overrides={"storage_key": "from-cli"})

    assert settings.storage_key == "from-env"
    assert settings.debug_logging is True
    assert settings.close_timeout_ms == 75
    assert settings.max_stalled_closes == 3


def test_close_timeout_never_drops_below_one_millisecond() -> None:
    assert Settings(close_timeout_ms=0).close_timeout == pytest.approx(0.001)


def test_mistyped_stored_values_fall_back_to_defaults(tmp_path: Path) -> None:
    path = tmp_path / "settings.json"
    payload = {"version": 1, "close_timeout_ms": "fast", "max_stalled_closes": True, "storage_key": "kept"}
    path.write_text(json.dumps(payload), encoding="utf-8")

    settings = SettingsStore(path).load()

    assert settings.close_timeout_ms == 200
    assert settings.max_stalled_closes == 3
    assert settings.storage_key == "kept"


@pytest.mark.parametrize(
    ("name", "raw", "expected"),
    [
        ("close_timeout_ms", " 350 ", 350),
        ("debug_logging", "off", False),
        ("state_path", "none", None),
        ("state_path", "/tmp/state.json", "/tmp/state.json"),
        ("recent_files", '["/tmp/a.py"]', ["/tmp/a.py"]),
    ],
)
def test_parse_setting_converts_text(name: str, raw: str, expected: object) -> None:
    assert parse_setting(name, raw) == expected


@pytest.mark.parametrize(
    ("name", "raw"),
    [
        ("theme", "dark"),
        ("close_timeout_ms", "-5"),
        ("storage_key", "  "),
        ("debug_logging", "maybe"),
        ("recent_files", '{"a": 1}'),
    ],
)
def test_parse_setting_rejects_invalid_text(name: str, raw: str) -> None:
    with pytest.raises(ValueError):
        parse_setting(name, raw)
