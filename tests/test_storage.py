"""Tests for the key-value stores holding serialized tabsets."""

from __future__ import annotations

import json
from pathlib import Path

from tabset.core.surface import KeyValueStore
from tabset.services.storage import JsonFileStore, MemoryStore, default_state_path


class TestMemoryStore:
    def test_get_set(self) -> None:
        store = MemoryStore({"a": "1"})

        store.set("b", "2")

        assert store.get("a", "") == "1"
        assert store.get("missing", "fallback") == "fallback"
        assert store.snapshot() == {"a": "1", "b": "2"}

    def test_satisfies_protocol(self) -> None:
        assert isinstance(MemoryStore(), KeyValueStore)


class TestJsonFileStore:
    def test_values_survive_a_new_instance(self, tmp_path: Path) -> None:
        path = tmp_path / "state" / "tabs.json"
        JsonFileStore(path).set("tabs", "[]")

        assert JsonFileStore(path).get("tabs", "missing") == "[]"
        assert json.loads(path.read_text(encoding="utf-8")) == {"tabs": "[]"}
        assert not path.with_suffix(".tmp").exists()

    def test_missing_file_returns_default(self, tmp_path: Path) -> None:
        assert JsonFileStore(tmp_path / "none.json").get("tabs", "[]") == "[]"

    def test_invalid_json_is_preserved(self, tmp_path: Path) -> None:
        path = tmp_path / "tabs.json"
        path.write_text("{half written", encoding="utf-8")

        store = JsonFileStore(path)

        assert store.get("tabs", "[]") == "[]"
        assert path.with_suffix(".corrupt").read_text(encoding="utf-8") == "{half written"

    def test_non_string_values_are_ignored(self, tmp_path: Path) -> None:
        path = tmp_path / "tabs.json"
        path.write_text(json.dumps({"tabs": [1, 2], "other": "ok"}), encoding="utf-8")

        store = JsonFileStore(path)

        assert store.get("tabs", "[]") == "[]"
        assert store.get("other", "") == "ok"

    def test_satisfies_protocol(self, tmp_path: Path) -> None:
        assert isinstance(JsonFileStore(tmp_path / "x.json"), KeyValueStore)


def test_default_state_path_is_stable_per_workspace(tmp_path: Path) -> None:
    first = default_state_path(tmp_path / "project", state_dir=tmp_path / "state")
    again = default_state_path(tmp_path / "project", state_dir=tmp_path / "state")
    other = default_state_path(tmp_path / "elsewhere", state_dir=tmp_path / "state")

    assert first == again
    assert first != other
    assert first.parent == tmp_path / "state"
    assert first.suffix == ".json"


def test_damage_is_reported_once(tmp_path: Path) -> None:
    path = tmp_path / "tabs.json"
    path.write_text('["not", "an", "object"]', encoding="utf-8")
    store = JsonFileStore(path)

    damage = store.take_damage()

    assert damage is not None
    assert damage.backup_path == str(path.with_suffix(".corrupt"))
    assert store.take_damage() is None


def test_healthy_file_reports_no_damage(tmp_path: Path) -> None:
    path = tmp_path / "tabs.json"
    JsonFileStore(path).set("tabs", "[]")

    assert JsonFileStore(path).take_damage() is None
