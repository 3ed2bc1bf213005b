"""JSON codec for tabs and tabsets.

Records written by this module look like::

    [
      {"name": "work", "active": true,
       "tabs": [{"location": "file:///a.py",
                 "position": {"line": 3, "character": 0},
                 "layoutSlot": 1}]}
    ]

Readers ignore unknown keys. Earlier releases stored every tabset (and every
tab inside it) as a nested JSON *string* and named the tab fields ``uri`` and
``viewColumn``; that layout is still accepted on read and rewritten in the
current shape on the next persist.
"""

from __future__ import annotations

import json
from typing import Any, Iterable, Mapping

from .errors import FormatError
from .models import CursorPosition, Tab, TabSet

__all__ = [
    "tab_to_record",
    "tab_from_record",
    "tabset_to_record",
    "tabset_from_record",
    "dumps_tab",
    "loads_tab",
    "dumps_tabset",
    "loads_tabset",
    "dumps_tabsets",
    "loads_tabsets",
]


# ------------------------------------------------------------------
# Record conversion
# ------------------------------------------------------------------
def tab_to_record(tab: Tab) -> dict[str, Any]:
    record: dict[str, Any] = {
        "location": tab.location,
        "position": {"line": tab.cursor.line, "character": tab.cursor.character},
    }
    if tab.layout_slot is not None:
        record["layoutSlot"] = tab.layout_slot
    return record


def tab_from_record(payload: Any) -> Tab:
    record = _coerce_record(payload, "tab")
    location = record.get("location", record.get("uri"))
    # Locations are opaque; an untitled buffer may report an empty one.
    if not isinstance(location, str):
        raise FormatError("Tab record is missing a 'location' string")

    position = record.get("position")
    if not isinstance(position, Mapping):
        raise FormatError(f"Tab record for {location!r} is missing a 'position' object")
    line = _require_int(position, "line", location)
    character = _require_int(position, "character", location)
    try:
        cursor = CursorPosition(line, character)
    except ValueError as exc:
        raise FormatError(str(exc)) from exc

    slot_value = record.get("layoutSlot", record.get("viewColumn"))
    layout_slot: int | None = None
    if slot_value is not None:
        if isinstance(slot_value, bool) or not isinstance(slot_value, int):
            raise FormatError(f"Tab record for {location!r} has a non-integer layout slot: {slot_value!r}")
        # Non-positive columns were editor-relative placeholders; they carry no slot.
        if slot_value > 0:
            layout_slot = slot_value
    return Tab(location=location, cursor=cursor, layout_slot=layout_slot)


def tabset_to_record(tabset: TabSet) -> dict[str, Any]:
    return {
        "name": tabset.name,
        "active": tabset.active,
        "tabs": [tab_to_record(tab) for tab in tabset.tabs],
    }


def tabset_from_record(payload: Any) -> TabSet:
    record = _coerce_record(payload, "tabset")
    name = record.get("name")
    if not isinstance(name, str) or not name:
        raise FormatError("Tabset record is missing a non-empty 'name' string")
    active = record.get("active")
    if not isinstance(active, bool):
        raise FormatError(f"Tabset {name!r} is missing a boolean 'active' flag")
    tabs = record.get("tabs")
    if not isinstance(tabs, list):
        raise FormatError(f"Tabset {name!r} is missing a 'tabs' array")
    return TabSet(name=name, active=active, tabs=[tab_from_record(entry) for entry in tabs])


# ------------------------------------------------------------------
# Text helpers
# ------------------------------------------------------------------
def dumps_tab(tab: Tab) -> str:
    return json.dumps(tab_to_record(tab))


def loads_tab(text: str) -> Tab:
    return tab_from_record(_parse(text, "tab"))


def dumps_tabset(tabset: TabSet) -> str:
    return json.dumps(tabset_to_record(tabset))


def loads_tabset(text: str) -> TabSet:
    return tabset_from_record(_parse(text, "tabset"))


def dumps_tabsets(tabsets: Iterable[TabSet]) -> str:
    """Serialize the full tabset list for the key-value store."""

    return json.dumps([tabset_to_record(tabset) for tabset in tabsets])


def loads_tabsets(text: str) -> list[TabSet]:
    """Parse a stored tabset list, raising :class:`FormatError` when corrupt."""

    payload = _parse(text, "tabset list")
    if not isinstance(payload, list):
        raise FormatError(f"Expected a JSON array of tabsets, got {type(payload).__name__}")
    return [tabset_from_record(entry) for entry in payload]


# ------------------------------------------------------------------
# Internal helpers
# ------------------------------------------------------------------
def _parse(text: str, what: str) -> Any:
    if not isinstance(text, str):
        raise FormatError(f"Serialized {what} must be text, got {type(text).__name__}")
    try:
        return json.loads(text)
    except json.JSONDecodeError as exc:
        raise FormatError(f"Serialized {what} is not valid JSON: {exc}") from exc


def _coerce_record(payload: Any, what: str) -> Mapping[str, Any]:
    if isinstance(payload, str):
        payload = _parse(payload, what)
    if not isinstance(payload, Mapping):
        raise FormatError(f"Expected a {what} object, got {type(payload).__name__}")
    return payload


def _require_int(position: Mapping[str, Any], key: str, location: str) -> int:
    value = position.get(key)
    if isinstance(value, bool) or not isinstance(value, int):
        raise FormatError(f"Tab record for {location!r} has a non-numeric position {key!r}: {value!r}")
    return value
