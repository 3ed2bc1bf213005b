"""Core domain types: tabs, tabsets, their codec, and the tabset manager."""

from .errors import AdapterFailure, FormatError, InvalidOperation, InvariantViolation, TabsetError
from .events import DocumentOpenFailed, EventBus, TabsetActivated, TabsetsChanged, TabsetsRecovered
from .manager import ActivationResult, TabManager
from .models import CursorPosition, DocumentSnapshot, Tab, TabSet
from .surface import DamageReportingStore, EditorSurface, KeyValueStore, StoreDamage

__all__ = [
    # Models
    "CursorPosition",
    "DocumentSnapshot",
    "Tab",
    "TabSet",
    # Manager
    "TabManager",
    "ActivationResult",
    # Adapter contracts
    "EditorSurface",
    "KeyValueStore",
    "DamageReportingStore",
    "StoreDamage",
    # Events
    "EventBus",
    "TabsetsChanged",
    "TabsetActivated",
    "DocumentOpenFailed",
    "TabsetsRecovered",
    # Errors
    "TabsetError",
    "FormatError",
    "InvariantViolation",
    "InvalidOperation",
    "AdapterFailure",
]
