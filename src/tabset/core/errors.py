"""Error types raised by the tabset core.

Commands catch :class:`TabsetError` subclasses and translate them into
user-facing messages; everything else propagates as a genuine fault.
"""

from __future__ import annotations

__all__ = [
    "TabsetError",
    "FormatError",
    "InvariantViolation",
    "InvalidOperation",
    "AdapterFailure",
]


class TabsetError(Exception):
    """Base class for all tabset errors."""


class FormatError(TabsetError):
    """Persisted tab or tabset data is structurally corrupt."""


class InvariantViolation(TabsetError):
    """The manager lost its single active tabset.

    Never expected during correct operation; the only remedy offered to the
    user is a full reset.
    """

    def __init__(self, message: str | None = None) -> None:
        super().__init__(
            message
            or "No active tabset - internal error. Please reset and file a bug with how to reproduce."
        )


class InvalidOperation(TabsetError):
    """A command asked for something the manager refuses to do."""


class AdapterFailure(TabsetError):
    """The editor surface failed to open or close a document.

    Attributes:
        location: The document location involved, when known.
    """

    def __init__(self, message: str, *, location: str | None = None) -> None:
        super().__init__(message)
        self.location = location
