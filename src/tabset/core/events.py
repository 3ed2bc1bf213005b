"""Event bus used to decouple the tabset manager from its observers.

The manager publishes state changes here; the status indicator and the
command layer subscribe. Nothing in the core holds a reference to UI objects.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass
from typing import Callable, Generic, TypeVar
from weakref import WeakMethod

logger = logging.getLogger(__name__)

E = TypeVar("E", bound="Event")

Handler = Callable[[E], None]


@dataclass(slots=True)
class Event:
    """Base class for every event published on the bus."""


@dataclass(slots=True)
class TabsetsChanged(Event):
    """Emitted after the tabset list was written to the store.

    Attributes:
        active_name: Name of the active tabset, or ``None`` while the list is
            empty during a reset.
        tabset_count: Total number of tabsets after the write.
    """

    active_name: str | None
    tabset_count: int


@dataclass(slots=True)
class TabsetActivated(Event):
    """Emitted once an activation has reopened the target's documents.

    Attributes:
        previous: Name of the tabset that was active before the switch.
        current: Name of the tabset that is now active.
        captured: Number of documents captured into ``previous``.
        failed: Number of documents that could not be reopened.
    """

    previous: str
    current: str
    captured: int
    failed: int = 0


@dataclass(slots=True)
class DocumentOpenFailed(Event):
    """Emitted when one document of a tabset could not be reopened."""

    location: str
    reason: str


@dataclass(slots=True)
class TabsetsRecovered(Event):
    """Emitted when stored tabsets were corrupt and a fresh list was seeded.

    Attributes:
        reason: Description of the corruption.
        backup_key: Store key holding the raw unreadable payload.
        backup_path: File holding the unreadable store contents, when the
            store itself could not be parsed.
    """

    reason: str
    backup_key: str | None = None
    backup_path: str | None = None


class EventBus(Generic[E]):
    """Synchronous publish/subscribe hub keyed by event type.

    Bound methods are held weakly so that a discarded observer does not keep
    receiving events; plain functions and lambdas are held strongly.

    Example::

        bus = EventBus()
        bus.subscribe(TabsetsChanged, lambda event: print(event.active_name))
        bus.publish(TabsetsChanged(active_name="work", tabset_count=2))
    """

    def __init__(self) -> None:
        self._handlers: defaultdict[type, list[_HandlerRef]] = defaultdict(list)

    def subscribe(self, event_type: type[E], handler: Handler[E]) -> None:
        self._handlers[event_type].append(_HandlerRef.create(handler))
        logger.debug("Subscribed %s to %s", _handler_name(handler), event_type.__name__)

    def unsubscribe(self, event_type: type[E], handler: Handler[E]) -> None:
        """Remove one registration of ``handler``; unknown handlers are ignored."""

        handlers = self._handlers.get(event_type)
        if not handlers:
            return
        for index, entry in enumerate(handlers):
            if entry.matches(handler):
                handlers.pop(index)
                return

    def publish(self, event: E) -> None:
        """Deliver ``event`` to every live handler, in subscription order.

        A failing handler is logged and does not prevent delivery to the
        remaining handlers.
        """

        event_type = type(event)
        handlers = self._handlers.get(event_type)
        if not handlers:
            logger.debug("Published %s with no subscribers", event_type.__name__)
            return

        dead: list[_HandlerRef] = []
        for entry in list(handlers):
            handler = entry.resolve()
            if handler is None:
                dead.append(entry)
                continue
            try:
                handler(event)
            except Exception:
                logger.exception("Handler %s failed for %s", _handler_name(handler), event_type.__name__)
        for entry in dead:
            if entry in handlers:
                handlers.remove(entry)

    def clear(self) -> None:
        self._handlers.clear()

    def handler_count(self, event_type: type[E] | None = None) -> int:
        if event_type is not None:
            return len(self._handlers.get(event_type, []))
        return sum(len(handlers) for handlers in self._handlers.values())


class _HandlerRef:
    __slots__ = ("_ref", "_is_weak")

    def __init__(self, handler_ref: WeakMethod | Handler, is_weak: bool) -> None:
        self._ref = handler_ref
        self._is_weak = is_weak

    @classmethod
    def create(cls, handler: Handler) -> "_HandlerRef":
        if hasattr(handler, "__self__") and hasattr(handler, "__func__"):
            try:
                return cls(WeakMethod(handler), is_weak=True)
            except TypeError:
                pass
        return cls(handler, is_weak=False)

    def resolve(self) -> Handler | None:
        if not self._is_weak:
            return self._ref  # type: ignore[return-value]
        return self._ref()  # type: ignore[operator]

    def matches(self, handler: Handler) -> bool:
        resolved = self.resolve()
        return resolved is not None and resolved == handler


def _handler_name(handler: Handler) -> str:
    if hasattr(handler, "__self__") and hasattr(handler, "__func__"):
        return f"{type(handler.__self__).__name__}.{handler.__func__.__name__}"
    return getattr(handler, "__name__", repr(handler))


__all__ = [
    "Event",
    "EventBus",
    "Handler",
    "TabsetsChanged",
    "TabsetActivated",
    "DocumentOpenFailed",
    "TabsetsRecovered",
]
