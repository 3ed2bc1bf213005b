"""Status-bar text describing the active tabset."""

from __future__ import annotations

from typing import Callable

from ..core.events import EventBus, TabsetsChanged

__all__ = ["StatusIndicator", "StatusListener"]

StatusListener = Callable[[str, str], None]


class StatusIndicator:
    """Keeps the status text in sync with :class:`TabsetsChanged` events.

    ``text`` is the active tabset name and ``tooltip`` counts the others.
    Listeners receive ``(text, tooltip)`` whenever either changes.
    """

    def __init__(self, bus: EventBus, *, icon: str = "") -> None:
        self._icon = icon
        self.text: str = ""
        self.tooltip: str = ""
        self._listeners: list[StatusListener] = []
        bus.subscribe(TabsetsChanged, self._on_tabsets_changed)

    def add_listener(self, listener: StatusListener) -> None:
        self._listeners.append(listener)

    def update(self, active_name: str, tabset_count: int) -> None:
        prefix = f"{self._icon} " if self._icon else ""
        self.text = f"{prefix}{active_name}"
        others = max(0, tabset_count - 1)
        self.tooltip = f"{others} other tabset" if others == 1 else f"{others} other tabsets"
        for listener in list(self._listeners):
            listener(self.text, self.tooltip)

    def _on_tabsets_changed(self, event: TabsetsChanged) -> None:
        # Reset persists an empty list before reseeding; keep the previous text.
        if event.active_name is None:
            return
        self.update(event.active_name, event.tabset_count)
