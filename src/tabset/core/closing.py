"""Capture-and-close loop run at the start of every activation.

Editor hosts give no way to close a document and wait for the close to
finish. Each close is therefore followed by a wait that ends on whichever
comes first: the host reporting a new (non-``None``) active document, or a
timeout.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from .errors import AdapterFailure
from .models import Tab
from .surface import EditorSurface

__all__ = ["DEFAULT_CLOSE_TIMEOUT", "close_active_document", "capture_and_close"]

LOGGER = logging.getLogger(__name__)

DEFAULT_CLOSE_TIMEOUT = 0.2


async def close_active_document(surface: EditorSurface, *, timeout: float = DEFAULT_CLOSE_TIMEOUT) -> bool:
    """Request a close of the focused document and wait for it to settle.

    Returns ``True`` when the host confirmed the change and ``False`` when
    the timeout fired first. Both the timer and the listener are removed
    before returning.
    """

    loop = asyncio.get_running_loop()
    settled: asyncio.Future[bool] = loop.create_future()

    def _resolve(confirmed: bool) -> None:
        if not settled.done():
            settled.set_result(confirmed)

    def _on_active_changed(handle: Any) -> None:
        # A ``None`` fires right after each close, before the host focuses the
        # next document. If ``None`` is the final state the timeout covers it.
        if handle is not None:
            _resolve(True)

    timer = loop.call_later(timeout, _resolve, False)
    dispose = surface.on_active_document_changed(_on_active_changed)
    try:
        try:
            await surface.close_active_document()
        except AdapterFailure as exc:
            LOGGER.debug("Close request failed, waiting for timeout: %s", exc)
        return await settled
    finally:
        timer.cancel()
        dispose()


async def capture_and_close(
    surface: EditorSurface,
    *,
    timeout: float = DEFAULT_CLOSE_TIMEOUT,
    max_stalled_closes: int = 3,
) -> list[Tab]:
    """Snapshot every open document while closing them one by one.

    Each document is captured once, when it first has focus. If
    ``max_stalled_closes`` close attempts in a row leave the open-document
    list unchanged, the loop stops and the remaining documents stay open.
    """

    captured: list[Tab] = []
    seen: list[Any] = []
    stalled = 0
    while True:
        active = surface.active_document()
        open_documents = list(surface.list_open_documents())
        if active is None and not open_documents:
            break
        if active is not None and not any(handle is active for handle in seen):
            seen.append(active)
            captured.append(Tab.capture(surface.capture_state(active)))

        before = [id(handle) for handle in open_documents]
        confirmed = await close_active_document(surface, timeout=timeout)
        after = [id(handle) for handle in surface.list_open_documents()]
        if after == before and surface.active_document() is active:
            stalled += 1
            if stalled >= max(1, max_stalled_closes):
                LOGGER.warning(
                    "Editor did not close %d document(s) after %d attempts; continuing without them",
                    len(after),
                    stalled,
                )
                break
        else:
            stalled = 0
        LOGGER.debug("Close settled (confirmed=%s, remaining=%d)", confirmed, len(after))

    LOGGER.debug("Captured %d document(s) while closing", len(captured))
    return captured
