"""Per-key debounced scheduling on the running event loop."""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Dict, Optional, Set

logger = logging.getLogger(__name__)

DEFAULT_DELAY_SECONDS = 0.3

Action = Callable[[], Awaitable[None]]


class Debouncer:
    """
    Coalesces bursts of ``schedule`` calls into one action run per key.

    Each call for a key resets that key's timer; the action runs once, ``delay`` after the
    last call, and must read whatever live state it needs when it runs. Keys never
    interact. An action that already started is never cancelled.
    """

    def __init__(self, *, delay_seconds: float = DEFAULT_DELAY_SECONDS) -> None:
        self._delay_seconds = delay_seconds
        self._timers: Dict[str, asyncio.TimerHandle] = {}
        self._running: Set[asyncio.Task] = set()

    @property
    def delay_seconds(self) -> float:
        return self._delay_seconds

    def schedule(self, key: str, action: Action, *, delay_seconds: Optional[float] = None) -> None:
        loop = asyncio.get_running_loop()
        existing = self._timers.pop(key, None)
        if existing is not None:
            existing.cancel()
        delay = self._delay_seconds if delay_seconds is None else delay_seconds
        self._timers[key] = loop.call_later(delay, self._fire, key, action)

    def is_pending(self, key: str) -> bool:
        return key in self._timers

    def cancel(self, key: str) -> None:
        handle = self._timers.pop(key, None)
        if handle is not None:
            handle.cancel()

    def cancel_all(self) -> None:
        for handle in self._timers.values():
            handle.cancel()
        self._timers.clear()

    async def drain(self) -> None:
        """Wait for actions that already fired to finish."""
        while self._running:
            await asyncio.gather(*list(self._running), return_exceptions=True)

    def _fire(self, key: str, action: Action) -> None:
        self._timers.pop(key, None)
        task = asyncio.create_task(self._run(key, action))
        self._running.add(task)
        task.add_done_callback(self._running.discard)

    async def _run(self, key: str, action: Action) -> None:
        try:
            await action()
        except Exception:
            logger.exception("Debounced action failed. key=%s", key)
