"""Debounced delivery of rapidly changing input (search box keystrokes)."""

from __future__ import annotations

import asyncio
import logging
from typing import Callable, Generic, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

_UNSET = object()


class SearchDebouncer(Generic[T]):
    """Collapses a burst of values into one delayed callback.

    Every `push` restarts the window; the callback only sees the latest
    value once the input has been quiet for `delay` seconds. Timers run on
    the current asyncio loop, so `push` must be called from inside it.
    """

    def __init__(self, callback: Callable[[T], None], *, delay: float = 0.25) -> None:
        if delay < 0:
            raise ValueError("delay must be >= 0")
        self._callback = callback
        self._delay = delay
        self._timer: asyncio.TimerHandle | None = None
        self._pending: object = _UNSET
        self._closed = False

    @property
    def pending(self) -> bool:
        return self._timer is not None

    def push(self, value: T) -> None:
        if self._closed:
            return
        # Atomic swap: drop the old timer before arming the new one.
        old_timer = self._timer
        self._timer = None
        if old_timer is not None:
            old_timer.cancel()
        self._pending = value
        loop = asyncio.get_running_loop()
        self._timer = loop.call_later(self._delay, self._fire)

    def _fire(self) -> None:
        self._timer = None
        value = self._pending
        self._pending = _UNSET
        if value is _UNSET or self._closed:
            return
        logger.debug("debounced value applied: %r", value)
        self._callback(value)  # type: ignore[arg-type]

    def flush(self) -> None:
        """Apply the pending value now (e.g. the user pressed Enter)."""

        timer = self._timer
        if timer is None:
            return
        timer.cancel()
        self._fire()

    def cancel(self) -> None:
        timer = self._timer
        self._timer = None
        self._pending = _UNSET
        if timer is not None:
            timer.cancel()

    def close(self) -> None:
        self.cancel()
        self._closed = True
