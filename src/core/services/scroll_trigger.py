"""Infinite scroll: load the next page when a sentinel nears the viewport."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable

from core.services.cursor_pager import CursorPager

logger = logging.getLogger(__name__)

DEFAULT_MARGIN_PX = 1200


def sentinel_in_range(*, sentinel_top: float, viewport_bottom: float, margin_px: float) -> bool:
    """True when the sentinel is on screen or less than `margin_px` below it."""

    return sentinel_top - viewport_bottom <= margin_px


class InfiniteScrollTrigger:
    """Calls `pager.load_more()` when the sentinel comes into (look-ahead) view.

    Fires once per visible period: after a trigger it stays disarmed until
    the load settles or the sentinel leaves the range. Nothing fires after
    `disconnect()`.
    """

    def __init__(
        self,
        pager: CursorPager[Any],
        *,
        margin_px: float = DEFAULT_MARGIN_PX,
        on_loaded: Callable[[list[Any]], None] | None = None,
        on_error: Callable[[Exception], None] | None = None,
    ) -> None:
        self._pager = pager
        self._margin_px = margin_px
        self._on_loaded = on_loaded
        self._on_error = on_error
        self._observing = False
        self._visible = False
        self._armed = True
        self._inflight: asyncio.Task[list[Any]] | None = None

    @property
    def observing(self) -> bool:
        return self._observing

    @property
    def margin_px(self) -> float:
        return self._margin_px

    @property
    def in_flight(self) -> bool:
        return self._inflight is not None

    def observe(self) -> None:
        self._observing = True

    def disconnect(self) -> None:
        self._observing = False

    def on_scroll(self, *, sentinel_top: float, viewport_bottom: float) -> asyncio.Task[list[Any]] | None:
        visible = sentinel_in_range(
            sentinel_top=sentinel_top,
            viewport_bottom=viewport_bottom,
            margin_px=self._margin_px,
        )
        return self.on_intersection(visible)

    def on_intersection(self, visible: bool) -> asyncio.Task[list[Any]] | None:
        """Observer callback. Returns the load task when one was started."""

        if not self._observing:
            return None
        self._visible = visible
        if not visible:
            self._armed = True
            return None
        if not self._armed or self._inflight is not None:
            return None
        if not self._pager.has_more or self._pager.loading:
            return None

        self._armed = False
        task = asyncio.get_running_loop().create_task(self._load())
        self._inflight = task
        return task

    async def _load(self) -> list[Any]:
        appended: list[Any] = []
        try:
            appended = await self._pager.load_more()
        except Exception as exc:
            if self._on_error is not None and self._observing:
                self._on_error(exc)
            else:
                logger.error("infinite scroll load failed: %s", exc)
        finally:
            self._inflight = None
            self._armed = True

        if appended and self._observing and self._on_loaded is not None:
            self._on_loaded(appended)
        return appended

    async def settled(self) -> None:
        """Wait for the in-flight load, if any."""

        task = self._inflight
        if task is not None:
            await task
