"""
SearchDebouncer: bursts of input collapse into one delayed callback.
"""

import asyncio

import pytest

from core.services.debouncer import SearchDebouncer


DELAY = 0.1


class TestSearchDebouncer:

    @pytest.mark.asyncio
    async def test_burst_delivers_only_last_value(self):
        """Five quick keystrokes produce one callback with the final text."""
        seen = []
        debouncer = SearchDebouncer(seen.append, delay=DELAY)

        for text in ["d", "dr", "dri", "driv", "drive"]:
            debouncer.push(text)
            await asyncio.sleep(DELAY / 10)

        assert seen == []
        await asyncio.sleep(DELAY * 3)
        assert seen == ["drive"]
        assert not debouncer.pending

    @pytest.mark.asyncio
    async def test_quiet_gaps_deliver_each_value(self):
        seen = []
        debouncer = SearchDebouncer(seen.append, delay=DELAY)

        debouncer.push("a")
        await asyncio.sleep(DELAY * 3)
        debouncer.push("b")
        await asyncio.sleep(DELAY * 3)

        assert seen == ["a", "b"]

    @pytest.mark.asyncio
    async def test_flush_applies_pending_value_immediately(self):
        seen = []
        debouncer = SearchDebouncer(seen.append, delay=10)

        debouncer.push("pricing")
        assert debouncer.pending
        debouncer.flush()

        assert seen == ["pricing"]
        assert not debouncer.pending

    @pytest.mark.asyncio
    async def test_flush_without_pending_is_noop(self):
        seen = []
        debouncer = SearchDebouncer(seen.append, delay=DELAY)
        debouncer.flush()
        assert seen == []

    @pytest.mark.asyncio
    async def test_cancel_drops_pending_value(self):
        seen = []
        debouncer = SearchDebouncer(seen.append, delay=DELAY)

        debouncer.push("x")
        debouncer.cancel()
        await asyncio.sleep(DELAY * 3)

        assert seen == []

    @pytest.mark.asyncio
    async def test_close_stops_future_deliveries(self):
        """After teardown, pending and later values never reach the callback."""
        seen = []
        debouncer = SearchDebouncer(seen.append, delay=DELAY)

        debouncer.push("before")
        debouncer.close()
        debouncer.push("after")
        await asyncio.sleep(DELAY * 3)

        assert seen == []
        assert not debouncer.pending

    def test_negative_delay_rejected(self):
        with pytest.raises(ValueError):
            SearchDebouncer(lambda _v: None, delay=-1)
