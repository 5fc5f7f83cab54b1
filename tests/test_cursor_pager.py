"""
CursorPager: append-only pagination with at most one fetch in flight.
"""

import asyncio

import pytest

from conftest import FakeListQuery, make_posts
from core.domain.errors import ExhaustedCredentialsError
from core.domain.models import CredentialTier, ListPage, PageResult
from core.services.cursor_pager import CursorPager

PRIMARY = CredentialTier.PRIMARY
SECONDARY = CredentialTier.SECONDARY


def seeded_pager(query, *, items=None, cursor="tok1", limit=40):
    pager = CursorPager(query, limit=limit)
    pager.initialize(ListPage(items=items if items is not None else make_posts(40), cursor=cursor))
    return pager


class TestInitialize:

    def test_seed_from_list_page(self, list_query):
        pager = seeded_pager(list_query)
        assert len(pager.items) == 40
        assert pager.cursor == "tok1"
        assert pager.has_more
        assert not pager.loading

    def test_seed_from_page_result(self, list_query):
        pager = CursorPager(list_query)
        pager.initialize(PageResult(items=make_posts(3), next_cursor=None))
        assert len(pager.items) == 3
        assert not pager.has_more

    def test_second_initialize_is_ignored(self, list_query):
        pager = seeded_pager(list_query)
        pager.initialize(ListPage(items=[], cursor=None))
        assert len(pager.items) == 40
        assert pager.cursor == "tok1"

    def test_state_is_a_snapshot(self, list_query):
        pager = seeded_pager(list_query)
        snapshot = pager.state
        snapshot.items.clear()
        assert len(pager.items) == 40

    def test_invalid_limit(self, list_query):
        with pytest.raises(ValueError):
            CursorPager(list_query, limit=0)


class TestLoadMore:

    @pytest.mark.asyncio
    async def test_appends_next_page_in_order(self, list_query):
        """40 seeded + 40 fetched with "tok1", last page: 80 items, no more."""
        first = make_posts(40)
        second = make_posts(40, start=40)
        list_query.set(PRIMARY, "tok1", PageResult(items=second, next_cursor=None))
        pager = seeded_pager(list_query, items=first)

        appended = await pager.load_more()

        assert appended == second
        assert [p.id for p in pager.items] == [p.id for p in first + second]
        assert pager.cursor is None
        assert not pager.has_more
        assert list_query.calls == [{"tier": PRIMARY, "limit": 40, "cursor": "tok1", "filter": None}]

        assert await pager.load_more() == []
        assert len(list_query.calls) == 1
        assert len(pager.items) == 80
        assert pager.has_more is False

    @pytest.mark.asyncio
    async def test_cursor_none_is_noop(self, list_query):
        pager = seeded_pager(list_query, cursor=None)

        assert await pager.load_more() == []
        assert list_query.calls == []
        assert pager.fetch_count == 0

    @pytest.mark.asyncio
    async def test_concurrent_calls_issue_one_fetch(self, list_query):
        """A second load_more while the first is pending is a no-op."""
        list_query.set(PRIMARY, "tok1", PageResult(items=make_posts(5, start=40), next_cursor="tok2"))
        list_query.gate = asyncio.Event()
        pager = seeded_pager(list_query)

        first = asyncio.ensure_future(pager.load_more())
        await asyncio.sleep(0)
        assert pager.loading
        second = await pager.load_more()
        list_query.gate.set()
        appended = await first

        assert second == []
        assert len(appended) == 5
        assert len(list_query.calls) == 1
        assert pager.fetch_count == 1
        assert len(pager.items) == 45
        assert pager.cursor == "tok2"

    @pytest.mark.asyncio
    async def test_duplicates_are_kept(self, list_query):
        seed = make_posts(2)
        list_query.set(PRIMARY, "tok1", PageResult(items=seed[:1], next_cursor=None))
        pager = seeded_pager(list_query, items=seed)

        await pager.load_more()

        assert [p.id for p in pager.items] == ["p0", "p1", "p0"]

    @pytest.mark.asyncio
    async def test_primary_failure_recovers_under_secondary(self, list_query):
        list_query.set(PRIMARY, "tok1", RuntimeError("Not Authorized"))
        list_query.set(SECONDARY, "tok1", PageResult(items=make_posts(2, start=40), next_cursor=None))
        pager = seeded_pager(list_query)

        appended = await pager.load_more()

        assert len(appended) == 2
        assert [c["tier"] for c in list_query.calls] == [PRIMARY, SECONDARY]

    @pytest.mark.asyncio
    async def test_failure_leaves_state_and_allows_retry(self, list_query):
        list_query.set(PRIMARY, "tok1", RuntimeError("down"))
        list_query.set(SECONDARY, "tok1", RuntimeError("down"))
        pager = seeded_pager(list_query)

        with pytest.raises(ExhaustedCredentialsError):
            await pager.load_more()

        assert len(pager.items) == 40
        assert pager.cursor == "tok1"
        assert not pager.loading

        list_query.set(PRIMARY, "tok1", PageResult(items=make_posts(1, start=40), next_cursor=None))
        appended = await pager.load_more()
        assert len(appended) == 1
        assert len(pager.items) == 41

    @pytest.mark.asyncio
    async def test_filter_is_forwarded(self):
        query = FakeListQuery()
        pager = CursorPager(query, limit=10, filter={"type": {"eq": "QUESTION"}})
        pager.initialize(ListPage(items=[], cursor="c"))

        await pager.load_more()

        assert query.calls[0]["filter"] == {"type": {"eq": "QUESTION"}}
        assert query.calls[0]["limit"] == 10


class TestClose:

    @pytest.mark.asyncio
    async def test_close_discards_in_flight_result(self, list_query):
        list_query.set(PRIMARY, "tok1", PageResult(items=make_posts(5, start=40), next_cursor="tok2"))
        list_query.gate = asyncio.Event()
        pager = seeded_pager(list_query)

        pending = asyncio.ensure_future(pager.load_more())
        await asyncio.sleep(0)
        pager.close()
        list_query.gate.set()

        assert await pending == []
        assert len(pager.items) == 40
        assert pager.cursor == "tok1"
        assert pager.closed

    @pytest.mark.asyncio
    async def test_load_more_after_close_is_noop(self, list_query):
        pager = seeded_pager(list_query)
        pager.close()

        assert await pager.load_more() == []
        assert list_query.calls == []
