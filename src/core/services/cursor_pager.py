"""Cursor-paginated list state with at-most-one fetch in flight."""

from __future__ import annotations

import logging
from typing import Any, Generic, Mapping, TypeVar

from core.domain.models import ListPage, PageResult
from core.interfaces.remote import ListQuery
from core.services.credential_tiers import CredentialTierResolver

logger = logging.getLogger(__name__)

T = TypeVar("T")


class CursorPager(Generic[T]):
    """Owns one `ListPage` and grows it page by page.

    Rules:
    - `items` only grows, in fetch-completion order; no reordering or dedupe.
    - `load_more` is a no-op while a fetch is in flight, when the cursor is
      None, or after `close()`.
    - On failure the state is left untouched and the error propagates; the
      caller may simply call `load_more` again.
    """

    def __init__(
        self,
        query: ListQuery,
        *,
        resolver: CredentialTierResolver | None = None,
        limit: int = 40,
        filter: Mapping[str, Any] | None = None,
    ) -> None:
        if limit < 1:
            raise ValueError("limit must be >= 1")
        self._query = query
        self._resolver = resolver or CredentialTierResolver()
        self._limit = limit
        self._filter = dict(filter) if filter else None
        self._page: ListPage[T] = ListPage()
        self._initialized = False
        self._closed = False
        self._fetches = 0

    @property
    def state(self) -> ListPage[T]:
        page = self._page
        return ListPage(items=list(page.items), cursor=page.cursor, loading=page.loading)

    @property
    def items(self) -> list[T]:
        return list(self._page.items)

    @property
    def cursor(self) -> str | None:
        return self._page.cursor

    @property
    def has_more(self) -> bool:
        return self._page.has_more

    @property
    def loading(self) -> bool:
        return self._page.loading

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def fetch_count(self) -> int:
        return self._fetches

    def initialize(self, seed: ListPage[T] | PageResult[T]) -> None:
        """Seed the pager (usually with a server-rendered first page).

        Only the first call has an effect.
        """

        if self._initialized:
            logger.debug("pager already initialized; ignoring seed")
            return
        self._initialized = True
        if isinstance(seed, PageResult):
            cursor = seed.next_cursor
        else:
            cursor = seed.cursor
        self._page = ListPage(items=list(seed.items), cursor=cursor, loading=False)
        logger.debug("pager seeded with %d items (has_more=%s)", len(seed.items), cursor is not None)

    async def load_more(self) -> list[T]:
        """Fetch the next page and append it. Returns the appended items."""

        page = self._page
        if self._closed or page.loading or page.cursor is None:
            return []

        cursor = page.cursor
        page.loading = True
        self._fetches += 1
        try:
            result: PageResult[T] = await self._resolver.execute_with_fallback(
                lambda tier: self._query.fetch_page(
                    tier=tier,
                    limit=self._limit,
                    cursor=cursor,
                    filter=self._filter,
                ),
                label="list page",
            )
        finally:
            page.loading = False

        if self._closed:
            logger.debug("pager closed while fetching; discarding %d items", len(result.items))
            return []

        appended = list(result.items)
        page.items.extend(appended)
        page.cursor = result.next_cursor
        logger.debug(
            "page appended: %d items (total %d, has_more=%s)",
            len(appended),
            len(page.items),
            page.has_more,
        )
        return appended

    def close(self) -> None:
        """Teardown: later results are discarded and `load_more` becomes a no-op."""

        self._closed = True
