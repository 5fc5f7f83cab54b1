"""Community listing orchestration.

Wires the pieces a listing page needs: a server-side seed, a `CursorPager`,
an `InfiniteScrollTrigger` bound to it, and a `SearchDebouncer` whose output
filters the loaded posts in memory. Also hosts the whole-collection scan
and the single-post and post-with-answers reads, all under credential
fallback.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Mapping

from core.config import AppSettings
from core.domain.models import CredentialTier, PageResult, Post, PostThread
from core.interfaces.remote import AnswersQuery, ListQuery, PostBySlugQuery
from core.services.credential_tiers import CredentialTierResolver
from core.services.cursor_pager import CursorPager
from core.services.debouncer import SearchDebouncer
from core.services.post_search import filter_posts, sort_answers
from core.services.scroll_trigger import InfiniteScrollTrigger

logger = logging.getLogger(__name__)


async def seed_first_page(
    query: ListQuery,
    *,
    resolver: CredentialTierResolver,
    limit: int,
    filter: Mapping[str, Any] | None = None,
) -> PageResult[Any]:
    """First page as the server would render it before handing off to the pager."""

    return await resolver.execute_with_fallback(
        lambda tier: query.fetch_page(tier=tier, limit=limit, cursor=None, filter=filter),
        label="seed page",
    )


async def collect_all(
    query: ListQuery,
    *,
    resolver: CredentialTierResolver,
    limit: int = 200,
    max_pages: int = 10,
    filter: Mapping[str, Any] | None = None,
) -> PageResult[Any]:
    """Page through a collection up to `max_pages`, the whole scan per tier.

    The returned `next_cursor` is non-null when the page cap stopped the scan.
    """

    async def scan(tier: CredentialTier) -> PageResult[Any]:
        items: list[Any] = []
        cursor: str | None = None
        pages = 0
        while True:
            page = await query.fetch_page(tier=tier, limit=limit, cursor=cursor, filter=filter)
            items.extend(page.items)
            cursor = page.next_cursor
            pages += 1
            logger.debug("scan page %d under %s: %d items (total %d)", pages, tier.value, len(page.items), len(items))
            if not cursor or pages >= max_pages:
                break
        return PageResult(items=items, next_cursor=cursor)

    return await resolver.execute_with_fallback(scan, label="collection scan")


async def load_post(
    query: PostBySlugQuery,
    slug: str,
    *,
    resolver: CredentialTierResolver,
) -> Post | None:
    """Single post by slug. None after both tiers means "not found"."""

    return await resolver.execute_with_fallback(
        lambda tier: query.fetch_post_by_slug(tier=tier, slug=slug),
        label="post by slug",
    )


async def load_thread(
    posts: PostBySlugQuery,
    answers: AnswersQuery,
    slug: str,
    *,
    resolver: CredentialTierResolver,
    answer_limit: int = 100,
) -> PostThread | None:
    """Post plus its answers, both read under the tier that found the post.

    A tier that finds no post sends the whole read to the next tier; an
    answers failure counts as a failure of that tier.
    """

    async def read(tier: CredentialTier) -> PostThread | None:
        found = await posts.fetch_post_by_slug(tier=tier, slug=slug)
        if found is None:
            return None
        items = await answers.fetch_answers_for_post(tier=tier, post_id=found.id, limit=answer_limit)
        logger.debug("thread %s under %s: %d answers", slug, tier.value, len(items))
        return PostThread(post=found, answers=sort_answers(items), tier=tier)

    return await resolver.execute_with_fallback(read, label="post thread")


@dataclass
class FeedFilter:
    query: str = ""
    tag: str = ""


@dataclass
class CommunityFeed:
    """State of one community listing view.

    `visible` is always `filter_posts(pager.items, ...)`; the filter only
    changes when the debouncer fires.
    """

    query: ListQuery
    settings: AppSettings = field(default_factory=AppSettings)
    resolver: CredentialTierResolver = field(default_factory=CredentialTierResolver)
    on_change: Callable[["CommunityFeed"], None] | None = None
    on_error: Callable[[Exception], None] | None = None

    pager: CursorPager[Post] = field(init=False)
    trigger: InfiniteScrollTrigger = field(init=False)
    debouncer: SearchDebouncer[str] = field(init=False)
    active_filter: FeedFilter = field(init=False, default_factory=FeedFilter)
    mounted: bool = field(init=False, default=False)

    def __post_init__(self) -> None:
        self.pager = CursorPager(self.query, resolver=self.resolver, limit=self.settings.page_size)
        self.trigger = InfiniteScrollTrigger(
            self.pager,
            margin_px=self.settings.scroll_margin_px,
            on_loaded=lambda _items: self._notify(),
            on_error=self._report_error,
        )
        self.debouncer = SearchDebouncer(self._apply_query, delay=self.settings.search_debounce_seconds)

    async def mount(self, *, seed: PageResult[Post] | None = None, tag: str = "", query: str = "") -> None:
        """Seed the pager (fetching the first page when no seed is given) and start observing."""

        self.mounted = True
        self.active_filter = FeedFilter(query=query, tag=tag)
        if seed is None:
            seed = await seed_first_page(self.query, resolver=self.resolver, limit=self.settings.page_size)
        if not self.mounted:
            logger.debug("feed unmounted during seed; discarding")
            return
        self.pager.initialize(seed)
        self.trigger.observe()
        self._notify()

    @property
    def visible(self) -> list[Post]:
        return filter_posts(self.pager.items, query=self.active_filter.query, tag=self.active_filter.tag)

    @property
    def has_more(self) -> bool:
        return self.pager.has_more

    @property
    def loading(self) -> bool:
        return self.pager.loading

    def on_search_input(self, text: str) -> None:
        self.debouncer.push(text)

    def set_tag(self, tag: str) -> None:
        self.active_filter = FeedFilter(query=self.active_filter.query, tag=tag.strip())
        self._notify()

    def _apply_query(self, text: str) -> None:
        if not self.mounted:
            return
        self.active_filter = FeedFilter(query=text.strip(), tag=self.active_filter.tag)
        self._notify()

    def _notify(self) -> None:
        if self.mounted and self.on_change is not None:
            self.on_change(self)

    def _report_error(self, exc: Exception) -> None:
        if self.on_error is not None:
            self.on_error(exc)
        else:
            logger.error("couldn't load more posts: %s", exc)

    def close(self) -> None:
        """Unmount: stop observing, drop pending search, discard late results."""

        self.mounted = False
        self.trigger.disconnect()
        self.debouncer.close()
        self.pager.close()
