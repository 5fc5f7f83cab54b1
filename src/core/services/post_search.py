"""In-memory filtering and ordering of community posts."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Iterable

from core.domain.models import Answer, Post

CONTENT_SEARCH_CHARS = 5000

_EPOCH = datetime.fromtimestamp(0, tz=timezone.utc)


def matches_tag(post: Post, tag: str | None) -> bool:
    if not tag:
        return True
    return tag in (post.tags or [])


def matches_query(post: Post, query: str | None) -> bool:
    """Case-insensitive substring match over title and the start of the body."""

    needle = (query or "").strip().lower()
    if not needle:
        return True
    haystack = f"{post.title or ''} {(post.content_md or '')[:CONTENT_SEARCH_CHARS]}".lower()
    return needle in haystack


def filter_posts(posts: Iterable[Post], *, query: str | None = None, tag: str | None = None) -> list[Post]:
    tag = (tag or "").strip()
    return [p for p in posts if matches_tag(p, tag) and matches_query(p, query)]


def _created_key(item: Post | Answer) -> datetime:
    created = item.created_at
    if created is None:
        return _EPOCH
    if created.tzinfo is None:
        return created.replace(tzinfo=timezone.utc)
    return created


def sort_newest_first(posts: Iterable[Post]) -> list[Post]:
    """Newest first; ties broken by higher score."""

    return sorted(posts, key=lambda p: (_created_key(p), p.score or 0), reverse=True)


def sort_answers(answers: Iterable[Answer]) -> list[Answer]:
    """Accepted answer first, then newest first."""

    newest = sorted(answers, key=_created_key, reverse=True)
    return sorted(newest, key=lambda a: not a.is_accepted)
