"""Contributor leaderboard built from full scans of posts, answers and profiles."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Iterable

from core.domain.errors import ExhaustedCredentialsError
from core.domain.models import Answer, Leaderboard, LeaderboardRow, Post, UserProfile
from core.interfaces.remote import ListQuery
from core.services.community_feed import collect_all
from core.services.credential_tiers import CredentialTierResolver

logger = logging.getLogger(__name__)


def display_name(owner: str, profiles: dict[str, UserProfile]) -> str:
    profile = profiles.get(owner)
    if profile is not None and profile.username:
        return profile.username
    return f"user_{owner[:6]}"


def build_rows(
    posts: Iterable[Post],
    answers: Iterable[Answer],
    profiles: Iterable[UserProfile] = (),
) -> list[LeaderboardRow]:
    """Aggregate per owner and rank.

    Order: total score, then accepted answers, then posts + answers, all
    descending. Records without an owner are skipped.
    """

    by_profile = {p.owner: p for p in profiles}
    rows: dict[str, LeaderboardRow] = {}

    def row_for(owner: str) -> LeaderboardRow:
        row = rows.get(owner)
        if row is None:
            row = LeaderboardRow(owner=owner, display=display_name(owner, by_profile))
            rows[owner] = row
        return row

    for post in posts:
        if not post.owner:
            continue
        row = row_for(post.owner)
        row.posts += 1
        row.post_score += post.score or 0

    for answer in answers:
        if not answer.owner:
            continue
        row = row_for(answer.owner)
        row.answers += 1
        row.answer_score += answer.score or 0
        if answer.is_accepted:
            row.accepted += 1

    return sorted(
        rows.values(),
        key=lambda r: (r.total_score, r.accepted, r.contributions),
        reverse=True,
    )


async def load_leaderboard(
    *,
    posts: ListQuery,
    answers: ListQuery,
    profiles: ListQuery,
    resolver: CredentialTierResolver,
    limit: int = 200,
    max_pages: int = 10,
) -> Leaderboard:
    """Scan the three collections concurrently and rank contributors.

    A collection that fails under every tier contributes nothing and is
    listed in `Leaderboard.missing`.
    """

    sources: dict[str, ListQuery] = {"posts": posts, "answers": answers, "profiles": profiles}
    missing: list[str] = []

    async def scan(name: str, query: ListQuery) -> list[Any]:
        try:
            result = await collect_all(query, resolver=resolver, limit=limit, max_pages=max_pages)
        except ExhaustedCredentialsError as exc:
            logger.error("leaderboard: %s unavailable: %s", name, exc)
            missing.append(name)
            return []
        if result.next_cursor:
            logger.warning("leaderboard: %s scan hit the page cap (%d pages)", name, max_pages)
        return list(result.items)

    post_items, answer_items, profile_items = await asyncio.gather(
        *(scan(name, query) for name, query in sources.items())
    )
    rows = build_rows(post_items, answer_items, profile_items)
    logger.info(
        "leaderboard: %d posts, %d answers, %d profiles -> %d rows",
        len(post_items),
        len(answer_items),
        len(profile_items),
        len(rows),
    )
    return Leaderboard(rows=rows, missing=sorted(missing))
