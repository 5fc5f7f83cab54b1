"""Slug derivation and best-effort uniqueness.

No lock is held between the lookup and the create mutation, so two posts
with the same title can still race when the lookup is unavailable.
"""

from __future__ import annotations

import logging
import re
import time
import unicodedata
from typing import Callable

from core.domain.errors import SlugLookupUnavailable
from core.domain.models import SlugClaim
from core.interfaces.remote import UniqueKeyLookup

logger = logging.getLogger(__name__)

COLLISION_SUFFIX = "2"
EMPTY_SLUG = "post"

_STRIP_RE = re.compile(r"[^a-z0-9\s_-]")
_SEPARATOR_RE = re.compile(r"[\s_-]+")


def slugify(text: str) -> str:
    """Lowercase, ASCII-folded, punctuation-free, hyphen-separated."""

    if not isinstance(text, str):
        return ""
    folded = unicodedata.normalize("NFKD", text).encode("ascii", "ignore").decode("ascii")
    cleaned = _STRIP_RE.sub("", folded.lower())
    return _SEPARATOR_RE.sub("-", cleaned).strip("-")


class SlugUniquenessResolver:
    """Turns a title into a slug no existing record uses (best effort).

    - lookup finds nothing: the base slug.
    - lookup finds a record: `<base>-2`.
    - no lookup, or the lookup fails: `<base>-<epoch ms>`, strictly
      increasing for this resolver.
    """

    def __init__(
        self,
        lookup: UniqueKeyLookup | None = None,
        *,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._lookup = lookup
        self._clock = clock
        self._last_stamp = 0

    @property
    def has_lookup(self) -> bool:
        return self._lookup is not None

    async def resolve(self, title: str) -> str:
        claim = await self.claim(title)
        return claim.resolved

    async def claim(self, title: str) -> SlugClaim:
        base = slugify(title) or EMPTY_SLUG
        try:
            existing = await self._find_existing(base)
        except SlugLookupUnavailable as exc:
            logger.info("slug lookup unavailable, timestamping: %s", exc)
            return SlugClaim(base=base, resolved=f"{base}-{self._next_stamp()}", strategy="timestamped")

        if not existing:
            return SlugClaim(base=base, resolved=base, strategy="unchanged")
        return SlugClaim(base=base, resolved=f"{base}-{COLLISION_SUFFIX}", strategy="suffixed")

    async def _find_existing(self, base: str) -> object | None:
        if self._lookup is None:
            raise SlugLookupUnavailable("no slug lookup query configured")
        try:
            return await self._lookup.fetch_by_unique_key(base)
        except SlugLookupUnavailable:
            raise
        except Exception as exc:
            raise SlugLookupUnavailable(f"slug lookup failed: {exc}") from exc

    def _next_stamp(self) -> int:
        stamp = int(self._clock() * 1000)
        if stamp <= self._last_stamp:
            stamp = self._last_stamp + 1
        self._last_stamp = stamp
        return stamp
