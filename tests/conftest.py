"""
Pytest configuration and in-memory collaborators for the community tests.
"""

import asyncio
from typing import Any, Dict, List, Mapping, Optional, Tuple

import pytest

from core.config import AppSettings
from core.domain.models import Answer, CredentialTier, Draft, OperationCandidate, PageResult, Post

pytest_plugins = ('pytest_asyncio',)


def pytest_configure(config):
    """Configure pytest with asyncio marker."""
    config.addinivalue_line(
        "markers", "asyncio: mark test as an async test."
    )


# =============================================================================
# FAKES
# =============================================================================

def make_posts(count: int, *, start: int = 0, prefix: str = "p") -> List[Post]:
    return [
        Post(id=f"{prefix}{i}", title=f"Post {i}", slug=f"post-{prefix}{i}", contentMD=f"body {i}")
        for i in range(start, start + count)
    ]


class FakeListQuery:
    """ListQuery keyed by (tier, cursor); values are PageResult or an exception."""

    def __init__(self, responses: Optional[Dict[Tuple[CredentialTier, Optional[str]], Any]] = None):
        self.responses = dict(responses or {})
        self.calls: List[Dict[str, Any]] = []
        self.gate: Optional[asyncio.Event] = None

    def set(self, tier: CredentialTier, cursor: Optional[str], value: Any) -> None:
        self.responses[(tier, cursor)] = value

    async def fetch_page(self, *, tier, limit, cursor, filter=None):
        self.calls.append({"tier": tier, "limit": limit, "cursor": cursor, "filter": filter})
        if self.gate is not None:
            await self.gate.wait()
        value = self.responses.get((tier, cursor), PageResult(items=[], next_cursor=None))
        if isinstance(value, Exception):
            raise value
        return value


class FakeSlugQuery:
    """PostBySlugQuery keyed by tier."""

    def __init__(self, by_tier: Dict[CredentialTier, Any]):
        self.by_tier = by_tier
        self.calls: List[Tuple[CredentialTier, str]] = []

    async def fetch_post_by_slug(self, *, tier, slug):
        self.calls.append((tier, slug))
        value = self.by_tier.get(tier)
        if isinstance(value, Exception):
            raise value
        return value


class FakeAnswersQuery:
    """AnswersQuery keyed by tier; unknown tiers return no answers."""

    def __init__(self, by_tier: Optional[Dict[CredentialTier, Any]] = None):
        self.by_tier = dict(by_tier or {})
        self.calls: List[Dict[str, Any]] = []

    async def fetch_answers_for_post(self, *, tier, post_id, limit):
        self.calls.append({"tier": tier, "post_id": post_id, "limit": limit})
        value = self.by_tier.get(tier, [])
        if isinstance(value, Exception):
            raise value
        return value


def make_answer(answer_id: str, *, created_at: str, accepted: bool = False, owner: str = "u1", score: int = 0) -> Answer:
    return Answer(
        id=answer_id,
        owner=owner,
        postId="p0",
        contentMD=f"answer {answer_id}",
        isAccepted=accepted,
        score=score,
        createdAt=created_at,
    )


class FakeTransport:
    """MutationTransport answering per operation id (value or exception)."""

    def __init__(self, responses: Optional[Dict[str, Any]] = None):
        self.responses = dict(responses or {})
        self.calls: List[Tuple[OperationCandidate, Mapping[str, Any]]] = []

    async def execute(self, candidate, variables):
        self.calls.append((candidate, variables))
        value = self.responses.get(candidate.operation_id, RuntimeError(f"Unknown field {candidate.operation_id}"))
        if isinstance(value, Exception):
            raise value
        return value


class FakeLookup:
    def __init__(self, result: Any = None, error: Optional[Exception] = None):
        self.result = result
        self.error = error
        self.keys: List[str] = []

    async def fetch_by_unique_key(self, key):
        self.keys.append(key)
        if self.error is not None:
            raise self.error
        return self.result


class FakeAuth:
    def __init__(self, user_id: Optional[str] = "user-1"):
        self.user_id = user_id

    async def current_user_id(self):
        return self.user_id


class MemoryDraftStore:
    def __init__(self):
        self.drafts: Dict[str, Draft] = {}
        self.deleted: List[str] = []

    def load(self, key):
        return self.drafts.get(key)

    def save(self, key, draft):
        self.drafts[key] = draft

    def delete(self, key):
        self.deleted.append(key)
        self.drafts.pop(key, None)


# =============================================================================
# FIXTURES
# =============================================================================

@pytest.fixture
def settings(tmp_path) -> AppSettings:
    """Settings isolated from any .env on the machine."""
    return AppSettings(
        _env_file=None,
        graphql_url="https://api.test/graphql",
        public_api_key="pub-key",
        user_pool_token="user-token",
        user_id="user-1",
        search_debounce_seconds=0.02,
        drafts_dir=tmp_path / "drafts",
    )


@pytest.fixture
def list_query() -> FakeListQuery:
    return FakeListQuery()


@pytest.fixture
def transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture
def draft_store() -> MemoryDraftStore:
    return MemoryDraftStore()
