"""API GraphQL de la comunidad: listas, lectura por slug y mutación de creación.

Implementa los contratos `ListQuery`, `PostBySlugQuery`, `AnswersQuery`,
`UniqueKeyLookup` y `MutationTransport` sobre `GraphQLClient`.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Mapping, TypeVar

from pydantic import ValidationError as PydanticValidationError

from adapters.graphql_client import GraphQLClient
from core.domain.models import Answer, CredentialTier, OperationCandidate, PageResult, Post, UserProfile

logger = logging.getLogger(__name__)

T = TypeVar("T")

POST_FIELDS = """
        id
        owner
        type
        title
        slug
        contentMD
        tags
        score
        answersCount
        createdAt
        updatedAt
"""

GQL_LIST_POSTS = (
    """
  query ListPosts($filter: ModelPostFilterInput, $limit: Int, $nextToken: String) {
    listPosts(filter: $filter, limit: $limit, nextToken: $nextToken) {
      items {"""
    + POST_FIELDS
    + """      }
      nextToken
    }
  }
"""
)

GQL_POST_BY_SLUG = (
    """
  query PostBySlug($slug: String!, $limit: Int) {
    postBySlug(slug: $slug, limit: $limit) {
      items {"""
    + POST_FIELDS
    + """        acceptedAnswerId
      }
    }
  }
"""
)

ANSWER_FIELDS = "id owner postId contentMD score isAccepted createdAt updatedAt"

GQL_LIST_ANSWERS = f"""
  query ListAnswers($filter: ModelAnswerFilterInput, $limit: Int, $nextToken: String) {{
    listAnswers(filter: $filter, limit: $limit, nextToken: $nextToken) {{
      items {{ {ANSWER_FIELDS} }}
      nextToken
    }}
  }}
"""

GQL_LIST_USER_PROFILES = """
  query ListUserProfiles($filter: ModelUserProfileFilterInput, $limit: Int, $nextToken: String) {
    listUserProfiles(filter: $filter, limit: $limit, nextToken: $nextToken) {
      items { id owner username }
      nextToken
    }
  }
"""

MUTATION_SELECTION = "{ id slug title createdAt }"


def build_mutation_document(candidate: OperationCandidate) -> str:
    name = candidate.operation_id
    return (
        f"mutation {name[0].upper() + name[1:]}($input: {candidate.input_type}!) {{\n"
        f"  {name}(input: $input) {MUTATION_SELECTION}\n"
        "}"
    )


def build_slug_lookup_document(query_name: str) -> str:
    return (
        f"query SlugLookup($slug: String!, $limit: Int) {{\n"
        f"  {query_name}(slug: $slug, limit: $limit) {{ items {{ id slug }} }}\n"
        "}"
    )


def parse_items(raw_items: object, parse: Callable[[dict[str, Any]], T]) -> list[T]:
    """Solo items válidos; los malformados se registran y se descartan."""

    parsed: list[T] = []
    if not isinstance(raw_items, list):
        return parsed
    for item in raw_items:
        if not isinstance(item, dict):
            continue
        try:
            parsed.append(parse(item))
        except PydanticValidationError as exc:
            logger.warning("skipping malformed item %r: %s errors", item.get("id"), exc.error_count())
    return parsed


def parse_posts(raw_items: object) -> list[Post]:
    return parse_items(raw_items, Post.from_wire)


class ListCollection:
    """`ListQuery` genérico sobre una query `list*` con `nextToken`."""

    def __init__(
        self,
        gql: GraphQLClient,
        *,
        document: str,
        root: str,
        parse: Callable[[dict[str, Any]], Any],
    ) -> None:
        self._gql = gql
        self._document = document
        self._root = root
        self._parse = parse

    async def fetch_page(
        self,
        *,
        tier: CredentialTier,
        limit: int,
        cursor: str | None,
        filter: Mapping[str, Any] | None = None,
    ) -> PageResult[Any]:
        variables: dict[str, Any] = {"limit": limit, "nextToken": cursor}
        if filter:
            variables["filter"] = dict(filter)
        data = await self._gql.execute(self._document, variables, tier=tier)
        payload = data.get(self._root) or {}
        items = parse_items(payload.get("items"), self._parse)
        next_cursor = payload.get("nextToken")
        logger.info("%s under %s tier: %d items (more=%s)", self._root, tier.value, len(items), bool(next_cursor))
        return PageResult(items=items, next_cursor=next_cursor if isinstance(next_cursor, str) else None)


class CommunityApi:
    def __init__(self, gql: GraphQLClient) -> None:
        self._gql = gql
        self._posts = ListCollection(gql, document=GQL_LIST_POSTS, root="listPosts", parse=Post.from_wire)
        self.answers = ListCollection(gql, document=GQL_LIST_ANSWERS, root="listAnswers", parse=Answer.from_wire)
        self.profiles = ListCollection(
            gql,
            document=GQL_LIST_USER_PROFILES,
            root="listUserProfiles",
            parse=UserProfile.model_validate,
        )

    async def fetch_page(
        self,
        *,
        tier: CredentialTier,
        limit: int,
        cursor: str | None,
        filter: Mapping[str, Any] | None = None,
    ) -> PageResult[Post]:
        return await self._posts.fetch_page(tier=tier, limit=limit, cursor=cursor, filter=filter)

    async def fetch_post_by_slug(self, *, tier: CredentialTier, slug: str) -> Post | None:
        data = await self._gql.execute(GQL_POST_BY_SLUG, {"slug": slug, "limit": 1}, tier=tier)
        payload = data.get("postBySlug") or {}
        posts = parse_posts(payload.get("items"))
        return posts[0] if posts else None

    async def fetch_answers_for_post(
        self,
        *,
        tier: CredentialTier,
        post_id: str,
        limit: int,
    ) -> list[Answer]:
        page = await self.answers.fetch_page(
            tier=tier,
            limit=limit,
            cursor=None,
            filter={"postId": {"eq": post_id}},
        )
        return list(page.items)

    async def execute(
        self,
        candidate: OperationCandidate,
        variables: Mapping[str, Any],
    ) -> Mapping[str, Any] | None:
        data = await self._gql.execute(
            build_mutation_document(candidate),
            variables,
            tier=CredentialTier.SECONDARY,
        )
        created = data.get(candidate.operation_id)
        if created is None and data:
            created = next(iter(data.values()))
        return created if isinstance(created, dict) else None

    def slug_lookup(self, query_name: str | None) -> "SlugLookup | None":
        """Capacidad de lookup, o None si no hay query configurada."""

        if not query_name or not query_name.strip():
            return None
        return SlugLookup(self._gql, query_name.strip())


class SlugLookup:
    """`UniqueKeyLookup` sobre una query por slug configurada (tier de usuario)."""

    def __init__(
        self,
        gql: GraphQLClient,
        query_name: str,
        *,
        tier: CredentialTier = CredentialTier.SECONDARY,
    ) -> None:
        self._gql = gql
        self._query_name = query_name
        self._tier = tier

    async def fetch_by_unique_key(self, key: str) -> dict[str, Any] | None:
        data = await self._gql.execute(
            build_slug_lookup_document(self._query_name),
            {"slug": key, "limit": 1},
            tier=self._tier,
        )
        payload = data.get(self._query_name) or {}
        items = payload.get("items") if isinstance(payload, dict) else None
        if isinstance(items, list) and items and isinstance(items[0], dict):
            return items[0]
        return None
