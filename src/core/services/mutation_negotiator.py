"""Try-and-commit negotiation of the create-post mutation.

When the write schema is not known at build time we try a static, ordered
list of (operation name, content field) guesses, one at a time, and keep the
first one the backend accepts. Candidates never run concurrently: one
logical submit must not land two side-effecting writes at once.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Iterable, Mapping, Sequence

from core.domain.errors import GraphQLRequestError
from core.domain.models import NegotiationResult, OperationCandidate
from core.interfaces.remote import MutationTransport

logger = logging.getLogger(__name__)

CREATE_OPERATIONS: tuple[str, ...] = (
    "createCommunityPost",
    "createPost",
    "createForumPost",
    "createQuestion",
)

DEFAULT_CONTENT_FIELD = "contentMD"

CONTENT_FIELDS: tuple[str, ...] = (
    "contentMD",
    "body",
    "content",
    "markdown",
)


def default_candidates(
    operations: Iterable[str] = CREATE_OPERATIONS,
    content_fields: Iterable[str] = CONTENT_FIELDS,
) -> list[OperationCandidate]:
    """Built-in fallback list, operation-major."""

    fields = list(content_fields)
    return [
        OperationCandidate(operation_id=operation, payload_field_key=field)
        for operation in operations
        for field in fields
    ]


def candidate_plan(
    *,
    pinned_operation: str | None = None,
    pinned_field: str = DEFAULT_CONTENT_FIELD,
    fallbacks: Sequence[OperationCandidate] | None = None,
) -> list[OperationCandidate]:
    """Pinned candidate (if any) first, then the fallback list without repeats."""

    plan: list[OperationCandidate] = []
    seen: set[tuple[str, str]] = set()

    if pinned_operation and pinned_operation.strip():
        pinned = OperationCandidate(
            operation_id=pinned_operation.strip(),
            payload_field_key=(pinned_field or "").strip() or DEFAULT_CONTENT_FIELD,
            pinned=True,
        )
        plan.append(pinned)
        seen.add(pinned.key())

    for candidate in fallbacks if fallbacks is not None else default_candidates():
        if candidate.key() in seen:
            continue
        seen.add(candidate.key())
        plan.append(candidate)
    return plan


def describe_failure(exc: BaseException) -> str:
    if isinstance(exc, GraphQLRequestError):
        return exc.first_message
    text = str(exc).strip()
    return text or type(exc).__name__


class MutationNegotiator:
    """Tries candidates in order until one returns a created record."""

    def __init__(self, transport: MutationTransport) -> None:
        self._transport = transport

    async def negotiate(
        self,
        candidates: Sequence[OperationCandidate],
        build_payload: Callable[[OperationCandidate], Mapping[str, Any]],
    ) -> NegotiationResult:
        result = NegotiationResult()

        for candidate in candidates:
            payload = build_payload(candidate)
            logger.info("trying mutation %s (input keys: %s)", candidate.label, sorted(payload))
            try:
                created = await self._transport.execute(candidate, {"input": dict(payload)})
            except Exception as exc:
                message = describe_failure(exc)
                logger.warning("mutation %s failed: %s", candidate.label, message)
                result.trail.record_failure(candidate, message)
                continue

            if not isinstance(created, Mapping) or not created:
                logger.warning("mutation %s returned no payload", candidate.label)
                result.trail.record_failure(candidate, f"No payload from {candidate.operation_id}")
                continue

            record = dict(created)
            result.trail.record_success(candidate, record)
            result.winner = candidate
            result.payload = record
            logger.info("mutation %s succeeded", candidate.label)
            return result

        logger.error("every create mutation candidate failed (%d attempts)", len(result.trail))
        return result
