"""Create-post flow: draft persistence, validation, auth, slug, negotiation.

Local problems (validation, missing sign-in) are raised before anything
touches the network. Writes are never retried automatically; a failed
negotiation surfaces the full attempt trail.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Sequence

from core.config import AppSettings
from core.domain.errors import SchemaNegotiationExhausted, UnauthenticatedWriteAttempt, ValidationError
from core.domain.models import CreatedPost, Draft, OperationCandidate, PostInput
from core.interfaces.session import AnalyticsSink, AuthProvider, DraftStore
from core.services.mutation_negotiator import MutationNegotiator, candidate_plan
from core.services.slugs import SlugUniquenessResolver

logger = logging.getLogger(__name__)

DRAFT_KEY = "community.askDraft"
ASK_PATH = "/community/ask"
MAX_TITLE = 140
MAX_BODY = 5000
MAX_TAGS = 6

SUGGESTED_TAGS: tuple[str, ...] = (
    "pricing",
    "cleaning",
    "automation",
    "guest-experience",
    "marketing",
    "cohosting",
)


def validate_draft(draft: Draft) -> None:
    """Raise `ValidationError` with the first problem found."""

    title = draft.title.strip()
    if not title:
        raise ValidationError("Title is required.")
    if len(title) > MAX_TITLE:
        raise ValidationError(f"Title is too long (max {MAX_TITLE} chars).")
    if not draft.content_md.strip():
        raise ValidationError("Details are required.")
    if len(draft.content_md) > MAX_BODY:
        raise ValidationError(f"Details exceed {MAX_BODY} characters.")
    if len(draft.tag_list()) > MAX_TAGS:
        raise ValidationError(f"Please use at most {MAX_TAGS} tags.")


def add_tag(tags: str, tag: str) -> str:
    """Append `tag` to a comma-separated tag string unless already present."""

    current = [t.strip() for t in tags.split(",") if t.strip()]
    if tag not in current:
        current.append(tag)
    return ", ".join(current)


def post_path(slug: str) -> str:
    return f"/community/post/{slug}"


def negotiation_hint(settings: AppSettings) -> str:
    lines = [
        "None of the common create mutations succeeded.",
        "- Set COMMUNITY_CREATE_MUTATION_KEY to the exact mutation name (e.g. createCommunityPost).",
        "- Set COMMUNITY_CREATE_CONTENT_FIELD if the content field is not 'contentMD'.",
    ]
    if not settings.api_name:
        lines.append("- Tip: set COMMUNITY_API_NAME / COMMUNITY_GRAPHQL_URL if the app has multiple APIs.")
    return "\n".join(lines)


@dataclass
class PostComposer:
    """One "ask a question" form session."""

    negotiator: MutationNegotiator
    slugs: SlugUniquenessResolver
    auth: AuthProvider
    drafts: DraftStore
    analytics: AnalyticsSink
    settings: AppSettings = field(default_factory=AppSettings)
    draft_key: str = DRAFT_KEY
    origin_path: str = ASK_PATH
    candidates: Sequence[OperationCandidate] | None = None

    def restore_draft(self) -> Draft | None:
        try:
            draft = self.drafts.load(self.draft_key)
        except ValueError as exc:
            logger.warning("failed to parse saved draft: %s", exc)
            return None
        if draft is not None:
            logger.info("draft restored (saved %s)", draft.saved_at.isoformat())
        return draft

    def save_draft(self, draft: Draft) -> Draft:
        """Persist the form on every edit; returns the stamped draft."""

        stamped = draft.model_copy(update={"saved_at": datetime.now(timezone.utc)})
        try:
            self.drafts.save(self.draft_key, stamped)
        except OSError as exc:
            logger.warning("failed to save draft: %s", exc)
        return stamped

    def plan(self) -> list[OperationCandidate]:
        if self.candidates is not None:
            return list(self.candidates)
        return candidate_plan(
            pinned_operation=self.settings.create_mutation_key,
            pinned_field=self.settings.create_content_field,
        )

    async def submit(self, draft: Draft) -> CreatedPost:
        validate_draft(draft)

        owner = await self.auth.current_user_id()
        if not owner:
            raise UnauthenticatedWriteAttempt(self.origin_path)

        claim = await self.slugs.claim(draft.title)
        base = PostInput(
            owner=owner,
            type=draft.type,
            title=draft.title.strip(),
            content_md=draft.content_md,
            tags=draft.tag_list(),
            slug=claim.resolved,
        )
        logger.info("submitting post %r (slug %s, %s)", base.title, base.slug, claim.strategy)

        result = await self.negotiator.negotiate(self.plan(), lambda c: base.to_payload(c.payload_field_key))
        if not result.succeeded or result.winner is None:
            raise SchemaNegotiationExhausted(result.trail, hint=negotiation_hint(self.settings))

        record = result.payload or {}
        slug = record.get("slug")
        if not isinstance(slug, str) or not slug:
            slug = base.slug
        self.analytics.track("post_created", {"slug": slug, "operation": result.winner.operation_id})
        try:
            self.drafts.delete(self.draft_key)
        except OSError as exc:
            logger.warning("failed to delete draft: %s", exc)

        return CreatedPost(slug=slug, path=post_path(slug), candidate=result.winner, record=record)
