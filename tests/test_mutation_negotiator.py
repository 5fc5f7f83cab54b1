"""
MutationNegotiator: sequential try-and-commit over create-mutation guesses.
"""

import pytest

from conftest import FakeTransport
from core.domain.errors import GraphQLRequestError
from core.domain.models import OperationCandidate
from core.services.mutation_negotiator import (
    CONTENT_FIELDS,
    CREATE_OPERATIONS,
    MutationNegotiator,
    candidate_plan,
    default_candidates,
    describe_failure,
)


def candidate(op, field="contentMD"):
    return OperationCandidate(operation_id=op, payload_field_key=field)


def payload_for(c):
    return {"title": "Hello", c.payload_field_key: "body"}


class TestNegotiate:

    @pytest.mark.asyncio
    async def test_third_candidate_wins_and_stops(self):
        transport = FakeTransport({
            "opA": GraphQLRequestError("GraphQL error", errors=[{"message": "FieldUndefined: opA"}]),
            "opB": RuntimeError("Validation error: unknown field body"),
            "opC": {"id": "new-1", "slug": "hello"},
            "opD": {"id": "never"},
        })
        plan = [candidate("opA"), candidate("opB", "body"), candidate("opC"), candidate("opD")]

        result = await MutationNegotiator(transport).negotiate(plan, payload_for)

        assert result.succeeded
        assert result.winner == plan[2]
        assert result.payload == {"id": "new-1", "slug": "hello"}
        assert [c.operation_id for c, _ in transport.calls] == ["opA", "opB", "opC"]
        assert len(result.trail.failures) == 2
        assert result.trail.failures[0].message == "FieldUndefined: opA"
        assert result.trail.attempts[-1].succeeded

    @pytest.mark.asyncio
    async def test_payload_uses_candidate_content_field(self):
        transport = FakeTransport({"createPost": {"id": "1"}})

        await MutationNegotiator(transport).negotiate([candidate("createPost", "markdown")], payload_for)

        _, variables = transport.calls[0]
        assert variables == {"input": {"title": "Hello", "markdown": "body"}}

    @pytest.mark.asyncio
    async def test_all_fail_records_every_attempt_in_order(self):
        transport = FakeTransport({"opA": RuntimeError("nope"), "opB": None})
        plan = [candidate("opA"), candidate("opB")]

        result = await MutationNegotiator(transport).negotiate(plan, payload_for)

        assert not result.succeeded
        assert result.winner is None
        assert [a.candidate.operation_id for a in result.trail.attempts] == ["opA", "opB"]
        assert result.trail.attempts[1].message == "No payload from opB"

    @pytest.mark.asyncio
    async def test_empty_mapping_counts_as_no_payload(self):
        transport = FakeTransport({"opA": {}})

        result = await MutationNegotiator(transport).negotiate([candidate("opA")], payload_for)

        assert not result.succeeded
        assert "No payload from opA" in result.trail.render()

    @pytest.mark.asyncio
    async def test_empty_plan(self):
        result = await MutationNegotiator(FakeTransport()).negotiate([], payload_for)
        assert not result.succeeded
        assert len(result.trail) == 0


class TestCandidatePlan:

    def test_default_plan_is_operation_major(self):
        plan = default_candidates()
        assert len(plan) == len(CREATE_OPERATIONS) * len(CONTENT_FIELDS)
        assert plan[0].key() == ("createCommunityPost", "contentMD")
        assert plan[1].key() == ("createCommunityPost", "body")
        assert plan[len(CONTENT_FIELDS)].key() == ("createPost", "contentMD")

    def test_pinned_candidate_goes_first_without_duplicate(self):
        plan = candidate_plan(pinned_operation="createPost", pinned_field="contentMD")

        assert plan[0].pinned
        assert plan[0].key() == ("createPost", "contentMD")
        assert [c.key() for c in plan].count(("createPost", "contentMD")) == 1
        assert len(plan) == len(CREATE_OPERATIONS) * len(CONTENT_FIELDS)

    def test_blank_pin_is_ignored(self):
        plan = candidate_plan(pinned_operation="  ")
        assert not any(c.pinned for c in plan)

    @pytest.mark.parametrize("field", ["   ", ""])
    def test_blank_pinned_field_falls_back_to_content_md(self, field):
        plan = candidate_plan(pinned_operation="createThread", pinned_field=field)
        assert plan[0].pinned
        assert plan[0].key() == ("createThread", "contentMD")

    def test_pinned_field_is_stripped(self):
        plan = candidate_plan(pinned_operation=" createThread ", pinned_field=" body ")
        assert plan[0].key() == ("createThread", "body")

    def test_custom_fallbacks(self):
        plan = candidate_plan(pinned_operation="createThread", fallbacks=[candidate("createPost")])
        assert [c.operation_id for c in plan] == ["createThread", "createPost"]

    def test_input_type_follows_operation_name(self):
        assert candidate("createCommunityPost").input_type == "CreateCommunityPostInput"


class TestDescribeFailure:

    def test_graphql_error_uses_first_message(self):
        exc = GraphQLRequestError("GraphQL error", errors=[{"message": " Not Authorized "}])
        assert describe_failure(exc) == "Not Authorized"

    def test_blank_exception_uses_type_name(self):
        assert describe_failure(TimeoutError()) == "TimeoutError"
