"""
Transitions Rules — Tests
============================
Covers:
- TransitionRule construction checks
- Case-insensitive exact name matching
- Precondition builders (always, state_in, state_is, field_equals, all_of)
- Precondition failure messages
"""

from __future__ import annotations

import uuid

import pytest

from entity_transitions.envelope.models import EntityEnvelope, Metadata
from entity_transitions.envelope.records import RecordEntity
from entity_transitions.processing.mutations import identity
from entity_transitions.processing.rules import (
    TransitionRule,
    all_of,
    always,
    field_equals,
    normalize_operation_name,
    state_in,
    state_is,
)


def make_envelope(state: str = "available", **fields) -> EntityEnvelope:
    return EntityEnvelope(
        RecordEntity({"id": "p1", **fields}),
        Metadata(entity_id=uuid.uuid4(), state=state),
    )


# ══════════════════════════════════════════════════════════════
# CONSTRUCTION
# ══════════════════════════════════════════════════════════════

class TestTransitionRuleConstruction:
    def test_valid_rule(self):
        rule = TransitionRule(
            name="ReservePet", precondition=always, mutation=identity
        )
        assert rule.name == "ReservePet"
        assert rule.key == "reservepet"

    def test_empty_name_rejected(self):
        with pytest.raises(ValueError, match="non-empty"):
            TransitionRule(name="", precondition=always, mutation=identity)

    def test_blank_name_rejected(self):
        with pytest.raises(ValueError, match="blank"):
            TransitionRule(name="   ", precondition=always, mutation=identity)

    def test_precondition_must_be_callable(self):
        with pytest.raises(TypeError, match="precondition"):
            TransitionRule(name="X", precondition=True, mutation=identity)

    def test_mutation_must_be_callable(self):
        with pytest.raises(TypeError, match="mutation"):
            TransitionRule(name="X", precondition=always, mutation="set")

    def test_rule_is_frozen(self):
        rule = TransitionRule(name="X", precondition=always, mutation=identity)
        with pytest.raises(AttributeError):
            rule.name = "Y"


# ══════════════════════════════════════════════════════════════
# MATCHING
# ══════════════════════════════════════════════════════════════

class TestMatches:
    @pytest.fixture
    def rule(self):
        return TransitionRule(
            name="PetSaleProcessor", precondition=always, mutation=identity
        )

    def test_exact_match(self, rule):
        assert rule.matches("PetSaleProcessor")

    def test_case_insensitive_match(self, rule):
        assert rule.matches("petsaleprocessor")
        assert rule.matches("PETSALEPROCESSOR")

    def test_no_partial_match(self, rule):
        assert not rule.matches("PetSale")
        assert not rule.matches("PetSaleProcessorV2")

    def test_non_string_never_matches(self, rule):
        assert not rule.matches(None)
        assert not rule.matches(42)

    def test_normalize_strips_whitespace(self):
        assert normalize_operation_name("  Reserve ") == "reserve"


# ══════════════════════════════════════════════════════════════
# PRECONDITIONS
# ══════════════════════════════════════════════════════════════

class TestPreconditions:
    def test_always(self):
        assert always(make_envelope(state="anything"))

    def test_state_in(self):
        check = state_in("available", "pending")
        assert check(make_envelope(state="available"))
        assert check(make_envelope(state="pending"))
        assert not check(make_envelope(state="sold"))

    def test_state_in_requires_states(self):
        with pytest.raises(ValueError):
            state_in()

    def test_state_is(self):
        check = state_is("available")
        assert check(make_envelope(state="available"))
        assert not check(make_envelope(state="Available"))

    def test_field_equals(self):
        check = field_equals("status", "available")
        assert check(make_envelope(status="available"))
        assert not check(make_envelope(status="sold"))

    def test_all_of_short_circuits(self):
        calls = []

        def first(envelope):
            calls.append("first")
            return False

        def second(envelope):
            calls.append("second")
            return True

        assert not all_of(first, second)(make_envelope())
        assert calls == ["first"]

    def test_all_of_rejects_non_callables(self):
        with pytest.raises(TypeError):
            all_of(always, "nope")


# ══════════════════════════════════════════════════════════════
# FAILURE MESSAGE
# ══════════════════════════════════════════════════════════════

class TestPreconditionMessage:
    def test_custom_message(self):
        rule = TransitionRule(
            name="Reserve",
            precondition=state_in("available"),
            mutation=identity,
            failure_message="Pet must be available to reserve",
        )
        assert (
            rule.precondition_message(make_envelope(state="pending"))
            == "Pet must be available to reserve"
        )

    def test_default_message_cites_state(self):
        rule = TransitionRule(
            name="Reserve", precondition=state_in("available"), mutation=identity
        )
        message = rule.precondition_message(make_envelope(state="pending"))
        assert "Reserve" in message
        assert "pending" in message
