"""
Transitions Processing — Transition Rule Contract
====================================================
A TransitionRule describes one named transition:

    name          → dispatch key (matched case-insensitively)
    precondition  → EntityEnvelope → bool
    mutation      → EntityEnvelope → EntityEnvelope

Rules are supplied by rule authors, registered once at startup and
immutable for the life of the process.

Preconditions may be unconditional (`always`). Many transitions
accept an entity in any workflow state; others require a specific
prior state (`state_in("available")`).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable

from entity_transitions.envelope.models import EntityEnvelope
from entity_transitions.envelope.records import read_field


Precondition = Callable[[EntityEnvelope], bool]
Mutation = Callable[[EntityEnvelope], EntityEnvelope]


def normalize_operation_name(name: str) -> str:
    """Dispatch key for an operation or rule name."""
    return name.strip().casefold()


# ══════════════════════════════════════════════════════════════
# TRANSITION RULE
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class TransitionRule:
    """
    Immutable declaration of one named transition.

    Fields:
        name:            Operation name this rule answers to.
        precondition:    Gate evaluated after the structural checks.
        mutation:        Pure function producing the updated envelope.
        failure_message: Message attached when the precondition fails.
        description:     Free-form documentation.

    Example:
        TransitionRule(
            name="ReservePet",
            precondition=state_in("available"),
            mutation=set_fields(status="pending"),
            failure_message="Pet must be available to reserve",
        )
    """

    name: str
    precondition: Precondition
    mutation: Mutation
    failure_message: str = ""
    description: str = ""

    def __post_init__(self):
        if not self.name or not isinstance(self.name, str):
            raise ValueError("Rule name must be a non-empty string.")

        if not self.name.strip():
            raise ValueError("Rule name must not be blank.")

        if not callable(self.precondition):
            raise TypeError(
                f"precondition must be callable, got "
                f"{type(self.precondition).__name__}."
            )

        if not callable(self.mutation):
            raise TypeError(
                f"mutation must be callable, got "
                f"{type(self.mutation).__name__}."
            )

    @property
    def key(self) -> str:
        return normalize_operation_name(self.name)

    def matches(self, operation_name: str) -> bool:
        """Case-insensitive exact match against the rule's name."""
        if not isinstance(operation_name, str):
            return False
        return normalize_operation_name(operation_name) == self.key

    def precondition_message(self, envelope: EntityEnvelope) -> str:
        if self.failure_message:
            return self.failure_message
        return (
            f"Precondition for '{self.name}' not met "
            f"(current state: '{envelope.state}')."
        )


# ══════════════════════════════════════════════════════════════
# PRECONDITION BUILDERS
# ══════════════════════════════════════════════════════════════

def always(envelope: EntityEnvelope) -> bool:
    """Unconditional precondition."""
    return True


def state_is(state: str) -> Precondition:
    """Current workflow state must equal `state`."""
    return state_in(state)


def state_in(*states: str) -> Precondition:
    """Current workflow state must be one of `states`."""
    if not states:
        raise ValueError("state_in requires at least one state.")
    allowed = frozenset(states)

    def _check(envelope: EntityEnvelope) -> bool:
        return envelope.state in allowed

    _check.__qualname__ = f"state_in{tuple(sorted(allowed))}"
    return _check


def field_equals(name: str, value: Any) -> Precondition:
    """Entity field `name` must equal `value`."""

    def _check(envelope: EntityEnvelope) -> bool:
        return read_field(envelope.entity, name) == value

    _check.__qualname__ = f"field_equals({name!r}, {value!r})"
    return _check


def all_of(*preconditions: Precondition) -> Precondition:
    """All preconditions must hold (evaluated in order, short-circuit)."""
    for precondition in preconditions:
        if not callable(precondition):
            raise TypeError("all_of accepts callables only.")

    def _check(envelope: EntityEnvelope) -> bool:
        return all(p(envelope) for p in preconditions)

    return _check
