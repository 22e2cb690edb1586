"""
Transitions Processing — Mutation Building Blocks
====================================================
Most transitions are a handful of field assignments:

    stamp an "updated" timestamp
    flip a status / availability flag
    increment a counter
    attach or clear a diagnostic annotation
    refuse to proceed when a required field is missing

These builders return mutations (EntityEnvelope → EntityEnvelope)
that never touch their input and never change metadata.
"""

from __future__ import annotations

from typing import Any, Optional

from entity_transitions.envelope.models import EntityEnvelope
from entity_transitions.envelope.records import (
    has_field_value,
    read_field,
    write_fields,
)
from entity_transitions.processing.errors import MissingFieldError, MutationError
from entity_transitions.processing.rules import Mutation
from entity_transitions.time.clock import Clock, SystemClock, require_clock


def identity(envelope: EntityEnvelope) -> EntityEnvelope:
    """No-op mutation."""
    return envelope


def set_fields(**values: Any) -> Mutation:
    """Assign fixed values to entity fields."""

    def _mutate(envelope: EntityEnvelope) -> EntityEnvelope:
        return envelope.with_entity(write_fields(envelope.entity, **values))

    return _mutate


def clear_fields(*names: str) -> Mutation:
    """Set the named fields to None."""
    return set_fields(**{name: None for name in names})


def stamp_updated(
    field: str = "updated_at", clock: Optional[Clock] = None
) -> Mutation:
    """
    Write the current UTC time into `field`.

    The clock is read at mutation time. Without one, the mutation
    keeps its own SystemClock.
    """
    source = SystemClock() if clock is None else require_clock(clock)

    def _mutate(envelope: EntityEnvelope) -> EntityEnvelope:
        return envelope.with_entity(
            write_fields(envelope.entity, **{field: source.now_utc()})
        )

    return _mutate


def increment(field: str, by: int = 1) -> Mutation:
    """Add `by` to a numeric counter. A missing counter starts at 0."""

    def _mutate(envelope: EntityEnvelope) -> EntityEnvelope:
        current = read_field(envelope.entity, field)
        if current is None:
            current = 0
        if isinstance(current, bool) or not isinstance(current, (int, float)):
            raise MutationError(
                f"Field '{field}' is not numeric "
                f"(got {type(current).__name__})."
            )
        return envelope.with_entity(
            write_fields(envelope.entity, **{field: current + by})
        )

    return _mutate


def annotate(field: str, message: str) -> Mutation:
    """Attach a diagnostic message (e.g. a validation error reason)."""
    return set_fields(**{field: message})


def require_fields(*names: str, transition: str = "") -> Mutation:
    """
    Fail with MissingFieldError unless every named field has a value.

    Usage:
        compose(require_fields("principal_amount", transition="FundLoan"),
                stamp_updated())
    """
    if not names:
        raise ValueError("require_fields needs at least one field name.")

    def _mutate(envelope: EntityEnvelope) -> EntityEnvelope:
        missing = [
            name for name in names
            if not has_field_value(envelope.entity, name)
        ]
        if missing:
            raise MissingFieldError(missing, transition=transition)
        return envelope

    return _mutate


def compose(*mutations: Mutation) -> Mutation:
    """Apply mutations left to right. The first error stops the chain."""
    for mutation in mutations:
        if not callable(mutation):
            raise TypeError("compose accepts callables only.")

    def _mutate(envelope: EntityEnvelope) -> EntityEnvelope:
        for mutation in mutations:
            envelope = mutation(envelope)
        return envelope

    return _mutate
