"""
Transitions Processing — Validation Stage
============================================
Checks an incoming envelope before any mutation runs.

This stage does NOT:
- Mutate the entity
- Touch metadata
- Retry anything
- Accumulate multiple failures

It only checks, in order:
1. entity is present
2. entity passes its own is_valid()
3. metadata carries an identity
4. the rule's precondition holds (usually a workflow-state check)

The first failing check determines the reason. Later checks are
never evaluated once one fails.
"""

from __future__ import annotations

import logging

from entity_transitions.envelope.models import EntityEnvelope, SelfValidating
from entity_transitions.processing.outcomes import StageResult
from entity_transitions.processing.rejection import (
    STAGE_VALIDATION,
    FailureReason,
    ReasonCode,
)
from entity_transitions.processing.rules import TransitionRule

logger = logging.getLogger("entity_transitions.processing")


# ══════════════════════════════════════════════════════════════
# VALIDATION ERRORS
# ══════════════════════════════════════════════════════════════

class EnvelopeValidationError(Exception):
    """Structured validation failure for envelopes."""

    def __init__(self, code: str, message: str):
        self.code = code
        self.message = message
        super().__init__(f"[{code}] {message}")


# ══════════════════════════════════════════════════════════════
# VALIDATOR
# ══════════════════════════════════════════════════════════════

def validate_envelope(envelope: EntityEnvelope, rule: TransitionRule) -> None:
    """
    Validate envelope structure and the rule's precondition.

    Raises:
        EnvelopeValidationError: On the first failing check.
        TypeError: If envelope is not an EntityEnvelope.

    Returns:
        None — success is silent. Failure is loud.
    """
    if not isinstance(envelope, EntityEnvelope):
        raise TypeError(
            f"Expected EntityEnvelope, got {type(envelope).__name__}."
        )

    # ── 1. Entity present ─────────────────────────────────────
    entity = envelope.entity
    if entity is None:
        raise EnvelopeValidationError(
            code=ReasonCode.ENTITY_MISSING,
            message=f"Entity is missing for transition '{rule.name}'.",
        )

    # ── 2. Entity self-valid ──────────────────────────────────
    if not isinstance(entity, SelfValidating):
        raise EnvelopeValidationError(
            code=ReasonCode.ENTITY_INVALID,
            message=(
                f"Entity of type {type(entity).__name__} cannot "
                f"report its own validity (no is_valid())."
            ),
        )

    try:
        valid = bool(entity.is_valid())
    except Exception as exc:
        raise EnvelopeValidationError(
            code=ReasonCode.ENTITY_INVALID,
            message=(
                f"Entity {type(entity).__name__} raised "
                f"{type(exc).__name__} in is_valid(): {exc}"
            ),
        ) from exc

    if not valid:
        raise EnvelopeValidationError(
            code=ReasonCode.ENTITY_INVALID,
            message=(
                f"Entity {type(entity).__name__} failed its own "
                f"validation."
            ),
        )

    # ── 3. Identity present ───────────────────────────────────
    if not envelope.metadata.has_identity:
        raise EnvelopeValidationError(
            code=ReasonCode.IDENTITY_MISSING,
            message="Envelope metadata has no entity_id.",
        )

    # ── 4. Rule precondition ──────────────────────────────────
    try:
        holds = bool(rule.precondition(envelope))
    except Exception as exc:
        raise EnvelopeValidationError(
            code=ReasonCode.PRECONDITION_FAILED,
            message=(
                f"Precondition for '{rule.name}' raised "
                f"{type(exc).__name__}: {exc}"
            ),
        ) from exc

    if not holds:
        raise EnvelopeValidationError(
            code=ReasonCode.PRECONDITION_FAILED,
            message=rule.precondition_message(envelope),
        )


# ══════════════════════════════════════════════════════════════
# VALIDATION STAGE
# ══════════════════════════════════════════════════════════════

class ValidationStage:
    """
    Turns validate_envelope() into a StageResult.

    Referentially transparent: the same envelope and rule always
    produce an equal result.
    """

    def validate(
        self, envelope: EntityEnvelope, rule: TransitionRule
    ) -> StageResult:
        try:
            validate_envelope(envelope, rule)
        except EnvelopeValidationError as exc:
            logger.debug(
                f"Validation failed for '{rule.name}' "
                f"(entity_id={envelope.entity_id}): "
                f"[{exc.code}] {exc.message}"
            )
            return StageResult(
                failure=FailureReason(
                    code=exc.code,
                    message=exc.message,
                    stage=STAGE_VALIDATION,
                    rule_name=rule.name,
                )
            )

        return StageResult(envelope=envelope)
