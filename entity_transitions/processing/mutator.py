"""
Transitions Processing — Mutation Stage
==========================================
Applies a rule's mutation to a validated envelope.

Guarantees:
- The caller's envelope is never altered: the mutation works on a
  deep copy.
- Any exception raised by the mutation becomes a mutation failure.
  MutationError subclasses keep their own code; anything else maps
  to MUTATION_ERROR.
- A successful result has the same entity_id as the input.
- No retries. A failure is terminal for the invocation.
"""

from __future__ import annotations

import copy
import logging

from entity_transitions.envelope.models import EntityEnvelope
from entity_transitions.processing.errors import MutationError
from entity_transitions.processing.outcomes import StageResult
from entity_transitions.processing.rejection import (
    STAGE_MUTATION,
    FailureReason,
    ReasonCode,
)
from entity_transitions.processing.rules import TransitionRule

logger = logging.getLogger("entity_transitions.processing")


def _describe(exc: Exception) -> str:
    message = str(exc).strip()
    return message or type(exc).__name__


class MutationStage:
    """
    Run rule.mutation and check what came back.

    Usage:
        stage = MutationStage()
        result = stage.mutate(validated_envelope, rule)
        if result.ok:
            updated = result.envelope
    """

    def mutate(
        self, envelope: EntityEnvelope, rule: TransitionRule
    ) -> StageResult:
        try:
            working = copy.deepcopy(envelope)
        except Exception as exc:
            logger.warning(
                f"Envelope for entity_id={envelope.entity_id} could not be "
                f"copied for '{rule.name}': {type(exc).__name__}: {exc}"
            )
            return self._fail(
                rule,
                ReasonCode.MUTATION_ERROR,
                (
                    f"Envelope could not be copied for mutation: "
                    f"{type(exc).__name__}: {exc}"
                ),
            )

        try:
            updated = rule.mutation(working)
        except MutationError as exc:
            return self._fail(rule, exc.code, exc.message or _describe(exc))
        except Exception as exc:
            logger.warning(
                f"Mutation '{rule.name}' raised {type(exc).__name__} "
                f"for entity_id={envelope.entity_id}: {exc}"
            )
            return self._fail(rule, ReasonCode.MUTATION_ERROR, _describe(exc))

        # ── Result must be an envelope ────────────────────────
        if not isinstance(updated, EntityEnvelope):
            return self._fail(
                rule,
                ReasonCode.INVALID_MUTATION_RESULT,
                (
                    f"Mutation '{rule.name}' must return an "
                    f"EntityEnvelope, got {type(updated).__name__}."
                ),
            )

        # ── Identity is immutable across a transition ─────────
        if updated.entity_id != envelope.entity_id:
            return self._fail(
                rule,
                ReasonCode.IDENTITY_CHANGED,
                (
                    f"Mutation '{rule.name}' changed entity_id from "
                    f"{envelope.entity_id} to {updated.entity_id}."
                ),
            )

        return StageResult(envelope=updated)

    def _fail(
        self, rule: TransitionRule, code: str, message: str
    ) -> StageResult:
        logger.debug(f"Mutation failed for '{rule.name}': [{code}] {message}")
        return StageResult(
            failure=FailureReason(
                code=code,
                message=message,
                stage=STAGE_MUTATION,
                rule_name=rule.name,
            )
        )
