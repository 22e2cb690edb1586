"""
Transitions Processing — Transition Pipeline
===============================================
Validate → Mutate → Complete for exactly one envelope.

State machine (per invocation):

    RECEIVED ──▶ VALIDATED ──▶ MUTATED ──▶ COMPLETED
        │            │
        └────────────┴──────▶ REJECTED

- RECEIVED → REJECTED:  validation failure (reason from the failed check)
- VALIDATED → REJECTED: mutation failure (reason from the mutation error)
- MUTATED → COMPLETED:  always succeeds

COMPLETED and REJECTED are terminal. A pipeline instance runs once.
Create a fresh instance per invocation; rules and stages may be shared.

The pipeline DOES NOT:
- Persist anything
- Talk to the engine
- Retry
- Hold state between invocations
"""

from __future__ import annotations

import logging
from typing import Callable, List, Optional

from entity_transitions.envelope.models import EntityEnvelope
from entity_transitions.processing.errors import PipelineStateError
from entity_transitions.processing.mutator import MutationStage
from entity_transitions.processing.outcomes import (
    PIPELINE_TRANSITIONS,
    PipelineState,
    TransitionOutcome,
)
from entity_transitions.processing.rejection import ErrorInfo, FailureReason
from entity_transitions.processing.rules import TransitionRule
from entity_transitions.processing.validator import ValidationStage

logger = logging.getLogger("entity_transitions.processing")


# An error handler may rewrite the code/message of a failure:
#   (FailureReason, EntityEnvelope) → Optional[ErrorInfo]
#   Returning None keeps the original reason.
ErrorHandler = Callable[[FailureReason, EntityEnvelope], Optional[ErrorInfo]]


class TransitionPipeline:
    """
    Composition root for one transition invocation.

    Usage:
        pipeline = TransitionPipeline(rule=reserve_rule)
        outcome = pipeline.run(envelope)
        if outcome.is_success:
            updated = outcome.envelope
        else:
            reason = outcome.reason   # FailureReason
    """

    def __init__(
        self,
        rule: TransitionRule,
        validation_stage: Optional[ValidationStage] = None,
        mutation_stage: Optional[MutationStage] = None,
        error_handler: Optional[ErrorHandler] = None,
    ):
        if not isinstance(rule, TransitionRule):
            raise TypeError(
                f"Expected TransitionRule, got {type(rule).__name__}."
            )
        if error_handler is not None and not callable(error_handler):
            raise TypeError("error_handler must be callable.")

        self._rule = rule
        self._validation_stage = validation_stage or ValidationStage()
        self._mutation_stage = mutation_stage or MutationStage()
        self._error_handler = error_handler
        self._state = PipelineState.RECEIVED
        self._history: List[PipelineState] = [PipelineState.RECEIVED]

    # ══════════════════════════════════════════════════════════
    # STATE
    # ══════════════════════════════════════════════════════════

    @property
    def rule(self) -> TransitionRule:
        return self._rule

    @property
    def state(self) -> PipelineState:
        return self._state

    @property
    def history(self) -> tuple:
        """States visited so far, in order."""
        return tuple(self._history)

    def _advance(self, to_state: PipelineState) -> None:
        allowed = PIPELINE_TRANSITIONS[self._state]
        if to_state not in allowed:
            raise PipelineStateError(self._state.value)
        self._state = to_state
        self._history.append(to_state)

    # ══════════════════════════════════════════════════════════
    # RUN
    # ══════════════════════════════════════════════════════════

    def run(self, envelope: EntityEnvelope) -> TransitionOutcome:
        """
        Drive one envelope through the pipeline.

        Returns:
            TransitionOutcome — never None, never ambiguous.

        Raises:
            PipelineStateError: If this instance already ran.
            TypeError: If envelope is not an EntityEnvelope.
        """
        if self._state is not PipelineState.RECEIVED:
            raise PipelineStateError(self._state.value)

        rule = self._rule

        # ── Step 1: Validation ────────────────────────────────
        validated = self._validation_stage.validate(envelope, rule)
        if not validated.ok:
            reason = self._handle_error(validated.failure, envelope)
            self._advance(PipelineState.REJECTED)
            logger.info(
                f"Transition '{rule.name}' rejected for entity_id="
                f"{envelope.entity_id}: [{reason.code}] {reason.message}"
            )
            return TransitionOutcome.validation_failure(reason)
        self._advance(PipelineState.VALIDATED)

        # ── Step 2: Mutation ──────────────────────────────────
        mutated = self._mutation_stage.mutate(validated.envelope, rule)
        if not mutated.ok:
            reason = self._handle_error(mutated.failure, envelope)
            self._advance(PipelineState.REJECTED)
            logger.info(
                f"Transition '{rule.name}' failed during mutation for "
                f"entity_id={envelope.entity_id}: "
                f"[{reason.code}] {reason.message}"
            )
            return TransitionOutcome.mutation_failure(reason)
        self._advance(PipelineState.MUTATED)

        # ── Step 3: Completion ────────────────────────────────
        self._advance(PipelineState.COMPLETED)
        logger.info(
            f"Transition '{rule.name}' completed for entity_id="
            f"{envelope.entity_id}"
        )
        return TransitionOutcome.success(rule.name, mutated.envelope)

    def _handle_error(
        self, reason: FailureReason, envelope: EntityEnvelope
    ) -> FailureReason:
        if self._error_handler is None:
            return reason

        info = self._error_handler(reason, envelope)
        if info is None:
            return reason
        if not isinstance(info, ErrorInfo):
            raise TypeError(
                f"error_handler must return ErrorInfo or None, "
                f"got {type(info).__name__}."
            )
        return info.apply_to(reason)
