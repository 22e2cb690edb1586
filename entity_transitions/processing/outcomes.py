"""
Transitions Processing — Outcome Contract
============================================
Every pipeline invocation produces exactly one outcome:

    SUCCESS            → updated envelope, ready to serialize
    VALIDATION_FAILURE → reason from the first failed check
    MUTATION_FAILURE   → error raised or detected while mutating

Rules:
- Outcome is immutable (frozen dataclass)
- SUCCESS carries an envelope and NO reason
- Failures carry a reason and NO envelope
- The reason's stage must agree with the outcome kind
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from entity_transitions.envelope.models import EntityEnvelope
from entity_transitions.processing.rejection import (
    STAGE_MUTATION,
    STAGE_VALIDATION,
    FailureReason,
)


# ══════════════════════════════════════════════════════════════
# PIPELINE STATES
# ══════════════════════════════════════════════════════════════

class PipelineState(Enum):
    """Per-invocation state machine."""
    RECEIVED = "RECEIVED"
    VALIDATED = "VALIDATED"
    MUTATED = "MUTATED"
    COMPLETED = "COMPLETED"
    REJECTED = "REJECTED"

    @property
    def is_terminal(self) -> bool:
        return self in (PipelineState.COMPLETED, PipelineState.REJECTED)


# Allowed forward moves; REJECTED is absorbing.
PIPELINE_TRANSITIONS = {
    PipelineState.RECEIVED: frozenset(
        {PipelineState.VALIDATED, PipelineState.REJECTED}
    ),
    PipelineState.VALIDATED: frozenset(
        {PipelineState.MUTATED, PipelineState.REJECTED}
    ),
    PipelineState.MUTATED: frozenset({PipelineState.COMPLETED}),
    PipelineState.COMPLETED: frozenset(),
    PipelineState.REJECTED: frozenset(),
}


# ══════════════════════════════════════════════════════════════
# STAGE RESULT
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class StageResult:
    """
    Result of a single stage: either an envelope or a failure.

    Exactly one of `envelope` / `failure` is set.
    """

    envelope: Optional[EntityEnvelope] = None
    failure: Optional[FailureReason] = None

    def __post_init__(self):
        if (self.envelope is None) == (self.failure is None):
            raise ValueError(
                "StageResult must carry exactly one of envelope or failure."
            )

    @property
    def ok(self) -> bool:
        return self.failure is None


# ══════════════════════════════════════════════════════════════
# OUTCOME
# ══════════════════════════════════════════════════════════════

class OutcomeKind(Enum):
    SUCCESS = "SUCCESS"
    VALIDATION_FAILURE = "VALIDATION_FAILURE"
    MUTATION_FAILURE = "MUTATION_FAILURE"


@dataclass(frozen=True)
class TransitionOutcome:
    """
    Deterministic result of one pipeline invocation.

    Fields:
        kind:          SUCCESS | VALIDATION_FAILURE | MUTATION_FAILURE
        rule_name:     Transition that was applied.
        envelope:      Updated envelope (SUCCESS only).
        reason:        FailureReason (failures only).
        rejected_from: State the pipeline was in when it rejected.
    """

    kind: OutcomeKind
    rule_name: str
    envelope: Optional[EntityEnvelope] = None
    reason: Optional[FailureReason] = None
    rejected_from: Optional[PipelineState] = None

    def __post_init__(self):
        if not isinstance(self.kind, OutcomeKind):
            raise ValueError(
                f"kind must be OutcomeKind, got {type(self.kind).__name__}."
            )

        if self.kind == OutcomeKind.SUCCESS:
            if self.envelope is None:
                raise ValueError("SUCCESS outcome must include an envelope.")
            if self.reason is not None:
                raise ValueError(
                    "SUCCESS outcome must NOT include a FailureReason."
                )
            return

        if self.reason is None:
            raise ValueError(
                "Failure outcome must include a FailureReason. "
                "No silent rejections allowed."
            )
        if self.envelope is not None:
            raise ValueError("Failure outcome must NOT include an envelope.")

        expected_stage = (
            STAGE_VALIDATION
            if self.kind == OutcomeKind.VALIDATION_FAILURE
            else STAGE_MUTATION
        )
        if self.reason.stage != expected_stage:
            raise ValueError(
                f"{self.kind.value} must carry a '{expected_stage}' "
                f"reason, got '{self.reason.stage}'."
            )

    # ── constructors ─────────────────────────────────────────

    @classmethod
    def success(
        cls, rule_name: str, envelope: EntityEnvelope
    ) -> "TransitionOutcome":
        return cls(
            kind=OutcomeKind.SUCCESS, rule_name=rule_name, envelope=envelope
        )

    @classmethod
    def validation_failure(cls, reason: FailureReason) -> "TransitionOutcome":
        return cls(
            kind=OutcomeKind.VALIDATION_FAILURE,
            rule_name=reason.rule_name,
            reason=reason,
            rejected_from=PipelineState.RECEIVED,
        )

    @classmethod
    def mutation_failure(cls, reason: FailureReason) -> "TransitionOutcome":
        return cls(
            kind=OutcomeKind.MUTATION_FAILURE,
            rule_name=reason.rule_name,
            reason=reason,
            rejected_from=PipelineState.VALIDATED,
        )

    # ── queries ──────────────────────────────────────────────

    @property
    def is_success(self) -> bool:
        return self.kind == OutcomeKind.SUCCESS

    @property
    def is_rejected(self) -> bool:
        return not self.is_success

    @property
    def is_validation_failure(self) -> bool:
        return self.kind == OutcomeKind.VALIDATION_FAILURE

    @property
    def is_mutation_failure(self) -> bool:
        return self.kind == OutcomeKind.MUTATION_FAILURE

    @property
    def final_state(self) -> PipelineState:
        if self.is_success:
            return PipelineState.COMPLETED
        return PipelineState.REJECTED
