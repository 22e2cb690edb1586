"""
Transitions Processing — Failure Model
=========================================
Structured reasons for rejected transitions.

This is NOT an exception. It is an explanation structure that
becomes part of the error response sent back to the engine.

Every failure must be:
- Deterministic (same input → same failure)
- Machine-readable (code)
- Human-readable (message)
- Attributable (stage that produced it)
"""

from __future__ import annotations

from dataclasses import dataclass


# ══════════════════════════════════════════════════════════════
# STAGES
# ══════════════════════════════════════════════════════════════

STAGE_VALIDATION = "validation"
STAGE_MUTATION = "mutation"

VALID_STAGES = frozenset({STAGE_VALIDATION, STAGE_MUTATION})


# ══════════════════════════════════════════════════════════════
# FAILURE REASON (frozen explanation structure)
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class FailureReason:
    """
    Structured reason for a rejected transition.

    Fields:
        code:      Machine-readable code (e.g. 'PRECONDITION_FAILED').
        message:   Human-readable explanation.
        stage:     'validation' or 'mutation'.
        rule_name: Name of the transition rule being applied.
    """

    code: str
    message: str
    stage: str
    rule_name: str

    def __post_init__(self):
        if not self.code or not isinstance(self.code, str):
            raise ValueError("code must be a non-empty string.")

        if not self.message or not isinstance(self.message, str):
            raise ValueError("message must be a non-empty string.")

        if self.stage not in VALID_STAGES:
            raise ValueError(
                f"stage '{self.stage}' not valid. "
                f"Must be one of: {sorted(VALID_STAGES)}"
            )

        if not self.rule_name or not isinstance(self.rule_name, str):
            raise ValueError("rule_name must be a non-empty string.")

    @property
    def is_validation_failure(self) -> bool:
        return self.stage == STAGE_VALIDATION

    @property
    def is_mutation_failure(self) -> bool:
        return self.stage == STAGE_MUTATION

    def to_dict(self) -> dict:
        return {
            "code": self.code,
            "message": self.message,
            "stage": self.stage,
            "rule_name": self.rule_name,
        }


# ══════════════════════════════════════════════════════════════
# STANDARD FAILURE CODES
# ══════════════════════════════════════════════════════════════

class ReasonCode:
    """
    Known failure codes. Extensible by rule authors through
    MutationError subclasses.

    Convention: SCREAMING_SNAKE_CASE.
    """

    # ── Validation stage (checked in this order) ──────────────
    ENTITY_MISSING = "ENTITY_MISSING"
    ENTITY_INVALID = "ENTITY_INVALID"
    IDENTITY_MISSING = "IDENTITY_MISSING"
    PRECONDITION_FAILED = "PRECONDITION_FAILED"

    # ── Mutation stage ────────────────────────────────────────
    MUTATION_ERROR = "MUTATION_ERROR"
    MISSING_FIELD = "MISSING_FIELD"
    INVALID_MUTATION_RESULT = "INVALID_MUTATION_RESULT"
    IDENTITY_CHANGED = "IDENTITY_CHANGED"

    # ── Response mapping ──────────────────────────────────────
    PROCESSING_ERROR = "PROCESSING_ERROR"
    CONVERSION_ERROR = "CONVERSION_ERROR"
    UNSUPPORTED_OPERATION = "UNSUPPORTED_OPERATION"
    INVALID_REQUEST = "INVALID_REQUEST"


# ══════════════════════════════════════════════════════════════
# ERROR INFO (custom error-handler result)
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class ErrorInfo:
    """
    Code + message returned by a caller-supplied error handler.

    Replaces the code and message of a FailureReason while keeping
    its stage and rule name.
    """

    code: str
    message: str

    def __post_init__(self):
        if not self.code or not isinstance(self.code, str):
            raise ValueError("code must be a non-empty string.")

        if not self.message or not isinstance(self.message, str):
            raise ValueError("message must be a non-empty string.")

    def apply_to(self, reason: FailureReason) -> FailureReason:
        return FailureReason(
            code=self.code,
            message=self.message,
            stage=reason.stage,
            rule_name=reason.rule_name,
        )
