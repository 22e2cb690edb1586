"""
Transitions Processing — Entity Transition Contract
======================================================
Every transition is Validate → Mutate → Complete.
Every invocation produces exactly one outcome.
Rejections are first-class, structured and never retried.

Importing this package pulls in no Django. TransitionDispatcher depends
on the contracts layer and is not re-exported: import it from
entity_transitions.processing.dispatcher.
"""

from entity_transitions.processing.rejection import (
    ErrorInfo,
    FailureReason,
    ReasonCode,
    STAGE_MUTATION,
    STAGE_VALIDATION,
)
from entity_transitions.processing.errors import (
    ConfigurationError,
    DuplicateRuleError,
    MissingFieldError,
    MutationError,
    PipelineStateError,
    RegistryLockedError,
    RegistryNotLockedError,
    UnsupportedOperationError,
)
from entity_transitions.processing.rules import (
    Mutation,
    Precondition,
    TransitionRule,
    all_of,
    always,
    field_equals,
    normalize_operation_name,
    state_in,
    state_is,
)
from entity_transitions.processing.outcomes import (
    OutcomeKind,
    PipelineState,
    StageResult,
    TransitionOutcome,
)
from entity_transitions.processing.validator import (
    EnvelopeValidationError,
    ValidationStage,
    validate_envelope,
)
from entity_transitions.processing.mutator import MutationStage
from entity_transitions.processing.pipeline import (
    ErrorHandler,
    TransitionPipeline,
)
from entity_transitions.processing.registry import RuleRegistry

__all__ = [
    # ── Rejection ─────────────────────────────────────────────
    "ErrorInfo",
    "FailureReason",
    "ReasonCode",
    "STAGE_MUTATION",
    "STAGE_VALIDATION",
    # ── Errors ────────────────────────────────────────────────
    "ConfigurationError",
    "DuplicateRuleError",
    "MissingFieldError",
    "MutationError",
    "PipelineStateError",
    "RegistryLockedError",
    "RegistryNotLockedError",
    "UnsupportedOperationError",
    # ── Rules ─────────────────────────────────────────────────
    "Mutation",
    "Precondition",
    "TransitionRule",
    "all_of",
    "always",
    "field_equals",
    "normalize_operation_name",
    "state_in",
    "state_is",
    # ── Outcomes ──────────────────────────────────────────────
    "OutcomeKind",
    "PipelineState",
    "StageResult",
    "TransitionOutcome",
    # ── Stages ────────────────────────────────────────────────
    "EnvelopeValidationError",
    "ValidationStage",
    "validate_envelope",
    "MutationStage",
    # ── Pipeline ──────────────────────────────────────────────
    "ErrorHandler",
    "TransitionPipeline",
    "RuleRegistry",
]
