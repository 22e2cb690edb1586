"""
Transitions Processing — Error Taxonomy
==========================================
ConfigurationError   → startup-time, fatal. The process must refuse to
                       serve an unregistered or ambiguous operation.
MutationError        → raised by business mutations; converted into a
                       MutationFailure, never propagated to the engine.
PipelineStateError   → a pipeline instance was driven outside its
                       state machine (e.g. run twice).

ValidationFailure and MutationFailure are NOT exceptions. They are
outcomes (see outcomes.py).
"""

from __future__ import annotations

from typing import Iterable

from entity_transitions.processing.rejection import ReasonCode


# ══════════════════════════════════════════════════════════════
# CONFIGURATION ERRORS
# ══════════════════════════════════════════════════════════════

class ConfigurationError(Exception):
    """Base error for rule registration and dispatch configuration."""
    pass


class DuplicateRuleError(ConfigurationError):
    """A rule with the same (case-insensitive) name is already registered."""

    def __init__(self, rule_name: str, existing_name: str):
        self.rule_name = rule_name
        self.existing_name = existing_name
        super().__init__(
            f"Transition rule '{rule_name}' conflicts with already "
            f"registered rule '{existing_name}' (names are matched "
            f"case-insensitively)."
        )


class UnsupportedOperationError(ConfigurationError):
    """No registered rule matches the operation name."""

    def __init__(self, operation_name: str):
        self.operation_name = operation_name
        super().__init__(
            f"Unsupported operation '{operation_name}': "
            f"no transition rule registered for it."
        )


class RegistryLockedError(ConfigurationError):
    """Registry is locked — no modifications allowed."""

    def __init__(self):
        super().__init__(
            "Rule registry is locked after startup. "
            "No dynamic registration allowed."
        )


class RegistryNotLockedError(ConfigurationError):
    """Operation requires a locked registry."""

    def __init__(self):
        super().__init__(
            "Rule registry must be locked before serving requests. "
            "Call lock() after all rules are registered."
        )


# ══════════════════════════════════════════════════════════════
# MUTATION ERRORS (raised by rule authors)
# ══════════════════════════════════════════════════════════════

class MutationError(Exception):
    """
    Business-rule error raised inside a mutation.

    Subclasses may override `code`. The MutationStage turns any
    MutationError into a MutationFailure with that code.
    """

    code = ReasonCode.MUTATION_ERROR

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class MissingFieldError(MutationError):
    """A field required by this transition is absent."""

    code = ReasonCode.MISSING_FIELD

    def __init__(self, field_names: Iterable[str], transition: str = ""):
        self.field_names = tuple(field_names)
        self.transition = transition
        names = ", ".join(self.field_names)
        if transition:
            message = (
                f"Required field(s) missing for transition "
                f"'{transition}': {names}"
            )
        else:
            message = f"Required field(s) missing: {names}"
        super().__init__(message)


# ══════════════════════════════════════════════════════════════
# PIPELINE STATE ERRORS
# ══════════════════════════════════════════════════════════════

class PipelineStateError(Exception):
    """Pipeline instance used outside its single-shot lifecycle."""

    def __init__(self, state: str):
        self.state = state
        super().__init__(
            f"Pipeline already reached terminal state '{state}'. "
            f"Create a fresh pipeline per invocation."
        )
