"""
Transitions Processing — Rule Registry
=========================================
Explicit registration table of transition rules.

Rules:
- Each rule name registers exactly once (case-insensitive)
- Registry locks after startup (no dynamic injection)
- Thread-safe for concurrent access
- Read-only after lock

Lifecycle:
    1. Create registry
    2. Register rules (during startup)
    3. Lock registry (after all rules registered)
    4. Resolve operation names per request

Duplicate names are refused at registration time, so a locked
registry can never hold two rules for one operation.
"""

from __future__ import annotations

import logging
from threading import Lock
from typing import Dict, Iterable, Optional

from entity_transitions.processing.errors import (
    ConfigurationError,
    DuplicateRuleError,
    RegistryLockedError,
    UnsupportedOperationError,
)
from entity_transitions.processing.rules import (
    TransitionRule,
    normalize_operation_name,
)

logger = logging.getLogger("entity_transitions.processing")


class RuleRegistry:
    """
    Lookup table: normalized operation name → TransitionRule.

    Usage:
        registry = RuleRegistry()

        # Startup — register rules
        registry.register(reserve_pet)
        registry.register_all(loan_rules.TRANSITION_RULES)

        # Lock — no more registrations
        registry.lock()

        # Requests — resolve by operation name
        rule = registry.resolve("reservepet")
    """

    def __init__(self, rules: Optional[Iterable[TransitionRule]] = None):
        self._rules: Dict[str, TransitionRule] = {}
        self._locked: bool = False
        self._lock = Lock()
        if rules is not None:
            self.register_all(rules)

    # ══════════════════════════════════════════════════════════
    # REGISTRATION (startup only)
    # ══════════════════════════════════════════════════════════

    def register(self, rule: TransitionRule) -> None:
        """
        Register a transition rule.

        Raises:
            RegistryLockedError: If registry is already locked.
            DuplicateRuleError: If a rule with the same name exists.
            TypeError: If rule is not a TransitionRule.
        """
        if not isinstance(rule, TransitionRule):
            raise TypeError(
                f"Expected TransitionRule, got {type(rule).__name__}."
            )

        with self._lock:
            if self._locked:
                raise RegistryLockedError()

            existing = self._rules.get(rule.key)
            if existing is not None:
                raise DuplicateRuleError(
                    rule_name=rule.name, existing_name=existing.name
                )

            self._rules[rule.key] = rule

        logger.info(f"Transition rule registered: '{rule.name}'")

    def register_all(self, rules: Iterable[TransitionRule]) -> int:
        """Register several rules. Returns how many were registered."""
        count = 0
        for rule in rules:
            self.register(rule)
            count += 1
        return count

    # ══════════════════════════════════════════════════════════
    # LOCK
    # ══════════════════════════════════════════════════════════

    def lock(self) -> None:
        """
        Lock the registry. No more registrations allowed.

        Idempotent — locking twice is a no-op.

        Raises:
            ConfigurationError: If no rules were registered.
        """
        with self._lock:
            if self._locked:
                return

            if not self._rules:
                raise ConfigurationError(
                    "Cannot lock rule registry — no transition rules "
                    "registered."
                )

            self._locked = True
            count = len(self._rules)

        logger.info(f"Rule registry LOCKED — {count} transition rules")

    @property
    def is_locked(self) -> bool:
        with self._lock:
            return self._locked

    # ══════════════════════════════════════════════════════════
    # QUERY
    # ══════════════════════════════════════════════════════════

    def supports(self, operation_name: str) -> bool:
        if not isinstance(operation_name, str):
            return False
        with self._lock:
            return normalize_operation_name(operation_name) in self._rules

    def get(self, operation_name: str) -> Optional[TransitionRule]:
        """Rule for operation_name, or None."""
        if not isinstance(operation_name, str):
            return None
        with self._lock:
            return self._rules.get(normalize_operation_name(operation_name))

    def resolve(self, operation_name: str) -> TransitionRule:
        """
        Rule for operation_name.

        Raises:
            UnsupportedOperationError: If no rule matches.
        """
        rule = self.get(operation_name)
        if rule is None:
            raise UnsupportedOperationError(str(operation_name))
        return rule

    def ensure_supported(self, operation_names: Iterable[str]) -> None:
        """
        Verify every operation name resolves to a rule.

        Used at startup to refuse booting when the workflow declares
        an operation nobody handles.

        Raises:
            ConfigurationError: Listing every unsupported name.
        """
        missing = sorted(
            {name for name in operation_names if not self.supports(name)}
        )
        if missing:
            raise ConfigurationError(
                "Unsupported operations declared by workflow:\n"
                + "\n".join(f"  • {name}" for name in missing)
            )

    def rule_names(self) -> frozenset:
        """Declared (original-case) names of all registered rules."""
        with self._lock:
            return frozenset(rule.name for rule in self._rules.values())

    def __len__(self) -> int:
        with self._lock:
            return len(self._rules)
