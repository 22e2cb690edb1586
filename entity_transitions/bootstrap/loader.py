"""
Transitions Bootstrap — Rule Table Loader
============================================
Builds the locked RuleRegistry once, at process start.

Settings read (any object with attributes, e.g. django.conf.settings):
    TRANSITION_RULE_MODULES        dotted paths of modules exposing
                                   a TRANSITION_RULES iterable
    TRANSITION_REQUIRED_OPERATIONS operation names the workflow will
                                   send; each must resolve

Steps:
1. Import every rule module
2. Register every rule (duplicates refused)
3. Verify required operations resolve
4. Lock

Any failure → BootstrapError. No partial registry is ever returned.
"""

from __future__ import annotations

import importlib
import logging
from types import ModuleType
from typing import Any, Iterable, List

from entity_transitions.bootstrap.errors import BootstrapError
from entity_transitions.processing.errors import ConfigurationError
from entity_transitions.processing.registry import RuleRegistry
from entity_transitions.processing.rules import TransitionRule

logger = logging.getLogger("entity_transitions.bootstrap")

RULES_ATTRIBUTE = "TRANSITION_RULES"


def import_rule_module(module_path: str) -> ModuleType:
    try:
        return importlib.import_module(module_path)
    except Exception as exc:
        raise BootstrapError(
            step="RULE_MODULE_IMPORT",
            detail=(
                f"Cannot import rule module '{module_path}': "
                f"{type(exc).__name__}: {exc}"
            ),
        ) from exc


def collect_rules(module: ModuleType) -> List[TransitionRule]:
    """Read and type-check the module's TRANSITION_RULES."""
    rules = getattr(module, RULES_ATTRIBUTE, None)
    if rules is None:
        raise BootstrapError(
            step="RULE_MODULE_CONTENT",
            detail=(
                f"Module '{module.__name__}' does not define "
                f"{RULES_ATTRIBUTE}."
            ),
        )

    try:
        collected = list(rules)
    except TypeError as exc:
        raise BootstrapError(
            step="RULE_MODULE_CONTENT",
            detail=(
                f"Module '{module.__name__}': {RULES_ATTRIBUTE} is not "
                f"iterable ({type(rules).__name__})."
            ),
        ) from exc

    for rule in collected:
        if not isinstance(rule, TransitionRule):
            raise BootstrapError(
                step="RULE_MODULE_CONTENT",
                detail=(
                    f"Module '{module.__name__}' exports a "
                    f"{type(rule).__name__} in {RULES_ATTRIBUTE}; "
                    f"expected TransitionRule."
                ),
            )
    return collected


def build_registry(
    module_paths: Iterable[str],
    required_operations: Iterable[str] = (),
) -> RuleRegistry:
    """
    Build and lock a registry from rule modules.

    Raises:
        BootstrapError: On any import, registration or coverage failure.
    """
    registry = RuleRegistry()

    for module_path in module_paths:
        module = import_rule_module(module_path)
        try:
            count = registry.register_all(collect_rules(module))
        except BootstrapError:
            raise
        except ConfigurationError as exc:
            raise BootstrapError(
                step="RULE_REGISTRATION",
                detail=f"{module_path}: {exc}",
            ) from exc
        logger.info(f"Loaded {count} transition rules from '{module_path}'")

    try:
        registry.ensure_supported(required_operations)
        registry.lock()
    except ConfigurationError as exc:
        raise BootstrapError(step="RULE_COVERAGE", detail=str(exc)) from exc

    return registry


def load_registry(settings: Any) -> RuleRegistry:
    """Build the registry described by a settings object."""
    module_paths = tuple(getattr(settings, "TRANSITION_RULE_MODULES", ()))
    required = tuple(getattr(settings, "TRANSITION_REQUIRED_OPERATIONS", ()))

    if not module_paths:
        raise BootstrapError(
            step="SETTINGS",
            detail="TRANSITION_RULE_MODULES is empty or not set.",
        )

    logger.info("═══ Transition rule bootstrap starting ═══")
    registry = build_registry(module_paths, required)
    logger.info(
        f"═══ Transition rule bootstrap PASSED — {len(registry)} rules ═══"
    )
    return registry
