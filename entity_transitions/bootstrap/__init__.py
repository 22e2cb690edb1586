"""
Transitions Bootstrap — Public API
=====================================
Startup-time construction of the locked rule registry.

The Django AppConfig lives in entity_transitions.bootstrap.apps and is not
imported here, so the loader is usable without configured settings.
"""

from entity_transitions.bootstrap.errors import BootstrapError
from entity_transitions.bootstrap.loader import (
    RULES_ATTRIBUTE,
    build_registry,
    collect_rules,
    import_rule_module,
    load_registry,
)

__all__ = [
    "BootstrapError",
    "RULES_ATTRIBUTE",
    "build_registry",
    "collect_rules",
    "import_rule_module",
    "load_registry",
]
