"""
Transitions Bootstrap — App Configuration
============================================
Builds and locks the transition rule table when Django finishes
loading.

Rules:
- Runs once via ready()
- Skips management commands that never serve requests
- If the rule table cannot be built → BootstrapError prevents startup
"""

import logging
import sys

from django.apps import AppConfig, apps
from django.conf import settings

logger = logging.getLogger("entity_transitions.bootstrap")

APP_LABEL = "transitions_bootstrap"

# Commands that should NOT trigger the rule bootstrap
SKIP_COMMANDS = {
    "migrate",
    "makemigrations",
    "showmigrations",
    "collectstatic",
    "check",
    "shell",
}


def _is_management_command_skip():
    """Check if current command should skip the rule bootstrap."""
    if len(sys.argv) >= 2:
        return sys.argv[1] in SKIP_COMMANDS
    return False


class TransitionsBootstrapConfig(AppConfig):
    name = "entity_transitions.bootstrap"
    label = APP_LABEL
    verbose_name = "Transition Rule Bootstrap"

    registry = None

    def ready(self):
        if _is_management_command_skip():
            logger.info(
                "Transition rule bootstrap skipped for management command."
            )
            return

        from entity_transitions.bootstrap.loader import load_registry
        self.registry = load_registry(settings)


def get_registry():
    """
    The locked registry built at startup.

    Raises:
        RegistryNotLockedError: If bootstrap has not run.
    """
    from entity_transitions.processing.errors import RegistryNotLockedError

    registry = apps.get_app_config(APP_LABEL).registry
    if registry is None:
        raise RegistryNotLockedError()
    return registry
