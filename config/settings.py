"""
Transitions – Django Settings (Infrastructure Only)
=====================================================
Django serves as the configuration container for the processor host.
It is used for settings and app startup only; no database, no views.

Rule modules are supplied by the deployment. Each listed module must
expose a TRANSITION_RULES iterable of TransitionRule objects.
"""

import os
from pathlib import Path

# ── Paths ─────────────────────────────────────────────────────
BASE_DIR = Path(__file__).resolve().parent.parent

# ── Security ──────────────────────────────────────────────────
SECRET_KEY = os.environ.get(
    "TRANSITIONS_SECRET_KEY", "transitions-dev-key-replace-before-deployment"
)

DEBUG = os.environ.get("TRANSITIONS_DEBUG", "0") == "1"

ALLOWED_HOSTS = []

# ── Installed Apps ────────────────────────────────────────────
INSTALLED_APPS = [
    "entity_transitions.bootstrap",
]

# ── Transition Rules ──────────────────────────────────────────
# Comma-separated dotted module paths, e.g.
#   TRANSITION_RULE_MODULES=rules.pets,rules.loans
TRANSITION_RULE_MODULES = [
    path.strip()
    for path in os.environ.get("TRANSITION_RULE_MODULES", "").split(",")
    if path.strip()
]

# Operation names the workflow definitions will send. Startup fails
# if any of them has no registered rule.
TRANSITION_REQUIRED_OPERATIONS = [
    name.strip()
    for name in os.environ.get("TRANSITION_REQUIRED_OPERATIONS", "").split(",")
    if name.strip()
]

# ── Internationalization ──────────────────────────────────────
TIME_ZONE = "UTC"
USE_TZ = True
