"""
Transitions Bootstrap — Startup Errors
=========================================
If the rule table cannot be built at startup, the process must
refuse to serve requests.
"""

from entity_transitions.processing.errors import ConfigurationError


class BootstrapError(ConfigurationError):
    """
    Raised when the transition rule table cannot be built.

    If this exception is raised:
    - The process MUST NOT start serving
    - No fallback, no best-effort registry
    """

    def __init__(self, step: str, detail: str):
        self.step = step
        self.detail = detail
        super().__init__(f"TRANSITIONS BOOTSTRAP FAILURE — {step}: {detail}")
