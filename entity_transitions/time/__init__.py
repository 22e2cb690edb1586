"""
Transitions Time — Public API
================================
Clocks handed to timestamp-stamping mutations.
"""

from entity_transitions.time.clock import (
    Clock,
    FixedClock,
    SystemClock,
    require_clock,
)

__all__ = [
    "Clock",
    "FixedClock",
    "SystemClock",
    "require_clock",
]
