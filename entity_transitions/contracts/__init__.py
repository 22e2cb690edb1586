"""
Transitions Contracts — Public API
=====================================
Logical request/response exchanged with the hosting engine.
"""

from entity_transitions.contracts.messages import (
    CalculationRequest,
    CalculationResponse,
    EntityFactory,
    RequestDecodeError,
    ResponseError,
)

__all__ = [
    "CalculationRequest",
    "CalculationResponse",
    "EntityFactory",
    "RequestDecodeError",
    "ResponseError",
]
