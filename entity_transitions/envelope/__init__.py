"""
Transitions Envelope — Public API
====================================
Immutable {entity, metadata} pairing and uniform field access.
"""

from entity_transitions.envelope.models import (
    EntityEnvelope,
    EnvelopeError,
    Metadata,
    SelfValidating,
)
from entity_transitions.envelope.records import (
    RecordEntity,
    has_field_value,
    read_field,
    write_fields,
)

__all__ = [
    # ── Models ────────────────────────────────────────────────
    "EntityEnvelope",
    "EnvelopeError",
    "Metadata",
    "SelfValidating",
    # ── Records ───────────────────────────────────────────────
    "RecordEntity",
    "has_field_value",
    "read_field",
    "write_fields",
]
