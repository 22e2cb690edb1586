"""
Transitions Envelope — Entity + Metadata Pairing
===================================================
An EntityEnvelope pairs one business entity with the workflow metadata
the hosting engine keeps for it.

JSON shape (as exchanged with the engine):
    {
      "entity": { ... business fields ... },
      "meta":   { "id": "uuid", "state": "available", ... }
    }

Rules:
- Envelopes are frozen. A change produces a new envelope.
- Metadata is read-only input; the core never invents identity.
- The entity is opaque. Its only required capability is is_valid().

This module contains NO workflow logic and NO persistence.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, replace
from typing import Any, Callable, Optional, Protocol, runtime_checkable


# ══════════════════════════════════════════════════════════════
# ENTITY CAPABILITY
# ══════════════════════════════════════════════════════════════

@runtime_checkable
class SelfValidating(Protocol):
    """Anything that can report whether its own invariants hold."""

    def is_valid(self) -> bool:
        ...  # pragma: no cover


# ══════════════════════════════════════════════════════════════
# ERRORS
# ══════════════════════════════════════════════════════════════

class EnvelopeError(Exception):
    """Envelope could not be constructed."""

    def __init__(self, code: str, message: str):
        self.code = code
        self.message = message
        super().__init__(f"[{code}] {message}")


# ══════════════════════════════════════════════════════════════
# METADATA
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class Metadata:
    """
    Engine-owned workflow metadata.

    Fields:
        entity_id:      Technical identity (UUID). None means "absent";
                        such an envelope never passes validation.
        state:          Current workflow state label (e.g. 'available').
        model_name:     Entity model name, if the engine supplied it.
        model_version:  Entity model version, if the engine supplied it.
        transition:     Transition used for the latest save, if known.
    """

    entity_id: Optional[uuid.UUID]
    state: str = ""
    model_name: Optional[str] = None
    model_version: Optional[int] = None
    transition: Optional[str] = None

    def __post_init__(self):
        if self.entity_id is not None and not isinstance(
            self.entity_id, uuid.UUID
        ):
            raise ValueError(
                f"entity_id must be UUID or None, "
                f"got {type(self.entity_id).__name__}."
            )
        if not isinstance(self.state, str):
            raise ValueError("state must be a string.")
        if self.model_version is not None and (
            not isinstance(self.model_version, int) or self.model_version < 1
        ):
            raise ValueError("model_version must be a positive integer.")

    @property
    def has_identity(self) -> bool:
        return self.entity_id is not None

    def to_dict(self) -> dict:
        data = {
            "id": str(self.entity_id) if self.entity_id is not None else None,
            "state": self.state,
        }
        if self.model_name is not None:
            data["modelKey"] = {
                "name": self.model_name,
                "version": self.model_version,
            }
        if self.transition is not None:
            data["transitionForLatestSave"] = self.transition
        return data


# ══════════════════════════════════════════════════════════════
# ENVELOPE
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class EntityEnvelope:
    """
    Immutable {entity, metadata} pairing passed through the pipeline.

    The plain constructor only checks shape, so that a malformed
    envelope can still reach the ValidationStage and be rejected
    with a precise reason. Decoders use EntityEnvelope.build(),
    which refuses an envelope without identity.
    """

    entity: Any
    metadata: Metadata

    def __post_init__(self):
        if not isinstance(self.metadata, Metadata):
            raise TypeError(
                f"metadata must be Metadata, got "
                f"{type(self.metadata).__name__}."
            )

    @classmethod
    def build(cls, entity: Any, metadata: Metadata) -> "EntityEnvelope":
        """
        Construct a well-identified envelope.

        Raises:
            EnvelopeError: If metadata carries no identity.
        """
        if not isinstance(metadata, Metadata):
            raise EnvelopeError(
                code="INVALID_METADATA",
                message=(
                    f"Expected Metadata, got {type(metadata).__name__}."
                ),
            )
        if not metadata.has_identity:
            raise EnvelopeError(
                code="IDENTITY_MISSING",
                message="Cannot build envelope: metadata has no entity_id.",
            )
        return cls(entity=entity, metadata=metadata)

    # ── convenience accessors ────────────────────────────────

    @property
    def entity_id(self) -> Optional[uuid.UUID]:
        return self.metadata.entity_id

    @property
    def state(self) -> str:
        return self.metadata.state

    # ── copy-on-write ────────────────────────────────────────

    def with_entity(self, entity: Any) -> "EntityEnvelope":
        return replace(self, entity=entity)

    def with_state(self, state: str) -> "EntityEnvelope":
        return replace(self, metadata=replace(self.metadata, state=state))

    # ── serialization ────────────────────────────────────────

    def to_dict(
        self, serialize_entity: Optional[Callable[[Any], Any]] = None
    ) -> dict:
        """
        Serialize to the engine's {"entity": ..., "meta": ...} shape.

        serialize_entity defaults to entity.to_dict() when available,
        otherwise the entity is passed through unchanged.
        """
        if serialize_entity is not None:
            entity_data = serialize_entity(self.entity)
        elif hasattr(self.entity, "to_dict"):
            entity_data = self.entity.to_dict()
        else:
            entity_data = self.entity
        return {
            "entity": entity_data,
            "meta": self.metadata.to_dict(),
        }
