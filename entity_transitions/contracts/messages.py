"""
Transitions Contracts — Calculation Request / Response
=========================================================
Framework-agnostic request/response DTOs exchanged with the hosting
workflow engine.

The transport (gRPC stream, HTTP, queue) is NOT handled here. A
transport adapter decodes its framing into a CalculationRequest and
encodes the CalculationResponse back.

Response variants:
    {"success": True,  "payload": {...updated entity...}}
    {"success": False, "error": {"code": ..., "message": ...}}
"""

from __future__ import annotations

import json
import uuid
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Callable, Optional

from django.core.serializers.json import DjangoJSONEncoder

from entity_transitions.envelope.models import EntityEnvelope, EnvelopeError, Metadata
from entity_transitions.envelope.records import RecordEntity
if TYPE_CHECKING:
    from entity_transitions.processing.rejection import FailureReason


INVALID_REQUEST = "INVALID_REQUEST"
IDENTITY_MISSING = "IDENTITY_MISSING"


EntityFactory = Callable[[Mapping], Any]


class RequestDecodeError(Exception):
    """Inbound request could not be turned into an envelope."""

    def __init__(self, message: str, code: str = INVALID_REQUEST):
        self.code = code
        self.message = message
        super().__init__(f"[{code}] {message}")


def _parse_uuid(value: Any, field_name: str) -> uuid.UUID:
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except (TypeError, ValueError) as exc:
        raise RequestDecodeError(f"{field_name} must be a valid UUID.") from exc


def _first(raw: Mapping, *keys: str, default: Any = None) -> Any:
    for key in keys:
        if key in raw and raw[key] is not None:
            return raw[key]
    return default


# ══════════════════════════════════════════════════════════════
# REQUEST
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class CalculationRequest:
    """
    One processor calculation request.

    Fields:
        request_id:      Engine-assigned request identifier.
        operation_name:  Processor / transition name to dispatch on.
        entity_id:       Technical identity of the entity (raw value).
        payload:         Raw business fields of the entity.
        current_state:   Current workflow state of the entity.
        transaction_id:  Engine transaction, if any.
        model_name:      Entity model name, if supplied.
        model_version:   Entity model version, if supplied.
    """

    request_id: str
    operation_name: str
    entity_id: Any
    payload: Optional[Mapping] = None
    current_state: str = ""
    transaction_id: Optional[str] = None
    model_name: Optional[str] = None
    model_version: Optional[int] = None

    def __post_init__(self):
        if not self.request_id or not isinstance(self.request_id, str):
            raise ValueError("request_id must be a non-empty string.")
        if not self.operation_name or not isinstance(self.operation_name, str):
            raise ValueError("operation_name must be a non-empty string.")
        if self.payload is not None and not isinstance(self.payload, Mapping):
            raise ValueError("payload must be a mapping or None.")
        if not isinstance(self.current_state, str):
            raise ValueError("current_state must be a string.")

    @classmethod
    def from_dict(cls, raw: Mapping) -> "CalculationRequest":
        """
        Decode a request dict.

        Accepts snake_case keys or the engine's camelCase keys. The
        payload may be flat business fields, or the engine's
        {"data": {...}, "meta": {...}} form.
        """
        if not isinstance(raw, Mapping):
            raise RequestDecodeError(
                f"Request must be a mapping, got {type(raw).__name__}."
            )

        payload = _first(raw, "payload")
        meta: Mapping = {}
        if isinstance(payload, Mapping) and "data" in payload:
            meta = payload.get("meta") or {}
            payload = payload.get("data")

        model_key = _first(meta, "modelKey", "model_key", default={}) or {}

        try:
            return cls(
                request_id=str(
                    _first(raw, "request_id", "requestId", "id", default="")
                ),
                operation_name=_first(
                    raw, "operation_name", "operationName", "processorName",
                    default="",
                ),
                entity_id=_first(raw, "entity_id", "entityId"),
                payload=payload,
                current_state=_first(
                    raw, "current_state", "currentState", default=None
                ) or _first(meta, "state", default=""),
                transaction_id=_first(raw, "transaction_id", "transactionId"),
                model_name=_first(model_key, "name"),
                model_version=_first(model_key, "version"),
            )
        except ValueError as exc:
            raise RequestDecodeError(str(exc)) from exc

    def to_envelope(
        self, entity_factory: Optional[EntityFactory] = None
    ) -> EntityEnvelope:
        """
        Build the envelope the pipeline consumes.

        entity_factory turns the raw payload into an entity. Defaults
        to RecordEntity (no required fields). A missing payload yields
        an envelope without entity, which validation rejects.

        Raises:
            RequestDecodeError: Bad identity or factory failure.
        """
        if self.entity_id is None or self.entity_id == "":
            raise RequestDecodeError(
                "entity_id is required.", code=IDENTITY_MISSING
            )
        entity_id = _parse_uuid(self.entity_id, "entity_id")

        entity = None
        if self.payload is not None:
            factory = entity_factory or RecordEntity
            try:
                entity = factory(self.payload)
            except Exception as exc:
                raise RequestDecodeError(
                    f"Could not decode entity payload: "
                    f"{type(exc).__name__}: {exc}"
                ) from exc

        try:
            return EntityEnvelope.build(
                entity=entity,
                metadata=Metadata(
                    entity_id=entity_id,
                    state=self.current_state,
                    model_name=self.model_name,
                    model_version=self.model_version,
                ),
            )
        except (EnvelopeError, ValueError) as exc:
            raise RequestDecodeError(str(exc)) from exc


# ══════════════════════════════════════════════════════════════
# RESPONSE
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class ResponseError:
    code: str
    message: str
    details: dict = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "code": self.code,
            "message": self.message,
            "details": dict(self.details),
        }


@dataclass(frozen=True)
class CalculationResponse:
    """Two-variant response: success with payload, or error."""

    request_id: str
    entity_id: Optional[str]
    success: bool
    payload: Optional[dict] = None
    error: Optional[ResponseError] = None

    def __post_init__(self):
        if self.success and self.error is not None:
            raise ValueError("Successful response must NOT include an error.")
        if not self.success and self.error is None:
            raise ValueError("Error response must include an error.")
        if not self.success and self.payload is not None:
            raise ValueError("Error response must NOT include a payload.")

    @classmethod
    def from_envelope(
        cls,
        request_id: str,
        envelope: EntityEnvelope,
        serialize_entity: Optional[Callable[[Any], Any]] = None,
    ) -> "CalculationResponse":
        return cls(
            request_id=request_id,
            entity_id=str(envelope.entity_id),
            success=True,
            payload=envelope.to_dict(serialize_entity),
        )

    @classmethod
    def from_failure(
        cls,
        request_id: str,
        entity_id: Any,
        reason: FailureReason,
    ) -> "CalculationResponse":
        return cls.error_response(
            request_id=request_id,
            entity_id=entity_id,
            code=reason.code,
            message=reason.message,
            details={"stage": reason.stage, "rule_name": reason.rule_name},
        )

    @classmethod
    def error_response(
        cls,
        *,
        request_id: str,
        entity_id: Any,
        code: str,
        message: str,
        details: Optional[dict] = None,
    ) -> "CalculationResponse":
        return cls(
            request_id=request_id,
            entity_id=None if entity_id is None else str(entity_id),
            success=False,
            error=ResponseError(
                code=code, message=message, details=details or {}
            ),
        )

    def to_dict(self) -> dict:
        data = {
            "request_id": self.request_id,
            "entity_id": self.entity_id,
            "success": self.success,
        }
        if self.success:
            data["payload"] = self.payload
        else:
            data["error"] = self.error.to_dict()
        return data

    def to_json(self) -> str:
        """JSON text; datetimes, UUIDs and Decimals are encoded."""
        return json.dumps(self.to_dict(), cls=DjangoJSONEncoder)
