"""
Transitions Contracts — Tests
================================
Covers:
- CalculationRequest decoding (snake_case, camelCase, data/meta payload)
- Envelope construction from a request
- CalculationResponse variants and serialization
"""

from __future__ import annotations

import json
import uuid
from datetime import datetime, timezone
from decimal import Decimal

import pytest

from entity_transitions.contracts.messages import (
    CalculationRequest,
    CalculationResponse,
    RequestDecodeError,
    ResponseError,
)
from entity_transitions.envelope.models import EntityEnvelope, Metadata
from entity_transitions.envelope.records import RecordEntity
from entity_transitions.processing.rejection import FailureReason, STAGE_VALIDATION


ENTITY_ID = uuid.uuid4()


# ══════════════════════════════════════════════════════════════
# REQUEST DECODING
# ══════════════════════════════════════════════════════════════

class TestRequestFromDict:
    def test_snake_case(self):
        request = CalculationRequest.from_dict({
            "request_id": "req-1",
            "operation_name": "Reserve",
            "entity_id": str(ENTITY_ID),
            "payload": {"id": "p1"},
            "current_state": "available",
        })
        assert request.request_id == "req-1"
        assert request.operation_name == "Reserve"
        assert request.payload == {"id": "p1"}
        assert request.current_state == "available"

    def test_engine_camel_case_with_data_meta(self):
        request = CalculationRequest.from_dict({
            "id": "req-7",
            "processorName": "FundLoan",
            "entityId": str(ENTITY_ID),
            "transactionId": "tx-1",
            "payload": {
                "data": {"loan_id": "L-1", "principal_amount": 5000},
                "meta": {
                    "state": "approved",
                    "modelKey": {"name": "loan", "version": 2},
                },
            },
        })
        assert request.request_id == "req-7"
        assert request.operation_name == "FundLoan"
        assert request.transaction_id == "tx-1"
        assert request.payload == {"loan_id": "L-1", "principal_amount": 5000}
        assert request.current_state == "approved"
        assert request.model_name == "loan"
        assert request.model_version == 2

    def test_explicit_state_wins_over_meta(self):
        request = CalculationRequest.from_dict({
            "requestId": "req-1",
            "operationName": "Reserve",
            "entityId": str(ENTITY_ID),
            "currentState": "available",
            "payload": {"data": {"id": "p1"}, "meta": {"state": "pending"}},
        })
        assert request.current_state == "available"

    def test_missing_operation_name(self):
        with pytest.raises(RequestDecodeError, match="operation_name") as exc_info:
            CalculationRequest.from_dict({"request_id": "req-1"})
        assert exc_info.value.code == "INVALID_REQUEST"

    def test_non_mapping(self):
        with pytest.raises(RequestDecodeError, match="mapping"):
            CalculationRequest.from_dict(["req-1"])


# ══════════════════════════════════════════════════════════════
# ENVELOPE CONSTRUCTION
# ══════════════════════════════════════════════════════════════

class TestRequestToEnvelope:
    def make(self, **overrides):
        fields = dict(
            request_id="req-1",
            operation_name="Reserve",
            entity_id=str(ENTITY_ID),
            payload={"id": "p1", "status": "available"},
            current_state="available",
        )
        fields.update(overrides)
        return CalculationRequest(**fields)

    def test_default_record_entity(self):
        envelope = self.make().to_envelope()
        assert isinstance(envelope.entity, RecordEntity)
        assert envelope.entity["status"] == "available"
        assert envelope.entity_id == ENTITY_ID
        assert envelope.state == "available"

    def test_uuid_instance_accepted(self):
        assert self.make(entity_id=ENTITY_ID).to_envelope().entity_id == ENTITY_ID

    def test_custom_factory(self):
        envelope = self.make().to_envelope(lambda data: dict(data))
        assert envelope.entity == {"id": "p1", "status": "available"}

    def test_missing_entity_id(self):
        with pytest.raises(RequestDecodeError) as exc_info:
            self.make(entity_id=None).to_envelope()
        assert exc_info.value.code == "IDENTITY_MISSING"

    def test_bad_entity_id(self):
        with pytest.raises(RequestDecodeError, match="UUID"):
            self.make(entity_id="p1").to_envelope()

    def test_factory_failure_wrapped(self):
        def factory(data):
            raise KeyError("name")

        with pytest.raises(RequestDecodeError, match="KeyError"):
            self.make().to_envelope(factory)

    def test_bad_model_version_wrapped(self):
        with pytest.raises(RequestDecodeError, match="model_version"):
            self.make(model_name="pet", model_version=0).to_envelope()

    def test_missing_payload_gives_empty_entity(self):
        envelope = self.make(payload=None).to_envelope()
        assert envelope.entity is None


# ══════════════════════════════════════════════════════════════
# RESPONSE
# ══════════════════════════════════════════════════════════════

class TestCalculationResponse:
    def test_from_envelope(self):
        envelope = EntityEnvelope.build(
            RecordEntity({"id": "p1", "status": "pending"}),
            Metadata(entity_id=ENTITY_ID, state="available"),
        )
        response = CalculationResponse.from_envelope("req-1", envelope)
        assert response.to_dict() == {
            "request_id": "req-1",
            "entity_id": str(ENTITY_ID),
            "success": True,
            "payload": {
                "entity": {"id": "p1", "status": "pending"},
                "meta": {"id": str(ENTITY_ID), "state": "available"},
            },
        }

    def test_from_failure(self):
        reason = FailureReason(
            code="PRECONDITION_FAILED",
            message="Pet must be available",
            stage=STAGE_VALIDATION,
            rule_name="Reserve",
        )
        response = CalculationResponse.from_failure("req-1", ENTITY_ID, reason)
        assert response.to_dict() == {
            "request_id": "req-1",
            "entity_id": str(ENTITY_ID),
            "success": False,
            "error": {
                "code": "PRECONDITION_FAILED",
                "message": "Pet must be available",
                "details": {"stage": "validation", "rule_name": "Reserve"},
            },
        }

    def test_success_with_error_rejected(self):
        with pytest.raises(ValueError):
            CalculationResponse(
                request_id="req-1",
                entity_id=None,
                success=True,
                error=ResponseError(code="X", message="y"),
            )

    def test_error_without_error_rejected(self):
        with pytest.raises(ValueError):
            CalculationResponse(request_id="req-1", entity_id=None, success=False)

    def test_to_json_encodes_rich_types(self):
        funded_at = datetime(2025, 1, 1, 12, 0, tzinfo=timezone.utc)
        envelope = EntityEnvelope.build(
            RecordEntity({
                "principal_amount": Decimal("5000.00"),
                "funded_at": funded_at,
                "borrower_id": ENTITY_ID,
            }),
            Metadata(entity_id=ENTITY_ID, state="funded"),
        )
        data = json.loads(
            CalculationResponse.from_envelope("req-1", envelope).to_json()
        )
        entity = data["payload"]["entity"]
        assert entity["principal_amount"] == "5000.00"
        assert entity["funded_at"].startswith("2025-01-01T12:00:00")
        assert entity["borrower_id"] == str(ENTITY_ID)
