"""
Transitions Envelope — Tests
===============================
Covers:
- Metadata shape validation
- EntityEnvelope.build refuses missing identity
- Copy-on-write helpers
- Serialization to the engine's entity/meta shape
- RecordEntity validity and immutability
- Uniform field access over records, dataclasses, dicts, objects
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from typing import Optional

import pytest

from entity_transitions.envelope.models import EntityEnvelope, EnvelopeError, Metadata
from entity_transitions.envelope.records import (
    RecordEntity,
    has_field_value,
    read_field,
    write_fields,
)


ENTITY_ID = uuid.uuid4()


@dataclass(frozen=True)
class Pet:
    pet_id: str
    name: str
    status: str = "available"
    updated_at: Optional[str] = None

    def is_valid(self) -> bool:
        return bool(self.pet_id and self.name)


class PlainPet:
    def __init__(self, name: str, status: str):
        self.name = name
        self.status = status

    def is_valid(self) -> bool:
        return bool(self.name)


# ══════════════════════════════════════════════════════════════
# METADATA
# ══════════════════════════════════════════════════════════════

class TestMetadata:
    def test_basic_metadata(self):
        meta = Metadata(entity_id=ENTITY_ID, state="available")
        assert meta.has_identity
        assert meta.state == "available"

    def test_absent_identity_allowed_but_reported(self):
        meta = Metadata(entity_id=None, state="available")
        assert not meta.has_identity

    def test_entity_id_must_be_uuid(self):
        with pytest.raises(ValueError, match="entity_id"):
            Metadata(entity_id="p1", state="available")

    def test_model_version_must_be_positive(self):
        with pytest.raises(ValueError, match="model_version"):
            Metadata(entity_id=ENTITY_ID, model_name="pet", model_version=0)

    def test_to_dict_includes_model_key(self):
        meta = Metadata(
            entity_id=ENTITY_ID,
            state="available",
            model_name="pet",
            model_version=1,
            transition="reserve_pet",
        )
        assert meta.to_dict() == {
            "id": str(ENTITY_ID),
            "state": "available",
            "modelKey": {"name": "pet", "version": 1},
            "transitionForLatestSave": "reserve_pet",
        }

    def test_frozen(self):
        meta = Metadata(entity_id=ENTITY_ID, state="available")
        with pytest.raises(AttributeError):
            meta.state = "sold"


# ══════════════════════════════════════════════════════════════
# ENVELOPE
# ══════════════════════════════════════════════════════════════

class TestEntityEnvelope:
    def test_build_with_identity(self):
        pet = Pet(pet_id="p1", name="Rex")
        envelope = EntityEnvelope.build(
            pet, Metadata(entity_id=ENTITY_ID, state="available")
        )
        assert envelope.entity is pet
        assert envelope.entity_id == ENTITY_ID
        assert envelope.state == "available"

    def test_build_without_identity_fails(self):
        with pytest.raises(EnvelopeError, match="no entity_id") as exc_info:
            EntityEnvelope.build(
                Pet(pet_id="p1", name="Rex"),
                Metadata(entity_id=None, state="available"),
            )
        assert exc_info.value.code == "IDENTITY_MISSING"

    def test_build_with_wrong_metadata_type_fails(self):
        with pytest.raises(EnvelopeError) as exc_info:
            EntityEnvelope.build(Pet(pet_id="p1", name="Rex"), {"id": "x"})
        assert exc_info.value.code == "INVALID_METADATA"

    def test_constructor_requires_metadata_instance(self):
        with pytest.raises(TypeError, match="metadata"):
            EntityEnvelope(entity=None, metadata={"id": str(ENTITY_ID)})

    def test_envelope_is_frozen(self):
        envelope = EntityEnvelope(
            Pet(pet_id="p1", name="Rex"), Metadata(entity_id=ENTITY_ID)
        )
        with pytest.raises(AttributeError):
            envelope.entity = None

    def test_with_entity_returns_new_envelope(self):
        original = EntityEnvelope(
            Pet(pet_id="p1", name="Rex"),
            Metadata(entity_id=ENTITY_ID, state="available"),
        )
        updated = original.with_entity(Pet(pet_id="p1", name="Max"))
        assert updated is not original
        assert original.entity.name == "Rex"
        assert updated.entity.name == "Max"
        assert updated.metadata is original.metadata

    def test_with_state_keeps_identity(self):
        original = EntityEnvelope(
            Pet(pet_id="p1", name="Rex"),
            Metadata(entity_id=ENTITY_ID, state="available"),
        )
        moved = original.with_state("pending")
        assert moved.state == "pending"
        assert moved.entity_id == ENTITY_ID
        assert original.state == "available"

    def test_to_dict_uses_entity_to_dict(self):
        envelope = EntityEnvelope(
            RecordEntity({"id": "p1", "status": "available"}),
            Metadata(entity_id=ENTITY_ID, state="available"),
        )
        assert envelope.to_dict() == {
            "entity": {"id": "p1", "status": "available"},
            "meta": {"id": str(ENTITY_ID), "state": "available"},
        }

    def test_to_dict_with_custom_serializer(self):
        envelope = EntityEnvelope(
            Pet(pet_id="p1", name="Rex"),
            Metadata(entity_id=ENTITY_ID, state="available"),
        )
        data = envelope.to_dict(lambda pet: {"name": pet.name})
        assert data["entity"] == {"name": "Rex"}


# ══════════════════════════════════════════════════════════════
# RECORD ENTITY
# ══════════════════════════════════════════════════════════════

class TestRecordEntity:
    def test_valid_when_required_fields_present(self):
        record = RecordEntity({"id": "p1", "name": "Rex"}, required=("id", "name"))
        assert record.is_valid()

    def test_invalid_when_required_field_blank(self):
        record = RecordEntity({"id": "p1", "name": "  "}, required=("id", "name"))
        assert not record.is_valid()
        assert record.missing_fields(("id", "name")) == ("name",)

    def test_invalid_when_required_field_absent(self):
        record = RecordEntity({"id": "p1"}, required=("id", "name"))
        assert not record.is_valid()

    def test_with_fields_does_not_touch_original(self):
        record = RecordEntity({"id": "p1", "status": "available"})
        updated = record.with_fields(status="sold")
        assert record["status"] == "available"
        assert updated["status"] == "sold"

    def test_without_fields(self):
        record = RecordEntity({"id": "p1", "note": "x"})
        assert "note" not in record.without_fields("note")
        assert "note" in record

    def test_input_mapping_is_copied(self):
        source = {"id": "p1", "tags": ["a"]}
        record = RecordEntity(source)
        source["tags"].append("b")
        assert record["tags"] == ["a"]

    def test_to_dict_returns_copy(self):
        record = RecordEntity({"id": "p1", "tags": ["a"]})
        data = record.to_dict()
        data["tags"].append("b")
        assert record["tags"] == ["a"]

    def test_rejects_non_mapping(self):
        with pytest.raises(TypeError, match="mapping"):
            RecordEntity(["id", "p1"])

    def test_equality(self):
        assert RecordEntity({"id": "p1"}) == RecordEntity({"id": "p1"})
        assert RecordEntity({"id": "p1"}) != RecordEntity({"id": "p2"})


# ══════════════════════════════════════════════════════════════
# FIELD ACCESS
# ══════════════════════════════════════════════════════════════

class TestFieldAccess:
    def test_read_field_shapes(self):
        assert read_field(RecordEntity({"status": "a"}), "status") == "a"
        assert read_field({"status": "b"}, "status") == "b"
        assert read_field(Pet(pet_id="p1", name="Rex"), "status") == "available"
        assert read_field(PlainPet("Rex", "c"), "status") == "c"
        assert read_field({}, "status", "default") == "default"

    def test_has_field_value(self):
        assert has_field_value({"amount": 0}, "amount")
        assert not has_field_value({"amount": None}, "amount")
        assert not has_field_value({"name": ""}, "name")
        assert not has_field_value({}, "amount")

    def test_write_fields_on_dataclass(self):
        pet = Pet(pet_id="p1", name="Rex")
        updated = write_fields(pet, status="pending")
        assert updated.status == "pending"
        assert pet.status == "available"

    def test_write_unknown_dataclass_field_fails(self):
        with pytest.raises(AttributeError, match="colour"):
            write_fields(Pet(pet_id="p1", name="Rex"), colour="brown")

    def test_write_fields_on_dict(self):
        data = {"status": "available"}
        updated = write_fields(data, status="sold")
        assert updated == {"status": "sold"}
        assert data == {"status": "available"}

    def test_write_fields_on_plain_object(self):
        pet = PlainPet("Rex", "available")
        updated = write_fields(pet, status="sold")
        assert updated.status == "sold"
        assert pet.status == "available"

    def test_write_fields_on_missing_entity_fails(self):
        with pytest.raises(TypeError, match="missing entity"):
            write_fields(None, status="sold")

    def test_field_named_entity_can_be_written(self):
        updated = write_fields(RecordEntity({}), entity="invoice")
        assert updated["entity"] == "invoice"

    def test_field_named_entity_on_dict(self):
        assert write_fields({}, entity="invoice") == {"entity": "invoice"}
