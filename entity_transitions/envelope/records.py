"""
Transitions Envelope — Record Entities and Field Access
==========================================================
The pipeline treats entities as opaque. Mutation helpers still need
to read and rewrite named fields, so this module provides:

- RecordEntity: a dict-backed entity with declared required fields,
  for callers that have no typed model of their own.
- read_field / write_fields: uniform field access over RecordEntity,
  dataclasses, mappings and plain attribute objects.

write_fields never mutates its argument. It returns a new entity.
"""

from __future__ import annotations

import copy
import dataclasses
from collections.abc import Mapping
from typing import Any, Dict, Iterable, Optional, Tuple


_MISSING = object()


# ══════════════════════════════════════════════════════════════
# RECORD ENTITY
# ══════════════════════════════════════════════════════════════

class RecordEntity:
    """
    Dict-backed business record.

    A record is valid when every required field is present and
    not None / not an empty string.

    Usage:
        pet = RecordEntity(
            {"id": "p1", "name": "Rex", "status": "available"},
            required=("id", "name"),
        )
        pet.is_valid()                      # True
        sold = pet.with_fields(status="sold")
        pet["status"]                       # 'available' (unchanged)
    """

    __slots__ = ("_fields", "_required")

    def __init__(
        self,
        fields: Optional[Mapping] = None,
        required: Iterable[str] = (),
    ):
        if fields is not None and not isinstance(fields, Mapping):
            raise TypeError(
                f"fields must be a mapping, got {type(fields).__name__}."
            )
        self._fields: Dict[str, Any] = copy.deepcopy(dict(fields or {}))
        self._required: Tuple[str, ...] = tuple(required)

    # ── capability ───────────────────────────────────────────

    def is_valid(self) -> bool:
        return not self.missing_fields(self._required)

    def missing_fields(self, names: Iterable[str]) -> Tuple[str, ...]:
        """Return the subset of names that are absent or blank."""
        return tuple(name for name in names if _is_blank(self._fields.get(name)))

    # ── read access ──────────────────────────────────────────

    @property
    def required(self) -> Tuple[str, ...]:
        return self._required

    def get(self, name: str, default: Any = None) -> Any:
        return self._fields.get(name, default)

    def __getitem__(self, name: str) -> Any:
        return self._fields[name]

    def __contains__(self, name: object) -> bool:
        return name in self._fields

    def to_dict(self) -> dict:
        return copy.deepcopy(self._fields)

    # ── copy-on-write ────────────────────────────────────────

    def with_fields(self, /, **values: Any) -> "RecordEntity":
        merged = dict(self._fields)
        merged.update(values)
        return RecordEntity(merged, required=self._required)

    def without_fields(self, *names: str) -> "RecordEntity":
        remaining = {k: v for k, v in self._fields.items() if k not in names}
        return RecordEntity(remaining, required=self._required)

    # ── comparison ───────────────────────────────────────────

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, RecordEntity):
            return NotImplemented
        return (
            self._fields == other._fields
            and self._required == other._required
        )

    def __repr__(self) -> str:
        return f"RecordEntity({self._fields!r}, required={self._required!r})"


# ══════════════════════════════════════════════════════════════
# UNIFORM FIELD ACCESS
# ══════════════════════════════════════════════════════════════

def _is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str) and not value.strip():
        return True
    return False


def read_field(entity: Any, name: str, default: Any = None) -> Any:
    """Read a named field from any supported entity shape."""
    if isinstance(entity, (RecordEntity, Mapping)):
        return entity.get(name, default)
    return getattr(entity, name, default)


def has_field_value(entity: Any, name: str) -> bool:
    """True if the field exists and is not blank."""
    return not _is_blank(read_field(entity, name, None))


def write_fields(entity: Any, /, **values: Any) -> Any:
    """
    Return a copy of entity with the given fields set.

    Supported shapes, in order:
    - objects exposing with_fields() (RecordEntity and look-alikes)
    - dataclass instances (via dataclasses.replace)
    - mappings (a new dict is returned)
    - any other object (shallow copy + setattr)
    """
    if entity is None:
        raise TypeError("Cannot write fields on a missing entity.")

    with_fields = getattr(entity, "with_fields", None)
    if callable(with_fields):
        return with_fields(**values)

    if dataclasses.is_dataclass(entity) and not isinstance(entity, type):
        field_names = {f.name for f in dataclasses.fields(entity)}
        unknown = sorted(set(values) - field_names)
        if unknown:
            raise AttributeError(
                f"{type(entity).__name__} has no field(s): {unknown}"
            )
        return dataclasses.replace(entity, **values)

    if isinstance(entity, Mapping):
        updated = dict(entity)
        updated.update(values)
        return updated

    updated = copy.copy(entity)
    for name, value in values.items():
        setattr(updated, name, value)
    return updated
