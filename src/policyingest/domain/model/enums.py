"""Domain enums (pure, dependency-light)."""

from __future__ import annotations

from enum import StrEnum


class EntityKind(StrEnum):
    """Discriminator for the entity collections touched by an ingest run."""

    AGENT = "agent"
    CATEGORY = "category"
    CARRIER = "carrier"
    USER = "user"
    ACCOUNT = "account"
    POLICY = "policy"


class Gender(StrEnum):
    MALE = "male"
    FEMALE = "female"
    OTHER = "other"


class SkipReason(StrEnum):
    """Why a row did not produce a policy record."""

    MISSING_FIELDS = "missing_fields"
    EXISTING_NUMBER = "existing_number"
    DUPLICATE_NUMBER = "duplicate_number"
    UNRESOLVED_REFERENCE = "unresolved_reference"
    INSERT_CONFLICT = "insert_conflict"
