"""Domain model for policy ingestion."""

from __future__ import annotations

from .base import Entity, new_id, utcnow
from .catalog import Agent, PolicyCarrier, PolicyCategory
from .enums import EntityKind, Gender, SkipReason
from .party import DEFAULT_USER_TYPE, AccountKey, Address, User, UserAccount
from .policy import PolicyInfo

__all__ = [
    "DEFAULT_USER_TYPE",
    "AccountKey",
    "Address",
    "Agent",
    "Entity",
    "EntityKind",
    "Gender",
    "PolicyCarrier",
    "PolicyCategory",
    "PolicyInfo",
    "SkipReason",
    "User",
    "UserAccount",
    "new_id",
    "utcnow",
]
