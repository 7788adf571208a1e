"""Ports for persisting ingested entities."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Protocol, runtime_checkable

from policyingest.domain.model import (
    AccountKey,
    Agent,
    PolicyCarrier,
    PolicyCategory,
    PolicyInfo,
    User,
    UserAccount,
)

if TYPE_CHECKING:
    from collections.abc import Collection, Sequence
    from uuid import UUID


@dataclass(slots=True)
class InsertOutcome[TEntity]:
    """Per-item result of a duplicate-tolerant bulk insert.

    ``created`` holds the candidates that now exist in the store under their own
    id; ``skipped`` holds the candidates that collided with a uniqueness
    constraint and were left out without failing the rest of the batch.
    """

    created: list[TEntity] = field(default_factory=list)
    skipped: list[TEntity] = field(default_factory=list)

    @property
    def attempted(self) -> int:
        return len(self.created) + len(self.skipped)


@runtime_checkable
class KeyedRepository[TKey, TEntity](Protocol):
    """Store collection addressed by a natural key."""

    def find_by_keys(self, keys: Collection[TKey]) -> list[TEntity]:
        """Return every persisted record whose natural key is in ``keys``."""
        ...

    def insert_many(self, entities: Sequence[TEntity]) -> InsertOutcome[TEntity]:
        """Insert ``entities``, continuing past uniqueness violations."""
        ...


@runtime_checkable
class AgentRepository(KeyedRepository[str, Agent], Protocol):
    """Agents keyed by name."""


@runtime_checkable
class CategoryRepository(KeyedRepository[str, PolicyCategory], Protocol):
    """Policy categories keyed by category name."""


@runtime_checkable
class CarrierRepository(KeyedRepository[str, PolicyCarrier], Protocol):
    """Policy carriers keyed by company name."""


@runtime_checkable
class UserRepository(KeyedRepository[str, User], Protocol):
    """Users keyed by email."""


@runtime_checkable
class AccountRepository(KeyedRepository[AccountKey, UserAccount], Protocol):
    """User accounts keyed by (account name, user id)."""

    def find_by_users(self, user_ids: Collection[UUID]) -> list[UserAccount]: ...


@runtime_checkable
class PolicyRepository(KeyedRepository[str, PolicyInfo], Protocol):
    """Policies keyed by policy number."""
