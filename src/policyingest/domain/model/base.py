"""
Base building blocks:
client-assigned identity and creation timestamps.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import TYPE_CHECKING, ClassVar
from uuid import UUID, uuid4

if TYPE_CHECKING:
    from policyingest.domain.model.enums import EntityKind


def new_id() -> UUID:
    return uuid4()


def utcnow() -> datetime:
    return datetime.now(UTC)


@dataclass(eq=False, kw_only=True)
class Entity:
    """Identity exists as soon as a candidate is staged, before it is persisted.

    Assigning the id client side lets a bulk insert report which candidates
    were created simply by returning the ids that made it into the store.
    """

    id: UUID = field(default_factory=new_id)
    created_at: datetime = field(default_factory=utcnow)

    # class-level discriminator; subclasses must override
    ENTITY_KIND: ClassVar[EntityKind]

    @property
    def entity_kind(self) -> EntityKind:
        return self.ENTITY_KIND
