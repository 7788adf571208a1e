"""Policy records linking a holder, account, agent, carrier and category."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, ClassVar

from policyingest.domain.model.base import Entity
from policyingest.domain.model.enums import EntityKind

if TYPE_CHECKING:
    from datetime import date
    from uuid import UUID


@dataclass(eq=False, kw_only=True)
class PolicyInfo(Entity):
    ENTITY_KIND: ClassVar[EntityKind] = EntityKind.POLICY

    policy_number: str
    start_date: date
    end_date: date | None = None

    category_id: UUID
    carrier_id: UUID
    user_id: UUID
    account_id: UUID
    agent_id: UUID

    @property
    def natural_key(self) -> str:
        return self.policy_number
