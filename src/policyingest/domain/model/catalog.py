"""Reference entities shared by many policies: agents, categories, carriers."""

from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar

from policyingest.domain.model.base import Entity
from policyingest.domain.model.enums import EntityKind


@dataclass(eq=False, kw_only=True)
class Agent(Entity):
    ENTITY_KIND: ClassVar[EntityKind] = EntityKind.AGENT

    name: str

    @property
    def natural_key(self) -> str:
        return self.name


@dataclass(eq=False, kw_only=True)
class PolicyCategory(Entity):
    """Line of business, e.g. "Auto" or "Home"."""

    ENTITY_KIND: ClassVar[EntityKind] = EntityKind.CATEGORY

    category_name: str

    @property
    def natural_key(self) -> str:
        return self.category_name


@dataclass(eq=False, kw_only=True)
class PolicyCarrier(Entity):
    ENTITY_KIND: ClassVar[EntityKind] = EntityKind.CARRIER

    company_name: str

    @property
    def natural_key(self) -> str:
        return self.company_name
