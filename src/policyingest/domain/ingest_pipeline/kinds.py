"""Bindings for the four independently resolvable entity kinds.

Agents, categories, carriers and users depend on nothing but the row itself,
so the resolver and the bulk writer treat them uniformly through these
bindings: where the key lives in a row, which repository stores the kind,
which lookup accumulates it, and how a candidate is built.
"""

from __future__ import annotations

from dataclasses import dataclass
from operator import attrgetter
from typing import TYPE_CHECKING, Any

from policyingest.domain.model import (
    Agent,
    EntityKind,
    PolicyCarrier,
    PolicyCategory,
    User,
)

if TYPE_CHECKING:
    from collections.abc import Callable

    from policyingest.domain.ingest_pipeline.context import EntityLookup, PipelineContext
    from policyingest.domain.ports import IngestRepositories, KeyedRepository
    from policyingest.domain.rows import PolicyRow


@dataclass(frozen=True, slots=True)
class KindBinding[TEntity]:
    kind: EntityKind
    key_of: Callable[[PolicyRow], str | None]
    repository: Callable[[IngestRepositories], KeyedRepository[str, TEntity]]
    lookup: Callable[[PipelineContext], EntityLookup[str, TEntity]]
    build: Callable[[str, PolicyRow], TEntity]
    accept: Callable[[PolicyRow], bool] | None = None


def _build_agent(name: str, _row: PolicyRow) -> Agent:
    return Agent(name=name)


def _build_category(name: str, _row: PolicyRow) -> PolicyCategory:
    return PolicyCategory(category_name=name)


def _build_carrier(name: str, _row: PolicyRow) -> PolicyCarrier:
    return PolicyCarrier(company_name=name)


def _build_user(email: str, row: PolicyRow) -> User:
    if not row.first_name:
        raise ValueError(f"Row {row.index} has no first name for {email}")
    return User(
        first_name=row.first_name,
        email=email,
        dob=row.dob,
        address=None if row.address.is_empty else row.address,
        phone=row.phone,
        state=row.state,
        zip_code=row.zip_code,
        gender=row.gender,
        user_type=row.user_type,
    )


def _has_first_name(row: PolicyRow) -> bool:
    return bool(row.first_name)


AGENTS: KindBinding[Agent] = KindBinding(
    kind=EntityKind.AGENT,
    key_of=attrgetter("agent"),
    repository=attrgetter("agents"),
    lookup=attrgetter("agents"),
    build=_build_agent,
)
CATEGORIES: KindBinding[PolicyCategory] = KindBinding(
    kind=EntityKind.CATEGORY,
    key_of=attrgetter("category_name"),
    repository=attrgetter("categories"),
    lookup=attrgetter("categories"),
    build=_build_category,
)
CARRIERS: KindBinding[PolicyCarrier] = KindBinding(
    kind=EntityKind.CARRIER,
    key_of=attrgetter("company_name"),
    repository=attrgetter("carriers"),
    lookup=attrgetter("carriers"),
    build=_build_carrier,
)
USERS: KindBinding[User] = KindBinding(
    kind=EntityKind.USER,
    key_of=attrgetter("email"),
    repository=attrgetter("users"),
    lookup=attrgetter("users"),
    build=_build_user,
    accept=_has_first_name,
)

ENTITY_KINDS: tuple[KindBinding[Any], ...] = (AGENTS, CATEGORIES, CARRIERS, USERS)
