"""Policy holders and their named accounts."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, ClassVar, NamedTuple

from policyingest.domain.model.base import Entity
from policyingest.domain.model.enums import EntityKind, Gender

if TYPE_CHECKING:
    from datetime import date
    from uuid import UUID

DEFAULT_USER_TYPE = "individual"


@dataclass(frozen=True, slots=True)
class Address:
    street: str | None = None
    city: str | None = None
    state: str | None = None
    zip: str | None = None

    @property
    def is_empty(self) -> bool:
        return not any((self.street, self.city, self.state, self.zip))


@dataclass(eq=False, kw_only=True)
class User(Entity):
    ENTITY_KIND: ClassVar[EntityKind] = EntityKind.USER

    first_name: str
    email: str
    dob: date | None = None
    address: Address | None = None
    phone: str | None = None
    state: str | None = None
    zip_code: str | None = None
    gender: Gender = Gender.OTHER
    user_type: str = DEFAULT_USER_TYPE

    @property
    def natural_key(self) -> str:
        return self.email


class AccountKey(NamedTuple):
    """Composite natural key of a user account: account name plus owning user id."""

    name: str
    user_id: UUID


@dataclass(eq=False, kw_only=True)
class UserAccount(Entity):
    """A named account owned by exactly one user."""

    ENTITY_KIND: ClassVar[EntityKind] = EntityKind.ACCOUNT

    name: str
    user_id: UUID

    @property
    def natural_key(self) -> AccountKey:
        return AccountKey(self.name, self.user_id)
