"""SQLAlchemy mapping metadata for the policy domain model."""

from __future__ import annotations

import logging
import uuid
from datetime import UTC, datetime
from functools import cache

from sqlalchemy import (
    Column,
    Date,
    DateTime,
    Dialect,
    Enum,
    ForeignKey,
    String,
    Table,
    TypeDecorator,
    UniqueConstraint,
    Uuid,
    orm,
)
from sqlalchemy.orm import composite, configure_mappers

from policyingest.domain.model import (
    Address,
    Agent,
    Gender,
    PolicyCarrier,
    PolicyCategory,
    PolicyInfo,
    User,
    UserAccount,
)

log = logging.getLogger(__name__)

UUIDColumnType = Uuid[uuid.UUID]


def _enum_values(enum_cls: type[Gender]) -> list[str]:
    return [member.value for member in enum_cls]


class UTCDateTime(TypeDecorator[datetime]):
    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        if value.tzinfo is None:
            value = value.replace(tzinfo=UTC)
        return value.astimezone(UTC)

    def process_result_value(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        return value if value.tzinfo else value.replace(tzinfo=UTC)


mapper_registry = orm.registry()
mapper_registry.metadata.naming_convention = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_N_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_label)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}

# Reference tables ------------------------------------------------------------

agent_table = Table(
    "agent",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column("name", String, nullable=False),
    Column("created_at", UTCDateTime(), nullable=False),
    UniqueConstraint("name"),
)

policy_category_table = Table(
    "policy_category",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column("category_name", String, nullable=False),
    Column("created_at", UTCDateTime(), nullable=False),
    UniqueConstraint("category_name"),
)

policy_carrier_table = Table(
    "policy_carrier",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column("company_name", String, nullable=False),
    Column("created_at", UTCDateTime(), nullable=False),
    UniqueConstraint("company_name"),
)

# Holders -----------------------------------------------------------------------

user_table = Table(
    "user",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column("first_name", String, nullable=False),
    Column("email", String, nullable=False),
    Column("dob", Date, nullable=True),
    Column("address_street", String, nullable=True),
    Column("address_city", String, nullable=True),
    Column("address_state", String, nullable=True),
    Column("address_zip", String, nullable=True),
    Column("phone", String, nullable=True),
    Column("state", String, nullable=True),
    Column("zip_code", String, nullable=True),
    Column(
        "gender",
        Enum(Gender, native_enum=False, values_callable=_enum_values),
        nullable=False,
    ),
    Column("user_type", String, nullable=False),
    Column("created_at", UTCDateTime(), nullable=False),
    UniqueConstraint("email"),
)

user_account_table = Table(
    "user_account",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column("name", String, nullable=False),
    Column(
        "user_id", UUIDColumnType, ForeignKey("user.id", ondelete="CASCADE"), nullable=False
    ),
    Column("created_at", UTCDateTime(), nullable=False),
    UniqueConstraint("name", "user_id"),
)

# Policies ----------------------------------------------------------------------

policy_info_table = Table(
    "policy_info",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column("policy_number", String, nullable=False),
    Column("start_date", Date, nullable=False),
    Column("end_date", Date, nullable=True),
    Column(
        "category_id", UUIDColumnType, ForeignKey("policy_category.id"), nullable=False
    ),
    Column("carrier_id", UUIDColumnType, ForeignKey("policy_carrier.id"), nullable=False),
    Column("user_id", UUIDColumnType, ForeignKey("user.id"), nullable=False),
    Column("account_id", UUIDColumnType, ForeignKey("user_account.id"), nullable=False),
    Column("agent_id", UUIDColumnType, ForeignKey("agent.id"), nullable=False),
    Column("created_at", UTCDateTime(), nullable=False),
    UniqueConstraint("policy_number"),
)


@cache
def start_mappers() -> orm.registry:
    """Configure SQLAlchemy mappers for the domain model."""

    log.info("Starting SQLAlchemy mappers")

    mapper_registry.map_imperatively(Agent, agent_table)
    mapper_registry.map_imperatively(PolicyCategory, policy_category_table)
    mapper_registry.map_imperatively(PolicyCarrier, policy_carrier_table)

    mapper_registry.map_imperatively(
        User,
        user_table,
        properties={
            "address": composite(
                Address,
                user_table.c.address_street,
                user_table.c.address_city,
                user_table.c.address_state,
                user_table.c.address_zip,
            ),
        },
    )

    mapper_registry.map_imperatively(UserAccount, user_account_table)
    mapper_registry.map_imperatively(PolicyInfo, policy_info_table)

    configure_mappers()
    return mapper_registry
