"""Repository implementations backed by SQLAlchemy sessions."""

from __future__ import annotations

from itertools import batched
from logging import getLogger
from typing import TYPE_CHECKING, Any, ClassVar

from sqlalchemy import select
from sqlalchemy.dialects import postgresql, sqlite

from policyingest.adapters.sqlalchemy.mappings import (
    agent_table,
    policy_carrier_table,
    policy_category_table,
    policy_info_table,
    user_account_table,
    user_table,
)
from policyingest.config.ingest import DEFAULT_INSERT_CHUNK_SIZE
from policyingest.domain.model import (
    AccountKey,
    Agent,
    Entity,
    PolicyCarrier,
    PolicyCategory,
    PolicyInfo,
    User,
    UserAccount,
)
from policyingest.domain.ports import InsertOutcome

if TYPE_CHECKING:
    from collections.abc import Collection, Sequence
    from uuid import UUID

    from sqlalchemy import Table
    from sqlalchemy.orm import Session


log = getLogger(__name__)


def insert_ignoring_conflicts(session: Session, table: Table) -> Any:
    """Return an ``INSERT ... ON CONFLICT DO NOTHING`` construct for the session's dialect."""

    dialect = session.get_bind().dialect.name
    if dialect == "postgresql":
        return postgresql.insert(table).on_conflict_do_nothing()
    if dialect == "sqlite":
        return sqlite.insert(table).on_conflict_do_nothing()
    raise NotImplementedError(f"Duplicate-tolerant inserts are not supported on {dialect!r}")


class SqlAlchemyKeyedRepository[TKey, TEntity: Entity]:
    """Shared find/insert logic for entities addressed by a single key column."""

    entity_cls: ClassVar[type[Any]]
    table: ClassVar[Table]
    key_column: ClassVar[str]

    def __init__(self, session: Session, *, chunk_size: int = DEFAULT_INSERT_CHUNK_SIZE) -> None:
        self.session = session
        self.chunk_size = chunk_size

    def find_by_keys(self, keys: Collection[TKey]) -> list[TEntity]:
        column = self.table.c[self.key_column]
        found: list[TEntity] = []
        for chunk in batched(dict.fromkeys(keys), self.chunk_size):
            stmt = select(self.entity_cls).where(column.in_(chunk))
            found.extend(self.session.scalars(stmt))
        return found

    def insert_many(self, entities: Sequence[TEntity]) -> InsertOutcome[TEntity]:
        """Insert ``entities`` chunk by chunk, leaving out those that hit a unique constraint.

        Ids are assigned before the insert, so the ids coming back from
        ``RETURNING`` tell exactly which candidates made it into the table.
        """

        outcome: InsertOutcome[TEntity] = InsertOutcome()
        for chunk in batched(entities, self.chunk_size):
            stmt = (
                insert_ignoring_conflicts(self.session, self.table)
                .values([self._to_row(entity) for entity in chunk])
                .returning(self.table.c.id)
            )
            inserted = set(self.session.scalars(stmt))
            for entity in chunk:
                if entity.id in inserted:
                    outcome.created.append(entity)
                else:
                    outcome.skipped.append(entity)

        if outcome.skipped:
            log.debug(
                "%s: %d of %d rows ignored by unique constraints",
                self.table.name,
                len(outcome.skipped),
                outcome.attempted,
            )
        return outcome

    def _to_row(self, entity: TEntity) -> dict[str, Any]:
        return {column.name: getattr(entity, column.name) for column in self.table.columns}


class SqlAlchemyAgentRepository(SqlAlchemyKeyedRepository[str, Agent]):
    entity_cls = Agent
    table = agent_table
    key_column = "name"


class SqlAlchemyCategoryRepository(SqlAlchemyKeyedRepository[str, PolicyCategory]):
    entity_cls = PolicyCategory
    table = policy_category_table
    key_column = "category_name"


class SqlAlchemyCarrierRepository(SqlAlchemyKeyedRepository[str, PolicyCarrier]):
    entity_cls = PolicyCarrier
    table = policy_carrier_table
    key_column = "company_name"


class SqlAlchemyUserRepository(SqlAlchemyKeyedRepository[str, User]):
    entity_cls = User
    table = user_table
    key_column = "email"

    def _to_row(self, entity: User) -> dict[str, Any]:
        address = entity.address
        return {
            "id": entity.id,
            "first_name": entity.first_name,
            "email": entity.email,
            "dob": entity.dob,
            "address_street": address.street if address else None,
            "address_city": address.city if address else None,
            "address_state": address.state if address else None,
            "address_zip": address.zip if address else None,
            "phone": entity.phone,
            "state": entity.state,
            "zip_code": entity.zip_code,
            "gender": entity.gender,
            "user_type": entity.user_type,
            "created_at": entity.created_at,
        }


class SqlAlchemyAccountRepository(SqlAlchemyKeyedRepository[AccountKey, UserAccount]):
    entity_cls = UserAccount
    table = user_account_table
    key_column = "user_id"

    def find_by_keys(self, keys: Collection[AccountKey]) -> list[UserAccount]:
        wanted = set(keys)
        candidates = self.find_by_users({key.user_id for key in wanted})
        return [account for account in candidates if account.natural_key in wanted]

    def find_by_users(self, user_ids: Collection[UUID]) -> list[UserAccount]:
        return super().find_by_keys(user_ids)  # pyright: ignore[reportArgumentType]


class SqlAlchemyPolicyRepository(SqlAlchemyKeyedRepository[str, PolicyInfo]):
    entity_cls = PolicyInfo
    table = policy_info_table
    key_column = "policy_number"
