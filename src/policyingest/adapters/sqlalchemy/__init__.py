"""SQLAlchemy adapter package for policyingest."""

from __future__ import annotations

from .mappings import mapper_registry, start_mappers
from .repositories import (
    SqlAlchemyAccountRepository,
    SqlAlchemyAgentRepository,
    SqlAlchemyCarrierRepository,
    SqlAlchemyCategoryRepository,
    SqlAlchemyPolicyRepository,
    SqlAlchemyUserRepository,
)
from .unit_of_work import (
    SqlAlchemyIngestUnitOfWork,
    StartupError,
    configured_engine,
    create_configured_engine,
    is_started,
    max_concurrent_writers,
    shutdown,
    startup,
)

__all__ = [
    "SqlAlchemyAccountRepository",
    "SqlAlchemyAgentRepository",
    "SqlAlchemyCarrierRepository",
    "SqlAlchemyCategoryRepository",
    "SqlAlchemyIngestUnitOfWork",
    "SqlAlchemyPolicyRepository",
    "SqlAlchemyUserRepository",
    "StartupError",
    "configured_engine",
    "create_configured_engine",
    "is_started",
    "mapper_registry",
    "max_concurrent_writers",
    "shutdown",
    "start_mappers",
    "startup",
]
