"""Ports (interfaces) the domain depends on."""

from __future__ import annotations

from .persistence import (
    AccountRepository,
    AgentRepository,
    CarrierRepository,
    CategoryRepository,
    InsertOutcome,
    KeyedRepository,
    PolicyRepository,
    UserRepository,
)
from .unit_of_work import IngestRepositories, IngestUnitOfWork, RepositoryCollection, UnitOfWork

__all__ = [
    "AccountRepository",
    "AgentRepository",
    "CarrierRepository",
    "CategoryRepository",
    "IngestRepositories",
    "IngestUnitOfWork",
    "InsertOutcome",
    "KeyedRepository",
    "PolicyRepository",
    "RepositoryCollection",
    "UnitOfWork",
    "UserRepository",
]
