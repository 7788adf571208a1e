from __future__ import annotations

from typing import TYPE_CHECKING

import pytest
from sqlalchemy import text

from policyingest.adapters.sqlalchemy import (
    SqlAlchemyIngestUnitOfWork,
    StartupError,
    configured_engine,
    create_configured_engine,
    is_started,
    max_concurrent_writers,
    shutdown,
    startup,
)
from policyingest.domain.model import Agent

if TYPE_CHECKING:
    from collections.abc import Iterator
    from pathlib import Path

    from sqlalchemy.engine import Engine


@pytest.fixture(autouse=True)
def reset_unit_of_work_state() -> Iterator[None]:
    shutdown()
    yield
    shutdown()


def test_unit_of_work_requires_startup() -> None:
    assert not is_started()
    with pytest.raises(StartupError):
        SqlAlchemyIngestUnitOfWork()


def test_startup_requires_force_for_reconfiguration(tmp_path: Path) -> None:
    engine_a = create_configured_engine(f"sqlite+pysqlite:///{tmp_path / 'a.db'}")
    engine_b = create_configured_engine(f"sqlite+pysqlite:///{tmp_path / 'b.db'}")

    startup(engine=engine_a, force=True)

    with pytest.raises(StartupError):
        startup(engine=engine_b)

    startup(engine=engine_b, force=True)
    assert configured_engine() is engine_b


def test_startup_from_uri_creates_schema(tmp_path: Path) -> None:
    startup(database_uri=f"sqlite+pysqlite:///{tmp_path / 'fresh.db'}")

    with SqlAlchemyIngestUnitOfWork() as uow:
        assert uow.repositories.agents.find_by_keys(["nobody"]) == []


def test_commit_persists_across_units_of_work(sqlite_engine: Engine) -> None:
    startup(engine=sqlite_engine, force=True)

    with SqlAlchemyIngestUnitOfWork() as uow:
        uow.repositories.agents.insert_many([Agent(name="Alex")])
        uow.commit()

    with SqlAlchemyIngestUnitOfWork() as uow:
        assert [agent.name for agent in uow.repositories.agents.find_by_keys(["Alex"])] == [
            "Alex"
        ]


def test_exception_rolls_back_uncommitted_work(sqlite_engine: Engine) -> None:
    startup(engine=sqlite_engine, force=True)

    with pytest.raises(RuntimeError, match="boom"), SqlAlchemyIngestUnitOfWork() as uow:
        uow.repositories.agents.insert_many([Agent(name="Alex")])
        raise RuntimeError("boom")

    with SqlAlchemyIngestUnitOfWork() as uow:
        assert uow.repositories.agents.find_by_keys(["Alex"]) == []


def test_repositories_unavailable_outside_context(sqlite_engine: Engine) -> None:
    startup(engine=sqlite_engine, force=True)
    uow = SqlAlchemyIngestUnitOfWork()

    with pytest.raises(StartupError):
        _ = uow.repositories


def test_sqlite_store_allows_a_single_writer(sqlite_engine: Engine) -> None:
    assert max_concurrent_writers() is None

    startup(engine=sqlite_engine, force=True)

    assert max_concurrent_writers() == 1
    assert max_concurrent_writers(sqlite_engine) == 1


def test_sqlite_connections_wait_for_the_writer_lock(tmp_path: Path) -> None:
    engine = create_configured_engine(
        f"sqlite+pysqlite:///{tmp_path / 'busy.db'}", busy_timeout=7
    )
    try:
        with engine.connect() as connection:
            assert connection.execute(text("PRAGMA busy_timeout")).scalar_one() == 7000
    finally:
        engine.dispose()
