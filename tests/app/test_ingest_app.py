from __future__ import annotations

import sqlite3
from concurrent.futures import Future
from concurrent.futures.process import BrokenProcessPool
from typing import TYPE_CHECKING

from sqlalchemy.exc import OperationalError

from policyingest.app import IngestWorker, ingest_policy_file, ingest_uploaded_file
from policyingest.config import IngestConfig
from policyingest.domain.ingest_pipeline import IngestOutcome
from tests.helpers.fake_store import FakeIngestUnitOfWork, FakeStore
from tests.helpers.policy_files import csv_values, write_policy_csv

if TYPE_CHECKING:
    from collections.abc import Callable
    from pathlib import Path

    import pytest

    from policyingest.adapters.sqlalchemy import SqlAlchemyIngestUnitOfWork

CONFIG = IngestConfig(insert_chunk_size=10, max_workers=2)


def _broken_store() -> FakeIngestUnitOfWork:
    raise OperationalError(
        "INSERT INTO user (email, phone) VALUES (?, ?)",
        ("jane@example.com", "555-0100"),
        sqlite3.OperationalError("database is locked"),
    )


def test_ingest_policy_file_uses_configured_store(
    tmp_path: Path,
    sqlite_unit_of_work: Callable[[], SqlAlchemyIngestUnitOfWork],
) -> None:
    _ = sqlite_unit_of_work
    path = write_policy_csv(tmp_path / "policies.csv", [csv_values()])

    outcome = ingest_policy_file(path, config=CONFIG)

    assert outcome.success
    assert outcome.row_count == 1
    assert outcome.summary is not None
    assert outcome.summary.policies.created == 1


def test_store_error_becomes_failed_outcome(tmp_path: Path) -> None:
    path = write_policy_csv(tmp_path / "policies.csv", [csv_values()])

    outcome = ingest_policy_file(path, unit_of_work_factory=_broken_store, config=CONFIG)

    assert not outcome.success
    assert outcome.error is not None
    assert outcome.error == "Store error: OperationalError: database is locked"
    assert "INSERT" not in outcome.error
    assert "jane@example.com" not in outcome.error


def test_uploaded_file_is_deleted_after_success(tmp_path: Path) -> None:
    store = FakeStore()
    path = write_policy_csv(tmp_path / "upload.csv", [csv_values()])

    outcome = ingest_uploaded_file(
        path,
        unit_of_work_factory=lambda: FakeIngestUnitOfWork(store),
        config=CONFIG,
    )

    assert outcome.success
    assert not path.exists()
    assert set(store.policies) == {"P-1"}


def test_uploaded_file_is_kept_when_requested(tmp_path: Path) -> None:
    store = FakeStore()
    path = write_policy_csv(tmp_path / "upload.csv", [csv_values()])

    outcome = ingest_uploaded_file(
        path,
        delete_on_success=False,
        unit_of_work_factory=lambda: FakeIngestUnitOfWork(store),
        config=CONFIG,
    )

    assert outcome.success
    assert path.exists()


def test_uploaded_file_is_kept_after_failure(tmp_path: Path) -> None:
    path = tmp_path / "upload.csv"
    path.write_text("")

    outcome = ingest_uploaded_file(
        path,
        unit_of_work_factory=lambda: FakeIngestUnitOfWork(FakeStore()),
        config=CONFIG,
    )

    assert outcome == IngestOutcome.failed("Input has no header row")
    assert path.exists()


def test_worker_crash_becomes_failed_outcome(
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    crashed: Future[IngestOutcome] = Future()
    crashed.set_exception(BrokenProcessPool("child terminated"))

    with IngestWorker(config=CONFIG) as worker:
        monkeypatch.setattr(worker, "submit", lambda _path: crashed)
        outcome = worker.run(tmp_path / "upload.csv")

    assert not outcome.success
    assert outcome.error == "Ingest worker crashed: child terminated"


def test_worker_process_runs_ingest_in_isolation(tmp_path: Path) -> None:
    path = write_policy_csv(tmp_path / "upload.csv", [csv_values(), csv_values(policy_number="P-2")])
    database_uri = f"sqlite+pysqlite:///{tmp_path / 'worker.db'}"

    with IngestWorker(config=CONFIG, database_uri=database_uri) as worker:
        outcome = ingest_uploaded_file(path, worker=worker)

    assert outcome.success, outcome.error
    assert outcome.row_count == 2
    assert outcome.summary is not None
    assert outcome.summary.policies.created == 2
    assert not path.exists()
