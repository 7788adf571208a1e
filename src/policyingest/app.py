"""Application orchestration entry points."""

from __future__ import annotations

from concurrent.futures import ProcessPoolExecutor
from concurrent.futures.process import BrokenProcessPool
from functools import partial
from logging import getLogger
from multiprocessing import get_context
from pathlib import Path
from typing import TYPE_CHECKING, Literal, Self

from sqlalchemy.exc import SQLAlchemyError, StatementError

from policyingest.adapters.delimited import load_policy_batch
from policyingest.adapters.sqlalchemy import (
    SqlAlchemyIngestUnitOfWork,
    StartupError,
    is_started,
    max_concurrent_writers,
    startup,
)
from policyingest.config import configure_logging, get_ingest_config
from policyingest.domain.errors import IngestError
from policyingest.domain.ingest_pipeline import IngestOutcome, run_ingest_pipeline

if TYPE_CHECKING:
    from concurrent.futures import Future
    from multiprocessing.context import BaseContext
    from types import TracebackType

    from policyingest.config import IngestConfig
    from policyingest.domain.ingest_pipeline.context import UnitOfWorkFactory


log = getLogger(__name__)


def ingest_policy_file(
    path: str | Path,
    *,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
    config: IngestConfig | None = None,
    database_uri: str | None = None,
) -> IngestOutcome:
    """Load ``path`` and run the ingest pipeline over it in the current process.

    Fatal conditions (unreadable file, store errors) come back as a failed
    outcome; rows that cannot be linked are reported in the summary instead.
    """

    effective_config = config or get_ingest_config()
    log.info("Starting ingest of %s", path)
    try:
        if unit_of_work_factory is None:
            if not is_started():
                startup(database_uri=database_uri)
            unit_of_work_factory = partial(
                SqlAlchemyIngestUnitOfWork, chunk_size=effective_config.insert_chunk_size
            )
        batch = load_policy_batch(path, delimiter=effective_config.csv_delimiter)
        summary = run_ingest_pipeline(
            batch,
            unit_of_work_factory=unit_of_work_factory,
            max_workers=effective_config.max_workers,
            max_writers=max_concurrent_writers(),
        )
    except IngestError as exc:
        log.error("Ingest of %s failed: %s", path, exc)  # noqa: TRY400
        return IngestOutcome.failed(str(exc))
    except (SQLAlchemyError, StartupError) as exc:
        log.exception("Store error while ingesting %s", path)
        return IngestOutcome.failed(_store_error_message(exc))

    log.info("Finished ingest of %s (%d rows)\n%s", path, len(batch), summary.describe())
    return IngestOutcome.succeeded(row_count=len(batch), summary=summary)


def _store_error_message(exc: Exception) -> str:
    """Describe a store failure without the statement text or its bound parameters."""

    if isinstance(exc, StatementError):
        if exc.orig is None:
            return f"Store error: {type(exc).__name__}"
        # driver messages may carry key values on their detail lines
        first_line = str(exc.orig).partition("\n")[0]
        return f"Store error: {type(exc.orig).__name__}: {first_line}"
    return f"Store error: {exc}"


def _ingest_in_worker(
    path: str,
    config: IngestConfig | None,
    database_uri: str | None,
) -> IngestOutcome:
    configure_logging(force=True)
    try:
        return ingest_policy_file(path, config=config, database_uri=database_uri)
    except Exception as exc:
        log.exception("Unexpected error in ingest worker")
        return IngestOutcome.failed(f"Unexpected error: {exc}")


class IngestWorker:
    """Runs each ingest in a dedicated child process, one file at a time.

    The child owns its own engine and sessions; nothing but the file path goes
    in and nothing but an ``IngestOutcome`` comes back.
    """

    def __init__(
        self,
        *,
        config: IngestConfig | None = None,
        database_uri: str | None = None,
        mp_context: BaseContext | None = None,
    ) -> None:
        self.config = config
        self.database_uri = database_uri
        self._executor = ProcessPoolExecutor(
            max_workers=1,
            mp_context=mp_context or get_context("spawn"),
        )

    def submit(self, path: str | Path) -> Future[IngestOutcome]:
        return self._executor.submit(
            _ingest_in_worker, str(path), self.config, self.database_uri
        )

    def run(self, path: str | Path) -> IngestOutcome:
        """Submit ``path`` and wait; a crashed child becomes a failed outcome."""

        try:
            return self.submit(path).result()
        except BrokenProcessPool as exc:
            log.exception("Ingest worker for %s terminated abruptly", path)
            return IngestOutcome.failed(f"Ingest worker crashed: {exc}")

    def close(self) -> None:
        self._executor.shutdown(wait=True)

    def __enter__(self) -> Self:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> Literal[False]:
        self.close()
        return False


def ingest_uploaded_file(
    path: str | Path,
    *,
    delete_on_success: bool = True,
    worker: IngestWorker | None = None,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
    config: IngestConfig | None = None,
) -> IngestOutcome:
    """Ingest an uploaded file and remove it once the run has succeeded.

    Failed runs leave the file in place so it can be inspected or retried.
    """

    if worker is not None:
        outcome = worker.run(path)
    else:
        outcome = ingest_policy_file(
            path, unit_of_work_factory=unit_of_work_factory, config=config
        )

    if outcome.success and delete_on_success:
        Path(path).unlink(missing_ok=True)
        log.info("Removed uploaded file %s", path)
    return outcome
