"""Entry point for running the ingest pipeline over a loaded batch."""

from __future__ import annotations

from typing import TYPE_CHECKING

from policyingest.config.ingest import DEFAULT_MAX_WORKERS

from .accounts import AccountLinkingPhase
from .bulk_write import BulkWritePhase
from .context import PipelineContext
from .orchestrator import IngestionPipeline
from .policies import PolicyLinkingPhase
from .report import build_summary
from .resolution import EntityResolutionPhase

if TYPE_CHECKING:
    from policyingest.domain.rows import RowBatch

    from .context import UnitOfWorkFactory
    from .report import IngestSummary


def default_pipeline() -> IngestionPipeline:
    """Resolver, writer, account pass, policy pass, in that order."""

    return IngestionPipeline(
        phases=(
            EntityResolutionPhase(),
            BulkWritePhase(),
            AccountLinkingPhase(),
            PolicyLinkingPhase(),
        )
    )


def run_ingest_pipeline(
    batch: RowBatch,
    *,
    unit_of_work_factory: UnitOfWorkFactory,
    max_workers: int = DEFAULT_MAX_WORKERS,
    max_writers: int | None = None,
    pipeline: IngestionPipeline | None = None,
) -> IngestSummary:
    """Run the default ingestion pipeline for ``batch`` and return its summary.

    ``max_writers`` caps concurrent write transactions below ``max_workers``
    for stores that serialise writers.
    """

    context = PipelineContext(
        unit_of_work_factory=unit_of_work_factory,
        max_workers=max_workers,
        max_writers=max_writers,
    )
    (pipeline or default_pipeline()).run(batch, context=context)
    return build_summary(context)
