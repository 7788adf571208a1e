"""Phase-based orchestrator for the policy ingest pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from collections.abc import Sequence

    from policyingest.domain.ingest_pipeline.context import PipelineContext
    from policyingest.domain.rows import RowBatch


log = getLogger(__name__)


class PipelinePhase(Protocol):
    """Contract implemented by each ingestion phase."""

    name: str

    def run(self, batch: RowBatch, *, context: PipelineContext) -> None: ...


@dataclass(slots=True)
class IngestionPipeline:
    """Compose and execute the ordered pipeline phases.

    Phases run strictly one after another; a phase may fan out internally but
    the next phase only starts once the previous one returned. The first
    exception aborts the run and leaves earlier writes in place.
    """

    phases: Sequence[PipelinePhase] = field(default_factory=tuple)

    def run(self, batch: RowBatch, *, context: PipelineContext) -> RowBatch:
        """Execute the configured phases in-order against ``batch``."""

        for phase in self.phases:
            log.debug("Running phase %s on %d rows", phase.name, len(batch))
            phase.run(batch, context=context)
            context.completed_phases.append(phase.name)
        return batch
