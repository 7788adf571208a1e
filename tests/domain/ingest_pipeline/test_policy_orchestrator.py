from __future__ import annotations

from dataclasses import dataclass

import pytest

from policyingest.domain.ingest_pipeline.context import PipelineContext
from policyingest.domain.ingest_pipeline.orchestrator import IngestionPipeline, PipelinePhase
from policyingest.domain.rows import RowBatch
from tests.helpers.fake_store import FakeIngestUnitOfWork, FakeStore


@dataclass(slots=True)
class _RecordingPhase(PipelinePhase):
    name: str
    calls: list[str]

    def run(self, batch: RowBatch, *, context: PipelineContext) -> None:
        _ = (batch, context)
        self.calls.append(self.name)


def _context() -> PipelineContext:
    store = FakeStore()
    return PipelineContext(unit_of_work_factory=lambda: FakeIngestUnitOfWork(store))


def test_pipeline_runs_phases_in_order() -> None:
    calls: list[str] = []
    first = _RecordingPhase(name="first", calls=calls)
    second = _RecordingPhase(name="second", calls=calls)
    pipeline = IngestionPipeline(phases=(first, second))
    context = _context()

    pipeline.run(RowBatch(), context=context)

    assert calls == ["first", "second"]
    assert context.completed_phases == ["first", "second"]


def test_phase_error_stops_the_run() -> None:
    calls: list[str] = []

    @dataclass(slots=True)
    class _FailingPhase(PipelinePhase):
        name: str = "failing"

        def run(self, batch: RowBatch, *, context: PipelineContext) -> None:
            _ = (batch, context)
            raise RuntimeError("store down")

    pipeline = IngestionPipeline(
        phases=(_FailingPhase(), _RecordingPhase(name="after", calls=calls))
    )
    context = _context()

    with pytest.raises(RuntimeError, match="store down"):
        pipeline.run(RowBatch(), context=context)

    assert calls == []
    assert context.completed_phases == []


def test_require_rejects_out_of_order_phase() -> None:
    context = _context()

    with pytest.raises(RuntimeError, match="'resolution' must run before 'bulk_write'"):
        context.require("resolution", before="bulk_write")
