"""Policy ingest pipeline.

The pipeline is split into explicit phases that run in a fixed order over a
fully loaded ``RowBatch``: entity resolution, bulk write of reference
entities, the account pass and the policy pass. Phases communicate only
through a ``PipelineContext`` allocated fresh for each run.
"""

from __future__ import annotations

from .accounts import AccountLinkingPhase
from .bulk_write import BulkWritePhase, write_candidates
from .context import EntityLookup, PipelineContext, PolicyLedger, PolicySkip
from .orchestrator import IngestionPipeline, PipelinePhase
from .policies import PolicyLinkingPhase
from .report import IngestOutcome, IngestSummary, KindSummary, PolicySummary, build_summary
from .resolution import EntityResolutionPhase
from .runner import default_pipeline, run_ingest_pipeline

__all__ = [
    "AccountLinkingPhase",
    "BulkWritePhase",
    "EntityLookup",
    "EntityResolutionPhase",
    "IngestOutcome",
    "IngestSummary",
    "IngestionPipeline",
    "KindSummary",
    "PipelineContext",
    "PipelinePhase",
    "PolicyLedger",
    "PolicyLinkingPhase",
    "PolicySkip",
    "PolicySummary",
    "build_summary",
    "default_pipeline",
    "run_ingest_pipeline",
    "write_candidates",
]
