"""Entity resolution phase: match batch keys against the store."""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING, Any

from policyingest.domain.ingest_pipeline.kinds import ENTITY_KINDS, KindBinding
from policyingest.domain.ingest_pipeline.orchestrator import PipelinePhase

if TYPE_CHECKING:
    from policyingest.domain.ingest_pipeline.context import PipelineContext
    from policyingest.domain.rows import RowBatch


log = getLogger(__name__)


@dataclass(slots=True)
class EntityResolutionPhase(PipelinePhase):
    """Look up every distinct agent, category, carrier and user key in one query per kind.

    The four queries are independent reads and run concurrently, each in its
    own unit of work. Once all of them returned, each kind's lookup holds the
    persisted records and its ``to_create`` list holds a candidate for every
    key the store does not know yet.
    """

    name: str = "resolution"

    def run(self, batch: RowBatch, *, context: PipelineContext) -> None:
        requests = [(binding, batch.distinct(binding.key_of)) for binding in ENTITY_KINDS]

        with ThreadPoolExecutor(
            max_workers=context.max_workers,
            thread_name_prefix="resolve",
        ) as pool:
            futures = [
                pool.submit(_fetch_existing, context, binding, keys) for binding, keys in requests
            ]

        for (binding, keys), future in zip(requests, futures, strict=True):
            _plan_missing(binding, keys, future.result(), batch, context)


def _fetch_existing[TEntity](
    context: PipelineContext,
    binding: KindBinding[TEntity],
    keys: list[str],
) -> list[TEntity]:
    if not keys:
        return []
    with context.open_unit_of_work() as uow:
        return binding.repository(uow.repositories).find_by_keys(keys)


def _plan_missing(
    binding: KindBinding[Any],
    keys: list[str],
    persisted: list[Any],
    batch: RowBatch,
    context: PipelineContext,
) -> None:
    lookup = binding.lookup(context)
    lookup.seed(persisted)
    candidate_rows = batch.first_rows(binding.key_of, accept=binding.accept)

    for key in keys:
        if key in lookup:
            continue
        row = candidate_rows.get(key)
        if row is None:
            lookup.incomplete += 1
            log.warning("No usable row to create %s %r", binding.kind, key)
            continue
        lookup.plan(binding.build(key, row))

    log.info(
        "Resolved %s: %d distinct, %d existing, %d to create",
        binding.kind,
        len(keys),
        lookup.existing,
        len(lookup.to_create),
    )
