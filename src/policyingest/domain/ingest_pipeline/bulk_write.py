"""Bulk write phase: insert missing reference entities, tolerating duplicates."""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING, Any

from policyingest.domain.ingest_pipeline.kinds import ENTITY_KINDS, KindBinding
from policyingest.domain.ingest_pipeline.orchestrator import PipelinePhase
from policyingest.domain.ports import InsertOutcome

if TYPE_CHECKING:
    from collections.abc import Callable, Hashable, Sequence

    from policyingest.domain.ingest_pipeline.context import KeyedEntity, PipelineContext
    from policyingest.domain.ports import IngestRepositories, KeyedRepository
    from policyingest.domain.rows import RowBatch


log = getLogger(__name__)


def write_candidates[TKey: Hashable, TEntity: KeyedEntity[Any]](
    context: PipelineContext,
    repository_of: Callable[[IngestRepositories], KeyedRepository[TKey, TEntity]],
    candidates: Sequence[TEntity],
    *,
    recover: bool = True,
) -> tuple[InsertOutcome[TEntity], list[TEntity]]:
    """Insert ``candidates`` in their own unit of work and commit.

    With ``recover`` set, candidates that collided with an existing key are
    looked up again so callers can link rows to the record that won the race.
    """

    if not candidates:
        return InsertOutcome(), []

    recovered: list[TEntity] = []
    with context.open_unit_of_work() as uow:
        repository = repository_of(uow.repositories)
        outcome = repository.insert_many(candidates)
        uow.commit()
        if recover and outcome.skipped:
            recovered = repository.find_by_keys([entity.natural_key for entity in outcome.skipped])
    return outcome, recovered


@dataclass(slots=True)
class BulkWritePhase(PipelinePhase):
    """Insert each kind's missing candidates concurrently, then merge them into the lookups."""

    name: str = "bulk_write"

    def run(self, batch: RowBatch, *, context: PipelineContext) -> None:
        _ = batch
        context.require("resolution", before=self.name)

        with ThreadPoolExecutor(
            max_workers=context.write_workers,
            thread_name_prefix="bulk-write",
        ) as pool:
            futures = [pool.submit(_write_kind, context, binding) for binding in ENTITY_KINDS]

        for binding, future in zip(ENTITY_KINDS, futures, strict=True):
            outcome, recovered = future.result()
            binding.lookup(context).absorb(outcome, recovered)
            if outcome.skipped:
                log.warning(
                    "%s: %d candidates already existed, %d recovered from the store",
                    binding.kind,
                    len(outcome.skipped),
                    len(recovered),
                )
            log.info("Created %d %s records", len(outcome.created), binding.kind)


def _write_kind[TEntity: KeyedEntity[Any]](
    context: PipelineContext,
    binding: KindBinding[TEntity],
) -> tuple[InsertOutcome[TEntity], list[TEntity]]:
    return write_candidates(context, binding.repository, binding.lookup(context).to_create)
