"""Per-run accumulators shared across pipeline phases.

Everything in here is allocated fresh for one ingest run and discarded when
the run ends; nothing is shared between runs or between concurrent runs.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from functools import partial
from typing import TYPE_CHECKING, Any, Protocol

from policyingest.config.ingest import DEFAULT_MAX_WORKERS
from policyingest.domain.model import (
    AccountKey,
    Agent,
    EntityKind,
    PolicyCarrier,
    PolicyCategory,
    PolicyInfo,
    SkipReason,
    User,
    UserAccount,
)

if TYPE_CHECKING:
    from collections.abc import Callable, Container, Hashable, Iterable
    from uuid import UUID

    from policyingest.domain.ports import IngestUnitOfWork, InsertOutcome
    from policyingest.domain.rows import PolicyRow

type UnitOfWorkFactory = Callable[[], IngestUnitOfWork]


class KeyedEntity[TKey: Hashable](Protocol):
    @property
    def id(self) -> UUID: ...

    @property
    def natural_key(self) -> TKey: ...


@dataclass(slots=True)
class EntityLookup[TKey: Hashable, TEntity: KeyedEntity[Any]]:
    """Natural key -> record map for one entity kind, plus its pending candidates."""

    kind: EntityKind
    records: dict[TKey, TEntity] = field(default_factory=dict)
    to_create: list[TEntity] = field(default_factory=list)

    existing: int = 0
    created: int = 0
    skipped: int = 0
    incomplete: int = 0

    def get(self, key: TKey | None) -> TEntity | None:
        if key is None:
            return None
        return self.records.get(key)

    def __contains__(self, key: object) -> bool:
        return key in self.records

    def seed(
        self,
        persisted: Iterable[TEntity],
        *,
        counted: Container[TKey] | None = None,
    ) -> None:
        """Register records that already exist in the store.

        Only keys in ``counted`` add to ``existing`` when it is given; the
        others are still resolvable.
        """

        for entity in persisted:
            key = entity.natural_key
            if key not in self.records and (counted is None or key in counted):
                self.existing += 1
            self.records[key] = entity

    def plan(self, candidate: TEntity) -> None:
        """Queue ``candidate`` for creation without making it resolvable yet."""

        self.to_create.append(candidate)

    def stage(self, candidate: TEntity) -> None:
        """Queue ``candidate`` and register its key so later rows reuse it."""

        self.plan(candidate)
        self.records[candidate.natural_key] = candidate

    def absorb(self, outcome: InsertOutcome[TEntity], persisted: Iterable[TEntity] = ()) -> None:
        """Fold a bulk insert result back into the lookup.

        Created candidates become resolvable under their own id. Skipped
        candidates lose any staged placeholder and are replaced by whatever
        record the store holds for the same key.
        """

        for entity in outcome.created:
            self.records[entity.natural_key] = entity
        for entity in outcome.skipped:
            if self.records.get(entity.natural_key) is entity:
                del self.records[entity.natural_key]
        for entity in persisted:
            self.records[entity.natural_key] = entity
        self.created += len(outcome.created)
        self.skipped += len(outcome.skipped)


@dataclass(frozen=True, slots=True)
class PolicySkip:
    """A row that produced no policy, and why."""

    row_index: int
    policy_number: str | None
    reason: SkipReason
    missing: tuple[EntityKind, ...] = ()

    def to_dict(self) -> dict[str, object]:
        return {
            "row": self.row_index,
            "policy_number": self.policy_number,
            "reason": self.reason.value,
            "missing": [kind.value for kind in self.missing],
        }


@dataclass(frozen=True, slots=True)
class StagedPolicy:
    row_index: int
    policy: PolicyInfo


@dataclass(slots=True)
class PolicyLedger:
    """Staging area for the policy pass."""

    existing_numbers: set[str] = field(default_factory=set)
    staged: list[StagedPolicy] = field(default_factory=list)
    skips: list[PolicySkip] = field(default_factory=list)
    created: int = 0

    def stage(self, row: PolicyRow, policy: PolicyInfo) -> None:
        self.staged.append(StagedPolicy(row_index=row.index, policy=policy))

    def reject(self, rejected: Iterable[PolicyInfo]) -> None:
        """Record staged policies the store refused as insert conflicts."""

        rejected_ids = {policy.id for policy in rejected}
        self.skips.extend(
            PolicySkip(
                row_index=item.row_index,
                policy_number=item.policy.policy_number,
                reason=SkipReason.INSERT_CONFLICT,
            )
            for item in self.staged
            if item.policy.id in rejected_ids
        )

    def skip(
        self,
        row: PolicyRow,
        reason: SkipReason,
        *,
        missing: tuple[EntityKind, ...] = (),
    ) -> None:
        self.skips.append(
            PolicySkip(
                row_index=row.index,
                policy_number=row.policy_number,
                reason=reason,
                missing=missing,
            )
        )

    def skip_counts(self) -> Counter[SkipReason]:
        return Counter(skip.reason for skip in self.skips)


@dataclass(slots=True)
class PipelineContext:
    """Mutable context shared across pipeline phases of a single run."""

    unit_of_work_factory: UnitOfWorkFactory
    max_workers: int = DEFAULT_MAX_WORKERS
    max_writers: int | None = None

    agents: EntityLookup[str, Agent] = field(
        default_factory=partial(EntityLookup[str, Agent], EntityKind.AGENT)
    )
    categories: EntityLookup[str, PolicyCategory] = field(
        default_factory=partial(EntityLookup[str, PolicyCategory], EntityKind.CATEGORY)
    )
    carriers: EntityLookup[str, PolicyCarrier] = field(
        default_factory=partial(EntityLookup[str, PolicyCarrier], EntityKind.CARRIER)
    )
    users: EntityLookup[str, User] = field(
        default_factory=partial(EntityLookup[str, User], EntityKind.USER)
    )
    accounts: EntityLookup[AccountKey, UserAccount] = field(
        default_factory=partial(EntityLookup[AccountKey, UserAccount], EntityKind.ACCOUNT)
    )
    policies: PolicyLedger = field(default_factory=PolicyLedger)

    completed_phases: list[str] = field(default_factory=list)

    def open_unit_of_work(self) -> IngestUnitOfWork:
        return self.unit_of_work_factory()

    @property
    def write_workers(self) -> int:
        """Threads allowed to hold a write transaction at the same time."""

        if self.max_writers is None:
            return self.max_workers
        return min(self.max_workers, self.max_writers)

    def require(self, phase_name: str, *, before: str) -> None:
        if phase_name not in self.completed_phases:
            raise RuntimeError(f"Phase {phase_name!r} must run before {before!r}")
