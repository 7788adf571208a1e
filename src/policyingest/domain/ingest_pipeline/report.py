"""Result reporting: fold a finished run's accumulators into one outcome value."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Self

from policyingest.domain.model import SkipReason

if TYPE_CHECKING:
    from policyingest.domain.ingest_pipeline.context import (
        EntityLookup,
        PipelineContext,
        PolicySkip,
    )


@dataclass(frozen=True, slots=True)
class KindSummary:
    """Counts for one entity kind.

    ``skipped`` counts candidates dropped by the store's uniqueness constraints
    (another run created them first); ``incomplete`` counts keys that appeared
    in the batch but had no row complete enough to build a record from.
    """

    existing: int = 0
    created: int = 0
    skipped: int = 0
    incomplete: int = 0

    @classmethod
    def from_lookup(cls, lookup: EntityLookup[Any, Any]) -> Self:
        return cls(
            existing=lookup.existing,
            created=lookup.created,
            skipped=lookup.skipped,
            incomplete=lookup.incomplete,
        )

    def to_dict(self) -> dict[str, int]:
        return {
            "existing": self.existing,
            "created": self.created,
            "skipped": self.skipped,
            "incomplete": self.incomplete,
        }


@dataclass(frozen=True, slots=True)
class PolicySummary:
    staged: int = 0
    created: int = 0
    skipped_existing: int = 0
    skipped_duplicate: int = 0
    skipped_unresolved: int = 0
    skipped_missing_fields: int = 0
    skipped_on_insert: int = 0

    def to_dict(self) -> dict[str, int]:
        return {
            "staged": self.staged,
            "created": self.created,
            "skipped_existing": self.skipped_existing,
            "skipped_duplicate": self.skipped_duplicate,
            "skipped_unresolved": self.skipped_unresolved,
            "skipped_missing_fields": self.skipped_missing_fields,
            "skipped_on_insert": self.skipped_on_insert,
        }


@dataclass(frozen=True, slots=True)
class IngestSummary:
    agents: KindSummary
    categories: KindSummary
    carriers: KindSummary
    users: KindSummary
    accounts: KindSummary
    policies: PolicySummary
    skips: tuple[PolicySkip, ...] = ()

    def to_dict(self) -> dict[str, object]:
        return {
            "agents": self.agents.to_dict(),
            "categories": self.categories.to_dict(),
            "carriers": self.carriers.to_dict(),
            "users": self.users.to_dict(),
            "accounts": self.accounts.to_dict(),
            "policies": self.policies.to_dict(),
            "skips": [skip.to_dict() for skip in self.skips],
        }

    def describe(self) -> str:
        lines = [
            f"Agents: {self.agents.created} new, {self.agents.existing} existing",
            f"Categories: {self.categories.created} new, {self.categories.existing} existing",
            f"Carriers: {self.carriers.created} new, {self.carriers.existing} existing",
            f"Users: {self.users.created} new, {self.users.existing} existing",
            f"Accounts: {self.accounts.created} new, {self.accounts.existing} existing",
            (
                f"Policies: {self.policies.created} new of {self.policies.staged} staged; "
                f"skipped {self.policies.skipped_existing} existing, "
                f"{self.policies.skipped_duplicate} duplicate, "
                f"{self.policies.skipped_unresolved} unresolved, "
                f"{self.policies.skipped_missing_fields} incomplete"
            ),
        ]
        return "\n".join(lines)


def build_summary(context: PipelineContext) -> IngestSummary:
    """Aggregate the per-kind and per-stage counters of a finished run."""

    ledger = context.policies
    skip_counts = ledger.skip_counts()
    return IngestSummary(
        agents=KindSummary.from_lookup(context.agents),
        categories=KindSummary.from_lookup(context.categories),
        carriers=KindSummary.from_lookup(context.carriers),
        users=KindSummary.from_lookup(context.users),
        accounts=KindSummary.from_lookup(context.accounts),
        policies=PolicySummary(
            staged=len(ledger.staged),
            created=ledger.created,
            skipped_existing=skip_counts[SkipReason.EXISTING_NUMBER],
            skipped_duplicate=skip_counts[SkipReason.DUPLICATE_NUMBER],
            skipped_unresolved=skip_counts[SkipReason.UNRESOLVED_REFERENCE],
            skipped_missing_fields=skip_counts[SkipReason.MISSING_FIELDS],
            skipped_on_insert=skip_counts[SkipReason.INSERT_CONFLICT],
        ),
        skips=tuple(ledger.skips),
    )


@dataclass(frozen=True, slots=True)
class IngestOutcome:
    """The single value an ingest run hands back to its caller."""

    success: bool
    row_count: int = 0
    summary: IngestSummary | None = None
    error: str | None = None

    @classmethod
    def succeeded(cls, *, row_count: int, summary: IngestSummary) -> Self:
        return cls(success=True, row_count=row_count, summary=summary)

    @classmethod
    def failed(cls, message: str) -> Self:
        return cls(success=False, error=message)

    def to_dict(self) -> dict[str, object]:
        if not self.success:
            return {"success": False, "error": self.error}
        return {
            "success": True,
            "row_count": self.row_count,
            "summary": self.summary.to_dict() if self.summary is not None else None,
        }
