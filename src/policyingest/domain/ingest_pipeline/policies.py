"""Policy linking pass: stage policies whose references all resolved."""

from __future__ import annotations

from dataclasses import dataclass
from logging import getLogger
from operator import attrgetter
from typing import TYPE_CHECKING

from policyingest.domain.ingest_pipeline.bulk_write import write_candidates
from policyingest.domain.ingest_pipeline.orchestrator import PipelinePhase
from policyingest.domain.model import AccountKey, EntityKind, PolicyInfo, SkipReason

if TYPE_CHECKING:
    from policyingest.domain.ingest_pipeline.context import PipelineContext
    from policyingest.domain.model import Entity
    from policyingest.domain.rows import PolicyRow, RowBatch


log = getLogger(__name__)


@dataclass(slots=True)
class PolicyLinkingPhase(PipelinePhase):
    """Create one policy per new policy number, skipping rows that cannot be linked.

    A row is dropped when its number is already stored, when an earlier row of
    this batch already staged the same number, when it lacks a number or start
    date, or when any of its category, carrier, agent, user or account did not
    resolve. Each drop is recorded with its reason; none of them fails the run.
    """

    name: str = "policies"

    def run(self, batch: RowBatch, *, context: PipelineContext) -> None:
        context.require("accounts", before=self.name)
        ledger = context.policies

        numbers = batch.distinct(attrgetter("policy_number"))
        if numbers:
            with context.open_unit_of_work() as uow:
                existing = uow.repositories.policies.find_by_keys(numbers)
            ledger.existing_numbers.update(policy.policy_number for policy in existing)

        staged_numbers: set[str] = set()
        for row in batch:
            policy = self._stage_row(row, context, staged_numbers)
            if policy is not None:
                ledger.stage(row, policy)
                staged_numbers.add(policy.policy_number)

        outcome, _ = write_candidates(
            context,
            attrgetter("policies"),
            [item.policy for item in ledger.staged],
            recover=False,
        )
        ledger.created = len(outcome.created)
        ledger.reject(outcome.skipped)
        if outcome.skipped:
            log.warning(
                "%d policies were inserted concurrently by another run", len(outcome.skipped)
            )

        skip_counts = ledger.skip_counts()
        log.info(
            "Policies: %d staged, %d created, %d existing, %d duplicate, %d unresolved",
            len(ledger.staged),
            ledger.created,
            skip_counts[SkipReason.EXISTING_NUMBER],
            skip_counts[SkipReason.DUPLICATE_NUMBER],
            skip_counts[SkipReason.UNRESOLVED_REFERENCE],
        )

    def _stage_row(
        self,
        row: PolicyRow,
        context: PipelineContext,
        staged_numbers: set[str],
    ) -> PolicyInfo | None:
        ledger = context.policies
        number = row.policy_number
        if not number:
            ledger.skip(row, SkipReason.MISSING_FIELDS)
            return None
        if number in ledger.existing_numbers:
            ledger.skip(row, SkipReason.EXISTING_NUMBER)
            return None
        if number in staged_numbers:
            ledger.skip(row, SkipReason.DUPLICATE_NUMBER)
            return None
        if row.policy_start_date is None:
            ledger.skip(row, SkipReason.MISSING_FIELDS)
            return None

        category = context.categories.get(row.category_name)
        carrier = context.carriers.get(row.company_name)
        agent = context.agents.get(row.agent)
        user = context.users.get(row.email)
        account = (
            context.accounts.get(AccountKey(row.account_name, user.id))
            if user is not None and row.account_name
            else None
        )
        if category is None or carrier is None or agent is None or user is None or account is None:
            ledger.skip(
                row,
                SkipReason.UNRESOLVED_REFERENCE,
                missing=_missing_references(
                    (EntityKind.CATEGORY, category),
                    (EntityKind.CARRIER, carrier),
                    (EntityKind.AGENT, agent),
                    (EntityKind.USER, user),
                    (EntityKind.ACCOUNT, account),
                ),
            )
            return None

        return PolicyInfo(
            policy_number=number,
            start_date=row.policy_start_date,
            end_date=row.policy_end_date,
            category_id=category.id,
            carrier_id=carrier.id,
            user_id=user.id,
            account_id=account.id,
            agent_id=agent.id,
        )


def _missing_references(*references: tuple[EntityKind, Entity | None]) -> tuple[EntityKind, ...]:
    return tuple(kind for kind, entity in references if entity is None)
