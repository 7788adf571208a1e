"""Account linking pass: attach each row's account name to its resolved user."""

from __future__ import annotations

from dataclasses import dataclass
from logging import getLogger
from operator import attrgetter
from typing import TYPE_CHECKING

from policyingest.domain.ingest_pipeline.bulk_write import write_candidates
from policyingest.domain.ingest_pipeline.orchestrator import PipelinePhase
from policyingest.domain.model import AccountKey, UserAccount

if TYPE_CHECKING:
    from collections.abc import Iterator

    from policyingest.domain.ingest_pipeline.context import PipelineContext
    from policyingest.domain.rows import RowBatch


log = getLogger(__name__)


@dataclass(slots=True)
class AccountLinkingPhase(PipelinePhase):
    """Stage one account per unseen (account name, user) pair and insert them.

    Pairs are taken in row order and each distinct pair is staged once, so
    later rows naming the same pair reuse the staged account. ``existing``
    counts only stored accounts the batch names. After the insert the lookup
    holds persisted records only: accounts that lost a uniqueness race are
    swapped for the stored record with the same key.
    """

    name: str = "accounts"

    def run(self, batch: RowBatch, *, context: PipelineContext) -> None:
        context.require("bulk_write", before=self.name)
        users = context.users
        accounts = context.accounts

        batch_keys = list(dict.fromkeys(_account_keys(batch, context)))
        user_ids = [user.id for user in users.records.values()]
        if user_ids:
            with context.open_unit_of_work() as uow:
                accounts.seed(
                    uow.repositories.accounts.find_by_users(user_ids),
                    counted=set(batch_keys),
                )

        for key in batch_keys:
            if key not in accounts:
                accounts.stage(UserAccount(name=key.name, user_id=key.user_id))

        outcome, persisted = write_candidates(
            context, attrgetter("accounts"), accounts.to_create
        )
        accounts.absorb(outcome, persisted)
        if outcome.skipped:
            log.warning(
                "%d accounts already existed, %d reconciled with stored records",
                len(outcome.skipped),
                len(persisted),
            )
        log.info(
            "Accounts: %d existing, %d created",
            accounts.existing,
            accounts.created,
        )


def _account_keys(batch: RowBatch, context: PipelineContext) -> Iterator[AccountKey]:
    for row in batch:
        user = context.users.get(row.email)
        if user is not None and row.account_name:
            yield AccountKey(row.account_name, user.id)
