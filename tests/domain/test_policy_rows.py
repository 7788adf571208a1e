from __future__ import annotations

from operator import attrgetter

from policyingest.domain.model import Address
from tests.helpers.policy_files import make_batch, make_row


def test_distinct_keeps_first_seen_order_and_drops_empty_values() -> None:
    batch = make_batch(
        make_row(0, agent="B"),
        make_row(1, agent=None),
        make_row(2, agent="A"),
        make_row(3, agent="B"),
    )

    assert batch.distinct(attrgetter("agent")) == ["B", "A"]


def test_first_rows_respects_accept_predicate() -> None:
    batch = make_batch(
        make_row(0, email="a@x.io", first_name=None),
        make_row(1, email="a@x.io", first_name="Ann"),
        make_row(2, email="a@x.io", first_name="Later"),
        make_row(3, email="b@x.io", first_name=None),
    )

    first = batch.first_rows(attrgetter("email"), accept=lambda row: bool(row.first_name))

    assert {email: row.index for email, row in first.items()} == {"a@x.io": 1}


def test_row_exposes_state_and_zip_from_address() -> None:
    row = make_row(address=Address(state="CA", zip="90001"))

    assert (row.state, row.zip_code) == ("CA", "90001")
    assert len(make_batch(row, row)) == 2
