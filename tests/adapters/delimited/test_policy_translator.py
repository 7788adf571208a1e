from __future__ import annotations

from datetime import date
from typing import TYPE_CHECKING

import pytest

from policyingest.adapters.delimited import load_policy_batch, translate_row
from policyingest.adapters.delimited.schema import PolicyCsvRow
from policyingest.adapters.delimited.translator import (
    normalize_email,
    normalize_user_type,
    parse_date,
    parse_gender,
)
from policyingest.domain.model import Address, Gender
from tests.helpers.policy_files import csv_values, write_policy_csv

if TYPE_CHECKING:
    from pathlib import Path


def test_translate_row_coerces_every_field() -> None:
    raw = PolicyCsvRow.model_validate(csv_values(email=" Jane@Example.COM "))

    row = translate_row(3, raw)

    assert row.index == 3
    assert row.first_name == "Jane"
    assert row.email == "jane@example.com"
    assert row.dob == date(1990, 4, 12)
    assert row.address == Address(street="1 Main St", city="Springfield", state="IL", zip="62701")
    assert row.state == "IL"
    assert row.zip_code == "62701"
    assert row.gender is Gender.FEMALE
    assert row.user_type == "active_client"
    assert row.policy_start_date == date(2024, 1, 1)
    assert row.policy_end_date == date(2025, 1, 1)


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        ("someone@example.com", "someone@example.com"),
        ("  MiXeD@Example.Org ", "mixed@example.org"),
        ("not-an-email", None),
        ("missing@tld", None),
        (None, None),
    ],
)
def test_normalize_email(value: str | None, expected: str | None) -> None:
    assert normalize_email(value) == expected


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        ("Male", Gender.MALE),
        ("female", Gender.FEMALE),
        ("unknown", Gender.OTHER),
        (None, Gender.OTHER),
    ],
)
def test_parse_gender_falls_back_to_other(value: str | None, expected: Gender) -> None:
    assert parse_gender(value) is expected


def test_normalize_user_type() -> None:
    assert normalize_user_type(None) == "individual"
    assert normalize_user_type("Active  Client") == "active_client"
    assert normalize_user_type("CORPORATE") == "corporate"


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        ("2024-02-29", date(2024, 2, 29)),
        ("02/29/2024", date(2024, 2, 29)),
        ("2024/02/29", date(2024, 2, 29)),
        ("2024-02-29T10:15:00", date(2024, 2, 29)),
        ("2024-02-29T10:15:00+02:00", date(2024, 2, 29)),
        ("29.02.2024", None),
        ("", None),
        (None, None),
    ],
)
def test_parse_date_formats(value: str | None, expected: date | None) -> None:
    assert parse_date(value) == expected


def test_load_policy_batch_keeps_row_order(tmp_path: Path) -> None:
    path = write_policy_csv(
        tmp_path / "policies.csv",
        [csv_values(policy_number=f"P-{number}") for number in range(3)],
    )

    batch = load_policy_batch(path)

    assert len(batch) == 3
    assert [row.policy_number for row in batch] == ["P-0", "P-1", "P-2"]
    assert [row.index for row in batch] == [0, 1, 2]
