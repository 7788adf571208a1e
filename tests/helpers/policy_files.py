"""Builders for policy spreadsheets and typed rows used across tests."""

from __future__ import annotations

import csv
from datetime import date
from typing import TYPE_CHECKING, Final

from policyingest.domain.model import Address, Gender
from policyingest.domain.rows import PolicyRow, RowBatch

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping, Sequence
    from pathlib import Path

COLUMNS: Final[tuple[str, ...]] = (
    "agent",
    "category_name",
    "company_name",
    "firstname",
    "dob",
    "address",
    "city",
    "state",
    "zip",
    "phone",
    "email",
    "gender",
    "userType",
    "account_name",
    "policy_number",
    "policy_start_date",
    "policy_end_date",
)


def csv_values(**overrides: str) -> dict[str, str]:
    """One complete spreadsheet row; keyword arguments replace single cells."""

    values = {
        "agent": "Alex Agent",
        "category_name": "Auto",
        "company_name": "Acme Insurance",
        "firstname": "Jane",
        "dob": "1990-04-12",
        "address": "1 Main St",
        "city": "Springfield",
        "state": "IL",
        "zip": "62701",
        "phone": "555-0100",
        "email": "jane@example.com",
        "gender": "Female",
        "userType": "Active Client",
        "account_name": "Jane Household",
        "policy_number": "P-1",
        "policy_start_date": "2024-01-01",
        "policy_end_date": "2025-01-01",
    }
    values.update(overrides)
    return values


def write_policy_csv(
    path: Path,
    rows: Iterable[Mapping[str, str]],
    *,
    columns: Sequence[str] = COLUMNS,
    delimiter: str = ",",
) -> Path:
    with path.open("w", newline="", encoding="utf-8") as handle:
        writer = csv.DictWriter(handle, fieldnames=list(columns), delimiter=delimiter)
        writer.writeheader()
        for row in rows:
            writer.writerow({column: row.get(column, "") for column in columns})
    return path


def make_row(index: int = 0, **overrides: object) -> PolicyRow:
    """A fully populated typed row; keyword arguments replace single fields."""

    values: dict[str, object] = {
        "agent": "Alex Agent",
        "category_name": "Auto",
        "company_name": "Acme Insurance",
        "first_name": "Jane",
        "dob": date(1990, 4, 12),
        "address": Address(street="1 Main St", city="Springfield", state="IL", zip="62701"),
        "phone": "555-0100",
        "email": "jane@example.com",
        "gender": Gender.FEMALE,
        "user_type": "active_client",
        "account_name": "Jane Household",
        "policy_number": "P-1",
        "policy_start_date": date(2024, 1, 1),
        "policy_end_date": date(2025, 1, 1),
    }
    values.update(overrides)
    return PolicyRow(index=index, **values)  # type: ignore[arg-type]


def make_batch(*rows: PolicyRow) -> RowBatch:
    return RowBatch(tuple(rows))
