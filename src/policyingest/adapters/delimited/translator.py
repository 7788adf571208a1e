"""Translate raw spreadsheet rows into typed domain rows."""

from __future__ import annotations

import re
from datetime import date, datetime
from logging import getLogger
from typing import TYPE_CHECKING, Final

from policyingest.domain.model import DEFAULT_USER_TYPE, Address, Gender
from policyingest.domain.rows import PolicyRow, RowBatch

if TYPE_CHECKING:
    from collections.abc import Iterable

    from .schema import PolicyCsvRow


log = getLogger(__name__)

EMAIL_PATTERN: Final[re.Pattern[str]] = re.compile(r"\S+@\S+\.\S+")
DATE_FORMATS: Final[tuple[str, ...]] = ("%Y-%m-%d", "%m/%d/%Y", "%Y/%m/%d")


def translate_rows(rows: Iterable[PolicyCsvRow]) -> RowBatch:
    return RowBatch(tuple(translate_row(index, row) for index, row in enumerate(rows)))


def translate_row(index: int, row: PolicyCsvRow) -> PolicyRow:
    return PolicyRow(
        index=index,
        agent=row.agent,
        category_name=row.category_name,
        company_name=row.company_name,
        first_name=row.firstname,
        dob=parse_date(row.dob, field="dob", index=index),
        address=Address(street=row.address, city=row.city, state=row.state, zip=row.zip),
        phone=row.phone,
        email=normalize_email(row.email, index=index),
        gender=parse_gender(row.gender),
        user_type=normalize_user_type(row.user_type),
        account_name=row.account_name,
        policy_number=row.policy_number,
        policy_start_date=parse_date(row.policy_start_date, field="policy_start_date", index=index),
        policy_end_date=parse_date(row.policy_end_date, field="policy_end_date", index=index),
    )


def normalize_email(value: str | None, *, index: int = -1) -> str | None:
    if value is None:
        return None
    email = value.strip().lower()
    if not EMAIL_PATTERN.fullmatch(email):
        log.warning("Row %d: ignoring invalid email %r", index, value)
        return None
    return email


def parse_gender(value: str | None) -> Gender:
    if not value:
        return Gender.OTHER
    try:
        return Gender(value.strip().lower())
    except ValueError:
        return Gender.OTHER


def normalize_user_type(value: str | None) -> str:
    if not value:
        return DEFAULT_USER_TYPE
    return "_".join(value.lower().split())


def parse_date(value: str | None, *, field: str = "date", index: int = -1) -> date | None:
    """Parse ISO dates/datetimes and the common US spreadsheet formats."""

    if not value:
        return None
    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(value, fmt).date()  # noqa: DTZ007
        except ValueError:
            continue
    try:
        return datetime.fromisoformat(value).date()
    except ValueError:
        log.warning("Row %d: unparseable %s %r", index, field, value)
        return None
