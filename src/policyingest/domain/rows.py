"""Typed row records handed from the loader to the ingest pipeline.

Every value has already been coerced at the loader boundary: strings are
trimmed (blank means absent), emails are lower-cased, dates are parsed and
enumerations are resolved. Pipeline phases never inspect raw strings.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from policyingest.domain.model import DEFAULT_USER_TYPE, Address, Gender

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator
    from datetime import date


@dataclass(frozen=True, slots=True, kw_only=True)
class PolicyRow:
    """One spreadsheet row; ``index`` is its zero-based position in the batch."""

    index: int

    agent: str | None = None
    category_name: str | None = None
    company_name: str | None = None

    first_name: str | None = None
    dob: date | None = None
    address: Address = field(default_factory=Address)
    phone: str | None = None
    email: str | None = None
    gender: Gender = Gender.OTHER
    user_type: str = DEFAULT_USER_TYPE

    account_name: str | None = None

    policy_number: str | None = None
    policy_start_date: date | None = None
    policy_end_date: date | None = None

    @property
    def state(self) -> str | None:
        return self.address.state

    @property
    def zip_code(self) -> str | None:
        return self.address.zip


@dataclass(frozen=True, slots=True)
class RowBatch:
    """Fully materialized, ordered batch of rows for a single ingest run."""

    rows: tuple[PolicyRow, ...] = ()

    def __len__(self) -> int:
        return len(self.rows)

    def __iter__(self) -> Iterator[PolicyRow]:
        return iter(self.rows)

    def distinct(self, value_of: Callable[[PolicyRow], str | None]) -> list[str]:
        """Return distinct non-empty values in first-seen row order."""

        seen: dict[str, None] = {}
        for row in self.rows:
            value = value_of(row)
            if value:
                seen.setdefault(value, None)
        return list(seen)

    def first_rows(
        self,
        value_of: Callable[[PolicyRow], str | None],
        *,
        accept: Callable[[PolicyRow], bool] | None = None,
    ) -> dict[str, PolicyRow]:
        """Map each distinct value to the first row carrying it (and passing ``accept``)."""

        first: dict[str, PolicyRow] = {}
        for row in self.rows:
            value = value_of(row)
            if not value or value in first:
                continue
            if accept is not None and not accept(row):
                continue
            first[value] = row
        return first
