"""Pydantic model for one raw policy spreadsheet row."""

from __future__ import annotations

from typing import Final

from pydantic import BaseModel, ConfigDict, Field, field_validator

RECOGNIZED_COLUMNS: Final[frozenset[str]] = frozenset(
    {
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
    }
)


class PolicyCsvRow(BaseModel):
    """Raw string values keyed by the recognized column names.

    Every column is optional; blank cells are read as ``None``. No other
    coercion happens here, that is the translator's job.
    """

    model_config = ConfigDict(extra="ignore", frozen=True, populate_by_name=True)

    agent: str | None = None
    category_name: str | None = None
    company_name: str | None = None
    firstname: str | None = None
    dob: str | None = None
    address: str | None = None
    city: str | None = None
    state: str | None = None
    zip: str | None = None
    phone: str | None = None
    email: str | None = None
    gender: str | None = None
    user_type: str | None = Field(default=None, alias="userType")
    account_name: str | None = None
    policy_number: str | None = None
    policy_start_date: str | None = None
    policy_end_date: str | None = None

    @field_validator("*", mode="before")
    @classmethod
    def _blank_to_none(cls, value: object) -> object:
        if isinstance(value, str):
            stripped = value.strip()
            return stripped or None
        return value
