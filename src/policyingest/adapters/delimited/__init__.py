"""Delimited-text adapter for policy spreadsheets."""

from __future__ import annotations

from .loader import load_policy_batch
from .reader import parse_policy_rows, read_policy_rows
from .schema import RECOGNIZED_COLUMNS, PolicyCsvRow
from .translator import translate_row, translate_rows

__all__ = [
    "RECOGNIZED_COLUMNS",
    "PolicyCsvRow",
    "load_policy_batch",
    "parse_policy_rows",
    "read_policy_rows",
    "translate_row",
    "translate_rows",
]
