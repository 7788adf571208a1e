"""Read delimited text into raw row models."""

from __future__ import annotations

import csv
from logging import getLogger
from pathlib import Path
from typing import TYPE_CHECKING

from pydantic import ValidationError

from policyingest.domain.errors import ParseError

from .schema import RECOGNIZED_COLUMNS, PolicyCsvRow

if TYPE_CHECKING:
    from collections.abc import Iterable


log = getLogger(__name__)


def read_policy_rows(
    path: str | Path,
    *,
    delimiter: str = ",",
    encoding: str = "utf-8-sig",
) -> tuple[PolicyCsvRow, ...]:
    """Read the whole file at ``path``; raise ``ParseError`` if it is unusable."""

    source = Path(path)
    try:
        with source.open(newline="", encoding=encoding) as handle:
            return parse_policy_rows(handle, delimiter=delimiter)
    except OSError as exc:
        raise ParseError(f"Cannot read {source}: {exc}") from exc
    except UnicodeDecodeError as exc:
        raise ParseError(f"{source} is not valid {encoding} text: {exc.reason}") from exc


def parse_policy_rows(lines: Iterable[str], *, delimiter: str = ",") -> tuple[PolicyCsvRow, ...]:
    """Parse header plus data lines into ``PolicyCsvRow`` models.

    Blank lines are ignored. A data line whose column count differs from the
    header's is a structural error.
    """

    reader = csv.reader(lines, delimiter=delimiter, strict=True)
    try:
        header = [name.strip() for name in next(reader)]
    except StopIteration:
        raise ParseError("Input has no header row") from None
    except csv.Error as exc:
        raise ParseError(f"Malformed header row: {exc}") from exc

    if not any(header):
        raise ParseError("Header row is empty")
    unknown = sorted(name for name in header if name and name not in RECOGNIZED_COLUMNS)
    if unknown:
        log.info("Ignoring unrecognized columns: %s", ", ".join(unknown))

    rows: list[PolicyCsvRow] = []
    try:
        for values in reader:
            if not any(value.strip() for value in values):
                continue
            if len(values) != len(header):
                raise ParseError(
                    f"Line {reader.line_num}: expected {len(header)} columns, found {len(values)}"
                )
            payload = {
                name: value
                for name, value in zip(header, values, strict=True)
                if name in RECOGNIZED_COLUMNS
            }
            rows.append(PolicyCsvRow.model_validate(payload))
    except csv.Error as exc:
        raise ParseError(f"Line {reader.line_num}: {exc}") from exc
    except ValidationError as exc:
        raise ParseError(f"Line {reader.line_num}: {exc}") from exc

    return tuple(rows)
