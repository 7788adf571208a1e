from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from policyingest.adapters.delimited import parse_policy_rows, read_policy_rows
from policyingest.domain.errors import IngestError, ParseError
from tests.helpers.policy_files import csv_values, write_policy_csv

if TYPE_CHECKING:
    from pathlib import Path


def test_reads_recognized_columns_and_ignores_others() -> None:
    rows = parse_policy_rows(
        [
            "agent,email,userType,favourite_colour\r\n",
            "Alex, JANE@example.com ,Active Client,blue\r\n",
        ]
    )

    assert len(rows) == 1
    assert rows[0].agent == "Alex"
    assert rows[0].email == "JANE@example.com"
    assert rows[0].user_type == "Active Client"
    assert not hasattr(rows[0], "favourite_colour")


def test_blank_cells_become_none_and_blank_lines_are_skipped() -> None:
    rows = parse_policy_rows(["agent,phone\n", "Alex,   \n", "\n", ",\n", "Blair,555\n"])

    assert [(row.agent, row.phone) for row in rows] == [("Alex", None), ("Blair", "555")]


def test_missing_header_is_a_parse_error() -> None:
    with pytest.raises(ParseError, match="no header"):
        parse_policy_rows([])


def test_empty_header_is_a_parse_error() -> None:
    with pytest.raises(ParseError, match="empty"):
        parse_policy_rows([",,\n", "a,b,c\n"])


def test_inconsistent_column_count_is_a_parse_error() -> None:
    with pytest.raises(ParseError, match="Line 3: expected 2 columns, found 3"):
        parse_policy_rows(["agent,email\n", "Alex,a@b.co\n", "Blair,b@b.co,extra\n"])


def test_unterminated_quote_is_a_parse_error() -> None:
    with pytest.raises(ParseError):
        parse_policy_rows(['agent,email\n', '"Alex,a@b.co\n'])


def test_reads_file_with_custom_delimiter(tmp_path: Path) -> None:
    path = write_policy_csv(
        tmp_path / "policies.csv",
        [csv_values(policy_number="P-9")],
        delimiter=";",
    )

    rows = read_policy_rows(path, delimiter=";")

    assert len(rows) == 1
    assert rows[0].policy_number == "P-9"
    assert rows[0].category_name == "Auto"


def test_byte_order_mark_is_stripped(tmp_path: Path) -> None:
    path = tmp_path / "bom.csv"
    path.write_bytes(b"\xef\xbb\xbfagent,email\nAlex,a@b.co\n")

    rows = read_policy_rows(path)

    assert rows[0].agent == "Alex"


def test_unreadable_file_is_a_parse_error(tmp_path: Path) -> None:
    with pytest.raises(ParseError, match="Cannot read"):
        read_policy_rows(tmp_path / "missing.csv")


def test_undecodable_bytes_are_a_parse_error(tmp_path: Path) -> None:
    path = tmp_path / "latin1.csv"
    path.write_bytes(b"agent,email\n\xff\xfe\xfa,a@b.co\n")

    with pytest.raises(ParseError, match="not valid utf-8-sig"):
        read_policy_rows(path)


def test_parse_error_is_an_ingest_error() -> None:
    assert issubclass(ParseError, IngestError)
