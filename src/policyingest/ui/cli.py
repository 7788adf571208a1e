from __future__ import annotations

import argparse
import json
import logging
import sys
from dataclasses import replace
from pathlib import Path
from signal import SIGINT, signal
from typing import TYPE_CHECKING

from dotenv import load_dotenv

from policyingest.adapters.sqlalchemy import startup
from policyingest.app import IngestWorker, ingest_uploaded_file
from policyingest.config import ConfigurationError, configure_logging, get_ingest_config

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import FrameType

    from policyingest.config import IngestConfig
    from policyingest.domain.ingest_pipeline import IngestOutcome

log = logging.getLogger(__name__)


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Ingest insurance policy spreadsheets")
    subparsers = parser.add_subparsers(dest="command", required=True)

    ingest = subparsers.add_parser("ingest", help="Ingest one delimited policy file")
    ingest.add_argument("file", type=Path, help="Path to the CSV file to ingest")
    ingest.add_argument(
        "--keep-file",
        action="store_true",
        help="Do not delete the file after a successful run",
    )
    ingest.add_argument(
        "--in-process",
        action="store_true",
        help="Run in the current process instead of the isolated worker process",
    )
    ingest.add_argument(
        "--delimiter",
        type=str,
        help="Field delimiter (defaults to POLICYINGEST_CSV_DELIMITER or ',')",
    )
    ingest.add_argument(
        "--json",
        action="store_true",
        help="Print the outcome as JSON on stdout",
    )

    subparsers.add_parser("init-db", help="Create or upgrade the database schema")
    return parser.parse_args(list(argv))


def _build_config(args: argparse.Namespace) -> IngestConfig:
    config = get_ingest_config()
    if args.delimiter is not None:
        if len(args.delimiter) != 1:
            raise ValueError(f"Delimiter must be a single character, got {args.delimiter!r}")
        config = replace(config, csv_delimiter=args.delimiter)
    return config


def _run_ingest(args: argparse.Namespace, config: IngestConfig) -> IngestOutcome:
    if not args.file.is_file():
        raise ValueError(f"No such file: {args.file}")
    if args.in_process:
        return ingest_uploaded_file(args.file, delete_on_success=not args.keep_file, config=config)
    with IngestWorker(config=config) as worker:
        return ingest_uploaded_file(args.file, delete_on_success=not args.keep_file, worker=worker)


def _report(outcome: IngestOutcome, *, as_json: bool) -> None:
    if as_json:
        print(json.dumps(outcome.to_dict(), indent=2))  # noqa: T201
    elif outcome.success and outcome.summary is not None:
        log.info("Ingested %d rows\n%s", outcome.row_count, outcome.summary.describe())
    else:
        log.error("Ingest failed: %s", outcome.error)


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    configure_logging()
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    parsed_args = _parse_args(args_list)

    if parsed_args.command == "init-db":
        _init_db()
    else:
        _ingest(parsed_args)


def _init_db() -> None:
    try:
        startup()
    except Exception:
        log.exception("Could not initialise the database")
        sys.exit(1)
    log.info("Database schema is up to date")


def _ingest(args: argparse.Namespace) -> None:
    try:
        config = _build_config(args)
    except (ValueError, ConfigurationError):
        log.exception("CLI validation error")
        sys.exit(2)

    try:
        outcome = _run_ingest(args, config)
    except ValueError:
        log.exception("CLI validation error")
        sys.exit(2)
    except Exception:
        log.exception("Fatal error during ingest")
        sys.exit(1)

    _report(outcome, as_json=args.json)
    if not outcome.success:
        sys.exit(1)


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Handle SIGINT (Ctrl+C) gracefully."""
    log.info("Closed by user (Ctrl+C)")
    sys.exit(0)


def run() -> None:
    load_dotenv()
    signal(SIGINT, sigint_handler)
    main()


if __name__ == "__main__":
    run()
