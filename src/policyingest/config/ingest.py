"""Ingest run defaults."""

from __future__ import annotations

import os
from dataclasses import dataclass

from .env import positive_int_env
from .errors import ConfigurationError

DEFAULT_INSERT_CHUNK_SIZE = 500
DEFAULT_MAX_WORKERS = 4
DEFAULT_CSV_DELIMITER = ","


@dataclass(frozen=True, slots=True)
class IngestConfig:
    insert_chunk_size: int = DEFAULT_INSERT_CHUNK_SIZE
    max_workers: int = DEFAULT_MAX_WORKERS
    csv_delimiter: str = DEFAULT_CSV_DELIMITER


def get_ingest_config() -> IngestConfig:
    delimiter = os.getenv("POLICYINGEST_CSV_DELIMITER") or DEFAULT_CSV_DELIMITER
    if len(delimiter) != 1:
        raise ConfigurationError(
            f"POLICYINGEST_CSV_DELIMITER must be a single character, got {delimiter!r}"
        )
    return IngestConfig(
        insert_chunk_size=positive_int_env(
            "POLICYINGEST_INSERT_CHUNK_SIZE", DEFAULT_INSERT_CHUNK_SIZE
        ),
        max_workers=positive_int_env("POLICYINGEST_MAX_WORKERS", DEFAULT_MAX_WORKERS),
        csv_delimiter=delimiter,
    )
