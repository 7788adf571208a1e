"""Row batch loader: file reference in, typed ``RowBatch`` out."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

from .reader import read_policy_rows
from .translator import translate_rows

if TYPE_CHECKING:
    from pathlib import Path

    from policyingest.domain.rows import RowBatch


log = getLogger(__name__)


def load_policy_batch(path: str | Path, *, delimiter: str = ",") -> RowBatch:
    """Read and translate the whole file before any resolution work starts."""

    batch = translate_rows(read_policy_rows(path, delimiter=delimiter))
    log.info("Loaded %d rows from %s", len(batch), path)
    return batch
