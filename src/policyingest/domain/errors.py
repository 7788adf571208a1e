"""Domain-level exceptions raised by an ingest run."""

from __future__ import annotations


class IngestError(RuntimeError):
    """Base class for fatal ingest run failures."""


class ParseError(IngestError):
    """Raised when the incoming file cannot be read or is structurally malformed."""
