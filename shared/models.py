"""
Hoontr Shared Data Models
==========================

Pydantic v2 models describing a scan run as a whole: the per-target
failure record and the run summary handed back to the CLI layer.

Query-specific match records live in :mod:`hoontr.core.models`.

References:
    - Pydantic v2 documentation. https://docs.pydantic.dev/latest/
"""

from __future__ import annotations

import datetime as _dt
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


def _utcnow() -> _dt.datetime:
    return _dt.datetime.now(_dt.timezone.utc)


class FileError(BaseModel):
    """A file that could not be evaluated.

    Attributes:
        file:   Path of the offending file.
        kind:   Error kind name (``InvalidFormat``, ``Truncated``,
                ``NotFound`` or ``Unreadable``).
        reason: Human-readable detail.
    """

    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    file: str = Field(..., min_length=1)
    kind: str = Field(..., min_length=1)
    reason: str = ""

    def __str__(self) -> str:
        return f"{self.file}: {self.kind} - {self.reason}"


class ScanSummary(BaseModel):
    """Aggregated outcome of one scan run.

    Attributes:
        tool_name:     Name of the component that ran the scan.
        query:         Human-readable description of the active query.
        files_total:   Number of candidate files handed to the scan.
        files_scanned: Number of files whose evaluation finished without error.
        match_count:   Number of match records emitted.
        error_count:   Number of error records emitted.
        workers:       Number of worker threads that received work.
        start_time:    UTC timestamp when the scan started.
        end_time:      UTC timestamp when the last worker was joined.
    """

    model_config = ConfigDict(validate_assignment=True, extra="ignore")

    tool_name: str = Field(default="hoontr", min_length=1)
    query: str = ""
    files_total: int = Field(default=0, ge=0)
    files_scanned: int = Field(default=0, ge=0)
    match_count: int = Field(default=0, ge=0)
    error_count: int = Field(default=0, ge=0)
    workers: int = Field(default=0, ge=0)
    start_time: _dt.datetime = Field(default_factory=_utcnow)
    end_time: Optional[_dt.datetime] = None

    @property
    def has_matches(self) -> bool:
        """``True`` if at least one file matched the query."""
        return self.match_count > 0

    @property
    def duration_seconds(self) -> float | None:
        """Elapsed scan time in seconds, or ``None`` if not finalized."""
        if self.end_time is None:
            return None
        return (self.end_time - self.start_time).total_seconds()

    def finalize(self) -> ScanSummary:
        """Stamp *end_time*; returns ``self`` for chaining."""
        self.end_time = _utcnow()
        return self
