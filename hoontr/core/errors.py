"""
Hoontr Error Kinds
===================

Exception hierarchy raised by the PE reader, the RVA resolver, the export
walker, and the query engines.  Every exception carries an
:class:`ErrorKind` so that the scan orchestrator can turn it into a
per-file :class:`~shared.models.FileError` record without inspecting the
concrete class.

All four kinds are recovered at the single-file boundary inside a worker;
none of them aborts a scan.
"""

from __future__ import annotations

import enum


class ErrorKind(str, enum.Enum):
    """Classification of a per-file failure."""
    INVALID_FORMAT = "InvalidFormat"
    TRUNCATED = "Truncated"
    NOT_FOUND = "NotFound"
    UNREADABLE = "Unreadable"


class PEFormatError(Exception):
    """Base class for every recoverable per-file failure.

    Attributes:
        kind: The :class:`ErrorKind` this error reports as.
        reason: Short human-readable reason.
    """

    kind: ErrorKind = ErrorKind.INVALID_FORMAT

    def __init__(self, reason: str) -> None:
        super().__init__(reason)
        self.reason = reason

    def __str__(self) -> str:
        return f"{self.kind.value}: {self.reason}"


class InvalidFormatError(PEFormatError):
    """Signature or magic mismatch -- not a PE, or unknown bitness."""
    kind = ErrorKind.INVALID_FORMAT


class TruncatedError(PEFormatError):
    """A declared structure extends past the available bytes."""
    kind = ErrorKind.TRUNCATED


class NotFoundError(PEFormatError):
    """A requested table (e.g. the export directory) is absent."""
    kind = ErrorKind.NOT_FOUND


class UnreadableError(PEFormatError):
    """The underlying file could not be opened or read."""
    kind = ErrorKind.UNREADABLE
