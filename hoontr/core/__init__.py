"""
Hoontr Core Module
===================

Data models and error kinds shared by the parsers, the query engines and
the scan orchestrator.  The orchestrator itself lives in
:mod:`hoontr.core.engine`.
"""

from hoontr.core.errors import (
    ErrorKind,
    InvalidFormatError,
    NotFoundError,
    PEFormatError,
    TruncatedError,
    UnreadableError,
)
from hoontr.core.models import (
    ArchFilter,
    ByteMatches,
    CfgStatus,
    DataDirectory,
    ExportMatches,
    Machine,
    MatchRecord,
    ParsedImage,
    PEHeaderInfo,
    QueryKind,
    SectionHeader,
    StompCandidate,
)

__all__ = [
    "ArchFilter",
    "ByteMatches",
    "CfgStatus",
    "DataDirectory",
    "ErrorKind",
    "ExportMatches",
    "InvalidFormatError",
    "Machine",
    "MatchRecord",
    "NotFoundError",
    "ParsedImage",
    "PEFormatError",
    "PEHeaderInfo",
    "QueryKind",
    "SectionHeader",
    "StompCandidate",
    "TruncatedError",
    "UnreadableError",
]
