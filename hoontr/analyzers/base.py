"""
Query Engine Base
==================

Common interface implemented by the three Hoontr query engines.  An
engine receives one file's path and raw bytes, and either returns a match
record, returns ``None`` when the file simply does not match, or raises a
:class:`~hoontr.core.errors.PEFormatError` subclass when the file cannot
be evaluated.
"""

from __future__ import annotations

import abc
from typing import Optional

from hoontr.core.models import (
    IMAGE_DIRECTORY_ENTRY_COM_DESCRIPTOR,
    IMAGE_DLLCHARACTERISTICS_GUARD_CF,
    CfgStatus,
    Machine,
    MatchRecord,
    PEHeaderInfo,
    QueryKind,
)


class QueryEngine(abc.ABC):
    """Abstract base for per-file query evaluation."""

    kind: QueryKind
    sorts_results: bool = False

    @abc.abstractmethod
    def evaluate(self, path: str, data: bytes) -> Optional[MatchRecord]:
        """Evaluate the query against one file's contents."""

    @abc.abstractmethod
    def describe(self) -> str:
        """Short description of the active query for log lines."""

    def finalize(self, records: list[MatchRecord]) -> list[MatchRecord]:
        """Reorder the aggregated records once every worker is done.

        Engines that override this set ``sorts_results`` so that the sink
        holds records back until the final order is known.
        """
        return records


def is_managed(header: PEHeaderInfo) -> bool:
    """``True`` if the CLR/COM descriptor directory has a non-zero RVA."""
    entry = header.directory(IMAGE_DIRECTORY_ENTRY_COM_DESCRIPTOR)
    return entry is not None and entry.virtual_address != 0


def cfg_status(header: PEHeaderInfo) -> CfgStatus:
    """Control Flow Guard state; ``UNKNOWN`` for non-x86/x64 machines."""
    if header.machine is Machine.UNKNOWN:
        return CfgStatus.UNKNOWN
    if header.dll_characteristics & IMAGE_DLLCHARACTERISTICS_GUARD_CF:
        return CfgStatus.ENABLED
    return CfgStatus.DISABLED
