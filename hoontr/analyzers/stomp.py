"""
Stomp Candidate Classifier
===========================

Flags images whose ``.text`` section is at least a given size, which
makes them candidates for module stomping (overwriting the code region
of a loaded DLL with an alternate payload).

For each candidate the classifier also reports whether the image is a
managed (.NET) assembly and whether Control Flow Guard is enabled, since
CFG-protected modules reject indirect calls into overwritten code.

References:
    - Microsoft. (2024). Control Flow Guard for platform security.
      https://learn.microsoft.com/en-us/windows/win32/secbp/control-flow-guard
"""

from __future__ import annotations

from typing import Optional

from hoontr.analyzers.base import QueryEngine, cfg_status, is_managed
from hoontr.core.models import (
    ArchFilter,
    CfgStatus,
    MatchRecord,
    QueryKind,
    StompCandidate,
)
from hoontr.parsers.pe_reader import PEReader
from hoontr.parsers.sections import find_text_section


class StompClassifier(QueryEngine):
    """Classify images by ``.text`` virtual size, CFG, and CLR presence.

    Args:
        threshold: Minimum ``.text`` ``VirtualSize`` (inclusive).
        arch: Only report images of this architecture.
        no_cfg_only: Suppress images whose CFG status is ``ENABLED``.
    """

    kind = QueryKind.STOMP
    sorts_results = True

    def __init__(
        self,
        threshold: int,
        arch: ArchFilter = ArchFilter.ALL,
        no_cfg_only: bool = False,
    ) -> None:
        if threshold < 0:
            raise ValueError(f"threshold must be non-negative, got {threshold}")
        self.threshold = threshold
        self.arch = arch
        self.no_cfg_only = no_cfg_only

    def describe(self) -> str:
        parts = [f".text >= {self.threshold:,} bytes", f"arch={self.arch.value}"]
        if self.no_cfg_only:
            parts.append("CFG disabled only")
        return ", ".join(parts)

    def evaluate(self, path: str, data: bytes) -> Optional[StompCandidate]:
        image = PEReader(data).parse()
        header = image.header

        if not self.arch.matches(header.machine):
            return None

        text = find_text_section(image.sections)
        if text is None or text.virtual_size < self.threshold:
            return None

        status = cfg_status(header)
        if self.no_cfg_only and status is CfgStatus.ENABLED:
            return None

        return StompCandidate(
            file=path,
            machine=header.machine,
            is_managed=is_managed(header),
            cfg_status=status,
            section_virtual_size=text.virtual_size,
        )

    def finalize(self, records: list[MatchRecord]) -> list[MatchRecord]:
        return sort_candidates(records)


def sort_candidates(records: list[MatchRecord]) -> list[MatchRecord]:
    """Order stomp candidates by section size, largest first.

    Ties keep their relative order; the file path breaks them so that
    repeated runs print identically.
    """
    return sorted(
        records,
        key=lambda r: (-getattr(r, "section_virtual_size", 0), r.file),
    )
