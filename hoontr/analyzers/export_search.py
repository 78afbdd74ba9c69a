"""
Export Name Search
===================

Matches a substring against every name in a PE image's export table.
Images without an export directory are not errors for this query; they
just produce no record.
"""

from __future__ import annotations

from typing import Optional

from shared.logger import HoontrLogger

from hoontr.analyzers.base import QueryEngine, is_managed
from hoontr.core.errors import NotFoundError
from hoontr.core.models import ArchFilter, ExportMatches, QueryKind
from hoontr.parsers.exports import ExportWalker
from hoontr.parsers.pe_reader import PEReader


def name_matches(name: str, pattern: str, match_case: bool) -> bool:
    if match_case:
        return pattern in name
    return pattern.lower() in name.lower()


class ExportNameSearch(QueryEngine):
    """Report exported names containing *pattern*.

    Args:
        pattern: Non-empty substring to look for.
        match_case: Compare case-sensitively when ``True``.
        arch: Only report images of this architecture.
        logger: Receives a DEBUG line for each image whose export table
            had names that could not be read.
    """

    kind = QueryKind.EXPORTS

    def __init__(
        self,
        pattern: str,
        match_case: bool = False,
        arch: ArchFilter = ArchFilter.ALL,
        logger: HoontrLogger | None = None,
    ) -> None:
        if not pattern:
            raise ValueError("export name pattern must not be empty")
        self.pattern = pattern
        self.match_case = match_case
        self.arch = arch
        self._logger = logger

    def describe(self) -> str:
        case = "case-sensitive" if self.match_case else "case-insensitive"
        return f"export name contains {self.pattern!r} ({case}, arch={self.arch.value})"

    def evaluate(self, path: str, data: bytes) -> Optional[ExportMatches]:
        image = PEReader(data).parse()
        header = image.header
        if not self.arch.matches(header.machine):
            return None

        walker = ExportWalker(data, image)
        try:
            names = walker.walk()
        except NotFoundError:
            return None
        if walker.skipped and self._logger is not None:
            self._logger.debug(
                "%s: skipped %d unreadable export names", path, walker.skipped
            )

        matched = [
            n for n in names if name_matches(n, self.pattern, self.match_case)
        ]
        if not matched:
            return None

        return ExportMatches(
            file=path,
            machine=header.machine,
            is_managed=is_managed(header),
            names=matched,
        )
