"""
Byte Pattern Search
====================

Locates every occurrence of a raw byte sequence inside the ``.text``
section of a PE image.  Overlapping occurrences are all reported, so the
pattern ``AABB`` in ``AABBAABB`` yields offsets ``0`` and ``4`` and
``AA`` in ``AAAA`` yields ``0``, ``1`` and ``2``.
"""

from __future__ import annotations

from typing import Optional

from hoontr.analyzers.base import QueryEngine
from hoontr.core.models import ByteMatches, QueryKind
from hoontr.parsers.pe_reader import PEReader
from hoontr.parsers.sections import extract_section_bytes, find_text_section


def find_all(haystack: bytes, needle: bytes) -> list[int]:
    """Return every start offset of *needle* in *haystack*.

    An empty needle, or one longer than the haystack, matches nowhere.
    """
    if not needle or len(needle) > len(haystack):
        return []
    offsets: list[int] = []
    pos = haystack.find(needle)
    while pos != -1:
        offsets.append(pos)
        pos = haystack.find(needle, pos + 1)
    return offsets


class BytePatternSearch(QueryEngine):
    """Search ``.text`` raw bytes for a fixed pattern.

    Usage::

        engine = BytePatternSearch(b"\\x0f\\x05\\xc3")
        record = engine.evaluate(path, raw_bytes)
        if record is not None:
            print([hex(rva) for rva in record.rvas])
    """

    kind = QueryKind.BYTES

    def __init__(self, pattern: bytes) -> None:
        self.pattern: bytes = bytes(pattern)

    def describe(self) -> str:
        return f"byte pattern ({len(self.pattern)} bytes): {self.pattern.hex(' ')}"

    def evaluate(self, path: str, data: bytes) -> Optional[ByteMatches]:
        image = PEReader(data).parse()
        text = find_text_section(image.sections)
        if text is None:
            return None

        haystack = extract_section_bytes(data, text)
        offsets = find_all(haystack, self.pattern)
        if not offsets:
            return None

        return ByteMatches(
            file=path,
            section_size=text.size_of_raw_data,
            virtual_address=text.virtual_address,
            offsets=offsets,
        )
