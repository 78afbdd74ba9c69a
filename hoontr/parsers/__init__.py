"""
Hoontr Parsers
===============

Bounds-checked PE header reader, section/RVA resolution helpers and the
export table walker.
"""

from hoontr.parsers.exports import ExportWalker, walk_exports
from hoontr.parsers.pe_reader import ByteCursor, PEReader, parse_pe
from hoontr.parsers.sections import (
    extract_section_bytes,
    find_text_section,
    is_text_section,
    resolve_rva,
    rva_to_offset,
)

__all__ = [
    "ByteCursor",
    "ExportWalker",
    "PEReader",
    "extract_section_bytes",
    "find_text_section",
    "is_text_section",
    "parse_pe",
    "resolve_rva",
    "rva_to_offset",
    "walk_exports",
]
