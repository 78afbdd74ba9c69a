"""
Section & RVA Resolution
=========================

Helpers mapping relative virtual addresses onto the section table and
extracting raw section bytes from an image buffer.

Section ranges may overlap and need not be sorted, so every lookup scans
the table in header order and returns the first section that contains
the address.
"""

from __future__ import annotations

from typing import Optional, Sequence

from hoontr.core.errors import TruncatedError
from hoontr.core.models import SectionHeader


TEXT_SECTION_NAME: bytes = b".text"


def resolve_rva(
    sections: Sequence[SectionHeader], rva: int
) -> Optional[tuple[int, int]]:
    """Map *rva* to ``(section_index, file_offset)``.

    A section contains *rva* when it falls in the half-open range
    ``[virtual_address, virtual_address + virtual_size)``.

    Args:
        sections: Section headers in header order.
        rva: Relative virtual address to resolve.

    Returns:
        The first containing section's index and the corresponding file
        offset, or ``None`` if no section contains *rva*.
    """
    for index, sec in enumerate(sections):
        start = sec.virtual_address
        if start <= rva < start + sec.virtual_size:
            return index, sec.pointer_to_raw_data + (rva - start)
    return None


def rva_to_offset(sections: Sequence[SectionHeader], rva: int) -> Optional[int]:
    """Like :func:`resolve_rva` but only the file offset."""
    resolved = resolve_rva(sections, rva)
    return None if resolved is None else resolved[1]


def extract_section_bytes(image: bytes, section: SectionHeader) -> bytes:
    """Return exactly ``size_of_raw_data`` bytes of *section*.

    Raises:
        TruncatedError: If the raw data extends past the end of *image*.
    """
    start = section.pointer_to_raw_data
    end = start + section.size_of_raw_data
    if section.size_of_raw_data == 0:
        return b""
    if end > len(image):
        raise TruncatedError(
            f"section {section.display_name!r} raw data "
            f"[0x{start:x}, 0x{end:x}) exceeds file of {len(image)} bytes"
        )
    return image[start:end]


def is_text_section(section: SectionHeader) -> bool:
    """``True`` if the 8-byte name field is ``.text`` plus NUL padding.

    Compared as bytes, ASCII case-insensitively.
    """
    name = section.name
    if len(name) < len(TEXT_SECTION_NAME):
        return False
    head = name[:len(TEXT_SECTION_NAME)]
    tail = name[len(TEXT_SECTION_NAME):]
    return head.lower() == TEXT_SECTION_NAME and tail.strip(b"\x00") == b""


def find_text_section(
    sections: Sequence[SectionHeader],
) -> Optional[SectionHeader]:
    """Return the first ``.text`` section in header order, if any."""
    for sec in sections:
        if is_text_section(sec):
            return sec
    return None
