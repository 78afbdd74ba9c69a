"""Tests for RVA resolution and section extraction."""

import pytest

from hoontr.core.errors import TruncatedError
from hoontr.core.models import SectionHeader
from hoontr.parsers.pe_reader import parse_pe
from hoontr.parsers.sections import (
    extract_section_bytes,
    find_text_section,
    is_text_section,
    resolve_rva,
    rva_to_offset,
)

from tests.pe_builder import TEXT, SectionLayout, build_pe


def _section(name=b".text\x00\x00\x00", va=0x1000, vsize=0x100, ptr=0x400, raw=0x200):
    return SectionHeader(
        name=name,
        virtual_address=va,
        virtual_size=vsize,
        pointer_to_raw_data=ptr,
        size_of_raw_data=raw,
    )


class TestResolveRva:
    def test_inside_section(self):
        sections = [_section(va=0x1000, vsize=0x100, ptr=0x400)]
        assert resolve_rva(sections, 0x1010) == (0, 0x410)

    def test_range_is_half_open(self):
        sections = [_section(va=0x1000, vsize=0x100, ptr=0x400)]
        assert resolve_rva(sections, 0x1000) == (0, 0x400)
        assert resolve_rva(sections, 0x10FF) == (0, 0x4FF)
        assert resolve_rva(sections, 0x1100) is None
        assert resolve_rva(sections, 0xFFF) is None

    def test_outside_every_section(self):
        sections = [
            _section(va=0x1000, vsize=0x100),
            _section(va=0x3000, vsize=0x100),
        ]
        assert resolve_rva(sections, 0x2000) is None
        assert rva_to_offset(sections, 0x2000) is None

    def test_overlapping_sections_resolve_to_first_in_header_order(self):
        sections = [
            _section(name=b".a", va=0x1000, vsize=0x1000, ptr=0x400),
            _section(name=b".b", va=0x1800, vsize=0x1000, ptr=0x2000),
        ]
        assert resolve_rva(sections, 0x1900) == (0, 0xD00)
        assert resolve_rva(sections, 0x2100) == (1, 0x2900)

    def test_unsorted_sections_searched_by_containment(self):
        sections = [
            _section(name=b".hi", va=0x5000, vsize=0x100, ptr=0x800),
            _section(name=b".lo", va=0x1000, vsize=0x100, ptr=0x400),
        ]
        assert resolve_rva(sections, 0x1020) == (1, 0x420)

    def test_empty_section_table(self):
        assert resolve_rva([], 0x1000) is None


class TestExtractSectionBytes:
    def test_reads_exactly_raw_size(self):
        image = b"\x00" * 0x10 + b"ABCDEFGH" + b"\xff" * 8
        section = _section(ptr=0x10, raw=8)
        assert extract_section_bytes(image, section) == b"ABCDEFGH"

    def test_zero_length_section(self):
        section = _section(ptr=0x10000, raw=0)
        assert extract_section_bytes(b"MZ", section) == b""

    def test_past_end_of_file(self):
        section = _section(ptr=0x10, raw=0x100)
        with pytest.raises(TruncatedError):
            extract_section_bytes(b"\x00" * 0x20, section)

    def test_from_parsed_image(self):
        data = build_pe([SectionLayout(TEXT, 0x1000, 4, b"\xde\xad\xbe\xef")])
        text = parse_pe(data).sections[0]
        assert extract_section_bytes(data, text) == b"\xde\xad\xbe\xef"


class TestTextSectionName:
    @pytest.mark.parametrize("name", [
        b".text\x00\x00\x00",
        b".TEXT\x00\x00\x00",
        b".Text\x00\x00\x00",
    ])
    def test_matches(self, name):
        assert is_text_section(_section(name=name))

    @pytest.mark.parametrize("name", [
        b".textbss",
        b".text\x00x\x00",
        b".tex\x00\x00\x00\x00",
        b".data\x00\x00\x00",
        b"text\x00\x00\x00\x00",
    ])
    def test_does_not_match(self, name):
        assert not is_text_section(_section(name=name))

    def test_find_text_section_returns_first(self):
        sections = [
            _section(name=b".data\x00\x00\x00", va=0x1000),
            _section(name=b".text\x00\x00\x00", va=0x2000),
            _section(name=b".TEXT\x00\x00\x00", va=0x3000),
        ]
        assert find_text_section(sections).virtual_address == 0x2000

    def test_find_text_section_absent(self):
        assert find_text_section([_section(name=b".data\x00\x00\x00")]) is None
