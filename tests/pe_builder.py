"""Helpers that assemble minimal PE images byte by byte for the test suite."""

from __future__ import annotations

import struct
from dataclasses import dataclass
from typing import Optional, Sequence

MACHINE_I386 = 0x14C
MACHINE_AMD64 = 0x8664
MACHINE_ARM64 = 0xAA64

PE32 = 0x10B
PE32PLUS = 0x20B

GUARD_CF = 0x4000

TEXT = b".text"
EDATA = b".edata"


@dataclass
class SectionLayout:
    """One section to place in a synthetic image."""
    name: bytes
    virtual_address: int
    virtual_size: int
    data: bytes = b""
    pointer_to_raw_data: Optional[int] = None
    size_of_raw_data: Optional[int] = None
    characteristics: int = 0x60000020


def _put(buf: bytearray, offset: int, data: bytes) -> None:
    end = offset + len(data)
    if len(buf) < end:
        buf.extend(b"\x00" * (end - len(buf)))
    buf[offset:end] = data


def _align(value: int, alignment: int = 0x200) -> int:
    return (value + alignment - 1) // alignment * alignment


def build_pe(
    sections: Sequence[SectionLayout] = (),
    *,
    machine: int = MACHINE_AMD64,
    magic: int = PE32PLUS,
    dll_characteristics: int = 0,
    directories: Optional[dict[int, tuple[int, int]]] = None,
    number_of_rva_and_sizes: int = 16,
    e_lfanew: int = 0x80,
    characteristics: int = 0x2022,
    size_of_optional_header: Optional[int] = None,
) -> bytes:
    """Assemble a PE image with the given sections and header fields.

    Sections without an explicit ``pointer_to_raw_data`` are laid out one
    after another, 0x200-aligned, after the headers.
    """
    directories = directories or {}
    opt_size = 240 if magic == PE32PLUS else 224
    soh = opt_size if size_of_optional_header is None else size_of_optional_header
    dd_offset = 112 if magic == PE32PLUS else 96

    optional = bytearray(opt_size)
    struct.pack_into("<H", optional, 0, magic)
    struct.pack_into("<H", optional, 70, dll_characteristics)
    struct.pack_into("<I", optional, dd_offset - 4, number_of_rva_and_sizes)
    for index, (rva, size) in directories.items():
        struct.pack_into("<II", optional, dd_offset + index * 8, rva, size)

    buf = bytearray(64)
    buf[0:2] = b"MZ"
    struct.pack_into("<I", buf, 60, e_lfanew)

    coff = struct.pack(
        "<HHIIIHH", machine, len(sections), 0, 0, 0, soh, characteristics
    )
    _put(buf, e_lfanew, b"PE\x00\x00" + coff)
    optional_offset = e_lfanew + 24
    _put(buf, optional_offset, bytes(optional))

    table_offset = optional_offset + soh
    cursor = _align(max(len(buf), table_offset + 40 * len(sections)))

    placements: list[tuple[int, int]] = []
    for layout in sections:
        if layout.pointer_to_raw_data is None:
            pointer = cursor
            cursor = _align(cursor + len(layout.data)) if layout.data else cursor
        else:
            pointer = layout.pointer_to_raw_data
        size = len(layout.data) if layout.size_of_raw_data is None else layout.size_of_raw_data
        placements.append((pointer, size))

    for index, (layout, (pointer, size)) in enumerate(zip(sections, placements)):
        header = (
            layout.name.ljust(8, b"\x00")[:8]
            + struct.pack("<IIII", layout.virtual_size, layout.virtual_address, size, pointer)
            + b"\x00" * 12
            + struct.pack("<I", layout.characteristics)
        )
        _put(buf, table_offset + 40 * index, header)

    for layout, (pointer, _size) in zip(sections, placements):
        if layout.data:
            _put(buf, pointer, layout.data)

    return bytes(buf)


def build_export_data(
    names: Sequence[str | bytes],
    section_va: int,
    *,
    name_rvas: Optional[Sequence[int]] = None,
    number_of_names: Optional[int] = None,
    address_of_names: Optional[int] = None,
    terminate_last: bool = True,
) -> bytes:
    """Build the contents of an export section mapped at *section_va*.

    Layout: the 40-byte directory, the name-pointer array, then the
    NUL-terminated name strings.
    """
    raw_names = [n.encode("ascii") if isinstance(n, str) else n for n in names]
    count = len(raw_names)
    array_offset = 40
    strings_offset = array_offset + 4 * count

    rvas: list[int] = []
    blob = bytearray()
    for index, raw in enumerate(raw_names):
        rvas.append(section_va + strings_offset + len(blob))
        blob += raw
        if terminate_last or index < count - 1:
            blob += b"\x00"
    if name_rvas is not None:
        rvas = list(name_rvas)

    directory = struct.pack(
        "<IIHHIIIIIII",
        0, 0, 0, 0,
        0,                       # Name
        1,                       # Base
        count,                   # NumberOfFunctions
        count if number_of_names is None else number_of_names,
        0,                       # AddressOfFunctions
        section_va + array_offset if address_of_names is None else address_of_names,
        0,                       # AddressOfNameOrdinals
    )
    return directory + struct.pack(f"<{len(rvas)}I", *rvas) + bytes(blob)


def build_dll_with_exports(
    names: Sequence[str | bytes],
    *,
    machine: int = MACHINE_AMD64,
    **export_kwargs,
) -> bytes:
    """A DLL with a small ``.text`` section and an ``.edata`` export table."""
    edata_va = 0x2000
    export = build_export_data(names, edata_va, **export_kwargs)
    return build_pe(
        [
            SectionLayout(TEXT, 0x1000, 0x100, b"\xc3" * 0x100),
            SectionLayout(EDATA, edata_va, 0x1000, export),
        ],
        machine=machine,
        directories={0: (edata_va, len(export))},
    )


def build_stomp_dll(
    virtual_size: int,
    *,
    machine: int = MACHINE_AMD64,
    dll_characteristics: int = 0,
    managed: bool = False,
) -> bytes:
    """A DLL whose ``.text`` section declares *virtual_size*."""
    directories = {14: (0x3000, 0x48)} if managed else {}
    magic = PE32 if machine == MACHINE_I386 else PE32PLUS
    return build_pe(
        [SectionLayout(TEXT, 0x1000, virtual_size, b"\x90" * 0x200)],
        machine=machine,
        magic=magic,
        dll_characteristics=dll_characteristics,
        directories=directories,
    )
