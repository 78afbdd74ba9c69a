"""
PE/COFF Header Reader
======================

Bounds-checked reader for the parts of the Portable Executable format
needed by the Hoontr queries: the DOS stub, the COFF file header, the
subset of the optional header carrying ``DllCharacteristics`` and the
data-directory array, and the section table.

Every field is decoded individually from a :class:`ByteCursor`, which
checks the remaining length before each read.  Nothing is ever
reinterpreted in place as a typed record.

References:
    - Microsoft. (2024). PE Format. Microsoft Learn.
      https://learn.microsoft.com/en-us/windows/win32/debug/pe-format
    - Pietrek, M. (1994). Peering Inside the PE: A Tour of the Win32
      Portable Executable File Format. Microsoft Systems Journal.
"""

from __future__ import annotations

import struct

from hoontr.core.errors import InvalidFormatError, TruncatedError
from hoontr.core.models import (
    IMAGE_NUMBEROF_DIRECTORY_ENTRIES,
    PE32_MAGIC,
    PE32PLUS_MAGIC,
    DataDirectory,
    Machine,
    ParsedImage,
    PEHeaderInfo,
    SectionHeader,
)


# ---------------------------------------------------------------------------
# PE Constants
# ---------------------------------------------------------------------------

MZ_MAGIC: bytes = b"MZ"
PE_MAGIC: bytes = b"PE\x00\x00"

DOS_HEADER_SIZE: int = 64
E_LFANEW_OFFSET: int = 60
COFF_HEADER_SIZE: int = 20
SECTION_HEADER_SIZE: int = 40

# Offsets relative to the start of the optional header
_DLL_CHARACTERISTICS_OFFSET: int = 70
_NUMBER_OF_RVA_AND_SIZES_OFFSET: dict[int, int] = {
    PE32_MAGIC: 92,
    PE32PLUS_MAGIC: 108,
}
_DATA_DIRECTORY_OFFSET: dict[int, int] = {
    PE32_MAGIC: 96,
    PE32PLUS_MAGIC: 112,
}


# ---------------------------------------------------------------------------
# Cursor
# ---------------------------------------------------------------------------

class ByteCursor:
    """Little-endian reader over an immutable buffer.

    Every read verifies that the requested bytes exist and raises
    :class:`TruncatedError` otherwise.

    Usage::

        cur = ByteCursor(data)
        cur.seek(0x3C)
        e_lfanew = cur.u32()
    """

    __slots__ = ("_data", "_pos")

    def __init__(self, data: bytes, offset: int = 0) -> None:
        self._data = data
        self._pos = 0
        self.seek(offset)

    def __len__(self) -> int:
        return len(self._data)

    @property
    def position(self) -> int:
        return self._pos

    def seek(self, offset: int) -> None:
        """Move to absolute *offset*; the end of the buffer is a valid target."""
        if offset < 0 or offset > len(self._data):
            raise TruncatedError(
                f"offset 0x{offset:x} outside buffer of {len(self._data)} bytes"
            )
        self._pos = offset

    def skip(self, count: int) -> None:
        self.seek(self._pos + count)

    def read(self, count: int) -> bytes:
        """Read exactly *count* bytes and advance."""
        end = self._pos + count
        if count < 0 or end > len(self._data):
            raise TruncatedError(
                f"read of {count} bytes at 0x{self._pos:x} "
                f"exceeds buffer of {len(self._data)} bytes"
            )
        chunk = self._data[self._pos:end]
        self._pos = end
        return chunk

    def u16(self) -> int:
        return struct.unpack("<H", self.read(2))[0]

    def u32(self) -> int:
        return struct.unpack("<I", self.read(4))[0]

    def cstring(self) -> bytes:
        """Read a NUL-terminated run and advance past the terminator.

        Raises:
            TruncatedError: If no terminator occurs before end-of-buffer.
        """
        end = self._data.find(b"\x00", self._pos)
        if end == -1:
            raise TruncatedError(
                f"unterminated string at 0x{self._pos:x}"
            )
        run = self._data[self._pos:end]
        self._pos = end + 1
        return run


# ---------------------------------------------------------------------------
# PE Reader
# ---------------------------------------------------------------------------

class PEReader:
    """Decode PE header information and the section table from raw bytes.

    The reader does no I/O of its own.  A buffer that is not a PE image,
    or whose headers run past the end of the data, raises
    :class:`InvalidFormatError` or :class:`TruncatedError`.

    Usage::

        image = PEReader(raw_bytes).parse()
        for section in image.sections:
            print(section.display_name, hex(section.virtual_address))
    """

    def __init__(self, data: bytes) -> None:
        self._data: bytes = data

    def parse(self) -> ParsedImage:
        """Parse the buffer.

        Returns:
            The decoded :class:`ParsedImage`.

        Raises:
            InvalidFormatError: Bad DOS/NT signature or optional header magic.
            TruncatedError: A header or the section table is cut short.
        """
        data = self._data
        if len(data) < DOS_HEADER_SIZE or data[:2] != MZ_MAGIC:
            raise InvalidFormatError("bad DOS signature")

        cur = ByteCursor(data, E_LFANEW_OFFSET)
        nt_offset = cur.u32()

        cur.seek(nt_offset)
        if cur.read(4) != PE_MAGIC:
            raise InvalidFormatError("bad NT signature")

        # COFF file header
        raw_machine = cur.u16()
        number_of_sections = cur.u16()
        cur.skip(12)  # TimeDateStamp, PointerToSymbolTable, NumberOfSymbols
        size_of_optional_header = cur.u16()
        characteristics = cur.u16()

        optional_offset = nt_offset + 4 + COFF_HEADER_SIZE
        magic, dll_characteristics, directories = self._parse_optional_header(
            cur, optional_offset
        )

        header = PEHeaderInfo(
            machine=Machine.from_coff(raw_machine),
            raw_machine=raw_machine,
            number_of_sections=number_of_sections,
            size_of_optional_header=size_of_optional_header,
            characteristics=characteristics,
            magic=magic,
            dll_characteristics=dll_characteristics,
            data_directories=directories,
        )

        sections = self._parse_section_table(
            cur, optional_offset + size_of_optional_header, number_of_sections
        )
        return ParsedImage(header=header, sections=sections)

    # ------------------------------------------------------------------ #
    #  Optional header
    # ------------------------------------------------------------------ #

    @staticmethod
    def _parse_optional_header(
        cur: ByteCursor, offset: int
    ) -> tuple[int, int, tuple[DataDirectory, ...]]:
        """Read the optional header magic, DllCharacteristics and directories.

        The magic, not ``SizeOfOptionalHeader``, decides the layout.
        """
        cur.seek(offset)
        magic = cur.u16()
        if magic not in (PE32_MAGIC, PE32PLUS_MAGIC):
            raise InvalidFormatError(
                f"unrecognised optional header magic 0x{magic:x}"
            )

        cur.seek(offset + _DLL_CHARACTERISTICS_OFFSET)
        dll_characteristics = cur.u16()

        cur.seek(offset + _NUMBER_OF_RVA_AND_SIZES_OFFSET[magic])
        count = min(cur.u32(), IMAGE_NUMBEROF_DIRECTORY_ENTRIES)

        cur.seek(offset + _DATA_DIRECTORY_OFFSET[magic])
        directories: list[DataDirectory] = []
        for _ in range(count):
            rva = cur.u32()
            size = cur.u32()
            directories.append(DataDirectory(virtual_address=rva, size=size))

        return magic, dll_characteristics, tuple(directories)

    # ------------------------------------------------------------------ #
    #  Section table
    # ------------------------------------------------------------------ #

    @staticmethod
    def _parse_section_table(
        cur: ByteCursor, offset: int, count: int
    ) -> tuple[SectionHeader, ...]:
        """Read *count* 40-byte section headers in file order."""
        cur.seek(offset)
        sections: list[SectionHeader] = []
        for _ in range(count):
            name = cur.read(8)
            virtual_size = cur.u32()
            virtual_address = cur.u32()
            size_of_raw_data = cur.u32()
            pointer_to_raw_data = cur.u32()
            # PointerToRelocations, PointerToLinenumbers, counts
            cur.skip(12)
            characteristics = cur.u32()
            sections.append(SectionHeader(
                name=name,
                virtual_size=virtual_size,
                virtual_address=virtual_address,
                size_of_raw_data=size_of_raw_data,
                pointer_to_raw_data=pointer_to_raw_data,
                characteristics=characteristics,
            ))
        return tuple(sections)


def parse_pe(data: bytes) -> ParsedImage:
    """Module-level convenience wrapper around :meth:`PEReader.parse`."""
    return PEReader(data).parse()
