"""
Hoontr Data Models
===================

Pydantic-based data models for the PE triage pipeline: decoded header
fields, section headers, and the three kinds of match records produced
by the query engines.

Every model here is created and discarded within the processing of a
single file by a single worker.  Only match records leave the worker,
through the report sink.

References:
    - Microsoft. (2024). PE Format. Microsoft Learn.
      https://learn.microsoft.com/en-us/windows/win32/debug/pe-format
"""

from __future__ import annotations

import enum
from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, Field


# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

IMAGE_FILE_MACHINE_I386: int = 0x14C
IMAGE_FILE_MACHINE_AMD64: int = 0x8664

IMAGE_FILE_DLL: int = 0x2000

IMAGE_DIRECTORY_ENTRY_EXPORT: int = 0
IMAGE_DIRECTORY_ENTRY_COM_DESCRIPTOR: int = 14
IMAGE_NUMBEROF_DIRECTORY_ENTRIES: int = 16

IMAGE_DLLCHARACTERISTICS_GUARD_CF: int = 0x4000

PE32_MAGIC: int = 0x10B
PE32PLUS_MAGIC: int = 0x20B


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------

class Machine(str, enum.Enum):
    """Target architecture of a PE image, as far as this tool cares."""
    X86 = "x86"
    X64 = "x64"
    UNKNOWN = "Unknown"

    @classmethod
    def from_coff(cls, value: int) -> Machine:
        """Map a raw COFF ``Machine`` field to a :class:`Machine`."""
        if value == IMAGE_FILE_MACHINE_I386:
            return cls.X86
        if value == IMAGE_FILE_MACHINE_AMD64:
            return cls.X64
        return cls.UNKNOWN


class CfgStatus(str, enum.Enum):
    """Control Flow Guard state of an image."""
    ENABLED = "ENABLED"
    DISABLED = "DISABLED"
    UNKNOWN = "UNKNOWN"


class ArchFilter(str, enum.Enum):
    """Architecture restriction applied to reported images."""
    ALL = "all"
    X86 = "x86"
    X64 = "x64"

    def matches(self, machine: Machine) -> bool:
        """Return ``True`` if *machine* passes this filter."""
        if self is ArchFilter.ALL:
            return True
        if self is ArchFilter.X86:
            return machine is Machine.X86
        return machine is Machine.X64


class QueryKind(str, enum.Enum):
    """The three query types a scan can run."""
    BYTES = "bytes"
    STOMP = "stomp"
    EXPORTS = "exports"


# ---------------------------------------------------------------------------
# Parsed PE structures
# ---------------------------------------------------------------------------

class DataDirectory(BaseModel):
    """One ``IMAGE_DATA_DIRECTORY`` entry."""
    model_config = ConfigDict(frozen=True)

    virtual_address: int = 0
    size: int = 0


class PEHeaderInfo(BaseModel):
    """Header fields decoded by the PE reader.

    Attributes:
        machine: Architecture classification of ``raw_machine``.
        raw_machine: The COFF ``Machine`` field as stored in the file.
        number_of_sections: Declared section count.
        size_of_optional_header: Declared optional header length.
        characteristics: COFF characteristics flags.
        magic: Optional header magic (``0x10b`` or ``0x20b``).
        dll_characteristics: Optional header DLL characteristics flags.
        data_directories: Up to 16 (rva, size) pairs in table order.
    """
    model_config = ConfigDict(frozen=True)

    machine: Machine = Machine.UNKNOWN
    raw_machine: int = 0
    number_of_sections: int = 0
    size_of_optional_header: int = 0
    characteristics: int = 0
    magic: int = PE32_MAGIC
    dll_characteristics: int = 0
    data_directories: tuple[DataDirectory, ...] = ()

    def directory(self, index: int) -> Optional[DataDirectory]:
        """Return data directory *index*, or ``None`` if not present."""
        if 0 <= index < len(self.data_directories):
            return self.data_directories[index]
        return None

    @property
    def is_64bit(self) -> bool:
        return self.magic == PE32PLUS_MAGIC

    @property
    def is_dll(self) -> bool:
        return bool(self.characteristics & IMAGE_FILE_DLL)


class SectionHeader(BaseModel):
    """A single ``IMAGE_SECTION_HEADER``.

    ``name`` is the raw 8-byte field: NUL padded, and not necessarily NUL
    terminated when the name is exactly eight characters long.
    """
    model_config = ConfigDict(frozen=True)

    name: bytes = b"\x00" * 8
    virtual_size: int = 0
    virtual_address: int = 0
    size_of_raw_data: int = 0
    pointer_to_raw_data: int = 0
    characteristics: int = 0

    @property
    def display_name(self) -> str:
        """Printable form of :attr:`name` for logs and reports."""
        return self.name.split(b"\x00", 1)[0].decode("ascii", errors="replace")


class ParsedImage(BaseModel):
    """Everything the PE reader extracts from one buffer."""
    model_config = ConfigDict(frozen=True)

    header: PEHeaderInfo
    sections: tuple[SectionHeader, ...] = ()


# ---------------------------------------------------------------------------
# Match records
# ---------------------------------------------------------------------------

class ByteMatches(BaseModel):
    """Occurrences of a byte pattern inside a file's ``.text`` section.

    Attributes:
        file: Path of the scanned file.
        section_size: Raw size of the searched section.
        virtual_address: Section RVA; add an offset to obtain its RVA.
        offsets: Every start offset within the section, ascending.
    """
    kind: QueryKind = QueryKind.BYTES
    file: str
    section_size: int = 0
    virtual_address: int = 0
    offsets: list[int] = Field(default_factory=list)

    @property
    def rvas(self) -> list[int]:
        return [self.virtual_address + off for off in self.offsets]


class StompCandidate(BaseModel):
    """A file whose ``.text`` section is large enough to host a payload."""
    kind: QueryKind = QueryKind.STOMP
    file: str
    machine: Machine = Machine.UNKNOWN
    is_managed: bool = False
    cfg_status: CfgStatus = CfgStatus.UNKNOWN
    section_virtual_size: int = 0


class ExportMatches(BaseModel):
    """Exported names of one file that contain the searched substring."""
    kind: QueryKind = QueryKind.EXPORTS
    file: str
    machine: Machine = Machine.UNKNOWN
    is_managed: bool = False
    names: list[str] = Field(default_factory=list)


MatchRecord = Union[ByteMatches, StompCandidate, ExportMatches]
