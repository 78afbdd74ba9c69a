"""
Export Table Walker
====================

Follows ``IMAGE_EXPORT_DIRECTORY.AddressOfNames`` to recover the names a
PE image exports.

Failures are graded: a missing export directory is :class:`NotFoundError`,
a directory record or name-pointer array that cannot be read is fatal to
the walk, while a single unreadable or undecodable name is skipped and
the remaining names are still returned.

References:
    - Microsoft. (2024). PE Format -- The .edata Section.
      https://learn.microsoft.com/en-us/windows/win32/debug/pe-format
"""

from __future__ import annotations

from hoontr.core.errors import NotFoundError, TruncatedError
from hoontr.core.models import IMAGE_DIRECTORY_ENTRY_EXPORT, ParsedImage
from hoontr.parsers.pe_reader import ByteCursor
from hoontr.parsers.sections import rva_to_offset


EXPORT_DIRECTORY_SIZE: int = 40


class ExportWalker:
    """Walk the export name-pointer table of a parsed image.

    Attributes:
        skipped: Number of name entries dropped during the last walk.

    Usage::

        walker = ExportWalker(raw_bytes, parsed)
        names = walker.walk()
    """

    def __init__(self, data: bytes, image: ParsedImage) -> None:
        self._data = data
        self._image = image
        self.skipped: int = 0

    def walk(self) -> list[str]:
        """Return exported names in name-pointer-array order.

        Raises:
            NotFoundError: No export directory, or its tables resolve to
                no section.
            TruncatedError: The directory record or the name-pointer
                array extends past the end of the buffer.
        """
        self.skipped = 0
        sections = self._image.sections

        directory = self._image.header.directory(IMAGE_DIRECTORY_ENTRY_EXPORT)
        if directory is None or directory.virtual_address == 0:
            raise NotFoundError("no export directory")

        dir_offset = rva_to_offset(sections, directory.virtual_address)
        if dir_offset is None:
            raise NotFoundError(
                f"export directory RVA 0x{directory.virtual_address:x} "
                f"is outside every section"
            )

        cur = ByteCursor(self._data, dir_offset)
        record = cur.read(EXPORT_DIRECTORY_SIZE)
        record_cur = ByteCursor(record, 24)
        number_of_names = record_cur.u32()
        record_cur.skip(4)  # AddressOfFunctions
        address_of_names = record_cur.u32()

        if number_of_names == 0:
            return []

        names_offset = rva_to_offset(sections, address_of_names)
        if names_offset is None:
            raise NotFoundError(
                f"export name table RVA 0x{address_of_names:x} "
                f"is outside every section"
            )

        cur.seek(names_offset)
        name_rvas = [cur.u32() for _ in range(number_of_names)]

        names: list[str] = []
        for name_rva in name_rvas:
            name = self._read_name(name_rva)
            if name is None:
                self.skipped += 1
            else:
                names.append(name)
        return names

    def _read_name(self, rva: int) -> str | None:
        """Decode one name, or ``None`` if it cannot be recovered."""
        offset = rva_to_offset(self._image.sections, rva)
        if offset is None:
            return None
        try:
            raw = ByteCursor(self._data, offset).cstring()
            return raw.decode("utf-8")
        except (TruncatedError, UnicodeDecodeError):
            return None


def walk_exports(data: bytes, image: ParsedImage) -> list[str]:
    """Module-level convenience wrapper around :meth:`ExportWalker.walk`."""
    return ExportWalker(data, image).walk()
