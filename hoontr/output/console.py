"""
Hoontr Console Output
======================

Rich-powered terminal rendering of match records, plus the
:class:`ReportSink` through which every scan worker reports.

The sink is the only object shared between workers.  It owns a single
lock and holds it for the whole of one record, so the multi-line output
of two files is never interleaved.

References:
    - Rich library: https://github.com/Textualize/rich
"""

from __future__ import annotations

import threading
from typing import Optional, Sequence

from rich.markup import escape

from shared.console import HoontrConsole
from shared.models import FileError, ScanSummary

from hoontr.core.models import (
    ByteMatches,
    CfgStatus,
    ExportMatches,
    MatchRecord,
    QueryKind,
    StompCandidate,
)


_CFG_COLOURS: dict[CfgStatus, str] = {
    CfgStatus.ENABLED: "red",
    CfgStatus.DISABLED: "bright_green",
    CfgStatus.UNKNOWN: "yellow",
}

_EXPORTS_PER_LINE: int = 5


def _yes_no(flag: bool) -> str:
    return "YES" if flag else "NO"


# ---------------------------------------------------------------------------
# HoontrConsoleOutput
# ---------------------------------------------------------------------------

class HoontrConsoleOutput:
    """Render Hoontr records to the terminal.

    Usage::

        output = HoontrConsoleOutput()
        output.display_header(QueryKind.STOMP, "text >= 4096")
        output.display_record(candidate)
    """

    def __init__(
        self,
        console: HoontrConsole | None = None,
        show_errors: bool = True,
    ) -> None:
        self._console: HoontrConsole = console or HoontrConsole()
        self.show_errors = show_errors

    @property
    def console(self) -> HoontrConsole:
        return self._console

    # ------------------------------------------------------------------ #
    #  Run framing
    # ------------------------------------------------------------------ #

    def display_targets(self, path: str, count: int) -> None:
        self._console.success(f"Enumerating artefacts in: {escape(path)}")
        self._console.success(f"Selected {count} targets for hoonting")

    def display_header(self, kind: QueryKind, description: str) -> None:
        titles = {
            QueryKind.BYTES: "Byte Pattern Matches",
            QueryKind.STOMP: "Stomp Candidates",
            QueryKind.EXPORTS: "Export Name Matches",
        }
        self._console.section(titles[kind])
        self._console.info(f"Query: {escape(description)}")

    def display_summary(self, summary: ScanSummary) -> None:
        self._console.blank()
        if not summary.has_matches:
            self._console.warning("No matches found")
        duration = summary.duration_seconds
        timing = f" in {duration:.2f}s" if duration is not None else ""
        self._console.info(
            f"Scanned {summary.files_scanned}/{summary.files_total} files "
            f"with {summary.workers} workers{timing}: "
            f"{summary.match_count} matches, {summary.error_count} errors"
        )

    # ------------------------------------------------------------------ #
    #  Records
    # ------------------------------------------------------------------ #

    def display_records(self, records: Sequence[MatchRecord]) -> None:
        """Render a batch of records; stomp rows get a column header."""
        if any(isinstance(r, StompCandidate) for r in records):
            self._console.blank()
            self._console.print(
                "[bold]\t| Arch\t| Managed\t| CFG\t\t| File (.text size)[/bold]"
            )
        for record in records:
            self.display_record(record)

    def display_record(self, record: MatchRecord) -> None:
        if isinstance(record, ByteMatches):
            self.display_byte_matches(record)
        elif isinstance(record, StompCandidate):
            self.display_stomp_candidate(record)
        elif isinstance(record, ExportMatches):
            self.display_export_matches(record)
        else:
            raise TypeError(f"unsupported record type: {type(record).__name__}")

    def display_byte_matches(self, record: ByteMatches) -> None:
        lines = [
            f"[hoontr.success][+][/hoontr.success] Matches found in: "
            f"{escape(record.file)} (.text raw size: {record.section_size:,} "
            f"| VA: 0x{record.virtual_address:x})",
        ]
        for offset, rva in zip(record.offsets, record.rvas):
            lines.append(f"\toffset 0x{offset:08x}  ->  RVA 0x{rva:08x}")
        lines.append(f"\tTotal matches found: {len(record.offsets)}")
        self._console.print("\n".join(lines))

    def display_stomp_candidate(self, record: StompCandidate) -> None:
        colour = _CFG_COLOURS[record.cfg_status]
        self._console.print(
            f"\t| {record.machine.value}\t| {_yes_no(record.is_managed)}\t\t"
            f"| [{colour}]{record.cfg_status.value}[/{colour}]\t"
            f"| {escape(record.file)} ({record.section_virtual_size})"
        )

    def display_export_matches(self, record: ExportMatches) -> None:
        lines = [
            f"[hoontr.success][+][/hoontr.success] Matches found in: "
            f"{escape(record.file)} (ARCH: {record.machine.value} "
            f"| Is Managed DLL: {_yes_no(record.is_managed)})",
        ]
        for start in range(0, len(record.names), _EXPORTS_PER_LINE):
            chunk = record.names[start:start + _EXPORTS_PER_LINE]
            lines.append("\t" + ", ".join(escape(n) for n in chunk))
        lines.append(f"\tTotal matches found: {len(record.names)}")
        self._console.print("\n".join(lines))

    def display_error(self, error: FileError) -> None:
        if not self.show_errors:
            return
        self._console.print(
            f"[hoontr.dim][-] {escape(error.file)}: "
            f"{error.kind} - {escape(error.reason)}[/hoontr.dim]"
        )


# ---------------------------------------------------------------------------
# ReportSink
# ---------------------------------------------------------------------------

class ReportSink:
    """Thread-safe collection point for scan output.

    Workers call :meth:`emit` and :meth:`emit_error`; each call renders
    one complete record while holding the sink's lock.  When *defer* is
    set, match records are only collected, and are rendered later by
    :meth:`release` in the order the caller chooses.

    Args:
        output: Renderer; ``None`` collects without printing.
        defer:  Hold match records back until :meth:`release`.
    """

    def __init__(
        self,
        output: Optional[HoontrConsoleOutput] = None,
        defer: bool = False,
    ) -> None:
        self._output = output
        self._lock = threading.Lock()
        self.defer = defer
        self.records: list[MatchRecord] = []
        self.errors: list[FileError] = []

    def emit(self, record: MatchRecord) -> None:
        with self._lock:
            self.records.append(record)
            if self._output is not None and not self.defer:
                self._output.display_record(record)

    def emit_error(self, error: FileError) -> None:
        with self._lock:
            self.errors.append(error)
            if self._output is not None:
                self._output.display_error(error)

    def release(self, records: Sequence[MatchRecord]) -> None:
        """Replace the collected records and render them in order."""
        with self._lock:
            self.records = list(records)
            if self._output is not None and self.defer:
                self._output.display_records(self.records)
            self.defer = False
