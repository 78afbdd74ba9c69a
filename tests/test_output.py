"""Tests for console rendering, the report sink, JSON reports and logging."""

import io
import json
import threading

from shared.console import HoontrConsole
from shared.logger import HoontrLogger
from shared.models import FileError, ScanSummary

from hoontr.core.models import (
    ByteMatches,
    CfgStatus,
    ExportMatches,
    Machine,
    QueryKind,
    StompCandidate,
)
from hoontr.output.console import HoontrConsoleOutput, ReportSink
from hoontr.output.report import HoontrReportGenerator


def _output():
    stream = io.StringIO()
    return HoontrConsoleOutput(console=HoontrConsole(file=stream)), stream


class TestConsoleOutput:
    def test_export_names_five_per_line(self):
        output, stream = _output()
        names = [f"Func{i}" for i in range(7)]
        output.display_record(ExportMatches(file="k.dll", machine=Machine.X64, names=names))

        lines = stream.getvalue().splitlines()
        assert "Matches found in: k.dll" in lines[0]
        assert "ARCH: x64" in lines[0]
        assert "Is Managed DLL: NO" in lines[0]
        assert lines[1].strip() == "Func0, Func1, Func2, Func3, Func4"
        assert lines[2].strip() == "Func5, Func6"
        assert lines[3].strip() == "Total matches found: 7"

    def test_stomp_row(self):
        output, stream = _output()
        output.display_record(StompCandidate(
            file="s.dll",
            machine=Machine.X86,
            is_managed=True,
            cfg_status=CfgStatus.DISABLED,
            section_virtual_size=8192,
        ))
        text = stream.getvalue()
        assert "x86" in text
        assert "YES" in text
        assert "DISABLED" in text
        assert "s.dll (8192)" in text

    def test_byte_matches(self):
        output, stream = _output()
        output.display_record(ByteMatches(
            file="b.dll", section_size=0x200, virtual_address=0x1000, offsets=[0x10]
        ))
        text = stream.getvalue()
        assert "offset 0x00000010" in text
        assert "RVA 0x00001010" in text
        assert "Total matches found: 1" in text

    def test_path_with_brackets_is_not_markup(self):
        output, stream = _output()
        output.display_record(ExportMatches(file="[dir]/x.dll", names=["A"]))
        assert "[dir]/x.dll" in stream.getvalue()

    def test_no_matches_summary(self):
        output, stream = _output()
        output.display_summary(ScanSummary(files_total=3, files_scanned=3).finalize())
        assert "No matches found" in stream.getvalue()

    def test_stomp_rows_get_column_header(self):
        output, stream = _output()
        output.display_records([StompCandidate(file="s.dll", section_virtual_size=1)])
        text = stream.getvalue()
        assert text.index("File (.text size)") < text.index("s.dll (1)")

    def test_section_header_has_no_columns(self):
        output, stream = _output()
        output.display_header(QueryKind.STOMP, ".text >= 4,096 bytes")
        text = stream.getvalue()
        assert "Stomp Candidates" in text
        assert "File (.text size)" not in text

    def test_export_records_get_no_column_header(self):
        output, stream = _output()
        output.display_records([ExportMatches(file="k.dll", names=["A"])])
        assert "File (.text size)" not in stream.getvalue()

    def test_banner_shows_version(self):
        stream = io.StringIO()
        HoontrConsole(file=stream).banner("1.0.0")
        assert "Version: 1.0.0" in stream.getvalue()

    def test_errors_can_be_hidden(self):
        output, stream = _output()
        output.show_errors = False
        output.display_error(FileError(file="x.dll", kind="Truncated", reason="short"))
        assert stream.getvalue() == ""


class TestReportSink:
    def test_deferred_records_render_on_release(self):
        output, stream = _output()
        sink = ReportSink(output, defer=True)
        small = StompCandidate(file="small.dll", section_virtual_size=1)
        large = StompCandidate(file="large.dll", section_virtual_size=2)

        sink.emit(small)
        sink.emit(large)
        assert stream.getvalue() == ""

        sink.release([large, small])
        text = stream.getvalue()
        assert text.index("large.dll") < text.index("small.dll")
        assert sink.records == [large, small]
        assert not sink.defer

    def test_errors_print_before_the_deferred_table(self):
        output, stream = _output()
        sink = ReportSink(output, defer=True)
        row = StompCandidate(file="row.dll", section_virtual_size=4096)

        sink.emit(row)
        sink.emit_error(FileError(file="broken.dll", kind="Truncated", reason="short read"))
        sink.release([row])

        text = stream.getvalue()
        assert text.index("broken.dll") < text.index("File (.text size)") < text.index("row.dll")

    def test_errors_are_never_deferred(self):
        output, stream = _output()
        sink = ReportSink(output, defer=True)
        sink.emit_error(FileError(file="bad.dll", kind="InvalidFormat", reason="bad DOS signature"))
        assert "bad.dll: InvalidFormat - bad DOS signature" in stream.getvalue()
        assert len(sink.errors) == 1

    def test_concurrent_emits_are_all_kept(self):
        sink = ReportSink()

        def worker(index):
            for n in range(50):
                sink.emit(ExportMatches(file=f"{index}-{n}.dll", names=["x"]))

        threads = [threading.Thread(target=worker, args=(i,)) for i in range(4)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len(sink.records) == 200


class TestReport:
    def test_json_report(self, tmp_path):
        summary = ScanSummary(query="q", files_total=2, files_scanned=1, match_count=1, error_count=1)
        records = [ByteMatches(file="a.dll", section_size=16, virtual_address=0x1000, offsets=[4])]
        errors = [FileError(file="b.dll", kind="Truncated", reason="short read")]

        path = HoontrReportGenerator().generate_json(
            summary.finalize(), records, errors, tmp_path / "out" / "report.json"
        )
        report = json.loads(open(path, encoding="utf-8").read())

        assert report["report_type"] == "hoontr_scan"
        assert report["summary"]["has_matches"] is True
        assert report["matches"][0]["kind"] == "bytes"
        assert report["matches"][0]["rvas"] == [0x1004]
        assert report["errors"][0]["kind"] == "Truncated"
        assert set(report["summary"]) == {
            "tool_name", "query", "files_total", "files_scanned", "match_count",
            "error_count", "workers", "start_time", "end_time", "has_matches",
            "duration_seconds",
        }


class TestLogger:
    def test_json_file_records_operation_and_thread(self, tmp_path):
        log_file = tmp_path / "hoontr.log"
        log = HoontrLogger(
            "jsontest",
            log_level="DEBUG",
            log_file=log_file,
            json_logs=True,
            console_output=False,
        )
        with log.operation("stomp"):
            log.warning("Skipping %s", "x.dll", kind="Truncated")
        for handler in log.underlying.handlers:
            handler.flush()

        entry = json.loads(log_file.read_text(encoding="utf-8").splitlines()[-1])
        assert entry["message"] == "Skipping x.dll"
        assert entry["operation"] == "stomp"
        assert entry["tool_name"] == "jsontest"
        assert entry["extra"] == {"kind": "Truncated"}
        assert entry["thread"] == threading.current_thread().name

    def test_operation_is_per_thread(self):
        log = HoontrLogger("optest", console_output=False)
        seen = []

        with log.operation("bytes"):
            thread = threading.Thread(target=lambda: seen.append(log.current_operation))
            thread.start()
            thread.join()
            assert log.current_operation == "bytes"

        assert seen == [None]
        assert log.current_operation is None
