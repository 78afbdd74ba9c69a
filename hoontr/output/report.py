"""
Hoontr Report Generator
========================

Writes a completed scan as a structured JSON document for machine
consumption: the run summary, every match record, and every per-file
error.
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Sequence

from shared.models import FileError, ScanSummary

from hoontr import __version__
from hoontr.core.models import ByteMatches, MatchRecord


class HoontrReportGenerator:
    """Serialise scan results to JSON.

    Usage::

        gen = HoontrReportGenerator()
        gen.generate_json(summary, sink.records, sink.errors, "out.json")
    """

    def build(
        self,
        summary: ScanSummary,
        records: Sequence[MatchRecord],
        errors: Sequence[FileError] = (),
    ) -> dict[str, Any]:
        """Assemble the report as a plain dictionary."""
        matches: list[dict[str, Any]] = []
        for record in records:
            entry = record.model_dump(mode="json")
            if isinstance(record, ByteMatches):
                entry["rvas"] = record.rvas
            matches.append(entry)

        return {
            "report_type": "hoontr_scan",
            "version": __version__,
            "generated_at": datetime.now(timezone.utc).isoformat(),
            "summary": {
                **summary.model_dump(mode="json"),
                "has_matches": summary.has_matches,
                "duration_seconds": summary.duration_seconds,
            },
            "matches": matches,
            "errors": [e.model_dump(mode="json") for e in errors],
        }

    def generate_json(
        self,
        summary: ScanSummary,
        records: Sequence[MatchRecord],
        errors: Sequence[FileError],
        output_path: str | Path,
    ) -> str:
        """Write the JSON report and return its absolute path."""
        path = Path(output_path)
        path.parent.mkdir(parents=True, exist_ok=True)
        report = self.build(summary, records, errors)
        path.write_text(
            json.dumps(report, indent=2, ensure_ascii=False, default=str),
            encoding="utf-8",
        )
        return str(path.resolve())
