"""
Hoontr Output
==============

Terminal rendering, the thread-safe report sink, and JSON reports.
"""

from hoontr.output.console import HoontrConsoleOutput, ReportSink
from hoontr.output.report import HoontrReportGenerator

__all__ = ["HoontrConsoleOutput", "HoontrReportGenerator", "ReportSink"]
