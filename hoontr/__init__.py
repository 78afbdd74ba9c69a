"""
Hoontr -- PE Reconnaissance Scanner
====================================

Hoontr inventories Windows executable images (DLL, EXE, CPL) on disk and
flags the ones useful for offensive-security tradecraft.

Capabilities:
    - Byte-sequence search inside ``.text`` sections
    - Module-stomping candidate discovery (large ``.text``, CFG state,
      managed/native classification)
    - Exported function name search
    - Multi-threaded scanning across an entire directory tree

References:
    - Microsoft. (2024). PE Format. Microsoft Learn.
    - Microsoft. (2024). Control Flow Guard for platform security.
"""

__version__ = "1.0.0"

from hoontr.core.engine import HoontrEngine  # noqa: E402
from hoontr.output.console import HoontrConsoleOutput, ReportSink  # noqa: E402
from hoontr.output.report import HoontrReportGenerator  # noqa: E402

__all__ = [
    "HoontrEngine",
    "HoontrConsoleOutput",
    "HoontrReportGenerator",
    "ReportSink",
]
