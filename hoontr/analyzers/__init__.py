"""
Hoontr Query Engines
=====================

One engine per query type.  Each consumes a file's raw bytes, runs the
shared PE reader, and produces a match record.
"""

from hoontr.analyzers.base import QueryEngine
from hoontr.analyzers.byte_search import BytePatternSearch, find_all
from hoontr.analyzers.export_search import ExportNameSearch
from hoontr.analyzers.stomp import StompClassifier, sort_candidates

__all__ = [
    "QueryEngine",
    "BytePatternSearch",
    "ExportNameSearch",
    "StompClassifier",
    "find_all",
    "sort_candidates",
]
