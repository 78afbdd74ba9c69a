"""
Hoontr Scan Engine
===================

Runs one query engine across a list of candidate files using a fixed
pool of worker threads.

Scheduling:
    1. The file list is split up front into contiguous chunks of
       ``ceil(len(files) / workers)`` files; trailing workers may get none.
    2. One thread per non-empty chunk is started; every thread owns its
       chunk exclusively.
    3. Per file, a worker reads the bytes, evaluates the query, and
       reports a match record or an error record through the shared
       :class:`~hoontr.output.console.ReportSink`.
    4. All threads are joined; the query engine then gets a chance to
       reorder the aggregated records (stomp candidates are sorted by
       size).

A failure on one file is final for that file only.  Nothing a single
file does can stop its worker or any other worker.
"""

from __future__ import annotations

import math
import os
import struct
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Sequence

from shared.config import HoontrConfig
from shared.logger import HoontrLogger
from shared.models import FileError, ScanSummary

from hoontr.analyzers.base import QueryEngine
from hoontr.core.errors import (
    ErrorKind,
    PEFormatError,
    UnreadableError,
)
from hoontr.output.console import ReportSink


# ---------------------------------------------------------------------------
# Partitioning
# ---------------------------------------------------------------------------

def partition(files: Sequence[str], workers: int) -> list[list[str]]:
    """Split *files* into *workers* contiguous chunks.

    The chunk size is ``ceil(len(files) / workers)``; the last non-empty
    chunk may be shorter and any remaining workers get an empty chunk.
    Concatenating the chunks always reproduces *files* exactly.

    Raises:
        ValueError: If *workers* is less than one.
    """
    if workers < 1:
        raise ValueError(f"worker count must be at least 1, got {workers}")
    chunk_size = max(1, math.ceil(len(files) / workers))
    return [
        list(files[i * chunk_size:(i + 1) * chunk_size])
        for i in range(workers)
    ]


def resolve_worker_count(override: int | None = None) -> int:
    """Return *override* when positive, otherwise the logical CPU count."""
    if override is not None and override > 0:
        return override
    return os.cpu_count() or 1


@dataclass(slots=True)
class _WorkerStats:
    """Per-worker counters, written only by the owning thread."""
    processed: int = 0


# ---------------------------------------------------------------------------
# HoontrEngine
# ---------------------------------------------------------------------------

class HoontrEngine:
    """Orchestrates a multi-threaded scan.

    Usage::

        engine = HoontrEngine(config)
        sink = ReportSink(HoontrConsoleOutput())
        summary = engine.scan(targets, StompClassifier(4096), sink)
        if not summary.has_matches:
            print("No matches found")
    """

    def __init__(
        self,
        config: HoontrConfig | None = None,
        logger: HoontrLogger | None = None,
        workers: int | None = None,
    ) -> None:
        """Initialise the engine.

        Args:
            config: Hoontr configuration.  Defaults are used if not provided.
            logger: Logger instance.  A new one is created if not provided.
            workers: Worker override; falls back to ``config.scanner.workers``
                and then to the CPU count.
        """
        self._config: HoontrConfig = config or HoontrConfig()
        self._logger: HoontrLogger = logger or HoontrLogger(
            "engine", log_level=self._config.global_settings.log_level
        )
        self.workers: int = resolve_worker_count(
            workers if workers is not None else self._config.scanner.workers
        )

    # ------------------------------------------------------------------ #
    #  Scan entry point
    # ------------------------------------------------------------------ #

    def scan(
        self,
        files: Sequence[str],
        query: QueryEngine,
        sink: ReportSink,
    ) -> ScanSummary:
        """Evaluate *query* against every file in *files*.

        Args:
            files: Candidate file paths, in discovery order.
            query: The active query engine.
            sink: Shared reporting sink.

        Returns:
            A finalized :class:`ScanSummary`.

        Raises:
            RuntimeError: If a worker thread cannot be started.
        """
        summary = ScanSummary(
            query=query.describe(),
            files_total=len(files),
        )
        sink.defer = sink.defer or query.sorts_results

        chunks = [c for c in partition(files, self.workers) if c]
        stats = [_WorkerStats() for _ in chunks]
        threads: list[threading.Thread] = []

        with self._logger.timed(f"{query.kind.value} scan of {len(files)} files"):
            for index, chunk in enumerate(chunks):
                thread = threading.Thread(
                    target=self._run_worker,
                    args=(chunk, query, sink, stats[index]),
                    name=f"hoontr-worker-{index}",
                )
                thread.start()
                threads.append(thread)

            for thread in threads:
                thread.join()

        sink.release(query.finalize(list(sink.records)))

        summary.workers = len(threads)
        summary.files_scanned = sum(s.processed for s in stats)
        summary.match_count = len(sink.records)
        summary.error_count = len(sink.errors)
        summary.finalize()

        self._logger.info(
            "%s: %d/%d files evaluated, %d matches, %d errors",
            query.kind.value,
            summary.files_scanned,
            summary.files_total,
            summary.match_count,
            summary.error_count,
        )
        return summary

    # ------------------------------------------------------------------ #
    #  Worker
    # ------------------------------------------------------------------ #

    def _run_worker(
        self,
        chunk: list[str],
        query: QueryEngine,
        sink: ReportSink,
        stats: _WorkerStats,
    ) -> None:
        with self._logger.operation(query.kind.value):
            for path in chunk:
                if self._process_file(path, query, sink):
                    stats.processed += 1

    def _process_file(
        self, path: str, query: QueryEngine, sink: ReportSink
    ) -> bool:
        """Evaluate one file; ``False`` if it could not be evaluated."""
        try:
            data = self.load(path)
            record = query.evaluate(path, data)
        except PEFormatError as exc:
            if exc.kind is ErrorKind.NOT_FOUND:
                self._logger.debug("%s: %s", path, exc)
                return True
            self._logger.debug("Skipping %s: %s", path, exc)
            sink.emit_error(
                FileError(file=path, kind=exc.kind.value, reason=exc.reason)
            )
            return False
        except (struct.error, IndexError, ValueError) as exc:
            self._logger.debug("Malformed image %s: %s", path, exc)
            sink.emit_error(FileError(
                file=path,
                kind=ErrorKind.INVALID_FORMAT.value,
                reason=str(exc) or type(exc).__name__,
            ))
            return False

        if record is not None:
            sink.emit(record)
        return True

    def load(self, path: str) -> bytes:
        """Read a whole file into memory.

        Raises:
            UnreadableError: The file cannot be read or exceeds
                ``max_file_size``.
        """
        max_size = self._config.scanner.max_file_size
        try:
            file_path = Path(path)
            size = file_path.stat().st_size
            if size > max_size:
                raise UnreadableError(
                    f"file too large: {size:,} bytes (max: {max_size:,} bytes)"
                )
            return file_path.read_bytes()
        except OSError as exc:
            raise UnreadableError(exc.strerror or str(exc)) from exc
