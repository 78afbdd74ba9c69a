"""
Target Discovery
=================

Turns the user's ``--path`` into the ordered list of candidate files the
scan engine works on.  DLLs are always in scope; EXE and CPL images are
added on request.
"""

from __future__ import annotations

import os
from pathlib import Path

from shared.logger import HoontrLogger


DLL_EXTENSIONS: frozenset[str] = frozenset({"dll"})
PE_EXTENSIONS: frozenset[str] = frozenset({"dll", "exe", "cpl"})


def has_target_extension(path: str | Path, include_all_pe: bool = False) -> bool:
    """Case-insensitive extension check against the in-scope set."""
    suffix = Path(path).suffix.lstrip(".").lower()
    wanted = PE_EXTENSIONS if include_all_pe else DLL_EXTENSIONS
    return suffix in wanted


class TargetFinder:
    """Enumerate candidate PE files under a path.

    A file path is returned as-is regardless of extension.  Directory
    entries are visited in sorted order so that runs over the same tree
    produce the same candidate list.  Symbolic links to directories are not
    followed, and no directory is listed twice, so a link or junction
    loop cannot enumerate the same file twice.

    Usage::

        finder = TargetFinder(recurse=True, include_all_pe=True)
        targets = finder.scan_path(r"C:\\Windows\\System32")
    """

    def __init__(
        self,
        recurse: bool = False,
        include_all_pe: bool = False,
        logger: HoontrLogger | None = None,
    ) -> None:
        self.recurse = recurse
        self.include_all_pe = include_all_pe
        self._logger = logger or HoontrLogger("finder", log_level="WARNING")

    def scan_path(self, path: str | Path) -> list[str]:
        root = Path(path)
        if root.is_file():
            return [str(root)]
        if not root.is_dir():
            return []

        results: list[str] = []
        self._collect(root, results, set())
        self._logger.info("Selected %d targets under %s", len(results), root)
        return results

    def _collect(
        self, directory: Path, results: list[str], visited: set[str]
    ) -> None:
        # Junctions are not reported as symlinks by scandir; the resolved
        # path catches loops through them.
        real = os.path.realpath(directory)
        if real in visited:
            self._logger.debug("Already visited %s, skipping", directory)
            return
        visited.add(real)

        try:
            entries = sorted(os.scandir(directory), key=lambda e: e.name)
        except OSError as exc:
            self._logger.debug("Cannot list %s: %s", directory, exc)
            return

        subdirs: list[Path] = []
        for entry in entries:
            try:
                if entry.is_file():
                    if has_target_extension(entry.name, self.include_all_pe):
                        results.append(entry.path)
                elif self.recurse and entry.is_dir(follow_symlinks=False):
                    subdirs.append(Path(entry.path))
            except OSError as exc:
                self._logger.debug("Cannot stat %s: %s", entry.path, exc)

        for sub in subdirs:
            self._collect(sub, results, visited)


def scan_path(
    path: str | Path, recurse: bool = False, include_all_pe: bool = False
) -> list[str]:
    """Module-level convenience wrapper around :meth:`TargetFinder.scan_path`."""
    return TargetFinder(recurse=recurse, include_all_pe=include_all_pe).scan_path(path)
