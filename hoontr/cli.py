"""
Hoontr CLI -- PE Reconnaissance Scanner
========================================

Click-based command-line interface.  Global options select what to scan
and how; one subcommand selects the query.

Usage::

    # DLLs in System32 with a .text section of at least 4 KiB and no CFG
    hoontr stomphoont --size 4096 --no-cfg

    # Recursively search DLLs, EXEs and CPLs for a byte sequence
    hoontr -p C:\\Windows -r --pe bytehoont --file pattern.bin

    # Exported names containing "Virtual", x64 only
    hoontr --arch x64 exporthoont --name Virtual

References:
    - Click documentation: https://click.palletsprojects.com/
"""

from __future__ import annotations

import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import click

from shared.config import HoontrConfig
from shared.console import HoontrConsole
from shared.logger import HoontrLogger

from hoontr import __version__
from hoontr.analyzers import BytePatternSearch, ExportNameSearch, StompClassifier
from hoontr.analyzers.base import QueryEngine
from hoontr.core.engine import HoontrEngine
from hoontr.core.finder import TargetFinder
from hoontr.core.models import ArchFilter
from hoontr.output.console import HoontrConsoleOutput, ReportSink
from hoontr.output.report import HoontrReportGenerator


@dataclass(slots=True)
class _RunOptions:
    """Global options resolved against the configuration file."""
    config: HoontrConfig
    path: str
    recurse: bool
    include_all_pe: bool
    arch: ArchFilter
    workers: Optional[int]
    show_banner: bool
    json_out: Optional[str]
    logger: HoontrLogger


def _pick(value, fallback):
    return fallback if value is None else value


# ---------------------------------------------------------------------------
# CLI group
# ---------------------------------------------------------------------------

@click.group("hoontr")
@click.version_option(__version__, prog_name="hoontr")
@click.option(
    "--path", "-p",
    type=str,
    default=None,
    help="File or folder to enumerate.  Default: C:\\Windows\\System32.",
)
@click.option(
    "--recurse/--no-recurse", "-r",
    default=None,
    help="Recursively enumerate subdirectories of --path.",
)
@click.option(
    "--pe/--dll-only", "include_all_pe",
    default=None,
    help="Include EXE and CPL images as well as DLLs.",
)
@click.option(
    "--arch",
    type=click.Choice([a.value for a in ArchFilter], case_sensitive=False),
    default=None,
    help="Target architecture.  Default: all.",
)
@click.option(
    "--workers", "-w",
    type=click.IntRange(min=1),
    default=None,
    help="Worker threads.  Default: number of logical CPUs.",
)
@click.option(
    "--nobanner",
    is_flag=True,
    default=False,
    help="Do not print the intro banner.",
)
@click.option(
    "--verbose", "-v",
    is_flag=True,
    default=False,
    help="Enable debug logging.",
)
@click.option(
    "--json-out",
    type=click.Path(dir_okay=False),
    default=None,
    help="Also write the results as a JSON report.",
)
@click.option(
    "--config", "config_path",
    type=click.Path(exists=True, dir_okay=False),
    default=None,
    help="TOML configuration file.",
)
@click.pass_context
def hoontr_cli(
    ctx: click.Context,
    path: str | None,
    recurse: bool | None,
    include_all_pe: bool | None,
    arch: str | None,
    workers: int | None,
    nobanner: bool,
    verbose: bool,
    json_out: str | None,
    config_path: str | None,
) -> None:
    """Hoontr -- hunt Windows PE images for offensive tradecraft.

    Pick one query: bytehoont, stomphoont or exporthoont.
    """
    config = HoontrConfig.load(config_path)
    scanner = config.scanner

    arch_name = _pick(arch, scanner.arch)
    try:
        arch_filter = ArchFilter(str(arch_name).lower())
    except ValueError:
        choices = ", ".join(a.value for a in ArchFilter)
        raise click.UsageError(
            f"Unsupported arch {arch_name!r} in configuration; expected one of: {choices}."
        ) from None

    settings = config.global_settings
    debug = verbose or settings.debug
    logger = HoontrLogger(
        "engine",
        log_level="DEBUG" if debug else settings.log_level,
        log_file=settings.log_file,
        json_logs=settings.log_json,
    )

    ctx.obj = _RunOptions(
        config=config,
        path=_pick(path, scanner.default_path),
        recurse=_pick(recurse, scanner.recurse),
        include_all_pe=_pick(include_all_pe, scanner.include_all_pe),
        arch=arch_filter,
        workers=workers,
        show_banner=not nobanner and settings.show_banner,
        json_out=json_out,
        logger=logger,
    )


# ---------------------------------------------------------------------------
# Subcommands
# ---------------------------------------------------------------------------

@hoontr_cli.command("bytehoont")
@click.option(
    "--file", "-f", "byte_file",
    type=click.Path(exists=True, dir_okay=False),
    default=None,
    help="File containing the raw byte sequence to find.",
)
@click.option(
    "--hex", "hex_pattern",
    type=str,
    default=None,
    help="Byte sequence as hex, e.g. '0f 05 c3'.",
)
@click.pass_obj
def bytehoont(
    opts: _RunOptions, byte_file: str | None, hex_pattern: str | None
) -> None:
    """Enumerate for a particular byte sequence in .text sections."""
    if (byte_file is None) == (hex_pattern is None):
        raise click.UsageError("Provide exactly one of --file or --hex.")

    if byte_file is not None:
        pattern = Path(byte_file).read_bytes()
    else:
        try:
            pattern = bytes.fromhex(hex_pattern)
        except ValueError as exc:
            raise click.BadParameter(str(exc), param_hint="--hex") from exc

    _run(opts, BytePatternSearch(pattern))


@hoontr_cli.command("stomphoont")
@click.option(
    "--size", "-s", "shellcode_size",
    type=click.IntRange(min=0),
    required=True,
    help="Minimum .text VirtualSize to look for.",
)
@click.option(
    "--no-cfg/--any-cfg", "no_cfg",
    default=None,
    help="Only include images with CFG disabled.",
)
@click.pass_obj
def stomphoont(
    opts: _RunOptions, shellcode_size: int, no_cfg: bool | None
) -> None:
    """Enumerate for DLLs to stomp."""
    query = StompClassifier(
        threshold=shellcode_size,
        arch=opts.arch,
        no_cfg_only=_pick(no_cfg, opts.config.scanner.no_cfg),
    )
    _run(opts, query)


@hoontr_cli.command("exporthoont")
@click.option(
    "--name", "-n", "func_name",
    type=str,
    required=True,
    help="String to look for in exported function names.",
)
@click.option(
    "--match-case/--ignore-case",
    default=None,
    help="Compare names case-sensitively.  Default: ignore case.",
)
@click.pass_obj
def exporthoont(
    opts: _RunOptions, func_name: str, match_case: bool | None
) -> None:
    """Enumerate DLLs for exported functions."""
    if not func_name:
        raise click.BadParameter("must not be empty", param_hint="--name")
    query = ExportNameSearch(
        func_name,
        match_case=_pick(match_case, opts.config.scanner.match_case),
        arch=opts.arch,
        logger=opts.logger,
    )
    _run(opts, query)


# ---------------------------------------------------------------------------
# Shared run logic
# ---------------------------------------------------------------------------

def _run(opts: _RunOptions, query: QueryEngine) -> None:
    console = HoontrConsole()
    output = HoontrConsoleOutput(console=console)
    logger = opts.logger

    if opts.show_banner:
        console.banner(__version__)

    target = Path(opts.path)
    if not target.exists():
        console.error(f"Path {opts.path} does not exist!")
        sys.exit(1)
    if target.is_file() and opts.recurse:
        console.warning(
            "The recurse flag is ignored as the path does not point to a directory"
        )

    finder = TargetFinder(
        recurse=opts.recurse,
        include_all_pe=opts.include_all_pe,
        logger=logger,
    )
    targets = finder.scan_path(target)
    output.display_targets(opts.path, len(targets))

    engine = HoontrEngine(config=opts.config, logger=logger, workers=opts.workers)
    sink = ReportSink(output)
    output.display_header(query.kind, query.describe())

    try:
        summary = engine.scan(targets, query, sink)
    except KeyboardInterrupt:
        console.warning("Scan interrupted by user.")
        sys.exit(130)

    output.display_summary(summary)

    if opts.json_out:
        report_path = HoontrReportGenerator().generate_json(
            summary, sink.records, sink.errors, opts.json_out
        )
        console.success(f"JSON report saved: {report_path}")


# ---------------------------------------------------------------------------
# Module entry point
# ---------------------------------------------------------------------------

def main() -> None:
    """Entry point for the ``hoontr`` console script."""
    hoontr_cli()


if __name__ == "__main__":
    main()
