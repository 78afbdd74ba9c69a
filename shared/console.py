"""
Hoontr Console Interface
=========================

Rich-powered console abstraction providing a consistent presentation
layer: banner, section headers and severity-coloured messages.

Console output is soft-wrapped so that long file paths stay on one line
and remain greppable.

References:
    - Rich library: https://github.com/Textualize/rich
"""

from __future__ import annotations

from typing import Any

from rich.align import Align
from rich.console import Console
from rich.panel import Panel
from rich.text import Text
from rich.theme import Theme

_HOONTR_THEME = Theme(
    {
        "hoontr.banner": "bold bright_cyan",
        "hoontr.section": "bold bright_magenta",
        "hoontr.success": "bold green",
        "hoontr.warning": "bold yellow",
        "hoontr.error": "bold red",
        "hoontr.info": "bold bright_blue",
        "hoontr.dim": "dim white",
        "hoontr.highlight": "bold bright_white",
    }
)

_BANNER_ART = r"""
[bright_cyan] _                     _
| |__   ___   ___  _ __ | |_ _ __
| '_ \ / _ \ / _ \| '_ \| __| '__|
| | | | (_) | (_) | | | | |_| |
|_| |_|\___/ \___/|_| |_|\__|_|[/bright_cyan]"""

_TAGLINE = "PE reconnaissance for code caves, stomping and exports"


class HoontrConsole:
    """Unified console interface for Hoontr output.

    Usage::

        con = HoontrConsole()
        con.banner()
        con.section("Stomp Candidates")
        con.success("Scan complete")
    """

    def __init__(
        self,
        *,
        quiet: bool = False,
        file: Any = None,
    ) -> None:
        """Initialise the console.

        Args:
            quiet:  Suppress all output (useful in library / test mode).
            file:   Optional writable stream; defaults to stdout.
        """
        self._console = Console(
            theme=_HOONTR_THEME,
            quiet=quiet,
            file=file,
            highlight=False,
            soft_wrap=True,
        )

    @property
    def rich(self) -> Console:
        """Direct access to the underlying Rich Console instance."""
        return self._console

    # ------------------------------------------------------------------ #
    #  Banner / sections
    # ------------------------------------------------------------------ #

    def banner(self, version: str = "1.0.0") -> None:
        """Display the ASCII-art banner."""
        subtitle = (
            f"[hoontr.highlight]{_TAGLINE}[/hoontr.highlight]\n"
            f"[hoontr.dim]Version: {version}[/hoontr.dim]"
        )
        panel = Panel(
            Align.center(Text.from_markup(_BANNER_ART + "\n\n" + subtitle)),
            border_style="bright_cyan",
            padding=(0, 2),
        )
        self._console.print(panel)

    def section(self, title: str) -> None:
        """Print a prominent section header."""
        self._console.rule(f"  {title}  ", style="hoontr.section")
        self._console.print()

    # ------------------------------------------------------------------ #
    #  Message helpers (severity-coloured)
    # ------------------------------------------------------------------ #

    def success(self, message: str) -> None:
        self._console.print(f"[hoontr.success][+][/hoontr.success] {message}")

    def warning(self, message: str) -> None:
        self._console.print(f"[hoontr.warning][!][/hoontr.warning] {message}")

    def error(self, message: str) -> None:
        self._console.print(f"[hoontr.error][-][/hoontr.error] {message}")

    def info(self, message: str) -> None:
        self._console.print(f"[hoontr.info][*][/hoontr.info] {message}")

    # ------------------------------------------------------------------ #
    #  Utility
    # ------------------------------------------------------------------ #

    def print(self, *args: Any, **kwargs: Any) -> None:
        """Proxy to :meth:`rich.console.Console.print`."""
        self._console.print(*args, **kwargs)

    def blank(self, count: int = 1) -> None:
        for _ in range(count):
            self._console.print()

