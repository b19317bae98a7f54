"""
Lexis Console Interface
========================

Rich-powered console abstraction providing one presentation layer for
the Lexis command-line interface and its result renderers.

The class wraps :class:`rich.console.Console` and adds convenience
methods for banners, section headers, severity-coloured messages,
tables and status spinners, all with consistent styling.

References:
    - Rich library: https://github.com/Textualize/rich
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Generator, Sequence

from rich.align import Align
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text
from rich.theme import Theme

_LEXIS_THEME = Theme(
    {
        "lexis.banner": "bold bright_cyan",
        "lexis.section": "bold bright_magenta",
        "lexis.success": "bold green",
        "lexis.warning": "bold yellow",
        "lexis.error": "bold red",
        "lexis.info": "bold bright_blue",
        "lexis.dim": "dim white",
        "lexis.critical": "bold white on red",
        "lexis.high": "bold red",
        "lexis.medium": "bold yellow",
        "lexis.low": "bold bright_cyan",
        "lexis.benign": "bold green",
        "lexis.suspicious": "bold yellow",
        "lexis.malicious": "bold white on red",
    }
)

_BANNER_ART = r"""[bright_cyan]
  _      ______  __   __  _____   _____
 | |    |  ____| \ \ / / |_   _| / ____|
 | |    | |__     \ V /    | |  | (___
 | |    |  __|     > <     | |   \___ \
 | |____| |____   / . \   _| |_  ____) |
 |______|______| /_/ \_\ |_____||_____/
[/bright_cyan]"""

_TAGLINE = "Static Script Risk Analyzer"

# Severity name -> theme style
SEVERITY_STYLES: dict[str, str] = {
    "critical": "lexis.critical",
    "high": "lexis.high",
    "medium": "lexis.medium",
    "low": "lexis.low",
    "warning": "lexis.medium",
    "info": "lexis.info",
}


class LexisConsole:
    """Unified console interface for Lexis output.

    Usage::

        con = LexisConsole()
        con.banner()
        con.section("Analysis Results")
        con.success("Analysis complete")
    """

    def __init__(self, *, quiet: bool = False) -> None:
        """Initialise the console.

        Args:
            quiet:  Suppress all output (useful in library / test mode).
        """
        self._console = Console(
            theme=_LEXIS_THEME,
            quiet=quiet,
            highlight=False,
        )

    @property
    def rich(self) -> Console:
        """Direct access to the underlying Rich Console instance."""
        return self._console

    # ------------------------------------------------------------------ #
    #  Banner / sections
    # ------------------------------------------------------------------ #

    def banner(self, version: str = "1.0.0") -> None:
        """Display the Lexis banner with the version string."""
        subtitle = (
            f"[lexis.section]{_TAGLINE}[/lexis.section]\n"
            f"[lexis.dim]Version: {version}[/lexis.dim]"
        )
        panel = Panel(
            Align.center(Text.from_markup(_BANNER_ART + "\n" + subtitle)),
            border_style="bright_cyan",
            padding=(0, 2),
        )
        self._console.print(panel)

    def section(self, title: str) -> None:
        """Print a prominent section header."""
        self._console.rule(f"  {title}  ", style="lexis.section", characters="─")
        self._console.print()

    # ------------------------------------------------------------------ #
    #  Message helpers (severity-coloured)
    # ------------------------------------------------------------------ #

    def success(self, message: str) -> None:
        self._console.print(f"[lexis.success][✔] SUCCESS:[/lexis.success] {message}")

    def warning(self, message: str) -> None:
        self._console.print(f"[lexis.warning][⚠] WARNING:[/lexis.warning] {message}")

    def error(self, message: str) -> None:
        self._console.print(f"[lexis.error][✘] ERROR:[/lexis.error] {message}")

    def info(self, message: str) -> None:
        self._console.print(f"[lexis.info][ℹ] INFO:[/lexis.info] {message}")

    # ------------------------------------------------------------------ #
    #  Table display
    # ------------------------------------------------------------------ #

    def table(
        self,
        title: str,
        columns: Sequence[str],
        rows: Sequence[Sequence[Any]],
        *,
        caption: str | None = None,
        styles: Sequence[str] | None = None,
    ) -> None:
        """Render a styled Rich table.

        Args:
            title:    Table title.
            columns:  Column header labels.
            rows:     Iterable of row tuples; each element is stringified.
            caption:  Optional footer caption.
            styles:   Optional per-column Rich style strings.
        """
        tbl = Table(
            title=title,
            caption=caption,
            border_style="bright_cyan",
            header_style="bold bright_magenta",
            show_lines=True,
            padding=(0, 1),
        )
        for idx, col_name in enumerate(columns):
            style = styles[idx] if styles and idx < len(styles) else ""
            tbl.add_column(col_name, style=style)

        for row in rows:
            tbl.add_row(*(str(cell) for cell in row))

        self._console.print(tbl)

    @staticmethod
    def severity_cell(severity: Any) -> str:
        """Return *severity* wrapped in the markup of its theme style."""
        name = severity.value if hasattr(severity, "value") else str(severity)
        style = SEVERITY_STYLES.get(name.lower(), "")
        return f"[{style}]{name.upper()}[/{style}]" if style else name.upper()

    # ------------------------------------------------------------------ #
    #  Status spinner
    # ------------------------------------------------------------------ #

    @contextmanager
    def status(self, message: str = "Working...") -> Generator[Any, None, None]:
        """Context-manager showing a spinner with a status message."""
        with self._console.status(
            f"[lexis.info]{message}[/lexis.info]",
            spinner="dots",
            spinner_style="bright_cyan",
        ) as status_obj:
            yield status_obj

    # ------------------------------------------------------------------ #
    #  Utility
    # ------------------------------------------------------------------ #

    def print(self, *args: Any, **kwargs: Any) -> None:
        """Proxy to :meth:`rich.console.Console.print`."""
        self._console.print(*args, **kwargs)

    def blank(self, count: int = 1) -> None:
        """Print *count* blank lines."""
        for _ in range(count):
            self._console.print()

    def divider(self, style: str = "dim") -> None:
        """Print a thin horizontal rule."""
        self._console.rule(style=style)
