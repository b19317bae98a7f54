"""
Lexis CLI -- Static Script Risk Analyzer
=========================================

Click-based command-line interface for the Lexis analyzer.  Every path
is analysed statically; nothing is ever executed.

Usage::

    # Analyse one script
    lexis dropper.ps1

    # Several scripts, JSON to stdout
    lexis a.ps1 b.ps1 --json

    # CSV export and an executive report
    lexis samples/*.ps1 --csv results.csv --report report.txt --report-type executive

    # Custom signature tables
    lexis dropper.ps1 --tables corp_rules.toml

    # Only keep results matched by a hunting query
    lexis samples/*.ps1 --hunt "High Obfuscation"

References:
    - Click documentation: https://click.palletsprojects.com/
"""

from __future__ import annotations

import asyncio
import sys
from datetime import datetime
from pathlib import Path

import click

from shared.config import LexisConfig
from shared.console import LexisConsole
from shared.logger import LexisLogger

from lexis import __version__
from lexis.analyzers.hunting import hunt, query_names
from lexis.core.engine import LexisEngine
from lexis.core.tables import SignatureTables
from lexis.output.console import LexisConsoleOutput
from lexis.output.report import REPORT_TYPES, LexisReportGenerator, write_csv


@click.command("lexis")
@click.argument("paths", nargs=-1, required=True, type=click.Path(dir_okay=False))
@click.option(
    "--json", "json_output",
    is_flag=True,
    default=False,
    help="Output results as a JSON array to stdout.",
)
@click.option(
    "--csv", "csv_path",
    type=click.Path(dir_okay=False),
    default=None,
    help="Write one CSV row per analysed script to FILE.",
)
@click.option(
    "--report", "-o",
    "report_path",
    type=click.Path(dir_okay=False),
    default=None,
    help="Write an aggregate report to FILE (.json for JSON, otherwise text).",
)
@click.option(
    "--report-type",
    type=click.Choice(REPORT_TYPES, case_sensitive=False),
    default=None,
    help="Layout of the aggregate report.  Without --report the file is "
         "written to the configured output directory.  Default: summary.",
)
@click.option(
    "--tables", "-t",
    "tables_path",
    type=click.Path(dir_okay=False),
    default=None,
    help="TOML signature tables overriding the built-in defaults.",
)
@click.option(
    "--hunt", "hunt_query",
    type=click.Choice(query_names()),
    default=None,
    help="Keep only results matched by a predefined hunting query.",
)
@click.option(
    "--config", "-c",
    "config_path",
    type=click.Path(dir_okay=False),
    default=None,
    help="Path to a TOML configuration file.",
)
@click.option(
    "--verbose", "-v",
    is_flag=True,
    default=False,
    help="Enable verbose/debug output.",
)
@click.version_option(__version__, prog_name="lexis")
def lexis_cli(
    paths: tuple[str, ...],
    json_output: bool,
    csv_path: str | None,
    report_path: str | None,
    report_type: str | None,
    tables_path: str | None,
    hunt_query: str | None,
    config_path: str | None,
    verbose: bool,
) -> None:
    """Lexis -- Static Script Risk Analyzer.

    Classify script files as benign, suspicious or malicious from
    lexical features, signature rules and simulated behaviour.

    PATHS are the script files to analyse.

    Examples:

    \b
        # Full analysis of a single script
        python -m lexis dropper.ps1

    \b
        # JSON output for several scripts
        python -m lexis a.ps1 b.ps1 --json
    """
    console = LexisConsole(quiet=json_output)

    try:
        config = LexisConfig.load(config_path)
    except FileNotFoundError as exc:
        _fail(console, str(exc))
    except ValueError as exc:
        _fail(console, f"Invalid configuration: {exc}")

    if verbose or config.global_settings.debug:
        log_level = "DEBUG"
    elif json_output:
        log_level = "WARNING"
    else:
        log_level = config.global_settings.log_level
    logger = LexisLogger(
        "cli",
        log_level=log_level,
        log_file=config.global_settings.log_file or None,
        json_logs=config.global_settings.log_json,
    )

    try:
        tables = SignatureTables.load(tables_path) if tables_path else None
        engine = LexisEngine(config=config, logger=logger, tables=tables)
        with console.status(f"Analysing {len(paths)} script(s)..."):
            results = asyncio.run(engine.analyze_batch(paths))
    except KeyboardInterrupt:
        console.warning("Analysis interrupted by user.")
        sys.exit(130)
    except (FileNotFoundError, ValueError) as exc:
        logger.error("Analysis failed: %s", exc)
        _fail(console, f"Analysis failed: {exc}")

    if hunt_query:
        results = hunt(results, hunt_query)
        console.info(f"Hunt '{hunt_query}': {len(results)} matching script(s)")

    if json_output:
        click.echo(LexisReportGenerator.to_json(results, as_array=True))
    else:
        console.banner(__version__)
        if not results:
            console.warning("No results to display.")
        output = LexisConsoleOutput(console=console)
        for result in results:
            output.display(result)
        if len(results) > 1:
            output.display_batch_summary(results)

    try:
        if csv_path:
            written = write_csv(results, csv_path)
            console.success(f"CSV export saved: {written}")
        if report_type and not report_path:
            report_path = _default_output_path(config.global_settings.output_dir, "txt")
        if report_path:
            generator = LexisReportGenerator(version=__version__)
            written = generator.generate_report(
                results, report_path, (report_type or "summary").lower()
            )
            console.success(f"Report saved: {written}")
    except OSError as exc:
        logger.error("Could not write output: %s", exc)
        _fail(console, f"Could not write output: {exc}")


def _default_output_path(output_dir: str, ext: str) -> str:
    """Generate a timestamped report path inside *output_dir*."""
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    directory = Path(output_dir)
    directory.mkdir(parents=True, exist_ok=True)
    return str(directory / f"lexis_report_{timestamp}.{ext}")


def _fail(console: LexisConsole, message: str) -> None:
    console.error(message)
    if console.rich.quiet:
        click.echo(f"Error: {message}", err=True)
    sys.exit(1)


# ---------------------------------------------------------------------------
# Module entry point
# ---------------------------------------------------------------------------

def main() -> None:
    """Entry point for the ``lexis`` console script."""
    lexis_cli()


if __name__ == "__main__":
    main()
