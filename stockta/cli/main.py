"""
Main CLI application for StockTA.

Loads a price series from a file, runs the analysis and prints the report.
"""

import sys
from pathlib import Path
from typing import Optional

import click
import structlog
from rich.console import Console

from stockta import __version__
from stockta.analysis.analyzer import StockAnalyzer
from stockta.cli.displays import AnalysisDisplays
from stockta.core.config import settings
from stockta.core.exceptions import StockTAException
from stockta.utils.data_helpers import load_series
from stockta.utils.logging import setup_logging

console = Console()
error_console = Console(stderr=True)
logger = structlog.get_logger(__name__)


@click.group()
@click.version_option(__version__, prog_name="stockta")
def cli():
    """StockTA: technical and Wyckoff analysis of OHLCV price series."""


@cli.command()
@click.argument("file", type=click.Path(dir_okay=False, path_type=Path))
@click.option("--symbol", default=None, help="Symbol for records that do not carry one")
@click.option("--company-name", default=None, help="Display name for the report")
@click.option("--json", "as_json", is_flag=True, help="Print the report as JSON")
@click.option("--no-wyckoff", is_flag=True, help="Leave Wyckoff signals out of the score")
@click.option(
    "--as-of",
    type=click.DateTime(),
    default=None,
    help="Analysis instant stamped on the report (defaults to now)",
)
@click.option("--verbose", is_flag=True, help="Enable verbose logging (shows all debug logs)")
def analyze(
    file: Path,
    symbol: Optional[str],
    company_name: Optional[str],
    as_json: bool,
    no_wyckoff: bool,
    as_of,
    verbose: bool,
):
    """Analyze the price series stored in FILE (CSV or JSON)."""
    setup_logging(log_level="DEBUG" if verbose else "WARNING")

    include_wyckoff = settings.include_wyckoff and not no_wyckoff

    try:
        series = load_series(file, symbol=symbol)
        analyzer = StockAnalyzer.from_settings(settings, include_wyckoff=include_wyckoff)
        report = analyzer.analyze(
            series, symbol=symbol, company_name=company_name, as_of=as_of
        )
    except StockTAException as e:
        logger.debug("Analysis failed", file=str(file), error_code=e.error_code)
        error_console.print(f"❌ Error: {e.message}", style="red")
        sys.exit(1)

    if as_json:
        click.echo(report.to_json(indent=2))
        return

    AnalysisDisplays(console).display_report(report, include_wyckoff=include_wyckoff)


if __name__ == "__main__":
    cli()
