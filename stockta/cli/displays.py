"""
Display helpers for the StockTA CLI.

Renders an analysis report as rich tables and panels.
"""

from typing import List

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from stockta.core.constants import EVENT_DESCRIPTIONS, PHASE_DESCRIPTIONS, PHASE_TITLES
from stockta.core.models import (
    AnalysisReport,
    PatternMatch,
    PatternPolarity,
    PriceRange,
    Recommendation,
    TrendDirection,
    WyckoffResult,
)

RECOMMENDATION_STYLES = {
    Recommendation.BUY: "bold green",
    Recommendation.SELL: "bold red",
    Recommendation.HOLD: "bold yellow",
}

POLARITY_STYLES = {
    PatternPolarity.BULLISH: "green",
    PatternPolarity.BEARISH: "red",
    PatternPolarity.NEUTRAL: "dim",
}

TREND_STYLES = {
    TrendDirection.UPTREND: "green",
    TrendDirection.DOWNTREND: "red",
    TrendDirection.SIDEWAYS: "yellow",
}


def format_range(price_range: PriceRange) -> str:
    """Format a price range for display."""
    return f"{price_range.min:,.2f} - {price_range.max:,.2f}"


def format_levels(levels: List[float]) -> str:
    """Format a list of price levels, nearest first."""
    if not levels:
        return "-"
    return ", ".join(f"{level:,.2f}" for level in levels)


class AnalysisDisplays:
    """Centralized display utilities for analysis reports."""

    def __init__(self, console: Console):
        """Initialize display utilities."""
        self.console = console

    def display_report(self, report: AnalysisReport, include_wyckoff: bool = True) -> None:
        """Display the complete report."""
        self.display_header(report)
        self.console.print(self.create_indicator_table(report))
        self.console.print(self.create_pattern_table(report))
        self.console.print(self.create_levels_table(report))
        if include_wyckoff:
            self.display_wyckoff(report.wyckoff)
        self.console.print(self.create_ranges_table(report))
        self.display_recommendation(report)

    def display_header(self, report: AnalysisReport) -> None:
        """Display the report title panel."""
        title = Text()
        title.append(report.company_name or report.symbol or "Unnamed series", style="bold cyan")
        if report.symbol and report.company_name != report.symbol:
            title.append(f" ({report.symbol})", style="cyan")
        title.append(f"\nCurrent price: {report.current_price:,.2f}", style="white")
        title.append(f"\nBars analysed: {len(report.price_history)}", style="dim")
        title.append(f"\nAs of: {report.date.isoformat()}", style="dim")

        self.console.print(Panel(title, title="StockTA Analysis", style="blue", padding=(1, 2)))

    def create_indicator_table(self, report: AnalysisReport) -> Table:
        """Create the technical indicator table."""
        indicators = report.indicators
        table = Table(title="Technical Indicators")
        table.add_column("Indicator", style="cyan", width=20)
        table.add_column("Value", style="white", justify="right", width=14)

        table.add_row("RSI (14)", f"{indicators.rsi:.2f}")
        table.add_row("MACD", f"{indicators.macd:.4f}")
        table.add_row("MACD Signal", f"{indicators.macd_signal:.4f}")
        table.add_row("MACD Histogram", f"{indicators.macd_histogram:.4f}")
        table.add_row("SMA 20", f"{indicators.sma_20:,.2f}")
        table.add_row("SMA 50", f"{indicators.sma_50:,.2f}")
        table.add_row("SMA 200", f"{indicators.sma_200:,.2f}")
        table.add_row("EMA 12", f"{indicators.ema_12:,.2f}")
        table.add_row("EMA 26", f"{indicators.ema_26:,.2f}")
        table.add_row("Bollinger Upper", f"{indicators.bollinger_upper:,.2f}")
        table.add_row("Bollinger Mid", f"{indicators.bollinger_mid:,.2f}")
        table.add_row("Bollinger Lower", f"{indicators.bollinger_lower:,.2f}")

        return table

    def create_pattern_table(self, report: AnalysisReport) -> Table:
        """Create the candlestick pattern table across timeframes."""
        table = Table(title="Candlestick Patterns")
        table.add_column("Timeframe", style="cyan", width=10)
        table.add_column("Pattern", style="white", width=22)
        table.add_column("Bias", width=9)
        table.add_column("Confidence", justify="right", width=10)

        timeframes = report.timeframe_patterns
        rows = [
            ("Daily", timeframes.daily),
            ("Weekly", timeframes.weekly),
            ("Monthly", timeframes.monthly),
        ]
        for label, patterns in rows:
            self._add_pattern_rows(table, label, patterns)

        return table

    @staticmethod
    def _add_pattern_rows(table: Table, label: str, patterns: List[PatternMatch]) -> None:
        if not patterns:
            table.add_row(label, "[dim]None[/dim]", "", "")
            return
        for pattern in patterns:
            style = POLARITY_STYLES[pattern.polarity]
            table.add_row(
                label,
                pattern.name.value,
                f"[{style}]{pattern.polarity.value}[/{style}]",
                f"{pattern.confidence:.0%}",
            )

    def create_levels_table(self, report: AnalysisReport) -> Table:
        """Create the support/resistance and trend table."""
        trend = report.trend
        levels = report.support_resistance
        trend_style = TREND_STYLES[trend.direction]

        table = Table(title="Levels & Trend")
        table.add_column("Metric", style="cyan", width=20)
        table.add_column("Value", style="white", width=36)

        table.add_row("Support", format_levels(levels.support_levels))
        table.add_row("Resistance", format_levels(levels.resistance_levels))
        table.add_row("Trend", f"[{trend_style}]{trend.direction.value}[/{trend_style}]")
        table.add_row("Trend Strength", f"{trend.strength:.0%}")
        table.add_row("Trend Line", f"{trend.trend_line_value:,.2f}")

        return table

    def display_wyckoff(self, wyckoff: WyckoffResult) -> None:
        """Display the Wyckoff phase panel, zones and events."""
        phase = wyckoff.phase.value
        content = (
            f"[bold]{PHASE_TITLES[phase]}[/bold] "
            f"({wyckoff.phase_confidence:.0%} confidence)\n"
            f"{PHASE_DESCRIPTIONS[phase]}\n\n"
            f"Trading range: {format_range(wyckoff.trading_range)}\n"
            f"Effort vs result: {wyckoff.effort_result.value}\n"
            f"Wyckoff recommendation: {wyckoff.recommendation.value.upper()} "
            f"(score {wyckoff.recommendation_score:+.2f})"
        )
        self.console.print(Panel(content, title="Wyckoff Analysis", style="magenta"))

        zones = Table(title="Wyckoff Zones")
        zones.add_column("Zone", style="cyan", width=14)
        zones.add_column("Range", style="white", width=24)
        zones.add_row("Buy", format_range(wyckoff.buy_zone))
        zones.add_row("Accumulation", format_range(wyckoff.accumulation_zone))
        zones.add_row("Distribution", format_range(wyckoff.distribution_zone))
        zones.add_row("Sell", format_range(wyckoff.sell_zone))
        self.console.print(zones)

        if not wyckoff.events:
            return

        events = Table(title="Wyckoff Events")
        events.add_column("Date", style="cyan", width=12)
        events.add_column("Event", style="white", width=18)
        events.add_column("Price", justify="right", width=10)
        events.add_column("Confidence", justify="right", width=10)
        events.add_column("Meaning", style="dim")
        for event in wyckoff.events:
            events.add_row(
                event.date.strftime("%Y-%m-%d"),
                event.name.value,
                f"{event.price:,.2f}",
                f"{event.confidence:.0%}",
                EVENT_DESCRIPTIONS.get(event.name.value, ""),
            )
        self.console.print(events)

    def create_ranges_table(self, report: AnalysisReport) -> Table:
        """Create the suggested price range table."""
        table = Table(title="Suggested Price Ranges")
        table.add_column("Action", style="cyan", width=14)
        table.add_column("Range", style="white", width=24)

        table.add_row("Buy", format_range(report.buy_range))
        table.add_row("Half Buy", format_range(report.half_buy_range))
        table.add_row("Sell", format_range(report.sell_range))

        return table

    def display_recommendation(self, report: AnalysisReport) -> None:
        """Display the composite recommendation panel."""
        style = RECOMMENDATION_STYLES[report.recommendation]
        self.console.print(
            Panel(
                f"[{style}]{report.recommendation.value.upper()}[/{style}]\n"
                f"Score: {report.recommendation_score:+.3f}",
                title="Recommendation",
                style="green" if report.recommendation == Recommendation.BUY else "white",
            )
        )
