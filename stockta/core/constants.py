"""
Constants for StockTA.

Defines application-wide constants and reference text.
"""

# Application Information
APP_NAME = "StockTA"
APP_VERSION = "0.1.0"
APP_DESCRIPTION = "Technical and Wyckoff analysis reports from OHLCV price series"


class AnalysisConstants:
    """Minimum series lengths below which components return neutral values."""

    MIN_PATTERN_BARS = 3
    MIN_SUPPORT_RESISTANCE_BARS = 20
    MIN_TREND_BARS = 20
    MIN_WYCKOFF_BARS = 30

    # Neutral sentinels
    NEUTRAL_RSI = 50.0
    UNDEFINED_INDICATOR = 0.0


class TimeframeConstants:
    """Pattern timeframes reported alongside the daily bars."""

    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"

    # pandas period aliases used to aggregate daily bars
    PERIOD_ALIASES = {
        WEEKLY: "W",
        MONTHLY: "M",
    }


PHASE_TITLES = {
    "accumulation": "Accumulation",
    "markup": "Markup",
    "distribution": "Distribution",
    "markdown": "Markdown",
    "unknown": "Unknown",
    "insufficient_data": "Insufficient Data",
}

PHASE_DESCRIPTIONS = {
    "accumulation": (
        "Smart money is quietly accumulating shares from weak hands. Price "
        "consolidates in a range after a downtrend. Springs and Signs of "
        "Strength signal that markup may begin."
    ),
    "markup": (
        "Price is advancing as demand exceeds supply. The trend is up with "
        "healthy volume support."
    ),
    "distribution": (
        "Smart money is distributing shares to the public after the markup. "
        "Upthrusts and Signs of Weakness warn that markdown is coming."
    ),
    "markdown": (
        "Price is declining as supply exceeds demand. The phase ends when "
        "selling is exhausted and accumulation begins again."
    ),
    "unknown": (
        "The current structure does not clearly fit any Wyckoff phase. This "
        "could be a transition period."
    ),
    "insufficient_data": (
        "At least 30 bars of price and volume data are required to identify "
        "phases and events."
    ),
}

EVENT_DESCRIPTIONS = {
    "Spring": (
        "A false breakdown below trading range support that tests remaining "
        "supply and often precedes an upward move."
    ),
    "Upthrust": (
        "A false breakout above trading range resistance that tests demand "
        "and often precedes a downward move."
    ),
    "Selling Climax": (
        "Panic selling on exceptional volume and a wide downward spread. "
        "Often marks a bottom."
    ),
    "Buying Climax": (
        "Euphoric buying on exceptional volume and a wide upward spread. "
        "Often marks a top."
    ),
    "Sign of Strength": (
        "Price rises strongly on good volume above resistance, confirming "
        "the end of accumulation."
    ),
    "Sign of Weakness": (
        "Price falls strongly on good volume below support, confirming the "
        "end of distribution."
    ),
}
