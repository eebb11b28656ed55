"""
Data manipulation utilities for StockTA.

Provides helpers for turning raw price records into a clean, ascending
series of bars and for aggregating daily bars into coarser timeframes.
"""

import json
import math
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Union

import numpy as np
import pandas as pd
import structlog

from stockta.core.constants import TimeframeConstants
from stockta.core.exceptions import ConfigurationError, DataSourceError
from stockta.core.models import Bar

logger = structlog.get_logger(__name__)

PRICE_FIELDS = ("open", "high", "low", "close")

# Column aliases accepted when loading series files
COLUMN_ALIASES = {
    "timestamp": "date",
    "time": "date",
    "datetime": "date",
    "adjclose": "adj_close",
    "adj close": "adj_close",
    "ticker": "symbol",
    "code": "symbol",
}


def safe_float_conversion(value: Any, default: Optional[float] = 0.0) -> Optional[float]:
    """
    Safely convert value to float with fallback.

    Args:
        value: Value to convert to float
        default: Default value if conversion fails or the value is NaN

    Returns:
        Float value or default
    """
    try:
        if value is None:
            return default
        result = float(value)
    except (TypeError, ValueError):
        return default
    if math.isnan(result):
        return default
    return result


def closes(series: List[Bar]) -> np.ndarray:
    """Closing prices of a series as a float array."""
    return np.array([bar.close for bar in series], dtype=float)


def highs(series: List[Bar]) -> np.ndarray:
    """High prices of a series as a float array."""
    return np.array([bar.high for bar in series], dtype=float)


def lows(series: List[Bar]) -> np.ndarray:
    """Low prices of a series as a float array."""
    return np.array([bar.low for bar in series], dtype=float)


def volumes(series: List[Bar]) -> np.ndarray:
    """Volumes of a series as a float array."""
    return np.array([bar.volume for bar in series], dtype=float)


def to_dataframe(series: List[Bar]) -> pd.DataFrame:
    """Convert a bar series to a pandas DataFrame indexed by date."""
    df = pd.DataFrame([bar.model_dump() for bar in series])
    if df.empty:
        return df
    df.set_index("date", inplace=True)
    return df


def prepare_series(
    records: Iterable[Union[Bar, Dict[str, Any]]], symbol: Optional[str] = None
) -> List[Bar]:
    """
    Build an analysable series from raw records.

    Records with missing or non-positive OHLC values are dropped, duplicate
    dates keep the last record seen and the result is sorted by date.

    Args:
        records: Bars or dictionaries with OHLCV keys
        symbol: Symbol to stamp on records that do not carry one

    Returns:
        Series of bars in ascending date order
    """
    by_date: Dict[Any, Bar] = {}
    dropped = 0

    for record in records:
        if isinstance(record, Bar):
            by_date[record.date] = record
            continue

        prices = {field: safe_float_conversion(record.get(field), None) for field in PRICE_FIELDS}
        if any(value is None or value <= 0 for value in prices.values()):
            dropped += 1
            continue

        try:
            date = pd.Timestamp(record.get("date"))
        except (TypeError, ValueError):
            date = pd.NaT
        if pd.isna(date):
            dropped += 1
            continue

        record_symbol = record.get("symbol")
        if not isinstance(record_symbol, str) or not record_symbol:
            record_symbol = symbol or ""

        bar = Bar(
            symbol=record_symbol,
            date=date.to_pydatetime(),
            volume=max(safe_float_conversion(record.get("volume"), 0.0), 0.0),
            adj_close=safe_float_conversion(record.get("adj_close"), None),
            **prices,
        )
        by_date[bar.date] = bar

    series = [by_date[date] for date in sorted(by_date)]

    if dropped:
        logger.warning("Dropped invalid price records", dropped=dropped, kept=len(series))
    logger.debug("Prepared price series", bars=len(series))
    return series


def load_series(path: Union[str, Path], symbol: Optional[str] = None) -> List[Bar]:
    """
    Load a price series from a CSV or JSON file.

    JSON files may hold a list of records or an object with a ``data`` or
    ``price_history`` list.

    Args:
        path: File to read
        symbol: Symbol for records without one

    Returns:
        Prepared series of bars

    Raises:
        DataSourceError: If the file cannot be read or lacks OHLC columns
    """
    path = Path(path)
    try:
        if path.suffix.lower() == ".json":
            with path.open("r", encoding="utf-8") as handle:
                raw = json.load(handle)
            if isinstance(raw, dict):
                raw = raw.get("data", raw.get("price_history", []))
            df = pd.DataFrame(raw)
        else:
            df = pd.read_csv(path)
    except (OSError, ValueError) as e:
        raise DataSourceError(
            f"Failed to read price series: {e}",
            source=str(path),
            error_code="DATA_SOURCE_ERROR",
        ) from e

    df = df.rename(columns=lambda c: str(c).strip().lower())
    df = df.rename(columns=COLUMN_ALIASES)

    missing = [column for column in ("date",) + PRICE_FIELDS if column not in df.columns]
    if missing:
        raise DataSourceError(
            f"Price series is missing columns: {', '.join(missing)}",
            source=str(path),
            error_code="DATA_SOURCE_ERROR",
        )

    logger.debug("Loaded price file", path=str(path), rows=len(df))
    return prepare_series(df.to_dict(orient="records"), symbol=symbol)


def aggregate_bars(series: List[Bar], timeframe: str) -> List[Bar]:
    """
    Aggregate bars into calendar weeks or months.

    Args:
        series: Ascending daily series
        timeframe: ``weekly`` or ``monthly``

    Returns:
        One bar per period: first open, highest high, lowest low, last close,
        summed volume, dated at the period's last bar

    Raises:
        ConfigurationError: If the timeframe cannot be aggregated
    """
    alias = TimeframeConstants.PERIOD_ALIASES.get(timeframe)
    if alias is None:
        raise ConfigurationError(
            f"Unsupported aggregation timeframe: {timeframe}",
            error_code="CONFIG_ERROR",
            details={"supported": sorted(TimeframeConstants.PERIOD_ALIASES)},
        )
    if not series:
        return []

    df = to_dataframe(series)
    index = pd.DatetimeIndex(df.index)
    if index.tz is not None:
        index = index.tz_convert(None)
    periods = index.to_period(alias)

    df = df.reset_index()
    grouped = df.groupby(periods, sort=True)
    aggregated = grouped.agg(
        symbol=("symbol", "first"),
        date=("date", "last"),
        open=("open", "first"),
        high=("high", "max"),
        low=("low", "min"),
        close=("close", "last"),
        volume=("volume", "sum"),
        adj_close=("adj_close", "last"),
    )

    return [
        Bar(
            symbol=row["symbol"],
            date=pd.Timestamp(row["date"]).to_pydatetime(),
            open=float(row["open"]),
            high=float(row["high"]),
            low=float(row["low"]),
            close=float(row["close"]),
            volume=float(row["volume"]),
            adj_close=float(row["adj_close"]),
        )
        for row in aggregated.to_dict(orient="records")
    ]
