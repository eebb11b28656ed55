"""
Pytest configuration and fixtures for StockTA tests.

Provides series builders and common configuration for all test modules.
"""

import math
from datetime import datetime, timedelta, timezone
from typing import Callable, List, Optional, Sequence

import pytest

from stockta.core.config import Settings
from stockta.core.models import Bar

BASE_DATE = datetime(2024, 1, 1)


def make_bar(
    index: int,
    open_: float,
    high: float,
    low: float,
    close: float,
    volume: float = 1000.0,
    symbol: str = "TEST",
) -> Bar:
    """Build a bar dated ``index`` days after the base date."""
    return Bar(
        symbol=symbol,
        date=BASE_DATE + timedelta(days=index),
        open=open_,
        high=high,
        low=low,
        close=close,
        volume=volume,
    )


def make_series(
    closes: Sequence[float],
    volumes: Optional[Sequence[float]] = None,
    spread: float = 1.0,
    symbol: str = "TEST",
) -> List[Bar]:
    """Build a series whose bars open and close at the given price."""
    volumes = volumes or [1000.0] * len(closes)
    return [
        make_bar(i, close, close + spread, close - spread, close, volume, symbol)
        for i, (close, volume) in enumerate(zip(closes, volumes))
    ]


@pytest.fixture
def test_settings():
    """Test-specific settings configuration."""
    return Settings(
        python_env="testing",
        log_level="DEBUG",
        debug=True,
        include_wyckoff=True,
        multi_timeframe_patterns=True,
        price_history_limit=0,
    )


@pytest.fixture
def as_of() -> datetime:
    """Frozen analysis instant."""
    return datetime(2024, 6, 1, 16, 0, tzinfo=timezone.utc)


@pytest.fixture
def bar_factory() -> Callable[..., Bar]:
    """Factory for single bars."""
    return make_bar


@pytest.fixture
def series_factory() -> Callable[..., List[Bar]]:
    """Factory for series built from closing prices."""
    return make_series


@pytest.fixture
def flat_series() -> List[Bar]:
    """60 bars with open = high = low = close = 100."""
    return [make_bar(i, 100.0, 100.0, 100.0, 100.0) for i in range(60)]


@pytest.fixture
def uptrend_series() -> List[Bar]:
    """250 bars with strictly increasing closes and constant volume."""
    return make_series([100.0 + i for i in range(250)])


@pytest.fixture
def wave_series() -> List[Bar]:
    """120 bars oscillating around 100 with a slow drift and varying volume."""
    closes = [100 + 10 * math.sin(i / 4) + 0.05 * i for i in range(120)]
    volumes = [1000 + 400 * math.cos(i / 3) for i in range(120)]
    bars = []
    previous = closes[0]
    for i, (close, volume) in enumerate(zip(closes, volumes)):
        high = max(previous, close) + 0.8
        low = min(previous, close) - 0.6
        bars.append(make_bar(i, previous, high, low, close, volume))
        previous = close
    return bars


@pytest.fixture
def selling_climax_series() -> List[Bar]:
    """
    Downtrend into a selling climax followed by a recovery.

    Bars 0-29 fall one point per bar, bar 30 is the climax (wide range, close
    in the bottom of the bar, volume five times normal), bars 31-39 recover.
    """
    bars = []
    for i in range(30):
        close = 130.0 - i
        open_ = close + 1
        bars.append(make_bar(i, open_, open_ + 0.5, close - 0.5, close))

    bars.append(make_bar(30, 101.0, 101.5, 92.0, 92.5, volume=5000.0))

    previous = 92.5
    for i in range(31, 40):
        close = 93.5 + (i - 31)
        bars.append(make_bar(i, previous, close + 0.5, previous - 0.25, close))
        previous = close

    return bars
