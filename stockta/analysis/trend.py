"""
Trend analysis for StockTA.

Classifies trend direction and strength from three overlapping signals:
linear regression of closes, moving average alignment and ADX. Direction is
taken from the last signal that expresses one; strength is the maximum of
all contributing signals.
"""

from typing import List, NamedTuple, Optional, Tuple

import numpy as np
import structlog

from stockta.core.models import Bar, TrendConfig, TrendDirection, TrendResult
from stockta.utils.data_helpers import closes, highs, lows

logger = structlog.get_logger(__name__)


class TrendSignal(NamedTuple):
    """Direction (None keeps the current one) and strength from one heuristic."""

    direction: Optional[TrendDirection]
    strength: float


class TrendAnalyzer:
    """
    Trend analyzer.

    Signals, in evaluation order:
    - Regression: slope of closes against bar index beyond the threshold
    - MA alignment: price > SMA20 > SMA50 (or the inverse) on long series
    - ADX: raises strength when directional movement is strong
    """

    def __init__(self, config: Optional[TrendConfig] = None):
        """Initialize the trend analyzer."""
        self.config = config or TrendConfig()
        logger.debug("TrendAnalyzer initialized")

    def analyze(self, data: List[Bar]) -> TrendResult:
        """
        Classify the trend of a series.

        Args:
            data: Series of bars

        Returns:
            TrendResult; sideways with zero strength on short series
        """
        if len(data) < self.config.min_bars:
            return TrendResult()

        slope, intercept = self.linear_regression(data)
        trend_line_value = slope * (len(data) - 1) + intercept

        signals = [
            self._regression_signal(slope),
            self._ma_alignment_signal(data),
            self._adx_signal(data),
        ]

        direction = TrendDirection.SIDEWAYS
        strength = 0.0
        for signal in signals:
            if signal is None:
                continue
            if signal.direction is not None:
                direction = signal.direction
            strength = max(strength, signal.strength)

        result = TrendResult(
            direction=direction,
            strength=min(strength, 1.0),
            trend_line_value=trend_line_value,
        )

        logger.debug(
            "Trend analysis completed",
            slope=slope,
            direction=result.direction.value,
            strength=result.strength,
        )
        return result

    @staticmethod
    def linear_regression(data: List[Bar]) -> Tuple[float, float]:
        """Ordinary least squares fit of close against bar index."""
        x = np.arange(len(data), dtype=float)
        slope, intercept = np.polyfit(x, closes(data), 1)
        return float(slope), float(intercept)

    def _regression_signal(self, slope: float) -> Optional[TrendSignal]:
        threshold = self.config.slope_threshold
        strength = min(abs(slope) * self.config.slope_strength_scale, 1.0)

        if slope > threshold:
            return TrendSignal(TrendDirection.UPTREND, strength)
        if slope < -threshold:
            return TrendSignal(TrendDirection.DOWNTREND, strength)
        return None

    def _ma_alignment_signal(self, data: List[Bar]) -> Optional[TrendSignal]:
        if len(data) < self.config.ma_alignment_min_bars:
            return None

        values = closes(data)
        price = values[-1]
        sma_short = float(np.mean(values[-self.config.ma_short_period:]))
        sma_long = float(np.mean(values[-self.config.ma_long_period:]))

        if price > sma_short > sma_long:
            return TrendSignal(TrendDirection.UPTREND, self.config.ma_alignment_strength)
        if price < sma_short < sma_long:
            return TrendSignal(TrendDirection.DOWNTREND, self.config.ma_alignment_strength)
        return None

    def _adx_signal(self, data: List[Bar]) -> Optional[TrendSignal]:
        adx = self.calculate_adx(data)
        if adx > self.config.adx_threshold:
            return TrendSignal(None, adx / 100)
        return None

    def calculate_adx(self, data: List[Bar], period: Optional[int] = None) -> float:
        """
        Directional index over the trailing ``period`` bars.

        Returns 0 when there is not enough data or no movement at all.
        """
        period = period or self.config.adx_period
        if len(data) < period + 1:
            return 0.0

        high_values = highs(data)
        low_values = lows(data)
        close_values = closes(data)

        up_move = high_values[1:] - high_values[:-1]
        down_move = low_values[:-1] - low_values[1:]

        plus_dm = np.where((up_move > down_move) & (up_move > 0), up_move, 0.0)
        minus_dm = np.where((down_move > up_move) & (down_move > 0), down_move, 0.0)

        prev_close = close_values[:-1]
        true_range = np.maximum.reduce(
            [
                high_values[1:] - low_values[1:],
                np.abs(high_values[1:] - prev_close),
                np.abs(low_values[1:] - prev_close),
            ]
        )

        avg_tr = float(true_range[-period:].mean())
        if avg_tr == 0:
            return 0.0

        plus_di = float(plus_dm[-period:].mean()) / avg_tr * 100
        minus_di = float(minus_dm[-period:].mean()) / avg_tr * 100

        if plus_di + minus_di == 0:
            return 0.0

        return abs(plus_di - minus_di) / (plus_di + minus_di) * 100
