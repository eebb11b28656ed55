"""
Technical indicators for StockTA.

Provides the indicator calculator used by the analyzer:
- Simple and Exponential Moving Averages (SMA/EMA)
- Relative Strength Index (RSI)
- Moving Average Convergence Divergence (MACD)
- Bollinger Bands

Every indicator is evaluated against the tail of the series. Series that are
shorter than an indicator's window return a neutral sentinel (0, or 50 for
RSI) instead of raising.
"""

from typing import List, Optional, Tuple

import numpy as np
import structlog

from stockta.core.constants import AnalysisConstants
from stockta.core.models import Bar, IndicatorConfig, IndicatorSet
from stockta.utils.data_helpers import closes

logger = structlog.get_logger(__name__)


def ema_values(values: np.ndarray, period: int) -> List[Optional[float]]:
    """
    Running EMA of a value array.

    The EMA is seeded with the SMA of the first ``period`` values and walked
    forward with ``ema = (value - ema) * 2 / (period + 1) + ema``. Element ``i``
    equals the EMA of the prefix ``values[:i + 1]``; positions before the seed
    are ``None``.
    """
    result: List[Optional[float]] = [None] * len(values)
    if period <= 0 or len(values) < period:
        return result

    multiplier = 2.0 / (period + 1)
    ema = float(np.mean(values[:period]))
    result[period - 1] = ema

    for i in range(period, len(values)):
        ema = (float(values[i]) - ema) * multiplier + ema
        result[i] = ema

    return result


class TechnicalIndicators:
    """
    Technical analysis indicators.

    Provides methods for calculating the indicators of an analysis report
    from a chronological series of bars.
    """

    def __init__(self, config: Optional[IndicatorConfig] = None):
        """Initialize the TechnicalIndicators class."""
        self.config = config or IndicatorConfig()
        logger.debug("TechnicalIndicators initialized")

    def calculate_sma(self, data: List[Bar], period: int) -> float:
        """
        Calculate Simple Moving Average of the last ``period`` closes.

        Args:
            data: Series of bars
            period: SMA period

        Returns:
            SMA value, or 0 if the series is shorter than the period
        """
        if period <= 0 or len(data) < period:
            return AnalysisConstants.UNDEFINED_INDICATOR

        return float(np.mean(closes(data[-period:])))

    def calculate_ema(self, data: List[Bar], period: int) -> float:
        """
        Calculate Exponential Moving Average.

        Args:
            data: Series of bars
            period: EMA period

        Returns:
            EMA at the last bar, or 0 if the series is shorter than the period
        """
        if period <= 0 or len(data) < period:
            return AnalysisConstants.UNDEFINED_INDICATOR

        return ema_values(closes(data), period)[-1]

    def calculate_rsi(self, data: List[Bar], period: Optional[int] = None) -> float:
        """
        Calculate Relative Strength Index over the trailing ``period`` deltas.

        Args:
            data: Series of bars
            period: RSI period (defaults to the configured period)

        Returns:
            RSI value; 50 when fewer than ``period + 1`` bars, 100 when there
            were no losses
        """
        period = period or self.config.rsi_period
        if len(data) < period + 1:
            return AnalysisConstants.NEUTRAL_RSI

        deltas = np.diff(closes(data[-(period + 1):]))
        gains = float(deltas[deltas > 0].sum())
        losses = float(-deltas[deltas < 0].sum())

        avg_gain = gains / period
        avg_loss = losses / period

        if avg_loss == 0:
            return 100.0

        rs = avg_gain / avg_loss
        return 100 - (100 / (1 + rs))

    def calculate_macd(self, data: List[Bar]) -> Tuple[float, float, float]:
        """
        Calculate MACD line, signal line and histogram.

        The signal line is the EMA of the MACD line evaluated at every bar
        from index ``slow_period`` onwards.

        Args:
            data: Series of bars

        Returns:
            Tuple of (macd, signal, histogram); all 0 below ``slow_period`` bars
            and signal 0 until enough MACD points exist
        """
        fast_period = self.config.macd_fast_period
        slow_period = self.config.macd_slow_period
        signal_period = self.config.macd_signal_period

        if len(data) < slow_period:
            return 0.0, 0.0, 0.0

        values = closes(data)
        fast = ema_values(values, fast_period)
        slow = ema_values(values, slow_period)

        macd = fast[-1] - slow[-1]

        macd_line = np.array(
            [fast[i] - slow[i] for i in range(slow_period, len(values))], dtype=float
        )

        signal = 0.0
        if len(macd_line) >= signal_period:
            signal = ema_values(macd_line, signal_period)[-1]

        return macd, signal, macd - signal

    def calculate_bollinger_bands(
        self, data: List[Bar], period: Optional[int] = None, std_dev: Optional[float] = None
    ) -> Tuple[float, float, float]:
        """
        Calculate Bollinger Bands.

        Args:
            data: Series of bars
            period: Moving average period
            std_dev: Standard deviation multiplier

        Returns:
            Tuple of (upper, middle, lower); all 0 below ``period`` bars
        """
        period = period or self.config.bollinger_period
        std_dev = std_dev if std_dev is not None else self.config.bollinger_std_dev

        if len(data) < period:
            return 0.0, 0.0, 0.0

        window = closes(data[-period:])
        middle = float(np.mean(window))
        deviation = float(np.std(window))

        return middle + std_dev * deviation, middle, middle - std_dev * deviation

    def calculate_all(self, data: List[Bar]) -> IndicatorSet:
        """
        Calculate the full indicator set for a series.

        Args:
            data: Series of bars

        Returns:
            IndicatorSet evaluated at the last bar
        """
        macd, signal, histogram = self.calculate_macd(data)
        upper, middle, lower = self.calculate_bollinger_bands(data)

        indicators = IndicatorSet(
            rsi=self.calculate_rsi(data),
            macd=macd,
            macd_signal=signal,
            macd_histogram=histogram,
            sma_20=self.calculate_sma(data, self.config.sma_short_period),
            sma_50=self.calculate_sma(data, self.config.sma_medium_period),
            sma_200=self.calculate_sma(data, self.config.sma_long_period),
            ema_12=self.calculate_ema(data, self.config.macd_fast_period),
            ema_26=self.calculate_ema(data, self.config.macd_slow_period),
            bollinger_upper=upper,
            bollinger_mid=middle,
            bollinger_lower=lower,
        )

        logger.debug(
            "Indicator calculation completed",
            data_points=len(data),
            rsi=indicators.rsi,
            macd=indicators.macd,
            sma_20=indicators.sma_20,
        )
        return indicators
