"""
Unit tests for trend analysis.
"""

import pytest

from stockta.analysis.trend import TrendAnalyzer
from stockta.core.models import TrendConfig, TrendDirection, TrendResult


@pytest.fixture
def analyzer():
    return TrendAnalyzer()


class TestLinearRegression:
    def test_exact_line(self, series_factory):
        data = series_factory([100.0 + 2 * i for i in range(30)])

        slope, intercept = TrendAnalyzer.linear_regression(data)

        assert slope == pytest.approx(2.0)
        assert intercept == pytest.approx(100.0)


class TestTrendAnalyzer:
    """Trend classification."""

    def test_short_series_is_sideways(self, analyzer, series_factory):
        result = analyzer.analyze(series_factory([100.0 + i for i in range(19)]))

        assert result == TrendResult()
        assert result.direction == TrendDirection.SIDEWAYS
        assert result.strength == 0.0
        assert result.trend_line_value == 0.0

    def test_flat_series(self, analyzer, flat_series):
        result = analyzer.analyze(flat_series)

        assert result.direction == TrendDirection.SIDEWAYS
        assert result.strength == 0.0
        assert result.trend_line_value == pytest.approx(100.0)

    def test_steady_rise(self, analyzer, uptrend_series):
        result = analyzer.analyze(uptrend_series)

        assert result.direction == TrendDirection.UPTREND
        assert result.strength == 1.0
        assert result.trend_line_value == pytest.approx(349.0)

    def test_steady_decline(self, analyzer, series_factory):
        result = analyzer.analyze(series_factory([200.0 - i for i in range(30)]))

        assert result.direction == TrendDirection.DOWNTREND
        assert result.strength == 1.0
        assert result.trend_line_value == pytest.approx(171.0)

    def test_ma_alignment_overrides_regression(self, analyzer, series_factory):
        """A symmetric V has zero slope but a rising tail above both averages."""
        closes = [100.0 + 0.1 * abs(i - 29.5) for i in range(60)]

        result = analyzer.analyze(series_factory(closes))

        assert result.direction == TrendDirection.UPTREND
        assert result.strength >= 0.6

    def test_strength_is_max_of_signals(self, series_factory):
        config = TrendConfig(slope_strength_scale=100.0, adx_threshold=101.0)
        analyzer = TrendAnalyzer(config)
        closes = [100.0 + 0.005 * i for i in range(60)]

        result = analyzer.analyze(series_factory(closes))

        # regression alone gives 0.5, alignment gives 0.6
        assert result.direction == TrendDirection.UPTREND
        assert result.strength == pytest.approx(0.6)

    def test_strength_bounds(self, analyzer, wave_series):
        for end in range(20, len(wave_series) + 1, 10):
            result = analyzer.analyze(wave_series[:end])
            assert 0.0 <= result.strength <= 1.0


class TestADX:
    def test_flat_series_is_zero(self, analyzer, flat_series):
        assert analyzer.calculate_adx(flat_series) == 0.0

    def test_short_series_is_zero(self, analyzer, series_factory):
        assert analyzer.calculate_adx(series_factory([100.0 + i for i in range(14)])) == 0.0

    def test_one_sided_movement(self, analyzer, uptrend_series):
        assert analyzer.calculate_adx(uptrend_series) == pytest.approx(100.0)

    def test_bounds(self, analyzer, wave_series):
        adx = analyzer.calculate_adx(wave_series)

        assert 0.0 <= adx <= 100.0
