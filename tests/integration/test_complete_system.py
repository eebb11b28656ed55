"""
Integration tests for the complete analysis pipeline.

Runs raw records through series preparation, every analysis component and
report serialisation.
"""

import json

import pytest

from stockta.analysis.analyzer import StockAnalyzer
from stockta.analysis.patterns import CandlestickPatternDetector
from stockta.core.models import (
    EffortResult,
    Recommendation,
    TrendDirection,
    WyckoffEventName,
    WyckoffPhase,
)
from stockta.utils.data_helpers import prepare_series

pytestmark = pytest.mark.integration


@pytest.fixture
def analyzer():
    return StockAnalyzer()


class TestScenarios:
    """Reference scenarios."""

    def test_flat_series(self, analyzer, flat_series, as_of):
        report = analyzer.analyze(flat_series, as_of=as_of)
        detector = CandlestickPatternDetector()

        assert report.patterns == []
        assert report.timeframe_patterns.weekly == []
        assert not any(detector.is_doji(bar) for bar in flat_series)
        assert report.indicators.sma_20 == pytest.approx(100.0)
        assert report.indicators.sma_50 == pytest.approx(100.0)
        # zero losses: documented edge case
        assert report.indicators.rsi == 100.0
        assert report.trend.direction == TrendDirection.SIDEWAYS
        assert report.trend.strength == 0.0
        assert report.wyckoff.phase == WyckoffPhase.UNKNOWN
        assert report.support_resistance.support_levels == []
        assert report.support_resistance.resistance_levels == []

    def test_steady_uptrend(self, analyzer, uptrend_series, as_of):
        report = analyzer.analyze(uptrend_series, as_of=as_of)
        indicators = report.indicators

        assert report.current_price == 349.0
        assert report.trend.direction == TrendDirection.UPTREND
        assert report.trend.strength == pytest.approx(1.0)
        assert indicators.sma_20 > indicators.sma_50 > indicators.sma_200
        assert indicators.rsi == 100.0
        assert indicators.macd > 0

        assert report.wyckoff.phase == WyckoffPhase.MARKUP
        # springs below the recent range low, three accumulation events
        assert report.wyckoff.phase_confidence == pytest.approx(0.85)
        assert {event.name for event in report.wyckoff.events} == {WyckoffEventName.SPRING}
        assert report.wyckoff.effort_result == EffortResult.DIVERGING

        # no resistance overhead and a strong uptrend stretch the sell target
        assert report.sell_range.min == pytest.approx(349.0 * 1.05)
        assert report.sell_range.max == pytest.approx(349.0 * 1.15 * 1.1)

    def test_selling_climax(self, analyzer, selling_climax_series, as_of):
        report = analyzer.analyze(selling_climax_series, as_of=as_of)

        climaxes = [
            event for event in report.wyckoff.events
            if event.name == WyckoffEventName.SELLING_CLIMAX
        ]
        assert len(climaxes) == 1
        assert climaxes[0].confidence >= 0.8
        assert climaxes[0].date == selling_climax_series[30].date


class TestProperties:
    """Invariants that hold for any series."""

    def test_invariants_on_prefixes(self, analyzer, wave_series, as_of):
        for end in range(1, len(wave_series) + 1, 7):
            data = wave_series[:end]
            report = analyzer.analyze(data, as_of=as_of)
            price = report.current_price

            assert 0.0 <= report.indicators.rsi <= 100.0
            assert report.indicators.bollinger_upper >= report.indicators.bollinger_mid
            assert report.indicators.bollinger_mid >= report.indicators.bollinger_lower
            assert all(level < price for level in report.support_resistance.support_levels)
            assert all(level > price for level in report.support_resistance.resistance_levels)
            assert -1.0 <= report.recommendation_score <= 1.0
            assert -1.0 <= report.wyckoff.recommendation_score <= 1.0

            if end < 3:
                assert report.patterns == []
            if end < 15:
                assert report.indicators.rsi == 50.0
            if end < 20:
                assert report.trend.direction == TrendDirection.SIDEWAYS
            if end < 30:
                assert report.wyckoff.phase == WyckoffPhase.INSUFFICIENT_DATA

            if report.recommendation == Recommendation.BUY:
                assert report.recommendation_score > 0.3
            elif report.recommendation == Recommendation.SELL:
                assert report.recommendation_score < -0.3
            else:
                assert -0.3 <= report.recommendation_score <= 0.3

            if report.wyckoff.recommendation == Recommendation.BUY:
                assert report.wyckoff.recommendation_score > 0.4

    def test_idempotent(self, wave_series, as_of):
        def clock():
            return as_of

        first = StockAnalyzer(clock=clock).analyze(wave_series)
        second = StockAnalyzer(clock=clock).analyze(wave_series)

        assert first.to_json() == second.to_json()

    def test_does_not_mutate_input(self, analyzer, wave_series, as_of):
        snapshot = [bar.model_copy() for bar in wave_series]

        analyzer.analyze(wave_series, as_of=as_of)

        assert wave_series == snapshot


class TestPipeline:
    """Raw records to serialised report."""

    def test_records_to_json(self, analyzer, wave_series, as_of):
        records = [
            {
                "date": bar.date.strftime("%Y-%m-%d"),
                "open": str(bar.open),
                "high": bar.high,
                "low": bar.low,
                "close": bar.close,
                "volume": bar.volume,
            }
            for bar in reversed(wave_series)
        ]
        records.append({"date": "2024-02-30", "open": 1, "high": 1, "low": 1, "close": 1})

        series = prepare_series(records, symbol="WAVE")
        report = analyzer.analyze(series, company_name="Wave Inc", as_of=as_of)
        payload = json.loads(report.to_json())

        assert len(series) == len(wave_series)
        assert payload["symbol"] == "WAVE"
        assert payload["company_name"] == "Wave Inc"
        assert payload["current_price"] == pytest.approx(wave_series[-1].close)
        assert set(payload["wyckoff"]) >= {
            "phase",
            "phase_confidence",
            "events",
            "trading_range",
            "effort_result",
            "recommendation",
            "recommendation_score",
            "buy_zone",
            "accumulation_zone",
            "distribution_zone",
            "sell_zone",
        }
        assert set(payload["timeframe_patterns"]) == {"daily", "weekly", "monthly"}
        for pattern in payload["patterns"]:
            assert set(pattern) == {"name", "type", "confidence"}
