"""
Stock analyzer for StockTA.

Runs every analysis component against the same price series and
synthesizes their outputs into a single report with a composite
recommendation and suggested price ranges.
"""

from datetime import datetime, timezone
from typing import Callable, List, Optional, Tuple

import structlog

from stockta.analysis.indicators import TechnicalIndicators
from stockta.analysis.patterns import CandlestickPatternDetector
from stockta.analysis.support_resistance import SupportResistanceDetector
from stockta.analysis.trend import TrendAnalyzer
from stockta.analysis.wyckoff import WyckoffAnalyzer
from stockta.core.config import Settings
from stockta.core.exceptions import EmptySeriesError
from stockta.core.models import (
    AnalysisConfig,
    AnalysisReport,
    Bar,
    EffortResult,
    IndicatorSet,
    PatternMatch,
    PatternPolarity,
    PriceRange,
    Recommendation,
    RecommendationConfig,
    SupportResistance,
    TrendDirection,
    TrendResult,
    WyckoffEventType,
    WyckoffResult,
)
from stockta.utils.logging import log_performance

logger = structlog.get_logger(__name__)


def utc_now() -> datetime:
    """Default clock for report timestamps."""
    return datetime.now(timezone.utc)


class StockAnalyzer:
    """
    Analysis engine and recommendation synthesizer.

    Every component is a deterministic function of the input series; the
    only other input is the analysis instant, which is either passed to
    ``analyze`` or read from the injected clock.
    """

    def __init__(
        self,
        config: Optional[AnalysisConfig] = None,
        clock: Optional[Callable[[], datetime]] = None,
        price_history_limit: int = 0,
    ):
        """
        Initialize the analyzer.

        Args:
            config: Component configuration bundle
            clock: Callable returning the analysis instant
            price_history_limit: Bars echoed into the report (0 echoes all)
        """
        self.config = config or AnalysisConfig()
        self.clock = clock or utc_now
        self.price_history_limit = price_history_limit

        self.indicators = TechnicalIndicators(self.config.indicators)
        self.patterns = CandlestickPatternDetector(self.config.patterns)
        self.levels = SupportResistanceDetector(self.config.support_resistance)
        self.trend = TrendAnalyzer(self.config.trend)
        self.wyckoff = WyckoffAnalyzer(self.config.wyckoff)

        logger.debug(
            "StockAnalyzer initialized",
            include_wyckoff=self.config.recommendation.include_wyckoff,
            multi_timeframe_patterns=self.config.multi_timeframe_patterns,
        )

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        clock: Optional[Callable[[], datetime]] = None,
        include_wyckoff: Optional[bool] = None,
    ) -> "StockAnalyzer":
        """Build an analyzer whose defaults follow the application settings."""
        if include_wyckoff is None:
            include_wyckoff = settings.include_wyckoff
        config = AnalysisConfig(
            recommendation=RecommendationConfig(include_wyckoff=include_wyckoff),
            multi_timeframe_patterns=settings.multi_timeframe_patterns,
        )
        return cls(config=config, clock=clock, price_history_limit=settings.price_history_limit)

    @log_performance
    def analyze(
        self,
        data: List[Bar],
        symbol: Optional[str] = None,
        company_name: Optional[str] = None,
        as_of: Optional[datetime] = None,
    ) -> AnalysisReport:
        """
        Analyze a price series.

        Args:
            data: Ascending series of bars
            symbol: Symbol for the report (defaults to the bars' symbol)
            company_name: Display name (defaults to the symbol)
            as_of: Analysis instant stamped on the report

        Returns:
            Complete AnalysisReport

        Raises:
            EmptySeriesError: If the series has no bars
        """
        if not data:
            raise EmptySeriesError(
                "Cannot analyze an empty price series",
                error_code="EMPTY_SERIES",
                details={"symbol": symbol},
            )

        symbol = symbol or data[-1].symbol
        current_price = data[-1].close
        self._check_integrity(data, symbol)

        logger.debug("Starting analysis", symbol=symbol, data_points=len(data))

        indicators = self.indicators.calculate_all(data)
        timeframe_patterns = self.patterns.detect_all_timeframes(
            data, include_aggregates=self.config.multi_timeframe_patterns
        )
        support_resistance = self.levels.detect(data)
        trend = self.trend.analyze(data)
        wyckoff = self.wyckoff.analyze(data)

        recommendation, score = self.generate_recommendation(
            current_price,
            indicators,
            timeframe_patterns.daily,
            support_resistance,
            trend,
            wyckoff,
        )
        buy_range, half_buy_range, sell_range = self.calculate_price_ranges(
            current_price, indicators, support_resistance, trend
        )

        history = data
        if self.price_history_limit:
            history = data[-self.price_history_limit:]

        report = AnalysisReport(
            symbol=symbol,
            company_name=company_name or symbol,
            date=as_of or self.clock(),
            current_price=current_price,
            indicators=indicators,
            patterns=timeframe_patterns.daily,
            timeframe_patterns=timeframe_patterns,
            support_resistance=support_resistance,
            trend=trend,
            wyckoff=wyckoff,
            buy_range=buy_range,
            half_buy_range=half_buy_range,
            sell_range=sell_range,
            recommendation=recommendation,
            recommendation_score=score,
            price_history=list(history),
        )

        logger.info(
            "Analysis completed",
            symbol=symbol,
            data_points=len(data),
            current_price=current_price,
            recommendation=report.recommendation.value,
            score=round(report.recommendation_score, 4),
            wyckoff_phase=report.wyckoff.phase.value,
        )
        return report

    def _check_integrity(self, data: List[Bar], symbol: str) -> None:
        inconsistent = sum(
            1
            for bar in data
            if bar.high < max(bar.open, bar.close) or bar.low > min(bar.open, bar.close)
        )
        if inconsistent:
            logger.warning(
                "Bars with high/low outside the open/close body",
                symbol=symbol,
                count=inconsistent,
            )

    # ------------------------------------------------------------------
    # Recommendation
    # ------------------------------------------------------------------

    def generate_recommendation(
        self,
        current_price: float,
        indicators: IndicatorSet,
        patterns: List[PatternMatch],
        support_resistance: SupportResistance,
        trend: TrendResult,
        wyckoff: WyckoffResult,
    ) -> Tuple[Recommendation, float]:
        """
        Combine all signals into a normalized score and label.

        Each term returns a signed contribution; their sum is divided by the
        normalizer and clamped to [-1, 1].
        """
        cfg = self.config.recommendation

        terms = [
            self._rsi_score(indicators),
            self._macd_score(indicators),
            self._ma_alignment_score(current_price, indicators),
            self._bollinger_score(current_price, indicators),
            self._pattern_score(patterns),
            self._trend_score(trend),
            self._level_score(current_price, support_resistance),
        ]
        if cfg.include_wyckoff:
            terms.append(self._wyckoff_score(wyckoff, trend))

        score = sum(terms)
        normalized = max(-1.0, min(1.0, score / cfg.score_normalizer))

        logger.debug("Recommendation terms", terms=[round(term, 4) for term in terms])

        if normalized > cfg.action_threshold:
            return Recommendation.BUY, normalized
        if normalized < -cfg.action_threshold:
            return Recommendation.SELL, normalized
        return Recommendation.HOLD, normalized

    def _rsi_score(self, indicators: IndicatorSet) -> float:
        cfg = self.config.recommendation
        rsi = indicators.rsi
        if rsi < cfg.rsi_oversold:
            return cfg.rsi_strong_weight
        if rsi < cfg.rsi_weak_oversold:
            return cfg.rsi_weak_weight
        if rsi > cfg.rsi_overbought:
            return -cfg.rsi_strong_weight
        if rsi > cfg.rsi_weak_overbought:
            return -cfg.rsi_weak_weight
        return 0.0

    def _macd_score(self, indicators: IndicatorSet) -> float:
        weight = self.config.recommendation.macd_weight
        return weight if indicators.macd > indicators.macd_signal else -weight

    def _ma_alignment_score(self, price: float, indicators: IndicatorSet) -> float:
        weight = self.config.recommendation.ma_alignment_weight
        if price > indicators.sma_20 > indicators.sma_50:
            return weight
        if price < indicators.sma_20 < indicators.sma_50:
            return -weight
        return 0.0

    def _bollinger_score(self, price: float, indicators: IndicatorSet) -> float:
        weight = self.config.recommendation.bollinger_weight
        if price < indicators.bollinger_lower:
            return weight
        if price > indicators.bollinger_upper:
            return -weight
        return 0.0

    @staticmethod
    def _pattern_score(patterns: List[PatternMatch]) -> float:
        score = 0.0
        for pattern in patterns:
            if pattern.polarity == PatternPolarity.BULLISH:
                score += pattern.confidence
            elif pattern.polarity == PatternPolarity.BEARISH:
                score -= pattern.confidence
        return score

    def _trend_score(self, trend: TrendResult) -> float:
        weight = self.config.recommendation.trend_weight
        if trend.direction == TrendDirection.UPTREND:
            return trend.strength * weight
        if trend.direction == TrendDirection.DOWNTREND:
            return -trend.strength * weight
        return 0.0

    def _level_score(self, price: float, support_resistance: SupportResistance) -> float:
        cfg = self.config.recommendation
        score = 0.0

        support = support_resistance.nearest_support
        if support is not None and (price - support) / price < cfg.level_proximity:
            score += cfg.level_weight

        resistance = support_resistance.nearest_resistance
        if resistance is not None and (resistance - price) / price < cfg.level_proximity:
            score -= cfg.level_weight

        return score

    def _wyckoff_score(self, wyckoff: WyckoffResult, trend: TrendResult) -> float:
        cfg = self.config.recommendation

        score = cfg.wyckoff_phase_weights.get(wyckoff.phase, 0.0) * wyckoff.phase_confidence

        for event in wyckoff.events:
            if event.event_type == WyckoffEventType.ACCUMULATION:
                score += cfg.wyckoff_event_weight * event.confidence
            else:
                score -= cfg.wyckoff_event_weight * event.confidence

        if wyckoff.effort_result == EffortResult.DIVERGING:
            if trend.direction == TrendDirection.UPTREND:
                score -= cfg.effort_divergence_weight
            elif trend.direction == TrendDirection.DOWNTREND:
                score += cfg.effort_divergence_weight

        return score

    # ------------------------------------------------------------------
    # Price ranges
    # ------------------------------------------------------------------

    def calculate_price_ranges(
        self,
        current_price: float,
        indicators: IndicatorSet,
        support_resistance: SupportResistance,
        trend: TrendResult,
    ) -> Tuple[PriceRange, PriceRange, PriceRange]:
        """
        Suggest buy, half-position buy and sell ranges.

        Returns:
            Tuple of (buy_range, half_buy_range, sell_range)
        """
        cfg = self.config.recommendation
        supports = support_resistance.support_levels
        resistances = support_resistance.resistance_levels

        if supports:
            buy_min = supports[0]
        elif indicators.bollinger_lower > 0:
            buy_min = min(indicators.bollinger_lower, current_price * cfg.buy_fallback_ratio)
        else:
            buy_min = current_price * cfg.buy_fallback_ratio

        if len(supports) > 1:
            buy_max = supports[0]
        else:
            buy_max = current_price * cfg.buy_ceiling_ratio

        if resistances:
            sell_min = resistances[0]
            if len(resistances) > 1:
                sell_max = resistances[1]
            else:
                sell_max = sell_min * cfg.single_resistance_extension
        else:
            sell_min = current_price * cfg.sell_default_min_ratio
            sell_max = current_price * cfg.sell_default_max_ratio

        strong_trend = trend.strength > cfg.strong_trend_strength
        if strong_trend and trend.direction == TrendDirection.UPTREND:
            sell_max *= cfg.uptrend_sell_extension
        elif strong_trend and trend.direction == TrendDirection.DOWNTREND:
            sell_min *= cfg.downtrend_sell_discount
            sell_max *= cfg.downtrend_sell_discount

        return (
            PriceRange.from_bounds(buy_min, buy_max),
            PriceRange.from_bounds(buy_max, current_price),
            PriceRange.from_bounds(sell_min, sell_max),
        )
