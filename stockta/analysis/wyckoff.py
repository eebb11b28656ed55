"""
Wyckoff method analysis for StockTA.

Detects the consolidation trading range, structural events (climaxes,
springs, upthrusts, signs of strength and weakness), the current market
phase and the effort-versus-result relationship, and derives a
Wyckoff-only recommendation with trading zones.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Callable, List, Optional, Tuple

import numpy as np
import structlog

from stockta.core.models import (
    Bar,
    EffortResult,
    PriceRange,
    Recommendation,
    WyckoffConfig,
    WyckoffEvent,
    WyckoffEventName,
    WyckoffEventType,
    WyckoffPhase,
    WyckoffResult,
)
from stockta.utils.data_helpers import highs, lows, volumes

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class BarMetrics:
    """Volume and spread measurements of one candidate bar."""

    volume_ratio: float
    range_ratio: float
    close_position: float


class WyckoffAnalyzer:
    """
    Wyckoff method analyzer.

    Analysis Steps:
    1. Trading range from averaged swing highs and lows
    2. Event scan over every bar with enough context on both sides
    3. Phase from trend, price position and event balance
    4. Effort versus result over the last bars
    5. Weighted recommendation and trading zones
    """

    def __init__(self, config: Optional[WyckoffConfig] = None):
        """Initialize the analyzer and its event detectors."""
        self.config = config or WyckoffConfig()
        self.event_detectors: List[Callable[[List[Bar], int, PriceRange, float], Optional[WyckoffEvent]]] = [
            self._detect_selling_climax,
            self._detect_buying_climax,
            self._detect_spring,
            self._detect_upthrust,
            self._detect_sign_of_strength,
            self._detect_sign_of_weakness,
        ]
        logger.debug("WyckoffAnalyzer initialized", detectors=len(self.event_detectors))

    def analyze(self, data: List[Bar]) -> WyckoffResult:
        """
        Run the complete Wyckoff analysis.

        Args:
            data: Series of bars

        Returns:
            WyckoffResult; ``insufficient_data`` with zeroed fields on short series
        """
        if len(data) < self.config.min_bars:
            return WyckoffResult.insufficient()

        trading_range = self.detect_trading_range(data)
        events = self.detect_events(data, trading_range)
        phase, phase_confidence = self.determine_phase(data, events, trading_range)
        effort_result = self.analyze_effort_vs_result(data)
        recommendation, score = self.generate_recommendation(
            data, phase, phase_confidence, events, trading_range, effort_result
        )
        buy_zone, accumulation_zone, distribution_zone, sell_zone = self.calculate_zones(
            data, trading_range, events
        )

        result = WyckoffResult(
            phase=phase,
            phase_confidence=phase_confidence,
            events=events,
            trading_range=trading_range,
            effort_result=effort_result,
            recommendation=recommendation,
            recommendation_score=score,
            buy_zone=buy_zone,
            accumulation_zone=accumulation_zone,
            distribution_zone=distribution_zone,
            sell_zone=sell_zone,
        )

        logger.debug(
            "Wyckoff analysis completed",
            phase=result.phase.value,
            phase_confidence=result.phase_confidence,
            events=len(result.events),
            effort_result=result.effort_result.value,
            recommendation=result.recommendation.value,
        )
        return result

    # ------------------------------------------------------------------
    # Trading range
    # ------------------------------------------------------------------

    def detect_trading_range(self, data: List[Bar]) -> PriceRange:
        """
        Detect the consolidation range over the recent bars.

        The upper bound is the mean of strict swing highs (or the highest high
        when there are none); the lower bound is the mean of strict swing lows
        (or the lowest low).
        """
        recent = data[-min(self.config.range_lookback, len(data)):]
        high_values = highs(recent)
        low_values = lows(recent)
        window = self.config.swing_window

        swing_highs = []
        swing_lows = []
        for i in range(window, len(recent) - window):
            neighbours = np.r_[i - window:i, i + 1:i + window + 1]
            if high_values[i] > high_values[neighbours].max():
                swing_highs.append(high_values[i])
            if low_values[i] < low_values[neighbours].min():
                swing_lows.append(low_values[i])

        range_high = float(np.mean(swing_highs)) if swing_highs else float(high_values.max())
        range_low = float(np.mean(swing_lows)) if swing_lows else float(low_values.min())

        return PriceRange.from_bounds(range_low, range_high)

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------

    def detect_events(self, data: List[Bar], trading_range: PriceRange) -> List[WyckoffEvent]:
        """Scan the series for Wyckoff events, in bar order."""
        average_volume = self.average_volume(data)
        events = []

        for i in range(self.config.scan_start, len(data) - self.config.scan_end_offset):
            for detector in self.event_detectors:
                event = detector(data, i, trading_range, average_volume)
                if event is not None:
                    events.append(event)

        return events

    def average_volume(self, data: List[Bar]) -> float:
        """Mean volume of the last ``volume_lookback`` bars."""
        lookback = min(self.config.volume_lookback, len(data))
        return float(volumes(data[-lookback:]).mean())

    def average_range(self, data: List[Bar], index: int) -> float:
        """Mean high-low range of the bars preceding ``index`` (1 when none)."""
        start = max(0, index - self.config.range_average_lookback)
        if index == start:
            return 1.0
        window = data[start:index]
        return float(np.mean([bar.total_range for bar in window]))

    def _bar_metrics(self, data: List[Bar], index: int, average_volume: float) -> BarMetrics:
        bar = data[index]
        average_range = self.average_range(data, index)
        price_range = bar.total_range

        return BarMetrics(
            volume_ratio=bar.volume / average_volume if average_volume > 0 else 0.0,
            range_ratio=price_range / average_range if average_range > 0 else 0.0,
            close_position=(bar.close - bar.low) / price_range if price_range > 0 else 0.5,
        )

    def _confidence(self, metrics: BarMetrics, base: float) -> float:
        boost = 0.0
        if metrics.volume_ratio > self.config.confidence_volume_boost_ratio:
            boost += self.config.confidence_volume_boost
        if metrics.range_ratio > self.config.confidence_range_boost_ratio:
            boost += self.config.confidence_range_boost
        return min(base + boost, self.config.max_confidence)

    @staticmethod
    def _event(
        name: WyckoffEventName, event_type: WyckoffEventType, bar: Bar, confidence: float
    ) -> WyckoffEvent:
        return WyckoffEvent(
            name=name,
            event_type=event_type,
            date=bar.date,
            price=bar.close,
            volume=bar.volume,
            confidence=confidence,
        )

    def _detect_selling_climax(
        self, data: List[Bar], i: int, trading_range: PriceRange, average_volume: float
    ) -> Optional[WyckoffEvent]:
        """Panic selling: huge volume, wide spread, close near the low, then a bounce."""
        cfg = self.config
        bar = data[i]
        metrics = self._bar_metrics(data, i, average_volume)

        near_support = bar.low <= trading_range.min * (1 + cfg.boundary_tolerance)
        reversal = data[i + 1].close > bar.close
        prior_downtrend = data[i - 1].close < data[max(0, i - cfg.trend_context_lookback)].close

        if (
            metrics.volume_ratio > cfg.climax_volume_ratio
            and metrics.range_ratio > cfg.climax_range_ratio
            and metrics.close_position < cfg.close_position_band
            and near_support
            and reversal
            and prior_downtrend
        ):
            return self._event(
                WyckoffEventName.SELLING_CLIMAX,
                WyckoffEventType.ACCUMULATION,
                bar,
                self._confidence(metrics, cfg.climax_base_confidence),
            )
        return None

    def _detect_buying_climax(
        self, data: List[Bar], i: int, trading_range: PriceRange, average_volume: float
    ) -> Optional[WyckoffEvent]:
        """Euphoric buying: huge volume, wide spread, close near the high, then a drop."""
        cfg = self.config
        bar = data[i]
        metrics = self._bar_metrics(data, i, average_volume)

        near_resistance = bar.high >= trading_range.max * (1 - cfg.boundary_tolerance)
        reversal = data[i + 1].close < bar.close
        prior_uptrend = data[i - 1].close > data[max(0, i - cfg.trend_context_lookback)].close

        if (
            metrics.volume_ratio > cfg.climax_volume_ratio
            and metrics.range_ratio > cfg.climax_range_ratio
            and metrics.close_position > 1 - cfg.close_position_band
            and near_resistance
            and reversal
            and prior_uptrend
        ):
            return self._event(
                WyckoffEventName.BUYING_CLIMAX,
                WyckoffEventType.DISTRIBUTION,
                bar,
                self._confidence(metrics, cfg.climax_base_confidence),
            )
        return None

    def _spring_confidence(self, bar: Bar, average_volume: float) -> float:
        volume_ratio = bar.volume / average_volume if average_volume > 0 else 0.0
        if volume_ratio > self.config.spring_volume_ratio:
            return self.config.spring_volume_confidence
        return self.config.spring_base_confidence

    def _detect_spring(
        self, data: List[Bar], i: int, trading_range: PriceRange, average_volume: float
    ) -> Optional[WyckoffEvent]:
        """Shallow false breakdown below support that closes back and reverses up."""
        cfg = self.config
        bar = data[i]
        following = data[i + 1]
        support = trading_range.min

        if support > 0 and (support - bar.low) / support > cfg.spring_max_penetration:
            return None

        broke_support = bar.low < support
        closed_back = bar.close > support * (1 - cfg.spring_close_tolerance)
        reversed_up = following.close > bar.close and following.close > bar.open

        if broke_support and closed_back and reversed_up:
            return self._event(
                WyckoffEventName.SPRING,
                WyckoffEventType.ACCUMULATION,
                bar,
                self._spring_confidence(bar, average_volume),
            )
        return None

    def _detect_upthrust(
        self, data: List[Bar], i: int, trading_range: PriceRange, average_volume: float
    ) -> Optional[WyckoffEvent]:
        """Shallow false breakout above resistance that closes back and reverses down."""
        cfg = self.config
        bar = data[i]
        following = data[i + 1]
        resistance = trading_range.max

        if resistance > 0 and (bar.high - resistance) / resistance > cfg.spring_max_penetration:
            return None

        broke_resistance = bar.high > resistance
        closed_back = bar.close < resistance * (1 + cfg.spring_close_tolerance)
        reversed_down = following.close < bar.close and following.close < bar.open

        if broke_resistance and closed_back and reversed_down:
            return self._event(
                WyckoffEventName.UPTHRUST,
                WyckoffEventType.DISTRIBUTION,
                bar,
                self._spring_confidence(bar, average_volume),
            )
        return None

    def _detect_sign_of_strength(
        self, data: List[Bar], i: int, trading_range: PriceRange, average_volume: float
    ) -> Optional[WyckoffEvent]:
        """Wide bullish bar on strong volume closing near the range top."""
        cfg = self.config
        bar = data[i]
        if bar.total_range == 0:
            return None
        metrics = self._bar_metrics(data, i, average_volume)

        if (
            bar.is_bullish
            and metrics.close_position > 1 - cfg.close_position_band
            and metrics.volume_ratio > cfg.sign_volume_ratio
            and metrics.range_ratio > cfg.sign_range_ratio
            and bar.close > trading_range.max * (1 - cfg.boundary_tolerance)
        ):
            return self._event(
                WyckoffEventName.SIGN_OF_STRENGTH,
                WyckoffEventType.ACCUMULATION,
                bar,
                self._confidence(metrics, cfg.sign_base_confidence),
            )
        return None

    def _detect_sign_of_weakness(
        self, data: List[Bar], i: int, trading_range: PriceRange, average_volume: float
    ) -> Optional[WyckoffEvent]:
        """Wide bearish bar on strong volume closing near the range bottom."""
        cfg = self.config
        bar = data[i]
        if bar.total_range == 0:
            return None
        metrics = self._bar_metrics(data, i, average_volume)

        if (
            bar.is_bearish
            and metrics.close_position < cfg.close_position_band
            and metrics.volume_ratio > cfg.sign_volume_ratio
            and metrics.range_ratio > cfg.sign_range_ratio
            and bar.close < trading_range.min * (1 + cfg.boundary_tolerance)
        ):
            return self._event(
                WyckoffEventName.SIGN_OF_WEAKNESS,
                WyckoffEventType.DISTRIBUTION,
                bar,
                self._confidence(metrics, cfg.sign_base_confidence),
            )
        return None

    # ------------------------------------------------------------------
    # Phase
    # ------------------------------------------------------------------

    def determine_phase(
        self, data: List[Bar], events: List[WyckoffEvent], trading_range: PriceRange
    ) -> Tuple[WyckoffPhase, float]:
        """
        Determine the current phase and its confidence.

        Rules, first match wins:
        - Trending beyond the threshold with price in the outer band of the
          range on the trend side: markup / markdown
        - One event side dominates with price in the matching half:
          accumulation / distribution
        - No trend: distribution in the upper half, accumulation in the lower
        - Otherwise unknown
        """
        cfg = self.config
        if trading_range.size == 0:
            return WyckoffPhase.UNKNOWN, cfg.unknown_phase_confidence

        accumulation_events = sum(
            1 for event in events if event.event_type == WyckoffEventType.ACCUMULATION
        )
        distribution_events = sum(
            1 for event in events if event.event_type == WyckoffEventType.DISTRIBUTION
        )

        current_price = data[-1].close
        position = (current_price - trading_range.min) / trading_range.size

        window = data[-min(cfg.phase_trend_window, len(data)):]
        price_change = (window[-1].close - window[0].close) / window[0].close
        uptrending = price_change > cfg.phase_trend_threshold
        downtrending = price_change < -cfg.phase_trend_threshold

        if uptrending and position > 1 - cfg.phase_outer_band:
            confidence = cfg.trend_phase_base_confidence + accumulation_events * cfg.trend_phase_event_step
            return WyckoffPhase.MARKUP, min(confidence, cfg.max_confidence)

        if downtrending and position < cfg.phase_outer_band:
            confidence = cfg.trend_phase_base_confidence + distribution_events * cfg.trend_phase_event_step
            return WyckoffPhase.MARKDOWN, min(confidence, cfg.max_confidence)

        if accumulation_events > distribution_events and position < 0.5:
            confidence = cfg.event_phase_base_confidence + accumulation_events * cfg.event_phase_event_step
            return WyckoffPhase.ACCUMULATION, min(confidence, cfg.max_confidence)

        if distribution_events > accumulation_events and position > 0.5:
            confidence = cfg.event_phase_base_confidence + distribution_events * cfg.event_phase_event_step
            return WyckoffPhase.DISTRIBUTION, min(confidence, cfg.max_confidence)

        if not uptrending and not downtrending:
            if position > 0.5:
                return WyckoffPhase.DISTRIBUTION, cfg.range_phase_confidence
            return WyckoffPhase.ACCUMULATION, cfg.range_phase_confidence

        return WyckoffPhase.UNKNOWN, cfg.unknown_phase_confidence

    # ------------------------------------------------------------------
    # Effort vs result
    # ------------------------------------------------------------------

    def analyze_effort_vs_result(self, data: List[Bar]) -> EffortResult:
        """
        Compare volume growth (effort) with the normalized price move (result).

        Rising volume with a small move, or falling volume with a large move,
        is a divergence; the other two combinations confirm.
        """
        window = self.config.effort_window
        if len(data) < window:
            return EffortResult.UNKNOWN

        recent = data[-window:]
        half = window // 2
        first_half_volume = sum(bar.volume for bar in recent[:half])
        second_half_volume = sum(bar.volume for bar in recent[half:2 * half])
        volume_increasing = second_half_volume > first_half_volume

        average_range = self.average_range(data, len(data) - 1)
        price_change = abs(recent[-1].close - recent[0].close)
        normalized_move = price_change / average_range if average_range > 0 else 0.0
        large_move = normalized_move >= self.config.effort_threshold

        if volume_increasing != large_move:
            return EffortResult.DIVERGING
        return EffortResult.CONFIRMING

    # ------------------------------------------------------------------
    # Recommendation and zones
    # ------------------------------------------------------------------

    def _recent_events(self, data: List[Bar], events: List[WyckoffEvent]) -> List[WyckoffEvent]:
        if len(data) < self.config.recent_bars:
            return []
        cutoff: datetime = data[-self.config.recent_bars].date
        return [event for event in events if event.date >= cutoff]

    def generate_recommendation(
        self,
        data: List[Bar],
        phase: WyckoffPhase,
        phase_confidence: float,
        events: List[WyckoffEvent],
        trading_range: PriceRange,
        effort_result: EffortResult,
    ) -> Tuple[Recommendation, float]:
        """
        Score the Wyckoff signals into a recommendation.

        Score terms: phase weight times confidence, position inside the range,
        recent events weighted by confidence and the effort/result reading.
        The sum is normalized into [-1, 1].
        """
        cfg = self.config
        if not data or phase in (WyckoffPhase.UNKNOWN, WyckoffPhase.INSUFFICIENT_DATA):
            return Recommendation.HOLD, 0.0

        current_price = data[-1].close
        score = cfg.phase_weights.get(phase, 0.0) * phase_confidence

        if trading_range.size > 0:
            position = (current_price - trading_range.min) / trading_range.size
            if position < cfg.range_position_band:
                score += cfg.range_position_weight
            elif position > 1 - cfg.range_position_band:
                score -= cfg.range_position_weight

        for event in self._recent_events(data, events):
            score += cfg.event_weights.get(event.name, 0.0) * event.confidence

        if effort_result == EffortResult.DIVERGING:
            if len(data) >= cfg.recent_bars:
                recent_uptrend = current_price > data[-cfg.recent_bars].close
                score += -cfg.divergence_weight if recent_uptrend else cfg.divergence_weight
        elif effort_result == EffortResult.CONFIRMING:
            score += cfg.confirming_weight

        normalized = max(-1.0, min(1.0, score / cfg.score_normalizer))

        if normalized > cfg.action_threshold:
            return Recommendation.BUY, normalized
        if normalized < -cfg.action_threshold:
            return Recommendation.SELL, normalized
        return Recommendation.HOLD, normalized

    def calculate_zones(
        self, data: List[Bar], trading_range: PriceRange, events: List[WyckoffEvent]
    ) -> Tuple[PriceRange, PriceRange, PriceRange, PriceRange]:
        """
        Partition the trading range into buy, accumulation, distribution and sell zones.

        Recent springs and upthrusts push the outer zone edge beyond the event
        price; recent climaxes widen the buy or sell zone toward the middle.
        """
        cfg = self.config
        low, high = trading_range.min, trading_range.max
        size = trading_range.size

        buy_min, buy_max = low - size * cfg.zone_buffer, low + size * cfg.zone_edge
        sell_min, sell_max = high - size * cfg.zone_edge, high + size * cfg.zone_buffer

        for event in self._recent_events(data, events):
            if event.name == WyckoffEventName.SPRING:
                buy_min = min(buy_min, event.price * (1 - cfg.event_price_buffer))
            elif event.name == WyckoffEventName.UPTHRUST:
                sell_max = max(sell_max, event.price * (1 + cfg.event_price_buffer))
            elif event.name == WyckoffEventName.SELLING_CLIMAX:
                buy_max += size * cfg.climax_zone_expansion
            elif event.name == WyckoffEventName.BUYING_CLIMAX:
                sell_min -= size * cfg.climax_zone_expansion

        return (
            PriceRange.from_bounds(buy_min, buy_max),
            PriceRange.from_bounds(low + size * cfg.zone_edge, low + size * cfg.zone_inner),
            PriceRange.from_bounds(high - size * cfg.zone_inner, high - size * cfg.zone_edge),
            PriceRange.from_bounds(sell_min, sell_max),
        )
