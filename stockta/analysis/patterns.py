"""
Candlestick pattern detection for StockTA.

Matches single, two and three candle patterns on the most recent bars of a
series. Patterns are expressed as an ordered rule table: rules inside a
group are mutually exclusive (the first match wins), separate groups are
evaluated independently so several patterns can fire on the same bars.
"""

from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence, Tuple

import structlog

from stockta.core.constants import AnalysisConstants, TimeframeConstants
from stockta.core.models import (
    Bar,
    PatternConfig,
    PatternMatch,
    PatternName,
    PatternPolarity,
    TimeframePatterns,
)
from stockta.utils.data_helpers import aggregate_bars

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class PatternRule:
    """A named pattern predicate evaluated against the whole series."""

    name: PatternName
    polarity: PatternPolarity
    predicate: Callable[[List[Bar]], bool]


class CandlestickPatternDetector:
    """
    Candlestick pattern detector.

    Single candle shapes are judged from body size, shadow lengths and total
    range. Every ratio test returns False on a zero range or zero body so no
    division by zero can occur.
    """

    def __init__(self, config: Optional[PatternConfig] = None):
        """Initialize the detector and build its rule table."""
        self.config = config or PatternConfig()
        self.rule_groups = self._build_rule_groups()
        logger.debug(
            "CandlestickPatternDetector initialized",
            groups=len(self.rule_groups),
            rules=sum(len(group) for group in self.rule_groups),
        )

    def _build_rule_groups(self) -> List[Tuple[PatternRule, ...]]:
        bullish = PatternPolarity.BULLISH
        bearish = PatternPolarity.BEARISH
        neutral = PatternPolarity.NEUTRAL

        def last(check):
            return lambda s: check(s[-1])

        def pair(check):
            return lambda s: check(s[-2], s[-1])

        def triple(check):
            return lambda s: check(s[-3], s[-2], s[-1])

        return [
            # Single candle
            (
                PatternRule(PatternName.DRAGONFLY_DOJI, bullish, last(self.is_dragonfly_doji)),
                PatternRule(PatternName.GRAVESTONE_DOJI, bearish, last(self.is_gravestone_doji)),
                PatternRule(PatternName.DOJI, neutral, last(self.is_doji)),
            ),
            (PatternRule(PatternName.SPINNING_TOP, neutral, last(self.is_spinning_top)),),
            (PatternRule(PatternName.BULLISH_MARUBOZU, bullish, last(self.is_bullish_marubozu)),),
            (PatternRule(PatternName.BEARISH_MARUBOZU, bearish, last(self.is_bearish_marubozu)),),
            (
                PatternRule(PatternName.HANGING_MAN, bearish, self.is_hanging_man),
                PatternRule(PatternName.HAMMER, bullish, last(self.has_hammer_shape)),
            ),
            (
                PatternRule(PatternName.INVERTED_HAMMER, bullish, self.is_inverted_hammer),
                PatternRule(PatternName.SHOOTING_STAR, bearish, last(self.has_inverted_hammer_shape)),
            ),
            # Two candle
            (PatternRule(PatternName.BULLISH_ENGULFING, bullish, pair(self.is_bullish_engulfing)),),
            (PatternRule(PatternName.BEARISH_ENGULFING, bearish, pair(self.is_bearish_engulfing)),),
            (PatternRule(PatternName.PIERCING_LINE, bullish, pair(self.is_piercing_line)),),
            (PatternRule(PatternName.DARK_CLOUD_COVER, bearish, pair(self.is_dark_cloud_cover)),),
            (PatternRule(PatternName.BULLISH_HARAMI, bullish, pair(self.is_bullish_harami)),),
            (PatternRule(PatternName.BEARISH_HARAMI, bearish, pair(self.is_bearish_harami)),),
            (PatternRule(PatternName.TWEEZER_TOP, bearish, pair(self.is_tweezer_top)),),
            (PatternRule(PatternName.TWEEZER_BOTTOM, bullish, pair(self.is_tweezer_bottom)),),
            # Three candle
            (PatternRule(PatternName.MORNING_STAR, bullish, triple(self.is_morning_star)),),
            (PatternRule(PatternName.EVENING_STAR, bearish, triple(self.is_evening_star)),),
            (
                PatternRule(
                    PatternName.THREE_WHITE_SOLDIERS, bullish, triple(self.is_three_white_soldiers)
                ),
            ),
            (
                PatternRule(
                    PatternName.THREE_BLACK_CROWS, bearish, triple(self.is_three_black_crows)
                ),
            ),
            (PatternRule(PatternName.THREE_INSIDE_UP, bullish, triple(self.is_three_inside_up)),),
            (
                PatternRule(
                    PatternName.THREE_INSIDE_DOWN, bearish, triple(self.is_three_inside_down)
                ),
            ),
            (PatternRule(PatternName.THREE_OUTSIDE_UP, bullish, triple(self.is_three_outside_up)),),
            (
                PatternRule(
                    PatternName.THREE_OUTSIDE_DOWN, bearish, triple(self.is_three_outside_down)
                ),
            ),
        ]

    # ------------------------------------------------------------------
    # Detection
    # ------------------------------------------------------------------

    def detect(self, data: List[Bar]) -> List[PatternMatch]:
        """
        Detect all patterns on the latest bars of a series.

        Args:
            data: Series of bars

        Returns:
            Matched patterns in rule order; empty below three bars
        """
        if len(data) < AnalysisConstants.MIN_PATTERN_BARS:
            return []

        matches = []
        for group in self.rule_groups:
            rule = self._first_match(group, data)
            if rule is not None:
                matches.append(
                    PatternMatch(
                        name=rule.name,
                        polarity=rule.polarity,
                        confidence=self.config.confidences.get(rule.name, 0.0),
                    )
                )

        logger.debug(
            "Pattern detection completed",
            data_points=len(data),
            patterns=[match.name.value for match in matches],
        )
        return matches

    def detect_all_timeframes(
        self, data: List[Bar], include_aggregates: bool = True
    ) -> TimeframePatterns:
        """
        Detect patterns on daily bars and on weekly/monthly aggregates.

        Args:
            data: Ascending daily series
            include_aggregates: Also evaluate weekly and monthly bars

        Returns:
            TimeframePatterns with one list per timeframe
        """
        daily = self.detect(data)
        if not include_aggregates:
            return TimeframePatterns(daily=daily)

        return TimeframePatterns(
            daily=daily,
            weekly=self.detect(aggregate_bars(data, TimeframeConstants.WEEKLY)),
            monthly=self.detect(aggregate_bars(data, TimeframeConstants.MONTHLY)),
        )

    @staticmethod
    def _first_match(group: Sequence[PatternRule], data: List[Bar]) -> Optional[PatternRule]:
        for rule in group:
            if rule.predicate(data):
                return rule
        return None

    # ------------------------------------------------------------------
    # Trend context
    # ------------------------------------------------------------------

    def in_uptrend(self, data: List[Bar]) -> bool:
        """Close rose over the configured lookback."""
        lookback = self.config.trend_lookback
        if len(data) < lookback + 1:
            return False
        return data[-1].close > data[-lookback - 1].close

    def in_downtrend(self, data: List[Bar]) -> bool:
        """Close fell over the configured lookback."""
        lookback = self.config.trend_lookback
        if len(data) < lookback + 1:
            return False
        return data[-1].close < data[-lookback - 1].close

    # ------------------------------------------------------------------
    # Single candle patterns
    # ------------------------------------------------------------------

    def is_doji(self, bar: Bar) -> bool:
        if bar.total_range == 0:
            return False
        return bar.body_size / bar.total_range < self.config.doji_body_ratio

    def is_dragonfly_doji(self, bar: Bar) -> bool:
        """Tiny body at the top of a long lower shadow."""
        r = bar.total_range
        return (
            self.is_doji(bar)
            and bar.lower_shadow > r * self.config.doji_long_shadow_ratio
            and bar.upper_shadow < r * self.config.doji_short_shadow_ratio
        )

    def is_gravestone_doji(self, bar: Bar) -> bool:
        """Tiny body at the bottom of a long upper shadow."""
        r = bar.total_range
        return (
            self.is_doji(bar)
            and bar.upper_shadow > r * self.config.doji_long_shadow_ratio
            and bar.lower_shadow < r * self.config.doji_short_shadow_ratio
        )

    def is_spinning_top(self, bar: Bar) -> bool:
        """Small body with two roughly balanced shadows."""
        r = bar.total_range
        if r == 0:
            return False

        body = bar.body_size
        body_ratio = body / r
        small_body = (
            self.config.spinning_top_min_body_ratio
            < body_ratio
            < self.config.spinning_top_max_body_ratio
        )
        shadow_floor = body * self.config.spinning_top_shadow_body_ratio
        has_shadows = bar.upper_shadow > shadow_floor and bar.lower_shadow > shadow_floor
        balanced = abs(bar.upper_shadow - bar.lower_shadow) < r * self.config.spinning_top_shadow_balance

        return small_body and has_shadows and balanced

    def _is_marubozu(self, bar: Bar) -> bool:
        r = bar.total_range
        if r == 0:
            return False
        shadow_limit = r * self.config.marubozu_shadow_ratio
        return (
            bar.body_size / r > self.config.marubozu_body_ratio
            and bar.upper_shadow < shadow_limit
            and bar.lower_shadow < shadow_limit
        )

    def is_bullish_marubozu(self, bar: Bar) -> bool:
        return bar.is_bullish and self._is_marubozu(bar)

    def is_bearish_marubozu(self, bar: Bar) -> bool:
        return bar.is_bearish and self._is_marubozu(bar)

    def has_hammer_shape(self, bar: Bar) -> bool:
        """Long lower shadow, short upper shadow (Hammer / Hanging Man)."""
        body = bar.body_size
        if body == 0:
            return False
        return (
            bar.lower_shadow > body * self.config.hammer_shadow_body_ratio
            and bar.upper_shadow < body * self.config.hammer_opposite_shadow_ratio
        )

    def has_inverted_hammer_shape(self, bar: Bar) -> bool:
        """Long upper shadow, short lower shadow (Inverted Hammer / Shooting Star)."""
        body = bar.body_size
        if body == 0:
            return False
        return (
            bar.upper_shadow > body * self.config.hammer_shadow_body_ratio
            and bar.lower_shadow < body * self.config.hammer_opposite_shadow_ratio
        )

    def is_hanging_man(self, data: List[Bar]) -> bool:
        return self.has_hammer_shape(data[-1]) and self.in_uptrend(data)

    def is_inverted_hammer(self, data: List[Bar]) -> bool:
        return self.has_inverted_hammer_shape(data[-1]) and self.in_downtrend(data)

    # ------------------------------------------------------------------
    # Two candle patterns
    # ------------------------------------------------------------------

    def is_bullish_engulfing(self, prev: Bar, current: Bar) -> bool:
        if not (prev.is_bearish and current.is_bullish):
            return False
        return (
            current.open <= prev.close
            and current.close >= prev.open
            and current.body_size > prev.body_size
        )

    def is_bearish_engulfing(self, prev: Bar, current: Bar) -> bool:
        if not (prev.is_bullish and current.is_bearish):
            return False
        return (
            current.open >= prev.close
            and current.close <= prev.open
            and current.body_size > prev.body_size
        )

    def is_piercing_line(self, prev: Bar, current: Bar) -> bool:
        """Opens below the prior close and closes above its body midpoint."""
        if not (prev.is_bearish and current.is_bullish):
            return False
        return (
            current.open < prev.close
            and prev.body_midpoint < current.close < prev.open
        )

    def is_dark_cloud_cover(self, prev: Bar, current: Bar) -> bool:
        """Opens above the prior close and closes below its body midpoint."""
        if not (prev.is_bullish and current.is_bearish):
            return False
        return (
            current.open > prev.close
            and prev.open < current.close < prev.body_midpoint
        )

    def is_bullish_harami(self, prev: Bar, current: Bar) -> bool:
        if not (prev.is_bearish and current.is_bullish):
            return False
        return (
            current.body_size < prev.body_size * self.config.harami_body_ratio
            and current.open > prev.close
            and current.close < prev.open
        )

    def is_bearish_harami(self, prev: Bar, current: Bar) -> bool:
        if not (prev.is_bullish and current.is_bearish):
            return False
        return (
            current.body_size < prev.body_size * self.config.harami_body_ratio
            and current.open < prev.close
            and current.close > prev.open
        )

    def _almost_equal(self, a: float, b: float) -> bool:
        tolerance = (a + b) / 2 * self.config.tweezer_tolerance
        return abs(a - b) <= tolerance

    def is_tweezer_top(self, prev: Bar, current: Bar) -> bool:
        if not (prev.is_bullish and current.is_bearish):
            return False
        return self._almost_equal(prev.high, current.high)

    def is_tweezer_bottom(self, prev: Bar, current: Bar) -> bool:
        if not (prev.is_bearish and current.is_bullish):
            return False
        return self._almost_equal(prev.low, current.low)

    # ------------------------------------------------------------------
    # Three candle patterns
    # ------------------------------------------------------------------

    def is_morning_star(self, first: Bar, second: Bar, third: Bar) -> bool:
        if not (first.is_bearish and third.is_bullish):
            return False
        small_middle = second.body_size < first.body_size * self.config.star_body_ratio
        return small_middle and third.close > first.body_midpoint

    def is_evening_star(self, first: Bar, second: Bar, third: Bar) -> bool:
        if not (first.is_bullish and third.is_bearish):
            return False
        small_middle = second.body_size < first.body_size * self.config.star_body_ratio
        return small_middle and third.close < first.body_midpoint

    def is_three_white_soldiers(self, first: Bar, second: Bar, third: Bar) -> bool:
        candles = (first, second, third)
        if not all(bar.is_bullish for bar in candles):
            return False

        opens_inside = (
            first.open <= second.open <= first.close
            and second.open <= third.open <= second.close
        )
        rising_closes = first.close < second.close < third.close
        short_upper_shadows = all(
            bar.upper_shadow < bar.body_size * self.config.soldiers_shadow_ratio
            for bar in candles
        )
        return opens_inside and rising_closes and short_upper_shadows

    def is_three_black_crows(self, first: Bar, second: Bar, third: Bar) -> bool:
        candles = (first, second, third)
        if not all(bar.is_bearish for bar in candles):
            return False

        opens_inside = (
            first.close <= second.open <= first.open
            and second.close <= third.open <= second.open
        )
        falling_closes = first.close > second.close > third.close
        short_lower_shadows = all(
            bar.lower_shadow < bar.body_size * self.config.soldiers_shadow_ratio
            for bar in candles
        )
        return opens_inside and falling_closes and short_lower_shadows

    def is_three_inside_up(self, first: Bar, second: Bar, third: Bar) -> bool:
        """Bearish candle, bullish harami, close above the first open."""
        if not (first.is_bearish and second.is_bullish and third.is_bullish):
            return False
        contained = second.open > first.close and second.close < first.open
        return contained and third.close > first.open

    def is_three_inside_down(self, first: Bar, second: Bar, third: Bar) -> bool:
        """Bullish candle, bearish harami, close below the first open."""
        if not (first.is_bullish and second.is_bearish and third.is_bearish):
            return False
        contained = second.open < first.close and second.close > first.open
        return contained and third.close < first.open

    def is_three_outside_up(self, first: Bar, second: Bar, third: Bar) -> bool:
        """Bearish candle, bullish engulfing, higher close."""
        if not (first.is_bearish and second.is_bullish and third.is_bullish):
            return False
        engulfing = second.open <= first.close and second.close >= first.open
        return engulfing and third.close > second.close

    def is_three_outside_down(self, first: Bar, second: Bar, third: Bar) -> bool:
        """Bullish candle, bearish engulfing, lower close."""
        if not (first.is_bullish and second.is_bearish and third.is_bearish):
            return False
        engulfing = second.open >= first.close and second.close <= first.open
        return engulfing and third.close < second.close
