"""
Data models for StockTA.

Defines Pydantic models for price bars, analysis results and the
per-component configuration of the analysis engine.
"""

from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from stockta.core.constants import AnalysisConstants


class PatternPolarity(str, Enum):
    """Directional bias of a candlestick pattern."""

    BULLISH = "bullish"
    BEARISH = "bearish"
    NEUTRAL = "neutral"


class PatternName(str, Enum):
    """Candlestick patterns recognised by the pattern detector."""

    DRAGONFLY_DOJI = "Dragonfly Doji"
    GRAVESTONE_DOJI = "Gravestone Doji"
    DOJI = "Doji"
    SPINNING_TOP = "Spinning Top"
    BULLISH_MARUBOZU = "Bullish Marubozu"
    BEARISH_MARUBOZU = "Bearish Marubozu"
    HANGING_MAN = "Hanging Man"
    HAMMER = "Hammer"
    INVERTED_HAMMER = "Inverted Hammer"
    SHOOTING_STAR = "Shooting Star"
    BULLISH_ENGULFING = "Bullish Engulfing"
    BEARISH_ENGULFING = "Bearish Engulfing"
    PIERCING_LINE = "Piercing Line"
    DARK_CLOUD_COVER = "Dark Cloud Cover"
    BULLISH_HARAMI = "Bullish Harami"
    BEARISH_HARAMI = "Bearish Harami"
    TWEEZER_TOP = "Tweezer Top"
    TWEEZER_BOTTOM = "Tweezer Bottom"
    MORNING_STAR = "Morning Star"
    EVENING_STAR = "Evening Star"
    THREE_WHITE_SOLDIERS = "Three White Soldiers"
    THREE_BLACK_CROWS = "Three Black Crows"
    THREE_INSIDE_UP = "Three Inside Up"
    THREE_INSIDE_DOWN = "Three Inside Down"
    THREE_OUTSIDE_UP = "Three Outside Up"
    THREE_OUTSIDE_DOWN = "Three Outside Down"


class TrendDirection(str, Enum):
    """Trend classification."""

    UPTREND = "uptrend"
    DOWNTREND = "downtrend"
    SIDEWAYS = "sideways"


class WyckoffPhase(str, Enum):
    """Wyckoff market phases."""

    ACCUMULATION = "accumulation"
    DISTRIBUTION = "distribution"
    MARKUP = "markup"
    MARKDOWN = "markdown"
    UNKNOWN = "unknown"
    INSUFFICIENT_DATA = "insufficient_data"


class WyckoffEventType(str, Enum):
    """Side of the market a Wyckoff event belongs to."""

    ACCUMULATION = "accumulation"
    DISTRIBUTION = "distribution"


class WyckoffEventName(str, Enum):
    """Wyckoff structural events."""

    SELLING_CLIMAX = "Selling Climax"
    BUYING_CLIMAX = "Buying Climax"
    SPRING = "Spring"
    UPTHRUST = "Upthrust"
    SIGN_OF_STRENGTH = "Sign of Strength"
    SIGN_OF_WEAKNESS = "Sign of Weakness"


class EffortResult(str, Enum):
    """Volume (effort) versus price movement (result)."""

    CONFIRMING = "confirming"
    DIVERGING = "diverging"
    UNKNOWN = "unknown"


class Recommendation(str, Enum):
    """Trading recommendation labels."""

    BUY = "buy"
    SELL = "sell"
    HOLD = "hold"


class Bar(BaseModel):
    """A single OHLCV bar of a price series."""

    symbol: str = Field(default="", description="Instrument symbol")
    date: datetime = Field(..., description="Bar date")
    open: float = Field(..., description="Opening price")
    high: float = Field(..., description="Highest price")
    low: float = Field(..., description="Lowest price")
    close: float = Field(..., description="Closing price")
    volume: float = Field(default=0.0, description="Traded volume")
    adj_close: Optional[float] = Field(
        default=None, validate_default=True, description="Adjusted close"
    )

    model_config = ConfigDict(frozen=True)

    @field_validator("open", "high", "low", "close")
    @classmethod
    def validate_positive_prices(cls, v):
        """Validate that price values are positive."""
        if v <= 0:
            raise ValueError("OHLC price values must be positive")
        return v

    @field_validator("volume")
    @classmethod
    def validate_volume(cls, v):
        """Validate volume (allow zero for low-activity periods)."""
        if v < 0:
            raise ValueError("Volume cannot be negative")
        return v

    @field_validator("adj_close")
    @classmethod
    def default_adj_close(cls, v, info):
        """Fall back to the close when no adjusted close is supplied."""
        if v is None:
            return info.data.get("close")
        return v

    @property
    def body_size(self) -> float:
        return abs(self.close - self.open)

    @property
    def upper_shadow(self) -> float:
        return self.high - max(self.open, self.close)

    @property
    def lower_shadow(self) -> float:
        return min(self.open, self.close) - self.low

    @property
    def total_range(self) -> float:
        return self.high - self.low

    @property
    def body_midpoint(self) -> float:
        return (self.open + self.close) / 2

    @property
    def is_bullish(self) -> bool:
        return self.close > self.open

    @property
    def is_bearish(self) -> bool:
        return self.close < self.open


class PriceRange(BaseModel):
    """Closed price interval with min <= max."""

    min: float = Field(default=0.0, description="Lower bound")
    max: float = Field(default=0.0, description="Upper bound")

    model_config = ConfigDict(frozen=True)

    @model_validator(mode="after")
    def validate_ordering(self):
        """Validate that the range is ordered."""
        if self.min > self.max:
            raise ValueError("PriceRange min cannot exceed max")
        return self

    @classmethod
    def from_bounds(cls, a: float, b: float) -> "PriceRange":
        """Build an ordered range from two bounds given in any order."""
        return cls(min=min(a, b), max=max(a, b))

    @property
    def size(self) -> float:
        return self.max - self.min

    def contains(self, price: float) -> bool:
        return self.min <= price <= self.max


class IndicatorSet(BaseModel):
    """Indicator values computed against the tail of the series."""

    rsi: float = Field(default=50.0, description="14-period RSI")
    macd: float = Field(default=0.0, description="MACD line")
    macd_signal: float = Field(default=0.0, description="MACD signal line")
    macd_histogram: float = Field(default=0.0, description="MACD histogram")
    sma_20: float = Field(default=0.0, description="20-period SMA")
    sma_50: float = Field(default=0.0, description="50-period SMA")
    sma_200: float = Field(default=0.0, description="200-period SMA")
    ema_12: float = Field(default=0.0, description="12-period EMA")
    ema_26: float = Field(default=0.0, description="26-period EMA")
    bollinger_upper: float = Field(default=0.0, description="Upper Bollinger band")
    bollinger_mid: float = Field(default=0.0, description="Middle Bollinger band")
    bollinger_lower: float = Field(default=0.0, description="Lower Bollinger band")

    model_config = ConfigDict(frozen=True)


class PatternMatch(BaseModel):
    """A candlestick pattern that fired on the latest bars."""

    name: PatternName = Field(..., description="Pattern name")
    polarity: PatternPolarity = Field(..., alias="type", description="Pattern bias")
    confidence: float = Field(..., ge=0.0, le=1.0, description="Pattern confidence")

    model_config = ConfigDict(frozen=True, populate_by_name=True)


class TimeframePatterns(BaseModel):
    """Pattern matches per aggregation timeframe."""

    daily: List[PatternMatch] = Field(default_factory=list)
    weekly: List[PatternMatch] = Field(default_factory=list)
    monthly: List[PatternMatch] = Field(default_factory=list)

    model_config = ConfigDict(frozen=True)


class SupportResistance(BaseModel):
    """Support levels below and resistance levels above the current price."""

    support_levels: List[float] = Field(
        default_factory=list, description="Supports, nearest first"
    )
    resistance_levels: List[float] = Field(
        default_factory=list, description="Resistances, nearest first"
    )

    model_config = ConfigDict(frozen=True)

    @property
    def nearest_support(self) -> Optional[float]:
        return self.support_levels[0] if self.support_levels else None

    @property
    def nearest_resistance(self) -> Optional[float]:
        return self.resistance_levels[0] if self.resistance_levels else None


class TrendResult(BaseModel):
    """Trend classification result."""

    direction: TrendDirection = Field(
        default=TrendDirection.SIDEWAYS, alias="trend", description="Trend direction"
    )
    strength: float = Field(default=0.0, ge=0.0, le=1.0, description="Trend strength")
    trend_line_value: float = Field(
        default=0.0, alias="trend_line", description="Regression line at last bar"
    )

    model_config = ConfigDict(frozen=True, populate_by_name=True)


class WyckoffEvent(BaseModel):
    """A Wyckoff structural event detected on a single bar."""

    name: WyckoffEventName = Field(..., description="Event name")
    event_type: WyckoffEventType = Field(..., alias="type", description="Event side")
    date: datetime = Field(..., description="Date of the event bar")
    price: float = Field(..., description="Close of the event bar")
    volume: float = Field(..., description="Volume of the event bar")
    confidence: float = Field(..., ge=0.0, le=1.0, description="Event confidence")

    model_config = ConfigDict(frozen=True, populate_by_name=True)


class WyckoffResult(BaseModel):
    """Complete Wyckoff method analysis."""

    phase: WyckoffPhase = Field(default=WyckoffPhase.INSUFFICIENT_DATA)
    phase_confidence: float = Field(default=0.0, ge=0.0, le=1.0)
    events: List[WyckoffEvent] = Field(default_factory=list)
    trading_range: PriceRange = Field(default_factory=PriceRange)
    effort_result: EffortResult = Field(default=EffortResult.UNKNOWN)
    recommendation: Recommendation = Field(default=Recommendation.HOLD)
    recommendation_score: float = Field(default=0.0, ge=-1.0, le=1.0)
    buy_zone: PriceRange = Field(default_factory=PriceRange)
    accumulation_zone: PriceRange = Field(default_factory=PriceRange)
    distribution_zone: PriceRange = Field(default_factory=PriceRange)
    sell_zone: PriceRange = Field(default_factory=PriceRange)

    model_config = ConfigDict(frozen=True)

    @classmethod
    def insufficient(cls) -> "WyckoffResult":
        """Result returned when the series is too short for Wyckoff analysis."""
        return cls()


class AnalysisReport(BaseModel):
    """Complete technical analysis report for one price series."""

    symbol: str = Field(default="", description="Analysed symbol")
    company_name: str = Field(default="", description="Display name")
    date: datetime = Field(..., description="Analysis instant supplied by the caller")
    current_price: float = Field(..., description="Close of the latest bar")

    indicators: IndicatorSet = Field(..., description="Indicator values")
    patterns: List[PatternMatch] = Field(
        default_factory=list, description="Patterns on the latest daily bars"
    )
    timeframe_patterns: TimeframePatterns = Field(
        default_factory=TimeframePatterns, description="Patterns per timeframe"
    )
    support_resistance: SupportResistance = Field(..., description="Price levels")
    trend: TrendResult = Field(..., description="Trend classification")
    wyckoff: WyckoffResult = Field(..., description="Wyckoff analysis")

    buy_range: PriceRange = Field(..., description="Suggested buy range")
    half_buy_range: PriceRange = Field(..., description="Suggested half-position range")
    sell_range: PriceRange = Field(..., description="Suggested sell range")
    recommendation: Recommendation = Field(..., description="Composite recommendation")
    recommendation_score: float = Field(..., ge=-1.0, le=1.0)

    price_history: List[Bar] = Field(
        default_factory=list, description="Input series echoed for display"
    )

    model_config = ConfigDict(frozen=True)

    def to_dict(self) -> Dict:
        """Serialise to the JSON-compatible report shape."""
        return self.model_dump(mode="json", by_alias=True)

    def to_json(self, indent: Optional[int] = None) -> str:
        """Serialise to a JSON string."""
        return self.model_dump_json(by_alias=True, indent=indent)


# ---------------------------------------------------------------------------
# Engine configuration
# ---------------------------------------------------------------------------

DEFAULT_PATTERN_CONFIDENCE: Dict[PatternName, float] = {
    PatternName.DRAGONFLY_DOJI: 0.75,
    PatternName.GRAVESTONE_DOJI: 0.75,
    PatternName.DOJI: 0.7,
    PatternName.SPINNING_TOP: 0.6,
    PatternName.BULLISH_MARUBOZU: 0.85,
    PatternName.BEARISH_MARUBOZU: 0.85,
    PatternName.HANGING_MAN: 0.7,
    PatternName.HAMMER: 0.75,
    PatternName.INVERTED_HAMMER: 0.7,
    PatternName.SHOOTING_STAR: 0.75,
    PatternName.BULLISH_ENGULFING: 0.85,
    PatternName.BEARISH_ENGULFING: 0.85,
    PatternName.PIERCING_LINE: 0.75,
    PatternName.DARK_CLOUD_COVER: 0.75,
    PatternName.BULLISH_HARAMI: 0.7,
    PatternName.BEARISH_HARAMI: 0.7,
    PatternName.TWEEZER_TOP: 0.7,
    PatternName.TWEEZER_BOTTOM: 0.7,
    PatternName.MORNING_STAR: 0.9,
    PatternName.EVENING_STAR: 0.9,
    PatternName.THREE_WHITE_SOLDIERS: 0.9,
    PatternName.THREE_BLACK_CROWS: 0.9,
    PatternName.THREE_INSIDE_UP: 0.85,
    PatternName.THREE_INSIDE_DOWN: 0.85,
    PatternName.THREE_OUTSIDE_UP: 0.85,
    PatternName.THREE_OUTSIDE_DOWN: 0.85,
}


class IndicatorConfig(BaseModel):
    """Configuration for the indicator calculator."""

    rsi_period: int = Field(default=14, ge=2, le=100, description="RSI period")
    macd_fast_period: int = Field(default=12, ge=2, description="MACD fast EMA")
    macd_slow_period: int = Field(default=26, ge=3, description="MACD slow EMA")
    macd_signal_period: int = Field(default=9, ge=2, description="MACD signal EMA")
    sma_short_period: int = Field(default=20, ge=2, description="Short SMA")
    sma_medium_period: int = Field(default=50, ge=2, description="Medium SMA")
    sma_long_period: int = Field(default=200, ge=2, description="Long SMA")
    bollinger_period: int = Field(default=20, ge=2, description="Bollinger window")
    bollinger_std_dev: float = Field(
        default=2.0, gt=0.0, description="Bollinger width in standard deviations"
    )

    model_config = ConfigDict(frozen=True)


class PatternConfig(BaseModel):
    """Configuration for the candlestick pattern detector."""

    doji_body_ratio: float = Field(default=0.1, description="Max body/range for a doji")
    doji_long_shadow_ratio: float = Field(
        default=0.7, description="Min long shadow/range for dragonfly/gravestone"
    )
    doji_short_shadow_ratio: float = Field(
        default=0.1, description="Max short shadow/range for dragonfly/gravestone"
    )
    spinning_top_max_body_ratio: float = Field(default=0.3)
    spinning_top_min_body_ratio: float = Field(default=0.05)
    spinning_top_shadow_body_ratio: float = Field(
        default=0.5, description="Min shadow/body for both shadows"
    )
    spinning_top_shadow_balance: float = Field(
        default=0.3, description="Max |upper-lower|/range"
    )
    marubozu_body_ratio: float = Field(default=0.95)
    marubozu_shadow_ratio: float = Field(default=0.03)
    hammer_shadow_body_ratio: float = Field(
        default=2.0, description="Min long shadow/body for hammer shapes"
    )
    hammer_opposite_shadow_ratio: float = Field(
        default=0.5, description="Max short shadow/body for hammer shapes"
    )
    trend_lookback: int = Field(default=5, ge=1, description="Bars for trend context")
    harami_body_ratio: float = Field(default=0.5)
    tweezer_tolerance: float = Field(default=0.002)
    star_body_ratio: float = Field(
        default=0.3, description="Max middle/first body for morning/evening star"
    )
    soldiers_shadow_ratio: float = Field(
        default=0.3, description="Max opposing shadow/body for soldiers/crows"
    )
    confidences: Dict[PatternName, float] = Field(
        default_factory=lambda: dict(DEFAULT_PATTERN_CONFIDENCE)
    )

    model_config = ConfigDict(frozen=True)


class SupportResistanceConfig(BaseModel):
    """Configuration for support/resistance detection."""

    min_bars: int = Field(default=AnalysisConstants.MIN_SUPPORT_RESISTANCE_BARS, ge=1)
    pivot_lookback: int = Field(default=5, ge=1, description="Bars on each side")
    merge_tolerance: float = Field(
        default=0.02, ge=0.0, description="Relative distance for merging levels"
    )
    max_levels: int = Field(default=3, ge=1)

    model_config = ConfigDict(frozen=True)


class TrendConfig(BaseModel):
    """Configuration for the trend analyzer."""

    min_bars: int = Field(default=AnalysisConstants.MIN_TREND_BARS, ge=2)
    slope_threshold: float = Field(default=0.001)
    slope_strength_scale: float = Field(default=1000.0)
    ma_alignment_min_bars: int = Field(default=50, ge=1)
    ma_short_period: int = Field(default=20, ge=2)
    ma_long_period: int = Field(default=50, ge=2)
    ma_alignment_strength: float = Field(default=0.6, ge=0.0, le=1.0)
    adx_period: int = Field(default=14, ge=2)
    adx_threshold: float = Field(default=25.0)

    model_config = ConfigDict(frozen=True)


DEFAULT_WYCKOFF_PHASE_WEIGHTS: Dict[WyckoffPhase, float] = {
    WyckoffPhase.ACCUMULATION: 3.0,
    WyckoffPhase.MARKUP: 1.5,
    WyckoffPhase.DISTRIBUTION: -3.0,
    WyckoffPhase.MARKDOWN: -1.5,
}

DEFAULT_WYCKOFF_EVENT_WEIGHTS: Dict[WyckoffEventName, float] = {
    WyckoffEventName.SPRING: 2.5,
    WyckoffEventName.SIGN_OF_STRENGTH: 2.0,
    WyckoffEventName.SELLING_CLIMAX: 1.5,
    WyckoffEventName.UPTHRUST: -2.5,
    WyckoffEventName.SIGN_OF_WEAKNESS: -2.0,
    WyckoffEventName.BUYING_CLIMAX: -1.5,
}


class WyckoffConfig(BaseModel):
    """Configuration for the Wyckoff analyzer."""

    min_bars: int = Field(default=AnalysisConstants.MIN_WYCKOFF_BARS, ge=10)

    # Trading range
    range_lookback: int = Field(default=60, ge=5)
    swing_window: int = Field(default=2, ge=1)

    # Event scan
    scan_start: int = Field(default=5, ge=1)
    scan_end_offset: int = Field(default=2, ge=1)
    volume_lookback: int = Field(default=20, ge=1)
    range_average_lookback: int = Field(default=10, ge=1)
    trend_context_lookback: int = Field(default=5, ge=1)
    close_position_band: float = Field(
        default=0.3, description="Close within this fraction of the bar extreme"
    )
    boundary_tolerance: float = Field(
        default=0.02, description="Proximity to the trading range boundary"
    )
    climax_volume_ratio: float = Field(default=2.0)
    climax_range_ratio: float = Field(default=1.5)
    climax_base_confidence: float = Field(default=0.8)
    sign_volume_ratio: float = Field(default=1.5)
    sign_range_ratio: float = Field(default=1.3)
    sign_base_confidence: float = Field(default=0.75)
    spring_max_penetration: float = Field(default=0.03)
    spring_close_tolerance: float = Field(default=0.01)
    spring_volume_ratio: float = Field(default=1.5)
    spring_base_confidence: float = Field(default=0.7)
    spring_volume_confidence: float = Field(default=0.85)
    confidence_volume_boost_ratio: float = Field(default=2.5)
    confidence_volume_boost: float = Field(default=0.1)
    confidence_range_boost_ratio: float = Field(default=2.0)
    confidence_range_boost: float = Field(default=0.05)
    max_confidence: float = Field(default=0.95, le=1.0)

    # Phase determination
    phase_trend_window: int = Field(default=20, ge=2)
    phase_trend_threshold: float = Field(default=0.05)
    phase_outer_band: float = Field(default=0.2)
    trend_phase_base_confidence: float = Field(default=0.7)
    trend_phase_event_step: float = Field(default=0.05)
    event_phase_base_confidence: float = Field(default=0.6)
    event_phase_event_step: float = Field(default=0.1)
    range_phase_confidence: float = Field(default=0.5)
    unknown_phase_confidence: float = Field(default=0.3)

    # Effort vs result
    effort_window: int = Field(default=10, ge=2)
    effort_threshold: float = Field(default=2.0)

    # Recommendation
    phase_weights: Dict[WyckoffPhase, float] = Field(
        default_factory=lambda: dict(DEFAULT_WYCKOFF_PHASE_WEIGHTS)
    )
    event_weights: Dict[WyckoffEventName, float] = Field(
        default_factory=lambda: dict(DEFAULT_WYCKOFF_EVENT_WEIGHTS)
    )
    range_position_band: float = Field(default=0.3)
    range_position_weight: float = Field(default=2.0)
    recent_bars: int = Field(default=10, ge=1)
    divergence_weight: float = Field(default=1.5)
    confirming_weight: float = Field(default=0.5)
    score_normalizer: float = Field(default=9.0, gt=0.0)
    action_threshold: float = Field(default=0.4)

    # Zones (fractions of the trading range size)
    zone_edge: float = Field(default=0.15)
    zone_inner: float = Field(default=0.35)
    zone_buffer: float = Field(default=0.03)
    event_price_buffer: float = Field(default=0.02)
    climax_zone_expansion: float = Field(default=0.10)

    model_config = ConfigDict(frozen=True)


DEFAULT_SYNTHESIS_PHASE_WEIGHTS: Dict[WyckoffPhase, float] = {
    WyckoffPhase.ACCUMULATION: 1.0,
    WyckoffPhase.MARKUP: 0.75,
    WyckoffPhase.DISTRIBUTION: -1.0,
    WyckoffPhase.MARKDOWN: -0.75,
}


class RecommendationConfig(BaseModel):
    """Configuration for the recommendation synthesizer."""

    include_wyckoff: bool = Field(default=True)

    rsi_oversold: float = Field(default=30.0)
    rsi_weak_oversold: float = Field(default=40.0)
    rsi_overbought: float = Field(default=70.0)
    rsi_weak_overbought: float = Field(default=60.0)
    rsi_strong_weight: float = Field(default=2.0)
    rsi_weak_weight: float = Field(default=1.0)
    macd_weight: float = Field(default=1.5)
    ma_alignment_weight: float = Field(default=1.5)
    bollinger_weight: float = Field(default=1.0)
    trend_weight: float = Field(default=2.0)
    level_proximity: float = Field(default=0.02)
    level_weight: float = Field(default=1.0)

    wyckoff_phase_weights: Dict[WyckoffPhase, float] = Field(
        default_factory=lambda: dict(DEFAULT_SYNTHESIS_PHASE_WEIGHTS)
    )
    wyckoff_event_weight: float = Field(default=0.75)
    effort_divergence_weight: float = Field(default=0.25)

    score_normalizer: float = Field(default=10.0, gt=0.0)
    action_threshold: float = Field(default=0.3)

    # Price ranges
    buy_fallback_ratio: float = Field(default=0.95)
    buy_ceiling_ratio: float = Field(default=0.98)
    sell_default_min_ratio: float = Field(default=1.05)
    sell_default_max_ratio: float = Field(default=1.15)
    single_resistance_extension: float = Field(default=1.05)
    strong_trend_strength: float = Field(default=0.6)
    uptrend_sell_extension: float = Field(default=1.1)
    downtrend_sell_discount: float = Field(default=0.95)

    model_config = ConfigDict(frozen=True)


class AnalysisConfig(BaseModel):
    """Bundle of component configurations used by the analyzer."""

    indicators: IndicatorConfig = Field(default_factory=IndicatorConfig)
    patterns: PatternConfig = Field(default_factory=PatternConfig)
    support_resistance: SupportResistanceConfig = Field(
        default_factory=SupportResistanceConfig
    )
    trend: TrendConfig = Field(default_factory=TrendConfig)
    wyckoff: WyckoffConfig = Field(default_factory=WyckoffConfig)
    recommendation: RecommendationConfig = Field(default_factory=RecommendationConfig)
    multi_timeframe_patterns: bool = Field(default=True)

    model_config = ConfigDict(frozen=True)
