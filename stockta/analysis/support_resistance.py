"""
Support and resistance detection for StockTA.

Finds pivot highs and lows with a symmetric lookback window and consolidates
nearby pivots into a short list of levels on each side of the current price.
"""

from dataclasses import dataclass
from typing import List, Optional

import structlog

from stockta.core.models import Bar, SupportResistance, SupportResistanceConfig
from stockta.utils.data_helpers import highs, lows

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class PivotPoint:
    """A swing high or swing low."""

    index: int
    price: float
    is_low: bool


class SupportResistanceDetector:
    """
    Pivot-based support and resistance detector.

    Level Logic:
    - A bar is a swing high when no bar within the lookback window on either
      side has a strictly higher high (swing low analogously on lows)
    - Swing highs above the current price are resistance candidates
    - Swing lows below the current price are support candidates
    - Candidates within the merge tolerance are averaged together
    """

    def __init__(self, config: Optional[SupportResistanceConfig] = None):
        """Initialize the detector."""
        self.config = config or SupportResistanceConfig()
        logger.debug("SupportResistanceDetector initialized")

    def detect(self, data: List[Bar]) -> SupportResistance:
        """
        Detect support and resistance levels.

        Args:
            data: Series of bars

        Returns:
            Supports (descending) and resistances (ascending), nearest first;
            both empty when the series is too short
        """
        if len(data) < self.config.min_bars:
            return SupportResistance()

        current_price = data[-1].close
        pivots = self.find_pivot_points(data)

        supports = [p.price for p in pivots if p.is_low and p.price < current_price]
        resistances = [p.price for p in pivots if not p.is_low and p.price > current_price]

        supports = sorted(self.consolidate_levels(supports), reverse=True)
        resistances = sorted(self.consolidate_levels(resistances))

        result = SupportResistance(
            support_levels=supports[: self.config.max_levels],
            resistance_levels=resistances[: self.config.max_levels],
        )

        logger.debug(
            "Support/resistance detection completed",
            pivots=len(pivots),
            support_levels=result.support_levels,
            resistance_levels=result.resistance_levels,
        )
        return result

    def find_pivot_points(self, data: List[Bar]) -> List[PivotPoint]:
        """
        Find swing highs and lows.

        A single bar can be both a swing high and a swing low.
        """
        lookback = self.config.pivot_lookback
        high_values = highs(data)
        low_values = lows(data)
        pivots = []

        for i in range(lookback, len(data) - lookback):
            window = slice(i - lookback, i + lookback + 1)

            if high_values[window].max() <= high_values[i]:
                pivots.append(PivotPoint(index=i, price=float(high_values[i]), is_low=False))
            if low_values[window].min() >= low_values[i]:
                pivots.append(PivotPoint(index=i, price=float(low_values[i]), is_low=True))

        return pivots

    def consolidate_levels(self, levels: List[float]) -> List[float]:
        """
        Merge levels that lie within the relative merge tolerance.

        Levels are sorted ascending and walked once from left to right; each
        level close to the last kept level replaces it with their average.
        """
        if not levels:
            return []

        ordered = sorted(levels)
        consolidated = [ordered[0]]

        for level in ordered[1:]:
            last_level = consolidated[-1]
            if abs(level - last_level) / last_level > self.config.merge_tolerance:
                consolidated.append(level)
            else:
                consolidated[-1] = (last_level + level) / 2

        return consolidated
