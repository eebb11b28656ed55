"""
Analysis module for StockTA.

Contains the indicator calculator, pattern detector, level detector, trend
and Wyckoff analyzers, and the analyzer that synthesizes them into a report.
"""

from .analyzer import StockAnalyzer
from .indicators import TechnicalIndicators
from .patterns import CandlestickPatternDetector
from .support_resistance import SupportResistanceDetector
from .trend import TrendAnalyzer
from .wyckoff import WyckoffAnalyzer

__all__ = [
    "StockAnalyzer",
    "TechnicalIndicators",
    "CandlestickPatternDetector",
    "SupportResistanceDetector",
    "TrendAnalyzer",
    "WyckoffAnalyzer",
]
