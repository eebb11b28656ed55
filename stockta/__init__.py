"""
StockTA - technical analysis reports for OHLCV price series.

This package derives indicator values, candlestick patterns, support and
resistance levels, trend classification, a Wyckoff-method phase analysis and
a composite buy/sell/hold recommendation from a chronological price series.
"""

__version__ = "0.1.0"
__description__ = "Technical and Wyckoff analysis reports from OHLCV price series"
