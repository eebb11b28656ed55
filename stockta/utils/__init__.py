"""Utility helpers for StockTA."""

from stockta.utils.logging import get_logger, log_performance, setup_logging

__all__ = ["get_logger", "log_performance", "setup_logging"]
