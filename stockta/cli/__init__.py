"""Command-line interface for StockTA."""
