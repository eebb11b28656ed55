"""
Main entry point for StockTA.

This module provides the entry point when running `python -m stockta`.
"""

from stockta.cli.main import cli

if __name__ == "__main__":
    cli()
