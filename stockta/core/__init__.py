"""
Core module for StockTA.

Contains fundamental components like configuration, models and exceptions.
"""

from .config import settings
from .exceptions import *
from .models import *

__all__ = ["settings"]
