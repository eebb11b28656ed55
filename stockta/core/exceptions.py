"""
Custom exceptions for StockTA.

Provides structured error handling across the application.
"""

from typing import Any, Dict, Optional


class StockTAException(Exception):
    """Base exception class for StockTA."""

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.details = details or {}

    def __str__(self) -> str:
        """String representation of the exception."""
        base_msg = self.message
        if self.error_code:
            base_msg = f"[{self.error_code}] {base_msg}"
        return base_msg


class ConfigurationError(StockTAException):
    """Raised when there's a configuration error."""

    pass


class DataValidationError(StockTAException):
    """Raised when data validation fails."""

    pass


class EmptySeriesError(DataValidationError):
    """Raised when an analysis is requested for a series without bars."""

    pass


class DataSourceError(StockTAException):
    """Raised when a price series cannot be loaded from its source."""

    def __init__(self, message: str, source: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.source = source


# Exception mappings for specific error codes
EXCEPTION_MAPPINGS = {
    "CONFIG_ERROR": ConfigurationError,
    "DATA_VALIDATION_ERROR": DataValidationError,
    "EMPTY_SERIES": EmptySeriesError,
    "DATA_SOURCE_ERROR": DataSourceError,
}


def create_exception(error_code: str, message: str, **kwargs) -> StockTAException:
    """Create an exception instance based on error code."""
    exception_class = EXCEPTION_MAPPINGS.get(error_code, StockTAException)
    return exception_class(message, error_code=error_code, **kwargs)
