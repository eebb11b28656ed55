"""
Unit tests for configuration management.

Tests the Settings class, the exception hierarchy and engine configuration.
"""

import pytest
from pydantic import ValidationError

from stockta.core.config import Settings, get_settings, reload_settings
from stockta.core.constants import AnalysisConstants
from stockta.core.exceptions import (
    ConfigurationError,
    DataSourceError,
    EmptySeriesError,
    StockTAException,
    create_exception,
)
from stockta.core.models import AnalysisConfig, WyckoffConfig


class TestSettings:
    """Test Settings class."""

    def test_default_settings(self):
        """Test default settings values."""
        settings = Settings()

        assert settings.python_env == "development"
        assert settings.log_level == "INFO"
        assert settings.include_wyckoff is True
        assert settings.multi_timeframe_patterns is True
        assert settings.price_history_limit == 0

    def test_environment_variable_override(self, monkeypatch):
        """Test environment variable override."""
        monkeypatch.setenv("STOCKTA_PYTHON_ENV", "production")
        monkeypatch.setenv("STOCKTA_LOG_LEVEL", "error")
        monkeypatch.setenv("STOCKTA_INCLUDE_WYCKOFF", "false")
        monkeypatch.setenv("STOCKTA_PRICE_HISTORY_LIMIT", "120")

        settings = Settings()

        assert settings.is_production
        assert settings.log_level == "ERROR"
        assert settings.include_wyckoff is False
        assert settings.price_history_limit == 120

    def test_python_env_validation(self):
        """Test Python environment validation."""
        assert Settings(python_env="testing").is_testing

        with pytest.raises(ValidationError) as exc_info:
            Settings(python_env="invalid")

        assert "python_env must be one of" in str(exc_info.value)

    def test_log_level_validation(self):
        with pytest.raises(ValidationError):
            Settings(log_level="VERBOSE")

    def test_negative_history_limit_rejected(self):
        with pytest.raises(ValidationError):
            Settings(price_history_limit=-1)

    def test_reload_settings(self, monkeypatch):
        monkeypatch.setenv("STOCKTA_MULTI_TIMEFRAME_PATTERNS", "false")

        reloaded = reload_settings()

        assert reloaded.multi_timeframe_patterns is False
        assert get_settings() is reloaded

        monkeypatch.delenv("STOCKTA_MULTI_TIMEFRAME_PATTERNS")
        reload_settings()


class TestEngineConfig:
    """Test analysis configuration models."""

    def test_defaults(self):
        config = AnalysisConfig()

        assert config.indicators.rsi_period == 14
        assert config.patterns.doji_body_ratio == 0.1
        assert config.support_resistance.pivot_lookback == 5
        assert config.trend.min_bars == 20
        assert config.wyckoff.min_bars == 30
        assert config.recommendation.include_wyckoff is True

    def test_min_bars_defaults_follow_constants(self):
        config = AnalysisConfig()

        assert config.support_resistance.min_bars == AnalysisConstants.MIN_SUPPORT_RESISTANCE_BARS
        assert config.trend.min_bars == AnalysisConstants.MIN_TREND_BARS
        assert config.wyckoff.min_bars == AnalysisConstants.MIN_WYCKOFF_BARS

    def test_wyckoff_min_bars_floor(self):
        with pytest.raises(ValidationError):
            WyckoffConfig(min_bars=5)


class TestExceptions:
    """Test exception hierarchy."""

    def test_error_code_in_message(self):
        error = StockTAException("Something failed", error_code="X_FAILED")

        assert str(error) == "[X_FAILED] Something failed"
        assert error.details == {}

    def test_data_source_error_keeps_source(self):
        error = DataSourceError("unreadable", source="prices.csv", error_code="DATA_SOURCE_ERROR")

        assert error.source == "prices.csv"
        assert isinstance(error, StockTAException)

    def test_create_exception(self):
        error = create_exception("EMPTY_SERIES", "no bars", details={"symbol": "AAPL"})

        assert isinstance(error, EmptySeriesError)
        assert error.details == {"symbol": "AAPL"}
        assert isinstance(create_exception("CONFIG_ERROR", "bad timeframe"), ConfigurationError)
        assert type(create_exception("UNKNOWN", "other")) is StockTAException
