"""
Unit tests for data helper utilities.
"""

import json
from datetime import datetime

import numpy as np
import pandas as pd
import pytest

from stockta.core.exceptions import ConfigurationError, DataSourceError
from stockta.utils.data_helpers import (
    aggregate_bars,
    closes,
    load_series,
    prepare_series,
    safe_float_conversion,
    to_dataframe,
)


def record(date, close, **overrides):
    values = {
        "date": date,
        "open": close,
        "high": close + 1,
        "low": close - 1,
        "close": close,
        "volume": 1000,
    }
    values.update(overrides)
    return values


class TestSafeFloatConversion:
    def test_valid_values(self):
        assert safe_float_conversion("1.5") == 1.5
        assert safe_float_conversion(2) == 2.0

    def test_invalid_values_use_default(self):
        assert safe_float_conversion(None) == 0.0
        assert safe_float_conversion("abc", None) is None
        assert safe_float_conversion(float("nan"), 7.0) == 7.0


class TestPrepareSeries:
    """Record cleaning."""

    def test_sorts_by_date(self):
        series = prepare_series(
            [record("2024-01-03", 102.0), record("2024-01-01", 100.0), record("2024-01-02", 101.0)],
            symbol="AAPL",
        )

        assert [bar.close for bar in series] == [100.0, 101.0, 102.0]
        assert all(bar.symbol == "AAPL" for bar in series)

    def test_drops_invalid_records(self):
        series = prepare_series(
            [
                record("2024-01-01", 100.0),
                record("2024-01-02", 101.0, open=None),
                record("2024-01-03", 102.0, low=0),
                record("not a date", 103.0),
                record(None, 104.0),
            ]
        )

        assert [bar.close for bar in series] == [100.0]

    def test_duplicate_dates_keep_last(self):
        series = prepare_series([record("2024-01-01", 100.0), record("2024-01-01", 105.0)])

        assert len(series) == 1
        assert series[0].close == 105.0

    def test_record_symbol_wins(self):
        series = prepare_series([record("2024-01-01", 100.0, symbol="MSFT")], symbol="AAPL")

        assert series[0].symbol == "MSFT"

    def test_missing_volume_is_zero(self):
        series = prepare_series([record("2024-01-01", 100.0, volume=None)])

        assert series[0].volume == 0.0

    def test_accepts_bars(self, series_factory):
        bars = series_factory([100.0, 101.0])

        assert prepare_series(reversed(bars)) == bars


class TestArrays:
    def test_closes(self, series_factory):
        values = closes(series_factory([11.0, 12.0, 13.0]))

        assert isinstance(values, np.ndarray)
        assert values.tolist() == [11.0, 12.0, 13.0]

    def test_to_dataframe(self, series_factory):
        df = to_dataframe(series_factory([11.0, 12.0]))

        assert list(df["close"]) == [11.0, 12.0]
        assert df.index.name == "date"

    def test_empty_dataframe(self):
        assert to_dataframe([]).empty


class TestLoadSeries:
    """File loading."""

    def test_csv(self, tmp_path):
        path = tmp_path / "prices.csv"
        pd.DataFrame(
            [record("2024-01-02", 101.0), record("2024-01-01", 100.0)]
        ).rename(columns={"date": "Date", "close": "Close"}).to_csv(path, index=False)

        series = load_series(path, symbol="AAPL")

        assert [bar.close for bar in series] == [100.0, 101.0]
        assert series[0].date == datetime(2024, 1, 1)
        assert series[0].symbol == "AAPL"

    def test_json_object(self, tmp_path):
        path = tmp_path / "prices.json"
        path.write_text(json.dumps({"data": [record("2024-01-01", 100.0, symbol="MSFT")]}))

        series = load_series(path)

        assert len(series) == 1
        assert series[0].symbol == "MSFT"

    def test_missing_file(self, tmp_path):
        with pytest.raises(DataSourceError) as exc_info:
            load_series(tmp_path / "missing.csv")

        assert exc_info.value.error_code == "DATA_SOURCE_ERROR"

    def test_missing_columns(self, tmp_path):
        path = tmp_path / "prices.csv"
        path.write_text("date,close\n2024-01-01,100\n")

        with pytest.raises(DataSourceError) as exc_info:
            load_series(path)

        assert "open" in exc_info.value.message


class TestAggregateBars:
    """Weekly and monthly aggregation."""

    def test_weekly(self, series_factory):
        # 2024-01-01 is a Monday
        data = series_factory([100.0 + i for i in range(14)])

        weekly = aggregate_bars(data, "weekly")

        assert len(weekly) == 2
        first = weekly[0]
        assert first.open == 100.0
        assert first.close == 106.0
        assert first.high == 107.0
        assert first.low == 99.0
        assert first.volume == 7000.0
        assert first.date == data[6].date

    def test_monthly(self, series_factory):
        data = series_factory([100.0] * 40)

        monthly = aggregate_bars(data, "monthly")

        assert len(monthly) == 2
        assert monthly[0].date == datetime(2024, 1, 31)
        assert monthly[1].volume == 9000.0

    def test_empty(self):
        assert aggregate_bars([], "weekly") == []

    def test_unsupported_timeframe(self, series_factory):
        with pytest.raises(ConfigurationError) as exc_info:
            aggregate_bars(series_factory([100.0, 101.0]), "hourly")

        assert exc_info.value.error_code == "CONFIG_ERROR"
        assert exc_info.value.details == {"supported": ["monthly", "weekly"]}
