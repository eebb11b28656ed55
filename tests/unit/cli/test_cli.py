"""
Unit tests for the command-line interface.
"""

import json

import pandas as pd
import pytest
from click.testing import CliRunner

from stockta import __version__
from stockta.cli.main import cli


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def price_file(tmp_path, series_factory):
    """CSV file with 250 rising daily bars."""
    bars = series_factory([100.0 + i for i in range(250)], symbol="ACME")
    path = tmp_path / "acme.csv"
    pd.DataFrame([bar.model_dump() for bar in bars]).to_csv(path, index=False)
    return path


class TestAnalyzeCommand:
    """Test the analyze command."""

    def test_json_report(self, runner, price_file):
        result = runner.invoke(
            cli, ["analyze", str(price_file), "--json", "--as-of", "2024-06-01"]
        )

        assert result.exit_code == 0
        payload = json.loads(result.stdout)
        assert payload["symbol"] == "ACME"
        assert payload["company_name"] == "ACME"
        assert payload["date"].startswith("2024-06-01")
        assert payload["current_price"] == 349.0
        assert payload["trend"]["trend"] == "uptrend"
        assert payload["recommendation"] in {"buy", "sell", "hold"}
        assert len(payload["price_history"]) == 250

    def test_company_name_option(self, runner, price_file):
        result = runner.invoke(
            cli, ["analyze", str(price_file), "--json", "--company-name", "Acme Corp"]
        )

        assert result.exit_code == 0
        assert json.loads(result.stdout)["company_name"] == "Acme Corp"

    def test_without_wyckoff_still_reports_it(self, runner, price_file):
        result = runner.invoke(cli, ["analyze", str(price_file), "--json", "--no-wyckoff"])

        assert result.exit_code == 0
        assert "phase" in json.loads(result.stdout)["wyckoff"]

    def test_rich_report(self, runner, price_file):
        result = runner.invoke(cli, ["analyze", str(price_file)])

        assert result.exit_code == 0
        assert "ACME" in result.output
        assert "Recommendation" in result.output
        assert "Wyckoff Analysis" in result.output

    def test_rich_report_without_wyckoff(self, runner, price_file):
        result = runner.invoke(cli, ["analyze", str(price_file), "--no-wyckoff"])

        assert result.exit_code == 0
        assert "Wyckoff Analysis" not in result.output

    def test_missing_file(self, runner, tmp_path):
        result = runner.invoke(cli, ["analyze", str(tmp_path / "missing.csv")])

        assert result.exit_code == 1
        assert "Error" in result.output

    def test_empty_file(self, runner, tmp_path):
        path = tmp_path / "empty.csv"
        path.write_text("date,open,high,low,close,volume\n")

        result = runner.invoke(cli, ["analyze", str(path)])

        assert result.exit_code == 1
        assert "empty price series" in result.output


class TestCLIGroup:
    def test_version(self, runner):
        result = runner.invoke(cli, ["--version"])

        assert result.exit_code == 0
        assert __version__ in result.output

    def test_help(self, runner):
        result = runner.invoke(cli, ["analyze", "--help"])

        assert result.exit_code == 0
        assert "--no-wyckoff" in result.output
