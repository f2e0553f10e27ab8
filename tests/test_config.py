"""Tests for configuration loading."""

from decimal import Decimal
from unittest.mock import patch

import pytest

from api.__main__ import main
from trading.config import DEFAULT_SYMBOLS, TradingConfig, load_config

ENV_KEYS = [
    "TRADING_CONFIG_PATH",
    "TRADING_DATABASE_URL",
    "DATABASE_URL",
    "TRADING_SYMBOLS",
    "TRADING_STARTING_BALANCE",
    "TRADING_HISTORY_WINDOW",
    "TRADING_TRADE_HISTORY_LIMIT",
    "TRADING_LEDGER_MAX_RETRIES",
    "AUTH_JWT_SECRET",
    "NEWS_API_KEY",
    "API_HOST",
    "API_PORT",
    "LOG_LEVEL",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    # setenv first so teardown also removes values an env file wrote directly
    for key in ENV_KEYS:
        monkeypatch.setenv(key, "")
        monkeypatch.delenv(key)


class TestLoadConfig:
    """Tests for load_config."""

    def test_defaults(self):
        config = load_config()

        assert config.symbols == DEFAULT_SYMBOLS
        assert config.starting_balance == Decimal("10000")
        assert config.history_window == 100
        assert config.trade_history_limit == 50
        assert config.database_url.startswith("sqlite")
        assert config.news_api_key is None

    def test_env_overrides(self, monkeypatch):
        monkeypatch.setenv("TRADING_DATABASE_URL", "postgresql://u:p@db/trading")
        monkeypatch.setenv("TRADING_SYMBOLS", "btc, eth ,doge,BTC")
        monkeypatch.setenv("TRADING_STARTING_BALANCE", "2500.50")
        monkeypatch.setenv("TRADING_HISTORY_WINDOW", "20")

        config = load_config()

        assert config.database_url == "postgresql://u:p@db/trading"
        assert config.symbols == ("BTC", "ETH", "DOGE")
        assert config.starting_balance == Decimal("2500.50")
        assert config.history_window == 20

    def test_database_url_fallback(self, monkeypatch):
        monkeypatch.setenv("DATABASE_URL", "postgresql://fallback/db")

        assert load_config().database_url == "postgresql://fallback/db"

    def test_invalid_values_fall_back_to_defaults(self, monkeypatch):
        monkeypatch.setenv("TRADING_HISTORY_WINDOW", "lots")
        monkeypatch.setenv("TRADING_STARTING_BALANCE", "-5")
        monkeypatch.setenv("TRADING_SYMBOLS", " , ")

        config = load_config()

        assert config.history_window == 100
        assert config.starting_balance == Decimal("10000")
        assert config.symbols == DEFAULT_SYMBOLS

    def test_env_file_does_not_override_environment(self, monkeypatch, tmp_path):
        env_file = tmp_path / "trading.env"
        env_file.write_text(
            "# local settings\n"
            "TRADING_HISTORY_WINDOW=25\n"
            'AUTH_JWT_SECRET="from-file"\n'
        )
        monkeypatch.setenv("TRADING_CONFIG_PATH", str(env_file))
        monkeypatch.setenv("TRADING_HISTORY_WINDOW", "30")

        config = load_config()

        assert config.history_window == 30
        assert config.jwt_secret == "from-file"
        assert config.config_path == str(env_file)

    def test_initial_holdings_zeroed(self):
        holdings = TradingConfig(symbols=("BTC", "SOL")).initial_holdings()

        assert holdings == {"BTC": Decimal("0"), "SOL": Decimal("0")}

    def test_integers_below_minimum_fall_back(self, monkeypatch):
        monkeypatch.setenv("TRADING_HISTORY_WINDOW", "0")
        monkeypatch.setenv("TRADING_LEDGER_MAX_RETRIES", "-3")
        monkeypatch.setenv("API_PORT", " 9001 ")

        config = load_config()

        assert config.history_window == 100
        assert config.ledger_max_retries == 10
        assert config.api_port == 9001

    def test_env_file_export_prefix_and_quotes(self, monkeypatch, tmp_path):
        env_file = tmp_path / "trading.env"
        env_file.write_text(
            "export API_HOST=0.0.0.0\n"
            "NEWS_API_KEY='abc=def'\n"
            'AUTH_JWT_SECRET="unbalanced\n'
        )
        monkeypatch.setenv("TRADING_CONFIG_PATH", str(env_file))

        config = load_config()

        assert config.api_host == "0.0.0.0"
        assert config.news_api_key == "abc=def"
        assert config.jwt_secret == '"unbalanced'

    def test_missing_env_file_ignored(self, monkeypatch, tmp_path):
        monkeypatch.setenv("TRADING_CONFIG_PATH", str(tmp_path / "absent.env"))

        assert load_config().history_window == 100


class TestServeEntryPoint:
    """Tests for the ``python -m api`` runner."""

    def test_main_serves_app_with_configured_address(self, monkeypatch):
        monkeypatch.setenv("API_HOST", "0.0.0.0")
        monkeypatch.setenv("API_PORT", "9000")
        monkeypatch.setenv("LOG_LEVEL", "DEBUG")

        with patch("api.__main__.uvicorn.run") as mock_run:
            main()

        mock_run.assert_called_once_with(
            "api.main:app", host="0.0.0.0", port=9000, log_level="debug"
        )
