"""Configuration for the paper trading service."""

from __future__ import annotations

import os
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from pathlib import Path

DEFAULT_SYMBOLS = ("BTC", "ETH", "USDT", "BNB", "SOL")
DEFAULT_PRICES_URL = (
    "https://api.coingecko.com/api/v3/coins/markets"
    "?vs_currency=usd&ids=bitcoin,ethereum,tether,binancecoin,solana&sparkline=true"
)


@dataclass(frozen=True)
class TradingConfig:
    database_url: str = "sqlite:///./paper_trading.db"
    symbols: tuple[str, ...] = DEFAULT_SYMBOLS
    starting_balance: Decimal = Decimal("10000")
    history_window: int = 100
    trade_history_limit: int = 50
    ledger_max_retries: int = 10
    jwt_secret: str = "dev-secret-keep-it-safe"
    token_ttl_hours: int = 168
    market_prices_url: str = DEFAULT_PRICES_URL
    news_api_key: str | None = None
    market_timeout_seconds: int = 5
    log_level: str = "INFO"
    api_host: str = "127.0.0.1"
    api_port: int = 8000
    config_path: str | None = None

    def initial_holdings(self) -> dict[str, Decimal]:
        """Holdings for a freshly created account: every symbol at zero."""
        return {symbol: Decimal("0") for symbol in self.symbols}


def load_config() -> TradingConfig:
    config_path = os.getenv("TRADING_CONFIG_PATH")
    if config_path:
        _load_env_file(config_path)

    database_url = (
        os.getenv("TRADING_DATABASE_URL")
        or os.getenv("DATABASE_URL")
        or "sqlite:///./paper_trading.db"
    )

    return TradingConfig(
        database_url=database_url,
        symbols=_get_symbols("TRADING_SYMBOLS", DEFAULT_SYMBOLS),
        starting_balance=_get_decimal("TRADING_STARTING_BALANCE", Decimal("10000")),
        history_window=_get_int("TRADING_HISTORY_WINDOW", 100, minimum=1),
        trade_history_limit=_get_int("TRADING_TRADE_HISTORY_LIMIT", 50, minimum=1),
        ledger_max_retries=_get_int("TRADING_LEDGER_MAX_RETRIES", 10, minimum=1),
        jwt_secret=os.getenv("AUTH_JWT_SECRET", "dev-secret-keep-it-safe"),
        token_ttl_hours=_get_int("AUTH_TOKEN_TTL_HOURS", 168, minimum=1),
        market_prices_url=os.getenv("MARKET_PRICES_URL", DEFAULT_PRICES_URL),
        news_api_key=os.getenv("NEWS_API_KEY") or None,
        market_timeout_seconds=_get_int("MARKET_TIMEOUT_SECONDS", 5, minimum=1),
        log_level=os.getenv("LOG_LEVEL", "INFO"),
        api_host=os.getenv("API_HOST", "127.0.0.1"),
        api_port=_get_int("API_PORT", 8000, minimum=1),
        config_path=config_path,
    )


def _get_int(key: str, default: int, minimum: int | None = None) -> int:
    """Read an integer; unparsable or below-minimum values give the default."""
    value = os.getenv(key, "").strip()
    if not value:
        return default
    try:
        parsed = int(value)
    except ValueError:
        return default
    if minimum is not None and parsed < minimum:
        return default
    return parsed


def _get_decimal(key: str, default: Decimal) -> Decimal:
    value = os.getenv(key)
    if value is None or value == "":
        return default
    try:
        parsed = Decimal(value)
    except InvalidOperation:
        return default
    if not parsed.is_finite() or parsed < 0:
        return default
    return parsed


def _get_symbols(key: str, default: tuple[str, ...]) -> tuple[str, ...]:
    value = os.getenv(key)
    if value is None or value.strip() == "":
        return default
    symbols = tuple(
        dict.fromkeys(s.strip().upper() for s in value.split(",") if s.strip())
    )
    return symbols or default


def _unquote(value: str) -> str:
    if len(value) >= 2 and value[0] == value[-1] and value[0] in "\"'":
        return value[1:-1]
    return value


def _load_env_file(path: str) -> None:
    """Load ``KEY=VALUE`` lines (optionally ``export``-prefixed) into the env.

    Variables already set in the process environment win over the file.
    A missing file is ignored.
    """
    env_path = Path(path)
    if not env_path.is_file():
        return
    for raw in env_path.read_text().splitlines():
        line = raw.strip()
        if line.startswith("export "):
            line = line[len("export ") :].lstrip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        key, value = (part.strip() for part in line.split("=", 1))
        if key and key not in os.environ:
            os.environ[key] = _unquote(value)
