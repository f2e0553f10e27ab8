"""Trade execution and portfolio ledger engine."""

from trading.config import TradingConfig, load_config

__all__ = ["TradingConfig", "load_config"]
