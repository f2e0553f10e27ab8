"""Domain models for accounts and trades."""

from trading.models.account import Account, AccountView, PortfolioSnapshot
from trading.models.trade import Order, TradeRecord, TradeSide

__all__ = [
    "Account",
    "AccountView",
    "Order",
    "PortfolioSnapshot",
    "TradeRecord",
    "TradeSide",
]
