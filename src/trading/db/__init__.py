"""Persistence for accounts and trades."""

from trading.db.models import Base, TradeDB, UserDB
from trading.db.session import DatabaseSession

__all__ = ["Base", "DatabaseSession", "TradeDB", "UserDB"]
