"""FastAPI dependencies exposing the components created at startup.

Everything lives on ``app.state`` for the lifetime of the application;
routes receive it through ``Depends`` instead of module globals.
"""

from fastapi import Request

from api.market import MarketDataClient
from trading.aggregator import ProfileAggregator
from trading.config import TradingConfig
from trading.ledger import AccountLedger
from trading.trade_store import TradeRecordStore


def get_config(request: Request) -> TradingConfig:
    return request.app.state.config


def get_ledger(request: Request) -> AccountLedger:
    return request.app.state.ledger


def get_trade_store(request: Request) -> TradeRecordStore:
    return request.app.state.trade_store


def get_aggregator(request: Request) -> ProfileAggregator:
    return request.app.state.aggregator


def get_market_client(request: Request) -> MarketDataClient:
    return request.app.state.market_client
