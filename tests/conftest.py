"""Shared pytest fixtures for ledger and API testing."""

from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from api.main import create_app
from trading.aggregator import ProfileAggregator
from trading.config import TradingConfig
from trading.db.session import DatabaseSession
from trading.ledger import AccountLedger
from trading.models.account import Account
from trading.trade_store import TradeRecordStore


@pytest.fixture
def config(tmp_path: Path) -> TradingConfig:
    """Configuration backed by a throwaway SQLite file."""
    return TradingConfig(
        database_url=f"sqlite:///{tmp_path / 'trading.db'}",
        jwt_secret="test-secret",
        news_api_key=None,
    )


@pytest.fixture
def db_session(config: TradingConfig):
    """Database with tables created, disposed after the test."""
    session = DatabaseSession(config.database_url)
    session.create_tables()
    yield session
    session.dispose()


@pytest.fixture
def trade_store(db_session: DatabaseSession, config: TradingConfig) -> TradeRecordStore:
    return TradeRecordStore(db_session, history_limit=config.trade_history_limit)


@pytest.fixture
def ledger(
    db_session: DatabaseSession, trade_store: TradeRecordStore, config: TradingConfig
) -> AccountLedger:
    return AccountLedger(db_session, trade_store, config)


@pytest.fixture
def aggregator(trade_store: TradeRecordStore) -> ProfileAggregator:
    return ProfileAggregator(trade_store)


@pytest.fixture
def account(ledger: AccountLedger) -> Account:
    """A freshly signed-up account."""
    return ledger.create_account(
        name="Test Trader", email="trader@example.com", password_hash="not-a-hash"
    )


@pytest.fixture
def client(config: TradingConfig):
    """Test client with the lifespan (database, stores) running."""
    with TestClient(create_app(config)) as test_client:
        yield test_client


@pytest.fixture
def auth_headers(client: TestClient) -> dict[str, str]:
    """Bearer header for a newly signed-up user."""
    response = client.post(
        "/api/auth/signup",
        json={"name": "Ada", "email": "ada@example.com", "password": "s3cret!"},
    )
    assert response.status_code == 201
    return {"Authorization": f"Bearer {response.json()['token']}"}
