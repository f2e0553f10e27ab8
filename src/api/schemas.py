"""Pydantic schemas for API request/response models.

Response field names follow the camelCase contract of the web client via
aliases; FastAPI serializes response models by alias.
"""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, StrictFloat, StrictInt

from trading.aggregator import Achievement, ProfileStats
from trading.models.account import Account, AccountView, PortfolioSnapshot
from trading.models.trade import TradeRecord


class _Response(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class SignupRequest(BaseModel):
    """Request schema for account signup."""

    name: str | None = Field(default=None, examples=["Ada Lovelace"])
    email: str | None = Field(default=None, examples=["ada@example.com"])
    password: str | None = Field(default=None, examples=["correct horse"])


class LoginRequest(BaseModel):
    """Request schema for login."""

    email: str | None = Field(default=None, examples=["ada@example.com"])
    password: str | None = Field(default=None, examples=["correct horse"])


class TradeRequest(BaseModel):
    """Request schema for a simulated trade.

    Every field is optional here so that missing or malformed values are
    reported by the trade validator with a specific message. Numbers are
    strict, so a JSON boolean is refused rather than read as 1 or 0.
    """

    symbol: str | None = Field(default=None, examples=["BTC"])
    side: str | None = Field(default=None, examples=["buy", "sell"])
    amount: StrictInt | StrictFloat | str | None = Field(
        default=None, description="Quantity of the coin", examples=[0.1]
    )
    price: StrictInt | StrictFloat | str | None = Field(
        default=None, description="Unit price in USD", examples=[50000]
    )


class SnapshotResponse(_Response):
    timestamp: datetime
    total_value: float = Field(..., alias="totalValue")
    holdings_snapshot: dict[str, float] = Field(
        default_factory=dict, alias="holdingsSnapshot"
    )

    @classmethod
    def from_snapshot(cls, snapshot: PortfolioSnapshot) -> "SnapshotResponse":
        return cls(
            timestamp=snapshot.timestamp,
            total_value=float(snapshot.total_value),
            holdings_snapshot={
                k: float(v) for k, v in snapshot.holdings_snapshot.items()
            },
        )


class PortfolioResponse(_Response):
    """Response schema for the portfolio view and trade results."""

    balance: float = Field(..., examples=[5000.0])
    holdings: dict[str, float] = Field(
        default_factory=dict, examples=[{"BTC": 0.1, "ETH": 0.0}]
    )
    portfolio_history: list[SnapshotResponse] = Field(
        default_factory=list, alias="portfolioHistory"
    )

    @classmethod
    def from_view(cls, view: AccountView) -> "PortfolioResponse":
        return cls(
            balance=float(view.balance),
            holdings={k: float(v) for k, v in view.holdings.items()},
            portfolio_history=[
                SnapshotResponse.from_snapshot(s) for s in view.portfolio_history
            ],
        )


class TradeRecordResponse(_Response):
    """One executed trade."""

    id: str
    user_id: str = Field(..., alias="userId")
    symbol: str
    side: Literal["buy", "sell"]
    amount: float
    price: float
    value: float
    created_at: datetime = Field(..., alias="createdAt")

    @classmethod
    def from_record(cls, record: TradeRecord) -> "TradeRecordResponse":
        return cls(
            id=record.id,
            user_id=record.user_id,
            symbol=record.symbol,
            side=record.side.value,
            amount=float(record.amount),
            price=float(record.price),
            value=float(record.value),
            created_at=record.created_at,
        )


class AchievementResponse(_Response):
    key: str
    title: str
    description: str
    unlocked: bool

    @classmethod
    def from_achievement(cls, achievement: Achievement) -> "AchievementResponse":
        return cls(
            key=achievement.key,
            title=achievement.title,
            description=achievement.description,
            unlocked=achievement.unlocked,
        )


class TradeStatsResponse(_Response):
    trade_count: int = Field(..., alias="tradeCount")
    total_volume: float = Field(..., alias="totalVolume")
    unique_symbols: int = Field(..., alias="uniqueSymbols")


class ProfileResponse(PortfolioResponse):
    """Response schema for the profile page."""

    id: str
    name: str
    email: str
    achievements: list[AchievementResponse] = Field(default_factory=list)
    trade_stats: TradeStatsResponse = Field(..., alias="tradeStats")

    @classmethod
    def from_account(
        cls, account: Account, stats: ProfileStats
    ) -> "ProfileResponse":
        portfolio = PortfolioResponse.from_view(account.view())
        return cls(
            id=account.id,
            name=account.name,
            email=account.email,
            balance=portfolio.balance,
            holdings=portfolio.holdings,
            portfolio_history=portfolio.portfolio_history,
            achievements=[
                AchievementResponse.from_achievement(a) for a in stats.achievements
            ],
            trade_stats=TradeStatsResponse(
                trade_count=stats.trade_count,
                total_volume=float(stats.total_volume),
                unique_symbols=stats.unique_symbols,
            ),
        )


class UserSummary(_Response):
    id: str
    name: str
    email: str
    balance: float
    holdings: dict[str, float]


class AuthResponse(_Response):
    """Token plus the account it was issued for."""

    token: str
    user: UserSummary


class CoinPrice(_Response):
    id: str
    symbol: str
    name: str
    price: float | None = None
    change24h: float | None = None
    market_cap: float | None = Field(default=None, alias="marketCap")
    sparkline: list[float] = Field(default_factory=list)


class NewsItem(_Response):
    title: str
    description: str = ""
    source: str = ""
    url: str | None = None
    published_at: str | None = Field(default=None, alias="publishedAt")


class HealthResponse(BaseModel):
    """Response schema for health check endpoint."""

    status: str = Field(default="ok")
    message: str = Field(default="Paper Trading API")
