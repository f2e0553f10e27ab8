"""Account and portfolio snapshot models."""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field


class PortfolioSnapshot(BaseModel):
    """Point-in-time valuation appended to an account's history."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    timestamp: datetime = Field(
        ...,
        description="When the trade that produced this snapshot executed",
    )
    total_value: Decimal = Field(
        ...,
        alias="totalValue",
        description="Post-trade cash balance",
        examples=[Decimal("5000.00")],
    )
    holdings_snapshot: dict[str, Decimal] = Field(
        default_factory=dict,
        alias="holdingsSnapshot",
        description="Copy of the holdings at the time of the snapshot",
    )


class AccountView(BaseModel):
    """Client-facing view of an account's ledger state."""

    model_config = ConfigDict(populate_by_name=True)

    balance: Decimal
    holdings: dict[str, Decimal]
    portfolio_history: list[PortfolioSnapshot] = Field(
        default_factory=list, alias="portfolioHistory"
    )


class Account(BaseModel):
    """Full account record as owned by the ledger."""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    name: str
    email: str
    balance: Decimal = Field(..., ge=0)
    holdings: dict[str, Decimal] = Field(default_factory=dict)
    portfolio_history: list[PortfolioSnapshot] = Field(
        default_factory=list, alias="portfolioHistory"
    )
    version: int = Field(default=0, ge=0)
    created_at: datetime | None = None

    def view(self) -> AccountView:
        return AccountView(
            balance=self.balance,
            holdings=dict(self.holdings),
            portfolio_history=list(self.portfolio_history),
        )
