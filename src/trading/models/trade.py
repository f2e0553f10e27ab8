"""Order and trade record models."""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class TradeSide(str, Enum):
    """Direction of a trade."""

    BUY = "buy"
    SELL = "sell"


@dataclass(frozen=True)
class Order:
    """Order as received from a client, not yet validated.

    Fields hold raw client input; the validator decides whether they
    are well formed.
    """

    symbol: Any
    side: Any
    amount: Any
    price: Any


class TradeRecord(BaseModel):
    """Immutable record of an executed trade."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str | None = Field(default=None, description="Assigned by the store on append")
    user_id: str = Field(..., alias="userId")
    symbol: str
    side: TradeSide
    amount: Decimal = Field(..., gt=0)
    price: Decimal = Field(..., gt=0)
    value: Decimal = Field(..., description="amount * price")
    created_at: datetime = Field(..., alias="createdAt")
