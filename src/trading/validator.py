"""Order validation against an account's current state.

Pure computation: nothing here touches storage, and the inputs are never
mutated. The ledger feeds the result into its conditional update.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from decimal import (
    Context,
    Decimal,
    DecimalException,
    DivisionByZero,
    Inexact,
    InvalidOperation,
    Overflow,
    Subnormal,
    Underflow,
    localcontext,
)
from typing import Any, Protocol

from trading.errors import RejectReason, rejection_for
from trading.models.trade import Order, TradeSide

# Ledger arithmetic never rounds: any result that would need rounding,
# overflow or underflow raises and the order is rejected.
EXACT_CONTEXT = Context(
    prec=40,
    traps=[InvalidOperation, DivisionByZero, Overflow, Underflow, Subnormal, Inexact],
)


class AccountState(Protocol):
    """Anything exposing a balance and a holdings mapping."""

    balance: Decimal
    holdings: Mapping[str, Decimal]


@dataclass(frozen=True)
class ValidationResult:
    """Outcome of validating an order.

    Accepted results carry the resulting state; rejected ones carry the
    reason and a human-readable message.
    """

    accepted: bool
    reason: RejectReason | None = None
    message: str = ""
    symbol: str | None = None
    side: TradeSide | None = None
    amount: Decimal | None = None
    price: Decimal | None = None
    trade_value: Decimal | None = None
    new_balance: Decimal | None = None
    new_holdings: dict[str, Decimal] = field(default_factory=dict)

    def raise_for_rejection(self) -> None:
        """Raise the matching TradeRejected subclass if not accepted."""
        if not self.accepted:
            raise rejection_for(self.reason, self.message)


def _reject(reason: RejectReason, message: str) -> ValidationResult:
    return ValidationResult(accepted=False, reason=reason, message=message)


def _parse_positive(value: Any) -> Decimal | None:
    """Coerce a client-supplied number to a positive finite Decimal.

    Returns None when the value is missing, non-numeric, non-finite or not
    strictly positive.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, float):
        value = str(value)
    if not isinstance(value, (int, str, Decimal)):
        return None
    try:
        number = Decimal(value.strip() if isinstance(value, str) else value)
    except (InvalidOperation, ValueError):
        return None
    if not number.is_finite() or number <= 0:
        return None
    return number


def validate(account: AccountState, order: Order) -> ValidationResult:
    """Decide whether an order can execute against the given state.

    Args:
        account: Current state; its holdings keys are the recognized symbols.
        order: The order to evaluate.

    Returns:
        ValidationResult. Malformed fields are reported as invalid_request
        before balance or holdings are looked at.
    """
    balance = account.balance
    holdings = account.holdings
    symbol = order.symbol
    if not isinstance(symbol, str) or symbol not in holdings:
        return _reject(RejectReason.INVALID_REQUEST, f"Unknown symbol: {symbol!r}")

    try:
        side = TradeSide(order.side)
    except ValueError:
        return _reject(
            RejectReason.INVALID_REQUEST, "Invalid side: must be 'buy' or 'sell'"
        )

    amount = _parse_positive(order.amount)
    if amount is None:
        return _reject(
            RejectReason.INVALID_REQUEST, "Amount must be a positive number"
        )

    price = _parse_positive(order.price)
    if price is None:
        return _reject(RejectReason.INVALID_REQUEST, "Price must be a positive number")

    held = holdings[symbol]
    new_holdings = dict(holdings)

    try:
        with localcontext(EXACT_CONTEXT):
            trade_value = amount * price
            if side is TradeSide.BUY:
                if balance < trade_value:
                    return _reject(
                        RejectReason.INSUFFICIENT_BALANCE, "Insufficient balance"
                    )
                new_balance = balance - trade_value
                new_holdings[symbol] = held + amount
            else:
                if held < amount:
                    return _reject(
                        RejectReason.INSUFFICIENT_HOLDINGS, "Insufficient holdings"
                    )
                new_balance = balance + trade_value
                new_holdings[symbol] = held - amount
    except DecimalException:
        return _reject(
            RejectReason.INVALID_REQUEST,
            "Amount and price cannot be represented exactly",
        )

    return ValidationResult(
        accepted=True,
        symbol=symbol,
        side=side,
        amount=amount,
        price=price,
        trade_value=trade_value,
        new_balance=new_balance,
        new_holdings=new_holdings,
    )
