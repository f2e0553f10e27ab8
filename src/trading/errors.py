"""Error taxonomy for the trading ledger."""

from enum import Enum


class RejectReason(str, Enum):
    """Why an order was turned down."""

    INVALID_REQUEST = "invalid_request"
    INSUFFICIENT_BALANCE = "insufficient_balance"
    INSUFFICIENT_HOLDINGS = "insufficient_holdings"


class TradingError(Exception):
    """Base class for ledger errors."""


class TradeRejected(TradingError):
    """An order was rejected; the account was left untouched."""

    reason: RejectReason = RejectReason.INVALID_REQUEST

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidRequest(TradeRejected):
    reason = RejectReason.INVALID_REQUEST


class InsufficientBalance(TradeRejected):
    reason = RejectReason.INSUFFICIENT_BALANCE


class InsufficientHoldings(TradeRejected):
    reason = RejectReason.INSUFFICIENT_HOLDINGS


class AccountNotFound(TradingError):
    """No account exists for the given identifier."""


class EmailAlreadyRegistered(TradingError):
    """Signup attempted with an email that already has an account."""


class ConcurrencyConflict(TradingError):
    """The account kept changing underneath us and retries ran out."""


class StorageUnavailable(TradingError):
    """The database could not be reached or the write failed."""


_REJECTIONS: dict[RejectReason, type[TradeRejected]] = {
    RejectReason.INVALID_REQUEST: InvalidRequest,
    RejectReason.INSUFFICIENT_BALANCE: InsufficientBalance,
    RejectReason.INSUFFICIENT_HOLDINGS: InsufficientHoldings,
}


def rejection_for(reason: RejectReason, message: str) -> TradeRejected:
    """Build the exception matching a reject reason."""
    return _REJECTIONS[reason](message)
