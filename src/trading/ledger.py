"""Account ledger: owns balances, holdings and portfolio history.

Trades are applied with optimistic concurrency. The account is read,
validated, and written back with ``UPDATE ... WHERE id = :id AND
version = :version``. If another trade for the same account committed in
between, no row matches, the transaction is rolled back and the whole
read-validate-write cycle runs again. Different accounts never contend.
The trade record is inserted in the same transaction as the account update,
so either both are visible or neither is.
"""

import logging
import uuid
from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from trading.config import TradingConfig
from trading.db.models import UserDB
from trading.db.session import DatabaseSession
from trading.errors import (
    AccountNotFound,
    ConcurrencyConflict,
    EmailAlreadyRegistered,
    StorageUnavailable,
)
from trading.models.account import Account, AccountView, PortfolioSnapshot
from trading.models.trade import Order, TradeRecord
from trading.snapshots import append_snapshot
from trading.trade_store import TradeRecordStore
from trading.validator import ValidationResult, validate

logger = logging.getLogger(__name__)


class _StaleVersion(Exception):
    """The account version moved between read and write."""


def _encode_holdings(holdings: dict[str, Decimal]) -> dict[str, str]:
    return {symbol: str(quantity) for symbol, quantity in holdings.items()}


def _encode_history(history: list[PortfolioSnapshot]) -> list[dict]:
    return [s.model_dump(mode="json", by_alias=True) for s in history]


def _to_account(row: UserDB) -> Account:
    created_at = row.created_at
    if created_at is not None and created_at.tzinfo is None:
        created_at = created_at.replace(tzinfo=timezone.utc)
    return Account(
        id=row.id,
        name=row.name,
        email=row.email,
        balance=row.balance,
        holdings={symbol: Decimal(q) for symbol, q in (row.holdings or {}).items()},
        portfolio_history=[
            PortfolioSnapshot.model_validate(s) for s in (row.portfolio_history or [])
        ],
        version=row.version,
        created_at=created_at,
    )


class AccountLedger:
    """Applies trades to accounts and keeps the trade log in step."""

    def __init__(
        self,
        db_session: DatabaseSession,
        trade_store: TradeRecordStore,
        config: TradingConfig | None = None,
    ):
        """Initialize the ledger.

        Args:
            db_session: Shared database handle.
            trade_store: Store that receives a record for every accepted trade.
            config: Symbol universe, starting balance, history window and
                retry budget. Defaults to ``TradingConfig()``.
        """
        self.db_session = db_session
        self.trade_store = trade_store
        self.config = config or TradingConfig()

    def create_account(self, name: str, email: str, password_hash: str) -> Account:
        """Create an account with the starting balance and empty holdings.

        Raises:
            EmailAlreadyRegistered: If the email is already in use.
            StorageUnavailable: If the insert fails for any other reason.
        """
        if self.get_account_by_email(email) is not None:
            raise EmailAlreadyRegistered(f"Email already registered: {email}")

        row = UserDB(
            id=uuid.uuid4().hex,
            name=name,
            email=email,
            password_hash=password_hash,
            balance=self.config.starting_balance,
            holdings=_encode_holdings(self.config.initial_holdings()),
            portfolio_history=[],
            version=0,
            created_at=datetime.now(timezone.utc),
        )
        try:
            with self.db_session.get_session() as session:
                session.add(row)
                session.flush()
                account = _to_account(row)
        except IntegrityError as e:
            raise EmailAlreadyRegistered(f"Email already registered: {email}") from e
        except SQLAlchemyError as e:
            logger.error(f"Failed to create account for {email}: {e}")
            raise StorageUnavailable(f"Could not create account: {e}") from e

        logger.info(f"Created account {account.id} for {email}")
        return account

    def get_account(self, user_id: str) -> Account:
        """Load an account by id.

        Raises:
            AccountNotFound: If no account has this id.
            StorageUnavailable: If the query fails.
        """
        try:
            with self.db_session.get_session() as session:
                row = session.get(UserDB, user_id)
                if row is None:
                    raise AccountNotFound(f"No account with id {user_id}")
                return _to_account(row)
        except SQLAlchemyError as e:
            logger.error(f"Failed to load account {user_id}: {e}")
            raise StorageUnavailable(f"Could not load account: {e}") from e

    def get_account_by_email(self, email: str) -> Account | None:
        """Look up an account by email, returning None if absent."""
        try:
            with self.db_session.get_session() as session:
                stmt = select(UserDB).where(UserDB.email == email)
                row = session.execute(stmt).scalar_one_or_none()
                return _to_account(row) if row is not None else None
        except SQLAlchemyError as e:
            logger.error(f"Failed to look up account by email: {e}")
            raise StorageUnavailable(f"Could not load account: {e}") from e

    def get_password_hash(self, user_id: str) -> str:
        """Return the stored password hash for an account."""
        try:
            with self.db_session.get_session() as session:
                row = session.get(UserDB, user_id)
                if row is None:
                    raise AccountNotFound(f"No account with id {user_id}")
                return row.password_hash
        except SQLAlchemyError as e:
            raise StorageUnavailable(f"Could not load account: {e}") from e

    def apply_trade(self, user_id: str, order: Order) -> AccountView:
        """Validate an order and, if accepted, apply it atomically.

        Args:
            user_id: Account to trade on.
            order: Raw order from the client.

        Returns:
            The post-trade balance, holdings and portfolio history.

        Raises:
            InvalidRequest, InsufficientBalance, InsufficientHoldings: The
                order was rejected; nothing was written.
            AccountNotFound: No such account.
            ConcurrencyConflict: The account kept changing and retries ran out.
            StorageUnavailable: The database failed; nothing was written.
        """
        attempts = max(1, self.config.ledger_max_retries)
        for attempt in range(1, attempts + 1):
            account = self.get_account(user_id)
            result = validate(account, order)
            if not result.accepted:
                logger.info(
                    f"Rejected trade for {user_id}: {result.reason.value} "
                    f"({result.message})"
                )
                result.raise_for_rejection()

            try:
                view = self._commit(account, result)
            except _StaleVersion:
                logger.warning(
                    f"Account {user_id} changed during trade "
                    f"(attempt {attempt}/{attempts}), retrying"
                )
                continue

            logger.info(
                f"Executed {result.side.value} {result.amount} {result.symbol} "
                f"@ {result.price} for {user_id}; balance={view.balance}"
            )
            return view

        raise ConcurrencyConflict(
            f"Account {user_id} was modified concurrently {attempts} times; "
            "trade not applied"
        )

    def _commit(self, account: Account, result: ValidationResult) -> AccountView:
        now = datetime.now(timezone.utc)
        history = append_snapshot(
            account.portfolio_history,
            result.new_balance,
            result.new_holdings,
            now,
            window=self.config.history_window,
        )
        record = TradeRecord(
            user_id=account.id,
            symbol=result.symbol,
            side=result.side,
            amount=result.amount,
            price=result.price,
            value=result.trade_value,
            created_at=now,
        )

        try:
            with self.db_session.get_session() as session:
                if not self._conditional_update(session, account, result, history):
                    raise _StaleVersion()
                self.trade_store.append(record, session=session)
        except SQLAlchemyError as e:
            logger.error(f"Failed to apply trade for {account.id}: {e}")
            raise StorageUnavailable(f"Could not apply trade: {e}") from e

        return AccountView(
            balance=result.new_balance,
            holdings=result.new_holdings,
            portfolio_history=history,
        )

    @staticmethod
    def _conditional_update(
        session: Session,
        account: Account,
        result: ValidationResult,
        history: list[PortfolioSnapshot],
    ) -> bool:
        stmt = (
            update(UserDB)
            .where(UserDB.id == account.id, UserDB.version == account.version)
            .values(
                balance=result.new_balance,
                holdings=_encode_holdings(result.new_holdings),
                portfolio_history=_encode_history(history),
                version=UserDB.version + 1,
            )
            .execution_options(synchronize_session=False)
        )
        return session.execute(stmt).rowcount == 1
