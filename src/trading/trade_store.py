"""Append-only storage for executed trades."""

import logging
from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from trading.db.models import TradeDB
from trading.db.session import DatabaseSession
from trading.errors import StorageUnavailable
from trading.models.trade import TradeRecord, TradeSide

logger = logging.getLogger(__name__)

DEFAULT_HISTORY_LIMIT = 50


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes even for timezone-aware columns.
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _to_record(row: TradeDB) -> TradeRecord:
    return TradeRecord(
        id=str(row.id),
        user_id=row.user_id,
        symbol=row.symbol,
        side=TradeSide(row.side),
        amount=row.amount,
        price=row.price,
        value=row.value,
        created_at=_as_utc(row.created_at),
    )


class TradeRecordStore:
    """Persists trade records and reads them back per user.

    Records are never updated or deleted.
    """

    def __init__(
        self, db_session: DatabaseSession, history_limit: int = DEFAULT_HISTORY_LIMIT
    ):
        """Initialize the store.

        Args:
            db_session: Shared database handle.
            history_limit: Largest page returned by ``list_by_user``.
        """
        self.db_session = db_session
        self.history_limit = history_limit

    def append(self, record: TradeRecord, session: Session | None = None) -> TradeRecord:
        """Insert one trade record.

        Args:
            record: The record to persist. Its ``id`` is ignored.
            session: Optional open session. When given, the insert joins that
                session's transaction and is committed with it.

        Returns:
            The stored record with its assigned ``id``.

        Raises:
            StorageUnavailable: If the insert fails.
        """
        row = TradeDB(
            user_id=record.user_id,
            symbol=record.symbol,
            side=record.side.value,
            amount=record.amount,
            price=record.price,
            value=record.value,
            created_at=record.created_at,
        )
        try:
            if session is not None:
                session.add(row)
                session.flush()
            else:
                with self.db_session.get_session() as own_session:
                    own_session.add(row)
                    own_session.flush()
        except SQLAlchemyError as e:
            logger.error(f"Failed to append trade for user {record.user_id}: {e}")
            raise StorageUnavailable(f"Could not store trade: {e}") from e

        return record.model_copy(update={"id": str(row.id)})

    def list_by_user(
        self,
        user_id: str,
        limit: int | None = DEFAULT_HISTORY_LIMIT,
        newest_first: bool = True,
    ) -> list[TradeRecord]:
        """List a user's trades ordered by creation time.

        Args:
            user_id: Account whose trades to list.
            limit: Maximum number of records, capped at ``history_limit``.
                None returns every trade (used for statistics).
            newest_first: Sort descending by ``created_at`` when True.

        Returns:
            List of TradeRecords.

        Raises:
            ValueError: If ``limit`` is less than 1.
            StorageUnavailable: If the query fails.
        """
        if limit is not None and limit < 1:
            raise ValueError(f"limit must be at least 1, got {limit}")

        if newest_first:
            ordering = (TradeDB.created_at.desc(), TradeDB.id.desc())
        else:
            ordering = (TradeDB.created_at.asc(), TradeDB.id.asc())

        stmt = select(TradeDB).where(TradeDB.user_id == user_id).order_by(*ordering)
        if limit is not None:
            stmt = stmt.limit(min(limit, self.history_limit))

        try:
            with self.db_session.get_session() as session:
                rows = session.execute(stmt).scalars().all()
                return [_to_record(row) for row in rows]
        except SQLAlchemyError as e:
            logger.error(f"Failed to list trades for user {user_id}: {e}")
            raise StorageUnavailable(f"Could not read trades: {e}") from e
