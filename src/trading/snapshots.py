"""Rolling portfolio history."""

from collections.abc import Mapping, Sequence
from datetime import datetime
from decimal import Decimal

from trading.models.account import PortfolioSnapshot

DEFAULT_HISTORY_WINDOW = 100


def append_snapshot(
    history: Sequence[PortfolioSnapshot],
    balance: Decimal,
    holdings: Mapping[str, Decimal],
    timestamp: datetime,
    window: int = DEFAULT_HISTORY_WINDOW,
) -> list[PortfolioSnapshot]:
    """Return a new history with one more snapshot, capped to ``window``.

    The oldest entries are dropped first. ``history`` is left untouched.
    """
    if window < 1:
        raise ValueError(f"window must be at least 1, got {window}")

    snapshot = PortfolioSnapshot(
        timestamp=timestamp,
        total_value=balance,
        holdings_snapshot=dict(holdings),
    )
    updated = [*history, snapshot]
    return updated[-window:]
