"""Trade statistics and achievements, recomputed on every request."""

from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from decimal import Decimal

from trading.models.trade import TradeRecord
from trading.trade_store import TradeRecordStore

HIGH_VOLUME_THRESHOLD = Decimal("50000")


@dataclass(frozen=True)
class TradeStats:
    """Aggregate figures over a user's full trade history."""

    trade_count: int = 0
    total_volume: Decimal = Decimal("0")
    unique_symbols: int = 0


@dataclass(frozen=True)
class Achievement:
    key: str
    title: str
    description: str
    unlocked: bool


@dataclass(frozen=True)
class AchievementRule:
    key: str
    title: str
    description: str
    predicate: Callable[[TradeStats], bool]

    def evaluate(self, stats: TradeStats) -> Achievement:
        return Achievement(
            key=self.key,
            title=self.title,
            description=self.description,
            unlocked=self.predicate(stats),
        )


ACHIEVEMENT_RULES: tuple[AchievementRule, ...] = (
    AchievementRule(
        key="first-trade",
        title="First Trade",
        description="Complete your first simulated trade.",
        predicate=lambda s: s.trade_count >= 1,
    ),
    AchievementRule(
        key="ten-trades",
        title="Active Trader",
        description="Complete 10 or more simulated trades.",
        predicate=lambda s: s.trade_count >= 10,
    ),
    AchievementRule(
        key="high-volume",
        title="High Roller",
        description="Trade over $50,000 total notional volume.",
        predicate=lambda s: s.total_volume >= HIGH_VOLUME_THRESHOLD,
    ),
    AchievementRule(
        key="diversified",
        title="Diversified Portfolio",
        description="Trade at least 3 different coins.",
        predicate=lambda s: s.unique_symbols >= 3,
    ),
)


@dataclass(frozen=True)
class ProfileStats:
    """Statistics plus achievement flags for one user."""

    trade_stats: TradeStats
    achievements: list[Achievement] = field(default_factory=list)

    @property
    def trade_count(self) -> int:
        return self.trade_stats.trade_count

    @property
    def total_volume(self) -> Decimal:
        return self.trade_stats.total_volume

    @property
    def unique_symbols(self) -> int:
        return self.trade_stats.unique_symbols

    def achievement(self, key: str) -> Achievement:
        """Look up an achievement by key.

        Raises:
            KeyError: If no achievement has this key.
        """
        for achievement in self.achievements:
            if achievement.key == key:
                return achievement
        raise KeyError(key)


def compute_stats(trades: Iterable[TradeRecord]) -> TradeStats:
    """Fold trade records into counts, notional volume and distinct symbols."""
    count = 0
    volume = Decimal("0")
    symbols: set[str] = set()
    for trade in trades:
        count += 1
        volume += trade.value
        symbols.add(trade.symbol)
    return TradeStats(trade_count=count, total_volume=volume, unique_symbols=len(symbols))


def evaluate_achievements(stats: TradeStats) -> list[Achievement]:
    return [rule.evaluate(stats) for rule in ACHIEVEMENT_RULES]


class ProfileAggregator:
    """Derives read-only profile statistics from the trade log.

    Holds no state of its own; every call reads the full history.
    """

    def __init__(self, trade_store: TradeRecordStore):
        self.trade_store = trade_store

    def aggregate(self, user_id: str) -> ProfileStats:
        trades = self.trade_store.list_by_user(user_id, limit=None)
        stats = compute_stats(trades)
        return ProfileStats(trade_stats=stats, achievements=evaluate_achievements(stats))
