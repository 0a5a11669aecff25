from dataclasses import dataclass
from enum import Enum

from pdx.errors import InvalidTransition


class Side(str, Enum):
    LONG = "LONG"     # profits when YES-probability rises
    SHORT = "SHORT"   # profits when YES-probability falls


class MarketStatus(str, Enum):
    OPEN = "OPEN"
    SETTLED = "SETTLED"


class PositionStatus(str, Enum):
    OPEN = "OPEN"
    LIQUIDATED = "LIQUIDATED"
    SETTLED = "SETTLED"


# Allowed lifecycle moves. A liquidated position still settles with its market.
POSITION_TRANSITIONS: dict[PositionStatus, frozenset[PositionStatus]] = {
    PositionStatus.OPEN: frozenset({PositionStatus.LIQUIDATED, PositionStatus.SETTLED}),
    PositionStatus.LIQUIDATED: frozenset({PositionStatus.SETTLED}),
    PositionStatus.SETTLED: frozenset(),
}

MARKET_TRANSITIONS: dict[MarketStatus, frozenset[MarketStatus]] = {
    MarketStatus.OPEN: frozenset({MarketStatus.SETTLED}),
    MarketStatus.SETTLED: frozenset(),
}


def check_transition(current: Enum, new: Enum, table: dict) -> None:
    """Raise InvalidTransition unless ``current -> new`` is in ``table``."""
    if new not in table[current]:
        raise InvalidTransition(f"{current.value} -> {new.value} is not a valid transition")


@dataclass(frozen=True)
class Market:
    id: str
    question: str
    probability: float            # 0.0 – 1.0, current YES-probability
    status: MarketStatus = MarketStatus.OPEN
    outcome: int | None = None    # set iff status is SETTLED
    description: str = ""
    slug: str = ""
    source: str = "local"         # "local" or "polymarket"
    provider_id: str = ""

    def __post_init__(self) -> None:
        if (self.outcome is None) != (self.status is MarketStatus.OPEN):
            raise ValueError(
                f"market {self.id}: outcome must be set iff status is SETTLED"
            )


@dataclass(frozen=True)
class Position:
    id: str
    market_id: str
    side: Side
    notional: float
    margin_pct: float
    margin_amount: float          # notional * margin_pct, fixed at open
    entry_probability: float
    current_probability: float
    pnl: float = 0.0
    equity: float = 0.0
    status: PositionStatus = PositionStatus.OPEN
    market_name: str = ""

    @property
    def is_open(self) -> bool:
        return self.status is PositionStatus.OPEN


@dataclass(frozen=True)
class LedgerSummary:
    open_count: int
    liquidated_count: int
    settled_count: int
    total_notional: float
    total_margin: float
    total_pnl: float
    total_equity: float
