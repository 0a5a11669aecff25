"""
ledger.py - In-memory single-writer ledger of markets and PD positions.

The Ledger is the only thing allowed to change market or position records.
Every mutating operation validates first, then replaces frozen records, and
returns the records it touched. Validation failures come back as ``Rejected``
values; nothing here raises on bad input.

Lifecycle:
    Market:   OPEN -> SETTLED
    Position: OPEN -> LIQUIDATED -> SETTLED
              OPEN -> SETTLED

The ledger performs no I/O and holds no locks: callers serialize mutations
(one CLI loop, one event handler).
"""
from __future__ import annotations

import itertools
import logging
import math
import uuid
from dataclasses import replace
from typing import Callable

from pdx.engine.pricing import compute_equity, is_liquidated, pd_pnl
from pdx.errors import RejectReason, Rejected
from pdx.models import (
    MARKET_TRANSITIONS,
    POSITION_TRANSITIONS,
    LedgerSummary,
    Market,
    MarketStatus,
    Position,
    PositionStatus,
    Side,
    check_transition,
)

logger = logging.getLogger(__name__)

LOCAL_PREFIX = "local-"


def _new_position_id() -> str:
    return str(uuid.uuid4())


def _is_number(x) -> bool:
    return isinstance(x, (int, float)) and not isinstance(x, bool) and math.isfinite(x)


def _is_probability(p) -> bool:
    return _is_number(p) and 0.0 <= p <= 1.0


def _parse_side(side) -> Side | None:
    if isinstance(side, Side):
        return side
    if isinstance(side, str):
        try:
            return Side(side.strip().upper())
        except ValueError:
            return None
    return None


class Ledger:
    """Markets and positions for one session."""

    def __init__(self, id_factory: Callable[[], str] = _new_position_id):
        self._markets: dict[str, Market] = {}
        self._positions: dict[str, Position] = {}
        self._new_id = id_factory
        self._local_seq = itertools.count(1)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_market(self, market_id: str) -> Market | None:
        return self._markets.get(market_id)

    def get_position(self, position_id: str) -> Position | None:
        return self._positions.get(position_id)

    def markets(self) -> list[Market]:
        return list(self._markets.values())

    def positions(
        self,
        market_id: str | None = None,
        status: PositionStatus | None = None,
    ) -> list[Position]:
        """Positions in creation order, optionally filtered by market and status."""
        return [
            p for p in self._positions.values()
            if (market_id is None or p.market_id == market_id)
            and (status is None or p.status is status)
        ]

    def summary(self) -> LedgerSummary:
        positions = list(self._positions.values())
        by_status = {s: 0 for s in PositionStatus}
        for p in positions:
            by_status[p.status] += 1
        return LedgerSummary(
            open_count=by_status[PositionStatus.OPEN],
            liquidated_count=by_status[PositionStatus.LIQUIDATED],
            settled_count=by_status[PositionStatus.SETTLED],
            total_notional=sum(p.notional for p in positions),
            total_margin=sum(p.margin_amount for p in positions),
            total_pnl=sum(p.pnl for p in positions),
            total_equity=sum(p.equity for p in positions),
        )

    # ------------------------------------------------------------------
    # Market registration
    # ------------------------------------------------------------------

    def register_market(self, market: Market) -> Market | Rejected:
        """Add an OPEN market (from the provider or created locally)."""
        if market.id in self._markets:
            return self._reject(RejectReason.DUPLICATE_MARKET, f"market {market.id} already registered")
        if market.status is not MarketStatus.OPEN:
            return self._reject(RejectReason.MARKET_NOT_OPEN, f"market {market.id} is {market.status.value}")
        if not _is_probability(market.probability):
            return self._reject(
                RejectReason.INVALID_PROBABILITY,
                f"market {market.id} probability {market.probability!r} outside [0, 1]",
            )
        self._markets[market.id] = market
        logger.debug("Registered market %s (p=%.4f)", market.id, market.probability)
        return market

    def create_local_market(self, question: str, probability: float) -> Market | Rejected:
        """Create a manually priced market with a ``local-<n>`` id."""
        market_id = f"{LOCAL_PREFIX}{next(self._local_seq)}"
        while market_id in self._markets:
            market_id = f"{LOCAL_PREFIX}{next(self._local_seq)}"
        return self.register_market(
            Market(id=market_id, question=question, probability=probability, source="local")
        )

    def update_market_details(self, market_id: str, question: str, description: str) -> Market | None:
        """Replace a market's descriptive text. Probability and status are not touched."""
        market = self._markets.get(market_id)
        if market is None:
            return None
        updated = replace(market, question=question or market.question, description=description)
        self._markets[market_id] = updated
        return updated

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def open_position(
        self,
        market_id: str,
        side: Side | str,
        notional: float,
        margin_pct: float,
    ) -> Position | Rejected:
        """Open a PD position at the market's current probability."""
        market = self._markets.get(market_id)
        if market is None:
            return self._reject(RejectReason.UNKNOWN_MARKET, f"no market {market_id}")
        if market.status is not MarketStatus.OPEN:
            return self._reject(RejectReason.MARKET_NOT_OPEN, f"market {market_id} is {market.status.value}")
        parsed_side = _parse_side(side)
        if parsed_side is None:
            return self._reject(RejectReason.INVALID_SIDE, f"side must be LONG or SHORT, got {side!r}")
        if not _is_number(notional) or notional <= 0:
            return self._reject(RejectReason.INVALID_NOTIONAL, f"notional must be positive, got {notional!r}")
        if not _is_number(margin_pct) or not (0 < margin_pct <= 1):
            return self._reject(RejectReason.INVALID_MARGIN, f"margin_pct must be in (0, 1], got {margin_pct!r}")

        margin_amount = notional * margin_pct
        entry_p = market.probability
        position = Position(
            id=self._new_id(),
            market_id=market.id,
            market_name=market.question,
            side=parsed_side,
            notional=notional,
            margin_pct=margin_pct,
            margin_amount=margin_amount,
            entry_probability=entry_p,
            current_probability=entry_p,
            pnl=0.0,
            equity=compute_equity(margin_amount, 0.0),
        )
        self._positions[position.id] = position
        logger.info(
            "Opened %s %s notional=%.2f margin=%.2f at p=%.4f on %s",
            position.id, parsed_side.value, notional, margin_amount, entry_p, market.id,
        )
        return position

    def apply_price_update(self, market_id: str, new_probability: float) -> list[Position] | Rejected:
        """Move a market's probability and recompute its OPEN positions.

        Positions that hit the liquidation threshold are moved to LIQUIDATED
        with pnl, equity and current_probability frozen at this update.
        Returns the recomputed positions.
        """
        market = self._markets.get(market_id)
        if market is None:
            return self._reject(RejectReason.UNKNOWN_MARKET, f"no market {market_id}")
        if market.status is not MarketStatus.OPEN:
            return self._reject(RejectReason.MARKET_NOT_OPEN, f"market {market_id} is {market.status.value}")
        if not _is_probability(new_probability):
            return self._reject(
                RejectReason.INVALID_PROBABILITY, f"probability {new_probability!r} outside [0, 1]"
            )

        self._markets[market_id] = replace(market, probability=float(new_probability))

        updated = []
        for pos in self.positions(market_id=market_id, status=PositionStatus.OPEN):
            pnl = pd_pnl(pos.notional, pos.entry_probability, new_probability, pos.side)
            equity = compute_equity(pos.margin_amount, pnl)
            new_pos = replace(pos, current_probability=float(new_probability), pnl=pnl, equity=equity)
            if is_liquidated(equity, pos.margin_amount):
                new_pos = self._transition(new_pos, PositionStatus.LIQUIDATED)
                logger.info(
                    "Liquidated %s at p=%.4f: pnl=%.2f equity=%.2f margin=%.2f",
                    pos.id, new_probability, pnl, equity, pos.margin_amount,
                )
            else:
                logger.debug("Recomputed %s at p=%.4f: pnl=%.2f equity=%.2f", pos.id, new_probability, pnl, equity)
            self._positions[pos.id] = new_pos
            updated.append(new_pos)
        return updated

    def settle_market(self, market_id: str, outcome: int) -> list[Position] | Rejected:
        """Settle a market at outcome 0 or 1 and finalize its positions.

        OPEN positions are priced at the outcome and settled without a
        liquidation check. LIQUIDATED positions keep their frozen values.
        Returns the positions settled by this call.
        """
        market = self._markets.get(market_id)
        if market is None:
            return self._reject(RejectReason.UNKNOWN_MARKET, f"no market {market_id}")
        if market.status is not MarketStatus.OPEN:
            return self._reject(RejectReason.MARKET_NOT_OPEN, f"market {market_id} is already {market.status.value}")
        if isinstance(outcome, bool) or outcome not in (0, 1):
            return self._reject(RejectReason.INVALID_OUTCOME, f"outcome must be 0 or 1, got {outcome!r}")
        outcome = int(outcome)

        check_transition(market.status, MarketStatus.SETTLED, MARKET_TRANSITIONS)
        self._markets[market_id] = replace(
            market, status=MarketStatus.SETTLED, outcome=outcome, probability=float(outcome)
        )

        finalized = []
        for pos in self.positions(market_id=market_id):
            if pos.status is PositionStatus.SETTLED:
                continue
            if pos.status is PositionStatus.LIQUIDATED:
                new_pos = self._transition(pos, PositionStatus.SETTLED)
            else:
                pnl = pd_pnl(pos.notional, pos.entry_probability, outcome, pos.side)
                new_pos = self._transition(
                    replace(
                        pos,
                        current_probability=float(outcome),
                        pnl=pnl,
                        equity=compute_equity(pos.margin_amount, pnl),
                    ),
                    PositionStatus.SETTLED,
                )
            self._positions[pos.id] = new_pos
            finalized.append(new_pos)

        logger.info("Settled %s at outcome=%d; finalized %d position(s)", market_id, outcome, len(finalized))
        return finalized

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    @staticmethod
    def _transition(pos: Position, new_status: PositionStatus) -> Position:
        check_transition(pos.status, new_status, POSITION_TRANSITIONS)
        return replace(pos, status=new_status)

    @staticmethod
    def _reject(reason: RejectReason, detail: str) -> Rejected:
        logger.warning("Rejected: %s", detail)
        return Rejected(reason, detail)
