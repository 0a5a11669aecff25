"""
test_settlement.py - Market settlement and position finalization

    OPEN       -> SETTLED  (priced at the outcome, no liquidation check)
    LIQUIDATED -> SETTLED  (liquidation-time values kept)
    SETTLED    -> no change

A second settlement of the same market is rejected.
"""

import pytest

from pdx.errors import InvalidTransition, RejectReason
from pdx.models import (
    MARKET_TRANSITIONS,
    POSITION_TRANSITIONS,
    MarketStatus,
    PositionStatus,
    Side,
    check_transition,
)


class TestSettleMarket:
    def test_worked_example_short_settles_at_one(self, ledger):
        market = ledger.create_local_market("Will X happen?", 0.41)
        pos = ledger.open_position(market.id, Side.SHORT, 500_000, 0.10)

        [settled] = ledger.settle_market(market.id, 1)

        assert settled.id == pos.id
        assert settled.pnl == pytest.approx(-295_000)
        assert settled.equity == pytest.approx(-245_000)
        assert settled.current_probability == 1.0
        assert settled.status is PositionStatus.SETTLED

    def test_market_becomes_settled(self, ledger, market):
        ledger.settle_market(market.id, 0)
        m = ledger.get_market(market.id)
        assert m.status is MarketStatus.SETTLED
        assert m.outcome == 0
        assert m.probability == 0.0

    def test_settlement_skips_liquidation_check(self, ledger, market):
        pos = ledger.open_position(market.id, Side.LONG, 1_000_000, 0.10)
        [settled] = ledger.settle_market(market.id, 0)
        assert settled.pnl == pytest.approx(-500_000)
        assert settled.equity == pytest.approx(-400_000)
        assert settled.status is PositionStatus.SETTLED
        assert ledger.get_position(pos.id).status is PositionStatus.SETTLED

    def test_liquidated_position_keeps_values(self, ledger, market):
        pos = ledger.open_position(market.id, Side.LONG, 1_000_000, 0.10)
        [liquidated] = ledger.apply_price_update(market.id, 0.40)

        [settled] = ledger.settle_market(market.id, 1)

        assert settled.id == pos.id
        assert settled.status is PositionStatus.SETTLED
        assert settled.pnl == liquidated.pnl
        assert settled.equity == liquidated.equity
        assert settled.current_probability == 0.40

    def test_every_position_on_market_settled(self, ledger, market):
        other = ledger.create_local_market("Other?", 0.5)
        ledger.open_position(market.id, Side.LONG, 1_000, 0.5)
        ledger.open_position(market.id, Side.SHORT, 2_000, 0.5)
        ledger.open_position(market.id, Side.LONG, 1_000_000, 0.1)
        untouched = ledger.open_position(other.id, Side.LONG, 1_000, 0.5)
        ledger.apply_price_update(market.id, 0.4)

        finalized = ledger.settle_market(market.id, 1)

        assert len(finalized) == 3
        assert all(p.status is PositionStatus.SETTLED for p in ledger.positions(market_id=market.id))
        assert ledger.get_position(untouched.id) == untouched

    def test_no_positions(self, ledger, market):
        assert ledger.settle_market(market.id, 1) == []

    def test_resettlement_rejected(self, ledger, market):
        ledger.open_position(market.id, Side.LONG, 1_000, 0.5)
        [first] = ledger.settle_market(market.id, 1)

        for outcome in (1, 0):
            result = ledger.settle_market(market.id, outcome)
            assert result.reason is RejectReason.MARKET_NOT_OPEN

        assert ledger.get_market(market.id).outcome == 1
        assert ledger.get_position(first.id) == first

    @pytest.mark.parametrize("outcome", [2, -1, 0.5, "1", None, True])
    def test_invalid_outcome(self, ledger, market, outcome):
        pos = ledger.open_position(market.id, Side.LONG, 1_000, 0.5)
        result = ledger.settle_market(market.id, outcome)
        assert result.reason is RejectReason.INVALID_OUTCOME
        assert ledger.get_market(market.id).status is MarketStatus.OPEN
        assert ledger.get_position(pos.id) == pos

    def test_float_outcome_accepted(self, ledger, market):
        ledger.settle_market(market.id, 1.0)
        assert ledger.get_market(market.id).outcome == 1

    def test_unknown_market(self, ledger):
        assert ledger.settle_market("nope", 1).reason is RejectReason.UNKNOWN_MARKET


class TestTransitions:
    @pytest.mark.parametrize("current,new", [
        (PositionStatus.OPEN, PositionStatus.LIQUIDATED),
        (PositionStatus.OPEN, PositionStatus.SETTLED),
        (PositionStatus.LIQUIDATED, PositionStatus.SETTLED),
    ])
    def test_allowed_position_moves(self, current, new):
        check_transition(current, new, POSITION_TRANSITIONS)

    @pytest.mark.parametrize("current,new", [
        (PositionStatus.SETTLED, PositionStatus.OPEN),
        (PositionStatus.SETTLED, PositionStatus.LIQUIDATED),
        (PositionStatus.LIQUIDATED, PositionStatus.OPEN),
        (PositionStatus.OPEN, PositionStatus.OPEN),
    ])
    def test_forbidden_position_moves(self, current, new):
        with pytest.raises(InvalidTransition):
            check_transition(current, new, POSITION_TRANSITIONS)

    def test_settled_market_is_terminal(self):
        with pytest.raises(InvalidTransition):
            check_transition(MarketStatus.SETTLED, MarketStatus.OPEN, MARKET_TRANSITIONS)
