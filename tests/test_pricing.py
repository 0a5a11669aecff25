"""
test_pricing.py - PD pricing function and liquidation rule

    pnl    = notional * (current_p - entry_p) * sign(side)
    equity = margin_amount + pnl
    liquidated  <=>  equity <= LIQ_THRESHOLD_BETA * margin_amount
"""

import math

import pytest
from hypothesis import given
from hypothesis import strategies as st

from pdx.engine import pricing
from pdx.engine.pricing import (
    LIQ_THRESHOLD_BETA,
    clamp_probability,
    compute_equity,
    is_liquidated,
    pd_pnl,
    side_sign,
)
from pdx.models import Side

probabilities = st.floats(min_value=0.0, max_value=1.0)
notionals = st.floats(min_value=1e-6, max_value=1e12)
margin_pcts = st.floats(min_value=1e-6, max_value=1.0)


# ============================================================================
# PD P&L
# ============================================================================

class TestPdPnl:
    def test_long_gains_when_probability_rises(self):
        assert pd_pnl(1_000, 0.40, 0.55, Side.LONG) == pytest.approx(150)

    def test_short_gains_when_probability_falls(self):
        assert pd_pnl(1_000, 0.40, 0.25, Side.SHORT) == pytest.approx(150)

    def test_sides_mirror(self):
        assert pd_pnl(1_000, 0.3, 0.7, Side.LONG) == -pd_pnl(1_000, 0.3, 0.7, Side.SHORT)

    def test_no_move_no_pnl(self):
        assert pd_pnl(1_000_000, 0.62, 0.62, Side.SHORT) == 0

    def test_does_not_validate_range(self):
        # out-of-range probabilities are the caller's problem
        assert pd_pnl(100, 0.5, 1.5, Side.LONG) == pytest.approx(100)

    def test_side_sign(self):
        assert side_sign(Side.LONG) == 1
        assert side_sign(Side.SHORT) == -1

    @given(notional=notionals, entry=probabilities, current=probabilities, side=st.sampled_from(list(Side)))
    def test_pricing_identity(self, notional, entry, current, side):
        sign = 1 if side is Side.LONG else -1
        assert pd_pnl(notional, entry, current, side) == notional * (current - entry) * sign

    @given(notional=notionals, margin_pct=margin_pcts, entry=probabilities, current=probabilities,
           side=st.sampled_from(list(Side)))
    def test_equity_identity(self, notional, margin_pct, entry, current, side):
        margin = notional * margin_pct
        pnl = pd_pnl(notional, entry, current, side)
        assert compute_equity(margin, pnl) == margin + pnl


# ============================================================================
# EQUITY
# ============================================================================

class TestEquity:
    def test_no_floor(self):
        assert compute_equity(50_000, -295_000) == -245_000


# ============================================================================
# LIQUIDATION RULE
# ============================================================================

class TestIsLiquidated:
    def test_default_beta_is_five_percent(self):
        assert LIQ_THRESHOLD_BETA == 0.05

    def test_zero_equity_liquidates(self):
        assert is_liquidated(0.0, 100_000)

    def test_just_below_threshold(self):
        assert is_liquidated(4_999.99, 100_000)

    def test_just_above_threshold(self):
        assert not is_liquidated(5_000.01, 100_000)

    def test_exact_threshold_liquidates(self):
        assert is_liquidated(64.0, 256.0, beta=0.25)
        assert not is_liquidated(64.0001, 256.0, beta=0.25)

    def test_beta_read_at_call_time(self, monkeypatch):
        assert not is_liquidated(100.0, 256.0)
        monkeypatch.setattr(pricing, "LIQ_THRESHOLD_BETA", 0.5)
        assert is_liquidated(100.0, 256.0)


class TestClamp:
    @pytest.mark.parametrize("raw,expected", [(-0.2, 0.0), (0.0, 0.0), (0.37, 0.37), (1.0, 1.0), (4.0, 1.0)])
    def test_clamps(self, raw, expected):
        assert clamp_probability(raw) == expected

    def test_nan_passes_through(self):
        assert math.isnan(clamp_probability(float("nan")))
