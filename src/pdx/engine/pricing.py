"""PD pricing and the liquidation rule.

P&L of a Probability-Difference position is the notional times the change in
the market's YES-probability, signed by side:

    pnl    = notional * (current_p - entry_p) * sign(side)
    equity = margin_amount + pnl

A position is liquidated once equity falls to LIQ_THRESHOLD_BETA of its
initial margin. None of these functions validate probability range; callers
clamp before pricing.
"""

import math

from pdx.models import Side

# Fraction of initial margin at or below which equity forces liquidation.
LIQ_THRESHOLD_BETA = 0.05


def side_sign(side: Side) -> int:
    return 1 if side is Side.LONG else -1


def pd_pnl(notional: float, entry_p: float, current_p: float, side: Side) -> float:
    return notional * (current_p - entry_p) * side_sign(side)


def compute_equity(margin_amount: float, pnl: float) -> float:
    # No floor: a frozen or settled position may carry negative equity.
    return margin_amount + pnl


def is_liquidated(equity: float, margin_amount: float, beta: float | None = None) -> bool:
    """True when equity <= beta * margin_amount (beta defaults to LIQ_THRESHOLD_BETA)."""
    if beta is None:
        beta = LIQ_THRESHOLD_BETA
    return equity <= beta * margin_amount


def clamp_probability(p: float) -> float:
    """Clamp a user-supplied probability into [0, 1]. NaN is passed through."""
    if math.isnan(p):
        return p
    return min(1.0, max(0.0, p))
