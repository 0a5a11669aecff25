"""Number and string formatting helpers."""

from pdx.models import MarketStatus, PositionStatus

STATUS_STYLES = {
    PositionStatus.OPEN: "cyan",
    PositionStatus.LIQUIDATED: "bold red",
    PositionStatus.SETTLED: "dim",
    MarketStatus.SETTLED: "dim",
}


def fmt_pct(p: float) -> str:
    """Format a probability as a percentage: 41.00%."""
    return f"{p * 100:.2f}%"


def fmt_money(amount: float) -> str:
    """Format an amount with thousands separators: 1,000,000, -245,000.50."""
    if abs(amount - round(amount)) < 0.005:
        return f"{round(amount):,}"
    return f"{amount:,.2f}"


def fmt_pnl(pnl: float) -> tuple[str, str]:
    """Return (text, style) for a P&L value.

    Returns e.g. ("+5,000", "green") or ("-100,000", "red") or ("0", "dim").
    """
    text = fmt_money(pnl)
    if text == "0":
        return text, "dim"
    if pnl > 0:
        return f"+{text}", "green"
    return text, "red"


def fmt_status(status: PositionStatus | MarketStatus) -> tuple[str, str]:
    return status.value, STATUS_STYLES.get(status, "white")


def truncate(text: str, width: int) -> str:
    """Truncate text to width with ellipsis."""
    if len(text) <= width:
        return text
    return text[: width - 1] + "…"
