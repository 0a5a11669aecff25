"""Rich table builders for all commands."""

from rich.console import Console
from rich.table import Table
from rich import box
from rich.text import Text
from rich.rule import Rule

from pdx.models import LedgerSummary, Market, Position, PositionStatus
from pdx.display.format import (
    fmt_money,
    fmt_pct,
    fmt_pnl,
    fmt_status,
    truncate,
)

console = Console()

_W_ID       = 14  # "poly-5123…" / "local-3"
_W_QUESTION = 44
_W_PCT      = 7   # "100.00%"
_W_MONEY    = 12  # "-1,000,000"


def _table() -> Table:
    return Table(
        box=box.SIMPLE_HEAD,
        show_header=True,
        header_style="bold dim",
        pad_edge=True,
        expand=False,
        show_edge=False,
    )


# ---------------------------------------------------------------------------
# Markets
# ---------------------------------------------------------------------------

def render_markets(markets: list[Market]) -> None:
    table = _table()
    table.add_column("ID",       style="dim", width=_W_ID,                    no_wrap=True)
    table.add_column("Question",              width=_W_QUESTION,              no_wrap=True)
    table.add_column("YES",      justify="right", width=_W_PCT,               no_wrap=True)
    table.add_column("Status",                width=10,                       no_wrap=True)

    for m in markets:
        status = m.status.value if m.outcome is None else f"{m.status.value}:{m.outcome}"
        table.add_row(
            truncate(m.id, _W_ID),
            truncate(m.question, _W_QUESTION),
            fmt_pct(m.probability),
            Text(status, style="dim" if m.outcome is not None else "cyan"),
        )

    console.print()
    console.print(table)


# ---------------------------------------------------------------------------
# Positions, grouped Open / Liquidated / Settled
# ---------------------------------------------------------------------------

def _position_table(positions: list[Position]) -> Table:
    table = _table()
    table.add_column("Market",               width=24,       no_wrap=True)
    table.add_column("Side",                 width=5,        no_wrap=True)
    table.add_column("Notional", justify="right", width=_W_MONEY, no_wrap=True)
    table.add_column("Margin",   justify="right", width=_W_MONEY, no_wrap=True)
    table.add_column("Entry",    justify="right", width=_W_PCT,   no_wrap=True)
    table.add_column("Current",  justify="right", width=_W_PCT,   no_wrap=True)
    table.add_column("P&L",      justify="right", width=_W_MONEY, no_wrap=True)
    table.add_column("Equity",   justify="right", width=_W_MONEY, no_wrap=True)
    table.add_column("Status",               width=10,       no_wrap=True)

    for p in positions:
        pnl_text, pnl_style = fmt_pnl(p.pnl)
        status_text, status_style = fmt_status(p.status)
        table.add_row(
            truncate(p.market_name or p.market_id, 24),
            p.side.value,
            fmt_money(p.notional),
            fmt_money(p.margin_amount),
            fmt_pct(p.entry_probability),
            fmt_pct(p.current_probability),
            Text(pnl_text, style=pnl_style),
            Text(fmt_money(p.equity), style="red" if p.equity < 0 else ""),
            Text(status_text, style=status_style),
        )
    return table


def render_positions(positions: list[Position], console: Console = console) -> None:
    if not positions:
        console.print("[dim]No positions yet.[/dim]")
        return

    for status, title in (
        (PositionStatus.OPEN, "Open"),
        (PositionStatus.LIQUIDATED, "Liquidated"),
        (PositionStatus.SETTLED, "Settled"),
    ):
        group = [p for p in positions if p.status is status]
        if not group and status is not PositionStatus.OPEN:
            continue
        console.print()
        console.print(Rule(f"[bold]{title}[/bold] [dim]({len(group)})[/dim]", style="dim", align="left"))
        console.print(_position_table(group))


# ---------------------------------------------------------------------------
# Dashboard summary
# ---------------------------------------------------------------------------

def render_summary(summary: LedgerSummary, console: Console = console) -> None:
    pnl_text, pnl_style = fmt_pnl(summary.total_pnl)
    parts = [
        f"[dim]Open:[/dim] [cyan]{summary.open_count}[/cyan]",
        f"[dim]Liquidated:[/dim] [red]{summary.liquidated_count}[/red]",
        f"[dim]Settled:[/dim] [white]{summary.settled_count}[/white]",
        f"[dim]Notional:[/dim] [white]{fmt_money(summary.total_notional)}[/white]",
        f"[dim]Margin:[/dim] [white]{fmt_money(summary.total_margin)}[/white]",
        f"[dim]P&L:[/dim] [{pnl_style}]{pnl_text}[/{pnl_style}]",
        f"[dim]Equity:[/dim] [white]{fmt_money(summary.total_equity)}[/white]",
    ]
    console.print()
    console.print("  " + "   ".join(parts))
    console.print()


# ---------------------------------------------------------------------------
# What-if steps
# ---------------------------------------------------------------------------

def step_table() -> Table:
    table = _table()
    table.add_column("Step",                      width=12,       no_wrap=True)
    table.add_column("P(YES)",  justify="right",  width=_W_PCT,   no_wrap=True)
    table.add_column("P&L",     justify="right",  width=_W_MONEY, no_wrap=True)
    table.add_column("Equity",  justify="right",  width=_W_MONEY, no_wrap=True)
    table.add_column("Status",                    width=10,       no_wrap=True)
    return table


def add_step(table: Table, label: str, position: Position) -> None:
    pnl_text, pnl_style = fmt_pnl(position.pnl)
    status_text, status_style = fmt_status(position.status)
    table.add_row(
        label,
        fmt_pct(position.current_probability),
        Text(pnl_text, style=pnl_style),
        Text(fmt_money(position.equity), style="red" if position.equity < 0 else ""),
        Text(status_text, style=status_style),
    )
