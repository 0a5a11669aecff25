import json
import sys
from typing import Annotated, List, Optional

import typer

from pdx.display.tables import add_step, console, step_table
from pdx.engine.ledger import Ledger
from pdx.engine.pricing import clamp_probability
from pdx.errors import Rejected
from pdx.models import Position, Side

app = typer.Typer()


def _step(label: str, pos: Position) -> dict:
    return {
        "step": label,
        "probability": pos.current_probability,
        "pnl": pos.pnl,
        "equity": pos.equity,
        "status": pos.status.value,
    }


def _fail(result: Rejected) -> None:
    console.print(f"[red]Rejected[/red] {result}")
    raise typer.Exit(1)


@app.callback(invoke_without_command=True)
def whatif(
    side: Annotated[Side, typer.Option("--side", "-s", case_sensitive=False, help="LONG or SHORT")] = Side.LONG,
    notional: Annotated[float, typer.Option("--notional", help="Position notional")] = 1_000_000,
    margin: Annotated[float, typer.Option("--margin", "-m", help="Initial margin fraction, 0–1")] = 0.10,
    entry: Annotated[float, typer.Option("--entry", "-e", help="Entry YES-probability")] = 0.5,
    path: Annotated[Optional[List[float]], typer.Option("--path", "-p", help="Probability moves, in order")] = None,
    settle: Annotated[Optional[int], typer.Option("--settle", help="Final outcome, 0 or 1")] = None,
    fmt: Annotated[str, typer.Option("--format", help="Output format: table or json")] = "table",
) -> None:
    """Walk one PD position through a probability path and optional settlement."""
    ledger = Ledger()
    market = ledger.create_local_market("what-if", clamp_probability(entry))
    if isinstance(market, Rejected):
        _fail(market)
    pos = ledger.open_position(market.id, side, notional, margin)
    if isinstance(pos, Rejected):
        _fail(pos)

    steps = [("open", pos)]
    for p in path or []:
        result = ledger.apply_price_update(market.id, clamp_probability(p))
        if isinstance(result, Rejected):
            _fail(result)
        steps.append((f"p={p:g}", ledger.get_position(pos.id)))
    if settle is not None:
        result = ledger.settle_market(market.id, settle)
        if isinstance(result, Rejected):
            _fail(result)
        steps.append((f"settle={settle}", ledger.get_position(pos.id)))

    if fmt == "json" or not sys.stdout.isatty():
        final = steps[-1][1]
        out = {
            "side": final.side.value,
            "notional": final.notional,
            "margin_amount": final.margin_amount,
            "entry_probability": final.entry_probability,
            "steps": [_step(label, p) for label, p in steps],
        }
        print(json.dumps(out, indent=2))
    else:
        table = step_table()
        for label, p in steps:
            add_step(table, label, p)
        console.print()
        console.print(table)
