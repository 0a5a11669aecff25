from typing import Annotated

import typer

from pdx.config import load_settings
from pdx.display.tables import console
from pdx.session import Session

app = typer.Typer()


@app.callback(invoke_without_command=True)
def session(
    offline: Annotated[bool, typer.Option("--offline", help="Skip the provider; manual markets only")] = False,
) -> None:
    """Interactive PD session: open positions, move prices, settle markets."""
    s = Session(settings=load_settings())
    if not offline:
        with console.status("[dim]Fetching markets…[/dim]", spinner="dots"):
            loaded = s.load_provider_markets()
        if loaded:
            console.print(f"[dim]Loaded {loaded} market(s) from Polymarket.[/dim]")
    s.run()
