import asyncio
import json
import sys
from typing import Annotated, Optional

import typer

from pdx.api.gamma import fetch_markets
from pdx.config import load_settings
from pdx.display.tables import render_markets, console
from pdx.errors import ProviderUnavailable

app = typer.Typer()


@app.callback(invoke_without_command=True)
def markets(
    limit: Annotated[Optional[int], typer.Option("--limit", "-n", help="Number of markets")] = None,
    fmt: Annotated[str, typer.Option("--format", help="Output format: table or json")] = "table",
) -> None:
    """List active binary Polymarket markets that PD positions can be written on."""
    settings = load_settings()

    async def run() -> None:
        with console.status("[dim]Fetching markets…[/dim]", spinner="dots"):
            try:
                found = await fetch_markets(
                    limit=limit or settings.fetch_limit,
                    base=settings.gamma_base,
                    timeout=settings.http_timeout,
                )
            except ProviderUnavailable as exc:
                console.print(f"[red]Provider unavailable:[/red] {exc}")
                raise typer.Exit(1)

        if fmt == "json" or not sys.stdout.isatty():
            out = [
                {
                    "id": m.id,
                    "provider_id": m.provider_id,
                    "slug": m.slug,
                    "question": m.question,
                    "probability": m.probability,
                }
                for m in found
            ]
            print(json.dumps(out, indent=2))
        else:
            render_markets(found)

    asyncio.run(run())
