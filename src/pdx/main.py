import logging
from typing import Annotated

import typer

from pdx.commands.markets import markets
from pdx.commands.session import session
from pdx.commands.whatif import whatif
from pdx.config import load_settings
from pdx.logging_config import setup_logging

app = typer.Typer(
    name="pdx",
    help="Probability-Difference derivatives on binary Polymarket markets.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

app.command("markets", help="List binary markets from Polymarket")(markets)
app.command("whatif", help="Run one position through a probability path")(whatif)
app.command("session", help="Interactive session with a live ledger")(session)


@app.callback()
def main(
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Debug logging")] = False,
) -> None:
    settings = load_settings()
    setup_logging(logging.DEBUG if verbose else settings.log_level)


if __name__ == "__main__":
    app()
