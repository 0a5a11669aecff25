"""Interactive single-writer session over one Ledger.

Each input line is one command and runs to completion before the next is
read, so ledger mutations never interleave. Provider I/O (initial load and
``refresh``) happens outside the ledger and is applied as one update.
"""

import asyncio
import logging
import shlex

import httpx
from rich.console import Console

from pdx.api.gamma import fetch_markets
from pdx.config import Settings
from pdx.display.format import fmt_pct
from pdx.display import tables
from pdx.engine.ledger import Ledger
from pdx.engine.pricing import clamp_probability
from pdx.engine.refresh import refresh_from_provider
from pdx.errors import ProviderUnavailable, Rejected
from pdx.models import Market

logger = logging.getLogger(__name__)

DEFAULT_MARGIN_PCT = 0.10

HELP = """\
[bold]Commands[/bold]
  markets                              list markets (# or id can be used below)
  new P QUESTION…                      create a local market at probability P
  open MARKET LONG|SHORT NOTIONAL [M]  open a position, M = margin fraction (default 0.10)
  price MARKET P                       apply a manual probability (clamped to 0–1)
  refresh MARKET                       re-quote a provider market
  settle MARKET 0|1                    settle a market and finalize its positions
  positions                            show positions by status
  summary                              totals across all positions
  help | quit"""


class Session:
    def __init__(
        self,
        ledger: Ledger | None = None,
        settings: Settings | None = None,
        console: Console | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.ledger = ledger or Ledger()
        self.settings = settings or Settings()
        self.console = console or tables.console
        self.transport = transport
        self._commands = {
            "markets": self.cmd_markets,
            "new": self.cmd_new,
            "open": self.cmd_open,
            "price": self.cmd_price,
            "refresh": self.cmd_refresh,
            "settle": self.cmd_settle,
            "positions": self.cmd_positions,
            "summary": self.cmd_summary,
            "help": self.cmd_help,
        }

    # ------------------------------------------------------------------
    # Setup
    # ------------------------------------------------------------------

    def load_provider_markets(self) -> int:
        """Register provider markets. Returns how many were loaded; 0 means manual mode."""
        try:
            found = asyncio.run(
                fetch_markets(
                    limit=self.settings.fetch_limit,
                    base=self.settings.gamma_base,
                    timeout=self.settings.http_timeout,
                    transport=self.transport,
                )
            )
        except ProviderUnavailable as exc:
            logger.warning("Provider unavailable: %s", exc)
            self.console.print(
                "[yellow]Could not load Polymarket markets. "
                "Manual mode: create markets with [bold]new P QUESTION[/bold].[/yellow]"
            )
            return 0

        loaded = sum(1 for m in found if not isinstance(self.ledger.register_market(m), Rejected))
        if not loaded:
            self.console.print("[yellow]No binary markets available. Manual mode.[/yellow]")
        return loaded

    # ------------------------------------------------------------------
    # Loop
    # ------------------------------------------------------------------

    def run(self) -> None:
        self.console.print(HELP)
        while True:
            try:
                line = self.console.input("[bold cyan]pdx>[/bold cyan] ")
            except (EOFError, KeyboardInterrupt):
                self.console.print()
                return
            if not self.handle(line):
                return

    def handle(self, line: str) -> bool:
        """Run one command line. Returns False when the session should end."""
        try:
            args = shlex.split(line)
        except ValueError as exc:
            self.console.print(f"[red]{exc}[/red]")
            return True
        if not args:
            return True
        name, rest = args[0].lower(), args[1:]
        if name in ("quit", "exit"):
            return False
        command = self._commands.get(name)
        if command is None:
            self.console.print(f"[red]Unknown command:[/red] {name}  [dim](try help)[/dim]")
            return True
        try:
            command(rest)
        except (ValueError, IndexError):
            self.console.print(f"[red]Bad arguments for {name}.[/red]  [dim](try help)[/dim]")
        return True

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def resolve_market(self, ref: str) -> Market | None:
        """Accept a market id or its 1-based row number from ``markets``."""
        market = self.ledger.get_market(ref)
        if market is None and ref.isdigit():
            listed = self.ledger.markets()
            idx = int(ref) - 1
            if 0 <= idx < len(listed):
                market = listed[idx]
        if market is None:
            self.console.print(f"[red]No market:[/red] {ref}")
        return market

    def _report(self, result) -> bool:
        if isinstance(result, Rejected):
            self.console.print(f"[red]Rejected[/red] {result}")
            return False
        return True

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def cmd_help(self, args: list[str]) -> None:
        self.console.print(HELP)

    def cmd_markets(self, args: list[str]) -> None:
        markets = self.ledger.markets()
        if not markets:
            self.console.print("[dim]No markets loaded.[/dim]")
            return
        for i, m in enumerate(markets, 1):
            self.console.print(f"  [dim]{i:>3}[/dim]  {m.id:<16} {fmt_pct(m.probability):>8}  {m.status.value:<8} {m.question}")

    def cmd_new(self, args: list[str]) -> None:
        p = clamp_probability(float(args[0]))
        question = " ".join(args[1:]) or "Untitled market"
        result = self.ledger.create_local_market(question, p)
        if self._report(result):
            self.console.print(f"[green]Created[/green] {result.id} at {fmt_pct(result.probability)}")

    def cmd_open(self, args: list[str]) -> None:
        market = self.resolve_market(args[0])
        if market is None:
            return
        margin = float(args[3]) if len(args) > 3 else DEFAULT_MARGIN_PCT
        result = self.ledger.open_position(market.id, args[1], float(args[2]), margin)
        if self._report(result):
            self.console.print(
                f"[green]Opened[/green] {result.side.value} {result.notional:,.0f} on {market.id} "
                f"at {fmt_pct(result.entry_probability)}"
            )

    def cmd_price(self, args: list[str]) -> None:
        market = self.resolve_market(args[0])
        if market is None:
            return
        result = self.ledger.apply_price_update(market.id, clamp_probability(float(args[1])))
        if self._report(result):
            self._print_updated(market.id, result)

    def cmd_refresh(self, args: list[str]) -> None:
        market = self.resolve_market(args[0])
        if market is None:
            return
        with self.console.status(f"[dim]Refreshing {market.id}…[/dim]", spinner="dots"):
            result = asyncio.run(
                refresh_from_provider(self.ledger, market.id, self.settings, self.transport)
            )
        if self._report(result):
            self._print_updated(market.id, result)

    def cmd_settle(self, args: list[str]) -> None:
        market = self.resolve_market(args[0])
        if market is None:
            return
        result = self.ledger.settle_market(market.id, int(args[1]))
        if self._report(result):
            outcome = self.ledger.get_market(market.id).outcome
            self.console.print(f"[green]Settled[/green] {market.id} at {outcome}; {len(result)} position(s) finalized")

    def cmd_positions(self, args: list[str]) -> None:
        tables.render_positions(self.ledger.positions(), console=self.console)

    def cmd_summary(self, args: list[str]) -> None:
        tables.render_summary(self.ledger.summary(), console=self.console)

    def _print_updated(self, market_id: str, updated: list) -> None:
        market = self.ledger.get_market(market_id)
        liquidated = [p for p in updated if not p.is_open]
        self.console.print(
            f"{market_id} now {fmt_pct(market.probability)}; "
            f"recomputed {len(updated)} position(s), {len(liquidated)} liquidated"
        )
