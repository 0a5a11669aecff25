"""Re-quote a provider market and push the new probability through the ledger.

The fetch runs entirely outside the ledger; only a successful quote reaches
``Ledger.apply_price_update``, so a failed refresh leaves no partial state.
"""

import logging

import httpx

from pdx.api import gamma
from pdx.config import Settings
from pdx.engine.ledger import Ledger
from pdx.errors import ProviderUnavailable, RejectReason, Rejected
from pdx.models import Position

logger = logging.getLogger(__name__)


async def refresh_from_provider(
    ledger: Ledger,
    market_id: str,
    settings: Settings | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> list[Position] | Rejected:
    settings = settings or Settings()
    market = ledger.get_market(market_id)
    if market is None:
        return Rejected(RejectReason.UNKNOWN_MARKET, f"no market {market_id}")
    if market.source != gamma.SOURCE or not market.provider_id:
        return Rejected(RejectReason.NOT_PROVIDER_MARKET, f"{market_id} is not a provider market")

    try:
        quote = await gamma.fetch_market(
            market.provider_id,
            base=settings.gamma_base,
            timeout=settings.http_timeout,
            transport=transport,
        )
    except ProviderUnavailable as exc:
        logger.warning("Refresh of %s failed: %s", market_id, exc)
        return Rejected(RejectReason.PROVIDER_UNAVAILABLE, str(exc))

    if quote is None:
        logger.info("Market %s not found at provider; nothing applied", market_id)
        return Rejected(RejectReason.NOT_FOUND_AT_PROVIDER, f"{market.provider_id} not found or no longer tradable")

    result = ledger.apply_price_update(market_id, quote.probability)
    if not isinstance(result, Rejected):
        ledger.update_market_details(market_id, quote.question, quote.description)
    return result
