"""Polymarket Gamma API client — binary market ingestion for the PD ledger."""

import json
import logging
import math
from typing import Any

import httpx

from pdx.config import DEFAULT_GAMMA_BASE
from pdx.errors import ProviderUnavailable
from pdx.models import Market

logger = logging.getLogger(__name__)

GAMMA_BASE = DEFAULT_GAMMA_BASE
PROVIDER_PREFIX = "poly-"
SOURCE = "polymarket"


def _json_list(value: Any) -> list | None:
    """Gamma encodes list fields as JSON strings; accept either form."""
    if isinstance(value, list):
        return value
    if not isinstance(value, str):
        return None
    try:
        parsed = json.loads(value)
    except ValueError:
        return None
    return parsed if isinstance(parsed, list) else None


def _yes_probability(raw: dict[str, Any]) -> float | None:
    prices = _json_list(raw.get("outcomePrices"))
    if not prices or prices[0] is None:
        return None
    try:
        p = float(prices[0])
    except (TypeError, ValueError):
        return None
    if not math.isfinite(p) or not 0.0 <= p <= 1.0:
        return None
    return p


def to_market(raw: dict[str, Any]) -> Market | None:
    """Normalize one Gamma market, or None if it is not a tradable binary market."""
    provider_id = str(raw.get("id") or "").strip()
    if not provider_id:
        return None
    if not raw.get("active") or raw.get("closed"):
        return None

    outcomes = _json_list(raw.get("outcomes"))
    if outcomes is None or len(outcomes) != 2:
        return None

    p_yes = _yes_probability(raw)
    if p_yes is None:
        return None

    return Market(
        id=f"{PROVIDER_PREFIX}{provider_id}",
        question=raw.get("question") or raw.get("title") or "",
        probability=p_yes,
        description=raw.get("description") or "",
        slug=raw.get("slug") or "",
        source=SOURCE,
        provider_id=provider_id,
    )


def select_binary_markets(items: list[Any], limit: int | None = None) -> list[Market]:
    """Keep active, open, two-outcome markets with a readable YES price.

    Anything else is skipped; a bad candidate never fails the batch.
    """
    selected: list[Market] = []
    if limit is not None and limit <= 0:
        return selected
    for raw in items:
        market = to_market(raw) if isinstance(raw, dict) else None
        if market is None:
            logger.debug("Skipping candidate %r", raw.get("id") if isinstance(raw, dict) else raw)
            continue
        selected.append(market)
        if limit is not None and len(selected) >= limit:
            break
    return selected


async def _get_json(
    path: str,
    params: dict[str, str] | None,
    base: str,
    timeout: float,
    transport: httpx.AsyncBaseTransport | None,
    allow_404: bool = False,
) -> Any:
    try:
        async with httpx.AsyncClient(timeout=timeout, transport=transport) as client:
            resp = await client.get(f"{base}{path}", params=params)
            if allow_404 and resp.status_code == 404:
                return None
            resp.raise_for_status()
            return resp.json()
    except httpx.HTTPError as exc:
        raise ProviderUnavailable(f"Gamma request {path} failed: {exc}") from exc
    except ValueError as exc:
        raise ProviderUnavailable(f"Gamma returned invalid JSON for {path}") from exc


async def fetch_markets(
    limit: int = 20,
    *,
    base: str = GAMMA_BASE,
    timeout: float = 15,
    transport: httpx.AsyncBaseTransport | None = None,
) -> list[Market]:
    """Fetch active markets and return up to ``limit`` binary ones."""
    params = {
        "active": "true",
        "closed": "false",
        "limit": str(limit * 3),  # headroom for filtered candidates
    }
    data = await _get_json("/markets", params, base, timeout, transport)
    if not isinstance(data, list):
        raise ProviderUnavailable("Gamma /markets did not return a list")
    markets = select_binary_markets(data, limit)
    logger.info("Fetched %d binary market(s) of %d candidate(s)", len(markets), len(data))
    return markets


async def fetch_market(
    provider_id: str,
    *,
    base: str = GAMMA_BASE,
    timeout: float = 15,
    transport: httpx.AsyncBaseTransport | None = None,
) -> Market | None:
    """Fetch a single market by provider id. None if missing or no longer tradable."""
    data = await _get_json(f"/markets/{provider_id}", None, base, timeout, transport, allow_404=True)
    # endpoint returns a single object or list
    if isinstance(data, list):
        data = data[0] if data else None
    if not isinstance(data, dict):
        return None
    return to_market(data)
