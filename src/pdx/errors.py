"""Error types and rejection values shared by the engine, the provider client and the CLI."""

from dataclasses import dataclass
from enum import Enum


class PdxError(Exception):
    """Base exception for pdx errors."""


class ProviderUnavailable(PdxError):
    """The market-data provider could not be reached or returned an unusable response."""


class InvalidTransition(PdxError):
    """A status change outside the lifecycle transition table was attempted."""


class RejectReason(Enum):
    UNKNOWN_MARKET = "unknown_market"
    MARKET_NOT_OPEN = "market_not_open"
    DUPLICATE_MARKET = "duplicate_market"
    INVALID_NOTIONAL = "invalid_notional"
    INVALID_MARGIN = "invalid_margin"
    INVALID_SIDE = "invalid_side"
    INVALID_PROBABILITY = "invalid_probability"
    INVALID_OUTCOME = "invalid_outcome"
    NOT_PROVIDER_MARKET = "not_provider_market"
    NOT_FOUND_AT_PROVIDER = "not_found_at_provider"
    PROVIDER_UNAVAILABLE = "provider_unavailable"


@dataclass(frozen=True)
class Rejected:
    """Non-fatal refusal of a ledger operation, returned instead of a result."""
    reason: RejectReason
    detail: str = ""

    def __str__(self) -> str:
        if self.detail:
            return f"{self.reason.value}: {self.detail}"
        return self.reason.value
