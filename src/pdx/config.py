"""Runtime settings read from the environment."""

import logging
import math
import os
from dataclasses import dataclass

logger = logging.getLogger(__name__)

DEFAULT_GAMMA_BASE = "https://gamma-api.polymarket.com"


@dataclass(frozen=True)
class Settings:
    gamma_base: str = DEFAULT_GAMMA_BASE
    http_timeout: float = 15.0
    fetch_limit: int = 20
    log_level: str = "WARNING"


def _env_number(name: str, default, cast):
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        value = cast(raw)
    except ValueError:
        logger.warning("Ignoring %s=%r: not a valid %s", name, raw, cast.__name__)
        return default
    if not math.isfinite(value) or value <= 0:
        logger.warning("Ignoring %s=%r: must be a positive number", name, raw)
        return default
    return value


def load_settings() -> Settings:
    """Build Settings from PDX_* environment variables, falling back to defaults."""
    level = os.getenv("PDX_LOG_LEVEL", "").strip().upper() or Settings.log_level
    if not isinstance(logging.getLevelName(level), int):
        logger.warning("Ignoring PDX_LOG_LEVEL=%r: unknown level", level)
        level = Settings.log_level
    return Settings(
        gamma_base=(os.getenv("PDX_GAMMA_URL", "").strip() or DEFAULT_GAMMA_BASE).rstrip("/"),
        http_timeout=_env_number("PDX_HTTP_TIMEOUT", Settings.http_timeout, float),
        fetch_limit=_env_number("PDX_FETCH_LIMIT", Settings.fetch_limit, int),
        log_level=level,
    )
