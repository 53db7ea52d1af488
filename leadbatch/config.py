"""Configuration helpers for the batched lead lookup service.

Environment variables are the only configuration source. The SerpAPI key is
deliberately absent: it is a billable credential owned by the caller and is
passed through from each request instead of being stored here.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from functools import lru_cache

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

DEFAULT_NOMINATIM_URL = "https://nominatim.openstreetmap.org/search"
DEFAULT_USER_AGENT = "google-maps-lead-gen/1.0"


class ConfigError(RuntimeError):
    """Raised when a configuration value is present but unusable."""


@dataclass(frozen=True)
class Settings:
    page_size: int = 20
    max_pages: int = 25
    max_lookahead_pages: int = 3
    map_zoom: str = "14z"
    nominatim_url: str = DEFAULT_NOMINATIM_URL
    nominatim_user_agent: str = DEFAULT_USER_AGENT
    geocode_candidate_limit: int = 10
    request_timeout: int = 10
    worker_port: int = 8080


def _get_positive_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = int(raw)
    except ValueError as exc:
        raise ConfigError(f"{name} must be an integer, got {raw!r}") from exc
    if value <= 0:
        raise ConfigError(f"{name} must be positive, got {value}")
    return value


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Load, validate and cache settings to avoid repeated env lookups."""
    load_dotenv()

    user_agent = os.getenv("NOMINATIM_USER_AGENT", "").strip()
    if not user_agent:
        logger.warning("NOMINATIM_USER_AGENT is not configured; using the generic %s.", DEFAULT_USER_AGENT)
        user_agent = DEFAULT_USER_AGENT

    return Settings(
        page_size=_get_positive_int("SERPAPI_PAGE_SIZE", 20),
        max_pages=_get_positive_int("BATCH_MAX_PAGES", 25),
        max_lookahead_pages=_get_positive_int("LOOKAHEAD_MAX_PAGES", 3),
        map_zoom=os.getenv("SERPAPI_MAP_ZOOM", "").strip() or "14z",
        nominatim_url=os.getenv("NOMINATIM_URL", "").strip() or DEFAULT_NOMINATIM_URL,
        nominatim_user_agent=user_agent,
        geocode_candidate_limit=_get_positive_int("GEOCODE_CANDIDATE_LIMIT", 10),
        request_timeout=_get_positive_int("UPSTREAM_TIMEOUT_SECONDS", 10),
        worker_port=_get_positive_int("PORT", 8080),
    )
