"""Client utilities for the OpenStreetMap Nominatim geocoder."""

from __future__ import annotations

import logging
import math
from typing import Any, Dict, Iterable, Optional

import requests

from leadbatch.config import Settings, get_settings
from leadbatch.errors import UnresolvableLocation, UpstreamError
from leadbatch.models import Anchor

logger = logging.getLogger(__name__)
_SESSION = requests.Session()

# Searches need a locality center; streets, buildings and POIs are too narrow.
ALLOWED_PLACE_TYPES = frozenset({"city", "town", "village", "suburb", "hamlet", "neighbourhood"})


def search(location: str, settings: Optional[Settings] = None) -> Any:
    """Return Nominatim's raw candidate list for a free-text location."""
    settings = settings or get_settings()
    params = {
        "q": location,
        "format": "json",
        "addressdetails": "0",
        "limit": str(settings.geocode_candidate_limit),
    }
    headers = {"User-Agent": settings.nominatim_user_agent}

    logger.info("Geocoding location=%s", location)
    try:
        response = _SESSION.get(
            settings.nominatim_url, params=params, headers=headers, timeout=settings.request_timeout
        )
    except requests.RequestException as exc:
        logger.error("Nominatim request failed for location=%s: %s", location, exc)
        raise UpstreamError("nominatim", str(exc)) from exc

    if not response.ok:
        logger.error("Nominatim returned status=%s for location=%s", response.status_code, location)
        raise UpstreamError("nominatim", "non-success status", response.status_code, response.text)

    try:
        return response.json()
    except ValueError as exc:
        raise UpstreamError("nominatim", "response is not valid JSON", response.status_code, response.text) from exc


def _is_locality(candidate: Any) -> bool:
    if not isinstance(candidate, dict) or candidate.get("class") != "place":
        return False
    place_type = candidate.get("type")
    return isinstance(place_type, str) and place_type.lower() in ALLOWED_PLACE_TYPES


def _number(value: Any, default: float) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError):
        return default
    return default if math.isnan(number) else number


def _rank_key(candidate: Dict[str, Any]):
    # Highest importance first, then the lowest (most specific) place_rank.
    importance = _number(candidate.get("importance"), 0.0)
    place_rank = _number(candidate.get("place_rank"), math.inf)
    return (-importance, place_rank)


def pick_anchor(candidates: Iterable[Any]) -> Optional[Anchor]:
    """Choose the best locality-class candidate, or None when none qualifies."""
    if not isinstance(candidates, list):
        return None

    localities = [c for c in candidates if _is_locality(c)]
    if not localities:
        return None

    best = min(localities, key=_rank_key)
    latitude = _number(best.get("lat"), math.nan)
    longitude = _number(best.get("lon"), math.nan)
    if not (math.isfinite(latitude) and math.isfinite(longitude)):
        return None
    return Anchor(latitude=latitude, longitude=longitude, name=best.get("name"), place_type=best.get("type"))


def resolve(location: str, settings: Optional[Settings] = None) -> Anchor:
    """Resolve a free-text location to a locality anchor."""
    candidates = search(location, settings)
    if not isinstance(candidates, list):
        raise UpstreamError("nominatim", "expected a JSON array of candidates")

    anchor = pick_anchor(candidates)
    if anchor is None:
        logger.warning("No locality candidate among %d results for location=%s", len(candidates), location)
        raise UnresolvableLocation(location)

    logger.info(
        "Resolved location=%s to %s (%s) at %s,%s",
        location,
        anchor.name,
        anchor.place_type,
        anchor.latitude,
        anchor.longitude,
    )
    return anchor
