"""SerpAPI Google Maps page fetching.

SerpAPI serves Google Maps results in fixed pages addressed by a raw ``start``
offset. Each call here fetches exactly one page and reports where the next
one begins, so callers can walk the result stream without knowing the
provider's pagination quirks.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, Iterable, List, Optional
from urllib.parse import parse_qs, urlparse

import requests
from serpapi import GoogleSearch

from leadbatch.config import Settings, get_settings
from leadbatch.errors import UpstreamError
from leadbatch.models import Anchor, FetchedPage, PlaceCandidate

logger = logging.getLogger(__name__)

# SerpAPI reports an exhausted query as an "error" on an otherwise successful response.
_NO_RESULTS_MARKER = "hasn't returned any results"


def build_search_query(business_type: str, location: str) -> str:
    return f"{business_type.strip()} in {location.strip()}"


def build_serpapi_params(query: str, ll: str, start: int, api_key: str) -> Dict[str, Any]:
    """Construct SerpAPI request parameters for one Google Maps page."""
    if not query or not query.strip():
        raise ValueError("Query must be provided for SerpAPI lookups.")
    if start < 0:
        raise ValueError("start offset must be >= 0")

    return {
        "engine": "google_maps",
        "type": "search",
        "q": query.strip(),
        "ll": ll,
        "start": start,
        "api_key": api_key,
        "output": "json",
    }


def fetch_from_serpapi(params: Dict[str, Any], timeout: int) -> Dict[str, Any]:
    """Call SerpAPI once and return the decoded JSON object.

    No retries: a failed page aborts the whole batch, and each attempt is billed.
    """
    search = GoogleSearch(params)
    search.timeout = timeout
    try:
        response = search.get_response()
    except requests.RequestException as exc:
        logger.error("SerpAPI request failed for q=%s start=%s: %s", params.get("q"), params.get("start"), exc)
        raise UpstreamError("serpapi", str(exc)) from exc

    if not response.ok:
        logger.error("SerpAPI returned status=%s: %s", response.status_code, response.text[:500])
        raise UpstreamError("serpapi", "non-success status", response.status_code, response.text)

    try:
        data = response.json()
    except ValueError as exc:
        raise UpstreamError("serpapi", "response is not valid JSON", response.status_code, response.text) from exc
    if not isinstance(data, dict):
        raise UpstreamError("serpapi", "expected a JSON object", response.status_code, response.text)

    error = data.get("error")
    if error and _NO_RESULTS_MARKER not in str(error):
        raise UpstreamError("serpapi", str(error), response.status_code, json.dumps(data)[:2000])
    return data


def parse_serpapi_maps(data: Optional[Dict[str, Any]]) -> List[PlaceCandidate]:
    """Extract SerpAPI local/place results into normalized PlaceCandidate objects.

    Every raw entry yields exactly one candidate, in provider order, so that
    positional skips over a page stay aligned with the provider's offsets.
    Entries without a usable ``place_id`` keep ``place_id=None``.
    """
    if not data:
        return []

    items = list(_extract_items(data))
    if not items:
        place_results = data.get("place_results")
        if isinstance(place_results, list):
            items = place_results
        elif isinstance(place_results, dict):
            items = [place_results]

    candidates: List[PlaceCandidate] = []
    for raw in items:
        if not isinstance(raw, dict):
            logger.debug("Non-object entry in SerpAPI results: %r", raw)
            candidates.append(PlaceCandidate(place_id=None))
            continue

        gps = raw.get("gps_coordinates") or {}
        candidates.append(
            PlaceCandidate(
                place_id=_place_id(raw),
                name=(raw.get("title") or raw.get("name") or "").strip(),
                address=_strip_or_none(raw.get("address")),
                phone=_strip_or_none(raw.get("phone")),
                website=_strip_or_none(raw.get("website")),
                latitude=_safe_float(gps.get("latitude")) if isinstance(gps, dict) else None,
                longitude=_safe_float(gps.get("longitude")) if isinstance(gps, dict) else None,
                rating=_safe_float(raw.get("rating")),
                review_count=_safe_int(raw.get("reviews_count") or raw.get("reviews")),
                raw_snapshot=raw,
            )
        )
    return candidates


def stated_next_offset(data: Dict[str, Any]) -> Optional[int]:
    """Read the ``start`` parameter of ``serpapi_pagination.next``, if any."""
    pagination = data.get("serpapi_pagination")
    if not isinstance(pagination, dict):
        return None
    next_url = pagination.get("next")
    if not isinstance(next_url, str) or not next_url:
        return None
    values = parse_qs(urlparse(next_url).query).get("start")
    if not values:
        return None
    try:
        return int(values[0])
    except ValueError:
        return None


def derive_next_offset(
    stated: Optional[int], start: int, item_count: int, page_size: int
) -> Optional[int]:
    """Decide where the page after ``start`` begins, or None at end of results.

    An empty or partial page always ends the stream, whatever the metadata
    says. After a full page a forward-moving stated offset wins over the
    inferred ``start + page_size``.
    """
    if item_count < page_size:
        return None
    if stated is not None and stated > start:
        return stated
    return start + page_size


def fetch_page(
    anchor: Anchor,
    query: str,
    start: int,
    api_key: str,
    settings: Optional[Settings] = None,
) -> FetchedPage:
    """Fetch one fixed-size page at raw offset ``start``."""
    settings = settings or get_settings()
    ll = anchor.to_ll(settings.map_zoom)
    params = build_serpapi_params(query, ll, start, api_key)

    logger.info("Calling SerpAPI for q=%s ll=%s start=%s", query, ll, start)
    data = fetch_from_serpapi(params, settings.request_timeout)
    items = parse_serpapi_maps(data)
    next_offset = derive_next_offset(stated_next_offset(data), start, len(items), settings.page_size)
    logger.info("SerpAPI page start=%s returned %d items, next_offset=%s", start, len(items), next_offset)
    return FetchedPage(items=items, next_offset=next_offset)


def _extract_items(data: Dict[str, Any]) -> Iterable[Any]:
    """SerpAPI sometimes returns local_results as a list or nested dict."""
    local_results = data.get("local_results")
    if isinstance(local_results, list):
        return local_results
    if isinstance(local_results, dict):
        logger.debug("local_results is dict with keys: %s", list(local_results.keys())[:10])
        for maybe in (local_results.get("places"), local_results.get("results")):
            if isinstance(maybe, list):
                return maybe
    return []


def _place_id(raw: Dict[str, Any]) -> Optional[str]:
    value = raw.get("place_id")
    if not isinstance(value, str):
        return None
    return value.strip() or None


def _strip_or_none(value: Any) -> Optional[str]:
    if value is None:
        return None
    value_str = str(value).strip()
    return value_str or None


def _safe_float(value: Any) -> Optional[float]:
    try:
        if value is None:
            return None
        return float(value)
    except (TypeError, ValueError):
        return None


def _safe_int(value: Any) -> Optional[int]:
    if value is None:
        return None
    if isinstance(value, (int, float)):
        return int(value)

    if isinstance(value, str):
        digits = "".join(ch for ch in value if ch.isdigit())
        if digits:
            return int(digits)
    return None
