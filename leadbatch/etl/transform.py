"""Utilities for turning inbound payloads into batch requests and results into responses."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, Iterable, List, Mapping

from leadbatch.errors import ValidationError
from leadbatch.models import BatchResult, LookaheadResult, PlaceCandidate

logger = logging.getLogger(__name__)

# Existing rows come from an Airtable-like sheet; only this column is used for dedupe.
EXISTING_PLACE_ID_FIELDS = ("Google Place ID", "Google Place Id")


@dataclass(frozen=True)
class BatchRequest:
    api_key: str = field(repr=False)
    location: str
    business_type: str
    batch_size: int
    batch_start_index: int
    existing_place_ids: FrozenSet[str] = frozenset()


def normalize_existing_place_ids(existing: Any) -> FrozenSet[str]:
    """Build the exclusion set, silently dropping malformed rows."""
    place_ids = set()
    if not isinstance(existing, list):
        return frozenset()
    for row in existing:
        if not isinstance(row, Mapping):
            continue
        for key in EXISTING_PLACE_ID_FIELDS:
            value = row.get(key)
            if value is None:
                continue
            if isinstance(value, str) and value.strip():
                place_ids.add(value.strip())
            break
    return frozenset(place_ids)


def _require_text(payload: Mapping[str, Any], name: str, message: str) -> str:
    value = payload.get(name)
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(name, message)
    return value.strip()


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def parse_batch_request(payload: Any) -> BatchRequest:
    """Validate an inbound JSON body. Raises ValidationError naming the bad field."""
    if not isinstance(payload, Mapping):
        raise ValidationError("body", "Request body must be a JSON object.")

    api_key = _require_text(payload, "api_key", "Missing api_key (SerpApi key) in request body.")
    location = _require_text(payload, "location", "Missing location in request body.")
    business_type = _require_text(payload, "business_type", "Missing business_type in request body.")

    batch_size = payload.get("batch_size")
    if not _is_int(batch_size) or batch_size <= 0:
        raise ValidationError("batch_size", "batch_size must be a positive integer.")

    batch_start_index = payload.get("batch_start_index")
    if not _is_int(batch_start_index) or batch_start_index < 0:
        raise ValidationError("batch_start_index", "batch_start_index must be an integer >= 0.")

    return BatchRequest(
        api_key=api_key,
        location=location,
        business_type=business_type,
        batch_size=batch_size,
        batch_start_index=batch_start_index,
        existing_place_ids=normalize_existing_place_ids(payload.get("existing_businesses")),
    )


def to_result_rows(batch: BatchResult) -> List[Dict[str, Any]]:
    """Results are passed through as the provider's own records."""
    return [dict(item.raw_snapshot) for item in batch.items]


def to_response_payload(
    request: BatchRequest,
    ll: str,
    batch: BatchResult,
    lookahead: LookaheadResult,
) -> Dict[str, Any]:
    return {
        "location": request.location,
        "business_type": request.business_type,
        "ll": ll,
        "batch_size": request.batch_size,
        "batch_start_index": request.batch_start_index,
        "new_batch_index": request.batch_start_index + request.batch_size,
        "has_next": lookahead.has_next,
        "results": to_result_rows(batch),
        "meta": {
            "pages_scanned": batch.pages_consumed,
            "deduped_against_existing_count": len(request.existing_place_ids),
            "has_next_checked_pages": lookahead.pages_checked,
        },
    }


def summarize_candidates(candidates: Iterable[PlaceCandidate]) -> List[str]:
    """One-line human summaries for CLI output."""
    lines = []
    for candidate in candidates:
        parts = [candidate.place_id or "?", candidate.name or "?"]
        if candidate.rating is not None:
            reviews = f" ({candidate.review_count})" if candidate.review_count is not None else ""
            parts.append(f"{candidate.rating:.1f}{reviews}")
        parts.extend(value for value in (candidate.address, candidate.phone, candidate.website) if value)
        if candidate.latitude is not None and candidate.longitude is not None:
            parts.append(f"@{candidate.latitude},{candidate.longitude}")
        lines.append("  ".join(parts))
    return lines
