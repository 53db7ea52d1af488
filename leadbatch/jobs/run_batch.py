"""Run one batch lookup: geocode, collect a deduplicated batch, then probe for more."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from functools import partial
from typing import Any, Dict, Optional, Tuple

from leadbatch.config import ConfigError, Settings, get_settings
from leadbatch.core.batcher import collect_batch
from leadbatch.core.lookahead import probe_has_next
from leadbatch.errors import LeadBatchError
from leadbatch.etl.transform import (
    BatchRequest,
    parse_batch_request,
    summarize_candidates,
    to_response_payload,
)
from leadbatch.models import Anchor, BatchResult, FetchedPage, LogicalWindow, LookaheadResult
from leadbatch.vendors import nominatim, serpapi_maps

logger = logging.getLogger(__name__)


def fetch_batch(
    request: BatchRequest, settings: Optional[Settings] = None
) -> Tuple[str, BatchResult, LookaheadResult]:
    """Geocode, collect the batch and probe past it. Returns ``(ll, batch, lookahead)``.

    Any upstream failure propagates; no partial batch is ever returned.
    """
    settings = settings or get_settings()

    anchor = nominatim.resolve(request.location, settings)
    query = serpapi_maps.build_search_query(request.business_type, request.location)
    fetch = partial(_fetch_at, anchor=anchor, query=query, api_key=request.api_key, settings=settings)

    window = LogicalWindow(start=request.batch_start_index, size=request.batch_size)
    batch = collect_batch(
        fetch,
        window,
        request.existing_place_ids,
        page_size=settings.page_size,
        max_pages=settings.max_pages,
    )

    seen = request.existing_place_ids | set(batch.place_ids)
    lookahead = probe_has_next(
        fetch,
        batch.logical_end_offset,
        seen,
        page_size=settings.page_size,
        max_lookahead_pages=settings.max_lookahead_pages,
    )

    logger.info(
        "Batch done for query=%s: results=%d pages_scanned=%d has_next=%s checked_pages=%d",
        query,
        len(batch.items),
        batch.pages_consumed,
        lookahead.has_next,
        lookahead.pages_checked,
    )
    return anchor.to_ll(settings.map_zoom), batch, lookahead


def run_batch(request: BatchRequest, settings: Optional[Settings] = None) -> Dict[str, Any]:
    """Produce the full response payload for one validated request."""
    ll, batch, lookahead = fetch_batch(request, settings)
    return to_response_payload(request, ll, batch, lookahead)


def _fetch_at(start: int, *, anchor: Anchor, query: str, api_key: str, settings: Settings) -> FetchedPage:
    return serpapi_maps.fetch_page(anchor, query, start, api_key, settings)


def _load_existing(path: Optional[str]):
    if not path:
        return []
    with open(path, "r", encoding="utf-8") as fh:
        return json.load(fh)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Fetch the next batch of unseen Google Maps businesses")
    parser.add_argument("--location", required=True, help="Free-text location, e.g. 'Yogyakarta'")
    parser.add_argument("--type", dest="business_type", required=True, help="Business type to search")
    parser.add_argument("--api-key", dest="api_key", required=True, help="SerpAPI key")
    parser.add_argument("--size", dest="batch_size", type=int, default=20, help="Number of results to return")
    parser.add_argument("--start", dest="batch_start_index", type=int, default=0, help="Logical start offset")
    parser.add_argument(
        "--existing",
        dest="existing",
        help="JSON file holding a list of existing rows with a 'Google Place ID' column",
    )
    parser.add_argument("--summary", action="store_true", help="Print one line per result instead of JSON")
    return parser


def main(argv=None) -> int:
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s - %(message)s")
    args = build_parser().parse_args(argv)

    try:
        request = parse_batch_request(
            {
                "api_key": args.api_key,
                "location": args.location,
                "business_type": args.business_type,
                "batch_size": args.batch_size,
                "batch_start_index": args.batch_start_index,
                "existing_businesses": _load_existing(args.existing),
            }
        )
        if args.summary:
            ll, batch, lookahead = fetch_batch(request)
        else:
            payload = run_batch(request)
    except ConfigError as exc:
        logger.error("Configuration error: %s", exc)
        return 2
    except (OSError, json.JSONDecodeError) as exc:
        logger.error("Unable to read existing businesses from %s: %s", args.existing, exc)
        return 1
    except LeadBatchError as exc:
        logger.error("Batch failed: %s", exc)
        return 1

    if args.summary:
        for line in summarize_candidates(batch.items):
            print(line)
        new_batch_index = request.batch_start_index + request.batch_size
        print(f"ll={ll} new_batch_index={new_batch_index} has_next={lookahead.has_next}")
    else:
        json.dump(payload, sys.stdout, ensure_ascii=False, indent=2)
        sys.stdout.write("\n")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
