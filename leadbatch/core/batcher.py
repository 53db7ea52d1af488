"""Translate a logical (start, size) window into fixed-size provider pages.

The provider only understands raw page offsets. The collector re-derives
which page holds the caller's logical start, discards the leading items of
that page that belong to an earlier batch, and keeps paging until it has
``size`` unique, previously-unseen places or the provider runs dry.
"""

from __future__ import annotations

import logging
from typing import AbstractSet, Callable, List, Set, Tuple

from leadbatch.models import BatchResult, FetchedPage, LogicalWindow, PlaceCandidate

logger = logging.getLogger(__name__)

PageFetcher = Callable[[int], FetchedPage]


def locate_window(start: int, page_size: int) -> Tuple[int, int]:
    """Return ``(page_anchor_offset, skip_count)`` for a logical start offset."""
    if start < 0:
        raise ValueError("start must be >= 0")
    if page_size <= 0:
        raise ValueError("page_size must be positive")
    page_anchor_offset = (start // page_size) * page_size
    return page_anchor_offset, start - page_anchor_offset


def collect_batch(
    fetch_page: PageFetcher,
    window: LogicalWindow,
    exclusions: AbstractSet[str],
    *,
    page_size: int,
    max_pages: int,
) -> BatchResult:
    """Collect up to ``window.size`` unique places not present in ``exclusions``.

    ``logical_end_offset`` always advances by the full window size, even when
    fewer unique places were found; callers can compare ``len(items)`` with
    the window size to detect a sparse window.
    """
    if window.size <= 0:
        raise ValueError("window size must be positive")

    current_offset, skip_count = locate_window(window.start, page_size)
    collected: List[PlaceCandidate] = []
    seen_this_run: Set[str] = set()
    is_first_page = True
    pages_fetched = 0

    while len(collected) < window.size and pages_fetched < max_pages:
        page = fetch_page(current_offset)
        pages_fetched += 1
        if not page.items:
            logger.info("Empty page at offset=%s; provider exhausted.", current_offset)
            break

        items = page.items
        if is_first_page:
            items = items[skip_count:]
            is_first_page = False

        for item in items:
            place_id = item.place_id
            if not place_id:
                logger.debug("Skipping result without place_id: %s", item.name or item.raw_snapshot)
                continue
            if place_id in exclusions or place_id in seen_this_run:
                continue
            seen_this_run.add(place_id)
            collected.append(item)
            if len(collected) >= window.size:
                break

        if page.next_offset is None:
            break
        current_offset = page.next_offset

    if pages_fetched >= max_pages and len(collected) < window.size:
        logger.warning("Stopped after max_pages=%d with %d/%d places.", max_pages, len(collected), window.size)

    logger.info(
        "Collected %d/%d places for window start=%d across %d pages.",
        len(collected),
        window.size,
        window.start,
        pages_fetched,
    )
    return BatchResult(items=collected, pages_consumed=pages_fetched, logical_end_offset=window.end)
