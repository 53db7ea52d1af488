"""Bounded forward scan answering "is there anything unseen after this batch?"."""

from __future__ import annotations

import logging
from typing import AbstractSet

from leadbatch.core.batcher import PageFetcher, locate_window
from leadbatch.models import LookaheadResult

logger = logging.getLogger(__name__)


def probe_has_next(
    fetch_page: PageFetcher,
    probe_start: int,
    exclusions: AbstractSet[str],
    *,
    page_size: int,
    max_lookahead_pages: int,
) -> LookaheadResult:
    """Scan at most ``max_lookahead_pages`` pages from logical offset ``probe_start``.

    ``exclusions`` must already include the places returned in the current
    batch. The answer is False only when the provider itself signals the end
    of results; running out of probe pages answers True.
    """
    current_offset, skip_count = locate_window(probe_start, page_size)
    pages_checked = 0

    while pages_checked < max_lookahead_pages:
        page = fetch_page(current_offset)
        items = page.items[skip_count:] if pages_checked == 0 else page.items
        pages_checked += 1

        if not page.items:
            logger.info("Lookahead hit an empty page at offset=%s.", current_offset)
            return LookaheadResult(has_next=False, pages_checked=pages_checked)

        for item in items:
            if item.place_id and item.place_id not in exclusions:
                logger.info("Lookahead found unseen place_id=%s at offset=%s.", item.place_id, current_offset)
                return LookaheadResult(has_next=True, pages_checked=pages_checked)

        if page.next_offset is None:
            logger.info("Lookahead reached the provider's last page at offset=%s.", current_offset)
            return LookaheadResult(has_next=False, pages_checked=pages_checked)
        current_offset = page.next_offset

    logger.info("Lookahead horizon of %d pages exhausted; assuming more results.", max_lookahead_pages)
    return LookaheadResult(has_next=True, pages_checked=pages_checked)
