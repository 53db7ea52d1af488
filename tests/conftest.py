import sys
from pathlib import Path

import pytest

# Ensure the `leadbatch` package is importable when running pytest from a checkout.
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from leadbatch.config import Settings, get_settings  # noqa: E402
from leadbatch.models import FetchedPage, PlaceCandidate  # noqa: E402
from leadbatch.vendors.serpapi_maps import derive_next_offset  # noqa: E402


class FakeProvider:
    """In-memory stand-in for SerpAPI serving a fixed, ordered list of place ids."""

    def __init__(self, place_ids, page_size=20):
        self.place_ids = list(place_ids)
        self.page_size = page_size
        self.calls = []

    def __call__(self, start):
        self.calls.append(start)
        chunk = self.place_ids[start:start + self.page_size]
        items = [
            PlaceCandidate(place_id=pid, name=f"Place {pid}", raw_snapshot={"place_id": pid, "title": f"Place {pid}"})
            for pid in chunk
        ]
        return FetchedPage(items=items, next_offset=derive_next_offset(None, start, len(items), self.page_size))


@pytest.fixture
def make_provider():
    return FakeProvider


@pytest.fixture
def settings():
    return Settings(page_size=20, max_pages=25, max_lookahead_pages=3)


@pytest.fixture(autouse=True)
def clear_settings_cache():
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
