from leadbatch.core.lookahead import probe_has_next
from leadbatch.models import FetchedPage, PlaceCandidate


def _ids(count, prefix="p"):
    return [f"{prefix}{i}" for i in range(count)]


def test_finds_unseen_place_on_first_probe_page(make_provider):
    provider = make_provider(_ids(80))

    result = probe_has_next(provider, 65, frozenset(_ids(65)), page_size=20, max_lookahead_pages=3)

    assert result.has_next is True
    assert result.pages_checked == 1
    assert provider.calls == [60]


def test_skips_items_before_probe_start(make_provider):
    # p60..p64 are unseen but sit before the probe start, so they must not count.
    provider = make_provider(_ids(80))
    seen = frozenset(_ids(60) + _ids(80)[65:])

    result = probe_has_next(provider, 65, seen, page_size=20, max_lookahead_pages=3)

    assert result.has_next is False
    assert result.pages_checked == 2
    assert provider.calls == [60, 80]


def test_empty_page_means_no_more_results(make_provider):
    provider = make_provider(_ids(40))

    result = probe_has_next(provider, 40, frozenset(), page_size=20, max_lookahead_pages=3)

    assert result.has_next is False
    assert result.pages_checked == 1


def test_last_page_of_seen_places_means_no_more_results(make_provider):
    provider = make_provider(_ids(50))

    result = probe_has_next(provider, 20, frozenset(_ids(50)), page_size=20, max_lookahead_pages=3)

    assert result.has_next is False
    assert result.pages_checked == 2
    assert provider.calls == [20, 40]


def test_exhausted_horizon_is_conservatively_true(make_provider):
    provider = make_provider(_ids(200))

    result = probe_has_next(provider, 0, frozenset(_ids(200)), page_size=20, max_lookahead_pages=3)

    assert result.has_next is True
    assert result.pages_checked == 3
    assert provider.calls == [0, 20, 40]


def test_unseen_place_found_on_later_page(make_provider):
    provider = make_provider(_ids(100))
    seen = frozenset(_ids(45))

    result = probe_has_next(provider, 0, seen, page_size=20, max_lookahead_pages=3)

    assert result.has_next is True
    assert result.pages_checked == 3


def test_ignores_places_without_identifier():
    page = FetchedPage(items=[PlaceCandidate(place_id=None) for _ in range(5)], next_offset=None)

    result = probe_has_next(lambda start: page, 0, frozenset(), page_size=20, max_lookahead_pages=3)

    assert result.has_next is False
