"""Request-scoped data models shared by the geocoding, paging and batching layers."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass(frozen=True, slots=True)
class Anchor:
    """Resolved locality center every page fetch is scoped to."""

    latitude: float
    longitude: float
    name: Optional[str] = None
    place_type: Optional[str] = None

    def to_ll(self, zoom: str = "14z") -> str:
        """Render the SerpAPI ``ll`` parameter, e.g. ``@-7.7956,110.3695,14z``."""
        return f"@{self.latitude},{self.longitude},{zoom}"


@dataclass(slots=True)
class PlaceCandidate:
    """Normalized snapshot of a business returned by SerpAPI Google Maps."""

    place_id: Optional[str]
    name: str = ""
    address: Optional[str] = None
    phone: Optional[str] = None
    website: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    rating: Optional[float] = None
    review_count: Optional[int] = None
    source: str = "serpapi_google_maps"
    raw_snapshot: Dict[str, Any] = field(default_factory=dict, repr=False)


@dataclass(frozen=True, slots=True)
class FetchedPage:
    """One fixed-size provider page; ``next_offset`` is None at end of results."""

    items: List[PlaceCandidate]
    next_offset: Optional[int]


@dataclass(frozen=True, slots=True)
class LogicalWindow:
    """Caller's request for ``size`` results beginning at logical offset ``start``."""

    start: int
    size: int

    @property
    def end(self) -> int:
        return self.start + self.size


@dataclass(slots=True)
class BatchResult:
    items: List[PlaceCandidate]
    pages_consumed: int
    logical_end_offset: int

    @property
    def place_ids(self) -> List[str]:
        return [item.place_id for item in self.items if item.place_id]


@dataclass(frozen=True, slots=True)
class LookaheadResult:
    has_next: bool
    pages_checked: int
