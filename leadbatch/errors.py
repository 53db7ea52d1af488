"""Errors that terminate a batch request."""

from __future__ import annotations

from typing import Optional


class LeadBatchError(Exception):
    """Base class for failures surfaced to the caller."""


class ValidationError(LeadBatchError):
    """Raised when the inbound request is missing or malformed."""

    def __init__(self, field: str, message: str) -> None:
        super().__init__(message)
        self.field = field
        self.message = message


class UnresolvableLocation(LeadBatchError):
    """Raised when geocoding yields no locality-class candidate."""

    def __init__(self, location: str) -> None:
        super().__init__(
            f"Unable to resolve a city/town/village/suburb etc. for location {location!r}."
        )
        self.location = location


class UpstreamError(LeadBatchError):
    """Raised when SerpAPI or Nominatim fails or returns an unusable payload."""

    def __init__(
        self,
        source: str,
        message: str,
        status_code: Optional[int] = None,
        body: Optional[str] = None,
    ) -> None:
        detail = f"{source} request failed"
        if status_code is not None:
            detail += f" ({status_code})"
        detail += f": {message}"
        super().__init__(detail)
        self.source = source
        self.status_code = status_code
        self.body = body
