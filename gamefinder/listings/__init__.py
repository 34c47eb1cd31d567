"""Listing model, partial results and pipeline errors."""

from gamefinder.listings.errors import (
    GameFinderError,
    PendingResolutionError,
    ResolutionTimeoutError,
    ScrapeError,
    SourceRetrievalError,
)
from gamefinder.listings.models import (
    NO_EXPIRATION,
    Listing,
    PartialResult,
    Pending,
    Platform,
    Ready,
)

__all__ = [
    "NO_EXPIRATION",
    "GameFinderError",
    "Listing",
    "PartialResult",
    "Pending",
    "PendingResolutionError",
    "Platform",
    "Ready",
    "ResolutionTimeoutError",
    "ScrapeError",
    "SourceRetrievalError",
]
