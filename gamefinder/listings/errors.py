"""Exceptions raised by the aggregation pipeline."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from gamefinder.listings.models import Platform
    from gamefinder.platforms.errors import PlatformError


class GameFinderError(Exception):
    """Base error for listing retrieval."""

    def __init__(self, message: str, details: str | None = None) -> None:
        """Initialize error."""
        super().__init__(message)
        self.message = message
        self.details = details


class SourceRetrievalError(GameFinderError):
    """An adapter could not obtain or parse its primary data."""

    def __init__(
        self,
        platform: Platform,
        message: str,
        details: str | None = None,
        cause: PlatformError | None = None,
    ) -> None:
        """Initialize with the failing platform and optional client error."""
        super().__init__(f"[{platform.value}] {message}", details=details)
        self.platform = platform
        self.cause = cause


class PendingResolutionError(GameFinderError):
    """One or more pending listings failed while being joined."""

    def __init__(self, errors: list[BaseException]) -> None:
        """Initialize with every captured failure."""
        first = errors[0] if errors else None
        super().__init__(
            f"Failed to resolve {len(errors)} pending listing(s)",
            details=repr(first) if first is not None else None,
        )
        self.errors = errors


class ResolutionTimeoutError(GameFinderError):
    """Networked expiration lookups exceeded their time bound."""

    def __init__(self, url: str, timeout: float) -> None:
        """Initialize with the listing url and the bound that was exceeded."""
        super().__init__(f"Expiration lookup for {url} timed out after {timeout}s")
        self.url = url
        self.timeout = timeout


class ScrapeError(GameFinderError):
    """A listing page could not be fetched or did not contain the expected text."""

    def __init__(self, url: str, message: str, details: str | None = None) -> None:
        """Initialize with the scraped url."""
        super().__init__(message, details=details)
        self.url = url
