"""Error values returned by storefront HTTP clients."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from gamefinder.listings.models import Platform


class ErrorCode(str, Enum):
    """Error codes for storefront client errors."""

    UNKNOWN = "unknown"
    RATE_LIMIT = "rate_limit"
    NETWORK = "network"
    PARSE = "parse"
    NOT_FOUND = "not_found"
    SERVICE_UNAVAILABLE = "service_unavailable"


@dataclass(frozen=True, slots=True)
class PlatformError:
    """
    A failed storefront request.

    Attributes:
        code: Error code identifying the type of error.
        message: Human-readable error message.
        platform: Storefront that produced the error.
        details: Additional error details (optional).
        retry_after: Seconds to wait before retrying (for rate limits).
    """

    code: ErrorCode
    message: str
    platform: Platform
    details: str | None = None
    retry_after: int | None = None

    def __str__(self) -> str:
        """Return string representation of the error."""
        return f"[{self.platform.value}] {self.code.value}: {self.message}"


def RateLimitError(
    platform: Platform,
    message: str = "Rate limit exceeded",
    retry_after: int | None = None,
) -> PlatformError:
    """Create a rate limit error."""
    return PlatformError(
        code=ErrorCode.RATE_LIMIT,
        message=message,
        platform=platform,
        retry_after=retry_after,
    )


def NetworkError(
    platform: Platform,
    message: str = "Network error",
    details: str | None = None,
) -> PlatformError:
    """Create a network error."""
    return PlatformError(
        code=ErrorCode.NETWORK,
        message=message,
        platform=platform,
        details=details,
    )


def ParseError(
    platform: Platform,
    message: str = "Failed to parse response",
    details: str | None = None,
) -> PlatformError:
    """Create a parse error."""
    return PlatformError(
        code=ErrorCode.PARSE,
        message=message,
        platform=platform,
        details=details,
    )


def NotFoundError(
    platform: Platform,
    message: str = "Resource not found",
    details: str | None = None,
) -> PlatformError:
    """Create a not found error."""
    return PlatformError(
        code=ErrorCode.NOT_FOUND,
        message=message,
        platform=platform,
        details=details,
    )


def ServiceUnavailableError(
    platform: Platform,
    message: str = "Service unavailable",
    details: str | None = None,
) -> PlatformError:
    """Create a service unavailable error."""
    return PlatformError(
        code=ErrorCode.SERVICE_UNAVAILABLE,
        message=message,
        platform=platform,
        details=details,
    )
