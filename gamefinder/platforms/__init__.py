"""Storefront adapters package."""

from gamefinder.platforms.base import SourceAdapter
from gamefinder.platforms.errors import (
    ErrorCode,
    NetworkError,
    NotFoundError,
    ParseError,
    PlatformError,
    RateLimitError,
    ServiceUnavailableError,
)
from gamefinder.platforms.factory import AdapterNotFoundError, PlatformFactory, create_default_factory

__all__ = [
    "AdapterNotFoundError",
    "ErrorCode",
    "NetworkError",
    "NotFoundError",
    "ParseError",
    "PlatformError",
    "PlatformFactory",
    "RateLimitError",
    "ServiceUnavailableError",
    "SourceAdapter",
    "create_default_factory",
]
