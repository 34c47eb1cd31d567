"""Shared httpx plumbing for storefront clients."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, ClassVar

import httpx

from gamefinder.core.logging import get_logger
from gamefinder.core.result import Failure, Result, failure, success
from gamefinder.platforms.errors import (
    NetworkError,
    NotFoundError,
    ParseError,
    PlatformError,
    RateLimitError,
    ServiceUnavailableError,
)

if TYPE_CHECKING:
    from collections.abc import Mapping

    from gamefinder.listings.models import Platform

logger = get_logger(__name__)

# Default timeout for API requests
DEFAULT_TIMEOUT = 30.0

DEFAULT_HEADERS: dict[str, str] = {
    "User-Agent": "Mozilla/5.0 (X11; Linux x86_64) gamefinder/0.1",
    "Accept-Language": "en-US,en;q=0.8",
}


class StorefrontClient:
    """
    Base class for storefront HTTP clients.

    Lazily creates one ``httpx.AsyncClient`` and turns transport problems
    and error statuses into ``PlatformError`` failures. Subclasses set
    ``platform`` and add one method per endpoint.

    Attributes:
        timeout: Request timeout in seconds.
    """

    platform: ClassVar[Platform]

    def __init__(self, timeout: float = DEFAULT_TIMEOUT) -> None:
        """
        Initialize the client.

        Args:
            timeout: Request timeout in seconds.
        """
        self.timeout = timeout
        self._client: httpx.AsyncClient | None = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                timeout=self.timeout,
                headers=DEFAULT_HEADERS,
                follow_redirects=True,
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client is not None and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    async def _send(
        self,
        method: str,
        url: str,
        *,
        params: Mapping[str, Any] | None = None,
        json: Any = None,
        cookies: Mapping[str, str] | None = None,
    ) -> Result[httpx.Response, PlatformError]:
        """Send a request and check its status."""
        client = await self._get_client()
        headers = {"Cookie": "; ".join(f"{k}={v}" for k, v in cookies.items())} if cookies else None

        try:
            response = await client.request(
                method,
                url,
                params=params,
                json=json,
                headers=headers,
            )
        except httpx.TimeoutException:
            logger.error("Request timeout", platform=self.platform.value, url=url)
            return failure(NetworkError(platform=self.platform, message="Request timeout"))
        except httpx.RequestError as e:
            logger.error("Request error", platform=self.platform.value, url=url, error=str(e))
            return failure(
                NetworkError(platform=self.platform, message="Request failed", details=str(e))
            )

        error = self._check_status(response)
        if error is not None:
            return failure(error)
        return success(response)

    async def _request_json(
        self,
        method: str,
        url: str,
        *,
        params: Mapping[str, Any] | None = None,
        json: Any = None,
    ) -> Result[Any, PlatformError]:
        """
        Make a request and decode its JSON body.

        Returns:
            Result containing the decoded body or PlatformError.
        """
        result = await self._send(method, url, params=params, json=json)
        if isinstance(result, Failure):
            return result

        try:
            return success(result.value.json())
        except ValueError as e:
            logger.error("Failed to parse response", platform=self.platform.value, url=url)
            return failure(ParseError(platform=self.platform, details=str(e)))

    async def get_page(
        self,
        url: str,
        cookies: Mapping[str, str] | None = None,
    ) -> Result[str, PlatformError]:
        """
        Fetch an HTML page.

        Args:
            url: Page URL.
            cookies: Cookies to send, e.g. age gate bypasses.

        Returns:
            Result containing the page text or PlatformError.
        """
        result = await self._send("GET", url, cookies=cookies)
        if isinstance(result, Failure):
            return result

        text = result.value.text
        if not text:
            return failure(ParseError(platform=self.platform, message="Empty page", details=url))
        return success(text)

    def _check_status(self, response: httpx.Response) -> PlatformError | None:
        """Map an error status to a PlatformError."""
        if response.status_code == 429:
            retry_after = response.headers.get("Retry-After")
            retry_seconds = int(retry_after) if retry_after and retry_after.isdigit() else 60
            logger.warning(
                "Rate limited",
                platform=self.platform.value,
                retry_after=retry_seconds,
            )
            return RateLimitError(platform=self.platform, retry_after=retry_seconds)

        if response.status_code == 404:
            return NotFoundError(platform=self.platform, details=str(response.url))

        if response.status_code in {502, 503, 504}:
            return ServiceUnavailableError(
                platform=self.platform,
                message=f"Service returned status {response.status_code}",
            )

        if response.status_code >= 400:
            logger.error(
                "Storefront API error",
                platform=self.platform.value,
                status_code=response.status_code,
            )
            return NetworkError(
                platform=self.platform,
                message=f"API returned status {response.status_code}",
                details=response.text[:500],
            )

        return None
