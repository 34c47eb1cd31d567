"""HTTP client for the Steam store and IStoreBrowseService APIs."""

from __future__ import annotations

import json
from typing import Any

from gamefinder.core.logging import get_logger
from gamefinder.core.result import Failure, Result, failure, success
from gamefinder.listings.models import Platform
from gamefinder.platforms.errors import ParseError, PlatformError
from gamefinder.platforms.http import DEFAULT_TIMEOUT, StorefrontClient

logger = get_logger(__name__)

STORE_URL = "https://store.steampowered.com/"
CDN_URL = "https://cdn.cloudflare.steamstatic.com/"

SEARCH_URL = f"{STORE_URL}search/results/"
PACKAGES_URL = f"{STORE_URL}actions/ajaxresolvepackages"
CLAN_EVENTS_URL = f"{STORE_URL}events/ajaxgetadjacentpartnerevents/"
GET_ITEMS_URL = "https://api.steampowered.com/IStoreBrowseService/GetItems/v1"

# Steam's names for supported languages
STEAM_LANGUAGES: dict[str, str] = {
    "en": "english",
    "de": "german",
    "fr": "french",
    "es": "spanish",
    "it": "italian",
    "pt": "portuguese",
    "pl": "polish",
    "ru": "russian",
    "tr": "turkish",
    "ja": "japanese",
    "nl": "dutch",
    "fi": "finnish",
}

CLAN_EVENTS_PAGE_SIZE = 100


class SteamClient(StorefrontClient):
    """
    HTTP client for Steam.

    Attributes:
        language: Two-letter language code.
        country: Two-letter country code.
        timeout: Request timeout in seconds.
    """

    platform = Platform.STEAM

    def __init__(
        self,
        language: str = "en",
        country: str = "US",
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        """
        Initialize Steam client.

        Args:
            language: Two-letter language code.
            country: Two-letter country code.
            timeout: Request timeout in seconds.
        """
        super().__init__(timeout=timeout)
        self.language = language
        self.country = country

    @property
    def steam_language(self) -> str:
        """Return Steam's name for the configured language."""
        return STEAM_LANGUAGES.get(self.language, "english")

    async def search_free_listings(self) -> Result[list[dict[str, Any]], PlatformError]:
        """
        Search the store for discounted listings that are currently free.

        Returns:
            Result containing search items (``name`` and ``logo``) or PlatformError.
        """
        params = {
            "ignore_preferences": 1,
            "maxprice": "free",
            "specials": 1,
            "json": 1,
            "cc": self.country,
        }
        logger.info("Searching Steam free listings", country=self.country)

        result = await self._request_json("GET", SEARCH_URL, params=params)
        if isinstance(result, Failure):
            return result

        items = result.value.get("items") if isinstance(result.value, dict) else None
        if not isinstance(items, list):
            return failure(ParseError(platform=self.platform, message="Search response has no items"))
        return success(items)

    async def get_items(
        self,
        ids: list[dict[str, int]],
    ) -> Result[list[dict[str, Any]], PlatformError]:
        """
        Fetch store items with basic info, assets and screenshots.

        Args:
            ids: Item ids such as ``{"appid": 10}`` or ``{"packageid": 20}``.

        Returns:
            Result containing store items or PlatformError.
        """
        input_json = {
            "ids": ids,
            "context": {
                "language": self.steam_language,
                "country_code": self.country,
                "steam_realm": 1,
            },
            "data_request": {
                "include_basic_info": True,
                "include_assets": True,
                "include_screenshots": True,
            },
        }

        result = await self._request_json(
            "GET",
            GET_ITEMS_URL,
            params={"input_json": json.dumps(input_json, separators=(",", ":"))},
        )
        if isinstance(result, Failure):
            return result

        try:
            items = result.value["response"].get("store_items", [])
        except (KeyError, TypeError, AttributeError) as e:
            return failure(
                ParseError(platform=self.platform, message="Malformed GetItems response", details=str(e))
            )
        return success(items)

    async def resolve_packages(self, package_id: str) -> Result[list[dict[str, Any]], PlatformError]:
        """
        Fetch package details, including ``discount_end_rtime``.

        Args:
            package_id: Package (sub) id.

        Returns:
            Result containing package objects or PlatformError.
        """
        result = await self._request_json(
            "GET",
            PACKAGES_URL,
            params={"packageids": package_id, "cc": self.country, "l": self.steam_language},
        )
        if isinstance(result, Failure):
            return result
        if not isinstance(result.value, list):
            return failure(ParseError(platform=self.platform, message="Malformed package response"))
        return success(result.value)

    async def get_clan_events(self, clan_id: str) -> Result[list[dict[str, Any]], PlatformError]:
        """
        Fetch a publisher clan's events.

        Args:
            clan_id: Clan account id.

        Returns:
            Result containing event objects in feed order or PlatformError.
        """
        result = await self._request_json(
            "GET",
            CLAN_EVENTS_URL,
            params={
                "clan_accountid": clan_id,
                "count_before": 0,
                "count_after": CLAN_EVENTS_PAGE_SIZE,
            },
        )
        if isinstance(result, Failure):
            return result

        events = result.value.get("events") if isinstance(result.value, dict) else None
        if not isinstance(events, list):
            return failure(ParseError(platform=self.platform, message="Malformed events response"))
        return success(events)
