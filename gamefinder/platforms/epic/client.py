"""HTTP client for the Epic Games Store GraphQL and promotions endpoints."""

from __future__ import annotations

from typing import Any

from gamefinder.core.logging import get_logger
from gamefinder.core.result import Failure, Result, failure, success
from gamefinder.listings.models import Platform
from gamefinder.platforms.errors import ParseError, PlatformError
from gamefinder.platforms.http import DEFAULT_TIMEOUT, StorefrontClient

logger = get_logger(__name__)

GRAPHQL_URL = "https://graphql.epicgames.com/graphql"
FREE_PROMOTIONS_URL = "https://store-site-backend-static-ipv4.ak.epicgames.com/freeGamesPromotions"
STORE_URL = "https://store.epicgames.com/"

PAGE_SIZE = 100

STORE_QUERY = (
    "query searchStoreQuery($allowCountries: String, $category: String, $count: Int, "
    "$country: String! $locale: String, $itemNs: String, $sortBy: String, $sortDir: String, "
    "$start: Int $onSale: Boolean, $freeGame: Boolean, $pageType: String, "
    "$withPrice: Boolean = false, $withPromotions: Boolean = false) "
    "{ Catalog { searchStore(allowCountries: $allowCountries, category: $category, "
    "count: $count, country: $country, locale: $locale, itemNs: $itemNs, sortBy: $sortBy, "
    "sortDir: $sortDir, start: $start, onSale: $onSale, freeGame: $freeGame) "
    "{ elements { title description offerType keyImages { type url } productSlug urlSlug "
    "catalogNs { mappings(pageType: $pageType) { pageSlug pageType } } "
    "price(country: $country) @include(if: $withPrice) { totalPrice { discountPrice "
    "originalPrice currencyCode currencyInfo { decimals } } lineOffers { appliedRules "
    "{ startDate endDate discountSetting { discountType discountPercentage } } } } "
    "promotions(category: $category) @include(if: $withPromotions) { promotionalOffers "
    "{ promotionalOffers { startDate endDate discountSetting { discountType "
    "discountPercentage } } } } } paging { count total } } } }"
)


def _search_store(data: Any) -> dict[str, Any]:
    """Return ``data.Catalog.searchStore`` from a response body."""
    return data["data"]["Catalog"]["searchStore"]


class EpicGamesClient(StorefrontClient):
    """
    HTTP client for the Epic Games Store.

    Attributes:
        language: Two-letter language code.
        country: Two-letter country code.
        timeout: Request timeout in seconds.
    """

    platform = Platform.EPIC_GAMES

    def __init__(
        self,
        language: str = "en",
        country: str = "US",
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        """Initialize Epic Games client."""
        super().__init__(timeout=timeout)
        self.language = language
        self.country = country

    @property
    def locale_tag(self) -> str:
        """Return the locale as Epic expects it, e.g. ``en-US``."""
        return f"{self.language}-{self.country}"

    async def search_store(
        self,
        start: int = 0,
        count: int = PAGE_SIZE,
        *,
        include_addons: bool = True,
    ) -> Result[dict[str, Any], PlatformError]:
        """
        Query one page of free, on-sale catalog offers.

        Args:
            start: Offset of the first element.
            count: Page size.
            include_addons: Also query the add-on category.

        Returns:
            Result containing ``searchStore`` (``elements`` and ``paging``) or PlatformError.
        """
        category = "games|bundles|addons" if include_addons else "games|bundles"
        variables = {
            "allowCountries": self.country,
            "category": category,
            "count": count,
            "country": self.country,
            "locale": self.locale_tag,
            "onSale": True,
            "sortBy": "currentPrice",
            "sortDir": "ASC",
            "start": start,
            "freeGame": True,
            "pageType": "productHome",
            "withPromotions": True,
            "withPrice": True,
        }
        logger.info("Querying Epic Games store", start=start, count=count)

        result = await self._request_json(
            "POST",
            GRAPHQL_URL,
            json={"query": STORE_QUERY, "variables": variables},
        )
        if isinstance(result, Failure):
            return result

        try:
            return success(_search_store(result.value))
        except (KeyError, TypeError) as e:
            return failure(
                ParseError(platform=self.platform, message="Malformed store query response", details=str(e))
            )

    async def get_free_promotions(self) -> Result[list[dict[str, Any]], PlatformError]:
        """
        Fetch the weekly free games promotion feed.

        Returns:
            Result containing catalog elements or PlatformError.
        """
        result = await self._request_json(
            "GET",
            FREE_PROMOTIONS_URL,
            params={
                "locale": self.locale_tag,
                "country": self.country,
                "allowCountries": self.country,
            },
        )
        if isinstance(result, Failure):
            return result

        try:
            return success(_search_store(result.value)["elements"])
        except (KeyError, TypeError) as e:
            return failure(
                ParseError(platform=self.platform, message="Malformed promotions response", details=str(e))
            )
