"""HTTP client for the GOG catalog and home page section APIs."""

from __future__ import annotations

from typing import Any

from gamefinder.core.logging import get_logger
from gamefinder.core.result import Failure, Result, failure, success
from gamefinder.listings.models import Platform
from gamefinder.platforms.errors import ParseError, PlatformError
from gamefinder.platforms.http import DEFAULT_TIMEOUT, StorefrontClient

logger = get_logger(__name__)

CATALOG_URL = "https://catalog.gog.com/v1/catalog"
# 2f is the hex encoded home page slug "/"
SECTIONS_URL = "https://sections.gog.com/v1/pages/2f"
STORE_URL = "https://www.gog.com/"

CATALOG_LIMIT = 48
GIVEAWAY_SECTION = "GIVEAWAY_SECTION"


class GogClient(StorefrontClient):
    """
    HTTP client for GOG.

    Attributes:
        language: Two-letter language code.
        country: Two-letter country code.
        currency: ISO currency code.
        timeout: Request timeout in seconds.
    """

    platform = Platform.GOG

    def __init__(
        self,
        language: str = "en",
        country: str = "US",
        currency: str = "USD",
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        """Initialize GOG client."""
        super().__init__(timeout=timeout)
        self.language = language
        self.country = country
        self.currency = currency

    def _locale_params(self) -> dict[str, str]:
        """Return the locale parameters GOG's own front end sends."""
        return {
            "countryCode": self.country,
            "locale": f"{self.language}-{self.country}",
            "currencyCode": self.currency,
        }

    async def search_catalog(
        self,
        *,
        include_dlcs: bool = True,
    ) -> Result[list[dict[str, Any]], PlatformError]:
        """
        Search the catalog for discounted products priced at zero.

        Args:
            include_dlcs: Also search DLC and extras.

        Returns:
            Result containing catalog products or PlatformError.
        """
        product_types = "game,pack,dlc,extras" if include_dlcs else "game,pack"
        params = {
            **self._locale_params(),
            "limit": CATALOG_LIMIT,
            "price": "between:0,0",
            "order": "desc:trending",
            "discounted": "eq:true",
            "productType": f"in:{product_types}",
            "page": 1,
        }
        logger.info("Searching GOG catalog", product_types=product_types)

        result = await self._request_json("GET", CATALOG_URL, params=params)
        if isinstance(result, Failure):
            return result

        products = result.value.get("products") if isinstance(result.value, dict) else None
        if not isinstance(products, list):
            return failure(ParseError(platform=self.platform, message="Catalog response has no products"))
        return success(products)

    async def get_home_sections(self) -> Result[list[dict[str, Any]], PlatformError]:
        """Fetch the home page section list."""
        result = await self._request_json("GET", SECTIONS_URL, params=self._locale_params())
        if isinstance(result, Failure):
            return result

        sections = result.value.get("sections") if isinstance(result.value, dict) else None
        if not isinstance(sections, list):
            return failure(ParseError(platform=self.platform, message="Malformed sections response"))
        return success(sections)

    async def get_section(self, section_id: str) -> Result[dict[str, Any], PlatformError]:
        """Fetch one home page section's properties."""
        result = await self._request_json(
            "GET",
            f"{SECTIONS_URL}/sections/{section_id}",
            params=self._locale_params(),
        )
        if isinstance(result, Failure):
            return result

        properties = result.value.get("properties") if isinstance(result.value, dict) else None
        if not isinstance(properties, dict):
            return failure(ParseError(platform=self.platform, message="Malformed section response"))
        return success(properties)

    async def get_giveaway_products(self) -> Result[list[dict[str, Any]], PlatformError]:
        """
        Fetch the products of the home page giveaway sections.

        Returns:
            Result containing giveaway products (possibly empty) or PlatformError.
        """
        sections = await self.get_home_sections()
        if isinstance(sections, Failure):
            return sections

        products: list[dict[str, Any]] = []
        for section in sections.value:
            if section.get("sectionType") != GIVEAWAY_SECTION or not section.get("id"):
                continue
            properties = await self.get_section(str(section["id"]))
            if isinstance(properties, Failure):
                return properties
            product = properties.value.get("product")
            if isinstance(product, dict):
                products.append(product)

        return success(products)
