"""GOG source adapter."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from gamefinder.core.logging import get_logger
from gamefinder.core.result import Failure
from gamefinder.expiration.page_parsers import GogProductCardParser
from gamefinder.expiration.resolver import ExpirationResolver
from gamefinder.expiration.tiers import PageScrapeTier
from gamefinder.expiration.types import ListingContext
from gamefinder.listings.errors import SourceRetrievalError
from gamefinder.listings.models import Listing, Pending, Platform
from gamefinder.listings.pricing import currency_for_locale
from gamefinder.platforms.gog.client import STORE_URL, GogClient

if TYPE_CHECKING:
    from gamefinder.aggregation.pool import WorkerPool
    from gamefinder.core.config import Settings
    from gamefinder.listings.models import PartialResult

logger = get_logger(__name__)

# Shows mature titles without the content warning interstitial
MATURE_CONTENT_COOKIES: dict[str, str] = {"gog_wantsmaturecontent": "9999"}

DLC_PRODUCT_TYPES = frozenset({"dlc", "extra", "extras"})
STORE_MEDIA_FIELDS = ("coverHorizontal", "coverVertical")


def build_gog_resolver(client: GogClient, settings: Settings) -> ExpirationResolver:
    """Create the GOG tier chain; GOG's APIs carry no end date, so only the page is scraped."""
    return ExpirationResolver(
        network_tiers=[
            PageScrapeTier(client, GogProductCardParser(), cookies=MATURE_CONTENT_COOKIES),
        ],
        timeout=settings.resolution_timeout,
    )


class GogAdapter:
    """
    Adapter for GOG.

    Giveaway products come first, then discounted catalog products priced
    at zero. Every listing is pending until its page has been scraped.
    """

    def __init__(
        self,
        settings: Settings,
        pool: WorkerPool,
        client: GogClient | None = None,
        resolver: ExpirationResolver | None = None,
    ) -> None:
        """
        Initialize GOG adapter.

        Args:
            settings: Immutable settings.
            pool: Worker pool pending resolutions are submitted to.
            client: Optional pre-configured client for testing.
            resolver: Optional resolver for testing.
        """
        self._settings = settings
        self._pool = pool
        self._client = client or GogClient(
            language=settings.language,
            country=settings.country,
            currency=currency_for_locale(settings.locale),
            timeout=settings.request_timeout,
        )
        self._resolver = resolver or build_gog_resolver(self._client, settings)

    @property
    def platform(self) -> Platform:
        """Return the platform."""
        return Platform.GOG

    async def fetch(self) -> list[PartialResult]:
        """
        Fetch free GOG listings.

        Raises:
            SourceRetrievalError: If the giveaway sections or catalog cannot be read.
        """
        giveaways = await self._client.get_giveaway_products()
        if isinstance(giveaways, Failure):
            raise SourceRetrievalError(
                self.platform,
                "Unable to retrieve giveaways",
                details=str(giveaways.error),
                cause=giveaways.error,
            )

        catalog = await self._client.search_catalog(include_dlcs=self._settings.include_dlcs)
        if isinstance(catalog, Failure):
            raise SourceRetrievalError(
                self.platform,
                "Unable to search the catalog",
                details=str(catalog.error),
                cause=catalog.error,
            )

        seen: set[str] = set()
        results: list[PartialResult] = []
        for product in [*giveaways.value, *catalog.value]:
            key = str(product.get("id") or product.get("slug") or product.get("title"))
            if key in seen:
                continue
            try:
                listing = self._to_listing(product)
            except (KeyError, TypeError, ValueError, AttributeError) as e:
                logger.warning(
                    "Skipping unparsable GOG product",
                    product_id=product.get("id"),
                    error=str(e),
                )
                continue
            if listing is None:
                continue

            seen.add(key)
            task = self._pool.submit(
                self._resolver.resolve_listing(listing, ListingContext(url=listing.url)),
                name=f"gog-expiration-{key}",
            )
            results.append(Pending(task, title=listing.title))

        logger.info("GOG listings found", count=len(results))
        return results

    async def close(self) -> None:
        """Close the underlying client."""
        await self._client.close()

    def _to_listing(self, product: dict[str, Any]) -> Listing | None:
        """Convert a product, or return None if DLC is excluded."""
        is_dlc = str(product.get("productType", "")).lower() in DLC_PRODUCT_TYPES
        if is_dlc and not self._settings.include_dlcs:
            return None

        return Listing(
            title=product["title"],
            platform=self.platform,
            is_dlc=is_dlc,
            url=self._listing_url(product),
            original_price=(product.get("price") or {}).get("base") or None,
            store_media={
                field: product[field] for field in STORE_MEDIA_FIELDS if product.get(field)
            },
            media=tuple(
                url.replace("_{formatter}", "")
                for url in product.get("screenshots") or []
                if isinstance(url, str) and url
            ),
        )

    def _listing_url(self, product: dict[str, Any]) -> str:
        """Return the product's store page."""
        if product.get("storeLink"):
            return product["storeLink"]
        return f"{STORE_URL}{self._settings.language}/game/{product['slug']}"
