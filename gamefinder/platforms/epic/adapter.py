"""Epic Games Store source adapter."""

from __future__ import annotations

import time
from datetime import datetime
from typing import TYPE_CHECKING, Any

from gamefinder.core.logging import get_logger
from gamefinder.core.result import Failure
from gamefinder.expiration.resolver import ExpirationResolver
from gamefinder.expiration.tiers import InlineDiscountTier
from gamefinder.expiration.types import Discount, ListingContext
from gamefinder.listings.errors import SourceRetrievalError
from gamefinder.listings.models import Listing, Platform, Ready
from gamefinder.listings.pricing import currency_for_locale, format_price
from gamefinder.platforms.epic.client import PAGE_SIZE, STORE_URL, EpicGamesClient

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator

    from gamefinder.core.config import Settings
    from gamefinder.listings.models import PartialResult

logger = get_logger(__name__)

DLC_OFFER_TYPES = frozenset({"DLC", "ADD_ON"})
FEATURED_MEDIA = "featuredMedia"

# Upper bound on store query pages per fetch
MAX_PAGES = 20


class EpicGamesAdapter:
    """
    Adapter for the Epic Games Store.

    The store query and the promotions feed both carry the promotion end
    dates, so every listing is returned ready.
    """

    def __init__(
        self,
        settings: Settings,
        client: EpicGamesClient | None = None,
        resolver: ExpirationResolver | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """
        Initialize Epic Games adapter.

        Args:
            settings: Immutable settings.
            client: Optional pre-configured client for testing.
            resolver: Optional resolver for testing.
            clock: Returns the current epoch seconds.
        """
        self._settings = settings
        self._client = client or EpicGamesClient(
            language=settings.language,
            country=settings.country,
            timeout=settings.request_timeout,
        )
        self._resolver = resolver or ExpirationResolver(
            inline_tiers=[InlineDiscountTier()],
            timeout=settings.resolution_timeout,
        )
        self._clock = clock

    @property
    def platform(self) -> Platform:
        """Return the platform."""
        return Platform.EPIC_GAMES

    async def fetch(self) -> list[PartialResult]:
        """
        Fetch free Epic Games listings.

        Raises:
            SourceRetrievalError: If the store query or promotions feed fails.
        """
        elements = await self._search_all()

        promotions = await self._client.get_free_promotions()
        if isinstance(promotions, Failure):
            raise SourceRetrievalError(
                self.platform,
                "Unable to retrieve free game promotions",
                details=str(promotions.error),
                cause=promotions.error,
            )
        elements.extend(promotions.value)

        seen: set[str] = set()
        results: list[PartialResult] = []
        for element in elements:
            title = element.get("title")
            if not title or title in seen:
                continue
            try:
                listing = self._to_listing(element)
            except (KeyError, TypeError, ValueError, AttributeError) as e:
                logger.warning("Skipping unparsable Epic Games element", title=title, error=str(e))
                continue
            if listing is not None:
                seen.add(title)
                results.append(Ready(listing))

        logger.info("Epic Games listings found", count=len(results))
        return results

    async def close(self) -> None:
        """Close the underlying client."""
        await self._client.close()

    async def _search_all(self) -> list[dict[str, Any]]:
        """Page through the store query."""
        elements: list[dict[str, Any]] = []
        start = 0
        for _ in range(MAX_PAGES):
            page = await self._client.search_store(
                start,
                PAGE_SIZE,
                include_addons=self._settings.include_dlcs,
            )
            if isinstance(page, Failure):
                raise SourceRetrievalError(
                    self.platform,
                    "Unable to query the store",
                    details=str(page.error),
                    cause=page.error,
                )

            elements.extend(page.value.get("elements") or [])
            paging = page.value.get("paging") or {}
            start += int(paging.get("count") or PAGE_SIZE)
            if start >= int(paging.get("total") or 0):
                break
        return elements

    def _to_listing(self, element: dict[str, Any]) -> Listing | None:
        """Convert a catalog element, or return None if it is not a free listing."""
        is_dlc = str(element.get("offerType", "")).upper() in DLC_OFFER_TYPES
        if is_dlc and not self._settings.include_dlcs:
            return None

        total_price = element["price"]["totalPrice"]
        if int(total_price["discountPrice"]) != 0:
            return None

        original_price = int(total_price["originalPrice"])
        # Permanently free titles are not promotions
        if original_price <= 0:
            return None

        locale = self._settings.locale
        decimals = int((total_price.get("currencyInfo") or {}).get("decimals", 2))
        currency = total_price.get("currencyCode") or currency_for_locale(locale)

        url = self._listing_url(element, is_dlc)
        store_media, media = self._images(element)

        listing = Listing(
            title=element["title"],
            platform=self.platform,
            is_dlc=is_dlc,
            description=element.get("description") or "N/A",
            url=url,
            original_price=format_price(original_price, decimals, currency, locale),
            store_media=store_media,
            media=media,
        )

        context = ListingContext(
            url=url,
            original_price_cents=original_price,
            discounts=tuple(self._discounts(element, original_price)),
        )
        epoch = self._resolver.resolve_inline(context)
        return listing.with_expiration(epoch) if epoch is not None else listing

    def _listing_url(self, element: dict[str, Any], is_dlc: bool) -> str:
        """Build the locale specific store page URL."""
        slug = element.get("urlSlug") if is_dlc else element.get("productSlug")
        if not slug:
            mappings = (element.get("catalogNs") or {}).get("mappings") or []
            slug = next((m.get("pageSlug") for m in mappings if m.get("pageSlug")), None)
        if not slug:
            return STORE_URL
        return f"{STORE_URL}{self._settings.language}-{self._settings.country}/p/{slug}"

    def _images(self, element: dict[str, Any]) -> tuple[dict[str, str], list[str]]:
        """Split key images into named store media and featured media."""
        store_media: dict[str, str] = {}
        media: list[str] = []
        for image in element.get("keyImages") or []:
            image_type, url = image.get("type"), image.get("url")
            if not image_type or not url:
                continue
            if image_type == FEATURED_MEDIA:
                media.append(url)
            else:
                store_media[image_type] = url
        return store_media, media

    def _discounts(self, element: dict[str, Any], original_price: int) -> Iterator[Discount]:
        """
        Yield the element's still-running offers as discounts.

        Epic's ``discountPercentage`` is the share of the price still paid,
        so 0 is a 100% discount.
        """
        now = self._clock()
        for offer in _offers(element):
            percentage = (offer.get("discountSetting") or {}).get("discountPercentage")
            end_date = offer.get("endDate")
            if percentage is None or not end_date:
                continue

            end_epoch = int(datetime.fromisoformat(end_date.replace("Z", "+00:00")).timestamp())
            if end_epoch <= now:
                continue

            amount = original_price * (100 - int(percentage)) // 100
            yield Discount(amount=amount, end_epoch=end_epoch)


def _offers(element: dict[str, Any]) -> Iterator[dict[str, Any]]:
    """Yield line offer rules, then promotional offers."""
    for line_offer in (element.get("price") or {}).get("lineOffers") or []:
        yield from line_offer.get("appliedRules") or []

    promotions = element.get("promotions") or {}
    for group in promotions.get("promotionalOffers") or []:
        yield from group.get("promotionalOffers") or []
