"""Steam source adapter."""

from __future__ import annotations

import re
from typing import TYPE_CHECKING, Any

from gamefinder.core.logging import get_logger
from gamefinder.core.result import Failure
from gamefinder.expiration.page_parsers import SteamPurchasePageParser
from gamefinder.expiration.resolver import ExpirationResolver
from gamefinder.expiration.tiers import (
    ClanEventTier,
    InlineDiscountTier,
    PackageLookupTier,
    PageScrapeTier,
)
from gamefinder.expiration.types import Discount, ListingContext
from gamefinder.listings.errors import SourceRetrievalError
from gamefinder.listings.models import Listing, Pending, Platform, Ready
from gamefinder.listings.pricing import currency_for_locale, format_price
from gamefinder.platforms.steam.client import CDN_URL, STORE_URL, SteamClient

if TYPE_CHECKING:
    from gamefinder.aggregation.pool import WorkerPool
    from gamefinder.core.config import Settings
    from gamefinder.listings.models import PartialResult

logger = get_logger(__name__)

# Skips the age gate on mature listings
AGE_GATE_COOKIES: dict[str, str] = {"birthtime": "568022401"}

# Search results only expose ids through their logo URL
LOGO_ID_PATTERN = re.compile(r"/(apps|subs|bundles)/(\d+)/")
LOGO_ID_KEYS: dict[str, str] = {"apps": "appid", "subs": "packageid", "bundles": "bundleid"}

# IStoreBrowseService item types
ITEM_TYPE_PACKAGE = 1
ITEM_TYPE_BUNDLE = 2

PRICE_DECIMALS = 2


def extract_item_ids(search_items: list[dict[str, Any]]) -> list[dict[str, int]]:
    """
    Convert search results into GetItems ids.

    Args:
        search_items: Items returned by the store search.

    Returns:
        Ids such as ``{"appid": 10}``; items with unrecognized logos are skipped.
    """
    ids: list[dict[str, int]] = []
    for item in search_items:
        match = LOGO_ID_PATTERN.search(str(item.get("logo", "")))
        if match is None:
            logger.debug("Search item without recognizable id", name=item.get("name"))
            continue
        ids.append({LOGO_ID_KEYS[match.group(1)]: int(match.group(2))})
    return ids


def build_steam_resolver(client: SteamClient, settings: Settings) -> ExpirationResolver:
    """Create the Steam tier chain: inline, package, clan events, page scrape."""
    return ExpirationResolver(
        inline_tiers=[InlineDiscountTier()],
        network_tiers=[
            PackageLookupTier(client),
            ClanEventTier(client, enabled=settings.use_clan_events),
            PageScrapeTier(client, SteamPurchasePageParser(), cookies=AGE_GATE_COOKIES),
        ],
        timeout=settings.resolution_timeout,
    )


def _as_int(value: Any) -> int | None:
    """Convert a JSON number or numeric string (int64 fields) to int."""
    if value is None or value == "":
        return None
    return int(value)


class SteamAdapter:
    """
    Adapter for the Steam store.

    Listings whose discount end is in the GetItems response are returned
    ready; the rest are resolved on the worker pool through the package,
    clan event and page scrape tiers.
    """

    def __init__(
        self,
        settings: Settings,
        pool: WorkerPool,
        client: SteamClient | None = None,
        resolver: ExpirationResolver | None = None,
    ) -> None:
        """
        Initialize Steam adapter.

        Args:
            settings: Immutable settings.
            pool: Worker pool pending resolutions are submitted to.
            client: Optional pre-configured client for testing.
            resolver: Optional resolver for testing.
        """
        self._settings = settings
        self._pool = pool
        self._client = client or SteamClient(
            language=settings.language,
            country=settings.country,
            timeout=settings.request_timeout,
        )
        self._resolver = resolver or build_steam_resolver(self._client, settings)

    @property
    def platform(self) -> Platform:
        """Return the platform."""
        return Platform.STEAM

    async def fetch(self) -> list[PartialResult]:
        """
        Fetch free Steam listings.

        Raises:
            SourceRetrievalError: If the search or item lookup fails.
        """
        search = await self._client.search_free_listings()
        if isinstance(search, Failure):
            raise SourceRetrievalError(
                self.platform,
                "Unable to search free listings",
                details=str(search.error),
                cause=search.error,
            )

        ids = extract_item_ids(search.value)
        if not ids:
            logger.info("No free Steam listings")
            return []

        items = await self._client.get_items(ids)
        if isinstance(items, Failure):
            raise SourceRetrievalError(
                self.platform,
                "Unable to retrieve store items",
                details=str(items.error),
                cause=items.error,
            )

        results: list[PartialResult] = []
        for item in items.value:
            try:
                partial = self._to_partial(item)
            except (KeyError, TypeError, ValueError, AttributeError) as e:
                logger.warning("Skipping unparsable Steam item", item_id=item.get("id"), error=str(e))
                continue
            if partial is not None:
                results.append(partial)

        logger.info("Steam listings found", count=len(results))
        return results

    async def close(self) -> None:
        """Close the underlying client."""
        await self._client.close()

    def _to_partial(self, item: dict[str, Any]) -> PartialResult | None:
        """Convert a store item, or return None if it is not a free listing."""
        purchase = item.get("best_purchase_option") or {}
        if _as_int(purchase.get("discount_pct")) != 100:
            return None

        is_dlc = "parent_appid" in (item.get("related_items") or {})
        if is_dlc and not self._settings.include_dlcs:
            return None

        url = STORE_URL + item.get("store_url_path", "")
        price_cents = _as_int(purchase.get("original_price_in_cents"))

        listing = Listing(
            title=item["name"],
            platform=self.platform,
            is_dlc=is_dlc,
            description=(item.get("basic_info") or {}).get("short_description") or "N/A",
            url=url,
            original_price=self._format_price(price_cents),
            store_media=self._store_media(item),
            media=self._screenshots(item),
        )
        context = self._context(item, url, price_cents)

        epoch = self._resolver.resolve_inline(context)
        if epoch is not None:
            return Ready(listing.with_expiration(epoch))

        task = self._pool.submit(
            self._resolver.resolve_listing(listing, context),
            name=f"steam-expiration-{item.get('id')}",
        )
        return Pending(task, title=listing.title)

    def _context(self, item: dict[str, Any], url: str, price_cents: int | None) -> ListingContext:
        """Collect the identifiers the expiration tiers need."""
        purchase = item.get("best_purchase_option") or {}
        item_type = _as_int(item.get("item_type"))

        package_id = purchase.get("packageid")
        if package_id is None and item_type == ITEM_TYPE_PACKAGE:
            package_id = item.get("id")
        bundle_id = purchase.get("bundleid")
        if bundle_id is None and item_type == ITEM_TYPE_BUNDLE:
            bundle_id = item.get("id")

        publishers = (item.get("basic_info") or {}).get("publishers") or []
        clan_id = next(
            (p["creator_clan_account_id"] for p in publishers if p.get("creator_clan_account_id")),
            None,
        )

        discounts = tuple(
            Discount(
                amount=_as_int(d.get("discount_amount")) or 0,
                end_epoch=_as_int(d.get("discount_end_date")),
            )
            for d in purchase.get("active_discounts") or []
        )

        return ListingContext(
            url=url,
            app_id=str(item["appid"]) if item.get("appid") is not None else None,
            package_id=str(package_id) if package_id is not None else None,
            bundle_id=str(bundle_id) if bundle_id is not None else None,
            clan_id=str(clan_id) if clan_id is not None else None,
            original_price_cents=price_cents,
            discounts=discounts,
        )

    def _format_price(self, price_cents: int | None) -> str | None:
        """Format the original price for the configured locale."""
        if price_cents is None:
            return None
        locale = self._settings.locale
        return format_price(price_cents, PRICE_DECIMALS, currency_for_locale(locale), locale)

    def _store_media(self, item: dict[str, Any]) -> dict[str, str]:
        """Build artwork URLs from the item's asset file names."""
        assets = item.get("assets") or {}
        url_format = assets.get("asset_url_format")
        if not url_format:
            return {}

        media: dict[str, str] = {}
        for role, filename in assets.items():
            if role == "asset_url_format" or not isinstance(filename, str) or "." not in filename:
                continue
            media[role] = CDN_URL + url_format.replace("${FILENAME}", filename)
        return media

    def _screenshots(self, item: dict[str, Any]) -> tuple[str, ...]:
        """Collect screenshot URLs, mature ones only when allowed."""
        screenshots = item.get("screenshots") or {}
        groups = ["all_ages_screenshots"]
        if self._settings.allow_mature_content:
            groups.append("mature_content_screenshots")

        return tuple(
            CDN_URL + shot["filename"]
            for group in groups
            for shot in screenshots.get(group) or []
            if shot.get("filename")
        )
