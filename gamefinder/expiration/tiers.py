"""
Expiration lookup tiers.

Tiers are ordered from cheapest to most expensive. The inline tier only
inspects data already in the primary response; the remaining tiers each
issue network requests through a storefront client.
"""

from __future__ import annotations

import time
from typing import TYPE_CHECKING, Any, Protocol

from gamefinder.core.logging import get_logger
from gamefinder.core.result import Failure
from gamefinder.expiration.clan_events import find_event_end, parse_clan_events
from gamefinder.expiration.types import OutcomeKind, TierOutcome
from gamefinder.listings.errors import ScrapeError

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping

    from gamefinder.core.result import Result
    from gamefinder.expiration.page_parsers import PageParser
    from gamefinder.expiration.types import ListingContext
    from gamefinder.platforms.errors import PlatformError

logger = get_logger(__name__)


class InlineTier(Protocol):
    """A tier that decides from data already at hand, without suspending."""

    name: str

    def accepts(self, previous: TierOutcome | None) -> bool:
        """Check if the tier runs after the given outcome."""
        ...

    def evaluate(self, context: ListingContext) -> TierOutcome:
        """Evaluate the tier."""
        ...


class NetworkTier(Protocol):
    """A tier that performs network I/O."""

    name: str

    def accepts(self, previous: TierOutcome | None) -> bool:
        """Check if the tier runs after the given outcome."""
        ...

    async def lookup(self, context: ListingContext) -> TierOutcome:
        """Look up the expiration."""
        ...


class PackageSource(Protocol):
    """Client able to resolve package details."""

    async def resolve_packages(self, package_id: str) -> Result[list[dict[str, Any]], PlatformError]:
        """Fetch package details."""
        ...


class ClanEventSource(Protocol):
    """Client able to list a publisher's events."""

    async def get_clan_events(self, clan_id: str) -> Result[list[dict[str, Any]], PlatformError]:
        """Fetch the publisher's events."""
        ...


class PageSource(Protocol):
    """Client able to fetch an HTML page."""

    async def get_page(
        self,
        url: str,
        cookies: Mapping[str, str] | None = None,
    ) -> Result[str, PlatformError]:
        """Fetch a page."""
        ...


class InlineDiscountTier:
    """
    Uses the discount end time carried by the primary response.

    A discount is only trusted when its amount equals the full price, so a
    second, unrelated promotion running at the same time is never mistaken
    for the 100% discount.
    """

    name = "inline_discount"

    def accepts(self, previous: TierOutcome | None) -> bool:
        """Always run."""
        return True

    def evaluate(self, context: ListingContext) -> TierOutcome:
        """Return the end time of the full-price discount, if present."""
        if context.original_price_cents is None:
            return TierOutcome.not_applicable()

        for discount in context.discounts:
            if discount.amount == context.original_price_cents and discount.end_epoch:
                return TierOutcome.found(discount.end_epoch)

        return TierOutcome.not_applicable()


class PackageLookupTier:
    """Reads ``discount_end_rtime`` from the package holding the free offer."""

    name = "package_lookup"

    def __init__(self, client: PackageSource) -> None:
        """Initialize with a client that resolves packages."""
        self._client = client

    def accepts(self, previous: TierOutcome | None) -> bool:
        """Always run."""
        return True

    async def lookup(self, context: ListingContext) -> TierOutcome:
        """
        Look up the package's discount end.

        A positive end time is definitive. A present but zero end time is
        indeterminate: the package is discounted but the end is published
        elsewhere.
        """
        if not context.package_id:
            return TierOutcome.not_applicable()

        result = await self._client.resolve_packages(context.package_id)
        if isinstance(result, Failure):
            logger.warning(
                "Package lookup failed",
                package_id=context.package_id,
                error=str(result.error),
            )
            return TierOutcome.not_applicable()

        packages = result.value
        if not packages:
            return TierOutcome.not_applicable()

        try:
            if "discount_end_rtime" not in packages[0]:
                return TierOutcome.not_applicable()
            end_time = int(packages[0]["discount_end_rtime"] or 0)
        except (TypeError, ValueError) as e:
            logger.warning("Malformed package details", package_id=context.package_id, error=str(e))
            return TierOutcome.not_applicable()

        if end_time > 0:
            return TierOutcome.found(end_time)
        return TierOutcome.indeterminate()


class ClanEventTier:
    """
    Searches the publisher's promotional events for one covering the listing.

    Only consulted when the package lookup reported a zero end time, and
    only when the policy flag allows it.
    """

    name = "clan_events"

    def __init__(
        self,
        client: ClanEventSource,
        *,
        enabled: bool = True,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """
        Initialize the tier.

        Args:
            client: Client that lists publisher events.
            enabled: Policy flag allowing this tier.
            clock: Returns the current epoch seconds.
        """
        self._client = client
        self._enabled = enabled
        self._clock = clock

    def accepts(self, previous: TierOutcome | None) -> bool:
        """Run only after an indeterminate outcome, and only when enabled."""
        return (
            self._enabled
            and previous is not None
            and previous.kind == OutcomeKind.INDETERMINATE
        )

    async def lookup(self, context: ListingContext) -> TierOutcome:
        """Return the end of the first still-running event that covers the listing."""
        if not context.clan_id:
            return TierOutcome.not_applicable()

        result = await self._client.get_clan_events(context.clan_id)
        if isinstance(result, Failure):
            logger.warning(
                "Clan event lookup failed",
                clan_id=context.clan_id,
                error=str(result.error),
            )
            return TierOutcome.not_applicable()

        events = parse_clan_events(result.value)
        end_epoch = find_event_end(events, context, self._clock())
        if end_epoch is None:
            return TierOutcome.not_applicable()
        return TierOutcome.found(end_epoch)


class PageScrapeTier:
    """
    Fetches the listing page and hands it to a page parser.

    This tier is terminal: it either returns FOUND (possibly with
    NO_EXPIRATION) or raises ScrapeError.
    """

    name = "page_scrape"

    def __init__(
        self,
        client: PageSource,
        parser: PageParser,
        cookies: Mapping[str, str] | None = None,
    ) -> None:
        """
        Initialize the tier.

        Args:
            client: Client used to fetch the page.
            parser: Parser for the storefront's page layout.
            cookies: Cookies sent with the request, e.g. age gates.
        """
        self._client = client
        self._parser = parser
        self._cookies = dict(cookies or {})

    def accepts(self, previous: TierOutcome | None) -> bool:
        """Always run."""
        return True

    async def lookup(self, context: ListingContext) -> TierOutcome:
        """Scrape the expiration from the listing page."""
        if not context.url:
            raise ScrapeError(context.url, "Listing has no page to scrape")

        result = await self._client.get_page(context.url, cookies=self._cookies)
        if isinstance(result, Failure):
            raise ScrapeError(context.url, "Unable to fetch listing page", details=str(result.error))

        return TierOutcome.found(self._parser.parse(result.value, context.url))
