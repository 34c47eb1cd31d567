"""Expiration resolver running the tier chain for one listing."""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

from gamefinder.core.logging import get_logger
from gamefinder.listings.errors import ResolutionTimeoutError, ScrapeError
from gamefinder.listings.models import NO_EXPIRATION

if TYPE_CHECKING:
    from collections.abc import Sequence

    from gamefinder.expiration.tiers import InlineTier, NetworkTier
    from gamefinder.expiration.types import ListingContext, TierOutcome
    from gamefinder.listings.models import Listing

logger = get_logger(__name__)

DEFAULT_RESOLUTION_TIMEOUT = 10.0


class ExpirationResolver:
    """
    Finds the discount end time of a listing.

    Tiers run in order and the first definitive outcome wins. Inline tiers
    run first and never suspend; the network tiers then run as one unit
    bounded by ``timeout``. Timeouts and scrape failures degrade to
    NO_EXPIRATION instead of failing the listing.

    Example:
        >>> resolver = ExpirationResolver(
        ...     inline_tiers=[InlineDiscountTier()],
        ...     network_tiers=[PackageLookupTier(client), PageScrapeTier(client, parser)],
        ... )
        >>> epoch = await resolver.resolve(context)
    """

    def __init__(
        self,
        inline_tiers: Sequence[InlineTier] = (),
        network_tiers: Sequence[NetworkTier] = (),
        *,
        timeout: float = DEFAULT_RESOLUTION_TIMEOUT,
    ) -> None:
        """
        Initialize the resolver.

        Args:
            inline_tiers: Tiers reading the primary response, in order.
            network_tiers: Tiers performing requests, in order.
            timeout: Bound in seconds for all network tiers of one listing.

        Raises:
            ValueError: If timeout is not positive.
        """
        if timeout <= 0:
            msg = "timeout must be positive"
            raise ValueError(msg)
        self._inline_tiers = tuple(inline_tiers)
        self._network_tiers = tuple(network_tiers)
        self._timeout = timeout

    @property
    def timeout(self) -> float:
        """Return the per-listing network bound."""
        return self._timeout

    def resolve_inline(self, context: ListingContext) -> int | None:
        """
        Run only the inline tiers.

        Adapters call this to decide whether a listing is ready without
        scheduling any work.

        Returns:
            The epoch found, or None if no inline tier was definitive.
        """
        outcome = self._run_inline(context)
        if outcome is not None and outcome.is_definitive:
            return outcome.epoch
        return None

    async def resolve(self, context: ListingContext) -> int:
        """
        Run the full chain.

        Args:
            context: Identifiers and primary data of the listing.

        Returns:
            Expiration epoch, or NO_EXPIRATION if no tier was definitive.
        """
        previous = self._run_inline(context)
        if previous is not None and previous.is_definitive:
            return previous.epoch  # type: ignore[return-value]

        if not self._network_tiers:
            return NO_EXPIRATION

        try:
            outcome = await asyncio.wait_for(
                self._run_network(context, previous),
                timeout=self._timeout,
            )
        except TimeoutError:
            error = ResolutionTimeoutError(context.url, self._timeout)
            logger.warning("Expiration lookup timed out", url=context.url, error=error.message)
            return NO_EXPIRATION
        except ScrapeError as e:
            logger.warning(
                "Expiration scrape failed",
                url=e.url,
                error=e.message,
                details=e.details,
            )
            return NO_EXPIRATION

        if outcome is not None and outcome.is_definitive:
            return outcome.epoch  # type: ignore[return-value]
        return NO_EXPIRATION

    async def resolve_listing(self, listing: Listing, context: ListingContext) -> Listing:
        """Resolve and return the listing carrying its expiration."""
        return listing.with_expiration(await self.resolve(context))

    def _run_inline(self, context: ListingContext) -> TierOutcome | None:
        """Run inline tiers until one is definitive."""
        previous: TierOutcome | None = None
        for tier in self._inline_tiers:
            if not tier.accepts(previous):
                continue
            previous = tier.evaluate(context)
            if previous.is_definitive:
                logger.debug("Expiration resolved", tier=tier.name, url=context.url)
                break
        return previous

    async def _run_network(
        self,
        context: ListingContext,
        previous: TierOutcome | None,
    ) -> TierOutcome | None:
        """Run network tiers until one is definitive."""
        for tier in self._network_tiers:
            if not tier.accepts(previous):
                logger.debug("Tier skipped", tier=tier.name, url=context.url)
                continue
            previous = await tier.lookup(context)
            if previous.is_definitive:
                logger.debug("Expiration resolved", tier=tier.name, url=context.url)
                break
        return previous
