"""Orchestrates listing retrieval across storefront adapters."""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

from gamefinder.aggregation.merge import merge_when_complete, split
from gamefinder.aggregation.pool import WorkerPool
from gamefinder.core.logging import get_logger, platform_context
from gamefinder.core.result import Failure
from gamefinder.listings.errors import SourceRetrievalError
from gamefinder.listings.models import Pending, Ready

if TYPE_CHECKING:
    from collections.abc import Awaitable, Iterable, Sequence

    from gamefinder.aggregation.types import ErrorCallback, ListingsCallback
    from gamefinder.core.config import Settings
    from gamefinder.listings.models import Listing, PartialResult
    from gamefinder.platforms.base import SourceAdapter

logger = get_logger(__name__)


class GameFinder:
    """
    Retrieves free listings from every enabled storefront.

    Two modes are offered. ``retrieve_listings`` queries adapters one after
    another and returns everything once all pending listings are resolved,
    raising on any failure. ``retrieve_listings_with_callbacks`` runs each
    adapter as its own task and streams ready listings, then resolved
    listings, to a callback while errors go to a separate callback.

    Example:
        >>> finder = GameFinder.from_settings(get_settings())
        >>> listings = await finder.retrieve_listings()
        >>> await finder.close()
    """

    def __init__(
        self,
        adapters: Iterable[SourceAdapter],
        settings: Settings,
        pool: WorkerPool | None = None,
    ) -> None:
        """
        Initialize the orchestrator.

        Args:
            adapters: Storefront adapters, at most one per platform.
            settings: Immutable settings; only enabled platforms are queried.
            pool: Worker pool the adapters submit pending work to.
        """
        self._adapters = list(adapters)
        self._settings = settings
        self._pool = pool or WorkerPool(settings.max_concurrency)
        self._runs: set[asyncio.Task[None]] = set()

    @classmethod
    def from_settings(cls, settings: Settings, pool: WorkerPool | None = None) -> GameFinder:
        """
        Build an orchestrator with the default adapters of every enabled platform.

        Args:
            settings: Immutable settings threaded down to every adapter.
            pool: Optional shared worker pool.

        Returns:
            A configured GameFinder.
        """
        from gamefinder.platforms.factory import create_default_factory

        pool = pool or WorkerPool(settings.max_concurrency)
        factory = create_default_factory(settings, pool)
        adapters: list[SourceAdapter] = []
        for platform, result in factory.get_adapters(settings.enabled_platforms).items():
            if isinstance(result, Failure):
                logger.warning("Enabled platform has no adapter", platform=platform.value)
                continue
            adapters.append(result.value)
        return cls(adapters, settings, pool=pool)

    @property
    def settings(self) -> Settings:
        """Return the settings."""
        return self._settings

    @property
    def pool(self) -> WorkerPool:
        """Return the worker pool."""
        return self._pool

    def enabled_adapters(self) -> list[SourceAdapter]:
        """Return adapters whose platform is enabled, in registration order."""
        return [a for a in self._adapters if self._settings.is_enabled(a.platform)]

    async def retrieve_listings(self) -> list[Listing]:
        """
        Retrieve all listings, blocking until every pending listing is resolved.

        Adapters are invoked sequentially. Their partial results are split
        once and every pending listing across all adapters is joined once.

        Returns:
            Ready listings followed by resolved listings.

        Raises:
            SourceRetrievalError: If any adapter fails.
            PendingResolutionError: If any pending listing fails.
        """
        partials: list[PartialResult] = []
        for adapter in self.enabled_adapters():
            with platform_context(adapter.platform.value):
                try:
                    partials.extend(await self._fetch(adapter))
                except SourceRetrievalError:
                    _, pending = split(partials)
                    _cancel(pending)
                    raise

        ready, pending = split(partials)
        logger.info("Partial results split", ready=len(ready), pending=len(pending))
        if not pending:
            return ready

        outcome = await merge_when_complete(pending)
        outcome.raise_for_errors()

        logger.info("Listings retrieved", total=len(ready) + len(outcome.listings))
        return [*ready, *outcome.listings]

    def retrieve_listings_blocking(self) -> list[Listing]:
        """
        Run ``retrieve_listings`` on a fresh event loop and close the adapters.

        For callers without a running event loop.
        """

        async def run() -> list[Listing]:
            try:
                return await self.retrieve_listings()
            finally:
                await self.close()

        return asyncio.run(run())

    def retrieve_listings_with_callbacks(
        self,
        on_listings: ListingsCallback,
        on_error: ErrorCallback,
    ) -> asyncio.Task[None]:
        """
        Retrieve listings concurrently, delivering them through callbacks.

        Each enabled adapter runs as an independent task. Per adapter, the
        ready listings are delivered first, then the resolved pending
        listings in a second call. Failures are routed to ``on_error`` and
        never affect other adapters. Must be called from a running event loop.

        Args:
            on_listings: Receives non-empty listing batches.
            on_error: Receives adapter and pending-join failures.

        Returns:
            A task that completes once every adapter has been handled.
        """
        tasks = [
            asyncio.create_task(
                self._deliver(adapter, on_listings, on_error),
                name=f"gamefinder-{adapter.platform.value.lower()}",
            )
            for adapter in self.enabled_adapters()
        ]

        run = asyncio.create_task(self._join_deliveries(tasks, on_error), name="gamefinder-run")
        self._runs.add(run)
        run.add_done_callback(self._runs.discard)
        return run

    async def close(self) -> None:
        """Cancel outstanding pending work and close every adapter."""
        await self._pool.shutdown(cancel=True)
        for adapter in self._adapters:
            try:
                await adapter.close()
            except Exception as e:
                logger.error("Error closing adapter", platform=adapter.platform.value, error=str(e))

    async def _fetch(self, adapter: SourceAdapter) -> list[PartialResult]:
        """Invoke an adapter, converting unexpected failures to SourceRetrievalError."""
        try:
            partials = list(await adapter.fetch())
            malformed = next((p for p in partials if not isinstance(p, Ready | Pending)), None)
            if malformed is not None:
                _cancel([p.handle for p in partials if isinstance(p, Pending)])
                error = TypeError(f"Expected Ready or Pending, got {type(malformed).__name__}")
                raise SourceRetrievalError(
                    adapter.platform,
                    "Adapter returned malformed results",
                    details=str(error),
                ) from error
        except SourceRetrievalError:
            raise
        except Exception as e:
            logger.exception("Adapter raised unexpectedly")
            raise SourceRetrievalError(
                adapter.platform,
                "Unexpected adapter failure",
                details=str(e),
            ) from e

        logger.info("Adapter fetched", results=len(partials))
        return partials

    async def _deliver(
        self,
        adapter: SourceAdapter,
        on_listings: ListingsCallback,
        on_error: ErrorCallback,
    ) -> None:
        """Fetch one adapter and stream its listings."""
        with platform_context(adapter.platform.value):
            try:
                partials = await self._fetch(adapter)
            except SourceRetrievalError as e:
                logger.warning("Adapter failed", error=e.message, details=e.details)
                _notify_error(on_error, e)
                return

            ready, pending = split(partials)
            if ready:
                _notify_listings(on_listings, list(ready), on_error)

            if not pending:
                return

            try:
                outcome = await merge_when_complete(pending)
            except Exception as e:
                logger.exception("Pending join failed")
                _cancel(pending)
                _notify_error(on_error, e)
                return

            for error in outcome.errors:
                logger.warning("Pending listing failed", error=repr(error))
                _notify_error(on_error, error)

            if outcome.listings:
                _notify_listings(on_listings, outcome.listings, on_error)

            logger.info(
                "Adapter delivered",
                ready=len(ready),
                resolved=len(outcome.listings),
                failed=len(outcome.errors),
            )

    async def _join_deliveries(self, tasks: list[asyncio.Task[None]], on_error: ErrorCallback) -> None:
        """Wait for every adapter task, reporting any failure that escaped it."""
        if not tasks:
            return
        results = await asyncio.gather(*tasks, return_exceptions=True)
        for task, result in zip(tasks, results, strict=True):
            if isinstance(result, Exception):
                logger.error("Adapter delivery failed", task=task.get_name(), error=repr(result))
                _notify_error(on_error, result)


def _notify_listings(
    on_listings: ListingsCallback,
    listings: list[Listing],
    on_error: ErrorCallback,
) -> None:
    """Deliver a batch, routing callback failures to the error callback."""
    try:
        on_listings(listings)
    except Exception as e:
        logger.exception("Listings callback raised")
        _notify_error(on_error, e)


def _notify_error(on_error: ErrorCallback, error: BaseException) -> None:
    """Deliver an error; a failing error callback is only logged."""
    try:
        on_error(error)
    except Exception:
        logger.exception("Error callback raised", error=repr(error))


def _cancel(pending: Sequence[Awaitable[Listing]]) -> None:
    """Cancel pending handles that are still running."""
    for handle in pending:
        if isinstance(handle, asyncio.Future) and not handle.done():
            handle.cancel()
