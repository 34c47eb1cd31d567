"""Source adapter protocol implemented by every storefront."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from gamefinder.listings.models import PartialResult, Platform


@runtime_checkable
class SourceAdapter(Protocol):
    """
    Protocol for storefront adapters.

    An adapter turns one storefront's undocumented APIs into partial
    results. Listings whose expiration is already known are returned as
    ``Ready``; the rest are returned as ``Pending`` with their resolution
    already submitted to the worker pool.
    """

    @property
    def platform(self) -> Platform:
        """Return the storefront this adapter queries."""
        ...

    async def fetch(self) -> list[PartialResult]:
        """
        Fetch every currently free listing.

        Returns:
            Ready and pending partial results.

        Raises:
            SourceRetrievalError: If the primary data could not be obtained.
        """
        ...

    async def close(self) -> None:
        """Release HTTP resources."""
        ...
