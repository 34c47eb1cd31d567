"""Splitting partial results and joining pending listings."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from gamefinder.listings.errors import PendingResolutionError
from gamefinder.listings.models import Listing, Pending, Ready

if TYPE_CHECKING:
    from collections.abc import Awaitable, Iterable, Sequence

    from gamefinder.listings.models import PartialResult


@dataclass(slots=True)
class MergeOutcome:
    """
    Result of joining a set of pending listings.

    Attributes:
        listings: Listings from handles that succeeded, in handle order.
        errors: Failures from handles that did not.
    """

    listings: list[Listing] = field(default_factory=list)
    errors: list[BaseException] = field(default_factory=list)

    def raise_for_errors(self) -> None:
        """
        Escalate failures.

        Raises:
            PendingResolutionError: If any handle failed.
        """
        if self.errors:
            raise PendingResolutionError(self.errors) from self.errors[0]


def split(batch: Iterable[PartialResult]) -> tuple[list[Listing], list[Awaitable[Listing]]]:
    """
    Partition partial results into ready listings and pending handles.

    Relative order is preserved within each output list.

    Args:
        batch: Partial results from one or more adapters.

    Returns:
        Tuple of (ready listings, pending handles).

    Raises:
        TypeError: If an element is neither Ready nor Pending.
    """
    ready: list[Listing] = []
    pending: list[Awaitable[Listing]] = []

    for result in batch:
        match result:
            case Ready(listing=listing):
                ready.append(listing)
            case Pending(handle=handle):
                pending.append(handle)
            case _:
                msg = f"Expected Ready or Pending, got {type(result).__name__}"
                raise TypeError(msg)

    return ready, pending


async def merge_when_complete(pending: Sequence[Awaitable[Listing]]) -> MergeOutcome:
    """
    Await every pending handle as one joined unit.

    A failing handle never discards its siblings: successes are collected
    in ``listings`` and failures in ``errors``.

    Args:
        pending: Handles producing one listing each.

    Returns:
        The merged outcome.
    """
    outcome = MergeOutcome()
    if not pending:
        return outcome

    results = await asyncio.gather(*pending, return_exceptions=True)
    for result in results:
        if isinstance(result, BaseException):
            outcome.errors.append(result)
        elif isinstance(result, Listing):
            outcome.listings.append(result)
        else:
            outcome.errors.append(
                TypeError(f"Pending handle produced {type(result).__name__}, not Listing")
            )

    return outcome
