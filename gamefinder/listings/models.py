"""Listing data model shared by adapters, the resolver and the orchestrator."""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Awaitable, Mapping

# Reserved expiration value meaning "no end time was found"
NO_EXPIRATION = -1


class Platform(str, Enum):
    """Storefronts a listing can come from."""

    STEAM = "STEAM"
    EPIC_GAMES = "EPIC_GAMES"
    GOG = "GOG"

    @property
    def display_name(self) -> str:
        """Return a human readable platform name."""
        return _DISPLAY_NAMES[self]


_DISPLAY_NAMES: dict[Platform, str] = {
    Platform.STEAM: "Steam",
    Platform.EPIC_GAMES: "Epic Games",
    Platform.GOG: "GOG",
}


@dataclass(frozen=True, slots=True)
class Listing:
    """
    A temporarily free game or DLC.

    Attributes:
        title: Listing title.
        platform: Storefront the listing was found on.
        is_dlc: Whether the listing is downloadable content.
        description: Short description, "N/A" when the store has none.
        url: Canonical store page.
        original_price: Locale formatted price before the discount.
        store_media: Named artwork URLs keyed by role (header, capsule, ...).
        media: Ordered screenshot and trailer URLs.
        expiration_epoch: Discount end in epoch seconds, or NO_EXPIRATION.
    """

    title: str
    platform: Platform
    is_dlc: bool = False
    description: str = "N/A"
    url: str = ""
    original_price: str | None = None
    store_media: Mapping[str, str] = field(default_factory=dict)
    media: tuple[str, ...] = ()
    expiration_epoch: int = NO_EXPIRATION

    def __post_init__(self) -> None:
        """Validate fields and freeze the media containers."""
        if not self.title:
            msg = "title cannot be empty"
            raise ValueError(msg)
        if isinstance(self.expiration_epoch, bool) or not isinstance(self.expiration_epoch, int):
            msg = f"expiration_epoch must be an int, got {type(self.expiration_epoch).__name__}"
            raise TypeError(msg)
        if self.expiration_epoch <= 0 and self.expiration_epoch != NO_EXPIRATION:
            msg = f"expiration_epoch must be positive or NO_EXPIRATION, got {self.expiration_epoch}"
            raise ValueError(msg)
        object.__setattr__(self, "store_media", MappingProxyType(dict(self.store_media)))
        object.__setattr__(self, "media", tuple(self.media))

    @property
    def has_expiration(self) -> bool:
        """Check if an expiration time is known."""
        return self.expiration_epoch != NO_EXPIRATION

    def with_expiration(self, expiration_epoch: int) -> Listing:
        """
        Return a copy carrying the given expiration.

        Only the expiration resolver calls this; everything downstream
        treats listings as immutable values.

        Args:
            expiration_epoch: Epoch seconds or NO_EXPIRATION.

        Returns:
            A new Listing.
        """
        return dataclasses.replace(self, expiration_epoch=expiration_epoch)

    def to_dict(self) -> dict[str, object]:
        """Return a JSON serializable representation."""
        return {
            "title": self.title,
            "platform": self.platform.value,
            "is_dlc": self.is_dlc,
            "description": self.description,
            "url": self.url,
            "original_price": self.original_price,
            "store_media": dict(self.store_media),
            "media": list(self.media),
            "expiration_epoch": self.expiration_epoch,
        }


@dataclass(frozen=True, slots=True)
class Ready:
    """A partial result whose listing is already complete."""

    listing: Listing


@dataclass(frozen=True, slots=True)
class Pending:
    """
    A partial result still being computed.

    Attributes:
        handle: Awaitable producing exactly one Listing, usually a task
            already running on the worker pool.
        title: Title of the listing being resolved, for logging.
    """

    handle: Awaitable[Listing]
    title: str = ""


type PartialResult = Ready | Pending
