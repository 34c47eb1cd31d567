"""Tiered discount expiration resolution."""

from gamefinder.expiration.page_parsers import GogProductCardParser, SteamPurchasePageParser
from gamefinder.expiration.resolver import ExpirationResolver
from gamefinder.expiration.tiers import (
    ClanEventTier,
    InlineDiscountTier,
    PackageLookupTier,
    PageScrapeTier,
)
from gamefinder.expiration.types import (
    ClanEvent,
    Discount,
    ListingContext,
    OutcomeKind,
    TierOutcome,
)

__all__ = [
    "ClanEvent",
    "ClanEventTier",
    "Discount",
    "ExpirationResolver",
    "GogProductCardParser",
    "InlineDiscountTier",
    "ListingContext",
    "OutcomeKind",
    "PackageLookupTier",
    "PageScrapeTier",
    "SteamPurchasePageParser",
    "TierOutcome",
]
