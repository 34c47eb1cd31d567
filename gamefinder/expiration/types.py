"""Types shared by the expiration tiers."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class OutcomeKind(str, Enum):
    """Result kinds a tier can report."""

    FOUND = "found"
    NOT_APPLICABLE = "not_applicable"
    INDETERMINATE = "indeterminate"


@dataclass(frozen=True, slots=True)
class TierOutcome:
    """
    Outcome of one tier lookup.

    ``FOUND`` is definitive and stops the chain; its epoch may be
    NO_EXPIRATION when a tier confirms the promotion is open-ended.
    ``NOT_APPLICABLE`` means the tier had no data. ``INDETERMINATE`` means
    the tier had data that did not settle the question, which is the only
    outcome that lets the publisher event tier run.

    Attributes:
        kind: Outcome kind.
        epoch: Expiration epoch, only set for FOUND.
    """

    kind: OutcomeKind
    epoch: int | None = None

    def __post_init__(self) -> None:
        """Validate that only FOUND carries an epoch."""
        if (self.kind == OutcomeKind.FOUND) != (self.epoch is not None):
            msg = "epoch must be set if and only if kind is FOUND"
            raise ValueError(msg)

    @classmethod
    def found(cls, epoch: int) -> TierOutcome:
        """Create a definitive outcome."""
        return cls(OutcomeKind.FOUND, epoch)

    @classmethod
    def not_applicable(cls) -> TierOutcome:
        """Create an outcome for a tier without data."""
        return cls(OutcomeKind.NOT_APPLICABLE)

    @classmethod
    def indeterminate(cls) -> TierOutcome:
        """Create an outcome for data that did not resolve the expiration."""
        return cls(OutcomeKind.INDETERMINATE)

    @property
    def is_definitive(self) -> bool:
        """Check if this outcome ends the chain."""
        return self.kind == OutcomeKind.FOUND


@dataclass(frozen=True, slots=True)
class Discount:
    """
    A discount active on a listing.

    Attributes:
        amount: Discount in minor currency units.
        end_epoch: When the discount ends, if the source says.
    """

    amount: int
    end_epoch: int | None = None


@dataclass(frozen=True, slots=True)
class ListingContext:
    """
    Identifiers and primary-response data the tiers work from.

    Only ``url`` is required; each tier skips itself when the identifiers
    it needs are missing.

    Attributes:
        url: Canonical listing page.
        app_id: Store application id.
        package_id: Package (sub) id holding the free offer.
        bundle_id: Bundle id.
        clan_id: Publisher clan account id, for promotional events.
        original_price_cents: Full price in minor units.
        discounts: Discounts reported by the primary response.
    """

    url: str
    app_id: str | None = None
    package_id: str | None = None
    bundle_id: str | None = None
    clan_id: str | None = None
    original_price_cents: int | None = None
    discounts: tuple[Discount, ...] = ()

    @property
    def identifiers(self) -> tuple[str | None, str | None, str | None]:
        """Return the (app, package, bundle) ids in lookup order."""
        return (self.app_id, self.package_id, self.bundle_id)


@dataclass(frozen=True, slots=True)
class ClanEvent:
    """
    A publisher's promotional event.

    Attributes:
        name: Event name.
        end_epoch: When the event ends, if it has an end.
        included_apps: App ids the event covers.
        included_packages: Package ids the event covers.
        included_bundles: Bundle ids the event covers.
    """

    name: str
    end_epoch: int | None = None
    included_apps: frozenset[str] = field(default_factory=frozenset)
    included_packages: frozenset[str] = field(default_factory=frozenset)
    included_bundles: frozenset[str] = field(default_factory=frozenset)

    def covers(self, context: ListingContext) -> bool:
        """Check if any of the listing's identifiers is included in this event."""
        sets = (self.included_apps, self.included_packages, self.included_bundles)
        return any(
            identifier is not None and identifier in included
            for identifier, included in zip(context.identifiers, sets, strict=True)
        )

    def ends_after(self, now: float) -> bool:
        """Check if the event ends strictly after ``now`` (epoch seconds)."""
        return self.end_epoch is not None and self.end_epoch > now
