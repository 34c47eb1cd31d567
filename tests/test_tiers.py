"""Tests for expiration lookup tiers."""

from __future__ import annotations

import json
from unittest.mock import AsyncMock, MagicMock

import pytest

from gamefinder.core.result import failure, success
from gamefinder.expiration.tiers import (
    ClanEventTier,
    InlineDiscountTier,
    PackageLookupTier,
    PageScrapeTier,
)
from gamefinder.expiration.types import Discount, ListingContext, OutcomeKind, TierOutcome
from gamefinder.listings.errors import ScrapeError
from gamefinder.listings.models import Platform
from gamefinder.platforms.errors import NetworkError, NotFoundError

NOW = 1_718_000_000


class TestTierOutcome:
    """Tests for TierOutcome."""

    def test_found_is_definitive(self) -> None:
        """Only FOUND ends the chain."""
        assert TierOutcome.found(5).is_definitive is True
        assert TierOutcome.not_applicable().is_definitive is False
        assert TierOutcome.indeterminate().is_definitive is False

    def test_epoch_only_with_found(self) -> None:
        """An epoch is required for FOUND and forbidden otherwise."""
        with pytest.raises(ValueError):
            TierOutcome(OutcomeKind.FOUND)
        with pytest.raises(ValueError):
            TierOutcome(OutcomeKind.NOT_APPLICABLE, 5)


class TestInlineDiscountTier:
    """Tests for InlineDiscountTier."""

    @pytest.fixture()
    def tier(self) -> InlineDiscountTier:
        """Create the tier."""
        return InlineDiscountTier()

    def test_full_price_discount_found(self, tier: InlineDiscountTier) -> None:
        """A discount equal to the full price gives its end time."""
        context = ListingContext(
            url="u",
            original_price_cents=1000,
            discounts=(Discount(amount=500, end_epoch=NOW), Discount(amount=1000, end_epoch=NOW + 60)),
        )

        assert tier.evaluate(context) == TierOutcome.found(NOW + 60)

    def test_partial_discount_not_applicable(self, tier: InlineDiscountTier) -> None:
        """A 999 discount on a 1000 price is not the free offer."""
        context = ListingContext(
            url="u",
            original_price_cents=1000,
            discounts=(Discount(amount=999, end_epoch=NOW + 60),),
        )

        assert tier.evaluate(context).kind == OutcomeKind.NOT_APPLICABLE

    def test_matching_discount_without_end(self, tier: InlineDiscountTier) -> None:
        """A matching discount without an end time is not definitive."""
        context = ListingContext(url="u", original_price_cents=1000, discounts=(Discount(amount=1000),))

        assert tier.evaluate(context).kind == OutcomeKind.NOT_APPLICABLE

    def test_no_price(self, tier: InlineDiscountTier) -> None:
        """Without an original price the tier has no data."""
        assert tier.evaluate(ListingContext(url="u")).kind == OutcomeKind.NOT_APPLICABLE


class TestPackageLookupTier:
    """Tests for PackageLookupTier."""

    @pytest.fixture()
    def client(self) -> AsyncMock:
        """Create a mock package client."""
        return AsyncMock()

    @pytest.mark.asyncio
    async def test_positive_end_found(self, client: AsyncMock) -> None:
        """A positive discount_end_rtime is definitive."""
        client.resolve_packages.return_value = success([{"packageid": 20, "discount_end_rtime": NOW}])

        outcome = await PackageLookupTier(client).lookup(ListingContext(url="u", package_id="20"))

        assert outcome == TierOutcome.found(NOW)
        client.resolve_packages.assert_awaited_once_with("20")

    @pytest.mark.asyncio
    async def test_zero_end_indeterminate(self, client: AsyncMock) -> None:
        """A zero end time is indeterminate."""
        client.resolve_packages.return_value = success([{"discount_end_rtime": 0}])

        outcome = await PackageLookupTier(client).lookup(ListingContext(url="u", package_id="20"))

        assert outcome.kind == OutcomeKind.INDETERMINATE

    @pytest.mark.asyncio
    async def test_missing_field_not_applicable(self, client: AsyncMock) -> None:
        """A package without the field is not applicable."""
        client.resolve_packages.return_value = success([{"packageid": 20}])

        outcome = await PackageLookupTier(client).lookup(ListingContext(url="u", package_id="20"))

        assert outcome.kind == OutcomeKind.NOT_APPLICABLE

    @pytest.mark.asyncio
    async def test_failure_not_applicable(self, client: AsyncMock) -> None:
        """A failed request is not applicable."""
        client.resolve_packages.return_value = failure(NetworkError(Platform.STEAM))

        outcome = await PackageLookupTier(client).lookup(ListingContext(url="u", package_id="20"))

        assert outcome.kind == OutcomeKind.NOT_APPLICABLE

    @pytest.mark.asyncio
    async def test_no_package_id_skips_request(self, client: AsyncMock) -> None:
        """Without a package id no request is made."""
        outcome = await PackageLookupTier(client).lookup(ListingContext(url="u"))

        assert outcome.kind == OutcomeKind.NOT_APPLICABLE
        client.resolve_packages.assert_not_awaited()

    @pytest.mark.asyncio
    @pytest.mark.parametrize("packages", [[{"discount_end_rtime": "n/a"}], [None], [42]])
    async def test_malformed_package_not_applicable(self, client: AsyncMock, packages: list[object]) -> None:
        """Unparsable package details are not applicable."""
        client.resolve_packages.return_value = success(packages)

        outcome = await PackageLookupTier(client).lookup(ListingContext(url="u", package_id="20"))

        assert outcome.kind == OutcomeKind.NOT_APPLICABLE


class TestClanEventTier:
    """Tests for ClanEventTier."""

    @pytest.fixture()
    def client(self) -> AsyncMock:
        """Create a mock events client with one covering event."""
        client = AsyncMock()
        jsondata = json.dumps({"sale_sections": [{"capsules": [{"type": "sub", "id": 20}]}]})
        client.get_clan_events.return_value = success(
            [{"event_name": "Free weekend", "rtime32_end_time": NOW + 600, "jsondata": jsondata}]
        )
        return client

    def test_accepts_only_after_indeterminate(self, client: AsyncMock) -> None:
        """The tier only runs after an indeterminate outcome."""
        tier = ClanEventTier(client)

        assert tier.accepts(TierOutcome.indeterminate()) is True
        assert tier.accepts(TierOutcome.not_applicable()) is False
        assert tier.accepts(None) is False

    def test_disabled_never_accepts(self, client: AsyncMock) -> None:
        """The policy flag disables the tier."""
        tier = ClanEventTier(client, enabled=False)

        assert tier.accepts(TierOutcome.indeterminate()) is False

    @pytest.mark.asyncio
    async def test_covering_event_found(self, client: AsyncMock) -> None:
        """A running event covering the package gives its end."""
        tier = ClanEventTier(client, clock=lambda: NOW)

        outcome = await tier.lookup(ListingContext(url="u", package_id="20", clan_id="77"))

        assert outcome == TierOutcome.found(NOW + 600)
        client.get_clan_events.assert_awaited_once_with("77")

    @pytest.mark.asyncio
    async def test_ended_event_not_applicable(self, client: AsyncMock) -> None:
        """An event that ended before now is ignored."""
        tier = ClanEventTier(client, clock=lambda: NOW + 601)

        outcome = await tier.lookup(ListingContext(url="u", package_id="20", clan_id="77"))

        assert outcome.kind == OutcomeKind.NOT_APPLICABLE

    @pytest.mark.asyncio
    async def test_no_clan_id(self, client: AsyncMock) -> None:
        """Without a clan id no request is made."""
        outcome = await ClanEventTier(client).lookup(ListingContext(url="u", package_id="20"))

        assert outcome.kind == OutcomeKind.NOT_APPLICABLE
        client.get_clan_events.assert_not_awaited()


class TestPageScrapeTier:
    """Tests for PageScrapeTier."""

    @pytest.mark.asyncio
    async def test_parses_page(self) -> None:
        """The fetched page is handed to the parser."""
        client = AsyncMock()
        client.get_page.return_value = success("<html/>")
        parser = MagicMock()
        parser.parse.return_value = NOW
        tier = PageScrapeTier(client, parser, cookies={"birthtime": "1"})

        outcome = await tier.lookup(ListingContext(url="https://store/app/10"))

        assert outcome == TierOutcome.found(NOW)
        client.get_page.assert_awaited_once_with("https://store/app/10", cookies={"birthtime": "1"})
        parser.parse.assert_called_once_with("<html/>", "https://store/app/10")

    @pytest.mark.asyncio
    async def test_fetch_failure_raises(self) -> None:
        """A failed fetch raises ScrapeError."""
        client = AsyncMock()
        client.get_page.return_value = failure(NotFoundError(Platform.STEAM))

        with pytest.raises(ScrapeError, match="Unable to fetch listing page"):
            await PageScrapeTier(client, MagicMock()).lookup(ListingContext(url="https://store/app/10"))

    @pytest.mark.asyncio
    async def test_missing_url_raises(self) -> None:
        """A listing without a URL cannot be scraped."""
        with pytest.raises(ScrapeError):
            await PageScrapeTier(AsyncMock(), MagicMock()).lookup(ListingContext(url=""))
