"""Tests for Epic Games adapter."""

from __future__ import annotations

import copy
from typing import Any
from unittest.mock import AsyncMock

import pytest

from gamefinder.core.config import Settings
from gamefinder.core.result import failure, success
from gamefinder.listings.errors import SourceRetrievalError
from gamefinder.listings.models import NO_EXPIRATION, Platform, Ready
from gamefinder.platforms.epic.adapter import EpicGamesAdapter
from gamefinder.platforms.epic.client import STORE_URL
from gamefinder.platforms.errors import NetworkError

NOW = 1718000000
# 2024-06-13T15:00:00Z
END = 1718290800

ELEMENT: dict[str, Any] = {
    "title": "Mystic Shores",
    "description": "Sail the mystic shores.",
    "offerType": "BASE_GAME",
    "productSlug": "mystic-shores",
    "urlSlug": "mystic-shores-offer",
    "keyImages": [
        {"type": "OfferImageWide", "url": "https://cdn/wide.jpg"},
        {"type": "Thumbnail", "url": "https://cdn/thumb.jpg"},
        {"type": "featuredMedia", "url": "https://cdn/shot1.jpg"},
        {"type": "featuredMedia", "url": "https://cdn/shot2.jpg"},
    ],
    "price": {
        "totalPrice": {
            "discountPrice": 0,
            "originalPrice": 2499,
            "currencyCode": "USD",
            "currencyInfo": {"decimals": 2},
        },
        "lineOffers": [
            {
                "appliedRules": [
                    {"endDate": "2024-06-13T15:00:00.000Z", "discountSetting": {"discountPercentage": 0}},
                ]
            }
        ],
    },
    "promotions": None,
}


def make_element(**overrides: Any) -> dict[str, Any]:
    """Copy the sample element with top-level overrides."""
    element = copy.deepcopy(ELEMENT)
    element.update(overrides)
    return element


def make_client(
    elements: list[dict[str, Any]],
    promotions: list[dict[str, Any]] | None = None,
) -> AsyncMock:
    """Create a mock Epic client with one page of results."""
    client = AsyncMock()
    client.search_store.return_value = success(
        {"elements": elements, "paging": {"count": len(elements), "total": len(elements)}}
    )
    client.get_free_promotions.return_value = success(promotions or [])
    return client


class TestEpicGamesAdapterFetch:
    """Tests for EpicGamesAdapter.fetch."""

    @pytest.mark.asyncio
    async def test_free_element_is_ready(self, settings: Settings) -> None:
        """A free element is ready with its promotion end."""
        adapter = EpicGamesAdapter(settings, client=make_client([make_element()]), clock=lambda: NOW)

        results = await adapter.fetch()

        assert len(results) == 1
        assert isinstance(results[0], Ready)
        listing = results[0].listing
        assert listing.platform is Platform.EPIC_GAMES
        assert listing.title == "Mystic Shores"
        assert listing.url == f"{STORE_URL}en-US/p/mystic-shores"
        assert listing.original_price == "$24.99"
        assert listing.expiration_epoch == END
        assert dict(listing.store_media) == {
            "OfferImageWide": "https://cdn/wide.jpg",
            "Thumbnail": "https://cdn/thumb.jpg",
        }
        assert listing.media == ("https://cdn/shot1.jpg", "https://cdn/shot2.jpg")

    @pytest.mark.asyncio
    async def test_ended_offer_gives_sentinel(self, settings: Settings) -> None:
        """An offer that already ended does not count."""
        adapter = EpicGamesAdapter(settings, client=make_client([make_element()]), clock=lambda: END + 1)

        results = await adapter.fetch()

        assert isinstance(results[0], Ready)
        assert results[0].listing.expiration_epoch == NO_EXPIRATION

    @pytest.mark.asyncio
    async def test_promotional_offer_used(self, settings: Settings) -> None:
        """Promotional offers are read when there are no line offers."""
        element = make_element(
            promotions={
                "promotionalOffers": [
                    {
                        "promotionalOffers": [
                            {"endDate": "2024-06-13T15:00:00.000Z", "discountSetting": {"discountPercentage": 0}}
                        ]
                    }
                ]
            }
        )
        element["price"]["lineOffers"] = []

        results = await EpicGamesAdapter(settings, client=make_client([element]), clock=lambda: NOW).fetch()

        assert results[0].listing.expiration_epoch == END  # type: ignore[union-attr]

    @pytest.mark.asyncio
    async def test_non_free_and_permanently_free_skipped(self, settings: Settings) -> None:
        """Only discounted-to-zero paid items are listings."""
        paid = make_element(title="Paid")
        paid["price"]["totalPrice"]["discountPrice"] = 999
        always_free = make_element(title="Always Free")
        always_free["price"]["totalPrice"]["originalPrice"] = 0

        assert await EpicGamesAdapter(settings, client=make_client([paid, always_free])).fetch() == []

    @pytest.mark.asyncio
    async def test_dedup_across_query_and_promotions(self, settings: Settings) -> None:
        """A title found by both the query and the feed is reported once."""
        client = make_client([make_element()], promotions=[make_element(), make_element(title="Weekly Gift")])

        results = await EpicGamesAdapter(settings, client=client, clock=lambda: NOW).fetch()

        assert [r.listing.title for r in results] == ["Mystic Shores", "Weekly Gift"]  # type: ignore[union-attr]

    @pytest.mark.asyncio
    async def test_dlc_uses_offer_slug(self, settings: Settings) -> None:
        """Add-ons link to their offer slug and are flagged as DLC."""
        element = make_element(offerType="ADD_ON")

        results = await EpicGamesAdapter(settings, client=make_client([element]), clock=lambda: NOW).fetch()

        listing = results[0].listing  # type: ignore[union-attr]
        assert listing.is_dlc is True
        assert listing.url == f"{STORE_URL}en-US/p/mystic-shores-offer"

    @pytest.mark.asyncio
    async def test_dlc_filtered_when_disabled(self) -> None:
        """Add-ons are skipped and not queried when DLCs are excluded."""
        settings = Settings(_env_file=None, include_dlcs=False)
        client = make_client([make_element(offerType="DLC")])

        assert await EpicGamesAdapter(settings, client=client).fetch() == []
        assert client.search_store.call_args.kwargs["include_addons"] is False

    @pytest.mark.asyncio
    async def test_mapping_slug_fallback(self, settings: Settings) -> None:
        """Without a product slug the catalog mapping's page slug is used."""
        element = make_element(productSlug=None, catalogNs={"mappings": [{"pageSlug": "shores-home"}]})

        results = await EpicGamesAdapter(settings, client=make_client([element]), clock=lambda: NOW).fetch()

        assert results[0].listing.url == f"{STORE_URL}en-US/p/shores-home"  # type: ignore[union-attr]

    @pytest.mark.asyncio
    async def test_localized_price_and_url(self) -> None:
        """Prices and links follow the configured locale."""
        settings = Settings(_env_file=None, locale="de_DE")
        element = make_element()
        element["price"]["totalPrice"]["currencyCode"] = "EUR"
        element["price"]["totalPrice"]["originalPrice"] = 123456

        results = await EpicGamesAdapter(settings, client=make_client([element]), clock=lambda: NOW).fetch()

        listing = results[0].listing  # type: ignore[union-attr]
        assert listing.original_price == "1.234,56 €"
        assert listing.url == f"{STORE_URL}de-DE/p/mystic-shores"

    @pytest.mark.asyncio
    async def test_pages_through_results(self, settings: Settings) -> None:
        """The store query is paged until the total is reached."""
        client = AsyncMock()
        client.search_store.side_effect = [
            success({"elements": [make_element(title="A")], "paging": {"count": 1, "total": 2}}),
            success({"elements": [make_element(title="B")], "paging": {"count": 1, "total": 2}}),
        ]
        client.get_free_promotions.return_value = success([])

        results = await EpicGamesAdapter(settings, client=client, clock=lambda: NOW).fetch()

        assert [r.listing.title for r in results] == ["A", "B"]  # type: ignore[union-attr]
        assert [c.args[0] for c in client.search_store.call_args_list] == [0, 1]

    @pytest.mark.asyncio
    async def test_query_failure_raises(self, settings: Settings) -> None:
        """A failed store query is a source retrieval error."""
        client = AsyncMock()
        client.search_store.return_value = failure(NetworkError(Platform.EPIC_GAMES))

        with pytest.raises(SourceRetrievalError, match="Unable to query the store"):
            await EpicGamesAdapter(settings, client=client).fetch()

    @pytest.mark.asyncio
    async def test_promotions_failure_raises(self, settings: Settings) -> None:
        """A failed promotions feed is a source retrieval error."""
        client = make_client([])
        client.get_free_promotions.return_value = failure(NetworkError(Platform.EPIC_GAMES))

        with pytest.raises(SourceRetrievalError, match="free game promotions"):
            await EpicGamesAdapter(settings, client=client).fetch()
