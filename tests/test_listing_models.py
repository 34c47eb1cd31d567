"""Tests for listing models and pipeline errors."""

from __future__ import annotations

import asyncio
import dataclasses

import pytest

from gamefinder.listings.errors import (
    PendingResolutionError,
    ResolutionTimeoutError,
    SourceRetrievalError,
)
from gamefinder.listings.models import NO_EXPIRATION, Listing, Pending, Platform, Ready
from gamefinder.platforms.errors import NetworkError


class TestPlatform:
    """Tests for Platform enum."""

    def test_values(self) -> None:
        """Platform values should be the upper-case names."""
        assert Platform("EPIC_GAMES") is Platform.EPIC_GAMES
        assert [p.value for p in Platform] == ["STEAM", "EPIC_GAMES", "GOG"]

    def test_display_name(self) -> None:
        """Each platform should have a display name."""
        assert Platform.EPIC_GAMES.display_name == "Epic Games"


class TestListing:
    """Tests for Listing."""

    def test_defaults(self) -> None:
        """A listing without optional fields uses the documented defaults."""
        listing = Listing(title="Hollow Depths", platform=Platform.GOG)

        assert listing.description == "N/A"
        assert listing.is_dlc is False
        assert listing.expiration_epoch == NO_EXPIRATION
        assert listing.has_expiration is False

    def test_empty_title_rejected(self) -> None:
        """Listing should require a title."""
        with pytest.raises(ValueError, match="title cannot be empty"):
            Listing(title="", platform=Platform.STEAM)

    @pytest.mark.parametrize("epoch", [0, -2, -1718049600])
    def test_invalid_epoch_rejected(self, epoch: int) -> None:
        """Only positive epochs or the sentinel are valid."""
        with pytest.raises(ValueError, match="expiration_epoch"):
            Listing(title="Game", platform=Platform.STEAM, expiration_epoch=epoch)

    def test_non_int_epoch_rejected(self) -> None:
        """Expiration must be an int, not a float or bool."""
        with pytest.raises(TypeError):
            Listing(title="Game", platform=Platform.STEAM, expiration_epoch=1718049600.5)  # type: ignore[arg-type]
        with pytest.raises(TypeError):
            Listing(title="Game", platform=Platform.STEAM, expiration_epoch=True)

    def test_is_immutable(self, listing: Listing) -> None:
        """Listing fields cannot be reassigned."""
        with pytest.raises(dataclasses.FrozenInstanceError):
            listing.title = "Other"  # type: ignore[misc]

    def test_store_media_is_read_only(self) -> None:
        """store_media should be copied into a read-only mapping."""
        media = {"header": "https://cdn/header.jpg"}
        listing = Listing(title="Game", platform=Platform.STEAM, store_media=media)
        media["capsule"] = "x"

        assert dict(listing.store_media) == {"header": "https://cdn/header.jpg"}
        with pytest.raises(TypeError):
            listing.store_media["capsule"] = "x"  # type: ignore[index]

    def test_media_list_becomes_tuple(self) -> None:
        """media should be stored as a tuple preserving order."""
        listing = Listing(title="Game", platform=Platform.STEAM, media=["a", "b"])  # type: ignore[arg-type]

        assert listing.media == ("a", "b")

    def test_with_expiration_returns_copy(self, listing: Listing) -> None:
        """with_expiration should not mutate the original."""
        resolved = listing.with_expiration(1718049600)

        assert resolved.expiration_epoch == 1718049600
        assert resolved.has_expiration is True
        assert listing.expiration_epoch == NO_EXPIRATION
        assert resolved.title == listing.title

    def test_to_dict(self, listing: Listing) -> None:
        """to_dict should produce JSON friendly values."""
        data = listing.to_dict()

        assert data["platform"] == "STEAM"
        assert data["expiration_epoch"] == -1
        assert data["media"] == []
        assert data["store_media"] == {}


class TestPartialResults:
    """Tests for Ready and Pending."""

    def test_ready_holds_listing(self, listing: Listing) -> None:
        """Ready should wrap a listing."""
        assert Ready(listing).listing is listing

    @pytest.mark.asyncio
    async def test_pending_holds_handle(self, listing: Listing) -> None:
        """Pending should wrap an awaitable producing a listing."""

        async def resolve() -> Listing:
            return listing

        pending = Pending(asyncio.ensure_future(resolve()), title=listing.title)

        assert await pending.handle is listing
        assert pending.title == "Hollow Depths"


class TestErrors:
    """Tests for pipeline errors."""

    def test_source_retrieval_error(self) -> None:
        """SourceRetrievalError should prefix the platform and keep the cause."""
        cause = NetworkError(Platform.GOG, message="Request timeout")
        error = SourceRetrievalError(Platform.GOG, "Unable to search", details="x", cause=cause)

        assert error.message == "[GOG] Unable to search"
        assert error.platform is Platform.GOG
        assert error.cause is cause
        assert error.details == "x"

    def test_pending_resolution_error(self) -> None:
        """PendingResolutionError should keep every failure."""
        errors: list[BaseException] = [RuntimeError("a"), ValueError("b")]
        error = PendingResolutionError(errors)

        assert error.message == "Failed to resolve 2 pending listing(s)"
        assert error.errors == errors
        assert error.details == "RuntimeError('a')"

    def test_resolution_timeout_error(self) -> None:
        """ResolutionTimeoutError should mention the url and bound."""
        error = ResolutionTimeoutError("https://example.com/app", 2.5)

        assert "timed out after 2.5s" in error.message
        assert error.url == "https://example.com/app"
