"""Registry of source adapters keyed by platform."""

from __future__ import annotations

from typing import TYPE_CHECKING

from gamefinder.core.result import Failure, Success

if TYPE_CHECKING:
    from collections.abc import Iterable

    from gamefinder.aggregation.pool import WorkerPool
    from gamefinder.core.config import Settings
    from gamefinder.core.result import Result
    from gamefinder.listings.models import Platform
    from gamefinder.platforms.base import SourceAdapter


class AdapterNotFoundError(Exception):
    """Raised when no adapter is registered for a platform."""

    def __init__(self, platform: Platform) -> None:
        """Initialize with the platform."""
        self.platform = platform
        super().__init__(f"No adapter registered for platform: {platform.value}")


class PlatformFactory:
    """
    Registry of source adapters.

    Example:
        >>> factory = PlatformFactory()
        >>> factory.register(Platform.GOG, GogAdapter(settings, pool))
        >>> adapter = factory.get_adapter(Platform.GOG)
    """

    def __init__(self) -> None:
        """Initialize an empty registry."""
        self._adapters: dict[Platform, SourceAdapter] = {}

    def register(self, platform: Platform, adapter: SourceAdapter) -> None:
        """
        Register an adapter, replacing any previous one for the platform.

        Raises:
            ValueError: If platform is empty.
        """
        if not platform:
            msg = "platform cannot be empty"
            raise ValueError(msg)
        self._adapters[platform] = adapter

    def get_adapter(self, platform: Platform) -> Result[SourceAdapter, AdapterNotFoundError]:
        """
        Get the adapter for a platform.

        Returns:
            Result containing the adapter or AdapterNotFoundError.
        """
        adapter = self._adapters.get(platform)
        if adapter is None:
            return Failure(AdapterNotFoundError(platform))
        return Success(adapter)

    def get_adapters(
        self,
        platforms: Iterable[Platform],
    ) -> dict[Platform, Result[SourceAdapter, AdapterNotFoundError]]:
        """Get the adapters for several platforms, one Result each."""
        return {platform: self.get_adapter(platform) for platform in platforms}


def create_default_factory(settings: Settings, pool: WorkerPool) -> PlatformFactory:
    """
    Create a factory holding the Steam, Epic Games and GOG adapters.

    Adapters are registered whether or not their platform is enabled;
    callers pick the enabled ones with ``get_adapters``.
    """
    from gamefinder.listings.models import Platform
    from gamefinder.platforms.epic import EpicGamesAdapter
    from gamefinder.platforms.gog import GogAdapter
    from gamefinder.platforms.steam import SteamAdapter

    factory = PlatformFactory()
    factory.register(Platform.STEAM, SteamAdapter(settings, pool))
    factory.register(Platform.EPIC_GAMES, EpicGamesAdapter(settings))
    factory.register(Platform.GOG, GogAdapter(settings, pool))
    return factory
