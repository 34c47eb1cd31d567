"""Steam storefront."""

from gamefinder.platforms.steam.adapter import SteamAdapter
from gamefinder.platforms.steam.client import SteamClient

__all__ = ["SteamAdapter", "SteamClient"]
