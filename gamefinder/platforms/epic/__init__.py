"""Epic Games Store."""

from gamefinder.platforms.epic.adapter import EpicGamesAdapter
from gamefinder.platforms.epic.client import EpicGamesClient

__all__ = ["EpicGamesAdapter", "EpicGamesClient"]
