"""Discover temporarily free games and DLC across storefronts."""

__version__ = "0.1.0"
