"""Callback types for the streaming retrieval mode."""

from __future__ import annotations

from collections.abc import Callable

from gamefinder.listings.models import Listing

# Receives a non-empty batch the caller owns
type ListingsCallback = Callable[[list[Listing]], None]

# Receives a non-fatal error from one adapter or pending join
type ErrorCallback = Callable[[BaseException], None]
