"""
Command line entry point.

Usage:
    gamefinder [--platform steam --platform gog] [--no-dlc] [--mature]
               [--locale de_DE] [--json]
"""

from __future__ import annotations

import argparse
import json
import sys
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

from pydantic import ValidationError

from gamefinder.aggregation.orchestrator import GameFinder
from gamefinder.core.config import Settings
from gamefinder.core.logging import configure_logging, get_logger
from gamefinder.listings.errors import GameFinderError
from gamefinder.listings.models import Platform

if TYPE_CHECKING:
    from collections.abc import Sequence

    from gamefinder.listings.models import Listing

logger = get_logger(__name__)


def build_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="gamefinder",
        description="List games and DLC that are temporarily free to keep",
    )
    parser.add_argument(
        "--platform",
        action="append",
        choices=[p.value.lower() for p in Platform],
        help="Storefront to query (repeatable, default: all enabled)",
    )
    parser.add_argument("--no-dlc", action="store_true", help="Skip DLC listings")
    parser.add_argument("--mature", action="store_true", help="Include mature screenshots")
    parser.add_argument("--locale", help="Locale such as en_US or de_DE")
    parser.add_argument("--json", action="store_true", help="Print a JSON array")
    return parser


def settings_from_args(args: argparse.Namespace) -> Settings:
    """
    Load settings, letting command line flags override the environment.

    Raises:
        ValidationError: If an override is invalid.
    """
    overrides: dict[str, Any] = {}
    if args.platform:
        overrides["enabled_platforms"] = args.platform
    if args.no_dlc:
        overrides["include_dlcs"] = False
    if args.mature:
        overrides["allow_mature_content"] = True
    if args.locale:
        overrides["locale"] = args.locale
    return Settings(**overrides)


def format_listing(listing: Listing) -> str:
    """Render one listing as a line of text."""
    kind = "DLC" if listing.is_dlc else "Game"
    if listing.has_expiration:
        ends = datetime.fromtimestamp(listing.expiration_epoch, tz=UTC).isoformat()
    else:
        ends = "unknown"
    price = listing.original_price or "?"
    return f"[{listing.platform.display_name}] {listing.title} ({kind}, {price}, ends {ends}) {listing.url}"


def main(argv: Sequence[str] | None = None) -> int:
    """
    Run a blocking retrieval and print the listings.

    Returns:
        Exit code: 0 on success, 1 on retrieval failure, 2 on bad settings.
    """
    args = build_parser().parse_args(argv)

    try:
        settings = settings_from_args(args)
    except ValidationError as e:
        print(f"Invalid settings: {e}", file=sys.stderr)
        return 2

    configure_logging(json_format=settings.log_json, log_level=settings.log_level)

    finder = GameFinder.from_settings(settings)
    try:
        listings = finder.retrieve_listings_blocking()
    except GameFinderError as e:
        logger.error("Retrieval failed", error=e.message, details=e.details)
        return 1

    if args.json:
        print(json.dumps([listing.to_dict() for listing in listings], indent=2))
    else:
        for listing in listings:
            print(format_listing(listing))
    return 0


if __name__ == "__main__":
    sys.exit(main())
