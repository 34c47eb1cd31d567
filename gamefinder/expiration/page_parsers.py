"""
Expiration parsers for listing pages.

These are the last resort of the expiration chain: each parser receives the
HTML of a canonical store page and returns the discount end as epoch
seconds, NO_EXPIRATION when the page says the promotion has no end, or
raises ScrapeError when the page does not contain what it expects.
"""

from __future__ import annotations

import json
import re
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Protocol
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from bs4 import BeautifulSoup

from gamefinder.core.logging import get_logger
from gamefinder.listings.errors import ScrapeError
from gamefinder.listings.models import NO_EXPIRATION

if TYPE_CHECKING:
    from collections.abc import Callable

logger = get_logger(__name__)

# Steam always renders promotion dates in Pacific time
STEAM_TIMEZONE = "America/Los_Angeles"

# "Jun 10 @ 1:00pm", "May 16 @ 10:00am"
STEAM_DATE_PATTERN = re.compile(
    r"\b([A-Za-z]{3}) (\d{1,2}) @ (\d{1,2}):(\d{2}) ?([ap]m)\b",
    re.IGNORECASE,
)

MONTHS: dict[str, int] = {
    name: index
    for index, name in enumerate(
        ("jan", "feb", "mar", "apr", "may", "jun", "jul", "aug", "sep", "oct", "nov", "dec"),
        start=1,
    )
}

GOG_CARD_PRODUCT_PATTERN = re.compile(r"cardProduct:\s*(\{.*\})")
GOG_PROMO_END_PATTERN = re.compile(
    r"window\.productcardData\.cardProductPromoEndDate\s*=\s*(\{.*?\})"
)
GOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S.%f"


class PageParser(Protocol):
    """Extracts an expiration epoch from a listing page."""

    def parse(self, html: str, url: str) -> int:
        """
        Parse a page.

        Raises:
            ScrapeError: If the page does not contain the expected data.
        """
        ...


class SteamPurchasePageParser:
    """
    Reads the "Free to keep when you get it before ..." notice on Steam pages.

    The notice has no year, so the current year in the store's timezone is
    assumed.
    """

    def __init__(
        self,
        timezone: str = STEAM_TIMEZONE,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        """
        Initialize the parser.

        Args:
            timezone: IANA zone the store renders dates in.
            clock: Returns the current time; defaults to ``datetime.now(UTC)``.
        """
        self._zone = ZoneInfo(timezone)
        self._clock = clock or (lambda: datetime.now(UTC))

    def parse(self, html: str, url: str) -> int:
        """Return the end epoch from the notice, or NO_EXPIRATION if it has no date."""
        soup = BeautifulSoup(html, "html.parser")
        lines = [line.strip() for line in soup.get_text("\n").splitlines()]
        notices = [line for line in lines if "Free to keep" in line]

        if not notices:
            raise ScrapeError(url, "No free-to-keep notice on page")

        for notice in notices:
            match = STEAM_DATE_PATTERN.search(notice)
            if match is not None:
                return self._to_epoch(match, url)
            if "limited-time promotion" in notice:
                return NO_EXPIRATION

        raise ScrapeError(url, "Free-to-keep notice has no recognizable date", details=notices[0])

    def _to_epoch(self, match: re.Match[str], url: str) -> int:
        """Convert a matched date phrase to epoch seconds."""
        month_name, day, hour, minute, meridiem = match.groups()
        month = MONTHS.get(month_name.lower())
        if month is None:
            raise ScrapeError(url, f"Unknown month abbreviation: {month_name}")

        hour_24 = int(hour) % 12 + (12 if meridiem.lower() == "pm" else 0)
        year = self._clock().astimezone(self._zone).year

        try:
            moment = datetime(year, month, int(day), hour_24, int(minute), tzinfo=self._zone)
        except ValueError as e:
            raise ScrapeError(url, "Invalid date on page", details=str(e)) from e
        return int(moment.timestamp())


class GogProductCardParser:
    """Reads ``cardProductPromoEndDate`` from the product card script on GOG pages."""

    def parse(self, html: str, url: str) -> int:
        """Return the promotion end epoch, or NO_EXPIRATION if the card has none."""
        soup = BeautifulSoup(html, "html.parser")
        scripts = "\n".join(script.get_text() for script in soup.find_all("script"))

        if GOG_CARD_PRODUCT_PATTERN.search(scripts) is None:
            raise ScrapeError(url, "No product card data on page")

        match = GOG_PROMO_END_PATTERN.search(scripts)
        if match is None:
            return NO_EXPIRATION

        try:
            promo = json.loads(match.group(1))
        except ValueError as e:
            raise ScrapeError(url, "Malformed promotion end date", details=str(e)) from e

        date = promo.get("date")
        timezone = promo.get("timezone")
        if not date or not timezone:
            return NO_EXPIRATION

        try:
            zone = ZoneInfo(timezone)
        except (ZoneInfoNotFoundError, ValueError):
            logger.warning("Unknown promotion timezone", url=url, timezone=timezone)
            return NO_EXPIRATION

        try:
            moment = datetime.strptime(date, GOG_DATE_FORMAT).replace(tzinfo=zone)
        except ValueError as e:
            raise ScrapeError(url, "Malformed promotion end date", details=date) from e
        return int(moment.timestamp())
