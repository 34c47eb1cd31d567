"""Parsing and lookup of Steam publisher (clan) events."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any

from gamefinder.core.logging import get_logger
from gamefinder.expiration.types import ClanEvent

if TYPE_CHECKING:
    from collections.abc import Iterable

    from gamefinder.expiration.types import ListingContext

logger = get_logger(__name__)

# Capsule types in an event's sale sections and the id set they belong to
CAPSULE_KINDS: dict[str, str] = {
    "game": "apps",
    "dlc": "apps",
    "sub": "packages",
    "bundle": "bundles",
}


def parse_clan_event(raw: dict[str, Any]) -> ClanEvent:
    """
    Build a ClanEvent from one entry of the partner events feed.

    Args:
        raw: Event object with ``event_name``, ``rtime32_end_time`` and a
            ``jsondata`` string describing its sale sections.

    Returns:
        The parsed event.

    Raises:
        KeyError: If the event has no name.
        ValueError: If ``jsondata`` is not valid JSON.
    """
    end_time = int(raw.get("rtime32_end_time") or 0)
    ids: dict[str, set[str]] = {"apps": set(), "packages": set(), "bundles": set()}

    # jsondata may be absent or the literal string "null"
    jsondata = raw.get("jsondata") or "null"
    data = json.loads(jsondata) if jsondata.strip().lower() != "null" else None

    for section in (data or {}).get("sale_sections") or []:
        for capsule in section.get("capsules") or []:
            kind = CAPSULE_KINDS.get(str(capsule.get("type", "")).lower())
            if kind is not None and capsule.get("id") is not None:
                ids[kind].add(str(capsule["id"]))

    return ClanEvent(
        name=raw["event_name"],
        end_epoch=end_time if end_time > 0 else None,
        included_apps=frozenset(ids["apps"]),
        included_packages=frozenset(ids["packages"]),
        included_bundles=frozenset(ids["bundles"]),
    )


def parse_clan_events(raw_events: Iterable[dict[str, Any]]) -> list[ClanEvent]:
    """
    Parse a partner events feed, keeping feed order.

    Events that cannot be parsed are skipped with a warning.
    """
    events: list[ClanEvent] = []
    for raw in raw_events:
        try:
            events.append(parse_clan_event(raw))
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            gid = raw.get("gid") if isinstance(raw, dict) else None
            logger.warning("Skipping unparsable clan event", gid=gid, error=str(e))
    return events


def find_event_end(
    events: Iterable[ClanEvent],
    context: ListingContext,
    now: float,
) -> int | None:
    """
    Find the end of the first event covering the listing that is still running.

    Args:
        events: Events in feed order.
        context: Listing identifiers.
        now: Current time in epoch seconds.

    Returns:
        The first qualifying event's end epoch, or None.
    """
    for event in events:
        if event.covers(context) and event.ends_after(now):
            return event.end_epoch
    return None
