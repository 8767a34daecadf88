"""Great-circle distance helpers for "events near me"."""
from __future__ import annotations

import math
from dataclasses import replace
from typing import Iterable, List, Optional, Tuple

from ingest.schemas import Event

EARTH_RADIUS_MILES = 3958.8

Coordinates = Tuple[float, float]


def haversine_miles(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """Return the haversine distance in miles between two lat/lng points (degrees)."""
    for value in (lat1, lng1, lat2, lng2):
        if not math.isfinite(value):
            raise ValueError(f"Coordinates must be finite, got {value!r}")

    d_lat = math.radians(lat2 - lat1)
    d_lng = math.radians(lng2 - lng1)
    a = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) * math.sin(d_lng / 2) ** 2
    )
    return 2 * EARTH_RADIUS_MILES * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def event_distance(event: Event, user_location: Optional[Coordinates]) -> Optional[float]:
    """Distance from ``user_location`` to ``event``, or ``None`` if either side lacks coordinates."""
    if user_location is None:
        return None
    if event.location_lat is None or event.location_lng is None:
        return None
    user_lat, user_lng = user_location
    return haversine_miles(user_lat, user_lng, event.location_lat, event.location_lng)


def annotate_distances(events: Iterable[Event], user_location: Optional[Coordinates]) -> List[Event]:
    """Return copies of ``events`` with ``distance`` filled in where it can be computed."""
    return [replace(e, distance=event_distance(e, user_location)) for e in events]


def within_radius(events: Iterable[Event], radius_miles: float) -> List[Event]:
    """Keep annotated events no further than ``radius_miles`` away.

    Events without a computed distance are dropped.
    """
    if radius_miles < 0:
        raise ValueError("radius_miles must be non-negative")
    return [e for e in events if e.distance is not None and e.distance <= radius_miles]
