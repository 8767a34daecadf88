"""Location search proxy for the Nominatim geocoder."""
from __future__ import annotations

import os
import logging
from typing import Any, Tuple

import requests

NOMINATIM_URL = os.getenv("NOMINATIM_URL", "https://nominatim.openstreetmap.org/search")
USER_AGENT = "RaagConnect/1.0 (https://raagconnect.com)"

logger = logging.getLogger(__name__)


class GeocodingError(RuntimeError):
    """Raised when the geocoder can't be reached or answers with an error."""


def search_locations(query: str, limit: int = 8, countrycodes: str | None = None) -> list[dict[str, Any]]:
    """Return raw Nominatim results (``display_name``, ``lat``, ``lon``, ``address`` ...)."""
    if not query or not query.strip():
        raise ValueError('Query parameter "q" is required')

    params: dict[str, Any] = {
        "format": "json",
        "q": query,
        "limit": limit,
        "addressdetails": 1,
    }
    if countrycodes:
        params["countrycodes"] = countrycodes

    try:
        resp = requests.get(
            NOMINATIM_URL,
            params=params,
            headers={"User-Agent": USER_AGENT, "Accept": "application/json"},
            timeout=10,
        )
    except requests.RequestException as exc:
        raise GeocodingError(f"Nominatim request failed: {exc}") from exc

    if resp.status_code != 200:
        raise GeocodingError(f"Nominatim returned {resp.status_code}")
    return resp.json()


def short_location_name(display_name: str) -> str:
    """``"Austin, Travis County, Texas, USA"`` -> ``"Austin, Travis County"``."""
    parts = display_name.split(",")
    return ",".join(parts[:2]).strip()


def to_coordinates(result: dict[str, Any]) -> Tuple[float, float]:
    """Nominatim returns coordinates as strings."""
    return float(result["lat"]), float(result["lon"])
