"""Client for the hosted database's REST interface (events and bookings)."""
from __future__ import annotations

import os
import logging
from typing import Any

import requests
from dotenv import load_dotenv

load_dotenv()

EVENT_SELECT_WITH_RELATIONS = "*,artists(*),event_artists(artist_id,artists(*))"
DEFAULT_PAGE_SIZE = 1000

logger = logging.getLogger(__name__)


class DatabaseClient:
    """Thin wrapper over the ``/rest/v1`` endpoints used by the services."""

    def __init__(
        self,
        base_url: str | None = None,
        api_key: str | None = None,
        timeout: int = 30,
        access_token: str | None = None,
    ):
        """``access_token`` is an end user's session JWT; when set, requests run
        as that user (row-level security applies) instead of as ``api_key``."""
        self.base_url = (base_url or os.getenv("SUPABASE_URL", "http://localhost:54321")).rstrip("/")
        self.api_key = api_key or os.getenv("SUPABASE_KEY", "")
        self.access_token = access_token
        self.timeout = timeout

    def _headers(self, **extra: str) -> dict[str, str]:
        """Return headers for REST requests, including the key if set."""
        headers: dict[str, str] = {"Content-Type": "application/json"}
        if self.api_key:
            headers["apikey"] = self.api_key
        bearer = self.access_token or self.api_key
        if bearer:
            headers["Authorization"] = f"Bearer {bearer}"
        headers.update(extra)
        return headers

    def _url(self, table: str) -> str:
        return f"{self.base_url}/rest/v1/{table}"

    def fetch_all_events(self, ascending: bool = True, page_size: int = DEFAULT_PAGE_SIZE) -> list[dict[str, Any]]:
        """Return every event row with its artist relations, paging with ``Range`` headers.

        Paging stops at the first page shorter than ``page_size``.
        """
        if page_size < 1:
            raise ValueError("page_size must be at least 1")

        params = {
            "select": EVENT_SELECT_WITH_RELATIONS,
            "order": f"date.{'asc' if ascending else 'desc'}",
        }
        rows: list[dict[str, Any]] = []
        start = 0
        while True:
            end = start + page_size - 1
            logger.info("GET %s rows %d-%d", self._url("events"), start, end)
            response = requests.get(
                self._url("events"),
                params=params,
                headers=self._headers(**{"Range-Unit": "items", "Range": f"{start}-{end}"}),
                timeout=self.timeout,
            )
            response.raise_for_status()
            page = response.json() or []
            rows.extend(page)
            if len(page) < page_size:
                break
            start += page_size
        logger.info("Fetched %d event(s)", len(rows))
        return rows

    def _fetch_one(self, table: str, row_id: str) -> dict[str, Any] | None:
        response = requests.get(
            self._url(table),
            params={"select": "*", "id": f"eq.{row_id}", "limit": 1},
            headers=self._headers(),
            timeout=self.timeout,
        )
        response.raise_for_status()
        rows = response.json()
        return rows[0] if rows else None

    def fetch_event(self, event_id: str) -> dict[str, Any] | None:
        return self._fetch_one("events", event_id)

    def fetch_booking(self, booking_id: str) -> dict[str, Any] | None:
        return self._fetch_one("bookings", booking_id)

    def fetch_pending_bookings(self, event_id: str) -> list[dict[str, Any]]:
        """Pending bookings for ``event_id``, newest first."""
        response = requests.get(
            self._url("bookings"),
            params={
                "select": "*",
                "event_id": f"eq.{event_id}",
                "status": "eq.pending",
                "order": "created_at.desc",
            },
            headers=self._headers(),
            timeout=self.timeout,
        )
        response.raise_for_status()
        return response.json()

    def update_booking_status(self, booking_id: str, status: str) -> dict[str, Any]:
        """Set a booking's status and return the updated row."""
        logger.info("PATCH booking %s -> %s", booking_id, status)
        response = requests.patch(
            self._url("bookings"),
            params={"id": f"eq.{booking_id}"},
            json={"status": status},
            headers=self._headers(Prefer="return=representation"),
            timeout=self.timeout,
        )
        response.raise_for_status()
        rows = response.json()
        if not rows:
            raise LookupError(f"Booking {booking_id} not found")
        return rows[0]


# Convenience functions
def fetch_all_events(ascending: bool = True, page_size: int = DEFAULT_PAGE_SIZE) -> list[dict[str, Any]]:
    """Fetch all events using environment configuration."""
    return DatabaseClient().fetch_all_events(ascending=ascending, page_size=page_size)
