"""Shared data models for the RaagConnect services."""
from __future__ import annotations

from dataclasses import asdict, dataclass, fields
from enum import Enum
from typing import Any, Optional


@dataclass(frozen=True)
class Event:
    """Event record as read from the ``events`` table.

    ``distance`` is derived (miles from the user) and only set by
    :func:`discovery.geo.annotate_distances`.
    """

    id: str
    title: str
    date: str
    time: Optional[str] = None
    location_name: Optional[str] = None
    location_lat: Optional[float] = None
    location_lng: Optional[float] = None
    price: Optional[float] = None
    image_url: Optional[str] = None
    artist_id: Optional[str] = None
    distance: Optional[float] = None

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "Event":
        """Build an event from a database row, ignoring extra columns."""
        known = {f.name for f in fields(cls)}
        data = {k: v for k, v in row.items() if k in known}
        data["id"] = str(data.get("id", ""))
        data.setdefault("title", "")
        data.setdefault("date", "")
        return cls(**data)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


class BookingStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    REJECTED = "rejected"


@dataclass
class Booking:
    """A booking awaiting (or past) manual payment-proof review."""

    id: str
    event_id: str
    attendee_name: str
    attendee_email: str
    amount: float
    status: BookingStatus = BookingStatus.PENDING
    payment_method: Optional[str] = None
    proof_of_payment_url: Optional[str] = None
    created_at: Optional[str] = None

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "Booking":
        known = {f.name for f in fields(cls)}
        data = {k: v for k, v in row.items() if k in known}
        data["status"] = BookingStatus(data.get("status", "pending"))
        return cls(**data)
