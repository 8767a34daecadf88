"""Manual payment-proof review for bookings."""
from __future__ import annotations

import logging
from typing import Callable, Optional

import requests

from ingest.api_client import DatabaseClient
from ingest.booking_email import BookingEmail, send_booking_email
from ingest.schemas import Booking, BookingStatus, Event

logger = logging.getLogger(__name__)


class BookingTransitionError(ValueError):
    """Raised for a review that isn't pending -> confirmed/rejected."""


REVIEW_DECISIONS = (BookingStatus.CONFIRMED, BookingStatus.REJECTED)


def check_transition(current: BookingStatus, decision: BookingStatus) -> None:
    if decision not in REVIEW_DECISIONS:
        raise BookingTransitionError(f"Cannot review a booking as {decision.value!r}")
    if current is not BookingStatus.PENDING:
        raise BookingTransitionError(f"Booking is already {current.value}")


def review_booking(
    booking: Booking,
    decision: BookingStatus | str,
    event: Optional[Event] = None,
    *,
    client: Optional[DatabaseClient] = None,
    send_email: Callable[[BookingEmail], dict] = send_booking_email,
) -> Booking:
    """Confirm or reject a pending booking and notify the attendee.

    The status change is persisted first. A failed e-mail is logged and does
    not roll the status back.
    """
    try:
        decision = BookingStatus(decision)
    except ValueError as exc:
        raise BookingTransitionError(f"Unknown decision {decision!r}") from exc
    check_transition(booking.status, decision)

    client = client or DatabaseClient()
    row = client.update_booking_status(booking.id, decision.value)
    updated = Booking.from_row(row)

    if event is None:
        logger.info("No event details for booking %s, skipping email", booking.id)
        return updated

    email = BookingEmail(
        to=updated.attendee_email,
        attendee_name=updated.attendee_name,
        event_title=event.title,
        event_date=event.date,
        event_time=event.time or "",
        event_location=event.location_name,
        status=decision.value,
    )
    try:
        send_email(email)
    except (requests.RequestException, RuntimeError) as exc:
        logger.warning("Booking %s %s but email failed: %s", booking.id, decision.value, exc)
    return updated
