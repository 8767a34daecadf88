"""Booking confirmation / rejection e-mails sent through the Resend API."""
from __future__ import annotations

import os
import logging
from html import escape
from typing import Any, Literal, Tuple

import requests
from dotenv import load_dotenv
from pydantic import BaseModel

load_dotenv()

RESEND_API_URL = "https://api.resend.com/emails"
DEFAULT_SENDER = "Raag Connect <onboarding@resend.dev>"

logger = logging.getLogger(__name__)


class BookingEmail(BaseModel):
    """Payload for a booking status e-mail."""
    to: str
    attendee_name: str
    event_title: str
    event_date: str
    event_time: str = ""
    event_location: str | None = None
    status: Literal["confirmed", "rejected"]


CONFIRMED_TEMPLATE = """
<div style="font-family: sans-serif; max-width: 600px; margin: 0 auto; padding: 20px;">
  <h1 style="color: #1a1a1a; margin-bottom: 20px;">Booking Confirmed! 🎉</h1>
  <p style="color: #333; font-size: 16px;">Dear {name},</p>
  <p style="color: #333; font-size: 16px;">Great news! Your booking has been confirmed for:</p>
  <div style="background: #f5f5f5; padding: 20px; border-radius: 8px; margin: 20px 0;">
    <h2 style="color: #1a1a1a; margin: 0 0 12px 0;">{title}</h2>
    <p style="margin: 8px 0; color: #666;"><strong>Date:</strong> {date}</p>
    <p style="margin: 8px 0; color: #666;"><strong>Time:</strong> {time}</p>
    <p style="margin: 8px 0; color: #666;"><strong>Location:</strong> {location}</p>
  </div>
  <p style="color: #333; font-size: 16px;">We look forward to seeing you at the event!</p>
  <p style="color: #666; font-size: 14px; margin-top: 30px;">Best regards,<br>Raag Connect</p>
</div>
"""

REJECTED_TEMPLATE = """
<div style="font-family: sans-serif; max-width: 600px; margin: 0 auto; padding: 20px;">
  <h1 style="color: #1a1a1a; margin-bottom: 20px;">Booking Update</h1>
  <p style="color: #333; font-size: 16px;">Dear {name},</p>
  <p style="color: #333; font-size: 16px;">Unfortunately, your booking for the following event could not be confirmed:</p>
  <div style="background: #f5f5f5; padding: 20px; border-radius: 8px; margin: 20px 0;">
    <h2 style="color: #1a1a1a; margin: 0 0 12px 0;">{title}</h2>
    <p style="margin: 8px 0; color: #666;"><strong>Date:</strong> {date}</p>
  </div>
  <p style="color: #333; font-size: 16px;">This may be due to payment verification issues or event capacity. Please contact the organizer for more details.</p>
  <p style="color: #666; font-size: 14px; margin-top: 30px;">Best regards,<br>Raag Connect</p>
</div>
"""


def render_booking_email(req: BookingEmail) -> Tuple[str, str]:
    """Return ``(subject, html)`` for ``req``. User-supplied values are escaped."""
    values = {
        "name": escape(req.attendee_name),
        "title": escape(req.event_title),
        "date": escape(req.event_date),
        "time": escape(req.event_time),
        "location": escape(req.event_location or "TBA"),
    }
    if req.status == "confirmed":
        subject = f'🎵 Your booking for "{req.event_title}" is confirmed!'
        return subject, CONFIRMED_TEMPLATE.format(**values)
    subject = f'Booking update for "{req.event_title}"'
    return subject, REJECTED_TEMPLATE.format(**values)


def send_booking_email(req: BookingEmail, api_key: str | None = None) -> dict[str, Any]:
    """Send the e-mail and return the provider's JSON response."""
    api_key = api_key or os.getenv("RESEND_API_KEY")
    if not api_key:
        raise RuntimeError("RESEND_API_KEY is not configured")

    subject, html = render_booking_email(req)
    payload = {
        "from": os.getenv("BOOKING_EMAIL_FROM", DEFAULT_SENDER),
        "to": [req.to],
        "subject": subject,
        "html": html,
    }
    logger.info("Sending %s email to %s for event: %s", req.status, req.to, req.event_title)
    response = requests.post(
        RESEND_API_URL,
        json=payload,
        headers={"Authorization": f"Bearer {api_key}", "Content-Type": "application/json"},
        timeout=30,
    )
    response.raise_for_status()
    result = response.json()
    logger.info("Email sent: %s", result)
    return result
