"""FastAPI application for the RaagConnect services."""
import asyncio
import logging
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timezone
from typing import List, Optional

import requests
from fastapi import FastAPI, Header, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from discovery.filters import DateFilter, FilterCriteria, SortOption, apply_criteria
from discovery.geo import annotate_distances, within_radius
from ingest.api_client import DatabaseClient, fetch_all_events
from ingest.booking_email import BookingEmail, send_booking_email
from ingest.bookings import BookingTransitionError, review_booking
from ingest.flyer_parser import (
    CreditsExhaustedError,
    FlyerParseError,
    RateLimitedError,
    analyze_flyer,
)
from ingest.geocoder import GeocodingError, search_locations
from ingest.schemas import Booking, Event

logger = logging.getLogger(__name__)

VERSION = "1.0.0"

app = FastAPI(
    title="RaagConnect API",
    description="Event discovery, geocoding, flyer parsing and booking e-mail services",
    version=VERSION,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["authorization", "x-client-info", "apikey", "content-type"],
)

# Thread pool for running sync (network-bound) code in async context
executor = ThreadPoolExecutor(max_workers=4)


class EventModel(BaseModel):
    """Event as returned to the discovery views."""
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
    distance: Optional[float] = None  # miles, only when the caller's location is known


class EventsResponse(BaseModel):
    events: List[EventModel]
    total: int
    active_filter_count: int


class HealthResponse(BaseModel):
    """Health check response model."""
    status: str
    timestamp: str
    version: str


class FlyerRequest(BaseModel):
    image_base64: Optional[str] = None
    mime_type: Optional[str] = "image/jpeg"


class ReviewRequest(BaseModel):
    decision: str


def _health(status: str) -> HealthResponse:
    return HealthResponse(
        status=status,
        timestamp=datetime.now(timezone.utc).isoformat(),
        version=VERSION,
    )


def _error(status_code: int, message: str, **extra) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message, **extra})


async def _run(func, *args):
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(executor, func, *args)


@app.get("/health", response_model=HealthResponse)
async def health_check():
    """Health check endpoint."""
    return _health("healthy")


@app.get("/live", response_model=HealthResponse)
async def liveness_check():
    """Liveness check endpoint for container orchestration."""
    return _health("alive")


@app.get("/ready", response_model=HealthResponse)
async def readiness_check():
    """Readiness check endpoint for container orchestration."""
    return _health("ready")


@app.get("/events", response_model=EventsResponse)
async def list_events(
    date_filter: DateFilter = DateFilter.ALL,
    location: str = "",
    sort_by: SortOption = SortOption.DATE_ASC,
    lat: Optional[float] = Query(default=None, ge=-90, le=90),
    lng: Optional[float] = Query(default=None, ge=-180, le=180),
    radius: Optional[float] = Query(default=None, gt=0),
):
    """
    List events filtered by date range and location text, then sorted.

    When ``lat`` and ``lng`` are both given each event carries its distance in
    miles; ``radius`` additionally drops events further away than that.
    """
    if radius is not None and (lat is None or lng is None):
        raise HTTPException(status_code=422, detail="radius requires both lat and lng")
    try:
        rows = await _run(fetch_all_events)
    except requests.RequestException as e:
        logger.error("Event fetch failed: %s", e)
        raise HTTPException(status_code=502, detail=f"Event fetch failed: {str(e)}")

    events = [Event.from_row(row) for row in rows]
    user_location = (lat, lng) if lat is not None and lng is not None else None
    if user_location:
        events = annotate_distances(events, user_location)
        if radius is not None:
            events = within_radius(events, radius)

    criteria = FilterCriteria(date_filter=date_filter, location_filter=location, sort_by=sort_by)
    ordered = apply_criteria(events, criteria)
    return EventsResponse(
        events=[EventModel(**e.to_dict()) for e in ordered],
        total=len(ordered),
        active_filter_count=criteria.active_filter_count,
    )


@app.get("/geocode")
async def geocode(q: Optional[str] = None, limit: int = 8, countrycodes: str = ""):
    """Proxy location search to Nominatim."""
    if not q or not q.strip():
        return _error(400, 'Query parameter "q" is required')
    try:
        return await _run(search_locations, q, limit, countrycodes or None)
    except GeocodingError as e:
        logger.error("Geocoding error: %s", e)
        return _error(500, "Geocoding failed", details=str(e))


@app.post("/analyze-flyer")
async def analyze_flyer_endpoint(request: FlyerRequest):
    """Read title, date, time, location, price and notes off a flyer image."""
    if not request.image_base64:
        return JSONResponse(status_code=400, content={"success": False, "error": "Image data is required"})
    try:
        details = await _run(analyze_flyer, request.image_base64, request.mime_type)
    except RateLimitedError as e:
        return JSONResponse(status_code=429, content={"success": False, "error": str(e)})
    except CreditsExhaustedError as e:
        return JSONResponse(status_code=402, content={"success": False, "error": str(e)})
    except FlyerParseError as e:
        return JSONResponse(status_code=422, content={"success": False, "error": str(e)})
    except Exception as e:
        logger.exception("Error analyzing flyer")
        return JSONResponse(status_code=500, content={"success": False, "error": str(e)})
    return {"success": True, "data": details.model_dump()}


@app.post("/send-booking-email")
async def send_booking_email_endpoint(request: BookingEmail):
    """Send a booking confirmed/rejected e-mail to the attendee."""
    try:
        return await _run(send_booking_email, request)
    except (requests.RequestException, RuntimeError) as e:
        logger.error("Error in send-booking-email: %s", e)
        return _error(500, str(e))


def _bearer_token(authorization: Optional[str]) -> str:
    """Pull the token out of an ``Authorization: Bearer <token>`` header or raise 401."""
    scheme, _, token = (authorization or "").partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise HTTPException(
            status_code=401,
            detail="Missing bearer token",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return token.strip()


def _review_sync(booking_id: str, decision: str, access_token: str) -> Booking:
    # Runs as the caller so only the event's organizer or an admin can review.
    client = DatabaseClient(access_token=access_token)
    row = client.fetch_booking(booking_id)
    if row is None:
        raise LookupError(f"Booking {booking_id} not found")
    booking = Booking.from_row(row)
    event_row = client.fetch_event(booking.event_id)
    event = Event.from_row(event_row) if event_row else None
    return review_booking(booking, decision, event, client=client)


@app.post("/bookings/{booking_id}/review")
async def review_booking_endpoint(
    booking_id: str,
    request: ReviewRequest,
    authorization: Optional[str] = Header(default=None),
):
    """Confirm or reject a pending booking after checking its payment proof.

    Requires the organizer's (or an admin's) session token; the database's
    row-level security decides whether that user may touch the booking.
    """
    access_token = _bearer_token(authorization)
    try:
        booking = await _run(_review_sync, booking_id, request.decision, access_token)
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except BookingTransitionError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except requests.RequestException as e:
        upstream = getattr(e.response, "status_code", None)
        if upstream in (401, 403):
            raise HTTPException(status_code=upstream, detail="Not allowed to review this booking")
        raise HTTPException(status_code=502, detail=f"Booking update failed: {str(e)}")
    return {"id": booking.id, "status": booking.status.value}


@app.get("/")
async def root():
    """Root endpoint with API information."""
    return {
        "name": "RaagConnect API",
        "version": VERSION,
        "docs": "/docs",
        "health": "/health"
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8001)
