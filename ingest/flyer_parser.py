"""Extract draft event details from a flyer image via OpenAI's structured output API."""
from __future__ import annotations

import os
import logging

from dotenv import load_dotenv
from openai import APIStatusError, OpenAI
from pydantic import BaseModel, Field

load_dotenv()

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You are an expert at extracting event information from flyers and promotional images.\n"
    "Extract the following details from the event flyer image:\n"
    "- Event title/name\n"
    "- Date (in YYYY-MM-DD format if possible)\n"
    "- Time (in HH:MM 24-hour format if possible)\n"
    "- Location/venue name\n"
    "- Price (just the number, no currency symbol)\n"
    "- Any additional notes or details\n"
    "If you cannot determine a field, leave it as null. Be accurate and only extract "
    "information that is clearly visible."
)

USER_PROMPT = (
    "Please analyze this event flyer and extract the event details. Return the "
    "information with these fields: title, date, time, location, price, notes"
)


class FlyerDetails(BaseModel):
    title: str = Field(description="The event title or name")
    date: str | None = Field(default=None, description="The event date in YYYY-MM-DD format")
    time: str | None = Field(default=None, description="The event time in HH:MM 24-hour format")
    location: str | None = Field(default=None, description="The venue or location name")
    price: str | None = Field(default=None, description="The ticket price as a number")
    notes: str | None = Field(default=None, description="Any additional event details or notes")


class FlyerParseError(RuntimeError):
    """The model answered but no event details could be read from it."""


class RateLimitedError(RuntimeError):
    """The LLM provider is rate limiting us (HTTP 429)."""


class CreditsExhaustedError(RuntimeError):
    """The LLM account has run out of credits (HTTP 402)."""


def get_openai_client() -> OpenAI:
    """Get OpenAI client with API key (and optional gateway URL) from the environment."""
    api_key = os.getenv("OPENAI_API_KEY")
    if not api_key:
        raise RuntimeError("AI service not configured: OPENAI_API_KEY is missing")
    return OpenAI(api_key=api_key, base_url=os.getenv("OPENAI_BASE_URL") or None)


def analyze_flyer(image_base64: str, mime_type: str = "image/jpeg", client: OpenAI | None = None) -> FlyerDetails:
    """Return the event details visible on a base64-encoded flyer image."""
    if not image_base64:
        raise ValueError("Image data is required")

    client = client or get_openai_client()
    logger.info("Analyzing flyer image with AI...")
    try:
        resp = client.responses.parse(
            model=os.getenv("FLYER_MODEL", "gpt-4o-mini"),
            input=[
                {"role": "system", "content": SYSTEM_PROMPT},
                {
                    "role": "user",
                    "content": [
                        {"type": "input_text", "text": USER_PROMPT},
                        {"type": "input_image", "image_url": f"data:{mime_type or 'image/jpeg'};base64,{image_base64}"},
                    ],
                },
            ],
            text_format=FlyerDetails,
        )
    except APIStatusError as exc:
        if exc.status_code == 429:
            raise RateLimitedError("Rate limit exceeded. Please try again later.") from exc
        if exc.status_code == 402:
            raise CreditsExhaustedError("AI usage limit reached. Please add credits.") from exc
        raise

    details = resp.output_parsed
    if details is None:
        raise FlyerParseError("Could not extract event details from flyer")
    logger.info("Extracted event details: %s", details.model_dump())
    return details
