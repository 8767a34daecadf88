"""Fetch events and print them filtered and sorted, as the discovery page would."""
from __future__ import annotations

import argparse
import os
import sys
import logging
from typing import List, Optional

from discovery.filters import DateFilter, SortOption, filter_and_sort_events
from discovery.geo import annotate_distances, within_radius
from ingest.api_client import fetch_all_events
from ingest.schemas import Event

logger = logging.getLogger(__name__)
if os.getenv("RAAG_DEBUG"):
    logging.basicConfig(level=logging.INFO, format="%(message)s")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="List RaagConnect events")
    parser.add_argument("--date", default="all", choices=[f.value for f in DateFilter])
    parser.add_argument("--location", default="", help="Case-insensitive location substring")
    parser.add_argument("--sort", default="date-asc", choices=[s.value for s in SortOption])
    parser.add_argument("--near", nargs=2, type=float, metavar=("LAT", "LNG"))
    parser.add_argument("--radius", type=float, help="Miles from --near")
    return parser


def format_event(event: Event) -> str:
    line = f"{event.date}  {event.title}"
    if event.location_name:
        line += f" @ {event.location_name}"
    if event.price:
        line += f"  ${event.price:g}"
    if event.distance is not None:
        line += f"  ({round(event.distance)} miles away)"
    return line


def run(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    if args.radius is not None and not args.near:
        print("--radius requires --near LAT LNG")
        return 2

    try:
        rows = fetch_all_events()
    except Exception as exc:
        print("❌ Failed to fetch events:", exc)
        return 1

    events = [Event.from_row(row) for row in rows]
    logger.info("Fetched %d event(s)", len(events))
    if args.near:
        events = annotate_distances(events, tuple(args.near))
        if args.radius is not None:
            events = within_radius(events, args.radius)

    ordered = filter_and_sort_events(events, args.date, args.location, args.sort)
    if not ordered:
        print("No events found")
        return 0
    for event in ordered:
        print(format_event(event))
    return 0


if __name__ == "__main__":
    sys.exit(run())
