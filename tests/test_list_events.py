from unittest.mock import patch
import os
import sys
from datetime import date, timedelta

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from jobs.list_events import format_event, run
from ingest.schemas import Event

ROWS = [
    {"id": "1", "title": "Veena Concert", "date": (date.today() + timedelta(days=3)).isoformat(),
     "location_name": "Houston", "location_lat": 29.76, "location_lng": -95.37, "price": 40},
    {"id": "2", "title": "Bansuri Evening", "date": (date.today() + timedelta(days=1)).isoformat(),
     "location_name": "Austin", "location_lat": 30.27, "location_lng": -97.74, "price": None},
]


def test_run_prints_sorted_events(capsys):
    with patch("jobs.list_events.fetch_all_events", return_value=ROWS):
        code = run(["--sort", "name-asc"])

    lines = capsys.readouterr().out.splitlines()
    assert code == 0
    assert "Bansuri Evening" in lines[0]
    assert "Veena Concert" in lines[1]


def test_run_with_radius(capsys):
    with patch("jobs.list_events.fetch_all_events", return_value=ROWS):
        code = run(["--near", "30.27", "-97.74", "--radius", "10"])

    out = capsys.readouterr().out
    assert code == 0
    assert "Bansuri Evening" in out
    assert "0 miles away" in out
    assert "Veena" not in out


def test_run_radius_needs_location(capsys):
    assert run(["--radius", "10"]) == 2


def test_run_fetch_failure(capsys):
    with patch("jobs.list_events.fetch_all_events", side_effect=RuntimeError("boom")):
        assert run([]) == 1
    assert "Failed to fetch events" in capsys.readouterr().out


def test_format_event():
    event = Event(id="1", title="Tabla Solo", date="2025-01-20", location_name="Dallas", price=12.5)
    assert format_event(event) == "2025-01-20  Tabla Solo @ Dallas  $12.5"
