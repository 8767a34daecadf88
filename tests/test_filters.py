import os
import sys
from datetime import date

import pytest

# Ensure the project root is on the import path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from discovery.filters import (
    DateFilter,
    FilterCriteria,
    SortOption,
    apply_criteria,
    filter_and_sort_events,
    filter_events,
    parse_event_date,
    sort_events,
    title_collation_key,
)
from ingest.schemas import Event

TODAY = date(2025, 1, 7)


def make_event(id, title, day, price=None, location=None):
    return Event(id=id, title=title, date=day, price=price, location_name=location)


@pytest.fixture
def events():
    return [
        make_event("1", "Sitar Recital", "2025-01-02", price=20, location="Austin, Texas"),
        make_event("2", "Bansuri Evening", "2025-01-07", price=None, location="Dallas"),
        make_event("3", "Carnatic Vocal", "2025-01-12", price=45, location="AUSTIN Music Hall"),
        make_event("4", "Tabla Solo", "2025-01-20", price=10, location=None),
        make_event("5", "Veena Concert", "2025-02-03", price=60, location="Houston"),
        make_event("6", "Broken Date", "not-a-date", price=5, location="Austin"),
    ]


def titles(events):
    return [e.title for e in events]


def test_parse_event_date_variants():
    assert parse_event_date("2025-01-10") == date(2025, 1, 10)
    assert parse_event_date("2025-01-10T23:30:00Z") == date(2025, 1, 10)
    assert parse_event_date(date(2025, 1, 10)) == date(2025, 1, 10)
    assert parse_event_date("") is None
    assert parse_event_date("next tuesday") is None
    assert parse_event_date(None) is None


def test_all_keeps_every_event(events):
    result = filter_events(events, "all", "", today=TODAY)
    assert result == events


def test_upcoming_includes_today(events):
    result = filter_events(events, DateFilter.UPCOMING, today=TODAY)
    assert titles(result) == ["Bansuri Evening", "Carnatic Vocal", "Tabla Solo", "Veena Concert"]


def test_past(events):
    result = filter_events(events, DateFilter.PAST, today=TODAY)
    assert titles(result) == ["Sitar Recital"]


def test_upcoming_and_past_partition_valid_dates(events):
    upcoming = {e.id for e in filter_events(events, "upcoming", today=TODAY)}
    past = {e.id for e in filter_events(events, "past", today=TODAY)}
    valid = {e.id for e in events if parse_event_date(e.date) is not None}
    assert upcoming.isdisjoint(past)
    assert upcoming | past == valid


def test_this_week_is_inclusive_of_seven_days():
    boundary = [
        make_event("a", "Today", "2025-01-07"),
        make_event("b", "Plus seven", "2025-01-14"),
        make_event("c", "Plus eight", "2025-01-15"),
        make_event("d", "Yesterday", "2025-01-06"),
    ]
    result = filter_events(boundary, "this-week", today=TODAY)
    assert titles(result) == ["Today", "Plus seven"]


def test_this_month_ends_on_last_calendar_day():
    boundary = [
        make_event("a", "Month end", "2025-01-31"),
        make_event("b", "Next month", "2025-02-01"),
        make_event("c", "Earlier", "2025-01-03"),
    ]
    result = filter_events(boundary, "this-month", today=TODAY)
    assert titles(result) == ["Month end"]


def test_this_month_handles_leap_february():
    leap = [make_event("a", "Leap day", "2024-02-29")]
    assert filter_events(leap, "this-month", today=date(2024, 2, 10)) == leap


@pytest.mark.parametrize("date_filter", ["upcoming", "past", "this-week", "this-month"])
def test_unparseable_dates_fail_closed(events, date_filter):
    result = filter_events(events, date_filter, today=TODAY)
    assert "Broken Date" not in titles(result)


def test_location_filter_is_case_insensitive_substring(events):
    result = filter_events(events, "all", "Austin", today=TODAY)
    assert titles(result) == ["Sitar Recital", "Carnatic Vocal", "Broken Date"]
    assert all("austin" in e.location_name.lower() for e in result)


def test_location_filter_excludes_missing_location(events):
    result = filter_events(events, "all", "a", today=TODAY)
    assert "Tabla Solo" not in titles(result)


def test_filters_combine_with_and(events):
    result = filter_events(events, "upcoming", "austin", today=TODAY)
    assert titles(result) == ["Carnatic Vocal"]


def test_date_sorts(events):
    valid = events[:5]
    assert titles(sort_events(valid, "date-asc")) == titles(valid)
    assert titles(sort_events(valid, "date-desc")) == list(reversed(titles(valid)))


def test_unparseable_dates_sort_last_both_ways(events):
    assert sort_events(events, "date-asc")[-1].title == "Broken Date"
    assert sort_events(events, "date-desc")[-1].title == "Broken Date"


def test_price_sort_treats_missing_as_zero(events):
    result = sort_events(events[:5], SortOption.PRICE_ASC)
    assert titles(result) == ["Bansuri Evening", "Tabla Solo", "Sitar Recital", "Carnatic Vocal", "Veena Concert"]


def test_price_orders_reverse_each_other_with_distinct_prices(events):
    distinct = [e for e in events if e.price is not None]
    asc = sort_events(distinct, "price-asc")
    desc = sort_events(distinct, "price-desc")
    assert titles(asc) == list(reversed(titles(desc)))


def test_name_sort_ignores_case():
    mixed = [make_event("1", "veena", "2025-01-01"), make_event("2", "Bansuri", "2025-01-01")]
    assert titles(sort_events(mixed, "name-asc")) == ["Bansuri", "veena"]


def test_sort_is_stable_for_equal_keys():
    same_price = [
        make_event("1", "First", "2025-01-09", price=30),
        make_event("2", "Second", "2025-01-08", price=30),
        make_event("3", "Third", "2025-01-10", price=30),
    ]
    assert titles(sort_events(same_price, "price-asc")) == ["First", "Second", "Third"]
    assert titles(sort_events(same_price, "price-desc")) == ["First", "Second", "Third"]


@pytest.mark.parametrize("sort_by", [s.value for s in SortOption])
def test_sort_is_idempotent(events, sort_by):
    once = sort_events(events, sort_by)
    assert sort_events(once, sort_by) == once


def test_scenario_two_events():
    events = [
        make_event("b", "B", "2025-01-10", price=50),
        make_event("a", "A", "2025-01-05", price=100),
    ]
    for sort_by in ("date-asc", "name-asc", "price-desc"):
        assert titles(filter_and_sort_events(events, "all", "", sort_by, today=TODAY)) == ["A", "B"]


def test_pipeline_does_not_mutate_input(events):
    snapshot = list(events)
    filter_and_sort_events(events, "upcoming", "austin", "price-desc", today=TODAY)
    assert events == snapshot


def test_unknown_values_raise():
    with pytest.raises(ValueError):
        filter_and_sort_events([], "someday", "", "date-asc")
    with pytest.raises(ValueError):
        filter_and_sort_events([], "all", "", "distance-asc")


def test_criteria_active_filter_count_and_apply(events):
    assert FilterCriteria().active_filter_count == 0
    criteria = FilterCriteria(DateFilter.UPCOMING, "Austin", SortOption.NAME_ASC)
    assert criteria.active_filter_count == 2
    assert titles(apply_criteria(events, criteria, today=TODAY)) == ["Carnatic Vocal"]


def test_name_sort_collates_accented_titles_with_their_base_letter():
    accented = [
        make_event("1", "Tabla Solo", "2025-01-01"),
        make_event("2", "Śruti Recital", "2025-01-01"),
        make_event("3", "Évening Raga", "2025-01-01"),
        make_event("4", "Zakir", "2025-01-01"),
        make_event("5", "rāga Bhairavi", "2025-01-01"),
    ]
    assert titles(sort_events(accented, "name-asc")) == [
        "Évening Raga", "rāga Bhairavi", "Śruti Recital", "Tabla Solo", "Zakir",
    ]


def test_title_collation_key():
    assert title_collation_key("Śruti") == title_collation_key("sruti")
    assert title_collation_key("Rāga") == "raga"
