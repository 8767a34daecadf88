"""Filter and sort events for the discovery views.

The pipeline runs ``filter_events`` then ``sort_events`` over an in-memory
list. Both stages return new lists; input events are never modified.
Distance (see :mod:`discovery.geo`) is display-only and is neither a filter
nor a sort key here.
"""
from __future__ import annotations

import calendar
import logging
import unicodedata
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from enum import Enum
from typing import Callable, Iterable, List, Optional, Union

from ingest.schemas import Event

logger = logging.getLogger(__name__)


class DateFilter(str, Enum):
    ALL = "all"
    UPCOMING = "upcoming"
    PAST = "past"
    THIS_WEEK = "this-week"
    THIS_MONTH = "this-month"


class SortOption(str, Enum):
    DATE_ASC = "date-asc"
    DATE_DESC = "date-desc"
    PRICE_ASC = "price-asc"
    PRICE_DESC = "price-desc"
    NAME_ASC = "name-asc"


@dataclass(frozen=True)
class FilterCriteria:
    """Filter bar state: date range, location text and sort order."""

    date_filter: DateFilter = DateFilter.ALL
    location_filter: str = ""
    sort_by: SortOption = SortOption.DATE_ASC

    @property
    def active_filter_count(self) -> int:
        """Number of filters narrowing the list (the sort order does not count)."""
        count = 0
        if self.date_filter is not DateFilter.ALL:
            count += 1
        if self.location_filter:
            count += 1
        return count


def parse_event_date(value: Union[str, date, datetime, None]) -> Optional[date]:
    """Return the calendar date of ``value`` or ``None`` if it can't be read.

    Accepts ``date``/``datetime`` objects and ISO strings such as
    ``2025-01-10`` or ``2025-01-10T19:30:00Z``. No timezone conversion is
    applied: the date part is taken as written.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or not value.strip():
        return None

    text = value.strip()
    try:
        if len(text) == 10:
            return date.fromisoformat(text)
        return datetime.fromisoformat(text.replace("Z", "+00:00")).date()
    except ValueError:
        logger.debug("Unparseable event date %r", value)
        return None


def _month_end(day: date) -> date:
    return day.replace(day=calendar.monthrange(day.year, day.month)[1])


def matches_date(event: Event, date_filter: DateFilter, today: date) -> bool:
    """Date predicate. Events with unreadable dates only pass ``all``."""
    if date_filter is DateFilter.ALL:
        return True

    event_date = parse_event_date(event.date)
    if event_date is None:
        return False

    if date_filter is DateFilter.UPCOMING:
        return event_date >= today
    if date_filter is DateFilter.PAST:
        return event_date < today
    if date_filter is DateFilter.THIS_WEEK:
        return today <= event_date <= today + timedelta(days=7)
    if date_filter is DateFilter.THIS_MONTH:
        return today <= event_date <= _month_end(today)
    return True


def matches_location(event: Event, location_filter: str) -> bool:
    """Case-insensitive substring match on ``location_name``."""
    if not location_filter:
        return True
    if not event.location_name:
        return False
    return location_filter.casefold() in event.location_name.casefold()


def filter_events(
    events: Iterable[Event],
    date_filter: Union[DateFilter, str],
    location_filter: str = "",
    today: Optional[date] = None,
) -> List[Event]:
    """Return the events passing both the date and the location predicate."""
    date_filter = DateFilter(date_filter)
    today = today or date.today()
    return [
        e for e in events
        if matches_date(e, date_filter, today) and matches_location(e, location_filter)
    ]


def _date_key(descending: bool) -> Callable[[Event], tuple]:
    # Unreadable dates sort last in both directions.
    def key(event: Event) -> tuple:
        d = parse_event_date(event.date)
        if d is None:
            return (1, 0)
        return (0, -d.toordinal() if descending else d.toordinal())
    return key


def _price(event: Event) -> float:
    return event.price if event.price is not None else 0.0


def title_collation_key(title: str) -> str:
    """Accent- and case-insensitive sort key: ``"Śruti"`` sorts with ``"Sruti"``."""
    decomposed = unicodedata.normalize("NFKD", title)
    base = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return base.casefold()


_SORT_KEYS: dict[SortOption, Callable[[Event], object]] = {
    SortOption.DATE_ASC: _date_key(descending=False),
    SortOption.DATE_DESC: _date_key(descending=True),
    SortOption.PRICE_ASC: _price,
    SortOption.PRICE_DESC: lambda e: -_price(e),
    SortOption.NAME_ASC: lambda e: title_collation_key(e.title),
}


def sort_events(events: Iterable[Event], sort_by: Union[SortOption, str]) -> List[Event]:
    """Stable sort of ``events``; ties keep their incoming order."""
    return sorted(events, key=_SORT_KEYS[SortOption(sort_by)])


def filter_and_sort_events(
    events: Iterable[Event],
    date_filter: Union[DateFilter, str],
    location_filter: str,
    sort_by: Union[SortOption, str],
    today: Optional[date] = None,
) -> List[Event]:
    """Filter ``events`` by date and location, then order them by ``sort_by``."""
    filtered = filter_events(events, date_filter, location_filter, today=today)
    return sort_events(filtered, sort_by)


def apply_criteria(events: Iterable[Event], criteria: FilterCriteria, today: Optional[date] = None) -> List[Event]:
    """Run :func:`filter_and_sort_events` with the settings held in ``criteria``."""
    return filter_and_sort_events(
        events, criteria.date_filter, criteria.location_filter, criteria.sort_by, today=today
    )
