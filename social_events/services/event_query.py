"""Builders for the event listing query.

Everything here is pure: the caller passes ``now`` so the date windows can
be tested without touching the clock.
"""
import math
import re
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional, Tuple

from social_events.models.event import DateRange, SortOption

DEFAULT_PAGE_SIZE = 9

# Values the type filter treats as "no filter"
ANY_TYPE = {"", "all"}


def utcnow() -> datetime:
    """Current time as a naive UTC datetime, the form the driver stores."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def first_of_month(moment: datetime, months_ahead: int = 0) -> datetime:
    """Midnight on the first day of the month ``months_ahead`` after ``moment``'s month."""
    month_index = moment.month - 1 + months_ahead
    year = moment.year + month_index // 12
    return datetime(year, month_index % 12 + 1, 1)


def date_window(date_range: Optional[str], now: datetime) -> Dict[str, datetime]:
    """Extra ``eventDate`` bounds for a relative date range.

    Unknown or empty values add no bounds.
    """
    if date_range == DateRange.THIS_WEEK.value:
        return {"$lte": now + timedelta(days=7)}
    if date_range == DateRange.THIS_MONTH.value:
        return {"$lt": first_of_month(now, 1)}
    if date_range == DateRange.NEXT_MONTH.value:
        return {"$lt": first_of_month(now, 2)}
    return {}


def _contains(text: str) -> Dict[str, str]:
    return {"$regex": re.escape(text), "$options": "i"}


def build_event_filter(
    now: datetime,
    event_type: Optional[str] = None,
    search: Optional[str] = None,
    location: Optional[str] = None,
    date_range: Optional[str] = None,
) -> Dict[str, Any]:
    """Mongo filter for upcoming events refined by the optional listing filters."""
    date_bounds: Dict[str, datetime] = {"$gte": now}
    date_bounds.update(date_window(date_range, now))

    query: Dict[str, Any] = {"eventDate": date_bounds}
    if event_type and event_type.strip().lower() not in ANY_TYPE:
        query["eventType"] = event_type.strip()
    if search and search.strip():
        query["title"] = _contains(search.strip())
    if location and location.strip():
        query["location"] = _contains(location.strip())
    return query


def build_sort(sort_by: Optional[str]) -> List[Tuple[str, int]]:
    if sort_by == SortOption.NEWEST.value:
        keys = [("createdAt", -1)]
    elif sort_by == SortOption.TITLE.value:
        keys = [("title", 1)]
    else:
        keys = [("eventDate", 1)]
    # Tie-break on _id so pages do not overlap
    return keys + [("_id", 1)]


def page_window(page: int, limit: int) -> Tuple[int, int]:
    """Return ``(skip, limit)`` for a 1-indexed page."""
    return (page - 1) * limit, limit


def total_pages(total: int, limit: int) -> int:
    return math.ceil(total / limit) if limit else 0
