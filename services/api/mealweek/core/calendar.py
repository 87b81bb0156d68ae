"""Week/day arithmetic for the planner.

Weeks start on Monday. A "day key" is the `YYYY-MM-DD` string of a local
calendar day; it groups dishes by day and keys the dish `date` field.
"""

from datetime import date, datetime, time, timedelta
from typing import Union

DAYS_PER_WEEK = 7

# Reconstructed dates sit at noon so a timezone shift never crosses midnight.
NEUTRAL_HOUR = 12

DayLike = Union[date, datetime, str]


def as_date(value: DayLike) -> date:
    """Coerce a date, datetime or day key to a plain date."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        return parse_day_key(value).date()
    raise TypeError(f"Expected date, datetime or day key, got {type(value).__name__}")


def week_start(reference: DayLike) -> date:
    """Monday on or before `reference`, time-of-day dropped."""
    day = as_date(reference)
    # weekday(): Monday=0 .. Sunday=6, i.e. days elapsed since Monday
    return day - timedelta(days=day.weekday())


def week_days(start: DayLike) -> list[date]:
    first = as_date(start)
    return [first + timedelta(days=i) for i in range(DAYS_PER_WEEK)]


def shift_weeks(reference: DayLike, weeks: int) -> date:
    return as_date(reference) + timedelta(weeks=weeks)


def day_key(value: Union[date, datetime]) -> str:
    """Canonical `YYYY-MM-DD` key of the value's own calendar day.

    Aware datetimes are read in their own offset, so two timestamps on the
    same local day always share a key.
    """
    if isinstance(value, datetime):
        value = value.date()
    return value.isoformat()


def parse_day_key(key: str) -> datetime:
    """Rebuild a local datetime from a day key, anchored at NEUTRAL_HOUR."""
    try:
        day = date.fromisoformat(key.strip()[:10])
    except ValueError as e:
        raise ValueError(f"Invalid day key: {key!r}") from e
    return datetime.combine(day, time(hour=NEUTRAL_HOUR))


def format_week_range(start: DayLike) -> str:
    """Header label, e.g. '6/9 Mon - 6/15 Sun'."""
    days = week_days(week_start(start))
    first, last = days[0], days[-1]
    return f"{first.month}/{first.day} Mon - {last.month}/{last.day} Sun"
