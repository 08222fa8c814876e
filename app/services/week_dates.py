"""
Week arithmetic shared by the Connecteam sync and payroll generation.

Weeks run Monday..Sunday. Everything here works on calendar dates
(year/month/day) only; datetimes are reduced to their own date components
and never converted between timezones, so the Monday computed for a given
wall-clock day is the same no matter which offset the caller runs in.
"""
from __future__ import annotations

from datetime import date, datetime, timedelta
from typing import Optional, Tuple, Union

DateLike = Union[date, datetime, str]

WEEKDAY_NAMES = (
    "monday",
    "tuesday",
    "wednesday",
    "thursday",
    "friday",
    "saturday",
    "sunday",
)

# Rows written by older syncs may carry a week start that drifted by a day or
# two around midnight. Week-scoped reads/deletes widen to this many days on
# either side of the canonical Monday to stay compatible with that data.
LEGACY_WEEK_START_TOLERANCE_DAYS = 2


def parse_date(value: DateLike) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        raw = value.strip()
        try:
            return date.fromisoformat(raw[:10])
        except ValueError as exc:
            raise ValueError(f"Invalid date (expected YYYY-MM-DD): {value!r}") from exc
    raise ValueError(f"Unsupported date value: {value!r}")


def format_date(value: DateLike) -> str:
    return parse_date(value).strftime("%Y-%m-%d")


def get_week_start(value: DateLike) -> date:
    d = parse_date(value)
    return d - timedelta(days=d.weekday())


def get_week_end(week_start: DateLike) -> date:
    return parse_date(week_start) + timedelta(days=6)


def week_range(value: Optional[DateLike] = None, *, today: Optional[date] = None) -> Tuple[str, str]:
    """(monday, sunday) as YYYY-MM-DD for the week containing value, or for today."""
    anchor = value if value is not None else (today or date.today())
    start = get_week_start(anchor)
    return format_date(start), format_date(get_week_end(start))


def weekday_name(value: DateLike) -> str:
    return WEEKDAY_NAMES[parse_date(value).weekday()]


def tolerance_window(
    week_start: DateLike, days: int = LEGACY_WEEK_START_TOLERANCE_DAYS
) -> Tuple[date, date]:
    start = parse_date(week_start)
    return start - timedelta(days=days), start + timedelta(days=days)


def week_label(week_start: DateLike) -> str:
    start = parse_date(week_start)
    return f"Week of {format_date(start)} - {format_date(get_week_end(start))}"
