"""Calendar-aligned date ranges for the week/month/year/allTime/custom views."""

from __future__ import annotations

import calendar
from datetime import MAXYEAR, MINYEAR, date, timedelta
from functools import lru_cache
from typing import List, Sequence

from config import ALL_TIME_DAYS
from models import (
    ALL_TIME,
    CUSTOM,
    MONTH,
    WEEK,
    YEAR,
    InvalidRange,
    format_day,
    parse_day,
)


# =========================
# Day arithmetic
# =========================

def _step(d: date, days: int) -> date:
    """d moved by whole days; leaving years 1..9999 is an InvalidRange."""
    try:
        return d + timedelta(days=days)
    except OverflowError:
        raise InvalidRange(
            f"Moving {format_day(d)} by {days} days leaves the supported calendar."
        ) from None


def add_days(day: str, days: int) -> str:
    return format_day(_step(parse_day(day), days))


def _days_from(start: date, count: int) -> List[str]:
    return [format_day(_step(start, i)) for i in range(count)]


def _days_between(start: date, end: date) -> List[str]:
    """Inclusive start..end."""
    return _days_from(start, (end - start).days + 1)


def _add_months(d: date, months: int) -> date:
    """Move by whole calendar months, clamping the day to the target month."""
    index = d.year * 12 + (d.month - 1) + months
    year, month = divmod(index, 12)
    month += 1
    if not MINYEAR <= year <= MAXYEAR:
        raise InvalidRange(
            f"Moving {format_day(d)} by {months} months leaves the supported calendar."
        )
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, min(d.day, last_day))


def week_start(d: date) -> date:
    """Monday of the ISO week containing d."""
    return _step(d, -d.weekday())


# =========================
# Range generation
# =========================

@lru_cache(maxsize=256)
def _cached_range(mode: str, anchor: str, all_time_days: int) -> tuple:
    # Keyed explicitly on (mode, anchor, N); callers get a fresh list each time.
    d = parse_day(anchor)
    if mode == WEEK:
        return tuple(_days_from(week_start(d), 7))
    if mode == MONTH:
        days_in_month = calendar.monthrange(d.year, d.month)[1]
        return tuple(_days_from(date(d.year, d.month, 1), days_in_month))
    if mode == YEAR:
        return tuple(_days_between(date(d.year, 1, 1), date(d.year, 12, 31)))
    if mode == ALL_TIME:
        return tuple(_days_from(_step(d, 1 - all_time_days), all_time_days))
    raise ValueError(f"Unsupported view mode '{mode}'.")


def custom_range(start: str, end: str) -> List[str]:
    """Every day from start to end inclusive."""
    start_date = parse_day(start)
    end_date = parse_day(end)
    if end_date < start_date:
        raise InvalidRange(f"Range end {end} precedes start {start}.")
    return _days_between(start_date, end_date)


def range_for(
    mode: str,
    anchor: str,
    *,
    start: str | None = None,
    end: str | None = None,
    all_time_days: int = ALL_TIME_DAYS,
) -> List[str]:
    """
    Ordered, contiguous day identifiers for a view.

    - week: Monday..Sunday around anchor
    - month: every day of anchor's month
    - year: Jan 1..Dec 31 of anchor's year
    - allTime: the all_time_days days ending at anchor
    - custom: start..end (anchor is ignored)
    """
    if mode == CUSTOM:
        if start is None or end is None:
            raise ValueError("Custom ranges need both 'start' and 'end'.")
        return custom_range(start, end)
    if all_time_days < 1:
        raise ValueError("all_time_days must be at least 1.")
    return list(_cached_range(mode, anchor, all_time_days))


def shift(mode: str, anchor: str, direction: int, *, all_time_days: int = ALL_TIME_DAYS) -> str:
    """Move anchor one whole view unit backward (-1) or forward (+1)."""
    if direction not in (-1, 1):
        raise ValueError("direction must be -1 or +1.")
    d = parse_day(anchor)
    if mode == WEEK:
        return format_day(_step(d, 7 * direction))
    if mode == MONTH:
        return format_day(_add_months(d, direction))
    if mode == YEAR:
        return format_day(_add_months(d, 12 * direction))
    if mode == ALL_TIME:
        return format_day(_step(d, all_time_days * direction))
    raise ValueError(f"View mode '{mode}' cannot be shifted.")


def preceding_range(day_range: Sequence[str]) -> List[str]:
    """The same-length range immediately before day_range."""
    if not day_range:
        return []
    length = len(day_range)
    return [add_days(day, -length) for day in day_range]


def trailing_range(today: str, days: int) -> List[str]:
    """The given number of days ending at today inclusive."""
    if days < 1:
        raise ValueError("days must be at least 1.")
    end = parse_day(today)
    return _days_from(_step(end, 1 - days), days)
