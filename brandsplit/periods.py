"""
Period bucketing: canonical month/week keys, labels, and explicit windows.

Keys:
    month -> "YYYY-MM"
    week  -> "YYYY-MM-DD" of the Monday starting the week

A run uses one granularity for every channel.
"""

from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import List, Optional

MONTH = "month"
WEEK = "week"
GRANULARITIES = (MONTH, WEEK)

# Google Ads segment field carrying the period for each granularity
SEGMENT_FIELDS = {
    MONTH: "month",
    WEEK: "week",
}


@dataclass(frozen=True)
class PeriodWindow:
    key: str
    start: date
    end: date


def check_granularity(granularity: str) -> str:
    if granularity not in GRANULARITIES:
        raise ValueError(f"Unknown time granularity: {granularity!r} (expected 'month' or 'week')")
    return granularity


def parse_date(value) -> Optional[date]:
    """Parse 'YYYY-MM-DD' (or a date/datetime). None if unusable."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not value or not isinstance(value, str):
        return None
    try:
        return datetime.strptime(value.strip()[:10], "%Y-%m-%d").date()
    except ValueError:
        return None


def monday_of(day: date) -> date:
    return day - timedelta(days=day.weekday())


def month_key(day: date) -> str:
    return f"{day.year:04d}-{day.month:02d}"


def key_for(granularity: str, raw) -> Optional[str]:
    """
    Canonical period key for a raw segment value.

    Returns None when the value is absent or unparseable; the caller skips
    the row rather than filing it under a placeholder period.
    """
    check_granularity(granularity)
    if raw is None or raw == "":
        return None

    if granularity == MONTH:
        if isinstance(raw, (date, datetime)):
            return month_key(raw)
        if not isinstance(raw, str):
            return None
        text = raw.strip()
        try:
            parsed = datetime.strptime(text[:7], "%Y-%m").date()
        except ValueError:
            return None
        return month_key(parsed)

    day = parse_date(raw)
    if day is None:
        return None
    return monday_of(day).isoformat()


def format_label(granularity: str, key: str) -> str:
    """Human label: 'Jan 2024' for months, 'w/c 2024-01-08' for weeks."""
    check_granularity(granularity)
    if granularity == WEEK:
        return f"w/c {key}"
    try:
        parsed = datetime.strptime(str(key)[:7], "%Y-%m")
    except ValueError:
        return str(key)
    return parsed.strftime("%b %Y")


def axis_title(granularity: str) -> str:
    return "Week" if granularity == WEEK else "Month"


def _last_day_of_month(day: date) -> date:
    if day.month == 12:
        return date(day.year, 12, 31)
    return date(day.year, day.month + 1, 1) - timedelta(days=1)


def enumerate_periods(granularity: str, start_date: date, end_date: date) -> List[PeriodWindow]:
    """
    Explicit period windows for sources that must be queried once per period.

    Weekly: Monday-anchored 7-day windows starting at the Monday on/before
    start_date; the last window is clipped to end_date.
    Monthly: calendar months clipped to [start_date, end_date]; the first and
    last windows may be partial.
    """
    check_granularity(granularity)
    if end_date < start_date:
        return []

    windows = []
    if granularity == WEEK:
        current = monday_of(start_date)
        while current <= end_date:
            week_end = current + timedelta(days=6)
            windows.append(PeriodWindow(
                key=current.isoformat(),
                start=current,
                end=min(week_end, end_date),
            ))
            current += timedelta(days=7)
        return windows

    current = date(start_date.year, start_date.month, 1)
    while current <= end_date:
        month_end = _last_day_of_month(current)
        windows.append(PeriodWindow(
            key=month_key(current),
            start=max(current, start_date),
            end=min(month_end, end_date),
        ))
        current = month_end + timedelta(days=1)
    return windows
