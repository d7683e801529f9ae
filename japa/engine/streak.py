"""
japa.engine.streak — Calendar-Day Bucketing & Streak Counting
===============================================================

Pure calculation — no database I/O.  Callers fetch action timestamps
(and rewards) and hand them in; everything here is about turning
instants into calendar days in the configured timezone.

Timestamps read back from SQLite come out naive; they are always stored
as UTC, so naive values are treated as UTC.
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import UTC, date, datetime, time, timedelta, tzinfo

from japa.constants import STREAK_DAYS

__all__ = [
    "DailyBucket",
    "count_active_days",
    "ensure_utc",
    "group_by_day",
    "local_day",
    "start_of_day",
    "start_of_month",
]


@dataclass(frozen=True, slots=True)
class DailyBucket:
    """Actions and coins grouped under one calendar day."""

    day: date
    count: int
    coins: int

    def to_dict(self) -> dict:
        return {"date": self.day.isoformat(), "count": self.count, "coins": self.coins}


# ---------------------------------------------------------------------------
# Time helpers
# ---------------------------------------------------------------------------
def ensure_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def local_day(value: datetime, tz: tzinfo = UTC) -> date:
    """Calendar day of *value* as seen in *tz*."""
    return ensure_utc(value).astimezone(tz).date()


def start_of_day(now: datetime, tz: tzinfo = UTC) -> datetime:
    """UTC instant at which the current calendar day (in *tz*) began."""
    today = local_day(now, tz)
    return datetime.combine(today, time.min, tzinfo=tz).astimezone(UTC)


def start_of_month(now: datetime, tz: tzinfo = UTC) -> datetime:
    """UTC instant at which the current calendar month (in *tz*) began."""
    first = local_day(now, tz).replace(day=1)
    return datetime.combine(first, time.min, tzinfo=tz).astimezone(UTC)


# ---------------------------------------------------------------------------
# Grouping
# ---------------------------------------------------------------------------
def group_by_day(
    rows: Iterable[tuple[datetime, int]], tz: tzinfo = UTC
) -> list[DailyBucket]:
    """Group ``(timestamp, coins_earned)`` rows by calendar day.

    Returns one bucket per day that has at least one row, sorted by day.
    """
    counts: dict[date, int] = defaultdict(int)
    coins: dict[date, int] = defaultdict(int)
    for ts, earned in rows:
        day = local_day(ts, tz)
        counts[day] += 1
        coins[day] += earned
    return [
        DailyBucket(day=day, count=counts[day], coins=coins[day])
        for day in sorted(counts)
    ]


def count_active_days(
    timestamps: Iterable[datetime],
    *,
    now: datetime,
    tz: tzinfo = UTC,
    window_days: int = STREAK_DAYS,
) -> int:
    """Count distinct calendar days with activity in the trailing window.

    The window is the last *window_days* calendar days ending today
    (inclusive), so the result never exceeds *window_days*.  A result equal
    to *window_days* means at least one action on every one of those days.
    """
    today = local_day(now, tz)
    first = today - timedelta(days=window_days - 1)
    days = {
        day for day in (local_day(ts, tz) for ts in timestamps)
        if first <= day <= today
    }
    return len(days)
