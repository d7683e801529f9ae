"""
tests/test_streak.py — Calendar-Day Bucketing & Streak Counting
================================================================
Pure functions only; no database.
"""

from __future__ import annotations

from datetime import UTC, date, datetime, timedelta
from zoneinfo import ZoneInfo

from japa.engine.streak import (
    DailyBucket,
    count_active_days,
    ensure_utc,
    group_by_day,
    local_day,
    start_of_day,
    start_of_month,
)

NOW = datetime(2026, 3, 15, 12, 0, tzinfo=UTC)
KOLKATA = ZoneInfo("Asia/Kolkata")


class TestTimeHelpers:
    def test_naive_treated_as_utc(self):
        naive = datetime(2026, 3, 15, 12, 0)
        assert ensure_utc(naive) == NOW

    def test_aware_converted_to_utc(self):
        ist = datetime(2026, 3, 15, 17, 30, tzinfo=KOLKATA)
        assert ensure_utc(ist) == NOW

    def test_local_day_crosses_midnight_in_tz(self):
        late_utc = datetime(2026, 3, 15, 20, 0, tzinfo=UTC)
        assert local_day(late_utc) == date(2026, 3, 15)
        assert local_day(late_utc, KOLKATA) == date(2026, 3, 16)

    def test_start_of_day_utc(self):
        assert start_of_day(NOW) == datetime(2026, 3, 15, tzinfo=UTC)

    def test_start_of_day_in_tz(self):
        # Midnight IST is 18:30 UTC the previous day
        assert start_of_day(NOW, KOLKATA) == datetime(2026, 3, 14, 18, 30, tzinfo=UTC)

    def test_start_of_month(self):
        assert start_of_month(NOW) == datetime(2026, 3, 1, tzinfo=UTC)


class TestGroupByDay:
    def test_empty(self):
        assert group_by_day([]) == []

    def test_buckets_sorted_with_counts_and_coins(self):
        rows = [
            (NOW, 1),
            (NOW - timedelta(days=2), 1),
            (NOW + timedelta(hours=1), 2),
            (NOW - timedelta(days=2, hours=1), 1),
        ]
        buckets = group_by_day(rows)
        assert buckets == [
            DailyBucket(day=date(2026, 3, 13), count=2, coins=2),
            DailyBucket(day=date(2026, 3, 15), count=2, coins=3),
        ]

    def test_bucket_dict_shape(self):
        bucket = DailyBucket(day=date(2026, 3, 15), count=4, coins=4)
        assert bucket.to_dict() == {"date": "2026-03-15", "count": 4, "coins": 4}


class TestCountActiveDays:
    def test_no_activity(self):
        assert count_active_days([], now=NOW) == 0

    def test_seven_consecutive_days(self):
        stamps = [NOW - timedelta(days=d) for d in range(7)]
        assert count_active_days(stamps, now=NOW) == 7

    def test_six_days_is_not_seven(self):
        stamps = [NOW - timedelta(days=d) for d in range(6)]
        assert count_active_days(stamps, now=NOW) == 6

    def test_multiple_actions_same_day_count_once(self):
        stamps = [NOW, NOW - timedelta(hours=3), NOW - timedelta(hours=6)]
        assert count_active_days(stamps, now=NOW) == 1

    def test_days_outside_window_ignored(self):
        stamps = [NOW - timedelta(days=d) for d in (0, 7, 8, 30)]
        assert count_active_days(stamps, now=NOW) == 1

    def test_gap_breaks_full_window(self):
        stamps = [NOW - timedelta(days=d) for d in (0, 1, 2, 4, 5, 6)]
        assert count_active_days(stamps, now=NOW) == 6

    def test_never_exceeds_window(self):
        stamps = [NOW - timedelta(hours=h) for h in range(0, 24 * 10, 6)]
        assert count_active_days(stamps, now=NOW) == 7

    def test_days_follow_configured_timezone(self):
        # 20:00 UTC on the 14th is already the 15th in Kolkata
        stamps = [datetime(2026, 3, 14, 20, 0, tzinfo=UTC), NOW]
        assert count_active_days(stamps, now=NOW) == 2
        assert count_active_days(stamps, now=NOW, tz=KOLKATA) == 1
