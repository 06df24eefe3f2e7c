"""
Temporal Window Tests
=====================

Calendar arithmetic for the current week and the trailing 4 weeks.
"""

from datetime import date, datetime

from sportsee_coach.sessions import ActivitySession
from sportsee_coach.windows import (
    DateWindow, week_start, current_week_window, trailing_4_weeks_window, bucket_into_weeks, round_km
)


def _session(day, km=5.0):
    return ActivitySession(date=day, distance_km=km, duration_min=30)


class TestCurrentWeek:

    def test_monday_starts_its_own_week(self):
        window = current_week_window(date(2025, 11, 24))
        assert window.start == date(2025, 11, 24)
        assert window.end == date(2025, 11, 30)

    def test_sunday_belongs_to_previous_monday(self):
        assert week_start(date(2025, 11, 30)) == date(2025, 11, 24)

    def test_datetime_is_reduced_to_its_date(self):
        window = current_week_window(datetime(2025, 11, 26, 23, 59))
        assert window.start == date(2025, 11, 24)
        assert window.days == 7


class TestTrailingWindow:

    def test_four_complete_weeks_before_current(self):
        window = trailing_4_weeks_window(date(2025, 11, 26))
        assert window.start == date(2025, 10, 27)
        assert window.end == date(2025, 11, 23)
        assert window.days == 28

    def test_excludes_current_week(self):
        now = date(2025, 11, 24)
        assert not trailing_4_weeks_window(now).overlaps(current_week_window(now))

    def test_select_keeps_input_order(self):
        window = DateWindow(date(2025, 11, 1), date(2025, 11, 30))
        sessions = [_session(date(2025, 11, 20)), _session(date(2025, 10, 31)), _session(date(2025, 11, 2))]
        assert [s.date for s in window.select(sessions)] == [date(2025, 11, 20), date(2025, 11, 2)]


class TestBuckets:

    def test_four_buckets_with_totals(self):
        start = date(2025, 10, 27)
        sessions = [
            _session(date(2025, 10, 27), 5.0),
            _session(date(2025, 11, 2), 3.0),
            _session(date(2025, 11, 20), 2.5),
        ]
        buckets = bucket_into_weeks(sessions, start)

        assert [b.index for b in buckets] == [1, 2, 3, 4]
        assert buckets[0].distance_km == 8.0
        assert buckets[0].count == 2
        assert buckets[1].count == 0
        assert buckets[3].distance_km == 2.5
        assert buckets[3].end == date(2025, 11, 23)

    def test_sessions_outside_buckets_are_ignored(self):
        buckets = bucket_into_weeks([_session(date(2025, 12, 1))], date(2025, 10, 27))
        assert sum(b.count for b in buckets) == 0

    def test_bucket_km_rounds_half_up(self):
        assert round_km(12.25) == 12.3
        assert round_km(4.0 + 4.1 + 4.2) == 12.3
        buckets = bucket_into_weeks([_session(date(2025, 10, 28), 6.125)] * 2, date(2025, 10, 27))
        assert buckets[0].distance_km == 12.3
