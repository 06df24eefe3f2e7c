"""
SportSee Coach Temporal Windows
===============================

The two date windows shared by the context builder, the validator and
the fallback generator:

- current week: Monday..Sunday of the week containing `now`
- trailing 4 weeks: the four complete weeks before the current one
  (what the "last 4 weeks" kilometre chart shows)

`now` is always passed in. Bounds are inclusive calendar dates.
"""

import math
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import List, Iterable

from sportsee_coach.sessions import ActivitySession


TRAILING_WEEKS = 4
DAYS_PER_WEEK = 7


def round_km(value: float) -> float:
    """One decimal, halves rounded up (12.25 -> 12.3)."""
    return math.floor(value * 10 + 0.5) / 10


@dataclass(frozen=True)
class DateWindow:
    """Inclusive [start, end] calendar-date window."""
    start: date
    end: date

    @property
    def days(self) -> int:
        return (self.end - self.start).days + 1

    def contains(self, day: date) -> bool:
        return self.start <= day <= self.end

    def overlaps(self, other: 'DateWindow') -> bool:
        return self.start <= other.end and other.start <= self.end

    def select(self, sessions: Iterable[ActivitySession]) -> List[ActivitySession]:
        """Sessions whose date falls inside the window, input order kept."""
        return [s for s in sessions if self.contains(s.date)]


@dataclass(frozen=True)
class WeekBucket:
    """Aggregate of one 7-day bucket."""
    index: int          # 1-based, oldest first
    start: date
    end: date
    distance_km: float
    count: int


def _as_date(now) -> date:
    if isinstance(now, datetime):
        return now.date()
    return now


def week_start(day) -> date:
    """Monday of the week containing `day` (Sunday belongs to the week that started 6 days before)."""
    day = _as_date(day)
    return day - timedelta(days=day.weekday())


def current_week_window(now) -> DateWindow:
    monday = week_start(now)
    return DateWindow(start=monday, end=monday + timedelta(days=DAYS_PER_WEEK - 1))


def trailing_4_weeks_window(now) -> DateWindow:
    """Four complete weeks ending the Sunday before the current week."""
    monday = week_start(now)
    return DateWindow(
        start=monday - timedelta(days=TRAILING_WEEKS * DAYS_PER_WEEK),
        end=monday - timedelta(days=1),
    )


def bucket_into_weeks(
    sessions: Iterable[ActivitySession],
    window_start: date,
    weeks: int = TRAILING_WEEKS
) -> List[WeekBucket]:
    """Split sessions into `weeks` consecutive 7-day buckets starting at `window_start`."""
    sessions = list(sessions)
    buckets = []
    for i in range(weeks):
        start = window_start + timedelta(days=i * DAYS_PER_WEEK)
        end = start + timedelta(days=DAYS_PER_WEEK - 1)
        in_week = [s for s in sessions if start <= s.date <= end]
        buckets.append(WeekBucket(
            index=i + 1,
            start=start,
            end=end,
            distance_km=round_km(sum(s.distance_km for s in in_week)),
            count=len(in_week),
        ))
    return buckets
