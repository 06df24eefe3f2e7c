"""
SportSee Coach Data Statistics
==============================

Ground truth used by the response validator and the fallback generator.
Always recomputed from the raw sessions and `now`: never cache it, the
window moves with the date.
"""

import math
from dataclasses import dataclass, field
from typing import Dict, List, Iterable, Optional

from sportsee_coach.sessions import ActivitySession, parse_sessions
from sportsee_coach.windows import (
    DateWindow, TRAILING_WEEKS, bucket_into_weeks, current_week_window, trailing_4_weeks_window, round_km
)


def round_half_up(value: float) -> int:
    """Round .5 away from zero for positive values (2.5 -> 3, not banker's rounding)."""
    return int(math.floor(value + 0.5))


def format_number(value: float) -> str:
    """12.3 -> '12.3', 20.0 -> '20'."""
    return f"{value:g}"


@dataclass(frozen=True)
class WeekTotals:
    km: float
    count: int


@dataclass
class DataStatistics:
    """Aggregates over the trailing 4 complete weeks."""
    total_activities: int = 0
    total_km: float = 0.0
    avg_bpm: int = 0
    min_bpm: int = 0
    max_bpm: int = 0
    activities_per_week: float = 0.0
    weeks: Dict[str, WeekTotals] = field(default_factory=dict)
    window: Optional[DateWindow] = None


@dataclass(frozen=True)
class HeartRateSummary:
    """Min/max/avg over a group of sessions, 0 where nothing was recorded."""
    sessions: int = 0
    average: int = 0
    min: int = 0
    max: int = 0


def calculate_data_statistics(activities: Iterable, now) -> DataStatistics:
    sessions = parse_sessions(activities)
    window = trailing_4_weeks_window(now)
    recent = window.select(sessions)

    stats = DataStatistics(window=window)
    if not recent:
        return stats

    stats.total_activities = len(recent)
    stats.total_km = round_km(sum(s.distance_km for s in recent))
    stats.activities_per_week = round(len(recent) / TRAILING_WEEKS, 1)

    bpms = [s.avg_bpm for s in recent if s.avg_bpm > 0]
    if bpms:
        stats.avg_bpm = round_half_up(sum(bpms) / len(bpms))
        stats.min_bpm = min(bpms)
        stats.max_bpm = max(bpms)

    for bucket in bucket_into_weeks(recent, window.start):
        stats.weeks[bucket.start.isoformat()] = WeekTotals(km=bucket.distance_km, count=bucket.count)

    return stats


def summarize_heart_rate(sessions: List[ActivitySession]) -> HeartRateSummary:
    """Use per-session min/max when present; average is the mean of session averages."""
    rates = [s.heart_rate for s in sessions if s.heart_rate]
    averages = [hr.average for hr in rates if hr.average > 0]
    minimums = [hr.min for hr in rates if hr.min > 0]
    maximums = [hr.max for hr in rates if hr.max > 0]
    return HeartRateSummary(
        sessions=len(sessions),
        average=round_half_up(sum(averages) / len(averages)) if averages else 0,
        min=min(minimums) if minimums else 0,
        max=max(maximums) if maximums else 0,
    )


def current_week_sessions(activities: Iterable, now) -> List[ActivitySession]:
    return current_week_window(now).select(parse_sessions(activities))
