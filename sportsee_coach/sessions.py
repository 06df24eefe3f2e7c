"""
SportSee Coach Session Model
============================

Read-only view of the Activity Store.

Sessions come from an external service (database rows or the SportSee
backend JSON). Dates are local calendar dates: they are parsed from their
year/month/day components, never through a timezone-aware parser, so a
session can't drift to the previous or next day.
"""

import logging
from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional, List, Dict, Any, Iterable


@dataclass(frozen=True)
class HeartRate:
    """Heart rate range of one session (BPM). min <= average <= max is expected, not enforced."""
    min: int = 0
    max: int = 0
    average: int = 0


@dataclass(frozen=True)
class ActivitySession:
    """One recorded workout."""
    date: date
    distance_km: float
    duration_min: int
    heart_rate: Optional[HeartRate] = None
    calories_burned: int = 0

    @property
    def iso_date(self) -> str:
        return self.date.isoformat()

    @property
    def avg_bpm(self) -> int:
        """Average BPM, 0 when not recorded."""
        if self.heart_rate and self.heart_rate.average > 0:
            return self.heart_rate.average
        return 0


@dataclass(frozen=True)
class UserProfile:
    first_name: Optional[str] = None
    last_name: Optional[str] = None


@dataclass(frozen=True)
class NutritionStatistics:
    """Dashboard nutrition figures. Absent values stay None (never 0)."""
    calorie_count: Optional[int] = None
    protein_count: Optional[int] = None
    carbohydrate_count: Optional[int] = None
    lipid_count: Optional[int] = None


def parse_local_date(value) -> date:
    """
    Parse a 'YYYY-MM-DD' calendar date from its components.

    Accepts date/datetime objects as-is (datetime is reduced to its date).
    Raises ValueError on anything else that does not look like a date.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        raise ValueError(f"Not a date: {value!r}")

    parts = value.strip()[:10].split('-')
    if len(parts) != 3 or len(parts[0]) != 4:
        raise ValueError(f"Not a YYYY-MM-DD date: {value!r}")
    year, month, day = (int(p) for p in parts)
    return date(year, month, day)


def _first(raw: Dict[str, Any], *keys, default=None):
    for key in keys:
        if raw.get(key) is not None:
            return raw[key]
    return default


def _optional_int(value) -> Optional[int]:
    if value is None or value == '':
        return None
    return int(round(float(value)))


def parse_heart_rate(raw) -> Optional[HeartRate]:
    if raw is None:
        return None
    if isinstance(raw, HeartRate):
        return raw
    if isinstance(raw, (int, float)):
        # Older payloads carry only the average
        return HeartRate(average=int(raw))
    return HeartRate(
        min=_optional_int(raw.get('min')) or 0,
        max=_optional_int(raw.get('max')) or 0,
        average=_optional_int(raw.get('average')) or 0,
    )


def parse_session(raw) -> ActivitySession:
    """
    Build an ActivitySession from a SportSee payload dict.

    Raises ValueError/TypeError/KeyError on malformed input.
    """
    if isinstance(raw, ActivitySession):
        return raw

    session_date = parse_local_date(raw['date'])
    distance = float(_first(raw, 'distance', 'distanceKm', 'distance_km', default=0))
    duration = _optional_int(_first(raw, 'duration', 'durationMin', 'duration_min', default=0)) or 0
    if distance < 0 or duration < 0:
        raise ValueError(f"Negative distance/duration on {session_date}")

    return ActivitySession(
        date=session_date,
        distance_km=distance,
        duration_min=duration,
        heart_rate=parse_heart_rate(_first(raw, 'heartRate', 'heart_rate')),
        calories_burned=_optional_int(_first(raw, 'caloriesBurned', 'calories_burned', default=0)) or 0,
    )


def parse_sessions(raw_sessions: Optional[Iterable]) -> List[ActivitySession]:
    """Parse a sequence of sessions, skipping entries that can't be parsed."""
    sessions = []
    for raw in raw_sessions or []:
        try:
            sessions.append(parse_session(raw))
        except (ValueError, TypeError, KeyError, AttributeError) as e:
            logging.warning(f"Skipping malformed activity session {raw!r}: {e}")
    return sessions


def parse_profile(raw) -> Optional[UserProfile]:
    if raw is None or isinstance(raw, UserProfile):
        return raw
    return UserProfile(
        first_name=_first(raw, 'firstName', 'first_name'),
        last_name=_first(raw, 'lastName', 'last_name'),
    )


def parse_statistics(raw) -> Optional[NutritionStatistics]:
    if raw is None or isinstance(raw, NutritionStatistics):
        return raw
    try:
        return NutritionStatistics(
            calorie_count=_optional_int(_first(raw, 'calorieCount', 'calorie_count')),
            protein_count=_optional_int(_first(raw, 'proteinCount', 'protein_count')),
            carbohydrate_count=_optional_int(_first(raw, 'carbohydrateCount', 'carbohydrate_count')),
            lipid_count=_optional_int(_first(raw, 'lipidCount', 'lipid_count')),
        )
    except (ValueError, TypeError) as e:
        logging.warning(f"Ignoring malformed nutrition statistics: {e}")
        return None
