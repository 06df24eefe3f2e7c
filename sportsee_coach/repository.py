"""
SportSee Coach Repository Layer
===============================

Read-only access to the Activity Store. The coach never writes sessions;
every method returns domain dataclasses, not ORM rows.
"""

from typing import Optional, List, Protocol
from datetime import date
from sqlalchemy.orm import Session

from sportsee_coach.sessions import ActivitySession, HeartRate, UserProfile, NutritionStatistics
import models  # Main app models


class ActivityStore(Protocol):
    """What the coach needs from a data source."""

    def get_profile(self, user_id: int) -> Optional[UserProfile]:
        ...

    def get_statistics(self, user_id: int) -> Optional[NutritionStatistics]:
        ...

    def get_activities(
        self,
        user_id: int,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None
    ) -> List[ActivitySession]:
        ...


class ActivityRepository:
    """SQLAlchemy-backed ActivityStore."""

    def __init__(self, db: Session):
        self.db = db

    def user_exists(self, user_id: int) -> bool:
        return self.db.query(models.User.id).filter(models.User.id == user_id).first() is not None

    def get_profile(self, user_id: int) -> Optional[UserProfile]:
        user = self.db.query(models.User).filter(models.User.id == user_id).first()
        if not user:
            return None
        return UserProfile(first_name=user.first_name, last_name=user.last_name)

    def get_statistics(self, user_id: int) -> Optional[NutritionStatistics]:
        row = self.db.query(models.UserStatistics).filter(
            models.UserStatistics.user_id == user_id
        ).first()
        if not row:
            return None
        return NutritionStatistics(
            calorie_count=row.calorie_count,
            protein_count=row.protein_count,
            carbohydrate_count=row.carbohydrate_count,
            lipid_count=row.lipid_count,
        )

    def get_activities(
        self,
        user_id: int,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None
    ) -> List[ActivitySession]:
        """Sessions in [start_date, end_date] (both optional), oldest first."""
        query = self.db.query(models.Activity).filter(models.Activity.user_id == user_id)
        if start_date:
            query = query.filter(models.Activity.session_date >= start_date)
        if end_date:
            query = query.filter(models.Activity.session_date <= end_date)

        rows = query.order_by(models.Activity.session_date.asc(), models.Activity.id.asc()).all()
        return [self._to_session(row) for row in rows if row.session_date is not None]

    @staticmethod
    def _to_session(row: models.Activity) -> ActivitySession:
        heart_rate = None
        if row.hr_avg or row.hr_min or row.hr_max:
            heart_rate = HeartRate(min=row.hr_min or 0, max=row.hr_max or 0, average=row.hr_avg or 0)
        return ActivitySession(
            date=row.session_date,
            distance_km=float(row.distance or 0),
            duration_min=int(row.duration or 0),
            heart_rate=heart_rate,
            calories_burned=row.calories_burned or 0,
        )
