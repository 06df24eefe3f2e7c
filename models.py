from sqlalchemy import Column, Integer, String, Float, DateTime, Date, ForeignKey
from sqlalchemy.orm import relationship
from database import Base
from datetime import datetime

class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    first_name = Column(String, nullable=True)
    last_name = Column(String, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    # Simple profile metrics shown on the profile page
    age = Column(Integer, nullable=True)
    weight = Column(Float, nullable=True)
    height = Column(Integer, nullable=True)
    gender = Column(String, nullable=True)

    activities = relationship("Activity", back_populates="user")
    statistics = relationship("UserStatistics", back_populates="user", uselist=False)


class UserStatistics(Base):
    """Daily nutrition figures shown on the dashboard (all optional)."""
    __tablename__ = "user_statistics"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), unique=True)

    calorie_count = Column(Integer, nullable=True)
    protein_count = Column(Integer, nullable=True)
    carbohydrate_count = Column(Integer, nullable=True)
    lipid_count = Column(Integer, nullable=True)

    user = relationship("User", back_populates="statistics")


class Activity(Base):
    __tablename__ = "activities"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), index=True)

    session_date = Column(Date, index=True)  # Local calendar date, no timezone
    distance = Column(Float)                  # km
    duration = Column(Integer)                # minutes
    hr_min = Column(Integer, nullable=True)
    hr_max = Column(Integer, nullable=True)
    hr_avg = Column(Integer, nullable=True)
    calories_burned = Column(Integer, nullable=True)

    user = relationship("User", back_populates="activities")
