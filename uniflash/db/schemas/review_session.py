from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Optional

from sqlmodel import Field, SQLModel


class ReviewSession(SQLModel, table=True):
    __tablename__ = "review_sessions"

    id: Optional[int] = Field(default=None, primary_key=True)
    cards_reviewed: int
    time_spent: int
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc), index=True)


class StudyStreak(SQLModel, table=True):
    """Single aggregate row maintained whenever a review session is stored."""

    __tablename__ = "study_streaks"

    id: Optional[int] = Field(default=None, primary_key=True)
    current_streak: int = Field(default=0)
    longest_streak: int = Field(default=0)
    last_study_date: Optional[date] = Field(default=None)
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
