from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from uniflash.models.common import UTCDateTime
from uniflash.models.flashcard import ClozeExtraction
from uniflash.models.preferences import Rating


class ReviewSessionRead(BaseModel):
    id: int
    cards_reviewed: int
    time_spent: int
    created_at: UTCDateTime

    model_config = ConfigDict(from_attributes=True)


class StreakRead(BaseModel):
    current_streak: int = 0
    longest_streak: int = 0


class ReviewSessionStart(BaseModel):
    set_ids: List[int] = Field(default_factory=list)
    shuffle: Optional[bool] = None


class RatePayload(BaseModel):
    rating: Rating


class ReviewCardView(BaseModel):
    """Current card as displayed; ``prompt``/``answer`` follow reverse mode."""

    id: int
    prompt: str
    answer: Optional[str] = None
    is_cloze: bool = False
    cloze_number: Optional[int] = None
    extractions: List[ClozeExtraction] = Field(default_factory=list)
    is_flagged: bool = False
    notes: Optional[str] = None
    interval_days: int


class ReviewSessionState(BaseModel):
    token: str
    state: str
    index: int
    total: int
    reviewed_count: int
    answer_shown: bool
    reverse_mode: bool
    slide_open: bool
    show_keyboard_hints: bool = True
    active_seconds: int
    card: Optional[ReviewCardView] = None
    summary: Optional[ReviewSessionRead] = None
    streak: Optional[StreakRead] = None


class DashboardRead(BaseModel):
    due_count: int
    cards_reviewed_today: int
    time_spent_today: int
    streak: StreakRead
    generated_at: datetime
