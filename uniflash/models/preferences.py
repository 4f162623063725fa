from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class Rating(str, Enum):
    AGAIN = "again"
    HARD = "hard"
    GOOD = "good"
    EASY = "easy"


class IntervalUnit(str, Enum):
    MINUTES = "minutes"
    HOURS = "hours"
    DAYS = "days"
    MULTIPLIER = "multiplier"


class IntervalSetting(BaseModel):
    value: float = Field(gt=0)
    unit: IntervalUnit


class IntervalPolicy(BaseModel):
    """Per-rating interval settings plus the bookkeeping cap, as stored under ``srsIntervalSettings``."""

    again: IntervalSetting
    hard: IntervalSetting
    good: IntervalSetting
    easy: IntervalSetting
    max_days: int = Field(default=365, ge=1, alias="maxDays")
    strict_cap: bool = Field(default=False, alias="strictCap")

    model_config = ConfigDict(populate_by_name=True)


DEFAULT_INTERVAL_POLICY = IntervalPolicy(
    again=IntervalSetting(value=1, unit=IntervalUnit.MINUTES),
    hard=IntervalSetting(value=6, unit=IntervalUnit.MINUTES),
    good=IntervalSetting(value=10, unit=IntervalUnit.MINUTES),
    easy=IntervalSetting(value=4, unit=IntervalUnit.DAYS),
    max_days=365,
)


class PreferencesRead(BaseModel):
    interval_policy: IntervalPolicy
    auto_shuffle_review: bool = False
    show_keyboard_hints: bool = True
    default_flashcard_set: Optional[int] = None


class PreferencesUpdate(BaseModel):
    auto_shuffle_review: Optional[bool] = None
    show_keyboard_hints: Optional[bool] = None
    default_flashcard_set: Optional[int] = None
