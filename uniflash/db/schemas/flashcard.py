from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import Column, JSON
from sqlmodel import Field, SQLModel


class FlashcardSet(SQLModel, table=True):
    __tablename__ = "flashcard_sets"

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(max_length=255)
    icon: str = Field(default="📚")
    color: str = Field(default="#9333ea")
    description: Optional[str] = Field(default=None)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class Flashcard(SQLModel, table=True):
    __tablename__ = "flashcards"

    id: Optional[int] = Field(default=None, primary_key=True)
    front: str
    back: str
    source_text: Optional[str] = Field(default=None)
    cloze_number: Optional[int] = Field(default=None)
    extractions: list = Field(default_factory=list, sa_column=Column(JSON, nullable=False, default=list))
    set_id: Optional[int] = Field(default=None, foreign_key="flashcard_sets.id", index=True)
    interval_days: int = Field(default=1)
    next_review: datetime = Field(default_factory=lambda: datetime.now(timezone.utc), index=True)
    last_reviewed: Optional[datetime] = Field(default=None)
    is_flagged: bool = Field(default=False)
    notes: Optional[str] = Field(default=None)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
