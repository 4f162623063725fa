from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, Field, ConfigDict

from uniflash.models.common import UTCDateTime


class ClozeExtraction(BaseModel):
    number: int
    word: str


class FlashcardRead(BaseModel):
    id: int
    front: str
    back: str
    source_text: Optional[str] = None
    cloze_number: Optional[int] = None
    extractions: List[ClozeExtraction] = Field(default_factory=list)
    set_id: Optional[int] = None
    interval_days: int
    next_review: UTCDateTime
    last_reviewed: Optional[UTCDateTime] = None
    is_flagged: bool = False
    notes: Optional[str] = None
    created_at: UTCDateTime
    updated_at: UTCDateTime

    model_config = ConfigDict(from_attributes=True)


class FlashcardCreate(BaseModel):
    front: str = Field(min_length=1)
    back: str = Field(min_length=1)
    set_id: Optional[int] = None


class ClozeCreate(BaseModel):
    source_text: str = Field(min_length=1)
    set_id: Optional[int] = None


class FlashcardUpdate(BaseModel):
    front: Optional[str] = None
    back: Optional[str] = None
    set_id: Optional[int] = None


class FlagPayload(BaseModel):
    is_flagged: bool


class NotesPayload(BaseModel):
    notes: str = ""


class FlashcardSetBase(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    icon: str = "📚"
    color: str = "#9333ea"
    description: Optional[str] = None


class FlashcardSetCreate(FlashcardSetBase):
    pass


class FlashcardSetUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    icon: Optional[str] = None
    color: Optional[str] = None
    description: Optional[str] = None


class FlashcardSetRead(FlashcardSetBase):
    id: int
    created_at: UTCDateTime

    model_config = ConfigDict(from_attributes=True)


class FlashcardSetStatsRead(FlashcardSetRead):
    total_cards: int = 0
    due_cards: int = 0


class FlaggedSetCreate(BaseModel):
    name: str = Field(default="Difficult Cards", min_length=1, max_length=255)
