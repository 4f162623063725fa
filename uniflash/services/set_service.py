from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from fastapi import HTTPException, status
from sqlmodel import Session as DBSession, select

from uniflash.db.schemas import Flashcard, FlashcardSet
from uniflash.models.common import as_utc, utcnow
from uniflash.models.flashcard import (
    FlaggedSetCreate,
    FlashcardSetCreate,
    FlashcardSetRead,
    FlashcardSetStatsRead,
    FlashcardSetUpdate,
)

FLAGGED_SET_COLOR = "#ef4444"
FLAGGED_SET_ICON = "🚩"


class SetService:
    def __init__(self, session: DBSession) -> None:
        self.session = session

    def create(self, data: FlashcardSetCreate) -> FlashcardSetRead:
        entity = FlashcardSet(**data.model_dump())
        self.session.add(entity)
        self.session.commit()
        self.session.refresh(entity)
        return FlashcardSetRead.model_validate(entity)

    def list_with_stats(self, now: Optional[datetime] = None) -> List[FlashcardSetStatsRead]:
        now = now or utcnow()
        sets = self.session.exec(select(FlashcardSet).order_by(FlashcardSet.name)).all()
        cards = self.session.exec(select(Flashcard.set_id, Flashcard.next_review).where(Flashcard.set_id.is_not(None))).all()
        totals: dict[int, int] = {}
        due: dict[int, int] = {}
        for set_id, next_review in cards:
            totals[set_id] = totals.get(set_id, 0) + 1
            if as_utc(next_review) <= now:
                due[set_id] = due.get(set_id, 0) + 1
        return [
            FlashcardSetStatsRead(
                **FlashcardSetRead.model_validate(item).model_dump(),
                total_cards=totals.get(item.id, 0),
                due_cards=due.get(item.id, 0),
            )
            for item in sets
        ]

    def update(self, set_id: int, data: FlashcardSetUpdate) -> FlashcardSetRead:
        entity = self._get_entity(set_id)
        for key, value in data.model_dump(exclude_unset=True).items():
            setattr(entity, key, value)
        self.session.add(entity)
        self.session.commit()
        self.session.refresh(entity)
        return FlashcardSetRead.model_validate(entity)

    def delete(self, set_id: int) -> None:
        entity = self._get_entity(set_id)
        cards = self.session.exec(select(Flashcard).where(Flashcard.set_id == set_id)).all()
        for card in cards:
            card.set_id = None
            self.session.add(card)
        self.session.delete(entity)
        self.session.commit()

    def create_from_flagged(self, data: FlaggedSetCreate) -> FlashcardSetStatsRead:
        flagged = self.session.exec(select(Flashcard).where(Flashcard.is_flagged.is_(True))).all()
        if not flagged:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No flagged flashcards to create a set from")
        entity = FlashcardSet(
            name=data.name.strip(),
            description="Collection of flagged difficult cards",
            color=FLAGGED_SET_COLOR,
            icon=FLAGGED_SET_ICON,
        )
        self.session.add(entity)
        self.session.flush()
        for card in flagged:
            card.set_id = entity.id
            self.session.add(card)
        self.session.commit()
        self.session.refresh(entity)
        now = utcnow()
        return FlashcardSetStatsRead(
            **FlashcardSetRead.model_validate(entity).model_dump(),
            total_cards=len(flagged),
            due_cards=sum(1 for card in flagged if as_utc(card.next_review) <= now),
        )

    def unflag_cards(self, set_id: int) -> int:
        self._get_entity(set_id)
        cards = self.session.exec(
            select(Flashcard).where(Flashcard.set_id == set_id).where(Flashcard.is_flagged.is_(True))
        ).all()
        for card in cards:
            card.is_flagged = False
            self.session.add(card)
        self.session.commit()
        return len(cards)

    def _get_entity(self, set_id: int) -> FlashcardSet:
        entity = self.session.get(FlashcardSet, set_id)
        if not entity:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Flashcard set not found")
        return entity
