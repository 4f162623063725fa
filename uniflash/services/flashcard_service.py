from __future__ import annotations

from datetime import datetime, timedelta
from typing import List, Optional

from fastapi import HTTPException, status
from sqlalchemy import func, or_
from sqlmodel import Session as DBSession, select

from uniflash.db.schemas import Flashcard, FlashcardSet, ReviewSession
from uniflash.models.common import utcnow
from uniflash.models.flashcard import (
    ClozeCreate,
    FlashcardCreate,
    FlashcardRead,
    FlashcardUpdate,
)
from uniflash.services.cloze import cloze_numbers, parse_cloze, render_cloze, target_word

SPECIAL_FILTERS = {"all", "unassigned", "flagged"}


class FlashcardService:
    def __init__(self, session: DBSession) -> None:
        self.session = session

    def create(self, data: FlashcardCreate) -> FlashcardRead:
        self._ensure_set_exists(data.set_id)
        now = utcnow()
        entity = Flashcard(
            front=data.front,
            back=data.back,
            set_id=data.set_id,
            interval_days=1,
            next_review=now,
            created_at=now,
            updated_at=now,
        )
        self.session.add(entity)
        self.session.commit()
        self.session.refresh(entity)
        return FlashcardRead.model_validate(entity)

    def create_cloze(self, data: ClozeCreate) -> List[FlashcardRead]:
        extractions = parse_cloze(data.source_text)
        if not extractions:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Text has no cloze deletions, use {{c1::word}} markers",
            )
        self._ensure_set_exists(data.set_id)
        now = utcnow()
        payload = [item.model_dump() for item in extractions]
        entities = []
        for number in cloze_numbers(extractions):
            entity = Flashcard(
                front=render_cloze(data.source_text, number),
                back=target_word(extractions, number),
                source_text=data.source_text,
                cloze_number=number,
                extractions=payload,
                set_id=data.set_id,
                interval_days=1,
                next_review=now,
                created_at=now,
                updated_at=now,
            )
            self.session.add(entity)
            entities.append(entity)
        self.session.commit()
        for entity in entities:
            self.session.refresh(entity)
        return [FlashcardRead.model_validate(entity) for entity in entities]

    def get(self, card_id: int) -> FlashcardRead:
        return FlashcardRead.model_validate(self._get_entity(card_id))

    def list_cards(self, *, set_filter: str = "all", search: Optional[str] = None) -> List[FlashcardRead]:
        statement = select(Flashcard).order_by(Flashcard.created_at.desc(), Flashcard.id.desc())
        if set_filter == "unassigned":
            statement = statement.where(Flashcard.set_id.is_(None))
        elif set_filter == "flagged":
            statement = statement.where(Flashcard.is_flagged.is_(True))
        elif set_filter not in SPECIAL_FILTERS:
            try:
                set_id = int(set_filter)
            except ValueError:
                raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Unknown set filter")
            statement = statement.where(Flashcard.set_id == set_id)
        if search and search.strip():
            pattern = f"%{search.strip().lower()}%"
            statement = statement.where(
                or_(func.lower(Flashcard.front).like(pattern), func.lower(Flashcard.back).like(pattern))
            )
        rows = self.session.exec(statement).all()
        return [FlashcardRead.model_validate(row) for row in rows]

    def update(self, card_id: int, data: FlashcardUpdate) -> FlashcardRead:
        card = self._get_entity(card_id)
        update_data = data.model_dump(exclude_unset=True)
        if card.cloze_number is not None and ({"front", "back"} & update_data.keys()):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Cloze cards are generated from their source text, front and back cannot be edited",
            )
        if "set_id" in update_data:
            self._ensure_set_exists(update_data["set_id"])
        for key, value in update_data.items():
            setattr(card, key, value)
        card.updated_at = utcnow()
        self.session.add(card)
        self.session.commit()
        self.session.refresh(card)
        return FlashcardRead.model_validate(card)

    def set_field(self, card_id: int, field: str, value) -> FlashcardRead:
        if field not in {"is_flagged", "notes"}:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"Field {field} is not editable here")
        card = self._get_entity(card_id)
        setattr(card, field, value)
        card.updated_at = utcnow()
        self.session.add(card)
        self.session.commit()
        self.session.refresh(card)
        return FlashcardRead.model_validate(card)

    def delete(self, card_id: int) -> None:
        card = self._get_entity(card_id)
        self.session.delete(card)
        self.session.commit()

    def count_due(self, now: Optional[datetime] = None) -> int:
        now = now or utcnow()
        statement = select(func.count()).select_from(Flashcard).where(Flashcard.next_review <= now)
        return self.session.exec(statement).one()

    def today_totals(self, now: Optional[datetime] = None) -> tuple[int, int]:
        now = now or utcnow()
        start = now.replace(hour=0, minute=0, second=0, microsecond=0)
        statement = (
            select(
                func.coalesce(func.sum(ReviewSession.cards_reviewed), 0),
                func.coalesce(func.sum(ReviewSession.time_spent), 0),
            )
            .where(ReviewSession.created_at >= start)
            .where(ReviewSession.created_at < start + timedelta(days=1))
        )
        cards, seconds = self.session.exec(statement).one()
        return int(cards), int(seconds)

    def _get_entity(self, card_id: int) -> Flashcard:
        card = self.session.get(Flashcard, card_id)
        if not card:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Flashcard not found")
        return card

    def _ensure_set_exists(self, set_id: Optional[int]) -> None:
        if set_id is None:
            return
        if not self.session.get(FlashcardSet, set_id):
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Flashcard set not found")
