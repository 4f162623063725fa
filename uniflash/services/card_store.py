from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from datetime import date, datetime, timedelta
from typing import Callable, List, Optional, Sequence, TypeVar

from fastapi.concurrency import run_in_threadpool
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session as DBSession, select

from uniflash.db.schemas import Flashcard, ReviewSession, StudyStreak
from uniflash.models.common import as_utc, utcnow
from uniflash.models.flashcard import FlashcardRead
from uniflash.models.review import ReviewSessionRead, StreakRead
from uniflash.services.errors import CardNotFoundError, StoreUnavailableError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class CardStore(ABC):
    """Persistence used by the review session engine."""

    @abstractmethod
    async def fetch_due_cards(
        self, set_ids: Optional[Sequence[int]] = None, now: Optional[datetime] = None
    ) -> List[FlashcardRead]:
        """Cards with ``next_review <= now``, oldest due first; empty ``set_ids`` means every set."""
        raise NotImplementedError

    @abstractmethod
    async def apply_schedule(
        self, card_id: int, interval_days: int, next_review: datetime, reviewed_at: datetime
    ) -> None:
        """Write ``interval_days``, ``next_review`` and ``last_reviewed`` together."""
        raise NotImplementedError

    @abstractmethod
    async def set_flag(self, card_id: int, flagged: bool) -> None:
        raise NotImplementedError

    @abstractmethod
    async def set_notes(self, card_id: int, text: str) -> None:
        raise NotImplementedError

    @abstractmethod
    async def record_session(self, cards_reviewed: int, time_spent: int, created_at: datetime) -> ReviewSessionRead:
        raise NotImplementedError

    @abstractmethod
    async def fetch_streak(self, now: Optional[datetime] = None) -> StreakRead:
        raise NotImplementedError


def advance_streak(streak: StudyStreak, study_day: date) -> StudyStreak:
    """Fold one study day into the aggregate row."""
    last = streak.last_study_date
    if last is None or study_day > last + timedelta(days=1):
        streak.current_streak = 1
    elif study_day == last + timedelta(days=1):
        streak.current_streak += 1
    elif study_day == last:
        streak.current_streak = max(streak.current_streak, 1)
    else:
        # backdated record, the run ending at ``last`` is unaffected
        return streak
    streak.last_study_date = study_day
    streak.longest_streak = max(streak.longest_streak, streak.current_streak)
    return streak


def visible_streak(streak: Optional[StudyStreak], today: date) -> StreakRead:
    if streak is None:
        return StreakRead()
    current = streak.current_streak
    if streak.last_study_date is None or streak.last_study_date < today - timedelta(days=1):
        current = 0
    return StreakRead(current_streak=current, longest_streak=streak.longest_streak)


class SQLCardStore(CardStore):
    def __init__(self, engine) -> None:
        self.engine = engine

    async def _run(self, func: Callable[..., T], *args) -> T:
        try:
            return await run_in_threadpool(func, *args)
        except SQLAlchemyError as exc:
            logger.warning("Card store operation %s failed: %s", func.__name__, exc)
            raise StoreUnavailableError(str(exc)) from exc

    async def fetch_due_cards(
        self, set_ids: Optional[Sequence[int]] = None, now: Optional[datetime] = None
    ) -> List[FlashcardRead]:
        return await self._run(self._fetch_due_cards, list(set_ids or []), now or utcnow())

    async def apply_schedule(
        self, card_id: int, interval_days: int, next_review: datetime, reviewed_at: datetime
    ) -> None:
        await self._run(self._apply_schedule, card_id, interval_days, next_review, reviewed_at)

    async def set_flag(self, card_id: int, flagged: bool) -> None:
        await self._run(self._update_field, card_id, "is_flagged", flagged)

    async def set_notes(self, card_id: int, text: str) -> None:
        await self._run(self._update_field, card_id, "notes", text)

    async def record_session(self, cards_reviewed: int, time_spent: int, created_at: datetime) -> ReviewSessionRead:
        return await self._run(self._record_session, cards_reviewed, time_spent, created_at)

    async def fetch_streak(self, now: Optional[datetime] = None) -> StreakRead:
        return await self._run(self._fetch_streak, now or utcnow())

    def _fetch_due_cards(self, set_ids: List[int], now: datetime) -> List[FlashcardRead]:
        with DBSession(self.engine) as session:
            statement = (
                select(Flashcard)
                .where(Flashcard.next_review <= now)
                .order_by(Flashcard.next_review, Flashcard.id)
            )
            if set_ids:
                statement = statement.where(Flashcard.set_id.in_(set_ids))
            rows = session.exec(statement).all()
            return [FlashcardRead.model_validate(row) for row in rows]

    def _apply_schedule(self, card_id: int, interval_days: int, next_review: datetime, reviewed_at: datetime) -> None:
        with DBSession(self.engine) as session:
            card = session.get(Flashcard, card_id)
            if not card:
                raise CardNotFoundError(card_id)
            card.interval_days = interval_days
            card.next_review = next_review
            card.last_reviewed = reviewed_at
            card.updated_at = reviewed_at
            session.add(card)
            session.commit()

    def _update_field(self, card_id: int, field: str, value) -> None:
        with DBSession(self.engine) as session:
            card = session.get(Flashcard, card_id)
            if not card:
                raise CardNotFoundError(card_id)
            setattr(card, field, value)
            card.updated_at = utcnow()
            session.add(card)
            session.commit()

    def _record_session(self, cards_reviewed: int, time_spent: int, created_at: datetime) -> ReviewSessionRead:
        with DBSession(self.engine) as session:
            record = ReviewSession(cards_reviewed=cards_reviewed, time_spent=time_spent, created_at=created_at)
            session.add(record)
            streak = session.exec(select(StudyStreak)).first() or StudyStreak()
            advance_streak(streak, as_utc(created_at).date())
            streak.updated_at = utcnow()
            session.add(streak)
            session.commit()
            session.refresh(record)
            return ReviewSessionRead.model_validate(record)

    def _fetch_streak(self, now: datetime) -> StreakRead:
        with DBSession(self.engine) as session:
            streak = session.exec(select(StudyStreak)).first()
            return visible_streak(streak, as_utc(now).date())
