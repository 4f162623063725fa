from __future__ import annotations

import logging
import random
from datetime import datetime
from enum import Enum
from typing import Callable, Dict, List, MutableSequence, Optional, Sequence, TypeVar
from uuid import uuid4

from uniflash.models.common import utcnow
from uniflash.models.flashcard import FlashcardRead
from uniflash.models.preferences import IntervalPolicy, Rating
from uniflash.models.review import ReviewCardView, ReviewSessionRead, ReviewSessionState, StreakRead
from uniflash.services.active_timer import ActiveTimer
from uniflash.services.card_store import CardStore
from uniflash.services.cloze import render_cloze, target_word
from uniflash.services.errors import (
    RatingInProgressError,
    ReviewSessionNotFoundError,
    SessionStateError,
    StoreUnavailableError,
)
from uniflash.services.interval_policy import compute_next_schedule

logger = logging.getLogger(__name__)

T = TypeVar("T")


class SessionPhase(str, Enum):
    IDLE = "idle"
    EMPTY = "empty"
    ANSWER_HIDDEN = "answer_hidden"
    ANSWER_SHOWN = "answer_shown"
    SUMMARY_PENDING = "summary_pending"
    FINISHED = "finished"
    ABANDONED = "abandoned"


ACTIVE_PHASES = {SessionPhase.ANSWER_HIDDEN, SessionPhase.ANSWER_SHOWN}


def fisher_yates_shuffle(items: MutableSequence[T], rng: Optional[random.Random] = None) -> MutableSequence[T]:
    rng = rng or random.Random()
    for i in range(len(items) - 1, 0, -1):
        j = rng.randint(0, i)
        items[i], items[j] = items[j], items[i]
    return items


class ReviewSessionEngine:
    """One review session: due cards in, schedule updates and a session summary out.

    Ratings are applied one at a time. The engine only moves to the next card
    once the store has accepted the schedule update for the current one.
    """

    def __init__(
        self,
        store: CardStore,
        policy: IntervalPolicy,
        *,
        set_ids: Optional[Sequence[int]] = None,
        shuffle_enabled: bool = False,
        show_keyboard_hints: bool = True,
        clock: Callable[[], datetime] = utcnow,
        rng: Optional[random.Random] = None,
        token: Optional[str] = None,
    ) -> None:
        self.store = store
        self.policy = policy
        self.set_ids = list(set_ids or [])
        self.shuffle_enabled = shuffle_enabled
        self.show_keyboard_hints = show_keyboard_hints
        self.clock = clock
        self.rng = rng or random.Random()
        self.token = token or uuid4().hex

        self.phase = SessionPhase.IDLE
        self.cards: List[FlashcardRead] = []
        self.index = 0
        self.reviewed_count = 0
        self.reverse_mode = False
        self.slide_open = False
        self.timer = ActiveTimer()
        self.summary: Optional[ReviewSessionRead] = None
        self.streak: Optional[StreakRead] = None
        self._rating_in_flight = False
        self._finish_in_flight = False
        self._card_writes_in_flight = 0

    @property
    def current_card(self) -> Optional[FlashcardRead]:
        if self.phase not in ACTIVE_PHASES:
            return None
        return self.cards[self.index]

    async def load(self) -> SessionPhase:
        if self.phase is not SessionPhase.IDLE:
            raise SessionStateError(f"Session already loaded ({self.phase.value})")
        cards = await self.store.fetch_due_cards(self.set_ids, self.clock())
        if not cards:
            self.phase = SessionPhase.EMPTY
            logger.info("Review session %s: no due cards", self.token)
            return self.phase
        self.cards = list(cards)
        if self.shuffle_enabled:
            fisher_yates_shuffle(self.cards, self.rng)
        self.index = 0
        self._show_card()
        logger.info("Review session %s started with %d cards", self.token, len(self.cards))
        return self.phase

    def reveal(self) -> None:
        self._require_active()
        self.phase = SessionPhase.ANSWER_SHOWN

    def open_slide(self) -> None:
        self._require_active()
        if not self.slide_open:
            self.slide_open = True
            self.timer = self.timer.pause_for_overlay(self.clock())

    def close_slide(self) -> None:
        self._require_active()
        if self.slide_open:
            self.slide_open = False
            self.timer = self.timer.resume_fresh_on_return(self.clock())

    def toggle_reverse(self) -> bool:
        self.reverse_mode = not self.reverse_mode
        return self.reverse_mode

    def refresh_policy(self, policy: IntervalPolicy) -> None:
        self.policy = policy

    def shuffle_now(self) -> None:
        self._require_active()
        if self._rating_in_flight:
            raise RatingInProgressError("Cannot shuffle while a rating is being saved")
        if self._card_writes_in_flight:
            raise SessionStateError("Cannot shuffle while a card update is being saved")
        now = self.clock()
        remaining = self.cards[self.index:]
        fisher_yates_shuffle(remaining, self.rng)
        self.cards = remaining
        self.index = 0
        self.timer = self.timer.commit_elapsed(now)
        self._show_card(now)

    async def toggle_flag(self) -> bool:
        card = self._require_card()
        flagged = not card.is_flagged
        self._card_writes_in_flight += 1
        try:
            await self.store.set_flag(card.id, flagged)
        finally:
            self._card_writes_in_flight -= 1
        self._update_card(card.id, is_flagged=flagged)
        return flagged

    async def save_notes(self, text: str) -> None:
        card = self._require_card()
        self._card_writes_in_flight += 1
        try:
            await self.store.set_notes(card.id, text)
        finally:
            self._card_writes_in_flight -= 1
        self._update_card(card.id, notes=text)

    async def rate(self, rating: Rating | str) -> SessionPhase:
        if self._rating_in_flight:
            raise RatingInProgressError("A rating for this session is still being saved")
        if self.phase is not SessionPhase.ANSWER_SHOWN:
            raise SessionStateError(f"Cannot rate in state {self.phase.value}")
        if self.slide_open:
            raise SessionStateError("Close the source slide before rating")
        card = self.cards[self.index]
        now = self.clock()
        schedule = compute_next_schedule(rating, card.interval_days, self.policy, now)

        self._rating_in_flight = True
        try:
            await self.store.apply_schedule(card.id, schedule.interval_days, schedule.next_review, now)
        finally:
            self._rating_in_flight = False

        if self.phase is SessionPhase.ABANDONED:
            return self.phase
        self.timer = self.timer.commit_elapsed(self.clock())
        self.reviewed_count += 1
        if self.index < len(self.cards) - 1:
            self.index += 1
            self._show_card()
            return self.phase

        self.phase = SessionPhase.SUMMARY_PENDING
        try:
            await self.finish()
        except StoreUnavailableError:
            logger.warning("Review session %s: summary not saved, waiting for retry", self.token)
        return self.phase

    async def finish(self) -> ReviewSessionRead:
        if self.phase is not SessionPhase.SUMMARY_PENDING:
            raise SessionStateError(f"Cannot finish in state {self.phase.value}")
        if self._finish_in_flight:
            raise SessionStateError("Session summary is already being saved")
        now = self.clock()
        self.timer = self.timer.commit_elapsed(now)
        self._finish_in_flight = True
        try:
            self.summary = await self.store.record_session(self.reviewed_count, self.timer.total_seconds(), now)
        finally:
            self._finish_in_flight = False
        self.phase = SessionPhase.FINISHED
        logger.info(
            "Review session %s finished: %d cards in %ds",
            self.token,
            self.summary.cards_reviewed,
            self.summary.time_spent,
        )
        try:
            self.streak = await self.store.fetch_streak(now)
        except StoreUnavailableError:
            logger.warning("Review session %s: streak refresh failed", self.token)
            self.streak = None
        return self.summary

    def abandon(self) -> None:
        if self.phase in {SessionPhase.FINISHED, SessionPhase.ABANDONED}:
            return
        logger.info("Review session %s abandoned after %d ratings", self.token, self.reviewed_count)
        self.phase = SessionPhase.ABANDONED
        self.cards = []
        self.timer = ActiveTimer()

    def snapshot(self) -> ReviewSessionState:
        card = self.current_card
        return ReviewSessionState(
            token=self.token,
            state=self.phase.value,
            index=self.index,
            total=len(self.cards),
            reviewed_count=self.reviewed_count,
            answer_shown=self.phase is SessionPhase.ANSWER_SHOWN,
            reverse_mode=self.reverse_mode,
            slide_open=self.slide_open,
            show_keyboard_hints=self.show_keyboard_hints,
            active_seconds=self.timer.total_seconds(self.clock()),
            card=self._card_view(card) if card else None,
            summary=self.summary,
            streak=self.streak,
        )

    def _show_card(self, now: Optional[datetime] = None) -> None:
        self.phase = SessionPhase.ANSWER_HIDDEN
        self.slide_open = False
        self.timer = self.timer.start_card(now or self.clock())

    def _update_card(self, card_id: int, **changes) -> None:
        # the current index may have moved while the store write was pending
        for position, item in enumerate(self.cards):
            if item.id == card_id:
                self.cards[position] = item.model_copy(update=changes)
                return

    def _require_active(self) -> None:
        if self.phase not in ACTIVE_PHASES:
            raise SessionStateError(f"No card is being reviewed ({self.phase.value})")

    def _require_card(self) -> FlashcardRead:
        self._require_active()
        return self.cards[self.index]

    def _card_view(self, card: FlashcardRead) -> ReviewCardView:
        shown = self.phase is SessionPhase.ANSWER_SHOWN
        if card.source_text and card.cloze_number is not None:
            front = render_cloze(card.source_text, card.cloze_number)
            back = target_word(card.extractions, card.cloze_number) or card.back
        else:
            front, back = card.front, card.back
        if self.reverse_mode:
            front, back = back, front
        return ReviewCardView(
            id=card.id,
            prompt=front,
            answer=back if shown else None,
            is_cloze=card.cloze_number is not None,
            cloze_number=card.cloze_number,
            extractions=card.extractions,
            is_flagged=card.is_flagged,
            notes=card.notes,
            interval_days=card.interval_days,
        )


class ReviewSessionRegistry:
    """Live review sessions keyed by token, kept between HTTP requests."""

    def __init__(self) -> None:
        self._sessions: Dict[str, ReviewSessionEngine] = {}

    def add(self, engine: ReviewSessionEngine) -> ReviewSessionEngine:
        self._sessions[engine.token] = engine
        return engine

    def get(self, token: str) -> ReviewSessionEngine:
        engine = self._sessions.get(token)
        if engine is None:
            raise ReviewSessionNotFoundError(token)
        return engine

    def release_if_finished(self, engine: ReviewSessionEngine) -> None:
        """Forget a session once its summary is stored; its last snapshot is final."""
        if engine.phase is SessionPhase.FINISHED:
            self._sessions.pop(engine.token, None)

    def discard(self, token: str) -> None:
        engine = self._sessions.pop(token, None)
        if engine is None:
            raise ReviewSessionNotFoundError(token)
        engine.abandon()

    def __len__(self) -> int:
        return len(self._sessions)
