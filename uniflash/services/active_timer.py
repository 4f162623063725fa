from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
from typing import Optional


def _elapsed_ms(start: datetime, now: datetime) -> int:
    return max(0, int((now - start).total_seconds() * 1000))


@dataclass(frozen=True)
class ActiveTimer:
    """Active study time of one review session.

    ``card_started_at`` is ``None`` whenever the clock is stopped (slide
    overlay open, between cards, after the session ends).
    """

    card_started_at: Optional[datetime] = None
    accumulated_ms: int = 0

    @property
    def running(self) -> bool:
        return self.card_started_at is not None

    def start_card(self, now: datetime) -> "ActiveTimer":
        return replace(self, card_started_at=now)

    def pause_for_overlay(self, now: datetime) -> "ActiveTimer":
        return self.commit_elapsed(now)

    def resume_fresh_on_return(self, now: datetime) -> "ActiveTimer":
        return replace(self, card_started_at=now)

    def commit_elapsed(self, now: datetime) -> "ActiveTimer":
        if self.card_started_at is None:
            return self
        return ActiveTimer(
            card_started_at=None,
            accumulated_ms=self.accumulated_ms + _elapsed_ms(self.card_started_at, now),
        )

    def elapsed_ms(self, now: datetime) -> int:
        if self.card_started_at is None:
            return self.accumulated_ms
        return self.accumulated_ms + _elapsed_ms(self.card_started_at, now)

    def total_seconds(self, now: Optional[datetime] = None) -> int:
        total = self.accumulated_ms if now is None else self.elapsed_ms(now)
        return (total + 500) // 1000
