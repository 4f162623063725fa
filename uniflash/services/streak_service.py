from __future__ import annotations

from datetime import datetime
from typing import Optional

from uniflash.models.review import StreakRead
from uniflash.services.card_store import CardStore


class StreakService:
    """Read side of the study streak; the store keeps the aggregate current."""

    def __init__(self, store: CardStore) -> None:
        self.store = store

    async def fetch_streak(self, now: Optional[datetime] = None) -> StreakRead:
        return await self.store.fetch_streak(now)
