from fastapi import APIRouter, Depends

from uniflash.api.dependencies import get_flashcard_service, get_streak_service
from uniflash.models.common import utcnow
from uniflash.models.review import DashboardRead, StreakRead
from uniflash.services.flashcard_service import FlashcardService
from uniflash.services.streak_service import StreakService

router = APIRouter(tags=["stats"])


@router.get("/streak", response_model=StreakRead)
async def get_streak(service: StreakService = Depends(get_streak_service)) -> StreakRead:
    return await service.fetch_streak()


@router.get("/dashboard", response_model=DashboardRead)
async def get_dashboard(
    flashcards: FlashcardService = Depends(get_flashcard_service),
    streaks: StreakService = Depends(get_streak_service),
) -> DashboardRead:
    now = utcnow()
    cards_reviewed, time_spent = flashcards.today_totals(now)
    return DashboardRead(
        due_count=flashcards.count_due(now),
        cards_reviewed_today=cards_reviewed,
        time_spent_today=time_spent,
        streak=await streaks.fetch_streak(now),
        generated_at=now,
    )


__all__ = ["router"]
