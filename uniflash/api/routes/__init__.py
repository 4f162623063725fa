from fastapi import APIRouter

from . import flashcards, sets, review, stats, preferences

api_router = APIRouter()
api_router.include_router(flashcards.router)
api_router.include_router(sets.router)
api_router.include_router(review.router)
api_router.include_router(stats.router)
api_router.include_router(preferences.router)

__all__ = ["api_router"]
