from collections.abc import Generator

from fastapi import Depends
from sqlmodel import Session

from uniflash.config.settings import get_settings
from uniflash.db.base import get_engine
from uniflash.services.card_store import CardStore, SQLCardStore
from uniflash.services.flashcard_service import FlashcardService
from uniflash.services.preferences_service import PreferencesStore
from uniflash.services.review_engine import ReviewSessionRegistry
from uniflash.services.set_service import SetService
from uniflash.services.streak_service import StreakService

_registry = ReviewSessionRegistry()


def get_session() -> Generator[Session, None, None]:
    """Provide a database session for request scope."""
    engine = get_engine()
    with Session(engine) as session:
        yield session


def get_card_store() -> CardStore:
    return SQLCardStore(get_engine())


def get_preferences_store() -> PreferencesStore:
    return PreferencesStore(get_settings().preferences_path)


def get_review_registry() -> ReviewSessionRegistry:
    return _registry


def get_flashcard_service(db=Depends(get_session)) -> FlashcardService:
    return FlashcardService(db)


def get_set_service(db=Depends(get_session)) -> SetService:
    return SetService(db)


def get_streak_service(store: CardStore = Depends(get_card_store)) -> StreakService:
    return StreakService(store)
