from .flashcard import Flashcard, FlashcardSet
from .review_session import ReviewSession, StudyStreak

__all__ = [
    "Flashcard",
    "FlashcardSet",
    "ReviewSession",
    "StudyStreak",
]
