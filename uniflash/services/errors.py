from __future__ import annotations


class UniflashError(Exception):
    """Base class for review-domain failures."""


class IntervalPolicyError(UniflashError):
    """Raised when the interval policy is missing a rating or holds an unusable value."""


class StoreUnavailableError(UniflashError):
    """Raised when the card store cannot be read or written; safe to retry."""


class CardNotFoundError(UniflashError):
    def __init__(self, card_id: int) -> None:
        super().__init__(f"Flashcard {card_id} not found")
        self.card_id = card_id


class RatingInProgressError(UniflashError):
    """Raised when a rating arrives while the previous one is still being stored."""


class SessionStateError(UniflashError):
    """Raised when an action is not valid in the session's current state."""


class ReviewSessionNotFoundError(UniflashError):
    def __init__(self, token: str) -> None:
        super().__init__(f"Review session {token} not found")
        self.token = token
