from typing import List

from fastapi import APIRouter, Depends, Response, status

from uniflash.api.dependencies import get_preferences_store, get_set_service
from uniflash.models.flashcard import (
    FlaggedSetCreate,
    FlashcardSetCreate,
    FlashcardSetRead,
    FlashcardSetStatsRead,
    FlashcardSetUpdate,
)
from uniflash.services.preferences_service import PreferencesStore
from uniflash.services.set_service import SetService

router = APIRouter(prefix="/sets", tags=["sets"])


@router.get("", response_model=List[FlashcardSetStatsRead])
def list_sets(service: SetService = Depends(get_set_service)) -> List[FlashcardSetStatsRead]:
    return service.list_with_stats()


@router.post("", response_model=FlashcardSetRead, status_code=status.HTTP_201_CREATED)
def create_set(payload: FlashcardSetCreate, service: SetService = Depends(get_set_service)) -> FlashcardSetRead:
    return service.create(payload)


@router.post("/from-flagged", response_model=FlashcardSetStatsRead, status_code=status.HTTP_201_CREATED)
def create_set_from_flagged(
    payload: FlaggedSetCreate,
    service: SetService = Depends(get_set_service),
) -> FlashcardSetStatsRead:
    return service.create_from_flagged(payload)


@router.patch("/{set_id}", response_model=FlashcardSetRead)
def update_set(
    set_id: int,
    payload: FlashcardSetUpdate,
    service: SetService = Depends(get_set_service),
) -> FlashcardSetRead:
    return service.update(set_id, payload)


@router.post("/{set_id}/unflag")
def unflag_set_cards(set_id: int, service: SetService = Depends(get_set_service)) -> dict[str, int]:
    return {"unflagged": service.unflag_cards(set_id)}


@router.delete("/{set_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_set(
    set_id: int,
    service: SetService = Depends(get_set_service),
    preferences: PreferencesStore = Depends(get_preferences_store),
) -> Response:
    service.delete(set_id)
    preferences.clear_default_set(set_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


__all__ = ["router"]
