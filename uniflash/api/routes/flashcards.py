from typing import List, Optional

from fastapi import APIRouter, Depends, Response, status

from uniflash.api.dependencies import get_flashcard_service
from uniflash.models.flashcard import (
    ClozeCreate,
    FlagPayload,
    FlashcardCreate,
    FlashcardRead,
    FlashcardUpdate,
    NotesPayload,
)
from uniflash.services.flashcard_service import FlashcardService

router = APIRouter(prefix="/flashcards", tags=["flashcards"])


@router.get("", response_model=List[FlashcardRead])
def list_flashcards(
    set_filter: str = "all",
    search: Optional[str] = None,
    service: FlashcardService = Depends(get_flashcard_service),
) -> List[FlashcardRead]:
    return service.list_cards(set_filter=set_filter, search=search)


@router.post("", response_model=FlashcardRead, status_code=status.HTTP_201_CREATED)
def create_flashcard(
    payload: FlashcardCreate,
    service: FlashcardService = Depends(get_flashcard_service),
) -> FlashcardRead:
    return service.create(payload)


@router.post("/cloze", response_model=List[FlashcardRead], status_code=status.HTTP_201_CREATED)
def create_cloze_flashcards(
    payload: ClozeCreate,
    service: FlashcardService = Depends(get_flashcard_service),
) -> List[FlashcardRead]:
    return service.create_cloze(payload)


@router.get("/{card_id}", response_model=FlashcardRead)
def get_flashcard(card_id: int, service: FlashcardService = Depends(get_flashcard_service)) -> FlashcardRead:
    return service.get(card_id)


@router.patch("/{card_id}", response_model=FlashcardRead)
def update_flashcard(
    card_id: int,
    payload: FlashcardUpdate,
    service: FlashcardService = Depends(get_flashcard_service),
) -> FlashcardRead:
    return service.update(card_id, payload)


@router.put("/{card_id}/flag", response_model=FlashcardRead)
def set_flag(
    card_id: int,
    payload: FlagPayload,
    service: FlashcardService = Depends(get_flashcard_service),
) -> FlashcardRead:
    return service.set_field(card_id, "is_flagged", payload.is_flagged)


@router.put("/{card_id}/notes", response_model=FlashcardRead)
def set_notes(
    card_id: int,
    payload: NotesPayload,
    service: FlashcardService = Depends(get_flashcard_service),
) -> FlashcardRead:
    return service.set_field(card_id, "notes", payload.notes)


@router.delete("/{card_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_flashcard(card_id: int, service: FlashcardService = Depends(get_flashcard_service)) -> Response:
    service.delete(card_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


__all__ = ["router"]
