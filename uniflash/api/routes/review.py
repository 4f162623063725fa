from fastapi import APIRouter, Depends, Response, status

from uniflash.api.dependencies import get_card_store, get_preferences_store, get_review_registry
from uniflash.models.flashcard import NotesPayload
from uniflash.models.review import RatePayload, ReviewSessionStart, ReviewSessionState
from uniflash.services.card_store import CardStore
from uniflash.services.preferences_service import PreferencesStore
from uniflash.services.review_engine import ReviewSessionEngine, ReviewSessionRegistry, SessionPhase

router = APIRouter(prefix="/review/sessions", tags=["review"])


@router.post("", response_model=ReviewSessionState, status_code=status.HTTP_201_CREATED)
async def start_review_session(
    payload: ReviewSessionStart,
    store: CardStore = Depends(get_card_store),
    preferences: PreferencesStore = Depends(get_preferences_store),
    registry: ReviewSessionRegistry = Depends(get_review_registry),
) -> ReviewSessionState:
    prefs = preferences.get_preferences()
    shuffle = prefs.auto_shuffle_review if payload.shuffle is None else payload.shuffle
    engine = ReviewSessionEngine(
        store,
        prefs.interval_policy,
        set_ids=payload.set_ids,
        shuffle_enabled=shuffle,
        show_keyboard_hints=prefs.show_keyboard_hints,
    )
    phase = await engine.load()
    if phase is not SessionPhase.EMPTY:
        registry.add(engine)
    return engine.snapshot()


@router.get("/{token}", response_model=ReviewSessionState)
def get_review_session(
    token: str, registry: ReviewSessionRegistry = Depends(get_review_registry)
) -> ReviewSessionState:
    return registry.get(token).snapshot()


@router.post("/{token}/reveal", response_model=ReviewSessionState)
def reveal_answer(
    token: str, registry: ReviewSessionRegistry = Depends(get_review_registry)
) -> ReviewSessionState:
    engine = registry.get(token)
    engine.reveal()
    return engine.snapshot()


@router.post("/{token}/rate", response_model=ReviewSessionState)
async def rate_card(
    token: str,
    payload: RatePayload,
    registry: ReviewSessionRegistry = Depends(get_review_registry),
) -> ReviewSessionState:
    engine = registry.get(token)
    await engine.rate(payload.rating)
    registry.release_if_finished(engine)
    return engine.snapshot()


@router.post("/{token}/finish", response_model=ReviewSessionState)
async def finish_review_session(
    token: str, registry: ReviewSessionRegistry = Depends(get_review_registry)
) -> ReviewSessionState:
    engine = registry.get(token)
    await engine.finish()
    registry.release_if_finished(engine)
    return engine.snapshot()


@router.post("/{token}/slide/open", response_model=ReviewSessionState)
def open_source_slide(
    token: str, registry: ReviewSessionRegistry = Depends(get_review_registry)
) -> ReviewSessionState:
    engine = registry.get(token)
    engine.open_slide()
    return engine.snapshot()


@router.post("/{token}/slide/close", response_model=ReviewSessionState)
def close_source_slide(
    token: str, registry: ReviewSessionRegistry = Depends(get_review_registry)
) -> ReviewSessionState:
    engine = registry.get(token)
    engine.close_slide()
    return engine.snapshot()


@router.post("/{token}/shuffle", response_model=ReviewSessionState)
def shuffle_remaining(
    token: str, registry: ReviewSessionRegistry = Depends(get_review_registry)
) -> ReviewSessionState:
    engine = registry.get(token)
    engine.shuffle_now()
    return engine.snapshot()


@router.post("/{token}/reverse", response_model=ReviewSessionState)
def toggle_reverse_mode(
    token: str, registry: ReviewSessionRegistry = Depends(get_review_registry)
) -> ReviewSessionState:
    engine = registry.get(token)
    engine.toggle_reverse()
    return engine.snapshot()


@router.post("/{token}/flag", response_model=ReviewSessionState)
async def toggle_card_flag(
    token: str, registry: ReviewSessionRegistry = Depends(get_review_registry)
) -> ReviewSessionState:
    engine = registry.get(token)
    await engine.toggle_flag()
    return engine.snapshot()


@router.put("/{token}/notes", response_model=ReviewSessionState)
async def save_card_notes(
    token: str,
    payload: NotesPayload,
    registry: ReviewSessionRegistry = Depends(get_review_registry),
) -> ReviewSessionState:
    engine = registry.get(token)
    await engine.save_notes(payload.notes)
    return engine.snapshot()


@router.post("/{token}/refresh-policy", response_model=ReviewSessionState)
def refresh_interval_policy(
    token: str,
    registry: ReviewSessionRegistry = Depends(get_review_registry),
    preferences: PreferencesStore = Depends(get_preferences_store),
) -> ReviewSessionState:
    engine = registry.get(token)
    engine.refresh_policy(preferences.get_interval_policy())
    return engine.snapshot()


@router.delete("/{token}", status_code=status.HTTP_204_NO_CONTENT)
def abandon_review_session(
    token: str, registry: ReviewSessionRegistry = Depends(get_review_registry)
) -> Response:
    registry.discard(token)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


__all__ = ["router"]
