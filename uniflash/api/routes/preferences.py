from fastapi import APIRouter, Depends

from uniflash.api.dependencies import get_preferences_store
from uniflash.models.preferences import IntervalPolicy, PreferencesRead, PreferencesUpdate
from uniflash.services.preferences_service import PreferencesStore

router = APIRouter(prefix="/preferences", tags=["preferences"])


@router.get("", response_model=PreferencesRead)
def get_preferences(store: PreferencesStore = Depends(get_preferences_store)) -> PreferencesRead:
    return store.get_preferences()


@router.patch("", response_model=PreferencesRead)
def update_preferences(
    payload: PreferencesUpdate,
    store: PreferencesStore = Depends(get_preferences_store),
) -> PreferencesRead:
    return store.update_preferences(payload)


@router.get("/interval-policy", response_model=IntervalPolicy)
def get_interval_policy(store: PreferencesStore = Depends(get_preferences_store)) -> IntervalPolicy:
    return store.get_interval_policy()


@router.put("/interval-policy", response_model=IntervalPolicy)
def save_interval_policy(
    payload: IntervalPolicy,
    store: PreferencesStore = Depends(get_preferences_store),
) -> IntervalPolicy:
    return store.save_interval_policy(payload)


__all__ = ["router"]
