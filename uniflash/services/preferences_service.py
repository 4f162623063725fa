from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict

import yaml

from uniflash.models.preferences import (
    DEFAULT_INTERVAL_POLICY,
    IntervalPolicy,
    PreferencesRead,
    PreferencesUpdate,
)
from uniflash.services.interval_policy import policy_from_mapping

logger = logging.getLogger(__name__)

INTERVAL_SETTINGS_KEY = "srsIntervalSettings"
AUTO_SHUFFLE_KEY = "autoShuffleReview"
KEYBOARD_HINTS_KEY = "showKeyboardHints"
DEFAULT_SET_KEY = "defaultFlashcardSet"


class PreferencesStore:
    """Local key/value preferences kept in a YAML file.

    Values are re-read from disk on every access so a review session picks up
    changes saved from the settings screen.
    """

    def __init__(self, path: Path | str) -> None:
        self.path = Path(path)

    def _load(self) -> Dict[str, Any]:
        if not self.path.exists():
            return {}
        data = yaml.safe_load(self.path.read_text(encoding="utf-8"))
        return data or {}

    def _save(self, data: Dict[str, Any]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(yaml.safe_dump(data, sort_keys=True, allow_unicode=True), encoding="utf-8")

    def get_interval_policy(self) -> IntervalPolicy:
        raw = self._load().get(INTERVAL_SETTINGS_KEY)
        if raw is None:
            return DEFAULT_INTERVAL_POLICY.model_copy(deep=True)
        return policy_from_mapping(raw)

    def save_interval_policy(self, policy: IntervalPolicy) -> IntervalPolicy:
        data = self._load()
        data[INTERVAL_SETTINGS_KEY] = policy.model_dump(mode="json", by_alias=True)
        self._save(data)
        logger.info("Interval policy saved to %s", self.path)
        return policy

    def get_preferences(self) -> PreferencesRead:
        data = self._load()
        return PreferencesRead(
            interval_policy=self.get_interval_policy(),
            auto_shuffle_review=bool(data.get(AUTO_SHUFFLE_KEY, False)),
            show_keyboard_hints=bool(data.get(KEYBOARD_HINTS_KEY, True)),
            default_flashcard_set=data.get(DEFAULT_SET_KEY),
        )

    def update_preferences(self, update: PreferencesUpdate) -> PreferencesRead:
        data = self._load()
        changes = update.model_dump(exclude_unset=True)
        if "auto_shuffle_review" in changes:
            data[AUTO_SHUFFLE_KEY] = changes["auto_shuffle_review"]
        if "show_keyboard_hints" in changes:
            data[KEYBOARD_HINTS_KEY] = changes["show_keyboard_hints"]
        if "default_flashcard_set" in changes:
            data[DEFAULT_SET_KEY] = changes["default_flashcard_set"]
        self._save(data)
        return self.get_preferences()

    def clear_default_set(self, set_id: int) -> None:
        data = self._load()
        if data.get(DEFAULT_SET_KEY) == set_id:
            data[DEFAULT_SET_KEY] = None
            self._save(data)
