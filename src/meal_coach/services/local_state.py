"""Local mirror of the user state for anonymous or offline use."""

import json
import logging
from dataclasses import dataclass

from meal_coach.domain.locale import Locale
from meal_coach.domain.state import UserState
from meal_coach.services.cache import KeyValueStore
from meal_coach.services.snapshots import restore_state, snapshot_state

STATE_KEY = "meal_coach_state"
LOCALE_KEY = "meal_coach_locale"

_logger = logging.getLogger(__name__)


@dataclass
class LocalStateStore:
    """Stores one JSON snapshot of the user state in a key-value store."""

    store: KeyValueStore

    def load(self) -> UserState | None:
        """Return the mirrored state, or None when nothing usable is stored."""
        raw = self.store.get(STATE_KEY)
        if raw is None:
            return None
        try:
            return restore_state(json.loads(raw))
        except (ValueError, TypeError, KeyError) as exc:
            _logger.warning("Discarding unreadable local state: %s", exc)
            self.store.delete(STATE_KEY)
            return None

    def save(self, state: UserState) -> None:
        """Overwrite the mirror with the current state."""
        self.store.set(STATE_KEY, json.dumps(snapshot_state(state)))

    def clear(self) -> None:
        """Remove the mirrored state."""
        self.store.delete(STATE_KEY)

    def get_locale(self, default: Locale) -> Locale:
        """Return the saved interface language."""
        raw = self.store.get(LOCALE_KEY)
        if raw in ("fr", "en"):
            return raw
        return default

    def set_locale(self, locale: Locale) -> None:
        """Persist the interface language."""
        self.store.set(LOCALE_KEY, locale)
