import logging
from typing import Any, Callable, Dict

from sqlalchemy.orm import Session

from sos_guardian.config import ONBOARDING_KEY, USERNAME_KEY, SHAKE_ENABLED_KEY
from sos_guardian.crud import crud
from sos_guardian.schemas.onboarding import UserPreferences

logger = logging.getLogger(__name__)


class PersistedPreferences:
    """
    Key-value store backed by the `preferences` table.

    Reads are served from an in-process cache loaded once at construction, so
    `get` always returns the last value passed to `set` for that key. Writes go
    through to the database immediately.
    """

    def __init__(self, session_factory: Callable[[], Session]):
        self._session_factory = session_factory
        db = session_factory()
        try:
            self._cache: Dict[str, Any] = crud.get_all_preferences(db)
        finally:
            db.close()

    def get(self, key: str, default: Any = None) -> Any:
        return self._cache.get(key, default)

    def set(self, key: str, value: Any) -> None:
        db = self._session_factory()
        try:
            crud.set_preference(db, key, value)
        finally:
            db.close()
        self._cache[key] = value
        logger.debug("Preference %s updated", key)

    def snapshot(self) -> UserPreferences:
        return UserPreferences(
            onboarding_complete=bool(self.get(ONBOARDING_KEY, False)),
            user_name=self.get(USERNAME_KEY, "") or "",
            shake_enabled=bool(self.get(SHAKE_ENABLED_KEY, True)),
        )
