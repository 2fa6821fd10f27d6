"""Key/value persistence standing in for on-device storage."""
from __future__ import annotations

from typing import Any

from sqlalchemy.orm import sessionmaker

from taskpilot.db.models.local_setting import LocalSetting

STORAGE_USER_HISTORY = "ai_taskplanner_user_history"
STORAGE_RECENT_IDEAS = "ai_taskplanner_recent_ideas"
STORAGE_DARK_MODE = "darkMode"
STORAGE_USER_ID = "userId"


class LocalStore:
    """JSON values keyed by string, one row per key.

    Errors from the database propagate; callers decide whether a failed
    read or write matters.
    """

    def __init__(self, session_factory: sessionmaker) -> None:
        self._session_factory = session_factory

    def get(self, key: str, default: Any = None) -> Any:
        with self._session_factory() as db:
            row = db.get(LocalSetting, key)
            if row is None or row.value is None:
                return default
            return row.value

    def set(self, key: str, value: Any) -> None:
        with self._session_factory() as db:
            row = db.get(LocalSetting, key)
            if row is None:
                db.add(LocalSetting(key=key, value=value))
            else:
                row.value = value
            db.commit()
