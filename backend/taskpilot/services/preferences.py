"""Device-local preferences."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from taskpilot.services.local_store import STORAGE_DARK_MODE, STORAGE_USER_ID, LocalStore


@dataclass
class LocalPreferences:
    dark_mode: bool
    user_id: int


def resolve_user_id(store: LocalStore, default: int) -> int:
    stored = store.get(STORAGE_USER_ID)
    try:
        return int(stored) if stored is not None else default
    except (TypeError, ValueError):
        return default


def get_preferences(store: LocalStore, *, default_user_id: int) -> LocalPreferences:
    return LocalPreferences(
        dark_mode=bool(store.get(STORAGE_DARK_MODE, False)),
        user_id=resolve_user_id(store, default_user_id),
    )


def update_preferences(
    store: LocalStore,
    *,
    default_user_id: int,
    dark_mode: Optional[bool] = None,
) -> LocalPreferences:
    if dark_mode is not None:
        store.set(STORAGE_DARK_MODE, dark_mode)
    return get_preferences(store, default_user_id=default_user_id)
