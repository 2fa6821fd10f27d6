"""User feedback submission."""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Optional

from taskpilot.clients.backend_api import BackendApiClient
from taskpilot.core.errors import ValidationError

MIN_RATING = 1
MAX_RATING = 5


async def submit_feedback(
    backend: BackendApiClient,
    *,
    user_id: int,
    rating: int,
    feedback: str,
    now: Optional[datetime] = None,
) -> Any:
    if not MIN_RATING <= rating <= MAX_RATING:
        raise ValidationError(f"Rating must be between {MIN_RATING} and {MAX_RATING}.")
    created_at = (now or datetime.now(timezone.utc)).isoformat()
    return await backend.submit_feedback(
        {"user": user_id, "rating": rating, "feedback": (feedback or "").strip(), "createdAt": created_at}
    )
