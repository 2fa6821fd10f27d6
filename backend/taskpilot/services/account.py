"""Account settings updates."""
from __future__ import annotations

import re
from typing import Any

from taskpilot.clients.backend_api import BackendApiClient
from taskpilot.core.errors import ValidationError

EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


async def update_email(
    backend: BackendApiClient,
    *,
    user_id: int,
    current_email: str,
    new_email: str,
    confirm_email: str,
) -> Any:
    current = (current_email or "").strip()
    new = (new_email or "").strip()
    confirm = (confirm_email or "").strip()
    if not current:
        raise ValidationError("Current email is required")
    if not new:
        raise ValidationError("New email is required")
    if not confirm:
        raise ValidationError("Confirm email is required")
    if not EMAIL_RE.match(current) or not EMAIL_RE.match(new):
        raise ValidationError("Invalid email")
    if new != confirm:
        raise ValidationError("Emails must match")
    return await backend.update_email(user_id, current, new)
