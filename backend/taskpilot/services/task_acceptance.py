"""Convert accepted suggestions into backend task records and submit them."""
from __future__ import annotations

import re
from datetime import datetime, timezone
from typing import List, Optional, Sequence

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from taskpilot.clients.backend_api import BackendApiClient
from taskpilot.core.errors import NoTasks, ServerError, TooManyTasks
from taskpilot.services.ai_completion import SuggestedTask

MAX_BATCH_SIZE = 7
DEFAULT_PRIORITY = "Medium"
DEFAULT_DURATION = "1 hour"
DEFAULT_CATEGORY = "General"
DEFAULT_STATUS = "Not Started"
SAVE_FAILED_MESSAGE = "Failed to save tasks."

ISO_TIMESTAMP_RE = re.compile(r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}(?:\.\d+)?(?:Z|[+-]\d{2}:\d{2})$")


class AcceptedTaskPayload(BaseModel):
    """Task record in the backend's camelCase schema."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    user_id: int
    task_name: str
    task_description: str
    priority: str = DEFAULT_PRIORITY
    estimated_duration: str = DEFAULT_DURATION
    deadline: str
    status: str = DEFAULT_STATUS
    completed: bool = False
    category: str = DEFAULT_CATEGORY
    notes: str = ""
    created_at: str


def is_iso_timestamp(value: Optional[str]) -> bool:
    return bool(value) and ISO_TIMESTAMP_RE.match(value) is not None


def format_timestamp(value: datetime) -> str:
    return value.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def resolve_deadline(suggested: Optional[str], now: datetime) -> datetime:
    """Use the suggested deadline when it is a full ISO timestamp not before ``now``."""
    if not is_iso_timestamp(suggested):
        return now
    try:
        parsed = datetime.fromisoformat(suggested.replace("Z", "+00:00"))
    except ValueError:
        return now
    return parsed if parsed >= now else now


def map_tasks_to_api_format(
    tasks: Sequence[SuggestedTask],
    user_id: int,
    *,
    now: Optional[datetime] = None,
) -> List[AcceptedTaskPayload]:
    current = now or datetime.now(timezone.utc)
    created_at = format_timestamp(current)
    return [
        AcceptedTaskPayload(
            user_id=user_id,
            task_name=str(task.title),
            task_description=task.description,
            deadline=format_timestamp(resolve_deadline(task.suggested_deadline, current)),
            created_at=created_at,
        )
        for task in tasks
    ]


async def accept_all_tasks(
    backend: BackendApiClient,
    tasks: Sequence[SuggestedTask],
    *,
    user_id: int,
    now: Optional[datetime] = None,
) -> List[AcceptedTaskPayload]:
    """Submit suggestions as one create (single task) or one batch create (2-7 tasks).

    Size checks happen before any request is made.
    """
    if not tasks:
        raise NoTasks()
    if len(tasks) > MAX_BATCH_SIZE:
        raise TooManyTasks()

    payloads = map_tasks_to_api_format(tasks, user_id, now=now)
    body = [payload.model_dump(by_alias=True) for payload in payloads]
    try:
        if len(body) == 1:
            await backend.create_accepted(body[0])
        else:
            await backend.create_accepted_batch(body)
    except ServerError as exc:
        raise ServerError(exc.server_message or SAVE_FAILED_MESSAGE, upstream_status=exc.upstream_status) from exc
    return payloads
