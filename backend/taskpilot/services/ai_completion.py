"""AI task-plan generation: request orchestration, response parsing and in-session edits."""
from __future__ import annotations

import asyncio
import json
import logging
import random
import re
import string
import time
from datetime import datetime, timezone
from enum import Enum
from time import perf_counter
from typing import Any, List, Optional, Set

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from taskpilot.clients.backend_api import BackendApiClient
from taskpilot.clients.completion import CompletionClient
from taskpilot.core.config import settings
from taskpilot.core.errors import (
    CancellationError,
    InvalidResponseShape,
    NoValidTasks,
    PlannerError,
    ValidationError,
)
from taskpilot.observability.metrics import log_metric
from taskpilot.observability.tracing import trace
from taskpilot.services.cancellation import CancellationToken
from taskpilot.services.prompt_builder import build_system_prompt, build_user_prompt
from taskpilot.services.user_history import HistoryService

logger = logging.getLogger(__name__)

MIN_DAYS = 1
MAX_DAYS = 7

FENCED_JSON_RE = re.compile(r"```(?:json)?\s*([\s\S]*?)\s*```", re.IGNORECASE)
_ID_ALPHABET = string.digits + string.ascii_lowercase


class PlannerState(str, Enum):
    IDLE = "idle"
    REQUESTING = "requesting"
    TASKS_READY = "tasks_ready"
    ERRORED = "errored"
    CANCELLED = "cancelled"


class SuggestedTask(BaseModel):
    id: str
    title: str
    description: str = ""
    suggested_deadline: Optional[str] = None


class _CompletionPayload(BaseModel):
    tasks: List[Any]


def generate_unique_id() -> str:
    suffix = "".join(random.choices(_ID_ALPHABET, k=9))
    return f"task_{int(time.time() * 1000)}_{suffix}"


def parse_completion_content(content: str) -> List[Any]:
    """Decode the model output into the raw ``tasks`` list.

    The body is decoded as JSON first; if that fails, a fenced code block is
    unwrapped and decoded again. Anything else is ``InvalidResponseShape``.
    """
    text = (content or "").strip()
    if not text:
        raise InvalidResponseShape("Empty response from AI.")

    try:
        decoded = json.loads(text)
    except json.JSONDecodeError:
        match = FENCED_JSON_RE.search(text)
        if not match:
            raise InvalidResponseShape("AI response was not valid JSON.")
        try:
            decoded = json.loads(match.group(1))
        except json.JSONDecodeError as exc:
            raise InvalidResponseShape("AI response was not valid JSON.") from exc

    try:
        return _CompletionPayload.model_validate(decoded).tasks
    except PydanticValidationError as exc:
        raise InvalidResponseShape("Invalid JSON structure: expected a \"tasks\" array.") from exc


def map_suggested_tasks(raw_tasks: List[Any], num_days: int) -> List[SuggestedTask]:
    tasks: List[SuggestedTask] = []
    for item in raw_tasks:
        if not isinstance(item, dict):
            continue
        title = _clean(item.get("title"))
        if not title:
            continue
        tasks.append(
            SuggestedTask(
                id=generate_unique_id(),
                title=title,
                description=_clean(item.get("description")),
                suggested_deadline=_clean(item.get("deadline")) or None,
            )
        )
    return tasks[:num_days]


def _clean(value: Any) -> str:
    return value.strip() if isinstance(value, str) else ""


class CompletionOrchestrator:
    """Per-session generation state machine.

    ``idle -> requesting -> tasks_ready | errored | cancelled -> idle``. At
    most one completion request is in flight; starting another one cancels
    the previous request, whose outcome is then discarded.
    """

    def __init__(
        self,
        completion: CompletionClient,
        history: HistoryService,
        backend: BackendApiClient,
        *,
        context_goal: Optional[str] = None,
        default_days: Optional[int] = None,
    ) -> None:
        self._completion = completion
        self._history = history
        self._backend = backend
        self.context_goal = context_goal
        self.default_days = default_days or settings.default_days
        self.query = ""
        self.num_days = self.default_days
        self.state = PlannerState.IDLE
        self.suggested_tasks: List[SuggestedTask] = []
        self.error_message: Optional[str] = None
        self.notice: Optional[str] = None
        self.editing_task_id: Optional[str] = None
        self.edited_task_text = ""
        self._active_token: Optional[CancellationToken] = None
        self._background: Set[asyncio.Task] = set()

    @property
    def is_loading(self) -> bool:
        return self.state == PlannerState.REQUESTING

    def set_query(self, query: str) -> None:
        self.query = query or ""

    def set_num_days(self, num_days: int) -> None:
        if not MIN_DAYS <= num_days <= MAX_DAYS:
            raise ValidationError(f"Number of days must be between {MIN_DAYS} and {MAX_DAYS}.")
        self.num_days = num_days

    async def fetch_ai_response(self) -> None:
        query = self.query.strip()
        if not query:
            raise ValidationError("Please describe what you need help planning.")

        if self._active_token is not None:
            self._active_token.cancel("Starting new request")
        token = CancellationToken()
        self._active_token = token

        self.state = PlannerState.REQUESTING
        self._clear_results()
        self._log_goal(query)

        num_days = self.num_days
        system_prompt = build_system_prompt(self._history.history, num_days, self.context_goal, query)
        user_prompt = build_user_prompt(query, num_days)
        self._history.add_goal(query)

        metadata = {"num_days": num_days, "query_length": len(query), "model": getattr(self._completion, "model", None)}
        start_time = perf_counter()
        outcome = "error"
        try:
            with trace("ai.completion", metadata=metadata, user_id=str(self._history.user_id)):
                content = await token.run(
                    self._completion.complete(
                        [
                            {"role": "system", "content": system_prompt},
                            {"role": "user", "content": user_prompt},
                        ]
                    )
                )
                tasks = map_suggested_tasks(parse_completion_content(content), num_days)
                if not tasks:
                    raise NoValidTasks()
        except CancellationError as exc:
            outcome = "cancelled"
            if token is self._active_token:
                self._finish_without_tasks(PlannerState.CANCELLED, notice=exc.message)
        except PlannerError as exc:
            if token is self._active_token:
                self._finish_without_tasks(PlannerState.ERRORED, error=exc.message)
        except asyncio.CancelledError:
            outcome = "cancelled"
            if token is self._active_token:
                self._finish_without_tasks(PlannerState.CANCELLED, notice=CancellationError.default_message)
            raise
        except Exception as exc:
            logger.exception("AI task generation failed")
            if token is self._active_token:
                self._finish_without_tasks(PlannerState.ERRORED, error=str(exc) or "Failed to generate tasks.")
        else:
            outcome = "ok"
            if token is self._active_token:
                self.suggested_tasks = tasks
                self.state = PlannerState.TASKS_READY
                if len(tasks) < num_days:
                    self.notice = f"Only {len(tasks)} tasks generated."
        finally:
            if token is self._active_token:
                self._active_token = None
            latency_ms = (perf_counter() - start_time) * 1000
            log_metric("ai.completion.latency_ms", latency_ms, metadata={"outcome": outcome, "num_days": num_days})

    def stop_generation(self) -> None:
        """Cancel the in-flight request; the session leaves ``requesting`` immediately."""
        if self._active_token is None:
            return
        self._active_token.cancel("User stopped generation")
        self._active_token = None
        self._finish_without_tasks(PlannerState.CANCELLED, notice=CancellationError.default_message)

    def reset_modal_state(self, clear_query: bool = True) -> None:
        if self._active_token is not None:
            self._active_token.cancel("Resetting modal state")
            self._active_token = None
        if clear_query:
            self.query = ""
        self.num_days = self.default_days
        self.state = PlannerState.IDLE
        self._clear_results()

    def start_editing(self, task_id: str) -> None:
        task = self._require_task(task_id)
        self.editing_task_id = task.id
        self.edited_task_text = task.title

    def set_edit_text(self, text: str) -> None:
        if self.editing_task_id is None:
            raise ValidationError("No task is being edited.")
        self.edited_task_text = text

    def save_edit(self) -> None:
        if self.editing_task_id is None:
            return
        title = self.edited_task_text.strip()
        if not title:
            raise ValidationError("Task title cannot be empty.")
        self.suggested_tasks = [
            task.model_copy(update={"title": title}) if task.id == self.editing_task_id else task
            for task in self.suggested_tasks
        ]
        self.cancel_edit()

    def cancel_edit(self) -> None:
        self.editing_task_id = None
        self.edited_task_text = ""

    def delete_task(self, task_id: str) -> None:
        self._require_task(task_id)
        self.suggested_tasks = [task for task in self.suggested_tasks if task.id != task_id]
        if self.editing_task_id == task_id:
            self.cancel_edit()

    async def aclose(self) -> None:
        self.reset_modal_state()
        pending = list(self._background)
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)

    def _require_task(self, task_id: str) -> SuggestedTask:
        if self.state != PlannerState.TASKS_READY:
            raise ValidationError("There are no suggested tasks to change.")
        for task in self.suggested_tasks:
            if task.id == task_id:
                return task
        raise ValidationError(f"Unknown task id: {task_id}")

    def _clear_results(self) -> None:
        self.suggested_tasks = []
        self.error_message = None
        self.notice = None
        self.cancel_edit()

    def _finish_without_tasks(
        self,
        state: PlannerState,
        *,
        error: Optional[str] = None,
        notice: Optional[str] = None,
    ) -> None:
        self.state = state
        self.suggested_tasks = []
        self.error_message = error
        self.notice = notice

    def _log_goal(self, query: str) -> None:
        created_at = datetime.now(timezone.utc).isoformat()
        task = asyncio.ensure_future(self._backend.log_goal(self._history.user_id, query, created_at))
        self._background.add(task)
        task.add_done_callback(self._on_goal_logged)

    def _on_goal_logged(self, task: asyncio.Task) -> None:
        self._background.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.debug("Goal logging failed: %s", exc)
