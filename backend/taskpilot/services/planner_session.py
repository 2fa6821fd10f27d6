"""Planner sessions: one AI planning modal's state plus the actions that drive it."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional
from uuid import uuid4

from taskpilot.clients.backend_api import BackendApiClient
from taskpilot.clients.completion import CompletionClient
from taskpilot.core.errors import PlannerError, SessionNotFound, ValidationError
from taskpilot.observability.metrics import log_metric
from taskpilot.observability.tracing import trace
from taskpilot.services import feedback as feedback_service
from taskpilot.services.ai_completion import CompletionOrchestrator, SuggestedTask
from taskpilot.services.suggestions import (
    DEFAULT_MAX_SUGGESTIONS,
    RecentIdeas,
    find_shortcut,
    find_template,
    goal_suggestions,
    random_surprise_prompt,
)
from taskpilot.services.task_acceptance import accept_all_tasks
from taskpilot.services.user_history import HistoryService

logger = logging.getLogger(__name__)


@dataclass
class AcceptanceOutcome:
    success: bool
    message: str
    tasks: List[SuggestedTask] = field(default_factory=list)
    error: Optional[PlannerError] = None


class PlannerSession:
    def __init__(
        self,
        session_id: str,
        orchestrator: CompletionOrchestrator,
        history: HistoryService,
        backend: BackendApiClient,
        recent_ideas: RecentIdeas,
    ) -> None:
        self.session_id = session_id
        self.orchestrator = orchestrator
        self.history = history
        self.backend = backend
        self.recent_ideas = recent_ideas
        self.feedback_requested = False

    async def generate(self) -> None:
        await self.orchestrator.fetch_ai_response()

    async def accept_all(self) -> AcceptanceOutcome:
        """Persist every current suggestion; on failure nothing in the session changes."""
        tasks = list(self.orchestrator.suggested_tasks)
        metadata = {"session_id": self.session_id, "task_count": len(tasks)}
        try:
            with trace("planner.accept", metadata=metadata, user_id=str(self.history.user_id)):
                await accept_all_tasks(self.backend, tasks, user_id=self.history.user_id)
        except PlannerError as exc:
            log_metric("planner.accept.success", 0, metadata=metadata)
            return AcceptanceOutcome(success=False, message=exc.message, error=exc)

        log_metric("planner.accept.success", 1, metadata=metadata)
        self.history.add_accepted_tasks(tasks)
        self.feedback_requested = True
        self.orchestrator.reset_modal_state(clear_query=False)
        logger.info("Accepted %s tasks in session %s", len(tasks), self.session_id)
        return AcceptanceOutcome(success=True, message="Tasks created successfully!", tasks=tasks)

    async def use_idea(self, idea: str) -> None:
        idea = (idea or "").strip()
        if not idea:
            raise ValidationError("Idea must not be empty.")
        self.orchestrator.set_query(idea)
        self.recent_ideas.add(idea)
        await self.orchestrator.fetch_ai_response()

    async def use_template(self, label: str) -> None:
        template = find_template(label)
        if template is None:
            raise ValidationError(f"Unknown template: {label}")
        self.orchestrator.set_query(template.prompt)
        self.orchestrator.set_num_days(template.days)
        self.recent_ideas.add(template.prompt)
        await self.orchestrator.fetch_ai_response()

    def use_recent_idea(self, idea: str) -> None:
        self.orchestrator.set_query(idea)

    def apply_shortcut(self, label: str) -> None:
        shortcut = find_shortcut(label)
        if shortcut is None:
            raise ValidationError(f"Unknown shortcut: {label}")
        self.orchestrator.set_num_days(shortcut.days)
        if shortcut.prompt:
            self.orchestrator.set_query(shortcut.prompt)

    def surprise_me(self) -> str:
        prompt = random_surprise_prompt()
        self.orchestrator.set_query(prompt)
        return prompt

    def use_smart_default(self) -> Optional[str]:
        if self.history.smart_default:
            self.orchestrator.set_query(self.history.smart_default)
        return self.history.smart_default

    def suggestions(self, query: str, max_suggestions: int = DEFAULT_MAX_SUGGESTIONS) -> List[str]:
        return goal_suggestions(query, self.history.history.goals, self.history.all_goals, max_suggestions)

    async def submit_feedback(self, rating: int, text: str) -> None:
        await feedback_service.submit_feedback(self.backend, user_id=self.history.user_id, rating=rating, feedback=text)
        self.feedback_requested = False

    async def close(self) -> None:
        await self.orchestrator.aclose()


class SessionRegistry:
    """In-memory planner sessions keyed by id."""

    def __init__(
        self,
        *,
        completion: CompletionClient,
        history: HistoryService,
        backend: BackendApiClient,
        recent_ideas: RecentIdeas,
        default_days: Optional[int] = None,
    ) -> None:
        self._completion = completion
        self._history = history
        self._backend = backend
        self._recent_ideas = recent_ideas
        self._default_days = default_days
        self._sessions: Dict[str, PlannerSession] = {}

    def create(self, *, context_goal: Optional[str] = None) -> PlannerSession:
        session_id = str(uuid4())
        orchestrator = CompletionOrchestrator(
            self._completion,
            self._history,
            self._backend,
            context_goal=context_goal,
            default_days=self._default_days,
        )
        session = PlannerSession(session_id, orchestrator, self._history, self._backend, self._recent_ideas)
        self._sessions[session_id] = session
        return session

    def get(self, session_id: str) -> PlannerSession:
        session = self._sessions.get(session_id)
        if session is None:
            raise SessionNotFound()
        return session

    async def close(self, session_id: str) -> None:
        session = self._sessions.pop(session_id, None)
        if session is None:
            raise SessionNotFound()
        await session.close()

    async def close_all(self) -> None:
        sessions = list(self._sessions.values())
        self._sessions.clear()
        for session in sessions:
            await session.close()
