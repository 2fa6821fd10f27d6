"""Wiring of the long-lived planner collaborators."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from sqlalchemy.orm import sessionmaker

from taskpilot.clients.backend_api import BackendApiClient
from taskpilot.clients.completion import CompletionClient
from taskpilot.core.config import settings
from taskpilot.services.local_store import LocalStore
from taskpilot.services.planner_session import SessionRegistry
from taskpilot.services.preferences import resolve_user_id
from taskpilot.services.suggestions import RecentIdeas
from taskpilot.services.user_history import HistoryService


@dataclass
class PlannerServices:
    store: LocalStore
    backend: BackendApiClient
    completion: CompletionClient
    history: HistoryService
    recent_ideas: RecentIdeas
    sessions: SessionRegistry

    @property
    def user_id(self) -> int:
        return self.history.user_id

    async def aclose(self) -> None:
        await self.sessions.close_all()
        await self.backend.aclose()
        close = getattr(self.completion, "aclose", None)
        if close is not None:
            await close()


def build_services(
    *,
    session_factory: sessionmaker,
    backend: BackendApiClient,
    completion: CompletionClient,
    default_user_id: Optional[int] = None,
) -> PlannerServices:
    store = LocalStore(session_factory)
    user_id = resolve_user_id(store, settings.user_id if default_user_id is None else default_user_id)
    history = HistoryService(store, backend, user_id=user_id)
    recent_ideas = RecentIdeas(store)
    sessions = SessionRegistry(
        completion=completion,
        history=history,
        backend=backend,
        recent_ideas=recent_ideas,
        default_days=settings.default_days,
    )
    return PlannerServices(
        store=store,
        backend=backend,
        completion=completion,
        history=history,
        recent_ideas=recent_ideas,
        sessions=sessions,
    )
