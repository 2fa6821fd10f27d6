"""User goal/accepted-task history with local and remote hydration."""
from __future__ import annotations

import logging
from collections import Counter
from typing import Iterable, List, Optional, Protocol

from pydantic import BaseModel, Field
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.exc import SQLAlchemyError

from taskpilot.clients.backend_api import BackendApiClient
from taskpilot.core.errors import PlannerError
from taskpilot.services.local_store import STORAGE_USER_HISTORY, LocalStore

logger = logging.getLogger(__name__)

HISTORY_LIMIT = 20


class UserHistory(BaseModel):
    goals: List[str] = Field(default_factory=list)
    accepted: List[str] = Field(default_factory=list)


class HasTitle(Protocol):
    title: str


class HistoryService:
    """In-memory history cache mirrored to the local store.

    One instance is shared by every planner session of the process and is
    handed to them explicitly. ``load`` merges backend goals in front of the
    locally persisted ones; mutations persist immediately and never raise on
    storage failures.
    """

    def __init__(self, store: LocalStore, backend: BackendApiClient, *, user_id: int) -> None:
        self._store = store
        self._backend = backend
        self.user_id = user_id
        self.history = UserHistory()
        self.all_goals: List[str] = []
        self._goal_tally = GoalTally()

    @property
    def smart_default(self) -> Optional[str]:
        return self._goal_tally.leader

    async def load(self) -> UserHistory:
        local = self._read_local()

        backend_goals: List[str] = []
        try:
            self.all_goals = await self._backend.fetch_all_goals()
            backend_goals = await self._backend.fetch_user_goals(self.user_id)
        except PlannerError as exc:
            logger.warning("Goal history unavailable, using local history only: %s", exc.message)

        occurrences = [*backend_goals, *local.goals]
        self._goal_tally = GoalTally(occurrences)
        self.history = UserHistory(
            goals=_dedupe(occurrences)[:HISTORY_LIMIT],
            accepted=_dedupe(local.accepted)[:HISTORY_LIMIT],
        )
        self._persist()
        return self.history

    def add_goal(self, text: str) -> None:
        goal = (text or "").strip()
        if not goal:
            return
        self.history = UserHistory(
            goals=[goal, *(g for g in self.history.goals if g != goal)][:HISTORY_LIMIT],
            accepted=self.history.accepted,
        )
        self._goal_tally.add(goal)
        self._persist()

    def add_accepted_tasks(self, tasks: Iterable[HasTitle]) -> None:
        titles = _dedupe(task.title for task in tasks if task.title)
        if not titles:
            return
        incoming = set(titles)
        self.history = UserHistory(
            goals=self.history.goals,
            accepted=[*titles, *(t for t in self.history.accepted if t not in incoming)][:HISTORY_LIMIT],
        )
        self._persist()

    def _read_local(self) -> UserHistory:
        try:
            raw = self._store.get(STORAGE_USER_HISTORY)
        except SQLAlchemyError:
            logger.exception("Failed to read local history")
            return UserHistory()
        if not raw:
            return UserHistory()
        try:
            return UserHistory.model_validate(raw)
        except PydanticValidationError:
            logger.warning("Discarding malformed local history record")
            return UserHistory()

    def _persist(self) -> None:
        try:
            self._store.set(STORAGE_USER_HISTORY, self.history.model_dump())
        except SQLAlchemyError:
            logger.exception("Failed to persist user history")


class GoalTally:
    """Occurrence counts per goal plus the current leader.

    The leader changes only when another goal strictly exceeds its count, so
    on ties the goal that reached the maximum first stays in front.
    """

    def __init__(self, goals: Iterable[str] = ()) -> None:
        self.counts: Counter[str] = Counter()
        self.leader: Optional[str] = None
        self._leader_count = 0
        for goal in goals:
            self.add(goal)

    def add(self, goal: str) -> None:
        self.counts[goal] += 1
        if self.counts[goal] > self._leader_count:
            self.leader, self._leader_count = goal, self.counts[goal]


def most_frequent_goal(goals: Iterable[str]) -> Optional[str]:
    return GoalTally(goals).leader


def _dedupe(items: Iterable[str]) -> List[str]:
    return list(dict.fromkeys(item for item in items if item))
