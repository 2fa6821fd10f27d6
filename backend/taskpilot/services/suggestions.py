"""Static planning ideas, recent ideas and fuzzy goal suggestions."""
from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from typing import Iterable, List, Optional

from sqlalchemy.exc import SQLAlchemyError

from taskpilot.services.local_store import STORAGE_RECENT_IDEAS, LocalStore

logger = logging.getLogger(__name__)

DEFAULT_MAX_SUGGESTIONS = 8
RECENT_IDEAS_LIMIT = 5

SUGGESTION_IDEAS = [
    "Plan my week for studying for finals.",
    "Help me organize a home renovation project.",
    "Create a fitness routine for 5 days.",
    "Suggest a daily routine for better sleep.",
    "Help me prepare for a job interview.",
    "Organize a meal prep schedule.",
    "Plan a reading challenge for a month.",
    "Set up a daily mindfulness routine.",
    "Prepare a travel itinerary for a city trip.",
    "Design a project timeline for launching a website.",
]

SURPRISE_PROMPTS = [
    "Invent a new morning ritual for creative energy.",
    "Plan a day as if you were a famous chef.",
    "Organize a 'no screen' adventure challenge.",
    "Design a productivity quest for a superhero.",
    "Schedule a week of random acts of kindness.",
    "Plan a day to learn something totally new.",
    "Create a routine inspired by astronauts.",
    "Organize a 'reverse to-do list' day.",
    "Plan a day for maximum fun and zero stress.",
    "Set up a week of micro-habits for happiness.",
]


@dataclass(frozen=True)
class Template:
    label: str
    prompt: str
    days: int


@dataclass(frozen=True)
class Shortcut:
    label: str
    days: int
    prompt: Optional[str] = None


TEMPLATES = [
    Template("Study Plan", "Plan my study schedule for exams.", 7),
    Template("Fitness Plan", "Create a 5-day fitness routine.", 5),
    Template("Sleep Routine", "Suggest a daily routine for better sleep.", 7),
    Template("Meal Prep", "Organize a meal prep schedule.", 7),
]

SHORTCUTS = [
    Shortcut("Today", 1),
    Shortcut("Tomorrow", 1, "Plan my tasks for tomorrow"),
    Shortcut("3 Days", 3),
    Shortcut("This Week", 7),
    Shortcut("Weekend", 2, "Plan my weekend"),
]


def find_template(label: str) -> Optional[Template]:
    return next((template for template in TEMPLATES if template.label == label), None)


def find_shortcut(label: str) -> Optional[Shortcut]:
    return next((shortcut for shortcut in SHORTCUTS if shortcut.label == label), None)


def random_surprise_prompt(rng: Optional[random.Random] = None) -> str:
    return (rng or random).choice(SURPRISE_PROMPTS)


def goal_suggestions(
    query: str,
    user_goals: Iterable[str],
    all_goals: Iterable[str],
    max_suggestions: int = DEFAULT_MAX_SUGGESTIONS,
) -> List[str]:
    """Goals containing the query, half from the user's own history first.

    Global goals fill the remaining slots, skipping anything already picked.
    """
    needle = (query or "").strip().lower()
    if not needle or max_suggestions <= 0:
        return []

    def matching(goals: Iterable[str]) -> List[str]:
        return list(dict.fromkeys(g for g in goals if g and g.strip() and needle in g.lower()))

    user_part = matching(user_goals)[: max_suggestions // 2]
    picked = set(user_part)
    global_part = [g for g in matching(all_goals) if g not in picked][: max_suggestions - len(user_part)]
    return [*user_part, *global_part]


class RecentIdeas:
    """Most-recent-first list of ideas the user picked, kept in the local store."""

    def __init__(self, store: LocalStore) -> None:
        self._store = store
        self.items: List[str] = self._read()

    def add(self, idea: str) -> None:
        idea = (idea or "").strip()
        if not idea:
            return
        self.items = [idea, *(i for i in self.items if i != idea)][:RECENT_IDEAS_LIMIT]
        try:
            self._store.set(STORAGE_RECENT_IDEAS, self.items)
        except SQLAlchemyError:
            logger.exception("Failed to persist recent ideas")

    def _read(self) -> List[str]:
        try:
            raw = self._store.get(STORAGE_RECENT_IDEAS, [])
        except SQLAlchemyError:
            logger.exception("Failed to read recent ideas")
            return []
        if not isinstance(raw, list):
            return []
        return [item for item in raw if isinstance(item, str)][:RECENT_IDEAS_LIMIT]
