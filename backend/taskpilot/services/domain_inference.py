"""Keyword heuristics for picking the example set used in planning prompts."""
from __future__ import annotations

import re
from enum import Enum
from typing import Any, List, Pattern, Tuple


class Domain(str, Enum):
    ACADEMIC = "academic"
    FITNESS = "fitness"
    CAREER = "career"
    GENERAL = "general"


DOMAIN_PATTERNS: List[Tuple[Domain, Pattern[str]]] = [
    (
        Domain.ACADEMIC,
        re.compile(
            r"\b(stud(y|ying|ies)|exams?|finals?|midterms?|homework|essays?|thesis|class(es)?|course(work)?|"
            r"lectures?|semester|research|read(ing)?|learn(ing)?|school|college|universit(y|ies)|gpa|quiz(zes)?)\b"
        ),
    ),
    (
        Domain.FITNESS,
        re.compile(
            r"\b(fitness|workouts?|exercis(e|es|ing)|gym|run(s|ning)?|jog(ging)?|marathon|5k|10k|yoga|"
            r"cardio|strength|lift(ing)?|weights?|stretch(ing)?|diet|nutrition|meal ?prep|sleep|steps)\b"
        ),
    ),
    (
        Domain.CAREER,
        re.compile(
            r"\b(career|jobs?|interviews?|resumes?|cv|portfolio|linkedin|promotion|network(ing)?|"
            r"salary|hiring|internships?|work|project|presentation|clients?|business|launch)\b"
        ),
    ),
]


def infer_domain(context_goal: Any, query: Any) -> Domain:
    """Classify the steering goal plus query; falls back to ``Domain.GENERAL``."""
    text = f"{_as_text(context_goal)} {_as_text(query)}".lower()
    for domain, pattern in DOMAIN_PATTERNS:
        if pattern.search(text):
            return domain
    return Domain.GENERAL


def _as_text(value: Any) -> str:
    return value if isinstance(value, str) else ""
