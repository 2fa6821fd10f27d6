"""Prompt assembly for AI task-plan generation."""
from __future__ import annotations

import json
from datetime import date, timedelta
from typing import Any, Dict, List, Optional

from taskpilot.services.domain_inference import Domain, infer_domain
from taskpilot.services.user_history import UserHistory

HISTORY_SUMMARY_ITEMS = 5

DOMAIN_EXAMPLES: Dict[Domain, List[Dict[str, str]]] = {
    Domain.ACADEMIC: [
        {
            "title": "Read Chapter 1 of 'Deep Work'",
            "description": "Read the first chapter and jot down 3 key takeaways in your notes. "
            "Finishing it today gives you a clear head start on the rest of the week.",
        },
        {
            "title": "Write 500 words on your research topic",
            "description": "Draft an outline and write 500 focused words. "
            "Aim for clarity and depth; polishing can wait until tomorrow.",
        },
        {
            "title": "Complete one timed practice exam section",
            "description": "Set a timer and answer one full section without notes. "
            "Mark every question you guessed so you know exactly what to review next.",
        },
    ],
    Domain.FITNESS: [
        {
            "title": "30-minute interval run",
            "description": "Alternate 2 minutes of easy running with 1 minute of walking for 30 minutes. "
            "Log how you felt afterwards; consistency beats speed this week.",
        },
        {
            "title": "Full-body strength circuit",
            "description": "Do 3 rounds of 12 squats, 10 push-ups and 12 rows with 60 seconds rest. "
            "Every round you finish builds the base for the next workout.",
        },
        {
            "title": "Mobility and stretching session",
            "description": "Spend 15 minutes on hips, hamstrings and shoulders. "
            "Recovery days keep you moving all week, so treat this one as a win.",
        },
    ],
    Domain.CAREER: [
        {
            "title": "Update resume with recent achievements",
            "description": "Add your two most recent accomplishments with measurable results. "
            "A sharp resume makes every application that follows easier.",
        },
        {
            "title": "Practice three common interview questions",
            "description": "Answer 'Tell me about yourself', a strengths question and a conflict question out loud. "
            "Record yourself once and note one thing to tighten.",
        },
        {
            "title": "Reach out to two people in your field",
            "description": "Send a short, friendly message to two contacts asking about their work. "
            "Small conversations open doors you cannot see yet.",
        },
    ],
    Domain.GENERAL: [
        {
            "title": "Define what done looks like",
            "description": "Write down 2-3 concrete signs that this goal is complete. "
            "Clarity today keeps every later task pointed in the right direction.",
        },
        {
            "title": "Block a 25-minute focus session",
            "description": "Put a 25-minute block on your calendar and silence notifications. "
            "Use it for the single most important next step and celebrate finishing it.",
        },
        {
            "title": "Review progress and pick tomorrow's step",
            "description": "Spend 10 minutes noting one win and one obstacle from today. "
            "Then choose the smallest next action so tomorrow starts with momentum.",
        },
    ],
}

SYSTEM_PROMPT_TEMPLATE = (
    "You are a helpful, encouraging task planner. {goal_line}{history_line}"
    "Generate exactly {num_days} specific, actionable daily tasks, one task per day, with no overlap between days. "
    "For each task provide:\n"
    "- \"title\": a short summary of at most 10 words\n"
    "- \"description\": at least 2 sentences of concrete steps in a motivational tone\n"
    "- \"deadline\": the due date in ISO format (YYYY-MM-DD), starting from {start_date}\n\n"
    "Here are examples of good {domain} tasks:\n{examples}\n\n"
    "Respond with JSON only, no markdown and no commentary, exactly in this shape:\n"
    "{{\"tasks\": [{{\"title\": \"...\", \"description\": \"...\", \"deadline\": \"YYYY-MM-DD\"}}]}}"
)


def summarize_history(history: UserHistory) -> str:
    summary = ""
    if history.goals:
        summary += f"Previous goals: {'; '.join(history.goals[:HISTORY_SUMMARY_ITEMS])}. "
    if history.accepted:
        summary += f"Recently accepted tasks: {'; '.join(history.accepted[:HISTORY_SUMMARY_ITEMS])}. "
    return summary.strip()


def build_system_prompt(
    history: UserHistory,
    num_days: int,
    context_goal: Optional[str],
    query: str,
    *,
    today: Optional[date] = None,
) -> str:
    """Render the planner instructions, personalised with history and domain examples."""
    start = today or date.today()
    domain = infer_domain(context_goal, query)
    examples = DOMAIN_EXAMPLES.get(domain, DOMAIN_EXAMPLES[Domain.GENERAL])

    goal_text = (context_goal or "").strip()
    goal_line = f"The user's overall goal is: \"{goal_text}\". " if goal_text else ""
    summary = summarize_history(history)
    history_line = f"{summary} " if summary else ""

    return SYSTEM_PROMPT_TEMPLATE.format(
        goal_line=goal_line,
        history_line=history_line,
        num_days=num_days,
        start_date=start.isoformat(),
        domain=domain.value,
        examples=_render_examples(examples, start),
    )


def build_user_prompt(query: str, num_days: int) -> str:
    return f'Create a {num_days}-day task plan for: "{query.strip()}"'


def _render_examples(examples: List[Dict[str, Any]], start: date) -> str:
    rendered = [
        {**example, "deadline": (start + timedelta(days=offset)).isoformat()}
        for offset, example in enumerate(examples)
    ]
    return json.dumps({"tasks": rendered}, indent=2)
