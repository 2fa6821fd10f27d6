from __future__ import annotations

import json
from datetime import date

from taskpilot.services.prompt_builder import (
    DOMAIN_EXAMPLES,
    build_system_prompt,
    build_user_prompt,
    summarize_history,
)
from taskpilot.services.domain_inference import Domain
from taskpilot.services.user_history import UserHistory


def test_summarize_history_caps_each_list_at_five() -> None:
    history = UserHistory(goals=[f"goal {i}" for i in range(8)], accepted=["Run", "Read"])

    summary = summarize_history(history)

    assert "goal 4" in summary
    assert "goal 5" not in summary
    assert "Recently accepted tasks: Run; Read." in summary


def test_summarize_history_empty() -> None:
    assert summarize_history(UserHistory()) == ""


def test_system_prompt_embeds_goal_history_days_and_domain_examples() -> None:
    history = UserHistory(goals=["Ace calculus"], accepted=["Review limits"])

    prompt = build_system_prompt(
        history,
        5,
        "Graduate with honors",
        "Plan my week for studying for finals",
        today=date(2030, 3, 1),
    )

    assert 'The user\'s overall goal is: "Graduate with honors".' in prompt
    assert "Previous goals: Ace calculus." in prompt
    assert "Generate exactly 5 specific" in prompt
    assert "starting from 2030-03-01" in prompt
    assert "good academic tasks" in prompt
    assert DOMAIN_EXAMPLES[Domain.ACADEMIC][0]["title"] in prompt
    assert '"deadline": "2030-03-02"' in prompt
    assert "JSON only" in prompt


def test_system_prompt_without_goal_or_history_uses_general_examples() -> None:
    prompt = build_system_prompt(UserHistory(), 3, None, "Clean the garage", today=date(2030, 1, 1))

    assert "overall goal" not in prompt
    assert "Previous goals" not in prompt
    assert "good general tasks" in prompt
    examples_block = prompt.split("tasks:\n", 1)[1].split("\n\nRespond", 1)[0]
    assert len(json.loads(examples_block)["tasks"]) == len(DOMAIN_EXAMPLES[Domain.GENERAL])


def test_user_prompt_states_days_and_query() -> None:
    assert build_user_prompt("  Learn Spanish ", 4) == 'Create a 4-day task plan for: "Learn Spanish"'
