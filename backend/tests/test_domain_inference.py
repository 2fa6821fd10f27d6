from __future__ import annotations

import pytest

from taskpilot.services.domain_inference import Domain, infer_domain


@pytest.mark.parametrize(
    "context_goal,query,expected",
    [
        (None, "Plan my week for studying for finals", Domain.ACADEMIC),
        (None, "Train for a 10k run", Domain.FITNESS),
        (None, "Prepare for my job interview", Domain.CAREER),
        (None, "Clean out the garage", Domain.GENERAL),
        ("Go to the gym three times a week", "Plan something", Domain.FITNESS),
    ],
)
def test_infer_domain_matches_keywords(context_goal, query, expected) -> None:
    assert infer_domain(context_goal, query) == expected


def test_academic_pattern_wins_over_later_ones() -> None:
    # "exam" and "gym" both match; academic is checked first.
    assert infer_domain(None, "Exam prep between gym sessions") == Domain.ACADEMIC


@pytest.mark.parametrize("query", ["", "   ", None, 42, "!!!"])
def test_infer_domain_is_total(query) -> None:
    assert infer_domain(None, query) == Domain.GENERAL


def test_domain_values_are_plain_strings() -> None:
    assert [d.value for d in Domain] == ["academic", "fitness", "career", "general"]
