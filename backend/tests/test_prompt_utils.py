from __future__ import annotations

import json

from investease.adaptive import LearnerProfile
from investease.prompt_utils import build_coaching_prompt, clean_lesson_titles


def test_clean_lesson_titles_drops_blanks_and_duplicates() -> None:
    titles = ["  Estimating Fair Value ", "", "Estimating Fair Value", "Investor Psychology", 3]

    assert clean_lesson_titles(titles) == ["Estimating Fair Value", "Investor Psychology"]  # type: ignore[list-item]


def test_clean_lesson_titles_honours_limit() -> None:
    assert clean_lesson_titles(["A", "B", "C"], limit=2) == ["A", "B"]
    assert clean_lesson_titles(["A"], limit=0) == []


def test_prompt_embeds_profile_and_lessons() -> None:
    profile = LearnerProfile(confidence=2, valuation_skill=8, behavior_discipline=5)

    prompt = build_coaching_prompt(profile, ["Investor Psychology"])

    lines = prompt.splitlines()
    assert lines[0].startswith("You are an investing learning coach.")
    assert json.loads(lines[1].removeprefix("Learner profile: ")) == {
        "confidence": 2,
        "valuationSkill": 8,
        "behaviorDiscipline": 5,
    }
    assert json.loads(lines[2].removeprefix("Next lessons: ")) == ["Investor Psychology"]
    assert lines[3] == "Return JSON with keys: headline, summary, nextStep."
