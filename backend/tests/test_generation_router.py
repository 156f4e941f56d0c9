from __future__ import annotations

import json
from typing import List

import pytest

from opus_coach.core.config import Settings
from opus_coach.core.errors import InvalidWeekError, MissingContextError
from opus_coach.services.generation.chain import ProviderFallbackChain, orders_from_settings
from opus_coach.services.generation.providers import TextProvider
from opus_coach.services.generation.router import ROUTES, GenerationRouter
from opus_coach.services.generation.types import (
    ExistingGoal,
    GenerationKind,
    GoalContext,
    ReflectionAnalysis,
    ReflectionContext,
    ReflectionPromptContext,
    ReflectionQuestion,
    TaskContext,
)
from opus_coach.services.program.themes import theme_for


class RecordingProvider(TextProvider):
    name = "anthropic"

    def __init__(self, response: str = ""):
        self.response = response
        self.prompts: List[str] = []

    @property
    def available(self) -> bool:
        return True

    def complete(self, kind: GenerationKind, prompt: str) -> str:
        self.prompts.append(prompt)
        return self.response


def _router(provider: TextProvider) -> GenerationRouter:
    orders = {kind: ["anthropic"] for kind in GenerationKind}
    return GenerationRouter(ProviderFallbackChain([provider], orders))


@pytest.mark.parametrize("week", [0, 6, -1])
def test_route_rejects_weeks_outside_program(week: int) -> None:
    provider = RecordingProvider()

    with pytest.raises(InvalidWeekError) as excinfo:
        _router(provider).route(GenerationKind.GOALS, week, GoalContext(north_star="x"))

    assert excinfo.value.week == week
    assert provider.prompts == []


def test_every_week_and_kind_has_a_route() -> None:
    assert set(ROUTES) == {(week, kind) for week in range(1, 6) for kind in GenerationKind}


def test_route_uses_week_specific_prompt() -> None:
    provider = RecordingProvider("no json")
    router = _router(provider)

    router.route(GenerationKind.GOALS, 3, GoalContext(north_star="Mentor new engineers"))

    assert "NETWORK" in provider.prompts[0]


def test_route_falls_back_to_week_content() -> None:
    outcome = _router(RecordingProvider("no json")).route(
        GenerationKind.GOALS, 4, GoalContext(north_star="Run my own studio")
    )

    assert outcome.used_fallback is True
    assert outcome.week == 4
    assert outcome.value[0].title == "Document your decision-making framework"
    assert all(goal.week_number == 4 for goal in outcome.value)


def test_task_fallback_uses_goal_title() -> None:
    context = TaskContext(north_star="Write a book", goal=ExistingGoal(title="Outline chapter one"))

    outcome = _router(RecordingProvider("")).route(GenerationKind.TASKS, 1, context)

    assert outcome.used_fallback is True
    assert [task.title for task in outcome.value] == [
        "Research: Outline chapter one",
        "Plan: Outline chapter one",
        "Act: First step toward Outline chapter one",
    ]


def test_reflection_prompt_includes_next_theme() -> None:
    provider = RecordingProvider(json.dumps({"insights": ["Good week"], "nextWeekFocus": "Relationships"}))

    outcome = _router(provider).route(GenerationKind.REFLECTION, 2, ReflectionContext(wins="Kept the ritual"))

    assert "NEXT WEEK THEME: Network" in provider.prompts[0]
    assert isinstance(outcome.value, ReflectionAnalysis)
    assert outcome.provider == "anthropic"


def test_reflection_in_final_week_targets_program_completion() -> None:
    provider = RecordingProvider("")

    outcome = _router(provider).route(GenerationKind.REFLECTION, 5, ReflectionContext())

    assert "Program Complete" in provider.prompts[0]
    assert "Week 5" in outcome.value.next_week_focus


def test_context_must_match_kind() -> None:
    with pytest.raises(MissingContextError):
        _router(RecordingProvider()).route(GenerationKind.GOALS, 1, ReflectionContext())


def test_from_settings_without_keys_always_falls_back() -> None:
    settings = Settings(anthropic_api_key=None, openai_api_key=None, _env_file=None)
    router = GenerationRouter.from_settings(settings)

    outcome = router.route(GenerationKind.GOALS, 1, GoalContext(north_star="Teach"))

    assert outcome.used_fallback is True
    assert [attempt.outcome for attempt in outcome.attempts] == ["skipped", "skipped"]


def test_provider_orders_come_from_settings() -> None:
    settings = Settings(task_provider_order=["anthropic"], _env_file=None)

    orders = orders_from_settings(settings)

    assert orders[GenerationKind.TASKS] == ["anthropic"]
    assert orders[GenerationKind.GOALS] == ["anthropic", "openai"]


def test_plain_string_kind_resolves_next_theme() -> None:
    provider = RecordingProvider("")

    outcome = _router(provider).route("reflection", 3, ReflectionContext(wins="Two coffee chats"))

    assert outcome.kind is GenerationKind.REFLECTION
    assert "NEXT WEEK THEME: Structure" in provider.prompts[0]


def test_reflection_question_from_provider() -> None:
    provider = RecordingProvider('{"prompt": "Which conversation changed your mind this week?"}')

    outcome = _router(provider).route(GenerationKind.REFLECTION_PROMPT, 3, ReflectionPromptContext(total_goals=2))

    assert outcome.used_fallback is False
    assert outcome.value == ReflectionQuestion(prompt="Which conversation changed your mind this week?")


def test_reflection_question_falls_back_to_week_questions_by_day() -> None:
    router = _router(RecordingProvider("{not json"))

    monday = router.route(GenerationKind.REFLECTION_PROMPT, 2, ReflectionPromptContext(day_in_week=0))
    tuesday = router.route(GenerationKind.REFLECTION_PROMPT, 2, ReflectionPromptContext(day_in_week=1))

    questions = theme_for(2).reflection_prompts
    assert monday.used_fallback is True
    assert monday.value.prompt == questions[0]
    assert tuesday.value.prompt == questions[1]
