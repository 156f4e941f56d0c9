from __future__ import annotations

import pytest

from opus_coach.core.errors import MissingContextError
from opus_coach.services.generation.prompts import WEEK_PROMPTS, build_prompt
from opus_coach.services.generation.types import (
    ExistingGoal,
    GenerationKind,
    GoalContext,
    GoalProgress,
    ReflectionContext,
    ReflectionPromptContext,
    TaskContext,
)
from opus_coach.services.program.themes import theme_for

NORTH_STAR = "Lead a product team that ships calm, useful software"


@pytest.mark.parametrize("week", [1, 2, 3, 4, 5])
def test_goal_prompt_states_theme_task_schema_and_avoid_list(week: int) -> None:
    theme = theme_for(week)

    prompt = build_prompt(GenerationKind.GOALS, week, GoalContext(north_star=NORTH_STAR), theme=theme)

    assert f"Week {week} Theme: {theme.title.upper()}" in prompt
    assert theme.focus in prompt
    assert "Generate 3-4 specific, actionable goals" in prompt
    assert '"weekNumber": ' + str(week) in prompt
    assert "AVOID:" in prompt
    assert NORTH_STAR in prompt
    assert theme.goal_guidance in prompt


@pytest.mark.parametrize("week", [1, 2, 3, 4, 5])
def test_task_prompt_states_theme_task_schema_and_avoid_list(week: int) -> None:
    theme = theme_for(week)
    context = TaskContext(north_star=NORTH_STAR, goal=ExistingGoal(title="Morning ritual", description="Plan first"))

    prompt = build_prompt(GenerationKind.TASKS, week, context, theme=theme)

    assert theme.title.upper() in prompt
    assert "Generate 3-5 specific tasks" in prompt
    assert "Title: Morning ritual" in prompt
    assert '"recommendedSchedule"' in prompt
    assert "AVOID:" in prompt
    assert theme.task_guidance in prompt


def test_week_prompts_differ_per_week() -> None:
    prompts = {
        build_prompt(GenerationKind.GOALS, week, GoalContext(north_star=NORTH_STAR), theme=theme_for(week))
        for week in range(1, 6)
    }

    assert len(prompts) == 5
    assert set(WEEK_PROMPTS) == {1, 2, 3, 4, 5}


def test_existing_goals_are_listed_to_avoid_duplicates() -> None:
    context = GoalContext(
        north_star=NORTH_STAR,
        existing_goals=(ExistingGoal(title="Read one book", description="Finish it this week"),),
    )

    prompt = build_prompt(GenerationKind.GOALS, 1, context, theme=theme_for(1))

    assert "EXISTING GOALS (avoid duplicates):" in prompt
    assert "- Read one book: Finish it this week" in prompt
    assert "Duplicating existing goals" in prompt


def test_final_week_goal_prompt_is_marked() -> None:
    prompt = build_prompt(GenerationKind.GOALS, 5, GoalContext(north_star=NORTH_STAR), theme=theme_for(5))

    assert "Week 5 (FINAL WEEK)" in prompt


def test_reflection_prompt_mentions_next_theme_and_progress() -> None:
    context = ReflectionContext(
        wins="Kept my morning ritual",
        lessons="",
        next_steps="Time-block Fridays",
        goals=(GoalProgress(title="Morning ritual", progress=60),),
        completed_tasks=("Plan Monday",),
    )

    prompt = build_prompt(GenerationKind.REFLECTION, 2, context, theme=theme_for(2), next_theme=theme_for(3))

    assert "WEEK 2 THEME: Rhythm" in prompt
    assert "NEXT WEEK THEME: Network" in prompt
    assert "Lessons: Not provided" in prompt
    assert "Morning ritual (60% complete)" in prompt
    assert "Tasks Completed: Plan Monday" in prompt
    assert '"nextWeekFocus"' in prompt
    assert "AVOID:" in prompt


def test_reflection_prompt_after_final_week_says_program_complete() -> None:
    prompt = build_prompt(GenerationKind.REFLECTION, 5, ReflectionContext(), theme=theme_for(5), next_theme=None)

    assert "NEXT WEEK THEME: Program Complete" in prompt
    assert "Goals: None" in prompt
    assert "Wins: Not provided" in prompt


def test_mismatched_context_is_rejected() -> None:
    with pytest.raises(MissingContextError):
        build_prompt(GenerationKind.TASKS, 1, GoalContext(north_star=NORTH_STAR), theme=theme_for(1))


@pytest.mark.parametrize("week", [1, 2, 3, 4, 5])
def test_reflection_question_prompt_draws_on_week_questions(week: int) -> None:
    theme = theme_for(week)
    context = ReflectionPromptContext(
        total_goals=3,
        open_goals=(GoalProgress(title="Morning ritual", progress=40),),
        completed_tasks=("Plan Monday", "Walk at lunch"),
    )

    prompt = build_prompt(GenerationKind.REFLECTION_PROMPT, week, context, theme=theme)

    assert "Generate one thoughtful reflection question" in prompt
    assert all(question in prompt for question in theme.reflection_prompts)
    assert "Total goals: 3" in prompt
    assert "Morning ritual (40% complete)" in prompt
    assert "Completed tasks this week: 2 (Plan Monday, Walk at lunch)" in prompt
    assert '{"prompt": ' in prompt


def test_reflection_question_prompt_needs_activity_context() -> None:
    with pytest.raises(MissingContextError):
        build_prompt(GenerationKind.REFLECTION_PROMPT, 1, GoalContext(north_star=NORTH_STAR), theme=theme_for(1))


def test_plain_string_kind_selects_the_same_template() -> None:
    context = GoalContext(north_star=NORTH_STAR)

    assert build_prompt("goals", 2, context, theme=theme_for(2)) == build_prompt(
        GenerationKind.GOALS, 2, context, theme=theme_for(2)
    )
