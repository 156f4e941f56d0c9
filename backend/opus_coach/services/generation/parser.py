"""Turn free-text provider responses into validated suggestion objects.

Providers are told to answer with bare JSON but routinely wrap it in prose or
markdown fences. The parser scans for the first JSON value of the right shape,
validates it, and returns None (never raises) when nothing usable is found.
"""
from __future__ import annotations

import json
import logging
from typing import Any, Dict, Iterator, List, Optional

from pydantic import ValidationError

from opus_coach.services.generation.types import (
    DEFAULT_GOAL_CATEGORY,
    GOAL_CATEGORIES,
    GenerationKind,
    GenerationValue,
    GoalSuggestion,
    ReflectionAnalysis,
    ReflectionQuestion,
    TaskSuggestion,
)

logger = logging.getLogger(__name__)

WRAPPER_KEYS = {
    GenerationKind.GOALS: "goals",
    GenerationKind.TASKS: "tasks",
}
MAX_ITEMS = 10
MAX_QUESTION_LENGTH = 300
QUESTION_KEYS = ("prompt", "question")

_decoder = json.JSONDecoder()


def parse_response(kind: GenerationKind, raw_text: Optional[str], *, week: Optional[int] = None) -> Optional[GenerationValue]:
    """Parse raw provider text for `kind`; None signals a parse failure."""
    kind = GenerationKind(kind)
    if not raw_text or not raw_text.strip():
        return None

    try:
        if kind is GenerationKind.REFLECTION:
            return _parse_reflection(raw_text)
        if kind is GenerationKind.REFLECTION_PROMPT:
            return _parse_question(raw_text)
        return _parse_items(raw_text, kind, week)
    except Exception:  # pragma: no cover - last line of defence against odd payloads
        logger.warning("Unexpected error while parsing %s response", kind.value, exc_info=True)
        return None


def _iter_json_values(text: str, openers: str) -> Iterator[Any]:
    """
    Yield every JSON value that decodes cleanly from an opening bracket, left to right.

    Scanning resumes one character after each opener, so values nested inside a
    rejected candidate are still visited.
    """
    for index, char in enumerate(text):
        if char not in openers:
            continue
        try:
            value, _ = _decoder.raw_decode(text, index)
        except json.JSONDecodeError:
            continue
        yield value


def _parse_items(text: str, kind: GenerationKind, week: Optional[int]) -> Optional[List[Any]]:
    wrapper_key = WRAPPER_KEYS[kind]
    for value in _iter_json_values(text, "[{"):
        if isinstance(value, dict):
            value = value.get(wrapper_key)
        if not isinstance(value, list):
            continue
        built = _build_goals(value, week) if kind is GenerationKind.GOALS else _build_tasks(value)
        if built:
            return built
    return None


def _text(value: Any) -> Optional[str]:
    if isinstance(value, str):
        cleaned = value.strip()
        return cleaned or None
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return None


def _build_goals(items: List[Any], week: Optional[int]) -> List[GoalSuggestion]:
    goals: List[GoalSuggestion] = []
    for item in items[:MAX_ITEMS]:
        if not isinstance(item, dict):
            continue
        title = _text(item.get("title"))
        description = _text(item.get("description"))
        if not title or not description:
            continue
        category = (_text(item.get("category")) or "").lower()
        if category not in GOAL_CATEGORIES:
            category = DEFAULT_GOAL_CATEGORY
        # The requested week wins over whatever the provider claims.
        week_number = week if week is not None else item.get("weekNumber", item.get("week_number"))
        try:
            goals.append(
                GoalSuggestion(
                    title=title,
                    description=description,
                    category=category,
                    reasoning=_text(item.get("reasoning")) or "",
                    week_number=week_number,
                )
            )
        except ValidationError:
            continue
    return goals


def _build_tasks(items: List[Any]) -> List[TaskSuggestion]:
    tasks: List[TaskSuggestion] = []
    for item in items[:MAX_ITEMS]:
        if not isinstance(item, dict):
            continue
        title = _text(item.get("title"))
        description = _text(item.get("description"))
        if not title or not description:
            continue
        tasks.append(
            TaskSuggestion(
                title=title,
                description=description,
                recommended_schedule=_text(item.get("recommendedSchedule", item.get("recommended_schedule"))) or "",
                estimated_time=_text(item.get("estimatedTime", item.get("estimated_time"))) or "",
                reasoning=_text(item.get("reasoning")) or "",
            )
        )
    return tasks


def _parse_reflection(text: str) -> Optional[ReflectionAnalysis]:
    for value in _iter_json_values(text, "{"):
        if not isinstance(value, dict):
            continue
        analysis = _build_reflection(value)
        if analysis is not None:
            return analysis
    return None


def _build_reflection(payload: Dict[str, Any]) -> Optional[ReflectionAnalysis]:
    insights = _string_list(payload.get("insights"))
    next_week_focus = _text(payload.get("nextWeekFocus", payload.get("next_week_focus")))
    if not insights or not next_week_focus:
        return None
    return ReflectionAnalysis(
        insights=insights,
        patterns=_string_list(payload.get("patterns")),
        recommendations=_string_list(payload.get("recommendations")),
        next_week_focus=next_week_focus,
    )


def _string_list(value: Any) -> List[str]:
    if not isinstance(value, list):
        return []
    cleaned = [_text(item) for item in value[:MAX_ITEMS]]
    return [item for item in cleaned if item]


def _parse_question(text: str) -> Optional[ReflectionQuestion]:
    """Accept `{"prompt": "..."}` or a bare line of text with stray quotes trimmed."""
    for value in _iter_json_values(text, "{"):
        if not isinstance(value, dict):
            continue
        for key in QUESTION_KEYS:
            question = _clean_question(value.get(key))
            if question:
                return ReflectionQuestion(prompt=question)
    if "{" in text:
        return None
    lines = [line for line in text.strip().splitlines() if line.strip()]
    question = _clean_question(lines[0]) if lines else None
    return ReflectionQuestion(prompt=question) if question else None


def _clean_question(value: Any) -> Optional[str]:
    cleaned = _text(value)
    if not cleaned:
        return None
    cleaned = cleaned.strip("\"'").strip()
    if not cleaned or len(cleaned) > MAX_QUESTION_LENGTH:
        return None
    return cleaned
