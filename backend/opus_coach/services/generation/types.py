"""Value objects flowing through the generation pipeline."""
from __future__ import annotations

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Dict, List, Literal, Optional, Sequence, Union

from pydantic import BaseModel, ConfigDict, Field

GoalCategory = Literal["personal", "professional", "health", "learning"]
GOAL_CATEGORIES = ("personal", "professional", "health", "learning")
DEFAULT_GOAL_CATEGORY: GoalCategory = "personal"


class GenerationKind(str, Enum):
    GOALS = "goals"
    TASKS = "tasks"
    REFLECTION = "reflection"
    REFLECTION_PROMPT = "reflection_prompt"


class _Suggestion(BaseModel):
    # Providers answer in camelCase; Python code uses snake_case.
    model_config = ConfigDict(populate_by_name=True, frozen=True)


class GoalSuggestion(_Suggestion):
    """Candidate goal produced for one program week."""

    title: str
    description: str
    category: GoalCategory = DEFAULT_GOAL_CATEGORY
    reasoning: str = ""
    week_number: int = Field(..., alias="weekNumber", ge=1, le=5)


class TaskSuggestion(_Suggestion):
    """Candidate task breaking down a single goal."""

    title: str
    description: str
    recommended_schedule: str = Field(default="", alias="recommendedSchedule")
    estimated_time: str = Field(default="", alias="estimatedTime")
    reasoning: str = ""


class ReflectionAnalysis(_Suggestion):
    insights: List[str]
    patterns: List[str] = Field(default_factory=list)
    recommendations: List[str] = Field(default_factory=list)
    next_week_focus: str = Field(..., alias="nextWeekFocus")


class ReflectionQuestion(_Suggestion):
    """A single question to open the weekly review."""

    prompt: str


GenerationValue = Union[List[GoalSuggestion], List[TaskSuggestion], ReflectionAnalysis, ReflectionQuestion]


@dataclass(frozen=True)
class ExistingGoal:
    title: str
    description: str = ""


@dataclass(frozen=True)
class GoalContext:
    north_star: str
    existing_goals: Sequence[ExistingGoal] = ()


@dataclass(frozen=True)
class TaskContext:
    north_star: str
    goal: ExistingGoal


@dataclass(frozen=True)
class GoalProgress:
    title: str
    progress: int = 0


@dataclass(frozen=True)
class ReflectionContext:
    wins: str = ""
    lessons: str = ""
    next_steps: str = ""
    goals: Sequence[GoalProgress] = ()
    completed_tasks: Sequence[str] = ()


@dataclass(frozen=True)
class ReflectionPromptContext:
    """Recent activity summarised for the reflection-question prompt."""

    total_goals: int = 0
    open_goals: Sequence[GoalProgress] = ()
    completed_tasks: Sequence[str] = ()
    day_in_week: int = 0


GenerationContext = Union[GoalContext, TaskContext, ReflectionContext, ReflectionPromptContext]


@dataclass(frozen=True)
class ProviderAttempt:
    provider: str
    outcome: str  # ok | error | unparseable | skipped
    latency_ms: float = 0.0
    error: Optional[str] = None


@dataclass
class GenerationOutcome:
    """Result of a generation request, including how it was obtained."""

    kind: GenerationKind
    week: int
    value: GenerationValue
    provider: Optional[str] = None
    used_fallback: bool = False
    attempts: List[ProviderAttempt] = field(default_factory=list)

    def dump_value(self) -> Any:
        if isinstance(self.value, BaseModel):
            return self.value.model_dump(by_alias=True)
        return [item.model_dump(by_alias=True) for item in self.value]

    def summary(self) -> Dict[str, Any]:
        return {
            "kind": self.kind.value,
            "week": self.week,
            "provider": self.provider,
            "used_fallback": self.used_fallback,
            "attempts": [asdict(attempt) for attempt in self.attempts],
        }
