"""Hand-written content returned when every provider fails."""
from __future__ import annotations

from typing import Callable, Dict, List, Tuple

from opus_coach.services.generation.types import (
    GenerationContext,
    GenerationKind,
    GenerationValue,
    GoalSuggestion,
    ReflectionAnalysis,
    ReflectionContext,
    ReflectionPromptContext,
    ReflectionQuestion,
    TaskContext,
    TaskSuggestion,
)
from opus_coach.services.program.themes import FINAL_WEEK, FIRST_WEEK, theme_for

# (title, description, category, reasoning)
_GOAL_ROWS: Dict[int, List[Tuple[str, str, str, str]]] = {
    1: [
        (
            "Clarify your professional values",
            "Spend 30 minutes writing about what makes work meaningful to you. Focus on values, "
            "not job titles. What do you stand for?",
            "personal",
            "Understanding your values is the foundation for purpose-driven work.",
        ),
        (
            "Audit your work for purpose alignment",
            "Review your last month of work. What percentage aligned with your values? What "
            "energized you vs. drained you?",
            "professional",
            "Awareness of current alignment helps you course-correct toward your north star.",
        ),
        (
            "Define what 'meaningful work' means to you",
            "Write 2-3 paragraphs describing your ideal workday. What are you doing? Who are you "
            "helping? How do you feel?",
            "personal",
            "Clarity on what meaningful work looks like makes it easier to pursue.",
        ),
    ],
    2: [
        (
            "Establish a morning ritual",
            "Design and commit to a 15-minute morning practice that energizes you for the day "
            "ahead. Could include planning, journaling, or skill practice.",
            "personal",
            "Consistent daily practices create the rhythm for long-term success.",
        ),
        (
            "Time-block your ideal work week",
            "Design your ideal weekly schedule. When do you do deep work? When do you connect "
            "with people? When do you recharge?",
            "professional",
            "Intentional scheduling turns your north star into daily reality.",
        ),
        (
            "Track and optimize your energy patterns",
            "For one week, note when you feel most focused, creative, and energized. Design your "
            "schedule around these patterns.",
            "personal",
            "Working with your natural energy rhythms multiplies your effectiveness.",
        ),
    ],
    3: [
        (
            "Connect with a mentor or advisor",
            "Reach out to someone you admire and schedule a 30-minute conversation to learn from "
            "their experience. Come prepared with thoughtful questions.",
            "professional",
            "Strong relationships accelerate your growth and open new possibilities.",
        ),
        (
            "Audit your network for energy alignment",
            "Review your recent conversations. Who energizes you? Who drains you? Who challenges "
            "you to grow? Design your network intentionally.",
            "professional",
            "Surrounding yourself with the right people shapes your trajectory toward your north star.",
        ),
        (
            "Give value to 5 people in your network",
            "Identify 5 people and share something valuable with each: an introduction, a "
            "resource, feedback, or genuine appreciation.",
            "professional",
            "Building relationships is about contribution. Give value to create authentic connection.",
        ),
    ],
    4: [
        (
            "Document your decision-making framework",
            "Create a simple framework for how you make key professional decisions. Write down "
            "your criteria for saying yes or no to opportunities.",
            "professional",
            "Systems reduce decision fatigue and improve consistency.",
        ),
        (
            "Build a weekly review system",
            "Design a repeatable process for weekly planning and reflection. Create a template "
            "you can use every week.",
            "professional",
            "Regular review systems ensure you stay aligned with your north star.",
        ),
        (
            "Create templates for recurring work",
            "Identify 3-5 types of work you do repeatedly. Build templates, checklists, or "
            "frameworks to streamline them.",
            "professional",
            "Systematizing routine work frees mental energy for high-impact work.",
        ),
    ],
    5: [
        (
            "Master one core skill through deliberate practice",
            "Choose your most valuable skill and practice it deliberately for 30 minutes daily "
            "this week. Focus on specific sub-skills, not general practice.",
            "learning",
            "Deep skill development creates compounding returns in your career.",
        ),
        (
            "Get expert feedback on your work",
            "Share a recent piece of work with someone you respect. Ask for specific, actionable "
            "feedback. Iterate based on their input.",
            "professional",
            "Expert feedback accelerates your path to mastery.",
        ),
        (
            "Study and implement best practices",
            "Research how 3 experts in your field approach a key skill. Identify one technique to "
            "experiment with this week.",
            "learning",
            "Learning from masters shortcuts the path to excellence.",
        ),
    ],
}


def fallback_goals(week: int) -> List[GoalSuggestion]:
    return [
        GoalSuggestion(
            title=title,
            description=description,
            category=category,
            reasoning=reasoning,
            week_number=week,
        )
        for title, description, category, reasoning in _GOAL_ROWS[week]
    ]


def fallback_tasks(goal_title: str) -> List[TaskSuggestion]:
    """Research / plan / act breakdown that works for any goal."""
    return [
        TaskSuggestion(
            title=f"Research: {goal_title}",
            description="Spend 15 minutes researching best practices and approaches.",
            recommended_schedule="Morning",
            estimated_time="15 minutes",
            reasoning="Morning is best for focused research",
        ),
        TaskSuggestion(
            title=f"Plan: {goal_title}",
            description="Create a simple action plan with 3-5 concrete steps.",
            recommended_schedule="Afternoon",
            estimated_time="20 minutes",
            reasoning="Planning works well in afternoon energy",
        ),
        TaskSuggestion(
            title=f"Act: First step toward {goal_title}",
            description="Take the first action from your plan.",
            recommended_schedule="Morning",
            estimated_time="30 minutes",
            reasoning="Do hardest work when energy is highest",
        ),
    ]


def fallback_reflection(week: int, context: ReflectionContext | None = None) -> ReflectionAnalysis:
    insights = [
        "You're making progress on your transformation journey.",
        "Consistency is more important than perfection.",
        "Small wins compound into major achievements.",
    ]
    recommendations = [
        "Continue building on this week's momentum.",
        "Identify one small improvement for next week.",
        "Celebrate your progress so far.",
    ]
    if context is not None:
        if context.wins.strip():
            insights.insert(0, "You're making tangible progress. Keep celebrating these wins.")
        if not context.next_steps.strip():
            recommendations[1] = "Define 1-2 clear next steps for the coming week."
    return ReflectionAnalysis(
        insights=insights,
        patterns=[
            "Focus on what's working and do more of it.",
            "Learn from challenges without self-judgment.",
        ],
        recommendations=recommendations,
        next_week_focus=(
            f"Continue building on Week {week}'s foundation. Stay consistent with what's working "
            "and make one small adjustment to improve."
        ),
    )


def fallback_reflection_question(week: int, context: ReflectionPromptContext | None = None) -> ReflectionQuestion:
    """Rotate through the week's theme questions, one per day of the week."""
    questions = theme_for(week).reflection_prompts
    day = context.day_in_week if context is not None else 0
    return ReflectionQuestion(prompt=questions[day % len(questions)])


FallbackFn = Callable[[GenerationContext], GenerationValue]


def _goals_for(week: int) -> FallbackFn:
    return lambda context: fallback_goals(week)


def _tasks_for(week: int) -> FallbackFn:
    def build(context: GenerationContext) -> GenerationValue:
        title = context.goal.title if isinstance(context, TaskContext) else "your goal"
        return fallback_tasks(title)

    return build


def _reflection_for(week: int) -> FallbackFn:
    def build(context: GenerationContext) -> GenerationValue:
        return fallback_reflection(week, context if isinstance(context, ReflectionContext) else None)

    return build


def _question_for(week: int) -> FallbackFn:
    def build(context: GenerationContext) -> GenerationValue:
        return fallback_reflection_question(week, context if isinstance(context, ReflectionPromptContext) else None)

    return build


FALLBACKS: Dict[Tuple[int, GenerationKind], FallbackFn] = {}
for _week in range(FIRST_WEEK, FINAL_WEEK + 1):
    FALLBACKS[(_week, GenerationKind.GOALS)] = _goals_for(_week)
    FALLBACKS[(_week, GenerationKind.TASKS)] = _tasks_for(_week)
    FALLBACKS[(_week, GenerationKind.REFLECTION)] = _reflection_for(_week)
    FALLBACKS[(_week, GenerationKind.REFLECTION_PROMPT)] = _question_for(_week)
