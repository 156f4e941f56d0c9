"""Static five-week Opus program themes."""
from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import List, Mapping, Optional, Tuple

FIRST_WEEK = 1
FINAL_WEEK = 5
DAYS_PER_WEEK = 7
PROGRAM_LENGTH_DAYS = FINAL_WEEK * DAYS_PER_WEEK


@dataclass(frozen=True)
class WeekTheme:
    """Theme descriptor driving the prompts for one program week."""

    week: int
    title: str
    emoji: str
    focus: str
    description: str
    goal_guidance: str
    task_guidance: str
    reflection_prompts: Tuple[str, ...]

    def to_dict(self) -> dict:
        return {
            "week": self.week,
            "title": self.title,
            "emoji": self.emoji,
            "focus": self.focus,
            "description": self.description,
            "reflection_prompts": list(self.reflection_prompts),
        }


_THEMES = (
    WeekTheme(
        week=1,
        title="Purpose",
        emoji="🎯",
        focus="Clarifying vision and identifying meaningful work",
        description=(
            "This week is about getting crystal clear on what meaningful work looks like for you. "
            "We're not chasing titles or external validation; we're defining what truly matters."
        ),
        goal_guidance=(
            "Focus on values-based goals that align with the user's north star.\n"
            "Goals should help them:\n"
            "- Clarify what meaningful work means to them personally\n"
            "- Identify their core professional values\n"
            "- Define success on their own terms\n"
            "- Build self-awareness about what energizes them\n"
            "Avoid generic career goals. Be specific and introspective."
        ),
        task_guidance=(
            "Tasks should be reflective and exploratory:\n"
            "- Journaling exercises about values and meaning\n"
            "- Conversations with mentors or role models\n"
            "- Auditing current work for alignment with values\n"
            "- Reading/research about purpose-driven work\n"
            "Schedule reflective tasks in the morning when the mind is fresh.\n"
            "Keep tasks small and achievable (15-30 minutes)."
        ),
        reflection_prompts=(
            "What moments this week made you feel most alive professionally?",
            "When did you feel like you were doing work that truly mattered?",
            'What did you learn about what "meaningful work" means to you?',
            "What surprised you about your professional values this week?",
        ),
    ),
    WeekTheme(
        week=2,
        title="Rhythm",
        emoji="⚡",
        focus="Building daily habits and consistent practices",
        description=(
            "Purpose without rhythm is just a dream. This week is about building the daily "
            "practices that turn your vision into reality."
        ),
        goal_guidance=(
            "Focus on habit-formation and consistency goals:\n"
            "- Establish daily rituals that support their north star\n"
            "- Create sustainable routines (not just productivity hacks)\n"
            "- Build energy management practices\n"
            "- Design their ideal work rhythm\n"
            'Goals should be process-oriented, not outcome-oriented. Emphasize "systems" over "goals."'
        ),
        task_guidance=(
            "Tasks should build consistent habits:\n"
            "- Morning/evening routines\n"
            "- Daily practice of core skills\n"
            "- Time-blocking exercises\n"
            "- Energy tracking and optimization\n"
            "Recommend tasks at the same time each day to build habit loops.\n"
            'Start with "tiny habits": 5-10 minute commitments.'
        ),
        reflection_prompts=(
            "What daily practice gave you the most energy this week?",
            "Which habits stuck, and which didn't? Why?",
            "When were you most productive, and what conditions made that possible?",
            "What rhythm would you design for your ideal workday?",
        ),
    ),
    WeekTheme(
        week=3,
        title="Network",
        emoji="🤝",
        focus="Strengthening connections and building relationships",
        description=(
            "Your network isn't about collecting business cards. It's about building genuine "
            "relationships with people who energize and challenge you."
        ),
        goal_guidance=(
            "Focus on relationship-building goals:\n"
            "- Identify key relationships to nurture\n"
            "- Find mentors or advisors aligned with their north star\n"
            "- Build a community of support\n"
            "- Give value to others (not just take)\n"
            "Goals should be about quality of connections, not quantity."
        ),
        task_guidance=(
            "Tasks should facilitate genuine connection:\n"
            "- Reach out to specific people for coffee/calls\n"
            "- Ask thoughtful questions and listen\n"
            "- Share valuable resources with their network\n"
            "- Join communities aligned with their values\n"
            "Schedule connection tasks in the afternoon (better energy for social).\n"
            "One meaningful conversation beats multiple superficial ones."
        ),
        reflection_prompts=(
            "Who energized you this week? What made that conversation valuable?",
            "What did you learn from someone in your network?",
            "How did you add value to others this week?",
            "What patterns do you notice in your most valuable relationships?",
        ),
    ),
    WeekTheme(
        week=4,
        title="Structure",
        emoji="🏗️",
        focus="Designing systems and frameworks",
        description=(
            "Motivation fades. Systems endure. This week is about building the frameworks that "
            "make success inevitable."
        ),
        goal_guidance=(
            "Focus on system-building goals:\n"
            "- Create frameworks for decision-making\n"
            "- Build systems for key workflows\n"
            "- Design accountability structures\n"
            "- Establish boundaries and guardrails\n"
            'Goals should create sustainable infrastructure. Think: "What would make this automatic?"'
        ),
        task_guidance=(
            "Tasks should build repeatable systems:\n"
            "- Document workflows and processes\n"
            "- Create templates for recurring work\n"
            "- Set up automation where possible\n"
            "- Design decision-making frameworks\n"
            "Schedule system-building in the morning (requires focused thinking).\n"
            "One good system can save hours each week."
        ),
        reflection_prompts=(
            "What process did you struggle with this week that needs a system?",
            "Where did you waste time on decisions that could be automated?",
            "What system, if you built it, would save you 5+ hours per week?",
            "How can you make your best behaviors the default?",
        ),
    ),
    WeekTheme(
        week=5,
        title="Methods",
        emoji="🔧",
        focus="Refining techniques and optimizing approach",
        description=(
            "You have the foundation. Now it's time to level up your craft. This week is about "
            "deliberate skill development and optimization."
        ),
        goal_guidance=(
            "Focus on skill refinement goals:\n"
            "- Master one core skill deeply\n"
            "- Optimize existing processes\n"
            "- Learn advanced techniques\n"
            "- Get feedback and iterate\n"
            "Goals should be about mastery, not breadth. Focus on compounding skills that multiply impact."
        ),
        task_guidance=(
            "Tasks should develop specific skills:\n"
            "- Deliberate practice of core competencies\n"
            "- Seek expert feedback\n"
            "- Study best practices in their field\n"
            "- Experiment and measure results\n"
            "Schedule skill practice in peak energy hours.\n"
            "30 minutes of focused practice beats 2 hours of casual work."
        ),
        reflection_prompts=(
            "What skill did you improve this week, and how did you know?",
            "What technique did you learn that you'll keep using?",
            "Where did you see the biggest return on your practice time?",
            "How have you evolved since Week 1?",
        ),
    ),
)

WEEK_THEMES: Mapping[int, WeekTheme] = MappingProxyType({theme.week: theme for theme in _THEMES})


def theme_for(week: int) -> Optional[WeekTheme]:
    """Return the theme for a program week, or None outside 1..5 (not started / complete)."""
    return WEEK_THEMES.get(week)


def all_themes() -> List[WeekTheme]:
    return [WEEK_THEMES[week] for week in range(FIRST_WEEK, FINAL_WEEK + 1)]


def is_program_week(week: int) -> bool:
    return FIRST_WEEK <= week <= FINAL_WEEK
