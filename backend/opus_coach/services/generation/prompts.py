"""Week-specific prompt templates for goals, tasks, reflection analysis and reflection questions.

Each week carries its own coaching voice (objectives, principles, examples and
things to avoid) in ``WEEK_PROMPTS``. The render functions turn that data plus
the request context into the final prompt text.
"""
from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping, Optional, Sequence, Tuple

from opus_coach.core.errors import MissingContextError
from opus_coach.services.generation.types import (
    GenerationContext,
    GenerationKind,
    GoalContext,
    ReflectionContext,
    ReflectionPromptContext,
    TaskContext,
)
from opus_coach.services.program.themes import FINAL_WEEK, WeekTheme

PROGRAM_NAME = "Opus"
NOT_PROVIDED = "Not provided"


@dataclass(frozen=True)
class WeekPrompt:
    goal_coach: str
    goal_objectives: Tuple[str, ...]
    goal_principles: Tuple[str, ...]
    goal_avoid: Tuple[str, ...]
    category: str
    goal_description_hint: str
    goal_reasoning_hint: str
    task_coach: str
    task_intro: str
    task_channels: Tuple[str, ...]
    task_principles: Tuple[str, ...]
    task_examples: Tuple[str, ...]
    task_description_hint: str
    schedule_hint: str
    time_hint: str
    task_reasoning_hint: str
    key_insight: Optional[str] = None


WEEK_PROMPTS: Mapping[int, WeekPrompt] = MappingProxyType(
    {
        1: WeekPrompt(
            goal_coach=(
                "You are an expert executive coach specializing in helping professionals "
                "discover their purpose and define meaningful work."
            ),
            goal_objectives=(
                "**Clarify what meaningful work looks like** - Not chasing titles or external "
                "validation, but defining what truly matters to THEM personally",
                "**Identify their core professional values** - What do they stand for? What energizes them?",
                "**Define success on their own terms** - What does \"winning\" mean in their career?",
                "**Build self-awareness** about what work makes them feel alive",
            ),
            goal_principles=(
                "Values-based, not outcome-based",
                "Introspective and reflective",
                "Help them clarify their \"why\"",
                "Achievable within 1 week",
                "Specific and concrete (not vague like \"find my purpose\")",
                "Directly connected to their north star vision",
            ),
            goal_avoid=(
                "Generic career goals (\"get promoted\", \"earn more money\")",
                "Vague aspirations (\"be happier at work\")",
                "Goals focused on external validation",
            ),
            category="personal",
            goal_description_hint="2-3 sentences explaining the goal and why it matters for clarifying their purpose",
            goal_reasoning_hint="1 sentence connecting this to their north star",
            task_coach=(
                "You are a professional coach helping someone break down a PURPOSE goal into "
                "reflective, exploratory tasks."
            ),
            task_intro="help them explore this goal through",
            task_channels=(
                "**Journaling exercises** about values and meaning",
                "**Conversations** with mentors, role models, or trusted advisors",
                "**Auditing current work** for alignment with values",
                "**Reading/research** about purpose-driven work",
                "**Reflection** on past experiences that felt meaningful",
            ),
            task_principles=(
                "Reflective and exploratory (not just \"do this thing\")",
                "Small and achievable (15-30 minutes each)",
                "Schedule reflective tasks in the MORNING when mind is fresh",
                "Create clear completion criteria",
                "Build self-awareness",
            ),
            task_examples=(
                "\"Journal: Write about 3 times you felt most alive at work\" (Morning, 20 min)",
                "\"Call your mentor and ask: What do you see as my unique strengths?\" (Afternoon, 30 min)",
                "\"Audit last month's work: What % aligned with your values?\" (Morning, 15 min)",
            ),
            task_description_hint="What exactly to do and what success looks like",
            schedule_hint="\"Morning\" or \"Tuesday afternoon\" or \"Evening\"",
            time_hint="\"15 minutes\" or \"20 minutes\" etc",
            task_reasoning_hint="Why schedule it at this time",
        ),
        2: WeekPrompt(
            goal_coach=(
                "You are an expert executive coach specializing in helping professionals build "
                "sustainable habits and daily routines."
            ),
            goal_objectives=(
                "**Establish daily rituals** that support their north star",
                "**Create sustainable routines** (not just productivity hacks)",
                "**Build energy management practices** - when do they do their best work?",
                "**Design their ideal work rhythm** - the daily flow that makes success inevitable",
            ),
            goal_principles=(
                "Process-oriented, not outcome-oriented",
                "Emphasize \"systems\" over \"goals\"",
                "Focus on consistency and habit formation",
                "Should build on Week 1's purpose clarity",
                "Achievable within 1 week",
                "Create sustainable practices (not burnout-inducing)",
            ),
            key_insight=(
                "Purpose without rhythm is just a dream. This week is about building the daily "
                "practices that turn their vision into reality."
            ),
            goal_avoid=(
                "One-time tasks or projects",
                "Vague goals like \"be more productive\"",
                "Unsustainable intensity (\"work 12 hours a day\")",
                "Goals not connected to daily habits",
            ),
            category="personal",
            goal_description_hint="2-3 sentences explaining the habit/routine and why it matters for building rhythm",
            goal_reasoning_hint="1 sentence connecting this daily practice to their north star",
            task_coach="You are a professional coach helping someone build consistent daily habits and routines.",
            task_intro="help them build this habit through",
            task_channels=(
                "**Morning/evening routines** - bookends to the day",
                "**Daily practice** of core skills",
                "**Time-blocking exercises** - designing their ideal schedule",
                "**Energy tracking** - when are they most productive?",
                "**Habit stacking** - attaching new habits to existing ones",
            ),
            task_principles=(
                "Recommend tasks at SAME TIME each day to build habit loops",
                "Start with \"tiny habits\" - 5-10 minute commitments",
                "Focus on consistency over intensity",
                "Include tracking/reflection on the habit",
                "Make the habit obvious, attractive, easy, and satisfying",
            ),
            task_examples=(
                "\"Morning ritual: 10 min planning session before checking email\" (Daily 8am, 10 min)",
                "\"Track your energy: Note 3 times today when you felt most focused\" (End of day, 5 min)",
                "\"Time-block tomorrow: Schedule your 3 most important tasks\" (Evening, 15 min)",
            ),
            task_description_hint="What exactly to do and what success looks like",
            schedule_hint="\"Morning\" or \"Daily at 8am\" or \"Evening\"",
            time_hint="\"5 minutes\" or \"10 minutes\" etc",
            task_reasoning_hint="Why this time helps build the habit",
        ),
        3: WeekPrompt(
            goal_coach=(
                "You are an expert executive coach specializing in helping professionals build "
                "authentic, valuable relationships."
            ),
            goal_objectives=(
                "**Identify key relationships to nurture** - who energizes and challenges them?",
                "**Find mentors or advisors** aligned with their north star",
                "**Build a community of support** - not just professional contacts, but genuine connections",
                "**Give value to others** - relationships are about contribution, not just extraction",
            ),
            goal_principles=(
                "Quality of connections over quantity",
                "Emphasize authentic relationship-building, not transactional networking",
                "Focus on mutual value and support",
                "Should build on Week 1's purpose and Week 2's rhythm",
                "Achievable within 1 week",
                "Create genuine human connection",
            ),
            key_insight=(
                "Your network isn't about collecting business cards. It's about building genuine "
                "relationships with people who energize and challenge you."
            ),
            goal_avoid=(
                "Transactional networking (\"connect with 50 people on LinkedIn\")",
                "Generic \"attend networking events\"",
                "Goals focused only on what they can GET from people",
                "Superficial connection tactics",
            ),
            category="professional",
            goal_description_hint=(
                "2-3 sentences explaining the relationship goal and why authentic connection matters"
            ),
            goal_reasoning_hint="1 sentence connecting these relationships to their north star",
            task_coach="You are a professional coach helping someone build genuine, valuable relationships.",
            task_intro="facilitate genuine connection through",
            task_channels=(
                "**Reaching out** to specific people for coffee/calls",
                "**Asking thoughtful questions** and listening deeply",
                "**Sharing valuable resources** with their network",
                "**Joining communities** aligned with their values",
                "**Following up** with meaningful conversation",
            ),
            task_principles=(
                "Schedule connection tasks in AFTERNOON (better energy for social interaction)",
                "One meaningful conversation > multiple superficial ones",
                "Focus on giving value, not just taking",
                "Be specific about WHO to reach out to",
                "Include conversation prompts or questions to ask",
            ),
            task_examples=(
                "\"Coffee chat: Reach out to [mentor name] to learn about their career pivot\" "
                "(Tuesday afternoon, 30 min)",
                "\"Share value: Send 3 articles/resources to people in your network\" (Afternoon, 15 min)",
                "\"Deep conversation: Ask a colleague about what makes their work meaningful\" (Lunch, 20 min)",
            ),
            task_description_hint="What exactly to do, who to reach out to, and what to discuss",
            schedule_hint="\"Afternoon\" or \"Tuesday afternoon\" or \"Lunch\"",
            time_hint="\"20 minutes\" or \"30 minutes\" etc",
            task_reasoning_hint="Why this task builds authentic connection",
        ),
        4: WeekPrompt(
            goal_coach=(
                "You are an expert executive coach specializing in helping professionals design "
                "systems and frameworks for sustainable success."
            ),
            goal_objectives=(
                "**Create frameworks for decision-making** - what's their criteria for saying yes or no?",
                "**Build systems for key workflows** - automate or systematize recurring work",
                "**Design accountability structures** - how do they ensure follow-through?",
                "**Establish boundaries and guardrails** - what protects their time and energy?",
            ),
            goal_principles=(
                "Create sustainable infrastructure, not just tactics",
                "Think: \"What would make this automatic?\"",
                "Focus on systems that endure beyond motivation",
                "Should build on Weeks 1-3 (purpose, rhythm, network)",
                "Achievable within 1 week",
                "Create leverage through systematization",
            ),
            key_insight=(
                "Motivation fades. Systems endure. This week is about building the frameworks "
                "that make success inevitable."
            ),
            goal_avoid=(
                "One-time tasks without systematic thinking",
                "Vague goals like \"be more organized\"",
                "Systems that require constant willpower to maintain",
                "Goals not focused on creating reusable frameworks",
            ),
            category="professional",
            goal_description_hint=(
                "2-3 sentences explaining the system/framework and why structure creates freedom"
            ),
            goal_reasoning_hint="1 sentence connecting this system to their north star",
            task_coach=(
                "You are a professional coach helping someone design systems and frameworks for "
                "sustainable success."
            ),
            task_intro="help them build repeatable systems through",
            task_channels=(
                "**Documenting workflows and processes** - write it down",
                "**Creating templates** for recurring work",
                "**Setting up automation** where possible",
                "**Designing decision-making frameworks** - clear criteria",
                "**Building in accountability** - how to ensure follow-through",
            ),
            task_principles=(
                "Schedule system-building in MORNING (requires focused thinking)",
                "One good system can save hours each week",
                "Focus on creating reusable frameworks",
                "Document the system so it's repeatable",
                "Test and iterate on the structure",
            ),
            task_examples=(
                "\"Document your weekly review process - turn it into a template\" (Morning, 30 min)",
                "\"Create decision criteria: When do you say yes vs. no to opportunities?\" (Morning, 25 min)",
                "\"Build email templates for 5 common responses you send\" (Afternoon, 20 min)",
            ),
            task_description_hint="What exactly to document/create and what the system should accomplish",
            schedule_hint="\"Morning\" or \"Afternoon\" or specific day",
            time_hint="\"20 minutes\" or \"30 minutes\" etc",
            task_reasoning_hint="Why this system creates leverage",
        ),
        5: WeekPrompt(
            goal_coach=(
                "You are an expert executive coach specializing in helping professionals master "
                "their craft and optimize their approach."
            ),
            goal_objectives=(
                "**Master one core skill deeply** - not breadth, but depth",
                "**Optimize existing processes** - make what's working work even better",
                "**Learn advanced techniques** - level up their craft",
                "**Get feedback and iterate** - continuous improvement through expert input",
            ),
            goal_principles=(
                "Focus on mastery, not breadth",
                "Emphasize compounding skills that multiply impact",
                "Should build on all previous weeks (purpose, rhythm, network, structure)",
                "Achievable within 1 week",
                "Create measurable improvement in core competencies",
                "This is the capstone - bring it all together",
            ),
            key_insight=(
                "You have the foundation. Now it's time to level up your craft. This week is "
                "about deliberate skill development and optimization."
            ),
            goal_avoid=(
                "Learning new things just for the sake of it",
                "Vague goals like \"get better at my job\"",
                "Skills not aligned with their north star",
                "Surface-level dabbling instead of deep practice",
            ),
            category="learning",
            goal_description_hint=(
                "2-3 sentences explaining the skill/method and why mastery compounds over time"
            ),
            goal_reasoning_hint="1 sentence connecting this skill mastery to their north star",
            task_coach=(
                "You are a professional coach helping someone master their craft through "
                "deliberate practice and optimization."
            ),
            task_intro="develop this skill through",
            task_channels=(
                "**Deliberate practice** of core competencies",
                "**Seeking expert feedback** on their work",
                "**Studying best practices** in their field",
                "**Experimenting and measuring results** - what works?",
                "**Reflecting on improvement** - how have they grown?",
            ),
            task_principles=(
                "Schedule skill practice in PEAK ENERGY hours",
                "30 minutes of focused practice > 2 hours of casual work",
                "Include feedback loops - how will they know they're improving?",
                "Make practice specific and measurable",
                "Build on skills from previous weeks",
            ),
            task_examples=(
                "\"Deliberate practice: Spend 30 min on [specific skill] with full focus\" (Morning, 30 min)",
                "\"Get feedback: Share your work with an expert and ask 3 specific questions\" (Afternoon, 20 min)",
                "\"Study mastery: Analyze how 3 experts in your field approach [skill]\" (Morning, 25 min)",
            ),
            task_description_hint="What exactly to practice and how to measure improvement",
            schedule_hint="\"Morning\" or \"Peak energy time\" or specific day",
            time_hint="\"20 minutes\" or \"30 minutes\" etc",
            task_reasoning_hint="Why this practice builds mastery",
        ),
    }
)

TASK_AVOID = (
    "Tasks longer than an hour or with no clear finish line",
    "Vague tasks like \"think about it\" or \"work on the goal\"",
    "Tasks unrelated to the goal being broken down",
)

REFLECTION_AVOID = (
    "Generic encouragement that ignores what they actually wrote",
    "Judging missed goals instead of learning from them",
    "Recommendations unrelated to next week's theme",
)


def _bullets(items: Sequence[str], marker: str = "-") -> str:
    return "\n".join(f"{marker} {item}" for item in items)


def _numbered(items: Sequence[str]) -> str:
    return "\n".join(f"{index}. {item}" for index, item in enumerate(items, start=1))


def _theme_header(theme: WeekTheme) -> str:
    return f"{theme.title.upper()} {theme.emoji}"


def _or_not_provided(value: str) -> str:
    return value.strip() or NOT_PROVIDED


def render_goal_prompt(week: int, context: GoalContext, theme: WeekTheme) -> str:
    data = WEEK_PROMPTS[week]
    week_label = f"Week {week} (FINAL WEEK)" if week == FINAL_WEEK else f"Week {week}"
    sections = [
        data.goal_coach,
        "CONTEXT:\n"
        f"The user is in {week_label} of a 5-week transformation program called \"{PROGRAM_NAME}.\"\n"
        f"Week {week} Theme: {_theme_header(theme)}\n"
        f"Focus: {theme.focus}",
        f"User's North Star (ultimate professional vision):\n\"{context.north_star}\"",
    ]
    if context.existing_goals:
        sections.append(
            "EXISTING GOALS (avoid duplicates):\n"
            + _bullets([f"{goal.title}: {goal.description}" for goal in context.existing_goals])
        )
    sections.append(
        "YOUR TASK:\n"
        f"Generate 3-4 specific, actionable goals for Week {week} that help this person:\n\n"
        + _numbered(data.goal_objectives)
    )
    sections.append(f"WEEK {week} GUIDANCE:\n{theme.goal_guidance}")
    sections.append(f"PRINCIPLES FOR {theme.title.upper()} GOALS:\n" + _bullets(data.goal_principles, "✅"))
    if data.key_insight:
        sections.append(f"KEY INSIGHT: {data.key_insight}")
    sections.append("AVOID:\n" + _bullets(data.goal_avoid + ("Duplicating existing goals",), "❌"))
    sections.append(
        "Return ONLY JSON (no markdown, no explanation) with this exact structure:\n"
        "{\n"
        '  "goals": [\n'
        "    {\n"
        '      "title": "Concise goal title (5-8 words)",\n'
        f'      "description": "{data.goal_description_hint}",\n'
        f'      "category": "{data.category}",\n'
        f'      "reasoning": "{data.goal_reasoning_hint}: {context.north_star}",\n'
        f'      "weekNumber": {week}\n'
        "    }\n"
        "  ]\n"
        "}"
    )
    return "\n\n".join(sections)


def render_task_prompt(week: int, context: TaskContext, theme: WeekTheme) -> str:
    data = WEEK_PROMPTS[week]
    sections = [
        data.task_coach,
        "CONTEXT:\n"
        f"Week {week} Theme: {theme.title.upper()} - {theme.focus}\n"
        f"North Star: \"{context.north_star}\"",
        "GOAL TO BREAK DOWN:\n"
        f"Title: {context.goal.title}\n"
        f"Description: {_or_not_provided(context.goal.description)}",
        "YOUR TASK:\n"
        f"Generate 3-5 specific tasks that {data.task_intro}:\n" + _bullets(data.task_channels),
        f"WEEK {week} GUIDANCE:\n{theme.task_guidance}",
        f"PRINCIPLES FOR {theme.title.upper()} TASKS:\n" + _bullets(data.task_principles, "✅"),
        "EXAMPLE TASKS:\n" + _bullets(data.task_examples),
        "AVOID:\n" + _bullets(TASK_AVOID, "❌"),
        "Return ONLY JSON (no markdown) with this structure:\n"
        "{\n"
        '  "tasks": [\n'
        "    {\n"
        '      "title": "Action-oriented task title",\n'
        f'      "description": "{data.task_description_hint}",\n'
        f'      "recommendedSchedule": {data.schedule_hint},\n'
        f'      "estimatedTime": {data.time_hint},\n'
        f'      "reasoning": "{data.task_reasoning_hint}"\n'
        "    }\n"
        "  ]\n"
        "}",
    ]
    return "\n\n".join(sections)


def render_reflection_prompt(
    week: int,
    context: ReflectionContext,
    theme: WeekTheme,
    next_theme: Optional[WeekTheme] = None,
) -> str:
    next_line = f"{next_theme.title} - {next_theme.focus}" if next_theme else "Program Complete"
    goals = ", ".join(f"{goal.title} ({goal.progress}% complete)" for goal in context.goals) or "None"
    tasks = ", ".join(context.completed_tasks) or "None"
    sections = [
        "You are an expert coach analyzing a user's weekly reflection.",
        f"WEEK {week} THEME: {theme.title} - {theme.focus}\nNEXT WEEK THEME: {next_line}",
        "USER'S REFLECTION:\n"
        f"Wins: {_or_not_provided(context.wins)}\n"
        f"Lessons: {_or_not_provided(context.lessons)}\n"
        f"Next Steps: {_or_not_provided(context.next_steps)}",
        f"PROGRESS THIS WEEK:\nGoals: {goals}\nTasks Completed: {tasks}",
        "ANALYZE:\n"
        + _numbered(
            (
                "What patterns emerge from their wins and lessons?",
                "What insights can help them grow?",
                "What should they focus on next week?",
                "How does this week's progress support their transformation?",
            )
        ),
        "AVOID:\n" + _bullets(REFLECTION_AVOID, "❌"),
        "Return ONLY a JSON object (no markdown):\n"
        "{\n"
        '  "insights": ["Insight 1 (2-3 sentences)", "Insight 2", "Insight 3"],\n'
        '  "patterns": ["Pattern 1 (1-2 sentences)", "Pattern 2"],\n'
        '  "recommendations": ["Recommendation 1 (specific action)", "Recommendation 2", "Recommendation 3"],\n'
        '  "nextWeekFocus": "A concise statement (2-3 sentences) about what to focus on next week"\n'
        "}",
    ]
    return "\n\n".join(sections)


def render_reflection_question_prompt(week: int, context: ReflectionPromptContext, theme: WeekTheme) -> str:
    open_goals = ", ".join(f"{goal.title} ({goal.progress}% complete)" for goal in context.open_goals) or "None"
    completed = ", ".join(context.completed_tasks) or "None"
    sections = [
        "Generate one thoughtful reflection question for a weekly review.",
        f"WEEK {week} THEME: {theme.title} - {theme.focus}",
        "RECENT ACTIVITY:\n"
        f"Total goals: {context.total_goals}\n"
        f"Goals in progress: {open_goals}\n"
        f"Completed tasks this week: {len(context.completed_tasks)} ({completed})",
        f"QUESTIONS IN THE SPIRIT OF {theme.title.upper()}:\n" + _bullets(theme.reflection_prompts),
        "Make it specific, actionable, and focused on growth. Ask exactly one question, "
        "grounded in their activity, without repeating the examples word for word.",
        'Return ONLY JSON (no markdown): {"prompt": "Your question?"}',
    ]
    return "\n\n".join(sections)


def build_prompt(
    kind: GenerationKind,
    week: int,
    context: GenerationContext,
    *,
    theme: WeekTheme,
    next_theme: Optional[WeekTheme] = None,
) -> str:
    """Render the prompt for `kind`, checking the context carries what the template needs."""
    kind = GenerationKind(kind)
    if kind is GenerationKind.GOALS:
        if not isinstance(context, GoalContext):
            raise MissingContextError("Goal generation needs a north star")
        return render_goal_prompt(week, context, theme)
    if kind is GenerationKind.TASKS:
        if not isinstance(context, TaskContext):
            raise MissingContextError("Task generation needs a goal")
        return render_task_prompt(week, context, theme)
    if kind is GenerationKind.REFLECTION_PROMPT:
        if not isinstance(context, ReflectionPromptContext):
            raise MissingContextError("Reflection questions need recent activity")
        return render_reflection_question_prompt(week, context, theme)
    if not isinstance(context, ReflectionContext):
        raise MissingContextError("Reflection analysis needs a weekly review")
    return render_reflection_prompt(week, context, theme, next_theme)
