"""
Deterministic local responses used when an AI call is unavailable.

Every function here is pure: it builds its answer from the caller's
context with templates, never touches the network, and never raises
for valid inputs.
"""

import math
from typing import Dict, List, Optional

from ascend_ai.client.schemas import (
    CoachingContext,
    CoachingMessage,
    DecomposeMilestone,
    DecomposeTask,
    GoalPlan,
    HabitSuggestion,
    PatternInsights,
    WeeklyObjective,
)


def coaching_message(context: CoachingContext) -> CoachingMessage:
    """Pick a coaching message from progress, trend and time of day."""
    name = context.user_name
    done = context.today_completed
    total = context.today_total
    left = max(0, total - done)

    if total > 0 and done >= total:
        return CoachingMessage(
            message=(
                f"🎉 Amazing {name}! You've completed all {total} habits today. "
                f"Your {context.current_streak} day streak is legendary!"
            ),
            type="celebration",
        )

    if context.recent_trend == "declining":
        return CoachingMessage(
            message=(
                f"Hey {name}, I noticed a slight dip recently. That's okay - "
                f"progress isn't linear. What's one small win you can get right now?"
            ),
            type="warning",
        )

    by_time: Dict[str, CoachingMessage] = {
        "morning": CoachingMessage(
            message=(
                f"Good morning {name}! Fresh day, fresh opportunities. "
                f"You've got {left} habits left to conquer!"
            ),
            type="motivation",
        ),
        "afternoon": CoachingMessage(
            message=(
                f"{name}, you're {done}/{total} complete! "
                f"The afternoon is perfect for tackling what's left."
            ),
            type="tip",
        ),
        "evening": CoachingMessage(
            message=(
                f"Evening check-in: {left} habits remaining. "
                f"Let's finish strong, {name}!"
            ),
            type="motivation",
        ),
        "night": CoachingMessage(
            message=(
                f"{name}, great job today! {done} habits done. "
                f"Rest well - tomorrow is another chance to grow."
            ),
            type="tip",
        ),
    }
    return by_time.get(context.time_of_day, by_time["morning"])


def habit_suggestions() -> List[HabitSuggestion]:
    """Two general-purpose starter habits."""
    return [
        HabitSuggestion(
            name="Morning Reflection",
            description="Spend 5 minutes journaling your intentions for the day",
            category="mindfulness",
            frequency="daily",
            estimated_minutes=5,
            why_it_helps="Builds self-awareness and sets a positive tone",
        ),
        HabitSuggestion(
            name="Daily Movement",
            description="10-minute walk or stretch routine",
            category="health",
            frequency="daily",
            estimated_minutes=10,
            why_it_helps="Improves energy and mental clarity",
        ),
    ]


def pattern_insights() -> PatternInsights:
    """Generic encouragement and habit-stacking advice."""
    return PatternInsights(
        insights=[
            "Your consistency is building momentum. Keep it up!",
            "Morning habits tend to have higher completion rates.",
        ],
        recommendations=[
            "Try habit stacking - attach new habits to existing routines.",
            "Set reminders for your most challenging habits.",
        ],
        predicted_struggle=None,
    )


def identity_statement(goal: str) -> str:
    return f"I am becoming someone who {goal.strip().lower()} through consistent daily actions."


_PHASES = [
    ("Foundation", "Set up your environment and learn the basics.",
     ["Clarify why this goal matters", "Remove friction from the first step"]),
    ("Skill Building", "Practice the core skills in small daily sessions.",
     ["Practice the fundamentals", "Track every session"]),
    ("Momentum", "Increase volume while keeping the routine easy to start.",
     ["Stack practice onto an existing routine", "Raise the difficulty slightly"]),
    ("Mastery", "Tackle harder challenges and close remaining gaps.",
     ["Work on your weakest area", "Get feedback from someone ahead of you"]),
    ("Integration", "Make the new behaviour part of who you are.",
     ["Review what worked", "Plan how to keep going after the goal"]),
]

_MINUTES_BY_DIFFICULTY = {"easy": 15, "moderate": 30, "challenging": 45}


def goal_plan(
    goal: str,
    timeframe_days: int,
    difficulty: Optional[str] = None,
) -> GoalPlan:
    """Template milestone plan sized from the timeframe.

    Produces 3 to 5 milestones spread evenly over the weeks, one weekly
    objective per week (at most 12), and a short list of daily habits.
    """
    days = max(1, timeframe_days)
    weeks = max(1, math.ceil(days / 7))
    count = min(5, max(3, weeks // 4))
    minutes = _MINUTES_BY_DIFFICULTY.get(difficulty or "moderate", 30)
    goal_text = goal.strip()

    milestones = []
    for index, (title, description, tasks) in enumerate(_PHASES[:count]):
        target_week = max(1, math.floor(weeks / count * (index + 1)))
        milestones.append(
            DecomposeMilestone(
                title=f"{title}: {goal_text}",
                description=description,
                target_week=target_week,
                tasks=[
                    DecomposeTask(title=task, estimated_minutes=minutes)
                    for task in tasks
                ],
            )
        )

    habits = [
        f"Spend two minutes on '{goal_text}' right after your morning routine",
        "Log today's progress before bed",
        "Prepare tomorrow's first step the night before",
    ]

    objectives = []
    for week in range(1, min(weeks, 12) + 1):
        phase = next(
            (m for m in milestones if week <= m.target_week), milestones[-1]
        )
        objectives.append(
            WeeklyObjective(
                week=week,
                focus=phase.title.split(":", 1)[0],
                daily_habits=habits[:2],
            )
        )

    return GoalPlan(
        goal=goal_text,
        timeframe_days=days,
        milestones=milestones,
        weekly_objectives=objectives,
        daily_habits=habits,
        generated=False,
    )
