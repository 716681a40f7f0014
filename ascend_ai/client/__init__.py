"""Typed AI client: transport, schemas, fallbacks and domain wrappers."""

from ascend_ai.client.coach import AICoachClient
from ascend_ai.client.schemas import (
    ChatMessage,
    ChatResponse,
    CoachingContext,
    CoachingMessage,
    GoalPlan,
    HabitPerformance,
    HabitPreferences,
    HabitSuggestion,
    PatternInsights,
)
from ascend_ai.client.transport import AITransport

__all__ = [
    "AICoachClient",
    "AITransport",
    "ChatMessage",
    "ChatResponse",
    "CoachingContext",
    "CoachingMessage",
    "GoalPlan",
    "HabitPerformance",
    "HabitPreferences",
    "HabitSuggestion",
    "PatternInsights",
]
