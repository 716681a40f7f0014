"""
Typed AI client for habit coaching.

Each operation reduces its context to a coarse cache-key input so that
near-identical situations share one cached answer, sends the real
request through the :class:`~ascend_ai.mediator.CallMediator`, and falls
back to a deterministic local answer on any failure, including rate
limiting.  Callers therefore always get a usable result.
"""

import logging
import math
import re
from typing import Any, Dict, List, Optional

from ascend_ai.client import fallbacks
from ascend_ai.client.extraction import extract_json_object, strip_quotes
from ascend_ai.client.schemas import (
    ChatMessage,
    CoachingContext,
    CoachingMessage,
    GoalPlan,
    HabitPerformance,
    HabitPreferences,
    HabitSuggestion,
    PatternInsights,
    dump_wire,
)
from ascend_ai.client.transport import AITransport
from ascend_ai.config import CallType
from ascend_ai.exceptions import (
    MalformedResponseError,
    RateLimitExceededError,
    UnderlyingCallError,
)
from ascend_ai.mediator import AIContext
from ascend_ai.timeutil import format_reset_time

logger = logging.getLogger(__name__)

_MESSAGE_TYPES = {"motivation", "warning", "celebration", "tip"}

COACH_SYSTEM_PROMPT = """You are Ascend AI, a friendly and encouraging habit coach.
Generate a SHORT, personalized coaching message (1-2 sentences max).
Be warm but not cheesy. Be specific to their situation.
Respond with JSON: {"message": "Your message here", "type": "motivation|warning|celebration|tip"}"""

IDENTITY_SYSTEM_PROMPT = """You are Ascend AI, inspired by James Clear's Atomic Habits.
Create a powerful identity statement that starts with "I am becoming someone who..."
Make it personal, aspirational, and connected to their habits.
Respond with just the statement, no JSON."""


# ------------------------------------------------------------------
# Cache-key reduction
# ------------------------------------------------------------------


def _normalize(text: str) -> str:
    collapsed = re.sub(r"\s+", " ", text.strip().lower())
    return collapsed.rstrip(".!?")


def completion_decile(completed: int, total: int) -> int:
    """Bucket a completion ratio into 0..10."""
    if total <= 0:
        return 0
    return math.floor(completed / total * 10)


def coaching_cache_key(context: CoachingContext) -> str:
    """``"{time_of_day}_{trend}_{decile}"``, e.g. ``"morning_stable_7"``."""
    decile = completion_decile(context.today_completed, context.today_total)
    return f"{context.time_of_day}_{context.recent_trend}_{decile}"


def suggestions_cache_key(goals: List[str], category: Optional[str]) -> str:
    """Goals sorted and pipe-joined, plus the category (or ``any``)."""
    return "|".join(sorted(goals)) + "_" + (category or "any")


def insights_cache_key(habits: List[HabitPerformance]) -> str:
    """``name:rate_bucket`` pairs, sorted; rates rounded to tens."""
    return "|".join(
        sorted(
            f"{h.name}:{math.floor(h.completion_rate / 10 + 0.5)}" for h in habits
        )
    )


def decomposition_cache_key(
    goal: str, timeframe_days: int, difficulty: Optional[str] = None
) -> str:
    """Normalized goal text, timeframe in weeks, and difficulty."""
    weeks = max(1, math.ceil(max(1, timeframe_days) / 7))
    return f"{_normalize(goal)}_{weeks}w_{difficulty or 'any'}"


def identity_cache_key(goal: str, habits: List[str]) -> str:
    return f"identity_{_normalize(goal)}_" + "|".join(sorted(_normalize(h) for h in habits))


# ------------------------------------------------------------------
# Client
# ------------------------------------------------------------------


class AICoachClient:
    """Domain wrappers over the mediated AI transport.

    Args:
        context: Shared cache, limiter and mediator.
        transport: HTTP transport to the AI endpoints.
    """

    def __init__(self, context: AIContext, transport: AITransport) -> None:
        self._context = context
        self._transport = transport

    def _log_fallback(self, operation: str, error: Exception) -> None:
        if isinstance(error, RateLimitExceededError):
            logger.info(
                "Rate limited; serving fallback",
                extra={"operation": operation, "retry_after_minutes": error.retry_after_minutes},
            )
        else:
            logger.warning(
                "AI call failed; serving fallback",
                extra={"operation": operation, "error": str(error)},
            )

    # ── Coaching ───────────────────────────────────────

    async def generate_coaching_message(self, context: CoachingContext) -> CoachingMessage:
        """Short coaching message for the user's current situation."""

        async def perform() -> Dict[str, Any]:
            lines = [
                f"User: {context.user_name}",
                f"Current streak: {context.current_streak} days",
                f"Today's progress: {context.today_completed}/{context.today_total} habits",
                f"Recent trend: {context.recent_trend}",
            ]
            if context.last_missed_habit:
                lines.append(f"Recently missed: {context.last_missed_habit}")
            lines.append(f"Time: {context.time_of_day}")
            lines.append("")
            lines.append("Generate an appropriate coaching message.")

            response = await self._transport.chat([
                ChatMessage(role="system", content=COACH_SYSTEM_PROMPT),
                ChatMessage(role="user", content="\n".join(lines)),
            ])
            if not response.success or not response.message:
                raise UnderlyingCallError(response.error or "AI response failed")
            return self._parse_coaching(response.message)

        try:
            result = await self._context.mediator.call(
                CallType.COACHING, coaching_cache_key(context), perform
            )
            message = CoachingMessage.model_validate(result.data)
            return message.model_copy(update={"from_cache": result.from_cache})
        except Exception as e:
            self._log_fallback("coaching", e)
            return fallbacks.coaching_message(context)

    @staticmethod
    def _parse_coaching(text: str) -> Dict[str, Any]:
        parsed = extract_json_object(text)
        if parsed is None:
            return {"message": text, "type": "motivation"}
        message = parsed.get("message")
        kind = parsed.get("type")
        return {
            "message": message if isinstance(message, str) and message else text,
            "type": kind if kind in _MESSAGE_TYPES else "motivation",
        }

    # ── Habit suggestions ──────────────────────────────

    async def suggest_habits(
        self,
        goals: List[str],
        existing_habits: List[str],
        preferences: Optional[HabitPreferences] = None,
    ) -> List[HabitSuggestion]:
        """Habits that support *goals*, avoiding *existing_habits*."""
        preferences = preferences or HabitPreferences()

        async def perform() -> List[Dict[str, Any]]:
            response = await self._transport.get_suggestions("habits", {
                "goals": goals,
                "existingHabits": existing_habits,
                "preferences": preferences.model_dump(exclude_none=True),
            })
            if not response.success or response.suggestions is None:
                raise UnderlyingCallError(response.error or "Suggestions request failed")
            return [dump_wire(s) for s in self._parse_suggestions(response.suggestions)]

        try:
            result = await self._context.mediator.call(
                CallType.SUGGESTIONS,
                suggestions_cache_key(goals, preferences.category),
                perform,
            )
            return [HabitSuggestion.model_validate(item) for item in result.data]
        except Exception as e:
            self._log_fallback("suggestions", e)
            return fallbacks.habit_suggestions()

    @staticmethod
    def _parse_suggestions(items: List[Any]) -> List[HabitSuggestion]:
        parsed: List[HabitSuggestion] = []
        for item in items:
            if isinstance(item, str):
                text = item.strip()
                item = extract_json_object(text)
                if item is None:
                    # Plain prose: the text itself names the habit.
                    if text:
                        parsed.append(HabitSuggestion(name=text))
                    continue
            if not isinstance(item, dict):
                continue
            try:
                parsed.append(HabitSuggestion.model_validate(item))
            except ValueError:
                continue
        if items and not parsed:
            raise MalformedResponseError("No usable habit suggestions in response")
        return parsed

    # ── Pattern insights ───────────────────────────────

    async def analyze_patterns(self, habit_data: List[HabitPerformance]) -> PatternInsights:
        """Insights and recommendations from habit completion data."""

        async def perform() -> Dict[str, Any]:
            response = await self._transport.get_suggestions("insights", {
                "habitData": [
                    {
                        "name": h.name,
                        "completionRate": h.completion_rate,
                        "streakDays": h.streak_days,
                        "bestDay": h.best_day,
                        "worstDay": h.worst_day,
                    }
                    for h in habit_data
                ],
            })
            if not response.success or not response.suggestions:
                raise UnderlyingCallError(response.error or "Insights request failed")
            return dump_wire(self._parse_insights(response.suggestions[0]))

        try:
            result = await self._context.mediator.call(
                CallType.INSIGHTS, insights_cache_key(habit_data), perform
            )
            return PatternInsights.model_validate(result.data)
        except Exception as e:
            self._log_fallback("insights", e)
            return fallbacks.pattern_insights()

    @staticmethod
    def _parse_insights(item: Any) -> PatternInsights:
        if isinstance(item, str):
            extracted = extract_json_object(item)
            if extracted is None:
                if not item.strip():
                    raise MalformedResponseError("Empty insights payload")
                return PatternInsights(insights=[item.strip()])
            item = extracted
        if not isinstance(item, dict):
            raise MalformedResponseError("Insights payload is not an object")
        try:
            insights = PatternInsights.model_validate(item)
        except ValueError as e:
            raise MalformedResponseError(f"Insights payload has the wrong shape: {e}") from e
        if not insights.insights and not insights.recommendations:
            raise MalformedResponseError("Insights payload has no insights or recommendations")
        return insights

    # ── Goal decomposition ─────────────────────────────

    async def decompose_goal(
        self,
        goal: str,
        timeframe_days: int,
        context: Optional[Dict[str, Any]] = None,
    ) -> GoalPlan:
        """Break *goal* into milestones over *timeframe_days*."""
        context = context or {}
        difficulty = context.get("difficulty")
        difficulty = difficulty if isinstance(difficulty, str) else None

        async def perform() -> Dict[str, Any]:
            response = await self._transport.decompose_goal(goal, timeframe_days, context)
            if not response.success or not response.milestones:
                raise UnderlyingCallError(response.error or "Decomposition failed")
            plan = GoalPlan(
                goal=goal.strip(),
                timeframe_days=timeframe_days,
                milestones=response.milestones,
                weekly_objectives=response.weekly_objectives or [],
                daily_habits=response.daily_habits or [],
            )
            return plan.model_dump(by_alias=True, mode="json", exclude={"from_cache"})

        try:
            result = await self._context.mediator.call(
                CallType.DECOMPOSITION,
                decomposition_cache_key(goal, timeframe_days, difficulty),
                perform,
            )
            plan = GoalPlan.model_validate(result.data)
            return plan.model_copy(update={"from_cache": result.from_cache})
        except Exception as e:
            self._log_fallback("decomposition", e)
            return fallbacks.goal_plan(goal, timeframe_days, difficulty)

    # ── Identity statement ─────────────────────────────

    async def generate_identity_statement(self, goal: str, habits: List[str]) -> str:
        """One-sentence "I am becoming someone who..." statement."""

        async def perform() -> str:
            user_prompt = (
                f"Goal: {goal}\n"
                f"Supporting habits: {', '.join(habits)}\n\n"
                "Generate a single, powerful identity statement (1 sentence)."
            )
            response = await self._transport.chat([
                ChatMessage(role="system", content=IDENTITY_SYSTEM_PROMPT),
                ChatMessage(role="user", content=user_prompt),
            ])
            statement = strip_quotes(response.message) if response.success else ""
            if not statement:
                raise UnderlyingCallError(response.error or "Identity statement failed")
            return statement

        try:
            result = await self._context.mediator.call(
                CallType.COACHING, identity_cache_key(goal, habits), perform
            )
            if isinstance(result.data, str) and result.data:
                return result.data
            raise MalformedResponseError("Cached identity statement is not text")
        except Exception as e:
            self._log_fallback("identity", e)
            return fallbacks.identity_statement(goal)

    # ── Usage surfaces ─────────────────────────────────

    def get_rate_limit_status(self) -> Dict[str, Dict[str, Any]]:
        """Per-type usage with a formatted reset time, for dashboards."""
        return {
            name: {
                "used": usage.used,
                "max": usage.max,
                "reset_in": usage.reset_in,
                "reset_in_formatted": format_reset_time(usage.reset_in),
            }
            for name, usage in self._context.limiter.get_usage().items()
        }

    def rate_limit_notice(self, call_type: str) -> Optional[str]:
        """``"Rate limited, retry in 4m 12s"`` when *call_type* is blocked."""
        status = self._context.limiter.check(call_type)
        if status.allowed:
            return None
        return f"Rate limited, retry in {format_reset_time(status.reset_in)}"

    def get_cache_stats(self) -> Dict[str, Any]:
        stats = self._context.cache.get_stats()
        return {"size": stats.size, "types": stats.types}

    def clear_cache(self) -> int:
        return self._context.cache.clear()

    def reset_rate_limits(self) -> None:
        self._context.limiter.reset()
