"""
Request/response schemas for the AI transport and the typed client.

Wire models accept the camelCase field names the HTTP endpoints use
(``timeframeDays``, ``weeklyObjectives``...) and expose snake_case
attributes.
"""

from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

MessageType = Literal["motivation", "warning", "celebration", "tip"]
SuggestionType = Literal["habits", "insights", "coaching"]
TimeOfDay = Literal["morning", "afternoon", "evening", "night"]
Trend = Literal["improving", "stable", "declining"]
Difficulty = Literal["easy", "moderate", "challenging"]


class _WireModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


# ── Transport ──────────────────────────────────────────


class ChatMessage(BaseModel):
    """One role-tagged chat message."""

    role: Literal["system", "user", "assistant"]
    content: str


class ChatResponse(_WireModel):
    """Response of the ``/chat`` endpoint.

    Attributes:
        success: Whether the provider produced a message.
        message: Generated text (empty on failure).
        provider: Provider that served the call, when reported.
        error: Error description on failure.
    """

    success: bool = False
    message: str = ""
    provider: Optional[str] = None
    error: Optional[str] = None


class DecomposeTask(_WireModel):
    title: str
    estimated_minutes: int = Field(default=30, alias="estimatedMinutes", ge=0)


class DecomposeMilestone(_WireModel):
    title: str
    description: str = ""
    target_week: int = Field(default=1, alias="targetWeek", ge=1)
    tasks: List[DecomposeTask] = Field(default_factory=list)


class WeeklyObjective(_WireModel):
    week: int = Field(ge=1)
    focus: str
    daily_habits: List[str] = Field(default_factory=list, alias="dailyHabits")


class DecomposeResponse(_WireModel):
    """Response of the ``/decompose`` endpoint."""

    success: bool = False
    milestones: Optional[List[DecomposeMilestone]] = None
    weekly_objectives: Optional[List[WeeklyObjective]] = Field(
        default=None, alias="weeklyObjectives"
    )
    daily_habits: Optional[List[str]] = Field(default=None, alias="dailyHabits")
    error: Optional[str] = None


class SuggestionsResponse(_WireModel):
    """Response of the ``/suggestions`` endpoint."""

    success: bool = False
    suggestions: Optional[List[Any]] = None
    error: Optional[str] = None


# ── Typed client inputs ────────────────────────────────


class CoachingContext(BaseModel):
    """Snapshot of the user's day used to pick a coaching message."""

    user_name: str
    current_streak: int = Field(default=0, ge=0)
    today_completed: int = Field(default=0, ge=0)
    today_total: int = Field(default=0, ge=0)
    recent_trend: Trend = "stable"
    last_missed_habit: Optional[str] = None
    time_of_day: TimeOfDay = "morning"


class HabitPreferences(BaseModel):
    category: Optional[str] = None
    max_minutes_per_day: Optional[int] = Field(default=None, ge=0)
    difficulty: Optional[Difficulty] = None


class HabitPerformance(BaseModel):
    """Completion summary for one habit."""

    name: str
    completion_rate: float = Field(ge=0, le=100)
    streak_days: int = Field(default=0, ge=0)
    best_day: str = ""
    worst_day: str = ""


# ── Typed client outputs ───────────────────────────────


class CoachingMessage(BaseModel):
    message: str
    type: MessageType = "motivation"
    from_cache: bool = False


class HabitSuggestion(_WireModel):
    name: str
    description: str = ""
    category: str = "custom"
    frequency: str = "daily"
    estimated_minutes: int = Field(default=10, alias="estimatedMinutes", ge=0)
    why_it_helps: str = Field(default="", alias="whyItHelps")


class PatternInsights(_WireModel):
    insights: List[str] = Field(default_factory=list)
    recommendations: List[str] = Field(default_factory=list)
    predicted_struggle: Optional[str] = Field(default=None, alias="predictedStruggle")

    @field_validator("insights", "recommendations", mode="before")
    @classmethod
    def _coerce_text_list(cls, value: Any) -> List[str]:
        if value is None:
            return []
        if isinstance(value, str):
            return [value] if value.strip() else []
        if isinstance(value, list):
            return [item for item in value if isinstance(item, str) and item.strip()]
        return []


class GoalPlan(_WireModel):
    """Milestone plan for a goal, from the AI or the local template."""

    goal: str
    timeframe_days: int
    milestones: List[DecomposeMilestone] = Field(default_factory=list)
    weekly_objectives: List[WeeklyObjective] = Field(default_factory=list)
    daily_habits: List[str] = Field(default_factory=list)
    generated: bool = True
    from_cache: bool = False


def dump_wire(model: BaseModel) -> Dict[str, Any]:
    """Serialize *model* with wire (alias) names for caching."""
    return model.model_dump(by_alias=True, mode="json")
