"""
Proactivity schemas.

UserDataSnapshot is the point-in-time input assembled by collaborators
(wearable sync, workout logger, sleep tracker). Every sequence is ordered
oldest → newest; the engine only ever reads the tail.
"""
from __future__ import annotations

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

ProactivityPriority = Literal["critical", "high", "medium", "low"]
CommunicationStyle = Literal["direct", "supportive", "analytical"]

_HHMM = r"^([01]\d|2[0-3]):[0-5]\d$"


# ---------------------------------------------------------------------------
# Input
# ---------------------------------------------------------------------------

class UserDataSnapshot(BaseModel):
    model_config = ConfigDict(frozen=True)

    # Sleep
    sleep_hours: list[float] = Field(default_factory=list)
    sleep_quality: list[float] = Field(default_factory=list, description="1-10 per night.")
    bedtime_consistency: float = 0

    # Workouts
    workout_consistency: float = Field(default=0, description="1-10 score.")
    workout_intensity: list[float] = Field(default_factory=list, description="1-10 per session.")
    form_quality: list[float] = Field(default_factory=list, description="1-10 per session.")
    pain_reports: list[str] = Field(default_factory=list)

    # Nutrition
    nutrition_adherence: float = 0
    hydration_level: list[float] = Field(default_factory=list, description="1-10 per day.")

    # Engagement
    app_usage_frequency: list[float] = Field(
        default_factory=list, description="Daily usage count."
    )
    response_rate_to_coaching: float = 0
    manual_check_ins: int = 0

    # Performance: exercise name → ordered values
    performance_metrics: dict[str, list[float]] = Field(default_factory=dict)

    # Psychological
    energy_levels: list[float] = Field(default_factory=list)
    motivation_levels: list[float] = Field(default_factory=list)
    stress_levels: list[float] = Field(default_factory=list)

    timestamp: datetime = Field(default_factory=datetime.now)


# ---------------------------------------------------------------------------
# Output
# ---------------------------------------------------------------------------

class ProactiveIntervention(BaseModel):
    model_config = ConfigDict(frozen=True)

    trigger_id: str
    priority: ProactivityPriority
    confidence: int = Field(ge=0, le=100)
    message: str
    suggested_action: Optional[str] = None
    category: str


class InterventionListResponse(BaseModel):
    enabled: bool
    total: int
    items: list[ProactiveIntervention]


# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------

class QuietHours(BaseModel):
    start: str = Field(default="22:00", pattern=_HHMM, description="HH:MM, local time.")
    end: str = Field(default="07:00", pattern=_HHMM, description="HH:MM, may be before start.")


class NotificationPreferences(BaseModel):
    proactive_messages: bool = True
    reminders: bool = True
    educational: bool = True


class UserPreferences(BaseModel):
    preferred_communication_style: CommunicationStyle = "supportive"
    notification_preferences: NotificationPreferences = Field(
        default_factory=NotificationPreferences
    )


class ProactivitySettings(BaseModel):
    quiet_hours: QuietHours = Field(default_factory=QuietHours)
    # Not enforced by evaluation; display-side rate limiting owns it.
    max_daily_interventions: int = Field(default=3, ge=0)
    cooldown_periods: dict[str, float] = Field(
        default_factory=dict,
        description="Per-trigger cooldown overrides in hours.",
    )
    user_preferences: UserPreferences = Field(default_factory=UserPreferences)


class ProactivitySettingsUpdate(BaseModel):
    """
    Partial update. Merge is shallow: a nested object that is supplied
    replaces the current one whole.
    """
    quiet_hours: Optional[QuietHours] = None
    max_daily_interventions: Optional[int] = Field(default=None, ge=0)
    cooldown_periods: Optional[dict[str, float]] = None
    user_preferences: Optional[UserPreferences] = None


# ---------------------------------------------------------------------------
# Analytics
# ---------------------------------------------------------------------------

class ProactivityAnalytics(BaseModel):
    interventions_triggered: int = 0
    responses_recorded: int = 0
    user_response_rate: float = 0.0
    intervention_success_rate: float = 0.0
    last_intervention_date: Optional[datetime] = None
    category_breakdown: dict[str, int] = Field(default_factory=dict)


class InterventionResponseRequest(BaseModel):
    trigger_id: str
    responded: bool
    was_helpful: bool = False
