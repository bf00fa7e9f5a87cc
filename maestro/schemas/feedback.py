"""
Feedback schemas.

POST /feedback/{user_id}/generate → FeedbackListResponse
"""
from __future__ import annotations

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

FeedbackCategory = Literal["technical", "progress", "motivational"]
FeedbackPriority = Literal["high", "medium", "low"]
ProgramPhase = Literal["initiation", "plateau", "breakthrough", "maintenance"]


# ---------------------------------------------------------------------------
# User profile
# ---------------------------------------------------------------------------

class PsychologicalState(BaseModel):
    energy: float = Field(ge=1, le=10)
    motivation: float = Field(ge=1, le=10)
    stress: float = Field(ge=1, le=10)
    confidence: float = Field(ge=1, le=10)


class FeedbackPreferences(BaseModel):
    communication_style: Literal["direct", "supportive", "analytical", "motivational"] = "supportive"
    feedback_frequency: Literal["high", "medium", "low"] = "medium"
    motivation_triggers: list[str] = Field(default_factory=list)


class UserData(BaseModel):
    id: str
    name: str = ""
    age: Optional[int] = None
    gender: Optional[Literal["male", "female", "other"]] = None
    goals: list[str] = Field(default_factory=list)
    experience_level: Literal["beginner", "intermediate", "advanced"] = "beginner"
    preferences: FeedbackPreferences = Field(default_factory=FeedbackPreferences)
    current_metrics: dict[str, float] = Field(default_factory=dict)
    psychological_state: PsychologicalState


# ---------------------------------------------------------------------------
# Training history
# ---------------------------------------------------------------------------

class WorkoutData(BaseModel):
    exercise: str
    sets: int
    reps: list[int] = Field(default_factory=list)
    weight: Optional[list[float]] = None
    rpe: Optional[list[float]] = Field(default=None, description="Rate of Perceived Exertion 1-10.")
    tempo: Optional[list[str]] = None
    rest_time: Optional[list[float]] = Field(default=None, description="Seconds.")
    form_notes: Optional[list[str]] = None
    timestamp: datetime = Field(default_factory=datetime.now)


class ProgressData(BaseModel):
    """`values[i]` was recorded on `dates[i]`."""
    metric: str = Field(description="e.g. 'squat_1rm', 'body_weight'.")
    values: list[float]
    dates: list[datetime]
    goal: Optional[float] = None
    unit: str = ""


# ---------------------------------------------------------------------------
# Output
# ---------------------------------------------------------------------------

class FeedbackItem(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str = Field(description="<rule id>_<epoch ms>")
    category: FeedbackCategory
    message: str
    action: Optional[str] = None
    priority: FeedbackPriority
    timestamp: datetime
    data_references: list[str] = Field(
        default_factory=list,
        description="Data points the message was derived from.",
    )


class FeedbackContext(BaseModel):
    user_data: UserData
    recent_workouts: list[WorkoutData] = Field(default_factory=list)
    progress_data: list[ProgressData] = Field(default_factory=list)
    current_program_phase: ProgramPhase = "initiation"
    recent_feedback_history: list[FeedbackItem] = Field(default_factory=list)


class FeedbackRequest(BaseModel):
    user_data: UserData
    recent_workouts: list[WorkoutData] = Field(default_factory=list)
    progress_data: list[ProgressData] = Field(default_factory=list)
    current_program_phase: ProgramPhase = "initiation"


class FeedbackListResponse(BaseModel):
    enabled: bool
    total: int
    items: list[FeedbackItem]


# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------

class TonePreferences(BaseModel):
    technical: Literal["scientific", "conversational", "balanced"] = "balanced"
    motivational: Literal["enthusiastic", "calm", "challenging"] = "enthusiastic"
    progress: Literal["analytical", "celebratory", "encouraging"] = "celebratory"


class FeedbackSettings(BaseModel):
    enable_technical_feedback: bool = True
    enable_progress_feedback: bool = True
    enable_motivational_feedback: bool = True
    # Not enforced by generation; display-side rate limiting owns it.
    max_feedback_per_day: int = Field(default=5, ge=0)
    preferred_timing: Literal["immediate", "post_session", "daily_summary"] = "post_session"
    tone_preferences: TonePreferences = Field(default_factory=TonePreferences)


class FeedbackSettingsUpdate(BaseModel):
    """
    Partial update. Merge is shallow: `tone_preferences`, when supplied,
    replaces the current object whole.
    """
    enable_technical_feedback: Optional[bool] = None
    enable_progress_feedback: Optional[bool] = None
    enable_motivational_feedback: Optional[bool] = None
    max_feedback_per_day: Optional[int] = Field(default=None, ge=0)
    preferred_timing: Optional[Literal["immediate", "post_session", "daily_summary"]] = None
    tone_preferences: Optional[TonePreferences] = None


# ---------------------------------------------------------------------------
# Analytics
# ---------------------------------------------------------------------------

class FeedbackEffectiveness(BaseModel):
    viewed: bool = False
    acted_upon: bool = False
    user_rating: int = 0


class FeedbackAnalytics(BaseModel):
    total_feedback_items: int = 0
    feedback_by_category: dict[str, int] = Field(
        default_factory=lambda: {"technical": 0, "progress": 0, "motivational": 0}
    )
    user_response_rate: float = 0.0
    feedback_effectiveness: dict[str, FeedbackEffectiveness] = Field(default_factory=dict)
    common_feedback_triggers: dict[str, int] = Field(default_factory=dict)


class FeedbackResponseRequest(BaseModel):
    feedback_id: str
    viewed: bool
    acted_upon: bool = False
    rating: int
