"""
Shared pytest fixtures.

Every engine and registry gets a fixed clock (NOON, outside the default
22:00-07:00 quiet hours) so results never depend on when the suite runs.
"""
from datetime import datetime

import pytest
from fastapi.testclient import TestClient

from maestro.core.config import get_settings
from maestro.main import app
from maestro.schemas.feedback import (
    FeedbackContext,
    PsychologicalState,
    UserData,
    WorkoutData,
)
from maestro.schemas.proactivity import UserDataSnapshot
from maestro.services.feedback_engine import FeedbackEngine
from maestro.services.proactivity_engine import ProactivityEngine
from maestro.services.registry import CoachRegistry

NOON = datetime(2026, 3, 10, 12, 0)


def _neutral_snapshot() -> dict:
    """A snapshot for which no trigger fires."""
    return {
        "sleep_hours": [7, 7, 7],
        "sleep_quality": [6, 6, 6],
        "bedtime_consistency": 6,
        "workout_consistency": 5,
        "workout_intensity": [6, 6, 6],
        "form_quality": [6, 6, 6],
        "pain_reports": [],
        "nutrition_adherence": 6,
        "hydration_level": [6, 6, 6],
        "app_usage_frequency": [1, 1, 1, 1, 1, 1, 1],
        "response_rate_to_coaching": 6,
        "manual_check_ins": 2,
        "performance_metrics": {},
        "energy_levels": [6, 6, 6],
        "motivation_levels": [6, 6, 6],
        "stress_levels": [5, 5, 5],
        "timestamp": NOON,
    }


@pytest.fixture()
def now() -> datetime:
    return NOON


@pytest.fixture()
def snapshot_data() -> dict:
    return _neutral_snapshot()


@pytest.fixture()
def make_snapshot():
    def _make(**overrides) -> UserDataSnapshot:
        return UserDataSnapshot(**{**_neutral_snapshot(), **overrides})
    return _make


@pytest.fixture()
def make_user():
    def _make(motivation=8, stress=3, goals=("strength", "muscle_gain")) -> UserData:
        return UserData(
            id="user123",
            name="John Doe",
            age=30,
            gender="male",
            goals=list(goals),
            experience_level="intermediate",
            psychological_state=PsychologicalState(
                energy=7, motivation=motivation, stress=stress, confidence=6,
            ),
        )
    return _make


@pytest.fixture()
def make_workout():
    def _make(exercise="Squat", rpe=None, form_notes=None, timestamp=NOON) -> WorkoutData:
        return WorkoutData(
            exercise=exercise,
            sets=5,
            reps=[5, 5, 5, 5, 5],
            weight=[100, 100, 100, 100, 100],
            rpe=rpe,
            form_notes=form_notes,
            timestamp=timestamp,
        )
    return _make


@pytest.fixture()
def make_context(make_user, make_workout):
    def _make(user=None, workouts=None, progress=None, history=None) -> FeedbackContext:
        return FeedbackContext(
            user_data=user or make_user(),
            recent_workouts=(
                workouts if workouts is not None
                else [make_workout(rpe=[7, 7, 8, 8, 8], form_notes=["Good form"])]
            ),
            progress_data=progress or [],
            current_program_phase="initiation",
            recent_feedback_history=history or [],
        )
    return _make


@pytest.fixture()
def engine() -> ProactivityEngine:
    return ProactivityEngine(clock=lambda: NOON)


@pytest.fixture()
def feedback_engine() -> FeedbackEngine:
    return FeedbackEngine(clock=lambda: NOON)


@pytest.fixture()
def registry() -> CoachRegistry:
    return CoachRegistry(get_settings(), clock=lambda: NOON)


@pytest.fixture()
def client():
    with TestClient(app) as c:
        app.state.registry = CoachRegistry(get_settings(), clock=lambda: NOON)
        yield c
