"""
Feedback Engine — technical, progress and motivational coaching messages.

Rules
-----
  technical
    poor_form_detection      high    a form note mentions poor / incorrect / fix
    inconsistent_rpe         medium  ≥3 workouts with RPE, ≥5 samples, variance > 2.0
  progress
    significant_improvement  high    latest value ≥10% above the mean of values
                                     recorded more than a month ago
    consistency_streak       high    ≥7 recent workouts
  motivational
    low_motivation           high    motivation < 4
    high_stress              medium  stress > 7
    confidence_boost         medium  ≥3 of the last 5 feedback items were
                                     progress or motivational

Each rule has a single finder shared by its predicate and its message
builder, so a message always quotes the values that made the rule fire.
Output is sorted high → medium → low, registration order within a level.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional

from maestro.schemas.feedback import (
    FeedbackContext,
    FeedbackItem,
    FeedbackSettings,
    ProgressData,
    WorkoutData,
)
from maestro.services.merge import SettingsChanges, merge_settings
from maestro.services.signals import mean, naive_local, one_month_before, population_variance

logger = logging.getLogger(__name__)


class RuleId:
    POOR_FORM_DETECTION     = "poor_form_detection"
    INCONSISTENT_RPE        = "inconsistent_rpe"
    SIGNIFICANT_IMPROVEMENT = "significant_improvement"
    CONSISTENCY_STREAK      = "consistency_streak"
    LOW_MOTIVATION          = "low_motivation"
    HIGH_STRESS             = "high_stress"
    CONFIDENCE_BOOST        = "confidence_boost"


PRIORITY_ORDER = ("high", "medium", "low")

# Thresholds
_FORM_ISSUE_KEYWORDS       = ("poor", "incorrect", "fix")
_MIN_RPE_WORKOUTS          = 3
_MIN_RPE_SAMPLES           = 5
_RPE_VARIANCE_THRESHOLD    = 2.0
_IMPROVEMENT_PCT           = 10.0
_STREAK_WORKOUTS           = 7
_LOW_MOTIVATION            = 4
_HIGH_STRESS               = 7
_BOOST_WINDOW              = 5
_BOOST_MIN_POSITIVE        = 3
_POSITIVE_CATEGORIES       = ("progress", "motivational")

Builder = Callable[[FeedbackContext, datetime], str]


@dataclass(frozen=True)
class FeedbackRule:
    id: str
    category: str
    priority: str
    condition: Callable[[FeedbackContext, datetime], bool]
    message: Builder
    action: Optional[Builder] = None
    references: Optional[Callable[[FeedbackContext, datetime], list[str]]] = None


def _workout_ref(workout: WorkoutData) -> str:
    return f"workout:{workout.exercise}@{workout.timestamp.isoformat()}"


# ---------------------------------------------------------------------------
# Finders
# ---------------------------------------------------------------------------

def _find_form_issue(ctx: FeedbackContext) -> Optional[tuple[WorkoutData, str]]:
    for workout in ctx.recent_workouts:
        for note in workout.form_notes or []:
            lowered = note.lower()
            if any(keyword in lowered for keyword in _FORM_ISSUE_KEYWORDS):
                return workout, note
    return None


def _rpe_workouts(ctx: FeedbackContext) -> list[WorkoutData]:
    return [w for w in ctx.recent_workouts if w.rpe]


def _rpe_variance(ctx: FeedbackContext) -> Optional[float]:
    workouts = _rpe_workouts(ctx)
    if len(workouts) < _MIN_RPE_WORKOUTS:
        return None
    samples = [rpe for w in workouts for rpe in w.rpe]
    if len(samples) < _MIN_RPE_SAMPLES:
        return None
    return population_variance(samples)


def _find_improvement(
    ctx: FeedbackContext, now: datetime
) -> Optional[tuple[ProgressData, float]]:
    """First metric whose latest value beats the pre-month average by ≥10%."""
    cutoff = one_month_before(naive_local(now))
    for metric in ctx.progress_data:
        if len(metric.values) < 2:
            continue
        older = [
            value for value, recorded in zip(metric.values, metric.dates)
            if naive_local(recorded) < cutoff
        ]
        if not older:
            continue
        baseline = mean(older)
        if baseline == 0:
            continue
        improvement = (metric.values[-1] - baseline) / baseline * 100
        if improvement >= _IMPROVEMENT_PCT:
            return metric, improvement
    return None


def _positive_history(ctx: FeedbackContext) -> list[FeedbackItem]:
    recent = ctx.recent_feedback_history[-_BOOST_WINDOW:]
    return [f for f in recent if f.category in _POSITIVE_CATEGORIES]


# ---------------------------------------------------------------------------
# Message builders
# ---------------------------------------------------------------------------

def _poor_form_message(ctx: FeedbackContext, now: datetime) -> str:
    workout, note = _find_form_issue(ctx)
    return (
        f'I noticed some form issues in your {workout.exercise} session: "{note}". '
        "Let's correct this to prevent injury and get more out of every rep."
    )


def _improvement_message(ctx: FeedbackContext, now: datetime) -> str:
    metric, improvement = _find_improvement(ctx, now)
    return (
        f"Outstanding progress! Your {metric.metric} has improved by {improvement:.1f}% "
        "compared with a month ago. That dedication is paying off!"
    )


def _low_motivation_message(ctx: FeedbackContext, now: datetime) -> str:
    goals = ", ".join(ctx.user_data.goals) or "your goals"
    return (
        "It sounds like motivation is running low right now. Remember you started this "
        f"to achieve {goals}. Every session gets you closer."
    )


def _fixed(text: str) -> Builder:
    return lambda ctx, now: text


# ---------------------------------------------------------------------------
# Catalog
# ---------------------------------------------------------------------------

FEEDBACK_RULES: tuple[FeedbackRule, ...] = (
    # Technical
    FeedbackRule(
        id=RuleId.POOR_FORM_DETECTION,
        category="technical",
        priority="high",
        condition=lambda ctx, now: _find_form_issue(ctx) is not None,
        message=_poor_form_message,
        action=_fixed(
            "Review the exercise tutorial and focus on the movement pattern in your next session."
        ),
        references=lambda ctx, now: [_workout_ref(_find_form_issue(ctx)[0])],
    ),
    FeedbackRule(
        id=RuleId.INCONSISTENT_RPE,
        category="technical",
        priority="medium",
        condition=lambda ctx, now: (_rpe_variance(ctx) or 0) > _RPE_VARIANCE_THRESHOLD,
        message=_fixed(
            "Your RPE ratings have been jumping around a lot. More accurate self-assessment "
            "will help fine-tune your programming."
        ),
        action=_fixed(
            "Practise the RPE scale before your next workout: RPE 7 should feel like "
            "2-3 reps left in the tank."
        ),
        references=lambda ctx, now: [_workout_ref(w) for w in _rpe_workouts(ctx)],
    ),
    # Progress
    FeedbackRule(
        id=RuleId.SIGNIFICANT_IMPROVEMENT,
        category="progress",
        priority="high",
        condition=lambda ctx, now: _find_improvement(ctx, now) is not None,
        message=_improvement_message,
        action=_fixed("Set a new goal to build on this momentum."),
        references=lambda ctx, now: [f"progress:{_find_improvement(ctx, now)[0].metric}"],
    ),
    FeedbackRule(
        id=RuleId.CONSISTENCY_STREAK,
        category="progress",
        priority="high",
        # Workout count stands in for consecutive days; dates are not checked.
        condition=lambda ctx, now: len(ctx.recent_workouts) >= _STREAK_WORKOUTS,
        message=_fixed(
            "Amazing consistency! Seven days of training in a row shows real dedication. "
            "You're building habits that stick."
        ),
        action=_fixed("Keep the streak alive: consistency is the foundation of all progress."),
        references=lambda ctx, now: [
            _workout_ref(w) for w in ctx.recent_workouts[-_STREAK_WORKOUTS:]
        ],
    ),
    # Motivational
    FeedbackRule(
        id=RuleId.LOW_MOTIVATION,
        category="motivational",
        priority="high",
        condition=lambda ctx, now: ctx.user_data.psychological_state.motivation < _LOW_MOTIVATION,
        message=_low_motivation_message,
        action=_fixed(
            "Try a shorter, easier workout today. Momentum matters more than intensity."
        ),
        references=lambda ctx, now: ["psychological_state.motivation"],
    ),
    FeedbackRule(
        id=RuleId.HIGH_STRESS,
        category="motivational",
        priority="medium",
        condition=lambda ctx, now: ctx.user_data.psychological_state.stress > _HIGH_STRESS,
        message=_fixed(
            "Your stress levels are high. Training builds mental resilience as much as "
            "physical strength, so use today's session as a healthy outlet."
        ),
        action=_fixed(
            "Take a few deep breaths during your warm-up and set one intention for the session."
        ),
        references=lambda ctx, now: ["psychological_state.stress"],
    ),
    FeedbackRule(
        id=RuleId.CONFIDENCE_BOOST,
        category="motivational",
        priority="medium",
        condition=lambda ctx, now: len(_positive_history(ctx)) >= _BOOST_MIN_POSITIVE,
        message=_fixed(
            "Your confidence is growing and it shows in your training! "
            "That mental strength carries over into everything you do."
        ),
        action=_fixed("Channel this confidence into a new challenge this week."),
        references=lambda ctx, now: [f"feedback:{f.id}" for f in _positive_history(ctx)],
    ),
)


# ---------------------------------------------------------------------------
# Engine
# ---------------------------------------------------------------------------

class FeedbackEngine:

    def __init__(
        self,
        settings: Optional[FeedbackSettings] = None,
        *,
        rules: tuple[FeedbackRule, ...] = FEEDBACK_RULES,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self._settings = settings or FeedbackSettings()
        self._rules = rules
        self._clock = clock

    def _category_enabled(self, category: str) -> bool:
        s = self._settings
        return {
            "technical": s.enable_technical_feedback,
            "progress": s.enable_progress_feedback,
            "motivational": s.enable_motivational_feedback,
        }.get(category, True)

    def active_rules(self) -> list[FeedbackRule]:
        return [r for r in self._rules if self._category_enabled(r.category)]

    def generate_feedback(
        self, context: FeedbackContext, now: Optional[datetime] = None
    ) -> list[FeedbackItem]:
        now = now or self._clock()
        stamp = int(now.timestamp() * 1000)

        items = []
        for rule in self.active_rules():
            if not rule.condition(context, now):
                continue
            items.append(FeedbackItem(
                id=f"{rule.id}_{stamp}",
                category=rule.category,
                message=rule.message(context, now),
                action=rule.action(context, now) if rule.action else None,
                priority=rule.priority,
                timestamp=now,
                data_references=rule.references(context, now) if rule.references else [],
            ))

        items.sort(key=lambda item: PRIORITY_ORDER.index(item.priority))
        if items:
            logger.debug("Feedback rules fired: %s", [i.id for i in items])
        return items

    def update_settings(self, changes: SettingsChanges) -> FeedbackSettings:
        self._settings = merge_settings(self._settings, changes)
        return self.get_settings()

    def get_settings(self) -> FeedbackSettings:
        return self._settings.model_copy(deep=True)
