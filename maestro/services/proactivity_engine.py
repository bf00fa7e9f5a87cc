"""
Proactivity Engine — decides which coaching interventions fire right now.

Triggers (evaluated on every call, in registration order)
----------------------------------------------------------
  poor_sleep_pattern     critical  last 3 nights all < 6 h                      24 h
  injury_risk            critical  ≥2 pain reports + any of last 3 intensity > 8 48 h
  performance_plateau    high      any metric: last-2 vs prior-2 avg within 2%  168 h
  recovery_window        high      sleep quality > 7, hydration > 7, stress < 4 72 h
  motivation_dip         medium    usage last 3 days < half of the 4 before     48 h
  habit_streak           medium    consistency > 8 + used the app all of last 7 168 h
  technique_opportunity  low       form > 7 with moderate intensity (5, 8)      168 h
  habit_breakage         medium    consistency > 7 + no app usage last 3 days   24 h

Timing
------
  * Inside the quiet-hours window (inclusive, may wrap midnight) nothing fires.
  * A trigger that fired is silent until max(override, own cooldown) hours pass.

The catalog is immutable and shared; last-fired timestamps live on the
engine instance, so one engine per user keeps cooldowns independent.
No I/O. Callers serialise concurrent calls for the same user.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional

from maestro.core.errors import UnknownTriggerError
from maestro.schemas.proactivity import (
    ProactiveIntervention,
    ProactivityAnalytics,
    ProactivitySettings,
    UserDataSnapshot,
)
from maestro.services.merge import SettingsChanges, merge_settings
from maestro.services.signals import mean, minutes_of_day, tail

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Trigger id constants
# ---------------------------------------------------------------------------

class TriggerId:
    POOR_SLEEP_PATTERN    = "poor_sleep_pattern"
    INJURY_RISK           = "injury_risk"
    PERFORMANCE_PLATEAU   = "performance_plateau"
    RECOVERY_WINDOW       = "recovery_window"
    MOTIVATION_DIP        = "motivation_dip"
    HABIT_STREAK          = "habit_streak"
    TECHNIQUE_OPPORTUNITY = "technique_opportunity"
    HABIT_BREAKAGE        = "habit_breakage"


PRIORITY_ORDER = ("critical", "high", "medium", "low")

# Thresholds
_SHORT_SLEEP_HOURS       = 6
_MIN_PAIN_REPORTS        = 2
_HIGH_INTENSITY          = 8
_PLATEAU_TOLERANCE       = 0.02
_RECOVERY_GOOD           = 7
_RECOVERY_LOW_STRESS     = 4
_USAGE_DROP_RATIO        = 0.5
_STREAK_CONSISTENCY      = 8
_STREAK_DAYS             = 7
_TECHNIQUE_FORM          = 7
_TECHNIQUE_INTENSITY     = (5, 8)
_BREAKAGE_CONSISTENCY    = 7
_BREAKAGE_DAYS           = 3


# ---------------------------------------------------------------------------
# Rule definitions
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ProactiveTrigger:
    id: str
    category: str
    priority: str
    condition: Callable[[UserDataSnapshot], bool]
    confidence: int        # 0-100
    cooldown_hours: float


@dataclass(frozen=True)
class InterventionTemplate:
    message: str
    suggested_action: Optional[str] = None


def _poor_sleep_pattern(data: UserDataSnapshot) -> bool:
    if len(data.sleep_hours) < 3:
        return False
    return all(hours < _SHORT_SLEEP_HOURS for hours in tail(data.sleep_hours, 3))


def _injury_risk(data: UserDataSnapshot) -> bool:
    if len(data.pain_reports) < _MIN_PAIN_REPORTS:
        return False
    return any(i > _HIGH_INTENSITY for i in tail(data.workout_intensity, 3))


def _performance_plateau(data: UserDataSnapshot) -> bool:
    for values in data.performance_metrics.values():
        if len(values) < 4:
            continue
        recent_avg = mean(values[-2:])
        older_avg = mean(values[-4:-2])
        if older_avg == 0:
            continue
        if abs(recent_avg - older_avg) / older_avg < _PLATEAU_TOLERANCE:
            return True
    return False


def _recovery_window(data: UserDataSnapshot) -> bool:
    return (
        mean(tail(data.sleep_quality, 3)) > _RECOVERY_GOOD
        and mean(tail(data.hydration_level, 3)) > _RECOVERY_GOOD
        and mean(tail(data.stress_levels, 3)) < _RECOVERY_LOW_STRESS
    )


def _motivation_dip(data: UserDataSnapshot) -> bool:
    usage = data.app_usage_frequency
    if len(usage) < 7:
        return False
    recent_avg = mean(usage[-3:])
    older_avg = mean(usage[-7:-3])
    return recent_avg < older_avg * _USAGE_DROP_RATIO


def _habit_streak(data: UserDataSnapshot) -> bool:
    window = tail(data.app_usage_frequency, _STREAK_DAYS)
    return (
        data.workout_consistency > _STREAK_CONSISTENCY
        and bool(window)  # all([]) is True; no usage data never fires
        and all(freq > 0 for freq in window)
    )


def _technique_opportunity(data: UserDataSnapshot) -> bool:
    if len(data.form_quality) < 3:
        return False
    low, high = _TECHNIQUE_INTENSITY
    avg_intensity = mean(tail(data.workout_intensity, 3))
    return mean(tail(data.form_quality, 3)) > _TECHNIQUE_FORM and low < avg_intensity < high


def _habit_breakage(data: UserDataSnapshot) -> bool:
    window = tail(data.app_usage_frequency, _BREAKAGE_DAYS)
    return (
        data.workout_consistency > _BREAKAGE_CONSISTENCY
        and bool(window)  # all([]) is True; no usage data never fires
        and all(freq == 0 for freq in window)
    )


TRIGGER_CATALOG: tuple[ProactiveTrigger, ...] = (
    # Health & safety
    ProactiveTrigger(TriggerId.POOR_SLEEP_PATTERN, "health_safety", "critical",
                     _poor_sleep_pattern, confidence=90, cooldown_hours=24),
    ProactiveTrigger(TriggerId.INJURY_RISK, "health_safety", "critical",
                     _injury_risk, confidence=85, cooldown_hours=48),
    # Performance
    ProactiveTrigger(TriggerId.PERFORMANCE_PLATEAU, "performance", "high",
                     _performance_plateau, confidence=80, cooldown_hours=168),
    ProactiveTrigger(TriggerId.RECOVERY_WINDOW, "performance", "high",
                     _recovery_window, confidence=75, cooldown_hours=72),
    # Motivation & habits
    ProactiveTrigger(TriggerId.MOTIVATION_DIP, "motivation", "medium",
                     _motivation_dip, confidence=70, cooldown_hours=48),
    ProactiveTrigger(TriggerId.HABIT_STREAK, "habits", "medium",
                     _habit_streak, confidence=85, cooldown_hours=168),
    # Education
    ProactiveTrigger(TriggerId.TECHNIQUE_OPPORTUNITY, "education", "low",
                     _technique_opportunity, confidence=65, cooldown_hours=168),
    ProactiveTrigger(TriggerId.HABIT_BREAKAGE, "habits", "medium",
                     _habit_breakage, confidence=80, cooldown_hours=24),
)


INTERVENTION_TEMPLATES: dict[str, InterventionTemplate] = {
    TriggerId.POOR_SLEEP_PATTERN: InterventionTemplate(
        "Your sleep has been short for a few nights now. Let's keep today light "
        "and technique-focused so your body can catch up on recovery.",
        "Cut training volume by about 30% and favour mobility work.",
    ),
    TriggerId.INJURY_RISK: InterventionTemplate(
        "You've reported pain while training at very high intensity. That combination "
        "is an injury warning sign, so let's back off and recover.",
        "Take a deload day or drop training intensity by around 40%.",
    ),
    TriggerId.PERFORMANCE_PLATEAU: InterventionTemplate(
        "Your numbers have levelled off over the last few sessions. "
        "Time to try a different progression strategy this week.",
        "Swap in exercise variations or adjust sets, reps or tempo.",
    ),
    TriggerId.RECOVERY_WINDOW: InterventionTemplate(
        "Sleep, hydration and stress all look great right now. "
        "This is a good window to push a little harder.",
        "Raise training volume or intensity by 10-15% in your next sessions.",
    ),
    TriggerId.MOTIVATION_DIP: InterventionTemplate(
        "I haven't seen much of you these last few days. How is training feeling? "
        "I have some fresh ideas if you want to shake things up.",
        "Try a new workout style or set a small goal for this week.",
    ),
    TriggerId.HABIT_STREAK: InterventionTemplate(
        "You've shown up every day this week. That consistency is paying off!",
        "Set a new challenge to build on this momentum.",
    ),
    TriggerId.TECHNIQUE_OPPORTUNITY: InterventionTemplate(
        "Your form has been excellent at moderate loads. "
        "Perfect moment to polish the finer technique details.",
        "Spend extra time on slow-motion reps or film a set for video analysis.",
    ),
    TriggerId.HABIT_BREAKAGE: InterventionTemplate(
        "Looks like you've missed a few sessions. Life happens! "
        "Let's get back on track together.",
        "Start with a shorter, easier session to rebuild momentum.",
    ),
}


def build_intervention(trigger: ProactiveTrigger) -> ProactiveIntervention:
    template = INTERVENTION_TEMPLATES[trigger.id]
    return ProactiveIntervention(
        trigger_id=trigger.id,
        priority=trigger.priority,
        confidence=trigger.confidence,
        message=template.message,
        suggested_action=template.suggested_action,
        category=trigger.category,
    )


# ---------------------------------------------------------------------------
# Engine
# ---------------------------------------------------------------------------

class ProactivityEngine:

    def __init__(
        self,
        settings: Optional[ProactivitySettings] = None,
        *,
        triggers: tuple[ProactiveTrigger, ...] = TRIGGER_CATALOG,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self._settings = settings or ProactivitySettings()
        self._triggers = triggers
        self._clock = clock
        self._last_fired: dict[str, datetime] = {}
        self._analytics = ProactivityAnalytics()
        self._responded = 0
        self._helpful = 0

    # -- timing -------------------------------------------------------------

    def in_quiet_hours(self, now: Optional[datetime] = None) -> bool:
        now = now or self._clock()
        current = now.hour * 60 + now.minute
        start = minutes_of_day(self._settings.quiet_hours.start)
        end = minutes_of_day(self._settings.quiet_hours.end)
        if start > end:
            return current >= start or current <= end
        return start <= current <= end

    def cooldown_hours(self, trigger: ProactiveTrigger) -> float:
        override = self._settings.cooldown_periods.get(trigger.id, 0)
        return max(override, trigger.cooldown_hours)

    def is_on_cooldown(self, trigger: ProactiveTrigger, now: Optional[datetime] = None) -> bool:
        last = self._last_fired.get(trigger.id)
        if last is None:
            return False
        now = now or self._clock()
        hours_since = (now - last).total_seconds() / 3600
        return hours_since < self.cooldown_hours(trigger)

    def last_fired(self, trigger_id: str) -> Optional[datetime]:
        return self._last_fired.get(trigger_id)

    # -- evaluation ---------------------------------------------------------

    def evaluate_triggers(
        self, data: UserDataSnapshot, now: Optional[datetime] = None
    ) -> list[ProactiveIntervention]:
        """
        Return the interventions that fire for `data` at `now`, critical first.
        Records `now` as the last-fired time of every trigger returned.
        """
        now = now or self._clock()
        if self.in_quiet_hours(now):
            logger.debug("Quiet hours active at %s, skipping evaluation", now.strftime("%H:%M"))
            return []

        fired = [
            t for t in self._triggers
            if not self.is_on_cooldown(t, now) and t.condition(data)
        ]
        fired.sort(key=lambda t: PRIORITY_ORDER.index(t.priority))

        interventions = []
        for trigger in fired:
            interventions.append(build_intervention(trigger))
            self._last_fired[trigger.id] = now

        if interventions:
            logger.debug("Fired triggers: %s", [i.trigger_id for i in interventions])
            self._count_fired(interventions, now)
        return interventions

    # -- settings -----------------------------------------------------------

    def update_settings(self, changes: SettingsChanges) -> ProactivitySettings:
        self._settings = merge_settings(self._settings, changes)
        return self.get_settings()

    def get_settings(self) -> ProactivitySettings:
        return self._settings.model_copy(deep=True)

    # -- catalog ------------------------------------------------------------

    def get_trigger(self, trigger_id: str) -> ProactiveTrigger:
        for trigger in self._triggers:
            if trigger.id == trigger_id:
                return trigger
        raise UnknownTriggerError(trigger_id)

    # -- analytics ----------------------------------------------------------

    def _count_fired(self, interventions: list[ProactiveIntervention], now: datetime) -> None:
        a = self._analytics
        a.interventions_triggered += len(interventions)
        a.last_intervention_date = now
        for intervention in interventions:
            a.category_breakdown[intervention.category] = (
                a.category_breakdown.get(intervention.category, 0) + 1
            )

    def record_response(self, responded: bool, was_helpful: bool) -> None:
        """Analytics only; never consulted by evaluate_triggers."""
        a = self._analytics
        a.responses_recorded += 1
        if responded:
            self._responded += 1
            if was_helpful:
                self._helpful += 1
        a.user_response_rate = self._responded / a.responses_recorded
        a.intervention_success_rate = (
            self._helpful / self._responded if self._responded else 0.0
        )

    def get_analytics(self) -> ProactivityAnalytics:
        return self._analytics.model_copy(deep=True)
