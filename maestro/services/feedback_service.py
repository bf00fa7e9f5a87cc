"""
Feedback service: enable flag, bounded history and response analytics.

History is fed back into each new context (last N items) so that
history-based rules such as confidence_boost can see earlier output.
User responses only touch analytics.
"""
from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional, Sequence

from maestro.core.errors import FeedbackNotFoundError, InvalidRatingError
from maestro.schemas.feedback import (
    FeedbackAnalytics,
    FeedbackContext,
    FeedbackEffectiveness,
    FeedbackItem,
    FeedbackSettings,
    ProgramPhase,
    ProgressData,
    UserData,
    WorkoutData,
)
from maestro.services.feedback_engine import FeedbackEngine
from maestro.services.merge import SettingsChanges
from maestro.services.signals import tail

logger = logging.getLogger(__name__)

HISTORY_LIMIT = 50
CONTEXT_WINDOW = 10


def _rule_id(item: FeedbackItem) -> str:
    return item.id.rsplit("_", 1)[0]


class FeedbackService:

    def __init__(
        self,
        settings: Optional[FeedbackSettings] = None,
        engine: Optional[FeedbackEngine] = None,
        history_limit: int = HISTORY_LIMIT,
        context_window: int = CONTEXT_WINDOW,
    ):
        self.engine = engine or FeedbackEngine(settings)
        self._enabled = True
        self._history: list[FeedbackItem] = []
        self._history_limit = history_limit
        self._context_window = context_window
        self._analytics = FeedbackAnalytics()
        self._responses: set[str] = set()

    def set_enabled(self, enabled: bool) -> None:
        self._enabled = enabled

    @property
    def is_enabled(self) -> bool:
        return self._enabled

    def generate_feedback(
        self,
        user_data: UserData,
        recent_workouts: Sequence[WorkoutData],
        progress_data: Sequence[ProgressData],
        program_phase: ProgramPhase = "initiation",
        now: Optional[datetime] = None,
    ) -> list[FeedbackItem]:
        if not self._enabled:
            return []

        context = FeedbackContext(
            user_data=user_data,
            recent_workouts=list(recent_workouts),
            progress_data=list(progress_data),
            current_program_phase=program_phase,
            recent_feedback_history=tail(self._history, self._context_window),
        )
        items = self.engine.generate_feedback(context, now)

        # tail() keeps nothing for a limit <= 0; a bare [-0:] slice would keep everything
        self._history = tail(self._history + items, self._history_limit)

        self._count_generated(items)
        return items

    def get_feedback_history(self) -> list[FeedbackItem]:
        return list(self._history)

    def update_settings(self, changes: SettingsChanges) -> FeedbackSettings:
        return self.engine.update_settings(changes)

    def get_settings(self) -> FeedbackSettings:
        return self.engine.get_settings()

    # -- analytics ----------------------------------------------------------

    def _count_generated(self, items: list[FeedbackItem]) -> None:
        a = self._analytics
        a.total_feedback_items += len(items)
        for item in items:
            a.feedback_by_category[item.category] = a.feedback_by_category.get(item.category, 0) + 1
            rule_id = _rule_id(item)
            a.common_feedback_triggers[rule_id] = a.common_feedback_triggers.get(rule_id, 0) + 1

    def record_user_response(
        self, feedback_id: str, viewed: bool, acted_upon: bool, rating: int
    ) -> None:
        if not 1 <= rating <= 5:
            raise InvalidRatingError(rating)
        if not any(item.id == feedback_id for item in self._history):
            raise FeedbackNotFoundError(feedback_id)

        logger.info("User %s feedback %s", "viewed" if viewed else "ignored", feedback_id)
        if acted_upon:
            logger.info("User acted upon feedback %s", feedback_id)
        logger.info("User rated feedback %s with %d/5 stars", feedback_id, rating)

        a = self._analytics
        a.feedback_effectiveness[feedback_id] = FeedbackEffectiveness(
            viewed=viewed, acted_upon=acted_upon, user_rating=rating,
        )
        if viewed:
            self._responses.add(feedback_id)
        else:
            self._responses.discard(feedback_id)
        if a.total_feedback_items:
            a.user_response_rate = len(self._responses) / a.total_feedback_items

    def get_analytics(self) -> FeedbackAnalytics:
        return self._analytics.model_copy(deep=True)
