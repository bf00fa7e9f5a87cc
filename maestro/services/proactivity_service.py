"""
Proactivity service: enable flag + one engine per user.
"""
from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional

from maestro.schemas.proactivity import (
    ProactiveIntervention,
    ProactivityAnalytics,
    ProactivitySettings,
    UserDataSnapshot,
)
from maestro.services.merge import SettingsChanges
from maestro.services.proactivity_engine import ProactivityEngine

logger = logging.getLogger(__name__)


class ProactivityService:

    def __init__(
        self,
        settings: Optional[ProactivitySettings] = None,
        engine: Optional[ProactivityEngine] = None,
    ):
        self.engine = engine or ProactivityEngine(settings)
        self._enabled = True

    def set_enabled(self, enabled: bool) -> None:
        self._enabled = enabled

    @property
    def is_enabled(self) -> bool:
        return self._enabled

    def process_user_data(
        self, data: UserDataSnapshot, now: Optional[datetime] = None
    ) -> list[ProactiveIntervention]:
        """Disabled → [] without touching the engine (cooldowns untouched)."""
        if not self._enabled:
            return []
        return self.engine.evaluate_triggers(data, now)

    def update_settings(self, changes: SettingsChanges) -> ProactivitySettings:
        return self.engine.update_settings(changes)

    def get_settings(self) -> ProactivitySettings:
        return self.engine.get_settings()

    def get_analytics(self) -> ProactivityAnalytics:
        return self.engine.get_analytics()

    def record_user_response(self, trigger_id: str, responded: bool, was_helpful: bool) -> None:
        self.engine.get_trigger(trigger_id)  # raises UnknownTriggerError
        logger.info(
            "User %s intervention %s", "responded to" if responded else "ignored", trigger_id
        )
        if responded and was_helpful:
            logger.info("User found intervention %s helpful", trigger_id)
        self.engine.record_response(responded, was_helpful)
