"""
Per-user service registry.

Engines keep last-fired timestamps and history in memory and do no
locking, so evaluations for one user must not overlap. `session()` hands
out that user's services with the user's lock held; different users never
block each other.

Only `session()` creates users. Read routes go through `lookup()`, which
yields None for unknown ids so callers can answer with defaults. The map
holds at most `max_users` entries; past that the least recently used user
whose lock is free is dropped.

Built once in the app lifespan and stored on `app.state.registry`.
"""
from __future__ import annotations

import logging
import threading
from collections import OrderedDict
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Iterator, Optional

from maestro.core.config import Settings
from maestro.schemas.feedback import FeedbackSettings
from maestro.schemas.proactivity import ProactivitySettings, QuietHours
from maestro.services.feedback_engine import FeedbackEngine
from maestro.services.feedback_service import FeedbackService
from maestro.services.proactivity_engine import ProactivityEngine
from maestro.services.proactivity_service import ProactivityService

logger = logging.getLogger(__name__)


@dataclass
class UserServices:
    user_id: str
    proactivity: ProactivityService
    feedback: FeedbackService
    lock: threading.Lock = field(default_factory=threading.Lock, repr=False)


class CoachRegistry:

    def __init__(
        self,
        settings: Settings,
        clock: Callable[[], datetime] = datetime.now,
        max_users: Optional[int] = None,
    ):
        self._settings = settings
        self._clock = clock
        self._max_users = max_users or settings.REGISTRY_MAX_USERS
        self._users: OrderedDict[str, UserServices] = OrderedDict()
        self._guard = threading.Lock()

    def default_proactivity_settings(self) -> ProactivitySettings:
        return ProactivitySettings(
            quiet_hours=QuietHours(
                start=self._settings.DEFAULT_QUIET_HOURS_START,
                end=self._settings.DEFAULT_QUIET_HOURS_END,
            ),
            max_daily_interventions=self._settings.DEFAULT_MAX_DAILY_INTERVENTIONS,
        )

    def default_feedback_settings(self) -> FeedbackSettings:
        return FeedbackSettings(max_feedback_per_day=self._settings.DEFAULT_MAX_FEEDBACK_PER_DAY)

    def _create(self, user_id: str) -> UserServices:
        return UserServices(
            user_id=user_id,
            proactivity=ProactivityService(
                engine=ProactivityEngine(self.default_proactivity_settings(), clock=self._clock),
            ),
            feedback=FeedbackService(
                engine=FeedbackEngine(self.default_feedback_settings(), clock=self._clock),
                history_limit=self._settings.FEEDBACK_HISTORY_LIMIT,
                context_window=self._settings.FEEDBACK_CONTEXT_WINDOW,
            ),
        )

    def _evict(self) -> None:
        # caller holds self._guard; users mid-request and the newest entry stay
        for user_id in list(self._users)[:-1]:
            if len(self._users) <= self._max_users:
                return
            if not self._users[user_id].lock.locked():
                del self._users[user_id]
                logger.info("Evicted idle user %s from registry", user_id)

    def get(self, user_id: str) -> UserServices:
        with self._guard:
            services = self._users.get(user_id)
            if services is None:
                services = self._create(user_id)
                self._users[user_id] = services
                self._evict()
            else:
                self._users.move_to_end(user_id)
            return services

    def peek(self, user_id: str) -> Optional[UserServices]:
        with self._guard:
            services = self._users.get(user_id)
            if services is not None:
                self._users.move_to_end(user_id)
            return services

    @contextmanager
    def session(self, user_id: str) -> Iterator[UserServices]:
        services = self.get(user_id)
        with services.lock:
            yield services

    @contextmanager
    def lookup(self, user_id: str) -> Iterator[Optional[UserServices]]:
        """Like `session()` but never creates; yields None for unknown users."""
        services = self.peek(user_id)
        if services is None:
            yield None
            return
        with services.lock:
            yield services

    def user_ids(self) -> list[str]:
        with self._guard:
            return list(self._users)

    def clear(self) -> None:
        with self._guard:
            self._users.clear()
