"""
Feedback router.

POST  /feedback/{user_id}/generate    — run feedback rules
GET   /feedback/{user_id}/history     — last 50 emitted items
GET   /feedback/{user_id}/settings
PATCH /feedback/{user_id}/settings
PUT   /feedback/{user_id}/enabled
GET   /feedback/{user_id}/analytics
POST  /feedback/{user_id}/responses   — viewed / acted upon / rating
"""
from __future__ import annotations

from fastapi import APIRouter, Depends, status

from maestro.core.errors import FeedbackNotFoundError
from maestro.routers.deps import get_registry
from maestro.schemas.common import EnabledRequest, EnabledResponse, ErrorResponse
from maestro.schemas.feedback import (
    FeedbackAnalytics,
    FeedbackItem,
    FeedbackListResponse,
    FeedbackRequest,
    FeedbackResponseRequest,
    FeedbackSettings,
    FeedbackSettingsUpdate,
)
from maestro.services.registry import CoachRegistry

router = APIRouter(prefix="/feedback", tags=["feedback"])


@router.post(
    "/{user_id}/generate",
    response_model=FeedbackListResponse,
    summary="Generate coaching feedback from recent training data",
)
def generate(
    user_id: str,
    body: FeedbackRequest,
    registry: CoachRegistry = Depends(get_registry),
):
    """
    Items are ordered high → medium → low. The user's last 10 items are
    passed back in as history, which is what `confidence_boost` reads.
    """
    with registry.session(user_id) as svc:
        items = svc.feedback.generate_feedback(
            body.user_data,
            body.recent_workouts,
            body.progress_data,
            program_phase=body.current_program_phase,
        )
        return FeedbackListResponse(
            enabled=svc.feedback.is_enabled,
            total=len(items),
            items=items,
        )


@router.get("/{user_id}/history", response_model=list[FeedbackItem])
def read_history(user_id: str, registry: CoachRegistry = Depends(get_registry)):
    with registry.lookup(user_id) as svc:
        if svc is None:
            return []
        return svc.feedback.get_feedback_history()


@router.get("/{user_id}/settings", response_model=FeedbackSettings)
def read_settings(user_id: str, registry: CoachRegistry = Depends(get_registry)):
    with registry.lookup(user_id) as svc:
        if svc is None:
            return registry.default_feedback_settings()
        return svc.feedback.get_settings()


@router.patch(
    "/{user_id}/settings",
    response_model=FeedbackSettings,
    responses={422: {"model": ErrorResponse, "description": "Merged settings are invalid."}},
)
def update_settings(
    user_id: str,
    body: FeedbackSettingsUpdate,
    registry: CoachRegistry = Depends(get_registry),
):
    """`tone_preferences`, when supplied, replaces the current object whole."""
    with registry.session(user_id) as svc:
        return svc.feedback.update_settings(body)


@router.put("/{user_id}/enabled", response_model=EnabledResponse)
def set_enabled(
    user_id: str,
    body: EnabledRequest,
    registry: CoachRegistry = Depends(get_registry),
):
    with registry.session(user_id) as svc:
        svc.feedback.set_enabled(body.enabled)
        return EnabledResponse(user_id=user_id, enabled=svc.feedback.is_enabled)


@router.get("/{user_id}/analytics", response_model=FeedbackAnalytics)
def read_analytics(user_id: str, registry: CoachRegistry = Depends(get_registry)):
    with registry.lookup(user_id) as svc:
        if svc is None:
            return FeedbackAnalytics()
        return svc.feedback.get_analytics()


@router.post(
    "/{user_id}/responses",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={
        404: {"model": ErrorResponse, "description": "Feedback id not in history."},
        422: {"model": ErrorResponse, "description": "Rating outside 1-5."},
    },
)
def record_response(
    user_id: str,
    body: FeedbackResponseRequest,
    registry: CoachRegistry = Depends(get_registry),
):
    with registry.lookup(user_id) as svc:
        if svc is None:
            raise FeedbackNotFoundError(body.feedback_id)
        svc.feedback.record_user_response(
            body.feedback_id, body.viewed, body.acted_upon, body.rating
        )
