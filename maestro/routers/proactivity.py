"""
Proactivity router.

POST  /proactivity/{user_id}/evaluate    — run triggers against a snapshot
GET   /proactivity/{user_id}/settings    — current settings
PATCH /proactivity/{user_id}/settings    — shallow partial update
PUT   /proactivity/{user_id}/enabled     — switch proactivity on/off
GET   /proactivity/{user_id}/analytics   — running counters
POST  /proactivity/{user_id}/responses   — record a user reaction (analytics only)
"""
from __future__ import annotations

from fastapi import APIRouter, Depends, status

from maestro.routers.deps import get_registry
from maestro.schemas.common import EnabledRequest, EnabledResponse, ErrorResponse
from maestro.schemas.proactivity import (
    InterventionListResponse,
    InterventionResponseRequest,
    ProactivityAnalytics,
    ProactivitySettings,
    ProactivitySettingsUpdate,
    UserDataSnapshot,
)
from maestro.services.registry import CoachRegistry

router = APIRouter(prefix="/proactivity", tags=["proactivity"])


@router.post(
    "/{user_id}/evaluate",
    response_model=InterventionListResponse,
    summary="Evaluate proactive triggers for a user snapshot",
)
def evaluate(
    user_id: str,
    snapshot: UserDataSnapshot,
    registry: CoachRegistry = Depends(get_registry),
):
    """
    Returns interventions ordered critical → high → medium → low.

    Empty when proactivity is disabled, during quiet hours, or when every
    matching trigger is still cooling down. Firing starts the trigger's
    cooldown, so an identical call right after returns fewer items.
    """
    with registry.session(user_id) as svc:
        items = svc.proactivity.process_user_data(snapshot)
        return InterventionListResponse(
            enabled=svc.proactivity.is_enabled,
            total=len(items),
            items=items,
        )


@router.get("/{user_id}/settings", response_model=ProactivitySettings)
def read_settings(user_id: str, registry: CoachRegistry = Depends(get_registry)):
    with registry.lookup(user_id) as svc:
        if svc is None:
            return registry.default_proactivity_settings()
        return svc.proactivity.get_settings()


@router.patch(
    "/{user_id}/settings",
    response_model=ProactivitySettings,
    responses={422: {"model": ErrorResponse, "description": "Merged settings are invalid."}},
)
def update_settings(
    user_id: str,
    body: ProactivitySettingsUpdate,
    registry: CoachRegistry = Depends(get_registry),
):
    """Nested objects (`quiet_hours`, `user_preferences`) are replaced whole."""
    with registry.session(user_id) as svc:
        return svc.proactivity.update_settings(body)


@router.put("/{user_id}/enabled", response_model=EnabledResponse)
def set_enabled(
    user_id: str,
    body: EnabledRequest,
    registry: CoachRegistry = Depends(get_registry),
):
    with registry.session(user_id) as svc:
        svc.proactivity.set_enabled(body.enabled)
        return EnabledResponse(user_id=user_id, enabled=svc.proactivity.is_enabled)


@router.get("/{user_id}/analytics", response_model=ProactivityAnalytics)
def read_analytics(user_id: str, registry: CoachRegistry = Depends(get_registry)):
    with registry.lookup(user_id) as svc:
        if svc is None:
            return ProactivityAnalytics()
        return svc.proactivity.get_analytics()


@router.post(
    "/{user_id}/responses",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={404: {"model": ErrorResponse, "description": "Unknown trigger id."}},
)
def record_response(
    user_id: str,
    body: InterventionResponseRequest,
    registry: CoachRegistry = Depends(get_registry),
):
    with registry.session(user_id) as svc:
        svc.proactivity.record_user_response(
            body.trigger_id, body.responded, body.was_helpful
        )
