"""Local preferences API routes."""
from __future__ import annotations

from fastapi import APIRouter, Depends, Request

from taskpilot.api.deps import get_services
from taskpilot.api.schemas.account import PreferencesResponse, PreferencesUpdateRequest
from taskpilot.services import preferences as preferences_service
from taskpilot.services.container import PlannerServices

router = APIRouter()


@router.get("/preferences", response_model=PreferencesResponse, tags=["preferences"])
def get_preferences(http_request: Request, services: PlannerServices = Depends(get_services)) -> PreferencesResponse:
    prefs = preferences_service.get_preferences(services.store, default_user_id=services.user_id)
    return PreferencesResponse(
        dark_mode=prefs.dark_mode,
        user_id=prefs.user_id,
        request_id=getattr(http_request.state, "request_id", None) or "",
    )


@router.put("/preferences", response_model=PreferencesResponse, tags=["preferences"])
def update_preferences(
    payload: PreferencesUpdateRequest,
    http_request: Request,
    services: PlannerServices = Depends(get_services),
) -> PreferencesResponse:
    prefs = preferences_service.update_preferences(
        services.store,
        default_user_id=services.user_id,
        dark_mode=payload.dark_mode,
    )
    return PreferencesResponse(
        dark_mode=prefs.dark_mode,
        user_id=prefs.user_id,
        request_id=getattr(http_request.state, "request_id", None) or "",
    )
