"""Goal history API route."""
from __future__ import annotations

from fastapi import APIRouter, Depends, Request

from taskpilot.api.deps import get_services
from taskpilot.api.schemas.account import HistoryResponse
from taskpilot.services.container import PlannerServices

router = APIRouter()


@router.get("/history", response_model=HistoryResponse, tags=["history"])
async def get_history(http_request: Request, services: PlannerServices = Depends(get_services)) -> HistoryResponse:
    """Return merged goal history, accepted task titles and the smart default."""
    history = services.history
    return HistoryResponse(
        goals=list(history.history.goals),
        accepted=list(history.history.accepted),
        smart_default=history.smart_default,
        request_id=getattr(http_request.state, "request_id", None) or "",
    )
