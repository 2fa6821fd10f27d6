"""Feedback API route."""
from __future__ import annotations

from fastapi import APIRouter, Depends, Request, status

from taskpilot.api.deps import get_services
from taskpilot.api.schemas.account import FeedbackRequest, FeedbackResponse
from taskpilot.observability.metrics import log_metric
from taskpilot.services import feedback as feedback_service
from taskpilot.services.container import PlannerServices

router = APIRouter()


@router.post("/feedback", response_model=FeedbackResponse, status_code=status.HTTP_201_CREATED, tags=["feedback"])
async def submit_feedback(
    payload: FeedbackRequest,
    http_request: Request,
    services: PlannerServices = Depends(get_services),
) -> FeedbackResponse:
    """Forward a 1-5 rating with optional comments to the backend."""
    if payload.session_id:
        session = services.sessions.get(payload.session_id)
        await session.submit_feedback(payload.rating, payload.feedback)
    else:
        await feedback_service.submit_feedback(
            services.backend,
            user_id=services.user_id,
            rating=payload.rating,
            feedback=payload.feedback,
        )
    log_metric("feedback.rating", payload.rating, metadata={"user_id": str(services.user_id)})
    return FeedbackResponse(status="submitted", request_id=getattr(http_request.state, "request_id", None) or "")
