"""Account settings API routes."""
from __future__ import annotations

from fastapi import APIRouter, Depends, Request

from taskpilot.api.deps import get_services
from taskpilot.api.schemas.account import EmailUpdateRequest, EmailUpdateResponse
from taskpilot.observability.tracing import trace
from taskpilot.services import account as account_service
from taskpilot.services.container import PlannerServices

router = APIRouter()


@router.patch("/account/email", response_model=EmailUpdateResponse, tags=["account"])
async def update_email(
    payload: EmailUpdateRequest,
    http_request: Request,
    services: PlannerServices = Depends(get_services),
) -> EmailUpdateResponse:
    request_id = getattr(http_request.state, "request_id", None)
    with trace("account.update_email", metadata={"route": "/account/email"}, user_id=str(services.user_id), request_id=request_id):
        await account_service.update_email(
            services.backend,
            user_id=services.user_id,
            current_email=payload.current_email,
            new_email=payload.new_email,
            confirm_email=payload.confirm_email,
        )
    return EmailUpdateResponse(message="Email updated successfully!", request_id=request_id or "")
