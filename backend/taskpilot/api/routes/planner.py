"""Planner session API routes."""
from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, Query, Request, Response, status

from taskpilot.api.deps import get_services
from taskpilot.api.schemas.planner import (
    AcceptResponse,
    CatalogResponse,
    EditStartRequest,
    EditTextRequest,
    IdeaRequest,
    LabelRequest,
    ResetRequest,
    SessionCreateRequest,
    SessionSnapshot,
    SessionUpdateRequest,
    ShortcutPayload,
    SuggestedTaskPayload,
    SuggestionsResponse,
    TemplatePayload,
)
from taskpilot.observability.tracing import trace
from taskpilot.services.ai_completion import SuggestedTask
from taskpilot.services.container import PlannerServices
from taskpilot.services.planner_session import PlannerSession
from taskpilot.services.suggestions import DEFAULT_MAX_SUGGESTIONS, SHORTCUTS, SUGGESTION_IDEAS, TEMPLATES

router = APIRouter(prefix="/planner", tags=["planner"])


@router.get("/catalog", response_model=CatalogResponse)
async def get_catalog(http_request: Request, services: PlannerServices = Depends(get_services)) -> CatalogResponse:
    """Static ideas, templates and shortcuts plus the user's recent ideas."""
    return CatalogResponse(
        ideas=list(SUGGESTION_IDEAS),
        templates=[TemplatePayload(label=t.label, prompt=t.prompt, days=t.days) for t in TEMPLATES],
        shortcuts=[ShortcutPayload(label=s.label, days=s.days, prompt=s.prompt) for s in SHORTCUTS],
        recent_ideas=list(services.recent_ideas.items),
        request_id=_request_id(http_request),
    )


@router.post("/sessions", response_model=SessionSnapshot, status_code=status.HTTP_201_CREATED)
async def create_session(
    payload: SessionCreateRequest,
    http_request: Request,
    services: PlannerServices = Depends(get_services),
) -> SessionSnapshot:
    session = services.sessions.create(context_goal=payload.context_goal)
    if payload.query is not None:
        session.orchestrator.set_query(payload.query)
    if payload.num_days is not None:
        session.orchestrator.set_num_days(payload.num_days)
    return _snapshot(session, http_request)


@router.get("/sessions/{session_id}", response_model=SessionSnapshot)
async def get_session(session_id: str, http_request: Request, services: PlannerServices = Depends(get_services)) -> SessionSnapshot:
    return _snapshot(services.sessions.get(session_id), http_request)


@router.patch("/sessions/{session_id}", response_model=SessionSnapshot)
async def update_session(
    session_id: str,
    payload: SessionUpdateRequest,
    http_request: Request,
    services: PlannerServices = Depends(get_services),
) -> SessionSnapshot:
    session = services.sessions.get(session_id)
    if payload.query is not None:
        session.orchestrator.set_query(payload.query)
    if payload.num_days is not None:
        session.orchestrator.set_num_days(payload.num_days)
    if payload.context_goal is not None:
        session.orchestrator.context_goal = payload.context_goal.strip() or None
    return _snapshot(session, http_request)


@router.delete("/sessions/{session_id}", status_code=status.HTTP_204_NO_CONTENT)
async def close_session(session_id: str, services: PlannerServices = Depends(get_services)) -> Response:
    await services.sessions.close(session_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/sessions/{session_id}/generate", response_model=SessionSnapshot)
async def generate_tasks(session_id: str, http_request: Request, services: PlannerServices = Depends(get_services)) -> SessionSnapshot:
    """Run AI task generation; the outcome (tasks, notice or error) is in the snapshot."""
    session = services.sessions.get(session_id)
    with trace(
        "planner.generate",
        metadata={"route": "/planner/sessions/{id}/generate", "session_id": session_id},
        request_id=_request_id(http_request),
    ):
        await session.generate()
    return _snapshot(session, http_request)


@router.post("/sessions/{session_id}/stop", response_model=SessionSnapshot)
async def stop_generation(session_id: str, http_request: Request, services: PlannerServices = Depends(get_services)) -> SessionSnapshot:
    session = services.sessions.get(session_id)
    session.orchestrator.stop_generation()
    return _snapshot(session, http_request)


@router.post("/sessions/{session_id}/reset", response_model=SessionSnapshot)
async def reset_session(
    session_id: str,
    payload: ResetRequest,
    http_request: Request,
    services: PlannerServices = Depends(get_services),
) -> SessionSnapshot:
    session = services.sessions.get(session_id)
    session.orchestrator.reset_modal_state(clear_query=payload.clear_query)
    return _snapshot(session, http_request)


@router.post("/sessions/{session_id}/edit/start", response_model=SessionSnapshot)
async def start_editing(
    session_id: str,
    payload: EditStartRequest,
    http_request: Request,
    services: PlannerServices = Depends(get_services),
) -> SessionSnapshot:
    session = services.sessions.get(session_id)
    session.orchestrator.start_editing(payload.task_id)
    return _snapshot(session, http_request)


@router.post("/sessions/{session_id}/edit/text", response_model=SessionSnapshot)
async def set_edit_text(
    session_id: str,
    payload: EditTextRequest,
    http_request: Request,
    services: PlannerServices = Depends(get_services),
) -> SessionSnapshot:
    session = services.sessions.get(session_id)
    session.orchestrator.set_edit_text(payload.text)
    return _snapshot(session, http_request)


@router.post("/sessions/{session_id}/edit/save", response_model=SessionSnapshot)
async def save_edit(session_id: str, http_request: Request, services: PlannerServices = Depends(get_services)) -> SessionSnapshot:
    session = services.sessions.get(session_id)
    session.orchestrator.save_edit()
    return _snapshot(session, http_request)


@router.post("/sessions/{session_id}/edit/cancel", response_model=SessionSnapshot)
async def cancel_edit(session_id: str, http_request: Request, services: PlannerServices = Depends(get_services)) -> SessionSnapshot:
    session = services.sessions.get(session_id)
    session.orchestrator.cancel_edit()
    return _snapshot(session, http_request)


@router.delete("/sessions/{session_id}/tasks/{task_id}", response_model=SessionSnapshot)
async def delete_task(
    session_id: str,
    task_id: str,
    http_request: Request,
    services: PlannerServices = Depends(get_services),
) -> SessionSnapshot:
    session = services.sessions.get(session_id)
    session.orchestrator.delete_task(task_id)
    return _snapshot(session, http_request)


@router.post("/sessions/{session_id}/accept", response_model=AcceptResponse)
async def accept_tasks(session_id: str, http_request: Request, services: PlannerServices = Depends(get_services)) -> AcceptResponse:
    """Save every suggestion as a backend task."""
    session = services.sessions.get(session_id)
    outcome = await session.accept_all()
    if not outcome.success and outcome.error is not None:
        raise outcome.error
    return AcceptResponse(
        success=outcome.success,
        message=outcome.message,
        accepted_tasks=_task_payloads(outcome.tasks),
        session=_snapshot(session, http_request),
        request_id=_request_id(http_request),
    )


@router.post("/sessions/{session_id}/ideas/use", response_model=SessionSnapshot)
async def use_idea(
    session_id: str,
    payload: IdeaRequest,
    http_request: Request,
    services: PlannerServices = Depends(get_services),
) -> SessionSnapshot:
    session = services.sessions.get(session_id)
    await session.use_idea(payload.idea)
    return _snapshot(session, http_request)


@router.post("/sessions/{session_id}/ideas/template", response_model=SessionSnapshot)
async def use_template(
    session_id: str,
    payload: LabelRequest,
    http_request: Request,
    services: PlannerServices = Depends(get_services),
) -> SessionSnapshot:
    session = services.sessions.get(session_id)
    await session.use_template(payload.label)
    return _snapshot(session, http_request)


@router.post("/sessions/{session_id}/ideas/recent", response_model=SessionSnapshot)
async def use_recent_idea(
    session_id: str,
    payload: IdeaRequest,
    http_request: Request,
    services: PlannerServices = Depends(get_services),
) -> SessionSnapshot:
    session = services.sessions.get(session_id)
    session.use_recent_idea(payload.idea)
    return _snapshot(session, http_request)


@router.post("/sessions/{session_id}/ideas/shortcut", response_model=SessionSnapshot)
async def apply_shortcut(
    session_id: str,
    payload: LabelRequest,
    http_request: Request,
    services: PlannerServices = Depends(get_services),
) -> SessionSnapshot:
    session = services.sessions.get(session_id)
    session.apply_shortcut(payload.label)
    return _snapshot(session, http_request)


@router.post("/sessions/{session_id}/ideas/surprise", response_model=SessionSnapshot)
async def surprise_me(session_id: str, http_request: Request, services: PlannerServices = Depends(get_services)) -> SessionSnapshot:
    session = services.sessions.get(session_id)
    session.surprise_me()
    return _snapshot(session, http_request)


@router.post("/sessions/{session_id}/ideas/smart-default", response_model=SessionSnapshot)
async def use_smart_default(session_id: str, http_request: Request, services: PlannerServices = Depends(get_services)) -> SessionSnapshot:
    session = services.sessions.get(session_id)
    session.use_smart_default()
    return _snapshot(session, http_request)


@router.get("/sessions/{session_id}/suggestions", response_model=SuggestionsResponse)
async def get_suggestions(
    session_id: str,
    http_request: Request,
    query: str = Query("", max_length=1000),
    max_suggestions: int = Query(DEFAULT_MAX_SUGGESTIONS, ge=1, le=20),
    services: PlannerServices = Depends(get_services),
) -> SuggestionsResponse:
    session = services.sessions.get(session_id)
    return SuggestionsResponse(
        query=query,
        suggestions=session.suggestions(query, max_suggestions),
        request_id=_request_id(http_request),
    )


def _request_id(http_request: Request) -> str:
    return getattr(http_request.state, "request_id", None) or ""


def _task_payloads(tasks: List[SuggestedTask]) -> List[SuggestedTaskPayload]:
    return [SuggestedTaskPayload(**task.model_dump()) for task in tasks]


def _snapshot(session: PlannerSession, http_request: Request) -> SessionSnapshot:
    orchestrator = session.orchestrator
    return SessionSnapshot(
        session_id=session.session_id,
        state=orchestrator.state.value,
        query=orchestrator.query,
        num_days=orchestrator.num_days,
        context_goal=orchestrator.context_goal,
        is_loading=orchestrator.is_loading,
        suggested_tasks=_task_payloads(orchestrator.suggested_tasks),
        error_message=orchestrator.error_message,
        notice=orchestrator.notice,
        editing_task_id=orchestrator.editing_task_id,
        edited_task_text=orchestrator.edited_task_text,
        feedback_requested=session.feedback_requested,
        smart_default=session.history.smart_default,
        request_id=_request_id(http_request),
    )
