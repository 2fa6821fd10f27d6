"""Main FastAPI application for the TaskPilot planner service."""
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from taskpilot.api.routes.account import router as account_router
from taskpilot.api.routes.feedback import router as feedback_router
from taskpilot.api.routes.history import router as history_router
from taskpilot.api.routes.planner import router as planner_router
from taskpilot.api.routes.preferences import router as preferences_router
from taskpilot.clients.backend_api import BackendApiClient
from taskpilot.clients.completion import OpenAICompletionClient
from taskpilot.core.config import settings
from taskpilot.core.errors import PlannerError
from taskpilot.core.logging import configure_logging
from taskpilot.core.middleware import RequestIDMiddleware
from taskpilot.db import Base
from taskpilot.db.session import build_engine, build_session_factory
from taskpilot.observability.client import init_opik
from taskpilot.observability.tracing import trace
from taskpilot.services.container import build_services

configure_logging(log_level=settings.log_level)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Build planner services unless the caller already installed them, and close them on exit."""
    init_opik()
    if app.state.services is None:
        engine = build_engine()
        Base.metadata.create_all(bind=engine)
        app.state.services = build_services(
            session_factory=build_session_factory(engine),
            backend=BackendApiClient.from_settings(),
            completion=OpenAICompletionClient.from_settings(),
        )
        await app.state.services.history.load()
    logger.info("Planner services ready (user=%s)", app.state.services.user_id)
    try:
        yield
    finally:
        services = app.state.services
        app.state.services = None
        if services is not None:
            await services.aclose()


app = FastAPI(title=settings.app_name, version="0.1.0", debug=settings.debug, lifespan=lifespan)
app.state.services = None
app.add_middleware(RequestIDMiddleware)
app.include_router(planner_router)
app.include_router(history_router)
app.include_router(feedback_router)
app.include_router(preferences_router)
app.include_router(account_router)


@app.exception_handler(PlannerError)
async def planner_error_handler(request: Request, exc: PlannerError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


@app.get("/health", tags=["health"], summary="Readiness probe")
async def health_check(request: Request) -> dict[str, str]:
    """Return a simple status payload so automation can probe the API."""
    with trace("http.health_check", metadata={"route": "/health"}, request_id=request.state.request_id):
        return {"status": "ok"}
