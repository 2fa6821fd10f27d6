"""FastAPI dependencies."""
from __future__ import annotations

from fastapi import Request

from taskpilot.services.container import PlannerServices


def get_services(request: Request) -> PlannerServices:
    return request.app.state.services
