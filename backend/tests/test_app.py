"""Application wiring: health probe, request ids and Opik defaults."""
from __future__ import annotations

import importlib
import logging

from fastapi.testclient import TestClient

from planner_fakes import FakeBackend, FakeCompletion, memory_session_factory
from taskpilot.core.logging import RequestIdFilter, request_id_var
from taskpilot.services.container import build_services


def _client() -> TestClient:
    from taskpilot.main import app

    # No lifespan: /health must answer before planner services exist.
    return TestClient(app)


def test_health_reports_ok_with_generated_request_id() -> None:
    response = _client().get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}
    assert len(response.headers["X-Request-Id"]) == 32


def test_caller_request_id_is_echoed() -> None:
    response = _client().get("/health", headers={"X-Request-Id": "planner-req-7"})

    assert response.headers["X-Request-Id"] == "planner-req-7"


def test_log_filter_stamps_active_request_id() -> None:
    record = logging.LogRecord("taskpilot", logging.INFO, __file__, 1, "msg", None, None)
    token = request_id_var.set("req-42")
    try:
        RequestIdFilter().filter(record)
    finally:
        request_id_var.reset(token)

    assert record.request_id == "req-42"
    RequestIdFilter().filter(record)
    assert record.request_id == "-"


def test_main_imports_with_opik_disabled(monkeypatch) -> None:
    monkeypatch.setenv("OPIK_ENABLED", "false")
    monkeypatch.delenv("OPIK_API_KEY", raising=False)

    import taskpilot.core.config as core_config
    import taskpilot.observability.client as client_module
    import taskpilot.main as main_module

    importlib.reload(core_config)
    importlib.reload(client_module)
    reloaded = importlib.reload(main_module)

    assert reloaded.app.title == "TaskPilot Planner"
    assert client_module.init_opik() is None


def test_opik_enabled_without_key_stays_disabled(monkeypatch) -> None:
    import taskpilot.observability.client as client_module

    monkeypatch.setattr(client_module.settings, "opik_enabled", True)
    monkeypatch.setattr(client_module.settings, "opik_api_key", None)
    monkeypatch.setattr(client_module, "_client", None)
    monkeypatch.setattr(client_module, "_init_attempted", False)

    assert client_module.init_opik() is None


def test_reloaded_main_keeps_lifespan_bound_to_its_own_app() -> None:
    import taskpilot.main as main_module

    original_app = main_module.app
    original_app.state.services = build_services(
        session_factory=memory_session_factory(),
        backend=FakeBackend().client(),
        completion=FakeCompletion(),
        default_user_id=95,
    )
    importlib.reload(main_module)

    with TestClient(original_app) as client:
        assert client.get("/history").json()["goals"] == []

    assert original_app.state.services is None
