"""Tests for metrics and tracing helpers."""
from __future__ import annotations

from typing import Any, Dict

import pytest

from taskpilot.observability import client as client_module
from taskpilot.observability import metrics
from taskpilot.observability.tracing import trace


class _DummyTrace:
    def __init__(self, name: str, metadata: Dict[str, Any]):
        self.name = name
        self.metadata = metadata
        self.error_info: Dict[str, Any] | None = None
        self.ended = False

    def update(self, error_info=None, **kwargs) -> None:
        self.error_info = error_info

    def end(self) -> None:
        self.ended = True


class _DummyClient:
    def __init__(self):
        self.traces: list[_DummyTrace] = []

    def trace(self, name: str, metadata: Dict[str, Any] | None = None):
        trace = _DummyTrace(name, metadata or {})
        self.traces.append(trace)
        return trace


def test_log_metric_closes_trace(monkeypatch) -> None:
    dummy_client = _DummyClient()
    monkeypatch.setattr(client_module, "get_opik_client", lambda: dummy_client)

    metrics.log_metric("ai.completion.latency_ms", 42, metadata={"outcome": "ok"})

    assert dummy_client.traces, "Metric call should record a trace"
    assert dummy_client.traces[0].name == "metric:ai.completion.latency_ms"
    assert dummy_client.traces[0].metadata["value"] == 42
    assert dummy_client.traces[0].metadata["outcome"] == "ok"
    assert dummy_client.traces[0].ended is True


def test_trace_attaches_error_and_reraises(monkeypatch) -> None:
    dummy_client = _DummyClient()
    monkeypatch.setattr(client_module, "get_opik_client", lambda: dummy_client)

    with pytest.raises(RuntimeError):
        with trace("planner.accept", metadata={"task_count": 2}, user_id="95", request_id="req-1"):
            raise RuntimeError("backend down")

    recorded = dummy_client.traces[0]
    assert recorded.metadata == {"task_count": 2, "user_id": "95", "request_id": "req-1"}
    assert recorded.error_info == {"message": "backend down"}
    assert recorded.ended is True


def test_trace_is_noop_without_client(monkeypatch) -> None:
    monkeypatch.setattr(client_module, "get_opik_client", lambda: None)

    with trace("http.health_check") as active:
        assert active is None
