from __future__ import annotations

import asyncio

import httpx
import pytest
from fastapi.testclient import TestClient

from planner_fakes import FakeBackend, FakeCompletion, Gate, memory_session_factory, tasks_json
from taskpilot.main import app
from taskpilot.services.container import build_services


@pytest.fixture()
def planner_client():
    backend = FakeBackend()
    completion = FakeCompletion()
    app.state.services = build_services(
        session_factory=memory_session_factory(),
        backend=backend.client(),
        completion=completion,
        default_user_id=95,
    )
    with TestClient(app) as test_client:
        yield test_client, backend, completion
    app.state.services = None


def _create_session(client: TestClient, **payload) -> dict:
    response = client.post("/planner/sessions", json=payload)
    assert response.status_code == 201
    return response.json()


def test_generate_accept_and_feedback_flow(planner_client) -> None:
    client, backend, completion = planner_client
    query = "Plan my week for studying for finals"
    session = _create_session(client, query=query, num_days=7)
    session_id = session["session_id"]
    assert session["state"] == "idle"
    completion.replies.append(tasks_json(7, deadline="2099-01-01T12:00:00Z"))

    generated = client.post(f"/planner/sessions/{session_id}/generate", headers={"X-Request-Id": "gen-1"})

    assert generated.status_code == 200
    body = generated.json()
    assert body["state"] == "tasks_ready"
    assert len(body["suggested_tasks"]) == 7
    assert body["notice"] is None
    assert body["request_id"] == "gen-1"
    assert "good academic tasks" in completion.calls[0][0]["content"]

    accepted = client.post(f"/planner/sessions/{session_id}/accept")

    assert accepted.status_code == 200
    result = accepted.json()
    assert result["success"] is True
    assert result["message"] == "Tasks created successfully!"
    assert len(result["accepted_tasks"]) == 7
    assert result["session"]["state"] == "idle"
    assert result["session"]["query"] == query
    assert result["session"]["suggested_tasks"] == []
    assert result["session"]["feedback_requested"] is True
    batch = backend.json_bodies("POST", "/api/accepted/batch/create")
    assert len(batch) == 1 and len(batch[0]) == 7
    assert {item["priority"] for item in batch[0]} == {"Medium"}
    assert {item["category"] for item in batch[0]} == {"General"}
    assert batch[0][0]["deadline"] == "2099-01-01T12:00:00.000Z"

    history = client.get("/history").json()
    assert history["goals"] == [query]
    assert history["accepted"][0] == "Task 1"
    assert history["smart_default"] == query

    feedback = client.post("/feedback", json={"session_id": session_id, "rating": 5, "feedback": "Nice"})

    assert feedback.status_code == 201
    assert backend.json_bodies("POST", "/api/feedback")[0]["rating"] == 5
    assert client.get(f"/planner/sessions/{session_id}").json()["feedback_requested"] is False


def test_failed_acceptance_keeps_suggestions(planner_client) -> None:
    client, backend, completion = planner_client
    session_id = _create_session(client, query="Train for a 10k", num_days=3)["session_id"]
    completion.replies.append(tasks_json(3))
    client.post(f"/planner/sessions/{session_id}/generate")
    backend.routes[("POST", "/api/accepted/batch/create")] = httpx.Response(500, json={})

    response = client.post(f"/planner/sessions/{session_id}/accept")

    assert response.status_code == 502
    assert response.json() == {"detail": "Failed to save tasks."}
    snapshot = client.get(f"/planner/sessions/{session_id}").json()
    assert snapshot["state"] == "tasks_ready"
    assert len(snapshot["suggested_tasks"]) == 3
    assert client.get("/history").json()["accepted"] == []


def test_short_plan_reports_notice(planner_client) -> None:
    client, _, completion = planner_client
    session_id = _create_session(client, query="Learn guitar", num_days=5)["session_id"]
    completion.replies.append(tasks_json(3))

    body = client.post(f"/planner/sessions/{session_id}/generate").json()

    assert body["notice"] == "Only 3 tasks generated."
    assert len(body["suggested_tasks"]) == 3


def test_empty_query_is_rejected(planner_client) -> None:
    client, _, completion = planner_client
    session_id = _create_session(client)["session_id"]

    response = client.post(f"/planner/sessions/{session_id}/generate")

    assert response.status_code == 422
    assert response.json() == {"detail": "Please describe what you need help planning."}
    assert completion.calls == []


def test_invalid_day_count_is_rejected(planner_client) -> None:
    client, _, _ = planner_client
    session_id = _create_session(client)["session_id"]

    response = client.patch(f"/planner/sessions/{session_id}", json={"num_days": 9})

    assert response.status_code == 422
    assert client.get(f"/planner/sessions/{session_id}").json()["num_days"] == 7


def test_unknown_session_returns_404(planner_client) -> None:
    client, _, _ = planner_client

    response = client.get("/planner/sessions/does-not-exist")

    assert response.status_code == 404
    assert response.json() == {"detail": "Planner session not found."}


def test_edit_and_delete_through_api(planner_client) -> None:
    client, _, completion = planner_client
    session_id = _create_session(client, query="Organize my garage", num_days=2)["session_id"]
    completion.replies.append(tasks_json(2))
    tasks = client.post(f"/planner/sessions/{session_id}/generate").json()["suggested_tasks"]

    client.post(f"/planner/sessions/{session_id}/edit/start", json={"task_id": tasks[0]["id"]})
    client.post(f"/planner/sessions/{session_id}/edit/text", json={"text": "Sort the shelves"})
    saved = client.post(f"/planner/sessions/{session_id}/edit/save").json()
    assert saved["suggested_tasks"][0]["title"] == "Sort the shelves"

    remaining = client.delete(f"/planner/sessions/{session_id}/tasks/{tasks[1]['id']}").json()
    assert [t["title"] for t in remaining["suggested_tasks"]] == ["Sort the shelves"]


def test_idea_template_and_shortcut_actions(planner_client) -> None:
    client, _, completion = planner_client
    session_id = _create_session(client)["session_id"]

    completion.replies.append(tasks_json(7))
    used = client.post(f"/planner/sessions/{session_id}/ideas/use", json={"idea": "Organize a meal prep schedule."})
    assert used.json()["state"] == "tasks_ready"
    assert client.get("/planner/catalog").json()["recent_ideas"] == ["Organize a meal prep schedule."]

    completion.replies.append(tasks_json(5))
    templated = client.post(f"/planner/sessions/{session_id}/ideas/template", json={"label": "Fitness Plan"}).json()
    assert templated["num_days"] == 5
    assert templated["query"] == "Create a 5-day fitness routine."

    shortcut = client.post(f"/planner/sessions/{session_id}/ideas/shortcut", json={"label": "Weekend"}).json()
    assert shortcut["num_days"] == 2
    assert shortcut["query"] == "Plan my weekend"

    unknown = client.post(f"/planner/sessions/{session_id}/ideas/template", json={"label": "Nope"})
    assert unknown.status_code == 422

    smart = client.post(f"/planner/sessions/{session_id}/ideas/smart-default").json()
    assert smart["query"] == smart["smart_default"]


def test_goal_suggestions_endpoint(planner_client) -> None:
    client, _, completion = planner_client
    session_id = _create_session(client, query="Study for chemistry finals", num_days=1)["session_id"]
    completion.replies.append(tasks_json(1))
    client.post(f"/planner/sessions/{session_id}/generate")

    response = client.get(f"/planner/sessions/{session_id}/suggestions", params={"query": "chem"})

    assert response.status_code == 200
    assert response.json()["suggestions"] == ["Study for chemistry finals"]


def test_preferences_and_email_update(planner_client) -> None:
    client, backend, _ = planner_client

    assert client.get("/preferences").json()["dark_mode"] is False
    updated = client.put("/preferences", json={"dark_mode": True}).json()
    assert updated["dark_mode"] is True
    assert updated["user_id"] == 95

    mismatch = client.patch(
        "/account/email",
        json={"current_email": "a@example.com", "new_email": "b@example.com", "confirm_email": "c@example.com"},
    )
    assert mismatch.status_code == 422
    assert mismatch.json() == {"detail": "Emails must match"}

    ok = client.patch(
        "/account/email",
        json={"current_email": "a@example.com", "new_email": "b@example.com", "confirm_email": "b@example.com"},
    )
    assert ok.status_code == 200
    assert len(backend.calls("PATCH", "/api/users/95/update-email")) == 1


def test_close_session(planner_client) -> None:
    client, _, _ = planner_client
    session_id = _create_session(client)["session_id"]

    assert client.delete(f"/planner/sessions/{session_id}").status_code == 204
    assert client.get(f"/planner/sessions/{session_id}").status_code == 404


@pytest.mark.asyncio
async def test_stop_during_generation_clears_loading_immediately() -> None:
    backend = FakeBackend()
    gate = Gate(tasks_json(3))
    completion = FakeCompletion([gate])
    services = build_services(
        session_factory=memory_session_factory(),
        backend=backend.client(),
        completion=completion,
        default_user_id=95,
    )
    app.state.services = services
    try:
        async with httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://planner.test") as client:
            created = await client.post("/planner/sessions", json={"query": "Plan my week", "num_days": 3})
            session_id = created.json()["session_id"]
            generating = asyncio.create_task(client.post(f"/planner/sessions/{session_id}/generate"))
            await gate.entered.wait()

            stopped = (await client.post(f"/planner/sessions/{session_id}/stop")).json()
            generated = (await generating).json()
    finally:
        await services.aclose()
        app.state.services = None

    assert stopped["state"] == "cancelled"
    assert stopped["is_loading"] is False
    assert stopped["notice"] == "Task generation cancelled."
    assert generated["state"] == "cancelled"
    assert generated["suggested_tasks"] == []
    assert completion.cancelled == 1
