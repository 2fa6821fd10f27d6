from __future__ import annotations

import httpx
import pytest

from planner_fakes import FakeBackend
from taskpilot.core.errors import NetworkError, ServerError


@pytest.mark.asyncio
async def test_goal_texts_accept_strings_and_objects() -> None:
    backend = FakeBackend()
    backend.routes[("GET", "/api/goals")] = httpx.Response(
        200, json=["plain", {"goalText": "from goalText"}, {"title": "from title"}, {"other": 1}, 7, ""]
    )

    goals = await backend.client().fetch_all_goals()

    assert goals == ["plain", "from goalText", "from title"]


@pytest.mark.asyncio
async def test_non_list_goal_payload_is_empty() -> None:
    backend = FakeBackend()
    backend.routes[("GET", "/api/goals/user/95")] = httpx.Response(200, json={"goals": []})

    assert await backend.client().fetch_user_goals(95) == []


@pytest.mark.asyncio
async def test_update_email_retries_server_errors_then_succeeds() -> None:
    backend = FakeBackend()
    answers = iter([httpx.Response(503), httpx.Response(502), httpx.Response(200, json={"ok": True})])
    backend.routes[("PATCH", "/api/users/95/update-email")] = lambda request: next(answers)

    result = await backend.client(patch_retry_count=2).update_email(95, "old@example.com", "new@example.com")

    assert result == {"ok": True}
    assert len(backend.calls("PATCH", "/api/users/95/update-email")) == 3
    assert backend.json_bodies("PATCH", "/api/users/95/update-email")[0] == {
        "currentEmail": "old@example.com",
        "newEmail": "new@example.com",
    }


@pytest.mark.asyncio
async def test_update_email_gives_up_after_retry_budget() -> None:
    backend = FakeBackend()

    def refuse(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("down", request=request)

    backend.routes[("PATCH", "/api/users/95/update-email")] = refuse

    with pytest.raises(NetworkError):
        await backend.client(patch_retry_count=1).update_email(95, "old@example.com", "new@example.com")
    assert len(backend.calls("PATCH", "/api/users/95/update-email")) == 2


@pytest.mark.asyncio
async def test_update_email_does_not_retry_client_errors() -> None:
    backend = FakeBackend()
    backend.routes[("PATCH", "/api/users/95/update-email")] = httpx.Response(409, json={"message": "Email taken"})

    with pytest.raises(ServerError) as exc_info:
        await backend.client(patch_retry_count=3).update_email(95, "old@example.com", "new@example.com")

    assert exc_info.value.message == "Email taken"
    assert len(backend.requests) == 1


@pytest.mark.asyncio
async def test_update_email_raises_last_server_error_when_retries_exhausted() -> None:
    backend = FakeBackend()
    answers = iter([httpx.Response(500), httpx.Response(503, json={"message": "Still down"})])
    backend.routes[("PATCH", "/api/users/95/update-email")] = lambda request: next(answers)

    with pytest.raises(ServerError) as exc_info:
        await backend.client(patch_retry_count=1).update_email(95, "old@example.com", "new@example.com")

    assert exc_info.value.upstream_status == 503
    assert exc_info.value.message == "Still down"
    assert len(backend.requests) == 2
