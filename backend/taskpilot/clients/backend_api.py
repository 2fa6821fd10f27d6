"""Async HTTP client for the task backend REST API."""
from __future__ import annotations

import logging
from typing import Any, Dict, List

import httpx

from taskpilot.core.config import settings
from taskpilot.core.errors import NetworkError, PlannerError, ServerError

logger = logging.getLogger(__name__)

GOAL_TEXT_KEYS = ("goalText", "goal", "title")


class BackendApiClient:
    """Thin wrapper over ``httpx.AsyncClient`` that maps failures to planner errors.

    Transport failures (connection refused, timeouts) become ``NetworkError``;
    non-2xx answers become ``ServerError`` carrying the server's ``message``
    field when it sent one.
    """

    def __init__(self, http_client: httpx.AsyncClient, *, patch_retry_count: int | None = None) -> None:
        self._http = http_client
        self.patch_retry_count = settings.patch_retry_count if patch_retry_count is None else patch_retry_count

    @classmethod
    def from_settings(cls) -> "BackendApiClient":
        http_client = httpx.AsyncClient(
            base_url=settings.backend_base_url,
            timeout=settings.backend_timeout_seconds,
            headers={"Content-Type": "application/json"},
        )
        return cls(http_client)

    async def aclose(self) -> None:
        await self._http.aclose()

    async def log_goal(self, user_id: int, goal_text: str, created_at: str) -> None:
        await self._request("POST", "/api/goals", json={"user": user_id, "goalText": goal_text, "createdAt": created_at})

    async def fetch_all_goals(self) -> List[str]:
        response = await self._request("GET", "/api/goals")
        return _goal_texts(_json_or_none(response))

    async def fetch_user_goals(self, user_id: int) -> List[str]:
        response = await self._request("GET", f"/api/goals/user/{user_id}")
        return _goal_texts(_json_or_none(response))

    async def create_accepted(self, payload: Dict[str, Any]) -> Any:
        response = await self._request("POST", "/api/accepted", json=payload)
        return _json_or_none(response)

    async def create_accepted_batch(self, payloads: List[Dict[str, Any]]) -> Any:
        response = await self._request("POST", "/api/accepted/batch/create", json=payloads)
        return _json_or_none(response)

    async def submit_feedback(self, payload: Dict[str, Any]) -> Any:
        response = await self._request("POST", "/api/feedback", json=payload)
        return _json_or_none(response)

    async def update_email(self, user_id: int, current_email: str, new_email: str) -> Any:
        response = await self._request_with_retry(
            "PATCH",
            f"/api/users/{user_id}/update-email",
            json={"currentEmail": current_email, "newEmail": new_email},
        )
        return _json_or_none(response)

    async def _request(self, method: str, path: str, *, json: Any = None) -> httpx.Response:
        try:
            response = await self._http.request(method, path, json=json)
        except httpx.HTTPError as exc:
            logger.warning("%s %s failed: %s", method, path, exc)
            raise NetworkError(str(exc) or None) from exc

        if response.is_error:
            message = _server_message(response)
            logger.warning("%s %s returned %s: %s", method, path, response.status_code, message)
            raise ServerError(message, upstream_status=response.status_code)
        return response

    async def _request_with_retry(self, method: str, path: str, *, json: Any = None) -> httpx.Response:
        """Issue an idempotent request, retrying immediately on transient failures.

        Client errors (4xx) are not retried. After ``patch_retry_count``
        retries the last error is raised.
        """
        attempts = self.patch_retry_count + 1
        attempt = 0
        while True:
            attempt += 1
            try:
                return await self._request(method, path, json=json)
            except (ServerError, NetworkError) as exc:
                if not _is_transient(exc) or attempt >= attempts:
                    raise
            logger.info("%s %s attempt %s/%s failed, retrying", method, path, attempt, attempts)


def _json_or_none(response: httpx.Response) -> Any:
    if not response.content:
        return None
    try:
        return response.json()
    except ValueError:
        return None


def _server_message(response: httpx.Response) -> str | None:
    body = _json_or_none(response)
    if isinstance(body, dict):
        message = body.get("message")
        if isinstance(message, str) and message.strip():
            return message.strip()
    return None


def _goal_texts(payload: Any) -> List[str]:
    if not isinstance(payload, list):
        return []
    texts: List[str] = []
    for item in payload:
        if isinstance(item, str):
            text = item
        elif isinstance(item, dict):
            text = next((item[key] for key in GOAL_TEXT_KEYS if isinstance(item.get(key), str) and item[key]), "")
        else:
            text = ""
        if text:
            texts.append(text)
    return texts


def _is_transient(exc: PlannerError) -> bool:
    if isinstance(exc, ServerError):
        return exc.upstream_status is None or exc.upstream_status >= 500
    return isinstance(exc, NetworkError)
