"""Chat-completion client for the third-party LLM endpoint."""
from __future__ import annotations

import logging
from typing import Dict, List, Protocol

import openai

from taskpilot.core.config import settings
from taskpilot.core.errors import CompletionTimeout, NetworkError, ServerError

logger = logging.getLogger(__name__)


class CompletionClient(Protocol):
    async def complete(self, messages: List[Dict[str, str]]) -> str:
        ...


class OpenAICompletionClient:
    """Calls an OpenAI-compatible ``/chat/completions`` endpoint (OpenRouter by default).

    Requests are never retried here; callers re-issue explicitly.
    """

    def __init__(self, client: openai.AsyncOpenAI, *, model: str) -> None:
        self._client = client
        self.model = model

    @classmethod
    def from_settings(cls) -> "OpenAICompletionClient":
        if not settings.openrouter_api_key:
            logger.warning("OPENROUTER_API_KEY missing; AI task generation requests will be rejected upstream.")
        client = openai.AsyncOpenAI(
            base_url=settings.openrouter_base_url,
            api_key=settings.openrouter_api_key or "",
            timeout=settings.ai_timeout_seconds,
            max_retries=0,
        )
        return cls(client, model=settings.ai_model)

    async def complete(self, messages: List[Dict[str, str]]) -> str:
        try:
            completion = await self._client.chat.completions.create(model=self.model, messages=messages)
        except openai.APITimeoutError as exc:
            raise CompletionTimeout() from exc
        except openai.APIConnectionError as exc:
            raise NetworkError("Could not reach the AI service. Please check your connection and try again.") from exc
        except openai.APIStatusError as exc:
            raise ServerError(f"AI request failed ({exc.status_code}): {exc.message}", upstream_status=exc.status_code) from exc

        if not completion.choices:
            return ""
        return completion.choices[0].message.content or ""

    async def aclose(self) -> None:
        await self._client.close()
