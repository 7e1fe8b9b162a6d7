"""Completion gateway: the single entry point for model calls."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Mapping, Sequence, Union

from authentic.libs.schemas.chat import RoleMessage
from authentic.libs.schemas.settings import AppSettings

from .base import BaseProvider, ProviderError
from .openrouter import OpenRouterProvider
from .types import LLMResponse, Task

GatewayMessage = Union[RoleMessage, Mapping[str, Any]]

APOLOGIES: dict[Task, str] = {
    Task.CHAT_ENTRY: (
        "I apologize, but I'm having trouble processing your request right now. "
        "Please try again later."
    ),
    Task.CHAT_ALL_ENTRIES: (
        "I apologize, but I'm having trouble processing your request right now. "
        "Please try again later."
    ),
    Task.REFLECTION_QUESTION: (
        "I'm having trouble coming up with the next question right now. Please try again."
    ),
    Task.REFLECTION_ANALYSIS: (
        "I'm having trouble putting together your reflection summary right now. Please try again."
    ),
    Task.MILESTONE_INSIGHT: (
        "I apologize, but I'm having trouble analyzing your entries right now. "
        "Please try again later."
    ),
}


class GatewayError(RuntimeError):
    """Raised when the completion endpoint cannot produce text."""

    def __init__(self, message: str, *, task: Task | None = None) -> None:
        super().__init__(message)
        self.task = task


class CompletionGateway:
    """Stateless wrapper that sends role-tagged messages and returns raw text."""

    def __init__(
        self,
        provider: BaseProvider,
        *,
        model: str,
        max_retries: int = 1,
        retry_backoff: float = 0.5,
        logger: logging.Logger | None = None,
    ) -> None:
        self._provider = provider
        self._model = model
        self._max_retries = max(0, max_retries)
        self._retry_backoff = max(0.0, retry_backoff)
        self._logger = logger or logging.getLogger(__name__)

    @classmethod
    def from_settings(cls, settings: AppSettings) -> "CompletionGateway":
        provider = OpenRouterProvider(
            settings.openrouter_api_key or "",
            base_url=settings.openrouter_base_url,
            timeout=settings.llm_timeout,
            referer=settings.app_url,
            title=settings.app_name,
        )
        return cls(
            provider,
            model=settings.model_chat,
            max_retries=settings.llm_max_retries,
            retry_backoff=settings.llm_retry_backoff,
        )

    @property
    def model(self) -> str:
        return self._model

    async def complete(self, messages: Sequence[GatewayMessage], *, task: Task) -> str:
        """Return the model's text for ``messages`` or raise :class:`GatewayError`."""

        if not messages:
            raise ValueError("CompletionGateway.complete requires at least one message")

        payload = [_as_payload(message) for message in messages]
        attempts = self._max_retries + 1
        last_error: Exception | None = None

        for attempt in range(1, attempts + 1):
            try:
                response = await self._provider.chat(messages=payload, model=self._model)
            except ProviderError as exc:
                last_error = exc
                self._logger.warning(
                    "llm_task=%s provider=%s attempt=%s/%s failed: %s",
                    task.value,
                    self._provider.name,
                    attempt,
                    attempts,
                    exc,
                )
                if not exc.retryable or attempt == attempts:
                    break
                await asyncio.sleep(self._retry_backoff * attempt)
                continue

            text = response.text.strip() if isinstance(response.text, str) else ""
            if not text:
                last_error = GatewayError("Completion returned no text", task=task)
                self._logger.warning(
                    "llm_task=%s provider=%s returned empty or non-text content (%s)",
                    task.value,
                    self._provider.name,
                    type(response.text).__name__,
                )
                break
            self._log_usage(task, response)
            return text

        raise GatewayError(f"Completion failed for task '{task.value}': {last_error}", task=task) from last_error

    def _log_usage(self, task: Task, response: LLMResponse) -> None:
        usage = response.usage or {}
        self._logger.info(
            "llm_task=%s provider=%s model=%s prompt_tokens=%s completion_tokens=%s total_tokens=%s",
            task.value,
            response.provider or self._provider.name,
            response.model,
            usage.get("prompt_tokens"),
            usage.get("completion_tokens"),
            usage.get("total_tokens"),
        )


def _as_payload(message: GatewayMessage) -> dict[str, Any]:
    if isinstance(message, RoleMessage):
        return message.model_dump(mode="json")
    return dict(message)


__all__ = ["APOLOGIES", "CompletionGateway", "GatewayError", "GatewayMessage"]
