"""OpenRouter chat-completion provider."""

from __future__ import annotations

import logging
from typing import Any, Mapping, Sequence

import httpx

from .base import BaseProvider, ProviderError
from .types import LLMResponse

OPENROUTER_DEFAULT_BASE_URL = "https://openrouter.ai/api/v1"

COMPLETIONS_PATH = "/chat/completions"

_RETRYABLE_STATUS = frozenset({408, 429, 500, 502, 503, 504})
_BODY_PREVIEW = 400


def _check_status(response: httpx.Response) -> None:
    if response.is_success:
        return
    raise ProviderError(
        f"OpenRouter {response.status_code} on {response.request.url}. Body: {response.text[:_BODY_PREVIEW]}",
        status_code=response.status_code,
        retryable=response.status_code in _RETRYABLE_STATUS,
    )


def _decode(response: httpx.Response) -> dict[str, Any]:
    content_type = response.headers.get("content-type", "").lower()
    if "json" not in content_type:
        raise ProviderError(
            f"OpenRouter returned {content_type or 'no content type'}: {response.text[:_BODY_PREVIEW]}",
            status_code=response.status_code,
        )
    try:
        body = response.json()
    except ValueError as exc:
        raise ProviderError("OpenRouter returned malformed JSON", status_code=response.status_code) from exc
    if not isinstance(body, dict):
        raise ProviderError("OpenRouter returned a non-object JSON body", status_code=response.status_code)
    return body


def _first_choice_text(body: Mapping[str, Any]) -> str | None:
    choices = body.get("choices")
    if not isinstance(choices, list) or not choices:
        raise ProviderError("OpenRouter response has no choices")
    choice = choices[0]
    if not isinstance(choice, dict):
        raise ProviderError(f"OpenRouter choice is {type(choice).__name__}, expected an object")
    message = choice.get("message")
    if not isinstance(message, dict):
        raise ProviderError(f"OpenRouter message is {type(message).__name__}, expected an object")
    content = message.get("content")
    if content is not None and not isinstance(content, str):
        raise ProviderError(f"OpenRouter content is {type(content).__name__}, expected text")
    return content


def _wire_message(message: Mapping[str, Any]) -> dict[str, Any]:
    data = message.model_dump(mode="json") if hasattr(message, "model_dump") else dict(message)
    if data.get("role") is None or data.get("content") is None:
        raise ValueError("Chat messages must include 'role' and 'content'")
    return {"role": data["role"], "content": data["content"]}


class OpenRouterProvider(BaseProvider):
    """Posts ``{model, messages}`` to an OpenRouter-compatible completions endpoint."""

    def __init__(
        self,
        api_key: str,
        *,
        base_url: str | None = None,
        timeout: float = 60.0,
        referer: str | None = None,
        title: str = "Path to Authenticity",
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        if not api_key:
            raise ValueError("OpenRouter API key is required")
        super().__init__(name="openrouter")
        self._api_key = api_key
        self._base_url = (base_url or OPENROUTER_DEFAULT_BASE_URL).rstrip("/")
        self._timeout = timeout
        self._referer = referer
        self._title = title
        self._transport = transport
        self._logger = logging.getLogger(__name__)

    @property
    def headers(self) -> dict[str, str]:
        headers = {"Authorization": f"Bearer {self._api_key}", "X-Title": self._title}
        if self._referer:
            headers["HTTP-Referer"] = self._referer
        return headers

    async def chat(
        self,
        *,
        messages: Sequence[Mapping[str, Any]],
        model: str,
        **kwargs: Any,
    ) -> LLMResponse:
        request = {"model": model, "messages": [_wire_message(m) for m in messages], **kwargs}
        body = await self._post(request)
        return LLMResponse(
            model=body.get("model") or model,
            text=_first_choice_text(body),
            usage=body.get("usage") or {},
            provider=self.name,
            raw=body,
        )

    async def _post(self, request: Mapping[str, Any]) -> dict[str, Any]:
        async with httpx.AsyncClient(
            base_url=self._base_url,
            headers=self.headers,
            timeout=self._timeout,
            transport=self._transport,
        ) as client:
            try:
                response = await client.post(COMPLETIONS_PATH, json=request)
            except httpx.RequestError as exc:
                self._logger.debug("openrouter transport error: %s", exc)
                raise ProviderError(f"OpenRouter network error: {exc}", retryable=True) from exc
        _check_status(response)
        return _decode(response)


__all__ = ["COMPLETIONS_PATH", "OPENROUTER_DEFAULT_BASE_URL", "OpenRouterProvider"]
