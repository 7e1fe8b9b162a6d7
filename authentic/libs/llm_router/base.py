"""Abstract provider interface for the completion gateway."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Mapping, Sequence

from .types import LLMResponse


class ProviderError(RuntimeError):
    """Raised by providers for transport or protocol failures."""

    def __init__(self, message: str, *, status_code: int | None = None, retryable: bool = False) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.retryable = retryable


class BaseProvider(ABC):
    """Common interface all chat-completion providers implement."""

    def __init__(self, name: str) -> None:
        self.name = name

    @abstractmethod
    async def chat(
        self,
        *,
        messages: Sequence[Mapping[str, Any]],
        model: str,
        **kwargs: Any,
    ) -> LLMResponse:
        """Perform a chat completion request."""


__all__ = ["BaseProvider", "ProviderError"]
