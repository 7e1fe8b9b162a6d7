"""Completion gateway and chat-completion providers."""

from .base import BaseProvider, ProviderError
from .gateway import APOLOGIES, CompletionGateway, GatewayError
from .openrouter import OPENROUTER_DEFAULT_BASE_URL, OpenRouterProvider
from .types import LLMResponse, Task

__all__ = [
    "APOLOGIES",
    "BaseProvider",
    "CompletionGateway",
    "GatewayError",
    "LLMResponse",
    "OPENROUTER_DEFAULT_BASE_URL",
    "OpenRouterProvider",
    "ProviderError",
    "Task",
]
