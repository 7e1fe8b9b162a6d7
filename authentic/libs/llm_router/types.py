"""Shared type utilities for the completion gateway."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping


class Task(str, Enum):
    """Call-site behaviors; each owns a fixed system prompt."""

    CHAT_ENTRY = "chat_entry"
    CHAT_ALL_ENTRIES = "chat_all_entries"
    REFLECTION_QUESTION = "reflection_question"
    REFLECTION_ANALYSIS = "reflection_analysis"
    MILESTONE_INSIGHT = "milestone_insight"


@dataclass(slots=True)
class LLMResponse:
    """Normalised LLM response payload returned by providers."""

    model: str
    text: str | None = None
    usage: Mapping[str, Any] | None = None
    provider: str | None = None
    raw: Mapping[str, Any] | None = None


__all__ = ["LLMResponse", "Task"]
