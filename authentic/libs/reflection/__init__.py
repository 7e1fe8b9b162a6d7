"""Guided reflection: theme catalog, analysis parser and the interview orchestrator."""

from .orchestrator import TOTAL_QUESTIONS, ReflectionSessionOrchestrator, ReflectionState
from .parser import default_analysis, parse_analysis
from .store import REFLECTION_SESSIONS_TABLE, ReflectionSessionStore
from .themes import get_theme, reflection_themes

__all__ = [
    "REFLECTION_SESSIONS_TABLE",
    "ReflectionSessionOrchestrator",
    "ReflectionSessionStore",
    "ReflectionState",
    "TOTAL_QUESTIONS",
    "default_analysis",
    "get_theme",
    "parse_analysis",
    "reflection_themes",
]
