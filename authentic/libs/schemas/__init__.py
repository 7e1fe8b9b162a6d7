"""Pydantic models and settings."""

from .chat import ContentPart, ImagePart, ImageURL, RoleMessage, TextPart
from .journal import (
    AIInsight,
    AllEntries,
    Analysis,
    Conversation,
    ConversationBinding,
    InsightSource,
    JournalEntry,
    Message,
    ReflectionQuestion,
    ReflectionSession,
    ReflectionTheme,
    SavedInsight,
    SingleEntry,
)
from .settings import AppSettings, get_settings

__all__ = [
    "AIInsight",
    "AllEntries",
    "Analysis",
    "AppSettings",
    "ContentPart",
    "Conversation",
    "ConversationBinding",
    "ImagePart",
    "ImageURL",
    "InsightSource",
    "JournalEntry",
    "Message",
    "ReflectionQuestion",
    "ReflectionSession",
    "ReflectionTheme",
    "RoleMessage",
    "SavedInsight",
    "SingleEntry",
    "TextPart",
    "get_settings",
]
