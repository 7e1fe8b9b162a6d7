"""Domain models for journal entries, reflection sessions, conversations and insights."""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

Sender = Literal["user", "ai"]
SessionStatus = Literal["in_progress", "completed"]
InsightSource = Literal["ai", "user"]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_id() -> str:
    return str(uuid.uuid4())


class JournalEntry(BaseModel):
    """A journal entry as read from ``journal_entries``."""

    model_config = ConfigDict(extra="ignore")

    id: str
    user_id: Optional[str] = None
    content: str = ""
    title: Optional[str] = None
    mood: str = "neutral"
    tags: list[str] = Field(default_factory=list)
    entry_type: str = "on_demand"
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: Optional[datetime] = None
    milestone: bool = False

    @field_validator("tags", mode="before")
    @classmethod
    def _tags_default(cls, value: Any) -> Any:
        return value or []

    @field_validator("milestone", mode="before")
    @classmethod
    def _milestone_default(cls, value: Any) -> Any:
        return bool(value)


class Message(BaseModel):
    """One chat bubble. Never mutated once created."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=new_id)
    text: str
    sender: Sender
    timestamp: datetime = Field(default_factory=utcnow)


@dataclass(frozen=True)
class SingleEntry:
    """Conversation about one journal entry."""

    entry_id: str


@dataclass(frozen=True)
class AllEntries:
    """Conversation about the whole journal."""


ConversationBinding = Union[SingleEntry, AllEntries]


class Conversation(BaseModel):
    id: str
    user_id: str
    binding: ConversationBinding
    messages: list[Message] = Field(default_factory=list)
    last_updated: datetime = Field(default_factory=utcnow)
    is_bookmarked: bool = False
    title: Optional[str] = None

    @property
    def is_all_entries(self) -> bool:
        return isinstance(self.binding, AllEntries)


class ReflectionTheme(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    description: str
    icon: str
    order: int


class ReflectionQuestion(BaseModel):
    id: str = Field(default_factory=new_id)
    question: str
    theme_id: str
    order: int = Field(ge=1, le=10)
    created_at: datetime = Field(default_factory=utcnow)
    answer: Optional[str] = None


class Analysis(BaseModel):
    negative_patterns: list[str]
    positive_patterns: list[str]
    affirmations: list[str]
    actionable_steps: list[str]
    encouragement: str


class ReflectionSession(BaseModel):
    id: str = Field(default_factory=new_id)
    user_id: str
    theme_id: str
    theme_name: str
    questions: list[ReflectionQuestion] = Field(default_factory=list, max_length=10)
    current_question_index: int = 0
    status: SessionStatus = "in_progress"
    started_at: datetime = Field(default_factory=utcnow)
    completed_at: Optional[datetime] = None
    analysis: Optional[Analysis] = None

    @property
    def current_question(self) -> Optional[ReflectionQuestion]:
        if self.current_question_index < len(self.questions):
            return self.questions[self.current_question_index]
        return None


class SavedInsight(BaseModel):
    """A chat message the user bookmarked."""

    model_config = ConfigDict(extra="ignore")

    id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    message: str
    source: InsightSource = "ai"
    entry_id: Optional[str] = None
    entry_date: Optional[str] = None
    timestamp: datetime = Field(default_factory=utcnow)
    tags: Optional[list[str]] = None


class AIInsight(BaseModel):
    """Milestone insight generated from a batch of journal entries."""

    model_config = ConfigDict(extra="ignore")

    id: str = Field(default_factory=new_id)
    user_id: str
    entry_ids: list[str]
    content: str
    emotional_patterns: Optional[str] = None
    actionable_steps: Optional[list[str]] = None
    affirmation: Optional[str] = None
    created_at: datetime = Field(default_factory=utcnow)
    is_bookmarked: bool = False

    @field_validator("is_bookmarked", mode="before")
    @classmethod
    def _bookmark_default(cls, value: Any) -> Any:
        return bool(value)


__all__ = [
    "AIInsight",
    "AllEntries",
    "Analysis",
    "Conversation",
    "ConversationBinding",
    "InsightSource",
    "JournalEntry",
    "Message",
    "ReflectionQuestion",
    "ReflectionSession",
    "ReflectionTheme",
    "SavedInsight",
    "Sender",
    "SessionStatus",
    "SingleEntry",
    "new_id",
    "utcnow",
]
