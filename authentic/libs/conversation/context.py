"""Prompt context assembled from journal entries and the running chat."""

from __future__ import annotations

from typing import Sequence

from authentic.libs.schemas.chat import RoleMessage
from authentic.libs.schemas.journal import JournalEntry, Message

ENTRY_SEPARATOR = "\n\n---\n\n"


def _entry_date(entry: JournalEntry) -> str:
    return entry.created_at.strftime("%B %d, %Y").replace(" 0", " ")


def entry_context(entry: JournalEntry) -> str:
    tags = ", ".join(entry.tags) if entry.tags else "None"
    return (
        f"Journal Entry Date: {_entry_date(entry)}\n"
        f"Mood: {entry.mood}\n"
        f"Tags: {tags}\n"
        f"Content: {entry.content}"
    )


def _truncate(text: str, max_chars: int) -> str:
    return text[:max_chars] + "..." if len(text) > max_chars else text


def entries_summary(entries: Sequence[JournalEntry], *, max_chars: int = 200) -> str:
    """Condense every entry, in the order given, into one prompt block."""

    blocks = [
        f"Date: {_entry_date(entry)}, Mood: {entry.mood}\n"
        f"Content: {_truncate(entry.content, max_chars)}"
        for entry in entries
    ]
    return ENTRY_SEPARATOR.join(blocks)


def history_messages(messages: Sequence[Message], window: int) -> list[RoleMessage]:
    """The last ``window`` chat messages as model turns."""

    if window <= 0:
        return []
    return [
        RoleMessage.user(message.text) if message.sender == "user" else RoleMessage.assistant(message.text)
        for message in messages[-window:]
    ]


__all__ = ["ENTRY_SEPARATOR", "entries_summary", "entry_context", "history_messages"]
