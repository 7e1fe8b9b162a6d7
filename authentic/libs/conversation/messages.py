"""
Row mapping for ``chat_conversations``.

The ``messages`` column was historically written in two shapes: a native
JSON array and that array serialized into a string. Both are read through
:func:`decode_messages`; writes always use the native form.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Iterable, Optional, Union

from pydantic import ValidationError

from authentic.libs.json_utils import load_json_list
from authentic.libs.schemas.journal import (
    AllEntries,
    Conversation,
    ConversationBinding,
    Message,
    SingleEntry,
    utcnow,
)

logger = logging.getLogger(__name__)

CHAT_CONVERSATIONS_TABLE = "chat_conversations"


@dataclass(frozen=True)
class NativeMessages:
    items: list[Any]


@dataclass(frozen=True)
class SerializedMessages:
    payload: str


StoredMessages = Union[NativeMessages, SerializedMessages, None]


def stored_messages(blob: Any) -> StoredMessages:
    """Tag a raw column value with the shape it was written in."""

    if isinstance(blob, list):
        return NativeMessages(blob)
    if isinstance(blob, (str, bytes, bytearray)):
        text = blob.decode("utf-8", errors="replace") if not isinstance(blob, str) else blob
        return SerializedMessages(text)
    if blob is not None:
        logger.warning("Unexpected messages column type: %s", type(blob).__name__)
    return None


def decode_messages(blob: Any) -> list[Message]:
    """Return the valid messages in ``blob`` in stored order; bad items are skipped."""

    stored = stored_messages(blob)
    if isinstance(stored, NativeMessages):
        items = stored.items
    elif isinstance(stored, SerializedMessages):
        items = load_json_list(stored.payload)
    else:
        items = []

    messages: list[Message] = []
    for item in items:
        if not isinstance(item, dict):
            continue
        try:
            messages.append(Message.model_validate(item))
        except ValidationError as exc:
            logger.debug("Skipping invalid stored message: %s", exc)
    return messages


def encode_messages(messages: Iterable[Message]) -> list[dict[str, Any]]:
    return [message.model_dump(mode="json") for message in messages]


def binding_from_row(row: dict[str, Any]) -> ConversationBinding:
    if row.get("is_all_entries"):
        return AllEntries()
    entry_ids = load_json_list(row.get("entry_ids"))
    if entry_ids and isinstance(entry_ids[0], str):
        return SingleEntry(entry_ids[0])
    return AllEntries()


def binding_to_row(binding: ConversationBinding) -> dict[str, Any]:
    if isinstance(binding, SingleEntry):
        return {"entry_ids": [binding.entry_id], "is_all_entries": False}
    return {"entry_ids": None, "is_all_entries": True}


def conversation_from_row(row: dict[str, Any]) -> Optional[Conversation]:
    try:
        return Conversation(
            id=str(row["id"]),
            user_id=str(row["user_id"]),
            binding=binding_from_row(row),
            messages=decode_messages(row.get("messages")),
            last_updated=row.get("last_updated") or utcnow(),
            is_bookmarked=bool(row.get("is_bookmarked")),
            title=row.get("title"),
        )
    except (KeyError, ValidationError) as exc:
        logger.warning("Skipping malformed conversation id=%s: %s", row.get("id"), exc)
        return None


def conversation_to_row(conversation: Conversation) -> dict[str, Any]:
    return {
        "id": conversation.id,
        "user_id": conversation.user_id,
        **binding_to_row(conversation.binding),
        "messages": encode_messages(conversation.messages),
        "last_updated": _iso(conversation.last_updated),
        "is_bookmarked": conversation.is_bookmarked,
        "title": conversation.title,
    }


def _iso(value: datetime) -> str:
    return value.isoformat()


__all__ = [
    "CHAT_CONVERSATIONS_TABLE",
    "NativeMessages",
    "SerializedMessages",
    "StoredMessages",
    "binding_from_row",
    "binding_to_row",
    "conversation_from_row",
    "conversation_to_row",
    "decode_messages",
    "encode_messages",
    "stored_messages",
]
