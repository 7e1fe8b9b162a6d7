"""Journal chat endpoints backed by the per-user ConversationManager."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel

from authentic.apps.api.deps import get_current_user_id, get_registry
from authentic.apps.api.registry import SessionRegistry
from authentic.libs.conversation import ChatState
from authentic.libs.schemas import Conversation, Message, SavedInsight, SingleEntry
from authentic.libs.store import fetch_entry

router = APIRouter(prefix="/chat", tags=["chat"])


class SelectEntryRequest(BaseModel):
    entry_id: str


class SendMessageRequest(BaseModel):
    text: str


class BookmarkRequest(BaseModel):
    conversation_id: str
    is_bookmarked: bool = True


class SaveInsightRequest(BaseModel):
    tags: Optional[list[str]] = None


class ConversationOut(BaseModel):
    id: str
    is_all_entries: bool
    entry_id: Optional[str] = None
    messages: list[Message]
    last_updated: datetime
    is_bookmarked: bool
    title: Optional[str] = None

    @classmethod
    def from_conversation(cls, conversation: Conversation) -> "ConversationOut":
        binding = conversation.binding
        return cls(
            id=conversation.id,
            is_all_entries=conversation.is_all_entries,
            entry_id=binding.entry_id if isinstance(binding, SingleEntry) else None,
            messages=conversation.messages,
            last_updated=conversation.last_updated,
            is_bookmarked=conversation.is_bookmarked,
            title=conversation.title,
        )


@router.get("/state", response_model=ChatState)
async def chat_state(
    user_id: str = Depends(get_current_user_id),
    registry: SessionRegistry = Depends(get_registry),
) -> ChatState:
    return registry.chat(user_id).snapshot()


@router.post("/recent", response_model=ChatState)
async def load_recent(
    user_id: str = Depends(get_current_user_id),
    registry: SessionRegistry = Depends(get_registry),
) -> ChatState:
    manager = registry.chat(user_id)
    await manager.load_recent()
    return manager.snapshot()


@router.post("/entry", response_model=ChatState)
async def select_entry(
    body: SelectEntryRequest,
    user_id: str = Depends(get_current_user_id),
    registry: SessionRegistry = Depends(get_registry),
) -> ChatState:
    entry = await fetch_entry(registry.store, user_id, body.entry_id)
    if entry is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="entry not found")
    manager = registry.chat(user_id)
    await manager.select_entry(entry)
    return manager.snapshot()


@router.post("/all", response_model=ChatState)
async def select_all_entries(
    user_id: str = Depends(get_current_user_id),
    registry: SessionRegistry = Depends(get_registry),
) -> ChatState:
    manager = registry.chat(user_id)
    await manager.select_all_entries()
    return manager.snapshot()


@router.post("/messages", response_model=ChatState)
async def send_message(
    body: SendMessageRequest,
    user_id: str = Depends(get_current_user_id),
    registry: SessionRegistry = Depends(get_registry),
) -> ChatState:
    manager = registry.chat(user_id)
    await manager.send_message(body.text)
    return manager.snapshot()


@router.post("/clear", response_model=ChatState)
async def clear_chat(
    user_id: str = Depends(get_current_user_id),
    registry: SessionRegistry = Depends(get_registry),
) -> ChatState:
    manager = registry.chat(user_id)
    manager.clear_chat()
    return manager.snapshot()


@router.post("/refresh", response_model=ChatState)
async def refresh_conversation(
    user_id: str = Depends(get_current_user_id),
    registry: SessionRegistry = Depends(get_registry),
) -> ChatState:
    manager = registry.chat(user_id)
    await manager.refresh_conversation()
    return manager.snapshot()


@router.post("/bookmark")
async def bookmark_conversation(
    body: BookmarkRequest,
    user_id: str = Depends(get_current_user_id),
    registry: SessionRegistry = Depends(get_registry),
) -> dict[str, bool]:
    updated = await registry.chat(user_id).bookmark_conversation(body.conversation_id, body.is_bookmarked)
    if not updated:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="conversation not updated")
    return {"is_bookmarked": body.is_bookmarked}


@router.get("/bookmarks", response_model=list[ConversationOut])
async def list_bookmarks(
    user_id: str = Depends(get_current_user_id),
    registry: SessionRegistry = Depends(get_registry),
) -> list[ConversationOut]:
    conversations = await registry.chat(user_id).list_bookmarked()
    return [ConversationOut.from_conversation(conversation) for conversation in conversations]


@router.post("/messages/{message_id}/save", response_model=SavedInsight)
async def save_message(
    message_id: str,
    body: SaveInsightRequest,
    user_id: str = Depends(get_current_user_id),
    registry: SessionRegistry = Depends(get_registry),
) -> SavedInsight:
    insight = await registry.chat(user_id).save_message_insight(message_id, tags=body.tags)
    if insight is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="message not found")
    return insight


__all__ = ["router"]
