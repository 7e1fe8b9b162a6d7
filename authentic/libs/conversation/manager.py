"""
Chat conversations about one journal entry or the whole journal.

A :class:`ConversationManager` holds one user's active conversation in memory
and mirrors every message change into ``chat_conversations`` as a full-list
replacement. Store and gateway failures are logged and surfaced as soft
messages or the :attr:`ConversationManager.error` field; nothing here raises
to the caller.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Optional, Sequence

from pydantic import BaseModel

from authentic.libs.insights.saved import InsightStore
from authentic.libs.llm_router import APOLOGIES, CompletionGateway, GatewayError, Task
from authentic.libs.schemas.chat import RoleMessage
from authentic.libs.schemas.journal import (
    AllEntries,
    Conversation,
    ConversationBinding,
    JournalEntry,
    Message,
    SavedInsight,
    SingleEntry,
    new_id,
    utcnow,
)
from authentic.libs.schemas.settings import AppSettings, get_settings
from authentic.libs.store.base import RowStore, StoreError
from authentic.libs.store.journal import fetch_entry
from authentic.prompts.chat import (
    ALL_ENTRIES_USER_TEMPLATE,
    CHAT_WITH_ALL_ENTRIES_SYSTEM_PROMPT,
    CHAT_WITH_ENTRY_SYSTEM_PROMPT,
    ENTRY_USER_TEMPLATE,
)

from .context import entries_summary, entry_context, history_messages
from .messages import (
    CHAT_CONVERSATIONS_TABLE,
    binding_from_row,
    binding_to_row,
    conversation_from_row,
    conversation_to_row,
    encode_messages,
)

logger = logging.getLogger(__name__)

ALL_ENTRIES_GREETING = (
    "I'm ready to discuss all your journal entries. "
    "What would you like to explore about your journaling history?"
)
SINGLE_ENTRY_GREETING = "I'm looking at your journal entry. What would you like to discuss about it?"
FALLBACK_GREETING = (
    "I'm ready to discuss all your journal entries. "
    "What patterns or insights would you like to explore?"
)
REFRESH_NOTICE = "I've refreshed my knowledge with your latest journal entries. How can I help you now?"
NO_ENTRIES_REPLY = "I don't see any journal entries to analyze. Try adding some entries first."
NO_BINDING_REPLY = "I'm not sure which journal entry we're discussing. Please select an entry first."
SEND_FAILURE_REPLY = "Sorry, I couldn't process your message. Please try again."

BUSY_ERROR = "Still working on your last message. Please wait a moment."
OPEN_ERROR = "We couldn't open that conversation. Please try again."
REFRESH_ERROR = "We couldn't refresh this conversation. Please try again."
BOOKMARK_ERROR = "We couldn't update that bookmark. Please try again."
INSIGHT_ERROR = "We couldn't save that insight. Please try again."

EntriesProvider = Callable[[], Awaitable[Sequence[JournalEntry]]]


class ChatState(BaseModel):
    """Render-ready view of the active conversation."""

    conversation_id: Optional[str] = None
    is_all_entries: bool = False
    selected_entry: Optional[JournalEntry] = None
    messages: list[Message] = []
    is_bookmarked: bool = False
    title: Optional[str] = None
    is_loading: bool = False
    error: Optional[str] = None


def _ai(text: str) -> Message:
    return Message(text=text, sender="ai")


def _bookmark_title() -> str:
    today = utcnow()
    return f"Chat from {today.month}/{today.day}/{today.year}"


class ConversationManager:
    def __init__(
        self,
        *,
        user_id: str,
        store: RowStore,
        gateway: CompletionGateway,
        entries_provider: EntriesProvider,
        insight_store: Optional[InsightStore] = None,
        settings: Optional[AppSettings] = None,
    ) -> None:
        self._user_id = user_id
        self._store = store
        self._gateway = gateway
        self._entries_provider = entries_provider
        self._insight_store = insight_store
        self._settings = settings or get_settings()

        self._conversation_id: Optional[str] = None
        self._binding: Optional[ConversationBinding] = None
        self._selected_entry: Optional[JournalEntry] = None
        self._messages: list[Message] = []
        self._is_bookmarked = False
        self._title: Optional[str] = None
        self._is_loading = False
        self._error: Optional[str] = None
        self._lock = asyncio.Lock()

    # ------------------------------------------------------------------ state

    @property
    def conversation_id(self) -> Optional[str]:
        return self._conversation_id

    @property
    def binding(self) -> Optional[ConversationBinding]:
        return self._binding

    @property
    def is_all_entries(self) -> bool:
        return isinstance(self._binding, AllEntries)

    @property
    def selected_entry(self) -> Optional[JournalEntry]:
        return self._selected_entry

    @property
    def messages(self) -> list[Message]:
        return list(self._messages)

    @property
    def is_loading(self) -> bool:
        return self._is_loading

    @property
    def error(self) -> Optional[str]:
        return self._error

    def snapshot(self) -> ChatState:
        return ChatState(
            conversation_id=self._conversation_id,
            is_all_entries=self.is_all_entries,
            selected_entry=self._selected_entry,
            messages=list(self._messages),
            is_bookmarked=self._is_bookmarked,
            title=self._title,
            is_loading=self._is_loading,
            error=self._error,
        )

    def _reject_if_busy(self) -> bool:
        if self._lock.locked():
            logger.info("chat call rejected while another is in flight user_id=%s", self._user_id)
            self._error = BUSY_ERROR
            return True
        return False

    def _adopt(self, conversation: Conversation) -> None:
        self._conversation_id = conversation.id
        self._binding = conversation.binding
        self._messages = list(conversation.messages)
        self._is_bookmarked = conversation.is_bookmarked
        self._title = conversation.title

    # ------------------------------------------------------------- selection

    async def load_recent(self) -> Optional[Conversation]:
        """Restore the most recently updated conversation, whatever its mode."""

        try:
            rows = await self._store.select(
                CHAT_CONVERSATIONS_TABLE,
                filters={"user_id": self._user_id},
                order_by="last_updated",
                descending=True,
                limit=1,
            )
        except StoreError as exc:
            logger.warning("recent conversation lookup failed user_id=%s error=%s", self._user_id, exc)
            return None

        conversation = conversation_from_row(rows[0]) if rows else None
        if conversation is None:
            return None

        self._adopt(conversation)
        self._selected_entry = None
        if isinstance(conversation.binding, SingleEntry):
            try:
                self._selected_entry = await fetch_entry(
                    self._store, self._user_id, conversation.binding.entry_id
                )
            except StoreError as exc:
                logger.warning(
                    "entry lookup failed entry_id=%s error=%s", conversation.binding.entry_id, exc
                )
        return conversation

    async def select_entry(self, entry: JournalEntry) -> Optional[str]:
        """Bind the active conversation to ``entry`` and load its messages."""

        binding = SingleEntry(entry.id)
        rebinding = self._conversation_id is not None and self._binding != binding
        conversation_id = self._conversation_id or new_id()

        self._messages = []
        self._selected_entry = entry
        self._binding = binding
        self._error = None

        row = {
            "id": conversation_id,
            "user_id": self._user_id,
            **binding_to_row(binding),
            "last_updated": utcnow().isoformat(),
        }
        if rebinding:
            row["messages"] = []
        try:
            stored = await self._store.upsert(CHAT_CONVERSATIONS_TABLE, row)
            existing = await self._store.select_one(
                CHAT_CONVERSATIONS_TABLE,
                filters={"id": stored.get("id", conversation_id), "user_id": self._user_id},
            )
        except StoreError as exc:
            logger.warning("conversation upsert failed entry_id=%s error=%s", entry.id, exc)
            self._conversation_id = None
            self._messages = [_ai(SINGLE_ENTRY_GREETING)]
            self._error = OPEN_ERROR
            return None

        conversation = conversation_from_row(existing) if existing else None
        self._conversation_id = conversation.id if conversation else conversation_id
        self._is_bookmarked = conversation.is_bookmarked if conversation else False
        self._title = conversation.title if conversation else None
        if conversation and conversation.messages:
            self._messages = list(conversation.messages)
        else:
            self._messages = [_ai(SINGLE_ENTRY_GREETING)]
            await self._persist()
        return self._conversation_id

    async def select_all_entries(self) -> Optional[str]:
        """Reuse the newest all-entries conversation or create one."""

        self._selected_entry = None
        self._binding = AllEntries()
        self._messages = []
        self._error = None

        try:
            rows = await self._store.select(
                CHAT_CONVERSATIONS_TABLE,
                filters={"user_id": self._user_id},
                order_by="last_updated",
                descending=True,
            )
            match = next((row for row in rows if isinstance(binding_from_row(row), AllEntries)), None)
            conversation = conversation_from_row(match) if match else None
            if conversation is None:
                conversation = await self._create_all_entries_conversation()
        except StoreError as exc:
            logger.warning("all-entries conversation lookup failed user_id=%s error=%s", self._user_id, exc)
            self._conversation_id = None
            self._is_bookmarked = False
            self._title = None
            self._messages = [_ai(FALLBACK_GREETING)]
            return None

        self._adopt(conversation)
        if not self._messages:
            self._messages = [_ai(ALL_ENTRIES_GREETING)]
            await self._persist()
        return self._conversation_id

    async def _create_all_entries_conversation(self) -> Conversation:
        conversation = Conversation(
            id=new_id(),
            user_id=self._user_id,
            binding=AllEntries(),
            messages=[_ai(ALL_ENTRIES_GREETING)],
        )
        row = await self._store.insert(CHAT_CONVERSATIONS_TABLE, conversation_to_row(conversation))
        logger.info("created all-entries conversation id=%s user_id=%s", conversation.id, self._user_id)
        created = conversation_from_row(row) if row else None
        return created or conversation

    # -------------------------------------------------------------- messages

    async def send_message(self, text: str) -> Optional[Message]:
        """Append ``text`` as a user message and the model's reply; return the reply."""

        content = (text or "").strip()
        if not content:
            return None
        if self._reject_if_busy():
            return None

        async with self._lock:
            self._is_loading = True
            self._error = None
            try:
                history = list(self._messages)
                self._messages.append(Message(text=content, sender="user"))
                await self._persist()

                reply = _ai(await self._reply(content, history))
                self._messages.append(reply)
                await self._persist()
                return reply
            finally:
                self._is_loading = False

    async def _reply(self, text: str, history: Sequence[Message]) -> str:
        binding = self._binding
        if isinstance(binding, AllEntries):
            task = Task.CHAT_ALL_ENTRIES
            try:
                entries = list(await self._entries_provider())
            except StoreError as exc:
                logger.warning("journal entries unavailable user_id=%s error=%s", self._user_id, exc)
                return SEND_FAILURE_REPLY
            if not entries:
                return NO_ENTRIES_REPLY
            system = CHAT_WITH_ALL_ENTRIES_SYSTEM_PROMPT
            prompt = ALL_ENTRIES_USER_TEMPLATE.format(
                summary=entries_summary(entries, max_chars=self._settings.entry_summary_chars),
                message=text,
            )
        elif isinstance(binding, SingleEntry) and self._selected_entry is not None:
            task = Task.CHAT_ENTRY
            system = CHAT_WITH_ENTRY_SYSTEM_PROMPT
            prompt = ENTRY_USER_TEMPLATE.format(entry=entry_context(self._selected_entry), message=text)
        else:
            return NO_BINDING_REPLY

        messages = [
            RoleMessage.system(system),
            *history_messages(history, self._settings.chat_history_window),
            RoleMessage.user(prompt),
        ]
        try:
            return await self._gateway.complete(messages, task=task)
        except GatewayError as exc:
            logger.warning("chat completion failed task=%s error=%s", task.value, exc)
            return APOLOGIES[task]

    async def _persist(self) -> None:
        if self._conversation_id is None:
            return
        try:
            await self._store.update(
                CHAT_CONVERSATIONS_TABLE,
                {"messages": encode_messages(self._messages), "last_updated": utcnow().isoformat()},
                filters={"id": self._conversation_id, "user_id": self._user_id},
            )
        except StoreError as exc:
            logger.warning("saving messages failed conversation_id=%s error=%s", self._conversation_id, exc)

    def clear_chat(self) -> None:
        """Forget the active conversation; nothing is deleted from the store."""

        self._conversation_id = None
        self._binding = None
        self._selected_entry = None
        self._messages = []
        self._is_bookmarked = False
        self._title = None
        self._error = None

    async def refresh_conversation(self) -> None:
        """Pick up journal changes: re-read the bound entry or migrate away from a deleted one."""

        if self._conversation_id is None:
            return
        if self._reject_if_busy():
            return

        async with self._lock:
            self._is_loading = True
            self._error = None
            try:
                await self._refresh()
            except StoreError as exc:
                logger.warning("refresh failed conversation_id=%s error=%s", self._conversation_id, exc)
                self._error = REFRESH_ERROR
            finally:
                self._is_loading = False

    async def _refresh(self) -> None:
        binding = self._binding
        if isinstance(binding, SingleEntry):
            entries = await self._entries_provider()
            if not any(entry.id == binding.entry_id for entry in entries):
                logger.info("bound entry %s is gone; switching to all entries", binding.entry_id)
                conversation = await self._create_all_entries_conversation()
                self._adopt(conversation)
                self._selected_entry = None
            else:
                latest = await fetch_entry(self._store, self._user_id, binding.entry_id)
                if latest is not None:
                    self._selected_entry = latest

        self._messages.append(_ai(REFRESH_NOTICE))
        await self._persist()

    # ------------------------------------------------------------- bookmarks

    async def bookmark_conversation(self, conversation_id: str, is_bookmarked: bool) -> bool:
        """Set the bookmark flag; a first bookmark without a title gets a dated one."""

        filters = {"id": conversation_id, "user_id": self._user_id}
        try:
            row = await self._store.select_one(CHAT_CONVERSATIONS_TABLE, filters=filters)
            if row is None:
                self._error = BOOKMARK_ERROR
                return False
            patch: dict[str, object] = {"is_bookmarked": is_bookmarked}
            title = row.get("title")
            if is_bookmarked and not title:
                title = _bookmark_title()
                patch["title"] = title
            await self._store.update(CHAT_CONVERSATIONS_TABLE, patch, filters=filters)
        except StoreError as exc:
            logger.warning("bookmark update failed conversation_id=%s error=%s", conversation_id, exc)
            self._error = BOOKMARK_ERROR
            return False

        if conversation_id == self._conversation_id:
            self._is_bookmarked = is_bookmarked
            self._title = title
        return True

    async def list_bookmarked(self) -> list[Conversation]:
        try:
            rows = await self._store.select(
                CHAT_CONVERSATIONS_TABLE,
                filters={"user_id": self._user_id, "is_bookmarked": True},
                order_by="last_updated",
                descending=True,
            )
        except StoreError as exc:
            logger.warning("bookmark listing failed user_id=%s error=%s", self._user_id, exc)
            self._error = BOOKMARK_ERROR
            return []
        return [conversation for conversation in map(conversation_from_row, rows) if conversation]

    async def save_message_insight(
        self, message_id: str, tags: Optional[list[str]] = None
    ) -> Optional[SavedInsight]:
        """Keep an AI reply from the active conversation as a saved insight."""

        if self._insight_store is None:
            return None
        message = next((m for m in self._messages if m.id == message_id and m.sender == "ai"), None)
        if message is None:
            return None

        entry = self._selected_entry
        insight = SavedInsight(
            message=message.text,
            source="ai",
            entry_id=entry.id if entry else None,
            entry_date=entry.created_at.date().isoformat() if entry else None,
            tags=tags,
        )
        try:
            return await self._insight_store.save(insight)
        except StoreError as exc:
            logger.warning("saving insight failed message_id=%s error=%s", message_id, exc)
            self._error = INSIGHT_ERROR
            return None


__all__ = [
    "ALL_ENTRIES_GREETING",
    "ChatState",
    "ConversationManager",
    "EntriesProvider",
    "FALLBACK_GREETING",
    "NO_BINDING_REPLY",
    "NO_ENTRIES_REPLY",
    "REFRESH_NOTICE",
    "SINGLE_ENTRY_GREETING",
]
