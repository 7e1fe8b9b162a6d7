"""In-process holders for per-user orchestrators and chat managers."""

from __future__ import annotations

import logging
from collections import OrderedDict
from typing import Callable, Generic, TypeVar

from authentic.libs.conversation import ConversationManager
from authentic.libs.insights import InsightStore, MilestoneInsightService
from authentic.libs.llm_router import CompletionGateway
from authentic.libs.reflection import ReflectionSessionOrchestrator, ReflectionSessionStore
from authentic.libs.schemas import ReflectionSession
from authentic.libs.schemas.settings import AppSettings
from authentic.libs.store import JournalEntriesSource, RowStore

logger = logging.getLogger(__name__)

T = TypeVar("T")


class _UserCache(Generic[T]):
    """Least-recently-used map from user id to a per-user object."""

    def __init__(self, kind: str, max_users: int) -> None:
        self._kind = kind
        self._max_users = max_users
        self._items: OrderedDict[str, T] = OrderedDict()

    def __len__(self) -> int:
        return len(self._items)

    def __contains__(self, user_id: object) -> bool:
        return user_id in self._items

    def get_or_create(self, user_id: str, factory: Callable[[], T]) -> T:
        item = self._items.get(user_id)
        if item is not None:
            self._items.move_to_end(user_id)
            return item
        item = factory()
        self._items[user_id] = item
        while len(self._items) > self._max_users:
            evicted, _ = self._items.popitem(last=False)
            logger.info("evicted idle %s user_id=%s", self._kind, evicted)
        return item


class SessionRegistry:
    """
    One reflection orchestrator and one conversation manager per user id.

    Both maps are bounded by ``settings.registry_max_users``. An evicted user
    starts from a fresh instance; their stored sessions and conversations are
    reloaded through ``load_saved_session`` and ``load_recent``.
    """

    def __init__(self, store: RowStore, gateway: CompletionGateway, settings: AppSettings) -> None:
        self.store = store
        self.gateway = gateway
        self.settings = settings
        self.sessions = ReflectionSessionStore(store)
        self._reflections: _UserCache[ReflectionSessionOrchestrator] = _UserCache(
            "reflection", settings.registry_max_users
        )
        self._chats: _UserCache[ConversationManager] = _UserCache("chat", settings.registry_max_users)

    def reflection(self, user_id: str) -> ReflectionSessionOrchestrator:
        return self._reflections.get_or_create(
            user_id,
            lambda: ReflectionSessionOrchestrator(
                self.gateway,
                user_id=user_id,
                session_store=self.sessions,
                on_session_complete=_log_completion,
            ),
        )

    def chat(self, user_id: str) -> ConversationManager:
        return self._chats.get_or_create(
            user_id,
            lambda: ConversationManager(
                user_id=user_id,
                store=self.store,
                gateway=self.gateway,
                entries_provider=JournalEntriesSource(self.store, user_id),
                insight_store=self.insights(user_id),
                settings=self.settings,
            ),
        )

    def insights(self, user_id: str) -> InsightStore:
        return InsightStore(self.store, user_id)

    def milestones(self, user_id: str) -> MilestoneInsightService:
        return MilestoneInsightService(self.store, self.gateway, user_id)


def _log_completion(session: ReflectionSession) -> None:
    logger.info(
        "reflection complete session_id=%s user_id=%s theme=%s",
        session.id,
        session.user_id,
        session.theme_id,
    )


__all__ = ["SessionRegistry"]
