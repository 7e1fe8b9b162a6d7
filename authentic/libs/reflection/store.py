"""Persistence for reflection sessions."""

from __future__ import annotations

import json
import logging
from typing import Optional

from pydantic import ValidationError

from authentic.libs.json_utils import load_json_list
from authentic.libs.schemas.journal import ReflectionSession
from authentic.libs.store.base import RowStore, StoreError

logger = logging.getLogger(__name__)

REFLECTION_SESSIONS_TABLE = "reflection_sessions"


class ReflectionSessionStore:
    """Stores each session as one row; ``questions`` and ``analysis`` are JSON columns."""

    def __init__(self, store: RowStore) -> None:
        self._store = store

    async def save(self, session: ReflectionSession) -> bool:
        row = session.model_dump(mode="json")
        try:
            await self._store.upsert(REFLECTION_SESSIONS_TABLE, row)
        except StoreError as exc:
            logger.warning("reflection session save skipped: session_id=%s error=%s", session.id, exc)
            return False
        return True

    async def load(self, session_id: str, *, user_id: str) -> Optional[ReflectionSession]:
        row = await self._store.select_one(
            REFLECTION_SESSIONS_TABLE,
            filters={"id": session_id, "user_id": user_id},
        )
        if not row:
            return None
        return _to_session(row)

    async def list_recent(self, user_id: str, *, limit: int = 20) -> list[ReflectionSession]:
        rows = await self._store.select(
            REFLECTION_SESSIONS_TABLE,
            filters={"user_id": user_id},
            order_by="started_at",
            descending=True,
            limit=max(1, min(limit, 100)),
        )
        return [session for session in (_to_session(row) for row in rows) if session is not None]


def _to_session(row: dict) -> Optional[ReflectionSession]:
    payload = dict(row)
    payload["questions"] = load_json_list(payload.get("questions"))
    analysis = payload.get("analysis")
    if isinstance(analysis, str):
        try:
            payload["analysis"] = json.loads(analysis)
        except json.JSONDecodeError:
            payload["analysis"] = None
    try:
        return ReflectionSession.model_validate(payload)
    except ValidationError as exc:
        logger.warning("Skipping malformed reflection session id=%s: %s", row.get("id"), exc)
        return None


__all__ = ["REFLECTION_SESSIONS_TABLE", "ReflectionSessionStore"]
