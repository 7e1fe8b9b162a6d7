"""Per-user collection of bookmarked chat messages."""

from __future__ import annotations

import logging
import uuid
from typing import Any, Mapping, Optional

from pydantic import ValidationError

from authentic.libs.json_utils import load_json_list
from authentic.libs.schemas.journal import SavedInsight, utcnow
from authentic.libs.store.base import RowStore

logger = logging.getLogger(__name__)

SAVED_INSIGHTS_TABLE = "saved_insights"

_NON_NULLABLE_FIELDS = frozenset({"message", "source", "timestamp"})


class InsightStore:
    """
    Read-modify-write over a single ``saved_insights`` row per user.

    Every mutation rewrites the whole collection. :class:`StoreError` from the
    backing store propagates to the caller.
    """

    def __init__(self, store: RowStore, user_id: str) -> None:
        self._store = store
        self._user_id = user_id

    @property
    def row_id(self) -> str:
        return f"{SAVED_INSIGHTS_TABLE}_{self._user_id}"

    async def list(self) -> list[SavedInsight]:
        row = await self._store.select_one(SAVED_INSIGHTS_TABLE, filters={"id": self.row_id})
        if not row:
            return []
        insights: list[SavedInsight] = []
        for item in load_json_list(row.get("insights")):
            try:
                insights.append(SavedInsight.model_validate(item))
            except ValidationError as exc:
                logger.warning("Skipping malformed saved insight user_id=%s: %s", self._user_id, exc)
        return insights

    async def save(self, insight: SavedInsight) -> SavedInsight:
        stored = insight.model_copy(update={"id": uuid.uuid4().hex, "timestamp": utcnow()})
        insights = await self.list()
        insights.append(stored)
        await self._write(insights)
        logger.info("saved insight id=%s user_id=%s", stored.id, self._user_id)
        return stored

    async def delete(self, insight_id: str) -> bool:
        insights = await self.list()
        remaining = [insight for insight in insights if insight.id != insight_id]
        if len(remaining) == len(insights):
            return False
        await self._write(remaining)
        return True

    async def update(self, insight_id: str, patch: Mapping[str, Any]) -> Optional[SavedInsight]:
        """Merge ``patch`` into one insight; ``None`` for a non-nullable field leaves it unchanged."""

        changes = {
            key: value
            for key, value in patch.items()
            if key != "id" and not (value is None and key in _NON_NULLABLE_FIELDS)
        }
        insights = await self.list()
        for index, insight in enumerate(insights):
            if insight.id == insight_id:
                updated = SavedInsight.model_validate({**insight.model_dump(), **changes})
                insights[index] = updated
                await self._write(insights)
                return updated
        return None

    async def _write(self, insights: list[SavedInsight]) -> None:
        await self._store.upsert(
            SAVED_INSIGHTS_TABLE,
            {
                "id": self.row_id,
                "user_id": self._user_id,
                "insights": [insight.model_dump(mode="json") for insight in insights],
            },
        )


__all__ = ["InsightStore", "SAVED_INSIGHTS_TABLE"]
