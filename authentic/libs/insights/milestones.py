"""Insights generated every tenth journal entry."""

from __future__ import annotations

import logging
from typing import Optional, Sequence

from pydantic import ValidationError

from authentic.libs.llm_router import CompletionGateway, GatewayError, Task
from authentic.libs.reflection.parser import parse_analysis
from authentic.libs.schemas.chat import RoleMessage
from authentic.libs.schemas.journal import AIInsight, JournalEntry
from authentic.libs.store.base import RowStore, StoreError
from authentic.libs.store.journal import JOURNAL_ENTRIES_TABLE
from authentic.prompts.insight import MILESTONE_INSIGHT_SYSTEM_PROMPT, MILESTONE_INSIGHT_USER_TEMPLATE

logger = logging.getLogger(__name__)

JOURNAL_INSIGHTS_TABLE = "journal_insights"
MILESTONE_EVERY = 10


def is_milestone(existing_count: int) -> bool:
    """True when the entry about to be added is the 10th, 20th, ... one."""

    return existing_count % MILESTONE_EVERY == MILESTONE_EVERY - 1


def _format_entries(entries: Sequence[JournalEntry]) -> str:
    return "\n\n---\n\n".join(
        f"Date: {entry.created_at.date().isoformat()}, Mood: {entry.mood}\n{entry.content}"
        for entry in entries
    )


class MilestoneInsightService:
    def __init__(self, store: RowStore, gateway: CompletionGateway, user_id: str) -> None:
        self._store = store
        self._gateway = gateway
        self._user_id = user_id

    async def maybe_generate(self, entries: Sequence[JournalEntry]) -> Optional[AIInsight]:
        """Generate from the newest ten ``entries`` when the collection just hit a milestone."""

        if not entries or len(entries) % MILESTONE_EVERY:
            return None
        return await self.generate_latest(entries)

    async def generate_latest(self, entries: Sequence[JournalEntry]) -> Optional[AIInsight]:
        """Generate from the newest ten of ``entries`` (newest first); ``None`` when there are fewer."""

        if len(entries) < MILESTONE_EVERY:
            return None
        return await self.generate(entries[:MILESTONE_EVERY])

    async def generate(self, entries: Sequence[JournalEntry]) -> Optional[AIInsight]:
        if not entries:
            return None

        messages = [
            RoleMessage.system(MILESTONE_INSIGHT_SYSTEM_PROMPT),
            RoleMessage.user(MILESTONE_INSIGHT_USER_TEMPLATE.format(entries=_format_entries(entries))),
        ]
        try:
            raw = await self._gateway.complete(messages, task=Task.MILESTONE_INSIGHT)
        except GatewayError as exc:
            logger.warning("milestone insight generation failed user_id=%s error=%s", self._user_id, exc)
            return None

        analysis = parse_analysis(raw)
        insight = AIInsight(
            user_id=self._user_id,
            entry_ids=[entry.id for entry in entries],
            content=raw,
            emotional_patterns="\n".join(analysis.positive_patterns + analysis.negative_patterns),
            actionable_steps=analysis.actionable_steps,
            affirmation=analysis.affirmations[0],
        )
        await self._store.insert(JOURNAL_INSIGHTS_TABLE, insight.model_dump(mode="json"))
        logger.info("milestone insight stored id=%s entries=%s", insight.id, len(insight.entry_ids))

        try:
            await self._store.update(
                JOURNAL_ENTRIES_TABLE,
                {"milestone": True},
                filters={"id": insight.entry_ids, "user_id": self._user_id},
            )
        except StoreError as exc:
            logger.warning("marking milestone entries failed insight_id=%s error=%s", insight.id, exc)
        return insight

    async def list_insights(self) -> list[AIInsight]:
        rows = await self._store.select(
            JOURNAL_INSIGHTS_TABLE,
            filters={"user_id": self._user_id},
            order_by="created_at",
            descending=True,
        )
        insights: list[AIInsight] = []
        for row in rows:
            try:
                insights.append(AIInsight.model_validate(row))
            except ValidationError as exc:
                logger.warning("Skipping malformed insight id=%s: %s", row.get("id"), exc)
        return insights

    async def bookmark_insight(self, insight_id: str, is_bookmarked: bool) -> bool:
        rows = await self._store.update(
            JOURNAL_INSIGHTS_TABLE,
            {"is_bookmarked": is_bookmarked},
            filters={"id": insight_id, "user_id": self._user_id},
        )
        return bool(rows)


__all__ = ["JOURNAL_INSIGHTS_TABLE", "MILESTONE_EVERY", "MilestoneInsightService", "is_milestone"]
