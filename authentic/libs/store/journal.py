"""Read-only access to journal entries owned by the journal CRUD layer."""

from __future__ import annotations

import logging
from typing import Optional

from pydantic import ValidationError

from authentic.libs.schemas.journal import JournalEntry

from .base import RowStore

logger = logging.getLogger(__name__)

JOURNAL_ENTRIES_TABLE = "journal_entries"


def _to_entry(row: dict) -> Optional[JournalEntry]:
    try:
        return JournalEntry.model_validate(row)
    except ValidationError as exc:
        logger.warning("Skipping malformed journal entry id=%s: %s", row.get("id"), exc)
        return None


async def fetch_entries(store: RowStore, user_id: str) -> list[JournalEntry]:
    """Return the user's entries newest-first."""

    rows = await store.select(
        JOURNAL_ENTRIES_TABLE,
        filters={"user_id": user_id},
        order_by="created_at",
        descending=True,
    )
    return [entry for entry in (_to_entry(row) for row in rows) if entry is not None]


async def fetch_entry(store: RowStore, user_id: str, entry_id: str) -> Optional[JournalEntry]:
    row = await store.select_one(JOURNAL_ENTRIES_TABLE, filters={"id": entry_id, "user_id": user_id})
    return _to_entry(row) if row else None


class JournalEntriesSource:
    """Async callable that serves a user's live entry collection from the store."""

    def __init__(self, store: RowStore, user_id: str) -> None:
        self._store = store
        self._user_id = user_id

    async def __call__(self) -> list[JournalEntry]:
        return await fetch_entries(self._store, self._user_id)


__all__ = ["JOURNAL_ENTRIES_TABLE", "JournalEntriesSource", "fetch_entries", "fetch_entry"]
