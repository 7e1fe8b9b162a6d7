"""Persistence collaborator: row store interface and the Supabase backend."""

from .base import Filters, Row, RowStore, StoreError
from .journal import JOURNAL_ENTRIES_TABLE, JournalEntriesSource, fetch_entries, fetch_entry

__all__ = [
    "Filters",
    "JOURNAL_ENTRIES_TABLE",
    "JournalEntriesSource",
    "Row",
    "RowStore",
    "StoreError",
    "fetch_entries",
    "fetch_entry",
]
