"""RowStore implementation on top of supabase-py."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, Mapping, Optional

from supabase import Client, create_client

from authentic.libs.json_utils import json_safe
from authentic.libs.schemas.settings import AppSettings

from .base import Filters, Row, RowStore, StoreError

logger = logging.getLogger(__name__)


def _apply_filters(query: Any, filters: Optional[Filters]) -> Any:
    for column, value in (filters or {}).items():
        if value is None:
            query = query.is_(column, "null")
        elif isinstance(value, (list, tuple, set)):
            query = query.in_(column, [json_safe(item) for item in value])
        else:
            query = query.eq(column, json_safe(value))
    return query


def _rows(response: Any) -> list[Row]:
    data = getattr(response, "data", None)
    if isinstance(data, list):
        return [dict(row) for row in data]
    if isinstance(data, dict):
        return [dict(data)]
    return []


class SupabaseRowStore(RowStore):
    """Runs the synchronous supabase client in the default executor."""

    def __init__(self, client: Client) -> None:
        self._client = client

    @classmethod
    def from_settings(cls, settings: AppSettings) -> "SupabaseRowStore":
        return cls(create_client(settings.supabase_url, settings.supabase_service_key))

    async def _run(self, table: str, operation: str, build: Callable[[], Any]) -> list[Row]:
        loop = asyncio.get_running_loop()
        try:
            response = await loop.run_in_executor(None, build)
        except Exception as exc:
            logger.warning("supabase %s failed table=%s error=%s", operation, table, exc)
            raise StoreError(f"{operation} on '{table}' failed: {exc}", table=table) from exc
        rows = _rows(response)
        logger.debug("supabase %s table=%s rows=%s", operation, table, len(rows))
        return rows

    async def select(
        self,
        table: str,
        *,
        filters: Optional[Filters] = None,
        columns: str = "*",
        order_by: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None,
    ) -> list[Row]:
        def _select() -> Any:
            query = _apply_filters(self._client.table(table).select(columns), filters)
            if order_by:
                query = query.order(order_by, desc=descending)
            if limit is not None:
                query = query.limit(limit)
            return query.execute()

        return await self._run(table, "select", _select)

    async def insert(self, table: str, row: Mapping[str, Any]) -> Row:
        payload = json_safe(dict(row))
        rows = await self._run(table, "insert", lambda: self._client.table(table).insert(payload).execute())
        return rows[0] if rows else payload

    async def update(self, table: str, patch: Mapping[str, Any], *, filters: Filters) -> list[Row]:
        if not filters:
            raise ValueError("update requires at least one filter")
        payload = json_safe(dict(patch))

        def _update() -> Any:
            return _apply_filters(self._client.table(table).update(payload), filters).execute()

        return await self._run(table, "update", _update)

    async def delete(self, table: str, *, filters: Filters) -> None:
        if not filters:
            raise ValueError("delete requires at least one filter")

        def _delete() -> Any:
            return _apply_filters(self._client.table(table).delete(), filters).execute()

        await self._run(table, "delete", _delete)

    async def upsert(self, table: str, row: Mapping[str, Any], *, on_conflict: str = "id") -> Row:
        payload = json_safe(dict(row))
        rows = await self._run(
            table, "upsert", lambda: self._client.table(table).upsert(payload, on_conflict=on_conflict).execute()
        )
        return rows[0] if rows else payload


__all__ = ["SupabaseRowStore"]
