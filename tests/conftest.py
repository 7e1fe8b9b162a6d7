import copy
from typing import Any, Mapping, Optional

import httpx
import pytest

from authentic.libs.llm_router import BaseProvider, CompletionGateway, LLMResponse, OpenRouterProvider, ProviderError
from authentic.libs.schemas.settings import AppSettings
from authentic.libs.store.base import Filters, Row, RowStore, StoreError


def _matches(row: Mapping[str, Any], filters: Optional[Filters]) -> bool:
    for column, value in (filters or {}).items():
        if value is None:
            if row.get(column) is not None:
                return False
        elif isinstance(value, (list, tuple, set)):
            if row.get(column) not in value:
                return False
        elif row.get(column) != value:
            return False
    return True


class FakeRowStore(RowStore):
    """In-memory RowStore. ``fail`` holds ``(table, operation)`` pairs that raise StoreError."""

    def __init__(self, tables: Optional[dict[str, list[Row]]] = None) -> None:
        self.tables: dict[str, list[Row]] = {name: [dict(r) for r in rows] for name, rows in (tables or {}).items()}
        self.calls: list[tuple[str, str]] = []
        self.fail: set[tuple[str, str]] = set()

    def rows(self, table: str) -> list[Row]:
        return self.tables.setdefault(table, [])

    def _check(self, table: str, operation: str) -> None:
        self.calls.append((operation, table))
        if (table, operation) in self.fail or (table, "*") in self.fail:
            raise StoreError(f"{operation} on '{table}' failed", table=table)

    async def select(self, table, *, filters=None, columns="*", order_by=None, descending=False, limit=None):
        self._check(table, "select")
        found = [copy.deepcopy(row) for row in self.rows(table) if _matches(row, filters)]
        if order_by:
            found.sort(key=lambda row: str(row.get(order_by) or ""), reverse=descending)
        if limit is not None:
            found = found[:limit]
        return found

    async def insert(self, table, row):
        self._check(table, "insert")
        stored = copy.deepcopy(dict(row))
        self.rows(table).append(stored)
        return copy.deepcopy(stored)

    async def update(self, table, patch, *, filters):
        self._check(table, "update")
        updated = []
        for row in self.rows(table):
            if _matches(row, filters):
                row.update(copy.deepcopy(dict(patch)))
                updated.append(copy.deepcopy(row))
        return updated

    async def delete(self, table, *, filters):
        self._check(table, "delete")
        self.tables[table] = [row for row in self.rows(table) if not _matches(row, filters)]

    async def upsert(self, table, row, *, on_conflict="id"):
        self._check(table, "upsert")
        for existing in self.rows(table):
            if existing.get(on_conflict) == row.get(on_conflict):
                existing.update(copy.deepcopy(dict(row)))
                return copy.deepcopy(existing)
        stored = copy.deepcopy(dict(row))
        self.rows(table).append(stored)
        return copy.deepcopy(stored)


class ScriptedProvider(BaseProvider):
    """Replies from a script; an exception in the script is raised instead of returned."""

    def __init__(self, *replies: Any) -> None:
        super().__init__(name="scripted")
        self.replies = list(replies)
        self.requests: list[list[dict[str, Any]]] = []

    def push(self, *replies: Any) -> None:
        self.replies.extend(replies)

    async def chat(self, *, messages, model, **kwargs):
        self.requests.append([dict(m) for m in messages])
        if not self.replies:
            raise ProviderError("script exhausted", status_code=500)
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return LLMResponse(
            model=model,
            text=reply,
            usage={"prompt_tokens": 10, "completion_tokens": 5, "total_tokens": 15},
            provider=self.name,
        )


def provider_down() -> ProviderError:
    return ProviderError("upstream unavailable", status_code=400)


def openrouter_gateway(body: Any) -> CompletionGateway:
    """Gateway over the real provider; every request is answered 200 with ``body``."""

    transport = httpx.MockTransport(lambda request: httpx.Response(200, json=body))
    provider = OpenRouterProvider("or-test", base_url="https://router.test/api/v1", transport=transport)
    return CompletionGateway(provider, model="test/model", max_retries=0)


@pytest.fixture
def row_store() -> FakeRowStore:
    return FakeRowStore()


@pytest.fixture
def provider() -> ScriptedProvider:
    return ScriptedProvider()


@pytest.fixture
def gateway(provider: ScriptedProvider) -> CompletionGateway:
    return CompletionGateway(provider, model="test/model", max_retries=0, retry_backoff=0.0)


@pytest.fixture
def settings() -> AppSettings:
    return AppSettings(
        supabase_url="http://supabase.test",
        supabase_service_key="test-key",
        openrouter_api_key="or-test",
        chat_history_window=4,
        entry_summary_chars=200,
    )
