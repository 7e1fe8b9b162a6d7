"""Row-oriented persistence interface used by the orchestration layer."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Mapping, Optional

Row = dict[str, Any]
Filters = Mapping[str, Any]


class StoreError(RuntimeError):
    """Raised when the backing store rejects or fails an operation."""

    def __init__(self, message: str, *, table: str | None = None) -> None:
        super().__init__(message)
        self.table = table


class RowStore(ABC):
    """
    Per-table select/insert/update/delete/upsert with simple filters.

    Filter values: a scalar means equality, a list or tuple means ``IN`` and
    ``None`` means ``IS NULL``. Only equality filters, one descending or
    ascending order column and a row limit are ever required.
    """

    @abstractmethod
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
        """Return matching rows."""

    @abstractmethod
    async def insert(self, table: str, row: Mapping[str, Any]) -> Row:
        """Insert one row and return it as stored."""

    @abstractmethod
    async def update(self, table: str, patch: Mapping[str, Any], *, filters: Filters) -> list[Row]:
        """Apply ``patch`` to every matching row and return the updated rows."""

    @abstractmethod
    async def delete(self, table: str, *, filters: Filters) -> None:
        """Delete every matching row."""

    @abstractmethod
    async def upsert(self, table: str, row: Mapping[str, Any], *, on_conflict: str = "id") -> Row:
        """Insert or replace one row keyed by ``on_conflict``."""

    async def select_one(self, table: str, *, filters: Filters, columns: str = "*") -> Optional[Row]:
        rows = await self.select(table, filters=filters, columns=columns, limit=1)
        return rows[0] if rows else None


__all__ = ["Filters", "Row", "RowStore", "StoreError"]
