"""
asyncpg bencher.

asyncpg is async-only; the strategy owns a private event loop and drives each
call to completion with `run_until_complete`, so the bencher still sees plain
blocking fetches. Elements are `asyncpg.Record` instances.
"""

from __future__ import annotations

import asyncio
from typing import List, Optional

import asyncpg

from rawbencher.benchers.base import AbstractFetchStrategy, create_framework_name
from rawbencher.domain.models import SALES_ORDER_HEADER_ELEMENT, SALES_ORDER_ID_FIELD
from rawbencher.infrastructure.db_factory import get_asyncpg_connection
from rawbencher.mapping.provider import get_persistence_info
from rawbencher.mapping.registry import MappingRegistry
from rawbencher.mapping.sql import select_text


def sales_order_id_of(record: asyncpg.Record) -> int:
    return record["SalesOrderID"]


class AsyncpgRecordStrategy(AbstractFetchStrategy[asyncpg.Record]):
    """
    asyncpg `fetchrow` / `fetch` on a dedicated connection and event loop.
    """

    name: str = "asyncpg_record"
    uses_caching: bool = False
    uses_change_tracking: bool = False

    def __init__(
        self,
        dsn_override: Optional[str] = None,
        registry: Optional[MappingRegistry] = None,
    ) -> None:
        if registry is None:
            registry = get_persistence_info()
        self._dsn_override = dsn_override
        self._loop: asyncio.AbstractEventLoop | None = None
        self._conn: asyncpg.Connection | None = None
        self._individual_sql = select_text(
            registry, SALES_ORDER_HEADER_ELEMENT, key_field=SALES_ORDER_ID_FIELD
        )
        self._set_sql = select_text(registry, SALES_ORDER_HEADER_ELEMENT)

    def _run(self, coro):
        if self._loop is None or self._loop.is_closed():
            self._loop = asyncio.new_event_loop()
        return self._loop.run_until_complete(coro)

    def _connection(self) -> asyncpg.Connection:
        if self._conn is None or self._conn.is_closed():
            self._conn = self._run(get_asyncpg_connection(self._dsn_override))
        return self._conn

    def fetch_individual(self, key: int) -> Optional[asyncpg.Record]:
        conn = self._connection()
        return self._run(conn.fetchrow(self._individual_sql, key))

    def fetch_set(self) -> List[asyncpg.Record]:
        conn = self._connection()
        return self._run(conn.fetch(self._set_sql))

    def create_framework_name(self) -> str:
        return create_framework_name("asyncpg v{0} (v{1}), records", asyncpg)

    def close(self) -> None:
        try:
            if self._conn is not None and not self._conn.is_closed():
                self._run(self._conn.close())
        finally:
            self._conn = None
            if self._loop is not None:
                self._loop.close()
                self._loop = None


__all__ = ["AsyncpgRecordStrategy", "sales_order_id_of"]
