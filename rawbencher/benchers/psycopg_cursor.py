"""
psycopg server-side cursor bencher with dict rows.

The set fetch returns a generator: nothing is sent to the server until the
bencher starts enumerating, so the fetch time is close to zero and the actual
query cost lands in the enumeration time. Rows are streamed from a named cursor
in `itersize` chunks inside a transaction that ends with the generator.
"""

from __future__ import annotations

from typing import Any, Dict, Iterator, Optional

import psycopg
from psycopg.rows import dict_row

from rawbencher.benchers.base import AbstractFetchStrategy, create_framework_name
from rawbencher.domain.models import SALES_ORDER_HEADER_ELEMENT, SALES_ORDER_ID_FIELD
from rawbencher.infrastructure.db_factory import get_sync_connection
from rawbencher.mapping.provider import get_persistence_info
from rawbencher.mapping.registry import MappingRegistry
from rawbencher.mapping.sql import build_select

DictRow = Dict[str, Any]

DEFAULT_ITERSIZE = 2_000


def sales_order_id_of(row: DictRow) -> int:
    """SalesOrderID of a dict row."""
    return row["SalesOrderID"]


class PsycopgServerCursorStrategy(AbstractFetchStrategy[DictRow]):
    """
    Named (server-side) psycopg cursor streaming dict rows lazily.
    """

    name: str = "psycopg_server_cursor"
    uses_caching: bool = False
    uses_change_tracking: bool = False

    def __init__(
        self,
        itersize: int = DEFAULT_ITERSIZE,
        dsn_override: Optional[str] = None,
        registry: Optional[MappingRegistry] = None,
    ) -> None:
        if registry is None:
            registry = get_persistence_info()
        self.itersize = itersize
        self._dsn_override = dsn_override
        self._conn: psycopg.Connection | None = None
        self._individual_sql = build_select(
            registry, SALES_ORDER_HEADER_ELEMENT, key_field=SALES_ORDER_ID_FIELD
        )
        self._set_sql = build_select(registry, SALES_ORDER_HEADER_ELEMENT)

    def _connection(self) -> psycopg.Connection:
        if self._conn is None or self._conn.closed:
            self._conn = get_sync_connection(
                self._dsn_override, autocommit=True, row_factory=dict_row
            )
        return self._conn

    def fetch_individual(self, key: int) -> Optional[DictRow]:
        with self._connection().cursor() as cur:
            cur.execute(self._individual_sql, (key,))
            return cur.fetchone()

    def _stream(self) -> Iterator[DictRow]:
        conn = self._connection()
        # Named cursors only live inside a transaction.
        with conn.transaction():
            with conn.cursor(name="sales_order_header_stream") as cur:
                cur.itersize = self.itersize
                cur.execute(self._set_sql)
                yield from cur

    def fetch_set(self) -> Iterator[DictRow]:
        return self._stream()

    def create_framework_name(self) -> str:
        return create_framework_name(
            "psycopg v{0} (v{1}), server-side cursor, dict rows", psycopg
        )

    def close(self) -> None:
        if self._conn is not None:
            self._conn.close()
            self._conn = None


__all__ = ["PsycopgServerCursorStrategy", "sales_order_id_of"]
