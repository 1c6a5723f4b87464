"""
psycopg (tuple rows) bencher: the baseline raw driver access.

A single dedicated connection in autocommit mode; individual fetches use
`fetchone`, the set fetch materializes everything with `fetchall` before it
returns, so enumeration only walks an in-memory list.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Callable, List, Optional, Tuple

import psycopg

from rawbencher.benchers.base import AbstractFetchStrategy, create_framework_name
from rawbencher.domain.models import SALES_ORDER_HEADER_ELEMENT, SALES_ORDER_ID_FIELD
from rawbencher.infrastructure.db_factory import get_sync_connection
from rawbencher.mapping.provider import get_persistence_info
from rawbencher.mapping.registry import MappingRegistry
from rawbencher.mapping.sql import build_select

Row = Tuple


def key_position(registry: MappingRegistry) -> int:
    """Tuple index of SalesOrderID; selected columns follow the mapping's ordinal order."""
    return registry.field(SALES_ORDER_HEADER_ELEMENT, SALES_ORDER_ID_FIELD).ordinal


def key_retriever_for(registry: MappingRegistry) -> Callable[[Row], int]:
    """Key retriever matching the column order `registry` renders into the SELECT."""
    position = key_position(registry)

    def sales_order_id(row: Row) -> int:
        return row[position]

    return sales_order_id


@lru_cache(maxsize=1)
def _packaged_key_position() -> int:
    return key_position(get_persistence_info())


def sales_order_id_of(row: Row) -> int:
    """SalesOrderID of a tuple row fetched with the packaged AdventureWorks mapping."""
    return row[_packaged_key_position()]


class PsycopgTupleStrategy(AbstractFetchStrategy[Row]):
    """
    Plain psycopg cursor returning tuples; no pooling, caching or change tracking.
    """

    name: str = "psycopg_tuple"
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
        self._conn: psycopg.Connection | None = None
        self._individual_sql = build_select(
            registry, SALES_ORDER_HEADER_ELEMENT, key_field=SALES_ORDER_ID_FIELD
        )
        self._set_sql = build_select(registry, SALES_ORDER_HEADER_ELEMENT)
        self.key_retriever = key_retriever_for(registry)

    def _connection(self) -> psycopg.Connection:
        if self._conn is None or self._conn.closed:
            self._conn = get_sync_connection(self._dsn_override, autocommit=True)
        return self._conn

    def fetch_individual(self, key: int) -> Optional[Row]:
        with self._connection().cursor() as cur:
            cur.execute(self._individual_sql, (key,))
            return cur.fetchone()

    def fetch_set(self) -> List[Row]:
        with self._connection().cursor() as cur:
            cur.execute(self._set_sql)
            return cur.fetchall()

    def create_framework_name(self) -> str:
        return create_framework_name("psycopg v{0} (v{1}), tuple rows", psycopg)

    def close(self) -> None:
        if self._conn is not None:
            self._conn.close()
            self._conn = None


__all__ = ["PsycopgTupleStrategy", "key_position", "key_retriever_for", "sales_order_id_of"]
