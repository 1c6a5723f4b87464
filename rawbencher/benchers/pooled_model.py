"""
Pooled psycopg bencher materializing pydantic SalesOrderHeader models.

Connections come from a dedicated psycopg_pool ConnectionPool owned by the
strategy; rows are turned into frozen `SalesOrderHeader` models through
`class_row`. With `cache=True` the strategy keeps an identity map of fetched
models and reuses the last full set, which is what the caching flag reports.
"""

from __future__ import annotations

from typing import Dict, List, Optional

import pydantic
from psycopg.rows import class_row
from psycopg_pool import ConnectionPool

from rawbencher.benchers.base import AbstractFetchStrategy, create_framework_name
from rawbencher.config import get_settings
from rawbencher.domain.models import (
    SALES_ORDER_HEADER_ELEMENT,
    SALES_ORDER_ID_FIELD,
    SalesOrderHeader,
)
from rawbencher.infrastructure.db_factory import build_dsn, open_pool
from rawbencher.mapping.provider import get_persistence_info
from rawbencher.mapping.registry import MappingRegistry
from rawbencher.mapping.sql import build_select


def sales_order_id_of(model: SalesOrderHeader) -> int:
    return model.sales_order_id


class PooledModelStrategy(AbstractFetchStrategy[SalesOrderHeader]):
    """
    psycopg_pool connections + pydantic model materialization, optionally cached.
    """

    name: str = "pooled_model"
    uses_change_tracking: bool = False

    def __init__(
        self,
        cache: bool = False,
        pool_min_size: Optional[int] = None,
        pool_max_size: Optional[int] = None,
        dsn_override: Optional[str] = None,
        registry: Optional[MappingRegistry] = None,
    ) -> None:
        settings = get_settings()
        if registry is None:
            registry = get_persistence_info()
        self.uses_caching: bool = cache
        if cache:
            self.name = "pooled_model_cached"
        self.pool_min_size = (
            pool_min_size if pool_min_size is not None else settings.benchmark_pool_min_size
        )
        self.pool_max_size = (
            pool_max_size if pool_max_size is not None else settings.benchmark_pool_max_size
        )
        self._dsn_override = dsn_override
        self._pool_instance: ConnectionPool | None = None
        self._by_key: Dict[int, SalesOrderHeader] = {}
        self._set_cache: Optional[List[SalesOrderHeader]] = None
        self._individual_sql = build_select(
            registry, SALES_ORDER_HEADER_ELEMENT, key_field=SALES_ORDER_ID_FIELD
        )
        self._set_sql = build_select(registry, SALES_ORDER_HEADER_ELEMENT)

    def _get_pool(self) -> ConnectionPool:
        if self._pool_instance is None:
            self._pool_instance = open_pool(
                self._dsn_override or build_dsn(),
                min_size=self.pool_min_size,
                max_size=self.pool_max_size,
            )
        return self._pool_instance

    def fetch_individual(self, key: int) -> Optional[SalesOrderHeader]:
        if self.uses_caching and key in self._by_key:
            return self._by_key[key]
        with self._get_pool().connection() as conn:
            with conn.cursor(row_factory=class_row(SalesOrderHeader)) as cur:
                cur.execute(self._individual_sql, (key,))
                model = cur.fetchone()
        if self.uses_caching and model is not None:
            self._by_key[key] = model
        return model

    def fetch_set(self) -> List[SalesOrderHeader]:
        if self.uses_caching and self._set_cache is not None:
            return self._set_cache
        with self._get_pool().connection() as conn:
            with conn.cursor(row_factory=class_row(SalesOrderHeader)) as cur:
                cur.execute(self._set_sql)
                models = cur.fetchall()
        if self.uses_caching:
            self._set_cache = models
            self._by_key.update((m.sales_order_id, m) for m in models)
        return models

    def create_framework_name(self) -> str:
        suffix = ", cached" if self.uses_caching else ""
        template = "psycopg_pool + pydantic v{0} (v{1}) models" + suffix
        return create_framework_name(template, pydantic)

    def close(self) -> None:
        self._by_key.clear()
        self._set_cache = None
        if self._pool_instance is not None:
            try:
                self._pool_instance.close()
            finally:
                self._pool_instance = None


__all__ = ["PooledModelStrategy", "sales_order_id_of"]
