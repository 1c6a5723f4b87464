from __future__ import annotations

import contextlib
from datetime import datetime
from decimal import Decimal
from typing import List
from uuid import uuid4

import pytest

from rawbencher.benchers import asyncpg_raw, pooled_model, psycopg_cursor, psycopg_raw
from rawbencher.benchers.base import FetchStrategy
from rawbencher.domain.models import SALES_ORDER_HEADER_ELEMENT, SALES_ORDER_ID_FIELD, SalesOrderHeader
from rawbencher.mapping.registry import MappingRegistry


def _model(sales_order_id: int) -> SalesOrderHeader:
    return SalesOrderHeader(
        SalesOrderID=sales_order_id,
        RevisionNumber=8,
        OrderDate=datetime(2013, 7, 1),
        DueDate=datetime(2013, 7, 13),
        Status=5,
        OnlineOrderFlag=True,
        SalesOrderNumber=f"SO{sales_order_id}",
        CustomerID=29825,
        BillToAddressID=985,
        ShipToAddressID=985,
        ShipMethodID=5,
        SubTotal=Decimal("20565.6206"),
        TaxAmt=Decimal("1971.5149"),
        Freight=Decimal("616.0984"),
        TotalDue=Decimal("23153.2339"),
        rowguid=uuid4(),
        ModifiedDate=datetime(2013, 7, 8),
    )


class FakePool:
    """Counts queries; hands out a connection whose cursor returns canned models."""

    def __init__(self, models: List[SalesOrderHeader]) -> None:
        self.models = models
        self.queries = 0
        self.closed = False

    @contextlib.contextmanager
    def connection(self):
        yield self

    @contextlib.contextmanager
    def cursor(self, row_factory=None):
        yield self

    def execute(self, query, params=None):
        self.queries += 1
        self._key = params[0] if params else None

    def fetchone(self):
        return next((m for m in self.models if m.sales_order_id == self._key), None)

    def fetchall(self):
        return list(self.models)

    def close(self):
        self.closed = True


@pytest.mark.parametrize(
    ("strategy_cls", "name"),
    [
        (psycopg_raw.PsycopgTupleStrategy, "psycopg_tuple"),
        (psycopg_cursor.PsycopgServerCursorStrategy, "psycopg_server_cursor"),
        (pooled_model.PooledModelStrategy, "pooled_model"),
        (asyncpg_raw.AsyncpgRecordStrategy, "asyncpg_record"),
    ],
)
def test_adapters_construct_without_connecting(strategy_cls, name):
    strategy = strategy_cls(dsn_override="postgresql://nobody@127.0.0.1:1/none")
    try:
        assert strategy.name == name
        assert strategy.uses_caching is False
        assert strategy.uses_change_tracking is False
        assert isinstance(strategy, FetchStrategy)
        assert strategy.create_framework_name()
    finally:
        strategy.close()


def test_tuple_key_retriever_reads_mapped_ordinal():
    row = tuple(range(100, 126))
    # SalesOrderID sits at ordinal 15 of SalesOrderHeaderEntity.
    assert psycopg_raw.sales_order_id_of(row) == 115


def _reordered_registry() -> MappingRegistry:
    """SalesOrderHeaderEntity mapped with the key as its first column."""
    registry = MappingRegistry()
    registry.add_element_mapping(
        SALES_ORDER_HEADER_ELEMENT, "AdventureWorks", "Sales", "SalesOrderHeader", 2, version=0
    )
    registry.add_element_field_mapping(
        SALES_ORDER_HEADER_ELEMENT, SALES_ORDER_ID_FIELD, "SalesOrderID", False, "Int",
        0, 10, 0, True, "SCOPE_IDENTITY()", "int", 0,
    )
    registry.add_element_field_mapping(
        SALES_ORDER_HEADER_ELEMENT, "Status", "Status", False, "TinyInt",
        0, 3, 0, False, "", "int", 1,
    )
    return registry.freeze()


def test_tuple_key_retriever_follows_the_strategy_registry():
    registry = _reordered_registry()
    strategy = psycopg_raw.PsycopgTupleStrategy(registry=registry)

    assert psycopg_raw.key_position(registry) == 0
    assert strategy.key_retriever((43659, 5)) == 43659
    # The module-level retriever stays bound to the packaged mapping.
    assert psycopg_raw.sales_order_id_of(tuple(range(100, 126))) == 115


def test_pooled_model_keeps_explicit_zero_pool_size():
    strategy = pooled_model.PooledModelStrategy(pool_min_size=0)

    assert strategy.pool_min_size == 0


def test_dict_row_key_retriever():
    assert psycopg_cursor.sales_order_id_of({"SalesOrderID": 43659}) == 43659


def test_model_key_retriever():
    assert pooled_model.sales_order_id_of(_model(43660)) == 43660


def test_framework_names_carry_driver_versions():
    assert psycopg_raw.PsycopgTupleStrategy().create_framework_name().startswith("psycopg v3")
    assert "pydantic v2" in pooled_model.PooledModelStrategy().create_framework_name()


def test_cached_pooled_model_is_flagged_and_named():
    strategy = pooled_model.PooledModelStrategy(cache=True)

    assert strategy.name == "pooled_model_cached"
    assert strategy.uses_caching is True
    assert strategy.create_framework_name().endswith(", cached")


def test_uncached_pooled_model_queries_every_time():
    strategy = pooled_model.PooledModelStrategy()
    pool = FakePool([_model(1), _model(2)])
    strategy._pool_instance = pool

    assert strategy.fetch_individual(1).sales_order_id == 1
    assert strategy.fetch_individual(1).sales_order_id == 1
    assert len(strategy.fetch_set()) == 2
    assert len(strategy.fetch_set()) == 2
    assert pool.queries == 4


def test_cached_pooled_model_serves_repeat_fetches_from_cache():
    strategy = pooled_model.PooledModelStrategy(cache=True)
    pool = FakePool([_model(1), _model(2)])
    strategy._pool_instance = pool

    first = strategy.fetch_set()
    assert strategy.fetch_set() is first
    # The set fetch also fills the per-key cache.
    assert strategy.fetch_individual(2) is first[1]
    assert strategy.fetch_individual(3) is None
    assert pool.queries == 2

    strategy.close()
    assert pool.closed
    assert strategy._pool_instance is None
