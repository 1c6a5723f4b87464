"""
Integration tests for RawBencher adapters.

These tests run against a real PostgreSQL instance and verify that:
1. Each adapter fetches every seeded sales order, individually and as a set
2. Every fetched element verifies through its key retriever
3. The orchestrator aggregates real rounds

Run with: RUN_INTEGRATION_TESTS=1 pytest tests/integration/
"""

from __future__ import annotations

import os

import pytest

from rawbencher.benchers.asyncpg_raw import AsyncpgRecordStrategy
from rawbencher.benchers.asyncpg_raw import sales_order_id_of as record_key
from rawbencher.benchers.base import Bencher
from rawbencher.benchers.pooled_model import PooledModelStrategy
from rawbencher.benchers.pooled_model import sales_order_id_of as model_key
from rawbencher.benchers.psycopg_cursor import PsycopgServerCursorStrategy
from rawbencher.benchers.psycopg_cursor import sales_order_id_of as dict_key
from rawbencher.benchers.psycopg_raw import PsycopgTupleStrategy
from rawbencher.benchers.psycopg_raw import sales_order_id_of as tuple_key
from rawbencher.orchestrator import RunConfig, fetch_individual_keys, run_benchers

# Test configuration constants
DEFAULT_KEYS = 10
MULTI_RUN_COUNT = 3
MISSING_KEY = 10_000_000

pytestmark = pytest.mark.skipif(
    os.getenv("RUN_INTEGRATION_TESTS", "0") != "1",
    reason="Integration tests require RUN_INTEGRATION_TESTS=1 and reachable Postgres",
)


def _benchers(dsn: str):
    return [
        Bencher(PsycopgTupleStrategy(dsn_override=dsn), tuple_key),
        Bencher(PsycopgServerCursorStrategy(itersize=7, dsn_override=dsn), dict_key),
        Bencher(PooledModelStrategy(dsn_override=dsn), model_key),
        Bencher(PooledModelStrategy(cache=True, dsn_override=dsn), model_key),
        Bencher(AsyncpgRecordStrategy(dsn_override=dsn), record_key),
    ]


class TestAdapters:
    """Run every adapter against the seeded table."""

    def test_set_fetch_returns_all_rows(self, seeded_db_small: int, test_dsn: str):
        for bencher in _benchers(test_dsn):
            try:
                result = bencher.perform_set_benchmark()
                assert result.rows_fetched == seeded_db_small, bencher.name
                assert result.fetch_time_ms >= 0
                assert result.enumeration_time_ms >= 0
            finally:
                bencher.close()

    def test_individual_fetch_verifies_every_key(self, seeded_db_small: int, test_dsn: str):
        keys = fetch_individual_keys(DEFAULT_KEYS, dsn=test_dsn)
        assert keys == list(range(1, DEFAULT_KEYS + 1))
        for bencher in _benchers(test_dsn):
            try:
                result = bencher.perform_individual_benchmark(keys)
                assert result.rows_fetched == DEFAULT_KEYS, bencher.name
            finally:
                bencher.close()

    def test_missing_key_is_not_counted(self, seeded_db_small: int, test_dsn: str):
        for bencher in _benchers(test_dsn):
            try:
                result = bencher.perform_individual_benchmark([1, MISSING_KEY])
                assert result.rows_fetched == 1, bencher.name
            finally:
                bencher.close()

    def test_empty_table(self, clean_sales_order_header, test_dsn: str):
        for bencher in _benchers(test_dsn):
            try:
                assert bencher.perform_set_benchmark().rows_fetched == 0, bencher.name
            finally:
                bencher.close()

    def test_server_cursor_can_be_walked_repeatedly(self, seeded_db_small: int, test_dsn: str):
        bencher = Bencher(PsycopgServerCursorStrategy(itersize=10, dsn_override=test_dsn), dict_key)
        try:
            for _ in range(MULTI_RUN_COUNT):
                assert bencher.perform_set_benchmark().rows_fetched == seeded_db_small
        finally:
            bencher.close()


class TestOrchestratorIntegration:
    """Test the orchestrator with real database."""

    def test_run_all_benchers(self, seeded_db_small: int, test_dsn: str):
        keys = fetch_individual_keys(DEFAULT_KEYS, dsn=test_dsn)
        results = run_benchers(
            RunConfig(
                bencher_names=["all"],
                keys=keys,
                loop_amount=MULTI_RUN_COUNT,
                warmup=True,
                persist=False,
            )
        )

        assert len(results) == 5
        for result in results:
            assert result["set"]["rows"] == seeded_db_small
            assert result["set"]["failed_runs"] == 0
            assert result["individual"]["rows"] == DEFAULT_KEYS
            assert len(result["set"]["individual_runs"]) == MULTI_RUN_COUNT
            assert "trimmed_mean" in result["set"]["fetch_time_ms"]
