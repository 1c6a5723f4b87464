"""
Benchers package for RawBencher.

Re-exports the harness (Bencher, BenchResult, FetchStrategy) and the concrete
data-access strategies so downstream code can import from `rawbencher.benchers`.
"""

from rawbencher.benchers.asyncpg_raw import AsyncpgRecordStrategy
from rawbencher.benchers.base import (
    FAILED_ROW_COUNT,
    AbstractFetchStrategy,
    Bencher,
    BenchResult,
    FetchStrategy,
    create_framework_name,
    format_framework_name,
)
from rawbencher.benchers.pooled_model import PooledModelStrategy
from rawbencher.benchers.psycopg_cursor import PsycopgServerCursorStrategy
from rawbencher.benchers.psycopg_raw import PsycopgTupleStrategy

__all__ = [
    # Harness
    "FAILED_ROW_COUNT",
    "AbstractFetchStrategy",
    "Bencher",
    "BenchResult",
    "FetchStrategy",
    "create_framework_name",
    "format_framework_name",
    # Concrete strategies
    "AsyncpgRecordStrategy",
    "PooledModelStrategy",
    "PsycopgServerCursorStrategy",
    "PsycopgTupleStrategy",
]
