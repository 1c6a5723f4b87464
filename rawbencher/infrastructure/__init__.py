"""
Infrastructure package for RawBencher.

Centralizes database connectivity concerns (psycopg connections and pools,
asyncpg connections). Keep this layer focused on I/O and resource management,
decoupled from bencher/orchestrator logic.
"""

from rawbencher.infrastructure.db_factory import (
    build_dsn,
    get_asyncpg_connection,
    get_sync_connection,
    open_pool,
)

__all__ = [
    "build_dsn",
    "get_asyncpg_connection",
    "get_sync_connection",
    "open_pool",
]
