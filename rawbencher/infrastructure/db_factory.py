"""
Database connection factory utilities for RawBencher.

Provides centralized creation of psycopg connections, dedicated psycopg pools
and asyncpg connections.

Includes retry logic for transient connection failures using tenacity.
"""

from __future__ import annotations

from typing import Optional

import asyncpg
import psycopg
from psycopg import Connection
from psycopg_pool import ConnectionPool
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from rawbencher.config import get_settings


def build_dsn() -> str:
    """Compose a DSN string from settings."""
    settings = get_settings()
    return (
        f"postgresql://{settings.db_user}:{settings.db_password}"
        f"@{settings.db_host}:{settings.db_port}/{settings.db_name}"
    )


def open_pool(dsn: str, min_size: int = 1, max_size: int = 10) -> ConnectionPool:
    """
    Open a dedicated psycopg ConnectionPool and wait until it holds `min_size` connections.

    Parameters
    ----------
    dsn : str
        Connection string for the pool.
    min_size : int
        Minimum number of idle connections to keep.
    max_size : int
        Maximum total connections in the pool.
    """
    pool = ConnectionPool(conninfo=dsn, min_size=min_size, max_size=max_size, open=False)
    pool.open(wait=True, timeout=float(get_settings().db_connect_timeout))
    return pool


@retry(
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, min=1, max=10),
    retry=retry_if_exception_type((psycopg.OperationalError, psycopg.InterfaceError)),
    reraise=True,
)
def get_sync_connection(dsn: Optional[str] = None, **kwargs) -> Connection:
    """
    Acquire a dedicated synchronous connection with automatic retry.

    Retries up to 3 times with exponential backoff for transient connection errors.

    Parameters
    ----------
    dsn : str, optional
        Connection string; defaults to the one built from settings.
    **kwargs
        Passed through to `psycopg.connect` (e.g. `autocommit`, `row_factory`).

    Raises
    ------
    psycopg.OperationalError
        If connection fails after all retry attempts.
    """
    kwargs.setdefault("connect_timeout", get_settings().db_connect_timeout)
    return psycopg.connect(dsn or build_dsn(), **kwargs)


@retry(
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, min=1, max=10),
    retry=retry_if_exception_type((OSError, ConnectionError)),
    reraise=True,
)
async def get_asyncpg_connection(dsn: Optional[str] = None) -> asyncpg.Connection:
    """
    Acquire an asyncpg connection with automatic retry.

    Retries up to 3 times with exponential backoff for transient connection errors.

    Raises
    ------
    ConnectionError
        If connection fails after all retry attempts.
    """
    return await asyncpg.connect(dsn or build_dsn(), timeout=get_settings().db_connect_timeout)


__all__ = [
    "build_dsn",
    "get_asyncpg_connection",
    "get_sync_connection",
    "open_pool",
]
