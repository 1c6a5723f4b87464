"""
Pytest configuration for RawBencher.

Provides fixtures for:
- Database connection management
- Sales.SalesOrderHeader creation and seeding
- Settings override for integration tests
"""

from __future__ import annotations

import os
import tempfile
from pathlib import Path
from typing import Generator

import psycopg
import pytest

from rawbencher.config import Settings

SEEDED_ROWS_SMALL = 100


@pytest.fixture(scope="session")
def test_settings() -> Settings:
    """
    Settings fixture with test-specific overrides.

    Can be overridden via environment variables in CI or local testing.
    """
    return Settings(
        db_host=os.getenv("DB_HOST", "localhost"),
        db_port=int(os.getenv("DB_PORT", "5432")),
        db_user=os.getenv("DB_USER", "postgres"),
        db_password=os.getenv("DB_PASSWORD", "postgres"),
        db_name=os.getenv("DB_NAME", "adventureworks"),
        log_level="DEBUG",
    )


@pytest.fixture(scope="session")
def test_dsn(test_settings: Settings) -> str:
    """
    Database connection string for tests.
    """
    return (
        f"postgresql://{test_settings.db_user}:{test_settings.db_password}"
        f"@{test_settings.db_host}:{test_settings.db_port}/{test_settings.db_name}"
    )


@pytest.fixture(scope="session")
def db_connection_available(test_dsn: str) -> bool:
    """
    Check if database is reachable.

    Used to conditionally skip integration tests when DB is not available.
    """
    try:
        with psycopg.connect(test_dsn, connect_timeout=5) as conn:
            conn.execute("SELECT 1;").fetchone()
        return True
    except psycopg.Error:
        return False


@pytest.fixture(scope="session")
def db_connection(
    test_dsn: str, db_connection_available: bool
) -> Generator[psycopg.Connection, None, None]:
    """
    Provide a session-scoped database connection for integration tests.

    Skips tests if database is not available.
    """
    if not db_connection_available:
        pytest.skip("Database not available for integration tests")

    conn = psycopg.connect(test_dsn)
    try:
        yield conn
    finally:
        conn.close()


@pytest.fixture(scope="session")
def db_schema_initialized(test_dsn: str, db_connection: psycopg.Connection) -> bool:
    """
    Ensure Sales.SalesOrderHeader exists, creating it from the mapping registry.
    """
    from scripts.generate_data import _create_table

    _create_table(test_dsn)
    return True


@pytest.fixture(scope="function")
def clean_sales_order_header(db_connection: psycopg.Connection, db_schema_initialized: bool):
    """
    Empty Sales.SalesOrderHeader before and after each test function.
    """
    db_connection.execute('TRUNCATE TABLE "Sales"."SalesOrderHeader" RESTART IDENTITY;')
    db_connection.commit()
    yield
    db_connection.execute('TRUNCATE TABLE "Sales"."SalesOrderHeader" RESTART IDENTITY;')
    db_connection.commit()


@pytest.fixture(scope="function")
def seeded_db_small(
    db_connection: psycopg.Connection,
    clean_sales_order_header,
    test_dsn: str,
) -> int:
    """
    Seed a small dataset (100 sales orders) for quick integration tests.

    Returns the number of rows seeded.
    """
    with tempfile.TemporaryDirectory() as tmpdir:
        csv_path = Path(tmpdir) / "sales_order_header.csv"

        from scripts.generate_data import _copy_into_db, _generate_rows_csv

        _generate_rows_csv(csv_path, rows=SEEDED_ROWS_SMALL, batch_size=50, seed=42)
        _copy_into_db(test_dsn, csv_path)

    count = db_connection.execute('SELECT COUNT(*) FROM "Sales"."SalesOrderHeader";').fetchone()[0]
    db_connection.commit()
    return count
