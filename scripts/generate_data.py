"""
Data generation and loading script for RawBencher.

Creates the table of a mapped element (Sales.SalesOrderHeader by default) in
Postgres from the entity mapping registry, emits deterministic pseudo-random
rows as CSV, and loads them with COPY for maximum throughput. Column values are
derived from each field's mapped storage type, length and nullability.
"""

from __future__ import annotations

import csv
import random
import sys
import tempfile
import time
import uuid
from datetime import datetime, timedelta
from pathlib import Path
from typing import List

import psycopg
import typer
from psycopg import sql

from rawbencher.domain.models import SALES_ORDER_HEADER_ELEMENT
from rawbencher.infrastructure.db_factory import build_dsn
from rawbencher.mapping.provider import get_persistence_info
from rawbencher.mapping.registry import FieldMapping, ValueType
from rawbencher.mapping.sql import column_names, create_table_ddl, reset_identity_sql

app = typer.Typer(help="Generate synthetic rows for a mapped element and load them into Postgres (CSV + COPY).")

_BASE_DATE = datetime(2011, 5, 31)
_ALPHABET = "ABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789"


def _build_dsn(dsn_override: str | None) -> str:
    if dsn_override:
        return dsn_override
    return build_dsn()


def _value_for(field: FieldMapping, rng: random.Random, key: int) -> str:
    """CSV text for one column; an empty string loads as NULL."""
    if field.is_identity:
        return str(key)
    if field.is_nullable and rng.random() < 0.1:
        return ""

    value_type = field.value_type
    if value_type is ValueType.INT:
        if field.db_type == "TinyInt":
            return str(rng.randint(1, 8))
        if field.db_type == "SmallInt":
            return str(rng.randint(1, 1_000))
        return str(rng.randint(1, 30_000))
    if value_type is ValueType.STR:
        if field.db_type == "Xml":
            return f"<value>{rng.randint(1, 1_000)}</value>"
        length = 64 if field.is_max_length else max(field.length, 1)
        size = length if field.db_type in ("NChar", "Char") else rng.randint(1, min(length, 24))
        return "".join(rng.choice(_ALPHABET) for _ in range(size))
    if value_type is ValueType.DATETIME:
        moment = _BASE_DATE + timedelta(days=rng.randint(0, 1_500), seconds=rng.randint(0, 86_399))
        if field.db_type == "Date":
            return moment.date().isoformat()
        return moment.isoformat(sep=" ")
    if value_type is ValueType.TIME:
        return f"{rng.randint(0, 23):02d}:{rng.randint(0, 59):02d}:00"
    if value_type is ValueType.DECIMAL:
        whole_digits = max((field.precision or 19) - field.scale, 1)
        upper = min(10 ** min(whole_digits, 6) - 1, 100_000)
        return f"{rng.uniform(0, upper):.{field.scale}f}"
    if value_type is ValueType.UUID:
        return str(uuid.UUID(int=rng.getrandbits(128), version=4))
    if value_type is ValueType.BOOL:
        return "t" if rng.random() < 0.5 else "f"
    if value_type in (ValueType.BYTES, ValueType.GEOGRAPHY):
        return "\\x" + rng.randbytes(8).hex()
    raise ValueError(f"Cannot generate values for {field.element_name}.{field.field_name}")


def _generate_rows_csv(
    csv_path: Path,
    rows: int,
    batch_size: int,
    seed: int,
    element_name: str = SALES_ORDER_HEADER_ELEMENT,
) -> None:
    registry = get_persistence_info()
    fields = registry.fields(element_name)
    rng = random.Random(seed)

    with csv_path.open("w", newline="", encoding="utf-8") as f:
        writer = csv.writer(f)
        writer.writerow(column_names(registry, element_name))

        buffer: List[List[str]] = []
        for key in range(1, rows + 1):
            buffer.append([_value_for(field, rng, key) for field in fields])
            if len(buffer) >= batch_size:
                writer.writerows(buffer)
                buffer.clear()
        if buffer:
            writer.writerows(buffer)


def _create_table(dsn: str, element_name: str = SALES_ORDER_HEADER_ELEMENT, truncate: bool = False) -> None:
    registry = get_persistence_info()
    element = registry.element(element_name)
    table = sql.Identifier(element.schema_name, element.physical_name)
    with psycopg.connect(dsn) as conn:
        conn.execute(create_table_ddl(registry, element_name))
        if truncate:
            conn.execute(sql.SQL("TRUNCATE TABLE {} RESTART IDENTITY").format(table))
        conn.commit()


def _copy_into_db(dsn: str, csv_path: Path, element_name: str = SALES_ORDER_HEADER_ELEMENT) -> int:
    registry = get_persistence_info()
    element = registry.element(element_name)
    table = sql.Identifier(element.schema_name, element.physical_name)
    columns = sql.SQL(", ").join(sql.Identifier(c) for c in column_names(registry, element_name))
    reset_identity = reset_identity_sql(registry, element_name)

    with psycopg.connect(dsn) as conn:
        with conn.cursor() as cur:
            copy_sql = sql.SQL("COPY {table} ({columns}) FROM STDIN WITH (FORMAT csv, HEADER TRUE)").format(
                table=table, columns=columns
            )
            with cur.copy(copy_sql) as copy:
                with csv_path.open("r", encoding="utf-8") as f:
                    for line in f:
                        copy.write(line)
            if reset_identity is not None:
                # Explicit keys were loaded; move the identity past them.
                cur.execute(reset_identity)
            conn.commit()
    return 0


@app.command()
def main(
    rows: int = typer.Option(
        31_465,
        "--rows",
        "-r",
        help="Number of rows to generate.",
    ),
    batch_size: int = typer.Option(
        10_000,
        "--batch-size",
        "-b",
        help="Batch size for CSV buffering during generation.",
    ),
    seed: int = typer.Option(
        42,
        "--seed",
        help="Deterministic RNG seed.",
    ),
    element: str = typer.Option(
        SALES_ORDER_HEADER_ELEMENT,
        "--element",
        "-e",
        help="Mapped element to create and fill.",
    ),
    output: Path | None = typer.Option(
        None,
        "--output",
        "-o",
        help="Optional CSV output path (if omitted, a temp file will be used).",
    ),
    dsn: str | None = typer.Option(
        None,
        "--dsn",
        help="Optional DSN override for Postgres.",
    ),
    no_load: bool = typer.Option(
        False,
        "--no-load",
        help="Only generate CSV; skip loading into Postgres.",
    ),
    truncate: bool = typer.Option(
        True,
        "--truncate/--append",
        help="Empty the table before loading.",
    ),
) -> None:
    """
    Generate synthetic rows and optionally load them into Postgres using COPY.
    """
    start = time.perf_counter()
    if output:
        csv_path = output
        csv_path.parent.mkdir(parents=True, exist_ok=True)
    else:
        tmpdir = Path(tempfile.mkdtemp(prefix="rawbencher_csv_"))
        csv_path = tmpdir / f"{element}.csv"

    typer.echo(f"Generating {rows:,} {element} rows -> {csv_path} (batch={batch_size}, seed={seed})")
    _generate_rows_csv(csv_path, rows=rows, batch_size=batch_size, seed=seed, element_name=element)
    gen_duration = time.perf_counter() - start
    typer.echo(
        f"CSV generation completed in {gen_duration:.2f}s ({rows / gen_duration:,.0f} rows/s)"
    )

    if no_load:
        typer.echo("Skipping load (no-load flag set).")
        return

    load_start = time.perf_counter()
    conn_dsn = _build_dsn(dsn)
    typer.echo("Creating table and loading CSV into Postgres via COPY...")
    _create_table(conn_dsn, element_name=element, truncate=truncate)
    _copy_into_db(conn_dsn, csv_path, element_name=element)
    load_duration = time.perf_counter() - load_start

    total_duration = time.perf_counter() - start
    typer.echo(
        f"Load completed in {load_duration:.2f}s. Total time {total_duration:.2f}s "
        f"({rows / total_duration:,.0f} rows/s overall)."
    )


if __name__ == "__main__":
    try:
        app()
    except KeyboardInterrupt:
        typer.echo("Cancelled by user.", err=True)
        sys.exit(130)
