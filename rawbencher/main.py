from __future__ import annotations

import json
import sys
from typing import List, Optional

import typer

from rawbencher.config import get_settings
from rawbencher.mapping.provider import get_persistence_info
from rawbencher.orchestrator import RunConfig, available_benchers, run_benchers
from rawbencher.reporter import print_element_mappings, print_field_mappings, print_results
from rawbencher.utils.logging import configure_logging

app = typer.Typer(help="RawBencher: fetch benchmarks for Python data-access frameworks.")


@app.command()
def info() -> None:
    """
    Show effective configuration values.
    """
    settings = get_settings()
    typer.echo(
        f"DB={settings.db_user}@{settings.db_host}:{settings.db_port}/{settings.db_name} | "
        f"keys={settings.benchmark_individual_keys} loops={settings.benchmark_loops} "
        f"warmup={settings.benchmark_warmup} "
        f"pool=({settings.benchmark_pool_min_size},{settings.benchmark_pool_max_size})"
    )


@app.command(name="list")
def list_benchers() -> None:
    """
    List available benchers.
    """
    typer.echo("Available benchers: " + ", ".join(available_benchers()))


@app.command()
def run(
    bencher: List[str] = typer.Option(
        ["all"],
        "--bencher",
        "-b",
        help="Bencher to run; repeat for several (e.g. psycopg_tuple, pooled_model, all).",
    ),
    keys: Optional[int] = typer.Option(
        None,
        "--keys",
        "-k",
        help="Number of keys fetched individually per round (default from settings).",
    ),
    loops: Optional[int] = typer.Option(
        None,
        "--loops",
        "-l",
        help="Number of measured rounds per bencher (default from settings).",
    ),
    warmup: Optional[bool] = typer.Option(
        None,
        "--warmup/--no-warmup",
        help="Run one unmeasured round first (default from settings).",
    ),
    strict: bool = typer.Option(
        False,
        "--strict",
        help="Abort on the first failing round instead of recording it.",
    ),
    as_json: bool = typer.Option(
        False,
        "--json",
        help="Print the raw results as JSON instead of tables.",
    ),
) -> None:
    """
    Run benchers via orchestrator and persist results.
    """
    settings = get_settings()
    configure_logging(level=settings.log_level, json_logs=settings.log_json)

    try:
        results = run_benchers(
            RunConfig(
                bencher_names=bencher,
                individual_keys_amount=keys,
                loop_amount=loops,
                warmup=warmup,
                failure_policy="strict" if strict else "tolerant",
            )
        )
    except ValueError as exc:
        typer.echo(str(exc), err=True)
        raise typer.Exit(code=2) from exc

    if as_json:
        typer.echo(json.dumps(results, indent=2))
    else:
        print_results(results)


@app.command()
def mappings(
    element: Optional[str] = typer.Argument(
        None, help="Element to show fields for, e.g. SalesOrderHeaderEntity."
    ),
) -> None:
    """
    Show the entity mapping registry, or the field mappings of one element.
    """
    registry = get_persistence_info()
    if element is None:
        print_element_mappings(registry)
        return
    if element not in registry:
        typer.echo(f"Unknown element '{element}'.", err=True)
        raise typer.Exit(code=2)
    print_field_mappings(registry, element)


def main() -> None:
    try:
        app()
    except KeyboardInterrupt:
        typer.echo("Cancelled by user.", err=True)
        sys.exit(130)


if __name__ == "__main__":
    main()
