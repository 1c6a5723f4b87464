from __future__ import annotations

from typing import Any, Dict, List, Optional

from rich import box
from rich.console import Console
from rich.table import Table

from rawbencher.mapping.registry import MappingRegistry


def _flag(value: bool) -> str:
    return "[green]yes[/green]" if value else "[dim]no[/dim]"


def _timing(stats: Optional[Dict[str, float]]) -> str:
    if not stats:
        return "N/A"
    return f"{stats['trimmed_mean']:,.2f} ± {stats['stddev']:,.2f}"


def _rows(section: Dict[str, Any]) -> str:
    if section.get("verification_failed"):
        return "[bold red]FAILED[/bold red]"
    rows = f"{section.get('rows', 0):,}"
    if section.get("failed_runs"):
        rows += f" [red]({section['failed_runs']} failed)[/red]"
    return rows


def _sort_key(section: str):
    def key(result: Dict[str, Any]) -> float:
        stats = result[section].get("fetch_time_ms")
        if not stats:
            return float("inf")
        total = stats["trimmed_mean"]
        enumeration = result[section].get("enumeration_time_ms")
        if enumeration:
            total += enumeration["trimmed_mean"]
        return total

    return key


def print_results(results: List[Dict[str, Any]], console: Optional[Console] = None) -> None:
    """
    Render bench results as two rich tables: set fetches and individual fetches.

    Timings are trimmed means (fastest and slowest round left out) ± stddev, fastest first.
    """
    console = console or Console()

    if not results:
        console.print("[yellow]No results to display.[/yellow]")
        return

    set_table = Table(
        title="Set fetches",
        box=box.ROUNDED,
        caption="Trimmed mean ± stddev in ms, sorted by fetch + enumeration time",
    )
    set_table.add_column("Framework", style="cyan")
    set_table.add_column("Caching", justify="center")
    set_table.add_column("Change tracking", justify="center")
    set_table.add_column("Fetch (ms)", justify="right", style="green")
    set_table.add_column("Enumeration (ms)", justify="right", style="green")
    set_table.add_column("Rows", justify="right", style="magenta")
    set_table.add_column("Peak Memory (MB)", justify="right", style="yellow")

    for res in sorted(results, key=_sort_key("set")):
        section = res["set"]
        mem_str = "N/A"
        if section.get("peak_rss_bytes"):
            mem_str = f"{section['peak_rss_bytes']['median'] / (1024 * 1024):.2f}"
        set_table.add_row(
            res.get("framework", res.get("bencher", "Unknown")),
            _flag(res.get("uses_caching", False)),
            _flag(res.get("uses_change_tracking", False)),
            _timing(section.get("fetch_time_ms")),
            _timing(section.get("enumeration_time_ms")),
            _rows(section),
            mem_str,
        )

    individual_table = Table(
        title="Individual fetches",
        box=box.ROUNDED,
        caption="Trimmed mean ± stddev in ms for all keys, sorted by fetch time",
    )
    individual_table.add_column("Framework", style="cyan")
    individual_table.add_column("Caching", justify="center")
    individual_table.add_column("Change tracking", justify="center")
    individual_table.add_column("Keys", justify="right", style="blue")
    individual_table.add_column("Fetch (ms)", justify="right", style="green")
    individual_table.add_column("Per key (ms)", justify="right", style="bold green")
    individual_table.add_column("Rows", justify="right", style="magenta")

    for res in sorted(results, key=_sort_key("individual")):
        section = res["individual"]
        keys = section.get("keys", 0)
        stats = section.get("fetch_time_ms")
        per_key = f"{stats['trimmed_mean'] / keys:,.3f}" if stats and keys else "N/A"
        individual_table.add_row(
            res.get("framework", res.get("bencher", "Unknown")),
            _flag(res.get("uses_caching", False)),
            _flag(res.get("uses_change_tracking", False)),
            f"{keys:,}",
            _timing(stats),
            per_key,
            _rows(section),
        )

    console.print(set_table)
    console.print(individual_table)


def print_element_mappings(registry: MappingRegistry, console: Optional[Console] = None) -> None:
    """List every element with its physical target."""
    console = console or Console()
    table = Table(title=f"Element mappings ({len(registry)})", box=box.ROUNDED)
    table.add_column("Element", style="cyan", no_wrap=True)
    table.add_column("Catalog")
    table.add_column("Target", style="green")
    table.add_column("Fields", justify="right", style="magenta")
    table.add_column("Version", justify="right")

    for element in registry:
        table.add_row(
            element.name,
            element.catalog,
            element.qualified_name,
            str(element.field_count),
            "" if element.version is None else str(element.version),
        )
    console.print(table)


def print_field_mappings(
    registry: MappingRegistry, element_name: str, console: Optional[Console] = None
) -> None:
    """List the fields of one element in ordinal order."""
    console = console or Console()
    element = registry.element(element_name)
    table = Table(
        title=f"{element.name} → {element.catalog}.{element.qualified_name}",
        box=box.ROUNDED,
    )
    table.add_column("#", justify="right", style="dim")
    table.add_column("Field", style="cyan", no_wrap=True)
    table.add_column("Column", style="green")
    table.add_column("Type")
    table.add_column("Size", justify="right")
    table.add_column("Nullable", justify="center")
    table.add_column("Identity", style="yellow")
    table.add_column("Value type", style="magenta")

    for field in registry.fields(element_name):
        if field.is_max_length:
            size = "max"
        elif field.length:
            size = str(field.length)
        elif field.precision:
            size = f"{field.precision},{field.scale}"
        else:
            size = ""
        table.add_row(
            str(field.ordinal),
            field.field_name,
            field.column_name,
            field.db_type,
            size,
            _flag(field.is_nullable),
            field.identity_expression if field.is_identity else "",
            field.value_type.value,
        )
    console.print(table)
