"""
Orchestrator for running benchers, profiling set fetches, and persisting results.

Usage (example from CLI):
    from rawbencher.orchestrator import RunConfig, run_benchers

    results = run_benchers(RunConfig(bencher_names=["psycopg_tuple"], loop_amount=5))
    print(results)

Every bencher is constructed once and reused for all of its rounds (so caching
strategies can actually hit their cache), then closed. A round consists of a set
benchmark followed by an individual benchmark over the same key list.

Outputs are saved to `results/` by default:
- `results/latest.json` (last run)
- `results/run-<timestamp>.json` (timestamped archive)
"""

from __future__ import annotations

import gc
import json
import statistics
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence

from psycopg import sql

from rawbencher.benchers import asyncpg_raw, pooled_model, psycopg_cursor, psycopg_raw
from rawbencher.benchers.base import FAILED_ROW_COUNT, Bencher, describe
from rawbencher.config import get_settings
from rawbencher.domain.models import SALES_ORDER_HEADER_ELEMENT, SALES_ORDER_ID_FIELD
from rawbencher.infrastructure.db_factory import get_sync_connection
from rawbencher.mapping.provider import get_persistence_info
from rawbencher.utils.logging import get_logger
from rawbencher.utils.profiler import ProfileStats, profile_block

log = get_logger(__name__)

FAILURE_POLICIES = ("tolerant", "strict")


@dataclass
class RunConfig:
    """
    Parameters of one orchestrated run; None values fall back to settings.

    Attributes
    ----------
    bencher_names : iterable[str] | None
        Benchers to execute. None or ["all"] executes all available.
    individual_keys_amount : int | None
        Number of keys fetched individually per round.
    loop_amount : int | None
        Number of measured rounds per bencher.
    warmup : bool | None
        Whether to run one unmeasured round first.
    persist : bool
        Whether to write results to disk.
    results_dir : Path | str | None
        Directory to store JSON artifacts.
    keys : sequence[int] | None
        Explicit keys for individual fetches; skips reading them from the database.
    failure_policy : str
        "tolerant" records a failed round and continues, "strict" re-raises.
    """

    bencher_names: Optional[Iterable[str]] = None
    individual_keys_amount: Optional[int] = None
    loop_amount: Optional[int] = None
    warmup: Optional[bool] = None
    persist: bool = True
    results_dir: Path | str | None = None
    keys: Optional[Sequence[int]] = None
    failure_policy: str = "tolerant"


def _round_float(value: float, decimals: int = 2) -> float:
    """Round a float to specified decimal places for human-readable output."""
    return round(value, decimals)


def _aggregate(values: List[float], decimals: int = 2) -> Optional[dict]:
    """
    Statistical summary of per-round timings.

    The trimmed mean leaves out the fastest and the slowest round once there are at
    least three rounds; with fewer it equals the mean.
    """
    if not values:
        return None
    ordered = sorted(values)
    trimmed = ordered[1:-1] if len(ordered) >= 3 else ordered
    stats = {
        "mean": statistics.mean(values),
        "median": statistics.median(values),
        "stddev": statistics.stdev(values) if len(values) > 1 else 0.0,
        "min": ordered[0],
        "max": ordered[-1],
        "trimmed_mean": statistics.mean(trimmed),
    }
    return {k: _round_float(v, decimals) for k, v in stats.items()}


def _aggregate_rounds(rounds: List[dict], keys: Sequence[str]) -> dict:
    """Aggregate the successful rounds of one benchmark kind."""
    succeeded = [r for r in rounds if not r.get("error")]
    summary: dict = {
        "runs": len(rounds),
        "failed_runs": len(rounds) - len(succeeded),
        "rows": succeeded[-1]["rows"] if succeeded else 0,
        "verification_failed": any(r["rows"] == FAILED_ROW_COUNT for r in succeeded),
        "individual_runs": rounds,
    }
    for key in keys:
        summary[key] = _aggregate([r[key] for r in succeeded if r.get(key) is not None])
    peak_rss = [r["peak_rss_bytes"] for r in succeeded if r.get("peak_rss_bytes")]
    if peak_rss:
        summary["peak_rss_bytes"] = {
            "median": int(statistics.median(peak_rss)),
            "max": max(peak_rss),
        }
    return summary


def _tuple_bencher() -> Bencher:
    strategy = psycopg_raw.PsycopgTupleStrategy()
    return Bencher(strategy, strategy.key_retriever)


def _bencher_factories() -> Dict[str, Callable[[], Bencher]]:
    """Registry of available benchers: strategy plus the key retriever for its elements."""
    return {
        "psycopg_tuple": _tuple_bencher,
        "psycopg_server_cursor": lambda: Bencher(
            psycopg_cursor.PsycopgServerCursorStrategy(), psycopg_cursor.sales_order_id_of
        ),
        "pooled_model": lambda: Bencher(
            pooled_model.PooledModelStrategy(), pooled_model.sales_order_id_of
        ),
        "pooled_model_cached": lambda: Bencher(
            pooled_model.PooledModelStrategy(cache=True), pooled_model.sales_order_id_of
        ),
        "asyncpg_record": lambda: Bencher(
            asyncpg_raw.AsyncpgRecordStrategy(), asyncpg_raw.sales_order_id_of
        ),
    }


def available_benchers() -> List[str]:
    """List available bencher names."""
    return sorted(_bencher_factories().keys())


def _resolve_bencher(name: str) -> Bencher:
    factories = _bencher_factories()
    if name not in factories:
        raise ValueError(f"Unknown bencher '{name}'. Available: {', '.join(sorted(factories))}")
    return factories[name]()


def fetch_individual_keys(amount: int, dsn: Optional[str] = None) -> List[int]:
    """
    The first `amount` SalesOrderIDs in key order.
    """
    registry = get_persistence_info()
    element = registry.element(SALES_ORDER_HEADER_ELEMENT)
    key_column = registry.field(SALES_ORDER_HEADER_ELEMENT, SALES_ORDER_ID_FIELD).column_name
    query = sql.SQL("SELECT {key} FROM {table} ORDER BY {key} LIMIT %s").format(
        key=sql.Identifier(key_column),
        table=sql.Identifier(element.schema_name, element.physical_name),
    )
    with get_sync_connection(dsn) as conn:
        rows = conn.execute(query, (amount,)).fetchall()
    return [row[0] for row in rows]


def _persist_results(payload: dict, results_dir: Path) -> None:
    results_dir.mkdir(parents=True, exist_ok=True)
    latest_path = results_dir / "latest.json"
    timestamp = datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%SZ")
    archive_path = results_dir / f"run-{timestamp}.json"

    with latest_path.open("w", encoding="utf-8") as f:
        json.dump(payload, f, indent=2, sort_keys=True)
    with archive_path.open("w", encoding="utf-8") as f:
        json.dump(payload, f, indent=2, sort_keys=True)

    log.info("Results persisted", extra={"latest": str(latest_path), "archive": str(archive_path)})


def _merge_profile(result: dict, stats: ProfileStats) -> dict:
    """Attach profiler stats to a set benchmark round."""
    merged = dict(result)
    merged["peak_rss_bytes"] = stats.peak_rss_bytes
    merged["cpu_percent"] = _round_float(stats.cpu_percent, 1) if stats.cpu_percent else None
    merged["profile"] = {
        "label": stats.label,
        "duration_seconds": _round_float(stats.duration_seconds, 4),
        "peak_rss_bytes": stats.peak_rss_bytes,
    }
    return merged


def _failed_round(round_num: int, exc: Exception, failure_policy: str) -> dict:
    return {
        "round": round_num,
        "rows": 0,
        "error": str(exc),
        "error_type": type(exc).__name__,
        "failure_policy": failure_policy,
    }


def _set_round(bencher: Bencher, round_num: int) -> dict:
    gc.collect()
    with profile_block(f"{bencher.name}:set") as stats:
        result = bencher.perform_set_benchmark()
    round_result = {"round": round_num, **asdict(result)}
    round_result["rows"] = round_result.pop("rows_fetched")
    return _merge_profile(round_result, stats)


def _individual_round(bencher: Bencher, round_num: int, keys: Sequence[int]) -> dict:
    gc.collect()
    result = bencher.perform_individual_benchmark(keys)
    return {"round": round_num, "fetch_time_ms": result.fetch_time_ms, "rows": result.rows_fetched}


def _run_round(
    name: str,
    kind: str,
    run: Callable[[], dict],
    round_num: int,
    failure_policy: str,
) -> dict:
    try:
        result = run()
    except Exception as exc:  # noqa: BLE001 - failures are recorded per round in tolerant mode
        log.exception(
            f"[ROUND FAILED] {name} {kind}",
            extra={"bencher": name, "kind": kind, "round": round_num},
        )
        if failure_policy == "strict":
            raise
        return _failed_round(round_num, exc, failure_policy)
    if result["rows"] == FAILED_ROW_COUNT:
        log.warning(
            f"[VERIFICATION FAILED] {name} {kind}",
            extra={"bencher": name, "kind": kind, "round": round_num},
        )
    return result


def _warmup(bencher: Bencher, keys: Sequence[int]) -> None:
    log.info(f"[WARMUP] Starting warmup for {bencher.name}", extra={"bencher": bencher.name})
    try:
        bencher.perform_set_benchmark()
        bencher.perform_individual_benchmark(keys)
        log.info(f"[WARMUP] Completed warmup for {bencher.name}", extra={"bencher": bencher.name})
    except Exception as e:  # noqa: BLE001 - warmup failures are reported by the measured rounds
        log.warning(
            f"[WARMUP] Failed for {bencher.name}", extra={"bencher": bencher.name, "error": str(e)}
        )


def _run_bencher(
    name: str,
    keys: Sequence[int],
    loops: int,
    warmup: bool,
    failure_policy: str,
) -> dict:
    bencher = _resolve_bencher(name)
    try:
        info = describe(bencher)
        log.info(f"[BENCHER START] {info['framework']}", extra=info)
        if warmup:
            _warmup(bencher, keys)

        set_rounds: List[dict] = []
        individual_rounds: List[dict] = []
        for round_num in range(1, loops + 1):
            set_rounds.append(
                _run_round(name, "set", lambda: _set_round(bencher, round_num), round_num, failure_policy)
            )
            individual_rounds.append(
                _run_round(
                    name,
                    "individual",
                    lambda: _individual_round(bencher, round_num, keys),
                    round_num,
                    failure_policy,
                )
            )
            log.info(
                f"[ROUND {round_num}/{loops}] Completed {name}",
                extra={
                    "bencher": name,
                    "round": round_num,
                    "set_rows": set_rounds[-1].get("rows"),
                    "set_fetch_ms": set_rounds[-1].get("fetch_time_ms"),
                    "individual_rows": individual_rounds[-1].get("rows"),
                    "individual_fetch_ms": individual_rounds[-1].get("fetch_time_ms"),
                },
            )
    finally:
        bencher.close()

    result = {
        **info,
        "set": _aggregate_rounds(set_rounds, ("fetch_time_ms", "enumeration_time_ms")),
        "individual": _aggregate_rounds(individual_rounds, ("fetch_time_ms",)),
    }
    result["individual"]["keys"] = len(keys)
    log.info(f"[BENCHER COMPLETE] {name}", extra={"bencher": name})
    return result


def run_benchers(config: Optional[RunConfig] = None) -> List[dict]:
    """
    Run one or more benchers and optionally persist the aggregated results.

    Returns
    -------
    List[dict]
        One dictionary per bencher: framework metadata plus aggregated "set" and
        "individual" sections holding the per-round details.
    """
    config = config or RunConfig()
    if config.failure_policy not in FAILURE_POLICIES:
        raise ValueError(
            f"Unknown failure policy '{config.failure_policy}'. Use one of: {', '.join(FAILURE_POLICIES)}"
        )
    settings = get_settings()
    loops = settings.benchmark_loops if config.loop_amount is None else config.loop_amount
    warmup = settings.benchmark_warmup if config.warmup is None else config.warmup
    keys_amount = (
        settings.benchmark_individual_keys
        if config.individual_keys_amount is None
        else config.individual_keys_amount
    )
    if loops < 0 or keys_amount < 0:
        raise ValueError(f"Loop and key amounts must not be negative (loops={loops}, keys={keys_amount})")

    names = list(config.bencher_names) if config.bencher_names is not None else ["all"]
    if len(names) == 1 and names[0] == "all":
        names = available_benchers()
    for name in names:
        if name not in _bencher_factories():
            raise ValueError(f"Unknown bencher '{name}'. Available: {', '.join(available_benchers())}")

    keys = list(config.keys) if config.keys is not None else fetch_individual_keys(keys_amount)
    log.info(
        f"[ORCHESTRATOR START] {len(names)} bencher(s), {len(keys)} keys, {loops} round(s)",
        extra={"benchers": names, "keys": len(keys), "loops": loops, "warmup": warmup},
    )

    results: List[dict] = []
    for name in names:
        log.info(f"{'=' * 60}")
        log.info(f"[BENCHER] {name.upper()}", extra={"bencher": name})
        log.info(f"{'=' * 60}")
        results.append(_run_bencher(name, keys, loops, warmup, config.failure_policy))

    payload: Dict[str, Any] = {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "loops": loops,
        "keys": len(keys),
        "benchers": names,
        "results": results,
    }

    if config.persist:
        _persist_results(payload, Path(config.results_dir or settings.results_dir))

    log.info(
        f"[ORCHESTRATOR COMPLETE] {len(names)} bencher(s) executed",
        extra={"benchers": names, "total_benchers": len(names)},
    )

    return results


__all__ = [
    "RunConfig",
    "available_benchers",
    "fetch_individual_keys",
    "run_benchers",
]
