import csv
from pathlib import Path
from time import sleep

from rawbencher import config
from rawbencher.domain.models import SalesOrderHeader
from rawbencher.orchestrator import available_benchers
from rawbencher.utils import profiler
from scripts import generate_data

SALES_ORDER_HEADER_COLUMNS = 26


def test_get_settings_defaults():
    settings = config.get_settings()
    assert settings.db_host == "localhost"
    assert settings.db_port == 5432
    assert settings.db_user == "postgres"
    assert settings.db_name == "adventureworks"
    assert settings.benchmark_individual_keys > 0
    assert settings.benchmark_loops > 0
    assert settings.benchmark_pool_min_size <= settings.benchmark_pool_max_size


def test_settings_read_environment(monkeypatch):
    monkeypatch.setenv("BENCHMARK_LOOPS", "3")
    monkeypatch.setenv("BENCHMARK_WARMUP", "false")

    settings = config.Settings()

    assert settings.benchmark_loops == 3
    assert settings.benchmark_warmup is False


def test_profile_block_measures_time():
    with profiler.profile_block("sleep") as stats:
        sleep(0.05)
    assert stats.duration_seconds >= 0.05
    assert stats.peak_rss_bytes is None or stats.peak_rss_bytes > 0
    if stats.cpu_percent is not None:
        assert isinstance(stats.cpu_percent, float)


def test_available_benchers_contains_known_entries():
    names = available_benchers()
    assert "psycopg_tuple" in names
    assert isinstance(names, list)
    assert len(names) >= 1


def test_generate_data_writes_csv(tmp_path: Path):
    csv_path = tmp_path / "sales_order_header.csv"
    # Generate a tiny dataset without loading into DB
    generate_data._generate_rows_csv(csv_path, rows=5, batch_size=2, seed=123)
    assert csv_path.exists()
    with csv_path.open("r", newline="", encoding="utf-8") as f:
        rows = list(csv.reader(f))
    # header + 5 rows = 6 lines
    assert len(rows) == 6
    header = rows[0]
    assert len(header) == SALES_ORDER_HEADER_COLUMNS
    assert header[0] == "AccountNumber"
    key_index = header.index("SalesOrderID")
    assert [row[key_index] for row in rows[1:]] == ["1", "2", "3", "4", "5"]


def test_generate_data_is_deterministic(tmp_path: Path):
    first, second = tmp_path / "a.csv", tmp_path / "b.csv"
    generate_data._generate_rows_csv(first, rows=20, batch_size=7, seed=7)
    generate_data._generate_rows_csv(second, rows=20, batch_size=20, seed=7)
    assert first.read_text(encoding="utf-8") == second.read_text(encoding="utf-8")


def test_generated_rows_validate_as_domain_models(tmp_path: Path):
    csv_path = tmp_path / "sales_order_header.csv"
    generate_data._generate_rows_csv(csv_path, rows=25, batch_size=10, seed=1)
    with csv_path.open("r", newline="", encoding="utf-8") as f:
        for row in csv.DictReader(f):
            values = {k: v for k, v in row.items() if v != ""}
            values["OnlineOrderFlag"] = values["OnlineOrderFlag"] == "t"
            model = SalesOrderHeader.model_validate(values)
            assert model.sales_order_id > 0
