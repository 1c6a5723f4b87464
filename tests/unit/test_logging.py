from __future__ import annotations

import json
import logging

import pytest

from rawbencher.utils.logging import JsonFormatter, _json_formatter, configure_logging

EXPECTED_ROWS = 10
EXPECTED_KEYS = 100


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


def test_json_formatter_promotes_standard_extra_fields() -> None:
    record = logging.LogRecord(
        name="test.logger",
        level=logging.INFO,
        pathname=__file__,
        lineno=1,
        msg="hello",
        args=(),
        exc_info=None,
    )
    record.rows = EXPECTED_ROWS
    record.bencher = "psycopg_tuple"

    payload = json.loads(_json_formatter(record))

    assert payload["level"] == "INFO"
    assert payload["logger"] == "test.logger"
    assert payload["message"] == "hello"
    assert payload["rows"] == EXPECTED_ROWS
    assert payload["bencher"] == "psycopg_tuple"


def test_json_formatter_supports_legacy_nested_extra_field() -> None:
    record = logging.LogRecord(
        name="test.logger",
        level=logging.INFO,
        pathname=__file__,
        lineno=1,
        msg="hello",
        args=(),
        exc_info=None,
    )
    record.extra = {"keys": EXPECTED_KEYS}

    payload = json.loads(_json_formatter(record))

    assert payload["keys"] == EXPECTED_KEYS


def test_configure_logging_quiets_driver_loggers(restore_root_logger) -> None:
    configure_logging(level="DEBUG", json_logs=True)

    assert logging.getLogger().level == logging.DEBUG
    assert logging.getLogger("psycopg.pool").level == logging.WARNING
    assert isinstance(logging.getLogger().handlers[0].formatter, JsonFormatter)


def test_configure_logging_without_force_keeps_existing_setup(restore_root_logger) -> None:
    configure_logging(level="INFO")
    handler = logging.getLogger().handlers[0]

    configure_logging(level="DEBUG", force=False)

    assert logging.getLogger().handlers[0] is handler
    assert logging.getLogger().level == logging.INFO
