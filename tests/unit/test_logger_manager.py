"""
Unit tests for bridge_logging/logger_manager.py.

Log output is redirected into pytest's tmp_path; tests verify file placement,
handler de-duplication, JSON structure with correlation fields and the
module folder layout.
"""

from __future__ import annotations

import json
import logging

import pytest

from bridge_logging import logger_manager
from bridge_logging.logger_manager import (
    HumanReadableFormatter,
    JSONFormatter,
    create_module_log_directories,
    setup_module_logger,
)


@pytest.fixture(autouse=True)
def isolated_log_dir(tmp_path, monkeypatch):
    monkeypatch.setattr(logger_manager, "_LOG_DIR", str(tmp_path))
    monkeypatch.setattr(logger_manager, "_logger_cache", {})
    yield tmp_path


def _record(msg="Quotes fetched", **extra):
    record = logging.LogRecord(
        name="quote_aggregator",
        level=logging.INFO,
        pathname=__file__,
        lineno=10,
        msg=msg,
        args=(),
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


# ---------------------------------------------------------------------------
# A. Logger factory tests
# ---------------------------------------------------------------------------


class TestSetupModuleLogger:
    def test_writes_into_module_folder(self, isolated_log_dir):
        logger = setup_module_logger("test_gas_a", "gas.log", module_folder="Gas_Logs")
        logger.info("Gas estimated: %s", "0x5208")
        for handler in logger.handlers:
            handler.flush()

        log_file = isolated_log_dir / "Gas_Logs" / "gas.log"
        assert "Gas estimated: 0x5208" in log_file.read_text()

    def test_cached_logger_returned(self):
        first = setup_module_logger("test_cache_b", "b.log")
        second = setup_module_logger("test_cache_b", "b.log")
        assert first is second
        assert len(first.handlers) == 1

    def test_console_adds_stream_handler(self):
        logger = setup_module_logger("test_console_c", "c.log", console=True)
        assert any(type(h) is logging.StreamHandler for h in logger.handlers)

    def test_does_not_propagate(self):
        assert setup_module_logger("test_propagate_d", "d.log").propagate is False

    def test_json_formatter_option(self):
        logger = setup_module_logger("test_json_e", "e.log", use_json_formatter=True)
        assert isinstance(logger.handlers[0].formatter, JSONFormatter)


# ---------------------------------------------------------------------------
# B. Formatter tests
# ---------------------------------------------------------------------------


class TestFormatters:
    def test_json_includes_correlation_fields(self):
        entry = json.loads(JSONFormatter().format(_record(sequence=7, error_code="quotes_expired")))

        assert entry["message"] == "Quotes fetched"
        assert entry["level"] == "INFO"
        assert entry["sequence"] == 7
        assert entry["error_code"] == "quotes_expired"
        assert "chain_id" not in entry

    def test_human_readable_format(self):
        line = HumanReadableFormatter().format(_record())
        assert "| INFO" in line
        assert "quote_aggregator" in line
        assert line.endswith("Quotes fetched")


# ---------------------------------------------------------------------------
# C. Directory layout tests
# ---------------------------------------------------------------------------


class TestLogDirectories:
    def test_creates_configured_folders(self, isolated_log_dir):
        created = create_module_log_directories()

        assert "quote_aggregator" in created
        assert (isolated_log_dir / "Quote_Aggregator_Logs").is_dir()
        assert (isolated_log_dir / "Bridge_Api_Logs").is_dir()
