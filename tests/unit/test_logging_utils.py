"""Unit tests for redcaplake.utils.logging_utils."""

from __future__ import annotations

import logging

import pytest

from redcaplake.utils.logging_utils import (
    RunContextAdapter,
    configure_logging,
    get_logger,
    get_run_logger,
)


@pytest.fixture
def restore_logging():
    """Undo configure_logging side effects on the redcaplake and root loggers."""
    package_logger = logging.getLogger("redcaplake")
    root = logging.getLogger()
    saved = (
        list(package_logger.handlers), package_logger.level, package_logger.propagate,
        list(root.handlers), root.level,
    )
    yield
    for handler in package_logger.handlers + root.handlers:
        if handler not in saved[0] and handler not in saved[3]:
            handler.close()
    package_logger.handlers[:] = saved[0]
    package_logger.setLevel(saved[1])
    package_logger.propagate = saved[2]
    root.handlers[:] = saved[3]
    root.setLevel(saved[4])


class TestGetLogger:
    def test_namespaced_under_package(self):
        assert get_logger("extract.eav_export").name == "redcaplake.extract.eav_export"

    def test_full_name_kept(self):
        assert get_logger("redcaplake.ingest").name == "redcaplake.ingest"


class TestRunContextAdapter:
    def test_prefixes_run_id(self):
        adapter = get_run_logger("ingest", "20240301_090000_apcc")
        msg, kwargs = adapter.process("Exporting records", {})

        assert isinstance(adapter, RunContextAdapter)
        assert msg == "[20240301_090000_apcc] Exporting records"
        assert kwargs == {}

    def test_unknown_run_id(self):
        adapter = RunContextAdapter(logging.getLogger("redcaplake.test"), {})
        assert adapter.process("x", {})[0] == "[unknown] x"


class TestConfigureLogging:
    def test_yaml_config_applies_level_override(self, restore_logging):
        configure_logging(log_level="debug")

        package_logger = logging.getLogger("redcaplake")
        assert package_logger.level == logging.DEBUG
        assert not package_logger.propagate
        assert not any(isinstance(h, logging.FileHandler) for h in package_logger.handlers)

    def test_log_file_created_and_written(self, tmp_path, restore_logging):
        log_file = tmp_path / "logs" / "run.log"
        configure_logging(log_level="INFO", log_file=str(log_file))

        logging.getLogger("redcaplake.test").info("hello lake")
        for handler in logging.getLogger("redcaplake").handlers:
            handler.flush()

        assert "hello lake" in log_file.read_text(encoding="utf-8")

    def test_missing_yaml_falls_back_to_basic_config(self, tmp_path, restore_logging):
        logging.getLogger().handlers[:] = []
        configure_logging(config_path=str(tmp_path / "missing.yaml"), log_level="WARNING")

        assert logging.getLogger().level == logging.WARNING
        assert logging.getLogger().handlers
