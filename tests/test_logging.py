"""
Tests for process-wide logging setup.
"""

import logging
import logging.handlers
from pathlib import Path

from click.testing import CliRunner

from hostprep.core.observability.logging_config import (
    _parse_level,
    log_invocation,
    setup_logging,
)
from hostprep.main import cli


def _close_file_handlers():
    for handler in logging.getLogger().handlers:
        if isinstance(handler, logging.FileHandler):
            handler.close()


class TestParseLevel:
    def test_names(self):
        assert _parse_level("debug") == logging.DEBUG
        assert _parse_level("ERROR") == logging.ERROR

    def test_fallback(self):
        assert _parse_level(None) == logging.WARNING
        assert _parse_level("") == logging.WARNING
        assert _parse_level("chatty") == logging.WARNING


class TestSetupLogging:
    def test_console_only(self):
        setup_logging("INFO")
        root = logging.getLogger()
        assert root.level == logging.INFO
        assert len(root.handlers) == 1
        assert root.handlers[0].level == logging.INFO

    def test_repeat_setup_replaces_handlers(self):
        setup_logging("INFO")
        setup_logging("ERROR")
        assert len(logging.getLogger().handlers) == 1

    def test_rotating_file(self, tmp_path: Path):
        log_file = tmp_path / "hostprep.log"
        setup_logging("WARNING", log_file=str(log_file), log_file_level="DEBUG")
        try:
            root = logging.getLogger()
            files = [h for h in root.handlers if isinstance(h, logging.handlers.RotatingFileHandler)]
            assert len(files) == 1
            assert files[0].maxBytes == 10 * 1024 * 1024
            assert files[0].backupCount == 5
            assert root.level == logging.DEBUG

            logging.getLogger("hostprep.test").debug("[ENV] written to file")
            files[0].flush()
            assert "[ENV] written to file" in log_file.read_text(encoding="utf-8")
        finally:
            _close_file_handlers()


class TestCLILogging:
    def test_debug_flag(self, monkeypatch):
        monkeypatch.delenv("HOSTPREP_LOG_LEVEL", raising=False)
        CliRunner().invoke(cli, ["--debug", "config", "list", "--json"])
        assert logging.getLogger().level == logging.DEBUG

    def test_env_level(self, monkeypatch):
        monkeypatch.setenv("HOSTPREP_LOG_LEVEL", "ERROR")
        CliRunner().invoke(cli, ["config", "list", "--json"])
        assert logging.getLogger().level == logging.ERROR

    def test_env_log_file(self, monkeypatch, tmp_path: Path):
        log_file = tmp_path / "cli.log"
        monkeypatch.setenv("HOSTPREP_LOG_FILE", str(log_file))
        try:
            CliRunner().invoke(cli, ["config", "list", "--json"])
            assert log_file.exists()
        finally:
            _close_file_handlers()

    def test_invocation_is_logged_to_file(self, monkeypatch, tmp_path: Path):
        log_file = tmp_path / "cli.log"
        monkeypatch.setenv("HOSTPREP_LOG_FILE", str(log_file))
        monkeypatch.setenv("HOSTPREP_LOG_FILE_LEVEL", "INFO")
        try:
            CliRunner().invoke(cli, ["config", "list", "--json"])
            for handler in logging.getLogger().handlers:
                handler.flush()
            assert "hostprep started with" in log_file.read_text(encoding="utf-8")
        finally:
            _close_file_handlers()


class TestLogInvocation:
    def test_records_arguments(self, caplog):
        with caplog.at_level(logging.INFO, logger="hostprep"):
            log_invocation(["hostprep", "run", "-m", "Qwen/Qwen3-0.6B"])
        assert "4 argument(s): hostprep run -m Qwen/Qwen3-0.6B" in caplog.text
