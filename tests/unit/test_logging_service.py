"""Tests for logging configuration."""

import logging
from types import SimpleNamespace
from unittest.mock import patch

import pytest

from src.services.logging import QUIET_LOGGERS, get_log_level, setup_server_logging


@pytest.mark.unit
class TestLogLevel:
    """LOG_LEVEL parsing."""

    @pytest.mark.parametrize(
        "value,expected",
        [("DEBUG", logging.DEBUG), ("warning", logging.WARNING), ("verbose", logging.INFO)],
    )
    def test_get_log_level(self, value, expected):
        with patch.dict("os.environ", {"LOG_LEVEL": value}):
            assert get_log_level() == expected


@pytest.mark.unit
class TestServerLogging:
    """setup_server_logging wiring."""

    def setup_method(self):
        """Save root logger state before each test."""
        self.root_logger = logging.getLogger()
        self.original_handlers = self.root_logger.handlers.copy()
        self.original_level = self.root_logger.level
        self.quiet_levels = {name: logging.getLogger(name).level for name in QUIET_LOGGERS}

    def teardown_method(self):
        """Restore root logger state after each test."""
        for handler in self.root_logger.handlers[:]:
            handler.close()
            self.root_logger.removeHandler(handler)
        for handler in self.original_handlers:
            self.root_logger.addHandler(handler)
        self.root_logger.setLevel(self.original_level)
        for name, level in self.quiet_levels.items():
            logging.getLogger(name).setLevel(level)

    def test_stdout_and_file_handlers(self, tmp_path):
        log_file = tmp_path / "nested" / "server.log"

        setup_server_logging(str(log_file))

        assert log_file.parent.exists()
        assert len(self.root_logger.handlers) == 2
        assert any(isinstance(h, logging.FileHandler) for h in self.root_logger.handlers)

    def test_calling_twice_does_not_duplicate(self, tmp_path):
        log_file = tmp_path / "server.log"

        setup_server_logging(str(log_file))
        setup_server_logging(str(log_file))

        assert len(self.root_logger.handlers) == 2

    def test_line_format(self, tmp_path):
        log_file = tmp_path / "server.log"
        with patch.dict("os.environ", {"LOG_LEVEL": "INFO"}):
            setup_server_logging(str(log_file))

        logging.getLogger("src.services.balance_service").info("Applied payment: lease_id=1")

        contents = log_file.read_text()
        assert "src.services.balance_service - INFO - Applied payment: lease_id=1" in contents
        assert contents.startswith("[20")

    def test_debug_level_applies_to_handlers(self, tmp_path):
        with patch.dict("os.environ", {"LOG_LEVEL": "DEBUG"}):
            setup_server_logging(str(tmp_path / "server.log"))

        assert self.root_logger.level == logging.DEBUG
        assert all(h.level == logging.DEBUG for h in self.root_logger.handlers)

    def test_chatty_libraries_capped_at_warning(self, tmp_path):
        with patch.dict("os.environ", {"LOG_LEVEL": "DEBUG"}):
            setup_server_logging(str(tmp_path / "server.log"))

        for name in QUIET_LOGGERS:
            assert logging.getLogger(name).level == logging.WARNING

    def test_default_file_comes_from_settings(self, tmp_path):
        settings = SimpleNamespace(log_level="INFO", log_file=str(tmp_path / "ledger" / "api.log"))
        with patch("src.services.logging.get_settings", return_value=settings):
            setup_server_logging()

        logging.getLogger("src.api.rentals").warning("ledger line")

        assert "ledger line" in (tmp_path / "ledger" / "api.log").read_text()


@pytest.mark.unit
def test_level_falls_back_to_settings(monkeypatch):
    monkeypatch.delenv("LOG_LEVEL", raising=False)
    settings = SimpleNamespace(log_level="error", log_file="logs/server.log")

    with patch("src.services.logging.get_settings", return_value=settings):
        assert get_log_level() == logging.ERROR
