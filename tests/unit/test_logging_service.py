"""Tests for logging service configuration."""

import logging
from pathlib import Path
from unittest.mock import patch

from rentbook.services.logging import get_log_level, setup_logging


class TestSetupLogging:
    """Test logging configuration."""

    def setup_method(self):
        """Save original handlers before each test."""
        self.root_logger = logging.getLogger()
        self.original_handlers = self.root_logger.handlers.copy()
        self.original_level = self.root_logger.level

    def teardown_method(self):
        """Restore original handlers after each test."""
        for handler in self.root_logger.handlers[:]:
            handler.close()
            self.root_logger.removeHandler(handler)
        for handler in self.original_handlers:
            self.root_logger.addHandler(handler)
        self.root_logger.setLevel(self.original_level)

    def test_creates_log_directory(self, tmp_path) -> None:
        """Verify setup_logging creates the logs directory if missing."""
        log_file = tmp_path / "test_logs" / "rentbook.log"
        assert not log_file.parent.exists()

        setup_logging(str(log_file))

        assert log_file.parent.exists()

    def test_creates_stdout_and_file_handlers(self, tmp_path) -> None:
        """Verify setup_logging replaces handlers with stdout + file."""
        setup_logging(str(tmp_path / "rentbook.log"))

        assert len(self.root_logger.handlers) == 2
        assert any(isinstance(h, logging.FileHandler) for h in self.root_logger.handlers)

    def test_level_from_environment(self, tmp_path) -> None:
        """Verify LOG_LEVEL sets root and handler levels."""
        with patch.dict("os.environ", {"LOG_LEVEL": "WARNING"}, clear=False):
            setup_logging(str(tmp_path / "rentbook.log"))

        assert self.root_logger.level == logging.WARNING
        for handler in self.root_logger.handlers:
            assert handler.level == logging.WARNING

    def test_unknown_level_falls_back_to_info(self) -> None:
        """Verify an unknown LOG_LEVEL value means INFO."""
        with patch.dict("os.environ", {"LOG_LEVEL": "CHATTY"}, clear=False):
            assert get_log_level() == logging.INFO

    def test_writes_to_file(self, tmp_path) -> None:
        """Verify service loggers write to the log file."""
        log_file = tmp_path / "rentbook.log"

        with patch.dict("os.environ", {"LOG_LEVEL": "INFO"}, clear=False):
            logger = setup_logging(str(log_file))
        logging.getLogger("rentbook.services.billing_service").info("Bills for 2024-01 generated")
        for handler in self.root_logger.handlers:
            handler.flush()

        assert logger.name == "rentbook"
        assert "Bills for 2024-01 generated" in Path(log_file).read_text()

    def test_sqlalchemy_loggers_quiet_by_default(self, tmp_path) -> None:
        """Verify SQL logging stays at WARNING unless LOG_LEVEL is DEBUG."""
        with patch.dict("os.environ", {"LOG_LEVEL": "INFO"}, clear=False):
            setup_logging(str(tmp_path / "rentbook.log"))
        assert logging.getLogger("sqlalchemy.engine").level == logging.WARNING

        with patch.dict("os.environ", {"LOG_LEVEL": "DEBUG"}, clear=False):
            setup_logging(str(tmp_path / "rentbook.log"))
        assert logging.getLogger("sqlalchemy.engine").level == logging.DEBUG
