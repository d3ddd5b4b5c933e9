"""Tests for the rentbook-init-config CLI."""

import logging
from datetime import date

import pytest
from sqlalchemy.orm import Session

from rentbook.cli.init_config import main, parse_billing_month
from rentbook.services.db import create_db_engine
from rentbook.services.settings_service import SettingsService


class TestInitConfig:
    """CLI runs against a temporary SQLite database."""

    def setup_method(self):
        self.root_logger = logging.getLogger()
        self.original_handlers = self.root_logger.handlers.copy()

    def teardown_method(self):
        for handler in self.root_logger.handlers[:]:
            handler.close()
            self.root_logger.removeHandler(handler)
        for handler in self.original_handlers:
            self.root_logger.addHandler(handler)

    @pytest.fixture
    def database_url(self, monkeypatch, tmp_path):
        monkeypatch.chdir(tmp_path)
        url = f"sqlite:///{tmp_path / 'rentbook.db'}"
        monkeypatch.setenv("DATABASE_URL", url)
        monkeypatch.setenv("LOG_FILE", str(tmp_path / "logs" / "rentbook.log"))
        return url

    def stored_settings(self, url):
        engine = create_db_engine(url)
        with Session(engine) as db:
            settings = SettingsService(db).get_global_settings()
            return settings.current_billing_month, settings.next_billing_month

    def test_creates_base_configuration(self, database_url):
        assert main(["--billing-month", "2024-03"]) == 0

        assert self.stored_settings(database_url) == (date(2024, 2, 1), date(2024, 3, 1))

    def test_second_run_keeps_existing(self, database_url):
        main(["--billing-month", "2024-03"])

        assert main(["--billing-month", "2025-01"]) == 0
        assert self.stored_settings(database_url)[1] == date(2024, 3, 1)

    def test_parse_billing_month(self):
        assert parse_billing_month("2024-11") == date(2024, 11, 1)

    def test_invalid_billing_month(self, database_url):
        with pytest.raises(SystemExit):
            main(["--billing-month", "March"])
