"""Unit tests for configuration loading."""

import pytest
from pydantic import ValidationError

from rentbook.services.config import Settings, get_settings, reset_settings


class TestSettings:
    """Tests for Settings and get_settings."""

    def test_defaults(self, monkeypatch, tmp_path):
        """Test defaults apply when nothing is configured."""
        monkeypatch.chdir(tmp_path)
        for name in ("DATABASE_URL", "RECORD_RETENTION_MONTHS", "MAX_ADMINS", "PAYMENT_DUE_DAY"):
            monkeypatch.delenv(name, raising=False)

        settings = Settings()

        assert settings.database_url == "sqlite:///./rentbook.db"
        assert settings.record_retention_months == 12
        assert settings.max_admins == 3
        assert settings.payment_due_day == 5

    def test_environment_overrides(self, monkeypatch, tmp_path):
        """Test environment variables override defaults."""
        monkeypatch.chdir(tmp_path)
        monkeypatch.setenv("DATABASE_URL", "sqlite:///./other.db")
        monkeypatch.setenv("RECORD_RETENTION_MONTHS", "6")

        settings = Settings()

        assert settings.database_url == "sqlite:///./other.db"
        assert settings.record_retention_months == 6

    def test_reads_env_file(self, monkeypatch, tmp_path):
        """Test values are read from .env in the working directory."""
        monkeypatch.chdir(tmp_path)
        monkeypatch.delenv("MAX_ADMINS", raising=False)
        (tmp_path / ".env").write_text("MAX_ADMINS=5\n")

        assert Settings().max_admins == 5

    def test_payment_due_day_bounds(self, monkeypatch, tmp_path):
        """Test out-of-range due day is rejected."""
        monkeypatch.chdir(tmp_path)
        monkeypatch.setenv("PAYMENT_DUE_DAY", "31")

        with pytest.raises(ValidationError):
            Settings()

    def test_empty_database_url_rejected(self, monkeypatch, tmp_path):
        """Test that an empty DATABASE_URL raises ValueError with clear message."""
        monkeypatch.chdir(tmp_path)
        monkeypatch.setenv("DATABASE_URL", "")

        with pytest.raises(ValueError, match="DATABASE_URL environment variable is required"):
            get_settings()

    def test_get_settings_is_cached(self, monkeypatch, tmp_path):
        """Test get_settings returns the same instance until reset."""
        monkeypatch.chdir(tmp_path)

        first = get_settings()
        assert get_settings() is first

        reset_settings()
        assert get_settings() is not first
