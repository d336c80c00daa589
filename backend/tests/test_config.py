"""
LMS Backend — Settings Tests
=============================
"""

import pytest
from pydantic import ValidationError

from lms.config import Settings


class TestSettings:
    def test_defaults_to_production(self, monkeypatch):
        monkeypatch.delenv("ENVIRONMENT", raising=False)
        settings = Settings(_env_file=None)
        assert settings.environment == "production"
        assert settings.debug is False

    def test_development_enables_debug(self):
        assert Settings(_env_file=None, environment="Development").debug is True

    def test_unknown_environment_rejected(self):
        with pytest.raises(ValidationError):
            Settings(_env_file=None, environment="staging")

    def test_log_level_normalized(self):
        assert Settings(_env_file=None, log_level="debug").log_level == "DEBUG"

    def test_cors_origins_split(self):
        settings = Settings(_env_file=None, cors_origins="http://a.edu, http://b.edu,")
        assert settings.cors_origins_list == ["http://a.edu", "http://b.edu"]

    def test_production_rejects_default_credentials(self):
        settings = Settings(
            _env_file=None,
            environment="production",
            database_url="postgresql+asyncpg://lms:lms_secret@db:5432/lms",
        )
        with pytest.raises(ValueError, match="DATABASE_URL"):
            settings.validate_required_for_production()

    def test_production_with_real_settings_passes(self):
        Settings(
            _env_file=None,
            environment="production",
            database_url="postgresql+asyncpg://lms:s3cure@db:5432/lms",
            cors_origins="https://lms.uni.edu",
        ).validate_required_for_production()
