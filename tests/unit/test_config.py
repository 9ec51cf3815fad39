"""Unit tests for application settings."""

import pytest
from pydantic import ValidationError

from cost_dashboard import config
from cost_dashboard.config import Settings, get_settings
from cost_dashboard.models import StorageBackend


@pytest.fixture
def clean_env(monkeypatch, tmp_path):
    """Isolate settings from the caller's environment and .env file."""
    for name in (
        "LOG_LEVEL",
        "ENVIRONMENT",
        "ENV",
        "FILTER_STORAGE_BACKEND",
        "FILTER_STORAGE_FILE",
        "FILTER_STORAGE_KEY",
        "FILTER_STORAGE_VERSION",
        "DEFAULT_RESOURCE_COST",
        "REDIS_URL",
        "AWS_REGION",
        "AWS_DEFAULT_REGION",
        "CLOUDWATCH_ENABLED",
    ):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)


class TestSettings:
    """Test loading settings."""

    def test_defaults(self, clean_env):
        s = Settings()

        assert s.log_level == "INFO"
        assert s.environment == "development"
        assert s.storage_backend == StorageBackend.FILE
        assert s.filter_storage_key == "tracer-ec2-dashboard-filters"
        assert s.filter_storage_version == "1.0"
        assert s.default_resource_cost == 50.0
        assert s.cloudwatch_enabled is False
        assert s.cloudwatch_log_stream is None

    def test_environment_variables(self, clean_env, test_env, monkeypatch):
        monkeypatch.setenv("DEFAULT_RESOURCE_COST", "12.5")
        monkeypatch.setenv("FILTER_STORAGE_VERSION", "2.0")

        s = get_settings()

        assert s.log_level == "DEBUG"
        assert s.environment == "test"
        assert s.storage_backend == StorageBackend.MEMORY
        assert s.default_resource_cost == 12.5
        assert s.filter_storage_version == "2.0"

    def test_alias_choices(self, clean_env, monkeypatch):
        monkeypatch.setenv("ENV", "production")
        monkeypatch.setenv("AWS_DEFAULT_REGION", "eu-west-1")

        s = Settings()

        assert s.environment == "production"
        assert s.aws_region == "eu-west-1"

    def test_dotenv_file(self, clean_env, tmp_path):
        (tmp_path / ".env").write_text("FILTER_STORAGE_BACKEND=redis\nREDIS_URL=redis://cache:6379/2\n")

        s = Settings()

        assert s.storage_backend == StorageBackend.REDIS
        assert s.redis_url == "redis://cache:6379/2"

    def test_invalid_backend(self, clean_env, monkeypatch):
        monkeypatch.setenv("FILTER_STORAGE_BACKEND", "s3")
        with pytest.raises(ValidationError):
            Settings()

    def test_negative_default_cost(self, clean_env):
        with pytest.raises(ValidationError):
            Settings(default_resource_cost=-1)


class TestGlobalSettings:
    """Test the lazily created global settings."""

    def test_cached(self, clean_env, monkeypatch):
        monkeypatch.setattr(config, "_settings", None)

        first = config.settings()

        assert config.settings() is first
