"""Tests for configuration loading and aggregated errors."""

from pathlib import Path

import pytest

from starttls_store.core.config import DatabaseSettings, Settings, load_settings
from starttls_store.core.errors import ConfigError

DB_VARIABLES = (
    "DB_URL",
    "DB_HOST",
    "DB_PORT",
    "DB_NAME",
    "DB_USERNAME",
    "DB_PASSWORD",
    "DB_POOL_SIZE",
    "DB_TOKEN_LIFETIME_HOURS",
)


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch: pytest.MonkeyPatch, tmp_path: Path):
    """Run every test without DB_* variables or a stray .env file."""
    for var in DB_VARIABLES:
        monkeypatch.delenv(var, raising=False)
    monkeypatch.chdir(tmp_path)


class TestConfigError:
    """Test the composite error message."""

    def test_single_error_message(self):
        """Test that one error is reported as-is."""
        error = ConfigError(["expected environment variable DB_HOST to be set"])

        assert str(error) == "expected environment variable DB_HOST to be set"

    def test_multiple_error_message(self):
        """Test that several errors are listed one per line."""
        error = ConfigError(["first", "second"])

        assert str(error) == "multiple errors:\nfirst\nsecond"
        assert error.errors == ["first", "second"]


class TestLoadSettings:
    """Test startup validation."""

    def test_all_missing_reported_together(self):
        """Test that every missing variable is reported at once."""
        with pytest.raises(ConfigError) as exc_info:
            load_settings()

        assert exc_info.value.errors == [
            "expected environment variable DB_HOST to be set",
            "expected environment variable DB_NAME to be set",
            "expected environment variable DB_USERNAME to be set",
            "expected environment variable DB_PASSWORD to be set",
        ]
        assert str(exc_info.value).startswith("multiple errors:")

    def test_single_missing_variable(self, monkeypatch: pytest.MonkeyPatch):
        """Test the message when only one variable is missing."""
        monkeypatch.setenv("DB_HOST", "localhost")
        monkeypatch.setenv("DB_NAME", "starttls")
        monkeypatch.setenv("DB_USERNAME", "postgres")

        with pytest.raises(ConfigError) as exc_info:
            load_settings()

        assert str(exc_info.value) == "expected environment variable DB_PASSWORD to be set"

    def test_complete_environment(self, monkeypatch: pytest.MonkeyPatch):
        """Test that a complete environment builds a PostgreSQL URL."""
        monkeypatch.setenv("DB_HOST", "db.internal")
        monkeypatch.setenv("DB_PORT", "6543")
        monkeypatch.setenv("DB_NAME", "starttls")
        monkeypatch.setenv("DB_USERNAME", "postgres")
        monkeypatch.setenv("DB_PASSWORD", "hunter2")

        settings = load_settings()
        url = settings.database.database_url

        assert url.get_backend_name() == "postgresql"
        assert url.host == "db.internal"
        assert url.port == 6543
        assert url.database == "starttls"
        assert url.username == "postgres"
        assert url.password == "hunter2"
        assert "hunter2" not in url.render_as_string(hide_password=True)

    def test_url_replaces_individual_fields(self, monkeypatch: pytest.MonkeyPatch):
        """Test that DB_URL alone is enough."""
        monkeypatch.setenv("DB_URL", "sqlite:///starttls.db")

        settings = load_settings()

        assert settings.database.missing_variables() == []
        assert settings.database.database_url.get_backend_name() == "sqlite"

    def test_unsupported_backend(self, monkeypatch: pytest.MonkeyPatch):
        """Test that only PostgreSQL and SQLite are accepted."""
        monkeypatch.setenv("DB_URL", "mysql://root@localhost/starttls")

        with pytest.raises(ConfigError) as exc_info:
            load_settings()

        assert "mysql" in str(exc_info.value)

    def test_invalid_token_lifetime(self, monkeypatch: pytest.MonkeyPatch):
        """Test that invalid values are reported as configuration errors."""
        monkeypatch.setenv("DB_URL", "sqlite:///starttls.db")
        monkeypatch.setenv("DB_TOKEN_LIFETIME_HOURS", "0")

        with pytest.raises(ConfigError) as exc_info:
            load_settings()

        assert exc_info.value.errors == [
            "invalid value for DB_TOKEN_LIFETIME_HOURS: Input should be greater than or equal to 1"
        ]

    def test_malformed_url(self, monkeypatch: pytest.MonkeyPatch):
        """Test that an unparseable DB_URL is a configuration error."""
        monkeypatch.setenv("DB_URL", "not a url")

        with pytest.raises(ConfigError) as exc_info:
            load_settings()

        assert len(exc_info.value.errors) == 1
        assert exc_info.value.errors[0].startswith("invalid value for DB_URL:")
        assert "invalid database URL" in str(exc_info.value)

    def test_invalid_and_missing_reported_together(self, monkeypatch: pytest.MonkeyPatch):
        """Test that an invalid value does not hide missing variables."""
        monkeypatch.setenv("DB_TOKEN_LIFETIME_HOURS", "0")

        with pytest.raises(ConfigError) as exc_info:
            load_settings()

        errors = exc_info.value.errors
        assert errors[0].startswith("invalid value for DB_TOKEN_LIFETIME_HOURS:")
        assert errors[1:] == [
            "expected environment variable DB_HOST to be set",
            "expected environment variable DB_NAME to be set",
            "expected environment variable DB_USERNAME to be set",
            "expected environment variable DB_PASSWORD to be set",
        ]
        assert "DB_HOST" in str(exc_info.value)

    def test_invalid_port_with_partial_environment(self, monkeypatch: pytest.MonkeyPatch):
        """Test that variables set in the environment are not reported missing."""
        monkeypatch.setenv("DB_HOST", "localhost")
        monkeypatch.setenv("DB_NAME", "starttls")
        monkeypatch.setenv("DB_PORT", "not-a-port")

        with pytest.raises(ConfigError) as exc_info:
            load_settings()

        errors = exc_info.value.errors
        assert errors[0].startswith("invalid value for DB_PORT:")
        assert errors[1:] == [
            "expected environment variable DB_USERNAME to be set",
            "expected environment variable DB_PASSWORD to be set",
        ]

    def test_settings_are_immutable(self, monkeypatch: pytest.MonkeyPatch):
        """Test that settings cannot be changed after construction."""
        monkeypatch.setenv("DB_URL", "sqlite:///starttls.db")
        settings = load_settings()

        with pytest.raises(Exception):
            settings.database.token_lifetime_hours = 1


class TestYamlSettings:
    """Test loading settings from YAML."""

    def test_from_yaml_with_env_reference(self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path):
        """Test ${ENV} references inside the YAML file."""
        monkeypatch.setenv("STARTTLS_DB_PASSWORD", "s3cret")
        config = tmp_path / "config.yaml"
        config.write_text(
            "database:\n"
            "  host: db.internal\n"
            "  name: starttls\n"
            "  username: postgres\n"
            "  password: ${STARTTLS_DB_PASSWORD}\n"
            "  token_lifetime_hours: 24\n"
            "logging:\n"
            "  level: DEBUG\n"
        )

        settings = load_settings(config)

        assert settings.database.password == "s3cret"
        assert settings.database.token_lifetime_hours == 24
        assert settings.logging.level == "DEBUG"

    def test_missing_yaml_falls_back_to_environment(self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path):
        """Test that a missing file behaves like no file."""
        monkeypatch.setenv("DB_URL", "sqlite:///starttls.db")

        settings = Settings.from_yaml(tmp_path / "missing.yaml")

        assert settings.database.url == "sqlite:///starttls.db"

    def test_yaml_missing_values_aggregated(self, tmp_path: Path):
        """Test that YAML settings are validated like the environment."""
        config = tmp_path / "config.yaml"
        config.write_text("database:\n  host: db.internal\n")

        with pytest.raises(ConfigError) as exc_info:
            load_settings(config)

        assert len(exc_info.value.errors) == 3

    def test_yaml_invalid_value_and_missing_aggregated(self, tmp_path: Path):
        """Test that YAML values count when an invalid value fails validation."""
        config = tmp_path / "config.yaml"
        config.write_text("database:\n  host: db.internal\n  name: starttls\n  pool_size: 0\n")

        with pytest.raises(ConfigError) as exc_info:
            load_settings(config)

        errors = exc_info.value.errors
        assert errors[0].startswith("invalid value for DB_POOL_SIZE:")
        assert errors[1:] == [
            "expected environment variable DB_USERNAME to be set",
            "expected environment variable DB_PASSWORD to be set",
        ]


def test_database_settings_defaults():
    """Test pool and token defaults."""
    settings = DatabaseSettings(url="sqlite://")

    assert settings.port == 5432
    assert settings.pool_size == 5
    assert settings.max_overflow == 10
    assert settings.token_lifetime_hours == 72
