"""
Configuration management for the STARTTLS policy store.

Uses Pydantic Settings for validation and environment variable support.
Settings are built once at startup by load_settings() and handed to the
Database, which never reads the environment itself.
"""

import os
from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from sqlalchemy.engine import URL, make_url
from sqlalchemy.exc import ArgumentError

from .errors import ConfigError

# Connection fields that must be set unless a full URL is given
REQUIRED_DATABASE_FIELDS = ("host", "name", "username", "password")


class DatabaseSettings(BaseSettings):
    """Relational database configuration (DB_* environment variables)."""

    model_config = SettingsConfigDict(env_prefix="DB_", frozen=True, extra="ignore")

    url: Optional[str] = Field(default=None, description="Full SQLAlchemy URL, overrides the fields below")
    host: str = Field(default="", description="Database host")
    port: int = Field(default=5432, description="Database port")
    name: str = Field(default="", description="Database name")
    username: str = Field(default="", description="Database user")
    password: str = Field(default="", description="Database password")

    pool_size: int = Field(default=5, ge=1, le=100, description="Connection pool size")
    max_overflow: int = Field(default=10, ge=0, le=100, description="Connections allowed beyond pool_size")
    token_lifetime_hours: int = Field(default=72, ge=1, description="Validation token lifetime in hours")

    @field_validator("url")
    @classmethod
    def validate_url(cls, v: Optional[str]) -> Optional[str]:
        """Validate that the URL parses and names a supported backend."""
        if not v:
            return None
        try:
            backend = make_url(v).get_backend_name()
        except ArgumentError as e:
            raise ValueError(f"invalid database URL: {e}") from e
        if backend not in ("postgresql", "sqlite"):
            raise ValueError(f"unsupported database backend {backend!r}")
        return v

    @staticmethod
    def required_missing(values: dict[str, Any]) -> list[str]:
        """Environment variables that must be set but are empty in values."""
        if values.get("url"):
            return []
        return [f"DB_{field.upper()}" for field in REQUIRED_DATABASE_FIELDS if not values.get(field)]

    def missing_variables(self) -> list[str]:
        """Environment variables that must be set but are empty."""
        return self.required_missing(self.model_dump())

    @property
    def database_url(self) -> URL:
        """SQLAlchemy URL for these settings."""
        if self.url:
            return make_url(self.url)
        return URL.create(
            "postgresql",
            username=self.username,
            password=self.password,
            host=self.host,
            port=self.port,
            database=self.name,
        )


class LoggingSettings(BaseSettings):
    """Logging configuration."""

    model_config = SettingsConfigDict(env_prefix="LOG_", frozen=True, extra="ignore")

    level: str = Field(default="INFO", description="Log level")
    file: Optional[str] = Field(default=None, description="Log file path")


class Settings(BaseSettings):
    """
    Main settings class that aggregates all configuration.

    Settings are loaded from:
    1. Environment variables (highest priority)
    2. .env file
    3. config.yaml file
    4. Default values (lowest priority)
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        extra="ignore",
        frozen=True,
    )

    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    @classmethod
    def from_yaml(cls, path: str | Path) -> "Settings":
        """Load settings from a YAML file."""
        return cls(**cls.read_yaml(path))

    @classmethod
    def read_yaml(cls, path: str | Path) -> dict[str, Any]:
        """Raw settings from a YAML file, or {} when the file is missing."""
        path = Path(path)
        if not path.exists():
            return {}

        with open(path) as f:
            data = yaml.safe_load(f) or {}

        # Process environment variable references in the YAML
        return cls._process_env_vars(data)

    @classmethod
    def _process_env_vars(cls, data: Any) -> Any:
        """Recursively process environment variable references in config."""
        if isinstance(data, dict):
            return {k: cls._process_env_vars(v) for k, v in data.items()}
        elif isinstance(data, list):
            return [cls._process_env_vars(item) for item in data]
        elif isinstance(data, str):
            # Handle ${ENV_VAR} syntax
            if data.startswith("${") and data.endswith("}"):
                env_var = data[2:-1]
                return os.environ.get(env_var, "")
            return data
        return data


def load_settings(config_path: Optional[str | Path] = None) -> Settings:
    """
    Build the settings value used to construct the Database.

    Every problem is collected before failing, so an operator sees all
    missing or invalid variables at once.

    Args:
        config_path: Optional path to a config.yaml file

    Returns:
        Settings instance

    Raises:
        ConfigError: If any required setting is missing or invalid
    """
    data = Settings.read_yaml(config_path) if config_path else {}
    if not isinstance(data, dict):
        raise ConfigError([f"invalid settings file {config_path}: expected a mapping"])
    errors: list[str] = []
    sections: dict[str, BaseSettings] = {}

    for key, section_cls, prefix in (
        ("database", DatabaseSettings, "DB_"),
        ("logging", LoggingSettings, "LOG_"),
    ):
        values = data.get(key) or {}
        if not isinstance(values, dict):
            errors.append(f"invalid setting {key}: expected a mapping")
            continue
        try:
            sections[key] = section_cls(**values)
        except ValidationError as e:
            errors.extend(_describe_error(err, prefix) for err in e.errors())

    if "database" in sections:
        missing = sections["database"].missing_variables()
    else:
        # Validation failed; check the required variables against the raw sources
        missing = DatabaseSettings.required_missing(_raw_database_values(data.get("database")))
    errors.extend(f"expected environment variable {var} to be set" for var in missing)

    if errors:
        raise ConfigError(errors)
    return Settings(**sections)


def _describe_error(err: dict[str, Any], prefix: str) -> str:
    """Name a pydantic error by the environment variable it came from."""
    loc = err["loc"]
    name = f"{prefix}{str(loc[0]).upper()}" if loc else prefix.rstrip("_")
    return f"invalid value for {name}: {err['msg']}"


def _raw_database_values(section: Any) -> dict[str, Any]:
    """Connection values from the YAML section, falling back to DB_* variables."""
    section = section if isinstance(section, dict) else {}
    return {
        field: section.get(field) or os.environ.get(f"DB_{field.upper()}")
        for field in ("url", *REQUIRED_DATABASE_FIELDS)
    }
