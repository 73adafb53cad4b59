"""Core module containing configuration and error types."""

from .config import DatabaseSettings, LoggingSettings, Settings, load_settings
from .errors import (
    ConfigError,
    InvalidTokenError,
    NotFoundError,
    StorageError,
    StoreError,
)

__all__ = [
    "ConfigError",
    "DatabaseSettings",
    "InvalidTokenError",
    "LoggingSettings",
    "NotFoundError",
    "Settings",
    "StorageError",
    "StoreError",
    "load_settings",
]
