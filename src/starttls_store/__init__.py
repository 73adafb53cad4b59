"""Persistence layer for STARTTLS policy adoption: scans, domains and validation tokens."""

from .core import ConfigError, InvalidTokenError, NotFoundError, StorageError, StoreError, load_settings
from .storage import Database, DomainRecord, DomainState, ScanRecord, TokenRecord

__version__ = "0.1.0"

__all__ = [
    "ConfigError",
    "Database",
    "DomainRecord",
    "DomainState",
    "InvalidTokenError",
    "NotFoundError",
    "ScanRecord",
    "StorageError",
    "StoreError",
    "TokenRecord",
    "load_settings",
]
