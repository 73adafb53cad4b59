"""Storage module for scan history, domain state and validation tokens."""

from .database import Database
from .domains import DomainStore
from .models import DomainRecord, DomainState, ScanRecord, TokenRecord
from .scans import ScanStore
from .tokens import TokenStore

__all__ = [
    "Database",
    "DomainRecord",
    "DomainState",
    "DomainStore",
    "ScanRecord",
    "ScanStore",
    "TokenRecord",
    "TokenStore",
]
