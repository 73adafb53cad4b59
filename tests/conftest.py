"""Pytest configuration and fixtures."""

from datetime import datetime, timezone
from pathlib import Path

import pytest

from starttls_store.core.config import DatabaseSettings
from starttls_store.storage import Database, DomainRecord, ScanRecord


@pytest.fixture
def database_settings(tmp_path: Path) -> DatabaseSettings:
    """Settings pointing at a throwaway SQLite file."""
    return DatabaseSettings(url=f"sqlite:///{tmp_path / 'starttls.db'}")


@pytest.fixture
def database(database_settings: DatabaseSettings) -> Database:
    """Create an empty database shared by all three stores."""
    db = Database(database_settings)
    db.clear_tables()
    yield db
    db.close()


@pytest.fixture
def registered_domain(database: Database) -> str:
    """Register testing.com and return its name."""
    database.domains.put_domain(DomainRecord(name="testing.com", email="admin@testing.com"))
    return "testing.com"


@pytest.fixture
def scan_time() -> datetime:
    """A fixed scan timestamp."""
    return datetime(2024, 3, 1, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def sample_scan(scan_time: datetime) -> ScanRecord:
    """Create a sample scan record."""
    return ScanRecord(
        domain="dummy.com",
        data={"domain": "dummy.com", "message": "test", "status": 0},
        timestamp=scan_time,
    )
