"""
Database adapter shared by the scan, domain and token stores.

Uses SQLAlchemy for database operations, compatible with PostgreSQL
for production and SQLite for local development and tests.
"""

from contextlib import contextmanager
from typing import Iterator

from sqlalchemy import create_engine, event
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from ..core.config import DatabaseSettings
from ..core.errors import StorageError
from ..utils.secure_logging import get_secure_logger
from .domains import DomainStore
from .scans import ScanStore
from .schema import Base, DomainModel, ScanModel, TokenModel
from .tokens import TokenStore

logger = get_secure_logger(__name__)

SQLITE_BUSY_TIMEOUT_SECONDS = 30


def _configure_sqlite_connection(dbapi_connection, connection_record) -> None:
    """Enforce foreign keys and wait on locks instead of failing."""
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.execute(f"PRAGMA busy_timeout={SQLITE_BUSY_TIMEOUT_SECONDS * 1000}")
    cursor.close()


class Database:
    """
    Relational storage for scan history, domain state and validation tokens.

    One pooled engine is shared by all three stores, which are available as
    ``db.scans``, ``db.domains`` and ``db.tokens``. No state is kept in
    memory between calls; every operation opens its own session.
    """

    def __init__(self, settings: DatabaseSettings):
        """
        Initialize database.

        Args:
            settings: Database settings, usually from load_settings().database

        Raises:
            StorageError: If the schema cannot be created
        """
        self.settings = settings
        url = settings.database_url
        self.backend = url.get_backend_name()

        if self.backend == "sqlite":
            self.engine = create_engine(
                url,
                connect_args={"check_same_thread": False, "timeout": SQLITE_BUSY_TIMEOUT_SECONDS},
                echo=False,
            )
            event.listen(self.engine, "connect", _configure_sqlite_connection)
        else:
            self.engine = create_engine(
                url,
                pool_pre_ping=True,
                pool_size=settings.pool_size,
                max_overflow=settings.max_overflow,
                echo=False,
            )
        self.SessionLocal = sessionmaker(bind=self.engine)

        logger.info(f"Using {self.backend} database: {url.render_as_string(hide_password=True)}")
        self._ensure_schema()

        self.scans = ScanStore(self)
        self.domains = DomainStore(self)
        self.tokens = TokenStore(self, lifetime_hours=settings.token_lifetime_hours)

    @classmethod
    def from_url(cls, url: str, **overrides) -> "Database":
        """Create a database directly from a SQLAlchemy URL."""
        return cls(DatabaseSettings(url=url, **overrides))

    def _ensure_schema(self) -> None:
        """Create tables if they don't exist."""
        try:
            Base.metadata.create_all(self.engine)
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to create schema: {e}") from e

    @contextmanager
    def session(self) -> Iterator[Session]:
        """
        Get database session context manager.

        Commits on success and rolls back on any error. Database errors
        are raised as StorageError with the original chained.
        """
        session = self.SessionLocal()
        try:
            yield session
            session.commit()
        except SQLAlchemyError as e:
            session.rollback()
            raise StorageError(str(e)) from e
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def insert(self, model):
        """Dialect-specific INSERT supporting ON CONFLICT clauses."""
        if self.backend == "postgresql":
            return pg_insert(model)
        return sqlite_insert(model)

    def clear_tables(self) -> None:
        """Delete every row from every table. Only used for test isolation."""
        with self.session() as session:
            session.query(TokenModel).delete(synchronize_session=False)
            session.query(ScanModel).delete(synchronize_session=False)
            session.query(DomainModel).delete(synchronize_session=False)
        logger.debug("Cleared all tables")

    def close(self) -> None:
        """Release all pooled connections."""
        self.engine.dispose()
