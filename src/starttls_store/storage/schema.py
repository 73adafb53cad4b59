"""
SQLAlchemy table definitions.

The same models are used on PostgreSQL and SQLite; both dialects provide
INSERT ... ON CONFLICT, which the stores rely on for atomic upserts.
"""

from datetime import timezone

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    String,
    TypeDecorator,
)
from sqlalchemy.orm import declarative_base

from .models import DomainState

Base = declarative_base()


DomainStateEnum = Enum(
    *[state.value for state in DomainState],
    name="domain_state",
    native_enum=False,
    create_constraint=True,
)


# Timestamps are always stored in UTC and returned timezone-aware
class UTCDateTime(TypeDecorator):
    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return value
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)

    def process_result_value(self, value, dialect):
        if value is None:
            return value
        # SQLite drops the offset on write
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)


class ScanModel(Base):
    __tablename__ = "scans"

    id = Column(Integer, primary_key=True, autoincrement=True)
    domain = Column(String, nullable=False)
    data = Column(JSON, default=dict)
    timestamp = Column(UTCDateTime, nullable=False)

    __table_args__ = (
        Index("idx_scans_domain_timestamp", "domain", "timestamp"),
    )


class DomainModel(Base):
    __tablename__ = "domains"

    name = Column(String, primary_key=True)
    email = Column(String, nullable=False, default="")
    state = Column(DomainStateEnum, nullable=False, default=DomainState.UNVALIDATED.value)


class TokenModel(Base):
    __tablename__ = "tokens"

    token = Column(String, primary_key=True)
    # One row per domain: issuing a token replaces the previous one
    domain = Column(String, ForeignKey("domains.name", ondelete="CASCADE"), nullable=False, unique=True)
    expires = Column(UTCDateTime, nullable=False)
    used = Column(Boolean, nullable=False, default=False)
