"""
Records exchanged with the storage layer.

Defines scan history entries, domain workflow state and
email validation tokens.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional


def utcnow() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


class DomainState(str, Enum):
    """Stage of a domain in the validation workflow.

    Transitions are driven by callers; the store never changes state on its own.
    """

    UNKNOWN = "unknown"
    UNVALIDATED = "unvalidated"
    QUEUED = "queued"
    VALIDATED = "validated"
    FAILED = "failed"
    ADDED = "added"


@dataclass
class ScanRecord:
    """One scan result for a domain."""

    domain: str
    # Opaque JSON-compatible payload, returned exactly as stored
    data: Any = field(default_factory=dict)
    timestamp: datetime = field(default_factory=utcnow)

    # Assigned by the database; breaks ties between equal timestamps
    id: Optional[int] = None


@dataclass
class DomainRecord:
    """Current state of a registered domain.

    A state of None means "not supplied": new domains start as
    UNVALIDATED and existing domains keep their stored state.
    """

    name: str
    email: str = ""
    state: Optional[DomainState] = None


@dataclass
class TokenRecord:
    """Single-use token proving control of a domain's contact address."""

    domain: str
    token: str
    expires: datetime
    used: bool = False

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        """Whether the token has passed its expiration."""
        return (now or utcnow()) >= self.expires
