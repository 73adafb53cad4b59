"""
Current workflow state of each registered domain.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from ..core.errors import NotFoundError
from ..utils.secure_logging import get_secure_logger
from ..utils.validation import valid_domain_name
from .models import DomainRecord, DomainState
from .schema import DomainModel

if TYPE_CHECKING:
    from .database import Database

logger = get_secure_logger(__name__)


class DomainStore:
    """
    One record per domain name, created or merged by put_domain.

    The store never changes a domain's state on its own; callers drive
    the workflow by writing the next state.
    """

    def __init__(self, db: Database):
        self.db = db

    def put_domain(self, record: DomainRecord) -> None:
        """
        Create a domain or merge into the existing record.

        New domains default to UNVALIDATED. For an existing domain only
        the supplied fields are written: an empty email keeps the stored
        email and a state of None keeps the stored state. The whole
        operation is one INSERT ... ON CONFLICT statement.

        Args:
            record: Domain fields to store

        Raises:
            ValueError: If the name is not a valid domain name
            StorageError: If the write fails
        """
        if not valid_domain_name(record.name):
            raise ValueError(f"Invalid domain name: {record.name!r}")

        state = DomainState(record.state) if record.state is not None else None
        updates = {}
        if record.email:
            updates["email"] = record.email
        if state is not None:
            updates["state"] = state.value

        stmt = self.db.insert(DomainModel).values(
            name=record.name,
            email=record.email or "",
            state=(state or DomainState.UNVALIDATED).value,
        )
        if updates:
            stmt = stmt.on_conflict_do_update(index_elements=["name"], set_=updates)
        else:
            stmt = stmt.on_conflict_do_nothing(index_elements=["name"])

        with self.db.session() as session:
            session.execute(stmt)
        logger.debug(f"Stored domain {record.name} ({', '.join(updates) or 'no changes'})")

    def get_domain(self, name: str) -> DomainRecord:
        """
        Get the current record for a domain.

        Raises:
            NotFoundError: If the domain has never been registered
        """
        with self.db.session() as session:
            domain = session.query(DomainModel).filter_by(name=name).first()
            if not domain:
                raise NotFoundError("domain", name)
            return self._to_record(domain)

    def get_domains_by_state(self, state: DomainState) -> list[DomainRecord]:
        """Get all domains currently in the given state, ordered by name."""
        with self.db.session() as session:
            domains = (
                session.query(DomainModel)
                .filter(DomainModel.state == DomainState(state).value)
                .order_by(DomainModel.name)
                .all()
            )
            return [self._to_record(domain) for domain in domains]

    @staticmethod
    def _to_record(domain: DomainModel) -> DomainRecord:
        return DomainRecord(
            name=domain.name,
            email=domain.email or "",
            state=DomainState(domain.state),
        )
