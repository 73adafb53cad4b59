"""
Append-only history of scan results per domain.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from ..core.errors import NotFoundError
from ..utils.secure_logging import get_secure_logger
from .models import ScanRecord
from .schema import ScanModel

if TYPE_CHECKING:
    from .database import Database

logger = get_secure_logger(__name__)


class ScanStore:
    """Time series of scan results. Records are never updated."""

    def __init__(self, db: Database):
        self.db = db

    def put_scan(self, record: ScanRecord) -> None:
        """
        Append a scan result.

        Duplicate domain/timestamp pairs are allowed.

        Raises:
            StorageError: If the insert fails
        """
        with self.db.session() as session:
            scan = ScanModel(
                domain=record.domain,
                data=record.data,
                timestamp=record.timestamp,
            )
            session.add(scan)
            session.flush()
            record.id = scan.id
        logger.debug(f"Stored scan {record.id} for {record.domain}")

    def get_latest_scan(self, domain: str) -> ScanRecord:
        """
        Get the most recent scan for a domain.

        Equal timestamps are resolved by the latest insertion.

        Raises:
            NotFoundError: If the domain has never been scanned
        """
        with self.db.session() as session:
            scan = (
                session.query(ScanModel)
                .filter(ScanModel.domain == domain)
                .order_by(ScanModel.timestamp.desc(), ScanModel.id.desc())
                .first()
            )
            if not scan:
                raise NotFoundError("scan", domain)
            return self._to_record(scan)

    def get_all_scans(self, domain: str) -> list[ScanRecord]:
        """Get every scan for a domain, oldest first. Empty if none."""
        with self.db.session() as session:
            scans = (
                session.query(ScanModel)
                .filter(ScanModel.domain == domain)
                .order_by(ScanModel.timestamp.asc(), ScanModel.id.asc())
                .all()
            )
            return [self._to_record(scan) for scan in scans]

    @staticmethod
    def _to_record(scan: ScanModel) -> ScanRecord:
        return ScanRecord(
            id=scan.id,
            domain=scan.domain,
            data=scan.data,
            timestamp=scan.timestamp,
        )
