"""
Single-use tokens proving control of a domain's contact address.

Each domain has exactly one token row. Issuing a token overwrites the row,
so any earlier token value stops existing and can never be redeemed.
"""

from __future__ import annotations

import secrets
from datetime import timedelta
from typing import TYPE_CHECKING

from ..core.errors import InvalidTokenError, NotFoundError
from ..utils.secure_logging import get_secure_logger
from .models import TokenRecord, utcnow
from .schema import DomainModel, TokenModel

if TYPE_CHECKING:
    from .database import Database

logger = get_secure_logger(__name__)

TOKEN_BYTES = 32


class TokenStore:
    """Issues and redeems email validation tokens."""

    def __init__(self, db: Database, lifetime_hours: int = 72):
        self.db = db
        self.lifetime = timedelta(hours=lifetime_hours)

    def put_token(self, domain: str) -> TokenRecord:
        """
        Issue a new token for a registered domain.

        The token replaces any token previously issued for the domain,
        used or not, in a single upsert keyed on the domain.

        Args:
            domain: Registered domain name

        Returns:
            The new token record

        Raises:
            NotFoundError: If the domain is not registered
            StorageError: If the write fails
        """
        record = TokenRecord(
            domain=domain,
            token=secrets.token_urlsafe(TOKEN_BYTES),
            expires=utcnow() + self.lifetime,
        )

        with self.db.session() as session:
            if not session.query(DomainModel.name).filter_by(name=domain).first():
                raise NotFoundError("domain", domain)

            stmt = self.db.insert(TokenModel).values(
                token=record.token,
                domain=record.domain,
                expires=record.expires,
                used=False,
            ).on_conflict_do_update(
                index_elements=["domain"],
                set_={
                    "token": record.token,
                    "expires": record.expires,
                    "used": False,
                },
            )
            session.execute(stmt)

        logger.info(f"Issued validation token for {domain}, expires {record.expires.isoformat()}")
        return record

    def use_token(self, token: str) -> str:
        """
        Redeem a token.

        Marking the token used is a single conditional UPDATE, so of any
        number of concurrent redemptions at most one succeeds.

        Args:
            token: Token value sent to the domain's contact address

        Returns:
            The domain the token was issued for

        Raises:
            InvalidTokenError: If the token is unknown, already used,
                expired, or superseded by a newer token
        """
        with self.db.session() as session:
            updated = (
                session.query(TokenModel)
                .filter(
                    TokenModel.token == token,
                    TokenModel.used.is_(False),
                    TokenModel.expires > utcnow(),
                )
                .update({TokenModel.used: True}, synchronize_session=False)
            )
            if updated != 1:
                logger.info("Rejected invalid validation token")
                raise InvalidTokenError()

            domain = session.query(TokenModel.domain).filter_by(token=token).scalar()

        logger.info(f"Validation token redeemed for {domain}")
        return domain

    def get_token_by_domain(self, domain: str) -> TokenRecord:
        """
        Get the current token for a domain.

        Raises:
            NotFoundError: If no token has been issued for the domain
        """
        with self.db.session() as session:
            row = session.query(TokenModel).filter_by(domain=domain).first()
            if not row:
                raise NotFoundError("token", domain)
            return TokenRecord(
                domain=row.domain,
                token=row.token,
                expires=row.expires,
                used=row.used,
            )
