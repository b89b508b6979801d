"""Credential Storage

Purpose: Look up and create credential records in the SQL datastore

Sign-in only reads (``find_credential_by_email``); signup is the single
producer (``create_credential``). Records are never updated or deleted here.

Storage Schema:
- users(id, name, email UNIQUE lowercase, password bcrypt hash)
"""

import logging
import uuid
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from dashboard_auth.core.auth.errors import DatastoreError
from dashboard_auth.domain.models import CredentialRecord
from dashboard_auth.infrastructure.database.models import UserRow

logger = logging.getLogger(__name__)


class CredentialStore:
    """Credential record gateway

    Connectivity and query failures surface as ``DatastoreError`` so callers
    can tell "backend down" apart from "no such user".
    """

    def __init__(self, sessionmaker: async_sessionmaker[AsyncSession]):
        """Initialize credential store

        Args:
            sessionmaker: Async SQLAlchemy session factory
        """
        self.sessionmaker = sessionmaker

    async def find_credential_by_email(self, email: str) -> Optional[CredentialRecord]:
        """Get credential by email address (case-insensitive)

        Args:
            email: Email address to search for

        Returns:
            CredentialRecord if found, None otherwise

        Raises:
            DatastoreError: If the datastore cannot be queried
        """
        if not email:
            return None

        try:
            async with self.sessionmaker() as session:
                result = await session.execute(
                    select(UserRow).where(func.lower(UserRow.email) == email.strip().lower())
                )
                row = result.scalar_one_or_none()
        except (SQLAlchemyError, OSError) as e:
            logger.error(f"Failed to fetch user by email {email}: {e}")
            raise DatastoreError(f"Failed to fetch user with email {email}", cause=e) from e

        if row is None:
            return None
        return self._to_record(row)

    async def create_credential(self, name: str, email: str, password_hash: str) -> CredentialRecord:
        """Create new credential record

        Args:
            name: Display name
            email: Email address (stored lowercased)
            password_hash: bcrypt hash, never the plaintext

        Returns:
            Created CredentialRecord

        Raises:
            ValueError: If the email already exists
            DatastoreError: If the insert fails for any other reason
        """
        email = email.strip().lower()
        row = UserRow(id=str(uuid.uuid4()), name=name.strip(), email=email, password=password_hash)

        try:
            async with self.sessionmaker() as session:
                session.add(row)
                await session.commit()
        except IntegrityError as e:
            logger.info(f"Signup rejected, email already exists: {email}")
            raise ValueError(f"Email '{email}' already exists") from e
        except (SQLAlchemyError, OSError) as e:
            logger.error(f"Failed to create user {email}: {e}")
            raise DatastoreError(f"Failed to create user with email {email}", cause=e) from e

        logger.info(f"Created user {row.id} ({email})")
        return self._to_record(row)

    @staticmethod
    def _to_record(row: UserRow) -> CredentialRecord:
        return CredentialRecord(
            user_id=str(row.id),
            email=row.email.lower(),
            name=row.name,
            password_hash=row.password,
        )
