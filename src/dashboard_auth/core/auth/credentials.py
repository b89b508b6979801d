"""Credentials (email/password) authentication.

Validates input, looks the credential up by email and verifies the password.
Returns a tagged outcome instead of raising, so the facade can tell a wrong
password from a datastore outage.
"""

import logging
from typing import Optional

from pydantic import ValidationError

from dashboard_auth.core.auth.errors import DatastoreError
from dashboard_auth.core.auth.passwords import PasswordHasher
from dashboard_auth.domain.models import (
    AuthOutcome,
    CredentialsForm,
    InvalidCredentials,
    ProviderError,
    Rethrow,
    Success,
)
from dashboard_auth.infrastructure.auth.user_store import CredentialStore

logger = logging.getLogger(__name__)


class CredentialAuthenticator:
    """Email/password authentication against the credential store."""

    def __init__(self, user_store: CredentialStore, password_hasher: PasswordHasher):
        self.user_store = user_store
        self.password_hasher = password_hasher

    async def authenticate(self, email: Optional[str], password: Optional[str]) -> AuthOutcome:
        """Authenticate user with email and password.

        Malformed input (invalid email, password shorter than 6 characters)
        is rejected before the datastore is touched. Unknown email and wrong
        password produce the same ``InvalidCredentials``.

        Args:
            email: User email address
            password: User password (plain text, never logged)

        Returns:
            Success, InvalidCredentials, ProviderError or Rethrow
        """
        try:
            form = CredentialsForm(email=email, password=password)
        except ValidationError:
            logger.info("Login rejected: malformed credentials")
            return InvalidCredentials()

        try:
            record = await self.user_store.find_credential_by_email(form.email)
            if record is None:
                logger.warning(f"Login failed: invalid credentials (email: {form.email})")
                return InvalidCredentials()

            if not await self.password_hasher.verify_async(form.password, record.password_hash):
                logger.warning(f"Login failed: invalid credentials (email: {form.email})")
                return InvalidCredentials()

        except DatastoreError as e:
            logger.error(f"Login failed: credential store unavailable (email: {form.email})")
            return ProviderError(str(e))
        except Exception as e:
            logger.exception(f"Login failed: unexpected error (email: {form.email})")
            return Rethrow(e)

        logger.info(f"User authenticated successfully: {record.email} ({record.user_id})")
        return Success(record.to_identity())
