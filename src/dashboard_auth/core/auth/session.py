"""Session issuance after a successful sign-in.

Decides the post-login redirect target and asks the session store to record
a new session. The session token is a signed JWT carrying the session id.
"""

import logging
import uuid
from datetime import datetime, timedelta, timezone
from typing import Optional

from jose import JWTError, jwt

from dashboard_auth.core.auth.errors import SessionError
from dashboard_auth.core.auth.provider import UserIdentity
from dashboard_auth.domain.models import IssuedSession, SessionRecord
from dashboard_auth.infrastructure.auth.session_store import SessionStore

logger = logging.getLogger(__name__)

DEFAULT_REDIRECT = "/dashboard"


def resolve_redirect(callback_url: Optional[str], default: str = DEFAULT_REDIRECT) -> str:
    """Callback URL verbatim when non-empty, otherwise the default target."""
    if callback_url:
        return callback_url
    return default


class SessionIssuer:
    """Issues sessions for verified identities.

    Configuration:
        SESSION_SECRET_KEY=<your-secret-key>
        SESSION_ALGORITHM=HS256 (default)
        SESSION_TTL_SECONDS=2592000 (default, 30 days)
    """

    def __init__(
        self,
        session_store: SessionStore,
        secret_key: str,
        algorithm: str = "HS256",
        ttl_seconds: int = 30 * 24 * 60 * 60,
        default_redirect: str = DEFAULT_REDIRECT,
    ):
        self.session_store = session_store
        self.secret_key = secret_key
        self.algorithm = algorithm
        self.ttl = timedelta(seconds=ttl_seconds)
        self.default_redirect = default_redirect

        if secret_key == "dev-secret-change-in-production":
            logger.warning(
                "Using default SESSION_SECRET_KEY! "
                "Set SESSION_SECRET_KEY environment variable in production!"
            )

    async def issue_session(
        self, identity: UserIdentity, callback_url: Optional[str] = None
    ) -> IssuedSession:
        """Establish a session for ``identity``.

        Args:
            identity: Verified identity (credentials or OAuth)
            callback_url: Caller-supplied redirect target (optional)

        Returns:
            IssuedSession with redirect target and session token

        Raises:
            SessionError: If the session cannot be recorded
        """
        redirect_to = resolve_redirect(callback_url, self.default_redirect)
        now = datetime.now(timezone.utc)

        session = SessionRecord(
            session_id=str(uuid.uuid4()),
            user_id=identity.user_id,
            email=identity.email,
            provider=identity.provider,
            redirect_to=redirect_to,
            created_at=now,
            expires_at=now + self.ttl,
        )
        await self.session_store.save(session, int(self.ttl.total_seconds()))

        token = self._create_session_token(session)
        logger.info(
            f"Session issued for user {identity.user_id} via {identity.provider} "
            f"(redirect: {redirect_to})"
        )
        return IssuedSession(redirect_to=redirect_to, token=token, session=session)

    def decode_session_token(self, token: str) -> dict:
        """Decode and verify a session token.

        Raises:
            SessionError: If the token is invalid or expired
        """
        try:
            return jwt.decode(token, self.secret_key, algorithms=[self.algorithm])
        except JWTError as e:
            raise SessionError(f"Invalid session token: {e}", cause=e) from e

    async def get_session(self, token: str) -> Optional[SessionRecord]:
        """Session behind a session token.

        Returns:
            SessionRecord if the token verifies and the record is still live,
            None otherwise

        Raises:
            SessionError: If the token is invalid or expired
        """
        claims = self.decode_session_token(token)
        session = await self.session_store.get(claims.get("sid", ""))
        if session is None or session.user_id != claims.get("sub"):
            return None
        return session

    def _create_session_token(self, session: SessionRecord) -> str:
        payload = {
            "sub": session.user_id,
            "email": session.email,
            "provider": session.provider,
            "sid": session.session_id,
            "iat": session.created_at,
            "exp": session.expires_at,
        }
        return jwt.encode(payload, self.secret_key, algorithm=self.algorithm)
