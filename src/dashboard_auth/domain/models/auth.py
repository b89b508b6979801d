"""Authentication Data Models

Purpose: Define data structures for credential records, sessions and
authentication outcomes

Key Components:
- CredentialRecord: A stored email/password credential
- SessionRecord: An issued session with its redirect target
- AttemptState: States of a single authentication attempt
- Success / InvalidCredentials / ProviderError / Rethrow: tagged outcome
  of a credentials sign-in
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Optional, Union

from dashboard_auth.core.auth.provider import UserIdentity


def parse_utc_timestamp(timestamp_str: str) -> datetime:
    """Parse UTC timestamp string to datetime object"""
    if isinstance(timestamp_str, datetime):
        return timestamp_str
    return datetime.fromisoformat(timestamp_str.replace('Z', '+00:00'))


def to_json_compatible(value):
    """Convert datetime to JSON-compatible ISO format string"""
    if isinstance(value, datetime):
        return value.isoformat()
    return value


class AttemptState(Enum):
    """Lifecycle of one authentication attempt"""
    IDLE = "idle"
    VALIDATING = "validating"
    AUTHENTICATING = "authenticating"
    REDIRECTING_OAUTH = "redirecting_oauth"
    SUCCESS = "success"
    REJECTED = "rejected"
    ERRORED = "errored"

    @property
    def is_terminal(self) -> bool:
        return self in (AttemptState.SUCCESS, AttemptState.REJECTED, AttemptState.ERRORED)


@dataclass
class CredentialRecord:
    """Stored credential

    Attributes:
        user_id: Unique identifier (UUID format)
        email: Lowercase email address, unique
        name: Display name
        password_hash: bcrypt hash of the password
    """
    user_id: str
    email: str
    name: str
    password_hash: str = field(repr=False)

    def to_identity(self) -> UserIdentity:
        """Public identity for a verified credential (no hash)"""
        return UserIdentity(
            user_id=self.user_id,
            email=self.email,
            name=self.name,
            provider="credentials",
        )


@dataclass
class SessionRecord:
    """Issued session

    Sessions are append-only: one record per sign-in, keyed by session_id.

    Attributes:
        session_id: Unique session identifier (also the token's ``sid`` claim)
        user_id: Owner of the session
        email: Owner's email
        provider: Provider used to sign in
        redirect_to: Post-login redirect target
        created_at: Issue timestamp
        expires_at: Expiration timestamp
    """
    session_id: str
    user_id: str
    email: str
    provider: str
    redirect_to: str
    created_at: datetime
    expires_at: datetime

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization"""
        return {
            "session_id": self.session_id,
            "user_id": self.user_id,
            "email": self.email,
            "provider": self.provider,
            "redirect_to": self.redirect_to,
            "created_at": to_json_compatible(self.created_at),
            "expires_at": to_json_compatible(self.expires_at),
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'SessionRecord':
        """Create from dictionary (JSON deserialization)"""
        return cls(
            session_id=data["session_id"],
            user_id=data["user_id"],
            email=data["email"],
            provider=data["provider"],
            redirect_to=data["redirect_to"],
            created_at=parse_utc_timestamp(data["created_at"]),
            expires_at=parse_utc_timestamp(data["expires_at"]),
        )

    @property
    def is_expired(self) -> bool:
        """Check if session is expired"""
        return datetime.now(timezone.utc) > self.expires_at


@dataclass(frozen=True)
class Success:
    """Credentials matched a stored record"""
    identity: UserIdentity


@dataclass(frozen=True)
class InvalidCredentials:
    """Malformed input, unknown email or wrong password (indistinguishable)"""


@dataclass(frozen=True)
class ProviderError:
    """Datastore or provider failure; message is internal only"""
    message: str


@dataclass(frozen=True)
class Rethrow:
    """Unrecognised failure to be re-raised by the caller"""
    underlying: BaseException


AuthOutcome = Union[Success, InvalidCredentials, ProviderError, Rethrow]


@dataclass
class IssuedSession:
    """Result of session issuance: where to go next and the session token"""
    redirect_to: str
    token: str
    session: Optional[SessionRecord] = None
