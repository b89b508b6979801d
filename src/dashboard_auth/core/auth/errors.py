"""Authentication error taxonomy.

Every recognised failure is an ``AuthError`` with a discriminable ``type``
and an optional wrapped ``cause``. The facade maps these to user-facing
messages; anything that is not an ``AuthError`` is re-raised.
"""

from typing import Optional


class AuthError(Exception):
    """Base class for recognised authentication failures."""

    type = "AuthError"

    def __init__(self, message: str = "", cause: Optional[BaseException] = None):
        super().__init__(message or self.type)
        self.cause = cause


class CredentialsSignin(AuthError):
    """Email/password did not match a stored credential."""

    type = "CredentialsSignin"


class DatastoreError(AuthError):
    """Credential datastore unavailable or failed."""

    type = "DatastoreError"


class OAuthSignInError(AuthError):
    """Starting the OAuth handshake failed."""

    type = "OAuthSignin"


class OAuthCallbackError(AuthError):
    """Completing the OAuth handshake (callback) failed."""

    type = "OAuthCallbackError"


class UnknownProviderError(AuthError):
    """No configured OAuth provider has the requested id."""

    type = "UnknownProvider"


class SessionError(AuthError):
    """Session could not be issued or recorded."""

    type = "SessionError"


class Redirect(Exception):
    """Control leaves the flow: navigate to ``location``.

    Raised by the facade on success. Not an ``AuthError`` so it is never
    translated into a user message.
    """

    def __init__(self, location: str, session_token: Optional[str] = None):
        super().__init__(location)
        self.location = location
        self.session_token = session_token
