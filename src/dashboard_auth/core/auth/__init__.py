"""Sign-in flow for the dashboard.

- credentials: Email/password against the credential store (bcrypt)
- oauth: Authorization-code sign-in with GitHub, Google, Twitter, Facebook
- session: Session issuance and post-login redirect
- facade: Single entry point mapping outcomes to user messages
"""

from .errors import AuthError, Redirect
from .factory import get_auth_facade, get_provider_registry
from .provider import CREDENTIALS_PROVIDER_ID, UserIdentity

__all__ = [
    "AuthError",
    "CREDENTIALS_PROVIDER_ID",
    "Redirect",
    "UserIdentity",
    "get_auth_facade",
    "get_provider_registry",
]
