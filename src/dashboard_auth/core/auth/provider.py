"""Authenticated identity shared by all sign-in providers.

Credentials sign-in and every OAuth provider produce the same
``UserIdentity`` so session issuance does not care how the user signed in.
"""

from typing import Any, Dict
from pydantic import BaseModel, Field

CREDENTIALS_PROVIDER_ID = "credentials"


class UserIdentity(BaseModel):
    """User identity returned from authentication providers.

    Attributes:
        user_id: Unique user identifier (provider-scoped for OAuth)
        email: User email address (may be empty for providers that hide it)
        name: Full name for UI
        provider: Provider used (credentials, github, google, twitter, facebook)
        metadata: Provider-specific metadata (optional)
    """
    user_id: str
    email: str
    name: str
    provider: str
    metadata: Dict[str, Any] = Field(default_factory=dict)
