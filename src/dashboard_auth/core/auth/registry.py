"""OAuth provider registry.

A fixed, closed set of provider variants (GitHub, Google, Twitter/X,
Facebook) built once at startup from settings. The internal credentials
provider is part of the configured list but never appears in the public
provider list.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, Optional

from dashboard_auth.config.settings import Settings
from dashboard_auth.core.auth.errors import UnknownProviderError

logger = logging.getLogger(__name__)


class ProviderKind(str, Enum):
    """Every provider this service knows about; values are the stable ids."""
    CREDENTIALS = "credentials"
    GITHUB = "github"
    GOOGLE = "google"
    TWITTER = "twitter"
    FACEBOOK = "facebook"


@dataclass(frozen=True)
class ProviderDescriptor:
    """Public identity of a configured OAuth provider."""
    id: str
    display_name: str


@dataclass(frozen=True)
class ProviderConfig:
    """Full configuration of a sign-in provider.

    Attributes:
        kind: Provider variant
        display_name: Name shown on the sign-in button
        authorization_url: Where the user is sent to consent
        token_url: Code-for-token exchange endpoint
        userinfo_url: Profile endpoint queried with the access token
        scopes: Scopes requested at authorization
        client_id: OAuth client id
        client_secret: OAuth client secret
        use_pkce: Send a PKCE challenge (required by Twitter OAuth 2.0)
    """
    kind: ProviderKind
    display_name: str
    authorization_url: str = ""
    token_url: str = ""
    userinfo_url: str = ""
    scopes: tuple[str, ...] = ()
    client_id: str = ""
    client_secret: str = field(default="", repr=False)
    use_pkce: bool = False

    @property
    def id(self) -> str:
        return self.kind.value

    def descriptor(self) -> ProviderDescriptor:
        return ProviderDescriptor(id=self.id, display_name=self.display_name)


# Static endpoint table, in display order.
PROVIDER_DEFINITIONS: dict[ProviderKind, dict] = {
    ProviderKind.GITHUB: {
        "display_name": "GitHub",
        "authorization_url": "https://github.com/login/oauth/authorize",
        "token_url": "https://github.com/login/oauth/access_token",
        "userinfo_url": "https://api.github.com/user",
        "scopes": ("read:user", "user:email"),
    },
    ProviderKind.GOOGLE: {
        "display_name": "Google",
        "authorization_url": "https://accounts.google.com/o/oauth2/v2/auth",
        "token_url": "https://oauth2.googleapis.com/token",
        "userinfo_url": "https://openidconnect.googleapis.com/v1/userinfo",
        "scopes": ("openid", "email", "profile"),
    },
    ProviderKind.TWITTER: {
        "display_name": "Twitter",
        "authorization_url": "https://twitter.com/i/oauth2/authorize",
        "token_url": "https://api.twitter.com/2/oauth2/token",
        "userinfo_url": "https://api.twitter.com/2/users/me",
        "scopes": ("users.read", "tweet.read", "offline.access"),
        "use_pkce": True,
    },
    ProviderKind.FACEBOOK: {
        "display_name": "Facebook",
        "authorization_url": "https://www.facebook.com/v19.0/dialog/oauth",
        "token_url": "https://graph.facebook.com/oauth/access_token",
        "userinfo_url": "https://graph.facebook.com/me?fields=id,name,email",
        "scopes": ("email",),
    },
}

CREDENTIALS_PROVIDER = ProviderConfig(kind=ProviderKind.CREDENTIALS, display_name="Credentials")


class OAuthProviderRegistry:
    """Read-only registry of configured OAuth providers.

    Safe to share between concurrent requests; there is no mutation API.
    """

    def __init__(self, providers: Iterable[ProviderConfig]):
        """Build the registry from an ordered provider list.

        Args:
            providers: Configured providers; the credentials provider is skipped

        Raises:
            ValueError: If two providers share an id
        """
        ordered: dict[str, ProviderConfig] = {}
        for provider in providers:
            if provider.kind is ProviderKind.CREDENTIALS:
                continue
            if provider.id in ordered:
                raise ValueError(f"Duplicate OAuth provider id: {provider.id}")
            ordered[provider.id] = provider

        self._providers = ordered
        self._descriptors = tuple(p.descriptor() for p in ordered.values())

    @classmethod
    def from_settings(cls, settings: Settings) -> "OAuthProviderRegistry":
        """Build from ``OAUTH_PROVIDERS`` and the per-provider client credentials.

        Raises:
            ValueError: If an unknown provider id is configured
        """
        enabled = settings.enabled_oauth_providers
        known = {kind.value for kind in PROVIDER_DEFINITIONS}
        unknown = [p for p in enabled if p not in known]
        if unknown:
            raise ValueError(
                f"Unknown OAUTH_PROVIDERS: {', '.join(unknown)}. "
                f"Valid options: {', '.join(sorted(known))}"
            )

        providers = [CREDENTIALS_PROVIDER]
        for kind, definition in PROVIDER_DEFINITIONS.items():
            if kind.value not in enabled:
                continue
            client_id = getattr(settings, f"{kind.value}_client_id")
            if not client_id:
                logger.warning(f"OAuth provider {kind.value} enabled without a client id")
            providers.append(
                ProviderConfig(
                    kind=kind,
                    client_id=client_id,
                    client_secret=getattr(settings, f"{kind.value}_client_secret"),
                    **definition,
                )
            )

        registry = cls(providers)
        logger.info(f"OAuth providers registered: {[d.id for d in registry.list_providers()]}")
        return registry

    def list_providers(self) -> tuple[ProviderDescriptor, ...]:
        """Public provider list, in configured order."""
        return self._descriptors

    def get(self, provider_id: str) -> ProviderConfig:
        """Full configuration of ``provider_id``.

        Raises:
            UnknownProviderError: If no such provider is configured
        """
        provider = self.find(provider_id)
        if provider is None:
            raise UnknownProviderError(f"Unknown OAuth provider: {provider_id}")
        return provider

    def find(self, provider_id: str) -> Optional[ProviderConfig]:
        return self._providers.get(provider_id)

    def __contains__(self, provider_id: object) -> bool:
        return provider_id in self._providers

    def __len__(self) -> int:
        return len(self._providers)
