"""Authentication component factory.

Wires the process-wide singletons (provider registry, password hasher,
facade) from settings. Built once, read-only afterwards.
"""

import logging
from typing import Optional

from dashboard_auth.config.settings import get_settings
from dashboard_auth.core.auth.registry import OAuthProviderRegistry

logger = logging.getLogger(__name__)

# Global instances (initialized on first call)
_registry_instance: Optional[OAuthProviderRegistry] = None
_facade_instance = None


def get_provider_registry() -> OAuthProviderRegistry:
    """Get the configured OAuth provider registry.

    Raises:
        ValueError: If OAUTH_PROVIDERS names an unknown provider
    """
    global _registry_instance
    if _registry_instance is None:
        _registry_instance = OAuthProviderRegistry.from_settings(get_settings())
    return _registry_instance


async def get_auth_facade():
    """Get the configured AuthenticationFacade instance.

    Connects Redis and the database engine on first use.

    Returns:
        AuthenticationFacade
    """
    global _facade_instance
    if _facade_instance is not None:
        return _facade_instance

    from dashboard_auth.core.auth.credentials import CredentialAuthenticator
    from dashboard_auth.core.auth.facade import AuthenticationFacade
    from dashboard_auth.core.auth.oauth import OAuthClient
    from dashboard_auth.core.auth.passwords import PasswordHasher
    from dashboard_auth.core.auth.session import SessionIssuer
    from dashboard_auth.infrastructure.auth.session_store import OAuthStateStore, SessionStore
    from dashboard_auth.infrastructure.auth.user_store import CredentialStore
    from dashboard_auth.infrastructure.database.session import get_sessionmaker
    from dashboard_auth.infrastructure.redis.client import get_redis_client

    settings = get_settings()
    redis_client = (await get_redis_client()).get_client()

    user_store = CredentialStore(get_sessionmaker())
    password_hasher = PasswordHasher(rounds=settings.bcrypt_rounds)
    session_issuer = SessionIssuer(
        SessionStore(redis_client),
        secret_key=settings.session_secret_key,
        algorithm=settings.session_algorithm,
        ttl_seconds=settings.session_ttl_seconds,
        default_redirect=settings.default_redirect,
    )
    oauth_client = OAuthClient(
        get_provider_registry(),
        OAuthStateStore(redis_client, ttl_seconds=settings.oauth_state_ttl_seconds),
        redirect_base_url=settings.oauth_redirect_base_url,
    )

    _facade_instance = AuthenticationFacade(
        authenticator=CredentialAuthenticator(user_store, password_hasher),
        session_issuer=session_issuer,
        oauth_client=oauth_client,
        user_store=user_store,
        password_hasher=password_hasher,
        registration_enabled=settings.enable_registration,
    )
    logger.info("Authentication facade initialized")
    return _facade_instance


def reset_factory() -> None:
    """Reset the global instances (for testing)."""
    global _registry_instance, _facade_instance
    _registry_instance = None
    _facade_instance = None
