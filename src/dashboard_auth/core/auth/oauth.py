"""OAuth 2.0 sign-in against the registered providers.

Two halves of the authorization-code handshake:
- ``sign_in``: build the provider's authorization URL and remember the
  CSRF ``state`` (plus PKCE verifier and redirect target) in Redis
- ``handle_callback``: consume the state, exchange the code for an access
  token and fetch the user's profile

Failures raise ``OAuthSignInError`` / ``OAuthCallbackError`` so the facade
can turn them into a user message.
"""

import base64
import hashlib
import logging
import secrets
from typing import Callable, Optional
from urllib.parse import urlencode

import httpx
from redis.exceptions import RedisError

from dashboard_auth.core.auth.errors import OAuthCallbackError, OAuthSignInError
from dashboard_auth.core.auth.provider import UserIdentity
from dashboard_auth.core.auth.registry import OAuthProviderRegistry, ProviderConfig, ProviderKind
from dashboard_auth.infrastructure.auth.session_store import OAuthStateStore

logger = logging.getLogger(__name__)


def _pkce_challenge(code_verifier: str) -> str:
    digest = hashlib.sha256(code_verifier.encode("ascii")).digest()
    return base64.urlsafe_b64encode(digest).rstrip(b"=").decode("ascii")


def _json_object(response: httpx.Response, what: str) -> dict:
    """Provider response body as a JSON object"""
    try:
        body = response.json()
    except ValueError as e:
        raise OAuthCallbackError(f"{what} failed: response is not JSON", cause=e) from e
    if not isinstance(body, dict):
        raise OAuthCallbackError(f"{what} failed: unexpected response body")
    return body


def _github_profile(profile: dict) -> dict:
    return {
        "user_id": str(profile["id"]),
        "email": profile.get("email") or "",
        "name": profile.get("name") or profile.get("login") or "",
    }


def _google_profile(profile: dict) -> dict:
    return {
        "user_id": str(profile["sub"]),
        "email": profile.get("email") or "",
        "name": profile.get("name") or profile.get("email") or "",
    }


def _twitter_profile(profile: dict) -> dict:
    # Twitter wraps the user in "data" and never returns an email
    data = profile.get("data") or {}
    return {
        "user_id": str(data["id"]),
        "email": "",
        "name": data.get("name") or data.get("username") or "",
    }


def _facebook_profile(profile: dict) -> dict:
    return {
        "user_id": str(profile["id"]),
        "email": profile.get("email") or "",
        "name": profile.get("name") or "",
    }


PROFILE_MAPPERS: dict[ProviderKind, Callable[[dict], dict]] = {
    ProviderKind.GITHUB: _github_profile,
    ProviderKind.GOOGLE: _google_profile,
    ProviderKind.TWITTER: _twitter_profile,
    ProviderKind.FACEBOOK: _facebook_profile,
}


class OAuthClient:
    """OAuth 2.0 authorization-code client for the registered providers.

    Example Configuration:
        OAUTH_PROVIDERS=github,google
        OAUTH_REDIRECT_BASE_URL=https://dashboard.example.com/api/v1/auth/callback
        GITHUB_CLIENT_ID=xxx
        GITHUB_CLIENT_SECRET=xxx
    """

    def __init__(
        self,
        registry: OAuthProviderRegistry,
        state_store: OAuthStateStore,
        redirect_base_url: str,
        http_client_factory: Callable[[], httpx.AsyncClient] = httpx.AsyncClient,
    ):
        """Initialize OAuth client.

        Args:
            registry: Configured providers
            state_store: Where handshake state lives between the two halves
            redirect_base_url: Callback URL prefix; the provider id is appended
            http_client_factory: Builds the httpx client for provider calls
        """
        self.registry = registry
        self.state_store = state_store
        self.redirect_base_url = redirect_base_url.rstrip("/")
        self.http_client_factory = http_client_factory

    def redirect_uri(self, provider_id: str) -> str:
        return f"{self.redirect_base_url}/{provider_id}"

    async def sign_in(self, provider_id: str, redirect_to: Optional[str] = None) -> str:
        """Start the handshake with ``provider_id``.

        Args:
            provider_id: Registered provider id
            redirect_to: Where to land after the callback (optional)

        Returns:
            Authorization URL to redirect the user to

        Raises:
            UnknownProviderError: If the provider is not registered
            OAuthSignInError: If the handshake state cannot be stored
        """
        provider = self.registry.get(provider_id)
        state = secrets.token_urlsafe(32)

        params = {
            "client_id": provider.client_id,
            "response_type": "code",
            "scope": " ".join(provider.scopes),
            "redirect_uri": self.redirect_uri(provider.id),
            "state": state,
        }
        stored = {"provider_id": provider.id, "redirect_to": redirect_to}

        if provider.use_pkce:
            code_verifier = secrets.token_urlsafe(64)
            params["code_challenge"] = _pkce_challenge(code_verifier)
            params["code_challenge_method"] = "S256"
            stored["code_verifier"] = code_verifier

        try:
            await self.state_store.save(state, stored)
        except (RedisError, OSError) as e:
            logger.error(f"Failed to store OAuth state for {provider.id}: {e}")
            raise OAuthSignInError(f"Could not start {provider.id} sign-in", cause=e) from e

        logger.info(f"OAuth sign-in initiated: provider={provider.id}")
        return f"{provider.authorization_url}?{urlencode(params)}"

    async def handle_callback(
        self, provider_id: str, code: str, state: str
    ) -> tuple[UserIdentity, Optional[str]]:
        """Complete the handshake.

        Args:
            provider_id: Provider named in the callback URL
            code: Authorization code from the provider
            state: CSRF state echoed by the provider

        Returns:
            Tuple of (identity, redirect target stored at sign-in)

        Raises:
            UnknownProviderError: If the provider is not registered
            OAuthCallbackError: If state, token exchange or profile fetch fails
        """
        provider = self.registry.get(provider_id)

        try:
            stored = await self.state_store.pop(state)
        except (RedisError, OSError) as e:
            raise OAuthCallbackError("OAuth state unavailable", cause=e) from e

        if not stored or stored.get("provider_id") != provider.id:
            logger.warning(f"OAuth callback rejected: unknown or mismatched state ({provider.id})")
            raise OAuthCallbackError("Invalid OAuth state")

        try:
            async with self.http_client_factory() as client:
                access_token = await self._exchange_code(
                    client, provider, code, stored.get("code_verifier")
                )
                profile = await self._fetch_profile(client, provider, access_token)
        except httpx.HTTPError as e:
            logger.error(f"OAuth request to {provider.id} failed: {e}")
            raise OAuthCallbackError(f"{provider.id} request failed", cause=e) from e

        try:
            fields = PROFILE_MAPPERS[provider.kind](profile)
        except (KeyError, TypeError, AttributeError) as e:
            raise OAuthCallbackError(f"Unexpected {provider.id} profile", cause=e) from e

        identity = UserIdentity(provider=provider.id, metadata={"profile": profile}, **fields)
        logger.info(f"OAuth callback completed: provider={provider.id}, user={identity.user_id}")
        return identity, stored.get("redirect_to")

    async def _exchange_code(
        self,
        client: httpx.AsyncClient,
        provider: ProviderConfig,
        code: str,
        code_verifier: Optional[str],
    ) -> str:
        data = {
            "grant_type": "authorization_code",
            "code": code,
            "redirect_uri": self.redirect_uri(provider.id),
        }
        auth = None
        if provider.use_pkce:
            # Confidential PKCE clients authenticate with HTTP Basic
            data["code_verifier"] = code_verifier or ""
            auth = (provider.client_id, provider.client_secret)
        else:
            data["client_id"] = provider.client_id
            data["client_secret"] = provider.client_secret

        response = await client.post(
            provider.token_url,
            data=data,
            auth=auth,
            headers={"Accept": "application/json"},
        )
        if response.status_code != 200:
            logger.error(f"OAuth token exchange failed for {provider.id}: {response.status_code}")
            raise OAuthCallbackError(f"Token exchange failed: {response.status_code}")

        tokens = _json_object(response, "Token exchange")
        access_token = tokens.get("access_token")
        if not access_token:
            # GitHub answers 200 with {"error": ...} on a bad code
            raise OAuthCallbackError(f"Token exchange failed: {tokens.get('error', 'no token')}")
        return access_token

    async def _fetch_profile(
        self, client: httpx.AsyncClient, provider: ProviderConfig, access_token: str
    ) -> dict:
        response = await client.get(
            provider.userinfo_url,
            headers={"Authorization": f"Bearer {access_token}", "Accept": "application/json"},
        )
        if response.status_code != 200:
            logger.error(f"OAuth profile fetch failed for {provider.id}: {response.status_code}")
            raise OAuthCallbackError(f"Profile fetch failed: {response.status_code}")
        return _json_object(response, "Profile fetch")
