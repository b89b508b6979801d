"""
Pytest configuration and fixtures for dashboard auth tests.

Provides fixtures for:
- In-memory SQLite credential store with a seeded user
- Mocked Redis backing the session and OAuth state stores
- OAuth provider registry and client with mocked provider HTTP calls
- A fully wired AuthenticationFacade
- An HTTP client bound to the app with the facade overridden
"""

import json
from typing import AsyncGenerator, Callable

import httpx
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool
from unittest.mock import AsyncMock

from dashboard_auth.config.settings import Settings
from dashboard_auth.core.auth.factory import get_auth_facade, get_provider_registry
from dashboard_auth.core.auth.credentials import CredentialAuthenticator
from dashboard_auth.core.auth.facade import AuthenticationFacade
from dashboard_auth.core.auth.oauth import OAuthClient
from dashboard_auth.core.auth.passwords import PasswordHasher
from dashboard_auth.core.auth.registry import OAuthProviderRegistry
from dashboard_auth.core.auth.session import SessionIssuer
from dashboard_auth.infrastructure.auth.session_store import OAuthStateStore, SessionStore
from dashboard_auth.infrastructure.auth.user_store import CredentialStore
from dashboard_auth.infrastructure.database.models import Base
from dashboard_auth.main import app

TEST_DATABASE_URL = "sqlite+aiosqlite://"
TEST_SECRET_KEY = "test-secret-key"

TEST_EMAIL = "test@123.com"
TEST_PASSWORD = "123456"


@pytest.fixture
def test_settings() -> Settings:
    """Settings with every OAuth provider configured"""
    return Settings(
        _env_file=None,
        session_secret_key=TEST_SECRET_KEY,
        oauth_providers="github,google,twitter,facebook",
        oauth_redirect_base_url="http://test/api/v1/auth/callback",
        github_client_id="gh-client",
        github_client_secret="gh-secret",
        google_client_id="google-client",
        google_client_secret="google-secret",
        twitter_client_id="twitter-client",
        twitter_client_secret="twitter-secret",
        facebook_client_id="fb-client",
        facebook_client_secret="fb-secret",
    )


@pytest.fixture
def password_hasher() -> PasswordHasher:
    """Low work factor keeps the suite fast"""
    return PasswordHasher(rounds=4)


@pytest_asyncio.fixture
async def test_engine():
    """In-memory SQLite engine shared across one test"""
    engine = create_async_engine(TEST_DATABASE_URL, poolclass=StaticPool, echo=False)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture
async def test_sessionmaker(test_engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def user_store(test_sessionmaker) -> CredentialStore:
    return CredentialStore(test_sessionmaker)


@pytest_asyncio.fixture
async def test_user(user_store, password_hasher):
    """Stored credential for test@123.com / 123456"""
    return await user_store.create_credential(
        "Test User", TEST_EMAIL, password_hasher.hash(TEST_PASSWORD)
    )


@pytest.fixture
def redis_data() -> dict:
    """Backing dict for the mocked Redis"""
    return {}


@pytest.fixture
def mock_redis(redis_data):
    """Mock Redis client backed by a dict"""

    async def _set(key, value, ex=None, nx=False):
        if nx and key in redis_data:
            return None
        redis_data[key] = value
        return True

    async def _setex(key, ttl, value):
        redis_data[key] = value
        return True

    async def _get(key):
        return redis_data.get(key)

    async def _getdel(key):
        return redis_data.pop(key, None)

    async def _sadd(key, *values):
        members = redis_data.setdefault(key, set())
        members.update(values)
        return len(values)

    redis = AsyncMock()
    redis.set = AsyncMock(side_effect=_set)
    redis.setex = AsyncMock(side_effect=_setex)
    redis.get = AsyncMock(side_effect=_get)
    redis.getdel = AsyncMock(side_effect=_getdel)
    redis.sadd = AsyncMock(side_effect=_sadd)
    redis.expire = AsyncMock(return_value=True)
    return redis


@pytest.fixture
def session_store(mock_redis) -> SessionStore:
    return SessionStore(mock_redis)


@pytest.fixture
def state_store(mock_redis) -> OAuthStateStore:
    return OAuthStateStore(mock_redis, ttl_seconds=300)


@pytest.fixture
def session_issuer(session_store) -> SessionIssuer:
    return SessionIssuer(session_store, secret_key=TEST_SECRET_KEY, ttl_seconds=3600)


@pytest.fixture
def registry(test_settings) -> OAuthProviderRegistry:
    return OAuthProviderRegistry.from_settings(test_settings)


@pytest.fixture
def provider_responses() -> dict:
    """URL -> (status, json) served by the mocked provider transport"""
    return {
        "https://github.com/login/oauth/access_token": (200, {"access_token": "gh-token"}),
        "https://api.github.com/user": (
            200,
            {"id": 42, "login": "octocat", "name": "The Octocat", "email": "octo@github.com"},
        ),
        "https://api.twitter.com/2/oauth2/token": (200, {"access_token": "tw-token"}),
        "https://api.twitter.com/2/users/me": (
            200,
            {"data": {"id": "99", "name": "Tweeter", "username": "tweeter"}},
        ),
    }


@pytest.fixture
def provider_requests() -> list:
    """Requests seen by the mocked provider transport"""
    return []


@pytest.fixture
def http_client_factory(provider_responses, provider_requests) -> Callable[[], httpx.AsyncClient]:
    """httpx client factory answering from ``provider_responses``"""

    def handler(request: httpx.Request) -> httpx.Response:
        provider_requests.append(request)
        url = f"{request.url.scheme}://{request.url.host}{request.url.path}"
        status_code, body = provider_responses.get(url, (404, {"error": "not_found"}))
        return httpx.Response(status_code, content=json.dumps(body).encode(),
                              headers={"Content-Type": "application/json"})

    def factory() -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(handler))

    return factory


@pytest.fixture
def oauth_client(registry, state_store, http_client_factory) -> OAuthClient:
    return OAuthClient(
        registry,
        state_store,
        redirect_base_url="http://test/api/v1/auth/callback",
        http_client_factory=http_client_factory,
    )


@pytest_asyncio.fixture
async def facade(
    user_store, password_hasher, session_issuer, oauth_client
) -> AsyncGenerator[AuthenticationFacade, None]:
    yield AuthenticationFacade(
        authenticator=CredentialAuthenticator(user_store, password_hasher),
        session_issuer=session_issuer,
        oauth_client=oauth_client,
        user_store=user_store,
        password_hasher=password_hasher,
    )


@pytest_asyncio.fixture
async def client(facade, registry) -> AsyncGenerator[AsyncClient, None]:
    """Create test HTTP client with the facade and registry overridden."""

    async def override_get_auth_facade():
        return facade

    app.dependency_overrides[get_auth_facade] = override_get_auth_facade
    app.dependency_overrides[get_provider_registry] = lambda: registry

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()
