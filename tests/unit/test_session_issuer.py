"""Unit tests for SessionIssuer and SessionStore"""

import json

import pytest
from unittest.mock import AsyncMock
from jose import jwt
from redis.exceptions import ConnectionError as RedisConnectionError

from dashboard_auth.core.auth.errors import SessionError
from dashboard_auth.core.auth.provider import UserIdentity
from dashboard_auth.core.auth.session import DEFAULT_REDIRECT, SessionIssuer, resolve_redirect
from dashboard_auth.infrastructure.auth.session_store import SessionStore

TEST_SECRET_KEY = "test-secret-key"


@pytest.fixture
def identity():
    return UserIdentity(user_id="user-123", email="test@123.com", name="Test User", provider="credentials")


@pytest.mark.unit
class TestResolveRedirect:
    """Test redirect target decision"""

    def test_default_is_dashboard(self):
        assert DEFAULT_REDIRECT == "/dashboard"
        assert resolve_redirect(None) == "/dashboard"

    def test_empty_callback_uses_default(self):
        assert resolve_redirect("") == "/dashboard"

    def test_callback_used_verbatim(self):
        assert resolve_redirect("/dashboard/invoices?page=2") == "/dashboard/invoices?page=2"


@pytest.mark.unit
class TestIssueSession:
    """Test session issuance"""

    @pytest.mark.asyncio
    async def test_issue_with_callback(self, session_issuer, identity):
        issued = await session_issuer.issue_session(identity, "/dashboard/invoices")

        assert issued.redirect_to == "/dashboard/invoices"
        assert issued.session.redirect_to == "/dashboard/invoices"

    @pytest.mark.asyncio
    async def test_issue_without_callback(self, session_issuer, identity):
        issued = await session_issuer.issue_session(identity)

        assert issued.redirect_to == "/dashboard"

    @pytest.mark.asyncio
    async def test_token_carries_session_claims(self, session_issuer, identity):
        issued = await session_issuer.issue_session(identity)

        payload = jwt.decode(issued.token, TEST_SECRET_KEY, algorithms=["HS256"])
        assert payload["sub"] == "user-123"
        assert payload["email"] == "test@123.com"
        assert payload["provider"] == "credentials"
        assert payload["sid"] == issued.session.session_id
        assert session_issuer.decode_session_token(issued.token)["sid"] == payload["sid"]

    @pytest.mark.asyncio
    async def test_session_recorded_in_store(self, session_issuer, identity, mock_redis, redis_data):
        issued = await session_issuer.issue_session(identity)

        key = f"auth:session:{issued.session.session_id}"
        assert json.loads(redis_data[key])["user_id"] == "user-123"
        assert mock_redis.set.call_args.kwargs["ex"] == 3600
        assert mock_redis.set.call_args.kwargs["nx"] is True
        assert issued.session.session_id in redis_data["auth:user_sessions:user-123"]

    @pytest.mark.asyncio
    async def test_each_sign_in_gets_new_session(self, session_issuer, identity):
        first = await session_issuer.issue_session(identity)
        second = await session_issuer.issue_session(identity)

        assert first.session.session_id != second.session.session_id

    @pytest.mark.asyncio
    async def test_store_failure_raises_session_error(self, identity):
        redis = AsyncMock()
        redis.set = AsyncMock(side_effect=RedisConnectionError("redis down"))
        issuer = SessionIssuer(SessionStore(redis), secret_key=TEST_SECRET_KEY)

        with pytest.raises(SessionError) as exc_info:
            await issuer.issue_session(identity)

        assert exc_info.value.type == "SessionError"

    def test_decode_invalid_token_raises(self, session_issuer):
        with pytest.raises(SessionError, match="Invalid session token"):
            session_issuer.decode_session_token("invalid.jwt.token")


@pytest.mark.unit
class TestSessionStore:
    """Test session record persistence"""

    @pytest.mark.asyncio
    async def test_get_round_trip(self, session_issuer, session_store, identity):
        issued = await session_issuer.issue_session(identity, "/dashboard/customers")

        stored = await session_store.get(issued.session.session_id)

        assert stored == issued.session

    @pytest.mark.asyncio
    async def test_get_missing_returns_none(self, session_store):
        assert await session_store.get("missing") is None

    @pytest.mark.asyncio
    async def test_existing_session_never_overwritten(self, session_issuer, session_store, identity):
        issued = await session_issuer.issue_session(identity)

        with pytest.raises(SessionError, match="already exists"):
            await session_store.save(issued.session, 60)


@pytest.mark.unit
class TestGetSession:
    """Test session lookup from a session token"""

    @pytest.mark.asyncio
    async def test_token_resolves_to_session(self, session_issuer, identity):
        issued = await session_issuer.issue_session(identity, "/dashboard/invoices")

        session = await session_issuer.get_session(issued.token)

        assert session == issued.session

    @pytest.mark.asyncio
    async def test_revoked_record_gives_none(self, session_issuer, identity, redis_data):
        issued = await session_issuer.issue_session(identity)
        del redis_data[f"auth:session:{issued.session.session_id}"]

        assert await session_issuer.get_session(issued.token) is None

    @pytest.mark.asyncio
    async def test_token_signed_with_other_key_rejected(self, session_issuer, session_store, identity):
        other = SessionIssuer(session_store, secret_key="another-secret")
        issued = await other.issue_session(identity)

        with pytest.raises(SessionError):
            await session_issuer.get_session(issued.token)
