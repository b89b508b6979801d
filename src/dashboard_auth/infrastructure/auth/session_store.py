"""Session and OAuth State Storage

Purpose: Persist issued sessions and in-flight OAuth handshakes in Redis

Session records are append-only: each sign-in writes a new record under its
own session id and nothing here rewrites an existing one.

Storage Schema:
- auth:session:{session_id} -> {session_json}            (TTL = session lifetime)
- auth:user_sessions:{user_id} -> {session_id, ...}
- auth:oauth_state:{state} -> {provider_id, redirect_to, code_verifier}  (TTL = handshake window)
"""

import json
import logging
from typing import Optional

from redis.asyncio import Redis
from redis.exceptions import RedisError

from dashboard_auth.core.auth.errors import SessionError
from dashboard_auth.domain.models import SessionRecord

logger = logging.getLogger(__name__)


class SessionStore:
    """Redis-backed session records"""

    def __init__(self, redis_client: Redis):
        """Initialize session store

        Args:
            redis_client: Redis connection for session storage
        """
        self.redis = redis_client

        # Redis key patterns
        self.session_key_pattern = "auth:session:{}"
        self.user_sessions_pattern = "auth:user_sessions:{}"

    async def save(self, session: SessionRecord, ttl_seconds: int) -> None:
        """Record a newly issued session

        Raises:
            SessionError: If Redis rejects the write
        """
        session_key = self.session_key_pattern.format(session.session_id)
        user_sessions_key = self.user_sessions_pattern.format(session.user_id)
        try:
            created = await self.redis.set(
                session_key, json.dumps(session.to_dict()), ex=ttl_seconds, nx=True
            )
            if not created:
                raise SessionError(f"Session {session.session_id} already exists")
            await self.redis.sadd(user_sessions_key, session.session_id)
            await self.redis.expire(user_sessions_key, ttl_seconds)
        except (RedisError, OSError) as e:
            logger.error(f"Failed to store session for user {session.user_id}: {e}")
            raise SessionError("Session could not be recorded", cause=e) from e

        logger.debug(f"Stored session {session.session_id} for user {session.user_id}")

    async def get(self, session_id: str) -> Optional[SessionRecord]:
        """Get session by id

        Returns:
            SessionRecord if present and not expired, None otherwise
        """
        try:
            data = await self.redis.get(self.session_key_pattern.format(session_id))
        except (RedisError, OSError) as e:
            logger.error(f"Redis GET failed for session {session_id}: {e}")
            return None

        if not data:
            return None
        session = SessionRecord.from_dict(json.loads(data))
        return None if session.is_expired else session


class OAuthStateStore:
    """Redis-backed OAuth handshake state (CSRF ``state`` parameter)"""

    def __init__(self, redis_client: Redis, ttl_seconds: int = 300):
        self.redis = redis_client
        self.ttl_seconds = ttl_seconds
        self.state_key_pattern = "auth:oauth_state:{}"

    async def save(self, state: str, data: dict) -> None:
        """Remember where a handshake started and where it should land"""
        await self.redis.setex(
            self.state_key_pattern.format(state), self.ttl_seconds, json.dumps(data)
        )

    async def pop(self, state: str) -> Optional[dict]:
        """Consume a handshake state; a state can be used only once"""
        key = self.state_key_pattern.format(state)
        data = await self.redis.getdel(key)
        if not data:
            return None
        return json.loads(data)
