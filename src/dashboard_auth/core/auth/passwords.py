"""Password hashing and verification (bcrypt)."""

import asyncio
import base64
import hashlib
import logging

import bcrypt

logger = logging.getLogger(__name__)

DEFAULT_ROUNDS = 10

# bcrypt only looks at the first 72 bytes and bcrypt>=5 rejects longer input
BCRYPT_MAX_BYTES = 72


def _bcrypt_input(password: str) -> bytes:
    """Password bytes as fed to bcrypt.

    Passwords over 72 bytes are pre-hashed (base64 SHA-256, 44 bytes) so
    every byte counts and bcrypt never sees an oversized input.
    """
    encoded = password.encode("utf-8")
    if len(encoded) > BCRYPT_MAX_BYTES:
        return base64.b64encode(hashlib.sha256(encoded).digest())
    return encoded


class PasswordHasher:
    """Salted bcrypt hashing with a fixed work factor.

    ``hash`` is used by signup, ``verify`` by credentials sign-in.
    Comparison goes through ``bcrypt.checkpw``, which is constant-time.
    """

    def __init__(self, rounds: int = DEFAULT_ROUNDS):
        self.rounds = rounds

    def hash(self, password: str) -> str:
        """
        Hash a password using bcrypt.

        Args:
            password: Plain text password (any length)

        Returns:
            Hashed password as string
        """
        salt = bcrypt.gensalt(rounds=self.rounds)
        return bcrypt.hashpw(_bcrypt_input(password), salt).decode("utf-8")

    def verify(self, password: str, password_hash: str) -> bool:
        """
        Verify a password against its hash.

        Args:
            password: Plain text password to verify
            password_hash: Previously hashed password

        Returns:
            True if password matches, False otherwise (including malformed hashes)
        """
        try:
            return bcrypt.checkpw(_bcrypt_input(password), password_hash.encode("utf-8"))
        except ValueError:
            logger.warning("Stored password hash is malformed")
            return False

    async def hash_async(self, password: str) -> str:
        """``hash`` off the event loop"""
        return await asyncio.to_thread(self.hash, password)

    async def verify_async(self, password: str, password_hash: str) -> bool:
        """``verify`` off the event loop"""
        return await asyncio.to_thread(self.verify, password, password_hash)
