"""
Seed data script for local development.

Creates the ``users`` table and a sample dashboard user for trying the
credentials sign-in flow.
"""

import asyncio

from dashboard_auth.config.settings import get_settings
from dashboard_auth.core.auth.passwords import PasswordHasher
from dashboard_auth.infrastructure.auth.user_store import CredentialStore
from dashboard_auth.infrastructure.database.session import close_db, get_sessionmaker, init_db

SEED_USERS = [
    ("User", "user@nextmail.com", "123456"),
    ("Test User", "test@123.com", "123456"),
]


async def seed_database():
    """Create seed users for development."""

    print("🌱 Seeding database with sample users...")

    store = CredentialStore(get_sessionmaker())
    hasher = PasswordHasher(rounds=get_settings().bcrypt_rounds)

    for name, email, password in SEED_USERS:
        if await store.find_credential_by_email(email):
            print(f"  ⚠️  {email} already exists. Skipping.")
            continue
        await store.create_credential(name, email, hasher.hash(password))
        print(f"  ✅ Created {email}")

    print("\n🔑 Test Credentials:")
    for _, email, password in SEED_USERS:
        print(f"  - {email} / {password}")


async def main():
    """Main entry point."""
    print("🔧 Initializing database schema...")
    await init_db()
    print("✅ Database schema created")

    try:
        await seed_database()
    finally:
        await close_db()


if __name__ == "__main__":
    asyncio.run(main())
