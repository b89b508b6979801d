"""
Database session management for the credential datastore.

Provides a process-wide async SQLAlchemy engine and session factory.
"""

import logging
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from dashboard_auth.config.settings import get_settings
from dashboard_auth.infrastructure.database.models import Base

logger = logging.getLogger(__name__)

_engine: Optional[AsyncEngine] = None
_sessionmaker: Optional[async_sessionmaker[AsyncSession]] = None


def _normalize_url(url: str) -> str:
    # Convert postgresql:// to postgresql+asyncpg:// if needed
    if url.startswith("postgresql://"):
        return url.replace("postgresql://", "postgresql+asyncpg://", 1)
    return url


def get_engine() -> AsyncEngine:
    """Get or create the global async engine"""
    global _engine
    if _engine is None:
        settings = get_settings()
        _engine = create_async_engine(
            _normalize_url(settings.database_url),
            echo=settings.sql_echo,
            pool_pre_ping=True,  # Verify connections before using
        )
        logger.info("Database engine created")
    return _engine


def get_sessionmaker() -> async_sessionmaker[AsyncSession]:
    """Get or create the global session factory"""
    global _sessionmaker
    if _sessionmaker is None:
        _sessionmaker = async_sessionmaker(
            get_engine(),
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )
    return _sessionmaker


async def init_db() -> None:
    """
    Create the ``users`` table if missing.

    Development/testing only; production schemas are managed by the dashboard.
    """
    async with get_engine().begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def close_db() -> None:
    """Dispose the engine. Called on application shutdown."""
    global _engine, _sessionmaker
    if _engine is not None:
        await _engine.dispose()
        _engine = None
        _sessionmaker = None
        logger.info("Database engine disposed")
