"""
Database Session Management
Async engine and session handling
"""

from typing import AsyncGenerator, Optional

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from acdocs.core.config import settings
from acdocs.core.logging import get_logger
from acdocs.db.base import Base

logger = get_logger(__name__)

# Engine
engine: Optional[AsyncEngine] = None
async_session_maker: Optional[async_sessionmaker] = None


async def init_db(database_url: Optional[str] = None, seed: Optional[bool] = None) -> async_sessionmaker:
    """
    Initialize database engine and create tables

    Args:
        database_url: Override for settings.DATABASE_URL
        seed: Load the demo dataset into an empty database;
            defaults to settings.SEED_ON_STARTUP

    Returns:
        The session factory bound to the new engine
    """
    global engine, async_session_maker

    url = database_url or settings.DATABASE_URL
    logger.info(f"{settings.APP_NAME} {settings.APP_VERSION}: opening database {url}")

    engine_kwargs = {"echo": settings.DATABASE_ECHO}
    if url.startswith("sqlite") and ":memory:" in url:
        # One shared connection, otherwise every session sees an empty database
        engine_kwargs.update(
            poolclass=StaticPool,
            connect_args={"check_same_thread": False},
        )

    engine = create_async_engine(url, **engine_kwargs)
    async_session_maker = async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    # Import all SQLAlchemy models to ensure they're registered with Base
    from acdocs.db import models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database tables created")

    if seed is None:
        seed = settings.SEED_ON_STARTUP
    if seed:
        from acdocs.db.operations import DocumentStore

        await DocumentStore(async_session_maker).seed_database()

    return async_session_maker


async def close_db() -> None:
    """Close database connections"""
    global engine, async_session_maker

    if engine:
        await engine.dispose()
        logger.info("Database connection closed")
    engine = None
    async_session_maker = None


def get_session_maker() -> async_sessionmaker:
    if async_session_maker is None:
        raise RuntimeError("Database not initialized; call init_db() first")
    return async_session_maker


async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """Get database session (commit on success, rollback on error)"""
    async with get_session_maker()() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
