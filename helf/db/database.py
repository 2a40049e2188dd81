"""Database connection and session management."""
import logging

from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from helf.config.settings import get_settings

logger = logging.getLogger(__name__)

settings = get_settings()


def create_primary_engine(url: str | None = None) -> AsyncEngine:
    """Create the database engine.

    SQLite (local runs and tests) does not take pool sizing arguments.
    """
    url = url or settings.database_url
    if url.startswith("sqlite"):
        return create_async_engine(url, echo=settings.database_echo, future=True)

    return create_async_engine(
        url,
        echo=settings.database_echo,
        future=True,
        pool_size=20,
        max_overflow=20,
        pool_timeout=30,
        pool_recycle=300,
        pool_pre_ping=True,
    )


engine = create_primary_engine()

async_session_maker = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


class Base(DeclarativeBase):
    """Base class for all database models."""
    pass


async def get_db() -> AsyncSession:
    """Dependency that provides a database session, committed on success."""
    async with async_session_maker() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


async def init_db(target: AsyncEngine | None = None):
    """Initialize database tables."""
    import helf.models  # noqa: F401  registers mappers on Base.metadata

    target = target or engine

    if str(target.url).startswith("sqlite"):
        # WAL lets the API and maintenance scripts share a local file
        async with target.connect() as conn:
            await conn.execute(text("PRAGMA journal_mode=WAL"))
            await conn.commit()
    else:
        logger.info("Alembic migrations skipped (manual migration required)")

    async with target.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def close_engine():
    """Dispose the engine's connection pool."""
    await engine.dispose()
