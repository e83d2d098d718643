"""
Async engine, session factory and the transaction helper.

PostgreSQL (asyncpg) gets a sized connection pool; SQLite (aiosqlite) is used
for local runs and tests and keeps SQLAlchemy's default pool.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator, AsyncIterator

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from ticketing.core.config import get_settings
from ticketing.core.exceptions import StorageUnavailable, TicketingError
from ticketing.core.logging import get_logger

logger = get_logger(__name__)
settings = get_settings()


def build_engine(url: str) -> AsyncEngine:
    if url.startswith("sqlite"):
        return create_async_engine(url, echo=settings.DEBUG)
    return create_async_engine(
        url,
        echo=settings.DEBUG,
        pool_size=settings.DB_POOL_SIZE,
        max_overflow=settings.DB_MAX_OVERFLOW,
        pool_timeout=settings.DB_POOL_TIMEOUT,
        pool_recycle=settings.DB_POOL_RECYCLE,
        pool_pre_ping=True,
    )


engine = build_engine(settings.DATABASE_URL)
AsyncSessionLocal = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    Yield a session per request.

    Write services commit explicitly so they can publish after the commit;
    anything left pending here is committed, and errors roll back.
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


@asynccontextmanager
async def atomic(db: AsyncSession) -> AsyncIterator[AsyncSession]:
    """
    Run the block as one transaction: commit on success, roll back on any
    error. Storage errors are re-raised as StorageUnavailable so callers get
    a structured failure instead of a driver exception.
    """
    try:
        yield db
        await db.commit()
    except TicketingError:
        await db.rollback()
        raise
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error("transaction_failed", error=str(e))
        raise StorageUnavailable("Storage temporarily unavailable, please try again") from e
    except BaseException:
        await db.rollback()
        raise
