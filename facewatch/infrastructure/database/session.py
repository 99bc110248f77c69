"""Database engine and session management."""
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine
)

from facewatch.core.config import settings
from facewatch.core.logging import get_logger
from facewatch.infrastructure.database.models import Base

logger = get_logger(__name__)


def build_engine(database_url: Optional[str] = None) -> AsyncEngine:
    """Create an async engine; pool sizing applies to server databases only."""
    database_url = database_url or settings.DATABASE_URL
    options = {"echo": settings.DEBUG}
    if not database_url.startswith("sqlite"):
        options.update(
            pool_size=settings.DATABASE_POOL_SIZE,
            max_overflow=settings.DATABASE_MAX_OVERFLOW,
            pool_timeout=settings.DATABASE_POOL_TIMEOUT,
        )
    return create_async_engine(database_url, **options)


def build_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False
    )


engine = build_engine()
async_session_factory = build_session_factory(engine)


async def init_models(bind: Optional[AsyncEngine] = None) -> None:
    """Create all tables that do not exist yet."""
    async with (bind or engine).begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database tables ready")


@asynccontextmanager
async def session_scope(
    session_factory: Optional[async_sessionmaker[AsyncSession]] = None,
) -> AsyncGenerator[AsyncSession, None]:
    """Get database session from the given (or default) factory.

    Yields:
        AsyncSession: Database session

    Example:
        ```python
        async with session_scope() as session:
            await session.execute(query)
            await session.commit()
        ```
    """
    session = (session_factory or async_session_factory)()
    logger.debug("Creating new database session")
    try:
        yield session
    except Exception as e:
        logger.error(
            "Database session error",
            error=str(e),
            exc_info=True
        )
        await session.rollback()
        raise
    finally:
        logger.debug("Closing database session")
        await session.close()
