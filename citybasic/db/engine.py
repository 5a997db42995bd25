"""
AsyncEngine factory, standalone session context manager and schema bootstrap.

NullPool because the hosted Postgres sits behind PgBouncer, which owns
connection pooling; SA should not keep its own pool on top.
"""

from contextlib import asynccontextmanager

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import NullPool

from citybasic.config import settings


def create_engine(database_url: str | None = None) -> AsyncEngine:
    """Create the async engine on the asyncpg driver."""
    url = (database_url or settings.database_url).replace("postgresql://", "postgresql+asyncpg://", 1)
    return create_async_engine(
        url,
        poolclass=NullPool,
        echo=settings.debug and settings.environment == "development",
    )


@asynccontextmanager
async def standalone_session(database_url: str | None = None):
    """
    For scripts that run outside FastAPI (scripts/init_db.py).
    Owns the engine lifecycle so NullPool connections are not leaked.
    """
    engine = create_engine(database_url)
    factory = async_sessionmaker(engine, expire_on_commit=False)
    try:
        async with factory() as session:
            yield session
    finally:
        await engine.dispose()


async def create_schema(database_url: str | None = None) -> None:
    """
    Create any missing community tables. Used by scripts/init_db.py on a fresh
    database; existing tables are left alone.
    """
    from citybasic.db.models import Base

    engine = create_engine(database_url)
    try:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
    finally:
        await engine.dispose()
