from typing import AsyncIterator, Tuple

from fastapi import Request
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from app.platform.db.base import Base


def create_engine_and_sessionmaker(
    database_url: str, echo: bool = False
) -> Tuple[AsyncEngine, async_sessionmaker]:
    """
    Build the async engine and session factory for a database URL.

    Called once per application lifespan; the pair is stored on app.state.
    SQLite (aiosqlite) URLs skip the pool sizing that only applies to server databases.
    """
    engine_kwargs = {"echo": echo, "future": True, "pool_pre_ping": True}
    if not database_url.startswith("sqlite"):
        engine_kwargs.update(
            pool_recycle=1800,
            pool_size=20,
            max_overflow=30,  # (burst capacity)
            pool_timeout=30,
        )

    engine = create_async_engine(database_url, **engine_kwargs)
    session_factory = async_sessionmaker(
        engine, expire_on_commit=False, autoflush=False, autocommit=False
    )
    return engine, session_factory


async def create_tables(engine: AsyncEngine) -> None:
    # Registers the waiting list tables on Base.metadata
    import app.features.waitlist.models.waitlist  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def get_db(request: Request) -> AsyncIterator[AsyncSession]:
    async with request.app.state.sessionmaker() as session:
        yield session
