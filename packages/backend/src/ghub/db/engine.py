"""Database engine and the per-request session.

Learn: One async engine per process, built from GHUB_DATABASE_URL
(asyncpg against Postgres in production, aiosqlite in tests). Route
handlers get an AsyncSession from get_db(); SqlDataService commits its own
writes, so anything still pending when a request fails is rolled back
here.
"""

from typing import AsyncIterator

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from ghub.config import settings


def engine_options(url: str) -> dict:
    if url.startswith("sqlite"):
        return {}
    # a handful of connections per worker; bursts borrow overflow
    return {"pool_size": 5, "max_overflow": 15, "pool_pre_ping": True}


engine = create_async_engine(
    settings.database_url,
    echo=settings.debug,
    **engine_options(settings.database_url),
)

async_session_factory = async_sessionmaker(engine, expire_on_commit=False)


async def get_db() -> AsyncIterator[AsyncSession]:
    async with async_session_factory() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise
