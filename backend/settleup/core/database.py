import uuid

import asyncpg
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from settleup.core.config import settings


class CachingDisabledConnection(asyncpg.Connection):
    def _get_unique_id(self, prefix: str) -> str:
        return f"__asyncpg_{uuid.uuid4()}__"


def _get_async_url(url: str) -> str:
    """Ensure the database URL uses the asyncpg driver."""
    if url.startswith("postgresql://"):
        return url.replace("postgresql://", "postgresql+asyncpg://", 1)
    if url.startswith("postgres://"):
        return url.replace("postgres://", "postgresql+asyncpg://", 1)
    return url


def _connect_args() -> dict:
    # pgBouncer in transaction mode cannot hold named prepared statements.
    if not settings.db_pgbouncer:
        return {}
    return {
        "statement_cache_size": 0,
        "connection_class": CachingDisabledConnection,
    }


_db_url = _get_async_url(settings.database_url)

engine = create_async_engine(
    _db_url,
    echo=False,
    pool_size=settings.db_pool_size,
    max_overflow=5,
    pool_recycle=300,
    pool_pre_ping=True,
    connect_args=_connect_args(),
)
async_session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


class Base(DeclarativeBase):
    pass


async def get_db():
    async with async_session_factory() as session:
        yield session
