from __future__ import annotations

from collections.abc import AsyncIterator

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from services.pricing.app.settings import SETTINGS


def create_engine(database_url: str, *, statement_timeout_ms: int) -> AsyncEngine:
    """Engine for catalog reads. Every query runs under a server-side statement timeout."""
    connect_args = {}
    if database_url.startswith("postgresql+asyncpg://"):
        connect_args["server_settings"] = {"statement_timeout": str(statement_timeout_ms)}
    # NullPool avoids cross-event-loop pooled connections during tests.
    return create_async_engine(database_url, pool_pre_ping=True, poolclass=NullPool, connect_args=connect_args)


ENGINE = create_engine(SETTINGS.database_url, statement_timeout_ms=SETTINGS.statement_timeout_ms)
SESSIONMAKER = async_sessionmaker(ENGINE, expire_on_commit=False, class_=AsyncSession)


async def get_session() -> AsyncIterator[AsyncSession]:
    # Pricing only reads; the transaction is rolled back when the session closes.
    async with SESSIONMAKER() as session:
        yield session
