"""Database connection and session management."""

from typing import AsyncGenerator

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from src.config.settings import settings

DATABASE_URL = settings.database_url

# In-memory and file SQLite share one connection; other backends pool normally
if DATABASE_URL.startswith("sqlite"):
    async_engine = create_async_engine(
        DATABASE_URL,
        echo=settings.database_echo,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
else:
    async_engine = create_async_engine(
        DATABASE_URL,
        echo=settings.database_echo,
        pool_pre_ping=True,
    )

AsyncSessionLocal = async_sessionmaker(
    async_engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


async def get_async_session() -> AsyncGenerator[AsyncSession, None]:
    """Get async database session."""
    async with AsyncSessionLocal() as session:
        yield session


__all__ = [
    "AsyncSessionLocal",
    "get_async_session",
    "async_engine",
]
