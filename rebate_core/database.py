"""Database engine and session factory."""

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import NullPool

from rebate_core.config.settings import settings


def create_engine(
    database_url: str | None = None, use_null_pool: bool = False
) -> AsyncEngine:
    """
    Create the async engine.

    Args:
        database_url: Override for settings.database_url
        use_null_pool: Open a fresh connection per checkout (one-shot scripts)
    """
    kwargs = {"echo": settings.database_echo}
    if use_null_pool:
        kwargs["poolclass"] = NullPool
    return create_async_engine(database_url or settings.database_url, **kwargs)


def create_session_maker(
    engine: AsyncEngine | None = None,
) -> async_sessionmaker[AsyncSession]:
    """Create a session maker whose objects stay usable after commit."""
    if engine is None:
        engine = create_engine()
    return async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


engine = create_engine()
async_session_maker = create_session_maker(engine)
