from typing import AsyncGenerator

from fastapi import Request
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base

Base = declarative_base()


def build_engine(database_url: str) -> AsyncEngine:
    # pool_pre_ping: check connection is alive before use (avoids "connection is closed" errors
    # when DB or network closed idle connections).
    kwargs = {"echo": False, "future": True, "pool_pre_ping": True}
    if not database_url.startswith("sqlite"):
        # discard connections after this many seconds to avoid stale connections
        kwargs["pool_recycle"] = 300
    return create_async_engine(database_url, **kwargs)


def build_sessionmaker(engine: AsyncEngine) -> async_sessionmaker:
    return async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


async def get_db(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """Yield a session from the factory the running app was built with."""
    session_factory: async_sessionmaker = request.app.state.sessionmaker
    async with session_factory() as session:
        yield session
