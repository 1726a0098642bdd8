import os
from typing import Any, Dict, Optional

from sqlalchemy.ext.asyncio import AsyncSession, AsyncEngine, create_async_engine
from sqlalchemy.orm import sessionmaker, declarative_base
from sqlalchemy.pool import NullPool, StaticPool


engine: Optional[AsyncEngine] = None
AsyncSessionLocal: Optional[sessionmaker] = None
Base = declarative_base()


def database_url() -> str:
    """``DATABASE_URL`` with a plain ``postgresql://`` scheme moved to asyncpg."""
    url = (os.getenv("DATABASE_URL") or "").strip()
    if not url:
        raise RuntimeError("DATABASE_URL environment variable is required")
    if url.startswith("postgresql://"):
        url = "postgresql+asyncpg://" + url[len("postgresql://"):]
    return url


def engine_options(url: str) -> Dict[str, Any]:
    if not url.startswith("sqlite"):
        return {"pool_pre_ping": True}
    # :memory: lives inside one connection; files take a connection per session.
    return {"poolclass": StaticPool if ":memory:" in url else NullPool}


def get_engine() -> AsyncEngine:
    """Engine for the match/stats store, built on first request.

    Sessions never expire on commit: verified matches and the aggregates
    they touched are serialized into responses after their transaction ends.
    """

    global engine, AsyncSessionLocal

    if engine is None:
        url = database_url()
        engine = create_async_engine(url, echo=False, **engine_options(url))
        AsyncSessionLocal = sessionmaker(
            engine, class_=AsyncSession, expire_on_commit=False
        )

    return engine


async def get_session() -> AsyncSession:
    if AsyncSessionLocal is None:
        get_engine()

    assert AsyncSessionLocal is not None
    async with AsyncSessionLocal() as session:
        yield session
