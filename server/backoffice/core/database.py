"""Database engines, declarative bases and async session helpers.

Two schemas live side by side: the platform registry (companies and
platform-level users) and the per-company schema that every tenant database
receives when the tenant registry opens it.
"""

from datetime import datetime, timezone
from typing import AsyncGenerator

from fastapi import Request
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.pool import StaticPool

from .config import settings


class PlatformBase(DeclarativeBase):
    """Base class for platform registry models."""


class TenantBase(DeclarativeBase):
    """Base class for models stored in each company database."""


def utcnow() -> datetime:
    """Naive UTC timestamp, the form every DateTime column stores."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def create_engine_for(url: str, echo: bool = False) -> AsyncEngine:
    """
    Create an async engine for a database URL.

    SQLite URLs get a StaticPool so an in-memory database survives across
    sessions; asyncpg URLs get the configured connect timeout.
    """
    is_sqlite = url.startswith("sqlite")
    connect_args: dict = {}
    if is_sqlite:
        connect_args["check_same_thread"] = False
    elif "asyncpg" in url:
        connect_args["timeout"] = settings.storage_timeout_seconds

    return create_async_engine(
        url,
        echo=echo,
        pool_pre_ping=True,
        poolclass=StaticPool if is_sqlite else None,
        connect_args=connect_args,
    )


def build_tenant_url(uri: str, db_name: str) -> str:
    """Combine a storage URI with a logical database name."""
    url = make_url(uri).set(database=db_name)
    return url.render_as_string(hide_password=False)


def session_factory_for(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Create the session factory used for an engine."""
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
        autocommit=False,
    )


async def init_platform_db(engine: AsyncEngine) -> None:
    """Create the platform registry tables."""
    async with engine.begin() as conn:
        await conn.run_sync(PlatformBase.metadata.create_all)


async def get_platform_db(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """
    Dependency function that yields platform registry sessions.

    Yields:
        AsyncSession: Platform database session
    """
    async with request.app.state.platform_sessions() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise
