"""
Async SQLAlchemy engine & session factory (asyncpg driver).

``build_engine`` takes its URL and pool options from a ``Settings`` object;
the module-level ``engine`` is the one built from the process settings.
"""

from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from app.core.config import Settings, settings


def engine_options(config: Settings) -> dict:
    options: dict = {"echo": config.DB_ECHO, "pool_pre_ping": True}
    if not config.DATABASE_URL.startswith("sqlite"):
        options.update(
            pool_size=config.DB_POOL_SIZE,
            max_overflow=config.DB_MAX_OVERFLOW,
            pool_recycle=config.DB_POOL_RECYCLE,
        )
    return options


def build_engine(config: Settings) -> AsyncEngine:
    return create_async_engine(config.DATABASE_URL, **engine_options(config))


def build_session_factory(bind: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(bind, class_=AsyncSession, expire_on_commit=False)


engine = build_engine(settings)
async_session_factory = build_session_factory(engine)
