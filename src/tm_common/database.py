"""Async engine, session factory and the transaction helper shared by all modules."""

from collections.abc import AsyncGenerator, AsyncIterator
from contextlib import asynccontextmanager

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from config.settings import settings


class Base(DeclarativeBase):
    pass


engine: AsyncEngine = create_async_engine(
    settings.DATABASE_URL,
    echo=settings.DEBUG,
    pool_size=settings.DB_POOL_SIZE,
    max_overflow=settings.DB_MAX_OVERFLOW,
    pool_pre_ping=True,
)

# expire_on_commit=False: routers read ORM attributes after unit_of_work commits
async_session_factory = async_sessionmaker(engine, expire_on_commit=False)


async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """One session per request; closed when the response is sent."""
    async with async_session_factory() as session:
        yield session


@asynccontextmanager
async def unit_of_work(db: AsyncSession) -> AsyncIterator[AsyncSession]:
    """Commit on clean exit, roll back and re-raise otherwise.

    Auth dependencies run SELECTs before the handler body, so the session has
    usually autobegun already. Committing the current transaction keeps that
    case working where ``db.begin()`` would raise.
    """
    try:
        yield db
        await db.commit()
    except Exception:
        await db.rollback()
        raise
