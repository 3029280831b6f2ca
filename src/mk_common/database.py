from collections.abc import AsyncGenerator, AsyncIterator
from contextlib import asynccontextmanager

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from config.settings import settings
from src.mk_common.errors import StorageFailureError


class Base(DeclarativeBase):
    """Shared declarative base for all ORM models across modules."""

    pass


engine: AsyncEngine = create_async_engine(
    settings.DATABASE_URL,
    echo=settings.DEBUG,
    pool_size=20,
    max_overflow=10,
)

async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency: yields an AsyncSession, auto-closes after request."""
    async with async_session_factory() as session:
        yield session


@asynccontextmanager
async def atomic(db: AsyncSession) -> AsyncIterator[None]:
    """Run the block in a savepoint and commit the outer transaction on exit.

    Ledgers call this while holding a listing lock, so the commit lands before
    the next writer for that listing is admitted. Driver errors surface as
    StorageFailureError; business exceptions pass through untouched.
    """
    try:
        async with db.begin_nested():
            yield
        await db.commit()
    except SQLAlchemyError as exc:
        await db.rollback()
        raise StorageFailureError(str(exc)) from exc
