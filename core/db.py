from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.pool import NullPool
from sqlmodel.ext.asyncio.session import AsyncSession as SQLModelAsyncSession

from typing import Annotated, AsyncGenerator

from core.config import settings
import models  # noqa: F401  registers tables on SQLModel.metadata


def _build_engine():
    """ Async DB engine; SQLite connections are not pooled across event loops """
    if settings.DATABASE_URL.startswith("sqlite"):
        return create_async_engine(settings.DATABASE_URL, poolclass=NullPool)
    return create_async_engine(settings.DATABASE_URL, pool_pre_ping=True)

engine = _build_engine()

async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """ Yield an async DB session per request """
    async with SQLModelAsyncSession(engine, expire_on_commit=False) as session:
        yield session

# DB session dependency injection via type hint
SessionDep = Annotated[AsyncSession, Depends(get_db)]
