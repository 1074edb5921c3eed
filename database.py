from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.pool import StaticPool

from config import settings


def _is_in_memory(url: str) -> bool:
    path = url.partition("://")[2]
    return path in ("", "/") or ":memory:" in path


def _get_engine_kwargs(url: Optional[str] = None):
    """Return dialect-specific engine options for SQLite vs PostgreSQL."""
    url = url or settings.database_url
    kwargs = {"echo": settings.debug}
    if url.startswith("sqlite"):
        kwargs["connect_args"] = {"check_same_thread": False}
        # in-memory only: file databases need a connection per session
        if _is_in_memory(url):
            kwargs["poolclass"] = StaticPool
    elif url.startswith("postgresql"):
        kwargs["pool_pre_ping"] = True
    return kwargs


def make_engine(url: Optional[str] = None):
    url = url or settings.database_url
    return create_async_engine(url, **_get_engine_kwargs(url))


def make_sessionmaker(bind) -> async_sessionmaker:
    return async_sessionmaker(
        bind,
        class_=AsyncSession,
        expire_on_commit=False,
        autocommit=False,
        autoflush=False,
    )


engine = make_engine()

AsyncSessionLocal = make_sessionmaker(engine)


class Base(DeclarativeBase):
    pass


async def get_db():
    async with AsyncSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def init_db(bind=None):
    # import models so their tables are registered on Base.metadata
    import models  # noqa: F401

    async with (bind or engine).begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
