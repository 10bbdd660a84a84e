from contextlib import asynccontextmanager
from pathlib import Path

from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from insightguru.errors import StorageError

engine: AsyncEngine | None = None
async_session: async_sessionmaker[AsyncSession] | None = None


class Base(DeclarativeBase):
    pass


async def init_storage(dsn: str) -> None:
    global engine, async_session
    database = make_url(dsn).database
    if database and database != ":memory:":
        Path(database).parent.mkdir(parents=True, exist_ok=True)

    # Table registration
    from insightguru.models import storage  # noqa: F401

    engine = create_async_engine(dsn, echo=False)
    async_session = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def close_storage() -> None:
    global engine, async_session
    if engine:
        await engine.dispose()
    engine = None
    async_session = None


@asynccontextmanager
async def get_storage_session():
    if async_session is None:
        raise StorageError("Local storage is not initialised")
    async with async_session() as session:
        yield session
