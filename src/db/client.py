"""Database lifecycle: one engine per process, created and disposed by the app lifespan."""

import asyncio
import logging
from collections.abc import AsyncIterator, Awaitable
from typing import TypeVar

from sqlalchemy.exc import InterfaceError, OperationalError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool
from starlette.requests import HTTPConnection

from src.config.settings import get_settings
from src.db.models import Base
from src.utils.exceptions import StoreUnavailable

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _engine_options(url: str, timeout: float) -> dict:
    if url.startswith("sqlite"):
        options: dict = {"connect_args": {"check_same_thread": False}}
        if ":memory:" in url or url.rstrip("/").endswith(":"):
            # A single shared connection, otherwise every checkout sees an empty database.
            options["poolclass"] = StaticPool
        return options
    return {"pool_pre_ping": True, "pool_timeout": timeout}


class Database:
    def __init__(self, url: str, timeout: float):
        self.url = url
        self.timeout = timeout
        self.engine = create_async_engine(url, **_engine_options(url, timeout))
        self.session_factory = async_sessionmaker(self.engine, expire_on_commit=False)

    async def init(self) -> None:
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Database ready (%s)", self.engine.url.render_as_string(hide_password=True))

    async def dispose(self) -> None:
        await self.engine.dispose()

    def session(self) -> AsyncSession:
        return self.session_factory()


def create_database() -> Database:
    settings = get_settings()
    return Database(settings.DATABASE_URL, settings.STORE_TIMEOUT_SECONDS)


async def bounded(awaitable: Awaitable[T], timeout: float | None = None) -> T:
    """Await a store operation, surfacing timeouts and outages as StoreUnavailable."""
    if timeout is None:
        timeout = get_settings().STORE_TIMEOUT_SECONDS
    try:
        return await asyncio.wait_for(awaitable, timeout)
    except asyncio.TimeoutError:
        logger.error("Store operation exceeded %.1fs", timeout)
        raise StoreUnavailable()
    except (OperationalError, InterfaceError) as exc:
        logger.error("Store unavailable: %s", exc.__class__.__name__)
        raise StoreUnavailable() from exc


def get_database(conn: HTTPConnection) -> Database:
    return conn.app.state.database


async def get_db(conn: HTTPConnection) -> AsyncIterator[AsyncSession]:
    """FastAPI dependency: one session per request, closed afterwards."""
    async with get_database(conn).session() as session:
        yield session
