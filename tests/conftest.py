"""Shared fixtures.

Persistence tests run against a throwaway SQLite file through
aiosqlite; cache tests run against fakeredis. Neither needs a server.
"""

from pathlib import Path
from typing import AsyncIterator

import fakeredis.aioredis
import pytest
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from storefront.application.event_dispatcher import EventDispatcher
from storefront.infrastructure.cache import RedisCache
from storefront.infrastructure.database import (
    build_engine,
    build_session_factory,
    create_all,
)
from storefront.infrastructure.unit_of_work import UnitOfWork


@pytest.fixture
def database_url(tmp_path: Path) -> str:
    return f"sqlite+aiosqlite:///{tmp_path / 'storefront.db'}"


@pytest.fixture
async def engine(database_url: str) -> AsyncIterator[AsyncEngine]:
    """Engine with all tables created."""
    engine = build_engine(database_url)
    await create_all(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return build_session_factory(engine)


@pytest.fixture
def dispatcher() -> EventDispatcher:
    """Dispatcher delivering inline, so tests observe listener effects."""
    return EventDispatcher(background=False)


@pytest.fixture
def uow(
    session_factory: async_sessionmaker[AsyncSession],
    dispatcher: EventDispatcher,
) -> UnitOfWork:
    return UnitOfWork(session_factory, publisher=dispatcher)


@pytest.fixture
async def redis_client() -> AsyncIterator[fakeredis.aioredis.FakeRedis]:
    client = fakeredis.aioredis.FakeRedis(server=fakeredis.FakeServer(), decode_responses=True)
    yield client
    await client.flushall()
    await client.aclose()


@pytest.fixture
def cache(redis_client: fakeredis.aioredis.FakeRedis) -> RedisCache:
    return RedisCache(redis_client)
