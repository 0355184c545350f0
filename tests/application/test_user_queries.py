"""Tests for cached user reads."""

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from storefront.application.cache_invalidation import UserCacheInvalidationService
from storefront.application.user_queries import UserQueryService
from storefront.infrastructure.cache import RedisCache
from storefront.infrastructure.cache_keys import UserCacheKeys
from storefront.infrastructure.models import UserModel
from storefront.infrastructure.repositories import SqlAlchemyUserReadRepository


@pytest.fixture
async def users(
    session_factory: async_sessionmaker[AsyncSession],
) -> SqlAlchemyUserReadRepository:
    async with session_factory() as session:
        session.add(UserModel(id="u1", email="ann@example.com", name="Ann"))
        await session.commit()
    return SqlAlchemyUserReadRepository(session_factory=session_factory)


async def rename(factory: async_sessionmaker[AsyncSession], user_id: str, name: str) -> None:
    async with factory() as session:
        model = await session.get(UserModel, user_id)
        model.name = name
        await session.commit()


class TestUserQueryService:
    """Tests for read-through caching and invalidation."""

    async def test_detail_is_cached_until_invalidated(
        self,
        cache: RedisCache,
        users: SqlAlchemyUserReadRepository,
        session_factory: async_sessionmaker[AsyncSession],
    ) -> None:
        """Stale reads end once the user's keys are invalidated."""
        queries = UserQueryService(cache, users)
        invalidation = UserCacheInvalidationService(cache, users)

        assert (await queries.get_user("u1"))["name"] == "Ann"
        await rename(session_factory, "u1", "Anna")
        assert (await queries.get_user("u1"))["name"] == "Ann"

        await invalidation.invalidate_user_cache("u1")

        assert (await queries.get_user("u1"))["name"] == "Anna"

    async def test_lookup_by_email(
        self, cache: RedisCache, users: SqlAlchemyUserReadRepository
    ) -> None:
        """Email lookups are case-insensitive and cached under the lower-case key."""
        queries = UserQueryService(cache, users)
        assert (await queries.get_user_by_email("ANN@example.com"))["id"] == "u1"
        assert await cache.exists(UserCacheKeys.by_email("ann@example.com"))

    async def test_unknown_user_not_cached(
        self, cache: RedisCache, users: SqlAlchemyUserReadRepository
    ) -> None:
        """Misses are not stored."""
        queries = UserQueryService(cache, users)
        assert await queries.get_user("ghost") is None
        assert await cache.exists(UserCacheKeys.by_id("ghost")) is False

    async def test_list_version_orphans_pages(
        self,
        cache: RedisCache,
        users: SqlAlchemyUserReadRepository,
        session_factory: async_sessionmaker[AsyncSession],
    ) -> None:
        """Bumping the list version makes the next listing fresh."""
        queries = UserQueryService(cache, users)
        invalidation = UserCacheInvalidationService(cache, users)

        first = await queries.list_users()
        assert first["total"] == 1
        assert await queries.current_list_version() == 0

        async with session_factory() as session:
            session.add(UserModel(id="u2", email="ben@example.com"))
            await session.commit()
        assert (await queries.list_users())["total"] == 1

        await invalidation.invalidate_all_list_caches()

        assert await queries.current_list_version() == 1
        assert (await queries.list_users())["total"] == 2
        assert await cache.exists(UserCacheKeys.list(1))
