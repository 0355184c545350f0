"""Tests for the Redis cache adapter."""

from typing import Any

import fakeredis.aioredis
import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from storefront.domain.exceptions import CacheUnavailableError
from storefront.infrastructure.cache import RedisCache


class UnreachablePipeline:
    """Pipeline that queues commands and fails on execute."""

    def __getattr__(self, name: str) -> Any:
        return lambda *args, **kwargs: self

    async def execute(self) -> list[Any]:
        raise RedisConnectionError("Connection refused")

    async def __aenter__(self) -> "UnreachablePipeline":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        return None


class UnreachableRedis:
    """Client whose every command fails like a dropped connection."""

    def pipeline(self, transaction: bool = True) -> UnreachablePipeline:
        return UnreachablePipeline()

    def __getattr__(self, name: str) -> Any:
        async def fail(*args: Any, **kwargs: Any) -> Any:
            raise RedisConnectionError("Connection refused")

        return fail


class TestRedisCache:
    """Tests for RedisCache operations."""

    async def test_set_get_json(
        self, cache: RedisCache, redis_client: fakeredis.aioredis.FakeRedis
    ) -> None:
        """Values round-trip as JSON under the prefixed key."""
        await cache.set("user:1", {"id": "1", "tags": ["a"]}, ttl_seconds=30)

        assert await cache.get("user:1") == {"id": "1", "tags": ["a"]}
        assert await redis_client.get("cache:user:1") == '{"id": "1", "tags": ["a"]}'
        assert 0 < await cache.ttl("user:1") <= 30

    async def test_default_ttl(self, redis_client: fakeredis.aioredis.FakeRedis) -> None:
        """set without a TTL applies the default."""
        cache = RedisCache(redis_client, prefix="app", default_ttl=120)
        await cache.set("k", 1)
        assert 60 < await redis_client.ttl("app:k") <= 120

    async def test_missing_key(self, cache: RedisCache) -> None:
        """Missing keys read as None and do not exist."""
        assert await cache.get("nope") is None
        assert await cache.exists("nope") is False

    async def test_delete_counts_existing_keys(self, cache: RedisCache) -> None:
        """delete reports how many keys were removed."""
        await cache.set("a", 1)
        await cache.set("b", 2)
        assert await cache.delete("a", "b", "c") == 2
        assert await cache.delete() == 0

    async def test_incr_sets_ttl_on_creation(self, cache: RedisCache) -> None:
        """A counter created by incr gets the TTL; later increments keep it."""
        assert await cache.incr("version", ttl_seconds=100) == 1
        assert 0 < await cache.ttl("version") <= 100
        assert await cache.incr("version", ttl_seconds=100) == 2
        assert await cache.get("version") == 2

    async def test_incr_without_ttl_never_expires(self, cache: RedisCache) -> None:
        """No TTL is set when none is requested."""
        await cache.incr("counter")
        assert await cache.ttl("counter") == -1

    async def test_incr_runs_in_one_transaction(
        self,
        cache: RedisCache,
        redis_client: fakeredis.aioredis.FakeRedis,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        """Increment and expiry are sent as a single MULTI/EXEC block."""
        calls = []
        pipeline = redis_client.pipeline

        def recording_pipeline(*args: Any, **kwargs: Any) -> Any:
            calls.append(kwargs.get("transaction", True))
            return pipeline(*args, **kwargs)

        monkeypatch.setattr(redis_client, "pipeline", recording_pipeline)

        assert await cache.incr("version", ttl_seconds=100) == 1

        assert calls == [True]
        assert 0 < await redis_client.ttl("cache:version") <= 100

    async def test_incr_gives_persistent_counter_a_ttl(
        self, cache: RedisCache, redis_client: fakeredis.aioredis.FakeRedis
    ) -> None:
        """A counter left without expiry picks one up on the next increment."""
        await redis_client.set("cache:version", 7)

        assert await cache.incr("version", ttl_seconds=100) == 8
        assert 0 < await cache.ttl("version") <= 100

    async def test_incr_keeps_existing_ttl(
        self, cache: RedisCache, redis_client: fakeredis.aioredis.FakeRedis
    ) -> None:
        """Later increments never extend the original expiry."""
        await redis_client.set("cache:version", 1, ex=30)

        assert await cache.incr("version", ttl_seconds=100) == 2
        assert 0 < await cache.ttl("version") <= 30

    async def test_set_nx_only_writes_absent_keys(self, cache: RedisCache) -> None:
        """nx reports whether the write happened."""
        assert await cache.set("k", 1, nx=True) is True
        assert await cache.set("k", 2, nx=True) is False
        assert await cache.get("k") == 1
        assert await cache.set("k", 3) is True
        assert await cache.get("k") == 3

    async def test_keys_and_delete_pattern(self, cache: RedisCache) -> None:
        """Pattern scans return unprefixed keys."""
        await cache.set("user:profile:list:v1:page:1", [])
        await cache.set("user:profile:list:v1:page:2", [])
        await cache.set("user:profile:id:1", {})

        found = await cache.keys("user:profile:list:*")
        assert sorted(found) == [
            "user:profile:list:v1:page:1",
            "user:profile:list:v1:page:2",
        ]
        assert await cache.delete_pattern("user:profile:list:*") == 2
        assert await cache.exists("user:profile:id:1")

    async def test_get_or_set(self, cache: RedisCache) -> None:
        """The loader runs once; later reads hit the cache."""
        calls = []

        async def loader() -> dict:
            calls.append(1)
            return {"value": 42}

        assert await cache.get_or_set("k", loader) == {"value": 42}
        assert await cache.get_or_set("k", loader) == {"value": 42}
        assert len(calls) == 1

    async def test_get_or_set_does_not_cache_none(self, cache: RedisCache) -> None:
        """None results are returned but not stored."""

        async def loader() -> None:
            return None

        assert await cache.get_or_set("k", loader) is None
        assert await cache.exists("k") is False

    async def test_ping(self, cache: RedisCache) -> None:
        """ping reports a live backend."""
        assert await cache.ping() is True


class TestRedisCacheFailures:
    """Tests for Redis error handling."""

    @pytest.fixture
    def broken(self) -> RedisCache:
        return RedisCache(UnreachableRedis())  # type: ignore[arg-type]

    @pytest.mark.parametrize(
        "operation",
        [
            lambda c: c.get("k"),
            lambda c: c.set("k", 1),
            lambda c: c.delete("k"),
            lambda c: c.incr("k", ttl_seconds=10),
            lambda c: c.exists("k"),
            lambda c: c.ttl("k"),
            lambda c: c.ping(),
        ],
    )
    async def test_errors_become_cache_unavailable(self, broken: RedisCache, operation) -> None:  # type: ignore[no-untyped-def]
        """Redis errors surface as CacheUnavailableError."""
        with pytest.raises(CacheUnavailableError) as exc_info:
            await operation(broken)
        assert isinstance(exc_info.value.__cause__, RedisConnectionError)

    async def test_get_or_set_falls_back_to_loader(self, broken: RedisCache) -> None:
        """Reads keep working from the source when the cache is down."""

        async def loader() -> str:
            return "fresh"

        assert await broken.get_or_set("k", loader) == "fresh"
