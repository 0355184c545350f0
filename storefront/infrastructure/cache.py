"""Cache port and its Redis implementation.

Values are JSON-serialized and every key is namespaced with a prefix
(``cache:`` by default). Redis failures surface as
``CacheUnavailableError`` so callers decide whether a cache miss is
tolerable; nothing here swallows errors silently.
"""

import json
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Awaitable, Callable, Protocol, TypeVar

import structlog
from redis.asyncio import Redis
from redis.exceptions import RedisError

from storefront.domain.exceptions import CacheUnavailableError

logger = structlog.get_logger()

T = TypeVar("T")

DEFAULT_TTL_SECONDS = 600


class CachePort(Protocol):
    """Key/value store with TTL, atomic increment and pattern scans."""

    async def get(self, key: str) -> Any | None: ...

    async def set(
        self, key: str, value: Any, ttl_seconds: int | None = None, nx: bool = False
    ) -> bool: ...

    async def delete(self, *keys: str) -> int: ...

    async def incr(self, key: str, ttl_seconds: int | None = None) -> int: ...

    async def exists(self, key: str) -> bool: ...

    async def ttl(self, key: str) -> int: ...

    async def keys(self, pattern: str) -> list[str]: ...

    async def delete_pattern(self, pattern: str) -> int: ...

    async def get_or_set(
        self,
        key: str,
        loader: Callable[[], Awaitable[T]],
        ttl_seconds: int | None = None,
    ) -> T: ...


class RedisCache:
    """``CachePort`` backed by ``redis.asyncio``.

    Args:
        client: Redis client created with ``decode_responses=True``.
        prefix: Namespace prepended to every key.
        default_ttl: TTL applied by ``set`` when none is given.
    """

    def __init__(
        self,
        client: Redis,
        prefix: str = "cache",
        default_ttl: int = DEFAULT_TTL_SECONDS,
    ) -> None:
        self._client = client
        self._prefix = prefix
        self._default_ttl = default_ttl

    @classmethod
    def from_url(cls, url: str, **kwargs: Any) -> "RedisCache":
        client = Redis.from_url(
            url,
            decode_responses=True,
            socket_timeout=5,
            socket_connect_timeout=5,
        )
        return cls(client, **kwargs)

    def _key(self, key: str) -> str:
        return f"{self._prefix}:{key}" if self._prefix else key

    def _strip(self, key: str) -> str:
        head = f"{self._prefix}:"
        return key[len(head):] if self._prefix and key.startswith(head) else key

    @asynccontextmanager
    async def _guard(self, operation: str, key: str) -> AsyncIterator[None]:
        try:
            yield
        except RedisError as e:
            logger.warning(
                "Cache operation failed",
                operation=operation,
                key=key,
                error=str(e),
            )
            raise CacheUnavailableError(
                f"Cache {operation} failed for {key}: {e}",
                {"operation": operation, "key": key},
            ) from e

    # -------------------------------------------------------------------------
    # Port operations
    # -------------------------------------------------------------------------

    async def get(self, key: str) -> Any | None:
        async with self._guard("get", key):
            raw = await self._client.get(self._key(key))
        if raw is None:
            return None
        return json.loads(raw)

    async def set(
        self,
        key: str,
        value: Any,
        ttl_seconds: int | None = None,
        nx: bool = False,
    ) -> bool:
        """Store a value.

        With ``nx`` the write only happens when the key is absent.

        Returns:
            Whether the value was written.
        """
        payload = json.dumps(value, default=str)
        async with self._guard("set", key):
            written = await self._client.set(
                self._key(key), payload, ex=ttl_seconds or self._default_ttl, nx=nx
            )
        return bool(written)

    async def delete(self, *keys: str) -> int:
        """Delete keys. Missing keys are not an error.

        Returns:
            Number of keys that existed.
        """
        if not keys:
            return 0
        async with self._guard("delete", ",".join(keys)):
            return int(await self._client.delete(*(self._key(k) for k in keys)))

    async def incr(self, key: str, ttl_seconds: int | None = None) -> int:
        """Atomically increment a counter.

        INCR and EXPIRE NX run in one MULTI/EXEC block, so a counter that
        has no expiry gets ``ttl_seconds`` in the same round trip and an
        existing expiry is never pushed back.
        """
        full_key = self._key(key)
        async with self._guard("incr", key):
            async with self._client.pipeline(transaction=True) as pipe:
                pipe.incr(full_key)
                if ttl_seconds:
                    pipe.expire(full_key, ttl_seconds, nx=True)
                results = await pipe.execute()
        return int(results[0])

    async def exists(self, key: str) -> bool:
        async with self._guard("exists", key):
            return bool(await self._client.exists(self._key(key)))

    async def ttl(self, key: str) -> int:
        async with self._guard("ttl", key):
            return int(await self._client.ttl(self._key(key)))

    async def keys(self, pattern: str) -> list[str]:
        """List keys matching a glob pattern, without the prefix.

        Uses SCAN; avoid on hot paths.
        """
        async with self._guard("keys", pattern):
            return [
                self._strip(k)
                async for k in self._client.scan_iter(match=self._key(pattern), count=500)
            ]

    async def delete_pattern(self, pattern: str) -> int:
        found = await self.keys(pattern)
        return await self.delete(*found)

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    async def get_or_set(
        self,
        key: str,
        loader: Callable[[], Awaitable[T]],
        ttl_seconds: int | None = None,
    ) -> T:
        """Read-through lookup.

        A cache failure degrades to calling ``loader``; loader errors
        propagate. ``None`` results are not cached.
        """
        try:
            cached = await self.get(key)
        except CacheUnavailableError:
            cached = None
        if cached is not None:
            return cached

        value = await loader()
        if value is not None:
            try:
                await self.set(key, value, ttl_seconds)
            except CacheUnavailableError:
                logger.warning("Cache fill skipped", key=key)
        return value

    async def ping(self) -> bool:
        async with self._guard("ping", "-"):
            return bool(await self._client.ping())

    async def close(self) -> None:
        await self._client.aclose()
