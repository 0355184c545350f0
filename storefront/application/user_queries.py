"""Cached reads of user data for the Users context."""

from typing import Any

import structlog

from storefront.domain.exceptions import CacheUnavailableError
from storefront.domain.repositories import UserReadRepository
from storefront.infrastructure.cache import CachePort
from storefront.infrastructure.cache_keys import (
    USER_DETAIL_TTL,
    USER_LIST_TTL,
    UserCacheKeys,
)

logger = structlog.get_logger()


class UserQueryService:
    """Read-through cache over ``UserReadRepository``.

    Listing keys embed the current list version, so invalidation never
    has to enumerate them.
    """

    def __init__(self, cache: CachePort, user_repository: UserReadRepository) -> None:
        self._cache = cache
        self._users = user_repository

    async def get_user(self, user_id: str) -> dict[str, Any] | None:
        async def load() -> dict[str, Any] | None:
            record = await self._users.find_by_id(user_id)
            return record.to_dict() if record else None

        return await self._cache.get_or_set(
            UserCacheKeys.by_id(user_id), load, USER_DETAIL_TTL
        )

    async def get_user_by_email(self, email: str) -> dict[str, Any] | None:
        async def load() -> dict[str, Any] | None:
            record = await self._users.find_by_email(email)
            return record.to_dict() if record else None

        return await self._cache.get_or_set(
            UserCacheKeys.by_email(email), load, USER_DETAIL_TTL
        )

    async def list_users(
        self,
        page: int = 1,
        limit: int = 20,
        role: str | None = None,
        status: str | None = None,
        search: str | None = None,
    ) -> dict[str, Any]:
        """Return one page of users as ``{items, total, page, limit}``."""
        version = await self.current_list_version()
        key = UserCacheKeys.list(
            version, page=page, limit=limit, role=role, status=status, search=search
        )

        async def load() -> dict[str, Any]:
            records, total = await self._users.list_users(
                page=page, limit=limit, role=role, status=status, search=search
            )
            return {
                "items": [r.to_dict() for r in records],
                "total": total,
                "page": page,
                "limit": limit,
            }

        return await self._cache.get_or_set(key, load, USER_LIST_TTL)

    async def current_list_version(self) -> int:
        """Current list version; 0 until the first invalidation."""
        try:
            raw = await self._cache.get(UserCacheKeys.list_version())
        except CacheUnavailableError:
            return 0
        return int(raw) if raw is not None else 0
