"""Keep cached user views consistent with the users table.

The Auth and Users contexts cache the same rows under different key
layouts, so every change to a user must clear both. Invalidation is a
freshness optimization only: the database stays authoritative, and a
failed invalidation leaves the cache stale until entries expire.
"""

import asyncio
from typing import Any

import structlog

from storefront.application.event_dispatcher import EventDispatcher
from storefront.domain.base import DomainEvent
from storefront.domain.events import (
    AuthUserUpdated,
    UserCreatedFromOAuth,
    UserDeleted,
    UserProfileUpdated,
    UserRegistered,
)
from storefront.domain.exceptions import CacheUnavailableError
from storefront.domain.repositories import UserReadRepository
from storefront.infrastructure.cache import CachePort
from storefront.infrastructure.cache_keys import (
    LIST_VERSION_TTL,
    AuthUserCacheKeys,
    UserCacheKeys,
)

logger = structlog.get_logger()


class UserCacheInvalidationService:
    """Clear every cache entry derived from one user.

    Args:
        cache: Cache port.
        user_repository: Used to look up the email when an event omits it.
    """

    def __init__(self, cache: CachePort, user_repository: UserReadRepository) -> None:
        self._cache = cache
        self._users = user_repository

    async def invalidate_user_cache(self, user_id: str, email: str | None = None) -> None:
        """Delete the user's exact keys in both layouts and bump list versions.

        When ``email`` is missing it is looked up first. If that lookup
        fails, only the id-keyed entries are cleared and the failure is
        logged as a distinct warning.

        Raises:
            CacheUnavailableError: If the cache rejects the deletes.
        """
        if not email:
            email = await self._enrich_email(user_id)

        keys = [
            *UserCacheKeys.invalidation_keys(user_id, email),
            *AuthUserCacheKeys.invalidation_keys(user_id, email),
        ]
        await asyncio.gather(*(self._cache.delete(key) for key in keys))
        await self._bump_list_versions()

        logger.debug(
            "User cache invalidated",
            user_id=user_id,
            email_known=email is not None,
            key_count=len(keys),
        )

    async def invalidate_user_cache_by_email(self, email: str) -> None:
        await asyncio.gather(
            self._cache.delete(UserCacheKeys.by_email(email)),
            self._cache.delete(AuthUserCacheKeys.by_email(email)),
        )

    async def invalidate_all_list_caches(self) -> None:
        """Orphan every cached user listing. Used after bulk changes."""
        await self._bump_list_versions()

    async def _enrich_email(self, user_id: str) -> str | None:
        try:
            return await self._users.find_email_by_id(user_id)
        except Exception as e:
            logger.warning(
                "User email lookup failed during cache invalidation",
                user_id=user_id,
                error_type=type(e).__name__,
                error=str(e),
            )
            return None

    async def _bump_list_versions(self) -> None:
        await asyncio.gather(
            *(self._bump(key) for key in (UserCacheKeys.list_version(),))
        )

    async def _bump(self, key: str) -> None:
        """Raise a list version by exactly one.

        If the increment fails, the counter is initialized to 1 only when
        it does not exist yet. An existing counter is never overwritten,
        since that could lower it onto a version whose pages are cached.

        Raises:
            CacheUnavailableError: If the counter exists and could not be
                incremented.
        """
        try:
            await self._cache.incr(key, ttl_seconds=LIST_VERSION_TTL)
        except CacheUnavailableError:
            logger.warning("List version increment failed", key=key)
            if await self._cache.set(key, 1, LIST_VERSION_TTL, nx=True):
                return
            logger.error("List version left unchanged", key=key)
            raise


def _user_fields(event: DomainEvent) -> tuple[str, str | None]:
    payload: dict[str, Any] = event.payload
    return payload["user_id"], payload.get("email")


class UnifiedUserCacheInvalidationListener:
    """Invalidate both cache layouts on any user change."""

    EVENT_TYPES: tuple[str, ...] = (
        UserRegistered.event_type,
        UserCreatedFromOAuth.event_type,
        AuthUserUpdated.event_type,
        UserProfileUpdated.event_type,
        UserDeleted.event_type,
    )

    def __init__(self, service: UserCacheInvalidationService) -> None:
        self._service = service

    def register(self, dispatcher: EventDispatcher) -> None:
        for event_type in self.EVENT_TYPES:
            dispatcher.subscribe(event_type, self.handle)

    async def handle(self, event: DomainEvent) -> None:
        user_id, email = _user_fields(event)
        logger.debug(
            "User cache invalidation requested",
            event_type=event.event_type,
            user_id=user_id,
        )
        await self._service.invalidate_user_cache(user_id, email)


class AuthUserCacheInvalidationListener:
    """Clear the Auth context's user entries only. No list bump."""

    EVENT_TYPES: tuple[str, ...] = (
        AuthUserUpdated.event_type,
        UserProfileUpdated.event_type,
    )

    def __init__(self, cache: CachePort) -> None:
        self._cache = cache

    def register(self, dispatcher: EventDispatcher) -> None:
        for event_type in self.EVENT_TYPES:
            dispatcher.subscribe(event_type, self.handle)

    async def handle(self, event: DomainEvent) -> None:
        user_id, email = _user_fields(event)
        await asyncio.gather(
            *(
                self._cache.delete(key)
                for key in AuthUserCacheKeys.invalidation_keys(user_id, email)
            )
        )


def register_cache_invalidation_listeners(
    dispatcher: EventDispatcher,
    service: UserCacheInvalidationService,
    cache: CachePort,
) -> tuple[UnifiedUserCacheInvalidationListener, AuthUserCacheInvalidationListener]:
    """Subscribe the user cache listeners and return them."""
    unified = UnifiedUserCacheInvalidationListener(service)
    auth = AuthUserCacheInvalidationListener(cache)
    unified.register(dispatcher)
    auth.register(dispatcher)
    logger.info(
        "Cache invalidation listeners registered",
        event_types=sorted({*unified.EVENT_TYPES, *auth.EVENT_TYPES}),
    )
    return unified, auth
