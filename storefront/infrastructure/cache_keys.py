"""Cache key layout for user data.

The Auth and Users contexts read the same ``users`` table but cache it
under different prefixes. Both layouts share the shape::

    {prefix}:id:{user_id}
    {prefix}:email:{lower-cased email}
    {prefix}:list:version
    {prefix}:list:v{version}:page:{page}:limit:{limit}[:role:..][:status:..][:search:..]

List entries embed the current list version, so bumping the version
counter orphans every cached page at once.
"""

from typing import ClassVar

USER_DETAIL_TTL = 300
USER_LIST_TTL = 120
AUTH_USER_TTL = 3600
LIST_VERSION_TTL = 86400


class _UserKeyLayout:
    PREFIX: ClassVar[str]

    @classmethod
    def by_id(cls, user_id: str) -> str:
        return f"{cls.PREFIX}:id:{user_id}"

    @classmethod
    def by_email(cls, email: str) -> str:
        return f"{cls.PREFIX}:email:{email.strip().lower()}"

    @classmethod
    def list_version(cls) -> str:
        return f"{cls.PREFIX}:list:version"

    @classmethod
    def invalidation_keys(cls, user_id: str, email: str | None = None) -> list[str]:
        """Exact keys holding a single user."""
        keys = [cls.by_id(user_id)]
        if email:
            keys.append(cls.by_email(email))
        return keys

    @classmethod
    def list(
        cls,
        version: int,
        page: int = 1,
        limit: int = 20,
        role: str | None = None,
        status: str | None = None,
        search: str | None = None,
    ) -> str:
        filters = []
        if role:
            filters.append(f"role:{role}")
        if status:
            filters.append(f"status:{status}")
        if search:
            filters.append(f"search:{search}")

        key = f"{cls.PREFIX}:list:v{version}:page:{page}:limit:{limit}"
        return ":".join([key, *filters])


class UserCacheKeys(_UserKeyLayout):
    """Users context: profile reads and paginated listings."""

    PREFIX = "user:profile"


class AuthUserCacheKeys(_UserKeyLayout):
    """Auth context: principal lookups during authentication."""

    PREFIX = "auth:user"

    @classmethod
    def requested_by_id(cls, user_id: str) -> str:
        # Snapshot served to other users asking about this one
        return f"{cls.PREFIX}:requested:id:{user_id}"

    @classmethod
    def invalidation_keys(cls, user_id: str, email: str | None = None) -> list[str]:
        return [*super().invalidation_keys(user_id, email), cls.requested_by_id(user_id)]
