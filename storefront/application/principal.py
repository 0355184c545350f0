"""Authenticated principal carried by a request.

The upstream gateway authenticates the caller; this module only gives
use cases typed access to what it established.
"""

from dataclasses import dataclass, field
from typing import Callable, TypeVar

from storefront.domain.exceptions import NotAuthenticatedError, PrincipalFieldMissingError

T = TypeVar("T")


@dataclass(frozen=True)
class Principal:
    """Authenticated caller.

    Attributes:
        user_id: Identifier of the user, when the gateway supplied one.
        email: Email address, when the gateway supplied one.
        role: Role name.
        claims: Remaining gateway claims.
    """

    user_id: str | None = None
    email: str | None = None
    role: str = "USER"
    claims: dict[str, str] = field(default_factory=dict)


def require_principal(principal: Principal | None) -> Principal:
    """Raises NotAuthenticatedError when no principal is present."""
    if principal is None:
        raise NotAuthenticatedError("Authentication required")
    return principal


def require_principal_field(
    principal: Principal | None,
    selector: Callable[[Principal], T | None],
    field_name: str,
) -> T:
    """Read one field of the principal, failing loudly when it is absent.

    Args:
        principal: Principal of the current request, if any.
        selector: Picks the field, e.g. ``lambda p: p.user_id``.
        field_name: Name reported when the field is missing.

    Raises:
        NotAuthenticatedError: No principal.
        PrincipalFieldMissingError: The field is None or empty.
    """
    value = selector(require_principal(principal))
    if value is None or value == "":
        raise PrincipalFieldMissingError(field_name)
    return value


def require_user_id(principal: Principal | None) -> str:
    return require_principal_field(principal, lambda p: p.user_id, "user_id")
