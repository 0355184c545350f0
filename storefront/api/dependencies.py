"""Request-scoped dependencies.

Services are built once in the application lifespan and stored on
``app.state``. The principal comes from headers set by the upstream
authentication gateway.
"""

from fastapi import Header, Request

from storefront.application.cart_service import CartService
from storefront.application.principal import Principal


def get_principal(
    x_user_id: str | None = Header(default=None),
    x_user_email: str | None = Header(default=None),
    x_user_role: str | None = Header(default=None),
) -> Principal | None:
    """Principal asserted by the gateway, or None for anonymous requests."""
    if not x_user_id and not x_user_email:
        return None
    return Principal(
        user_id=x_user_id or None,
        email=x_user_email or None,
        role=x_user_role or "USER",
    )


def get_cart_service(request: Request) -> CartService:
    return request.app.state.cart_service
