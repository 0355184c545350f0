"""Cart endpoints for the authenticated user.

All routes act on the caller's own cart, identified by the principal.
"""

from fastapi import APIRouter, Depends, status

from storefront.api.dependencies import get_cart_service, get_principal
from storefront.api.schemas import (
    AddCartItemRequest,
    CartResponse,
    ErrorResponse,
    UpdateCartItemRequest,
)
from storefront.application.cart_service import CartService
from storefront.application.principal import Principal, require_user_id

router = APIRouter(
    prefix="/carts",
    tags=["Carts"],
    responses={
        401: {"model": ErrorResponse},
        422: {"model": ErrorResponse},
    },
)


@router.get("/me", response_model=CartResponse)
async def get_my_cart(
    principal: Principal | None = Depends(get_principal),
    service: CartService = Depends(get_cart_service),
) -> CartResponse:
    """Return the caller's cart, creating an empty one on first access."""
    cart = await service.get_or_create_cart(require_user_id(principal))
    return CartResponse.from_domain(cart)


@router.post(
    "/me/items",
    response_model=CartResponse,
    status_code=status.HTTP_201_CREATED,
)
async def add_cart_item(
    request: AddCartItemRequest,
    principal: Principal | None = Depends(get_principal),
    service: CartService = Depends(get_cart_service),
) -> CartResponse:
    cart = await service.add_item(
        require_user_id(principal), request.product_id, request.quantity
    )
    return CartResponse.from_domain(cart)


@router.patch(
    "/me/items/{item_id}",
    response_model=CartResponse,
    responses={404: {"model": ErrorResponse}},
)
async def update_cart_item(
    item_id: str,
    request: UpdateCartItemRequest,
    principal: Principal | None = Depends(get_principal),
    service: CartService = Depends(get_cart_service),
) -> CartResponse:
    cart = await service.update_item_quantity(
        require_user_id(principal), item_id, request.quantity
    )
    return CartResponse.from_domain(cart)


@router.delete(
    "/me/items/{item_id}",
    response_model=CartResponse,
    responses={404: {"model": ErrorResponse}},
)
async def remove_cart_item(
    item_id: str,
    principal: Principal | None = Depends(get_principal),
    service: CartService = Depends(get_cart_service),
) -> CartResponse:
    cart = await service.remove_item(require_user_id(principal), item_id)
    return CartResponse.from_domain(cart)


@router.delete(
    "/me/items",
    response_model=CartResponse,
    responses={404: {"model": ErrorResponse}},
)
async def clear_cart(
    principal: Principal | None = Depends(get_principal),
    service: CartService = Depends(get_cart_service),
) -> CartResponse:
    """Remove every line; the cart itself is kept."""
    cart = await service.clear_cart(require_user_id(principal))
    return CartResponse.from_domain(cart)
