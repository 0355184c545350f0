"""API schemas.

Pydantic models for request/response validation and serialization.
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from storefront.domain.entities import Cart


# ============================================================================
# Common Schemas
# ============================================================================


class ErrorResponse(BaseModel):
    """Standard error response.

    All API errors follow this format for consistency.
    """

    error_code: str = Field(..., description="Machine-readable error code")
    message: str = Field(..., description="Human-readable error message")
    details: dict[str, Any] | list[Any] = Field(
        default_factory=dict, description="Additional error details"
    )
    request_id: str | None = Field(
        default=None, description="Request ID for correlation"
    )


# ============================================================================
# Cart Schemas
# ============================================================================


class AddCartItemRequest(BaseModel):
    product_id: str = Field(..., min_length=1, max_length=100)
    quantity: int = Field(default=1, description="Units to add; merged with an existing line")


class UpdateCartItemRequest(BaseModel):
    quantity: int


class CartItemResponse(BaseModel):
    id: str
    product_id: str
    quantity: int
    created_at: datetime
    updated_at: datetime


class CartResponse(BaseModel):
    """Cart with its lines in insertion order."""

    id: str
    user_id: str
    items: list[CartItemResponse]
    item_count: int
    total_quantity: int
    version: int
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_domain(cls, cart: Cart) -> "CartResponse":
        return cls(
            id=str(cart.id),
            user_id=cart.user_id,
            items=[
                CartItemResponse(
                    id=str(item.id),
                    product_id=item.product_id,
                    quantity=item.quantity.value,
                    created_at=item.created_at,
                    updated_at=item.updated_at,
                )
                for item in cart.items
            ],
            item_count=cart.item_count,
            total_quantity=cart.total_quantity,
            version=cart.version,
            created_at=cart.created_at,
            updated_at=cart.updated_at,
        )
