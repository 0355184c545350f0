"""Repository ports.

Application services depend on these protocols, never on the
SQLAlchemy implementations. Every implementation must run against the
ambient unit-of-work transaction when one is active, and ``save`` must
drain the aggregate's pending events as part of the same transaction.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Protocol

from storefront.domain.entities import (
    Cart,
    Discount,
    Inventory,
    Order,
    Payment,
    Product,
)
from storefront.domain.value_objects import (
    CartId,
    DiscountCode,
    DiscountId,
    InventoryId,
    OrderId,
    OrderNumber,
    PaymentId,
    ProductId,
    ProviderRef,
    Sku,
)


class CartRepository(Protocol):
    async def find_by_id(self, cart_id: CartId) -> Cart | None: ...

    async def find_by_user_id(self, user_id: str) -> Cart | None: ...

    async def exists_for_user(self, user_id: str) -> bool: ...

    async def save(self, cart: Cart) -> None:
        """Upsert a cart.

        Raises:
            CartAlreadyExistsError: If another cart belongs to the same user.
        """
        ...

    async def delete(self, cart_id: CartId) -> None: ...


class DiscountRepository(Protocol):
    async def find_by_id(self, discount_id: DiscountId) -> Discount | None: ...

    async def find_by_code(self, code: DiscountCode | str) -> Discount | None: ...

    async def exists_by_code(self, code: DiscountCode | str) -> bool: ...

    async def save(self, discount: Discount) -> None:
        """Upsert a discount.

        Raises:
            DiscountCodeAlreadyExistsError: If the code belongs to another discount.
        """
        ...

    async def delete(self, discount_id: DiscountId) -> None: ...


class PaymentRepository(Protocol):
    async def find_by_id(self, payment_id: PaymentId) -> Payment | None: ...

    async def find_by_provider_ref(
        self, provider_ref: ProviderRef | str
    ) -> Payment | None: ...

    async def find_by_order_id(self, order_id: str) -> list[Payment]: ...

    async def exists_by_provider_ref(self, provider_ref: ProviderRef | str) -> bool: ...

    async def save(self, payment: Payment) -> None:
        """Upsert a payment.

        Raises:
            DuplicateProviderRefError: If the reference belongs to another payment.
        """
        ...

    async def delete(self, payment_id: PaymentId) -> None: ...


class ProductRepository(Protocol):
    async def find_by_id(self, product_id: ProductId) -> Product | None: ...

    async def find_by_sku(self, sku: Sku | str) -> Product | None: ...

    async def exists_by_sku(self, sku: Sku | str) -> bool: ...

    async def save(self, product: Product) -> None: ...

    async def delete(self, product_id: ProductId) -> None: ...


class InventoryRepository(Protocol):
    async def find_by_id(self, inventory_id: InventoryId) -> Inventory | None: ...

    async def find_by_product_id(self, product_id: str) -> Inventory | None: ...

    async def find_by_product_ids(self, product_ids: list[str]) -> list[Inventory]: ...

    async def exists_by_product_id(self, product_id: str) -> bool: ...

    async def save(self, inventory: Inventory) -> None: ...

    async def delete(self, inventory_id: InventoryId) -> None: ...


class OrderRepository(Protocol):
    async def find_by_id(self, order_id: OrderId) -> Order | None: ...

    async def find_by_order_number(self, number: OrderNumber | str) -> Order | None: ...

    async def find_by_user_id(self, user_id: str) -> list[Order]: ...

    async def save(self, order: Order) -> None: ...

    async def delete(self, order_id: OrderId) -> None: ...


# ============================================================================
# Shared users table (read side)
# ============================================================================


@dataclass(frozen=True)
class UserRecord:
    """Row of the users table shared by the Auth and Users contexts."""

    id: str
    email: str
    name: str | None = None
    role: str = "USER"
    status: str = "ACTIVE"
    created_at: datetime | None = None
    updated_at: datetime | None = None
    extra: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "email": self.email,
            "name": self.name,
            "role": self.role,
            "status": self.status,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }


class UserReadRepository(Protocol):
    async def find_by_id(self, user_id: str) -> UserRecord | None: ...

    async def find_by_email(self, email: str) -> UserRecord | None: ...

    async def find_email_by_id(self, user_id: str) -> str | None: ...

    async def list_users(
        self,
        page: int = 1,
        limit: int = 20,
        role: str | None = None,
        status: str | None = None,
        search: str | None = None,
    ) -> tuple[list[UserRecord], int]: ...
