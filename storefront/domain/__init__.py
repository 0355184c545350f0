"""Domain layer - aggregates, value objects, status machines, domain events.

- **Aggregates**: Cart, Discount, Payment, Product, Order
- **Value Objects**: Money, Quantity, typed UUID identifiers, codes
- **State Machines**: PaymentStatus, DiscountStatus, ProductStatus, OrderStatus
- **Domain Events**: recorded by aggregates, drained on save
- **Exceptions**: typed errors with stable codes

Example usage:
    from storefront.domain import Cart

    cart = Cart.create(user_id="u1")
    cart.add_item("p1", 2)
    cart.add_item("p1", 3)
    cart.total_quantity  # 5
    [e.event_type for e in cart.pull_domain_events()]
    # ['cart.created', 'cart.item_added', 'cart.item_quantity_updated']
"""

from storefront.domain.base import (
    AggregateRoot,
    DomainEvent,
    Entity,
    UniqueIdentifier,
    ValueObject,
)
from storefront.domain.entities import (
    Cart,
    CartItem,
    Discount,
    Order,
    OrderItem,
    Payment,
    Product,
)
from storefront.domain.events import EVENT_REGISTRY, get_event_class
from storefront.domain.exceptions import (
    DomainError,
    DomainValidationError,
    InfrastructureError,
    InvalidStateTransitionError,
    NotFoundError,
    StateConflictError,
    UniquenessConflictError,
)
from storefront.domain.state_machines import (
    DiscountStatus,
    OrderStatus,
    PaymentStatus,
    ProductStatus,
)
from storefront.domain.value_objects import (
    CartId,
    CartItemId,
    DiscountApplicability,
    DiscountCode,
    DiscountId,
    DiscountPeriod,
    DiscountType,
    DiscountValue,
    Money,
    OrderId,
    OrderNumber,
    PaymentId,
    PaymentProvider,
    ProductId,
    ProviderRef,
    Quantity,
    Sku,
)

__all__ = [
    # Base
    "AggregateRoot",
    "DomainEvent",
    "Entity",
    "UniqueIdentifier",
    "ValueObject",
    # Aggregates
    "Cart",
    "CartItem",
    "Discount",
    "Order",
    "OrderItem",
    "Payment",
    "Product",
    # Events
    "EVENT_REGISTRY",
    "get_event_class",
    # Exceptions
    "DomainError",
    "DomainValidationError",
    "InfrastructureError",
    "InvalidStateTransitionError",
    "NotFoundError",
    "StateConflictError",
    "UniquenessConflictError",
    # State machines
    "DiscountStatus",
    "OrderStatus",
    "PaymentStatus",
    "ProductStatus",
    # Value objects
    "CartId",
    "CartItemId",
    "DiscountApplicability",
    "DiscountCode",
    "DiscountId",
    "DiscountPeriod",
    "DiscountType",
    "DiscountValue",
    "Money",
    "OrderId",
    "OrderNumber",
    "PaymentId",
    "PaymentProvider",
    "ProductId",
    "ProviderRef",
    "Quantity",
    "Sku",
]
