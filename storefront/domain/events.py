"""Domain events for the storefront.

Events are immutable facts recorded by aggregates while executing
commands. Repositories drain them on save; the unit of work hands them
to the event dispatcher once the transaction commits.

Payload fields hold primitives only (str, int, bool, dict) so
``to_dict`` output is JSON-serializable for the outbox table.
"""

from dataclasses import dataclass, field, fields
from typing import Any, ClassVar

from storefront.domain.base import DomainEvent

_BASE_FIELDS = frozenset({"aggregate_id", "event_id", "occurred_at"})


@dataclass(frozen=True, kw_only=True)
class _FieldPayloadEvent(DomainEvent):
    """Event whose payload is every field declared by the subclass."""

    def _payload(self) -> dict[str, Any]:
        return {
            f.name: getattr(self, f.name)
            for f in fields(self)
            if f.name not in _BASE_FIELDS
        }


# ============================================================================
# Cart Events
# ============================================================================


@dataclass(frozen=True, kw_only=True)
class CartEvent(_FieldPayloadEvent):
    aggregate_type: ClassVar[str] = "Cart"

    cart_id: str


@dataclass(frozen=True, kw_only=True)
class CartCreated(CartEvent):
    """Event raised when a new cart is created."""

    event_type: ClassVar[str] = "cart.created"

    user_id: str


@dataclass(frozen=True, kw_only=True)
class CartItemAdded(CartEvent):
    """Event raised when a new line is added to a cart."""

    event_type: ClassVar[str] = "cart.item_added"

    cart_item_id: str
    product_id: str
    quantity: int


@dataclass(frozen=True, kw_only=True)
class CartItemQuantityUpdated(CartEvent):
    """Event raised when the quantity of an existing line changes."""

    event_type: ClassVar[str] = "cart.item_quantity_updated"

    cart_item_id: str
    product_id: str
    old_quantity: int
    new_quantity: int


@dataclass(frozen=True, kw_only=True)
class CartItemRemoved(CartEvent):
    event_type: ClassVar[str] = "cart.item_removed"

    cart_item_id: str
    product_id: str
    quantity: int


@dataclass(frozen=True, kw_only=True)
class CartCleared(CartEvent):
    event_type: ClassVar[str] = "cart.cleared"

    user_id: str
    item_count: int


# ============================================================================
# Discount Events
# ============================================================================


@dataclass(frozen=True, kw_only=True)
class DiscountEvent(_FieldPayloadEvent):
    aggregate_type: ClassVar[str] = "Discount"

    code: str


@dataclass(frozen=True, kw_only=True)
class DiscountCreated(DiscountEvent):
    event_type: ClassVar[str] = "discount.created"

    name: str
    discount_type: str
    value: str
    status: str


@dataclass(frozen=True, kw_only=True)
class DiscountUpdated(DiscountEvent):
    """Event raised when descriptive or limit fields change.

    ``changes`` maps each changed field to ``{"old": ..., "new": ...}``.
    """

    event_type: ClassVar[str] = "discount.updated"

    changes: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True, kw_only=True)
class DiscountActivated(DiscountEvent):
    event_type: ClassVar[str] = "discount.activated"


@dataclass(frozen=True, kw_only=True)
class DiscountDeactivated(DiscountEvent):
    event_type: ClassVar[str] = "discount.deactivated"

    reason: str | None = None


@dataclass(frozen=True, kw_only=True)
class DiscountExpired(DiscountEvent):
    event_type: ClassVar[str] = "discount.expired"


@dataclass(frozen=True, kw_only=True)
class DiscountApplied(DiscountEvent):
    """Event raised when a discount is redeemed against an order."""

    event_type: ClassVar[str] = "discount.applied"

    order_id: str
    purchase_amount: str
    discount_amount: str
    currency: str
    usage_count: int


@dataclass(frozen=True, kw_only=True)
class DiscountUsageReversed(DiscountEvent):
    event_type: ClassVar[str] = "discount.usage_reversed"

    usage_count: int


# ============================================================================
# Payment Events
# ============================================================================


@dataclass(frozen=True, kw_only=True)
class PaymentEvent(_FieldPayloadEvent):
    aggregate_type: ClassVar[str] = "Payment"

    order_id: str
    provider_ref: str


@dataclass(frozen=True, kw_only=True)
class PaymentCreated(PaymentEvent):
    event_type: ClassVar[str] = "payment.created"

    provider: str
    amount: str
    currency: str


@dataclass(frozen=True, kw_only=True)
class PaymentTransitionEvent(PaymentEvent):
    """Base for events recorded by a payment status transition."""

    previous_status: str
    new_status: str


@dataclass(frozen=True, kw_only=True)
class PaymentStatusChanged(PaymentTransitionEvent):
    event_type: ClassVar[str] = "payment.status_changed"


@dataclass(frozen=True, kw_only=True)
class PaymentSettled(PaymentTransitionEvent):
    event_type: ClassVar[str] = "payment.settled"

    amount: str
    currency: str


@dataclass(frozen=True, kw_only=True)
class PaymentCancelled(PaymentTransitionEvent):
    event_type: ClassVar[str] = "payment.cancelled"


@dataclass(frozen=True, kw_only=True)
class PaymentExpired(PaymentTransitionEvent):
    event_type: ClassVar[str] = "payment.expired"


@dataclass(frozen=True, kw_only=True)
class PaymentDenied(PaymentTransitionEvent):
    event_type: ClassVar[str] = "payment.denied"


@dataclass(frozen=True, kw_only=True)
class PaymentRefunded(PaymentTransitionEvent):
    event_type: ClassVar[str] = "payment.refunded"


@dataclass(frozen=True, kw_only=True)
class PaymentFailed(PaymentTransitionEvent):
    event_type: ClassVar[str] = "payment.failed"


@dataclass(frozen=True, kw_only=True)
class PaymentWebhookReceived(PaymentEvent):
    """Event raised for every gateway notification, before mapping."""

    event_type: ClassVar[str] = "payment.webhook_received"

    provider_status: str


# ============================================================================
# Product Events
# ============================================================================


@dataclass(frozen=True, kw_only=True)
class ProductEvent(_FieldPayloadEvent):
    aggregate_type: ClassVar[str] = "Product"

    sku: str


@dataclass(frozen=True, kw_only=True)
class ProductCreated(ProductEvent):
    event_type: ClassVar[str] = "product.created"

    name: str
    price: str
    currency: str
    status: str


@dataclass(frozen=True, kw_only=True)
class ProductUpdated(ProductEvent):
    event_type: ClassVar[str] = "product.updated"

    changes: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True, kw_only=True)
class ProductPriceChanged(ProductEvent):
    event_type: ClassVar[str] = "product.price_changed"

    old_price: str
    new_price: str
    currency: str


@dataclass(frozen=True, kw_only=True)
class ProductStatusEvent(ProductEvent):
    previous_status: str


@dataclass(frozen=True, kw_only=True)
class ProductActivated(ProductStatusEvent):
    """Event raised when a product becomes sellable.

    ``back_in_stock`` is set when the previous status was OUT_OF_STOCK.
    """

    event_type: ClassVar[str] = "product.activated"

    back_in_stock: bool = False


@dataclass(frozen=True, kw_only=True)
class ProductDeactivated(ProductStatusEvent):
    event_type: ClassVar[str] = "product.deactivated"


@dataclass(frozen=True, kw_only=True)
class ProductOutOfStock(ProductStatusEvent):
    event_type: ClassVar[str] = "product.out_of_stock"


@dataclass(frozen=True, kw_only=True)
class ProductDiscontinued(ProductStatusEvent):
    event_type: ClassVar[str] = "product.discontinued"

    reason: str | None = None


# ============================================================================
# Inventory Events
# ============================================================================


@dataclass(frozen=True, kw_only=True)
class InventoryEvent(_FieldPayloadEvent):
    aggregate_type: ClassVar[str] = "Inventory"

    product_id: str


@dataclass(frozen=True, kw_only=True)
class InventoryCreated(InventoryEvent):
    event_type: ClassVar[str] = "inventory.created"

    initial_stock: int


@dataclass(frozen=True, kw_only=True)
class StockAdjusted(InventoryEvent):
    """Event raised when the on-hand stock changes.

    ``adjustment`` is signed: positive for restocks, negative for removals
    and confirmed reservations.
    """

    event_type: ClassVar[str] = "inventory.stock_adjusted"

    previous_stock: int
    new_stock: int
    adjustment: int
    reason: str


@dataclass(frozen=True, kw_only=True)
class StockReserved(InventoryEvent):
    event_type: ClassVar[str] = "inventory.stock_reserved"

    quantity: int
    total_reserved: int
    available_stock: int


@dataclass(frozen=True, kw_only=True)
class StockReleased(InventoryEvent):
    event_type: ClassVar[str] = "inventory.stock_released"

    quantity: int
    total_reserved: int
    available_stock: int


@dataclass(frozen=True, kw_only=True)
class StockDepleted(InventoryEvent):
    """Event raised when no stock is left to sell."""

    event_type: ClassVar[str] = "inventory.stock_depleted"


# ============================================================================
# Order Events
# ============================================================================


@dataclass(frozen=True, kw_only=True)
class OrderEvent(_FieldPayloadEvent):
    aggregate_type: ClassVar[str] = "Order"

    order_number: str


@dataclass(frozen=True, kw_only=True)
class OrderCreated(OrderEvent):
    event_type: ClassVar[str] = "order.created"

    user_id: str
    item_count: int
    total: str
    currency: str


@dataclass(frozen=True, kw_only=True)
class OrderPaid(OrderEvent):
    event_type: ClassVar[str] = "order.paid"

    total: str
    currency: str


@dataclass(frozen=True, kw_only=True)
class OrderStatusChanged(OrderEvent):
    event_type: ClassVar[str] = "order.status_changed"

    previous_status: str
    new_status: str


@dataclass(frozen=True, kw_only=True)
class OrderCompleted(OrderEvent):
    event_type: ClassVar[str] = "order.completed"


@dataclass(frozen=True, kw_only=True)
class OrderCancelled(OrderEvent):
    event_type: ClassVar[str] = "order.cancelled"

    previous_status: str
    reason: str | None = None


@dataclass(frozen=True, kw_only=True)
class OrderUpdated(OrderEvent):
    event_type: ClassVar[str] = "order.updated"

    changes: dict[str, Any] = field(default_factory=dict)


# ============================================================================
# Identity Integration Events
# ============================================================================
#
# Emitted by the Auth and Users contexts, which share the ``users`` table.
# Consumed here only to keep cached user views consistent.


@dataclass(frozen=True, kw_only=True)
class UserEvent(_FieldPayloadEvent):
    aggregate_type: ClassVar[str] = "User"

    user_id: str
    email: str | None = None


@dataclass(frozen=True, kw_only=True)
class UserRegistered(UserEvent):
    event_type: ClassVar[str] = "auth.user_registered"


@dataclass(frozen=True, kw_only=True)
class UserCreatedFromOAuth(UserEvent):
    event_type: ClassVar[str] = "auth.user_created_from_oauth"

    provider: str | None = None


@dataclass(frozen=True, kw_only=True)
class AuthUserUpdated(UserEvent):
    event_type: ClassVar[str] = "auth.user_updated"


@dataclass(frozen=True, kw_only=True)
class UserProfileUpdated(UserEvent):
    event_type: ClassVar[str] = "users.user_updated"


@dataclass(frozen=True, kw_only=True)
class UserDeleted(UserEvent):
    event_type: ClassVar[str] = "users.user_deleted"


# ============================================================================
# Event Registry
# ============================================================================


EVENT_REGISTRY: dict[str, type[DomainEvent]] = {
    cls.event_type: cls
    for cls in (
        # Cart
        CartCreated,
        CartItemAdded,
        CartItemQuantityUpdated,
        CartItemRemoved,
        CartCleared,
        # Discount
        DiscountCreated,
        DiscountUpdated,
        DiscountActivated,
        DiscountDeactivated,
        DiscountExpired,
        DiscountApplied,
        DiscountUsageReversed,
        # Payment
        PaymentCreated,
        PaymentStatusChanged,
        PaymentSettled,
        PaymentCancelled,
        PaymentExpired,
        PaymentDenied,
        PaymentRefunded,
        PaymentFailed,
        PaymentWebhookReceived,
        # Product
        ProductCreated,
        ProductUpdated,
        ProductPriceChanged,
        ProductActivated,
        ProductDeactivated,
        ProductOutOfStock,
        ProductDiscontinued,
        # Order
        OrderCreated,
        OrderPaid,
        OrderStatusChanged,
        OrderCompleted,
        OrderCancelled,
        OrderUpdated,
        # Inventory
        InventoryCreated,
        StockAdjusted,
        StockReserved,
        StockReleased,
        StockDepleted,
        # Identity
        UserRegistered,
        UserCreatedFromOAuth,
        AuthUserUpdated,
        UserProfileUpdated,
        UserDeleted,
    )
}


def get_event_class(event_type: str) -> type[DomainEvent] | None:
    """Look up the event class registered for an event type name."""
    return EVENT_REGISTRY.get(event_type)
