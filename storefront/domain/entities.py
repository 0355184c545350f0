"""Domain entities and aggregate roots.

Aggregates are built through ``create`` (validates and records a
creation event) or ``reconstruct`` (rehydrates persisted state without
events). Every mutating command validates, bumps ``updated_at`` and
records its domain event; inventory commands that empty the sellable
pool add a ``StockDepleted`` after it. Query methods never mutate.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Iterable

from storefront.domain.base import AggregateRoot, Entity, utcnow
from storefront.domain.events import (
    CartCleared,
    CartCreated,
    CartItemAdded,
    CartItemQuantityUpdated,
    CartItemRemoved,
    DiscountActivated,
    DiscountApplied,
    DiscountCreated,
    DiscountDeactivated,
    DiscountExpired,
    DiscountUpdated,
    DiscountUsageReversed,
    InventoryCreated,
    OrderCancelled,
    OrderCompleted,
    OrderCreated,
    OrderPaid,
    OrderStatusChanged,
    OrderUpdated,
    PaymentCancelled,
    PaymentCreated,
    PaymentDenied,
    PaymentExpired,
    PaymentFailed,
    PaymentRefunded,
    PaymentSettled,
    PaymentStatusChanged,
    PaymentTransitionEvent,
    PaymentWebhookReceived,
    ProductActivated,
    ProductCreated,
    ProductDeactivated,
    ProductDiscontinued,
    ProductOutOfStock,
    ProductPriceChanged,
    ProductStatusEvent,
    ProductUpdated,
    StockAdjusted,
    StockDepleted,
    StockReleased,
    StockReserved,
)
from storefront.domain.exceptions import (
    CartIsEmptyError,
    CartItemNotFoundError,
    CartStateConflictError,
    CurrencyMismatchError,
    DiscountExpiredError,
    DiscountInactiveError,
    DiscountNotApplicableError,
    DiscountNotStartedError,
    DiscountStateConflictError,
    DiscountUsageLimitReachedError,
    DomainValidationError,
    InsufficientStockError,
    InvalidReservationError,
    InventoryStateConflictError,
    OrderCannotBeCancelledError,
    OrderIsEmptyError,
    OrderStateConflictError,
    PaymentStateConflictError,
    ProductDiscontinuedError,
)
from storefront.domain.state_machines import (
    DiscountStatus,
    OrderStatus,
    PaymentStatus,
    ProductStatus,
)
from storefront.domain.value_objects import (
    DEFAULT_CURRENCY,
    CartId,
    CartItemId,
    DiscountApplicability,
    DiscountCode,
    DiscountId,
    DiscountPeriod,
    DiscountValue,
    InventoryId,
    Money,
    OrderId,
    OrderItemId,
    OrderNumber,
    PaymentId,
    PaymentProvider,
    ProductId,
    ProductName,
    ProviderRef,
    Quantity,
    Sku,
    StockQuantity,
)


def _require_datetime(value: Any, name: str, error: type[Exception]) -> None:
    if not isinstance(value, datetime):
        raise error(f"{name} must be a valid datetime", {name: repr(value)})


# ============================================================================
# Cart Aggregate
# ============================================================================


@dataclass(eq=False)
class CartItem(Entity[CartItemId]):
    """A product line inside a cart.

    Only reachable through its owning Cart.

    Attributes:
        id: Unique item identifier.
        product_id: Identifier of the product in the catalog.
        quantity: Number of units.
    """

    product_id: str
    quantity: Quantity
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)

    @classmethod
    def create(cls, product_id: str, quantity: Quantity) -> "CartItem":
        if not product_id or not str(product_id).strip():
            raise CartStateConflictError("Cart item requires a product id")
        return cls(id=CartItemId.generate(), product_id=product_id, quantity=quantity)

    def is_for_product(self, product_id: str) -> bool:
        return self.product_id == product_id

    def update_quantity(self, quantity: Quantity) -> Quantity:
        """Replace quantity, returning the previous one."""
        old = self.quantity
        self.quantity = quantity
        self.updated_at = utcnow()
        return old

    def increase_quantity(self, amount: Quantity) -> Quantity:
        """Add units to this line, returning the previous quantity.

        Raises:
            InvalidQuantityError: If the sum exceeds the maximum.
        """
        return self.update_quantity(self.quantity.add(amount))


@dataclass(kw_only=True, eq=False)
class Cart(AggregateRoot[CartId]):
    """Shopping cart aggregate root.

    One cart per user; that rule is enforced by the repository. Lines are
    merged by product id, so a product appears at most once.

    Attributes:
        id: Unique cart identifier.
        user_id: Owner of the cart.
    """

    user_id: str
    _items: list[CartItem] = field(default_factory=list, repr=False)

    def __post_init__(self) -> None:
        self._validate()

    def _validate(self) -> None:
        if not self.user_id or not str(self.user_id).strip():
            raise CartStateConflictError("Cart requires a user id")
        _require_datetime(self.created_at, "created_at", CartStateConflictError)
        _require_datetime(self.updated_at, "updated_at", CartStateConflictError)

    @classmethod
    def create(cls, user_id: str, cart_id: CartId | None = None) -> "Cart":
        """Create an empty cart for a user.

        Args:
            user_id: Owner of the cart.
            cart_id: Optional pre-generated cart ID.

        Returns:
            New Cart with a CartCreated event pending.
        """
        cart = cls(id=cart_id or CartId.generate(), user_id=user_id)
        cart._record_event(
            CartCreated(
                aggregate_id=str(cart.id),
                cart_id=str(cart.id),
                user_id=cart.user_id,
            )
        )
        return cart

    @classmethod
    def reconstruct(
        cls,
        cart_id: CartId,
        user_id: str,
        items: Iterable[CartItem],
        created_at: datetime,
        updated_at: datetime,
        version: int = 1,
    ) -> "Cart":
        """Rehydrate a cart from storage. Records no events."""
        return cls(
            id=cart_id,
            user_id=user_id,
            _items=list(items),
            created_at=created_at,
            updated_at=updated_at,
            version=version,
        )

    # -------------------------------------------------------------------------
    # Query Methods
    # -------------------------------------------------------------------------

    @property
    def items(self) -> tuple[CartItem, ...]:
        return tuple(self._items)

    @property
    def is_empty(self) -> bool:
        return not self._items

    @property
    def item_count(self) -> int:
        """Number of distinct lines."""
        return len(self._items)

    @property
    def total_quantity(self) -> int:
        """Sum of quantities across all lines."""
        return sum(item.quantity.value for item in self._items)

    def has_product(self, product_id: str) -> bool:
        return self.find_item_by_product_id(product_id) is not None

    def find_item_by_product_id(self, product_id: str) -> CartItem | None:
        for item in self._items:
            if item.is_for_product(product_id):
                return item
        return None

    def find_item_by_id(self, item_id: CartItemId) -> CartItem | None:
        for item in self._items:
            if item.id == item_id:
                return item
        return None

    # -------------------------------------------------------------------------
    # Commands
    # -------------------------------------------------------------------------

    def add_item(self, product_id: str, quantity: Quantity | int) -> CartItem:
        """Add a product, merging with an existing line for the same product.

        Args:
            product_id: Product to add.
            quantity: Units to add.

        Returns:
            The new or updated cart line.

        Raises:
            InvalidQuantityError: If quantity or the merged total is out of range.
        """
        qty = quantity if isinstance(quantity, Quantity) else Quantity(quantity)
        existing = self.find_item_by_product_id(product_id)
        if existing is not None:
            old = existing.increase_quantity(qty)
            self._touch()
            self._record_event(
                CartItemQuantityUpdated(
                    aggregate_id=str(self.id),
                    cart_id=str(self.id),
                    cart_item_id=str(existing.id),
                    product_id=product_id,
                    old_quantity=old.value,
                    new_quantity=existing.quantity.value,
                )
            )
            return existing

        item = CartItem.create(product_id, qty)
        self._items.append(item)
        self._touch()
        self._record_event(
            CartItemAdded(
                aggregate_id=str(self.id),
                cart_id=str(self.id),
                cart_item_id=str(item.id),
                product_id=product_id,
                quantity=qty.value,
            )
        )
        return item

    def remove_item(self, item_id: CartItemId) -> CartItem:
        """Remove a line by its id.

        Raises:
            CartItemNotFoundError: If the cart has no such line.
        """
        item = self.find_item_by_id(item_id)
        if item is None:
            raise CartItemNotFoundError(
                f"Cart item {item_id} not found in cart {self.id}",
                {"cart_id": str(self.id), "cart_item_id": str(item_id)},
            )
        return self._remove(item)

    def remove_item_by_product_id(self, product_id: str) -> CartItem:
        """Remove the line holding a product.

        Raises:
            CartItemNotFoundError: If the product is not in the cart.
        """
        item = self.find_item_by_product_id(product_id)
        if item is None:
            raise CartItemNotFoundError(
                f"Product {product_id} not found in cart {self.id}",
                {"cart_id": str(self.id), "product_id": product_id},
            )
        return self._remove(item)

    def _remove(self, item: CartItem) -> CartItem:
        self._items.remove(item)
        self._touch()
        self._record_event(
            CartItemRemoved(
                aggregate_id=str(self.id),
                cart_id=str(self.id),
                cart_item_id=str(item.id),
                product_id=item.product_id,
                quantity=item.quantity.value,
            )
        )
        return item

    def update_item_quantity(
        self, item_id: CartItemId, quantity: Quantity | int
    ) -> CartItem:
        """Set the quantity of an existing line.

        Raises:
            CartItemNotFoundError: If the cart has no such line.
            InvalidQuantityError: If quantity is out of range.
        """
        qty = quantity if isinstance(quantity, Quantity) else Quantity(quantity)
        item = self.find_item_by_id(item_id)
        if item is None:
            raise CartItemNotFoundError(
                f"Cart item {item_id} not found in cart {self.id}",
                {"cart_id": str(self.id), "cart_item_id": str(item_id)},
            )
        old = item.update_quantity(qty)
        self._touch()
        self._record_event(
            CartItemQuantityUpdated(
                aggregate_id=str(self.id),
                cart_id=str(self.id),
                cart_item_id=str(item.id),
                product_id=item.product_id,
                old_quantity=old.value,
                new_quantity=qty.value,
            )
        )
        return item

    def clear(self) -> int:
        """Remove all lines. No-op on an empty cart.

        Returns:
            Number of lines removed.
        """
        if self.is_empty:
            return 0
        count = len(self._items)
        self._items.clear()
        self._touch()
        self._record_event(
            CartCleared(
                aggregate_id=str(self.id),
                cart_id=str(self.id),
                user_id=self.user_id,
                item_count=count,
            )
        )
        return count

    def ensure_not_empty(self) -> None:
        """Raises CartIsEmptyError if the cart has no lines."""
        if self.is_empty:
            raise CartIsEmptyError(
                f"Cart {self.id} is empty", {"cart_id": str(self.id)}
            )


# ============================================================================
# Discount Aggregate
# ============================================================================


@dataclass(kw_only=True, eq=False)
class Discount(AggregateRoot[DiscountId]):
    """Discount aggregate root.

    Attributes:
        code: Unique redemption code.
        name: Display name.
        value: Percentage or fixed amount definition.
        applicability: Which purchases the discount targets.
        min_purchase: Minimum purchase amount, if any.
        period: Validity window.
        status: Current lifecycle status.
        usage_limit: Maximum redemptions, None for unlimited.
        usage_count: Redemptions so far.
        per_user_limit: Maximum redemptions per user, None for unlimited.
        product_ids: Targeted products for SPECIFIC_PRODUCTS discounts.
    """

    code: DiscountCode
    name: str
    value: DiscountValue
    period: DiscountPeriod
    description: str | None = None
    applicability: DiscountApplicability = DiscountApplicability.ALL_PRODUCTS
    min_purchase: Money | None = None
    status: DiscountStatus = DiscountStatus.ACTIVE
    usage_limit: int | None = None
    usage_count: int = 0
    per_user_limit: int | None = None
    product_ids: list[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        self._validate()

    def _validate(self) -> None:
        if not self.name or not self.name.strip():
            raise DomainValidationError("Discount name cannot be empty")
        if self.usage_limit is not None and self.usage_limit <= 0:
            raise DomainValidationError(
                "Usage limit must be greater than zero",
                {"usage_limit": self.usage_limit},
            )
        if self.per_user_limit is not None and self.per_user_limit <= 0:
            raise DomainValidationError(
                "Per-user limit must be greater than zero",
                {"per_user_limit": self.per_user_limit},
            )
        if self.usage_count < 0:
            raise DomainValidationError("Usage count cannot be negative")
        if (
            self.applicability == DiscountApplicability.SPECIFIC_PRODUCTS
            and not self.product_ids
        ):
            raise DomainValidationError(
                "Product-specific discount requires at least one product"
            )
        if (
            self.applicability == DiscountApplicability.MINIMUM_PURCHASE
            and self.min_purchase is None
        ):
            raise DomainValidationError(
                "Minimum-purchase discount requires a minimum purchase amount"
            )

    @classmethod
    def create(
        cls,
        code: str | DiscountCode,
        name: str,
        value: DiscountValue,
        period: DiscountPeriod,
        description: str | None = None,
        applicability: DiscountApplicability = DiscountApplicability.ALL_PRODUCTS,
        min_purchase: Money | None = None,
        usage_limit: int | None = None,
        per_user_limit: int | None = None,
        product_ids: Iterable[str] = (),
        discount_id: DiscountId | None = None,
    ) -> "Discount":
        """Create a new active discount.

        Raises:
            InvalidDiscountCodeError: If code is malformed.
            DomainValidationError: If limits or applicability are inconsistent.
        """
        discount = cls(
            id=discount_id or DiscountId.generate(),
            code=code if isinstance(code, DiscountCode) else DiscountCode(code),
            name=name.strip(),
            description=description,
            value=value,
            applicability=applicability,
            min_purchase=min_purchase,
            period=period,
            usage_limit=usage_limit,
            per_user_limit=per_user_limit,
            product_ids=list(product_ids),
        )
        discount._record_event(
            DiscountCreated(
                aggregate_id=str(discount.id),
                code=str(discount.code),
                name=discount.name,
                discount_type=discount.value.type.value,
                value=str(discount.value.value),
                status=discount.status.value,
            )
        )
        return discount

    @classmethod
    def reconstruct(cls, **state: Any) -> "Discount":
        """Rehydrate from storage. Records no events."""
        return cls(**state)

    # -------------------------------------------------------------------------
    # Query Methods
    # -------------------------------------------------------------------------

    def has_expired(self, now: datetime | None = None) -> bool:
        return self.status == DiscountStatus.EXPIRED or self.period.has_expired(now)

    def is_usage_limit_reached(self) -> bool:
        return self.usage_limit is not None and self.usage_count >= self.usage_limit

    def can_be_applied(self, now: datetime | None = None) -> bool:
        return (
            self.status == DiscountStatus.ACTIVE
            and self.period.is_currently_valid(now)
            and not self.is_usage_limit_reached()
        )

    def is_applicable_to_product(self, product_id: str) -> bool:
        if self.applicability == DiscountApplicability.SPECIFIC_PRODUCTS:
            return product_id in self.product_ids
        return True

    def meets_purchase_minimum(self, purchase_amount: Money) -> bool:
        if self.min_purchase is None:
            return True
        return purchase_amount.is_greater_than_or_equal(self.min_purchase)

    def calculate_discount(self, purchase_amount: Money) -> Money:
        return self.value.calculate_discount(purchase_amount)

    # -------------------------------------------------------------------------
    # Commands
    # -------------------------------------------------------------------------

    def activate(self, now: datetime | None = None) -> None:
        """Move to ACTIVE.

        Raises:
            DiscountExpiredError: If the validity period has ended.
            InvalidDiscountStatusTransitionError: If not currently INACTIVE.
        """
        if self.period.has_expired(now):
            raise DiscountExpiredError(
                f"Discount {self.code} period has ended",
                {"code": str(self.code)},
            )
        self.status = self.status.transition_to(DiscountStatus.ACTIVE)
        self._touch()
        self._record_event(
            DiscountActivated(aggregate_id=str(self.id), code=str(self.code))
        )

    def deactivate(self, reason: str | None = None) -> None:
        self.status = self.status.transition_to(DiscountStatus.INACTIVE)
        self._touch()
        self._record_event(
            DiscountDeactivated(
                aggregate_id=str(self.id), code=str(self.code), reason=reason
            )
        )

    def mark_as_expired(self) -> None:
        """Move to EXPIRED. Calling it on an expired discount does nothing."""
        if self.status == DiscountStatus.EXPIRED:
            return
        self.status = self.status.transition_to(DiscountStatus.EXPIRED)
        self._touch()
        self._record_event(
            DiscountExpired(aggregate_id=str(self.id), code=str(self.code))
        )

    def apply_to_order(
        self,
        order_id: str,
        purchase_amount: Money,
        now: datetime | None = None,
    ) -> Money:
        """Redeem the discount against an order.

        Args:
            order_id: Order receiving the discount.
            purchase_amount: Amount the discount is computed on.
            now: Evaluation time, defaults to current UTC time.

        Returns:
            The discount amount.

        Raises:
            DiscountInactiveError: Status is INACTIVE.
            DiscountExpiredError: Status is EXPIRED or the period has ended.
            DiscountNotStartedError: The period has not started yet.
            DiscountUsageLimitReachedError: No redemptions left.
            DiscountNotApplicableError: Purchase is below the minimum.
        """
        details = {"code": str(self.code), "order_id": order_id}
        if self.status == DiscountStatus.INACTIVE:
            raise DiscountInactiveError(f"Discount {self.code} is inactive", details)
        if self.has_expired(now):
            raise DiscountExpiredError(f"Discount {self.code} has expired", details)
        if self.period.has_not_started(now):
            raise DiscountNotStartedError(
                f"Discount {self.code} is not valid yet", details
            )
        if self.is_usage_limit_reached():
            raise DiscountUsageLimitReachedError(
                f"Discount {self.code} has reached its usage limit",
                {**details, "usage_limit": self.usage_limit},
            )
        if not self.meets_purchase_minimum(purchase_amount):
            raise DiscountNotApplicableError(
                f"Purchase amount {purchase_amount} is below the minimum "
                f"{self.min_purchase}",
                {**details, "min_purchase": str(self.min_purchase)},
            )

        discount_amount = self.calculate_discount(purchase_amount)
        self.usage_count += 1
        self._touch()
        self._record_event(
            DiscountApplied(
                aggregate_id=str(self.id),
                code=str(self.code),
                order_id=order_id,
                purchase_amount=str(purchase_amount.amount),
                discount_amount=str(discount_amount.amount),
                currency=purchase_amount.currency,
                usage_count=self.usage_count,
            )
        )
        return discount_amount

    def reverse_usage(self) -> None:
        """Give back one redemption, e.g. when the order is cancelled.

        Raises:
            DiscountStateConflictError: If the discount was never used.
        """
        if self.usage_count <= 0:
            raise DiscountStateConflictError(
                f"Discount {self.code} has no usage to reverse",
                {"code": str(self.code)},
            )
        self.usage_count -= 1
        self._touch()
        self._record_event(
            DiscountUsageReversed(
                aggregate_id=str(self.id),
                code=str(self.code),
                usage_count=self.usage_count,
            )
        )

    def update_info(
        self,
        name: str | None = None,
        description: str | None = None,
        usage_limit: int | None = None,
        per_user_limit: int | None = None,
        min_purchase: Money | None = None,
        period: DiscountPeriod | None = None,
    ) -> dict[str, Any]:
        """Update descriptive fields and limits. None leaves a field unchanged.

        Returns:
            Mapping of changed fields to their old/new values.

        Raises:
            DiscountStateConflictError: If the discount is expired.
            DomainValidationError: If the usage limit is below current usage.
        """
        if self.status == DiscountStatus.EXPIRED:
            raise DiscountStateConflictError(
                f"Cannot update expired discount {self.code}",
                {"code": str(self.code)},
            )
        if usage_limit is not None and usage_limit < self.usage_count:
            raise DomainValidationError(
                "Usage limit cannot be lower than current usage",
                {"usage_limit": usage_limit, "usage_count": self.usage_count},
            )

        changes: dict[str, Any] = {}
        candidates = {
            "name": name.strip() if name is not None else None,
            "description": description,
            "usage_limit": usage_limit,
            "per_user_limit": per_user_limit,
            "min_purchase": min_purchase,
            "period": period,
        }
        for attr, new in candidates.items():
            old = getattr(self, attr)
            if new is None or new == old:
                continue
            changes[attr] = {"old": _describe(old), "new": _describe(new)}
            setattr(self, attr, new)

        if not changes:
            return changes
        self._validate()
        self._touch()
        self._record_event(
            DiscountUpdated(
                aggregate_id=str(self.id), code=str(self.code), changes=changes
            )
        )
        return changes


def _describe(value: Any) -> Any:
    if isinstance(value, DiscountPeriod):
        return {
            "start_date": value.start_date.isoformat(),
            "end_date": value.end_date.isoformat(),
        }
    if isinstance(value, Money):
        return str(value)
    return value


# ============================================================================
# Payment Aggregate
# ============================================================================


# Gateway notification statuses mapped to domain statuses
PROVIDER_STATUS_MAP: dict[str, PaymentStatus] = {
    "pending": PaymentStatus.PENDING,
    "capture": PaymentStatus.SETTLEMENT,
    "settlement": PaymentStatus.SETTLEMENT,
    "cancel": PaymentStatus.CANCEL,
    "expire": PaymentStatus.EXPIRE,
    "deny": PaymentStatus.DENY,
    "refund": PaymentStatus.REFUND,
    "partial_refund": PaymentStatus.REFUND,
    "failure": PaymentStatus.FAILED,
}

_TRANSITION_EVENTS: dict[PaymentStatus, type[PaymentTransitionEvent]] = {
    PaymentStatus.PENDING: PaymentStatusChanged,
    PaymentStatus.SETTLEMENT: PaymentSettled,
    PaymentStatus.CANCEL: PaymentCancelled,
    PaymentStatus.EXPIRE: PaymentExpired,
    PaymentStatus.DENY: PaymentDenied,
    PaymentStatus.REFUND: PaymentRefunded,
    PaymentStatus.FAILED: PaymentFailed,
}


@dataclass(kw_only=True, eq=False)
class Payment(AggregateRoot[PaymentId]):
    """Payment aggregate root.

    Every status change goes through ``transition_to``.

    Attributes:
        order_id: Order being paid.
        provider: Payment gateway.
        provider_ref: Gateway transaction reference, unique.
        amount: Amount charged.
        status: Current status.
        raw_webhook_payload: Last gateway notification body.
    """

    order_id: str
    provider_ref: ProviderRef
    amount: Money
    provider: PaymentProvider = PaymentProvider.MIDTRANS
    status: PaymentStatus = PaymentStatus.INITIATED
    raw_webhook_payload: dict[str, Any] | None = None

    def __post_init__(self) -> None:
        if not self.order_id or not str(self.order_id).strip():
            raise PaymentStateConflictError("Payment requires an order id")

    @classmethod
    def create(
        cls,
        order_id: str,
        provider_ref: str | ProviderRef,
        amount: Money,
        provider: PaymentProvider = PaymentProvider.MIDTRANS,
        payment_id: PaymentId | None = None,
    ) -> "Payment":
        """Create a payment in INITIATED status."""
        payment = cls(
            id=payment_id or PaymentId.generate(),
            order_id=order_id,
            provider_ref=(
                provider_ref
                if isinstance(provider_ref, ProviderRef)
                else ProviderRef(provider_ref)
            ),
            amount=amount,
            provider=provider,
        )
        payment._record_event(
            PaymentCreated(
                aggregate_id=str(payment.id),
                order_id=payment.order_id,
                provider_ref=str(payment.provider_ref),
                provider=payment.provider.value,
                amount=str(payment.amount.amount),
                currency=payment.amount.currency,
            )
        )
        return payment

    @classmethod
    def reconstruct(cls, **state: Any) -> "Payment":
        """Rehydrate from storage. Records no events."""
        return cls(**state)

    @property
    def currency(self) -> str:
        return self.amount.currency

    def is_terminal(self) -> bool:
        return self.status.is_terminal()

    def is_successful(self) -> bool:
        return self.status.is_successful()

    # -------------------------------------------------------------------------
    # Commands
    # -------------------------------------------------------------------------

    def transition_to(self, target: PaymentStatus) -> None:
        """Change status and record the event for the target status.

        Raises:
            InvalidPaymentStatusTransitionError: If the transition is illegal.
        """
        previous = self.status
        self.status = previous.transition_to(target)
        self._touch()
        event_class = _TRANSITION_EVENTS[target]
        extra: dict[str, Any] = {}
        if event_class is PaymentSettled:
            extra = {"amount": str(self.amount.amount), "currency": self.currency}
        self._record_event(
            event_class(
                aggregate_id=str(self.id),
                order_id=self.order_id,
                provider_ref=str(self.provider_ref),
                previous_status=previous.value,
                new_status=target.value,
                **extra,
            )
        )

    def _mark(self, target: PaymentStatus) -> None:
        if self.status == target:
            return
        self.transition_to(target)

    def mark_as_pending(self) -> None:
        self._mark(PaymentStatus.PENDING)

    def mark_as_settled(self) -> None:
        self._mark(PaymentStatus.SETTLEMENT)

    def mark_as_cancelled(self) -> None:
        self._mark(PaymentStatus.CANCEL)

    def mark_as_expired(self) -> None:
        self._mark(PaymentStatus.EXPIRE)

    def mark_as_denied(self) -> None:
        self._mark(PaymentStatus.DENY)

    def mark_as_refunded(self) -> None:
        self._mark(PaymentStatus.REFUND)

    def mark_as_failed(self) -> None:
        self._mark(PaymentStatus.FAILED)

    def process_webhook(
        self, provider_status: str, raw_payload: dict[str, Any] | None = None
    ) -> PaymentStatus:
        """Apply a gateway notification.

        Records the receipt, then transitions to the mapped status unless
        the payment is already there (gateways redeliver notifications).

        Args:
            provider_status: Status reported by the gateway.
            raw_payload: Notification body, kept for audit.

        Returns:
            Status after processing.

        Raises:
            PaymentStateConflictError: If the gateway status is unknown.
            InvalidPaymentStatusTransitionError: If the mapped transition is illegal.
        """
        target = PROVIDER_STATUS_MAP.get(provider_status.strip().lower())
        if target is None:
            try:
                target = PaymentStatus(provider_status.strip().upper())
            except ValueError:
                raise PaymentStateConflictError(
                    f"Unknown payment provider status: {provider_status}",
                    {
                        "provider_status": provider_status,
                        "provider_ref": str(self.provider_ref),
                    },
                ) from None

        self.raw_webhook_payload = raw_payload
        self._record_event(
            PaymentWebhookReceived(
                aggregate_id=str(self.id),
                order_id=self.order_id,
                provider_ref=str(self.provider_ref),
                provider_status=provider_status,
            )
        )
        if self.status == target:
            self._touch()
        else:
            self.transition_to(target)
        return self.status


# ============================================================================
# Product Aggregate
# ============================================================================


@dataclass(kw_only=True, eq=False)
class Product(AggregateRoot[ProductId]):
    """Product aggregate root.

    Attributes:
        sku: Stock keeping unit, unique.
        name: Display name.
        price: Unit price.
        status: Availability status.
    """

    sku: Sku
    name: ProductName
    price: Money
    description: str | None = None
    brand: str | None = None
    image_url: str | None = None
    attributes: dict[str, Any] = field(default_factory=dict)
    status: ProductStatus = ProductStatus.ACTIVE

    @classmethod
    def create(
        cls,
        sku: str | Sku,
        name: str | ProductName,
        price: Money,
        description: str | None = None,
        brand: str | None = None,
        image_url: str | None = None,
        attributes: dict[str, Any] | None = None,
        status: ProductStatus = ProductStatus.ACTIVE,
        product_id: ProductId | None = None,
    ) -> "Product":
        product = cls(
            id=product_id or ProductId.generate(),
            sku=sku if isinstance(sku, Sku) else Sku(sku),
            name=name if isinstance(name, ProductName) else ProductName(name),
            price=price,
            description=description,
            brand=brand,
            image_url=image_url,
            attributes=dict(attributes or {}),
            status=status,
        )
        product._record_event(
            ProductCreated(
                aggregate_id=str(product.id),
                sku=str(product.sku),
                name=str(product.name),
                price=str(product.price.amount),
                currency=product.price.currency,
                status=product.status.value,
            )
        )
        return product

    @classmethod
    def reconstruct(cls, **state: Any) -> "Product":
        """Rehydrate from storage. Records no events."""
        return cls(**state)

    def is_available(self) -> bool:
        return self.status.is_available()

    def _ensure_not_discontinued(self) -> None:
        if self.status == ProductStatus.DISCONTINUED:
            raise ProductDiscontinuedError(
                f"Product {self.sku} is discontinued",
                {"sku": str(self.sku)},
            )

    # -------------------------------------------------------------------------
    # Commands
    # -------------------------------------------------------------------------

    def update_info(
        self,
        name: str | None = None,
        description: str | None = None,
        brand: str | None = None,
        image_url: str | None = None,
        attributes: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """Update descriptive fields. None leaves a field unchanged.

        Returns:
            Mapping of changed fields to their old/new values.
        """
        self._ensure_not_discontinued()
        changes: dict[str, Any] = {}
        if name is not None:
            new_name = ProductName(name)
            if new_name != self.name:
                changes["name"] = {"old": str(self.name), "new": str(new_name)}
                self.name = new_name
        for attr, new in (
            ("description", description),
            ("brand", brand),
            ("image_url", image_url),
            ("attributes", attributes),
        ):
            old = getattr(self, attr)
            if new is None or new == old:
                continue
            changes[attr] = {"old": old, "new": new}
            setattr(self, attr, new)

        if changes:
            self._touch()
            self._record_event(
                ProductUpdated(
                    aggregate_id=str(self.id), sku=str(self.sku), changes=changes
                )
            )
        return changes

    def update_price(self, price: Money) -> None:
        """Change the unit price. Same price records nothing."""
        self._ensure_not_discontinued()
        if price == self.price:
            return
        if price.currency != self.price.currency:
            raise CurrencyMismatchError(self.price.currency, price.currency)
        old = self.price
        self.price = price
        self._touch()
        self._record_event(
            ProductPriceChanged(
                aggregate_id=str(self.id),
                sku=str(self.sku),
                old_price=str(old.amount),
                new_price=str(price.amount),
                currency=price.currency,
            )
        )

    def _change_status(self, target: ProductStatus, event: type[ProductStatusEvent], **extra: Any) -> bool:
        if target != ProductStatus.DISCONTINUED:
            self._ensure_not_discontinued()
        previous = self.status
        if previous == target:
            return False
        self.status = previous.transition_to(target)
        self._touch()
        self._record_event(
            event(
                aggregate_id=str(self.id),
                sku=str(self.sku),
                previous_status=previous.value,
                **extra,
            )
        )
        return True

    def activate(self) -> bool:
        return self._change_status(
            ProductStatus.ACTIVE,
            ProductActivated,
            back_in_stock=self.status == ProductStatus.OUT_OF_STOCK,
        )

    def deactivate(self) -> bool:
        return self._change_status(ProductStatus.INACTIVE, ProductDeactivated)

    def mark_out_of_stock(self) -> bool:
        return self._change_status(ProductStatus.OUT_OF_STOCK, ProductOutOfStock)

    def discontinue(self, reason: str | None = None) -> bool:
        return self._change_status(
            ProductStatus.DISCONTINUED, ProductDiscontinued, reason=reason
        )


# ============================================================================
# Inventory Aggregate
# ============================================================================


@dataclass(kw_only=True, eq=False)
class Inventory(AggregateRoot[InventoryId]):
    """Stock levels for one product.

    Units reserved for orders awaiting payment cannot be sold again.
    ``reserved`` never exceeds ``stock``, and available stock is
    ``stock - reserved``.

    Attributes:
        product_id: Product this record counts. One record per product.
        stock: Units on hand, reserved ones included.
        reserved: Units held for unpaid orders.
    """

    product_id: str
    stock: StockQuantity = field(default_factory=StockQuantity.zero)
    reserved: StockQuantity = field(default_factory=StockQuantity.zero)

    def __post_init__(self) -> None:
        self._validate()

    def _validate(self) -> None:
        if not self.product_id or not str(self.product_id).strip():
            raise InventoryStateConflictError("Inventory requires a product id")
        if self.reserved.value > self.stock.value:
            raise InventoryStateConflictError(
                "Reserved quantity cannot exceed total stock",
                {"stock": self.stock.value, "reserved": self.reserved.value},
            )
        _require_datetime(self.created_at, "created_at", InventoryStateConflictError)
        _require_datetime(self.updated_at, "updated_at", InventoryStateConflictError)

    @classmethod
    def create(
        cls,
        product_id: str,
        initial_stock: int = 0,
        inventory_id: InventoryId | None = None,
    ) -> "Inventory":
        inventory = cls(
            id=inventory_id or InventoryId.generate(),
            product_id=product_id,
            stock=StockQuantity(initial_stock),
        )
        inventory._record_event(
            InventoryCreated(
                aggregate_id=str(inventory.id),
                product_id=product_id,
                initial_stock=initial_stock,
            )
        )
        return inventory

    @classmethod
    def reconstruct(cls, **state: Any) -> "Inventory":
        """Rehydrate from storage. Records no events."""
        return cls(**state)

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    @property
    def available(self) -> int:
        return self.stock.value - self.reserved.value

    def has_available_stock(self, quantity: int) -> bool:
        return self.available >= quantity

    def is_depleted(self) -> bool:
        return self.available <= 0

    def has_reservations(self) -> bool:
        return not self.reserved.is_zero()

    # -------------------------------------------------------------------------
    # Commands
    # -------------------------------------------------------------------------

    def add_stock(self, quantity: int, reason: str | None = None) -> None:
        """Restock.

        Raises:
            InventoryStateConflictError: If quantity is not positive.
        """
        if quantity <= 0:
            raise InventoryStateConflictError(
                "Stock addition quantity must be positive", {"quantity": quantity}
            )
        self._adjust(self.stock.add(quantity), reason or "Stock added")

    def remove_stock(self, quantity: int, reason: str | None = None) -> None:
        """Write off available units (damaged, lost, manual correction).

        Reserved units cannot be removed.

        Raises:
            InventoryStateConflictError: If quantity is not positive.
            InsufficientStockError: If fewer units are available.
        """
        if quantity <= 0:
            raise InventoryStateConflictError(
                "Stock removal quantity must be positive", {"quantity": quantity}
            )
        self._ensure_available(quantity)
        self._adjust(self.stock.subtract(quantity), reason or "Stock removed")
        self._record_depletion()

    def set_stock(self, quantity: int, reason: str | None = None) -> None:
        """Overwrite the on-hand count.

        Raises:
            InvalidStockQuantityError: If quantity is negative.
            InventoryStateConflictError: If quantity is below the reserved count.
        """
        new_stock = StockQuantity(quantity)
        if new_stock.value < self.reserved.value:
            raise InventoryStateConflictError(
                f"Cannot set stock to {quantity}: "
                f"{self.reserved.value} units are currently reserved",
                {"quantity": quantity, "reserved": self.reserved.value},
            )
        self._adjust(new_stock, reason or "Stock set manually")
        self._record_depletion()

    def reserve(self, quantity: int) -> None:
        """Hold units for an order awaiting payment.

        Raises:
            InvalidReservationError: If quantity is not positive.
            InsufficientStockError: If fewer units are available.
        """
        if quantity <= 0:
            raise InvalidReservationError(
                "Reservation quantity must be positive", {"quantity": quantity}
            )
        self._ensure_available(quantity)
        self.reserved = self.reserved.add(quantity)
        self._touch()
        self._record_event(
            StockReserved(
                aggregate_id=str(self.id),
                product_id=self.product_id,
                quantity=quantity,
                total_reserved=self.reserved.value,
                available_stock=self.available,
            )
        )

    def release(self, quantity: int) -> None:
        """Return held units to the sellable pool, e.g. after a cancellation.

        Raises:
            InvalidReservationError: If quantity is not positive or exceeds
                the reserved count.
        """
        self._ensure_reserved(quantity, "release")
        self.reserved = self.reserved.subtract(quantity)
        self._touch()
        self._record_event(
            StockReleased(
                aggregate_id=str(self.id),
                product_id=self.product_id,
                quantity=quantity,
                total_reserved=self.reserved.value,
                available_stock=self.available,
            )
        )

    def confirm_reservation(self, quantity: int) -> None:
        """Ship held units: both stock and reserved drop by ``quantity``.

        Raises:
            InvalidReservationError: If quantity is not positive or exceeds
                the reserved count.
        """
        self._ensure_reserved(quantity, "confirm")
        self.reserved = self.reserved.subtract(quantity)
        self._adjust(
            self.stock.subtract(quantity), "Reservation confirmed (order fulfilled)"
        )
        self._record_depletion()

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def _ensure_available(self, quantity: int) -> None:
        if not self.has_available_stock(quantity):
            raise InsufficientStockError(self.product_id, quantity, self.available)

    def _ensure_reserved(self, quantity: int, action: str) -> None:
        if quantity <= 0:
            raise InvalidReservationError(
                f"{action.capitalize()} quantity must be positive",
                {"quantity": quantity},
            )
        if quantity > self.reserved.value:
            raise InvalidReservationError(
                f"Cannot {action} {quantity} units: "
                f"only {self.reserved.value} units are reserved",
                {"quantity": quantity, "reserved": self.reserved.value},
            )

    def _adjust(self, new_stock: StockQuantity, reason: str) -> None:
        previous = self.stock
        self.stock = new_stock
        self._touch()
        self._record_event(
            StockAdjusted(
                aggregate_id=str(self.id),
                product_id=self.product_id,
                previous_stock=previous.value,
                new_stock=new_stock.value,
                adjustment=new_stock.value - previous.value,
                reason=reason,
            )
        )

    def _record_depletion(self) -> None:
        if self.is_depleted():
            self._record_event(
                StockDepleted(aggregate_id=str(self.id), product_id=self.product_id)
            )


# ============================================================================
# Order Aggregate
# ============================================================================


@dataclass(eq=False)
class OrderItem(Entity[OrderItemId]):
    """Immutable snapshot of a purchased product line."""

    product_id: str
    quantity: Quantity
    unit_price: Money
    original_price: Money | None = None

    @classmethod
    def create(
        cls,
        product_id: str,
        quantity: Quantity | int,
        unit_price: Money,
        original_price: Money | None = None,
    ) -> "OrderItem":
        return cls(
            id=OrderItemId.generate(),
            product_id=product_id,
            quantity=quantity if isinstance(quantity, Quantity) else Quantity(quantity),
            unit_price=unit_price,
            original_price=original_price,
        )

    @property
    def line_total(self) -> Money:
        return self.unit_price.multiply(self.quantity.value)


@dataclass(kw_only=True, eq=False)
class Order(AggregateRoot[OrderId]):
    """Order aggregate root.

    ``total`` is always ``subtotal + tax + shipping_cost - discount_amount``.
    """

    order_number: OrderNumber
    user_id: str
    tax: Money
    shipping_cost: Money
    discount_amount: Money
    currency: str = DEFAULT_CURRENCY
    status: OrderStatus = OrderStatus.PENDING_PAYMENT
    _items: list[OrderItem] = field(default_factory=list, repr=False)
    discount_id: str | None = None
    notes: str | None = None
    cancellation_reason: str | None = None
    paid_at: datetime | None = None
    completed_at: datetime | None = None
    cancelled_at: datetime | None = None

    def __post_init__(self) -> None:
        if not self.user_id or not str(self.user_id).strip():
            raise OrderStateConflictError("Order requires a user id")
        if not self._items:
            raise OrderIsEmptyError("Order must contain at least one item")
        self.currency = self.currency.upper()
        for money in (
            *(item.unit_price for item in self._items),
            self.tax,
            self.shipping_cost,
            self.discount_amount,
        ):
            if money.currency != self.currency:
                raise CurrencyMismatchError(self.currency, money.currency)
        # NegativeMoneyError when the discount exceeds the gross total
        self.gross_total.subtract(self.discount_amount)

    @classmethod
    def create(
        cls,
        user_id: str,
        items: Iterable[OrderItem],
        currency: str = DEFAULT_CURRENCY,
        tax: Money | None = None,
        shipping_cost: Money | None = None,
        discount_amount: Money | None = None,
        discount_id: str | None = None,
        notes: str | None = None,
        order_id: OrderId | None = None,
        order_number: OrderNumber | None = None,
    ) -> "Order":
        """Place an order awaiting payment.

        Raises:
            OrderIsEmptyError: If no items are given.
            CurrencyMismatchError: If item prices use another currency.
            NegativeMoneyError: If the discount exceeds the gross total.
        """
        zero = Money.zero(currency)
        order = cls(
            id=order_id or OrderId.generate(),
            order_number=order_number or OrderNumber.generate(),
            user_id=user_id,
            currency=zero.currency,
            _items=list(items),
            tax=tax or zero,
            shipping_cost=shipping_cost or zero,
            discount_amount=discount_amount or zero,
            discount_id=discount_id,
            notes=notes,
        )
        order._record_event(
            OrderCreated(
                aggregate_id=str(order.id),
                order_number=str(order.order_number),
                user_id=order.user_id,
                item_count=len(order._items),
                total=str(order.total.amount),
                currency=order.currency,
            )
        )
        return order

    @classmethod
    def reconstruct(cls, items: Iterable[OrderItem], **state: Any) -> "Order":
        """Rehydrate from storage. Records no events."""
        return cls(_items=list(items), **state)

    # -------------------------------------------------------------------------
    # Query Methods
    # -------------------------------------------------------------------------

    @property
    def items(self) -> tuple[OrderItem, ...]:
        return tuple(self._items)

    @property
    def subtotal(self) -> Money:
        total = Money.zero(self.currency)
        for item in self._items:
            total = total.add(item.line_total)
        return total

    @property
    def gross_total(self) -> Money:
        return self.subtotal.add(self.tax).add(self.shipping_cost)

    @property
    def total(self) -> Money:
        return self.gross_total.subtract(self.discount_amount)

    def is_terminal(self) -> bool:
        return self.status.is_terminal()

    def _ensure_modifiable(self, action: str) -> None:
        if self.is_terminal():
            raise OrderStateConflictError(
                f"Cannot {action} order {self.order_number} in status "
                f"{self.status.value}",
                {"order_number": str(self.order_number), "status": self.status.value},
            )

    # -------------------------------------------------------------------------
    # Commands
    # -------------------------------------------------------------------------

    def mark_as_paid(self) -> None:
        if self.status == OrderStatus.PAID:
            return
        self.status = self.status.transition_to(OrderStatus.PAID)
        self.paid_at = utcnow()
        self._touch()
        self._record_event(
            OrderPaid(
                aggregate_id=str(self.id),
                order_number=str(self.order_number),
                total=str(self.total.amount),
                currency=self.currency,
            )
        )

    def start_fulfillment(self) -> None:
        if self.status == OrderStatus.FULFILLMENT:
            return
        previous = self.status
        self.status = previous.transition_to(OrderStatus.FULFILLMENT)
        self._touch()
        self._record_event(
            OrderStatusChanged(
                aggregate_id=str(self.id),
                order_number=str(self.order_number),
                previous_status=previous.value,
                new_status=self.status.value,
            )
        )

    def complete(self) -> None:
        if self.status == OrderStatus.COMPLETED:
            return
        self.status = self.status.transition_to(OrderStatus.COMPLETED)
        self.completed_at = utcnow()
        self._touch()
        self._record_event(
            OrderCompleted(
                aggregate_id=str(self.id), order_number=str(self.order_number)
            )
        )

    def cancel(self, reason: str | None = None) -> None:
        """Cancel an order that is awaiting payment or paid.

        Raises:
            OrderCannotBeCancelledError: In any other status.
        """
        if self.status == OrderStatus.CANCELLED:
            return
        if not self.status.is_cancellable():
            raise OrderCannotBeCancelledError(
                f"Order {self.order_number} cannot be cancelled in status "
                f"{self.status.value}",
                {"order_number": str(self.order_number), "status": self.status.value},
            )
        previous = self.status
        self.status = previous.transition_to(OrderStatus.CANCELLED)
        self.cancellation_reason = reason
        self.cancelled_at = utcnow()
        self._touch()
        self._record_event(
            OrderCancelled(
                aggregate_id=str(self.id),
                order_number=str(self.order_number),
                previous_status=previous.value,
                reason=reason,
            )
        )

    def _update(self, changes: dict[str, Any]) -> None:
        self._touch()
        self._record_event(
            OrderUpdated(
                aggregate_id=str(self.id),
                order_number=str(self.order_number),
                changes=changes,
            )
        )

    def update_notes(self, notes: str | None) -> None:
        self._ensure_modifiable("update notes of")
        if notes == self.notes:
            return
        changes = {"notes": {"old": self.notes, "new": notes}}
        self.notes = notes
        self._update(changes)

    def apply_discount(self, discount_id: str, amount: Money) -> None:
        """Attach a discount and recompute the total.

        Raises:
            OrderStateConflictError: If the order is completed or cancelled.
            NegativeMoneyError: If the discount exceeds the gross total.
        """
        self._ensure_modifiable("apply a discount to")
        total = self.gross_total.subtract(amount)
        previous = self.discount_amount
        changes = {
            "discount_id": {"old": self.discount_id, "new": discount_id},
            "discount_amount": {"old": str(previous.amount), "new": str(amount.amount)},
            "total": str(total.amount),
        }
        self.discount_id = discount_id
        self.discount_amount = amount
        self._update(changes)

    def remove_discount(self) -> None:
        self._ensure_modifiable("remove the discount from")
        if self.discount_id is None:
            return
        changes = {
            "discount_id": {"old": self.discount_id, "new": None},
            "discount_amount": {"old": str(self.discount_amount.amount), "new": "0.00"},
        }
        self.discount_id = None
        self.discount_amount = Money.zero(self.currency)
        self._update(changes)
