"""State machines for domain entities.

Deterministic status machines for payments, discounts, products and
orders. Legal next states live in module-level adjacency tables; all
status changes go through ``transition_to`` which either returns the
target or raises the typed invalid-transition error for that status.
"""

from enum import Enum
from typing import Any, Self

from storefront.domain.exceptions import (
    DomainValidationError,
    InvalidDiscountStatusError,
    InvalidDiscountStatusTransitionError,
    InvalidOrderStatusError,
    InvalidOrderStatusTransitionError,
    InvalidPaymentStatusError,
    InvalidPaymentStatusTransitionError,
    InvalidProductStatusError,
    InvalidProductStatusTransitionError,
    InvalidStateTransitionError,
)


class StatusMachine:
    """Behaviour shared by status enums.

    Concrete enums register their transition table and error types in
    ``_MACHINES`` below, keyed by enum class.
    """

    @classmethod
    def create(cls, raw: Any) -> Self:
        """Parse a raw status value.

        Raises:
            DomainValidationError: (typed subclass) if raw is unknown.
        """
        try:
            return cls(raw)  # type: ignore[call-arg]
        except ValueError:
            error = _MACHINES[cls][1]
            raise error(
                f"Invalid {cls.__name__}: {raw!r}",
                {"value": str(raw), "allowed": [m.value for m in cls]},  # type: ignore[attr-defined]
            ) from None

    def can_transition_to(self, target: Self) -> bool:
        """Check if transition to target state is valid."""
        return target in _MACHINES[type(self)][0].get(self, frozenset())

    def allowed_transitions(self) -> list[Self]:
        """Get valid target states, in declaration order."""
        table = _MACHINES[type(self)][0]
        return [s for s in type(self) if s in table.get(self, frozenset())]  # type: ignore[attr-defined]

    def is_terminal(self) -> bool:
        """Check if no state other than the current one is reachable."""
        return not (_MACHINES[type(self)][0].get(self, frozenset()) - {self})

    def transition_to(self, target: Self) -> Self:
        """Validate a transition and return the target.

        Raises:
            InvalidStateTransitionError: (typed subclass) if not allowed.
        """
        if not self.can_transition_to(target):
            error = _MACHINES[type(self)][2]
            raise error(self.value, target.value)  # type: ignore[attr-defined]
        return target


# ============================================================================
# Payment State Machine
# ============================================================================


class PaymentStatus(StatusMachine, str, Enum):
    """Payment lifecycle states.

    State diagram:
        INITIATED ──► PENDING ──► SETTLEMENT ──► REFUND
            │            │
            ▼            ├──► CANCEL
          FAILED ◄───────┼──► EXPIRE
                         └──► DENY
    """

    INITIATED = "INITIATED"
    PENDING = "PENDING"
    SETTLEMENT = "SETTLEMENT"
    CANCEL = "CANCEL"
    EXPIRE = "EXPIRE"
    DENY = "DENY"
    REFUND = "REFUND"
    FAILED = "FAILED"

    def is_successful(self) -> bool:
        return self is PaymentStatus.SETTLEMENT


# Defined outside the enum so members are not treated as enum values
_PAYMENT_TRANSITIONS: dict[PaymentStatus, frozenset[PaymentStatus]] = {
    PaymentStatus.INITIATED: frozenset({PaymentStatus.PENDING, PaymentStatus.FAILED}),
    PaymentStatus.PENDING: frozenset(
        {
            PaymentStatus.SETTLEMENT,
            PaymentStatus.CANCEL,
            PaymentStatus.EXPIRE,
            PaymentStatus.DENY,
            PaymentStatus.FAILED,
        }
    ),
    PaymentStatus.SETTLEMENT: frozenset({PaymentStatus.REFUND}),
    PaymentStatus.CANCEL: frozenset(),
    PaymentStatus.EXPIRE: frozenset(),
    PaymentStatus.DENY: frozenset(),
    PaymentStatus.REFUND: frozenset(),
    PaymentStatus.FAILED: frozenset(),
}


# ============================================================================
# Discount State Machine
# ============================================================================


class DiscountStatus(StatusMachine, str, Enum):
    """Discount lifecycle states.

    ACTIVE <──► INACTIVE, ACTIVE ──► EXPIRED (terminal).
    """

    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"
    EXPIRED = "EXPIRED"


_DISCOUNT_TRANSITIONS: dict[DiscountStatus, frozenset[DiscountStatus]] = {
    DiscountStatus.ACTIVE: frozenset({DiscountStatus.INACTIVE, DiscountStatus.EXPIRED}),
    DiscountStatus.INACTIVE: frozenset({DiscountStatus.ACTIVE}),
    DiscountStatus.EXPIRED: frozenset(),
}


# ============================================================================
# Product State Machine
# ============================================================================


class ProductStatus(StatusMachine, str, Enum):
    """Product availability states.

    Any state may transition to itself. ACTIVE may move to any state;
    DISCONTINUED accepts nothing but itself.
    """

    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"
    OUT_OF_STOCK = "OUT_OF_STOCK"
    DISCONTINUED = "DISCONTINUED"

    def is_available(self) -> bool:
        return self is ProductStatus.ACTIVE


_PRODUCT_TRANSITIONS: dict[ProductStatus, frozenset[ProductStatus]] = {
    ProductStatus.ACTIVE: frozenset(ProductStatus),
    ProductStatus.INACTIVE: frozenset(
        {ProductStatus.INACTIVE, ProductStatus.ACTIVE, ProductStatus.DISCONTINUED}
    ),
    ProductStatus.OUT_OF_STOCK: frozenset(
        {ProductStatus.OUT_OF_STOCK, ProductStatus.ACTIVE, ProductStatus.DISCONTINUED}
    ),
    ProductStatus.DISCONTINUED: frozenset({ProductStatus.DISCONTINUED}),
}


# ============================================================================
# Order State Machine
# ============================================================================


class OrderStatus(StatusMachine, str, Enum):
    """Order lifecycle states.

    State diagram:
        DRAFT ──► PENDING_PAYMENT ──► PAID ──► FULFILLMENT ──► COMPLETED
                        │              │
                        └──────┬───────┘
                               ▼
                           CANCELLED
    """

    DRAFT = "DRAFT"
    PENDING_PAYMENT = "PENDING_PAYMENT"
    PAID = "PAID"
    FULFILLMENT = "FULFILLMENT"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"

    def is_cancellable(self) -> bool:
        return OrderStatus.CANCELLED in _ORDER_TRANSITIONS[self]


_ORDER_TRANSITIONS: dict[OrderStatus, frozenset[OrderStatus]] = {
    OrderStatus.DRAFT: frozenset({OrderStatus.PENDING_PAYMENT}),
    OrderStatus.PENDING_PAYMENT: frozenset({OrderStatus.PAID, OrderStatus.CANCELLED}),
    OrderStatus.PAID: frozenset({OrderStatus.FULFILLMENT, OrderStatus.CANCELLED}),
    OrderStatus.FULFILLMENT: frozenset({OrderStatus.COMPLETED}),
    OrderStatus.COMPLETED: frozenset(),
    OrderStatus.CANCELLED: frozenset(),
}


# ============================================================================
# Registry
# ============================================================================


_MACHINES: dict[
    type,
    tuple[dict[Any, frozenset[Any]], type[DomainValidationError], type[InvalidStateTransitionError]],
] = {
    PaymentStatus: (
        _PAYMENT_TRANSITIONS,
        InvalidPaymentStatusError,
        InvalidPaymentStatusTransitionError,
    ),
    DiscountStatus: (
        _DISCOUNT_TRANSITIONS,
        InvalidDiscountStatusError,
        InvalidDiscountStatusTransitionError,
    ),
    ProductStatus: (
        _PRODUCT_TRANSITIONS,
        InvalidProductStatusError,
        InvalidProductStatusTransitionError,
    ),
    OrderStatus: (
        _ORDER_TRANSITIONS,
        InvalidOrderStatusError,
        InvalidOrderStatusTransitionError,
    ),
}
