"""Domain exceptions.

All domain-level errors that represent business rule violations.
Every error carries a stable machine-readable ``code`` that adapters
map to transport status codes, independently of the human message.
Errors are grouped by category so adapters can map whole families:

- DomainValidationError: malformed input (value objects, factories)
- StateConflictError: operation not allowed in the current state
- NotFoundError: referenced aggregate or child does not exist
- UniquenessConflictError: natural key already taken
- InfrastructureError: cache/storage failure
"""

from typing import Any, ClassVar


class DomainError(Exception):
    """Base class for all domain exceptions.

    Attributes:
        code: Stable error code, distinct from the message.
        message: Human-readable error message.
        details: Additional error context.
    """

    code: ClassVar[str] = "DOMAIN_ERROR"

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        """Initialize domain error.

        Args:
            message: Human-readable error message.
            details: Optional dictionary with additional error context.
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Serialize error for transport adapters."""
        return {
            "error_code": self.code,
            "message": self.message,
            "details": self.details,
        }


# ============================================================================
# Categories
# ============================================================================


class DomainValidationError(DomainError):
    """Input failed validation."""

    code = "VALIDATION_ERROR"


class StateConflictError(DomainError):
    """Operation is not allowed in the current state."""

    code = "STATE_CONFLICT"


class NotFoundError(DomainError):
    """Referenced entity does not exist."""

    code = "NOT_FOUND"


class UniquenessConflictError(DomainError):
    """Natural key is already in use."""

    code = "UNIQUENESS_CONFLICT"


class InfrastructureError(DomainError):
    """Storage or cache failure."""

    code = "INFRASTRUCTURE_ERROR"


class CacheUnavailableError(InfrastructureError):
    """Cache backend rejected or failed an operation."""

    code = "CACHE_UNAVAILABLE"


class RepositoryError(InfrastructureError):
    """Persistence layer failure."""

    code = "REPOSITORY_ERROR"


class InvalidStateTransitionError(StateConflictError):
    """Raised when a status state machine rejects a transition.

    Attributes:
        from_status: Current status value.
        to_status: Requested target status value.
    """

    code = "INVALID_STATE_TRANSITION"
    entity_label: ClassVar[str] = "entity"

    def __init__(self, from_status: str, to_status: str) -> None:
        self.from_status = from_status
        self.to_status = to_status
        super().__init__(
            f"Cannot transition {self.entity_label} status "
            f"from {from_status} to {to_status}",
            details={"from_status": from_status, "to_status": to_status},
        )


# ============================================================================
# Money Errors
# ============================================================================


class InvalidMoneyError(DomainValidationError):
    """Money amount or operation argument is invalid."""

    code = "INVALID_MONEY"


class NegativeMoneyError(InvalidMoneyError):
    """Money amount is below zero."""

    code = "NEGATIVE_MONEY"


class UnsupportedCurrencyError(InvalidMoneyError):
    """Currency is not in the supported set."""

    code = "UNSUPPORTED_CURRENCY"


class CurrencyMismatchError(InvalidMoneyError):
    """Binary operation between amounts in different currencies."""

    code = "CURRENCY_MISMATCH"

    def __init__(self, left: str, right: str) -> None:
        super().__init__(
            f"Cannot operate on different currencies: {left} and {right}",
            details={"left_currency": left, "right_currency": right},
        )


# ============================================================================
# Identifier Errors
# ============================================================================


class InvalidIdentifierError(DomainValidationError):
    """Identifier is not a well-formed UUID."""

    code = "INVALID_IDENTIFIER"


class InvalidCartIdError(InvalidIdentifierError):
    code = "INVALID_CART_ID"


class InvalidCartItemIdError(InvalidIdentifierError):
    code = "INVALID_CART_ITEM_ID"


class InvalidDiscountIdError(InvalidIdentifierError):
    code = "INVALID_DISCOUNT_ID"


class InvalidPaymentIdError(InvalidIdentifierError):
    code = "INVALID_PAYMENT_ID"


class InvalidProductIdError(InvalidIdentifierError):
    code = "INVALID_PRODUCT_ID"


class InvalidOrderIdError(InvalidIdentifierError):
    code = "INVALID_ORDER_ID"


class InvalidOrderItemIdError(InvalidIdentifierError):
    code = "INVALID_ORDER_ITEM_ID"


# ============================================================================
# Cart Errors
# ============================================================================


class InvalidQuantityError(DomainValidationError):
    """Quantity outside the accepted range."""

    code = "INVALID_QUANTITY"

    def __init__(self, quantity: Any, reason: str) -> None:
        self.quantity = quantity
        super().__init__(
            f"Invalid quantity {quantity!r}: {reason}",
            details={"quantity": quantity, "reason": reason},
        )


class CartStateConflictError(StateConflictError):
    code = "CART_STATE_CONFLICT"


class CartItemNotFoundError(NotFoundError):
    """Cart has no line with the given identifier or product."""

    code = "CART_ITEM_NOT_FOUND"


class CartIsEmptyError(StateConflictError):
    code = "CART_IS_EMPTY"


class CartNotFoundError(NotFoundError):
    code = "CART_NOT_FOUND"


class CartAlreadyExistsError(UniquenessConflictError):
    code = "CART_ALREADY_EXISTS"


# ============================================================================
# Discount Errors
# ============================================================================


class InvalidDiscountCodeError(DomainValidationError):
    code = "INVALID_DISCOUNT_CODE"


class InvalidDiscountValueError(DomainValidationError):
    code = "INVALID_DISCOUNT_VALUE"


class InvalidDiscountPeriodError(DomainValidationError):
    code = "INVALID_DISCOUNT_PERIOD"


class InvalidDiscountStatusError(DomainValidationError):
    code = "INVALID_DISCOUNT_STATUS"


class InvalidDiscountStatusTransitionError(InvalidStateTransitionError):
    code = "INVALID_DISCOUNT_STATUS_TRANSITION"
    entity_label = "discount"


class DiscountStateConflictError(StateConflictError):
    code = "DISCOUNT_STATE_CONFLICT"


class DiscountInactiveError(DiscountStateConflictError):
    code = "DISCOUNT_INACTIVE"


class DiscountExpiredError(DiscountStateConflictError):
    code = "DISCOUNT_EXPIRED"


class DiscountNotStartedError(DiscountStateConflictError):
    code = "DISCOUNT_NOT_STARTED"


class DiscountUsageLimitReachedError(DiscountStateConflictError):
    code = "DISCOUNT_USAGE_LIMIT_REACHED"


class DiscountNotApplicableError(DiscountStateConflictError):
    code = "DISCOUNT_NOT_APPLICABLE"


class DiscountNotFoundError(NotFoundError):
    code = "DISCOUNT_NOT_FOUND"


class DiscountCodeAlreadyExistsError(UniquenessConflictError):
    code = "DISCOUNT_CODE_ALREADY_EXISTS"

    def __init__(self, discount_code: str) -> None:
        super().__init__(
            f"Discount code {discount_code} already exists",
            details={"code": discount_code},
        )


# ============================================================================
# Payment Errors
# ============================================================================


class InvalidProviderRefError(DomainValidationError):
    code = "INVALID_PROVIDER_REF"


class InvalidPaymentStatusError(DomainValidationError):
    code = "INVALID_PAYMENT_STATUS"


class InvalidPaymentStatusTransitionError(InvalidStateTransitionError):
    code = "INVALID_PAYMENT_STATUS_TRANSITION"
    entity_label = "payment"


class PaymentStateConflictError(StateConflictError):
    code = "PAYMENT_STATE_CONFLICT"


class PaymentNotFoundError(NotFoundError):
    code = "PAYMENT_NOT_FOUND"


class DuplicateProviderRefError(UniquenessConflictError):
    code = "DUPLICATE_PROVIDER_REF"

    def __init__(self, provider_ref: str) -> None:
        super().__init__(
            f"Payment with provider reference {provider_ref} already exists",
            details={"provider_ref": provider_ref},
        )


# ============================================================================
# Product Errors
# ============================================================================


class InvalidSkuError(DomainValidationError):
    code = "INVALID_SKU"


class InvalidProductNameError(DomainValidationError):
    code = "INVALID_PRODUCT_NAME"


class InvalidProductStatusError(DomainValidationError):
    code = "INVALID_PRODUCT_STATUS"


class InvalidProductStatusTransitionError(InvalidStateTransitionError):
    code = "INVALID_PRODUCT_STATUS_TRANSITION"
    entity_label = "product"


class ProductDiscontinuedError(StateConflictError):
    code = "PRODUCT_DISCONTINUED"


class ProductNotFoundError(NotFoundError):
    code = "PRODUCT_NOT_FOUND"


class ProductSkuAlreadyExistsError(UniquenessConflictError):
    code = "PRODUCT_SKU_ALREADY_EXISTS"

    def __init__(self, sku: str) -> None:
        super().__init__(
            f"Product with SKU {sku} already exists",
            details={"sku": sku},
        )


# ============================================================================
# Order Errors
# ============================================================================


class InvalidOrderNumberError(DomainValidationError):
    code = "INVALID_ORDER_NUMBER"


class InvalidOrderStatusError(DomainValidationError):
    code = "INVALID_ORDER_STATUS"


class InvalidOrderStatusTransitionError(InvalidStateTransitionError):
    code = "INVALID_ORDER_STATUS_TRANSITION"
    entity_label = "order"


class OrderStateConflictError(StateConflictError):
    code = "ORDER_STATE_CONFLICT"


class OrderIsEmptyError(DomainValidationError):
    code = "ORDER_IS_EMPTY"


class OrderCannotBeCancelledError(OrderStateConflictError):
    code = "ORDER_CANNOT_BE_CANCELLED"


class OrderNotFoundError(NotFoundError):
    code = "ORDER_NOT_FOUND"


# ============================================================================
# Inventory Errors
# ============================================================================


class InvalidInventoryIdError(InvalidIdentifierError):
    code = "INVALID_INVENTORY_ID"


class InvalidStockQuantityError(DomainValidationError):
    """Stock count that is not a non-negative integer."""

    code = "INVALID_STOCK_QUANTITY"

    def __init__(self, quantity: Any, reason: str) -> None:
        self.quantity = quantity
        super().__init__(
            f"Invalid stock quantity {quantity!r}: {reason}",
            details={"quantity": quantity, "reason": reason},
        )


class InvalidReservationError(DomainValidationError):
    code = "INVALID_RESERVATION"


class InventoryStateConflictError(StateConflictError):
    code = "INVENTORY_STATE_CONFLICT"


class InsufficientStockError(InventoryStateConflictError):
    """Requested units exceed the stock available to sell."""

    code = "INSUFFICIENT_STOCK"

    def __init__(self, product_id: str, requested: int, available: int) -> None:
        self.product_id = product_id
        self.requested = requested
        self.available = available
        super().__init__(
            f"Insufficient stock for product {product_id}: "
            f"requested {requested}, available {available}",
            details={
                "product_id": product_id,
                "requested": requested,
                "available": available,
            },
        )


class InventoryNotFoundError(NotFoundError):
    code = "INVENTORY_NOT_FOUND"


class InventoryAlreadyExistsError(UniquenessConflictError):
    code = "INVENTORY_ALREADY_EXISTS"

    def __init__(self, product_id: str) -> None:
        super().__init__(
            f"Inventory already exists for product {product_id}",
            details={"product_id": product_id},
        )


# ============================================================================
# Principal Errors
# ============================================================================


class NotAuthenticatedError(DomainError):
    """Request carries no authenticated principal."""

    code = "NOT_AUTHENTICATED"


class PrincipalFieldMissingError(DomainError):
    """Authenticated principal lacks a required field."""

    code = "PRINCIPAL_FIELD_MISSING"

    def __init__(self, field_name: str) -> None:
        self.field_name = field_name
        super().__init__(
            f"Authenticated principal has no {field_name}",
            details={"field": field_name},
        )
