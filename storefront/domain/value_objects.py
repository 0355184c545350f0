"""Value Objects for the domain layer.

Value objects are immutable objects that are defined by their attributes
rather than identity. Every constructor validates, so an instance that
exists is always valid.
"""

import re
import secrets
import string
from dataclasses import dataclass
from datetime import datetime, timedelta
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from enum import Enum
from typing import Self

from storefront.domain.base import UniqueIdentifier, ValueObject, utcnow
from storefront.domain.exceptions import (
    CurrencyMismatchError,
    InvalidCartIdError,
    InvalidCartItemIdError,
    InvalidDiscountCodeError,
    InvalidDiscountIdError,
    InvalidDiscountPeriodError,
    InvalidDiscountValueError,
    InvalidInventoryIdError,
    InvalidMoneyError,
    InvalidOrderIdError,
    InvalidOrderItemIdError,
    InvalidOrderNumberError,
    InvalidPaymentIdError,
    InvalidProductIdError,
    InvalidProductNameError,
    InvalidProviderRefError,
    InvalidQuantityError,
    InvalidSkuError,
    InvalidStockQuantityError,
    NegativeMoneyError,
    UnsupportedCurrencyError,
)


# ============================================================================
# Typed Identifiers
# ============================================================================


@dataclass(frozen=True)
class CartId(UniqueIdentifier):
    """Strongly-typed cart identifier."""

    error_class = InvalidCartIdError


@dataclass(frozen=True)
class CartItemId(UniqueIdentifier):
    error_class = InvalidCartItemIdError


@dataclass(frozen=True)
class DiscountId(UniqueIdentifier):
    error_class = InvalidDiscountIdError


@dataclass(frozen=True)
class PaymentId(UniqueIdentifier):
    error_class = InvalidPaymentIdError


@dataclass(frozen=True)
class ProductId(UniqueIdentifier):
    error_class = InvalidProductIdError


@dataclass(frozen=True)
class OrderId(UniqueIdentifier):
    error_class = InvalidOrderIdError


@dataclass(frozen=True)
class OrderItemId(UniqueIdentifier):
    error_class = InvalidOrderItemIdError


@dataclass(frozen=True)
class InventoryId(UniqueIdentifier):
    error_class = InvalidInventoryIdError


# ============================================================================
# Money Value Object
# ============================================================================


SUPPORTED_CURRENCIES = frozenset({"IDR", "USD", "EUR", "SGD", "MYR"})
DEFAULT_CURRENCY = "IDR"

_CENT = Decimal("0.01")


def _to_decimal(value: Decimal | int | float | str) -> Decimal:
    if isinstance(value, bool):
        raise InvalidMoneyError("Money amount must be numeric", {"amount": value})
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        # str() keeps the shortest repr, so 0.1 becomes Decimal("0.1")
        value = str(value)
    try:
        return Decimal(value)
    except (InvalidOperation, TypeError, ValueError) as e:
        raise InvalidMoneyError(
            f"Money amount is not a number: {value!r}",
            {"amount": str(value)},
        ) from e


@dataclass(frozen=True)
class Money(ValueObject):
    """Non-negative monetary amount with currency.

    Amounts are decimals quantized to two places (ROUND_HALF_UP).
    Persistence stores integer minor units, see ``minor_units``.

    Attributes:
        amount: Decimal amount in major units.
        currency: ISO 4217 code from SUPPORTED_CURRENCIES.
    """

    amount: Decimal
    currency: str = DEFAULT_CURRENCY

    def __post_init__(self) -> None:
        amount = _to_decimal(self.amount)
        if not amount.is_finite():
            raise InvalidMoneyError(
                "Money amount must be finite", {"amount": str(amount)}
            )
        amount = amount.quantize(_CENT, rounding=ROUND_HALF_UP)
        if amount < 0:
            raise NegativeMoneyError(
                f"Money amount cannot be negative: {amount}",
                {"amount": str(amount)},
            )
        currency = str(self.currency).upper()
        if currency not in SUPPORTED_CURRENCIES:
            raise UnsupportedCurrencyError(
                f"Unsupported currency: {self.currency}",
                {
                    "currency": self.currency,
                    "supported": sorted(SUPPORTED_CURRENCIES),
                },
            )
        object.__setattr__(self, "amount", amount)
        object.__setattr__(self, "currency", currency)

    @classmethod
    def create(
        cls,
        amount: Decimal | int | float | str,
        currency: str = DEFAULT_CURRENCY,
    ) -> Self:
        """Create money, rounding to two decimal places.

        Raises:
            InvalidMoneyError: Amount is not a finite number.
            NegativeMoneyError: Amount is below zero.
            UnsupportedCurrencyError: Currency is not supported.
        """
        return cls(amount=_to_decimal(amount), currency=currency)

    @classmethod
    def zero(cls, currency: str = DEFAULT_CURRENCY) -> Self:
        return cls(amount=Decimal(0), currency=currency)

    @classmethod
    def from_minor_units(cls, minor: int, currency: str = DEFAULT_CURRENCY) -> Self:
        """Create money from an integer count of hundredths."""
        return cls(amount=Decimal(minor) / 100, currency=currency)

    @property
    def minor_units(self) -> int:
        """Amount as an integer count of hundredths."""
        return int(self.amount * 100)

    def _check_currency(self, other: "Money") -> None:
        if self.currency != other.currency:
            raise CurrencyMismatchError(self.currency, other.currency)

    # Arithmetic

    def add(self, other: "Money") -> "Money":
        self._check_currency(other)
        return Money(self.amount + other.amount, self.currency)

    def subtract(self, other: "Money") -> "Money":
        """Subtract money amounts.

        Raises:
            CurrencyMismatchError: If currencies don't match.
            NegativeMoneyError: If result would be negative.
        """
        self._check_currency(other)
        return Money(self.amount - other.amount, self.currency)

    def multiply(self, factor: Decimal | int | float | str) -> "Money":
        """Multiply by a finite factor.

        Raises:
            InvalidMoneyError: Factor is not a finite number.
            NegativeMoneyError: Factor is negative.
        """
        multiplier = _to_decimal(factor)
        if not multiplier.is_finite():
            raise InvalidMoneyError(
                "Multiplier must be finite", {"multiplier": str(multiplier)}
            )
        return Money(self.amount * multiplier, self.currency)

    def percentage(self, percent: Decimal | int | float | str) -> "Money":
        """Return ``percent`` percent of this amount.

        Raises:
            InvalidMoneyError: Percent outside 0..100.
        """
        value = _to_decimal(percent)
        if not value.is_finite() or value < 0 or value > 100:
            raise InvalidMoneyError(
                "Percentage must be between 0 and 100",
                {"percentage": str(value)},
            )
        return Money(self.amount * value / 100, self.currency)

    __add__ = add
    __sub__ = subtract

    def __mul__(self, factor: Decimal | int | float | str) -> "Money":
        return self.multiply(factor)

    def __rmul__(self, factor: Decimal | int | float | str) -> "Money":
        return self.multiply(factor)

    # Comparison

    def equals(self, other: "Money") -> bool:
        return self == other

    def is_greater_than(self, other: "Money") -> bool:
        self._check_currency(other)
        return self.amount > other.amount

    def is_greater_than_or_equal(self, other: "Money") -> bool:
        self._check_currency(other)
        return self.amount >= other.amount

    def is_less_than(self, other: "Money") -> bool:
        self._check_currency(other)
        return self.amount < other.amount

    def is_less_than_or_equal(self, other: "Money") -> bool:
        self._check_currency(other)
        return self.amount <= other.amount

    __gt__ = is_greater_than
    __ge__ = is_greater_than_or_equal
    __lt__ = is_less_than
    __le__ = is_less_than_or_equal

    def is_zero(self) -> bool:
        return self.amount == 0

    def __str__(self) -> str:
        return f"{self.currency} {self.amount:.2f}"


# ============================================================================
# Quantity Value Object
# ============================================================================


MIN_QUANTITY = 1
MAX_QUANTITY = 9999


@dataclass(frozen=True)
class Quantity(ValueObject):
    """Line quantity, an integer between 1 and 9999.

    Attributes:
        value: Number of units.
    """

    value: int

    def __post_init__(self) -> None:
        if isinstance(self.value, bool) or not isinstance(self.value, int):
            raise InvalidQuantityError(self.value, "must be an integer")
        if self.value < MIN_QUANTITY:
            raise InvalidQuantityError(
                self.value, f"must be at least {MIN_QUANTITY}"
            )
        if self.value > MAX_QUANTITY:
            raise InvalidQuantityError(
                self.value, f"must not exceed {MAX_QUANTITY}"
            )

    @classmethod
    def create(cls, value: int) -> Self:
        return cls(value)

    def add(self, other: "Quantity | int") -> "Quantity":
        """Return a new quantity increased by ``other``.

        Raises:
            InvalidQuantityError: Result exceeds the maximum.
        """
        delta = other.value if isinstance(other, Quantity) else other
        return Quantity(self.value + delta)

    def subtract(self, other: "Quantity | int") -> "Quantity":
        """Return a new quantity decreased by ``other``.

        Raises:
            InvalidQuantityError: Result drops below one.
        """
        delta = other.value if isinstance(other, Quantity) else other
        return Quantity(self.value - delta)

    def __int__(self) -> int:
        return self.value

    def __str__(self) -> str:
        return str(self.value)


@dataclass(frozen=True)
class StockQuantity(ValueObject):
    """On-hand or reserved unit count. Zero is valid, negatives are not."""

    value: int

    def __post_init__(self) -> None:
        if isinstance(self.value, bool) or not isinstance(self.value, int):
            raise InvalidStockQuantityError(self.value, "must be an integer")
        if self.value < 0:
            raise InvalidStockQuantityError(self.value, "cannot be negative")

    @classmethod
    def create(cls, value: int) -> Self:
        return cls(value)

    @classmethod
    def zero(cls) -> Self:
        return cls(0)

    def add(self, amount: int) -> "StockQuantity":
        return StockQuantity(self.value + amount)

    def subtract(self, amount: int) -> "StockQuantity":
        """Raises InvalidStockQuantityError if the result would be negative."""
        return StockQuantity(self.value - amount)

    def is_zero(self) -> bool:
        return self.value == 0

    def __int__(self) -> int:
        return self.value

    def __str__(self) -> str:
        return str(self.value)


# ============================================================================
# Discount Value Objects
# ============================================================================


_CODE_PATTERN = re.compile(r"^[A-Z0-9_-]+$")


@dataclass(frozen=True)
class DiscountCode(ValueObject):
    """Customer-facing discount code, normalized to upper case."""

    value: str

    def __post_init__(self) -> None:
        normalized = str(self.value).strip().upper()
        if not normalized:
            raise InvalidDiscountCodeError("Discount code cannot be empty")
        if len(normalized) > 100:
            raise InvalidDiscountCodeError(
                "Discount code cannot exceed 100 characters",
                {"length": len(normalized)},
            )
        if not _CODE_PATTERN.match(normalized):
            raise InvalidDiscountCodeError(
                "Discount code may only contain letters, digits, "
                "hyphens and underscores",
                {"code": normalized},
            )
        object.__setattr__(self, "value", normalized)

    def __str__(self) -> str:
        return self.value


class DiscountType(str, Enum):
    PERCENTAGE = "PERCENTAGE"
    FIXED_AMOUNT = "FIXED_AMOUNT"


class DiscountApplicability(str, Enum):
    """Which purchases a discount targets."""

    ALL_PRODUCTS = "ALL_PRODUCTS"
    SPECIFIC_PRODUCTS = "SPECIFIC_PRODUCTS"
    MINIMUM_PURCHASE = "MINIMUM_PURCHASE"


@dataclass(frozen=True)
class DiscountValue(ValueObject):
    """Discount amount definition.

    Attributes:
        type: Percentage of purchase or fixed amount.
        value: Percent (0 < v <= 100) or fixed amount in major units (v > 0).
        max_discount: Cap applied to percentage discounts.
    """

    type: DiscountType
    value: Decimal
    max_discount: Money | None = None

    def __post_init__(self) -> None:
        try:
            value = _to_decimal(self.value)
        except InvalidMoneyError as e:
            raise InvalidDiscountValueError(e.message, e.details) from e
        if not value.is_finite() or value <= 0:
            raise InvalidDiscountValueError(
                "Discount value must be greater than zero",
                {"value": str(value)},
            )
        if self.type == DiscountType.PERCENTAGE and value > 100:
            raise InvalidDiscountValueError(
                "Percentage discount cannot exceed 100",
                {"value": str(value)},
            )
        if self.max_discount is not None and self.max_discount.is_zero():
            raise InvalidDiscountValueError(
                "Maximum discount must be greater than zero"
            )
        object.__setattr__(self, "type", DiscountType(self.type))
        object.__setattr__(self, "value", value)

    @classmethod
    def percentage(cls, percent: Decimal | int | str, max_discount: Money | None = None) -> Self:
        return cls(DiscountType.PERCENTAGE, _to_decimal(percent), max_discount)

    @classmethod
    def fixed_amount(cls, amount: Decimal | int | str) -> Self:
        return cls(DiscountType.FIXED_AMOUNT, _to_decimal(amount))

    def is_percentage(self) -> bool:
        return self.type == DiscountType.PERCENTAGE

    def calculate_discount(self, purchase_amount: Money) -> Money:
        """Compute the discount for a purchase.

        The result never exceeds the purchase amount.

        Args:
            purchase_amount: Amount the discount applies to.

        Returns:
            Discount amount in the purchase currency.
        """
        if self.is_percentage():
            discount = purchase_amount.percentage(self.value)
            if self.max_discount is not None and discount.is_greater_than(
                self.max_discount
            ):
                discount = self.max_discount
        else:
            discount = Money(self.value, purchase_amount.currency)
        if discount.is_greater_than(purchase_amount):
            return purchase_amount
        return discount


@dataclass(frozen=True)
class DiscountPeriod(ValueObject):
    """Validity window of a discount; start must precede end."""

    start_date: datetime
    end_date: datetime

    def __post_init__(self) -> None:
        if self.start_date >= self.end_date:
            raise InvalidDiscountPeriodError(
                "Discount start date must be before end date",
                {
                    "start_date": self.start_date.isoformat(),
                    "end_date": self.end_date.isoformat(),
                },
            )

    def is_currently_valid(self, now: datetime | None = None) -> bool:
        now = now or utcnow()
        return self.start_date <= now <= self.end_date

    def has_expired(self, now: datetime | None = None) -> bool:
        return (now or utcnow()) > self.end_date

    def has_not_started(self, now: datetime | None = None) -> bool:
        return (now or utcnow()) < self.start_date

    def remaining(self, now: datetime | None = None) -> timedelta:
        """Time left until the period ends, zero once expired."""
        left = self.end_date - (now or utcnow())
        return max(left, timedelta(0))


# ============================================================================
# Payment Value Objects
# ============================================================================


class PaymentProvider(str, Enum):
    MIDTRANS = "MIDTRANS"
    MANUAL = "MANUAL"


@dataclass(frozen=True)
class ProviderRef(ValueObject):
    """Payment gateway transaction reference."""

    value: str

    def __post_init__(self) -> None:
        normalized = str(self.value).strip()
        if not normalized:
            raise InvalidProviderRefError("Provider reference cannot be empty")
        if len(normalized) > 255:
            raise InvalidProviderRefError(
                "Provider reference cannot exceed 255 characters",
                {"length": len(normalized)},
            )
        object.__setattr__(self, "value", normalized)

    def __str__(self) -> str:
        return self.value


# ============================================================================
# Product Value Objects
# ============================================================================


@dataclass(frozen=True)
class Sku(ValueObject):
    """Stock keeping unit, normalized to upper case."""

    value: str

    def __post_init__(self) -> None:
        normalized = str(self.value).strip().upper()
        if not normalized:
            raise InvalidSkuError("SKU cannot be empty")
        if len(normalized) > 100:
            raise InvalidSkuError(
                "SKU cannot exceed 100 characters", {"length": len(normalized)}
            )
        if not _CODE_PATTERN.match(normalized):
            raise InvalidSkuError(
                "SKU may only contain letters, digits, hyphens and underscores",
                {"sku": normalized},
            )
        object.__setattr__(self, "value", normalized)

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class ProductName(ValueObject):
    value: str

    def __post_init__(self) -> None:
        normalized = str(self.value).strip()
        if not normalized:
            raise InvalidProductNameError("Product name cannot be empty")
        if len(normalized) > 500:
            raise InvalidProductNameError(
                "Product name cannot exceed 500 characters",
                {"length": len(normalized)},
            )
        object.__setattr__(self, "value", normalized)

    def __str__(self) -> str:
        return self.value


# ============================================================================
# Order Value Objects
# ============================================================================


_ORDER_NUMBER_PATTERN = re.compile(r"^ORD-\d{8}-[A-Z0-9]{5,}$")
_ORDER_SUFFIX_ALPHABET = string.ascii_uppercase + string.digits


@dataclass(frozen=True)
class OrderNumber(ValueObject):
    """Human-facing order number, ``ORD-YYYYMMDD-XXXXX``."""

    value: str

    def __post_init__(self) -> None:
        if not isinstance(self.value, str) or not _ORDER_NUMBER_PATTERN.match(
            self.value
        ):
            raise InvalidOrderNumberError(
                f"Invalid order number: {self.value!r}",
                {"value": str(self.value)},
            )

    @classmethod
    def generate(cls, now: datetime | None = None) -> Self:
        now = now or utcnow()
        suffix = "".join(secrets.choice(_ORDER_SUFFIX_ALPHABET) for _ in range(5))
        return cls(f"ORD-{now:%Y%m%d}-{suffix}")

    def __str__(self) -> str:
        return self.value
