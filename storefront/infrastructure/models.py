"""SQLAlchemy models for database tables.

Money columns hold integer minor units (``*_minor``) next to a
``currency`` column. Status columns hold the persistence enum values
defined here; ``mappers`` translates them to domain statuses.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any

from sqlalchemy import (
    JSON,
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import relationship

from storefront.infrastructure.database import Base

JSONType = JSON().with_variant(JSONB(), "postgresql")


def _now() -> datetime:
    return datetime.now(timezone.utc)


# ============================================================================
# Persistence Enums
# ============================================================================


class PaymentStatusRecord(str, Enum):
    INITIATED = "initiated"
    PENDING = "pending"
    SETTLEMENT = "settlement"
    CANCEL = "cancel"
    EXPIRE = "expire"
    DENY = "deny"
    REFUND = "refund"
    FAILED = "failed"


class PaymentProviderRecord(str, Enum):
    MIDTRANS = "midtrans"
    MANUAL = "manual"


class DiscountStatusRecord(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    EXPIRED = "expired"


class DiscountTypeRecord(str, Enum):
    PERCENTAGE = "percentage"
    FIXED_AMOUNT = "fixed_amount"


class DiscountApplicabilityRecord(str, Enum):
    ALL_PRODUCTS = "all_products"
    SPECIFIC_PRODUCTS = "specific_products"
    MINIMUM_PURCHASE = "minimum_purchase"


class ProductStatusRecord(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    OUT_OF_STOCK = "out_of_stock"
    DISCONTINUED = "discontinued"


class OrderStatusRecord(str, Enum):
    DRAFT = "draft"
    PENDING_PAYMENT = "pending_payment"
    PAID = "paid"
    FULFILLMENT = "fulfillment"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


# ============================================================================
# Users (shared by the Auth and Users contexts)
# ============================================================================


class UserModel(Base):
    """Single users table read by both identity contexts."""

    __tablename__ = "users"

    id = Column(String(36), primary_key=True)
    email = Column(String(255), nullable=False, unique=True, index=True)
    name = Column(String(255), nullable=True)
    role = Column(String(20), nullable=False, default="USER")
    status = Column(String(20), nullable=False, default="ACTIVE")
    created_at = Column(DateTime(timezone=True), nullable=False, default=_now)
    updated_at = Column(
        DateTime(timezone=True), nullable=False, default=_now, onupdate=_now
    )


# ============================================================================
# Cart Models
# ============================================================================


class CartModel(Base):
    __tablename__ = "carts"

    id = Column(String(36), primary_key=True)
    # One cart per user
    user_id = Column(String(36), nullable=False, unique=True, index=True)
    version = Column(Integer, nullable=False, default=1)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_now)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_now)

    items = relationship(
        "CartItemModel",
        back_populates="cart",
        cascade="all, delete-orphan",
        order_by="CartItemModel.created_at",
        lazy="selectin",
    )


class CartItemModel(Base):
    __tablename__ = "cart_items"

    id = Column(String(36), primary_key=True)
    cart_id = Column(
        String(36),
        ForeignKey("carts.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    product_id = Column(String(100), nullable=False)
    quantity = Column(Integer, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_now)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_now)

    cart = relationship("CartModel", back_populates="items")


# ============================================================================
# Discount Model
# ============================================================================


class DiscountModel(Base):
    __tablename__ = "discounts"

    id = Column(String(36), primary_key=True)
    code = Column(String(100), nullable=False, unique=True, index=True)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    discount_type = Column(String(20), nullable=False)
    value = Column(Numeric(12, 2), nullable=False)
    max_discount_minor = Column(Integer, nullable=True)
    applicability = Column(String(30), nullable=False)
    min_purchase_minor = Column(Integer, nullable=True)
    currency = Column(String(3), nullable=False, default="IDR")
    start_date = Column(DateTime(timezone=True), nullable=False)
    end_date = Column(DateTime(timezone=True), nullable=False)
    status = Column(String(20), nullable=False, index=True)
    usage_limit = Column(Integer, nullable=True)
    usage_count = Column(Integer, nullable=False, default=0)
    per_user_limit = Column(Integer, nullable=True)
    product_ids = Column(JSONType, nullable=False, default=list)
    version = Column(Integer, nullable=False, default=1)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_now)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_now)


# ============================================================================
# Payment Model
# ============================================================================


class PaymentModel(Base):
    __tablename__ = "payments"

    id = Column(String(36), primary_key=True)
    order_id = Column(String(36), nullable=False, index=True)
    provider = Column(String(20), nullable=False)
    provider_ref = Column(String(255), nullable=False, unique=True, index=True)
    status = Column(String(20), nullable=False, index=True)
    amount_minor = Column(Integer, nullable=False)
    currency = Column(String(3), nullable=False)
    raw_webhook_payload = Column(JSONType, nullable=True)
    version = Column(Integer, nullable=False, default=1)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_now)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_now)


# ============================================================================
# Product and Inventory Models
# ============================================================================


class ProductModel(Base):
    __tablename__ = "products"

    id = Column(String(36), primary_key=True)
    sku = Column(String(100), nullable=False, unique=True, index=True)
    name = Column(String(500), nullable=False)
    description = Column(Text, nullable=True)
    brand = Column(String(255), nullable=True)
    image_url = Column(Text, nullable=True)
    price_minor = Column(Integer, nullable=False)
    currency = Column(String(3), nullable=False)
    attributes = Column(JSONType, nullable=False, default=dict)
    status = Column(String(20), nullable=False, index=True)
    version = Column(Integer, nullable=False, default=1)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_now)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_now)


class InventoryModel(Base):
    __tablename__ = "inventories"
    __table_args__ = (
        CheckConstraint("stock >= 0", name="ck_inventories_stock_non_negative"),
        CheckConstraint("reserved >= 0", name="ck_inventories_reserved_non_negative"),
        CheckConstraint("reserved <= stock", name="ck_inventories_reserved_within_stock"),
    )

    id = Column(String(36), primary_key=True)
    product_id = Column(String(100), nullable=False, unique=True, index=True)
    stock = Column(Integer, nullable=False, default=0)
    reserved = Column(Integer, nullable=False, default=0)
    version = Column(Integer, nullable=False, default=1)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_now)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_now)


# ============================================================================
# Order Models
# ============================================================================


class OrderModel(Base):
    __tablename__ = "orders"

    id = Column(String(36), primary_key=True)
    order_number = Column(String(40), nullable=False, unique=True, index=True)
    user_id = Column(String(36), nullable=False, index=True)
    status = Column(String(20), nullable=False, index=True)

    # Totals
    subtotal_minor = Column(Integer, nullable=False)
    tax_minor = Column(Integer, nullable=False, default=0)
    shipping_minor = Column(Integer, nullable=False, default=0)
    discount_minor = Column(Integer, nullable=False, default=0)
    total_minor = Column(Integer, nullable=False)
    currency = Column(String(3), nullable=False)

    discount_id = Column(String(36), nullable=True)
    notes = Column(Text, nullable=True)
    cancellation_reason = Column(Text, nullable=True)

    version = Column(Integer, nullable=False, default=1)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_now)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_now)
    paid_at = Column(DateTime(timezone=True), nullable=True)
    completed_at = Column(DateTime(timezone=True), nullable=True)
    cancelled_at = Column(DateTime(timezone=True), nullable=True)

    items = relationship(
        "OrderItemModel",
        back_populates="order",
        cascade="all, delete-orphan",
        lazy="selectin",
    )


class OrderItemModel(Base):
    __tablename__ = "order_items"

    id = Column(String(36), primary_key=True)
    order_id = Column(
        String(36),
        ForeignKey("orders.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    product_id = Column(String(100), nullable=False)
    quantity = Column(Integer, nullable=False)
    unit_price_minor = Column(Integer, nullable=False)
    original_price_minor = Column(Integer, nullable=True)
    currency = Column(String(3), nullable=False)

    order = relationship("OrderModel", back_populates="items")


# ============================================================================
# Domain Event Outbox
# ============================================================================


class DomainEventModel(Base):
    """Domain events written in the same transaction as their aggregate."""

    __tablename__ = "domain_events"

    id = Column(String(36), primary_key=True)
    event_type = Column(String(100), nullable=False, index=True)
    aggregate_id = Column(String(36), nullable=False, index=True)
    aggregate_type = Column(String(50), nullable=False)
    payload = Column(JSONType, nullable=False)
    occurred_at = Column(DateTime(timezone=True), nullable=False)
    recorded_at = Column(DateTime(timezone=True), nullable=False, default=_now)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "event_id": self.id,
            "event_type": self.event_type,
            "aggregate_id": self.aggregate_id,
            "aggregate_type": self.aggregate_type,
            "payload": self.payload,
            "occurred_at": self.occurred_at.isoformat() if self.occurred_at else None,
        }
