"""SQLAlchemy repository implementations.

Repositories run against the ambient unit-of-work transaction (or an
explicitly passed ``TransactionContext``). ``save`` is an upsert that
flushes the aggregate, then drains its pending domain events into the
``domain_events`` outbox table and hands them to the transaction for
dispatch after commit.
"""

from contextlib import asynccontextmanager
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, AsyncIterator, Callable

import structlog
from sqlalchemy import delete, func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.domain.base import AggregateRoot, DomainEvent
from storefront.domain.entities import (
    Cart,
    CartItem,
    Discount,
    Inventory,
    Order,
    OrderItem,
    Payment,
    Product,
)
from storefront.domain.exceptions import (
    CartAlreadyExistsError,
    DiscountCodeAlreadyExistsError,
    DomainError,
    DuplicateProviderRefError,
    InventoryAlreadyExistsError,
    ProductSkuAlreadyExistsError,
)
from storefront.domain.repositories import UserRecord
from storefront.domain.value_objects import (
    CartId,
    CartItemId,
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
    ProductId,
    ProductName,
    ProviderRef,
    Quantity,
    Sku,
    StockQuantity,
)
from storefront.infrastructure.mappers import (
    discount_applicability_mapper,
    discount_status_mapper,
    discount_type_mapper,
    order_status_mapper,
    payment_provider_mapper,
    payment_status_mapper,
    product_status_mapper,
)
from storefront.infrastructure.models import (
    CartItemModel,
    CartModel,
    DiscountModel,
    DomainEventModel,
    InventoryModel,
    OrderItemModel,
    OrderModel,
    PaymentModel,
    ProductModel,
    UserModel,
)
from storefront.infrastructure.unit_of_work import (
    TransactionContext,
    current_transaction,
    in_transaction,
)

logger = structlog.get_logger()


def _aware(value: datetime | None) -> datetime | None:
    """Attach UTC to datetimes returned naive by drivers such as SQLite."""
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _money_or_none(minor: int | None, currency: str) -> Money | None:
    return None if minor is None else Money.from_minor_units(minor, currency)


# ============================================================================
# Base Repository
# ============================================================================


class SqlAlchemyRepository:
    """Shared session resolution and event draining.

    Args:
        transaction: Explicit transaction context. Defaults to the ambient
            one active for the calling task at call time.
    """

    def __init__(self, transaction: TransactionContext | None = None) -> None:
        self._transaction = transaction

    @property
    def transaction(self) -> TransactionContext:
        return self._transaction or current_transaction()

    @property
    def session(self) -> AsyncSession:
        return self.transaction.session

    async def _flush(self, on_conflict: Callable[[], DomainError]) -> None:
        try:
            await self.session.flush()
        except IntegrityError as e:
            raise on_conflict() from e

    async def _drain_events(self, aggregate: AggregateRoot[Any]) -> list[DomainEvent]:
        """Move pending events into the outbox and the transaction."""
        events = aggregate.pull_domain_events()
        if not events:
            return events
        self.session.add_all(
            DomainEventModel(
                id=str(event.event_id),
                event_type=event.event_type,
                aggregate_id=event.aggregate_id,
                aggregate_type=event.aggregate_type,
                payload=event.payload,
                occurred_at=event.occurred_at,
            )
            for event in events
        )
        await self.session.flush()
        self.transaction.collect(events)
        logger.debug(
            "Domain events recorded",
            aggregate_id=str(aggregate.id),
            event_types=[e.event_type for e in events],
        )
        return events


# ============================================================================
# Cart Repository
# ============================================================================


class SqlAlchemyCartRepository(SqlAlchemyRepository):
    """Cart persistence. One cart per user."""

    async def find_by_id(self, cart_id: CartId) -> Cart | None:
        model = await self.session.get(CartModel, str(cart_id))
        return self._to_domain(model) if model else None

    async def find_by_user_id(self, user_id: str) -> Cart | None:
        result = await self.session.execute(
            select(CartModel).where(CartModel.user_id == user_id)
        )
        model = result.scalar_one_or_none()
        return self._to_domain(model) if model else None

    async def exists_for_user(self, user_id: str) -> bool:
        result = await self.session.execute(
            select(func.count()).select_from(CartModel).where(CartModel.user_id == user_id)
        )
        return result.scalar_one() > 0

    async def save(self, cart: Cart) -> None:
        """Upsert a cart and its lines.

        Raises:
            CartAlreadyExistsError: If the user already owns another cart.
        """
        model = await self.session.get(CartModel, str(cart.id))
        if model is None:
            if await self.exists_for_user(cart.user_id):
                raise CartAlreadyExistsError(
                    f"User {cart.user_id} already has a cart",
                    {"user_id": cart.user_id},
                )
            model = CartModel(id=str(cart.id), user_id=cart.user_id, items=[])
            self.session.add(model)

        model.version = cart.version
        model.created_at = cart.created_at
        model.updated_at = cart.updated_at

        existing = {item.id: item for item in model.items}
        lines = []
        for item in cart.items:
            line = existing.get(str(item.id)) or CartItemModel(id=str(item.id))
            line.product_id = item.product_id
            line.quantity = item.quantity.value
            line.created_at = item.created_at
            line.updated_at = item.updated_at
            lines.append(line)
        model.items = lines

        await self._flush(
            lambda: CartAlreadyExistsError(
                f"User {cart.user_id} already has a cart",
                {"user_id": cart.user_id},
            )
        )
        await self._drain_events(cart)

    async def delete(self, cart_id: CartId) -> None:
        model = await self.session.get(CartModel, str(cart_id))
        if model is not None:
            await self.session.delete(model)
            await self.session.flush()

    @staticmethod
    def _to_domain(model: CartModel) -> Cart:
        items = [
            CartItem(
                id=CartItemId(line.id),
                product_id=line.product_id,
                quantity=Quantity(line.quantity),
                created_at=_aware(line.created_at),
                updated_at=_aware(line.updated_at),
            )
            for line in model.items
        ]
        return Cart.reconstruct(
            cart_id=CartId(model.id),
            user_id=model.user_id,
            items=items,
            created_at=_aware(model.created_at),
            updated_at=_aware(model.updated_at),
            version=model.version,
        )


# ============================================================================
# Discount Repository
# ============================================================================


class SqlAlchemyDiscountRepository(SqlAlchemyRepository):
    async def find_by_id(self, discount_id: DiscountId) -> Discount | None:
        model = await self.session.get(DiscountModel, str(discount_id))
        return self._to_domain(model) if model else None

    async def find_by_code(self, code: DiscountCode | str) -> Discount | None:
        normalized = str(code if isinstance(code, DiscountCode) else DiscountCode(code))
        result = await self.session.execute(
            select(DiscountModel).where(DiscountModel.code == normalized)
        )
        model = result.scalar_one_or_none()
        return self._to_domain(model) if model else None

    async def exists_by_code(
        self, code: DiscountCode | str, exclude_id: DiscountId | None = None
    ) -> bool:
        normalized = str(code if isinstance(code, DiscountCode) else DiscountCode(code))
        query = select(func.count()).select_from(DiscountModel).where(
            DiscountModel.code == normalized
        )
        if exclude_id is not None:
            query = query.where(DiscountModel.id != str(exclude_id))
        result = await self.session.execute(query)
        return result.scalar_one() > 0

    async def save(self, discount: Discount) -> None:
        """Upsert a discount.

        Raises:
            DiscountCodeAlreadyExistsError: If another discount uses the code.
        """
        if await self.exists_by_code(discount.code, exclude_id=discount.id):
            raise DiscountCodeAlreadyExistsError(str(discount.code))

        model = await self.session.get(DiscountModel, str(discount.id))
        if model is None:
            model = DiscountModel(id=str(discount.id))
            self.session.add(model)

        value = discount.value
        currency = next(
            (
                m.currency
                for m in (value.max_discount, discount.min_purchase)
                if m is not None
            ),
            "IDR",
        )
        model.code = str(discount.code)
        model.name = discount.name
        model.description = discount.description
        model.discount_type = discount_type_mapper.to_persistence(value.type).value
        model.value = value.value
        model.max_discount_minor = (
            value.max_discount.minor_units if value.max_discount else None
        )
        model.applicability = discount_applicability_mapper.to_persistence(
            discount.applicability
        ).value
        model.min_purchase_minor = (
            discount.min_purchase.minor_units if discount.min_purchase else None
        )
        model.currency = currency
        model.start_date = discount.period.start_date
        model.end_date = discount.period.end_date
        model.status = discount_status_mapper.to_persistence(discount.status).value
        model.usage_limit = discount.usage_limit
        model.usage_count = discount.usage_count
        model.per_user_limit = discount.per_user_limit
        model.product_ids = list(discount.product_ids)
        model.version = discount.version
        model.created_at = discount.created_at
        model.updated_at = discount.updated_at

        await self._flush(lambda: DiscountCodeAlreadyExistsError(str(discount.code)))
        await self._drain_events(discount)

    async def delete(self, discount_id: DiscountId) -> None:
        await self.session.execute(
            delete(DiscountModel).where(DiscountModel.id == str(discount_id))
        )

    @staticmethod
    def _to_domain(model: DiscountModel) -> Discount:
        return Discount.reconstruct(
            id=DiscountId(model.id),
            code=DiscountCode(model.code),
            name=model.name,
            description=model.description,
            value=DiscountValue(
                type=discount_type_mapper.to_domain(model.discount_type),
                value=Decimal(model.value),
                max_discount=_money_or_none(model.max_discount_minor, model.currency),
            ),
            applicability=discount_applicability_mapper.to_domain(model.applicability),
            min_purchase=_money_or_none(model.min_purchase_minor, model.currency),
            period=DiscountPeriod(
                start_date=_aware(model.start_date),
                end_date=_aware(model.end_date),
            ),
            status=discount_status_mapper.to_domain(model.status),
            usage_limit=model.usage_limit,
            usage_count=model.usage_count,
            per_user_limit=model.per_user_limit,
            product_ids=list(model.product_ids or []),
            version=model.version,
            created_at=_aware(model.created_at),
            updated_at=_aware(model.updated_at),
        )


# ============================================================================
# Payment Repository
# ============================================================================


class SqlAlchemyPaymentRepository(SqlAlchemyRepository):
    async def find_by_id(self, payment_id: PaymentId) -> Payment | None:
        model = await self.session.get(PaymentModel, str(payment_id))
        return self._to_domain(model) if model else None

    async def find_by_provider_ref(self, provider_ref: ProviderRef | str) -> Payment | None:
        result = await self.session.execute(
            select(PaymentModel).where(
                PaymentModel.provider_ref == str(ProviderRef(str(provider_ref)))
            )
        )
        model = result.scalar_one_or_none()
        return self._to_domain(model) if model else None

    async def find_by_order_id(self, order_id: str) -> list[Payment]:
        result = await self.session.execute(
            select(PaymentModel)
            .where(PaymentModel.order_id == order_id)
            .order_by(PaymentModel.created_at)
        )
        return [self._to_domain(m) for m in result.scalars().all()]

    async def exists_by_provider_ref(
        self,
        provider_ref: ProviderRef | str,
        exclude_id: PaymentId | None = None,
    ) -> bool:
        query = select(func.count()).select_from(PaymentModel).where(
            PaymentModel.provider_ref == str(ProviderRef(str(provider_ref)))
        )
        if exclude_id is not None:
            query = query.where(PaymentModel.id != str(exclude_id))
        result = await self.session.execute(query)
        return result.scalar_one() > 0

    async def save(self, payment: Payment) -> None:
        """Upsert a payment.

        Raises:
            DuplicateProviderRefError: If another payment uses the reference.
        """
        if await self.exists_by_provider_ref(payment.provider_ref, exclude_id=payment.id):
            raise DuplicateProviderRefError(str(payment.provider_ref))

        model = await self.session.get(PaymentModel, str(payment.id))
        if model is None:
            model = PaymentModel(id=str(payment.id))
            self.session.add(model)

        model.order_id = payment.order_id
        model.provider = payment_provider_mapper.to_persistence(payment.provider).value
        model.provider_ref = str(payment.provider_ref)
        model.status = payment_status_mapper.to_persistence(payment.status).value
        model.amount_minor = payment.amount.minor_units
        model.currency = payment.amount.currency
        model.raw_webhook_payload = payment.raw_webhook_payload
        model.version = payment.version
        model.created_at = payment.created_at
        model.updated_at = payment.updated_at

        await self._flush(lambda: DuplicateProviderRefError(str(payment.provider_ref)))
        await self._drain_events(payment)

    async def delete(self, payment_id: PaymentId) -> None:
        await self.session.execute(
            delete(PaymentModel).where(PaymentModel.id == str(payment_id))
        )

    @staticmethod
    def _to_domain(model: PaymentModel) -> Payment:
        return Payment.reconstruct(
            id=PaymentId(model.id),
            order_id=model.order_id,
            provider=payment_provider_mapper.to_domain(model.provider),
            provider_ref=ProviderRef(model.provider_ref),
            status=payment_status_mapper.to_domain(model.status),
            amount=Money.from_minor_units(model.amount_minor, model.currency),
            raw_webhook_payload=model.raw_webhook_payload,
            version=model.version,
            created_at=_aware(model.created_at),
            updated_at=_aware(model.updated_at),
        )


# ============================================================================
# Product Repository
# ============================================================================


class SqlAlchemyProductRepository(SqlAlchemyRepository):
    async def find_by_id(self, product_id: ProductId) -> Product | None:
        model = await self.session.get(ProductModel, str(product_id))
        return self._to_domain(model) if model else None

    async def find_by_sku(self, sku: Sku | str) -> Product | None:
        result = await self.session.execute(
            select(ProductModel).where(ProductModel.sku == str(Sku(str(sku))))
        )
        model = result.scalar_one_or_none()
        return self._to_domain(model) if model else None

    async def exists_by_sku(self, sku: Sku | str, exclude_id: ProductId | None = None) -> bool:
        query = select(func.count()).select_from(ProductModel).where(
            ProductModel.sku == str(Sku(str(sku)))
        )
        if exclude_id is not None:
            query = query.where(ProductModel.id != str(exclude_id))
        result = await self.session.execute(query)
        return result.scalar_one() > 0

    async def save(self, product: Product) -> None:
        """Upsert a product.

        Raises:
            ProductSkuAlreadyExistsError: If another product uses the SKU.
        """
        if await self.exists_by_sku(product.sku, exclude_id=product.id):
            raise ProductSkuAlreadyExistsError(str(product.sku))

        model = await self.session.get(ProductModel, str(product.id))
        if model is None:
            model = ProductModel(id=str(product.id))
            self.session.add(model)

        model.sku = str(product.sku)
        model.name = str(product.name)
        model.description = product.description
        model.brand = product.brand
        model.image_url = product.image_url
        model.price_minor = product.price.minor_units
        model.currency = product.price.currency
        model.attributes = dict(product.attributes)
        model.status = product_status_mapper.to_persistence(product.status).value
        model.version = product.version
        model.created_at = product.created_at
        model.updated_at = product.updated_at

        await self._flush(lambda: ProductSkuAlreadyExistsError(str(product.sku)))
        await self._drain_events(product)

    async def delete(self, product_id: ProductId) -> None:
        await self.session.execute(
            delete(ProductModel).where(ProductModel.id == str(product_id))
        )

    @staticmethod
    def _to_domain(model: ProductModel) -> Product:
        return Product.reconstruct(
            id=ProductId(model.id),
            sku=Sku(model.sku),
            name=ProductName(model.name),
            description=model.description,
            brand=model.brand,
            image_url=model.image_url,
            price=Money.from_minor_units(model.price_minor, model.currency),
            attributes=dict(model.attributes or {}),
            status=product_status_mapper.to_domain(model.status),
            version=model.version,
            created_at=_aware(model.created_at),
            updated_at=_aware(model.updated_at),
        )


# ============================================================================
# Inventory Repository
# ============================================================================


class SqlAlchemyInventoryRepository(SqlAlchemyRepository):
    async def find_by_id(self, inventory_id: InventoryId) -> Inventory | None:
        model = await self.session.get(InventoryModel, str(inventory_id))
        return self._to_domain(model) if model else None

    async def find_by_product_id(self, product_id: str) -> Inventory | None:
        result = await self.session.execute(
            select(InventoryModel).where(InventoryModel.product_id == product_id)
        )
        model = result.scalar_one_or_none()
        return self._to_domain(model) if model else None

    async def find_by_product_ids(self, product_ids: list[str]) -> list[Inventory]:
        """Load several records, ordered by product id. Unknown ids are skipped."""
        if not product_ids:
            return []
        result = await self.session.execute(
            select(InventoryModel)
            .where(InventoryModel.product_id.in_(set(product_ids)))
            .order_by(InventoryModel.product_id)
        )
        return [self._to_domain(m) for m in result.scalars().all()]

    async def exists_by_product_id(self, product_id: str) -> bool:
        result = await self.session.execute(
            select(func.count())
            .select_from(InventoryModel)
            .where(InventoryModel.product_id == product_id)
        )
        return result.scalar_one() > 0

    async def save(self, inventory: Inventory) -> None:
        """Upsert an inventory record.

        Raises:
            InventoryAlreadyExistsError: If another record counts the product.
        """
        model = await self.session.get(InventoryModel, str(inventory.id))
        if model is None:
            if await self.exists_by_product_id(inventory.product_id):
                raise InventoryAlreadyExistsError(inventory.product_id)
            model = InventoryModel(id=str(inventory.id))
            self.session.add(model)

        model.product_id = inventory.product_id
        model.stock = inventory.stock.value
        model.reserved = inventory.reserved.value
        model.version = inventory.version
        model.created_at = inventory.created_at
        model.updated_at = inventory.updated_at

        await self._flush(lambda: InventoryAlreadyExistsError(inventory.product_id))
        await self._drain_events(inventory)

    async def delete(self, inventory_id: InventoryId) -> None:
        await self.session.execute(
            delete(InventoryModel).where(InventoryModel.id == str(inventory_id))
        )

    @staticmethod
    def _to_domain(model: InventoryModel) -> Inventory:
        return Inventory.reconstruct(
            id=InventoryId(model.id),
            product_id=model.product_id,
            stock=StockQuantity(model.stock),
            reserved=StockQuantity(model.reserved),
            version=model.version,
            created_at=_aware(model.created_at),
            updated_at=_aware(model.updated_at),
        )


# ============================================================================
# Order Repository
# ============================================================================


class SqlAlchemyOrderRepository(SqlAlchemyRepository):
    async def find_by_id(self, order_id: OrderId) -> Order | None:
        model = await self.session.get(OrderModel, str(order_id))
        return self._to_domain(model) if model else None

    async def find_by_order_number(self, number: OrderNumber | str) -> Order | None:
        result = await self.session.execute(
            select(OrderModel).where(OrderModel.order_number == str(number))
        )
        model = result.scalar_one_or_none()
        return self._to_domain(model) if model else None

    async def find_by_user_id(self, user_id: str) -> list[Order]:
        result = await self.session.execute(
            select(OrderModel)
            .where(OrderModel.user_id == user_id)
            .order_by(OrderModel.created_at.desc())
        )
        return [self._to_domain(m) for m in result.scalars().all()]

    async def save(self, order: Order) -> None:
        model = await self.session.get(OrderModel, str(order.id))
        if model is None:
            model = OrderModel(
                id=str(order.id),
                items=[
                    OrderItemModel(
                        id=str(item.id),
                        product_id=item.product_id,
                        quantity=item.quantity.value,
                        unit_price_minor=item.unit_price.minor_units,
                        original_price_minor=(
                            item.original_price.minor_units
                            if item.original_price
                            else None
                        ),
                        currency=item.unit_price.currency,
                    )
                    for item in order.items
                ],
            )
            self.session.add(model)

        model.order_number = str(order.order_number)
        model.user_id = order.user_id
        model.status = order_status_mapper.to_persistence(order.status).value
        model.subtotal_minor = order.subtotal.minor_units
        model.tax_minor = order.tax.minor_units
        model.shipping_minor = order.shipping_cost.minor_units
        model.discount_minor = order.discount_amount.minor_units
        model.total_minor = order.total.minor_units
        model.currency = order.currency
        model.discount_id = order.discount_id
        model.notes = order.notes
        model.cancellation_reason = order.cancellation_reason
        model.version = order.version
        model.created_at = order.created_at
        model.updated_at = order.updated_at
        model.paid_at = order.paid_at
        model.completed_at = order.completed_at
        model.cancelled_at = order.cancelled_at

        await self.session.flush()
        await self._drain_events(order)

    async def delete(self, order_id: OrderId) -> None:
        model = await self.session.get(OrderModel, str(order_id))
        if model is not None:
            await self.session.delete(model)
            await self.session.flush()

    @staticmethod
    def _to_domain(model: OrderModel) -> Order:
        currency = model.currency
        items = [
            OrderItem(
                id=OrderItemId(line.id),
                product_id=line.product_id,
                quantity=Quantity(line.quantity),
                unit_price=Money.from_minor_units(line.unit_price_minor, line.currency),
                original_price=_money_or_none(line.original_price_minor, line.currency),
            )
            for line in model.items
        ]
        return Order.reconstruct(
            items,
            id=OrderId(model.id),
            order_number=OrderNumber(model.order_number),
            user_id=model.user_id,
            status=order_status_mapper.to_domain(model.status),
            currency=currency,
            tax=Money.from_minor_units(model.tax_minor, currency),
            shipping_cost=Money.from_minor_units(model.shipping_minor, currency),
            discount_amount=Money.from_minor_units(model.discount_minor, currency),
            discount_id=model.discount_id,
            notes=model.notes,
            cancellation_reason=model.cancellation_reason,
            version=model.version,
            created_at=_aware(model.created_at),
            updated_at=_aware(model.updated_at),
            paid_at=_aware(model.paid_at),
            completed_at=_aware(model.completed_at),
            cancelled_at=_aware(model.cancelled_at),
        )


# ============================================================================
# User Read Repository
# ============================================================================


class SqlAlchemyUserReadRepository(SqlAlchemyRepository):
    """Reads the shared users table.

    Lookups run inside the ambient transaction when one is active and
    otherwise in a short-lived session from ``session_factory``, so cache
    listeners can call it after the writing transaction has committed.
    """

    def __init__(
        self,
        session_factory: Callable[[], AsyncSession] | None = None,
        transaction: TransactionContext | None = None,
    ) -> None:
        super().__init__(transaction)
        self._session_factory = session_factory

    @asynccontextmanager
    async def _reading(self) -> AsyncIterator[AsyncSession]:
        if self._transaction is not None or in_transaction() or self._session_factory is None:
            yield self.session
            return
        async with self._session_factory() as session:
            yield session

    async def find_by_id(self, user_id: str) -> UserRecord | None:
        async with self._reading() as session:
            model = await session.get(UserModel, user_id)
            return self._to_record(model) if model else None

    async def find_by_email(self, email: str) -> UserRecord | None:
        async with self._reading() as session:
            result = await session.execute(
                select(UserModel).where(
                    func.lower(UserModel.email) == email.strip().lower()
                )
            )
            model = result.scalar_one_or_none()
            return self._to_record(model) if model else None

    async def find_email_by_id(self, user_id: str) -> str | None:
        async with self._reading() as session:
            result = await session.execute(
                select(UserModel.email).where(UserModel.id == user_id)
            )
            return result.scalar_one_or_none()

    async def list_users(
        self,
        page: int = 1,
        limit: int = 20,
        role: str | None = None,
        status: str | None = None,
        search: str | None = None,
    ) -> tuple[list[UserRecord], int]:
        """Page through users, newest first.

        Returns:
            Tuple of (users on the page, total matching users).
        """
        filters = []
        if role:
            filters.append(UserModel.role == role)
        if status:
            filters.append(UserModel.status == status)
        if search:
            pattern = f"%{search.strip().lower()}%"
            filters.append(
                or_(
                    func.lower(UserModel.email).like(pattern),
                    func.lower(UserModel.name).like(pattern),
                )
            )

        async with self._reading() as session:
            total = (
                await session.execute(
                    select(func.count()).select_from(UserModel).where(*filters)
                )
            ).scalar_one()
            result = await session.execute(
                select(UserModel)
                .where(*filters)
                .order_by(UserModel.created_at.desc())
                .offset((max(page, 1) - 1) * limit)
                .limit(limit)
            )
            return [self._to_record(m) for m in result.scalars().all()], total

    @staticmethod
    def _to_record(model: UserModel) -> UserRecord:
        return UserRecord(
            id=model.id,
            email=model.email,
            name=model.name,
            role=model.role,
            status=model.status,
            created_at=_aware(model.created_at),
            updated_at=_aware(model.updated_at),
        )
