"""Inventory use cases: stock levels and order reservations."""

from collections import Counter

import structlog

from storefront.domain.entities import Inventory, Order
from storefront.domain.exceptions import (
    InvalidProductIdError,
    InventoryAlreadyExistsError,
    InventoryNotFoundError,
    OrderNotFoundError,
)
from storefront.domain.repositories import (
    InventoryRepository,
    OrderRepository,
    ProductRepository,
)
from storefront.domain.state_machines import ProductStatus
from storefront.domain.value_objects import OrderId, ProductId
from storefront.infrastructure.repositories import (
    SqlAlchemyInventoryRepository,
    SqlAlchemyOrderRepository,
    SqlAlchemyProductRepository,
)
from storefront.infrastructure.unit_of_work import UnitOfWork

logger = structlog.get_logger()


class InventoryService:
    """Service for stock operations.

    Order reservations are all-or-nothing: every line of the order is
    reserved in one transaction, so a shortage on one product leaves the
    others untouched. When a change empties or refills the sellable
    pool, the catalog product is moved to or from OUT_OF_STOCK in the
    same transaction.
    """

    def __init__(
        self,
        uow: UnitOfWork,
        inventories: InventoryRepository | None = None,
        orders: OrderRepository | None = None,
        products: ProductRepository | None = None,
    ) -> None:
        self.uow = uow
        self.inventories = inventories or SqlAlchemyInventoryRepository()
        self.orders = orders or SqlAlchemyOrderRepository()
        self.products = products or SqlAlchemyProductRepository()

    async def create_inventory(self, product_id: str, initial_stock: int = 0) -> Inventory:
        """Start counting stock for a product.

        Raises:
            InventoryAlreadyExistsError: If the product already has a record.
        """

        async def work() -> Inventory:
            if await self.inventories.exists_by_product_id(product_id):
                raise InventoryAlreadyExistsError(product_id)
            inventory = Inventory.create(product_id, initial_stock)
            await self._save(inventory)
            logger.info(
                "Inventory created",
                inventory_id=str(inventory.id),
                product_id=product_id,
                stock=initial_stock,
            )
            return inventory

        return await self.uow.with_transaction(work)

    async def get_inventory(self, product_id: str) -> Inventory:
        async def work() -> Inventory:
            return await self._require(product_id)

        return await self.uow.with_transaction(work)

    async def add_stock(self, product_id: str, quantity: int, reason: str | None = None) -> Inventory:
        async def work() -> Inventory:
            inventory = await self._require(product_id)
            inventory.add_stock(quantity, reason)
            await self._save(inventory)
            return inventory

        return await self.uow.with_transaction(work)

    async def remove_stock(
        self, product_id: str, quantity: int, reason: str | None = None
    ) -> Inventory:
        async def work() -> Inventory:
            inventory = await self._require(product_id)
            inventory.remove_stock(quantity, reason)
            await self._save(inventory)
            return inventory

        return await self.uow.with_transaction(work)

    async def set_stock(self, product_id: str, quantity: int, reason: str | None = None) -> Inventory:
        async def work() -> Inventory:
            inventory = await self._require(product_id)
            inventory.set_stock(quantity, reason)
            await self._save(inventory)
            return inventory

        return await self.uow.with_transaction(work)

    # -------------------------------------------------------------------------
    # Order reservations
    # -------------------------------------------------------------------------

    async def reserve_for_order(self, order_id: str) -> list[Inventory]:
        """Hold stock for every line of an order awaiting payment.

        Raises:
            OrderNotFoundError: If the order does not exist.
            InventoryNotFoundError: If a product has no inventory record.
            InsufficientStockError: If any product is short. Nothing is held.
        """
        return await self._apply_to_order(order_id, "reserve")

    async def release_for_order(self, order_id: str) -> list[Inventory]:
        """Return an order's held stock, e.g. after cancellation or expiry.

        Raises:
            InvalidReservationError: If less stock is held than the order needs.
        """
        return await self._apply_to_order(order_id, "release")

    async def confirm_for_order(self, order_id: str) -> list[Inventory]:
        """Deduct an order's held stock once it is paid.

        Raises:
            InvalidReservationError: If less stock is held than the order needs.
        """
        return await self._apply_to_order(order_id, "confirm_reservation")

    async def _apply_to_order(self, order_id: str, action: str) -> list[Inventory]:
        async def work() -> list[Inventory]:
            order = await self._require_order(order_id)
            wanted = _quantities_by_product(order)
            inventories = await self.inventories.find_by_product_ids(list(wanted))
            found = {inventory.product_id for inventory in inventories}
            missing = sorted(set(wanted) - found)
            if missing:
                raise InventoryNotFoundError(
                    f"No inventory for products {', '.join(missing)}",
                    {"product_ids": missing, "order_id": order_id},
                )

            for inventory in inventories:
                getattr(inventory, action)(wanted[inventory.product_id])
            for inventory in inventories:
                await self._save(inventory)

            logger.info(
                "Order stock updated",
                order_id=order_id,
                action=action,
                products=sorted(wanted),
            )
            return inventories

        return await self.uow.with_transaction(work)

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    async def _require(self, product_id: str) -> Inventory:
        inventory = await self.inventories.find_by_product_id(product_id)
        if inventory is None:
            raise InventoryNotFoundError(
                f"Inventory for product {product_id} not found",
                {"product_id": product_id},
            )
        return inventory

    async def _require_order(self, order_id: str) -> Order:
        order = await self.orders.find_by_id(OrderId.from_string(order_id))
        if order is None:
            raise OrderNotFoundError(f"Order {order_id} not found", {"order_id": order_id})
        return order

    async def _save(self, inventory: Inventory) -> None:
        await self.inventories.save(inventory)
        await self._sync_product_status(inventory)

    async def _sync_product_status(self, inventory: Inventory) -> None:
        # Inventory may count items that are not catalog products
        try:
            product_id = ProductId.from_string(inventory.product_id)
        except InvalidProductIdError:
            return
        product = await self.products.find_by_id(product_id)
        if product is None:
            return

        if inventory.is_depleted() and product.status == ProductStatus.ACTIVE:
            product.mark_out_of_stock()
        elif not inventory.is_depleted() and product.status == ProductStatus.OUT_OF_STOCK:
            product.activate()
        else:
            return
        await self.products.save(product)
        logger.info(
            "Product availability synced with stock",
            product_id=str(product.id),
            status=product.status.value,
            available=inventory.available,
        )


def _quantities_by_product(order: Order) -> Counter[str]:
    wanted: Counter[str] = Counter()
    for item in order.items:
        wanted[item.product_id] += item.quantity.value
    return wanted
