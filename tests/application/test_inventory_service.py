"""Tests for InventoryService."""

import pytest

from storefront.application.inventory_service import InventoryService
from storefront.domain.entities import Order, OrderItem, Product
from storefront.domain.exceptions import (
    InsufficientStockError,
    InvalidReservationError,
    InventoryAlreadyExistsError,
    InventoryNotFoundError,
    OrderNotFoundError,
)
from storefront.domain.state_machines import ProductStatus
from storefront.domain.value_objects import Money, OrderId
from storefront.infrastructure.repositories import (
    SqlAlchemyOrderRepository,
    SqlAlchemyProductRepository,
)
from storefront.infrastructure.unit_of_work import UnitOfWork


@pytest.fixture
def service(uow: UnitOfWork) -> InventoryService:
    return InventoryService(uow)


async def place_order(uow: UnitOfWork, *lines: tuple[str, int]) -> Order:
    orders = SqlAlchemyOrderRepository()

    async def work() -> Order:
        order = Order.create(
            "user-1",
            [OrderItem.create(product_id, qty, Money.create(10000)) for product_id, qty in lines],
        )
        await orders.save(order)
        return order

    return await uow.with_transaction(work)


async def save_product(uow: UnitOfWork) -> Product:
    products = SqlAlchemyProductRepository()

    async def work() -> Product:
        product = Product.create("mug-1", "Mug", Money.create(50000))
        await products.save(product)
        return product

    return await uow.with_transaction(work)


async def load_product(uow: UnitOfWork, product: Product) -> Product:
    products = SqlAlchemyProductRepository()

    async def work() -> Product:
        return await products.find_by_id(product.id)

    return await uow.with_transaction(work)


class TestStockManagement:
    """Tests for creating and adjusting stock."""

    async def test_create_and_adjust(self, service: InventoryService) -> None:
        """Adjustments persist across transactions."""
        await service.create_inventory("p1", 10)
        await service.add_stock("p1", 5)
        await service.remove_stock("p1", 3, "Damaged")

        inventory = await service.get_inventory("p1")
        assert inventory.stock.value == 12

    async def test_create_twice(self, service: InventoryService) -> None:
        """A product has a single inventory record."""
        await service.create_inventory("p1")
        with pytest.raises(InventoryAlreadyExistsError):
            await service.create_inventory("p1")

    async def test_unknown_product(self, service: InventoryService) -> None:
        """Adjusting an untracked product is a not-found error."""
        with pytest.raises(InventoryNotFoundError):
            await service.add_stock("ghost", 1)


class TestOrderReservations:
    """Tests for order-level reservations."""

    async def test_reserve_merges_lines_per_product(
        self, service: InventoryService, uow: UnitOfWork
    ) -> None:
        """Every order line is held against its product."""
        await service.create_inventory("p1", 10)
        await service.create_inventory("p2", 2)
        order = await place_order(uow, ("p1", 3), ("p2", 2))

        await service.reserve_for_order(str(order.id))

        p1 = await service.get_inventory("p1")
        p2 = await service.get_inventory("p2")
        assert (p1.reserved.value, p1.available) == (3, 7)
        assert (p2.reserved.value, p2.available) == (2, 0)

    async def test_shortage_reserves_nothing(
        self, service: InventoryService, uow: UnitOfWork
    ) -> None:
        """One short product rolls back the whole reservation."""
        await service.create_inventory("p1", 10)
        await service.create_inventory("p2", 1)
        order = await place_order(uow, ("p1", 3), ("p2", 2))

        with pytest.raises(InsufficientStockError):
            await service.reserve_for_order(str(order.id))

        assert (await service.get_inventory("p1")).reserved.value == 0
        assert (await service.get_inventory("p2")).reserved.value == 0

    async def test_untracked_product(self, service: InventoryService, uow: UnitOfWork) -> None:
        """Orders for products without inventory cannot be reserved."""
        await service.create_inventory("p1", 10)
        order = await place_order(uow, ("p1", 1), ("p9", 1))

        with pytest.raises(InventoryNotFoundError) as exc_info:
            await service.reserve_for_order(str(order.id))

        assert exc_info.value.details["product_ids"] == ["p9"]

    async def test_unknown_order(self, service: InventoryService) -> None:
        """The order must exist."""
        with pytest.raises(OrderNotFoundError):
            await service.reserve_for_order(str(OrderId.generate()))

    async def test_release_and_confirm(self, service: InventoryService, uow: UnitOfWork) -> None:
        """Released stock is sellable again; confirmed stock leaves the shelf."""
        await service.create_inventory("p1", 10)
        cancelled = await place_order(uow, ("p1", 4))
        paid = await place_order(uow, ("p1", 6))

        await service.reserve_for_order(str(cancelled.id))
        await service.reserve_for_order(str(paid.id))
        await service.release_for_order(str(cancelled.id))
        await service.confirm_for_order(str(paid.id))

        inventory = await service.get_inventory("p1")
        assert (inventory.stock.value, inventory.reserved.value) == (4, 0)

    async def test_release_without_reservation(
        self, service: InventoryService, uow: UnitOfWork
    ) -> None:
        """Nothing can be released before it is reserved."""
        await service.create_inventory("p1", 10)
        order = await place_order(uow, ("p1", 1))

        with pytest.raises(InvalidReservationError):
            await service.release_for_order(str(order.id))


class TestProductAvailability:
    """Tests for keeping catalog status in line with stock."""

    async def test_depletion_and_restock_toggle_product(
        self, service: InventoryService, uow: UnitOfWork
    ) -> None:
        """Empty stock marks the product out of stock; a restock reactivates it."""
        product = await save_product(uow)
        await service.create_inventory(str(product.id), 2)

        await service.remove_stock(str(product.id), 2)
        assert (await load_product(uow, product)).status == ProductStatus.OUT_OF_STOCK

        await service.add_stock(str(product.id), 5)
        assert (await load_product(uow, product)).status == ProductStatus.ACTIVE

    async def test_inactive_product_untouched(
        self, service: InventoryService, uow: UnitOfWork
    ) -> None:
        """Only ACTIVE and OUT_OF_STOCK products follow stock."""
        product = await save_product(uow)
        products = SqlAlchemyProductRepository()

        async def deactivate() -> None:
            stored = await products.find_by_id(product.id)
            stored.deactivate()
            await products.save(stored)

        await uow.with_transaction(deactivate)
        await service.create_inventory(str(product.id), 0)

        assert (await load_product(uow, product)).status == ProductStatus.INACTIVE
