"""Tests for CartService."""

import pytest

from storefront.application.cart_service import CartService
from storefront.application.event_dispatcher import EventDispatcher
from storefront.domain.base import DomainEvent
from storefront.domain.exceptions import (
    CartItemNotFoundError,
    CartNotFoundError,
    InvalidCartItemIdError,
    InvalidQuantityError,
)
from storefront.domain.value_objects import CartItemId
from storefront.infrastructure.unit_of_work import UnitOfWork


@pytest.fixture
def service(uow: UnitOfWork) -> CartService:
    return CartService(uow)


@pytest.fixture
def events(dispatcher: EventDispatcher) -> list[str]:
    """Event types dispatched after commit."""
    received: list[str] = []

    async def record(event: DomainEvent) -> None:
        received.append(event.event_type)

    for event_type in (
        "cart.created",
        "cart.item_added",
        "cart.item_quantity_updated",
        "cart.item_removed",
        "cart.cleared",
    ):
        dispatcher.subscribe(event_type, record)
    return received


class TestCartService:
    """Tests for cart use cases."""

    async def test_add_same_product_twice(self, service: CartService, events: list[str]) -> None:
        """Two additions of one product end as one line of 5."""
        await service.add_item("user-1", "p1", 2)
        cart = await service.add_item("user-1", "p1", 3)

        assert cart.item_count == 1
        assert cart.items[0].quantity.value == 5
        assert events == ["cart.created", "cart.item_added", "cart.item_quantity_updated"]

        reloaded = await service.get_cart("user-1")
        assert reloaded.total_quantity == 5

    async def test_get_or_create_is_stable(self, service: CartService) -> None:
        """Repeated calls return the same cart."""
        first = await service.get_or_create_cart("user-1")
        second = await service.get_or_create_cart("user-1")
        assert first.id == second.id

    async def test_get_cart_missing(self, service: CartService) -> None:
        """Users without a cart get CartNotFoundError."""
        with pytest.raises(CartNotFoundError):
            await service.get_cart("nobody")

    async def test_invalid_quantity_rejected_before_transaction(
        self, service: CartService, events: list[str]
    ) -> None:
        """Bad input never opens a cart."""
        with pytest.raises(InvalidQuantityError):
            await service.add_item("user-1", "p1", 0)
        assert events == []

    async def test_update_and_remove(self, service: CartService, events: list[str]) -> None:
        """Lines can be resized and removed by id."""
        cart = await service.add_item("user-1", "p1", 1)
        item_id = str(cart.items[0].id)

        cart = await service.update_item_quantity("user-1", item_id, 4)
        assert cart.items[0].quantity.value == 4

        cart = await service.remove_item("user-1", item_id)
        assert cart.is_empty
        assert events[-2:] == ["cart.item_quantity_updated", "cart.item_removed"]

    async def test_remove_unknown_item_rolls_back(
        self, service: CartService, events: list[str]
    ) -> None:
        """A missing line raises and dispatches nothing."""
        await service.add_item("user-1", "p1", 1)
        events.clear()

        with pytest.raises(CartItemNotFoundError):
            await service.remove_item("user-1", str(CartItemId.generate()))

        assert events == []
        assert (await service.get_cart("user-1")).item_count == 1

    async def test_malformed_item_id(self, service: CartService) -> None:
        """Item ids must be UUIDs."""
        await service.add_item("user-1", "p1", 1)
        with pytest.raises(InvalidCartItemIdError):
            await service.remove_item("user-1", "line-1")

    async def test_clear_and_delete(self, service: CartService, events: list[str]) -> None:
        """Clearing empties the cart; deleting removes it."""
        await service.add_item("user-1", "p1", 1)
        await service.add_item("user-1", "p2", 1)

        cart = await service.clear_cart("user-1")
        assert cart.is_empty
        assert events[-1] == "cart.cleared"

        await service.delete_cart("user-1")
        with pytest.raises(CartNotFoundError):
            await service.get_cart("user-1")
