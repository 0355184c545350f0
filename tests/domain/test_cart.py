"""Tests for the Cart aggregate."""

import pytest

from storefront.domain.entities import Cart
from storefront.domain.events import (
    CartCleared,
    CartCreated,
    CartItemAdded,
    CartItemQuantityUpdated,
    CartItemRemoved,
)
from storefront.domain.exceptions import (
    CartIsEmptyError,
    CartItemNotFoundError,
    CartStateConflictError,
    InvalidQuantityError,
)
from storefront.domain.value_objects import CartItemId, Quantity


@pytest.fixture
def cart() -> Cart:
    """Empty cart with its creation event already pulled."""
    cart = Cart.create("user-1")
    cart.pull_domain_events()
    return cart


class TestCartCreation:
    """Tests for creating carts."""

    def test_create_records_cart_created(self) -> None:
        """A new cart is empty and records CartCreated."""
        cart = Cart.create("user-1")

        assert cart.is_empty
        assert cart.user_id == "user-1"
        events = cart.pull_domain_events()
        assert [type(e) for e in events] == [CartCreated]
        assert events[0].aggregate_id == str(cart.id)
        assert events[0].payload["user_id"] == "user-1"

    def test_blank_user_rejected(self) -> None:
        """Carts need an owner."""
        with pytest.raises(CartStateConflictError):
            Cart.create("  ")

    def test_pull_drains_buffer(self) -> None:
        """A second pull returns nothing."""
        cart = Cart.create("user-1")
        assert len(cart.pull_domain_events()) == 1
        assert cart.pull_domain_events() == []

    def test_peek_does_not_drain(self) -> None:
        """peek leaves events in place."""
        cart = Cart.create("user-1")
        assert len(cart.peek_domain_events()) == 1
        assert len(cart.pull_domain_events()) == 1


class TestCartItems:
    """Tests for adding, updating and removing cart lines."""

    def test_adding_same_product_merges_lines(self) -> None:
        """Adding p1 x2 then p1 x3 leaves one line of 5."""
        cart = Cart.create("user-1")
        cart.add_item("p1", Quantity(2))
        cart.add_item("p1", Quantity(3))

        assert cart.item_count == 1
        assert cart.items[0].quantity == Quantity(5)
        assert [type(e) for e in cart.pull_domain_events()] == [
            CartCreated,
            CartItemAdded,
            CartItemQuantityUpdated,
        ]

    @pytest.mark.parametrize(
        "additions",
        [
            [("p1", 1)],
            [("p1", 1), ("p2", 2), ("p1", 3)],
            [("a", 5), ("b", 5), ("c", 5), ("a", 5), ("b", 1)],
        ],
    )
    def test_product_appears_at_most_once(self, cart: Cart, additions: list) -> None:
        """Lines are unique by product and quantities sum up."""
        for product_id, qty in additions:
            cart.add_item(product_id, qty)

        products = [item.product_id for item in cart.items]
        assert len(products) == len(set(products))
        assert cart.total_quantity == sum(qty for _, qty in additions)

    def test_merge_event_carries_old_and_new_quantity(self, cart: Cart) -> None:
        """The merge event reports the quantity change."""
        cart.add_item("p1", 2)
        cart.add_item("p1", 3)

        event = cart.pull_domain_events()[-1]
        assert isinstance(event, CartItemQuantityUpdated)
        assert (event.old_quantity, event.new_quantity) == (2, 5)

    def test_merge_beyond_maximum_rejected(self, cart: Cart) -> None:
        """A merge exceeding the maximum quantity fails."""
        cart.add_item("p1", 9999)
        with pytest.raises(InvalidQuantityError):
            cart.add_item("p1", 1)
        assert cart.items[0].quantity == Quantity(9999)

    def test_add_increments_version(self, cart: Cart) -> None:
        """Every mutation bumps the version."""
        version = cart.version
        cart.add_item("p1", 1)
        assert cart.version == version + 1

    def test_update_quantity(self, cart: Cart) -> None:
        """Quantity of an existing line can be replaced."""
        item = cart.add_item("p1", 2)
        cart.pull_domain_events()

        cart.update_item_quantity(item.id, 7)

        assert cart.items[0].quantity.value == 7
        [event] = cart.pull_domain_events()
        assert isinstance(event, CartItemQuantityUpdated)
        assert event.new_quantity == 7

    def test_remove_item(self, cart: Cart) -> None:
        """Removing a line records CartItemRemoved."""
        item = cart.add_item("p1", 2)
        cart.pull_domain_events()

        removed = cart.remove_item(item.id)

        assert removed is item
        assert cart.is_empty
        assert [type(e) for e in cart.pull_domain_events()] == [CartItemRemoved]

    def test_remove_missing_item_leaves_cart_unchanged(self, cart: Cart) -> None:
        """Unknown ids raise and do not touch the lines."""
        cart.add_item("p1", 2)
        before = list(cart.items)
        version = cart.version

        with pytest.raises(CartItemNotFoundError):
            cart.remove_item(CartItemId.generate())

        assert list(cart.items) == before
        assert cart.version == version

    def test_remove_by_product_id(self, cart: Cart) -> None:
        """Lines can be removed by product."""
        cart.add_item("p1", 1)
        cart.add_item("p2", 1)
        cart.remove_item_by_product_id("p1")
        assert [item.product_id for item in cart.items] == ["p2"]
        with pytest.raises(CartItemNotFoundError):
            cart.remove_item_by_product_id("p1")


class TestCartClear:
    """Tests for clearing carts."""

    def test_clear_removes_everything(self, cart: Cart) -> None:
        """Clear empties the cart and reports the count."""
        cart.add_item("p1", 1)
        cart.add_item("p2", 1)
        cart.pull_domain_events()

        assert cart.clear() == 2
        assert cart.is_empty
        [event] = cart.pull_domain_events()
        assert isinstance(event, CartCleared)
        assert event.item_count == 2

    def test_clear_empty_cart_is_noop(self, cart: Cart) -> None:
        """Clearing an empty cart records nothing."""
        version = cart.version
        assert cart.clear() == 0
        assert cart.pull_domain_events() == []
        assert cart.version == version

    def test_ensure_not_empty(self, cart: Cart) -> None:
        """Empty carts fail the guard."""
        with pytest.raises(CartIsEmptyError):
            cart.ensure_not_empty()
        cart.add_item("p1", 1)
        cart.ensure_not_empty()
