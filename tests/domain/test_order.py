"""Tests for the Order aggregate."""

import pytest

from storefront.domain.entities import Order, OrderItem
from storefront.domain.events import (
    OrderCancelled,
    OrderCompleted,
    OrderCreated,
    OrderPaid,
    OrderStatusChanged,
    OrderUpdated,
)
from storefront.domain.exceptions import (
    CurrencyMismatchError,
    NegativeMoneyError,
    OrderCannotBeCancelledError,
    OrderIsEmptyError,
    OrderStateConflictError,
)
from storefront.domain.state_machines import OrderStatus
from storefront.domain.value_objects import Money


def make_order(**overrides) -> Order:  # type: ignore[no-untyped-def]
    options = {
        "user_id": "user-1",
        "items": [
            OrderItem.create("p1", 2, Money.create(50000)),
            OrderItem.create("p2", 1, Money.create(25000)),
        ],
        "tax": Money.create(12500),
        "shipping_cost": Money.create(10000),
    }
    options.update(overrides)
    order = Order.create(**options)
    order.pull_domain_events()
    return order


class TestOrderCreation:
    """Tests for Order.create."""

    def test_total_formula(self) -> None:
        """total = subtotal + tax + shipping - discount."""
        order = make_order(discount_amount=Money.create(5000))
        assert order.subtotal == Money.create(125000)
        assert order.total == Money.create(125000 + 12500 + 10000 - 5000)
        assert order.status == OrderStatus.PENDING_PAYMENT
        assert str(order.order_number).startswith("ORD-")

    def test_create_records_event(self) -> None:
        """OrderCreated carries item count and total."""
        order = Order.create("user-1", [OrderItem.create("p1", 1, Money.create(100))])
        [event] = order.pull_domain_events()
        assert isinstance(event, OrderCreated)
        assert (event.item_count, event.total) == (1, "100.00")

    def test_empty_order_rejected(self) -> None:
        """Orders need items."""
        with pytest.raises(OrderIsEmptyError):
            Order.create("user-1", [])

    def test_mixed_currencies_rejected(self) -> None:
        """Item prices must use the order currency."""
        with pytest.raises(CurrencyMismatchError):
            Order.create(
                "user-1", [OrderItem.create("p1", 1, Money.create(10, "USD"))], currency="IDR"
            )

    def test_discount_cannot_exceed_gross_total(self) -> None:
        """A discount larger than the gross total is rejected."""
        with pytest.raises(NegativeMoneyError):
            make_order(discount_amount=Money.create(10**7))


class TestOrderLifecycle:
    """Tests for order status changes."""

    def test_full_lifecycle(self) -> None:
        """Paid, fulfilled and completed orders record each step."""
        order = make_order()
        order.mark_as_paid()
        order.start_fulfillment()
        order.complete()

        assert order.status == OrderStatus.COMPLETED
        assert order.paid_at is not None
        assert order.completed_at is not None
        assert [type(e) for e in order.pull_domain_events()] == [
            OrderPaid,
            OrderStatusChanged,
            OrderCompleted,
        ]

    def test_mark_as_paid_is_idempotent(self) -> None:
        """Paying twice records one event."""
        order = make_order()
        order.mark_as_paid()
        order.mark_as_paid()
        assert len(order.pull_domain_events()) == 1

    @pytest.mark.parametrize("paid", [False, True])
    def test_cancel_before_fulfillment(self, paid: bool) -> None:
        """Pending and paid orders can be cancelled."""
        order = make_order()
        if paid:
            order.mark_as_paid()
            order.pull_domain_events()

        order.cancel("changed mind")

        assert order.status == OrderStatus.CANCELLED
        assert order.cancellation_reason == "changed mind"
        [event] = order.pull_domain_events()
        assert isinstance(event, OrderCancelled)

    def test_cancel_in_fulfillment_rejected(self) -> None:
        """Orders being fulfilled cannot be cancelled."""
        order = make_order()
        order.mark_as_paid()
        order.start_fulfillment()
        with pytest.raises(OrderCannotBeCancelledError):
            order.cancel()


class TestOrderUpdates:
    """Tests for notes and discounts."""

    def test_apply_and_remove_discount(self) -> None:
        """Discounts change the total and record OrderUpdated."""
        order = make_order()
        before = order.total

        order.apply_discount("disc-1", Money.create(7500))
        assert order.total == before - Money.create(7500)

        order.remove_discount()
        assert order.total == before
        assert order.discount_id is None
        assert [type(e) for e in order.pull_domain_events()] == [OrderUpdated, OrderUpdated]

    def test_update_notes(self) -> None:
        """Changing notes records the change; the same value does nothing."""
        order = make_order()
        order.update_notes("leave at door")
        order.update_notes("leave at door")
        [event] = order.pull_domain_events()
        assert event.changes["notes"]["new"] == "leave at door"

    def test_terminal_order_cannot_be_modified(self) -> None:
        """Cancelled orders reject updates."""
        order = make_order()
        order.cancel()
        with pytest.raises(OrderStateConflictError):
            order.update_notes("too late")
