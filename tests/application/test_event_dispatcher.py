"""Tests for the in-process event dispatcher."""

import asyncio

from storefront.application.event_dispatcher import EventDispatcher
from storefront.domain.base import DomainEvent
from storefront.domain.events import CartCreated, UserProfileUpdated


def cart_created(cart_id: str = "cart-1") -> CartCreated:
    return CartCreated(aggregate_id=cart_id, cart_id=cart_id, user_id="user-1")


class TestEventDispatcher:
    """Tests for subscription and delivery."""

    async def test_delivers_to_every_handler(self) -> None:
        """All handlers of an event type receive it."""
        dispatcher = EventDispatcher(background=False)
        seen: list[str] = []

        async def first(event: DomainEvent) -> None:
            seen.append("first")

        async def second(event: DomainEvent) -> None:
            seen.append("second")

        dispatcher.subscribe("cart.created", first)
        dispatcher.subscribe(CartCreated, second)

        await dispatcher.publish(cart_created())

        assert sorted(seen) == ["first", "second"]
        assert len(dispatcher.handlers_for("cart.created")) == 2

    async def test_other_event_types_ignored(self) -> None:
        """Handlers only see their own event type."""
        dispatcher = EventDispatcher(background=False)
        seen: list[DomainEvent] = []

        async def handler(event: DomainEvent) -> None:
            seen.append(event)

        dispatcher.subscribe(UserProfileUpdated, handler)
        await dispatcher.publish(cart_created())
        assert seen == []

    async def test_failing_handler_does_not_block_siblings(self) -> None:
        """One handler raising leaves the others and later events unaffected."""
        dispatcher = EventDispatcher(background=False)
        seen: list[str] = []

        async def broken(event: DomainEvent) -> None:
            raise RuntimeError("listener down")

        async def healthy(event: DomainEvent) -> None:
            seen.append(event.aggregate_id)

        dispatcher.subscribe("cart.created", broken)
        dispatcher.subscribe("cart.created", healthy)

        await dispatcher.publish_all([cart_created("c1"), cart_created("c2")])

        assert seen == ["c1", "c2"]

    async def test_publish_all_preserves_order(self) -> None:
        """Events are delivered in list order."""
        dispatcher = EventDispatcher(background=False)
        seen: list[str] = []

        async def handler(event: DomainEvent) -> None:
            await asyncio.sleep(0)
            seen.append(event.aggregate_id)

        dispatcher.subscribe("cart.created", handler)
        await dispatcher.publish_all([cart_created(str(i)) for i in range(5)])

        assert seen == ["0", "1", "2", "3", "4"]

    async def test_background_delivery(self) -> None:
        """Background mode returns before delivery and wait_idle drains it."""
        dispatcher = EventDispatcher(background=True)
        release = asyncio.Event()
        seen: list[str] = []

        async def handler(event: DomainEvent) -> None:
            await release.wait()
            seen.append(event.aggregate_id)

        dispatcher.subscribe("cart.created", handler)
        await dispatcher.publish_all([cart_created()])

        assert seen == []
        assert dispatcher.pending == 1

        release.set()
        await dispatcher.wait_idle()

        assert seen == ["cart-1"]
        assert dispatcher.pending == 0

    async def test_empty_batch_is_noop(self) -> None:
        """Publishing nothing schedules nothing."""
        dispatcher = EventDispatcher(background=True)
        await dispatcher.publish_all([])
        assert dispatcher.pending == 0
