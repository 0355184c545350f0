"""Tests for the unit of work and its ambient transaction."""

import asyncio

import pytest
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from storefront.application.event_dispatcher import EventDispatcher
from storefront.domain.base import DomainEvent
from storefront.domain.entities import Cart
from storefront.domain.exceptions import RepositoryError
from storefront.infrastructure.models import CartModel, DomainEventModel
from storefront.infrastructure.repositories import SqlAlchemyCartRepository
from storefront.infrastructure.unit_of_work import (
    UnitOfWork,
    UnitOfWorkState,
    current_session,
    current_transaction,
    in_transaction,
)


class Boom(Exception):
    pass


async def count_rows(factory: async_sessionmaker[AsyncSession], model: type) -> int:
    async with factory() as session:
        return (await session.execute(select(func.count()).select_from(model))).scalar_one()


@pytest.fixture
def published(dispatcher: EventDispatcher) -> list[DomainEvent]:
    """Every event type delivered by the dispatcher, in order."""
    received: list[DomainEvent] = []

    async def record(event: DomainEvent) -> None:
        received.append(event)

    dispatcher.subscribe("cart.created", record)
    dispatcher.subscribe("cart.item_added", record)
    return received


class TestUnitOfWork:
    """Tests for commit, rollback and event dispatch."""

    async def test_commit_persists_and_publishes(
        self,
        uow: UnitOfWork,
        session_factory: async_sessionmaker[AsyncSession],
        published: list[DomainEvent],
    ) -> None:
        """Committed work is stored and its events are dispatched in order."""
        carts = SqlAlchemyCartRepository()

        async def work() -> Cart:
            cart = Cart.create("user-1")
            cart.add_item("p1", 1)
            await carts.save(cart)
            return cart

        cart = await uow.with_transaction(work)

        assert await count_rows(session_factory, CartModel) == 1
        assert await count_rows(session_factory, DomainEventModel) == 2
        assert [e.event_type for e in published] == ["cart.created", "cart.item_added"]
        assert all(e.aggregate_id == str(cart.id) for e in published)

    async def test_rollback_discards_writes_and_events(
        self,
        uow: UnitOfWork,
        session_factory: async_sessionmaker[AsyncSession],
        published: list[DomainEvent],
    ) -> None:
        """An exception leaves no rows and dispatches nothing."""
        carts = SqlAlchemyCartRepository()

        async def work() -> None:
            await carts.save(Cart.create("user-1"))
            raise Boom()

        with pytest.raises(Boom):
            await uow.with_transaction(work)

        assert await count_rows(session_factory, CartModel) == 0
        assert await count_rows(session_factory, DomainEventModel) == 0
        assert published == []

    async def test_context_cleared_after_exit(self, uow: UnitOfWork) -> None:
        """The ambient transaction is gone after success and after failure."""
        seen = []

        async def work() -> None:
            seen.append(in_transaction())

        async def failing() -> None:
            raise Boom()

        await uow.with_transaction(work)
        assert not in_transaction()
        assert uow.state == UnitOfWorkState.IDLE

        with pytest.raises(Boom):
            await uow.with_transaction(failing)
        assert not in_transaction()
        assert seen == [True]

    async def test_nested_scope_joins_outer_transaction(
        self,
        uow: UnitOfWork,
        session_factory: async_sessionmaker[AsyncSession],
    ) -> None:
        """Inner scopes share the outer session; only the outer one commits."""
        carts = SqlAlchemyCartRepository()
        sessions = []

        async def inner() -> None:
            sessions.append(current_session())
            await carts.save(Cart.create("user-2"))

        async def outer() -> None:
            sessions.append(current_session())
            await carts.save(Cart.create("user-1"))
            await uow.with_transaction(inner)
            assert uow.state == UnitOfWorkState.IN_TRANSACTION
            raise Boom()

        with pytest.raises(Boom):
            await uow.with_transaction(outer)

        assert sessions[0] is sessions[1]
        assert await count_rows(session_factory, CartModel) == 0

    async def test_concurrent_tasks_have_separate_transactions(
        self, uow: UnitOfWork
    ) -> None:
        """Concurrent operations never observe each other's context."""
        contexts = []
        ready = asyncio.Event()

        async def work() -> None:
            contexts.append(current_transaction())
            if len(contexts) == 2:
                ready.set()
            await ready.wait()

        await asyncio.gather(uow.with_transaction(work), uow.with_transaction(work))

        assert len(contexts) == 2
        assert contexts[0] is not contexts[1]
        assert contexts[0].session is not contexts[1].session

    async def test_repository_outside_transaction_fails(self) -> None:
        """Repository calls need an ambient or explicit transaction."""
        with pytest.raises(RepositoryError):
            await SqlAlchemyCartRepository().find_by_user_id("user-1")

    def test_current_transaction_outside_scope(self) -> None:
        """There is no transaction until one is opened."""
        with pytest.raises(RepositoryError):
            current_transaction()

    async def test_no_events_published_without_publisher(
        self,
        session_factory: async_sessionmaker[AsyncSession],
    ) -> None:
        """A unit of work without a publisher still commits."""
        uow = UnitOfWork(session_factory)
        carts = SqlAlchemyCartRepository()

        async def work() -> None:
            await carts.save(Cart.create("user-1"))

        await uow.with_transaction(work)
        assert await count_rows(session_factory, CartModel) == 1
