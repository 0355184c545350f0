"""Unit of Work with an ambient transaction context.

``UnitOfWork.with_transaction(work)`` runs ``work`` inside one database
transaction. While it runs, repositories find the active session through
a ``ContextVar`` instead of receiving it in every call signature. Each
asyncio task sees its own value, so concurrent requests never share a
transaction.

Lifecycle per scope::

    Idle -> InTransaction -> Committed  -> events dispatched -> Idle
                          -> RolledBack -> events discarded  -> Idle

Nested calls reuse the active transaction; only the outermost scope
commits. The context variable is reset on every exit path, including
errors and task cancellation.
"""

from contextlib import asynccontextmanager
from contextvars import ContextVar
from dataclasses import dataclass, field
from enum import Enum
from typing import AsyncIterator, Awaitable, Callable, Protocol, TypeVar

import structlog
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from storefront.domain.base import DomainEvent
from storefront.domain.exceptions import RepositoryError

logger = structlog.get_logger()

T = TypeVar("T")


class EventPublisher(Protocol):
    async def publish_all(self, events: list[DomainEvent]) -> None: ...


@dataclass
class TransactionContext:
    """State of one active transaction scope.

    Attributes:
        session: Session bound to the open transaction.
        events: Domain events drained by repositories, in save order.
    """

    session: AsyncSession
    events: list[DomainEvent] = field(default_factory=list)

    def collect(self, events: list[DomainEvent]) -> None:
        self.events.extend(events)


_current_transaction: ContextVar[TransactionContext | None] = ContextVar(
    "storefront_current_transaction", default=None
)


def current_transaction() -> TransactionContext:
    """Return the active transaction context.

    Raises:
        RepositoryError: If called outside a unit of work.
    """
    context = _current_transaction.get()
    if context is None:
        raise RepositoryError(
            "No active transaction; wrap repository calls in "
            "UnitOfWork.with_transaction"
        )
    return context


def current_session() -> AsyncSession:
    return current_transaction().session


def in_transaction() -> bool:
    return _current_transaction.get() is not None


class UnitOfWorkState(str, Enum):
    IDLE = "idle"
    IN_TRANSACTION = "in_transaction"


class UnitOfWork:
    """Transaction boundary for one business operation.

    Args:
        session_factory: Factory producing sessions for new transactions.
        publisher: Receives the collected domain events after commit.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        publisher: EventPublisher | None = None,
    ) -> None:
        self._session_factory = session_factory
        self._publisher = publisher

    @property
    def state(self) -> UnitOfWorkState:
        """State of the calling task's ambient scope."""
        if in_transaction():
            return UnitOfWorkState.IN_TRANSACTION
        return UnitOfWorkState.IDLE

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[TransactionContext]:
        """Open (or join) the ambient transaction.

        Yields:
            The active transaction context.
        """
        active = _current_transaction.get()
        if active is not None:
            yield active
            return

        async with self._session_factory() as session:
            context = TransactionContext(session=session)
            token = _current_transaction.set(context)
            try:
                async with session.begin():
                    yield context
            except Exception as e:
                logger.info(
                    "Transaction rolled back",
                    error=str(e),
                    error_type=type(e).__name__,
                    discarded_events=len(context.events),
                )
                raise
            finally:
                _current_transaction.reset(token)

        # Committed: only now may events leave the process boundary
        await self._publish(context.events)

    async def with_transaction(self, work: Callable[[], Awaitable[T]]) -> T:
        """Run ``work`` atomically.

        Args:
            work: Zero-argument coroutine function performing the operation.

        Returns:
            Whatever ``work`` returns.

        Raises:
            Exception: Anything ``work`` raises, after rollback.
        """
        async with self.transaction():
            return await work()

    async def _publish(self, events: list[DomainEvent]) -> None:
        if not events or self._publisher is None:
            return
        logger.debug("Transaction committed", event_count=len(events))
        await self._publisher.publish_all(events)
