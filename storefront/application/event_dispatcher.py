"""In-process event dispatcher.

The Unit of Work hands committed events to ``publish_all``. Listeners
are registered by event type name (``"cart.created"``) and every
listener of one event runs concurrently. A failing listener is logged
and never affects its siblings, later events, or the transaction that
already committed.
"""

import asyncio
from collections import defaultdict
from typing import Awaitable, Callable

import structlog

from storefront.domain.base import DomainEvent

logger = structlog.get_logger()

EventHandler = Callable[[DomainEvent], Awaitable[None]]


class EventDispatcher:
    """Publish domain events to subscribed listeners.

    Args:
        background: When true, ``publish_all`` schedules delivery as an
            asyncio task and returns immediately; otherwise it awaits
            delivery inline.
    """

    def __init__(self, background: bool = True) -> None:
        self._handlers: dict[str, list[EventHandler]] = defaultdict(list)
        self._background = background
        self._tasks: set[asyncio.Task[None]] = set()

    def subscribe(
        self,
        event_type: str | type[DomainEvent],
        handler: EventHandler,
    ) -> None:
        """Register ``handler`` for an event type name or event class."""
        name = event_type if isinstance(event_type, str) else event_type.event_type
        self._handlers[name].append(handler)

    def handlers_for(self, event_type: str) -> tuple[EventHandler, ...]:
        return tuple(self._handlers.get(event_type, ()))

    async def publish(self, event: DomainEvent) -> None:
        """Deliver one event to all its listeners. Never raises."""
        handlers = self.handlers_for(event.event_type)
        if not handlers:
            return

        logger.debug(
            "Publishing event",
            event_type=event.event_type,
            event_id=str(event.event_id),
            handler_count=len(handlers),
        )

        results = await asyncio.gather(
            *(handler(event) for handler in handlers),
            return_exceptions=True,
        )

        for handler, result in zip(handlers, results):
            if isinstance(result, BaseException):
                logger.warning(
                    "Event handler failed",
                    event_type=event.event_type,
                    event_id=str(event.event_id),
                    aggregate_id=event.aggregate_id,
                    handler_name=getattr(handler, "__qualname__", repr(handler)),
                    error_type=type(result).__name__,
                    error_message=str(result),
                    exc_info=result,
                )

    async def publish_all(self, events: list[DomainEvent]) -> None:
        """Deliver events in list order.

        In background mode the delivery runs as a task; the dispatcher
        keeps a reference to it until it finishes.
        """
        if not events:
            return
        batch = list(events)
        if not self._background:
            await self._deliver(batch)
            return

        task = asyncio.get_running_loop().create_task(self._deliver(batch))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _deliver(self, events: list[DomainEvent]) -> None:
        for event in events:
            await self.publish(event)

    @property
    def pending(self) -> int:
        return len(self._tasks)

    async def wait_idle(self) -> None:
        """Wait until every scheduled delivery has finished."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
