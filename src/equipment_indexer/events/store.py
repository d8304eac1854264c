"""Event store contract and shared subscription handling."""
from collections.abc import Awaitable, Callable
from typing import Protocol

import structlog

from equipment_indexer.events.types import DomainEvent, EventType

logger = structlog.get_logger()

EventHandler = Callable[[DomainEvent], Awaitable[None]]
ReplayFinishedHandler = Callable[[], Awaitable[None]]


class EventStore(Protocol):
    """Capabilities the indexer consumes from the event store."""

    def subscribe(self, event_type: EventType, handler: EventHandler) -> None:
        """Register a handler for one event type."""
        ...

    def on_replay_finished(self, handler: ReplayFinishedHandler) -> None:
        """Register a handler invoked once a full replay has completed."""
        ...

    async def replay_all(self) -> int:
        """Deliver every historical event, then signal completion."""
        ...

    async def catch_up(self) -> int:
        """Deliver events appended since the previous call."""
        ...


class SubscriptionRegistry:
    """Per-event-type handler registry shared by event store adapters.

    Events are delivered strictly one at a time, each handler awaited
    before the next event is dispatched.
    """

    def __init__(self) -> None:
        """Initialize an empty registry."""
        self._handlers: dict[EventType, list[EventHandler]] = {}
        self._replay_finished: list[ReplayFinishedHandler] = []

    @property
    def event_types(self) -> list[EventType]:
        """Event types with at least one subscriber."""
        return list(self._handlers)

    def subscribe(self, event_type: EventType, handler: EventHandler) -> None:
        """Register a handler for one event type.

        Args:
            event_type: Event type to receive.
            handler: Async callable invoked with each typed event.
        """
        self._handlers.setdefault(event_type, []).append(handler)
        logger.debug("event_handler_subscribed", event_type=event_type.value)

    def on_replay_finished(self, handler: ReplayFinishedHandler) -> None:
        """Register a handler invoked after a full replay.

        Args:
            handler: Async callable with no arguments.
        """
        self._replay_finished.append(handler)

    async def dispatch(self, event_type: EventType, event: DomainEvent) -> None:
        """Deliver one event to every handler subscribed to its type.

        Args:
            event_type: Wire type of the event.
            event: Typed event.
        """
        for handler in self._handlers.get(event_type, ()):
            await handler(event)

    async def finish_replay(self) -> None:
        """Invoke the replay-finished handlers in registration order."""
        for handler in self._replay_finished:
            await handler()
