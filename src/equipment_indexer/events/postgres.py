"""Postgres-backed event store reading the append-only events table."""
import json
from typing import Any

import asyncpg
import structlog

from equipment_indexer.events.store import (
    EventHandler,
    ReplayFinishedHandler,
    SubscriptionRegistry,
)
from equipment_indexer.events.types import EventType, parse_event

logger = structlog.get_logger()


class PostgresEventStore:
    """Event store adapter over a Marten-style ``mt_events`` table.

    Reads events in ``seq_id`` order, restricted to the subscribed wire
    types, and remembers the highest sequence number delivered so that
    ``catch_up`` only returns newly appended events.

    Attributes:
        position: Highest sequence number delivered so far.
    """

    def __init__(
        self,
        dsn: str,
        schema: str = "events",
        page_size: int = 1000,
    ) -> None:
        """Initialize event store adapter (call connect() before use).

        Args:
            dsn: Postgres connection string.
            schema: Database schema holding ``mt_events``.
            page_size: Maximum rows fetched per query.
        """
        self._dsn = dsn
        self._schema = schema
        self._page_size = page_size
        self._pool: asyncpg.Pool | None = None
        self._subscriptions = SubscriptionRegistry()
        self._position = 0

    @property
    def position(self) -> int:
        """Highest sequence number delivered so far."""
        return self._position

    async def connect(self) -> None:
        """Open the connection pool."""
        self._pool = await asyncpg.create_pool(dsn=self._dsn, min_size=1, max_size=2)
        logger.info("event_store_connected", schema=self._schema)

    async def close(self) -> None:
        """Close the connection pool."""
        if self._pool is not None:
            await self._pool.close()
            self._pool = None
            logger.info("event_store_closed")

    def subscribe(self, event_type: EventType, handler: EventHandler) -> None:
        """Register a handler for one event type."""
        self._subscriptions.subscribe(event_type, handler)

    def on_replay_finished(self, handler: ReplayFinishedHandler) -> None:
        """Register a handler invoked after a full replay."""
        self._subscriptions.on_replay_finished(handler)

    async def replay_all(self) -> int:
        """Deliver every stored event from the beginning, then finish replay.

        Returns:
            Number of events delivered.
        """
        self._position = 0
        count = await self._deliver_from_position()
        logger.info("event_replay_finished", events=count, position=self._position)
        await self._subscriptions.finish_replay()
        return count

    async def catch_up(self) -> int:
        """Deliver events appended since the last delivered sequence number.

        Returns:
            Number of events delivered.
        """
        return await self._deliver_from_position()

    async def _deliver_from_position(self) -> int:
        delivered = 0
        while True:
            rows = await self._fetch_page(self._position)
            for row in rows:
                await self._deliver(row)
                self._position = row["seq_id"]
                delivered += 1
            if len(rows) < self._page_size:
                return delivered

    async def _fetch_page(self, after: int) -> list[asyncpg.Record]:
        if self._pool is None:
            raise RuntimeError("Event store is not connected")
        types = [t.value for t in self._subscriptions.event_types]
        query = (
            f'SELECT seq_id, type, data FROM "{self._schema}".mt_events '
            "WHERE seq_id > $1 AND type = ANY($2::text[]) "
            "ORDER BY seq_id "
            "LIMIT $3"
        )
        return await self._pool.fetch(query, after, types, self._page_size)

    async def _deliver(self, row: asyncpg.Record) -> None:
        event_type = EventType(row["type"])
        data: Any = row["data"]
        payload = json.loads(data) if isinstance(data, str) else data
        event = parse_event(event_type, payload)
        logger.debug("event_delivered", seq_id=row["seq_id"], event_type=event_type.value)
        await self._subscriptions.dispatch(event_type, event)
