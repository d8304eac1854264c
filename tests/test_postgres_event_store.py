"""Postgres event store tests against a recorded connection pool."""

import json
from typing import Any
from uuid import uuid4

import pytest

from equipment_indexer.events.postgres import PostgresEventStore
from equipment_indexer.events.types import DomainEvent, EquipmentRemoved, EventType


class RecordingPool:
    """Pool double serving ``mt_events`` rows the way the query selects them."""

    def __init__(self, rows: list[dict[str, Any]]) -> None:
        self.rows = rows
        self.queries: list[tuple[str, int, list[str], int]] = []

    async def fetch(self, query: str, after: int, types: list[str], limit: int) -> list[dict[str, Any]]:
        self.queries.append((query, after, types, limit))
        matching = [r for r in self.rows if r["seq_id"] > after and r["type"] in types]
        return sorted(matching, key=lambda r: r["seq_id"])[:limit]

    async def close(self) -> None:
        pass


def removed_row(seq_id: int, as_text: bool = True) -> dict[str, Any]:
    payload = {"TerminalEquipmentId": str(uuid4())}
    return {
        "seq_id": seq_id,
        "type": EventType.EQUIPMENT_REMOVED.value,
        "data": json.dumps(payload) if as_text else payload,
    }


def connected_store(rows: list[dict[str, Any]], page_size: int = 2) -> tuple[PostgresEventStore, RecordingPool, list[DomainEvent]]:
    store = PostgresEventStore(dsn="postgresql://unused", schema="events", page_size=page_size)
    pool = RecordingPool(rows)
    store._pool = pool  # type: ignore[assignment]
    received: list[DomainEvent] = []

    async def handler(event: DomainEvent) -> None:
        received.append(event)

    store.subscribe(EventType.EQUIPMENT_REMOVED, handler)
    return store, pool, received


@pytest.mark.asyncio
async def test_replay_pages_through_history_and_signals_completion() -> None:
    rows = [removed_row(1), removed_row(3, as_text=False), removed_row(4), removed_row(7)]
    rows.append({"seq_id": 5, "type": "route_segment_added", "data": "{}"})
    store, pool, received = connected_store(rows)
    finished: list[int] = []

    async def on_finished() -> None:
        finished.append(len(received))

    store.on_replay_finished(on_finished)

    count = await store.replay_all()

    assert count == 4
    assert all(isinstance(e, EquipmentRemoved) for e in received)
    assert finished == [4]
    assert store.position == 7
    assert [q[1] for q in pool.queries] == [0, 3, 7]
    assert pool.queries[0][2] == [EventType.EQUIPMENT_REMOVED.value]
    assert '"events".mt_events' in pool.queries[0][0]


@pytest.mark.asyncio
async def test_catch_up_only_delivers_new_events() -> None:
    rows = [removed_row(1), removed_row(2)]
    store, pool, received = connected_store(rows, page_size=10)
    await store.replay_all()

    assert await store.catch_up() == 0

    pool.rows.append(removed_row(3))
    assert await store.catch_up() == 1
    assert len(received) == 3
    assert store.position == 3


@pytest.mark.asyncio
async def test_fetch_requires_connection() -> None:
    store = PostgresEventStore(dsn="postgresql://unused")

    with pytest.raises(RuntimeError):
        await store.catch_up()
