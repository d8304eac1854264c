"""Event store access and typed equipment domain events."""
from equipment_indexer.events.postgres import PostgresEventStore
from equipment_indexer.events.store import EventHandler, EventStore, SubscriptionRegistry
from equipment_indexer.events.types import (
    DomainEvent,
    EquipmentPlaced,
    EquipmentRemoved,
    EventType,
    NamingInfoChanged,
    SpecificationAdded,
    SpecificationChanged,
    parse_event,
)

__all__ = [
    "DomainEvent",
    "EquipmentPlaced",
    "EquipmentRemoved",
    "EventHandler",
    "EventStore",
    "EventType",
    "NamingInfoChanged",
    "PostgresEventStore",
    "SpecificationAdded",
    "SpecificationChanged",
    "SubscriptionRegistry",
    "parse_event",
]
