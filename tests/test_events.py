"""Event wire parsing and subscription dispatch tests."""

from uuid import UUID, uuid4

import pytest
from pydantic import ValidationError

from equipment_indexer.events.store import SubscriptionRegistry
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

EQUIPMENT_ID = "0b8a1f7e-3c4d-4f5a-9b6c-7d8e9f0a1b2c"
SPECIFICATION_ID = "5d2c6e1a-8b9f-4a3c-b1d2-e3f4a5b6c7d8"


def test_parse_equipment_placed() -> None:
    event = parse_event(
        EventType.EQUIPMENT_PLACED,
        {
            "NodeContainerId": str(uuid4()),
            "TerminalEquipment": {
                "Id": EQUIPMENT_ID,
                "Name": "Splice 1",
                "SpecificationId": SPECIFICATION_ID,
            },
        },
    )

    assert event == EquipmentPlaced(
        equipment_id=UUID(EQUIPMENT_ID),
        name="Splice 1",
        specification_id=UUID(SPECIFICATION_ID),
    )


def test_parse_naming_info_changed() -> None:
    event = parse_event(
        EventType.NAMING_INFO_CHANGED,
        {"TerminalEquipmentId": EQUIPMENT_ID, "NamingInfo": {"Name": "Box 2", "Description": None}},
    )

    assert isinstance(event, NamingInfoChanged)
    assert event.name == "Box 2"


def test_parse_naming_info_cleared() -> None:
    """A null NamingInfo clears the name."""
    event = parse_event(
        EventType.NAMING_INFO_CHANGED,
        {"TerminalEquipmentId": EQUIPMENT_ID, "NamingInfo": None},
    )

    assert isinstance(event, NamingInfoChanged)
    assert event.name is None


def test_parse_specification_events() -> None:
    changed = parse_event(
        EventType.SPECIFICATION_CHANGED,
        {"TerminalEquipmentId": EQUIPMENT_ID, "NewSpecificationId": SPECIFICATION_ID},
    )
    added = parse_event(
        EventType.SPECIFICATION_ADDED,
        {"Specification": {"Id": SPECIFICATION_ID, "Name": "Splice Closure", "Category": "Splice"}},
    )

    assert changed == SpecificationChanged(
        equipment_id=UUID(EQUIPMENT_ID), specification_id=UUID(SPECIFICATION_ID)
    )
    assert added == SpecificationAdded(
        specification_id=UUID(SPECIFICATION_ID), name="Splice Closure"
    )


def test_parse_equipment_removed() -> None:
    event = parse_event(EventType.EQUIPMENT_REMOVED, {"TerminalEquipmentId": EQUIPMENT_ID})

    assert event == EquipmentRemoved(equipment_id=UUID(EQUIPMENT_ID))


def test_parse_rejects_payload_without_identifier() -> None:
    with pytest.raises(ValidationError):
        parse_event(EventType.EQUIPMENT_REMOVED, {"NamingInfo": None})


def test_unknown_wire_name_is_rejected() -> None:
    with pytest.raises(ValueError):
        EventType("route_network_element_added")


def test_events_are_immutable() -> None:
    event = EquipmentRemoved(equipment_id=uuid4())

    with pytest.raises(ValidationError):
        event.equipment_id = uuid4()  # type: ignore[misc]


@pytest.mark.asyncio
async def test_registry_dispatches_by_type_in_registration_order() -> None:
    registry = SubscriptionRegistry()
    received: list[tuple[str, DomainEvent]] = []

    async def first(event: DomainEvent) -> None:
        received.append(("first", event))

    async def second(event: DomainEvent) -> None:
        received.append(("second", event))

    registry.subscribe(EventType.EQUIPMENT_REMOVED, first)
    registry.subscribe(EventType.EQUIPMENT_REMOVED, second)
    removed = EquipmentRemoved(equipment_id=uuid4())

    await registry.dispatch(EventType.EQUIPMENT_REMOVED, removed)
    await registry.dispatch(
        EventType.NAMING_INFO_CHANGED, NamingInfoChanged(equipment_id=uuid4(), name="x")
    )

    assert received == [("first", removed), ("second", removed)]
    assert registry.event_types == [EventType.EQUIPMENT_REMOVED]


@pytest.mark.asyncio
async def test_registry_finishes_replay() -> None:
    registry = SubscriptionRegistry()
    calls: list[str] = []

    async def finished() -> None:
        calls.append("finished")

    registry.on_replay_finished(finished)
    await registry.finish_replay()

    assert calls == ["finished"]
