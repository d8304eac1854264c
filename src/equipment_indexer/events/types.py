"""Domain event types for the terminal equipment lifecycle."""
from enum import Enum
from typing import Any
from uuid import UUID

from pydantic import AliasChoices, AliasPath, BaseModel, ConfigDict, Field


class EventType(str, Enum):
    """Wire names of the events the indexer subscribes to."""

    EQUIPMENT_PLACED = "terminal_equipment_placed_in_node_container"
    NAMING_INFO_CHANGED = "terminal_equipment_naming_info_changed"
    SPECIFICATION_CHANGED = "terminal_equipment_specification_changed"
    SPECIFICATION_ADDED = "terminal_equipment_specification_added"
    EQUIPMENT_REMOVED = "terminal_equipment_removed"


def _wire(name: str, *path: str | int) -> AliasChoices:
    # Accept the field name for in-process construction and the
    # PascalCase path for payloads read from the event store.
    return AliasChoices(name, AliasPath(*path))


class DomainEvent(BaseModel):
    """Base for all equipment domain events."""

    model_config = ConfigDict(frozen=True)


class EquipmentPlaced(DomainEvent):
    """A terminal equipment was placed in a node container.

    Attributes:
        equipment_id: Identifier of the new equipment.
        name: Display name, may be missing or blank.
        specification_id: Specification the equipment was created from.
    """

    equipment_id: UUID = Field(validation_alias=_wire("equipment_id", "TerminalEquipment", "Id"))
    name: str | None = Field(default=None, validation_alias=_wire("name", "TerminalEquipment", "Name"))
    specification_id: UUID = Field(
        validation_alias=_wire("specification_id", "TerminalEquipment", "SpecificationId")
    )


class NamingInfoChanged(DomainEvent):
    """The display name of an equipment changed (or was cleared)."""

    equipment_id: UUID = Field(validation_alias=_wire("equipment_id", "TerminalEquipmentId"))
    name: str | None = Field(default=None, validation_alias=_wire("name", "NamingInfo", "Name"))


class SpecificationChanged(DomainEvent):
    """An equipment was switched to another specification."""

    equipment_id: UUID = Field(validation_alias=_wire("equipment_id", "TerminalEquipmentId"))
    specification_id: UUID = Field(validation_alias=_wire("specification_id", "NewSpecificationId"))


class SpecificationAdded(DomainEvent):
    """A terminal equipment specification was registered."""

    specification_id: UUID = Field(validation_alias=_wire("specification_id", "Specification", "Id"))
    name: str = Field(validation_alias=_wire("name", "Specification", "Name"))


class EquipmentRemoved(DomainEvent):
    """An equipment was removed."""

    equipment_id: UUID = Field(validation_alias=_wire("equipment_id", "TerminalEquipmentId"))


EVENT_MODELS: dict[EventType, type[DomainEvent]] = {
    EventType.EQUIPMENT_PLACED: EquipmentPlaced,
    EventType.NAMING_INFO_CHANGED: NamingInfoChanged,
    EventType.SPECIFICATION_CHANGED: SpecificationChanged,
    EventType.SPECIFICATION_ADDED: SpecificationAdded,
    EventType.EQUIPMENT_REMOVED: EquipmentRemoved,
}


def parse_event(event_type: EventType, payload: dict[str, Any]) -> DomainEvent:
    """Validate a raw event payload into its typed model.

    Args:
        event_type: Wire type of the payload.
        payload: Decoded JSON body as stored by the event store.

    Returns:
        Typed, immutable domain event.

    Raises:
        pydantic.ValidationError: If required fields are missing.
    """
    return EVENT_MODELS[event_type].model_validate(payload)
