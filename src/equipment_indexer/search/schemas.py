"""Document and collection schemas for the equipment search index."""
import uuid
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class EquipmentDocument(BaseModel):
    """Indexable projection of an equipment, as stored in the search engine.

    Attributes:
        id: Equipment identifier, stringified.
        name: Display name.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(description="Equipment identifier")
    name: str = Field(description="Equipment display name")


class CollectionField(BaseModel):
    """Field definition of a search collection."""

    name: str
    type: str = "string"
    facet: bool = False
    optional: bool = False
    index: bool = True


class CollectionSchema(BaseModel):
    """Schema of one search collection generation."""

    name: str
    fields: list[CollectionField]

    def to_wire(self) -> dict[str, Any]:
        """Serialize to the search engine's collection schema shape."""
        return self.model_dump()


def equipment_collection_schema(collection_name: str) -> CollectionSchema:
    """Schema for an equipment collection: both fields indexed, none faceted.

    Args:
        collection_name: Unique name of the collection generation.

    Returns:
        Collection schema with ``id`` and ``name`` string fields.
    """
    return CollectionSchema(
        name=collection_name,
        fields=[
            CollectionField(name="id"),
            CollectionField(name="name"),
        ],
    )


def new_collection_name(alias: str) -> str:
    """Generate a collection name unique to this rebuild.

    Args:
        alias: Stable alias name used as prefix.

    Returns:
        Name of the form ``{alias}-{uuid4}``.
    """
    return f"{alias}-{uuid.uuid4()}"


def is_generation_of(collection_name: str, alias: str) -> bool:
    """Check whether a collection was generated for the given alias.

    Args:
        collection_name: Name of an existing collection.
        alias: Stable alias name.

    Returns:
        True if the name carries the alias prefix.
    """
    return collection_name.startswith(f"{alias}-")
