"""Search engine access for the equipment index."""

from equipment_indexer.search.engine import SearchEngine
from equipment_indexer.search.schemas import (
    CollectionSchema,
    EquipmentDocument,
    equipment_collection_schema,
    is_generation_of,
    new_collection_name,
)
from equipment_indexer.search.typesense_engine import TypesenseSearchEngine

__all__ = [
    "CollectionSchema",
    "EquipmentDocument",
    "SearchEngine",
    "TypesenseSearchEngine",
    "equipment_collection_schema",
    "is_generation_of",
    "new_collection_name",
]
