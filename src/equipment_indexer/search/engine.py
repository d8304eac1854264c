"""Search engine contract consumed by the indexer."""
from collections.abc import Sequence
from typing import Protocol

from equipment_indexer.search.schemas import CollectionSchema, EquipmentDocument


class SearchEngine(Protocol):
    """Collection, document and alias operations of the search engine.

    ``delete_document`` raises ``DocumentNotFoundError`` when the
    document is absent; every other failure propagates as raised by
    the underlying client.
    """

    async def create_collection(self, schema: CollectionSchema) -> None: ...

    async def delete_collection(self, name: str) -> None: ...

    async def list_collections(self) -> list[str]: ...

    async def upsert_document(self, collection: str, document: EquipmentDocument) -> None: ...

    async def delete_document(self, collection: str, document_id: str) -> None: ...

    async def bulk_import(
        self,
        collection: str,
        documents: Sequence[EquipmentDocument],
        batch_size: int,
    ) -> int: ...

    async def upsert_alias(self, alias: str, collection: str) -> None: ...

    async def delete_alias(self, alias: str) -> None: ...
