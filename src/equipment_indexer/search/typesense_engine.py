"""Typesense adapter for the search engine contract."""

import asyncio
from collections.abc import Sequence
from typing import Any

import structlog
import typesense
from typesense.exceptions import ObjectNotFound

from equipment_indexer.config import Settings
from equipment_indexer.errors import DocumentNotFoundError, SearchEngineError
from equipment_indexer.search.schemas import CollectionSchema, EquipmentDocument

logger = structlog.get_logger()


class TypesenseSearchEngine:
    """Async facade over the blocking typesense client.

    Each call runs in a worker thread so the event loop keeps serving
    health probes and signal handlers while a request is in flight.
    """

    def __init__(self, client: typesense.Client) -> None:
        """Initialize adapter.

        Args:
            client: Configured typesense client.
        """
        self._client = client

    @classmethod
    def from_settings(cls, settings: Settings) -> "TypesenseSearchEngine":
        """Build an adapter from indexer settings.

        Args:
            settings: Indexer configuration.

        Returns:
            Adapter connected to the configured node.
        """
        client = typesense.Client(
            {
                "api_key": settings.typesense_api_key,
                "nodes": settings.typesense_nodes,
                "connection_timeout_seconds": settings.typesense_connection_timeout,
            }
        )
        return cls(client)

    async def create_collection(self, schema: CollectionSchema) -> None:
        await asyncio.to_thread(self._client.collections.create, schema.to_wire())
        logger.info("collection_created", collection=schema.name)

    async def delete_collection(self, name: str) -> None:
        await asyncio.to_thread(self._client.collections[name].delete)
        logger.info("collection_deleted", collection=name)

    async def list_collections(self) -> list[str]:
        collections: list[dict[str, Any]] = await asyncio.to_thread(
            self._client.collections.retrieve
        )
        return [c["name"] for c in collections]

    async def upsert_document(self, collection: str, document: EquipmentDocument) -> None:
        documents = self._client.collections[collection].documents
        await asyncio.to_thread(documents.upsert, document.model_dump())

    async def delete_document(self, collection: str, document_id: str) -> None:
        """Delete one document.

        Raises:
            DocumentNotFoundError: If the collection holds no such document.
        """
        target = self._client.collections[collection].documents[document_id]
        try:
            await asyncio.to_thread(target.delete)
        except ObjectNotFound as e:
            raise DocumentNotFoundError(collection, document_id) from e

    async def bulk_import(
        self,
        collection: str,
        documents: Sequence[EquipmentDocument],
        batch_size: int,
    ) -> int:
        """Import documents with upsert semantics.

        Args:
            collection: Target collection.
            documents: Documents to import.
            batch_size: Server-side import batch size.

        Returns:
            Number of documents imported.

        Raises:
            SearchEngineError: If any document was rejected.
        """
        if not documents:
            return 0

        target = self._client.collections[collection].documents
        results: list[dict[str, Any]] = await asyncio.to_thread(
            target.import_,
            [d.model_dump() for d in documents],
            {"action": "upsert", "batch_size": batch_size},
        )
        failures = [r for r in results if not r.get("success", False)]
        if failures:
            logger.error(
                "bulk_import_rejected",
                collection=collection,
                rejected=len(failures),
                first_error=failures[0].get("error"),
            )
            raise SearchEngineError(
                f"{len(failures)} of {len(documents)} documents rejected by '{collection}'"
            )
        return len(documents)

    async def upsert_alias(self, alias: str, collection: str) -> None:
        await asyncio.to_thread(
            self._client.aliases.upsert, alias, {"collection_name": collection}
        )
        logger.info("alias_upserted", alias=alias, collection=collection)

    async def delete_alias(self, alias: str) -> None:
        await asyncio.to_thread(self._client.aliases[alias].delete)
        logger.info("alias_deleted", alias=alias)
