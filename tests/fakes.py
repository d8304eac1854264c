"""In-memory collaborators for exercising the indexer without services."""

from collections.abc import Sequence

from equipment_indexer.errors import DocumentNotFoundError, SearchEngineError
from equipment_indexer.events.store import (
    EventHandler,
    ReplayFinishedHandler,
    SubscriptionRegistry,
)
from equipment_indexer.events.types import EVENT_MODELS, DomainEvent, EventType
from equipment_indexer.search.schemas import CollectionSchema, EquipmentDocument

_EVENT_TYPES: dict[type[DomainEvent], EventType] = {
    model: event_type for event_type, model in EVENT_MODELS.items()
}

ALLOWED_SPECIFICATIONS = ["Splice Closure", "Fiber Tray"]
COLLECTION = "equipments-test"


class InMemoryEventStore:
    """Append-only event log with the event store delivery semantics."""

    def __init__(self) -> None:
        self._subscriptions = SubscriptionRegistry()
        self._log: list[DomainEvent] = []
        self._position = 0
        self.catch_up_calls = 0

    def append(self, *events: DomainEvent) -> None:
        self._log.extend(events)

    def subscribe(self, event_type: EventType, handler: EventHandler) -> None:
        self._subscriptions.subscribe(event_type, handler)

    def on_replay_finished(self, handler: ReplayFinishedHandler) -> None:
        self._subscriptions.on_replay_finished(handler)

    async def replay_all(self) -> int:
        self._position = 0
        count = await self._deliver()
        await self._subscriptions.finish_replay()
        return count

    async def catch_up(self) -> int:
        self.catch_up_calls += 1
        return await self._deliver()

    async def _deliver(self) -> int:
        count = 0
        while self._position < len(self._log):
            event = self._log[self._position]
            await self._subscriptions.dispatch(_EVENT_TYPES[type(event)], event)
            self._position += 1
            count += 1
        return count


class FakeSearchEngine:
    """Search engine keeping collections, documents and aliases in dicts.

    Every remote operation is recorded in ``calls`` as a tuple of
    (operation, collection, detail).
    """

    def __init__(self) -> None:
        self.collections: dict[str, dict[str, EquipmentDocument]] = {}
        self.schemas: dict[str, CollectionSchema] = {}
        self.aliases: dict[str, str] = {}
        self.calls: list[tuple[str, str, str | None]] = []
        self.import_batches: list[int] = []
        self.undeletable: set[str] = set()

    async def create_collection(self, schema: CollectionSchema) -> None:
        self.calls.append(("create_collection", schema.name, None))
        if schema.name in self.collections:
            raise SearchEngineError(f"Collection '{schema.name}' already exists")
        self.collections[schema.name] = {}
        self.schemas[schema.name] = schema

    async def delete_collection(self, name: str) -> None:
        self.calls.append(("delete_collection", name, None))
        if name in self.undeletable or name not in self.collections:
            raise SearchEngineError(f"Could not delete collection '{name}'")
        del self.collections[name]

    async def list_collections(self) -> list[str]:
        return list(self.collections)

    async def upsert_document(self, collection: str, document: EquipmentDocument) -> None:
        self.calls.append(("upsert_document", collection, document.id))
        self.collections[collection][document.id] = document

    async def delete_document(self, collection: str, document_id: str) -> None:
        self.calls.append(("delete_document", collection, document_id))
        if document_id not in self.collections[collection]:
            raise DocumentNotFoundError(collection, document_id)
        del self.collections[collection][document_id]

    async def bulk_import(
        self,
        collection: str,
        documents: Sequence[EquipmentDocument],
        batch_size: int,
    ) -> int:
        self.calls.append(("bulk_import", collection, str(len(documents))))
        self.import_batches.append(len(documents))
        for document in documents:
            self.collections[collection][document.id] = document
        return len(documents)

    async def upsert_alias(self, alias: str, collection: str) -> None:
        self.calls.append(("upsert_alias", collection, alias))
        self.aliases[alias] = collection

    async def delete_alias(self, alias: str) -> None:
        self.calls.append(("delete_alias", self.aliases.pop(alias), alias))

    def documents(self, collection: str) -> dict[str, str]:
        """Documents of a collection as {id: name}."""
        return {doc_id: doc.name for doc_id, doc in self.collections[collection].items()}

    def operations(self) -> list[str]:
        """Names of the recorded operations, in call order."""
        return [call[0] for call in self.calls]
