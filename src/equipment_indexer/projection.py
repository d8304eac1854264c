"""Projection of equipment lifecycle events into search index mutations."""

from collections.abc import Callable, Iterable, Iterator, Mapping
from dataclasses import dataclass
from enum import Enum
from itertools import islice
from types import MappingProxyType
from typing import TypeVar
from uuid import UUID

import structlog

from equipment_indexer.errors import (
    ConfigurationError,
    DocumentNotFoundError,
    UnrecognizedEventError,
)
from equipment_indexer.events.store import EventStore
from equipment_indexer.events.types import (
    EVENT_MODELS,
    DomainEvent,
    EquipmentPlaced,
    EquipmentRemoved,
    NamingInfoChanged,
    SpecificationAdded,
    SpecificationChanged,
)
from equipment_indexer.search.engine import SearchEngine
from equipment_indexer.search.schemas import EquipmentDocument

logger = structlog.get_logger()

T = TypeVar("T")


class ProjectionMode(str, Enum):
    """How classified mutations are executed."""

    BULK = "bulk"
    CATCHUP = "catchup"


class DocumentAction(str, Enum):
    """Remote mutation of a single equipment document."""

    UPSERT = "upsert"
    DELETE = "delete"


# (was_indexable, is_indexable) -> action on SpecificationChanged.
# was_indexable only considers the old specification.
SPECIFICATION_TRANSITIONS: dict[tuple[bool, bool], DocumentAction | None] = {
    (True, False): DocumentAction.DELETE,
    (False, True): DocumentAction.UPSERT,
    (True, True): None,
    (False, False): None,
}


@dataclass
class EquipmentRecord:
    """In-memory state of one equipment.

    Attributes:
        id: Equipment identifier.
        name: Display name, possibly missing or blank.
        specification_id: Current specification.
    """

    id: UUID
    name: str | None
    specification_id: UUID

    @property
    def has_name(self) -> bool:
        """Whether the name is non-empty after trimming whitespace."""
        return bool(self.name and self.name.strip())

    def to_document(self) -> EquipmentDocument:
        """Project to the indexable document shape."""
        return EquipmentDocument(id=str(self.id), name=self.name or "")


@dataclass(frozen=True)
class IndexMutation:
    """A classified document mutation, executed only in catch-up mode."""

    action: DocumentAction
    equipment_id: UUID
    document: EquipmentDocument | None = None


def _batched(items: Iterable[T], size: int) -> Iterator[list[T]]:
    iterator = iter(items)
    while batch := list(islice(iterator, size)):
        yield batch


class ProjectionEngine:
    """Keeps equipment state and turns events into index mutations.

    Starts in BULK mode, where events only update in-memory state while
    the event store replays history. ``finalize_bulk_load`` imports every
    indexable equipment in batches and switches to CATCHUP mode, after
    which each event immediately produces at most one remote mutation.
    Classification is identical in both modes.

    Attributes:
        mode: Current projection mode.
        collection_name: Collection mutated by this projection.
    """

    def __init__(
        self,
        event_store: EventStore,
        search_engine: SearchEngine,
        collection_name: str,
        specification_names: Iterable[str],
        batch_size: int = 100,
    ) -> None:
        """Initialize projection and subscribe to the event store.

        Args:
            event_store: Source of equipment events.
            search_engine: Target of index mutations.
            collection_name: Collection generation owned by this process.
            specification_names: Allow-list of indexable specification names.
            batch_size: Documents per bulk import call.
        """
        self._search = search_engine
        self._collection = collection_name
        self._allowed = frozenset(specification_names)
        self._batch_size = batch_size
        self._mode = ProjectionMode.BULK
        self._specifications: dict[UUID, str] = {}
        self._equipment: dict[UUID, EquipmentRecord] = {}

        self._appliers: dict[type[DomainEvent], Callable[..., IndexMutation | None]] = {
            EquipmentPlaced: self._apply_placed,
            NamingInfoChanged: self._apply_naming_info_changed,
            SpecificationChanged: self._apply_specification_changed,
            SpecificationAdded: self._apply_specification_added,
            EquipmentRemoved: self._apply_removed,
        }

        for event_type in EVENT_MODELS:
            event_store.subscribe(event_type, self.apply)
        event_store.on_replay_finished(self.finalize_bulk_load)

    @property
    def mode(self) -> ProjectionMode:
        """Current projection mode."""
        return self._mode

    @property
    def collection_name(self) -> str:
        """Collection mutated by this projection."""
        return self._collection

    @property
    def specifications(self) -> Mapping[UUID, str]:
        """Read-only view of the registered allow-listed specifications."""
        return MappingProxyType(self._specifications)

    @property
    def equipment_count(self) -> int:
        """Number of equipment records held in memory."""
        return len(self._equipment)

    def get_equipment(self, equipment_id: UUID) -> EquipmentRecord | None:
        """Look up the in-memory record of an equipment."""
        return self._equipment.get(equipment_id)

    def is_indexable(self, record: EquipmentRecord) -> bool:
        """Whether a record belongs in the index.

        Args:
            record: Equipment record.

        Returns:
            True if its specification is registered and its name is non-empty.
        """
        return record.specification_id in self._specifications and record.has_name

    def indexable_documents(self) -> Iterator[EquipmentDocument]:
        """Stream the documents of all indexable records."""
        return (r.to_document() for r in self._equipment.values() if self.is_indexable(r))

    async def apply(self, event: DomainEvent) -> None:
        """Apply one event, sending its mutation when in catch-up mode.

        Args:
            event: Typed domain event.

        Raises:
            UnrecognizedEventError: If no handling rule exists for the event.
        """
        applier = self._appliers.get(type(event))
        if applier is None:
            raise UnrecognizedEventError(event)

        mutation = applier(event)
        if mutation is not None and self._mode is ProjectionMode.CATCHUP:
            await self._send(mutation)

    async def finalize_bulk_load(self) -> None:
        """Verify the allow-list, import all indexable documents, enter catch-up.

        Raises:
            ConfigurationError: If the number of registered specifications
                differs from the configured allow-list size.
            RuntimeError: If the projection already left bulk mode.
        """
        if self._mode is not ProjectionMode.BULK:
            raise RuntimeError("Bulk load was already finalized")

        if len(self._specifications) != len(self._allowed):
            found = sorted(set(self._specifications.values()))
            logger.error(
                "specification_allow_list_mismatch",
                configured=sorted(self._allowed),
                found=found,
                missing=sorted(self._allowed.difference(found)),
            )
            raise ConfigurationError(
                f"Found {len(self._specifications)} specifications matching the "
                f"allow-list, expected {len(self._allowed)}"
            )

        imported = 0
        for batch in _batched(self.indexable_documents(), self._batch_size):
            imported += await self._search.bulk_import(self._collection, batch, self._batch_size)
            logger.debug("bulk_import_batch", collection=self._collection, size=len(batch))

        if imported == 0 and self._equipment:
            logger.warning(
                "bulk_load_imported_nothing",
                collection=self._collection,
                equipment=len(self._equipment),
            )

        self._mode = ProjectionMode.CATCHUP
        logger.info(
            "bulk_load_finalized",
            collection=self._collection,
            imported=imported,
            equipment=len(self._equipment),
            specifications=len(self._specifications),
        )

    def _apply_placed(self, event: EquipmentPlaced) -> IndexMutation | None:
        record = EquipmentRecord(
            id=event.equipment_id,
            name=event.name,
            specification_id=event.specification_id,
        )
        self._equipment[record.id] = record
        if self.is_indexable(record):
            return IndexMutation(DocumentAction.UPSERT, record.id, record.to_document())
        return None

    def _apply_naming_info_changed(self, event: NamingInfoChanged) -> IndexMutation | None:
        record = self._equipment.get(event.equipment_id)
        if record is None:
            self._skip_unknown(event, event.equipment_id)
            return None

        was_indexable = self.is_indexable(record)
        record.name = event.name
        if self.is_indexable(record):
            return IndexMutation(DocumentAction.UPSERT, record.id, record.to_document())
        if was_indexable:
            return IndexMutation(DocumentAction.DELETE, record.id)
        return None

    def _apply_specification_changed(self, event: SpecificationChanged) -> IndexMutation | None:
        record = self._equipment.get(event.equipment_id)
        if record is None:
            self._skip_unknown(event, event.equipment_id)
            return None

        was_indexable = record.specification_id in self._specifications
        record.specification_id = event.specification_id
        action = SPECIFICATION_TRANSITIONS[(was_indexable, self.is_indexable(record))]
        if action is None:
            return None
        if action is DocumentAction.DELETE:
            return IndexMutation(action, record.id)
        return IndexMutation(action, record.id, record.to_document())

    def _apply_specification_added(self, event: SpecificationAdded) -> None:
        if event.name not in self._allowed:
            return None
        if event.specification_id in self._specifications:
            logger.debug(
                "specification_already_registered",
                specification_id=str(event.specification_id),
            )
            return None

        self._specifications[event.specification_id] = event.name
        logger.info(
            "specification_registered",
            specification_id=str(event.specification_id),
            name=event.name,
            mode=self._mode.value,
        )
        return None

    def _apply_removed(self, event: EquipmentRemoved) -> IndexMutation:
        self._equipment.pop(event.equipment_id, None)
        return IndexMutation(DocumentAction.DELETE, event.equipment_id)

    def _skip_unknown(self, event: DomainEvent, equipment_id: UUID) -> None:
        logger.warning(
            "projection_unknown_equipment",
            event_type=type(event).__name__,
            equipment_id=str(equipment_id),
        )

    async def _send(self, mutation: IndexMutation) -> None:
        if mutation.action is DocumentAction.DELETE:
            document_id = str(mutation.equipment_id)
            try:
                await self._search.delete_document(self._collection, document_id)
            except DocumentNotFoundError:
                logger.debug("document_already_absent", document_id=document_id)
            return

        assert mutation.document is not None
        await self._search.upsert_document(self._collection, mutation.document)
        logger.debug(
            "document_written",
            action=mutation.action.value,
            document_id=mutation.document.id,
        )
