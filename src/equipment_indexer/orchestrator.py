"""Rebuild-and-cutover sequence for the equipment search index."""

from enum import Enum

import structlog

from equipment_indexer.config import ShutdownBehavior
from equipment_indexer.events.store import EventStore
from equipment_indexer.health import HealthMarker
from equipment_indexer.lifecycle import GracefulShutdown
from equipment_indexer.projection import ProjectionEngine
from equipment_indexer.search.engine import SearchEngine
from equipment_indexer.search.schemas import equipment_collection_schema, is_generation_of

logger = structlog.get_logger()


class IndexPhase(str, Enum):
    """Phases of one index lifecycle."""

    PENDING = "pending"
    CREATING = "creating"
    BULK_LOADING = "bulk_loading"
    SWAPPING = "swapping"
    CLEANUP = "cleanup"
    LISTENING = "listening"
    SHUTDOWN = "shutdown"
    FAILED = "failed"


class IndexLifecycleOrchestrator:
    """Builds a fresh collection generation, cuts the alias over, then follows.

    The alias is switched exactly once, after the new collection is fully
    populated, so readers see either the previous generation or the new
    one. Any failure before LISTENING aborts startup with the alias
    untouched; failures while listening propagate as well, recovery being
    a process restart with a new collection name.

    Attributes:
        phase: Current lifecycle phase.
        collection_name: Collection generation owned by this process.
    """

    def __init__(
        self,
        event_store: EventStore,
        search_engine: SearchEngine,
        projection: ProjectionEngine,
        alias: str,
        health: HealthMarker,
        poll_interval: float = 1.0,
        shutdown_behavior: ShutdownBehavior = ShutdownBehavior.KEEP,
    ) -> None:
        """Initialize orchestrator.

        Args:
            event_store: Event store driving the projection.
            search_engine: Search engine hosting the collections.
            projection: Projection subscribed to ``event_store``.
            alias: Stable alias consumers query.
            health: Marker set once bootstrap succeeds.
            poll_interval: Seconds between catch-up polls.
            shutdown_behavior: Whether to keep or delete the collection on exit.
        """
        self._event_store = event_store
        self._search = search_engine
        self._projection = projection
        self._alias = alias
        self._health = health
        self._poll_interval = poll_interval
        self._shutdown_behavior = shutdown_behavior
        self._phase = IndexPhase.PENDING

    @property
    def phase(self) -> IndexPhase:
        """Current lifecycle phase."""
        return self._phase

    @property
    def is_ready(self) -> bool:
        """Whether the alias points at this generation and catch-up is running."""
        return self._phase is IndexPhase.LISTENING

    @property
    def collection_name(self) -> str:
        """Collection generation owned by this process."""
        return self._projection.collection_name

    async def run(self, shutdown: GracefulShutdown) -> None:
        """Rebuild the index, switch the alias and follow new events.

        Returns once shutdown is triggered while listening.

        Args:
            shutdown: Cooperative cancellation signal.

        Raises:
            Exception: Whatever aborted the lifecycle, after logging it.
        """
        logger.info(
            "index_lifecycle_starting",
            alias=self._alias,
            collection=self.collection_name,
        )
        try:
            await self.bootstrap()
            await self.listen(shutdown)
            await self.shutdown()
        except Exception:
            failed_in = self._phase
            self._phase = IndexPhase.FAILED
            logger.exception("index_lifecycle_failed", phase=failed_in.value)
            raise

    async def bootstrap(self) -> None:
        """Create, bulk load and cut over a new generation, then mark healthy."""
        collection = self.collection_name

        self._phase = IndexPhase.CREATING
        await self._search.create_collection(equipment_collection_schema(collection))

        self._phase = IndexPhase.BULK_LOADING
        logger.info("bulk_load_started", collection=collection)
        events = await self._event_store.replay_all()
        logger.info("bulk_load_finished", collection=collection, events=events)

        self._phase = IndexPhase.SWAPPING
        await self._search.upsert_alias(self._alias, collection)
        logger.info("alias_switched", alias=self._alias, collection=collection)

        self._phase = IndexPhase.CLEANUP
        await self.delete_stale_collections()

        self._health.mark_healthy()

    async def delete_stale_collections(self) -> list[str]:
        """Delete earlier generations of this alias, best effort.

        Returns:
            Names of the collections that were deleted.
        """
        names = await self._search.list_collections()
        stale = [
            name
            for name in names
            if is_generation_of(name, self._alias) and name != self.collection_name
        ]

        deleted: list[str] = []
        for name in stale:
            try:
                await self._search.delete_collection(name)
            except Exception as e:
                logger.warning("stale_collection_delete_failed", collection=name, error=str(e))
                continue
            deleted.append(name)

        logger.info("stale_collections_deleted", deleted=deleted, found=len(stale))
        return deleted

    async def listen(self, shutdown: GracefulShutdown) -> None:
        """Poll the event store for new events until shutdown.

        Args:
            shutdown: Cooperative cancellation signal, checked once per poll.
        """
        self._phase = IndexPhase.LISTENING
        logger.info("listening_started", poll_interval=self._poll_interval)
        while not shutdown.is_triggered:
            if await shutdown.sleep(self._poll_interval):
                break
            processed = await self._event_store.catch_up()
            if processed > 0:
                logger.info("catch_up_processed", events=processed)

    async def shutdown(self) -> None:
        """Apply the configured shutdown behavior to the owned collection.

        Deleting the collection removes the alias first so it never targets
        a missing collection.
        """
        self._phase = IndexPhase.SHUTDOWN
        if self._shutdown_behavior is ShutdownBehavior.DELETE_COLLECTION:
            await self._search.delete_alias(self._alias)
            await self._search.delete_collection(self.collection_name)
        logger.info(
            "index_lifecycle_stopped",
            collection=self.collection_name,
            behavior=self._shutdown_behavior.value,
        )
