"""Entry point for the equipment search indexer."""

import asyncio
import contextlib
import signal
import sys

import structlog
import uvicorn

from equipment_indexer.app import create_app
from equipment_indexer.config import Settings
from equipment_indexer.events import PostgresEventStore
from equipment_indexer.health import HealthMarker
from equipment_indexer.lifecycle import GracefulShutdown
from equipment_indexer.logging import configure_logging
from equipment_indexer.orchestrator import IndexLifecycleOrchestrator
from equipment_indexer.projection import ProjectionEngine
from equipment_indexer.search import TypesenseSearchEngine, new_collection_name

logger = structlog.get_logger()


async def serve(settings: Settings) -> int:
    """Run the index lifecycle, and the probe server when enabled.

    Handles SIGTERM/SIGINT for clean shutdown. The probe server stops
    as soon as the lifecycle ends, successfully or not.

    Args:
        settings: Indexer configuration.

    Returns:
        Process exit status: 0 on clean shutdown, 1 on failure.
    """
    shutdown = GracefulShutdown()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGTERM, signal.SIGINT):
        loop.add_signal_handler(sig, shutdown.trigger)

    collection_name = new_collection_name(settings.collection_alias_name)
    logger.info(
        "indexer_startup",
        specification_names=settings.specification_names,
        alias=settings.collection_alias_name,
        collection=collection_name,
    )

    event_store = PostgresEventStore(
        dsn=settings.connection_string,
        schema=settings.event_store_schema,
        page_size=settings.event_store_page_size,
    )
    search_engine = TypesenseSearchEngine.from_settings(settings)
    projection = ProjectionEngine(
        event_store,
        search_engine,
        collection_name=collection_name,
        specification_names=settings.specification_names,
        batch_size=settings.import_batch_size,
    )
    orchestrator = IndexLifecycleOrchestrator(
        event_store,
        search_engine,
        projection,
        alias=settings.collection_alias_name,
        health=HealthMarker(settings.health_file),
        poll_interval=settings.poll_interval,
        shutdown_behavior=settings.shutdown_behavior,
    )

    async def run_indexer() -> None:
        """Run the lifecycle, then release the other tasks."""
        try:
            await event_store.connect()
            await orchestrator.run(shutdown)
        finally:
            shutdown.trigger()
            await event_store.close()

    tasks = [run_indexer()]
    if settings.health_server_enabled:
        config = uvicorn.Config(
            create_app(orchestrator),
            host=settings.health_host,
            port=settings.health_port,
            log_level="warning",
            access_log=False,
            timeout_graceful_shutdown=int(settings.shutdown_timeout),
        )
        server = uvicorn.Server(config)

        async def shutdown_server() -> None:
            """Wait for shutdown signal and stop server."""
            await shutdown.wait_for_trigger()
            server.should_exit = True

        tasks += [server.serve(), shutdown_server()]

    results = await asyncio.gather(*tasks, return_exceptions=True)
    indexer_result = results[0]
    if isinstance(indexer_result, BaseException):
        logger.error("indexer_stopped_with_error", error=repr(indexer_result))
        return 1

    logger.info("indexer_shutdown")
    return 0


def main() -> None:
    """Entry point for python -m equipment_indexer."""
    settings = Settings()
    configure_logging(debug=settings.debug)

    exit_code = 0
    with contextlib.suppress(KeyboardInterrupt):
        exit_code = asyncio.run(serve(settings))

    sys.exit(exit_code)


if __name__ == "__main__":
    main()
