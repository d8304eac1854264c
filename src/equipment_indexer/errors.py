"""Error taxonomy for the index synchronizer."""


class IndexerError(Exception):
    """Base class for all errors raised by the index synchronizer."""


class ConfigurationError(IndexerError):
    """Discovered state contradicts the configured allow-list.

    Fatal: aborts startup before the alias is switched.
    """


class UnrecognizedEventError(IndexerError):
    """An event reached the projection without a handling rule."""

    def __init__(self, event: object) -> None:
        self.event_type = type(event).__name__
        super().__init__(f"Could not handle event of type '{self.event_type}'")


class DocumentNotFoundError(IndexerError):
    """The search engine has no document with the requested id."""

    def __init__(self, collection: str, document_id: str) -> None:
        self.collection = collection
        self.document_id = document_id
        super().__init__(f"Document '{document_id}' not found in '{collection}'")


class SearchEngineError(IndexerError):
    """The search engine rejected an operation."""
