"""Keeps a full-text search index of terminal equipment in sync with the event store."""

__version__ = "0.1.0"
