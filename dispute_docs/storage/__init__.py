"""Object storage for generated documents."""

from .document_store import DocumentStore, document_key, snapshot_key

__all__ = [
    "DocumentStore",
    "document_key",
    "snapshot_key",
]
