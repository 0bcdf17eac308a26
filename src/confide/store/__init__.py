"""Document store interface and backends."""

from .base import (
    ChangeCallback,
    Document,
    DocumentStore,
    FieldFilter,
    ObjectStorage,
    OrderBy,
    Query,
    Subscription,
)
from .memory import MemoryDocumentStore, MemoryObjectStorage
from .sql import SqlDocumentStore

__all__ = [
    "ChangeCallback",
    "Document",
    "DocumentStore",
    "FieldFilter",
    "MemoryDocumentStore",
    "MemoryObjectStorage",
    "ObjectStorage",
    "OrderBy",
    "Query",
    "SqlDocumentStore",
    "Subscription",
]
