"""SQLAlchemy models backing the SQL document store."""

from .document import DocumentCounter, StoredDocument

__all__ = ["DocumentCounter", "StoredDocument"]
