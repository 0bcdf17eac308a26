"""Generic document and counter tables."""

from datetime import datetime

from sqlalchemy import JSON, BigInteger, DateTime, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from confide.db.session import Base
from confide.db.time import utcnow


class StoredDocument(Base):
    """One schemaless document inside a named collection."""

    __tablename__ = "document"
    __table_args__ = (Index("ix_document_collection_created", "collection", "created_at"),)

    # Composite primary key doubles as the uniqueness constraint for explicit ids.
    collection: Mapped[str] = mapped_column(String(64), primary_key=True)
    doc_id: Mapped[str] = mapped_column(String(128), primary_key=True)
    data: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)


class DocumentCounter(Base):
    """Numeric field of a document maintained by atomic increments.

    Counter values override the same-named key in ``StoredDocument.data`` on read.
    """

    __tablename__ = "document_counter"

    collection: Mapped[str] = mapped_column(String(64), primary_key=True)
    doc_id: Mapped[str] = mapped_column(String(128), primary_key=True)
    field: Mapped[str] = mapped_column(String(64), primary_key=True)
    value: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
