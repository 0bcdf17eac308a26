"""Shared helpers for schemas built from store documents."""
from __future__ import annotations

from typing import Any, Self

from pydantic import BaseModel, ConfigDict

from confide.store.base import Document


class DocumentModel(BaseModel):
    """Base for read models projected from a stored document."""

    model_config = ConfigDict(from_attributes=True)

    @classmethod
    def from_document(cls, document: Document) -> Self:
        payload: dict[str, Any] = {"id": document.id, **document.data}
        return cls.model_validate(payload)
