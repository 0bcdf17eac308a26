"""Error taxonomy shared by the store, repositories and API layer."""

from __future__ import annotations


class ConfideError(RuntimeError):
    """Base class for every failure scoped to a single user action."""

    retryable: bool = False


class ValidationError(ConfideError):
    """Input has a bad shape, length or enumerated value."""


class PermissionDeniedError(ConfideError):
    """The acting identity may not perform the requested mutation."""


class NotFoundError(ConfideError):
    """A referenced document does not exist."""

    def __init__(self, collection: str, doc_id: str) -> None:
        super().__init__(f"{collection}/{doc_id} not found")
        self.collection = collection
        self.doc_id = doc_id


class DocumentExistsError(ConfideError):
    """A create with an explicit identifier collided with an existing document."""

    def __init__(self, collection: str, doc_id: str) -> None:
        super().__init__(f"{collection}/{doc_id} already exists")
        self.collection = collection
        self.doc_id = doc_id


class TransientStoreError(ConfideError):
    """The backend failed in a way that may succeed if the user tries again."""

    retryable = True


class CounterDriftWarning(UserWarning):
    """A denormalized counter may no longer match its backing records."""
