"""Like ledger schemas."""

import hashlib
from datetime import datetime

from pydantic import BaseModel

from confide.schemas.common import DocumentModel


def like_id(post_id: str, user_id: str) -> str:
    """Deterministic ledger key for a (post, user) pair.

    The key is the uniqueness constraint: a second like by the same user on the
    same post can only ever address this one record.
    """
    digest = hashlib.sha256(f"{len(post_id)}:{post_id}|{user_id}".encode("utf-8"))
    return digest.hexdigest()


class Like(DocumentModel):
    """One user's like on one post."""

    id: str
    post_id: str
    user_id: str
    created_at: datetime


class LikeToggleResult(BaseModel):
    """Outcome of a toggle: the new state and the counter after the change."""

    post_id: str
    liked: bool
    like_count: int
