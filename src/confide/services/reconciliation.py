"""Explicit audit of denormalized post counters.

Counters are maintained incrementally and can drift when a ledger or comment
write lands but the follow-up increment fails. Nothing here runs on its own:
an operator calls :meth:`CounterAuditor.audit_post` (or ``audit_all``) to detect
drift and :meth:`CounterAuditor.repair_post` to overwrite counters with values
recomputed from the backing records.
"""

from __future__ import annotations

import logging
import warnings
from dataclasses import dataclass

from confide.core.errors import CounterDriftWarning
from confide.repositories.base import COMMENTS, LIKES, POSTS
from confide.repositories.post_repo import COMMENT_COUNT, LIKE_COUNT
from confide.store.base import DocumentStore, FieldFilter, Query

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CounterDrift:
    """Stored versus recomputed counters for one post."""

    post_id: str
    stored_likes: int
    actual_likes: int
    stored_comments: int
    actual_comments: int

    @property
    def drifted(self) -> bool:
        return self.stored_likes != self.actual_likes or self.stored_comments != self.actual_comments


class CounterAuditor:
    def __init__(self, store: DocumentStore) -> None:
        self.store = store

    async def audit_post(self, post_id: str) -> CounterDrift:
        post = await self.store.get(POSTS, post_id)
        actual_likes = await self.store.count(
            Query.build(LIKES, [FieldFilter("post_id", "==", post_id)])
        )
        actual_comments = await self.store.count(
            Query.build(COMMENTS, [FieldFilter("post_id", "==", post_id)])
        )
        drift = CounterDrift(
            post_id=post_id,
            stored_likes=int(post.get(LIKE_COUNT) or 0),
            actual_likes=actual_likes,
            stored_comments=int(post.get(COMMENT_COUNT) or 0),
            actual_comments=actual_comments,
        )
        if drift.drifted:
            logger.warning("Counter drift on post %s: %s", post_id, drift)
            warnings.warn(f"Counter drift on post {post_id}", CounterDriftWarning, stacklevel=2)
        return drift

    async def audit_all(self) -> list[CounterDrift]:
        """Audit every post and return only the drifted ones."""
        drifted = []
        for post in await self.store.query(Query.build(POSTS)):
            drift = await self.audit_post(post.id)
            if drift.drifted:
                drifted.append(drift)
        return drifted

    async def repair_post(self, post_id: str) -> CounterDrift:
        """Overwrite the post's counters with recomputed values."""
        with warnings.catch_warnings():
            warnings.simplefilter("ignore", CounterDriftWarning)
            drift = await self.audit_post(post_id)
        if drift.drifted:
            await self.store.update(
                POSTS,
                post_id,
                {LIKE_COUNT: drift.actual_likes, COMMENT_COUNT: drift.actual_comments},
            )
            logger.info("Repaired counters on post %s", post_id)
        return drift
