"""Notification schemas."""

from datetime import datetime
from enum import Enum

from confide.schemas.common import DocumentModel


class NotificationType(str, Enum):
    NEW_CONFESSION = "new-confession"
    NEW_COMMENT = "new-comment"
    LIKE = "like"
    MENTION = "mention"


class Notification(DocumentModel):
    """Passive notification record addressed to one user."""

    id: str
    recipient_id: str
    type: NotificationType
    post_id: str
    content: str
    actor_name: str
    created_at: datetime
    read: bool = False
