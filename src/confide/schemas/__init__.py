"""
Pydantic schemas for stored documents and API request/response models.
"""

from .comment import MAX_COMMENT_LENGTH, Comment, CommentCreate, CommentResponse
from .like import Like, LikeToggleResult, like_id
from .notification import Notification, NotificationType
from .post import (
    MAX_POST_LENGTH,
    Category,
    Mood,
    Post,
    PostCreate,
    PostFilter,
    PostResponse,
    PostSort,
)
from .user import UserCreate, UserProfile, UserPublic, UserStats, UserUpdate

__all__ = [
    "Category", "Mood", "Post", "PostCreate", "PostFilter", "PostResponse", "PostSort",
    "MAX_POST_LENGTH",
    "Comment", "CommentCreate", "CommentResponse", "MAX_COMMENT_LENGTH",
    "Like", "LikeToggleResult", "like_id",
    "Notification", "NotificationType",
    "UserCreate", "UserProfile", "UserPublic", "UserStats", "UserUpdate",
]
