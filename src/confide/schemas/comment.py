"""Comment-related Pydantic schemas."""

from datetime import datetime

from pydantic import BaseModel, Field, field_validator

from confide.schemas.common import DocumentModel

MAX_COMMENT_LENGTH = 200


class CommentCreate(BaseModel):
    """Schema for adding a comment to a post."""

    content: str = Field(..., min_length=1, max_length=MAX_COMMENT_LENGTH)

    @field_validator("content")
    @classmethod
    def _reject_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("Comment must not be empty")
        return value


class Comment(DocumentModel):
    """Append-only comment on a post."""

    id: str
    post_id: str
    author_id: str | None = None
    username: str
    content: str
    is_anonymous: bool
    created_at: datetime


class CommentResponse(BaseModel):
    """Public projection of a comment; anonymous comments carry no author reference."""

    id: str
    post_id: str
    author_id: str | None
    username: str
    content: str
    is_anonymous: bool
    created_at: datetime

    @classmethod
    def from_comment(cls, comment: Comment) -> "CommentResponse":
        return cls(
            id=comment.id,
            post_id=comment.post_id,
            author_id=None if comment.is_anonymous else comment.author_id,
            username=comment.username,
            content=comment.content,
            is_anonymous=comment.is_anonymous,
            created_at=comment.created_at,
        )
