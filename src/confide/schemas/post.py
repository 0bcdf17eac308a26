"""Post-related Pydantic schemas and the closed value sets they use."""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field, field_validator

from confide.schemas.common import DocumentModel

MAX_POST_LENGTH = 500


class Category(str, Enum):
    """Fixed set of confession categories."""

    CAMPUS_LIFE = "Campus Life"
    LOVE = "Love"
    FOOD = "Food"
    STUDY = "Study"


class Mood(str, Enum):
    """Optional mood tag attached to a confession."""

    HAPPY = "happy"
    SAD = "sad"
    ANGRY = "angry"
    FUNNY = "funny"


class PostSort(str, Enum):
    """Feed orderings; both are descending."""

    RECENCY = "recency"
    POPULARITY = "popularity"


class PostCreate(BaseModel):
    """Schema for creating a new confession."""

    content: str = Field(..., min_length=1, max_length=MAX_POST_LENGTH, description="Confession text")
    category: Category
    is_anonymous: bool = Field(..., description="Hide the author's name in public views")
    mood: Mood | None = None
    username: str | None = Field(
        None,
        min_length=1,
        max_length=50,
        description="Display-name override; defaults to the author's public name",
    )

    @field_validator("content")
    @classmethod
    def _reject_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("Content must not be empty")
        return value


class PostFilter(BaseModel):
    """Equality filters applied to a feed query."""

    author_id: str | None = None
    category: Category | None = None


class Post(DocumentModel):
    """A confession as stored, including the author reference."""

    id: str
    content: str
    author_id: str | None = None
    username: str
    category: Category
    mood: Mood | None = None
    is_anonymous: bool
    like_count: int = 0
    comment_count: int = 0
    share_count: int = 0
    created_at: datetime


class PostResponse(BaseModel):
    """Public projection of a post; anonymous posts carry no author reference."""

    id: str
    content: str
    author_id: str | None
    username: str
    category: Category
    mood: Mood | None
    is_anonymous: bool
    like_count: int
    comment_count: int
    share_count: int
    created_at: datetime

    @classmethod
    def from_post(cls, post: Post) -> "PostResponse":
        return cls(
            id=post.id,
            content=post.content,
            author_id=None if post.is_anonymous else post.author_id,
            username="Anonymous" if post.is_anonymous else post.username,
            category=post.category,
            mood=post.mood,
            is_anonymous=post.is_anonymous,
            like_count=post.like_count,
            comment_count=post.comment_count,
            share_count=post.share_count,
            created_at=post.created_at,
        )
