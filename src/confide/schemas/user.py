"""User profile schemas."""

import re
from datetime import datetime

from pydantic import BaseModel, Field, field_validator

from confide.schemas.common import DocumentModel

_EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


class UserCreate(BaseModel):
    """Schema for creating the caller's profile."""

    username: str = Field(..., min_length=1, max_length=50)
    email: str = Field(..., max_length=254)
    bio: str | None = Field(None, max_length=300)

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        """Validate the email has a plausible address shape."""
        if not _EMAIL_PATTERN.match(v):
            raise ValueError("Email must be a valid address")
        return v


class UserUpdate(BaseModel):
    """Owner-editable profile fields; omitted fields are left unchanged."""

    username: str | None = Field(None, min_length=1, max_length=50)
    bio: str | None = Field(None, max_length=300)
    avatar_url: str | None = Field(None, max_length=2048)


class UserProfile(DocumentModel):
    """Stored user profile keyed by the identity-provider subject."""

    id: str
    username: str
    email: str
    bio: str | None = None
    avatar_url: str | None = None
    created_at: datetime


class UserStats(BaseModel):
    """Activity counters shown on a profile."""

    user_id: str
    confessions: int
    comments: int
    likes_received: int


class UserPublic(BaseModel):
    """Profile fields visible to other users."""

    id: str
    username: str
    bio: str | None = None
    avatar_url: str | None = None
    created_at: datetime

    @classmethod
    def from_profile(cls, profile: UserProfile) -> "UserPublic":
        return cls.model_validate(profile.model_dump(exclude={"email"}))
