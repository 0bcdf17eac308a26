# src/confide/api/v1/__init__.py
"""Version 1 API endpoints."""

from .endpoints import (
    feed_router,
    notifications_router,
    posts_router,
    users_router,
)

__all__ = [
    "feed_router",
    "notifications_router",
    "posts_router",
    "users_router",
]
