# src/confide/api/v1/endpoints/notifications.py
"""Notification inbox endpoints."""

from fastapi import APIRouter, status

from confide.schemas.notification import Notification

from ..dependencies import IdentityDep, RepositoriesDep

router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.get("/", response_model=list[Notification])
async def list_notifications(identity: IdentityDep, repos: RepositoriesDep) -> list[Notification]:
    """Return the caller's notifications, newest first."""
    return await repos.notifications.fetch_notifications(identity.user_id)


@router.get("/unread-count")
async def unread_count(identity: IdentityDep, repos: RepositoriesDep) -> dict[str, int]:
    """Return how many notifications the caller has not read."""
    return {"unread": await repos.notifications.unread_count(identity.user_id)}


@router.post("/read-all")
async def mark_all_read(identity: IdentityDep, repos: RepositoriesDep) -> dict[str, int]:
    """Mark every notification of the caller read."""
    return {"updated": await repos.notifications.mark_all_read(identity)}


@router.post("/{notification_id}/read", status_code=status.HTTP_204_NO_CONTENT)
async def mark_read(notification_id: str, identity: IdentityDep, repos: RepositoriesDep) -> None:
    """Mark one of the caller's notifications read."""
    await repos.notifications.mark_read(notification_id, identity)
