# src/confide/api/v1/endpoints/users.py
"""Profile endpoints, including the caller's liked posts and comments."""

from fastapi import APIRouter, status

from confide.schemas.comment import CommentResponse
from confide.schemas.post import PostResponse
from confide.schemas.user import UserCreate, UserProfile, UserPublic, UserStats, UserUpdate

from ..dependencies import IdentityDep, OptionalIdentityDep, RepositoriesDep, SearchHistoryDep

router = APIRouter(prefix="/users", tags=["users"])


@router.post("/me", status_code=status.HTTP_201_CREATED, response_model=UserProfile)
async def create_my_profile(
    profile_data: UserCreate,
    identity: IdentityDep,
    repos: RepositoriesDep,
) -> UserProfile:
    """Create the caller's profile."""
    return await repos.users.create_profile(identity, profile_data)


@router.get("/me", response_model=UserProfile)
async def get_my_profile(identity: IdentityDep, repos: RepositoriesDep) -> UserProfile:
    """Return the caller's full profile."""
    return await repos.users.get_user(identity.user_id)


@router.patch("/me", response_model=UserProfile)
async def update_my_profile(
    changes: UserUpdate,
    identity: IdentityDep,
    repos: RepositoriesDep,
) -> UserProfile:
    """Edit username, bio or avatar URL."""
    return await repos.users.update_profile(identity, identity.user_id, changes)


@router.get("/me/liked", response_model=list[PostResponse])
async def get_my_liked_posts(identity: IdentityDep, repos: RepositoriesDep) -> list[PostResponse]:
    """Posts the caller has liked, most recently liked first."""
    posts = await repos.likes.liked_posts(identity.user_id)
    return [PostResponse.from_post(post) for post in posts]


@router.get("/me/comments", response_model=list[CommentResponse])
async def get_my_comments(identity: IdentityDep, repos: RepositoriesDep) -> list[CommentResponse]:
    """Every comment the caller has written, newest first."""
    comments = await repos.comments.list_user_comments(identity.user_id)
    return [CommentResponse.from_comment(comment) for comment in comments]


@router.get("/me/searches", response_model=list[str])
async def get_my_recent_searches(identity: IdentityDep, history: SearchHistoryDep) -> list[str]:
    """The caller's recent feed searches, newest first."""
    return history.for_user(identity.user_id).items


@router.delete("/me/searches", status_code=status.HTTP_204_NO_CONTENT)
async def clear_my_recent_searches(identity: IdentityDep, history: SearchHistoryDep) -> None:
    history.for_user(identity.user_id).clear()


@router.get("/{user_id}", response_model=UserPublic)
async def get_user(user_id: str, repos: RepositoriesDep) -> UserPublic:
    """Return another user's public profile."""
    return UserPublic.from_profile(await repos.users.get_user(user_id))


@router.get("/{user_id}/stats", response_model=UserStats)
async def get_user_stats(user_id: str, viewer: OptionalIdentityDep, repos: RepositoriesDep) -> UserStats:
    """Return confession, comment and like counts for a user."""
    return await repos.users.user_stats(user_id, viewer)
