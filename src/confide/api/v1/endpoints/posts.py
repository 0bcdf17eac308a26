# src/confide/api/v1/endpoints/posts.py
"""Post, like, share and comment endpoints."""

from collections.abc import Iterable
from typing import Annotated

from fastapi import APIRouter, Query, status

from confide.core.settings import settings
from confide.schemas.comment import CommentCreate, CommentResponse
from confide.schemas.like import LikeToggleResult
from confide.schemas.post import Category, Post, PostCreate, PostFilter, PostResponse, PostSort
from confide.services.feed import search_posts
from confide.services.identity import Identity

from ..dependencies import IdentityDep, OptionalIdentityDep, RepositoriesDep, SearchHistoryDep

router = APIRouter(prefix="/posts", tags=["posts"])


def visible_posts(
    posts: Iterable[Post],
    post_filter: PostFilter,
    viewer: Identity | None,
) -> list[PostResponse]:
    """Project posts for ``viewer``.

    Filtering by author must not reveal which anonymous posts that author wrote,
    so those are dropped unless the viewer is the author.
    """
    hide_anonymous = post_filter.author_id is not None and (
        viewer is None or viewer.user_id != post_filter.author_id
    )
    return [
        PostResponse.from_post(post)
        for post in posts
        if not (hide_anonymous and post.is_anonymous)
    ]


@router.post("/", status_code=status.HTTP_201_CREATED, response_model=PostResponse)
async def create_post(
    post_data: PostCreate,
    identity: IdentityDep,
    repos: RepositoriesDep,
) -> PostResponse:
    """Publish a confession."""
    post_id = await repos.posts.create_post(post_data, identity)
    return PostResponse.from_post(await repos.posts.get_post(post_id))


@router.get("/", response_model=list[PostResponse])
async def list_posts(
    repos: RepositoriesDep,
    viewer: OptionalIdentityDep,
    history: SearchHistoryDep,
    category: Category | None = None,
    author_id: str | None = None,
    sort: PostSort = PostSort.RECENCY,
    q: Annotated[str | None, Query(max_length=100)] = None,
    limit: Annotated[int | None, Query(ge=1, le=500)] = None,
) -> list[PostResponse]:
    """Return one page of the feed, optionally searched.

    Search only covers the returned page, exactly like the live feed does.
    A signed-in caller's query is remembered in their recent searches.
    """
    post_filter = PostFilter(author_id=author_id, category=category)
    posts = await repos.posts.fetch_posts(post_filter, sort, limit or settings.feed_page_size)
    if q is not None:
        posts = search_posts(posts, q)
        if viewer is not None:
            history.for_user(viewer.user_id).add(q)
    return visible_posts(posts, post_filter, viewer)


@router.get("/{post_id}", response_model=PostResponse)
async def get_post(post_id: str, repos: RepositoriesDep) -> PostResponse:
    """Return a single post."""
    return PostResponse.from_post(await repos.posts.get_post(post_id))


@router.delete("/{post_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_post(post_id: str, identity: IdentityDep, repos: RepositoriesDep) -> None:
    """Delete one of the caller's posts."""
    await repos.posts.delete_post(post_id, identity)


@router.post("/{post_id}/like", response_model=LikeToggleResult)
async def toggle_like(post_id: str, identity: IdentityDep, repos: RepositoriesDep) -> LikeToggleResult:
    """Like the post, or remove the caller's like if there is one."""
    return await repos.likes.toggle_like(post_id, identity)


@router.get("/{post_id}/like")
async def get_my_like(post_id: str, identity: IdentityDep, repos: RepositoriesDep) -> dict[str, bool]:
    """Tell whether the caller currently likes the post."""
    await repos.posts.get_post(post_id)
    return {"liked": await repos.likes.has_liked(post_id, identity.user_id)}


@router.post("/{post_id}/share")
async def share_post(post_id: str, repos: RepositoriesDep) -> dict[str, int]:
    """Count a share of the post."""
    return {"share_count": await repos.posts.record_share(post_id)}


@router.get("/{post_id}/comments", response_model=list[CommentResponse])
async def list_comments(post_id: str, repos: RepositoriesDep) -> list[CommentResponse]:
    """Return the post's comments, newest first."""
    await repos.posts.get_post(post_id)
    comments = await repos.comments.fetch_comments(post_id)
    return [CommentResponse.from_comment(comment) for comment in comments]


@router.post(
    "/{post_id}/comments",
    status_code=status.HTTP_201_CREATED,
    response_model=CommentResponse,
)
async def add_comment(
    post_id: str,
    comment_data: CommentCreate,
    identity: IdentityDep,
    repos: RepositoriesDep,
) -> CommentResponse:
    """Comment on a post."""
    comment = await repos.comments.add_comment(post_id, identity, comment_data.content)
    return CommentResponse.from_comment(comment)
