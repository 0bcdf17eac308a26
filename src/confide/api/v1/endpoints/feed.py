# src/confide/api/v1/endpoints/feed.py
"""Live feed over a WebSocket.

Each connection owns one :class:`FeedAssembler`. Every change to the posts
collection re-materializes the feed and the full ordered list is sent as a
JSON array; a client that reads slowly skips straight to the newest list.
The store subscription is torn down as soon as the client goes away.
"""

import asyncio
import logging

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from confide.core.errors import PermissionDeniedError
from confide.core.security import identity_from_token
from confide.core.settings import settings
from confide.schemas.post import Category, PostFilter, PostSort
from confide.services.feed import FeedAssembler, LatestSnapshot
from confide.services.identity import Identity

from .posts import visible_posts

router = APIRouter(prefix="/feed", tags=["feed"])

logger = logging.getLogger(__name__)

POLICY_VIOLATION = 1008


@router.websocket("/ws")
async def feed_socket(
    websocket: WebSocket,
    category: Category | None = None,
    author_id: str | None = None,
    sort: PostSort = PostSort.RECENCY,
    token: str | None = None,
) -> None:
    """Stream the ordered feed for the requested filter and sort."""
    viewer: Identity | None = None
    if token is not None:
        try:
            viewer = identity_from_token(token)
        except PermissionDeniedError:
            await websocket.close(code=POLICY_VIOLATION)
            return

    await websocket.accept()
    repos = websocket.app.state.repositories
    post_filter = PostFilter(author_id=author_id, category=category)
    latest = LatestSnapshot()
    assembler = FeedAssembler(repos.posts, post_filter, sort, limit=settings.feed_page_size)
    assembler.add_observer(latest.put)

    async def _push() -> None:
        while True:
            posts = await latest.get()
            payload = [post.model_dump(mode="json") for post in visible_posts(posts, post_filter, viewer)]
            await websocket.send_json(payload)

    async def _drain() -> None:
        # Clients never send anything meaningful; this only notices disconnects.
        while True:
            await websocket.receive_text()

    try:
        await assembler.start()
        # Both loops only end by raising; the group then cancels and awaits
        # the sibling, as it does when this handler is cancelled.
        async with asyncio.TaskGroup() as group:
            group.create_task(_push())
            group.create_task(_drain())
    except* WebSocketDisconnect:
        logger.debug("Feed client disconnected (%s)", post_filter)
    finally:
        assembler.close()
        logger.debug("Feed socket closed (%s)", post_filter)
