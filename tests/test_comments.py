# tests/test_comments.py
"""Tests for the comment repository."""

from unittest.mock import AsyncMock, patch

import pytest

from confide.core.errors import CounterDriftWarning, NotFoundError, TransientStoreError, ValidationError
from confide.schemas.comment import CommentResponse
from confide.schemas.post import Category


@pytest.mark.asyncio
async def test_add_comment_increments_count(repos, bob, post_id) -> None:
    comment = await repos.comments.add_comment(post_id, bob, "Same here")

    assert comment.post_id == post_id
    assert comment.author_id == bob.user_id
    assert comment.username == "Bob"
    assert (await repos.posts.get_post(post_id)).comment_count == 1


@pytest.mark.asyncio
async def test_comments_newest_first(repos, alice, bob, post_id) -> None:
    await repos.comments.add_comment(post_id, bob, "A")
    await repos.comments.add_comment(post_id, alice, "B")
    await repos.comments.add_comment(post_id, bob, "C")

    comments = await repos.comments.fetch_comments(post_id)

    assert [comment.content for comment in comments] == ["C", "B", "A"]
    assert (await repos.posts.get_post(post_id)).comment_count == 3


@pytest.mark.asyncio
@pytest.mark.parametrize("content", ["", "   ", "x" * 201])
async def test_invalid_comment_is_rejected(repos, bob, post_id, content) -> None:
    with pytest.raises(ValidationError):
        await repos.comments.add_comment(post_id, bob, content)

    assert await repos.comments.count_comments(post_id) == 0
    assert (await repos.posts.get_post(post_id)).comment_count == 0


@pytest.mark.asyncio
async def test_comment_on_missing_post(repos, bob) -> None:
    with pytest.raises(NotFoundError):
        await repos.comments.add_comment("missing", bob, "hello?")


@pytest.mark.asyncio
async def test_anonymous_comment_hides_author_publicly(repos, anon, post_id) -> None:
    comment = await repos.comments.add_comment(post_id, anon, "Psst")

    public = CommentResponse.from_comment(comment)

    assert comment.is_anonymous is True
    assert public.author_id is None
    assert public.username == "Anonymous"


@pytest.mark.asyncio
async def test_list_comments_streams_updates(repos, bob, post_id) -> None:
    sequences: list[list[str]] = []

    subscription = await repos.comments.list_comments(
        post_id,
        lambda comments: sequences.append([comment.content for comment in comments]),
    )
    await repos.comments.add_comment(post_id, bob, "first")
    await repos.comments.add_comment(post_id, bob, "second")
    subscription.unsubscribe()

    assert sequences == [[], ["first"], ["second", "first"]]


@pytest.mark.asyncio
async def test_user_comments_across_posts(repos, alice, bob, post_id, post_data) -> None:
    other_post = await repos.posts.create_post(post_data(content="other"), alice)
    await repos.comments.add_comment(post_id, bob, "one")
    await repos.comments.add_comment(other_post, alice, "mine")
    await repos.comments.add_comment(other_post, bob, "two")

    comments = await repos.comments.list_user_comments(bob.user_id)

    assert [(comment.post_id, comment.content) for comment in comments] == [
        (other_post, "two"),
        (post_id, "one"),
    ]


@pytest.mark.asyncio
async def test_counter_failure_keeps_comment_and_reports_drift(repos, bob, post_id) -> None:
    failing = AsyncMock(side_effect=TransientStoreError("store offline"))

    with patch.object(repos.posts, "adjust_counter", failing):
        with pytest.warns(CounterDriftWarning):
            with pytest.raises(TransientStoreError):
                await repos.comments.add_comment(post_id, bob, "lost count")

    assert await repos.comments.count_comments(post_id) == 1
    assert (await repos.posts.get_post(post_id)).comment_count == 0


@pytest.mark.asyncio
async def test_comment_notifies_post_author(repos, alice, bob, post_id) -> None:
    await repos.comments.add_comment(post_id, bob, "Hang in there")
    await repos.comments.add_comment(post_id, alice, "Thanks")

    notifications = await repos.notifications.fetch_notifications(alice.user_id)

    assert len(notifications) == 1
    assert notifications[0].type.value == "new-comment"
    assert notifications[0].content == "Hang in there"


@pytest.mark.asyncio
async def test_comment_on_food_post_round_trip(repos, alice, bob, post_data) -> None:
    post_id = await repos.posts.create_post(post_data(content="A", category=Category.FOOD), alice)

    await repos.comments.add_comment(post_id, bob, "nice")

    comments = await repos.comments.fetch_comments(post_id)
    assert [(comment.content, comment.author_id) for comment in comments] == [("nice", bob.user_id)]
    assert (await repos.posts.get_post(post_id)).comment_count == 1
