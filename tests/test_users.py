# tests/test_users.py
"""Tests for user profiles and statistics."""

import pytest

from confide.core.errors import DocumentExistsError, NotFoundError, PermissionDeniedError, ValidationError
from confide.schemas.user import UserPublic, UserUpdate
from confide.services.identity import Identity


@pytest.fixture()
def profile_data() -> dict[str, str]:
    return {"username": "alice", "email": "alice@example.edu", "bio": "CS major"}


@pytest.mark.asyncio
async def test_create_and_get_profile(repos, alice, profile_data) -> None:
    profile = await repos.users.create_profile(alice, profile_data)

    assert profile.id == alice.user_id
    assert profile.username == "alice"
    assert await repos.users.get_user(alice.user_id) == profile


@pytest.mark.asyncio
async def test_duplicate_profile(repos, alice, profile_data) -> None:
    await repos.users.create_profile(alice, profile_data)

    with pytest.raises(DocumentExistsError):
        await repos.users.create_profile(alice, profile_data)


@pytest.mark.asyncio
async def test_anonymous_identity_cannot_create_profile(repos, anon, profile_data) -> None:
    with pytest.raises(PermissionDeniedError):
        await repos.users.create_profile(anon, profile_data)


@pytest.mark.asyncio
async def test_invalid_email(repos, alice, profile_data) -> None:
    with pytest.raises(ValidationError):
        await repos.users.create_profile(alice, {**profile_data, "email": "not-an-email"})


@pytest.mark.asyncio
async def test_update_profile_keeps_unset_fields(repos, alice, profile_data) -> None:
    await repos.users.create_profile(alice, profile_data)

    profile = await repos.users.update_profile(alice, alice.user_id, UserUpdate(username="al"))

    assert profile.username == "al"
    assert profile.bio == "CS major"


@pytest.mark.asyncio
async def test_only_owner_can_update(repos, alice, bob, profile_data) -> None:
    await repos.users.create_profile(alice, profile_data)

    with pytest.raises(PermissionDeniedError):
        await repos.users.update_profile(bob, alice.user_id, {"bio": "hacked"})


@pytest.mark.asyncio
async def test_update_missing_profile(repos, bob) -> None:
    with pytest.raises(NotFoundError):
        await repos.users.update_profile(bob, bob.user_id, {"bio": "hi"})


@pytest.mark.asyncio
async def test_update_avatar_uploads_to_storage(repos, storage, alice, profile_data) -> None:
    await repos.users.create_profile(alice, profile_data)

    profile = await repos.users.update_avatar(alice, b"\x89PNG", "image/png")

    assert profile.avatar_url is not None
    key = profile.avatar_url.rsplit("/", 1)[-1]
    assert storage.objects[key] == (b"\x89PNG", "image/png")


@pytest.mark.asyncio
async def test_public_profile_hides_email(repos, alice, profile_data) -> None:
    profile = await repos.users.create_profile(alice, profile_data)

    public = UserPublic.from_profile(profile)

    assert "email" not in public.model_dump()


@pytest.mark.asyncio
async def test_user_stats(repos, alice, bob, post_data) -> None:
    first = await repos.posts.create_post(post_data(), alice)
    second = await repos.posts.create_post(post_data(is_anonymous=True), alice)
    await repos.likes.toggle_like(first, bob)
    await repos.likes.toggle_like(second, bob)
    await repos.comments.add_comment(first, alice, "reply")

    stats = await repos.users.user_stats(alice.user_id, alice)

    assert (stats.confessions, stats.comments, stats.likes_received) == (2, 1, 2)


@pytest.mark.asyncio
async def test_user_stats_hide_anonymous_activity_from_others(repos, alice, bob, post_data) -> None:
    """Test that anonymous posts and comments never show up in public stats."""
    public = await repos.posts.create_post(post_data(), alice)
    secret = await repos.posts.create_post(post_data(is_anonymous=True), alice)
    await repos.likes.toggle_like(secret, bob)
    await repos.comments.add_comment(public, Identity(user_id=alice.user_id, is_anonymous=True), "psst")

    for viewer in (None, bob):
        stats = await repos.users.user_stats(alice.user_id, viewer)
        assert (stats.confessions, stats.comments, stats.likes_received) == (1, 0, 0)

    own = await repos.users.user_stats(alice.user_id, alice)
    assert (own.confessions, own.comments, own.likes_received) == (2, 1, 1)
