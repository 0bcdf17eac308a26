# tests/v1/test_users_api.py
"""Tests for profile endpoints."""

from fastapi import status

from confide.core.settings import settings

PROFILE = {"username": "alice", "email": "alice@example.edu", "bio": "CS major"}


def test_create_and_get_my_profile(client, alice_headers) -> None:
    """Test creating and reading the caller's profile."""
    created = client.post("/api/v1/users/me", json=PROFILE, headers=alice_headers)
    me = client.get("/api/v1/users/me", headers=alice_headers)

    assert created.status_code == status.HTTP_201_CREATED
    assert me.json()["email"] == "alice@example.edu"


def test_duplicate_profile_conflicts(client, alice_headers) -> None:
    client.post("/api/v1/users/me", json=PROFILE, headers=alice_headers)

    response = client.post("/api/v1/users/me", json=PROFILE, headers=alice_headers)

    assert response.status_code == status.HTTP_409_CONFLICT


def test_anonymous_identity_cannot_create_profile(client, auth_headers, anon) -> None:
    response = client.post("/api/v1/users/me", json=PROFILE, headers=auth_headers(anon))

    assert response.status_code == status.HTTP_403_FORBIDDEN


def test_update_profile(client, alice_headers) -> None:
    """Test that a partial update leaves other fields alone."""
    client.post("/api/v1/users/me", json=PROFILE, headers=alice_headers)

    response = client.patch("/api/v1/users/me", json={"bio": "Now a TA"}, headers=alice_headers)

    assert response.json()["bio"] == "Now a TA"
    assert response.json()["username"] == "alice"


def test_public_profile_hides_email(client, alice_headers) -> None:
    client.post("/api/v1/users/me", json=PROFILE, headers=alice_headers)

    response = client.get("/api/v1/users/user-alice")

    assert response.status_code == status.HTTP_200_OK
    assert "email" not in response.json()


def test_missing_profile(client) -> None:
    assert client.get("/api/v1/users/nobody").status_code == status.HTTP_404_NOT_FOUND


def test_liked_posts_and_my_comments(client, alice_headers, bob_headers) -> None:
    """Test the caller's liked posts and comment history."""
    post = client.post(
        "/api/v1/posts/",
        json={"content": "Confession", "category": "Love", "is_anonymous": False},
        headers=alice_headers,
    ).json()
    client.post(f"/api/v1/posts/{post['id']}/like", headers=bob_headers)
    client.post(f"/api/v1/posts/{post['id']}/comments", json={"content": "Aww"}, headers=bob_headers)

    liked = client.get("/api/v1/users/me/liked", headers=bob_headers).json()
    comments = client.get("/api/v1/users/me/comments", headers=bob_headers).json()
    stats = client.get("/api/v1/users/user-alice/stats").json()

    assert [item["id"] for item in liked] == [post["id"]]
    assert [item["content"] for item in comments] == ["Aww"]
    assert stats == {"user_id": "user-alice", "confessions": 1, "comments": 0, "likes_received": 1}


def test_stats_do_not_reveal_anonymous_posts(client, alice_headers, bob_headers) -> None:
    """Test that only the author sees anonymous confessions in their stats."""
    client.post(
        "/api/v1/posts/",
        json={"content": "Signed confession", "category": "Food", "is_anonymous": False},
        headers=alice_headers,
    )
    before = client.get("/api/v1/users/user-alice/stats", headers=bob_headers).json()

    client.post(
        "/api/v1/posts/",
        json={"content": "Secret confession", "category": "Love", "is_anonymous": True},
        headers=alice_headers,
    )
    after = client.get("/api/v1/users/user-alice/stats", headers=bob_headers).json()
    signed_out = client.get("/api/v1/users/user-alice/stats").json()
    own = client.get("/api/v1/users/user-alice/stats", headers=alice_headers).json()

    assert after == before == signed_out
    assert after["confessions"] == 1
    assert own["confessions"] == 2


def test_recent_searches_follow_configured_limit(client, alice_headers, bob_headers, app, monkeypatch) -> None:
    assert app.state.search_history.limit == settings.recent_search_limit
    monkeypatch.setattr(app.state.search_history, "limit", 2)
    for text in ["exams", "coffee", "exams", "love"]:
        client.get("/api/v1/posts/", params={"q": text}, headers=alice_headers)
    client.get("/api/v1/posts/", params={"q": "signed out"})

    mine = client.get("/api/v1/users/me/searches", headers=alice_headers)
    theirs = client.get("/api/v1/users/me/searches", headers=bob_headers)

    assert mine.json() == ["love", "exams"]
    assert theirs.json() == []

    cleared = client.delete("/api/v1/users/me/searches", headers=alice_headers)
    assert cleared.status_code == status.HTTP_204_NO_CONTENT
    assert client.get("/api/v1/users/me/searches", headers=alice_headers).json() == []
