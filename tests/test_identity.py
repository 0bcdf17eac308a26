# tests/test_identity.py
"""Tests for identities, bearer tokens and the timestamp clock."""

from datetime import UTC, datetime

import pytest

from confide.core.errors import PermissionDeniedError
from confide.core.security import create_access_token, identity_from_token
from confide.db.time import MonotonicClock, to_iso
from confide.services.identity import Identity, LocalIdentityProvider


def test_public_name() -> None:
    assert Identity(user_id="u1", display_name="Ana").public_name == "Ana"
    assert Identity(user_id="u1").public_name == "User"
    assert Identity(user_id="u1", is_anonymous=True, display_name="Ana").public_name == "Anonymous"


def test_token_round_trip() -> None:
    identity = Identity(user_id="u1", is_anonymous=True)

    assert identity_from_token(create_access_token(identity)) == identity


def test_expired_token_is_rejected() -> None:
    token = create_access_token(Identity(user_id="u1"), expires_minutes=-1)

    with pytest.raises(PermissionDeniedError):
        identity_from_token(token)


def test_garbage_token_is_rejected() -> None:
    with pytest.raises(PermissionDeniedError):
        identity_from_token("not-a-jwt")


def test_local_provider_reports_auth_changes() -> None:
    provider = LocalIdentityProvider()
    seen: list[Identity | None] = []

    subscription = provider.on_auth_change(seen.append)
    provider.sign_in(Identity(user_id="u1"))
    provider.sign_out()
    subscription.unsubscribe()
    provider.sign_in(Identity(user_id="u2"))

    assert seen == [None, Identity(user_id="u1"), None]
    assert provider.current_user() == Identity(user_id="u2")


def test_clock_never_repeats_or_goes_back() -> None:
    frozen = datetime(2024, 5, 1, tzinfo=UTC)
    clock = MonotonicClock(source=lambda: frozen)

    stamps = [clock.now() for _ in range(3)]

    assert stamps == sorted(set(stamps))
    assert [to_iso(stamp) for stamp in stamps] == sorted(to_iso(stamp) for stamp in stamps)
