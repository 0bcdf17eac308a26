"""Bearer-token helpers bridging the identity provider and request context."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

from jose import JWTError, jwt

from confide.core.errors import PermissionDeniedError
from confide.core.settings import settings
from confide.services.identity import Identity


def create_access_token(identity: Identity, expires_minutes: int | None = None) -> str:
    """Encode an identity as a signed JWT.

    The production identity provider issues these tokens; this helper exists for
    local development and tests and uses the same claim layout.
    """
    minutes = expires_minutes if expires_minutes is not None else settings.access_token_expire_minutes
    to_encode: dict[str, object] = {
        "sub": identity.user_id,
        "anon": identity.is_anonymous,
        "exp": datetime.now(UTC) + timedelta(minutes=minutes),
    }
    if identity.display_name:
        to_encode["name"] = identity.display_name
    encoded_jwt: str = jwt.encode(to_encode, settings.secret_key, algorithm=settings.jwt_algorithm)
    return encoded_jwt


def identity_from_token(token: str) -> Identity:
    """Decode a bearer token into an explicit :class:`Identity`.

    Raises:
        PermissionDeniedError: If the token is malformed, expired or has no subject.
    """
    try:
        payload = jwt.decode(token, settings.secret_key, algorithms=[settings.jwt_algorithm])
    except JWTError as err:
        raise PermissionDeniedError("Could not validate credentials") from err

    subject = payload.get("sub")
    if not subject:
        raise PermissionDeniedError("Could not validate credentials")
    return Identity(
        user_id=str(subject),
        is_anonymous=bool(payload.get("anon", False)),
        display_name=payload.get("name"),
    )
