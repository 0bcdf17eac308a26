"""Explicit identity context and the identity-provider capability.

Repositories never look up "the current user" themselves; callers resolve an
:class:`Identity` once (from a bearer token, or from an identity provider on a
device) and pass it into every call that attributes or authorizes an action.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass

from confide.store.base import Subscription

logger = logging.getLogger(__name__)

ANONYMOUS_NAME = "Anonymous"


@dataclass(frozen=True)
class Identity:
    """Opaque subject issued by the identity provider."""

    user_id: str
    is_anonymous: bool = False
    display_name: str | None = None

    @property
    def public_name(self) -> str:
        """Name shown next to content authored by this identity."""
        if self.is_anonymous:
            return ANONYMOUS_NAME
        return self.display_name or "User"


AuthCallback = Callable[[Identity | None], None]


class IdentityProvider(ABC):
    """Source of the signed-in identity on a client."""

    @abstractmethod
    def current_user(self) -> Identity | None:
        """Return the signed-in identity, or ``None`` when signed out."""

    @abstractmethod
    def on_auth_change(self, callback: AuthCallback) -> Subscription:
        """Call ``callback`` now and whenever the signed-in identity changes."""


class LocalIdentityProvider(IdentityProvider):
    """In-process provider, used by tests and by embedding applications."""

    def __init__(self, identity: Identity | None = None) -> None:
        self._identity = identity
        self._callbacks: list[AuthCallback] = []

    def current_user(self) -> Identity | None:
        return self._identity

    def on_auth_change(self, callback: AuthCallback) -> Subscription:
        self._callbacks.append(callback)
        callback(self._identity)

        def _cancel() -> None:
            if callback in self._callbacks:
                self._callbacks.remove(callback)

        return Subscription(_cancel)

    def sign_in(self, identity: Identity) -> None:
        self._identity = identity
        self._emit()

    def sign_out(self) -> None:
        self._identity = None
        self._emit()

    def _emit(self) -> None:
        for callback in list(self._callbacks):
            try:
                callback(self._identity)
            except Exception:
                logger.exception("Auth change callback failed")
