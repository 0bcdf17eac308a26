"""Optimistic local updates expressed as reversible commands.

A command changes local view state immediately, then performs the remote
mutation. If the remote call fails the inverse local change is applied and the
failure is returned to the caller, which decides how to show it (and whether to
offer a retry). Nothing is retried automatically.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Generic, TypeVar

from confide.core.errors import ConfideError, ValidationError
from confide.repositories.like_ledger import LikeLedger
from confide.schemas.like import LikeToggleResult
from confide.services.identity import Identity

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class ReversibleCommand(Generic[T]):
    """Local change, its inverse, and the remote mutation they speculate on."""

    apply: Callable[[], None]
    revert: Callable[[], None]
    remote: Callable[[], Awaitable[T]]
    description: str = "command"


@dataclass(frozen=True)
class CommandOutcome(Generic[T]):
    ok: bool
    result: T | None = None
    error: ConfideError | None = None

    @property
    def retryable(self) -> bool:
        return self.error is not None and self.error.retryable


class OptimisticExecutor:
    """Runs reversible commands."""

    async def execute(self, command: ReversibleCommand[T]) -> CommandOutcome[T]:
        command.apply()
        try:
            result = await command.remote()
        except ConfideError as err:
            command.revert()
            logger.info("Rolled back %s: %s", command.description, err)
            return CommandOutcome(ok=False, error=err)
        except BaseException:
            # Unexpected errors and cancellation still undo the local change.
            command.revert()
            raise
        return CommandOutcome(ok=True, result=result)


class OptimisticLikeToggle:
    """View state of one like button.

    ``liked`` and ``like_count`` flip as soon as :meth:`toggle` is called and are
    replaced by the server's values once the toggle is confirmed.
    """

    def __init__(
        self,
        ledger: LikeLedger,
        post_id: str,
        actor: Identity,
        liked: bool,
        like_count: int,
        executor: OptimisticExecutor | None = None,
    ) -> None:
        self.ledger = ledger
        self.post_id = post_id
        self.actor = actor
        self.liked = liked
        self.like_count = like_count
        self.executor = executor or OptimisticExecutor()
        self.pending = False

    @classmethod
    async def load(cls, ledger: LikeLedger, post_id: str, actor: Identity) -> OptimisticLikeToggle:
        """Build the button state from the stored post and ledger."""
        post = await ledger.posts.get_post(post_id)
        liked = await ledger.has_liked(post_id, actor.user_id)
        return cls(ledger, post_id, actor, liked=liked, like_count=post.like_count)

    async def toggle(self) -> CommandOutcome[LikeToggleResult]:
        if self.pending:
            return CommandOutcome(ok=False, error=ValidationError("A like toggle is already in progress"))

        previous = (self.liked, self.like_count)

        def apply() -> None:
            self.liked = not previous[0]
            self.like_count = max(0, previous[1] + (1 if self.liked else -1))

        def revert() -> None:
            self.liked, self.like_count = previous

        command = ReversibleCommand(
            apply=apply,
            revert=revert,
            remote=lambda: self.ledger.toggle_like(self.post_id, self.actor),
            description=f"like toggle on {self.post_id}",
        )
        self.pending = True
        try:
            outcome = await self.executor.execute(command)
        finally:
            self.pending = False

        if outcome.ok and outcome.result is not None:
            self.liked = outcome.result.liked
            self.like_count = outcome.result.like_count
        return outcome
