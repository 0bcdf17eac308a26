"""Helpers shared by the repositories."""

from __future__ import annotations

import logging
import warnings
from collections.abc import Mapping
from typing import Any, TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from confide.core.errors import CounterDriftWarning, ValidationError

logger = logging.getLogger(__name__)

POSTS = "posts"
COMMENTS = "comments"
LIKES = "likes"
USERS = "users"
NOTIFICATIONS = "notifications"

ModelT = TypeVar("ModelT", bound=BaseModel)


def validate_input(model: type[ModelT], data: ModelT | Mapping[str, Any]) -> ModelT:
    """Validate ``data`` against ``model`` at the repository boundary.

    Raises:
        ValidationError: With a readable summary of the first problems found.
    """
    if isinstance(data, model):
        return data
    try:
        return model.model_validate(data)
    except PydanticValidationError as err:
        problems = "; ".join(
            f"{'.'.join(str(part) for part in error['loc']) or 'input'}: {error['msg']}"
            for error in err.errors()
        )
        raise ValidationError(problems) from err


def report_counter_drift(post_id: str, field: str, delta: int, error: Exception) -> None:
    """Record that a ledger write landed but its counter follow-up did not."""
    message = f"{field} of post {post_id} missed a {delta:+d} adjustment: {error}"
    logger.warning("Counter drift: %s", message)
    warnings.warn(message, CounterDriftWarning, stacklevel=3)
