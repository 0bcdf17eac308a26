"""Time utilities for document timestamps."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta


def utcnow() -> datetime:
    """Return the current UTC time as a timezone-aware datetime."""
    return datetime.now(UTC)


def to_iso(value: datetime) -> str:
    """Render a timestamp so that lexical order equals chronological order."""
    return value.astimezone(UTC).isoformat(timespec="microseconds")


class MonotonicClock:
    """Hands out strictly increasing UTC timestamps.

    Wall clocks can stall or step backwards; creation timestamps must not, since
    the feed orders by them and uses them to break popularity ties.
    """

    def __init__(self, source=utcnow) -> None:
        self._source = source
        self._last: datetime | None = None

    def now(self) -> datetime:
        current = self._source()
        if self._last is not None and current <= self._last:
            current = self._last + timedelta(microseconds=1)
        self._last = current
        return current
