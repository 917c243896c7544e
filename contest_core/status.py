"""Contest lifecycle classification (pure, no I/O).

A contest occupies the half-open window ``[start, start + duration)``:

- Upcoming: now < start
- Live:     start <= now < end
- Ended:    now >= end

``classify`` is stateless; callers own the timer that re-evaluates it.
``ContestClock`` binds a window to an injectable clock for the views, and
``TickScheduler.watch`` (see ``countdown``) turns it into change
notifications.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum

from .clock import Clock, SystemClock
from .errors import DataError


class ContestStatus(str, Enum):
    UPCOMING = "Upcoming"
    LIVE = "Live"
    ENDED = "Ended"

    @property
    def order(self) -> int:
        return _STATUS_ORDER[self]


_STATUS_ORDER = {
    ContestStatus.UPCOMING: 0,
    ContestStatus.LIVE: 1,
    ContestStatus.ENDED: 2,
}


def _require_aware(value: datetime, name: str) -> None:
    if not isinstance(value, datetime):
        raise DataError(f"{name} must be a datetime, got {type(value).__name__}")
    if value.tzinfo is None or value.utcoffset() is None:
        raise DataError(f"{name} must be timezone-aware")


def _require_duration(duration_minutes: int) -> None:
    if isinstance(duration_minutes, bool) or not isinstance(duration_minutes, int):
        raise DataError(
            f"durationMinutes must be an integer, got {type(duration_minutes).__name__}"
        )
    if duration_minutes <= 0:
        raise DataError(f"durationMinutes must be positive, got {duration_minutes}")


@dataclass(frozen=True)
class ContestWindow:
    start: datetime
    duration_minutes: int

    def __post_init__(self) -> None:
        _require_aware(self.start, "startTime")
        _require_duration(self.duration_minutes)

    @property
    def end(self) -> datetime:
        return self.start + timedelta(minutes=self.duration_minutes)

    def classify(self, now: datetime) -> ContestStatus:
        _require_aware(now, "now")
        if now < self.start:
            return ContestStatus.UPCOMING
        if now < self.end:
            return ContestStatus.LIVE
        return ContestStatus.ENDED


def classify(start_time: datetime, duration_minutes: int, now: datetime) -> ContestStatus:
    """Classify a contest at instant ``now``.

    Raises:
        DataError: naive datetimes or a non-positive/non-integer duration.
    """
    return ContestWindow(start_time, duration_minutes).classify(now)


def latest_status(previous: ContestStatus | None, current: ContestStatus) -> ContestStatus:
    """Return whichever status is further along the lifecycle."""
    if previous is None or current.order >= previous.order:
        return current
    return previous


class ContestClock:
    """A contest window bound to a clock."""

    def __init__(self, window: ContestWindow, clock: Clock | None = None):
        self.window = window
        self.clock = clock or SystemClock()

    def status(self) -> ContestStatus:
        return self.window.classify(self.clock.now())

    def countdown_target(self) -> datetime | None:
        """Instant the visible countdown runs toward: start, then end, then nothing."""
        status = self.status()
        if status is ContestStatus.UPCOMING:
            return self.window.start
        if status is ContestStatus.LIVE:
            return self.window.end
        return None

    def timer_label(self) -> str | None:
        status = self.status()
        if status is ContestStatus.UPCOMING:
            return "Starts in"
        if status is ContestStatus.LIVE:
            return "Ends in"
        return None


__all__ = [
    "ContestStatus",
    "ContestWindow",
    "ContestClock",
    "classify",
    "latest_status",
]
