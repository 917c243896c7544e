"""Countdown primitive and the single tick driver behind every timer.

One ``TickScheduler`` multiplexes all subscriptions of a process:

- countdowns (``start``): report the remaining time on every tick and fire
  ``on_end`` exactly once when the target is reached
- status watches (``watch``): report a contest's lifecycle status when it
  changes, never going backwards

The scheduler does not own a thread. ``tick()`` is one driver step; ``run()``
is an asyncio loop calling it every ``period`` seconds with an injectable
sleep, so tests can advance a ``ManualClock`` instead of sleeping.
"""
from __future__ import annotations

import asyncio
import itertools
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Awaitable, Callable, Optional

from .clock import Clock, SystemClock
from .config import get_settings
from .errors import DataError
from .status import ContestStatus, ContestWindow, latest_status

logger = logging.getLogger(__name__)

_MS_PER_SECOND = 1000
_MS_PER_MINUTE = 60 * _MS_PER_SECOND
_MS_PER_HOUR = 60 * _MS_PER_MINUTE
_MS_PER_DAY = 24 * _MS_PER_HOUR


@dataclass(frozen=True)
class Remaining:
    days: int
    hours: int
    minutes: int
    seconds: int
    total_millis: int

    @property
    def expired(self) -> bool:
        return self.total_millis <= 0

    def format(self) -> str:
        """Zero-padded ``HH:MM:SS``; days are shown only while there are any."""
        parts = [self.hours, self.minutes, self.seconds]
        if self.days > 0:
            parts.insert(0, self.days)
        return ":".join(f"{value:02d}" for value in parts)


def time_left(target: datetime, now: datetime) -> Remaining:
    """Decompose ``max(0, target - now)`` into days/hours/minutes/seconds."""
    if target.tzinfo is None or now.tzinfo is None:
        raise DataError("countdown instants must be timezone-aware")
    delta = target - now
    total = (delta.days * 86_400 + delta.seconds) * _MS_PER_SECOND + delta.microseconds // 1000
    if total <= 0:
        return Remaining(days=0, hours=0, minutes=0, seconds=0, total_millis=0)
    return Remaining(
        days=total // _MS_PER_DAY,
        hours=(total // _MS_PER_HOUR) % 24,
        minutes=(total // _MS_PER_MINUTE) % 60,
        seconds=(total // _MS_PER_SECOND) % 60,
        total_millis=total,
    )


TickCallback = Callable[[Remaining], None]
EndCallback = Callable[[], None]
StatusCallback = Callable[[ContestStatus], None]


@dataclass(eq=False)
class Subscription:
    """Opaque handle returned by ``start``/``watch``; pass it to ``cancel``."""

    id: int
    kind: str
    done: bool = False
    label: str | None = None


@dataclass(eq=False)
class _Countdown:
    handle: Subscription
    target: datetime
    on_tick: Optional[TickCallback]
    on_end: Optional[EndCallback]


@dataclass(eq=False)
class _StatusWatch:
    handle: Subscription
    window: ContestWindow
    on_change: StatusCallback
    last: Optional[ContestStatus] = field(default=None)


class TickScheduler:
    def __init__(self, clock: Clock | None = None, period: float | None = None):
        if period is None:
            period = get_settings().tick_period
        if period <= 0:
            raise ValueError("tick period must be positive")
        self.clock = clock or SystemClock()
        self.period = float(period)
        self._ids = itertools.count(1)
        self._subs: dict[int, _Countdown | _StatusWatch] = {}

    @property
    def active(self) -> int:
        return len(self._subs)

    def start(
        self,
        target: datetime,
        on_tick: Optional[TickCallback] = None,
        on_end: Optional[EndCallback] = None,
        *,
        label: str | None = None,
    ) -> Subscription:
        """Subscribe a countdown toward ``target``.

        A target already in the past fires ``on_end`` immediately and
        schedules nothing.
        """
        handle = Subscription(id=next(self._ids), kind="countdown", label=label)
        remaining = time_left(target, self.clock.now())
        if remaining.expired:
            handle.done = True
            self._notify(handle, on_end)
            return handle
        self._subs[handle.id] = _Countdown(handle, target, on_tick, on_end)
        return handle

    def watch(
        self,
        window: ContestWindow,
        on_change: StatusCallback,
        *,
        label: str | None = None,
    ) -> Subscription:
        """Report the window's status now and on every later change.

        The reported status only moves forward (Upcoming -> Live -> Ended);
        once Ended has been reported the watch finishes by itself.
        """
        handle = Subscription(id=next(self._ids), kind="status", label=label)
        watch = _StatusWatch(handle, window, on_change)
        self._subs[handle.id] = watch
        self._evaluate_watch(watch)
        return handle

    def cancel(self, handle: Subscription | None) -> None:
        """Idempotent; safe after natural completion."""
        if handle is None:
            return
        handle.done = True
        self._subs.pop(handle.id, None)

    def tick(self) -> None:
        """Advance every live subscription by one step."""
        now = self.clock.now()
        # Callbacks may start or cancel subscriptions; iterate over a snapshot.
        for sub in list(self._subs.values()):
            if sub.handle.done:
                continue
            if isinstance(sub, _Countdown):
                self._advance_countdown(sub, now)
            else:
                self._evaluate_watch(sub, now)

    async def run(
        self,
        *,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        stop_when_idle: bool = True,
    ) -> None:
        """Drive ``tick`` every ``period`` seconds until no subscription is left."""
        while True:
            if stop_when_idle and not self._subs:
                return
            await sleep(self.period)
            self.tick()

    def _advance_countdown(self, sub: _Countdown, now: datetime) -> None:
        remaining = time_left(sub.target, now)
        self._notify(sub.handle, sub.on_tick, remaining)
        if sub.handle.done:
            # Cancelled from inside on_tick.
            return
        if remaining.expired:
            self._finish(sub.handle)
            self._notify(sub.handle, sub.on_end)

    def _evaluate_watch(self, watch: _StatusWatch, now: datetime | None = None) -> None:
        current = watch.window.classify(now or self.clock.now())
        status = latest_status(watch.last, current)
        if status is not current:
            logger.debug(
                f"Clock moved backwards for {watch.handle.label or watch.handle.id}; "
                f"keeping {status.value}"
            )
        if status is watch.last:
            return
        watch.last = status
        if status is ContestStatus.ENDED:
            self._finish(watch.handle)
        self._notify(watch.handle, watch.on_change, status)

    def _finish(self, handle: Subscription) -> None:
        handle.done = True
        self._subs.pop(handle.id, None)

    def _notify(self, handle: Subscription, callback, *args) -> None:
        if callback is None:
            return
        try:
            callback(*args)
        except Exception:
            logger.exception(f"Timer callback failed for subscription {handle.label or handle.id}")


__all__ = ["Remaining", "Subscription", "TickScheduler", "time_left"]
