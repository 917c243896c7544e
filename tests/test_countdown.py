import asyncio
from datetime import datetime, timedelta, timezone

import pytest

from contest_core import ContestStatus, ContestWindow, ManualClock, TickScheduler, time_left

T0 = datetime(2025, 6, 1, 10, 0, tzinfo=timezone.utc)


def _scheduler(start=T0):
    clock = ManualClock(start)
    return clock, TickScheduler(clock, period=1.0)


def test_time_left_decomposes_remaining_duration():
    target = T0 + timedelta(days=1, hours=2, minutes=3, seconds=4, milliseconds=500)
    remaining = time_left(target, T0)
    assert (remaining.days, remaining.hours, remaining.minutes, remaining.seconds) == (1, 2, 3, 4)
    assert remaining.total_millis == ((26 * 60 + 3) * 60 + 4) * 1000 + 500
    assert remaining.format() == "01:02:03:04"
    assert time_left(T0 + timedelta(minutes=5), T0).format() == "00:05:00"


def test_time_left_clamps_past_targets_to_zero():
    remaining = time_left(T0 - timedelta(seconds=30), T0)
    assert remaining.total_millis == 0
    assert remaining.expired
    assert remaining.format() == "00:00:00"


def test_past_target_fires_end_immediately_without_ticks():
    clock, scheduler = _scheduler()
    ticks, ends = [], []
    handle = scheduler.start(T0 - timedelta(seconds=1), ticks.append, lambda: ends.append(1))

    assert ends == [1]
    assert handle.done
    assert scheduler.active == 0
    for _ in range(3):
        clock.advance(1)
        scheduler.tick()
    assert ticks == []
    assert ends == [1]


def test_target_three_seconds_ahead_ticks_three_times_then_ends_once():
    clock, scheduler = _scheduler()
    ticks, ends = [], []
    scheduler.start(
        T0 + timedelta(seconds=3),
        on_tick=ticks.append,
        on_end=lambda: ends.append(len(ticks)),
    )

    for _ in range(6):
        clock.advance(1)
        scheduler.tick()

    assert [t.seconds for t in ticks] == [2, 1, 0]
    assert ticks[-1].total_millis == 0
    assert ends == [3]
    assert scheduler.active == 0


def test_cancel_is_idempotent_and_safe_after_completion():
    clock, scheduler = _scheduler()
    ticks, ends = [], []
    handle = scheduler.start(T0 + timedelta(seconds=10), ticks.append, lambda: ends.append(1))
    scheduler.cancel(handle)
    scheduler.cancel(handle)
    clock.advance(20)
    scheduler.tick()
    assert ticks == [] and ends == []

    finished = scheduler.start(T0, on_end=lambda: ends.append(2))
    scheduler.cancel(finished)
    scheduler.cancel(None)
    assert ends == [2]


def test_failing_callback_does_not_stop_other_subscriptions():
    clock, scheduler = _scheduler()
    seen = []

    def explode(_remaining):
        raise RuntimeError("boom")

    scheduler.start(T0 + timedelta(seconds=2), on_tick=explode)
    scheduler.start(T0 + timedelta(seconds=2), on_tick=seen.append)
    clock.advance(1)
    scheduler.tick()
    assert len(seen) == 1


def test_watch_reports_changes_and_never_regresses():
    clock, scheduler = _scheduler()
    window = ContestWindow(T0 + timedelta(seconds=2), 1)
    changes = []
    handle = scheduler.watch(window, changes.append)
    assert changes == [ContestStatus.UPCOMING]

    clock.advance(2)
    scheduler.tick()
    assert changes == [ContestStatus.UPCOMING, ContestStatus.LIVE]

    # Wall clock stepping backwards must not flicker back to Upcoming.
    clock.set(T0)
    scheduler.tick()
    assert changes[-1] is ContestStatus.LIVE

    clock.set(T0 + timedelta(seconds=62))
    scheduler.tick()
    assert changes == [ContestStatus.UPCOMING, ContestStatus.LIVE, ContestStatus.ENDED]
    assert handle.done
    assert scheduler.active == 0


def test_watch_on_ended_contest_reports_once_and_finishes():
    _, scheduler = _scheduler(T0 + timedelta(hours=2))
    changes = []
    handle = scheduler.watch(ContestWindow(T0, 30), changes.append)
    assert changes == [ContestStatus.ENDED]
    assert handle.done
    assert scheduler.active == 0


def test_run_drives_ticks_until_idle():
    clock, scheduler = _scheduler()
    ticks, ends = [], []
    scheduler.start(T0 + timedelta(seconds=3), ticks.append, lambda: ends.append(1))
    slept = []

    async def fake_sleep(seconds):
        slept.append(seconds)
        clock.advance(seconds)

    asyncio.run(scheduler.run(sleep=fake_sleep))

    assert slept == [1.0, 1.0, 1.0]
    assert len(ticks) == 3
    assert ends == [1]


def test_scheduler_rejects_non_positive_period():
    with pytest.raises(ValueError):
        TickScheduler(ManualClock(T0), period=0)
