"""Contest list tabs: All / Live / Upcoming / Past."""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Literal, Sequence

from .status import ContestStatus, classify
from .validation import Contest

ListFilter = Literal["all", "live", "upcoming", "past"]
LIST_FILTERS: tuple[ListFilter, ...] = ("all", "live", "upcoming", "past")


@dataclass(frozen=True)
class ContestBuckets:
    all: tuple[Contest, ...]
    live: tuple[Contest, ...]
    upcoming: tuple[Contest, ...]
    past: tuple[Contest, ...]

    def get(self, name: ListFilter) -> tuple[Contest, ...]:
        if name not in LIST_FILTERS:
            raise ValueError(f"unknown contest filter: {name!r}")
        return getattr(self, name)

    def counts(self) -> dict[str, int]:
        return {name: len(self.get(name)) for name in LIST_FILTERS}


def bucket_contests(contests: Sequence[Contest], now: datetime) -> ContestBuckets:
    """Split contests by status at ``now``; each bucket keeps input order."""
    live: list[Contest] = []
    upcoming: list[Contest] = []
    past: list[Contest] = []
    for contest in contests:
        status = classify(contest.start_time, contest.duration_minutes, now)
        if status is ContestStatus.LIVE:
            live.append(contest)
        elif status is ContestStatus.UPCOMING:
            upcoming.append(contest)
        else:
            past.append(contest)
    return ContestBuckets(
        all=tuple(contests),
        live=tuple(live),
        upcoming=tuple(upcoming),
        past=tuple(past),
    )


__all__ = ["ContestBuckets", "ListFilter", "LIST_FILTERS", "bucket_contests"]
