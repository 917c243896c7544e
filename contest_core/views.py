"""View-boundary state for the contest pages.

Everything that can fail is resolved here: the views call the API client,
catch the contest_core error taxonomy and expose plain screen snapshots
(what to show, which message to toast, where to redirect). The core modules
they combine stay pure.

Detail refreshes carry a generation ticket. A successful registration bumps
the generation, so a refresh that was already in flight when the user
registered is discarded instead of overwriting the newer state.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import List, Literal, Optional, Protocol

from .client import RegisterResponse
from .clock import Clock, SystemClock
from .countdown import Remaining, Subscription, TickScheduler, time_left
from .errors import (
    AuthenticationRequired,
    ContestCoreError,
    ContestNotJoinable,
    LeaderboardFetchFailed,
    MissedWindow,
    RegistrationFailed,
)
from .leaderboard import (
    Leaderboard,
    LeaderboardRow,
    ProblemCell,
    SortConfig,
    SortKey,
    build_leaderboard,
    sort_rows,
)
from .listing import LIST_FILTERS, ListFilter, bucket_contests
from .problems import DisplayProblem, merge_problem_stats
from .registration import RegistrationGate, RegistrationResult
from .status import ContestClock, ContestStatus, latest_status
from .validation import Contest, ContestDetail, LeaderboardData

logger = logging.getLogger(__name__)

ScreenState = Literal["loading", "error", "missed", "ready"]
NoticeLevel = Literal["info", "success", "error"]


class ContestApi(Protocol):
    def get_contest(self, contest_id: str) -> ContestDetail:
        ...

    def register(self, contest_id: str) -> RegisterResponse:
        ...

    def list_contests(self) -> List[Contest]:
        ...

    def get_leaderboard(self, contest_id: str) -> LeaderboardData:
        ...


@dataclass(frozen=True)
class Notice:
    level: NoticeLevel
    message: str


@dataclass(frozen=True)
class RefreshTicket:
    generation: int


# ==================== CONTEST DETAIL ====================


@dataclass(frozen=True)
class DetailScreen:
    state: ScreenState
    status: Optional[ContestStatus] = None
    contest: Optional[Contest] = None
    error: Optional[str] = None
    error_kind: Optional[str] = None
    is_registered: bool = False
    show_register_button: bool = False
    show_login_hint: bool = False
    show_problem_list: bool = False
    show_leaderboard_link: bool = False
    problems: tuple[DisplayProblem, ...] = ()
    timer_label: Optional[str] = None
    countdown_target: Optional[datetime] = None
    remaining: Optional[Remaining] = None


class ContestDetailView:
    """State behind the contest detail page.

    Attach a ``TickScheduler`` to get a live countdown and status change
    notifications; ``close()`` cancels both subscriptions.
    """

    def __init__(
        self,
        contest_id: str,
        api: ContestApi,
        *,
        user_id: Optional[str] = None,
        clock: Clock | None = None,
        scheduler: TickScheduler | None = None,
    ):
        self.contest_id = contest_id
        self.api = api
        self.user_id = user_id
        self.scheduler = scheduler
        self.clock = clock or (scheduler.clock if scheduler is not None else SystemClock())
        self.gate = RegistrationGate(api)

        self.detail: Optional[ContestDetail] = None
        self.error: Optional[ContestCoreError] = None
        self.loading = True
        self.status: Optional[ContestStatus] = None
        self.is_registered = False
        self.is_registering = False
        self.remaining: Optional[Remaining] = None
        self.notice: Optional[Notice] = None
        self.redirect_to: Optional[str] = None

        self._generation = 0
        self._status_sub: Optional[Subscription] = None
        self._countdown_sub: Optional[Subscription] = None

    @property
    def authenticated(self) -> bool:
        return bool(self.user_id)

    # -------------------- fetching --------------------

    def begin_refresh(self) -> RefreshTicket:
        self.loading = True
        return RefreshTicket(generation=self._generation)

    def complete_refresh(
        self,
        ticket: RefreshTicket,
        detail: Optional[ContestDetail] = None,
        error: Optional[ContestCoreError] = None,
    ) -> bool:
        """Apply a finished fetch; returns False when the result was stale."""
        if ticket.generation != self._generation:
            logger.debug(
                f"Discarding stale refresh of contest {self.contest_id} "
                f"(generation {ticket.generation} < {self._generation})"
            )
            return False
        self.loading = False
        if error is not None:
            self.error = error
            self.detail = None
            self._cancel_timers()
            return True
        if detail is None:
            raise ValueError("complete_refresh needs a detail or an error")
        self.error = None
        self.detail = detail
        self.is_registered = detail.is_registered
        self.current_status()
        self._attach_timers()
        return True

    def refresh(self) -> bool:
        ticket = self.begin_refresh()
        try:
            detail = self.api.get_contest(self.contest_id)
        except ContestCoreError as e:
            return self.complete_refresh(ticket, error=e)
        return self.complete_refresh(ticket, detail=detail)

    # -------------------- registration --------------------

    def register(self) -> Optional[RegistrationResult]:
        """Handle a click on "Register Now"; outcomes land in ``notice``/``redirect_to``."""
        self.notice = None
        self.redirect_to = None
        if self.detail is None:
            return None
        self.is_registering = True
        try:
            result = self.gate.register(
                self.contest_id,
                self.current_status(),
                self.is_registered,
                authenticated=self.authenticated,
            )
        except AuthenticationRequired as e:
            self.notice = Notice("info", e.message)
            self.redirect_to = e.redirect_to
            return None
        except (ContestNotJoinable, RegistrationFailed) as e:
            self.notice = Notice("error", e.message)
            return None
        finally:
            self.is_registering = False

        self.notice = Notice("success", result.message)
        self.is_registered = True
        if result.refetch_required:
            self._generation += 1
            self.refresh()
        return result

    # -------------------- status & timers --------------------

    def _clock(self) -> ContestClock:
        assert self.detail is not None
        return ContestClock(self.detail.contest.window, self.clock)

    def current_status(self) -> Optional[ContestStatus]:
        if self.detail is None:
            return None
        self.status = latest_status(self.status, self._clock().status())
        return self.status

    def _on_status(self, status: ContestStatus) -> None:
        previous = self.status
        self.status = latest_status(previous, status)
        if previous is not None and previous is not self.status:
            logger.info(f"Contest {self.contest_id} is now {self.status.value}")
            if self.status is ContestStatus.ENDED:
                self.notice = Notice("success", "The contest has ended!")
        self._retarget_countdown()

    def _on_tick(self, remaining: Remaining) -> None:
        self.remaining = remaining

    def _attach_timers(self) -> None:
        self._cancel_timers()
        if self.scheduler is None or self.detail is None:
            return
        self._status_sub = self.scheduler.watch(
            self.detail.contest.window, self._on_status, label=f"contest:{self.contest_id}"
        )

    def _retarget_countdown(self) -> None:
        if self.scheduler is None or self.detail is None:
            return
        self.scheduler.cancel(self._countdown_sub)
        self._countdown_sub = None
        target = self._clock().countdown_target()
        if target is None:
            self.remaining = None
            return
        self.remaining = time_left(target, self.clock.now())
        self._countdown_sub = self.scheduler.start(
            target, on_tick=self._on_tick, label=f"countdown:{self.contest_id}"
        )

    def _cancel_timers(self) -> None:
        if self.scheduler is None:
            return
        self.scheduler.cancel(self._status_sub)
        self.scheduler.cancel(self._countdown_sub)
        self._status_sub = None
        self._countdown_sub = None

    def close(self) -> None:
        self._cancel_timers()

    # -------------------- rendering --------------------

    def screen(self) -> DetailScreen:
        if self.loading:
            return DetailScreen(state="loading")
        if isinstance(self.error, MissedWindow):
            return DetailScreen(state="missed", error=self.error.message, error_kind=self.error.kind)
        if self.error is not None:
            return DetailScreen(state="error", error=self.error.message, error_kind=self.error.kind)
        if self.detail is None:
            return DetailScreen(state="loading")

        status = self.current_status()
        clock = self._clock()
        contest = self.detail.contest
        upcoming = status is ContestStatus.UPCOMING
        show_problems = status is not ContestStatus.UPCOMING and self.is_registered
        problems = (
            tuple(
                merge_problem_stats(
                    contest.problems, self.detail.problem_stats, registered=self.is_registered
                )
            )
            if show_problems
            else ()
        )
        return DetailScreen(
            state="ready",
            status=status,
            contest=contest,
            is_registered=self.is_registered,
            show_register_button=upcoming and not self.is_registered,
            show_login_hint=upcoming and not self.is_registered and not self.authenticated,
            show_problem_list=show_problems,
            show_leaderboard_link=status is ContestStatus.ENDED,
            problems=problems,
            timer_label=clock.timer_label(),
            countdown_target=clock.countdown_target(),
            remaining=self.remaining,
        )


# ==================== LEADERBOARD ====================


@dataclass(frozen=True)
class LeaderboardScreen:
    state: ScreenState
    title: str = ""
    error: Optional[str] = None
    error_kind: Optional[str] = None
    column_labels: tuple[str, ...] = ()
    rows: tuple[LeaderboardRow, ...] = ()
    cells: tuple[tuple[ProblemCell, ...], ...] = ()
    sort: SortConfig = SortConfig()

    @property
    def is_empty(self) -> bool:
        return self.state == "ready" and not self.rows


class LeaderboardView:
    def __init__(self, contest_id: Optional[str], api: ContestApi):
        self.contest_id = contest_id
        self.api = api
        self.board: Optional[Leaderboard] = None
        self.error: Optional[ContestCoreError] = None
        self.loading = True
        self.sort = SortConfig()

    def load(self) -> None:
        self.loading = True
        try:
            if not self.contest_id or self.contest_id == "undefined":
                raise LeaderboardFetchFailed("Invalid contest ID")
            data = self.api.get_leaderboard(self.contest_id)
            self.board = build_leaderboard(data.title, data.problems, data.leaderboard)
            self.error = None
        except ContestCoreError as e:
            logger.warning(f"Leaderboard for contest {self.contest_id} unavailable: {e.message}")
            self.board = None
            self.error = e
        finally:
            self.loading = False

    def request_sort(self, key: SortKey) -> SortConfig:
        self.sort = self.sort.toggle(key)
        return self.sort

    def screen(self) -> LeaderboardScreen:
        if self.loading:
            return LeaderboardScreen(state="loading", sort=self.sort)
        if self.error is not None or self.board is None:
            if self.error is None:
                return LeaderboardScreen(state="error", sort=self.sort)
            return LeaderboardScreen(
                state="error", error=self.error.message, error_kind=self.error.kind, sort=self.sort
            )
        rows = tuple(sort_rows(self.board.rows, self.sort))
        return LeaderboardScreen(
            state="ready",
            title=self.board.title,
            column_labels=self.board.column_labels,
            rows=rows,
            cells=tuple(tuple(self.board.cells(row)) for row in rows),
            sort=self.sort,
        )


# ==================== CONTEST LIST ====================


@dataclass(frozen=True)
class ContestCard:
    contest: Contest
    status: ContestStatus
    timer_label: Optional[str]
    countdown_target: Optional[datetime]


@dataclass(frozen=True)
class ContestListScreen:
    state: ScreenState
    filter: ListFilter = "all"
    cards: tuple[ContestCard, ...] = ()
    counts: Optional[dict] = None
    error: Optional[str] = None
    error_kind: Optional[str] = None


class ContestListView:
    def __init__(self, api: ContestApi, *, clock: Clock | None = None):
        self.api = api
        self.clock = clock or SystemClock()
        self.contests: List[Contest] = []
        self.error: Optional[ContestCoreError] = None
        self.loading = True
        self.filter: ListFilter = "all"

    def load(self) -> None:
        self.loading = True
        try:
            self.contests = list(self.api.list_contests())
            self.error = None
        except ContestCoreError as e:
            self.contests = []
            self.error = e
        finally:
            self.loading = False

    def select(self, name: ListFilter) -> None:
        if name not in LIST_FILTERS:
            raise ValueError(f"unknown contest filter: {name!r}")
        self.filter = name

    def card(self, contest: Contest) -> ContestCard:
        clock = ContestClock(contest.window, self.clock)
        return ContestCard(
            contest=contest,
            status=clock.status(),
            timer_label=clock.timer_label(),
            countdown_target=clock.countdown_target(),
        )

    def screen(self) -> ContestListScreen:
        if self.loading:
            return ContestListScreen(state="loading", filter=self.filter)
        if self.error is not None:
            return ContestListScreen(
                state="error", filter=self.filter, error=self.error.message, error_kind=self.error.kind
            )
        buckets = bucket_contests(self.contests, self.clock.now())
        return ContestListScreen(
            state="ready",
            filter=self.filter,
            cards=tuple(self.card(contest) for contest in buckets.get(self.filter)),
            counts=buckets.counts(),
        )


__all__ = [
    "ContestApi",
    "Notice",
    "RefreshTicket",
    "DetailScreen",
    "ContestDetailView",
    "LeaderboardScreen",
    "LeaderboardView",
    "ContestCard",
    "ContestListScreen",
    "ContestListView",
]
