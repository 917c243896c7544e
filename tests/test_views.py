from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone

from contest_core import (
    ContestDetailView,
    ContestListView,
    ContestStatus,
    DataError,
    LeaderboardFetchFailed,
    LeaderboardView,
    ManualClock,
    MissedWindow,
    NotFoundOrUnavailable,
    RegisterResponse,
    RegistrationFailed,
    TickScheduler,
    parse_contest,
    parse_contest_detail,
    parse_leaderboard,
)

T0 = datetime(2025, 6, 1, 10, 0, tzinfo=timezone.utc)

PROBLEMS = [
    {"_id": "p1", "title": "Two Sum", "difficulty": "easy"},
    {"_id": "p2", "title": "Range Queries", "difficulty": "medium"},
    {"_id": "p3", "title": "Flow", "difficulty": "hard"},
]


def _detail(start, duration=60, registered=False, stats=None):
    payload = {
        "contest": {
            "_id": "c1",
            "title": "Weekly Round 12",
            "startTime": start.isoformat(),
            "duration": duration,
            "problems": PROBLEMS,
        },
        "isRegistered": registered,
    }
    if stats is not None:
        payload["userStats"] = {"problemStats": stats}
    return parse_contest_detail(payload)


@dataclass
class _FakeApi:
    details: list = field(default_factory=list)
    registrations: list = field(default_factory=list)
    leaderboard: object = None
    contests: object = None
    register_calls: int = 0

    def get_contest(self, contest_id):
        detail = self.details.pop(0) if len(self.details) > 1 else self.details[0]
        if isinstance(detail, Exception):
            raise detail
        return detail

    def register(self, contest_id):
        self.register_calls += 1
        outcome = self.registrations.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    def get_leaderboard(self, contest_id):
        if isinstance(self.leaderboard, Exception):
            raise self.leaderboard
        return self.leaderboard

    def list_contests(self):
        if isinstance(self.contests, Exception):
            raise self.contests
        return self.contests


def test_missed_window_renders_dedicated_state():
    api = _FakeApi(details=[MissedWindow()])
    view = ContestDetailView("c1", api, user_id="u1", clock=ManualClock(T0))
    view.refresh()
    screen = view.screen()
    assert screen.state == "missed"
    assert not screen.show_problem_list
    assert not screen.show_register_button
    assert screen.problems == ()


def test_generic_fetch_error_renders_error_text():
    api = _FakeApi(details=[NotFoundOrUnavailable()])
    view = ContestDetailView("c1", api, clock=ManualClock(T0))
    assert view.screen().state == "loading"
    view.refresh()
    screen = view.screen()
    assert screen.state == "error"
    assert screen.error == "Contest not found or could not be loaded."


def test_upcoming_contest_offers_registration_then_refetches():
    start = T0 + timedelta(hours=1)
    api = _FakeApi(
        details=[_detail(start), _detail(start, registered=True)],
        registrations=[RegisterResponse(message=None)],
    )
    view = ContestDetailView("c1", api, user_id="u1", clock=ManualClock(T0))
    view.refresh()

    screen = view.screen()
    assert screen.status is ContestStatus.UPCOMING
    assert screen.show_register_button
    assert not screen.show_login_hint
    assert not screen.show_problem_list
    assert screen.timer_label == "Starts in"
    assert screen.countdown_target == start

    result = view.register()
    assert result is not None and result.refetch_required
    assert view.notice.level == "success"
    assert view.notice.message == "You're registered! Good luck!"
    screen = view.screen()
    assert screen.is_registered
    assert not screen.show_register_button

    # Clicking again does not hit the backend and still reports success.
    again = view.register()
    assert again.already_registered
    assert view.notice.level == "success"
    assert api.register_calls == 1


def test_stale_refresh_does_not_undo_registration():
    start = T0 + timedelta(hours=1)
    api = _FakeApi(
        details=[_detail(start), _detail(start, registered=True)],
        registrations=[RegisterResponse(message="Registered")],
    )
    view = ContestDetailView("c1", api, user_id="u1", clock=ManualClock(T0))
    view.refresh()

    in_flight = view.begin_refresh()
    view.register()
    applied = view.complete_refresh(in_flight, detail=_detail(start, registered=False))

    assert applied is False
    assert view.is_registered
    assert view.screen().is_registered


def test_logged_out_registration_redirects_to_login():
    api = _FakeApi(details=[_detail(T0 + timedelta(hours=1))])
    view = ContestDetailView("c1", api, user_id=None, clock=ManualClock(T0))
    view.refresh()
    assert view.screen().show_login_hint

    assert view.register() is None
    assert view.redirect_to == "/login"
    assert view.notice.level == "info"
    assert api.register_calls == 0


def test_registration_failure_is_user_visible():
    api = _FakeApi(
        details=[_detail(T0 + timedelta(hours=1))],
        registrations=[RegistrationFailed("Server unavailable")],
    )
    view = ContestDetailView("c1", api, user_id="u1", clock=ManualClock(T0))
    view.refresh()
    assert view.register() is None
    assert view.notice.level == "error"
    assert view.notice.message == "Server unavailable"
    assert not view.is_registering
    assert view.screen().show_register_button


def test_registration_after_start_is_rejected_locally():
    api = _FakeApi(details=[_detail(T0 - timedelta(minutes=5))])
    view = ContestDetailView("c1", api, user_id="u1", clock=ManualClock(T0))
    view.refresh()
    assert view.register() is None
    assert view.notice.level == "error"
    assert api.register_calls == 0


def test_live_registered_view_lists_all_problems_with_solved_flags():
    stats = [{"problem": {"_id": "p3"}, "isSolved": True}]
    api = _FakeApi(details=[_detail(T0 - timedelta(minutes=5), registered=True, stats=stats)])
    view = ContestDetailView("c1", api, user_id="u1", clock=ManualClock(T0))
    view.refresh()

    screen = view.screen()
    assert screen.status is ContestStatus.LIVE
    assert screen.show_problem_list
    assert not screen.show_leaderboard_link
    assert [p.id for p in screen.problems] == ["p1", "p2", "p3"]
    assert [p.is_solved for p in screen.problems] == [False, False, True]
    assert screen.timer_label == "Ends in"


def test_live_unregistered_view_hides_problems():
    api = _FakeApi(details=[_detail(T0 - timedelta(minutes=5))])
    view = ContestDetailView("c1", api, user_id="u1", clock=ManualClock(T0))
    view.refresh()
    screen = view.screen()
    assert not screen.show_problem_list
    assert not screen.show_register_button


def test_ended_view_links_to_leaderboard():
    api = _FakeApi(details=[_detail(T0 - timedelta(hours=3), registered=True)])
    view = ContestDetailView("c1", api, user_id="u1", clock=ManualClock(T0))
    view.refresh()
    screen = view.screen()
    assert screen.status is ContestStatus.ENDED
    assert screen.show_leaderboard_link
    assert screen.show_problem_list
    assert screen.countdown_target is None


def test_scheduler_drives_countdown_and_status_until_close():
    clock = ManualClock(T0)
    scheduler = TickScheduler(clock, period=1.0)
    api = _FakeApi(details=[_detail(T0 + timedelta(seconds=2), duration=1, registered=True)])
    view = ContestDetailView("c1", api, user_id="u1", scheduler=scheduler)
    view.refresh()

    assert view.status is ContestStatus.UPCOMING
    assert view.remaining.total_millis == 2000
    assert scheduler.active == 2

    clock.advance(1)
    scheduler.tick()
    assert view.remaining.total_millis == 1000

    clock.advance(1)
    scheduler.tick()
    assert view.status is ContestStatus.LIVE
    assert view.remaining.total_millis == 60_000

    clock.advance(60)
    scheduler.tick()
    assert view.status is ContestStatus.ENDED
    assert view.notice.message == "The contest has ended!"
    assert view.remaining is None
    assert view.screen().show_leaderboard_link

    view.close()
    assert scheduler.active == 0


def test_close_cancels_running_timers():
    clock = ManualClock(T0)
    scheduler = TickScheduler(clock, period=1.0)
    api = _FakeApi(details=[_detail(T0 + timedelta(hours=1))])
    view = ContestDetailView("c1", api, scheduler=scheduler)
    view.refresh()
    assert scheduler.active == 2
    view.close()
    assert scheduler.active == 0


def _board(entries):
    return parse_leaderboard(
        {"title": "Weekly Round 12", "problems": PROBLEMS[:2], "leaderboard": entries}
    )


def test_leaderboard_view_ranks_and_resorts():
    api = _FakeApi(
        leaderboard=_board(
            [
                {"user": {"_id": "a", "firstName": "Ana"}, "score": 50},
                {
                    "user": {"_id": "b", "firstName": "Bo"},
                    "score": 80,
                    "problemStats": [{"problem": {"_id": "p2"}, "isSolved": True, "solveTime": 300}],
                },
                {"user": {"_id": "c", "firstName": "Cy"}, "score": 80},
            ]
        )
    )
    view = LeaderboardView("c1", api)
    view.load()
    screen = view.screen()
    assert screen.state == "ready"
    assert not screen.is_empty
    assert screen.column_labels == ("A", "B")
    assert [(r.user_name, r.rank) for r in screen.rows] == [("Bo", 1), ("Cy", 2), ("Ana", 3)]
    assert [c.symbol for c in screen.cells[0]] == ["-", "✓"]
    assert screen.cells[0][1].solve_minutes == "5m"

    view.request_sort("score")
    assert [r.user_name for r in view.screen().rows] == ["Ana", "Bo", "Cy"]
    view.request_sort("score")
    assert [r.user_name for r in view.screen().rows] == ["Bo", "Cy", "Ana"]
    assert [r.rank for r in view.screen().rows] == [1, 2, 3]


def test_leaderboard_view_empty_is_not_an_error():
    view = LeaderboardView("c1", _FakeApi(leaderboard=_board([])))
    view.load()
    screen = view.screen()
    assert screen.state == "ready"
    assert screen.is_empty


def test_leaderboard_view_errors():
    view = LeaderboardView("c1", _FakeApi(leaderboard=LeaderboardFetchFailed()))
    view.load()
    assert view.screen().state == "error"
    assert view.screen().error == "Failed to load leaderboard. Please try again later."

    invalid = LeaderboardView("undefined", _FakeApi())
    invalid.load()
    assert invalid.screen().error == "Invalid contest ID"


def test_contest_list_view_filters_and_counts():
    contests = [
        parse_contest({"_id": "past", "startTime": (T0 - timedelta(hours=1)).isoformat(), "duration": 30}),
        parse_contest({"_id": "soon", "startTime": (T0 + timedelta(hours=1)).isoformat(), "duration": 60}),
        parse_contest({"_id": "live", "startTime": (T0 - timedelta(minutes=10)).isoformat(), "duration": 60}),
    ]
    view = ContestListView(_FakeApi(contests=contests), clock=ManualClock(T0))
    view.load()

    screen = view.screen()
    assert screen.counts == {"all": 3, "live": 1, "upcoming": 1, "past": 1}
    assert [card.contest.id for card in screen.cards] == ["past", "soon", "live"]

    view.select("live")
    cards = view.screen().cards
    assert [card.contest.id for card in cards] == ["live"]
    assert cards[0].timer_label == "Ends in"
    assert cards[0].countdown_target == T0 + timedelta(minutes=50)


def test_contest_list_view_error():
    view = ContestListView(_FakeApi(contests=NotFoundOrUnavailable("Failed to load contests.")))
    view.load()
    screen = view.screen()
    assert screen.state == "error"
    assert screen.error == "Failed to load contests."


def test_contract_violation_is_distinguishable_from_fetch_failure():
    broken = ContestDetailView("c1", _FakeApi(details=[DataError()]), clock=ManualClock(T0))
    unavailable = ContestDetailView("c1", _FakeApi(details=[NotFoundOrUnavailable()]), clock=ManualClock(T0))
    broken.refresh()
    unavailable.refresh()

    assert broken.screen().state == unavailable.screen().state == "error"
    assert broken.screen().error_kind == "data_error"
    assert broken.screen().error == "Contest data is malformed."
    assert unavailable.screen().error_kind == "not_found"

    missed = ContestDetailView("c1", _FakeApi(details=[MissedWindow()]), clock=ManualClock(T0))
    missed.refresh()
    assert missed.screen().error_kind == "missed_window"


def test_leaderboard_and_list_screens_carry_error_kind():
    board = LeaderboardView("c1", _FakeApi(leaderboard=DataError("bad row")))
    board.load()
    assert board.screen().error_kind == "data_error"
    failed = LeaderboardView("c1", _FakeApi(leaderboard=LeaderboardFetchFailed()))
    failed.load()
    assert failed.screen().error_kind == "leaderboard_fetch_failed"

    listing = ContestListView(_FakeApi(contests=DataError()), clock=ManualClock(T0))
    listing.load()
    assert listing.screen().state == "error"
    assert listing.screen().error_kind == "data_error"
    ready = ContestListView(_FakeApi(contests=[]), clock=ManualClock(T0))
    ready.load()
    assert ready.screen().error_kind is None
