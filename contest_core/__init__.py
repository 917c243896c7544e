from .client import ContestApiClient, RegisterResponse
from .clock import Clock, ManualClock, SystemClock
from .config import ContestCoreSettings, get_settings
from .countdown import Remaining, Subscription, TickScheduler, time_left
from .errors import (
    AuthenticationRequired,
    ContestCoreError,
    ContestNotJoinable,
    DataError,
    LeaderboardFetchFailed,
    MissedWindow,
    NotFoundOrUnavailable,
    RegistrationFailed,
)
from .leaderboard import (
    Leaderboard,
    LeaderboardRow,
    ProblemCell,
    SortConfig,
    build_leaderboard,
    project_cells,
    rank_entries,
    sort_rows,
)
from .listing import ContestBuckets, bucket_contests
from .problems import DisplayProblem, merge_problem_stats
from .registration import (
    RegistrationDecision,
    RegistrationGate,
    RegistrationResult,
    check_registration,
)
from .status import ContestClock, ContestStatus, ContestWindow, classify
from .types import (
    ContestDetailPayload,
    ContestPayload,
    ErrorPayload,
    LeaderboardEntryPayload,
    LeaderboardPayload,
    ProblemPayload,
    ProblemStatPayload,
    UserPayload,
    UserStatsPayload,
)
from .validation import (
    Contest,
    ContestDetail,
    Difficulty,
    LeaderboardData,
    LeaderboardRawEntry,
    ProblemRef,
    ProblemStat,
    UserRef,
    parse_contest,
    parse_contest_detail,
    parse_contest_list,
    parse_leaderboard,
)
from .views import ContestDetailView, ContestListView, LeaderboardView

__all__ = [
    "ContestApiClient",
    "RegisterResponse",
    "Clock",
    "ManualClock",
    "SystemClock",
    "ContestCoreSettings",
    "get_settings",
    "Remaining",
    "Subscription",
    "TickScheduler",
    "time_left",
    "AuthenticationRequired",
    "ContestCoreError",
    "ContestNotJoinable",
    "DataError",
    "LeaderboardFetchFailed",
    "MissedWindow",
    "NotFoundOrUnavailable",
    "RegistrationFailed",
    "Leaderboard",
    "LeaderboardRow",
    "ProblemCell",
    "SortConfig",
    "build_leaderboard",
    "project_cells",
    "rank_entries",
    "sort_rows",
    "ContestBuckets",
    "bucket_contests",
    "DisplayProblem",
    "merge_problem_stats",
    "RegistrationDecision",
    "RegistrationGate",
    "RegistrationResult",
    "check_registration",
    "ContestClock",
    "ContestStatus",
    "ContestWindow",
    "classify",
    "ContestDetailPayload",
    "ContestPayload",
    "ErrorPayload",
    "LeaderboardEntryPayload",
    "LeaderboardPayload",
    "ProblemPayload",
    "ProblemStatPayload",
    "UserPayload",
    "UserStatsPayload",
    "Contest",
    "ContestDetail",
    "Difficulty",
    "LeaderboardData",
    "LeaderboardRawEntry",
    "ProblemRef",
    "ProblemStat",
    "UserRef",
    "parse_contest",
    "parse_contest_detail",
    "parse_contest_list",
    "parse_leaderboard",
    "ContestDetailView",
    "ContestListView",
    "LeaderboardView",
]
