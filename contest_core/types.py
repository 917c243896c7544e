"""Type definitions for the JSON payloads exchanged with the judge backend."""
from __future__ import annotations

from typing import List, Optional, TypedDict, Union


class UserPayload(TypedDict, total=False):
    """A populated user reference."""
    _id: str
    firstName: str
    lastName: Optional[str]


class ProblemPayload(TypedDict, total=False):
    """A problem as embedded in a contest (populated reference)."""
    _id: str
    title: str
    difficulty: str  # 'easy' | 'medium' | 'hard'


class ProblemStatPayload(TypedDict, total=False):
    """
    One per-problem solve record.

    ``problem`` is normally populated; the backend sends null when the
    referenced problem no longer resolves.
    """
    problem: Union[ProblemPayload, str, None]
    isSolved: bool
    solveTime: Optional[float]  # seconds since contest start


class UserStatsPayload(TypedDict, total=False):
    problemStats: List[ProblemStatPayload]


class ContestPayload(TypedDict, total=False):
    """
    TypedDict for a contest record.

    The list endpoint omits ``problems`` and reports ``problemsCount``;
    the detail endpoint always populates ``problems``.
    """
    _id: str
    title: str
    description: str
    startTime: str  # ISO 8601 with offset, e.g. "2025-06-01T10:00:00.000Z"
    duration: int  # minutes
    problems: List[ProblemPayload]
    problemsCount: int
    registeredUsers: List[Union[UserPayload, str]]
    userStats: Optional[UserStatsPayload]


class ContestDetailPayload(TypedDict, total=False):
    """Body of ``GET /contest/{id}``."""
    contest: ContestPayload
    isRegistered: bool
    status: str
    userStats: Optional[UserStatsPayload]


class LeaderboardEntryPayload(TypedDict, total=False):
    user: Optional[UserPayload]
    score: float
    rank: int  # ignored, ranks are recomputed locally
    problemStats: List[ProblemStatPayload]


class LeaderboardPayload(TypedDict, total=False):
    """Body of ``GET /contest/{id}/leaderboard``."""
    title: str
    problems: List[ProblemPayload]
    leaderboard: Optional[List[LeaderboardEntryPayload]]


class ErrorPayload(TypedDict, total=False):
    """Body of a non-2xx answer."""
    message: str
    missed: bool
