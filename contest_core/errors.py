"""Error taxonomy for the contest core.

Pure modules only ever raise ``DataError``. The HTTP client maps transport
failures and non-2xx answers onto the remaining classes, and the views turn
them into screen state.
"""
from __future__ import annotations


class ContestCoreError(Exception):
    """Base class; ``kind`` is a stable machine-readable tag."""

    kind = "contest_error"
    default_message = "Something went wrong."

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class DataError(ContestCoreError, ValueError):
    """Backend contract violation: malformed timestamps, durations or payloads."""

    kind = "data_error"
    default_message = "Contest data is malformed."


class NotFoundOrUnavailable(ContestCoreError):
    kind = "not_found"
    default_message = "Contest not found or could not be loaded."


class MissedWindow(ContestCoreError):
    """The viewer never registered and the contest can no longer be joined."""

    kind = "missed_window"
    default_message = "You have missed a golden opportunity this time, but ready for the next one."


class AuthenticationRequired(ContestCoreError):
    kind = "authentication_required"
    default_message = "Please log in to register for contests"

    def __init__(self, message: str | None = None, redirect_to: str = "/login"):
        super().__init__(message)
        self.redirect_to = redirect_to


class ContestNotJoinable(ContestCoreError):
    kind = "contest_not_joinable"
    default_message = "Registration is closed for this contest."


class RegistrationFailed(ContestCoreError):
    kind = "registration_failed"
    default_message = "Registration failed. Please try again."


class LeaderboardFetchFailed(ContestCoreError):
    kind = "leaderboard_fetch_failed"
    default_message = "Failed to load leaderboard. Please try again later."


__all__ = [
    "ContestCoreError",
    "DataError",
    "NotFoundOrUnavailable",
    "MissedWindow",
    "AuthenticationRequired",
    "ContestNotJoinable",
    "RegistrationFailed",
    "LeaderboardFetchFailed",
]
