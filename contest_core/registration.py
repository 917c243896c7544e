"""Registration eligibility and the idempotent register call.

Checks run in this order:
1. unauthenticated -> AuthenticationRequired (caller redirects to login)
2. already registered -> success, no network call
3. status != Upcoming -> ContestNotJoinable
4. otherwise POST /contest/{id}/register; "already registered" answers are success
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Protocol

from .client import RegisterResponse
from .config import get_settings
from .errors import AuthenticationRequired, ContestNotJoinable
from .status import ContestStatus

logger = logging.getLogger(__name__)

SUCCESS_MESSAGE = "You're registered! Good luck!"
ALREADY_REGISTERED_MESSAGE = "You are already registered for this contest."


class RegistrationApi(Protocol):
    def register(self, contest_id: str) -> RegisterResponse:
        ...


@dataclass(frozen=True)
class RegistrationDecision:
    """Allowed, or Rejected with a reason kind from contest_core.errors."""

    allowed: bool
    already_registered: bool = False
    reason: str | None = None
    message: str | None = None
    redirect_to: str | None = None

    def raise_for_rejection(self) -> None:
        if self.allowed:
            return
        if self.reason == AuthenticationRequired.kind:
            raise AuthenticationRequired(self.message, redirect_to=self.redirect_to or "/login")
        raise ContestNotJoinable(self.message)


@dataclass(frozen=True)
class RegistrationResult:
    contest_id: str
    message: str
    already_registered: bool
    # The registered set lives on the backend; views must re-fetch after success.
    refetch_required: bool = True


def check_registration(
    status: ContestStatus,
    already_registered: bool,
    authenticated: bool,
    *,
    login_path: str | None = None,
) -> RegistrationDecision:
    """Pure eligibility decision; performs no I/O."""
    status = ContestStatus(status)
    if not authenticated:
        return RegistrationDecision(
            allowed=False,
            reason=AuthenticationRequired.kind,
            message=AuthenticationRequired.default_message,
            redirect_to=login_path or get_settings().login_path,
        )
    if already_registered:
        return RegistrationDecision(allowed=True, already_registered=True)
    if status is not ContestStatus.UPCOMING:
        return RegistrationDecision(
            allowed=False,
            reason=ContestNotJoinable.kind,
            message=f"Registration is closed: the contest is {status.value.lower()}.",
        )
    return RegistrationDecision(allowed=True)


class RegistrationGate:
    def __init__(self, api: RegistrationApi):
        self.api = api

    def register(
        self,
        contest_id: str,
        current_status: ContestStatus,
        already_registered: bool,
        *,
        authenticated: bool = True,
    ) -> RegistrationResult:
        """
        Register the acting user, at most one request per call.

        Raises:
          AuthenticationRequired: logged out (or session rejected by the server).
          ContestNotJoinable: the contest has started or ended.
          RegistrationFailed: network/server error; never retried here.
        """
        decision = check_registration(current_status, already_registered, authenticated)
        decision.raise_for_rejection()
        if decision.already_registered:
            logger.info(f"Contest {contest_id}: already registered, skipping request")
            return RegistrationResult(
                contest_id=contest_id,
                message=ALREADY_REGISTERED_MESSAGE,
                already_registered=True,
                refetch_required=False,
            )

        response = self.api.register(contest_id)
        if response.already_registered:
            message = response.message or ALREADY_REGISTERED_MESSAGE
        else:
            message = response.message or SUCCESS_MESSAGE
        logger.info(f"Contest {contest_id}: registration succeeded")
        return RegistrationResult(
            contest_id=contest_id,
            message=message,
            already_registered=response.already_registered,
        )


__all__ = [
    "RegistrationDecision",
    "RegistrationResult",
    "RegistrationGate",
    "check_registration",
    "SUCCESS_MESSAGE",
    "ALREADY_REGISTERED_MESSAGE",
]
