"""HTTP client for the judge backend's contest endpoints."""

import logging
from dataclasses import dataclass
from typing import Any, List, Optional

import requests

from .config import get_settings
from .errors import (
    AuthenticationRequired,
    DataError,
    LeaderboardFetchFailed,
    MissedWindow,
    NotFoundOrUnavailable,
    RegistrationFailed,
)
from .validation import (
    Contest,
    ContestDetail,
    LeaderboardData,
    parse_contest_detail,
    parse_contest_list,
    parse_leaderboard,
)
from .types import ContestDetailPayload, ContestPayload, ErrorPayload, LeaderboardPayload

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RegisterResponse:
    message: Optional[str]
    already_registered: bool = False


def is_already_registered_message(message: Optional[str]) -> bool:
    return bool(message) and "already registered" in message.lower()


def _json_body(response) -> Any:
    try:
        return response.json()
    except ValueError:
        return None


def _error_message(body: Optional[ErrorPayload]) -> Optional[str]:
    if isinstance(body, dict):
        message = body.get("message")
        if isinstance(message, str) and message.strip():
            return message.strip()
    return None


class ContestApiClient:
    """Client for /contest endpoints; maps failures onto contest_core.errors."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        session: Optional[requests.Session] = None,
        timeout: Optional[float] = None,
    ):
        """Initialize the client; the session's cookies carry authentication."""
        settings = get_settings()
        self.base_url = (base_url or settings.api_base_url).rstrip("/")
        self.timeout = timeout or settings.request_timeout
        self.session = session or requests.Session()
        self.session.headers.update(
            {"Content-Type": "application/json", "Accept": "application/json"}
        )

    def _send(self, method: str, path: str, **kwargs):
        url = f"{self.base_url}{path}"
        logger.debug(f"{method} {url}")
        return self.session.request(method, url, timeout=self.timeout, **kwargs)

    def get_contest(self, contest_id: str) -> ContestDetail:
        """
        Fetch one contest with the viewer's registration and stats.

        Raises:
            MissedWindow: the backend answered non-2xx with ``{"missed": true}``.
            NotFoundOrUnavailable: any other failure to load.
            DataError: the body does not match the contest contract.
        """
        try:
            response = self._send("GET", f"/contest/{contest_id}")
        except requests.RequestException as e:
            logger.warning(f"Contest {contest_id} fetch failed: {e}")
            raise NotFoundOrUnavailable() from e

        body: Optional[ContestDetailPayload | ErrorPayload] = _json_body(response)
        if not response.ok:
            if isinstance(body, dict) and body.get("missed"):
                logger.info(f"Contest {contest_id}: registration window missed")
                raise MissedWindow(_error_message(body))
            logger.warning(f"Contest {contest_id} fetch returned {response.status_code}")
            raise NotFoundOrUnavailable(_error_message(body))
        if body is None:
            raise DataError("contest detail response is not JSON")
        return parse_contest_detail(body)

    def list_contests(self) -> List[Contest]:
        try:
            response = self._send("GET", "/contest")
        except requests.RequestException as e:
            logger.warning(f"Contest list fetch failed: {e}")
            raise NotFoundOrUnavailable("Failed to load contests.") from e

        body: Optional[list[ContestPayload] | ErrorPayload] = _json_body(response)
        if not response.ok:
            logger.warning(f"Contest list fetch returned {response.status_code}")
            raise NotFoundOrUnavailable(_error_message(body) or "Failed to load contests.")
        return parse_contest_list(body)

    def register(self, contest_id: str) -> RegisterResponse:
        """
        POST /contest/{id}/register.

        An "already registered" rejection is reported as success so that a
        repeated click never surfaces as an error.
        """
        try:
            response = self._send("POST", f"/contest/{contest_id}/register")
        except requests.RequestException as e:
            logger.warning(f"Registration for contest {contest_id} failed: {e}")
            raise RegistrationFailed() from e

        body = _json_body(response)
        message = _error_message(body)
        if response.ok:
            return RegisterResponse(message=message)
        if response.status_code == 401:
            raise AuthenticationRequired(message, redirect_to=get_settings().login_path)
        if response.status_code == 409 or is_already_registered_message(message):
            logger.info(f"Contest {contest_id}: already registered")
            return RegisterResponse(message=message, already_registered=True)
        logger.warning(
            f"Registration for contest {contest_id} returned {response.status_code}: {message}"
        )
        raise RegistrationFailed(message)

    def get_leaderboard(self, contest_id: str) -> LeaderboardData:
        """Fetch final standings; an empty ``leaderboard`` is a valid answer."""
        try:
            response = self._send("GET", f"/contest/{contest_id}/leaderboard")
        except requests.RequestException as e:
            logger.warning(f"Leaderboard {contest_id} fetch failed: {e}")
            raise LeaderboardFetchFailed() from e

        body: Optional[LeaderboardPayload | ErrorPayload] = _json_body(response)
        if not response.ok:
            logger.warning(f"Leaderboard {contest_id} fetch returned {response.status_code}")
            raise LeaderboardFetchFailed(_error_message(body))
        if body is None:
            raise DataError("leaderboard response is not JSON")
        return parse_leaderboard(body)


__all__ = ["ContestApiClient", "RegisterResponse", "is_already_registered_message"]
