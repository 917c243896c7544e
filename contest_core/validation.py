"""
Wire-payload schemas using Pydantic v2
Parses backend JSON into frozen models; any contract violation becomes DataError
"""

import logging
import math
from enum import Enum
from typing import Any, Optional, Self, Tuple

from pydantic import (
    AliasChoices,
    AwareDatetime,
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    field_validator,
    model_validator,
)

from .errors import DataError
from .status import ContestWindow
from .types import ContestDetailPayload, ContestPayload, LeaderboardPayload

logger = logging.getLogger(__name__)

_MODEL_CONFIG = ConfigDict(populate_by_name=True, extra="ignore", frozen=True)


def _coerce_id(v: Any) -> Any:
    # Mongo ids arrive as strings, but numeric ids from fixtures are tolerated.
    if isinstance(v, bool):
        return v
    if isinstance(v, int):
        return str(v)
    if isinstance(v, str):
        return v.strip()
    return v


def _ref_to_dict(v: Any) -> Any:
    """Turn a bare id into a reference dict; None and id-less objects stay unresolved."""
    if v is None:
        return None
    if isinstance(v, (str, int)) and not isinstance(v, bool):
        ident = _coerce_id(v)
        return {"_id": ident} if ident else None
    if isinstance(v, dict) and not (v.get("_id") or v.get("id")):
        return None
    return v


# ==================== MODELS ====================


class Difficulty(str, Enum):
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"

    @property
    def label(self) -> str:
        return self.value.capitalize()


class ProblemRef(BaseModel):
    """A problem as referenced from a contest"""

    model_config = _MODEL_CONFIG

    id: str = Field(..., min_length=1, validation_alias=AliasChoices("_id", "id"))
    title: str = ""
    difficulty: Optional[Difficulty] = None

    @field_validator("id", mode="before")
    @classmethod
    def validate_id(cls, v: Any) -> Any:
        return _coerce_id(v)

    @field_validator("difficulty", mode="before")
    @classmethod
    def validate_difficulty(cls, v: Any) -> Any:
        """Accept 'Easy', ' HARD ' and friends"""
        if isinstance(v, str):
            v = v.strip().lower()
            return v or None
        return v


class UserRef(BaseModel):
    model_config = _MODEL_CONFIG

    id: str = Field(..., min_length=1, validation_alias=AliasChoices("_id", "id"))
    first_name: Optional[str] = Field(
        None, validation_alias=AliasChoices("firstName", "first_name")
    )

    @field_validator("id", mode="before")
    @classmethod
    def validate_id(cls, v: Any) -> Any:
        return _coerce_id(v)

    @property
    def display_name(self) -> str:
        return self.first_name or "Unknown User"


class ProblemStat(BaseModel):
    """One sparse per-problem solve record"""

    model_config = _MODEL_CONFIG

    problem: Optional[ProblemRef] = None
    is_solved: bool = Field(False, validation_alias=AliasChoices("isSolved", "is_solved"))
    solve_time: Optional[float] = Field(
        None,
        ge=0,
        allow_inf_nan=False,
        validation_alias=AliasChoices("solveTime", "solve_time"),
        description="Seconds from contest start to the accepted submission",
    )

    @field_validator("problem", mode="before")
    @classmethod
    def validate_problem(cls, v: Any) -> Any:
        return _ref_to_dict(v)

    @field_validator("is_solved", mode="before")
    @classmethod
    def validate_is_solved(cls, v: Any) -> Any:
        return False if v is None else v

    @field_validator("solve_time", mode="before")
    @classmethod
    def validate_solve_time(cls, v: Any) -> Any:
        # A negative time is dropped; the rest of the record stays usable.
        if isinstance(v, (int, float)) and not isinstance(v, bool) and v < 0:
            logger.warning(f"Ignoring negative solveTime {v}")
            return None
        return v

    @property
    def problem_id(self) -> Optional[str]:
        return self.problem.id if self.problem is not None else None


class UserStats(BaseModel):
    model_config = _MODEL_CONFIG

    problem_stats: Tuple[ProblemStat, ...] = Field(
        (), validation_alias=AliasChoices("problemStats", "problem_stats")
    )

    @field_validator("problem_stats", mode="before")
    @classmethod
    def validate_problem_stats(cls, v: Any) -> Any:
        return () if v is None else v


class Contest(BaseModel):
    """A contest record; immutable apart from the backend-owned registered set"""

    model_config = _MODEL_CONFIG

    id: str = Field(..., min_length=1, validation_alias=AliasChoices("_id", "id"))
    title: str = ""
    description: str = ""
    start_time: AwareDatetime = Field(
        ..., validation_alias=AliasChoices("startTime", "start_time")
    )
    duration_minutes: int = Field(
        ...,
        gt=0,
        validation_alias=AliasChoices("duration", "durationMinutes", "duration_minutes"),
    )
    problems: Tuple[ProblemRef, ...] = ()
    problems_count: Optional[int] = Field(
        None, ge=0, validation_alias=AliasChoices("problemsCount", "problems_count")
    )
    registered_users: frozenset[str] = Field(
        frozenset(), validation_alias=AliasChoices("registeredUsers", "registered_users")
    )
    user_stats: Optional[UserStats] = Field(
        None, validation_alias=AliasChoices("userStats", "user_stats")
    )

    @field_validator("id", mode="before")
    @classmethod
    def validate_id(cls, v: Any) -> Any:
        return _coerce_id(v)

    @field_validator("duration_minutes", mode="before")
    @classmethod
    def validate_duration(cls, v: Any) -> Any:
        """Durations are whole minutes; 90.5 or True are contract violations"""
        if isinstance(v, bool):
            raise ValueError("duration must be an integer number of minutes")
        if isinstance(v, float) and (not math.isfinite(v) or not v.is_integer()):
            raise ValueError("duration must be an integer number of minutes")
        return v

    @field_validator("problems", mode="before")
    @classmethod
    def validate_problems(cls, v: Any) -> Any:
        return () if v is None else v

    @field_validator("registered_users", mode="before")
    @classmethod
    def validate_registered_users(cls, v: Any) -> Any:
        """Accept populated user objects or bare ids; unresolved entries are dropped"""
        if v is None:
            return frozenset()
        if not isinstance(v, (list, tuple, set, frozenset)):
            raise ValueError("registeredUsers must be a list")
        ids = set()
        for entry in v:
            ref = _ref_to_dict(entry)
            if ref is None:
                continue
            ident = _coerce_id(ref.get("_id") or ref.get("id"))
            if isinstance(ident, str) and ident:
                ids.add(ident)
        return frozenset(ids)

    @property
    def window(self) -> ContestWindow:
        return ContestWindow(self.start_time, self.duration_minutes)

    @property
    def end_time(self):
        return self.window.end

    @property
    def participant_count(self) -> int:
        return len(self.registered_users)

    @property
    def problem_total(self) -> int:
        if self.problems:
            return len(self.problems)
        return self.problems_count or 0

    def is_registered(self, user_id: Optional[str]) -> bool:
        return bool(user_id) and user_id in self.registered_users


class ContestDetail(BaseModel):
    """Body of GET /contest/{id}"""

    model_config = _MODEL_CONFIG

    contest: Contest
    is_registered: bool = Field(
        False, validation_alias=AliasChoices("isRegistered", "is_registered")
    )
    status: Optional[str] = None
    user_stats: Optional[UserStats] = Field(
        None, validation_alias=AliasChoices("userStats", "user_stats")
    )

    @field_validator("is_registered", mode="before")
    @classmethod
    def validate_is_registered(cls, v: Any) -> Any:
        return False if v is None else v

    @model_validator(mode="after")
    def validate_published(self) -> Self:
        """A published contest always carries its problem list"""
        if not self.contest.problems:
            raise ValueError("contest detail must include at least one problem")
        return self

    @property
    def problem_stats(self) -> Tuple[ProblemStat, ...]:
        # Older backends nest userStats inside the contest record.
        stats = self.user_stats or self.contest.user_stats
        return stats.problem_stats if stats is not None else ()


class LeaderboardRawEntry(BaseModel):
    """One standings row as sent by the judge; upstream rank is ignored"""

    model_config = _MODEL_CONFIG

    user: Optional[UserRef] = None
    score: float = Field(0, allow_inf_nan=False)
    problem_stats: Tuple[ProblemStat, ...] = Field(
        (), validation_alias=AliasChoices("problemStats", "problem_stats")
    )

    @field_validator("user", mode="before")
    @classmethod
    def validate_user(cls, v: Any) -> Any:
        return _ref_to_dict(v)

    @field_validator("score", mode="before")
    @classmethod
    def validate_score(cls, v: Any) -> Any:
        if isinstance(v, bool):
            raise ValueError("score must be a number")
        return 0 if v is None else v

    @field_validator("problem_stats", mode="before")
    @classmethod
    def validate_problem_stats(cls, v: Any) -> Any:
        return () if v is None else v


class LeaderboardData(BaseModel):
    """Body of GET /contest/{id}/leaderboard"""

    model_config = _MODEL_CONFIG

    title: str = ""
    problems: Tuple[ProblemRef, ...] = ()
    leaderboard: Tuple[LeaderboardRawEntry, ...] = ()

    @field_validator("problems", "leaderboard", mode="before")
    @classmethod
    def validate_sequences(cls, v: Any) -> Any:
        return () if v is None else v


# ==================== PARSERS ====================


def _parse(model: type[BaseModel], payload: Any, what: str):
    try:
        return model.model_validate(payload)
    except ValidationError as e:
        logger.warning(f"Rejected {what} payload: {e.error_count()} validation error(s)")
        raise DataError(f"Invalid {what} payload: {e}") from e


def parse_contest(payload: ContestPayload) -> Contest:
    return _parse(Contest, payload, "contest")


def parse_contest_detail(payload: ContestDetailPayload) -> ContestDetail:
    return _parse(ContestDetail, payload, "contest detail")


def parse_contest_list(payload: list[ContestPayload]) -> list[Contest]:
    if not isinstance(payload, list):
        logger.warning(f"Rejected contest list payload of type {type(payload).__name__}")
        raise DataError("Invalid contest list payload: expected a JSON array")
    return [parse_contest(item) for item in payload]


def parse_leaderboard(payload: LeaderboardPayload) -> LeaderboardData:
    return _parse(LeaderboardData, payload, "leaderboard")


# ==================== EXPORT ====================

__all__ = [
    "Difficulty",
    "ProblemRef",
    "UserRef",
    "ProblemStat",
    "UserStats",
    "Contest",
    "ContestDetail",
    "LeaderboardRawEntry",
    "LeaderboardData",
    "parse_contest",
    "parse_contest_detail",
    "parse_contest_list",
    "parse_leaderboard",
]
