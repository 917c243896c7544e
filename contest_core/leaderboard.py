"""Leaderboard ranking engine.

Single source of truth for contest standings:
- Order: score descending; equal scores keep arrival order (stable sort).
- Rank: 1-based position in that order. Equal scores get consecutive,
  distinct ranks; there is no shared "competition" rank.
- Cells: each row is projected onto the canonical problem list; a problem
  with no stat is unattempted.
- Display sorting re-orders rows only; computed ranks never change.
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Literal, Optional, Sequence

from .reconcile import index_by_problem, problem_label, project
from .validation import LeaderboardRawEntry, ProblemRef, ProblemStat, UserRef


CellState = Literal["solved", "failed", "unattempted"]
SortKey = Literal["rank", "score", "user"]
SortDirection = Literal["ascending", "descending"]

_MEDALS = {1: "🥇", 2: "🥈", 3: "🥉"}
_CELL_SYMBOLS = {"solved": "✓", "failed": "✗", "unattempted": "-"}


@dataclass(frozen=True)
class ProblemCell:
    problem_id: str
    label: str
    state: CellState
    solve_time: float | None = None

    @property
    def symbol(self) -> str:
        return _CELL_SYMBOLS[self.state]

    @property
    def solve_minutes(self) -> str:
        # Zero or missing solve times render as blank, like the standings table.
        if not self.solve_time:
            return ""
        return f"{math.floor(self.solve_time / 60)}m"


@dataclass(frozen=True)
class LeaderboardRow:
    rank: int
    user_id: str | None
    user_name: str
    score: float
    problem_stats: tuple[ProblemStat, ...]

    @property
    def medal(self) -> str:
        return _MEDALS.get(self.rank, "")


@dataclass(frozen=True)
class Leaderboard:
    title: str
    problems: tuple[ProblemRef, ...]
    rows: tuple[LeaderboardRow, ...]

    @property
    def is_empty(self) -> bool:
        return not self.rows

    @property
    def column_labels(self) -> tuple[str, ...]:
        return tuple(problem_label(i) for i in range(len(self.problems)))

    def cells(self, row: LeaderboardRow) -> list[ProblemCell]:
        return project_cells(row, self.problems)


@dataclass(frozen=True)
class SortConfig:
    key: SortKey = "rank"
    direction: SortDirection = "ascending"

    def toggle(self, key: SortKey) -> "SortConfig":
        """Header-click semantics: same key ascending flips, anything else starts ascending."""
        if key == self.key and self.direction == "ascending":
            return SortConfig(key=key, direction="descending")
        return SortConfig(key=key, direction="ascending")


def _row_from_entry(rank: int, entry: LeaderboardRawEntry) -> LeaderboardRow:
    user: Optional[UserRef] = entry.user
    return LeaderboardRow(
        rank=rank,
        user_id=user.id if user is not None else None,
        user_name=user.display_name if user is not None else "Unknown User",
        score=entry.score,
        problem_stats=tuple(entry.problem_stats),
    )


def rank_entries(entries: Sequence[LeaderboardRawEntry] | None) -> tuple[LeaderboardRow, ...]:
    """Sort by score descending (stable) and assign 1-based positional ranks."""
    if not entries:
        return ()
    ordered = sorted(entries, key=lambda entry: -entry.score)
    return tuple(_row_from_entry(pos, entry) for pos, entry in enumerate(ordered, start=1))


def _cell(index: int, problem: ProblemRef, stat: Optional[ProblemStat]) -> ProblemCell:
    label = problem_label(index)
    if stat is None:
        return ProblemCell(problem_id=problem.id, label=label, state="unattempted")
    return ProblemCell(
        problem_id=problem.id,
        label=label,
        state="solved" if stat.is_solved else "failed",
        solve_time=stat.solve_time,
    )


def project_cells(row: LeaderboardRow, problems: Sequence[ProblemRef]) -> list[ProblemCell]:
    """One cell per canonical problem, in canonical order."""
    return project(problems, index_by_problem(row.problem_stats), _cell)


def _sort_value(row: LeaderboardRow, key: SortKey):
    if key == "rank":
        return row.rank
    if key == "score":
        return row.score
    if key == "user":
        return row.user_name.lower()
    raise ValueError(f"unsupported leaderboard sort key: {key!r}")


def sort_rows(
    rows: Sequence[LeaderboardRow], config: SortConfig | None = None
) -> list[LeaderboardRow]:
    """Display order for the standings table; equal values keep their current order."""
    config = config or SortConfig()
    if config.direction not in ("ascending", "descending"):
        raise ValueError(f"unsupported sort direction: {config.direction!r}")
    return sorted(
        rows,
        key=lambda row: _sort_value(row, config.key),
        reverse=config.direction == "descending",
    )


def build_leaderboard(
    title: str,
    problems: Sequence[ProblemRef],
    entries: Sequence[LeaderboardRawEntry] | None,
) -> Leaderboard:
    return Leaderboard(title=title, problems=tuple(problems), rows=rank_entries(entries))


__all__ = [
    "ProblemCell",
    "LeaderboardRow",
    "Leaderboard",
    "SortConfig",
    "rank_entries",
    "project_cells",
    "sort_rows",
    "build_leaderboard",
]
