"""Problem list for the contest detail page.

The contest's canonical problem list is the sole source of membership and
order; the user's sparse stats only contribute the solved flag.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional, Sequence

from .reconcile import index_by_problem, problem_label, project
from .validation import Difficulty, ProblemRef, ProblemStat


@dataclass(frozen=True)
class DisplayProblem:
    id: str
    title: str
    difficulty: Optional[Difficulty]
    is_solved: bool
    index: int

    @property
    def label(self) -> str:
        return problem_label(self.index)

    @property
    def difficulty_label(self) -> str:
        return self.difficulty.label if self.difficulty is not None else ""

    @property
    def badge(self) -> str:
        # Solved rows show a check mark instead of their letter.
        return "✓" if self.is_solved else self.label


def _display_row(index: int, problem: ProblemRef, stat: Optional[ProblemStat]) -> DisplayProblem:
    return DisplayProblem(
        id=problem.id,
        title=problem.title,
        difficulty=problem.difficulty,
        is_solved=bool(stat.is_solved) if stat is not None else False,
        index=index,
    )


def merge_problem_stats(
    problems: Sequence[ProblemRef],
    stats: Iterable[ProblemStat] | None,
    *,
    registered: bool = True,
) -> list[DisplayProblem]:
    """
    Reconcile canonical problems with a user's sparse solve records.

    Args:
      problems: the contest's ordered problem list.
      stats: the user's per-problem records; may be empty, None, unordered,
        or mention problems outside the contest.
      registered: stats are ignored for unregistered viewers.

    Returns one row per canonical problem, in canonical order, with
    ``is_solved`` defaulting to False.
    """
    index = index_by_problem(stats) if registered else {}
    return project(problems, index, _display_row)


def solved_count(rows: Iterable[DisplayProblem]) -> int:
    return sum(1 for row in rows if row.is_solved)


__all__ = ["DisplayProblem", "merge_problem_stats", "solved_count"]
