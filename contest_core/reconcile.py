"""Sparse-to-dense reconciliation against a canonical problem list.

Both the single-user problem list and the leaderboard's per-problem cells
are built here, so a missing id or a null problem reference is handled the
same way everywhere:

- stats whose problem reference is null/unresolved are ignored
- the first stat for a given problem id wins; later duplicates are ignored
- the canonical list alone decides row membership and order
"""
from __future__ import annotations

import logging
from typing import Callable, Iterable, Mapping, Optional, Protocol, Sequence, TypeVar

logger = logging.getLogger(__name__)


class HasProblemId(Protocol):
    @property
    def problem_id(self) -> Optional[str]:
        ...


class HasId(Protocol):
    @property
    def id(self) -> str:
        ...


S = TypeVar("S", bound=HasProblemId)
P = TypeVar("P", bound=HasId)
R = TypeVar("R")


def index_by_problem(stats: Iterable[S] | None) -> dict[str, S]:
    """Build a problem-id lookup from sparse stats."""
    index: dict[str, S] = {}
    if not stats:
        return index
    for stat in stats:
        problem_id = stat.problem_id
        if not problem_id:
            continue
        if problem_id in index:
            logger.debug(f"Ignoring duplicate stat for problem {problem_id}")
            continue
        index[problem_id] = stat
    return index


def project(
    canonical: Sequence[P],
    index: Mapping[str, S],
    build: Callable[[int, P, Optional[S]], R],
) -> list[R]:
    """Emit exactly one ``build(position, problem, stat_or_None)`` per canonical problem."""
    return [build(pos, problem, index.get(problem.id)) for pos, problem in enumerate(canonical)]


def problem_label(position: int) -> str:
    """Column/row letter for a 0-based problem position: A..Z, then AA, AB..."""
    if position < 0:
        raise ValueError("position must be non-negative")
    label = ""
    n = position
    while True:
        n, rem = divmod(n, 26)
        label = chr(ord("A") + rem) + label
        if n == 0:
            return label
        n -= 1


__all__ = ["index_by_problem", "project", "problem_label"]
