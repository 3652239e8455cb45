"""
Tie-break and ordering rules shared by individual and team leaderboards

Order: total score desc, then X count desc, then V count desc.
Residual ties keep input order (sorted() is stable).
"""
from typing import Iterable, List, Sequence, Tuple, TypeVar

from scoring.calculator import SCORE_PRECISION

T = TypeVar("T")

# Team size that drops its weakest shooter
DROP_ONE_TEAM_SIZE = 4


def score_key(total_score: float, total_x: int, total_v: int) -> Tuple[float, int, int]:
    """Ascending sort key for a descending (score, X, V) order"""
    return (-round(total_score or 0, SCORE_PRECISION), -(total_x or 0), -(total_v or 0))


def result_key(item) -> Tuple[float, int, int]:
    return score_key(item.total_score, item.total_x, item.total_v)


def is_disqualified(item) -> bool:
    """DNF or DQ anywhere in the competition"""
    return bool(getattr(item, "has_dnf", False) or getattr(item, "has_dq", False))


def sort_by_score(items: Iterable[T]) -> List[T]:
    """Stable (score, X, V) descending sort"""
    return sorted(items, key=result_key)


def sort_individual(results: Iterable[T]) -> List[T]:
    """
    Individual order

    DNF/DQ entries go strictly last whatever their score. Within each group
    the (score, X, V) order applies.
    """
    return sorted(results, key=lambda r: (is_disqualified(r), result_key(r)))


def top_k_count(member_count: int) -> int:
    """Scores counted for a team: a four-person team drops its weakest"""
    if member_count == DROP_ONE_TEAM_SIZE:
        return member_count - 1
    return member_count


def assign_positions(results: Sequence[T]) -> Sequence[T]:
    """Number ranked rows 1..n in place"""
    for i, r in enumerate(results, 1):
        r.position = i
    return results
