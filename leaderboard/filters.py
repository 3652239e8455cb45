"""
Result filters

The same criteria apply to registrations (before aggregation) and to
individual result rows (after aggregation). Aggregation is a per-registration
fold, so both paths select the same rows; filtered rows are renumbered 1..n
so positions agree as well.
"""
from dataclasses import dataclass, replace
from typing import Iterable, List, Optional, TypeVar

from .ranking import assign_positions

T = TypeVar("T")


@dataclass(frozen=True)
class ResultFilter:
    discipline_id: Optional[str] = None
    age_classification: Optional[str] = None
    search_text: Optional[str] = None

    @property
    def is_empty(self) -> bool:
        return not (self.discipline_id or self.age_classification or (self.search_text or "").strip())

    def matches(self, row) -> bool:
        """Row needs shooter_name, sabu_number, club, discipline_id, age_classification"""
        if self.discipline_id and row.discipline_id != self.discipline_id:
            return False
        if self.age_classification and row.age_classification != self.age_classification:
            return False

        query = (self.search_text or "").strip().lower()
        if query:
            haystack = (
                (row.shooter_name or "").lower(),
                (row.sabu_number or "").lower(),
                (row.club or "").lower(),
            )
            if not any(query in field for field in haystack):
                return False

        return True


def _select(results, criteria: ResultFilter) -> list:
    return [r for r in results if criteria.matches(r)]


def filter_results(
    results: Iterable[T],
    discipline_id: Optional[str] = None,
    age_classification: Optional[str] = None,
    search_text: Optional[str] = None
) -> List[T]:
    """Filter ranked rows, keeping their order

    Returns renumbered copies; the input rows keep their positions.
    """
    criteria = ResultFilter(discipline_id, age_classification, search_text)
    selected = [replace(r) for r in _select(results, criteria)]
    assign_positions(selected)
    return selected


def filter_registrations(
    registrations: Iterable[T],
    discipline_id: Optional[str] = None,
    age_classification: Optional[str] = None,
    search_text: Optional[str] = None
) -> List[T]:
    """Same criteria applied before aggregation"""
    return _select(registrations, ResultFilter(discipline_id, age_classification, search_text))
