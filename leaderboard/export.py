"""
Tabular export of ranked results

Flattens leaderboard rows for CSV download and JSON responses.
"""
import csv
import io
from dataclasses import asdict
from typing import Any, Dict, Iterable, List, Sequence

from .models import IndividualResult, TeamResult


INDIVIDUAL_HEADERS = ["Position", "Name", "SABU Number", "Club", "Province"]
TOTAL_HEADERS = ["Total Score", "X Count", "V Count"]
TEAM_HEADERS = [
    "Position", "Team", "Province", "Discipline",
    "Total Score", "X Count", "V Count", "Scores Counted", "Members",
]


def _number(value: float):
    """46.0 -> 46, 46.001 stays"""
    if float(value).is_integer():
        return int(value)
    return value


def individual_headers(stage_numbers: Sequence[int]) -> List[str]:
    return INDIVIDUAL_HEADERS + [f"Stage {n}" for n in stage_numbers] + TOTAL_HEADERS


def individual_rows(results: Iterable[IndividualResult], stage_numbers: Sequence[int]) -> List[List[Any]]:
    """One row per shooter; missing stages show '-', DNF/DQ replace the total"""
    rows = []
    for position, r in enumerate(results, 1):
        stages = []
        for n in stage_numbers:
            value = r.stage_scores.get(f"S{n}")
            stages.append("-" if value is None else _number(value))

        rows.append([
            position,
            r.shooter_name,
            r.sabu_number,
            r.club,
            r.province,
            *stages,
            r.status_label or _number(r.total_score),
            r.total_x,
            r.total_v,
        ])
    return rows


def team_rows(results: Iterable[TeamResult]) -> List[List[Any]]:
    return [
        [
            position,
            t.team_name,
            t.province or "",
            t.discipline_name,
            _number(t.total_score),
            t.total_x,
            t.total_v,
            t.scores_counted,
            t.member_count,
        ]
        for position, t in enumerate(results, 1)
    ]


def to_csv(headers: Sequence[str], rows: Iterable[Sequence[Any]]) -> str:
    """Every cell quoted"""
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerow(headers)
    writer.writerows(rows)
    return buffer.getvalue()


def individual_csv(results: Iterable[IndividualResult], stage_numbers: Sequence[int]) -> str:
    return to_csv(individual_headers(stage_numbers), individual_rows(results, stage_numbers))


def team_csv(results: Iterable[TeamResult]) -> str:
    return to_csv(TEAM_HEADERS, team_rows(results))


def result_to_dict(result) -> Dict[str, Any]:
    return asdict(result)
