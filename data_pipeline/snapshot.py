"""
Competition snapshot

Everything the leaderboards need for one competition, pulled in one go and
decoded once. A snapshot is never patched: the next pull replaces it.
"""
import json
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Union

from loguru import logger

from leaderboard.models import Registration, Team, VerifiedScore
from scoring.models import StageDefinition

from .normalizer import (
    decode_rows,
    registration_from_row,
    stage_definition_from_row,
    team_from_row,
    verified_score_from_row,
)
from .schemas import RegistrationRow, ScoreRow, StageRow, TeamRow, ValidationResult


@dataclass
class CompetitionSnapshot:
    competition_id: str
    stages: List[StageDefinition] = field(default_factory=list)
    registrations: List[Registration] = field(default_factory=list)
    verified_scores: List[VerifiedScore] = field(default_factory=list)
    teams: List[Team] = field(default_factory=list)
    fetched_at: datetime = field(default_factory=datetime.now)
    validation: Dict[str, ValidationResult] = field(default_factory=dict)

    @property
    def stage_numbers(self) -> List[int]:
        """Stage numbers for result columns, in order"""
        numbers = {s.stage_number for s in self.stages if s.stage_number is not None}
        numbers.update(s.stage_number for s in self.verified_scores if s.stage_number is not None)
        return sorted(numbers)

    @property
    def rejected_rows(self) -> int:
        return sum(v.rejected for v in self.validation.values())


def snapshot_from_rows(
    competition_id: str,
    stage_rows: List[Dict[str, Any]] = None,
    registration_rows: List[Dict[str, Any]] = None,
    score_rows: List[Dict[str, Any]] = None,
    team_rows: List[Dict[str, Any]] = None,
    fetched_at: datetime = None
) -> CompetitionSnapshot:
    """Decode raw backend rows into a snapshot; bad rows are dropped and reported"""
    stages, stage_check = decode_rows(stage_rows or [], StageRow, "stages")
    registrations, registration_check = decode_rows(registration_rows or [], RegistrationRow, "registrations")
    scores, score_check = decode_rows(score_rows or [], ScoreRow, "scores")
    teams, team_check = decode_rows(team_rows or [], TeamRow, "teams")

    snapshot = CompetitionSnapshot(
        competition_id=competition_id,
        stages=sorted(
            (stage_definition_from_row(s) for s in stages),
            key=lambda s: (s.stage_number is None, s.stage_number or 0),
        ),
        registrations=[registration_from_row(r) for r in registrations],
        verified_scores=[verified_score_from_row(s) for s in scores if s.verified_at is not None],
        teams=[team_from_row(t) for t in teams],
        fetched_at=fetched_at or datetime.now(),
        validation={
            "stages": stage_check,
            "registrations": registration_check,
            "scores": score_check,
            "teams": team_check,
        },
    )

    logger.info(
        f"Snapshot {competition_id}: {len(snapshot.stages)} stages, "
        f"{len(snapshot.registrations)} registrations, "
        f"{len(snapshot.verified_scores)} verified scores, {len(snapshot.teams)} teams"
    )
    return snapshot


def load_snapshot_file(path: Union[str, Path]) -> CompetitionSnapshot:
    """
    Snapshot from a JSON export

    Format: {"competition_id": ..., "stages": [...], "registrations": [...],
    "scores": [...], "teams": [...]} with rows shaped like the backend tables.
    """
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)

    return snapshot_from_rows(
        competition_id=str(data.get("competition_id", "")),
        stage_rows=data.get("stages", []),
        registration_rows=data.get("registrations", []),
        score_rows=data.get("scores", []),
        team_rows=data.get("teams", []),
    )
