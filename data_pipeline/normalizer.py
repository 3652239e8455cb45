"""
Row normalization
- hosted backend rows -> scoring / leaderboard records
- missing metadata -> 'Unknown' display labels
- versioned shot record encode/decode (replaces ad hoc notes parsing)
"""
import json
from typing import Any, Dict, Iterable, List, Optional, Tuple, Type, TypeVar

from loguru import logger
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from leaderboard.models import (
    UNKNOWN,
    UNKNOWN_TEAM,
    IndividualResult,
    Registration,
    Team,
    VerifiedScore,
)
from scoring.models import RECORD_VERSION, Shot, StageDefinition, StageScore

from .schemas import (
    LeaderboardViewRow,
    RegistrationRow,
    ScoreRow,
    StageRow,
    StageScoreRecord,
    TeamRow,
    UnsupportedRecordVersion,
    ValidationError,
    ValidationResult,
    ValidationSeverity,
)

M = TypeVar("M", bound=BaseModel)


# =============================================================================
# Stage definition defaults
# =============================================================================

DEFAULT_SCORING_ROUNDS = 10
DEFAULT_SIGHTER_COUNT = 2
DEFAULT_MAX_SCORE_PER_SHOT = 5


# =============================================================================
# Batch decoding
# =============================================================================

def decode_rows(
    rows: Iterable[Dict[str, Any]],
    schema: Type[M],
    kind: str = ""
) -> Tuple[List[M], ValidationResult]:
    """
    Validate raw rows against a schema

    Rows that fail are dropped and reported; the rest are returned in order.
    """
    decoded: List[M] = []
    result = ValidationResult()
    kind = kind or schema.__name__

    for row in rows or []:
        result.total += 1
        try:
            decoded.append(schema.model_validate(row))
            result.accepted += 1
        except PydanticValidationError as e:
            row_id = str(row.get("id", "")) if isinstance(row, dict) else None
            for error in e.errors():
                result.errors.append(ValidationError(
                    error_type="SCHEMA_VALIDATION_FAILED",
                    severity=ValidationSeverity.CRITICAL,
                    message=error["msg"],
                    field=".".join(str(loc) for loc in error["loc"]),
                    value=error.get("input"),
                    row_id=row_id,
                ))
            logger.warning(f"{kind} row {row_id or '?'} rejected: {e.error_count()} validation errors")

    if result.rejected:
        logger.warning(f"{kind}: {result.accepted}/{result.total} rows accepted")
    return decoded, result


# =============================================================================
# Row -> record
# =============================================================================

def _full_name(full_names: Optional[str], surname: Optional[str]) -> str:
    name = f"{full_names or ''} {surname or ''}".strip()
    return " ".join(name.split()) or UNKNOWN


def stage_definition_from_row(row: StageRow) -> StageDefinition:
    """Unset stage columns fall back to the federation defaults"""
    return StageDefinition(
        scoring_rounds=row.rounds or DEFAULT_SCORING_ROUNDS,
        sighter_count=DEFAULT_SIGHTER_COUNT if row.sighters is None else row.sighters,
        max_score_per_shot=row.max_score or DEFAULT_MAX_SCORE_PER_SHOT,
        id=row.id,
        stage_number=row.stage_number,
        name=row.name,
        distance=row.distance,
    )


def registration_from_row(row: RegistrationRow) -> Registration:
    profile = row.profiles
    discipline = row.disciplines
    team = row.teams

    team_name = None
    if row.team_id:
        team_name = (team.name if team else None) or UNKNOWN_TEAM

    return Registration(
        id=row.id,
        user_id=row.user_id or "",
        competition_id=row.competition_id or "",
        discipline_id=row.discipline_id or "",
        team_id=row.team_id,
        age_classification=row.age_classification or "",
        shooter_name=_full_name(profile.full_names, profile.surname) if profile else UNKNOWN,
        sabu_number=(profile.sabu_number if profile else None) or "",
        club=(profile.club if profile else None) or "",
        province=(profile.province if profile else None) or "",
        discipline_name=(discipline.name if discipline else None) or UNKNOWN,
        team_name=team_name,
        status=row.registration_status or "confirmed",
    )


def verified_score_from_row(row: ScoreRow) -> VerifiedScore:
    return VerifiedScore(
        registration_id=row.registration_id,
        stage_id=row.stage_id,
        score=row.score,
        x_count=row.x_count,
        v_count=row.v_count,
        is_dnf=row.is_dnf,
        is_dq=row.is_dq,
        verified_at=row.verified_at,
        stage_number=row.stages.stage_number if row.stages else None,
    )


def team_from_row(row: TeamRow) -> Team:
    return Team(
        id=row.id,
        name=row.name or UNKNOWN_TEAM,
        province=row.province,
        member_ids=list(row.member_ids),
    )


def individual_result_from_view(row: LeaderboardViewRow) -> IndividualResult:
    """Adapt a precomputed leaderboard view row; ordering is redone locally"""
    return IndividualResult(
        registration_id=row.registration_id,
        user_id=row.user_id or "",
        shooter_name=_full_name(row.full_names, row.surname),
        sabu_number=row.sabu_number or "",
        club=row.club or "",
        province=row.province or "",
        age_classification=row.age_classification or "",
        discipline_id=row.discipline_id or "",
        discipline_name=row.discipline_name or UNKNOWN,
        team_id=row.team_id,
        team_name=row.team_name,
        stage_scores=dict(row.stage_scores),
        total_score=row.total_score or 0,
        total_x=row.total_x_count or row.x_count or 0,
        total_v=row.total_v_count or row.v_count or 0,
        has_dnf=row.has_dnf,
        has_dq=row.has_dq,
    )


# =============================================================================
# Shot records
# =============================================================================

def decode_shot_record(notes: Optional[str]) -> Optional[StageScoreRecord]:
    """
    Decode the shot record stored in a score's notes

    Accepts the versioned record and the legacy {"rounds": [...]} blob.
    Free-text notes (not JSON, or JSON without rounds) give None.

    Raises:
        UnsupportedRecordVersion: record written by a newer version
    """
    if not notes or not notes.strip():
        return None

    try:
        data = json.loads(notes)
    except json.JSONDecodeError:
        return None

    if not isinstance(data, dict) or not isinstance(data.get("rounds"), list):
        return None

    # Version check runs before model validation
    try:
        version = int(data.get("version", RECORD_VERSION))
    except (TypeError, ValueError):
        version = None
    if version is not None and version > RECORD_VERSION:
        raise UnsupportedRecordVersion(version)

    try:
        return StageScoreRecord.model_validate(data)
    except PydanticValidationError as e:
        logger.warning(f"Unreadable shot record in notes: {e.error_count()} validation errors")
        return None


def shots_from_record(record: Optional[StageScoreRecord]) -> List[Shot]:
    if record is None:
        return []
    return [Shot(round=r.round, score=r.score, is_x=r.is_x, is_v=r.is_v) for r in record.rounds]


def encode_stage_score(stage_score: StageScore, notes: str = "") -> str:
    """Versioned shot record for the notes column"""
    record = StageScoreRecord(
        version=stage_score.record_version,
        sighter_mode=stage_score.sighter_mode,
        window_start=stage_score.window.start,
        window_end=stage_score.window.end,
        rounds=[s.to_dict() for s in stage_score.shots],
        notes=notes or "",
    )
    return record.to_json()
