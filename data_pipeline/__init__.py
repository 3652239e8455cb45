"""
Data pipeline package

Boundary between the hosted backend and the scoring core:
- Row schemas (Pydantic) for tables and views
- Normalization into scoring / leaderboard records
- Versioned shot record encode/decode
"""

from .schemas import (
    UnsupportedRecordVersion,
    ValidationSeverity,
    ValidationError,
    ValidationResult,
    ShotRecord,
    StageScoreRecord,
    ProfileRow,
    DisciplineRow,
    TeamRow,
    StageRow,
    RegistrationRow,
    ScoreRow,
    LeaderboardViewRow,
)
from .normalizer import (
    decode_rows,
    stage_definition_from_row,
    registration_from_row,
    verified_score_from_row,
    team_from_row,
    individual_result_from_view,
    decode_shot_record,
    shots_from_record,
    encode_stage_score,
)
from .snapshot import CompetitionSnapshot, snapshot_from_rows, load_snapshot_file

__all__ = [
    # Schemas
    "UnsupportedRecordVersion",
    "ValidationSeverity",
    "ValidationError",
    "ValidationResult",
    "ShotRecord",
    "StageScoreRecord",
    "ProfileRow",
    "DisciplineRow",
    "TeamRow",
    "StageRow",
    "RegistrationRow",
    "ScoreRow",
    "LeaderboardViewRow",
    # Normalizer
    "decode_rows",
    "stage_definition_from_row",
    "registration_from_row",
    "verified_score_from_row",
    "team_from_row",
    "individual_result_from_view",
    "decode_shot_record",
    "shots_from_record",
    "encode_stage_score",
    # Snapshot
    "CompetitionSnapshot",
    "snapshot_from_rows",
    "load_snapshot_file",
]
