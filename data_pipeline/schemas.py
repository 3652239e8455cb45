"""
Row schemas for the hosted backend

Pydantic models for rows read from Supabase tables/views and for the
versioned shot record stored with a stage score. Rows are decoded once here;
the scoring and leaderboard code only sees typed records.
"""

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator
from typing import Optional, List, Dict, Any
from datetime import datetime
from enum import Enum
import json

from scoring.models import RECORD_VERSION, SighterMode


class UnsupportedRecordVersion(ValueError):
    """Shot record written by a newer schema version"""

    def __init__(self, version: int):
        super().__init__(f"Unsupported shot record version: {version} (supported: <= {RECORD_VERSION})")
        self.version = version


class ValidationSeverity(str, Enum):
    """Validation error severity"""
    CRITICAL = "critical"   # row rejected
    HIGH = "high"           # row rejected, needs manual review
    MEDIUM = "medium"       # row kept, flagged
    LOW = "low"             # logged only


class ValidationError(BaseModel):
    """Validation error"""
    error_type: str = Field(..., description="Error type")
    severity: ValidationSeverity = Field(..., description="Severity")
    message: str = Field(..., description="Error message")
    field: Optional[str] = Field(None, description="Offending field")
    value: Optional[Any] = Field(None, description="Offending value")
    row_id: Optional[str] = Field(None, description="Row id, when known")


class ValidationResult(BaseModel):
    """Outcome of decoding a batch of rows"""
    total: int = 0
    accepted: int = 0
    errors: List[ValidationError] = Field(default_factory=list)
    validated_at: datetime = Field(default_factory=datetime.now)

    @property
    def rejected(self) -> int:
        return self.total - self.accepted

    @property
    def pass_rate(self) -> float:
        return self.accepted / self.total if self.total else 1.0

    @property
    def is_valid(self) -> bool:
        return not self.errors


def _zero_if_none(v):
    return 0 if v is None else v


def _false_if_none(v):
    return False if v is None else v


# ==================== Shot records ====================

class ShotRecord(BaseModel):
    """One shot as stored in a score's notes"""
    model_config = ConfigDict(populate_by_name=True)

    round: int = Field(..., ge=1, description="1-based shot position, sighters included")
    score: int = Field(default=0, ge=0, description="Shot value")
    is_x: bool = Field(default=False, validation_alias=AliasChoices("is_x", "isX"))
    is_v: bool = Field(default=False, validation_alias=AliasChoices("is_v", "isV"))

    @field_validator("score", mode="before")
    @classmethod
    def validate_score(cls, v):
        return _zero_if_none(v)


class StageScoreRecord(BaseModel):
    """Versioned shot record of a stage attempt"""
    version: int = Field(default=RECORD_VERSION, ge=1)
    sighter_mode: SighterMode = Field(default=SighterMode.COUNT_NONE)
    window_start: Optional[int] = None
    window_end: Optional[int] = None
    rounds: List[ShotRecord] = Field(default_factory=list)
    notes: str = ""

    @field_validator("version")
    @classmethod
    def validate_version(cls, v: int) -> int:
        if v > RECORD_VERSION:
            raise UnsupportedRecordVersion(v)
        return v

    def to_json(self) -> str:
        return json.dumps(self.model_dump(mode="json"), ensure_ascii=False)


# ==================== Table rows ====================

class ProfileRow(BaseModel):
    full_names: Optional[str] = None
    surname: Optional[str] = None
    sabu_number: Optional[str] = None
    club: Optional[str] = None
    province: Optional[str] = None


class DisciplineRow(BaseModel):
    id: Optional[str] = None
    name: Optional[str] = None


class TeamRow(BaseModel):
    id: str
    name: Optional[str] = None
    province: Optional[str] = None
    member_ids: List[str] = Field(default_factory=list)

    @field_validator("member_ids", mode="before")
    @classmethod
    def validate_member_ids(cls, v):
        """Accept ids or joined team_members rows"""
        if v is None:
            return []
        ids = []
        for item in v:
            if isinstance(item, dict):
                item = item.get("user_id") or item.get("id")
            if item:
                ids.append(str(item))
        return ids


class StageRow(BaseModel):
    """stages table"""
    id: str
    competition_id: Optional[str] = None
    stage_number: Optional[int] = None
    name: Optional[str] = None
    distance: Optional[int] = None
    rounds: Optional[int] = Field(None, description="Scoring rounds")
    sighters: Optional[int] = Field(None, description="Sighter shots")
    max_score: Optional[int] = Field(None, description="Max score per shot")


class RegistrationRow(BaseModel):
    """registrations table with profile/discipline/team joins"""
    id: str
    user_id: Optional[str] = None
    competition_id: Optional[str] = None
    discipline_id: Optional[str] = None
    team_id: Optional[str] = None
    age_classification: Optional[str] = None
    registration_status: Optional[str] = "confirmed"
    profiles: Optional[ProfileRow] = None
    disciplines: Optional[DisciplineRow] = None
    teams: Optional[TeamRow] = None


class StageRef(BaseModel):
    id: Optional[str] = None
    stage_number: Optional[int] = None
    name: Optional[str] = None


class ScoreRow(BaseModel):
    """scores table"""
    id: Optional[str] = None
    registration_id: str
    stage_id: str
    score: float = 0.0
    x_count: int = 0
    v_count: int = 0
    is_dnf: bool = False
    is_dq: bool = False
    notes: Optional[str] = None
    verified_at: Optional[datetime] = None
    submitted_at: Optional[datetime] = None
    stages: Optional[StageRef] = None

    @field_validator("score", "x_count", "v_count", mode="before")
    @classmethod
    def validate_counts(cls, v):
        return _zero_if_none(v)

    @field_validator("is_dnf", "is_dq", mode="before")
    @classmethod
    def validate_flags(cls, v):
        return _false_if_none(v)


class LeaderboardViewRow(BaseModel):
    """competition_leaderboard view (optional, precomputed upstream)"""
    registration_id: str
    user_id: Optional[str] = None
    full_names: Optional[str] = None
    surname: Optional[str] = None
    sabu_number: Optional[str] = None
    club: Optional[str] = None
    province: Optional[str] = None
    age_classification: Optional[str] = None
    discipline_id: Optional[str] = None
    discipline_name: Optional[str] = None
    team_id: Optional[str] = None
    team_name: Optional[str] = None
    total_score: Optional[float] = None
    total_x_count: Optional[int] = None
    x_count: Optional[int] = None
    total_v_count: Optional[int] = None
    v_count: Optional[int] = None
    has_dnf: bool = False
    has_dq: bool = False
    stage_scores: Dict[str, float] = Field(default_factory=dict)

    @field_validator("has_dnf", "has_dq", mode="before")
    @classmethod
    def validate_flags(cls, v):
        return _false_if_none(v)

    @field_validator("stage_scores", mode="before")
    @classmethod
    def validate_stage_scores(cls, v):
        """Stored as JSON text or as an object"""
        if v is None or v == "":
            return {}
        if isinstance(v, str):
            try:
                v = json.loads(v)
            except json.JSONDecodeError:
                return {}
        return v if isinstance(v, dict) else {}
