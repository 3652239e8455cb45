"""
Results API Models

Pydantic request/response models
"""

from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional

from pydantic import AliasChoices, BaseModel, Field

from app.config import scoring_config
from scoring.models import SighterMode


# =============================================
# Enums
# =============================================

class ResultView(str, Enum):
    """Individual leaderboard view mode"""
    individual = "individual"
    discipline = "discipline"
    age = "age"


# =============================================
# Scoring
# =============================================

class ShotIn(BaseModel):
    round: int = Field(..., ge=1)
    score: int = Field(default=0)
    is_x: bool = Field(default=False, validation_alias=AliasChoices("is_x", "isX"))
    is_v: bool = Field(default=False, validation_alias=AliasChoices("is_v", "isV"))


class StageDefinitionIn(BaseModel):
    scoring_rounds: int = Field(default=10, description="Shots counted toward the score")
    sighter_count: int = Field(default=2, ge=0)
    max_score_per_shot: int = Field(default=5, ge=1)


class ScorePreviewRequest(BaseModel):
    """Stage score computation without persistence"""
    shots: List[ShotIn]
    stage: StageDefinitionIn = Field(default_factory=StageDefinitionIn)
    sighter_mode: SighterMode = Field(default_factory=lambda: scoring_config.default_sighter_mode)
    is_dnf: bool = False
    is_dq: bool = False


class ScoreSubmitRequest(BaseModel):
    """Pending stage score submission"""
    registration_id: str
    stage_id: str
    submitted_by: str
    shots: List[ShotIn]
    sighter_mode: SighterMode = Field(default_factory=lambda: scoring_config.default_sighter_mode)
    is_dnf: bool = False
    is_dq: bool = False
    notes: str = ""


class ShotOut(BaseModel):
    round: int
    score: int
    is_x: bool
    is_v: bool


class StageScoreOut(BaseModel):
    total_score: float
    computed_score: float
    x_count: int
    v_count: int
    is_dnf: bool
    is_dq: bool
    window_start: int
    window_end: int
    sighter_mode: SighterMode
    shots: List[ShotOut]
    recorded_shots: List[ShotOut] = []
    record_version: int


class ScoreSubmitResponse(BaseModel):
    score_id: Optional[str] = None
    stage_score: StageScoreOut


# =============================================
# Leaderboards
# =============================================

class IndividualResultOut(BaseModel):
    position: int
    registration_id: str
    user_id: str
    shooter_name: str
    sabu_number: str
    club: str
    province: str
    age_classification: str
    discipline_id: str
    discipline_name: str
    team_id: Optional[str] = None
    team_name: Optional[str] = None
    stage_scores: Dict[str, float] = Field(default_factory=dict)
    stage_x_counts: Dict[str, int] = Field(default_factory=dict)
    stage_v_counts: Dict[str, int] = Field(default_factory=dict)
    total_score: float
    total_x: int
    total_v: int
    has_dnf: bool
    has_dq: bool


class TeamMemberOut(BaseModel):
    registration_id: str
    user_id: str
    shooter_name: str
    total_score: float
    total_x: int
    total_v: int
    counted: bool


class TeamResultOut(BaseModel):
    position: int
    team_id: str
    team_name: str
    province: Optional[str] = None
    discipline_id: str
    discipline_name: str
    total_score: float
    total_x: int
    total_v: int
    member_count: int
    scores_counted: int
    members: List[TeamMemberOut] = Field(default_factory=list)


class AnomalyOut(BaseModel):
    kind: str
    message: str
    registration_id: Optional[str] = None
    stage_id: Optional[str] = None


class IndividualLeaderboard(BaseModel):
    competition_id: str
    view: ResultView = ResultView.individual
    refreshed_at: Optional[datetime] = None
    results: List[IndividualResultOut] = Field(default_factory=list)
    groups: Dict[str, List[IndividualResultOut]] = Field(default_factory=dict)
    anomalies: List[AnomalyOut] = Field(default_factory=list)


class TeamLeaderboard(BaseModel):
    competition_id: str
    refreshed_at: Optional[datetime] = None
    results: List[TeamResultOut] = Field(default_factory=list)
    anomalies: List[AnomalyOut] = Field(default_factory=list)
